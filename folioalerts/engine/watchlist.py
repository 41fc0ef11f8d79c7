"""Watchlist bridge: turns a watched asset's target price into an alert."""

import logging
import math
from typing import Optional

from folioalerts.db.base import AlertRepository
from folioalerts.errors import ValidationError
from folioalerts.models import Alert, AssetType, validate_alert

logger = logging.getLogger(__name__)


class WatchlistBridge:
    """Creates price alerts for watchlist target prices."""

    def __init__(self, repository: AlertRepository):
        self._repository = repository

    def on_target_price_set(
        self,
        symbol: str,
        asset_type: AssetType,
        target_price: float,
        notes: Optional[str] = None,
    ) -> Alert:
        """Create a one-shot ``price above target`` alert.

        Args:
            symbol: Asset ticker.
            asset_type: Asset class.
            target_price: Target price; must be positive.
            notes: Optional notes copied onto the alert.

        Returns:
            The created alert.

        Raises:
            ValidationError: If the target price is not a positive number.
        """
        if target_price is None or not math.isfinite(target_price) or target_price <= 0:
            raise ValidationError(f"Target price must be positive, got {target_price}")

        alert = validate_alert({
            "symbol": symbol,
            "asset_type": asset_type,
            "alert_type": "price",
            "target_price": target_price,
            "condition": "above",
            "recurring": "once",
            "triggered": False,
            "notes": notes,
        })
        created = self._repository.create(alert)
        logger.info(
            "Created alert %s from watchlist target %s > %s",
            created.id,
            created.symbol,
            target_price,
        )
        return created
