"""Static metric feed backed by explicitly set values."""

import threading
from typing import Optional

from folioalerts.errors import FeedUnavailable
from folioalerts.feeds.base import BaseFeed
from folioalerts.models import AssetType, MetricSnapshot


class StaticFeed(BaseFeed):
    """Feed that serves whatever values were last set for a symbol."""

    def __init__(self):
        self._values: dict[str, dict[str, Optional[float]]] = {}
        self._lock = threading.Lock()

    def set(
        self,
        symbol: str,
        price: Optional[float] = None,
        volume: Optional[float] = None,
        market_cap: Optional[float] = None,
    ) -> None:
        """Set metric values for a symbol.

        Only the metrics passed are changed; others keep their previous value.
        """
        symbol = symbol.strip().upper()
        updates = {"price": price, "volume": volume, "market_cap": market_cap}
        with self._lock:
            current = self._values.setdefault(symbol, {})
            current.update({k: v for k, v in updates.items() if v is not None})

    def clear(self, symbol: Optional[str] = None) -> None:
        """Forget values for one symbol, or for all symbols."""
        with self._lock:
            if symbol is None:
                self._values.clear()
            else:
                self._values.pop(symbol.strip().upper(), None)

    def symbols(self) -> list[str]:
        """Symbols that have at least one value set."""
        with self._lock:
            return sorted(self._values)

    def get_snapshot(self, symbol: str, asset_type: AssetType) -> MetricSnapshot:
        """Get the stored values for a symbol."""
        key = symbol.strip().upper()
        with self._lock:
            values = dict(self._values.get(key, {}))
        if not values:
            raise FeedUnavailable(f"No data for {key}")
        return MetricSnapshot(symbol=key, **values)
