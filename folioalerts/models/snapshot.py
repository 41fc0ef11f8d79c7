"""MetricSnapshot data model."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from folioalerts.models.alert import Metric, as_utc, utc_now


class MetricSnapshot(BaseModel):
    """Point-in-time read of an asset's metrics.

    A metric that the feed could not provide is ``None``, which is distinct
    from a reading of zero.
    """

    symbol: str = Field(..., min_length=1, description="Asset ticker")
    price: Optional[float] = Field(
        default=None, ge=0, allow_inf_nan=False, description="Last price"
    )
    volume: Optional[float] = Field(
        default=None, ge=0, allow_inf_nan=False, description="Trading volume"
    )
    market_cap: Optional[float] = Field(
        default=None, ge=0, allow_inf_nan=False, description="Market capitalization"
    )
    taken_at: datetime = Field(default_factory=utc_now, description="Read timestamp")

    model_config = {"frozen": True}

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("taken_at")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return as_utc(value)

    def value_of(self, metric: Metric) -> Optional[float]:
        """Return the reading for a metric, or None if absent."""
        return getattr(self, metric)
