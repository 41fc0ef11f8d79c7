"""WatchlistItem data model."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from folioalerts.models.alert import AssetType, utc_now


class WatchlistItem(BaseModel):
    """Represents an asset on a watchlist."""

    id: Optional[int] = Field(default=None, description="Database ID")
    symbol: str = Field(..., min_length=1, description="Asset ticker")
    asset_type: AssetType = Field(..., description="Asset class")
    list_name: str = Field(default="default", min_length=1, description="Watchlist name")
    target_price: Optional[float] = Field(
        default=None, gt=0, allow_inf_nan=False, description="Optional target price"
    )
    notes: Optional[str] = Field(default=None, description="User notes")
    added_at: datetime = Field(default_factory=utc_now, description="When it was added")

    model_config = {"frozen": True}

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        return value.strip().upper()
