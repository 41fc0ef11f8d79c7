"""Notification and TriggerEvent data models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from folioalerts.models.alert import AlertType


class Notification(BaseModel):
    """Record forwarded to the notifier when an alert triggers."""

    alert_id: int = Field(..., description="ID of the triggered alert")
    symbol: str = Field(..., min_length=1, description="Asset ticker")
    alert_type: AlertType = Field(..., description="Type of the triggered alert")
    description: str = Field(..., description="Human-readable rule description")
    triggered_at: datetime = Field(..., description="Trigger timestamp")

    model_config = {"frozen": True}


class TriggerEvent(BaseModel):
    """Trigger history entry, including notification delivery outcome."""

    id: Optional[int] = Field(default=None, description="Database ID")
    alert_id: int = Field(..., description="ID of the triggered alert")
    symbol: str = Field(..., min_length=1, description="Asset ticker")
    alert_type: AlertType = Field(..., description="Type of the triggered alert")
    description: str = Field(..., description="Human-readable rule description")
    triggered_at: datetime = Field(..., description="Trigger timestamp")
    delivered: bool = Field(default=False, description="Notifier accepted the record")
    error: Optional[str] = Field(default=None, description="Delivery failure reason")

    model_config = {"frozen": True}
