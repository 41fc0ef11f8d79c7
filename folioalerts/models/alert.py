"""Alert data model."""

from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from folioalerts.errors import ValidationError

AssetType = Literal["crypto", "stock"]
AlertType = Literal["price", "percentage", "multi"]
Metric = Literal["price", "volume", "market_cap"]
Comparator = Literal["above", "below"]
PercentageCondition = Literal["gain", "loss"]
ConditionOperator = Literal["AND", "OR"]
Recurrence = Literal["once", "daily", "weekly"]

# Fields that make up each alert type's payload
PAYLOAD_FIELDS: dict[str, tuple[str, ...]] = {
    "price": ("target_price", "condition"),
    "percentage": ("percentage_change", "percentage_condition", "base_price"),
    "multi": ("conditions", "condition_operator"),
}


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Condition(BaseModel):
    """A single metric-versus-threshold comparison."""

    metric: Metric = Field(..., description="Metric to compare")
    comparator: Comparator = Field(..., description="Strict comparison direction")
    threshold: float = Field(
        ..., allow_inf_nan=False, description="Threshold value (zero is valid)"
    )

    model_config = {"frozen": True}


class Alert(BaseModel):
    """Represents a watch rule over one asset's metrics.

    The ``alert_type`` tag selects which payload is populated:

    - ``price``: ``target_price`` and ``condition``
    - ``percentage``: ``percentage_change``, ``percentage_condition``, ``base_price``
    - ``multi``: ``conditions`` and ``condition_operator``
    """

    id: Optional[int] = Field(default=None, description="Database ID")
    symbol: str = Field(..., min_length=1, description="Asset ticker")
    asset_type: AssetType = Field(..., description="Asset class")
    alert_type: AlertType = Field(..., description="Payload tag")

    target_price: Optional[float] = Field(
        default=None, gt=0, allow_inf_nan=False, description="Price threshold"
    )
    condition: Optional[Comparator] = Field(
        default=None, description="Price comparison direction"
    )

    percentage_change: Optional[float] = Field(
        default=None, allow_inf_nan=False, description="Percentage move (magnitude)"
    )
    percentage_condition: Optional[PercentageCondition] = Field(
        default=None, description="Direction of the percentage move"
    )
    base_price: Optional[float] = Field(
        default=None, gt=0, allow_inf_nan=False, description="Reference price"
    )

    conditions: Optional[list[Condition]] = Field(
        default=None, description="Ordered list of conditions"
    )
    condition_operator: Optional[ConditionOperator] = Field(
        default=None, description="How conditions are combined"
    )

    recurring: Recurrence = Field(default="once", description="Re-check policy")
    last_checked: Optional[datetime] = Field(
        default=None, description="Most recent recorded evaluation"
    )
    triggered: bool = Field(default=False, description="Whether alert has triggered")
    triggered_at: Optional[datetime] = Field(
        default=None, description="When the alert triggered"
    )
    notification_sent: bool = Field(
        default=False, description="Whether the trigger notification was delivered"
    )
    notes: Optional[str] = Field(default=None, description="User notes")
    created_at: datetime = Field(
        default_factory=utc_now, description="Alert creation timestamp"
    )

    model_config = {"frozen": True}

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        symbol = value.strip().upper()
        if not symbol:
            raise ValueError("symbol must not be blank")
        return symbol

    @field_validator("created_at", "last_checked", "triggered_at")
    @classmethod
    def _normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return None if value is None else as_utc(value)

    @model_validator(mode="after")
    def _check_invariants(self) -> "Alert":
        for alert_type, fields in PAYLOAD_FIELDS.items():
            populated = [name for name in fields if getattr(self, name) is not None]
            if alert_type == self.alert_type:
                missing = [name for name in fields if name not in populated]
                if missing:
                    raise ValueError(
                        f"{self.alert_type} alert requires {', '.join(missing)}"
                    )
            elif populated:
                raise ValueError(
                    f"{self.alert_type} alert must not set {', '.join(populated)}"
                )

        if self.alert_type == "multi" and not self.conditions:
            raise ValueError("multi alert requires at least one condition")

        if self.triggered != (self.triggered_at is not None):
            raise ValueError("triggered_at must be set exactly when triggered is true")

        if self.last_checked is not None and self.last_checked < self.created_at:
            raise ValueError("last_checked must not precede created_at")

        return self

    @property
    def is_active(self) -> bool:
        """Whether the alert is still waiting to trigger."""
        return not self.triggered


def _format_errors(exc: PydanticValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        message = error["msg"].removeprefix("Value error, ")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


def validate_alert(data: dict[str, Any]) -> Alert:
    """Build an Alert from raw fields.

    Args:
        data: Alert fields.

    Returns:
        The validated alert.

    Raises:
        ValidationError: If the definition violates any alert invariant.
    """
    try:
        return Alert.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(_format_errors(exc)) from exc
