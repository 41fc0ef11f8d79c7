"""Rule evaluation: combines an alert's conditions into one verdict."""

import logging

from pydantic import BaseModel, Field

from folioalerts.engine.conditions import evaluate_condition
from folioalerts.errors import MissingMetric
from folioalerts.models import (
    Alert,
    Condition,
    ConditionOperator,
    Metric,
    MetricSnapshot,
)

logger = logging.getLogger(__name__)

METRIC_LABELS = {
    "price": "price",
    "volume": "volume",
    "market_cap": "market cap",
}


class RuleResult(BaseModel):
    """Outcome of evaluating every condition of an alert."""

    satisfied: bool = Field(..., description="Combined verdict")
    outcomes: list[bool] = Field(..., description="Per-condition results, in order")
    missing: list[Metric] = Field(
        default_factory=list, description="Metrics absent from the snapshot"
    )

    model_config = {"frozen": True}


def percentage_threshold(alert: Alert) -> float:
    """Derive the price target of a percentage alert.

    The sign of ``percentage_change`` is ignored; the direction comes from
    ``percentage_condition``.

    Args:
        alert: A percentage alert.

    Returns:
        ``base_price`` moved up (gain) or down (loss) by the percentage.
    """
    if alert.alert_type != "percentage":
        raise ValueError(f"Alert {alert.id} is not a percentage alert")

    magnitude = abs(alert.percentage_change)
    if alert.percentage_condition == "gain":
        return alert.base_price * (100 + magnitude) / 100
    return alert.base_price * (100 - magnitude) / 100


def rule_conditions(alert: Alert) -> list[Condition]:
    """Express any alert as an ordered list of conditions."""
    if alert.alert_type == "price":
        return [
            Condition(
                metric="price",
                comparator=alert.condition,
                threshold=alert.target_price,
            )
        ]
    if alert.alert_type == "percentage":
        comparator = "above" if alert.percentage_condition == "gain" else "below"
        return [
            Condition(
                metric="price",
                comparator=comparator,
                threshold=percentage_threshold(alert),
            )
        ]
    return list(alert.conditions)


def rule_operator(alert: Alert) -> ConditionOperator:
    """Operator used to combine the alert's conditions."""
    if alert.alert_type == "multi":
        return alert.condition_operator
    return "AND"


def evaluate_rule(alert: Alert, snapshot: MetricSnapshot) -> RuleResult:
    """Evaluate every condition of an alert and combine the results.

    All conditions are evaluated, in order, regardless of earlier results.
    A condition whose metric is missing from the snapshot counts as not met
    and is reported in ``RuleResult.missing``.

    Args:
        alert: Alert to evaluate.
        snapshot: Current metric readings for the alert's symbol.

    Returns:
        RuleResult with the combined verdict.
    """
    outcomes: list[bool] = []
    missing: list[Metric] = []

    for condition in rule_conditions(alert):
        try:
            outcomes.append(evaluate_condition(condition, snapshot))
        except MissingMetric as exc:
            logger.debug("Alert %s: %s", alert.id, exc)
            missing.append(condition.metric)
            outcomes.append(False)

    combine = all if rule_operator(alert) == "AND" else any
    return RuleResult(satisfied=combine(outcomes), outcomes=outcomes, missing=missing)


def evaluate_alert(alert: Alert, snapshot: MetricSnapshot) -> bool:
    """Decide whether an alert's rule holds for a snapshot.

    Args:
        alert: Alert to evaluate.
        snapshot: Current metric readings for the alert's symbol.

    Returns:
        True if the rule is satisfied, False otherwise.
    """
    return evaluate_rule(alert, snapshot).satisfied


def format_metric_value(metric: Metric, value: float) -> str:
    """Format a threshold for display."""
    if metric == "price":
        return f"${value:,.2f}"
    if float(value).is_integer():
        return f"{value:,.0f}"
    return f"{value:,.2f}"


def describe_condition(condition: Condition) -> str:
    """Human-readable form of a condition, e.g. 'volume above 1,000,000'."""
    label = METRIC_LABELS[condition.metric]
    value = format_metric_value(condition.metric, condition.threshold)
    return f"{label} {condition.comparator} {value}"


def describe_alert(alert: Alert) -> str:
    """Human-readable description of an alert's rule.

    Examples:
        ``BTC price above $50,000.00``
        ``ETH loss of 10% from $100.00 (price below $90.00)``
        ``BTC price above $50,000.00 AND volume above 1,000,000,000``
    """
    if alert.alert_type == "percentage":
        magnitude = abs(alert.percentage_change)
        base = format_metric_value("price", alert.base_price)
        derived = describe_condition(rule_conditions(alert)[0])
        return (
            f"{alert.symbol} {alert.percentage_condition} of {magnitude:g}% "
            f"from {base} ({derived})"
        )

    joiner = f" {rule_operator(alert)} "
    body = joiner.join(describe_condition(c) for c in rule_conditions(alert))
    return f"{alert.symbol} {body}"
