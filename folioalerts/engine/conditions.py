"""Atomic condition evaluation.

A condition compares one metric of a snapshot against a threshold. Both
comparators are strict, so a value sitting exactly on the threshold
satisfies neither.
"""

from folioalerts.errors import MissingMetric
from folioalerts.models import Condition, Metric, MetricSnapshot


def metric_value(snapshot: MetricSnapshot, metric: Metric) -> float:
    """Get a metric reading from a snapshot.

    Args:
        snapshot: Snapshot to read from.
        metric: Metric name.

    Returns:
        The metric value.

    Raises:
        MissingMetric: If the snapshot has no value for the metric.
    """
    value = snapshot.value_of(metric)
    if value is None:
        raise MissingMetric(snapshot.symbol, metric)
    return value


def evaluate_condition(condition: Condition, snapshot: MetricSnapshot) -> bool:
    """Evaluate a single condition against a snapshot.

    Args:
        condition: Condition to evaluate.
        snapshot: Current metric readings for the condition's symbol.

    Returns:
        True if the condition is met, False otherwise.

    Raises:
        MissingMetric: If the snapshot lacks the condition's metric.
    """
    current = metric_value(snapshot, condition.metric)

    if condition.comparator == "above":
        return current > condition.threshold
    if condition.comparator == "below":
        return current < condition.threshold

    raise ValueError(f"Unsupported comparator: {condition.comparator}")
