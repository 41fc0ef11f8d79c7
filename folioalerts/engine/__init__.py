"""Alert rule and recurrence engine.

- conditions: atomic condition evaluation
- rules: AND/OR rule composition and descriptions
- recurrence: due-time policy
- trigger: TriggerSink, commits triggers and notifies
- scheduler: RecurrenceScheduler, the periodic driver
- watchlist: WatchlistBridge, alerts from watchlist target prices
"""

from folioalerts.engine.conditions import evaluate_condition, metric_value
from folioalerts.engine.recurrence import RECURRENCE_INTERVALS, is_due, next_check_at
from folioalerts.engine.rules import (
    RuleResult,
    describe_alert,
    describe_condition,
    evaluate_alert,
    evaluate_rule,
    percentage_threshold,
    rule_conditions,
    rule_operator,
)
from folioalerts.engine.scheduler import RecurrenceScheduler, TickReport
from folioalerts.engine.trigger import TriggerSink
from folioalerts.engine.watchlist import WatchlistBridge

__all__ = [
    "RECURRENCE_INTERVALS",
    "RecurrenceScheduler",
    "RuleResult",
    "TickReport",
    "TriggerSink",
    "WatchlistBridge",
    "describe_alert",
    "describe_condition",
    "evaluate_alert",
    "evaluate_condition",
    "evaluate_rule",
    "is_due",
    "metric_value",
    "next_check_at",
    "percentage_threshold",
    "rule_conditions",
    "rule_operator",
]
