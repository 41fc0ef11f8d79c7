"""Exception hierarchy for FolioAlerts."""


class FolioAlertsError(Exception):
    """Base class for all FolioAlerts errors."""


class ValidationError(FolioAlertsError, ValueError):
    """Raised when an alert definition or configuration is invalid."""


class MissingMetric(FolioAlertsError, LookupError):
    """Raised when a metric snapshot lacks the value a condition needs."""

    def __init__(self, symbol: str, metric: str):
        self.symbol = symbol
        self.metric = metric
        super().__init__(f"No {metric} available for {symbol}")


class FeedUnavailable(FolioAlertsError):
    """Raised when the metric feed cannot produce a snapshot."""


class RepositoryError(FolioAlertsError):
    """Raised when the alert repository fails to read or write."""


class RepositoryUnavailable(RepositoryError):
    """Raised when the alert repository cannot be reached at all."""


class AlertNotFound(RepositoryError, KeyError):
    """Raised when an alert ID does not exist."""

    def __init__(self, alert_id: int):
        self.alert_id = alert_id
        super().__init__(f"Alert {alert_id} not found")

    def __str__(self) -> str:
        return self.args[0]
