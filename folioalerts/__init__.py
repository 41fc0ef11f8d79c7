"""FolioAlerts - alert rule and recurrence engine for a personal investment tracker."""

__version__ = "0.1.0"
