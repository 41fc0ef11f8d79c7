"""Alert persistence for FolioAlerts."""
