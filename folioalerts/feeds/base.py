"""Base metric feed interface for FolioAlerts."""

from abc import ABC, abstractmethod

from folioalerts.models import AssetType, MetricSnapshot


class BaseFeed(ABC):
    """Abstract base class for pull-based metric feeds.

    The scheduler calls ``get_snapshot`` from worker threads and bounds each
    call with a timeout, so implementations must be thread-safe.
    """

    @abstractmethod
    def get_snapshot(self, symbol: str, asset_type: AssetType) -> MetricSnapshot:
        """Get current metrics for a symbol.

        Args:
            symbol: Asset ticker.
            asset_type: Asset class of the symbol.

        Returns:
            MetricSnapshot; metrics the feed cannot provide are None.

        Raises:
            FeedUnavailable: If no snapshot can be produced.
        """
        pass
