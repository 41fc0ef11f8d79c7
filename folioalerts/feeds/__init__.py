"""Metric feed implementations for FolioAlerts."""

from folioalerts.feeds.base import BaseFeed
from folioalerts.feeds.simulated import SimulatedFeed
from folioalerts.feeds.static import StaticFeed

__all__ = [
    "BaseFeed",
    "SimulatedFeed",
    "StaticFeed",
]
