"""Simulated metric feed for paper runs and demos."""

import random
import threading
from typing import Optional

from folioalerts.errors import FeedUnavailable
from folioalerts.feeds.base import BaseFeed
from folioalerts.models import AssetType, MetricSnapshot


class SimulatedFeed(BaseFeed):
    """Random-walk price feed.

    Each call moves the symbol's price by a random change with slight
    momentum from recent prices. Volume and market cap are derived from the
    optional base volumes and circulating supplies.
    """

    # Per-step volatility range
    VOLATILITY_MIN = 0.005  # 0.5%
    VOLATILITY_MAX = 0.02  # 2%

    # Weight of the recent trend in each step
    MOMENTUM_WEIGHT = 0.3

    # A step never takes the price below this fraction of the previous price
    MIN_PRICE_FRACTION = 0.05

    HISTORY_SIZE = 10

    def __init__(
        self,
        prices: dict[str, float],
        volumes: Optional[dict[str, float]] = None,
        supplies: Optional[dict[str, float]] = None,
        seed: Optional[int] = None,
    ):
        """Initialize the simulated feed.

        Args:
            prices: Starting price per symbol.
            volumes: Average volume per symbol; symbols without one report no volume.
            supplies: Circulating supply per symbol, used for market cap.
            seed: Random seed for reproducible runs.
        """
        self._prices = {s.upper(): float(p) for s, p in prices.items()}
        self._volumes = {s.upper(): float(v) for s, v in (volumes or {}).items()}
        self._supplies = {s.upper(): float(v) for s, v in (supplies or {}).items()}
        self._history: dict[str, list[float]] = {}
        self._rng = random.Random(seed)
        self._lock = threading.Lock()

    def _next_price(self, symbol: str, current: float) -> float:
        """Take one random-walk step from the current price."""
        history = self._history.setdefault(symbol, [])

        momentum = 0.0
        if len(history) >= 3:
            recent = history[-3:]
            momentum = (recent[-1] - recent[0]) / recent[0]

        volatility = self._rng.uniform(self.VOLATILITY_MIN, self.VOLATILITY_MAX)
        random_change = (self._rng.random() - 0.5) * 2 * volatility
        change = random_change + momentum * self.MOMENTUM_WEIGHT

        new_price = max(current * (1 + change), current * self.MIN_PRICE_FRACTION)

        history.append(new_price)
        if len(history) > self.HISTORY_SIZE:
            history.pop(0)
        return new_price

    def get_snapshot(self, symbol: str, asset_type: AssetType) -> MetricSnapshot:
        """Advance the symbol's random walk and return the new readings."""
        key = symbol.strip().upper()
        with self._lock:
            if key not in self._prices:
                raise FeedUnavailable(f"No simulated price for {key}")

            price = self._next_price(key, self._prices[key])
            self._prices[key] = price

            volume = None
            if key in self._volumes:
                volume = self._volumes[key] * self._rng.uniform(0.5, 1.5)

            market_cap = None
            if key in self._supplies:
                market_cap = price * self._supplies[key]

        return MetricSnapshot(symbol=key, price=price, volume=volume, market_cap=market_cap)
