"""Recurrence scheduler: periodic evaluation of due alerts.

Each tick lists the alerts that are due, pulls one metric snapshot per
symbol, evaluates the alerts concurrently and applies the resulting state
transitions:

- rule satisfied: the alert is triggered through the TriggerSink
- rule not satisfied, daily/weekly alert: ``last_checked`` is recorded
- rule not satisfied, once alert: nothing is written
- feed unavailable or metric missing: nothing is written, retried next tick

Ticks are driven by APScheduler with an interval trigger.
"""

import logging
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, wait as wait_futures
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger
from pydantic import BaseModel, Field

from folioalerts.db.base import AlertRepository
from folioalerts.engine.rules import evaluate_rule
from folioalerts.engine.trigger import TriggerSink
from folioalerts.errors import FeedUnavailable, RepositoryError, RepositoryUnavailable
from folioalerts.feeds.base import BaseFeed
from folioalerts.models import Alert, AssetType, MetricSnapshot, as_utc, utc_now

logger = logging.getLogger(__name__)

TICK_JOB_ID = "folioalerts-tick"

# Per-alert outcomes of a tick
TRIGGERED = "triggered"
RECHECKED = "rechecked"
UNCHANGED = "unchanged"
DEFERRED = "deferred"
FAILED = "failed"


class TickReport(BaseModel):
    """Summary of one scheduler tick."""

    started_at: datetime = Field(..., description="Evaluation time of the tick")
    due: int = Field(default=0, ge=0, description="Alerts due this tick")
    triggered: int = Field(default=0, ge=0, description="Alerts that triggered")
    rechecked: int = Field(default=0, ge=0, description="Recurring alerts re-armed")
    unchanged: int = Field(default=0, ge=0, description="Alerts evaluated, nothing written")
    deferred: int = Field(default=0, ge=0, description="Alerts retried next tick")
    failed: int = Field(default=0, ge=0, description="Alerts whose write failed")

    model_config = {"frozen": True}


class RecurrenceScheduler:
    """Periodic driver for alert evaluation."""

    DEFAULT_INTERVAL_SECONDS = 60.0
    DEFAULT_FEED_TIMEOUT_SECONDS = 10.0
    DEFAULT_MAX_WORKERS = 4

    def __init__(
        self,
        repository: AlertRepository,
        feed: BaseFeed,
        sink: TriggerSink,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        feed_timeout_seconds: float = DEFAULT_FEED_TIMEOUT_SECONDS,
        max_workers: int = DEFAULT_MAX_WORKERS,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the scheduler.

        Args:
            repository: Alert repository.
            feed: Metric feed used for snapshots.
            sink: Trigger sink for satisfied alerts.
            interval_seconds: Time between ticks.
            feed_timeout_seconds: Bound on all feed lookups of one tick.
            max_workers: Thread pool size for lookups and evaluations.
            clock: Source of the current time.
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if feed_timeout_seconds <= 0:
            raise ValueError("feed_timeout_seconds must be positive")
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")

        self._repository = repository
        self._feed = feed
        self._sink = sink
        self._interval = float(interval_seconds)
        self._feed_timeout = float(feed_timeout_seconds)
        self._max_workers = max_workers
        self._clock = clock
        self._lifecycle_lock = threading.Lock()
        self._tick_lock = threading.Lock()
        self._scheduler: Optional[BaseScheduler] = None
        self._feed_pool: Optional[ThreadPoolExecutor] = None
        self._max_ticks: Optional[int] = None
        self._ticks = 0

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        """Whether ticks are currently being scheduled."""
        scheduler = self._scheduler
        return scheduler is not None and scheduler.running

    # ==================== Lifecycle ====================

    def _check_repository(self) -> None:
        """Refuse to run against an unreachable repository."""
        try:
            self._repository.ping()
        except RepositoryError as exc:
            raise RepositoryUnavailable(
                f"Alert repository unavailable, scheduler not started: {exc}"
            ) from exc

    def _schedule(self, scheduler: BaseScheduler, max_ticks: Optional[int]) -> None:
        """Register the tick job, firing once immediately."""
        self._max_ticks = max_ticks
        self._ticks = 0
        scheduler.add_job(
            self._run_tick,
            IntervalTrigger(seconds=self._interval),
            id=TICK_JOB_ID,
            name="Alert evaluation tick",
            next_run_time=utc_now(),
            max_instances=1,
            coalesce=True,
            misfire_grace_time=None,
            replace_existing=True,
        )
        self._scheduler = scheduler

    def start(self) -> None:
        """Start ticking on a background thread.

        Raises:
            RepositoryUnavailable: If the repository cannot be reached.
        """
        with self._lifecycle_lock:
            if self.running:
                return
            self._check_repository()
            scheduler = BackgroundScheduler(timezone=timezone.utc)
            self._schedule(scheduler, max_ticks=None)
            scheduler.start()
            logger.info("Scheduler started interval=%ss", self._interval)

    def stop(self, wait: bool = True) -> None:
        """Stop scheduling ticks and release the feed workers.

        Args:
            wait: Let an in-flight tick finish before returning.
        """
        with self._lifecycle_lock:
            scheduler = self._scheduler
            self._scheduler = None
            if scheduler is not None and scheduler.running:
                scheduler.shutdown(wait=wait)
                logger.info("Scheduler stopped")
            self._close_feed_pool()

    def run_forever(self, max_ticks: Optional[int] = None) -> None:
        """Tick in the calling thread until stopped.

        Args:
            max_ticks: Stop after this many ticks; None runs until ``stop``.

        Raises:
            RepositoryUnavailable: If the repository cannot be reached.
        """
        with self._lifecycle_lock:
            self._check_repository()
            scheduler = BlockingScheduler(timezone=timezone.utc)
            self._schedule(scheduler, max_ticks=max_ticks)

        logger.info("Scheduler running interval=%ss", self._interval)
        try:
            scheduler.start()
        finally:
            self._close_feed_pool()

    def _run_tick(self) -> None:
        """Job body: one tick, then stop if the tick budget is spent."""
        try:
            self.tick()
        except Exception:
            logger.exception("Scheduler tick failed")

        self._ticks += 1
        if self._max_ticks is not None and self._ticks >= self._max_ticks:
            scheduler = self._scheduler
            if scheduler is not None and scheduler.running:
                # Called from the job thread, so the executor must not be joined
                scheduler.shutdown(wait=False)

    def _close_feed_pool(self) -> None:
        pool = self._feed_pool
        self._feed_pool = None
        if pool is not None:
            pool.shutdown(wait=False, cancel_futures=True)

    def _get_feed_pool(self) -> ThreadPoolExecutor:
        if self._feed_pool is None:
            self._feed_pool = ThreadPoolExecutor(
                max_workers=self._max_workers,
                thread_name_prefix="folioalerts-feed",
            )
        return self._feed_pool

    # ==================== Evaluation ====================

    def tick(self, now: Optional[datetime] = None) -> TickReport:
        """Evaluate every due alert once.

        Args:
            now: Evaluation time; defaults to the scheduler clock.

        Returns:
            TickReport with per-outcome counts.

        Raises:
            RepositoryError: If due alerts cannot be listed.
        """
        with self._tick_lock:
            now = as_utc(now) if now is not None else self._clock()
            alerts = self._repository.list_due(now)
            if not alerts:
                logger.debug("No alerts due at %s", now.isoformat())
                return TickReport(started_at=now)

            snapshots = self._fetch_snapshots(
                {(alert.symbol, alert.asset_type) for alert in alerts}
            )

            with ThreadPoolExecutor(
                max_workers=self._max_workers,
                thread_name_prefix="folioalerts-eval",
            ) as pool:
                outcomes = list(pool.map(
                    lambda alert: self._process(
                        alert, snapshots.get((alert.symbol, alert.asset_type)), now
                    ),
                    alerts,
                ))

        counts = Counter(outcomes)
        report = TickReport(
            started_at=now,
            due=len(alerts),
            triggered=counts[TRIGGERED],
            rechecked=counts[RECHECKED],
            unchanged=counts[UNCHANGED],
            deferred=counts[DEFERRED],
            failed=counts[FAILED],
        )
        logger.info(
            "Tick %s: due=%d triggered=%d rechecked=%d deferred=%d failed=%d",
            now.isoformat(),
            report.due,
            report.triggered,
            report.rechecked,
            report.deferred,
            report.failed,
        )
        return report

    def _fetch_snapshots(
        self, keys: set[tuple[str, AssetType]]
    ) -> dict[tuple[str, AssetType], MetricSnapshot]:
        """Look up one snapshot per symbol, bounded by the feed timeout.

        Lookups that fail or time out are left out of the result.
        """
        pool = self._get_feed_pool()
        futures = {
            pool.submit(self._feed.get_snapshot, symbol, asset_type): (symbol, asset_type)
            for symbol, asset_type in keys
        }
        done, not_done = wait_futures(futures, timeout=self._feed_timeout)

        for future in not_done:
            # Lookups still queued behind a hung one are dropped
            future.cancel()
            symbol, _ = futures[future]
            logger.warning(
                "Metric feed timed out for %s after %.1fs; retrying next tick",
                symbol,
                self._feed_timeout,
            )

        snapshots = {}
        for future in done:
            key = futures[future]
            try:
                snapshots[key] = future.result()
            except FeedUnavailable as exc:
                logger.warning("Metric feed unavailable for %s: %s", key[0], exc)
            except Exception:
                logger.exception("Metric feed failed for %s", key[0])
        return snapshots

    def _process(
        self,
        alert: Alert,
        snapshot: Optional[MetricSnapshot],
        now: datetime,
    ) -> str:
        """Evaluate one alert and apply its transition."""
        if snapshot is None:
            return DEFERRED

        result = evaluate_rule(alert, snapshot)

        try:
            if result.satisfied:
                return TRIGGERED if self._sink.fire(alert, now) else UNCHANGED

            if result.missing:
                logger.warning(
                    "Alert %s: %s missing for %s; retrying next tick",
                    alert.id,
                    ", ".join(result.missing),
                    alert.symbol,
                )
                return DEFERRED

            if alert.recurring == "once":
                return UNCHANGED

            self._repository.update(alert.id, {"last_checked": now})
            return RECHECKED
        except RepositoryError:
            logger.exception(
                "Repository write failed for alert %s; state left unchanged", alert.id
            )
            return FAILED
