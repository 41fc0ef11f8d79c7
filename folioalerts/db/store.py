"""SQLite alert store for FolioAlerts."""

import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, Optional

from folioalerts.db.base import AlertRepository
from folioalerts.engine.recurrence import is_due
from folioalerts.errors import (
    AlertNotFound,
    RepositoryError,
    RepositoryUnavailable,
    ValidationError,
)
from folioalerts.models import (
    Alert,
    TriggerEvent,
    WatchlistItem,
    as_utc,
    validate_alert,
)

ALERT_COLUMNS = (
    "symbol",
    "asset_type",
    "alert_type",
    "target_price",
    "condition",
    "percentage_change",
    "percentage_condition",
    "base_price",
    "conditions",
    "condition_operator",
    "recurring",
    "last_checked",
    "triggered",
    "triggered_at",
    "notification_sent",
    "notes",
    "created_at",
)

IMMUTABLE_FIELDS = {"id", "created_at"}


def _timestamp(value: Optional[datetime]) -> Optional[str]:
    return None if value is None else as_utc(value).isoformat()


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    return None if value is None else datetime.fromisoformat(value)


class AlertStore(AlertRepository):
    """SQLite-based alert repository.

    Every operation opens its own connection, so a store can be shared by
    the scheduler's worker threads. Read-modify-write updates are
    serialized with a store-level lock; triggering is a single conditional
    UPDATE.
    """

    REQUIRED_TABLES = [
        "alerts",
        "trigger_events",
        "watchlist",
    ]

    # Seconds to wait on a locked database before failing
    BUSY_TIMEOUT_SECONDS = 5.0

    def __init__(self, db_path: Path):
        """Initialize the alert store.

        Args:
            db_path: Path to the SQLite database file.

        Raises:
            RepositoryUnavailable: If the database cannot be created or opened.
        """
        self.db_path = Path(db_path)
        self._lock = threading.RLock()
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RepositoryUnavailable(
                f"Cannot create database directory {self.db_path.parent}: {exc}"
            ) from exc

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.BUSY_TIMEOUT_SECONDS)
        except sqlite3.Error as exc:
            raise RepositoryUnavailable(
                f"Cannot open database {self.db_path}: {exc}"
            ) from exc
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success and wrap SQLite errors."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise RepositoryError(f"Database error: {exc}") from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        try:
            with self._connection() as conn:
                cursor = conn.cursor()

                # Alerts table
                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS alerts (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        symbol TEXT NOT NULL,
                        asset_type TEXT NOT NULL,
                        alert_type TEXT NOT NULL,
                        target_price REAL,
                        condition TEXT,
                        percentage_change REAL,
                        percentage_condition TEXT,
                        base_price REAL,
                        conditions TEXT,
                        condition_operator TEXT,
                        recurring TEXT NOT NULL DEFAULT 'once',
                        last_checked TEXT,
                        triggered INTEGER NOT NULL DEFAULT 0,
                        triggered_at TEXT,
                        notification_sent INTEGER NOT NULL DEFAULT 0,
                        notes TEXT,
                        created_at TEXT NOT NULL
                    )
                """)
                cursor.execute(
                    "CREATE INDEX IF NOT EXISTS idx_alerts_symbol ON alerts (symbol)"
                )

                # Trigger history table
                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS trigger_events (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        alert_id INTEGER NOT NULL,
                        symbol TEXT NOT NULL,
                        alert_type TEXT NOT NULL,
                        description TEXT NOT NULL,
                        triggered_at TEXT NOT NULL,
                        delivered INTEGER NOT NULL DEFAULT 0,
                        error TEXT
                    )
                """)

                # Watchlist table
                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS watchlist (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        symbol TEXT NOT NULL,
                        asset_type TEXT NOT NULL,
                        list_name TEXT NOT NULL DEFAULT 'default',
                        target_price REAL,
                        notes TEXT,
                        added_at TEXT NOT NULL,
                        UNIQUE(symbol, list_name)
                    )
                """)
        except RepositoryError as exc:
            raise RepositoryUnavailable(str(exc)) from exc

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]

    def ping(self) -> None:
        """Verify the database is reachable and has the alerts table."""
        try:
            with self._connection() as conn:
                conn.execute("SELECT 1 FROM alerts LIMIT 1").fetchall()
        except RepositoryError as exc:
            raise RepositoryUnavailable(str(exc)) from exc

    # ==================== Alerts ====================

    @staticmethod
    def _alert_params(alert: Alert) -> tuple:
        """Column values for an alert, in ALERT_COLUMNS order."""
        conditions = None
        if alert.conditions is not None:
            conditions = json.dumps([c.model_dump() for c in alert.conditions])

        return (
            alert.symbol,
            alert.asset_type,
            alert.alert_type,
            alert.target_price,
            alert.condition,
            alert.percentage_change,
            alert.percentage_condition,
            alert.base_price,
            conditions,
            alert.condition_operator,
            alert.recurring,
            _timestamp(alert.last_checked),
            1 if alert.triggered else 0,
            _timestamp(alert.triggered_at),
            1 if alert.notification_sent else 0,
            alert.notes,
            _timestamp(alert.created_at),
        )

    @staticmethod
    def _row_to_alert(row: sqlite3.Row) -> Alert:
        """Build an Alert from an alerts table row."""
        conditions = row["conditions"]
        return Alert(
            id=row["id"],
            symbol=row["symbol"],
            asset_type=row["asset_type"],
            alert_type=row["alert_type"],
            target_price=row["target_price"],
            condition=row["condition"],
            percentage_change=row["percentage_change"],
            percentage_condition=row["percentage_condition"],
            base_price=row["base_price"],
            conditions=json.loads(conditions) if conditions is not None else None,
            condition_operator=row["condition_operator"],
            recurring=row["recurring"],
            last_checked=_parse_timestamp(row["last_checked"]),
            triggered=bool(row["triggered"]),
            triggered_at=_parse_timestamp(row["triggered_at"]),
            notification_sent=bool(row["notification_sent"]),
            notes=row["notes"],
            created_at=_parse_timestamp(row["created_at"]),
        )

    def _select_alerts(self, where: str = "", params: tuple = ()) -> list[Alert]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT id, {', '.join(ALERT_COLUMNS)} FROM alerts {where}",
                params,
            )
            return [self._row_to_alert(row) for row in cursor.fetchall()]

    def create(self, alert: Alert) -> Alert:
        """Save a new alert to the database.

        Args:
            alert: Alert to save.

        Returns:
            The alert with its database ID.
        """
        if alert.triggered:
            raise ValidationError("New alerts must not be triggered")

        placeholders = ", ".join("?" for _ in ALERT_COLUMNS)
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"INSERT INTO alerts ({', '.join(ALERT_COLUMNS)}) VALUES ({placeholders})",
                self._alert_params(alert),
            )
            alert_id = cursor.lastrowid
        return alert.model_copy(update={"id": alert_id})

    def get(self, alert_id: int) -> Optional[Alert]:
        """Get an alert by ID.

        Args:
            alert_id: Alert ID.

        Returns:
            Alert if found, None otherwise.
        """
        alerts = self._select_alerts("WHERE id = ?", (alert_id,))
        return alerts[0] if alerts else None

    def list_all(self) -> list[Alert]:
        """Get all alerts, newest first."""
        return self._select_alerts("ORDER BY created_at DESC, id DESC")

    def list_by_symbol(self, symbol: str) -> list[Alert]:
        """Get all alerts for a symbol, oldest first.

        Args:
            symbol: Asset ticker (case-insensitive).
        """
        return self._select_alerts(
            "WHERE symbol = ? ORDER BY created_at, id", (symbol.strip().upper(),)
        )

    def list_due(self, now: datetime) -> list[Alert]:
        """Get alerts due for evaluation at ``now``.

        Args:
            now: Evaluation time.

        Returns:
            Untriggered alerts whose recurrence window has elapsed.
        """
        active = self._select_alerts("WHERE triggered = 0 ORDER BY created_at, id")
        return [alert for alert in active if is_due(alert, now)]

    def update(self, alert_id: int, patch: dict[str, Any]) -> Alert:
        """Apply a partial update to an alert.

        Args:
            alert_id: Alert ID.
            patch: Field values to change.

        Returns:
            The updated alert.
        """
        immutable = IMMUTABLE_FIELDS.intersection(patch)
        if immutable:
            raise ValidationError(
                f"Cannot modify immutable fields: {', '.join(sorted(immutable))}"
            )

        assignments = ", ".join(f"{column} = ?" for column in ALERT_COLUMNS)
        with self._lock:
            with self._connection() as conn:
                # Read and write under one write lock so another process
                # cannot commit in between
                conn.execute("BEGIN IMMEDIATE")
                row = conn.execute(
                    f"SELECT id, {', '.join(ALERT_COLUMNS)} FROM alerts WHERE id = ?",
                    (alert_id,),
                ).fetchone()
                if row is None:
                    raise AlertNotFound(alert_id)

                current = self._row_to_alert(row)
                updated = validate_alert({**current.model_dump(), **patch})
                conn.execute(
                    f"UPDATE alerts SET {assignments} WHERE id = ?",
                    (*self._alert_params(updated), alert_id),
                )
            return updated

    def mark_triggered(self, alert_id: int, triggered_at: datetime) -> bool:
        """Atomically trigger an alert if it is not triggered yet.

        Args:
            alert_id: Alert ID.
            triggered_at: Trigger timestamp.

        Returns:
            True if the alert moved to triggered, False if it already was.
        """
        timestamp = _timestamp(triggered_at)
        with self._lock:
            with self._connection() as conn:
                cursor = conn.execute(
                    """
                    UPDATE alerts
                    SET triggered = 1, triggered_at = ?, last_checked = ?
                    WHERE id = ? AND triggered = 0
                    """,
                    (timestamp, timestamp, alert_id),
                )
                changed = cursor.rowcount == 1

            if not changed and self.get(alert_id) is None:
                raise AlertNotFound(alert_id)
            return changed

    def reset(self, alert_id: int) -> Alert:
        """Return an alert to the active state.

        Args:
            alert_id: Alert ID.

        Returns:
            The reset alert.
        """
        return self.update(
            alert_id,
            {"triggered": False, "triggered_at": None, "notification_sent": False},
        )

    def delete(self, alert_id: int) -> None:
        """Delete an alert and its trigger history.

        Args:
            alert_id: ID of the alert to delete.
        """
        with self._lock:
            with self._connection() as conn:
                conn.execute("DELETE FROM trigger_events WHERE alert_id = ?", (alert_id,))
                conn.execute("DELETE FROM alerts WHERE id = ?", (alert_id,))

    # ==================== Trigger History ====================

    def record_trigger(self, event: TriggerEvent) -> int:
        """Append a trigger event to the history.

        Args:
            event: Event to store.

        Returns:
            The ID of the stored event.
        """
        with self._connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO trigger_events
                (alert_id, symbol, alert_type, description, triggered_at, delivered, error)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    event.alert_id,
                    event.symbol,
                    event.alert_type,
                    event.description,
                    _timestamp(event.triggered_at),
                    1 if event.delivered else 0,
                    event.error,
                ),
            )
            return cursor.lastrowid or 0

    def get_triggers(self, limit: Optional[int] = None) -> list[TriggerEvent]:
        """Get trigger history, most recent first.

        Args:
            limit: Maximum number of events to return.
        """
        query = """
            SELECT id, alert_id, symbol, alert_type, description, triggered_at, delivered, error
            FROM trigger_events
            ORDER BY triggered_at DESC, id DESC
        """
        params: tuple = ()
        if limit is not None:
            query += " LIMIT ?"
            params = (limit,)

        with self._connection() as conn:
            cursor = conn.execute(query, params)
            return [
                TriggerEvent(
                    id=row["id"],
                    alert_id=row["alert_id"],
                    symbol=row["symbol"],
                    alert_type=row["alert_type"],
                    description=row["description"],
                    triggered_at=datetime.fromisoformat(row["triggered_at"]),
                    delivered=bool(row["delivered"]),
                    error=row["error"],
                )
                for row in cursor.fetchall()
            ]

    # ==================== Watchlist ====================

    def add_to_watchlist(self, item: WatchlistItem) -> WatchlistItem:
        """Add or replace an asset on a watchlist.

        Args:
            item: Watchlist entry to save.

        Returns:
            The stored entry with its database ID.
        """
        with self._connection() as conn:
            cursor = conn.execute(
                """
                INSERT OR REPLACE INTO watchlist
                (symbol, asset_type, list_name, target_price, notes, added_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    item.symbol,
                    item.asset_type,
                    item.list_name,
                    item.target_price,
                    item.notes,
                    _timestamp(item.added_at),
                ),
            )
            item_id = cursor.lastrowid
        return item.model_copy(update={"id": item_id})

    def remove_from_watchlist(self, symbol: str, list_name: str = "default") -> bool:
        """Remove a symbol from a watchlist.

        Args:
            symbol: Symbol to remove.
            list_name: Name of the watchlist.

        Returns:
            True if an entry was removed.
        """
        with self._connection() as conn:
            cursor = conn.execute(
                "DELETE FROM watchlist WHERE symbol = ? AND list_name = ?",
                (symbol.strip().upper(), list_name),
            )
            return cursor.rowcount > 0

    def get_watchlist(self, list_name: str = "default") -> list[WatchlistItem]:
        """Get all entries in a watchlist.

        Args:
            list_name: Name of the watchlist.
        """
        with self._connection() as conn:
            cursor = conn.execute(
                """
                SELECT id, symbol, asset_type, list_name, target_price, notes, added_at
                FROM watchlist
                WHERE list_name = ?
                ORDER BY added_at, id
                """,
                (list_name,),
            )
            return [
                WatchlistItem(
                    id=row["id"],
                    symbol=row["symbol"],
                    asset_type=row["asset_type"],
                    list_name=row["list_name"],
                    target_price=row["target_price"],
                    notes=row["notes"],
                    added_at=datetime.fromisoformat(row["added_at"]),
                )
                for row in cursor.fetchall()
            ]

    # ==================== Stats ====================

    def get_stats(self) -> dict:
        """Get alert statistics.

        Returns:
            Dictionary with active, triggered and total alert counts, plus
            record counts for the history and watchlist tables.
        """
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT
                    COUNT(*) AS total,
                    COALESCE(SUM(triggered), 0) AS triggered
                FROM alerts
                """
            )
            row = cursor.fetchone()
            stats = {
                "total": row["total"],
                "triggered": row["triggered"],
                "active": row["total"] - row["triggered"],
            }
            for table in ("trigger_events", "watchlist"):
                cursor.execute(f"SELECT COUNT(*) as count FROM {table}")
                stats[table] = cursor.fetchone()["count"]
            return stats
