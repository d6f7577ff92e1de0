"""Storage for the daily step count and the per-day history."""

import json
import os
import sqlite3
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import structlog

from .exceptions import PersistenceError
from .metrics import persistence_errors
from .models import DailyStepRecord

logger = structlog.get_logger(__name__)


class KeyValueStore(ABC):
    """Small key-value store for the current counting state."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def put(self, values: Dict[str, Any]) -> None:
        """Store all ``values`` in one write."""


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def put(self, values: Dict[str, Any]) -> None:
        with self._lock:
            self._data.update(values)


class JsonFileKeyValueStore(KeyValueStore):
    """Key-value store kept in a JSON file, replaced atomically on each write."""

    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._data: Dict[str, Any] = {}

        if self.path.exists():
            try:
                self._data = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                raise PersistenceError(f"Could not read state file {self.path}: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def put(self, values: Dict[str, Any]) -> None:
        with self._lock:
            self._data.update(values)
            snapshot = json.dumps(self._data, default=str)

            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(snapshot, encoding="utf-8")
            os.replace(tmp_path, self.path)


class DayRecordStore(ABC):
    """Append-only store of per-day step totals."""

    @abstractmethod
    def append(self, record: DailyStepRecord) -> None:
        ...

    @abstractmethod
    def records(self) -> List[DailyStepRecord]:
        """All records in insertion order."""

    def close(self) -> None:
        pass


class InMemoryDayRecordStore(DayRecordStore):
    def __init__(self):
        self._records: List[DailyStepRecord] = []
        self._lock = threading.Lock()

    def append(self, record: DailyStepRecord) -> None:
        with self._lock:
            self._records.append(record)

    def records(self) -> List[DailyStepRecord]:
        with self._lock:
            return list(self._records)


class SqliteDayRecordStore(DayRecordStore):
    """Per-day totals in a SQLite table."""

    def __init__(self, path: str):
        self.path = path
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.Lock()
        try:
            self._conn = sqlite3.connect(path, check_same_thread=False)
            self._ensure_tables_exist()
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not open history database {path}: {e}") from e

    def _ensure_tables_exist(self) -> None:
        with self._lock, self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS daily_steps (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    day TEXT NOT NULL,
                    steps INTEGER NOT NULL,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            """)
            self._conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_daily_steps_day ON daily_steps (day)"
            )

    def append(self, record: DailyStepRecord) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO daily_steps (day, steps) VALUES (?, ?)",
                (record.day.isoformat(), record.steps),
            )

    def records(self) -> List[DailyStepRecord]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT day, steps FROM daily_steps ORDER BY id"
            ).fetchall()
        return [DailyStepRecord(day=date.fromisoformat(day), steps=steps) for day, steps in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()


class PersistenceWriter:
    """Runs store writes on one background thread, in submission order.

    Callers never wait for a write. Failures are logged and counted;
    ``flush`` blocks until everything submitted so far has run.
    """

    def __init__(self):
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pedometer-persist")
        self.failed_writes = 0

    def submit(self, description: str, func: Callable[..., None], *args: Any) -> Future:
        future = self._executor.submit(func, *args)
        future.add_done_callback(lambda f: self._on_done(description, f))
        return future

    def _on_done(self, description: str, future: Future) -> None:
        error = future.exception()
        if error is not None:
            self.failed_writes += 1
            persistence_errors.inc()
            logger.error("Persistence write failed", write=description, error=str(error))

    def flush(self, timeout: Optional[float] = None) -> None:
        self._executor.submit(lambda: None).result(timeout=timeout)

    def close(self) -> None:
        self._executor.shutdown(wait=True)
