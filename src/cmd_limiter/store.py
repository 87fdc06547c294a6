"""
In-memory usage record store.

Tracks cooldown expiry and daily quota per composite record id. Daily
windows end at the host's local midnight and are reset lazily, the first
time a record is evaluated after its deadline has passed.

Thread safety:
- Records are partitioned across a fixed set of lock stripes
- The check-then-commit sequence for one record id runs under its
  stripe's lock, so two concurrent calls can never both take the last
  quota unit
- Distinct record ids on different stripes never contend
"""

import logging
import math
import threading
import time
import zlib
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from .models import LimitStatus, Outcome, UsageRecord

logger = logging.getLogger(__name__)

DEFAULT_LOCK_STRIPES = 64


def next_local_midnight(now: float) -> float:
    """Return the epoch timestamp of the next local midnight after ``now``."""
    today = datetime.fromtimestamp(now).date()
    return datetime.combine(today + timedelta(days=1), datetime.min.time()).timestamp()


@dataclass
class StoreStats:
    """Counters for store activity."""

    records: int = 0
    admitted: int = 0
    denied: int = 0

    def as_dict(self) -> dict[str, int]:
        """Return stats as a dictionary."""
        return {
            "records": self.records,
            "admitted": self.admitted,
            "denied": self.denied,
        }


class UsageStore:
    """
    Ephemeral keyed map of :class:`UsageRecord` state.

    The store exclusively owns its records; callers only ever see copies.
    Records are created on first evaluation and never evicted.

    Args:
        clock: Returns the current time in epoch seconds
        lock_stripes: Number of lock stripes guarding the records
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        lock_stripes: int = DEFAULT_LOCK_STRIPES,
    ) -> None:
        if lock_stripes <= 0:
            raise ValueError("lock_stripes must be positive")
        self._clock = clock
        self._records: dict[str, UsageRecord] = {}
        self._locks = [threading.Lock() for _ in range(lock_stripes)]
        self._admitted = 0
        self._denied = 0
        self._stats_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def now(self) -> float:
        """Current time according to the store's clock."""
        return self._clock()

    def _lock_for(self, record_id: str) -> threading.Lock:
        return self._locks[zlib.crc32(record_id.encode()) % len(self._locks)]

    def get(self, record_id: str) -> UsageRecord | None:
        """Return a copy of the record for ``record_id``, if one exists."""
        with self._lock_for(record_id):
            record = self._records.get(record_id)
            return record.copy() if record is not None else None

    def stats(self) -> StoreStats:
        """Return a snapshot of store counters."""
        with self._stats_lock:
            return StoreStats(
                records=len(self._records),
                admitted=self._admitted,
                denied=self._denied,
            )

    def check_and_consume(
        self,
        record_id: str,
        min_interval: float,
        max_day_usage: int,
    ) -> LimitStatus:
        """
        Atomically check a record against its limits and commit on success.

        Args:
            record_id: Composite record id
            min_interval: Seconds between admitted calls (0 = disabled)
            max_day_usage: Admissions per local day (0 = disabled)

        Returns:
            LimitStatus with outcome ALLOWED, COOLDOWN or QUOTA
        """
        with self._lock_for(record_id):
            now = self._clock()
            record = self._records.get(record_id)
            if record is None:
                record = UsageRecord()
                self._records[record_id] = record
            status = self._evaluate(record_id, record, now, min_interval, max_day_usage)

        with self._stats_lock:
            if status.exceeded:
                self._denied += 1
            else:
                self._admitted += 1
        return status

    def _evaluate(
        self,
        record_id: str,
        record: UsageRecord,
        now: float,
        min_interval: float,
        max_day_usage: int,
    ) -> LimitStatus:
        # Cooldown check
        if (
            min_interval > 0
            and record.cooldown_expires_at is not None
            and record.cooldown_expires_at > now
        ):
            remaining = math.ceil(record.cooldown_expires_at - now)
            return LimitStatus(
                record_id=record_id,
                outcome=Outcome.COOLDOWN,
                retry_after_seconds=remaining,
                daily_uses_left=record.daily_uses_left,
            )

        # Quota check, resetting an expired or unset window first
        if max_day_usage > 0:
            if record.daily_reset_at is None or now > record.daily_reset_at:
                record.daily_reset_at = next_local_midnight(now)
                record.daily_uses_left = max_day_usage
                logger.debug(
                    "Reset daily window for %s: %d uses until %s",
                    record_id,
                    max_day_usage,
                    datetime.fromtimestamp(record.daily_reset_at).isoformat(),
                )
            if record.daily_uses_left is None or record.daily_uses_left <= 0:
                return LimitStatus(
                    record_id=record_id,
                    outcome=Outcome.QUOTA,
                    daily_uses_left=0,
                )

        # Commit
        if min_interval > 0:
            record.cooldown_expires_at = now + min_interval
        if max_day_usage > 0 and record.daily_uses_left is not None:
            record.daily_uses_left -= 1
        return LimitStatus(
            record_id=record_id,
            outcome=Outcome.ALLOWED,
            daily_uses_left=record.daily_uses_left,
        )

    def clear(self) -> None:
        """Drop all records and counters."""
        for lock in self._locks:
            lock.acquire()
        try:
            self._records.clear()
        finally:
            for lock in reversed(self._locks):
                lock.release()
        with self._stats_lock:
            self._admitted = 0
            self._denied = 0
