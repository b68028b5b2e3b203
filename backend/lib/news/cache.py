"""
Process-wide headline cache.

Headlines are curated at most once per day: a cached list becomes stale at
the most recent 6:00 AM US-Eastern boundary. Readers never wait when a list
exists; stale or empty caches start a single background refresh that every
caller shares.
"""

import asyncio
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_HEADLINES = [
    "**AI News Loading** - Your personalized headlines are being prepared..."
]

REFRESH_HOUR_EASTERN = 6
FAILURE_COOLDOWN_SECONDS = 60.0


# ==================== Staleness ====================

def second_sunday_of_march(year: int) -> date:
    first = date(year, 3, 1)
    return first + timedelta(days=(6 - first.weekday()) % 7 + 7)


def first_sunday_of_november(year: int) -> date:
    first = date(year, 11, 1)
    return first + timedelta(days=(6 - first.weekday()) % 7)


def is_eastern_daylight_time(day: date) -> bool:
    """EDT runs from the second Sunday of March to the day before the first Sunday of November."""
    return second_sunday_of_march(day.year) <= day < first_sunday_of_november(day.year)


def eastern_utc_offset(day: date) -> timedelta:
    return timedelta(hours=-4) if is_eastern_daylight_time(day) else timedelta(hours=-5)


def refresh_boundary(day: date) -> datetime:
    """6:00 AM Eastern on the given calendar day, as a UTC instant."""
    local_six = datetime(day.year, day.month, day.day, REFRESH_HOUR_EASTERN, tzinfo=timezone.utc)
    return local_six - eastern_utc_offset(day)


def most_recent_boundary(now: datetime) -> datetime:
    """
    Latest 6:00 AM Eastern boundary at or before now.

    Args:
        now: Timezone-aware instant

    Returns:
        Boundary as a UTC datetime
    """
    now = now.astimezone(timezone.utc)
    today = now.date()
    for delta in (1, 0, -1, -2):
        boundary = refresh_boundary(today + timedelta(days=delta))
        if boundary <= now:
            return boundary
    raise AssertionError(f"no refresh boundary found near {now.isoformat()}")


def is_stale(last_fetch: Optional[datetime], now: datetime) -> bool:
    if last_fetch is None:
        return True
    return last_fetch < most_recent_boundary(now)


# ==================== Snapshot Types ====================

@dataclass(frozen=True)
class HeadlineSnapshot:
    headlines: Tuple[str, ...]
    last_fetch: datetime
    strategy: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headlines": list(self.headlines),
            "lastFetch": self.last_fetch.isoformat(),
            "strategy": self.strategy,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HeadlineSnapshot":
        last_fetch = datetime.fromisoformat(data["lastFetch"].replace("Z", "+00:00"))
        if last_fetch.tzinfo is None:
            last_fetch = last_fetch.replace(tzinfo=timezone.utc)
        return cls(
            headlines=tuple(data.get("headlines") or []),
            last_fetch=last_fetch,
            strategy=data.get("strategy", "unknown"),
        )


@dataclass(frozen=True)
class HeadlineView:
    """What a reader gets back from the cache."""
    headlines: List[str]
    timestamp: Optional[datetime]
    cached: bool
    is_loading: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headlines": list(self.headlines),
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "cached": self.cached,
            "isLoading": self.is_loading,
        }


class HeadlineCacheFile:
    """
    JSON snapshot on disk.

    Written after every successful refresh and read back at startup, so a
    restarted server serves the last curated list instead of placeholders.
    """

    def __init__(self, path: str):
        self.path = path

    def write(self, snapshot: HeadlineSnapshot) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".headlines-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot.to_dict(), f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def read(self) -> Optional[HeadlineSnapshot]:
        if not os.path.exists(self.path):
            return None
        with open(self.path, "r", encoding="utf-8") as f:
            return HeadlineSnapshot.from_dict(json.load(f))


# ==================== Cache ====================

class HeadlineCache:
    """
    In-memory headline cache with a single in-flight refresh.

    The snapshot is replaced in one assignment on success, so readers see
    either the old list or the new list. The refresh itself is an
    asyncio.Task; concurrent blocking readers await the same task.

    Args:
        curator: Object with async fetch_headlines() -> List[str] and a strategy name
        snapshot_file: Optional file the snapshot is mirrored to after each refresh
        clock: Returns the current UTC time
        failure_cooldown: Seconds after a failed refresh during which reads do not start another
    """

    def __init__(
        self,
        curator: Any,
        snapshot_file: Optional[HeadlineCacheFile] = None,
        clock: Optional[Callable[[], datetime]] = None,
        failure_cooldown: float = FAILURE_COOLDOWN_SECONDS
    ):
        self.curator = curator
        self.snapshot_file = snapshot_file
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.failure_cooldown = failure_cooldown

        self._snapshot: Optional[HeadlineSnapshot] = None
        self._refresh_task: Optional[asyncio.Task] = None
        self._last_failure: Optional[datetime] = None

    def load_snapshot(self) -> bool:
        """
        Seed an empty cache from the snapshot file.

        A missing or unreadable file leaves the cache cold. A loaded snapshot
        that is already stale is refreshed on the next read as usual.

        Returns:
            True if a snapshot was loaded
        """
        if self.snapshot_file is None or self._snapshot is not None:
            return False
        try:
            snapshot = self.snapshot_file.read()
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"⚠️ Ignoring unreadable headline snapshot {self.snapshot_file.path}: {e}")
            return False
        if snapshot is None:
            return False

        self._snapshot = snapshot
        logger.info(
            f"📂 Loaded {len(snapshot.headlines)} headlines from {self.snapshot_file.path} "
            f"(fetched {snapshot.last_fetch.isoformat()})"
        )
        return True

    @property
    def snapshot(self) -> Optional[HeadlineSnapshot]:
        return self._snapshot

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    def is_stale(self) -> bool:
        snapshot = self._snapshot
        return is_stale(snapshot.last_fetch if snapshot else None, self.clock())

    def _in_cooldown(self) -> bool:
        if self._last_failure is None:
            return False
        return (self.clock() - self._last_failure).total_seconds() < self.failure_cooldown

    def _start_refresh(self) -> asyncio.Task:
        # Must not await between the check and the assignment.
        if self.is_refreshing:
            return self._refresh_task
        task = asyncio.create_task(self._populate())
        task.add_done_callback(self._log_refresh_outcome)
        self._refresh_task = task
        return task

    def _maybe_start_background_refresh(self) -> None:
        if self.is_refreshing or self._in_cooldown():
            return
        self._start_refresh()

    @staticmethod
    def _log_refresh_outcome(task: asyncio.Task) -> None:
        if task.cancelled():
            logger.warning("⚠️ Headline refresh cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"❌ Headline refresh failed: {exc}", exc_info=exc)

    async def _populate(self) -> HeadlineSnapshot:
        started = self.clock()
        try:
            headlines = await self.curator.fetch_headlines()
        except Exception:
            self._last_failure = self.clock()
            raise

        snapshot = HeadlineSnapshot(
            headlines=tuple(headlines),
            last_fetch=self.clock(),
            strategy=getattr(self.curator, "strategy", "unknown"),
        )
        self._snapshot = snapshot
        self._last_failure = None

        elapsed = (snapshot.last_fetch - started).total_seconds()
        logger.info(f"✅ Headline cache populated with {len(snapshot.headlines)} headlines in {elapsed:.1f}s")

        if self.snapshot_file is not None:
            try:
                self.snapshot_file.write(snapshot)
            except OSError as e:
                logger.warning(f"⚠️ Could not write headline snapshot to {self.snapshot_file.path}: {e}")

        return snapshot

    def read_nonblocking(self) -> HeadlineView:
        """
        Return whatever is cached right now.

        Starts a background refresh when the cache is empty or stale (unless
        one is already running or the last one just failed). Never raises.
        """
        snapshot = self._snapshot

        if snapshot is None:
            self._maybe_start_background_refresh()
            return HeadlineView(
                headlines=list(DEFAULT_HEADLINES),
                timestamp=None,
                cached=False,
                is_loading=self.is_refreshing,
            )

        if is_stale(snapshot.last_fetch, self.clock()) and not self.is_refreshing:
            if not self._in_cooldown():
                logger.info("🔄 Headlines are stale, starting background refresh")
            self._maybe_start_background_refresh()

        return HeadlineView(
            headlines=list(snapshot.headlines),
            timestamp=snapshot.last_fetch,
            cached=True,
            is_loading=self.is_refreshing,
        )

    async def read_blocking(self) -> HeadlineView:
        """
        Return cached headlines, waiting for a population if the cache is empty.

        Raises:
            Whatever the population raised, when the cache is still empty
        """
        if self._snapshot is None:
            self._start_refresh()
            await self.wait_for_refresh()
        return self.read_nonblocking()

    async def force_refresh(self) -> HeadlineView:
        """Run (or join) a population regardless of staleness and wait for it."""
        self._start_refresh()
        await self.wait_for_refresh()
        return self.read_nonblocking()

    def trigger_refresh(self) -> bool:
        """
        Start a background refresh without waiting.

        Returns:
            True if a new refresh was started, False if one was already running
        """
        if self.is_refreshing:
            return False
        self._start_refresh()
        return True

    def refresh_if_stale(self) -> bool:
        """Start a background refresh when the cache is empty or stale."""
        if not self.is_stale() or self.is_refreshing or self._in_cooldown():
            return False
        logger.info("🔄 Scheduled check found stale headlines, refreshing")
        self._start_refresh()
        return True

    async def wait_for_refresh(self) -> Optional[HeadlineSnapshot]:
        """Wait for the in-flight refresh, if any. Errors propagate."""
        task = self._refresh_task
        if task is None:
            return self._snapshot
        return await asyncio.shield(task)

    async def run_scheduler(
        self,
        interval: float = 3600.0,
        sleep: Callable[[float], Any] = asyncio.sleep
    ) -> None:
        """Check staleness every interval seconds until cancelled."""
        logger.info(f"Headline refresh scheduler started (every {interval:.0f}s)")
        while True:
            await sleep(interval)
            self.refresh_if_stale()

    async def close(self) -> None:
        task = self._refresh_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
