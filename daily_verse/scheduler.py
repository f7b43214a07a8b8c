"""
APScheduler-based daily re-scheduling of verse requests.

A single one-shot DateTrigger job is armed at a time. When it fires, the
callback runs and a fresh job is armed for the next due time, either after the
configured fixed interval or at the next local midnight.
"""
import threading
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Callable, Optional

import pytz
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

JOB_PREFIX = "daily_verse"


@dataclass(frozen=True)
class IntervalPolicy:
    """
    When the next verse is due.

    interval_ms > 0 means a fixed delay; None, 0 or a negative value means the
    next local midnight. timezone is a pytz zone name; None uses local time.
    """

    interval_ms: Optional[int] = None
    timezone: Optional[str] = None

    @property
    def uses_midnight(self) -> bool:
        return self.interval_ms is None or self.interval_ms <= 0

    @property
    def tz(self):
        return pytz.timezone(self.timezone) if self.timezone else None


def next_midnight(now: datetime, tz=None) -> datetime:
    """
    Return 00:00:00.000 of the calendar day after *now*.

    The date is advanced as a date, so month ends, Dec 31 and Feb 28/29 roll
    over correctly. With a pytz *tz* the result is localized in that zone.
    """
    midnight = datetime.combine(now.date() + timedelta(days=1), time.min)
    if tz is not None:
        return tz.localize(midnight)
    if now.tzinfo is not None:
        return midnight.replace(tzinfo=now.tzinfo)
    return midnight


def compute_delay(policy: IntervalPolicy, now: datetime) -> timedelta:
    """Time from *now* until the next verse is due under *policy*."""
    if not policy.uses_midnight:
        return timedelta(milliseconds=policy.interval_ms)
    return next_midnight(now, policy.tz) - now


def local_now(tz=None) -> datetime:
    """Current time in pytz zone *tz*, or naive local time when tz is None."""
    return datetime.now(tz) if tz is not None else datetime.now()


@dataclass
class ScheduleState:
    """The one armed timer and what it will do when it fires."""

    job_id: str
    run_at: datetime
    policy: IntervalPolicy
    on_due: Callable[[], None]


class DailyScheduler:
    """
    Owns a single self-renewing timer.

    Idle until start(); armed with exactly one pending job afterwards; idle
    again after stop(). Arming always cancels the previous job first.
    """

    def __init__(self, scheduler=None, clock: Optional[Callable] = None) -> None:
        self._owns_scheduler = scheduler is None
        self._scheduler = scheduler if scheduler is not None else AsyncIOScheduler()
        self._clock = clock or local_now
        self._state: Optional[ScheduleState] = None
        self._generation = 0
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def is_armed(self) -> bool:
        return self._state is not None

    @property
    def next_run_time(self) -> Optional[datetime]:
        state = self._state
        return state.run_at if state else None

    def start(self, on_due: Callable[[], None], policy: Optional[IntervalPolicy] = None) -> None:
        """Arm the timer, replacing any timer armed earlier."""
        policy = policy or IntervalPolicy()
        with self._lock:
            if self._owns_scheduler and not self._scheduler.running:
                self._scheduler.start()
                print("[scheduler] Scheduler started")
            self._arm(on_due, policy)

    def stop(self) -> None:
        """Cancel the pending timer. Safe to call any number of times."""
        with self._lock:
            if self._state is None:
                return
            self._cancel()
            print("[scheduler] Daily verse schedule stopped")

    def shutdown(self) -> None:
        """Stop, and shut down the APScheduler instance if this object created it."""
        self.stop()
        if self._owns_scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _cancel(self) -> None:
        state, self._state = self._state, None
        if state is None:
            return
        try:
            self._scheduler.remove_job(state.job_id)
        except JobLookupError:
            pass  # already fired

    def _arm(self, on_due: Callable[[], None], policy: IntervalPolicy) -> None:
        self._cancel()

        now = self._clock(policy.tz)
        delay = compute_delay(policy, now)
        run_at = now + delay

        self._generation += 1
        job_id = f"{JOB_PREFIX}_{self._generation}"
        self._scheduler.add_job(
            self._fire,
            trigger=DateTrigger(run_date=run_at),
            args=[self._generation],
            id=job_id,
            replace_existing=True,
            misfire_grace_time=None,
            coalesce=True,
        )
        self._state = ScheduleState(job_id=job_id, run_at=run_at, policy=policy, on_due=on_due)

        minutes = round(delay.total_seconds() / 60)
        if policy.uses_midnight:
            print(f"[scheduler] Next update scheduled in {minutes} minutes ({run_at:%Y-%m-%d %H:%M:%S})")
        else:
            print(f"[scheduler] Next update scheduled in {minutes} minutes (using configured interval)")

    def _fire(self, generation: int) -> None:
        # The callback runs under the lock so stop() from another thread
        # returns only once no callback is in progress.
        with self._lock:
            state = self._state
            if state is None or generation != self._generation:
                return  # cancelled or superseded

            print("[scheduler] Scheduled update triggered")
            try:
                state.on_due()
            except Exception as e:
                print(f"[scheduler] Error in scheduled callback: {e}")

            # start() or stop() during the callback already decided what comes next
            if self._state is state and generation == self._generation:
                self._arm(state.on_due, state.policy)
