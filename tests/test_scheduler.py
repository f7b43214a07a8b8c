import asyncio
import threading
import time as time_mod
from datetime import datetime, timedelta

import pytest
import pytz
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.schedulers.background import BackgroundScheduler

from daily_verse.scheduler import (
    DailyScheduler,
    IntervalPolicy,
    compute_delay,
    next_midnight,
)

NOON = datetime(2025, 6, 15, 12, 0, 0)


def _fixed_clock(now):
    return lambda tz=None: now


def _idle_scheduler(now=NOON):
    """DailyScheduler on an APScheduler that is never started, so jobs stay pending."""
    aps = AsyncIOScheduler()
    return DailyScheduler(scheduler=aps, clock=_fixed_clock(now)), aps


def _fire(aps):
    (job,) = aps.get_jobs()
    job.func(*job.args)


# ------------------------------------------------------------------ #
#  Delay policy
# ------------------------------------------------------------------ #

@pytest.mark.parametrize("interval, midnight", [
    (None, True), (0, True), (-1000, True), (1, False), (86400000, False),
])
def test_policy_uses_midnight(interval, midnight):
    assert IntervalPolicy(interval_ms=interval).uses_midnight is midnight


def test_delay_from_noon_is_twelve_hours():
    delay = compute_delay(IntervalPolicy(), NOON)
    assert delay == timedelta(hours=12)
    assert delay.total_seconds() * 1000 == 43200000


def test_year_boundary_rolls_to_january_first():
    now = datetime(2025, 12, 31, 23, 0, 0)
    assert next_midnight(now) == datetime(2026, 1, 1)
    assert compute_delay(IntervalPolicy(), now) == timedelta(hours=1)


def test_leap_year_feb_28_rolls_to_feb_29():
    assert next_midnight(datetime(2024, 2, 28, 23, 0)) == datetime(2024, 2, 29)
    assert next_midnight(datetime(2024, 2, 29, 23, 0)) == datetime(2024, 3, 1)


def test_non_leap_year_feb_28_rolls_to_march_first():
    assert next_midnight(datetime(2025, 2, 28, 23, 0)) == datetime(2025, 3, 1)


def test_month_end_rolls_over():
    assert next_midnight(datetime(2025, 4, 30, 0, 0, 1)) == datetime(2025, 5, 1)


def test_just_after_midnight_waits_almost_a_full_day():
    delay = compute_delay(IntervalPolicy(), datetime(2025, 1, 1, 0, 0, 0, 1000))
    assert delay == timedelta(days=1) - timedelta(milliseconds=1)


def test_fixed_interval_delay():
    policy = IntervalPolicy(interval_ms=3600000)
    assert compute_delay(policy, NOON) == timedelta(hours=1)


def test_midnight_in_timezone_across_dst_start():
    denver = pytz.timezone("America/Denver")
    now = denver.localize(datetime(2025, 3, 9, 1, 0))  # clocks jump 02:00 -> 03:00
    policy = IntervalPolicy(timezone="America/Denver")
    assert compute_delay(policy, now) == timedelta(hours=22)


def test_midnight_in_timezone_is_localized():
    tokyo = pytz.timezone("Asia/Tokyo")
    now = tokyo.localize(datetime(2025, 12, 31, 18, 30))
    midnight = next_midnight(now, tokyo)
    assert midnight.utcoffset() == timedelta(hours=9)
    assert (midnight.year, midnight.month, midnight.day, midnight.hour) == (2026, 1, 1, 0)


# ------------------------------------------------------------------ #
#  Arming, firing, cancelling
# ------------------------------------------------------------------ #

def test_start_arms_one_job_for_next_midnight():
    daily, aps = _idle_scheduler()
    daily.start(lambda: None)

    assert daily.is_armed
    assert len(aps.get_jobs()) == 1
    assert daily.next_run_time == datetime(2025, 6, 16)


def test_start_twice_leaves_exactly_one_pending_job():
    daily, aps = _idle_scheduler()
    first_calls, second_calls = [], []

    daily.start(lambda: first_calls.append(1))
    first_id = aps.get_jobs()[0].id
    daily.start(lambda: second_calls.append(1), IntervalPolicy(interval_ms=60000))

    jobs = aps.get_jobs()
    assert len(jobs) == 1
    assert jobs[0].id != first_id
    assert daily.next_run_time == NOON + timedelta(minutes=1)

    _fire(aps)
    assert first_calls == []
    assert second_calls == [1]


def test_fire_runs_callback_and_rearms():
    daily, aps = _idle_scheduler()
    calls = []
    daily.start(lambda: calls.append(1), IntervalPolicy(interval_ms=5000))

    _fire(aps)
    _fire(aps)

    assert calls == [1, 1]
    assert len(aps.get_jobs()) == 1
    assert daily.is_armed


def test_callback_error_does_not_break_schedule(capsys):
    daily, aps = _idle_scheduler()

    def boom():
        raise RuntimeError("display went away")

    daily.start(boom)
    _fire(aps)

    assert daily.is_armed
    assert len(aps.get_jobs()) == 1
    assert "display went away" in capsys.readouterr().out


def test_stop_cancels_pending_job():
    daily, aps = _idle_scheduler()
    daily.start(lambda: None)
    daily.stop()

    assert not daily.is_armed
    assert daily.next_run_time is None
    assert aps.get_jobs() == []


def test_stop_is_idempotent():
    daily, aps = _idle_scheduler()
    daily.stop()
    daily.start(lambda: None)
    daily.stop()
    daily.stop()
    assert aps.get_jobs() == []


def test_stale_fire_after_stop_is_ignored():
    daily, aps = _idle_scheduler()
    calls = []
    daily.start(lambda: calls.append(1))
    (job,) = aps.get_jobs()
    daily.stop()

    job.func(*job.args)

    assert calls == []
    assert not daily.is_armed


def test_stop_from_inside_callback_prevents_rearm():
    daily, aps = _idle_scheduler()
    daily.start(daily.stop)
    _fire(aps)

    assert not daily.is_armed
    assert aps.get_jobs() == []


def test_restart_from_inside_callback_keeps_one_job():
    daily, aps = _idle_scheduler()
    policy = IntervalPolicy(interval_ms=1000)
    daily.start(lambda: daily.start(lambda: None, policy), policy)
    _fire(aps)

    assert len(aps.get_jobs()) == 1


def test_rearm_uses_clock_at_fire_time():
    now = [datetime(2025, 12, 31, 12, 0)]
    aps = AsyncIOScheduler()
    daily = DailyScheduler(scheduler=aps, clock=lambda tz=None: now[0])
    daily.start(lambda: None)
    assert daily.next_run_time == datetime(2026, 1, 1)

    now[0] = datetime(2026, 1, 1, 0, 0, 0, 5000)  # fired slightly late
    _fire(aps)
    assert daily.next_run_time == datetime(2026, 1, 2)


# ------------------------------------------------------------------ #
#  Real timers
# ------------------------------------------------------------------ #

def test_background_scheduler_fires_repeatedly():
    aps = BackgroundScheduler()
    aps.start()
    try:
        daily = DailyScheduler(scheduler=aps)
        fired = []
        done = threading.Event()

        def on_due():
            fired.append(datetime.now())
            if len(fired) >= 2:
                done.set()

        daily.start(on_due, IntervalPolicy(interval_ms=50))
        assert done.wait(timeout=5)
        daily.stop()
    finally:
        aps.shutdown(wait=False)


def test_stopped_scheduler_never_fires():
    aps = BackgroundScheduler()
    aps.start()
    try:
        daily = DailyScheduler(scheduler=aps)
        fired = []
        daily.start(lambda: fired.append(1), IntervalPolicy(interval_ms=50))
        daily.stop()
        time_mod.sleep(0.3)
        assert fired == []
    finally:
        aps.shutdown(wait=False)


def test_owned_asyncio_scheduler_runs_inside_event_loop():
    fired = []

    async def scenario():
        daily = DailyScheduler()
        daily.start(lambda: fired.append(1), IntervalPolicy(interval_ms=20))
        for _ in range(100):
            if fired:
                break
            await asyncio.sleep(0.02)
        daily.shutdown()

    asyncio.run(scenario())
    assert fired


def test_stop_waits_for_a_callback_already_running():
    daily, aps = _idle_scheduler()
    entered, release = threading.Event(), threading.Event()

    def slow_callback():
        entered.set()
        release.wait(5)

    daily.start(slow_callback, IntervalPolicy(interval_ms=1000))
    (job,) = aps.get_jobs()
    firing = threading.Thread(target=job.func, args=job.args)
    firing.start()
    assert entered.wait(5)

    stopper = threading.Thread(target=daily.stop)
    stopper.start()
    stopper.join(0.1)
    assert stopper.is_alive()

    release.set()
    firing.join(5)
    stopper.join(5)
    assert not stopper.is_alive()
    assert not daily.is_armed
    assert aps.get_jobs() == []
