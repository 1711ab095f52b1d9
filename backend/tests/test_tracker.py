import logging
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from weeklyfocus.core.cycle import WeekDay
from weeklyfocus.core.errors import (
    ClockStateError,
    GoalNotFoundError,
    InvalidInputError,
    PersistenceError,
    RecordNotFoundError,
    StorageUnavailableError,
)
from weeklyfocus.db import init_storage
from weeklyfocus.models.goal import Goal
from weeklyfocus.services.tracker import FocusTracker


def at(hour, minute=0, day=10):
    return datetime(2025, 12, day, hour, minute)


def _boom(*args, **kwargs):
    raise OperationalError("statement", {}, Exception("disk I/O error"))


# ---------- Goal ---------- #

def test_default_goal_created_on_empty_store(tracker):
    goal = tracker.snapshot().current_goal
    assert goal.weekly_target_minutes == 2400
    assert goal.week_start_day == WeekDay.monday
    assert goal.title == "Weekly Focus"
    assert goal.is_active


def test_existing_goal_is_reused(session_factory, clock):
    first = FocusTracker(session_factory, clock=clock)
    goal_id = first.start().current_goal.id
    first.close()

    second = FocusTracker(session_factory, clock=clock)
    assert second.start().current_goal.id == goal_id
    second.close()


def test_extra_active_goals_are_deactivated(tracker, session_factory, clock):
    session = session_factory()
    session.add(Goal(title="Older", weekly_target_minutes=60, week_start_day=1,
                     created_at=clock.now - timedelta(days=30), is_active=True))
    session.commit()
    session.close()

    kept = tracker.load_current_goal()
    assert kept.title == "Weekly Focus"

    session = session_factory()
    assert session.query(Goal).filter(Goal.is_active.is_(True)).count() == 1
    session.close()


def test_update_goal_changes_cycle(tracker, goal_id):
    # Sunday 2025-12-07 is outside the Monday-start week
    tracker.add_timed_record(goal_id, at(9, day=7), at(10, day=7))
    assert tracker.snapshot().current_week_progress == 0

    snap = tracker.update_goal(1200, WeekDay.sunday)
    assert snap.current_goal.weekly_target_minutes == 1200
    assert snap.current_goal.week_start_day == WeekDay.sunday
    assert snap.cycle.start == datetime(2025, 12, 7)
    assert snap.current_week_progress == 60


@pytest.mark.parametrize("target", [0, -5])
def test_update_goal_rejects_non_positive_target(tracker, target):
    with pytest.raises(InvalidInputError):
        tracker.update_goal(target, WeekDay.monday)
    assert tracker.snapshot().current_goal.weekly_target_minutes == 2400


def test_update_goal_rejects_bad_weekday(tracker):
    with pytest.raises(InvalidInputError):
        tracker.update_goal(600, 7)


def test_delete_goal_cascades_to_records(tracker, goal_id, session_factory):
    tracker.add_manual_record(goal_id, 30)
    snap = tracker.delete_goal(goal_id)

    assert snap.current_goal.id != goal_id
    assert snap.current_week_records == ()

    from weeklyfocus.models.record import Record
    session = session_factory()
    assert session.query(Record).filter(Record.goal_id == goal_id).count() == 0
    session.close()


def test_delete_unknown_goal(tracker):
    with pytest.raises(GoalNotFoundError):
        tracker.delete_goal("nope")


def test_reset_all_data(tracker, goal_id):
    tracker.update_goal(600, WeekDay.friday)
    tracker.add_manual_record(goal_id, 30)

    snap = tracker.reset_all_data()
    assert snap.current_goal.id != goal_id
    assert snap.current_goal.weekly_target_minutes == 2400
    assert snap.current_goal.week_start_day == WeekDay.monday
    assert snap.current_week_records == ()


# ---------- Records ---------- #

def test_manual_record_display(tracker, goal_id):
    assert tracker.add_manual_record(goal_id, 75).display_time == "1 hour 15 minutes"
    record = tracker.add_manual_record(goal_id, 30, notes="Reading")
    assert record.display_time == "30 minutes"
    assert record.is_manual_entry
    assert not record.is_clock_entry
    assert record.notes == "Reading"


def test_mutations_reaggregate_without_reload(tracker, goal_id):
    record = tracker.add_manual_record(goal_id, 45)
    snap = tracker.snapshot()
    assert [r.id for r in snap.todays_records] == [record.id]
    assert [r.id for r in snap.current_week_records] == [record.id]
    assert snap.current_week_progress == 45

    tracker.delete_record(record.id)
    snap = tracker.snapshot()
    assert snap.todays_records == ()
    assert snap.current_week_records == ()
    assert snap.current_week_progress == 0


def test_timed_record_duration(tracker, goal_id):
    record = tracker.add_timed_record(goal_id, at(9), datetime(2025, 12, 10, 10, 15, 59))
    assert record.duration_minutes == 75
    assert record.date == at(9)
    assert not record.is_manual_entry
    assert tracker.snapshot().current_week_progress == 75


@pytest.mark.parametrize("start,end", [
    (at(10), at(10)),
    (at(10), at(9)),
    (at(10), datetime(2025, 12, 10, 10, 0, 30)),
])
def test_timed_record_rejects_empty_or_inverted_span(tracker, goal_id, start, end):
    with pytest.raises(InvalidInputError):
        tracker.add_timed_record(goal_id, start, end)
    assert tracker.snapshot().current_week_records == ()


@pytest.mark.parametrize("minutes", [0, -10])
def test_manual_record_rejects_non_positive(tracker, goal_id, minutes):
    with pytest.raises(InvalidInputError):
        tracker.add_manual_record(goal_id, minutes)


def test_record_for_unknown_goal(tracker):
    with pytest.raises(GoalNotFoundError):
        tracker.add_manual_record("missing", 10)


def test_delete_unknown_record(tracker):
    with pytest.raises(RecordNotFoundError):
        tracker.delete_record("missing")


def test_week_summary(tracker, goal_id):
    tracker.add_manual_record(goal_id, 90)
    tracker.add_timed_record(goal_id, at(9, day=8), at(11, day=8))
    summary = tracker.week_summary()
    assert summary.progress_minutes == 210
    assert summary.remaining_minutes == 2190
    assert summary.progress == pytest.approx(210 / 2400)
    assert summary.today_minutes == 90
    assert summary.record_count == 2
    assert summary.cycle_name == "12/08 - 12/14"
    assert [d.minutes for d in summary.daily] == [120, 0, 90, 0, 0, 0, 0]
    assert summary.daily[0].weekday == "Mon"
    assert sum(d.minutes for d in summary.daily) == summary.progress_minutes


def test_week_summary_reads_one_snapshot(tracker, goal_id, monkeypatch):
    record = tracker.create_and_clock_in(goal_id, at(9))
    tracker.clock_out(record.id, at(10, 15))

    def stale(*args, **kwargs):
        raise AssertionError("week_summary must not re-read tracker state")

    monkeypatch.setattr(tracker, "daily_stats", stale)
    monkeypatch.setattr(tracker, "daily_work_stats", stale)
    monkeypatch.setattr(tracker, "today_work_duration", stale)
    summary = tracker.week_summary()
    assert summary.today_work_minutes == 75
    assert [d.minutes for d in summary.daily_work] == [0, 0, 75, 0, 0, 0, 0]
    assert sum(d.minutes for d in summary.daily) == summary.progress_minutes == 75


# ---------- Clock session ---------- #

def test_clock_session(tracker, goal_id):
    record = tracker.create_and_clock_in(goal_id, at(9))
    assert record.date == datetime(2025, 12, 10)
    assert record.clock_state == "CLOCKED_IN"
    assert record.work_duration_minutes == 0
    assert record.duration_minutes == 0

    record = tracker.clock_out(record.id, at(17, 30))
    assert record.clock_state == "CLOCKED_OUT"
    assert record.work_duration_minutes == 510
    assert record.duration_minutes == 510
    assert record.work_duration_display == "8 hours 30 minutes"
    assert tracker.today_work_duration(goal_id) == 510
    assert tracker.snapshot().current_week_progress == 510


def test_clock_out_before_clock_in_clamps_to_zero(tracker, goal_id):
    record = tracker.create_and_clock_in(goal_id, at(9))
    record = tracker.clock_out(record.id, at(8))
    assert record.work_duration_minutes == 0
    assert record.duration_minutes == 0


def test_reset_keeps_record_and_duration(tracker, goal_id):
    record = tracker.create_and_clock_in(goal_id, at(9))
    tracker.clock_out(record.id, at(10))

    reset = tracker.reset_clock(record.id)
    assert reset.clock_in_time is None
    assert reset.clock_out_time is None
    assert reset.work_duration_minutes == 0
    assert reset.duration_minutes == 60
    assert record.id in [r.id for r in tracker.snapshot().current_week_records]

    again = tracker.clock_in(record.id, at(11))
    assert again.clock_state == "CLOCKED_IN"


def test_only_one_clock_session_per_day(tracker, goal_id):
    tracker.create_and_clock_in(goal_id, at(9))
    with pytest.raises(ClockStateError):
        tracker.create_and_clock_in(goal_id, at(10))

    manual = tracker.add_manual_record(goal_id, 20)
    with pytest.raises(ClockStateError):
        tracker.clock_in(manual.id, at(11))


def test_reset_session_is_reused_by_clock_in(tracker, goal_id):
    record = tracker.create_and_clock_in(goal_id, at(9))
    tracker.clock_out(record.id, at(10))
    tracker.reset_clock(record.id)

    assert tracker.todays_clock_record(goal_id).id == record.id
    status = tracker.clock_status(goal_id)
    assert status.state == "NONE"
    assert status.record is not None
    assert status.record.id == record.id

    # The reset row still owns today's session
    with pytest.raises(ClockStateError):
        tracker.create_and_clock_in(goal_id, at(11))

    again = tracker.clock_in(record.id, at(11))
    assert again.id == record.id
    assert again.clock_session
    assert [r.id for r in tracker.snapshot().todays_records] == [record.id]


def test_illegal_clock_transitions(tracker, goal_id):
    manual = tracker.add_manual_record(goal_id, 20)
    with pytest.raises(ClockStateError):
        tracker.clock_out(manual.id, at(12))
    with pytest.raises(ClockStateError):
        tracker.reset_clock(manual.id)

    record = tracker.create_and_clock_in(goal_id, at(9))
    with pytest.raises(ClockStateError):
        tracker.clock_in(record.id, at(9, 30))
    tracker.clock_out(record.id, at(12))
    with pytest.raises(ClockStateError):
        tracker.clock_out(record.id, at(13))


def test_clock_status_reports_live_minutes(tracker, goal_id, clock):
    assert tracker.clock_status(goal_id).state == "NONE"

    tracker.create_and_clock_in(goal_id, at(9))
    status = tracker.clock_status(goal_id)
    assert status.state == "CLOCKED_IN"
    assert status.clock_in == "09:00"
    assert status.clock_out == "Not clocked"
    assert status.elapsed_minutes == 60

    clock.now = at(10, 45)
    assert tracker.clock_status(goal_id).elapsed_minutes == 105


# ---------- Observers and ticks ---------- #

def test_subscribers_see_every_mutation(tracker, goal_id):
    seen = []
    unsubscribe = tracker.subscribe(seen.append)

    tracker.add_manual_record(goal_id, 10)
    tracker.update_goal(600, WeekDay.monday)
    assert [s.current_week_progress for s in seen] == [10, 10]
    assert seen[-1].current_goal.weekly_target_minutes == 600

    unsubscribe()
    tracker.add_manual_record(goal_id, 10)
    assert len(seen) == 2


def test_failing_subscriber_does_not_block_others(tracker, goal_id, caplog):
    def broken(snapshot):
        raise RuntimeError("render failed")

    seen = []
    tracker.subscribe(broken)
    tracker.subscribe(seen.append)
    with caplog.at_level(logging.ERROR):
        tracker.add_manual_record(goal_id, 10)
    assert len(seen) == 1
    assert "subscriber" in caplog.text


def test_tick_rolls_over_at_midnight(tracker, goal_id, clock):
    tracker.add_manual_record(goal_id, 30)
    assert not tracker.tick()

    clock.now = datetime(2025, 12, 11, 0, 0, 1)
    assert tracker.tick()
    snap = tracker.snapshot()
    assert snap.todays_records == ()
    assert snap.current_week_progress == 30

    # Sunday -> Monday starts a new cycle
    clock.now = datetime(2025, 12, 15, 0, 0, 1)
    assert tracker.tick()
    assert tracker.snapshot().current_week_progress == 0


# ---------- Failures ---------- #

def test_commit_failure_keeps_last_snapshot(tracker, goal_id, monkeypatch):
    tracker.add_manual_record(goal_id, 30)
    before = tracker.snapshot()

    monkeypatch.setattr(tracker._store.session, "commit", _boom)
    with pytest.raises(PersistenceError):
        tracker.add_manual_record(goal_id, 60)
    with pytest.raises(PersistenceError):
        tracker.update_goal(100, WeekDay.friday)
    assert tracker.snapshot() is before

    monkeypatch.undo()
    snap = tracker.refresh()
    assert snap.current_week_progress == 30
    assert snap.current_goal.weekly_target_minutes == 2400


def test_query_failure_falls_back_to_empty_and_is_visible(tracker, goal_id, monkeypatch, caplog):
    tracker.add_manual_record(goal_id, 30)
    monkeypatch.setattr(tracker._store, "fetch", _boom)

    with caplog.at_level(logging.WARNING):
        snap = tracker.refresh()
    assert snap.current_week_records == ()
    assert snap.last_error is not None
    assert "Failed to fetch current week records" in caplog.text

    monkeypatch.undo()
    snap = tracker.refresh()
    assert snap.last_error is None
    assert snap.current_week_progress == 30


def test_goal_query_failure_creates_default(session_factory, clock, monkeypatch, caplog):
    t = FocusTracker(session_factory, clock=clock)
    monkeypatch.setattr(t._store, "fetch", _boom)
    with caplog.at_level(logging.WARNING):
        goal = t.load_current_goal()
    assert goal.weekly_target_minutes == 2400
    assert "Failed to fetch goals" in caplog.text
    t.close()


def test_unopenable_store_is_reported(tmp_path):
    url = f"sqlite+pysqlite:///{tmp_path}/missing/dir/focus.db"
    with pytest.raises(StorageUnavailableError):
        init_storage(url)
