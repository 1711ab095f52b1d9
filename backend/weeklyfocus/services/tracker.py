"""The tracker core: one owner for the goal, the records and their views.

`FocusTracker` is the single writer over the store. Every mutation
validates its input, persists, re-aggregates today's and this week's
records, publishes a fresh `TrackerSnapshot` and notifies subscribers
before returning, so readers never see stale aggregates.

Construct one instance at process start and pass it to whoever needs it
(the FastAPI app keeps it on ``app.state``).
"""
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from weeklyfocus.core.constants import (
    CLOCK_IN,
    CLOCK_NONE,
    CLOCK_OUT,
    DEFAULT_GOAL_TITLE,
    DEFAULT_WEEKLY_TARGET_MINUTES,
)
from weeklyfocus.core.cycle import WeekDay, WeeklyCycle, current_cycle
from weeklyfocus.core.errors import (
    ClockStateError,
    GoalNotFoundError,
    InvalidInputError,
    RecordNotFoundError,
)
from weeklyfocus.core.time_utils import (
    clock_display,
    floor_minutes,
    format_duration,
    now_local,
    start_of_day,
    to_local_naive,
)
from weeklyfocus.models.goal import Goal
from weeklyfocus.models.record import Record
from weeklyfocus.schemas.goal import GoalRead
from weeklyfocus.schemas.record import ClockStatus, RecordRead
from weeklyfocus.schemas.stats import DailyMinutes, WeekSummary
from weeklyfocus.services import aggregation
from weeklyfocus.services.store import SqlStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackerSnapshot:
    """Published state, made of detached read-only copies."""

    current_goal: Optional[GoalRead] = None
    todays_records: tuple = ()
    current_week_records: tuple = ()
    current_week_progress: int = 0
    cycle: Optional[WeeklyCycle] = None
    as_of: Optional[datetime] = None
    # Set when a read fell back to an empty result
    last_error: Optional[str] = field(default=None, compare=False)


class FocusTracker:
    def __init__(
        self,
        session_factory,
        clock: Callable[[], datetime] = datetime.now,
        default_title: str = DEFAULT_GOAL_TITLE,
        default_target_minutes: int = DEFAULT_WEEKLY_TARGET_MINUTES,
        default_week_start_day: int = WeekDay.monday,
        tz_name: str = "local",
    ):
        self._store = SqlStore(session_factory())
        self._clock = clock
        self._default_title = default_title
        self._default_target_minutes = default_target_minutes
        self._default_week_start_day = WeekDay(default_week_start_day)
        self._tz_name = tz_name

        self._lock = threading.RLock()
        self._subscribers: list[Callable[[TrackerSnapshot], None]] = []
        self._goal: Optional[Goal] = None
        self._snapshot = TrackerSnapshot()
        self._last_error: Optional[str] = None

    @classmethod
    def from_settings(cls, settings, session_factory, clock=None) -> "FocusTracker":
        return cls(
            session_factory,
            clock=clock or (lambda: now_local(settings.timezone)),
            default_title=settings.default_goal_title,
            default_target_minutes=settings.default_weekly_target_minutes,
            default_week_start_day=settings.default_week_start_day,
            tz_name=settings.timezone,
        )

    def now(self) -> datetime:
        return self._clock()

    def start(self) -> TrackerSnapshot:
        """Load (or create) the active goal and publish the first snapshot."""
        with self._lock:
            self.load_current_goal()
            return self._refresh()

    def close(self) -> None:
        with self._lock:
            self._subscribers.clear()
            self._store.close()

    # ---------- Published state ---------- #

    def snapshot(self) -> TrackerSnapshot:
        return self._snapshot

    def subscribe(self, callback: Callable[[TrackerSnapshot], None]) -> Callable[[], None]:
        """Register `callback` for every new snapshot; returns an unsubscribe."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self._snapshot)
            except Exception:
                logger.exception("Snapshot subscriber %r failed", callback)

    def _fallback(self, what: str, error: Exception) -> None:
        logger.warning("Failed to fetch %s, falling back: %s", what, error)
        self._last_error = f"Failed to fetch {what}: {error}"
        self._store.session.rollback()

    def _refresh(self, now: Optional[datetime] = None) -> TrackerSnapshot:
        """Re-read this week's records and publish a new snapshot."""
        now = now or self.now()
        self._last_error = None
        goal = self._goal
        if goal is None:
            self._snapshot = TrackerSnapshot(as_of=now)
            self._notify()
            return self._snapshot

        cycle = current_cycle(goal.week_start_day, now)
        try:
            rows = self._store.fetch(
                Record,
                Record.goal_id == goal.id,
                Record.date >= cycle.start,
                Record.date < cycle.end_exclusive,
                order_by=Record.date,
            )
        except SQLAlchemyError as e:
            self._fallback("current week records", e)
            rows = []

        records = [RecordRead.model_validate(r) for r in rows]
        week = aggregation.current_week_records(records, goal, now)
        self._snapshot = TrackerSnapshot(
            current_goal=GoalRead.model_validate(goal),
            todays_records=tuple(aggregation.todays_records(records, goal, now)),
            current_week_records=tuple(week),
            current_week_progress=aggregation.week_progress_minutes(week),
            cycle=cycle,
            as_of=now,
            last_error=self._last_error,
        )
        self._notify()
        return self._snapshot

    def refresh(self) -> TrackerSnapshot:
        with self._lock:
            return self._refresh()

    def tick(self, now: Optional[datetime] = None) -> bool:
        """Roll today's and this week's views over when the day changes.

        Returns True when a new snapshot was published.
        """
        with self._lock:
            now = now or self.now()
            as_of = self._snapshot.as_of
            if as_of is not None and start_of_day(as_of) == start_of_day(now):
                return False
            logger.info("Day changed, refreshing views for %s", now.date())
            self._refresh(now)
            return True

    # ---------- Goal ---------- #

    def load_current_goal(self) -> GoalRead:
        """Return the active goal, creating the default one if none exists."""
        with self._lock:
            try:
                goals = self._store.fetch(
                    Goal, Goal.is_active.is_(True), order_by=Goal.created_at.desc()
                )
            except SQLAlchemyError as e:
                self._fallback("goals", e)
                goals = []

            if not goals:
                self._goal = self._create_default_goal()
            else:
                self._goal = goals[0]
                if len(goals) > 1:
                    logger.warning("Found %d active goals, keeping %s", len(goals), self._goal.id)
                    for extra in goals[1:]:
                        extra.is_active = False
                    self._store.save()
            return GoalRead.model_validate(self._goal)

    def _create_default_goal(self) -> Goal:
        goal = Goal(
            title=self._default_title,
            weekly_target_minutes=self._default_target_minutes,
            week_start_day=int(self._default_week_start_day),
            created_at=self.now(),
            is_active=True,
        )
        self._store.insert(goal)
        self._store.save()
        logger.info("Created default goal %s (%d min/week)", goal.id, goal.weekly_target_minutes)
        return goal

    def _require_goal(self) -> Goal:
        if self._goal is None:
            self.load_current_goal()
        return self._goal

    def _check_goal_id(self, goal_id) -> None:
        if self._store.get(Goal, goal_id) is None:
            raise GoalNotFoundError(goal_id)

    def update_goal(self, target_minutes: int, week_start_day) -> TrackerSnapshot:
        if not isinstance(target_minutes, int) or target_minutes <= 0:
            raise InvalidInputError("target_minutes must be a positive integer")
        try:
            week_start_day = WeekDay(week_start_day)
        except ValueError:
            raise InvalidInputError("week_start_day must be 0 (Sunday) .. 6 (Saturday)")

        with self._lock:
            goal = self._require_goal()
            goal.weekly_target_minutes = target_minutes
            goal.week_start_day = int(week_start_day)
            self._store.save()
            logger.info(
                "Goal %s updated: %d min/week starting %s",
                goal.id, target_minutes, week_start_day.display_name,
            )
            return self._refresh()

    def delete_goal(self, goal_id) -> TrackerSnapshot:
        """Delete a goal together with its records."""
        with self._lock:
            goal = self._store.get(Goal, goal_id)
            if goal is None:
                raise GoalNotFoundError(goal_id)
            for record in self._store.fetch(Record, Record.goal_id == goal_id):
                self._store.delete(record)
            self._store.delete(goal)
            self._store.save()
            logger.info("Deleted goal %s and its records", goal_id)
            if self._goal is goal:
                self._goal = None
                self.load_current_goal()
            return self._refresh()

    def reset_all_data(self) -> TrackerSnapshot:
        """Remove every goal and record, then start over with the default goal."""
        with self._lock:
            for record in self._store.fetch(Record):
                self._store.delete(record)
            for goal in self._store.fetch(Goal):
                self._store.delete(goal)
            self._store.save()
            logger.warning("All goals and records deleted")
            self._goal = None
            self.load_current_goal()
            return self._refresh()

    # ---------- Records ---------- #

    def _get_record(self, record_id) -> Record:
        record = self._store.get(Record, record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        return record

    def _insert_record(self, record: Record) -> RecordRead:
        self._store.insert(record)
        self._store.save()
        self._refresh()
        return RecordRead.model_validate(record)

    def add_manual_record(self, goal_id, duration_minutes: int, notes: Optional[str] = None) -> RecordRead:
        if not isinstance(duration_minutes, int) or duration_minutes <= 0:
            raise InvalidInputError("duration_minutes must be a positive integer")
        with self._lock:
            self._check_goal_id(goal_id)
            now = self.now()
            record = Record(
                goal_id=goal_id,
                date=now,
                duration_minutes=duration_minutes,
                work_duration_minutes=0,
                notes=notes,
                created_at=now,
            )
            logger.debug("Adding manual record of %d min", duration_minutes)
            return self._insert_record(record)

    def add_timed_record(
        self,
        goal_id,
        start_time: datetime,
        end_time: datetime,
        notes: Optional[str] = None,
    ) -> RecordRead:
        start_time = to_local_naive(start_time, self._tz_name)
        end_time = to_local_naive(end_time, self._tz_name)
        if end_time <= start_time:
            raise InvalidInputError("end_time must be after start_time")
        duration = floor_minutes(start_time, end_time)
        if duration <= 0:
            raise InvalidInputError("Timed record must last at least one minute")
        with self._lock:
            self._check_goal_id(goal_id)
            record = Record(
                goal_id=goal_id,
                date=start_time,
                duration_minutes=duration,
                start_time=start_time,
                end_time=end_time,
                work_duration_minutes=0,
                notes=notes,
                created_at=self.now(),
            )
            logger.debug("Adding timed record %s -> %s (%d min)", start_time, end_time, duration)
            return self._insert_record(record)

    def delete_record(self, record_id) -> TrackerSnapshot:
        with self._lock:
            record = self._get_record(record_id)
            self._store.delete(record)
            self._store.save()
            logger.debug("Deleted record %s", record_id)
            return self._refresh()

    # ---------- Clock session ---------- #

    def _clock_record_on(self, goal_id, day: datetime) -> Optional[Record]:
        """The goal's clock session record for `day`, if any.

        A reset record keeps its `clock_session` flag, so it is still the
        day's session and is clocked in again rather than replaced.
        """
        day_start = start_of_day(day)
        rows = self._store.fetch(
            Record,
            Record.goal_id == goal_id,
            Record.date >= day_start,
            Record.date < day_start + timedelta(days=1),
            order_by=Record.date.desc(),
        )
        for row in rows:
            if row.clock_session or row.is_clock_entry:
                return row
        return None

    def todays_clock_record(self, goal_id) -> Optional[RecordRead]:
        with self._lock:
            row = self._clock_record_on(goal_id, self.now())
            return RecordRead.model_validate(row) if row is not None else None

    def create_and_clock_in(self, goal_id, time: datetime) -> RecordRead:
        time = to_local_naive(time, self._tz_name)
        with self._lock:
            self._check_goal_id(goal_id)
            now = self.now()
            if self._clock_record_on(goal_id, now) is not None:
                raise ClockStateError("A clock session already exists for today")
            record = Record(
                goal_id=goal_id,
                date=start_of_day(now),
                duration_minutes=0,
                clock_in_time=time,
                clock_session=True,
                created_at=now,
            )
            record.calculate_work_duration()
            logger.info("Clocked in at %s", clock_display(time))
            return self._insert_record(record)

    def _save_record(self, record: Record) -> RecordRead:
        self._store.save()
        self._refresh()
        return RecordRead.model_validate(record)

    def clock_in(self, record_id, time: datetime) -> RecordRead:
        time = to_local_naive(time, self._tz_name)
        with self._lock:
            record = self._get_record(record_id)
            if record.clock_in_time is not None:
                raise ClockStateError("Record is already clocked in")
            other = self._clock_record_on(record.goal_id, record.date)
            if other is not None and other.id != record.id:
                raise ClockStateError("A clock session already exists for that day")
            record.clock_in_time = time
            record.clock_session = True
            record.calculate_work_duration()
            logger.info("Clocked in at %s", clock_display(time))
            return self._save_record(record)

    def clock_out(self, record_id, time: datetime) -> RecordRead:
        time = to_local_naive(time, self._tz_name)
        with self._lock:
            record = self._get_record(record_id)
            if record.clock_in_time is None:
                raise ClockStateError("Clock in before clocking out")
            if record.clock_out_time is not None:
                raise ClockStateError("Record is already clocked out")
            record.clock_out_time = time
            work = record.calculate_work_duration()
            # Finished sessions count towards the weekly goal
            if work > 0:
                record.duration_minutes = work
            logger.info("Clocked out at %s after %s", clock_display(time), format_duration(work))
            return self._save_record(record)

    def reset_clock(self, record_id) -> RecordRead:
        with self._lock:
            record = self._get_record(record_id)
            if not record.is_clock_entry:
                raise ClockStateError("Record has no clock times to reset")
            record.clock_in_time = None
            record.clock_out_time = None
            record.work_duration_minutes = 0
            logger.info("Clock session on record %s reset", record_id)
            return self._save_record(record)

    def clock_status(self, goal_id) -> ClockStatus:
        with self._lock:
            now = self.now()
            row = self._clock_record_on(goal_id, now)
            if row is None:
                return ClockStatus(
                    state=CLOCK_NONE,
                    clock_in=clock_display(None),
                    clock_out=clock_display(None),
                    elapsed_minutes=0,
                )
            state = row.clock_state
            if state == CLOCK_IN:
                elapsed = max(0, floor_minutes(row.clock_in_time, now))
            elif state == CLOCK_OUT:
                elapsed = row.work_duration_minutes
            else:
                elapsed = 0
            return ClockStatus(
                state=state,
                record=RecordRead.model_validate(row),
                clock_in=row.clock_in_display,
                clock_out=row.clock_out_display,
                elapsed_minutes=elapsed,
            )

    # ---------- Statistics ---------- #

    def daily_stats(self) -> list[aggregation.DailyTotal]:
        snap = self._snapshot
        if snap.cycle is None:
            return []
        return aggregation.daily_stats(snap.current_week_records, snap.cycle)

    def daily_work_stats(self) -> list[aggregation.DailyTotal]:
        snap = self._snapshot
        if snap.cycle is None:
            return []
        return aggregation.daily_work_stats(snap.current_week_records, snap.cycle)

    def today_work_duration(self, goal_id) -> int:
        return aggregation.today_work_duration(self._snapshot.todays_records, goal_id)

    def week_summary(self) -> WeekSummary:
        snap = self._snapshot
        goal = snap.current_goal
        if goal is None or snap.cycle is None:
            raise InvalidInputError("No active goal")

        def points(totals):
            return [
                DailyMinutes(date=t.date, weekday=t.weekday.short_name, minutes=t.minutes)
                for t in totals
            ]

        progress = snap.current_week_progress
        remaining = max(0, goal.weekly_target_minutes - progress)
        return WeekSummary(
            cycle_start=snap.cycle.start,
            cycle_end=snap.cycle.end,
            cycle_name=snap.cycle.display_name,
            week_number=snap.cycle.week_number,
            target_minutes=goal.weekly_target_minutes,
            progress_minutes=progress,
            remaining_minutes=remaining,
            progress=progress / goal.weekly_target_minutes,
            progress_display=format_duration(progress),
            remaining_display=format_duration(remaining),
            today_minutes=aggregation.week_progress_minutes(snap.todays_records),
            today_work_minutes=aggregation.today_work_duration(snap.todays_records, goal.id),
            record_count=len(snap.current_week_records),
            daily=points(aggregation.daily_stats(snap.current_week_records, snap.cycle)),
            daily_work=points(aggregation.daily_work_stats(snap.current_week_records, snap.cycle)),
        )
