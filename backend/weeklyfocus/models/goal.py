import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from weeklyfocus.core.cycle import WeekDay
from weeklyfocus.core.constants import DEFAULT_GOAL_TITLE, DEFAULT_WEEKLY_TARGET_MINUTES
from weeklyfocus.db import Base


class Goal(Base):
    __tablename__ = "goals"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    title = Column(String, nullable=False, default=DEFAULT_GOAL_TITLE)

    weekly_target_minutes = Column(
        Integer,
        nullable=False,
        default=DEFAULT_WEEKLY_TARGET_MINUTES,
    )

    # 0 = Sunday ... 6 = Saturday
    week_start_day = Column(Integer, nullable=False, default=int(WeekDay.monday))

    created_at = Column(DateTime, nullable=False, default=datetime.now)

    # Only one goal is active; enforced by load-or-create-default
    is_active = Column(Boolean, nullable=False, default=True, index=True)
