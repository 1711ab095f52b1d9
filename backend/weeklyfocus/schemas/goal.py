from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from weeklyfocus.core.cycle import WeekDay


class GoalBase(BaseModel):
    title: str
    weekly_target_minutes: int
    week_start_day: WeekDay


class GoalRead(GoalBase):
    id: str
    created_at: datetime
    is_active: bool

    model_config = ConfigDict(from_attributes=True, frozen=True)


class GoalUpdate(BaseModel):
    # Positivity is checked again by the tracker; UI clamping is not ours
    weekly_target_minutes: int = Field(gt=0)
    week_start_day: WeekDay
