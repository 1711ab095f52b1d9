from fastapi import APIRouter, Depends

from weeklyfocus.api.deps import get_tracker
from weeklyfocus.schemas.stats import WeekSummary
from weeklyfocus.services.tracker import FocusTracker

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/week", response_model=WeekSummary)
def get_week_summary(tracker: FocusTracker = Depends(get_tracker)):
    """Progress against the weekly target plus per-day totals."""
    return tracker.week_summary()
