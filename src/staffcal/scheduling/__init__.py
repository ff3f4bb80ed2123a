"""Schedule resolution engine: per-person resolution and period views."""

from staffcal.scheduling.override_lookup import DailyOverrideLookup, OverrideSnapshot
from staffcal.scheduling.period_aggregator import PeriodAggregator
from staffcal.scheduling.resolver import ScheduleResolver
from staffcal.scheduling.rule_matcher import RecurringRuleMatcher
from staffcal.scheduling.schedule_service import (
    DAY_VIEW,
    MONTH_VIEW,
    MY_SCHEDULE_VIEW,
    VIEWS,
    WEEK_VIEW,
    LiveScheduleView,
    ScheduleService,
    ScheduleSnapshot,
    ViewResult,
    view_range,
)

__all__ = [
    # Core resolution
    "RecurringRuleMatcher",
    "DailyOverrideLookup",
    "OverrideSnapshot",
    "ScheduleResolver",
    "PeriodAggregator",
    # Service
    "ScheduleService",
    "ScheduleSnapshot",
    "LiveScheduleView",
    "ViewResult",
    "view_range",
    # View names
    "DAY_VIEW",
    "WEEK_VIEW",
    "MONTH_VIEW",
    "MY_SCHEDULE_VIEW",
    "VIEWS",
]
