"""Domain models and business rules for schedule resolution."""

from staffcal.domain.calendar_util import (
    DAY_NAMES,
    as_date,
    day_of_week,
    holiday_name,
    is_weekend,
    iso_week_number,
    start_of_month,
    start_of_week,
    to_date_key,
)
from staffcal.domain.models import (
    NOT_SCHEDULED,
    OFF,
    SCHEDULED,
    VACATION,
    DailyOverrideEntry,
    DailyStatus,
    DaySchedule,
    DayScheduleDocument,
    DayViewLists,
    EngineConfig,
    MonthSchedule,
    MyScheduleDay,
    Person,
    RecurringRule,
    ResolvedDayStatus,
    RuleFrequency,
    StatusSource,
    format_name_compact,
    format_status,
)
from staffcal.domain.policies import (
    DefaultStatusPolicy,
    FirstMatchSelectionPolicy,
    GroupingPolicy,
    RuleSelectionPolicy,
    StatusPolicy,
    WeekdayWeekendGroupingPolicy,
    pick_first_match,
)

__all__ = [
    # Calendar
    "DAY_NAMES",
    "as_date",
    "day_of_week",
    "holiday_name",
    "is_weekend",
    "iso_week_number",
    "start_of_month",
    "start_of_week",
    "to_date_key",
    # Models
    "NOT_SCHEDULED",
    "OFF",
    "SCHEDULED",
    "VACATION",
    "DailyOverrideEntry",
    "DailyStatus",
    "DaySchedule",
    "DayScheduleDocument",
    "DayViewLists",
    "EngineConfig",
    "MonthSchedule",
    "MyScheduleDay",
    "Person",
    "RecurringRule",
    "ResolvedDayStatus",
    "RuleFrequency",
    "StatusSource",
    "format_name_compact",
    "format_status",
    # Policies
    "DefaultStatusPolicy",
    "FirstMatchSelectionPolicy",
    "GroupingPolicy",
    "RuleSelectionPolicy",
    "StatusPolicy",
    "WeekdayWeekendGroupingPolicy",
    "pick_first_match",
]
