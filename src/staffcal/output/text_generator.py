"""Plain-text output for schedule views.

This module renders computed views for terminals and logs:
- Day view with its primary/secondary lists and notes
- Week view as one block per day
- Month view as a Sunday-first grid of working counts
- A single person's week
"""

from pathlib import Path
from typing import Optional, Union

from staffcal.domain.calendar_util import DAY_NAMES
from staffcal.domain.models import (
    DaySchedule,
    EngineConfig,
    MonthSchedule,
    MyScheduleDay,
    ResolvedDayStatus,
)
from staffcal.domain.policies import GroupingPolicy, WeekdayWeekendGroupingPolicy
from staffcal.scheduling.schedule_service import (
    DAY_VIEW,
    MONTH_VIEW,
    MY_SCHEDULE_VIEW,
    WEEK_VIEW,
    ViewResult,
)

WIDTH = 72


class TextGenerator:
    """Generates text renderings of schedule views.

    Example:
        >>> generator = TextGenerator()
        >>> print(generator.generate_to_string(service.get_view("week", date(2024, 2, 7))))
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        grouping_policy: Optional[GroupingPolicy] = None,
    ):
        self.config = config or EngineConfig()
        self.grouping_policy = (
            grouping_policy or WeekdayWeekendGroupingPolicy.from_config(self.config)
        )

    def generate(
        self,
        result: ViewResult,
        output_path: Union[str, Path],
        person_name: str = "",
    ) -> str:
        """Render a view and save it to a file.

        Returns:
            The generated text content.
        """
        content = self.generate_to_string(result, person_name)
        Path(output_path).write_text(content, encoding="utf-8")
        return content

    def generate_to_string(self, result: ViewResult, person_name: str = "") -> str:
        """Render any view result.

        Raises:
            ValueError: If the result's view is unknown.
        """
        if result.view == DAY_VIEW:
            return self.render_day(result.data)
        if result.view == WEEK_VIEW:
            return self.render_week(result.data)
        if result.view == MONTH_VIEW:
            return self.render_month(result.data)
        if result.view == MY_SCHEDULE_VIEW:
            return self.render_my_schedule(
                result.data, person_name or result.person_id or ""
            )
        raise ValueError(f"Unknown view {result.view!r}")

    def render_day(self, day: DaySchedule) -> str:
        lines = self._banner(self._day_title(day))
        lines.extend(self._day_body(day))
        return "\n".join(lines)

    def render_week(self, week: list[DaySchedule]) -> str:
        if not week:
            return ""
        lines = self._banner(
            f"WEEK OF {week[0].schedule_date.strftime('%B %d, %Y').upper()}"
        )
        for day in week:
            lines.append("-" * WIDTH)
            lines.append(self._day_title(day))
            lines.append("-" * WIDTH)
            lines.extend(self._day_body(day))
        return "\n".join(lines)

    def render_month(
        self,
        month: MonthSchedule,
        staffing: Optional[list[int]] = None,
    ) -> str:
        """Sunday-first grid; each cell shows the day and its working count."""
        if staffing is None:
            staffing = [
                sum(1 for s in day.staff if self.config.is_working(s.status))
                for day in month.days
            ]

        lines = self._banner(month.month_start.strftime("%B %Y").upper())
        lines.append(" ".join(f"{name[:3]:>9}" for name in DAY_NAMES))

        cells = ["" for _ in range(month.leading_blank_days)]
        for day, count in zip(month.days, staffing):
            marker = "*" if day.is_today else " "
            cells.append(f"{day.schedule_date.day:>2}{marker}({count:>3})")
        cells.extend("" for _ in range(month.total_weeks * 7 - len(cells)))

        for week in range(month.total_weeks):
            row = cells[week * 7 : week * 7 + 7]
            lines.append(" ".join(f"{cell:>9}" for cell in row))

        holidays = [(d.schedule_date, d.holiday) for d in month.days if d.holiday]
        if holidays:
            lines.append("")
            for d, name in holidays:
                lines.append(f"{d.isoformat()}  {name}")
        return "\n".join(lines)

    def render_my_schedule(self, days: list[MyScheduleDay], person_name: str = "") -> str:
        title = f"MY SCHEDULE - {person_name}" if person_name else "MY SCHEDULE"
        lines = self._banner(title)
        for day in days:
            marker = "*" if day.is_today else " "
            lines.append(
                f"{marker}{day.schedule_date.strftime('%a %b %d'):<12} {day.display_status}"
            )
        return "\n".join(lines)

    def _day_title(self, day: DaySchedule) -> str:
        title = day.schedule_date.strftime("%A, %B %d, %Y")
        if day.holiday:
            title += f" - {day.holiday}"
        if day.is_today:
            title += " (today)"
        return title

    def _day_body(self, day: DaySchedule) -> list[str]:
        lists = self.grouping_policy.partition(day.schedule_date, day.staff)
        lines = []
        if day.notes:
            lines.append(f"Notes: {day.notes}")
        for header, entries in (
            (lists.primary_header, lists.primary),
            (lists.secondary_header, lists.secondary),
        ):
            lines.append(f"{header} ({len(entries)}):")
            if not entries:
                lines.append("    -")
            for entry in entries:
                lines.append(self._entry_line(entry))
        lines.append("")
        return lines

    def _entry_line(self, entry: ResolvedDayStatus) -> str:
        zone = f" [{entry.zone_name}]" if entry.zone_name else ""
        return f"    {entry.name[:28]:<28} {entry.display_status}{zone}"

    def _banner(self, title: str) -> list[str]:
        return ["=" * WIDTH, title, "=" * WIDTH]
