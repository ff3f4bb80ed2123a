"""PDF generation for printable schedule sheets.

This module creates printable PDF sheets showing:
- A week sheet: one row per person, one column per day
- A month sheet: a Sunday-first calendar grid with daily working counts
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from staffcal.domain.calendar_util import DAY_NAMES
from staffcal.domain.models import (
    DaySchedule,
    EngineConfig,
    MonthSchedule,
    ResolvedDayStatus,
)
from staffcal.scheduling.schedule_service import MONTH_VIEW, WEEK_VIEW, ViewResult

# Color definitions (RGB tuples, 0-1 scale)
COLORS = {
    "working": (0.75, 0.9, 0.75),  # Green
    "off": (0.92, 0.92, 0.92),  # Light gray
    "custom": (1.0, 0.9, 0.6),  # Yellow
    "today": (0.8, 0.87, 1.0),  # Light blue
    "grid": (0.6, 0.6, 0.6),
}


def _load_reportlab():
    try:
        from reportlab.lib.pagesizes import landscape, letter
        from reportlab.pdfgen import canvas
    except ImportError:
        raise ImportError(
            "reportlab is required for PDF generation. "
            "Install with: pip install reportlab"
        )
    return canvas, landscape(letter)


class PDFGenerator:
    """Generates printable week and month schedule sheets.

    Example:
        >>> generator = PDFGenerator()
        >>> generator.generate(service.get_view("week", date(2024, 2, 7)), "week.pdf")
    """

    def __init__(
        self,
        page_width: float = 792,  # Letter landscape width (11")
        page_height: float = 612,  # Letter landscape height (8.5")
        margin: float = 36,  # 0.5 inch margins
        config: Optional[EngineConfig] = None,
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin
        self.config = config or EngineConfig()

    def generate(self, result: ViewResult, output_path: Union[str, Path]) -> None:
        """Generate a PDF sheet for a week or month view and save to file.

        Raises:
            ImportError: If reportlab is not installed.
            ValueError: If the view is not a week or month view.
        """
        canvas, pagesize = _load_reportlab()
        c = canvas.Canvas(str(output_path), pagesize=pagesize)
        self._draw(c, result)
        c.save()

    def generate_to_buffer(self, result: ViewResult) -> BytesIO:
        """Generate a PDF sheet and return it as a bytes buffer."""
        canvas, pagesize = _load_reportlab()
        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=pagesize)
        self._draw(c, result)
        c.save()
        buffer.seek(0)
        return buffer

    def _draw(self, c, result: ViewResult) -> None:
        if result.view == WEEK_VIEW:
            self._draw_week_pages(c, result.data)
        elif result.view == MONTH_VIEW:
            self._draw_month_page(c, result.data)
        else:
            raise ValueError(
                f"PDF sheets are available for week and month views, not {result.view!r}"
            )

    def _cell_color(self, entry: Optional[ResolvedDayStatus]) -> tuple:
        if entry is None:
            return COLORS["off"]
        if entry.has_custom_hours:
            return COLORS["custom"]
        if self.config.is_working(entry.status):
            return COLORS["working"]
        return COLORS["off"]

    def _draw_week_pages(self, c, week: list[DaySchedule]) -> None:
        """Draw the week sheet, paginating the roster."""
        if not week:
            c.showPage()
            return

        people = [(s.person_id, s.name) for s in week[0].staff]

        row_height = 20
        header_height = 60
        footer_height = 40
        name_width = 130
        usable_height = (
            self.page_height - 2 * self.margin - header_height - footer_height
        )
        rows_per_page = max(1, int(usable_height / row_height) - 1)
        col_width = (self.page_width - 2 * self.margin - name_width) / len(week)
        total_pages = max(1, (len(people) + rows_per_page - 1) // rows_per_page)

        for page in range(total_pages):
            page_people = people[page * rows_per_page : (page + 1) * rows_per_page]
            top = self.page_height - self.margin

            c.setFont("Helvetica-Bold", 16)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(
                self.margin,
                top - 20,
                f"Weekly Schedule - {week[0].schedule_date.strftime('%B %d')} to "
                f"{week[-1].schedule_date.strftime('%B %d, %Y')}",
            )

            # Column headers
            y = top - header_height
            c.setFont("Helvetica-Bold", 9)
            c.drawString(self.margin, y + 6, "Name")
            for i, day in enumerate(week):
                x = self.margin + name_width + i * col_width
                if day.is_today:
                    c.setFillColorRGB(*COLORS["today"])
                    c.rect(x, y, col_width, row_height, fill=1, stroke=0)
                    c.setFillColorRGB(0, 0, 0)
                label = f"{DAY_NAMES[i][:3]} {day.schedule_date.day}"
                c.drawCentredString(x + col_width / 2, y + 6, label)

            c.setFont("Helvetica", 8)
            for person_id, name in page_people:
                y -= row_height
                c.setFillColorRGB(0, 0, 0)
                c.drawString(self.margin, y + 6, name[:24])
                for i, day in enumerate(week):
                    entry = day.get_entry(person_id)
                    x = self.margin + name_width + i * col_width
                    c.setFillColorRGB(*self._cell_color(entry))
                    c.setStrokeColorRGB(*COLORS["grid"])
                    c.rect(x, y, col_width, row_height, fill=1, stroke=1)
                    c.setFillColorRGB(0, 0, 0)
                    text = entry.display_status if entry else ""
                    c.drawCentredString(x + col_width / 2, y + 6, text[:22])

            self._draw_legend(c, self.margin, self.margin + 10)
            c.setFont("Helvetica", 9)
            c.drawCentredString(
                self.page_width / 2,
                self.margin - 10,
                f"Page {page + 1} of {total_pages}",
            )
            c.showPage()

    def _draw_month_page(self, c, month: MonthSchedule) -> None:
        """Draw the month grid with working counts, holidays and notes flags."""
        top = self.page_height - self.margin
        c.setFont("Helvetica-Bold", 16)
        c.setFillColorRGB(0, 0, 0)
        c.drawString(self.margin, top - 20, month.month_start.strftime("%B %Y"))

        grid_top = top - 50
        col_width = (self.page_width - 2 * self.margin) / 7
        row_height = (grid_top - self.margin - 20) / month.total_weeks

        c.setFont("Helvetica-Bold", 9)
        for i, name in enumerate(DAY_NAMES):
            c.drawCentredString(self.margin + i * col_width + col_width / 2, grid_top + 5, name)

        for index, day in enumerate(month.days):
            cell = month.leading_blank_days + index
            row, col = divmod(cell, 7)
            x = self.margin + col * col_width
            y = grid_top - (row + 1) * row_height

            color = COLORS["today"] if day.is_today else (1, 1, 1)
            c.setFillColorRGB(*color)
            c.setStrokeColorRGB(*COLORS["grid"])
            c.rect(x, y, col_width, row_height, fill=1, stroke=1)

            c.setFillColorRGB(0, 0, 0)
            c.setFont("Helvetica-Bold", 10)
            c.drawString(x + 4, y + row_height - 12, str(day.schedule_date.day))

            working = sum(1 for s in day.staff if self.config.is_working(s.status))
            c.setFont("Helvetica", 8)
            c.drawString(x + 4, y + row_height - 26, f"Working: {working}")
            if day.holiday:
                c.drawString(x + 4, y + row_height - 38, day.holiday[:20])
            if day.notes:
                c.drawString(x + 4, y + 4, "Notes")

        c.showPage()

    def _draw_legend(self, c, x: float, y: float) -> None:
        """Draw legend for cell colors."""
        c.setFont("Helvetica-Bold", 8)
        c.setFillColorRGB(0, 0, 0)
        c.drawString(x, y, "Legend:")

        items = [
            ("working", "Working"),
            ("off", "Off"),
            ("custom", "Custom hours"),
            ("today", "Today"),
        ]

        c.setFont("Helvetica", 7)
        current_x = x + 45
        for key, label in items:
            c.setFillColorRGB(*COLORS[key])
            c.rect(current_x, y - 2, 12, 10, fill=1, stroke=1)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(current_x + 15, y, label)
            current_x += 80
