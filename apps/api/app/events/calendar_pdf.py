"""Printable event calendars (monthly grid and yearly sales calendar)."""

from __future__ import annotations

import calendar
import io
import logging
from collections import defaultdict
from datetime import datetime
from typing import Optional, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import landscape, letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.common.models import CULTO, Event

logger = logging.getLogger(__name__)

MONTH_NAMES = [
    "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
    "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
]
# Sunday first, like a printed church calendar
DAY_NAMES = ["Domingo", "Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado"]

EVENT_COLORS = {
    "Evangelismo": "#1B5E20",
    "Culto": "#0D47A1",
    "Reunión": "#E65100",
    "Jornada": "#4A148C",
    "Conferencia": "#880E4F",
    "Retiro": "#006064",
    "Ventas": "#F9A825",
}
DEFAULT_EVENT_COLOR = "#424242"

MONTH_HEADER_COLORS = [
    "#0D47A1", "#1565C0", "#D32F2F", "#0D47A1", "#1976D2", "#F9A825",
    "#0D47A1", "#2E7D32", "#6A1B9A", "#E65100", "#00838F", "#AD1457",
]

DEFAULT_CHURCH_NAME = "Gestión Cristiana"


def month_name(month: int) -> str:
    return MONTH_NAMES[month - 1]


def _sunday_first_weekday(value: datetime) -> int:
    # datetime.weekday() is Monday=0
    return (value.weekday() + 1) % 7


def calendar_weeks(year: int, month: int) -> list[list[Optional[int]]]:
    """Weeks of the month as 7-slot rows, Sunday first; None pads the edges."""
    cal = calendar.Calendar(firstweekday=6)
    return [
        [day or None for day in week]
        for week in cal.monthdayscalendar(year, month)
    ]


class CalendarPDFGenerator:
    """Render event calendars with reportlab."""

    def __init__(self, church_name: Optional[str] = None):
        self.church_name = church_name or DEFAULT_CHURCH_NAME
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        self.styles.add(
            ParagraphStyle(
                name="CalendarTitle",
                parent=self.styles["Title"],
                fontSize=20,
                textColor=colors.HexColor("#0D47A1"),
                spaceAfter=4,
            )
        )
        self.styles.add(
            ParagraphStyle(
                name="CalendarSubtitle",
                parent=self.styles["Normal"],
                fontSize=10,
                alignment=TA_CENTER,
                textColor=colors.HexColor("#555555"),
            )
        )
        self.styles.add(
            ParagraphStyle(name="Cell", parent=self.styles["Normal"], fontSize=6.5, leading=8)
        )
        self.styles.add(
            ParagraphStyle(
                name="HeaderCell",
                parent=self.styles["Normal"],
                fontName="Helvetica-Bold",
                fontSize=9,
                alignment=TA_CENTER,
                textColor=colors.white,
            )
        )

    def _document(self, buffer: io.BytesIO, title: str) -> SimpleDocTemplate:
        return SimpleDocTemplate(
            buffer,
            pagesize=landscape(letter),
            leftMargin=25,
            rightMargin=25,
            topMargin=25,
            bottomMargin=20,
            title=title,
            author=DEFAULT_CHURCH_NAME,
        )

    def _event_line(self, event: Event, role_names: dict[int, str]) -> str:
        color = EVENT_COLORS.get(event.event_type, DEFAULT_EVENT_COLOR)
        line = (
            f'<font color="{color}"><b>{event.start_date:%H:%M}</b> '
            f"{escape(event.title)}</font>"
        )
        if event.event_type == CULTO:
            roles = [
                f"{label}: {escape(role_names[member_id])}"
                for label, member_id in (
                    ("P", event.preacher_id),
                    ("D", event.worship_leader_id),
                    ("C", event.singer_id),
                )
                if member_id and member_id in role_names
            ]
            if roles:
                line += f'<br/><font color="{color}" size="5.5">{" ".join(roles)}</font>'
        return line

    def monthly(
        self,
        year: int,
        month: int,
        events: Sequence[Event],
        role_names: Optional[dict[int, str]] = None,
    ) -> bytes:
        """
        Generate the monthly calendar grid.

        Args:
            year: Calendar year
            month: Month 1-12
            events: Events overlapping the month, any order
            role_names: First names of Culto role assignees by member id

        Returns:
            PDF file content as bytes
        """
        role_names = role_names or {}
        buffer = io.BytesIO()
        title = f"Calendario {month_name(month)} {year}"
        doc = self._document(buffer, f"{title} - {self.church_name}")

        # Multi-day events are listed on their start day only
        by_day: dict[int, list[Event]] = defaultdict(list)
        for event in sorted(events, key=lambda e: e.start_date):
            if event.start_date.year == year and event.start_date.month == month:
                by_day[event.start_date.day].append(event)

        header = [Paragraph(name, self.styles["HeaderCell"]) for name in DAY_NAMES]
        rows = [header]
        for week in calendar_weeks(year, month):
            row = []
            for day in week:
                if day is None:
                    row.append("")
                    continue
                lines = [f"<b>{day}</b>"]
                lines.extend(self._event_line(event, role_names) for event in by_day.get(day, []))
                row.append(Paragraph("<br/>".join(lines), self.styles["Cell"]))
            rows.append(row)

        width = doc.width / 7
        body_height = (doc.height - 90) / max(len(rows) - 1, 1)
        table = Table(
            rows,
            colWidths=[width] * 7,
            rowHeights=[20] + [body_height] * (len(rows) - 1),
        )
        style = [
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1E88E5")),
            ("BACKGROUND", (0, 0), (0, 0), colors.HexColor("#1565C0")),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#CCCCCC")),
            ("VALIGN", (0, 1), (-1, -1), "TOP"),
            ("VALIGN", (0, 0), (-1, 0), "MIDDLE"),
        ]
        for week_index, week in enumerate(calendar_weeks(year, month), start=1):
            for col, day in enumerate(week):
                if day is None:
                    style.append(("BACKGROUND", (col, week_index), (col, week_index), colors.HexColor("#F0F0F0")))
        table.setStyle(TableStyle(style))

        story = [
            Paragraph(f"{escape(self.church_name)}", self.styles["CalendarTitle"]),
            Paragraph(f"Calendario de Eventos: {month_name(month).upper()} {year}", self.styles["CalendarSubtitle"]),
            Spacer(1, 8),
            table,
        ]
        doc.build(story)
        buffer.seek(0)
        logger.info(f"Rendered calendar {year}-{month:02d} with {len(events)} events")
        return buffer.read()

    def sales(self, year: int, events: Sequence[Event]) -> bytes:
        """
        Generate the yearly sales calendar: one column per month with sales.

        Args:
            year: Calendar year
            events: "Ventas" events of the year

        Returns:
            PDF file content as bytes
        """
        buffer = io.BytesIO()
        doc = self._document(buffer, f"Calendario de Ventas {year} - {self.church_name}")

        by_month: dict[int, list[Event]] = defaultdict(list)
        for event in sorted(events, key=lambda e: e.start_date):
            by_month[event.start_date.month].append(event)

        story = [
            Paragraph(f"CALENDARIO DE VENTAS {year}", self.styles["CalendarTitle"]),
            Paragraph(escape(self.church_name), self.styles["CalendarSubtitle"]),
            Spacer(1, 10),
        ]

        if not by_month:
            story.append(
                Paragraph(
                    'No hay eventos de tipo "Ventas" registrados para este año.',
                    self.styles["CalendarSubtitle"],
                )
            )
            doc.build(story)
            buffer.seek(0)
            return buffer.read()

        months = sorted(by_month)
        header = [Paragraph(month_name(m).upper(), self.styles["HeaderCell"]) for m in months]
        depth = max(len(by_month[m]) for m in months)
        rows = [header]
        for index in range(depth):
            row = []
            for m in months:
                month_events = by_month[m]
                if index >= len(month_events):
                    row.append("")
                    continue
                event = month_events[index]
                weekday = DAY_NAMES[_sunday_first_weekday(event.start_date)].upper()
                row.append(
                    Paragraph(
                        f'<font size="12"><b>{event.start_date.day}</b></font> '
                        f"<b>{escape(event.title or 'Ventas')}</b><br/>"
                        f'<font size="5.5" color="#666666">{weekday}</font>',
                        self.styles["Cell"],
                    )
                )
            rows.append(row)

        table = Table(rows, colWidths=[doc.width / len(months)] * len(months), repeatRows=1)
        style = [
            ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#CCCCCC")),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]
        for col, m in enumerate(months):
            style.append(
                ("BACKGROUND", (col, 0), (col, 0), colors.HexColor(MONTH_HEADER_COLORS[m - 1]))
            )
        table.setStyle(TableStyle(style))
        story.append(table)

        doc.build(story)
        buffer.seek(0)
        logger.info(f"Rendered sales calendar {year} with {len(events)} events")
        return buffer.read()
