"""Renderer für die Terminal-Anzeige des Wochenplans (Rich)."""

from typing import Optional

from models.time_slot import TimeSlot
from timetable.time_utils import format_time_display


def render_week_rows(
    slots: list[TimeSlot], days: Optional[list[str]] = None
) -> list[list[str]]:
    """Tabellenzeilen für den Wochenplan einer Lerngruppe.

    Jede Zeile: [time_label, <Tag 1>, <Tag 2>, …]; leere Zellen sind '—'.
    Zeilen entstehen aus allen vorkommenden Start/Ende-Paaren.
    """
    from export.helpers import build_grid, format_slot, time_rows, visible_days

    days = days or visible_days(slots)
    grid = build_grid(slots)
    rows: list[list[str]] = []
    for start, end in time_rows(slots):
        cells = [f"{start}–{end}"]
        for day in days:
            here = grid.get((day, start, end), [])
            cells.append("\n".join(format_slot(s) for s in here) if here else "—")
        rows.append(cells)
    return rows


def render_day_rows(slots: list[TimeSlot], day: str, twelve_hour: bool = False) -> list[list[str]]:
    """Tagesansicht: [Zeit, Typ, Bezeichnung, Lehrkraft] je Slot des Tages."""
    rows = []
    for s in sorted((s for s in slots if s.day_of_week == day), key=lambda s: s.start_time):
        if twelve_hour:
            time_label = f"{format_time_display(s.start_time)}–{format_time_display(s.end_time)}"
        else:
            time_label = f"{s.start_time}–{s.end_time}"
        rows.append([time_label, s.slot_type.value, s.label, s.teacher_id or "—"])
    return rows
