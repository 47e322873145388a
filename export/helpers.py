"""Gemeinsame Hilfsfunktionen für Terminal- und Excel-Ausgabe."""

from collections import defaultdict
from datetime import date

from models.time_slot import SlotType, TimeSlot, WeekDay

# ─── Farbpalette (RRGGBB, ohne #) ─────────────────────────────────────────────

COLORS: dict[str, str] = {
    "subject": "B3D4FF",
    "break":   "DDDDDD",
    "event":   "FFF2B3",
    "free":    "F5F5F5",
    "header":  "4472C4",
}

_WORK_DAYS = [WeekDay.MONDAY, WeekDay.TUESDAY, WeekDay.WEDNESDAY,
              WeekDay.THURSDAY, WeekDay.FRIDAY]


def today_str() -> str:
    """Gibt das heutige Datum als DD.MM.YYYY zurück."""
    return date.today().strftime("%d.%m.%Y")


def slot_color(slot: TimeSlot) -> str:
    return COLORS[slot.slot_type.value]


def visible_days(slots: list[TimeSlot]) -> list[str]:
    """Mo–Fr immer; Sa/So nur, wenn dort Slots liegen."""
    used = {s.day_of_week for s in slots}
    days = list(_WORK_DAYS)
    for weekend in (WeekDay.SATURDAY, WeekDay.SUNDAY):
        if weekend in used:
            days.append(weekend)
    return [d.value for d in days]


def time_rows(slots: list[TimeSlot]) -> list[tuple[str, str]]:
    """Alle vorkommenden (start, end)-Paare, chronologisch."""
    return sorted({(s.start_time, s.end_time) for s in slots})


def build_grid(slots: list[TimeSlot]) -> dict[tuple[str, str, str], list[TimeSlot]]:
    """{(day, start, end): [slots]} für eine Lerngruppe."""
    grid: dict[tuple[str, str, str], list[TimeSlot]] = defaultdict(list)
    for s in slots:
        grid[(s.day_of_week.value, s.start_time, s.end_time)].append(s)
    return grid


def format_slot(slot: TimeSlot) -> str:
    """Zelleninhalt: Titel, bei Fach-Slots mit Lehrkraft in der zweiten Zeile."""
    if slot.slot_type == SlotType.SUBJECT:
        text = slot.title or slot.subject_id or "Unbekanntes Fach"
        return f"{text}\n{slot.teacher_id}" if slot.teacher_id else text
    return slot.title or slot.slot_type.value
