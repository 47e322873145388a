"""Überschneidungsprüfung für Zeitslots eines Wochentags.

Slots sind halboffene Intervalle [start, end): ein Slot, der genau dann
endet, wenn der nächste beginnt, ist KEIN Konflikt.
"""

import logging
from typing import Iterable, Optional, TypeVar

from timetable.errors import ValidationError
from timetable.time_utils import day_to_number, normalize_time, time_to_minutes

logger = logging.getLogger(__name__)

SlotT = TypeVar("SlotT")


def intervals_overlap(new_start: int, new_end: int, start: int, end: int) -> bool:
    """Überschneidung zweier Minuten-Intervalle [new_start, new_end) / [start, end)."""
    return (
        (start <= new_start < end)            # beginnt während des bestehenden Slots
        or (start < new_end <= end)           # endet während des bestehenden Slots
        or (new_start <= start and new_end >= end)  # umschließt den bestehenden Slot
    )


def _candidate_minutes(start_time: str, end_time: str) -> tuple[int, int]:
    start = normalize_time(start_time)
    end = normalize_time(end_time)
    if not start:
        raise ValidationError(f"Ungültige Startzeit: {start_time!r}", field="start_time")
    if not end:
        raise ValidationError(f"Ungültige Endzeit: {end_time!r}", field="end_time")
    start_min, end_min = time_to_minutes(start), time_to_minutes(end)
    if start_min >= end_min:
        raise ValidationError(
            f"Startzeit {start} muss vor Endzeit {end} liegen", field="end_time"
        )
    return start_min, end_min


def find_conflict(
    start_time: str,
    end_time: str,
    day_of_week,
    existing_slots: Iterable[SlotT],
    exclude_id: Optional[str] = None,
    section_id: Optional[str] = None,
) -> Optional[SlotT]:
    """Gibt den ersten bestehenden Slot zurück, der sich mit dem Kandidaten
    überschneidet, sonst None.

    existing_slots: Objekte mit id, start_time, end_time, day_of_week
    (und section_id, falls nach Lerngruppe gefiltert wird).
    exclude_id: ID des gerade bearbeiteten Slots (kein Konflikt mit sich selbst).
    """
    day = day_to_number(day_of_week)
    if day is None:
        raise ValidationError(f"Unbekannter Wochentag: {day_of_week!r}", field="day_of_week")
    new_start, new_end = _candidate_minutes(start_time, end_time)

    for slot in existing_slots:
        if exclude_id is not None and slot.id == exclude_id:
            continue
        if day_to_number(slot.day_of_week) != day:
            continue
        if section_id is not None and getattr(slot, "section_id", None) != section_id:
            continue

        start, end = normalize_time(slot.start_time), normalize_time(slot.end_time)
        if not start or not end:
            logger.warning(f"Slot {slot.id} mit ungültiger Uhrzeit übersprungen")
            continue
        if intervals_overlap(new_start, new_end, time_to_minutes(start), time_to_minutes(end)):
            return slot
    return None


def has_conflict(
    start_time: str,
    end_time: str,
    day_of_week,
    existing_slots: Iterable,
    exclude_id: Optional[str] = None,
    section_id: Optional[str] = None,
) -> bool:
    """True wenn der Kandidat mit einem bestehenden Slot kollidiert."""
    return find_conflict(
        start_time, end_time, day_of_week, existing_slots,
        exclude_id=exclude_id, section_id=section_id,
    ) is not None
