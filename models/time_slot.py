"""Datenmodell für einen Zeitslot im Wochenplan einer Lerngruppe (Pydantic v2)."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class WeekDay(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


class SlotType(str, Enum):
    """Art des Slots: bestimmt Pflichtfelder und Anzeige."""
    SUBJECT = "subject"
    BREAK = "break"
    EVENT = "event"


class TimeSlot(BaseModel):
    """Ein geplanter Zeitslot: halboffenes Intervall [start_time, end_time)
    an einem Wochentag für genau eine Lerngruppe (Section)."""

    id: str
    start_time: str                       # "HH:MM", 24h, zero-padded
    end_time: str                         # "HH:MM", exklusiv
    day_of_week: WeekDay
    slot_type: SlotType = SlotType.SUBJECT
    subject_id: Optional[str] = None      # nur bei slot_type=subject
    title: Optional[str] = None           # Pflicht bei break/event, sonst Fachname
    teacher_id: Optional[str] = None
    class_id: Optional[str] = None        # aus sections.class_id aufgelöst
    section_id: str
    academic_year_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def duration(self) -> int:
        """Dauer in Minuten."""
        sh, sm = (int(p) for p in self.start_time.split(":"))
        eh, em = (int(p) for p in self.end_time.split(":"))
        return (eh * 60 + em) - (sh * 60 + sm)

    @property
    def label(self) -> str:
        """Anzeigename: Titel, sonst Fach-ID, sonst Slot-Typ."""
        return self.title or self.subject_id or self.slot_type.value

    def __str__(self) -> str:
        return f"{self.day_of_week.value} {self.start_time}–{self.end_time} {self.label}"


class TimeSlotCreate(BaseModel):
    """Eingabedaten für das Anlegen eines Zeitslots.

    Entweder end_time oder duration (Minuten) angeben. Uhrzeiten dürfen
    auch locker geschrieben sein ("8 am"), der Service normalisiert sie.
    """

    start_time: str
    end_time: Optional[str] = None
    duration: Optional[int] = Field(None, ge=1)
    day_of_week: str
    slot_type: SlotType = SlotType.SUBJECT
    subject_id: Optional[str] = None
    title: Optional[str] = None
    teacher_id: Optional[str] = None
    section_id: str


class TimeSlotUpdate(BaseModel):
    """Teilaktualisierung: nur explizit gesetzte Felder werden übernommen."""

    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration: Optional[int] = Field(None, ge=1)
    day_of_week: Optional[str] = None
    slot_type: Optional[SlotType] = None
    subject_id: Optional[str] = None
    title: Optional[str] = None
    teacher_id: Optional[str] = None
    section_id: Optional[str] = None


class TimetableFilter(BaseModel):
    """Filter für die Slot-Liste. Alle Felder optional, UND-verknüpft."""

    day_of_week: Optional[str] = None
    class_id: Optional[str] = None
    section_id: Optional[str] = None
    teacher_id: Optional[str] = None
    academic_year_id: Optional[str] = None
