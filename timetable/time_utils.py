"""Uhrzeit- und Wochentag-Hilfsfunktionen für den Stundenplan.

Reine Funktionen ohne I/O. Kanonische Uhrzeit ist "HH:MM" (24h, zero-padded).
Im Datenspeicher werden Wochentage als Zahl 0–6 abgelegt (0 = Sonntag).

Einzige Stelle für die Zuordnung Wochentag ↔ Zahl. Ungültige Werte liefern
None und werden nie stillschweigend auf einen gültigen Tag abgebildet.
"""

import re
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Union

from models.time_slot import WeekDay
from timetable.errors import ValidationError

MINUTES_PER_DAY = 24 * 60

# Reihenfolge im Datenspeicher: Index = day_of_week
_DAYS_BY_NUMBER: list[WeekDay] = [
    WeekDay.SUNDAY,
    WeekDay.MONDAY,
    WeekDay.TUESDAY,
    WeekDay.WEDNESDAY,
    WeekDay.THURSDAY,
    WeekDay.FRIDAY,
    WeekDay.SATURDAY,
]
DAY_NUMBERS: dict[str, int] = {d.value: i for i, d in enumerate(_DAYS_BY_NUMBER)}

_TIME_24H = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")
_TIME_CASUAL = re.compile(r"^(\d{1,2})(?::([0-5]\d))?\s*(am|pm)$", re.IGNORECASE)
_TIME_DB = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")


# ─── Validierung & Normalisierung ─────────────────────────────────────────────

def is_valid_time_format(value) -> bool:
    """True wenn value eine 24h-Uhrzeit im Format H:MM oder HH:MM ist."""
    if not isinstance(value, str) or not value:
        return False
    return _TIME_24H.match(value) is not None


def normalize_time(value) -> str:
    """Bringt eine Uhrzeit in die Form "HH:MM".

    Akzeptiert gültige 24h-Zeiten ("9:05" → "09:05") und lockere Angaben
    wie "8 am", "12 AM", "1pm" oder "8:30 pm". Liefert "" wenn keines der
    beiden Formate passt.
    """
    if not isinstance(value, str):
        return ""
    text = value.strip()
    if not text:
        return ""

    if is_valid_time_format(text):
        hour, minute = text.split(":")
        return f"{int(hour):02d}:{minute}"

    m = _TIME_CASUAL.match(text)
    if m is None:
        return ""
    hour = int(m.group(1))
    minute = m.group(2) or "00"
    if not 1 <= hour <= 12:
        return ""
    period = m.group(3).lower()
    if period == "am" and hour == 12:
        hour = 0
    elif period == "pm" and hour < 12:
        hour += 12
    return f"{hour:02d}:{minute}"


def time_to_minutes(value: str) -> int:
    """Minuten seit Mitternacht. Nicht normalisierbare Eingabe → ValidationError."""
    normalized = normalize_time(value)
    if not normalized:
        raise ValidationError(f"Ungültige Uhrzeit: {value!r}")
    hour, minute = normalized.split(":")
    return int(hour) * 60 + int(minute)


def minutes_to_time(minutes: int) -> str:
    """Umkehrung von time_to_minutes (0 ≤ minutes < 1440)."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValidationError(f"Minutenwert außerhalb eines Tages: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


# ─── 12h / 24h ────────────────────────────────────────────────────────────────

def convert_to_12_hour(time_24: str) -> tuple[str, str]:
    """"13:05" → ("01:05", "PM"). Ungültige Eingabe → ("00:00", "AM")."""
    if not is_valid_time_format(time_24):
        return "00:00", "AM"
    hour_str, minute = time_24.split(":")
    hour = int(hour_str)
    period = "AM" if hour < 12 else "PM"
    hour_12 = hour % 12 or 12
    return f"{hour_12:02d}:{minute}", period


def convert_to_24_hour(hour: Union[str, int], minute: Union[str, int], period: str) -> str:
    """("1", "05", "PM") → "13:05". Ungültige Teile → ""."""
    h = _parse_part(hour, 1, 12)
    m = _parse_part(minute, 0, 59)
    if h is None or m is None or not isinstance(period, str):
        return ""
    period = period.strip().upper()
    if period not in ("AM", "PM"):
        return ""
    if period == "AM" and h == 12:
        h = 0
    elif period == "PM" and h < 12:
        h += 12
    return f"{h:02d}:{m:02d}"


def format_time_display(value: str) -> str:
    """Anzeigeformat mit AM/PM, z.B. "13:05" → "1:05 PM"."""
    normalized = normalize_time(value)
    if not normalized:
        return "Invalid Time"
    hhmm, period = convert_to_12_hour(normalized)
    hour, minute = hhmm.split(":")
    return f"{int(hour)}:{minute} {period}"


# ─── Zusammensetzen & Dauer ───────────────────────────────────────────────────

def _parse_part(value, lo: int, hi: int) -> Optional[int]:
    """Parst eine Stunden-/Minutenangabe (str oder int) im Bereich [lo, hi]."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and re.fullmatch(r"\d{1,2}", value.strip()):
        number = int(value.strip())
    else:
        return None
    return number if lo <= number <= hi else None


def format_time_from_parts(hour: Union[str, int, None], minute: Union[str, int, None]) -> str:
    """Setzt Stunde (0–23) und Minute (0–59) zu "HH:MM" zusammen, sonst ""."""
    h = _parse_part(hour, 0, 23)
    m = _parse_part(minute, 0, 59)
    if h is None or m is None:
        return ""
    return f"{h:02d}:{m:02d}"


def calculate_end_time(start_hour, start_minute, duration_minutes: int) -> str:
    """Endzeit = Start + Dauer; "" bei ungültigem Start, ValidationError bei ungültiger Dauer.

    Start ist Benutzereingabe aus Teilfeldern und wird wie bei
    format_time_from_parts mit "" beantwortet. Die Dauer ist dagegen ein
    Fehler des Aufrufers: nicht ganzzahlig, negativ oder über Mitternacht
    hinaus (Ende ≥ 24:00) → ValidationError(field="duration").
    """
    start = format_time_from_parts(start_hour, start_minute)
    if not start:
        return ""
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise ValidationError(f"Dauer muss eine ganze Zahl sein: {duration_minutes!r}",
                              field="duration")
    if duration_minutes < 0:
        raise ValidationError(f"Negative Dauer: {duration_minutes}", field="duration")

    begin = datetime.strptime(start, "%H:%M")
    end = begin + timedelta(minutes=duration_minutes)
    if end.date() != begin.date():
        raise ValidationError(
            f"Slot ab {start} mit {duration_minutes} min endet nach Mitternacht",
            field="duration",
        )
    return end.strftime("%H:%M")


# ─── Datenspeicher-Format ─────────────────────────────────────────────────────

def from_db_time(value) -> str:
    """"08:00:00" oder "8:00" aus dem Datenspeicher → "08:00" ("" wenn ungültig)."""
    if not isinstance(value, str):
        return ""
    m = _TIME_DB.match(value.strip())
    if m is None:
        return ""
    return normalize_time(f"{m.group(1)}:{m.group(2)}")


def to_db_time(value: str) -> str:
    """"08:00" → "08:00:00"."""
    return f"{value}:00"


# ─── Wochentage ───────────────────────────────────────────────────────────────

def day_to_number(day) -> Optional[int]:
    """"Sunday" → 0 … "Saturday" → 6. Unbekannter Name → None."""
    if isinstance(day, Enum):
        day = day.value
    if not isinstance(day, str):
        return None
    return DAY_NUMBERS.get(day.strip().capitalize())


def number_to_day(number) -> Optional[str]:
    """0 → "Sunday" … 6 → "Saturday". Außerhalb 0–6 → None."""
    if isinstance(number, bool) or not isinstance(number, int):
        return None
    if 0 <= number < len(_DAYS_BY_NUMBER):
        return _DAYS_BY_NUMBER[number].value
    return None


def get_week_days() -> list[str]:
    """Wochentage in Anzeige-Reihenfolge (Montag zuerst)."""
    return [d.value for d in WeekDay]


def get_time_range(start_hour: int = 7, end_hour: int = 17, step_minutes: int = 30) -> list[str]:
    """Rasterzeiten für Auswahllisten, z.B. 07:00, 07:30, …, 17:30."""
    stop = min((end_hour + 1) * 60, MINUTES_PER_DAY)
    return [minutes_to_time(m) for m in range(start_hour * 60, stop, step_minutes)]
