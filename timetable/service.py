"""TimetableService – Anlegen, Ändern, Löschen und Abfragen von Zeitslots.

Übersetzt zwischen der Zeilenform im Datenspeicher (day_of_week 0–6,
Uhrzeit "HH:MM:SS") und dem TimeSlot-Modell (Wochentagsname, "HH:MM").

Ablauf jeder Schreiboperation:
  1. Eingaben normalisieren/validieren  → ValidationError, noch ohne Speicherzugriff
  2. Bestehende Slots derselben Lerngruppe + Tag lesen, Überschneidung prüfen
  3. Schreiben                          → PersistenceError bei Speicherfehlern

Prüfung und Schreiben sind nicht atomar: ein gleichzeitiger zweiter
Bearbeiter derselben Lerngruppe kann dazwischen schreiben.
"""

import logging
from typing import Any, Callable, Iterable, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from config.schema import TimetableConfig
from data.store import (
    SECTIONS,
    SUBJECTS,
    TEACHER_SUBJECTS,
    TIME_SLOTS,
    StoreError,
    TableStore,
)
from models.time_slot import (
    SlotType,
    TimeSlot,
    TimeSlotCreate,
    TimeSlotUpdate,
    TimetableFilter,
)
from timetable.conflicts import find_conflict
from timetable.errors import PersistenceError, SlotConflictError, ValidationError
from timetable.time_utils import (
    calculate_end_time,
    day_to_number,
    from_db_time,
    get_time_range,
    get_week_days,
    normalize_time,
    number_to_day,
    time_to_minutes,
    to_db_time,
)

logger = logging.getLogger(__name__)

_DAY_ORDER = {name: i for i, name in enumerate(get_week_days())}


class TimetableService:
    """Zeitslot-Verwaltung über einem TableStore."""

    def __init__(self, store: TableStore, config: TimetableConfig) -> None:
        self.store = store
        self.config = config

    @property
    def academic_year_id(self) -> str:
        return self.config.academic_year_id

    # ─── Abfragen ─────────────────────────────────────────────────────────────

    def list_time_slots(self, filter: Optional[TimetableFilter] = None) -> list[TimeSlot]:
        """Alle Slots passend zum Filter, sortiert nach Wochentag (Mo zuerst) und Startzeit.

        Zeilen mit ungültigem day_of_week oder Uhrzeit werden protokolliert
        und ausgelassen, statt die ganze Abfrage scheitern zu lassen.
        """
        filt = filter or TimetableFilter()
        filters: dict[str, Any] = {}
        in_filters: Optional[dict[str, list]] = None

        if filt.day_of_week:
            filters["day_of_week"] = self._require_day_number(filt.day_of_week)
        if filt.section_id:
            filters["section_id"] = filt.section_id
        if filt.teacher_id:
            filters["teacher_id"] = filt.teacher_id
        if filt.academic_year_id:
            filters["academic_year_id"] = filt.academic_year_id
        if filt.class_id:
            section_ids = self.get_section_ids_for_class(filt.class_id)
            if not section_ids:
                return []
            in_filters = {"section_id": section_ids}

        rows = self._store_call(
            "Slot-Abfrage", self.store.select, TIME_SLOTS, filters or None, in_filters
        )
        slots = self._map_rows(rows)
        slots.sort(key=lambda s: (_DAY_ORDER[s.day_of_week.value], s.start_time))
        return slots

    def get_time_slot(self, slot_id: str) -> Optional[TimeSlot]:
        """Einzelner Slot oder None wenn die ID nicht existiert."""
        row = self._store_call("Slot-Abfrage", self.store.get, TIME_SLOTS, slot_id)
        if row is None:
            return None
        mapped = self._map_rows([row])
        return mapped[0] if mapped else None

    def get_section_ids_for_class(self, class_id: str) -> list[str]:
        """IDs aller Lerngruppen einer Klasse (leer wenn keine)."""
        sections = self._store_call(
            "Lerngruppen-Abfrage", self.store.select, SECTIONS, {"class_id": class_id}
        )
        return [s["id"] for s in sections]

    def get_class_id_for_section(self, section_id: str) -> Optional[str]:
        """Klasse einer Lerngruppe oder None wenn die Lerngruppe unbekannt ist."""
        row = self._store_call("Lerngruppen-Abfrage", self.store.get, SECTIONS, section_id)
        return row.get("class_id") if row else None

    def check_conflict(
        self,
        start_time: str,
        end_time: str,
        day_of_week: str,
        section_id: str,
        exclude_id: Optional[str] = None,
    ) -> Optional[TimeSlot]:
        """Liest die aktuellen Slots der Lerngruppe und gibt den ersten
        kollidierenden zurück (oder None)."""
        day_number = self._require_day_number(day_of_week)
        start = self._require_time(start_time, "start_time")
        end = self._require_time(end_time, "end_time")
        existing = self._section_day_slots(section_id, day_number)
        return find_conflict(start, end, day_of_week, existing, exclude_id=exclude_id)

    def get_week_days(self) -> list[str]:
        return get_week_days()

    def get_time_range(self) -> list[str]:
        grid = self.config.grid
        return get_time_range(grid.day_start_hour, grid.day_end_hour, grid.step_minutes)

    # ─── Anlegen ──────────────────────────────────────────────────────────────

    def create_time_slot(self, data: TimeSlotCreate) -> TimeSlot:
        """Validiert, prüft auf Überschneidung und speichert einen neuen Slot.

        Fach-Slots ohne Lehrkraft erhalten – falls vorhanden – die erste
        Lehrkraft aus teacher_subjects. Fehlt eine Zuordnung, bleibt
        teacher_id leer.
        """
        start = self._require_time(data.start_time, "start_time")
        if data.end_time is not None:
            end = self._require_time(data.end_time, "end_time")
        else:
            duration = data.duration or self.config.slot_rules.default_duration_minutes
            end = self._end_from_duration(start, duration)
        self._check_interval(start, end)
        day_number = self._require_day_number(data.day_of_week)
        if not data.section_id or not data.section_id.strip():
            raise ValidationError("section_id fehlt", field="section_id")
        subject_id, title = self._check_type_fields(data.slot_type, data.subject_id, data.title)

        day_name = number_to_day(day_number)
        self._ensure_no_conflict(start, end, day_name, data.section_id, day_number)

        teacher_id = data.teacher_id
        if data.slot_type == SlotType.SUBJECT and not teacher_id:
            teacher_id = self._default_teacher(subject_id)

        row = {
            "start_time": to_db_time(start),
            "end_time": to_db_time(end),
            "day_of_week": day_number,
            "slot_type": data.slot_type.value,
            "subject_id": subject_id,
            "title": title,
            "teacher_id": teacher_id,
            "section_id": data.section_id,
            "academic_year_id": self.academic_year_id,
        }
        stored = self._store_call("Slot anlegen", self.store.insert, TIME_SLOTS, row)
        slot = self._require_mapped(stored)
        logger.info(f"Zeitslot angelegt: {slot}")
        return slot

    # ─── Ändern ───────────────────────────────────────────────────────────────

    def update_time_slot(
        self, slot_id: str, changes: Union[TimeSlotUpdate, dict]
    ) -> Optional[TimeSlot]:
        """Übernimmt die gesetzten Felder in den bestehenden Slot.

        Nur mitgegebene Felder werden normalisiert. Das Ergebnis wird erneut
        auf Überschneidung geprüft (der Slot selbst ausgenommen).
        Gibt None zurück, wenn slot_id nicht existiert.
        """
        if isinstance(changes, dict):
            try:
                changes = TimeSlotUpdate.model_validate(changes)
            except PydanticValidationError as e:
                raise ValidationError(f"Ungültige Änderungen: {e}") from e
        fields = changes.model_dump(exclude_unset=True)

        new_start = new_end = None
        new_day: Optional[int] = None
        if "start_time" in fields:
            new_start = self._require_time(fields["start_time"], "start_time")
        if "end_time" in fields:
            new_end = self._require_time(fields["end_time"], "end_time")
        if "day_of_week" in fields:
            new_day = self._require_day_number(fields["day_of_week"])
        if "section_id" in fields and not fields["section_id"]:
            raise ValidationError("section_id darf nicht leer sein", field="section_id")

        current = self._store_call("Slot-Abfrage", self.store.get, TIME_SLOTS, slot_id)
        if current is None:
            return None

        start = new_start or from_db_time(current.get("start_time"))
        if new_end is not None:
            end = new_end
        elif fields.get("duration"):
            end = self._end_from_duration(start, fields["duration"])
        else:
            end = from_db_time(current.get("end_time"))
        if not start or not end:
            raise ValidationError(f"Gespeicherter Slot {slot_id} hat keine gültige Uhrzeit")
        self._check_interval(start, end)

        day_number = new_day if new_day is not None else current.get("day_of_week")
        day_name = number_to_day(day_number)
        if day_name is None:
            raise ValidationError(
                f"Gespeicherter Slot {slot_id} hat ungültigen day_of_week {day_number!r}",
                field="day_of_week",
            )

        slot_type = fields.get("slot_type")
        if slot_type is None:
            try:
                slot_type = self._row_slot_type(current)
            except ValueError as e:
                raise ValidationError(
                    f"Gespeicherter Slot {slot_id} hat ungültigen slot_type", field="slot_type"
                ) from e
        subject_id, title = self._check_type_fields(
            slot_type,
            fields["subject_id"] if "subject_id" in fields else current.get("subject_id"),
            fields["title"] if "title" in fields else current.get("title"),
        )
        section_id = fields.get("section_id") or current.get("section_id")
        teacher_id = fields["teacher_id"] if "teacher_id" in fields else current.get("teacher_id")
        if slot_type == SlotType.SUBJECT and not teacher_id and subject_id != current.get("subject_id"):
            teacher_id = self._default_teacher(subject_id)

        self._ensure_no_conflict(start, end, day_name, section_id, day_number, exclude_id=slot_id)

        row_changes = {
            "start_time": to_db_time(start),
            "end_time": to_db_time(end),
            "day_of_week": day_number,
            "slot_type": slot_type.value,
            "subject_id": subject_id,
            "title": title,
            "teacher_id": teacher_id,
            "section_id": section_id,
        }
        stored = self._store_call(
            "Slot ändern", self.store.update, TIME_SLOTS, slot_id, row_changes
        )
        if stored is None:
            return None
        slot = self._require_mapped(stored)
        logger.info(f"Zeitslot geändert: {slot}")
        return slot

    # ─── Löschen ──────────────────────────────────────────────────────────────

    def delete_time_slot(self, slot_id: str) -> bool:
        """Entfernt den Slot. False wenn es nichts zu löschen gab."""
        deleted = self._store_call("Slot löschen", self.store.delete, TIME_SLOTS, slot_id)
        if deleted:
            logger.info(f"Zeitslot {slot_id} gelöscht")
        else:
            logger.info(f"Zeitslot {slot_id} nicht gefunden – nichts zu löschen")
        return deleted

    # ─── Validierung ──────────────────────────────────────────────────────────

    @staticmethod
    def _require_time(value: str, field: str) -> str:
        normalized = normalize_time(value)
        if not normalized:
            raise ValidationError(f"Ungültige Uhrzeit für {field}: {value!r}", field=field)
        return normalized

    @staticmethod
    def _require_day_number(day: str) -> int:
        number = day_to_number(day)
        if number is None:
            raise ValidationError(f"Unbekannter Wochentag: {day!r}", field="day_of_week")
        return number

    @staticmethod
    def _end_from_duration(start: str, duration: int) -> str:
        hour, minute = start.split(":")
        return calculate_end_time(hour, minute, duration)

    def _check_interval(self, start: str, end: str) -> None:
        """Start vor Ende und Dauer innerhalb der konfigurierten Grenzen."""
        duration = time_to_minutes(end) - time_to_minutes(start)
        if duration <= 0:
            raise ValidationError(
                f"Startzeit {start} muss vor Endzeit {end} liegen", field="end_time"
            )
        rules = self.config.slot_rules
        if not rules.min_duration_minutes <= duration <= rules.max_duration_minutes:
            raise ValidationError(
                f"Dauer {duration} min außerhalb von "
                f"{rules.min_duration_minutes}–{rules.max_duration_minutes} min",
                field="duration",
            )

    @staticmethod
    def _check_type_fields(
        slot_type: SlotType, subject_id: Optional[str], title: Optional[str]
    ) -> tuple[Optional[str], Optional[str]]:
        """Pflichtfelder je Slot-Typ. Gibt (subject_id, title) bereinigt zurück."""
        if slot_type == SlotType.SUBJECT:
            if not subject_id:
                raise ValidationError("Fach-Slot ohne subject_id", field="subject_id")
            return subject_id, None
        title = (title or "").strip()
        if not title:
            raise ValidationError(
                f"Slot vom Typ '{slot_type.value}' braucht einen Titel", field="title"
            )
        return None, title

    def _ensure_no_conflict(
        self,
        start: str,
        end: str,
        day_name: str,
        section_id: str,
        day_number: int,
        exclude_id: Optional[str] = None,
    ) -> None:
        existing = self._section_day_slots(section_id, day_number)
        conflict = find_conflict(start, end, day_name, existing, exclude_id=exclude_id)
        if conflict is not None:
            logger.info(
                f"Überschneidung abgelehnt: {day_name} {start}–{end} "
                f"kollidiert mit {conflict.id} ({conflict.start_time}–{conflict.end_time})"
            )
            raise SlotConflictError(
                f"{day_name} {start}–{end} überschneidet sich mit "
                f"{conflict.start_time}–{conflict.end_time} ({conflict.label})",
                conflicting=conflict,
            )

    # ─── Datenspeicher ────────────────────────────────────────────────────────

    def _store_call(self, action: str, fn: Callable, *args) -> Any:
        """Führt einen Speicherzugriff aus.

        StoreError und I/O-Fehler werden zu PersistenceError; alle anderen
        Ausnahmen (Programmierfehler) laufen unverändert durch.
        """
        try:
            return fn(*args)
        except (StoreError, OSError) as e:
            logger.exception(f"{action} fehlgeschlagen: {e}")
            raise PersistenceError(f"{action} fehlgeschlagen", cause=e) from e

    def _section_day_slots(self, section_id: str, day_number: int) -> list[TimeSlot]:
        rows = self._store_call(
            "Slot-Abfrage", self.store.select, TIME_SLOTS,
            {"section_id": section_id, "day_of_week": day_number},
        )
        return [s for s in (self._row_to_slot(r) for r in rows) if s is not None]

    def _default_teacher(self, subject_id: Optional[str]) -> Optional[str]:
        if not subject_id:
            return None
        rows = self._store_call(
            "Lehrkraft-Zuordnung", self.store.select, TEACHER_SUBJECTS,
            {"subject_id": subject_id},
        )
        teacher_ids = sorted(r["teacher_id"] for r in rows if r.get("teacher_id"))
        if not teacher_ids:
            logger.debug(f"Keine Lehrkraft für Fach {subject_id} hinterlegt")
            return None
        logger.debug(f"Fach {subject_id}: Lehrkraft {teacher_ids[0]} vorbelegt")
        return teacher_ids[0]

    # ─── Zeilen → TimeSlot ────────────────────────────────────────────────────

    @staticmethod
    def _row_slot_type(row: dict) -> SlotType:
        return SlotType(row.get("slot_type") or SlotType.SUBJECT.value)

    def _row_to_slot(
        self,
        row: dict,
        class_id: Optional[str] = None,
        subject_name: Optional[str] = None,
    ) -> Optional[TimeSlot]:
        """Wandelt eine Speicherzeile um. Fehlerhafte Zeilen → Warnung + None."""
        row_id = row.get("id")
        day = number_to_day(row.get("day_of_week"))
        if day is None:
            logger.warning(
                f"Zeitslot {row_id}: ungültiger day_of_week "
                f"{row.get('day_of_week')!r} – übersprungen"
            )
            return None
        start, end = from_db_time(row.get("start_time")), from_db_time(row.get("end_time"))
        if not start or not end:
            logger.warning(f"Zeitslot {row_id}: ungültige Uhrzeit – übersprungen")
            return None
        try:
            slot_type = self._row_slot_type(row)
            title = row.get("title")
            if slot_type == SlotType.SUBJECT and subject_name:
                title = subject_name
            return TimeSlot(
                id=row_id,
                start_time=start,
                end_time=end,
                day_of_week=day,
                slot_type=slot_type,
                subject_id=row.get("subject_id"),
                title=title,
                teacher_id=row.get("teacher_id"),
                class_id=class_id,
                section_id=row.get("section_id"),
                academic_year_id=row.get("academic_year_id"),
                created_at=row.get("created_at"),
                updated_at=row.get("updated_at"),
            )
        except (ValueError, PydanticValidationError) as e:
            logger.warning(f"Zeitslot {row_id}: nicht lesbar ({e}) – übersprungen")
            return None

    def _map_rows(self, rows: Iterable[dict]) -> list[TimeSlot]:
        rows = list(rows)
        section_ids = sorted({r["section_id"] for r in rows if r.get("section_id")})
        subject_ids = sorted({r["subject_id"] for r in rows if r.get("subject_id")})

        class_by_section: dict[str, Optional[str]] = {}
        if section_ids:
            sections = self._store_call(
                "Lerngruppen-Abfrage", self.store.select, SECTIONS, None, {"id": section_ids}
            )
            class_by_section = {s["id"]: s.get("class_id") for s in sections}

        subject_names: dict[str, str] = {}
        if subject_ids:
            subjects = self._store_call(
                "Fach-Abfrage", self.store.select, SUBJECTS, None, {"id": subject_ids}
            )
            subject_names = {s["id"]: s.get("name") for s in subjects}

        slots = []
        for row in rows:
            slot = self._row_to_slot(
                row,
                class_id=class_by_section.get(row.get("section_id")),
                subject_name=subject_names.get(row.get("subject_id")),
            )
            if slot is not None:
                slots.append(slot)
        return slots

    def _require_mapped(self, row: dict) -> TimeSlot:
        mapped = self._map_rows([row])
        if not mapped:
            raise PersistenceError(f"Gespeicherte Zeile {row.get('id')} nicht lesbar")
        return mapped[0]
