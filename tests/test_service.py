"""Tests für den TimetableService (auf InMemoryStore)."""

import pytest

from config.defaults import default_timetable_config
from data.store import (
    SECTIONS,
    SUBJECTS,
    TEACHER_SUBJECTS,
    TIME_SLOTS,
    InMemoryStore,
    JsonFileStore,
    StoreError,
)
from models.time_slot import SlotType, TimeSlotCreate, TimeSlotUpdate, TimetableFilter
from timetable.errors import PersistenceError, SlotConflictError, ValidationError
from timetable.service import TimetableService


# ─── HILFSFUNKTIONEN ──────────────────────────────────────────────────────────

def _make_store() -> InMemoryStore:
    """Zwei Klassen, drei Lerngruppen, zwei Fächer, Lehrkraft-Zuordnungen."""
    return InMemoryStore({
        SECTIONS: [
            {"id": "5a", "class_id": "5", "name": "Klasse 5 – Gruppe A"},
            {"id": "5b", "class_id": "5", "name": "Klasse 5 – Gruppe B"},
            {"id": "6a", "class_id": "6", "name": "Klasse 6 – Gruppe A"},
        ],
        SUBJECTS: [
            {"id": "sub-ma", "name": "Mathematik"},
            {"id": "sub-de", "name": "Deutsch"},
        ],
        TEACHER_SUBJECTS: [
            {"id": "ts1", "teacher_id": "MÜL", "subject_id": "sub-ma"},
            {"id": "ts2", "teacher_id": "KOC", "subject_id": "sub-ma"},
        ],
    })


def _subject(start: str, end: str = None, day: str = "Monday", section: str = "5a",
             subject_id: str = "sub-ma", **kwargs) -> TimeSlotCreate:
    return TimeSlotCreate(start_time=start, end_time=end, day_of_week=day,
                          section_id=section, subject_id=subject_id, **kwargs)


class FailingStore(InMemoryStore):
    """Jeder Lesezugriff schlägt fehl."""

    def select(self, table, filters=None, in_filters=None):
        raise StoreError("Datenbank nicht erreichbar")


class CountingStore(InMemoryStore):
    """Zählt alle Speicherzugriffe."""

    def __init__(self, tables=None):
        super().__init__(tables)
        self.calls = 0

    def select(self, table, filters=None, in_filters=None):
        self.calls += 1
        return super().select(table, filters, in_filters)

    def insert(self, table, row):
        self.calls += 1
        return super().insert(table, row)

    def update(self, table, row_id, changes):
        self.calls += 1
        return super().update(table, row_id, changes)

    def delete(self, table, row_id):
        self.calls += 1
        return super().delete(table, row_id)


class BrokenWriteStore(InMemoryStore):
    """Lesen klappt, das Festschreiben schlägt fehl solange broken=True."""

    broken = False

    def _flush(self):
        if self.broken:
            raise StoreError("Schreibzugriff verweigert")


class BrokenWriteFileStore(JsonFileStore):
    """JSON-Datei, deren Schreibzugriff sich abschalten lässt."""

    broken = False

    def _flush(self):
        if self.broken:
            raise StoreError("Datenträger voll")
        super()._flush()


class BuggyStore(InMemoryStore):
    """Programmierfehler im Speicher, kein Persistenzproblem."""

    def select(self, table, filters=None, in_filters=None):
        raise KeyError("section_id")


@pytest.fixture
def config():
    return default_timetable_config("2025-2026")


@pytest.fixture
def store():
    return _make_store()


@pytest.fixture
def service(store, config):
    return TimetableService(store, config)


# ─── ANLEGEN ──────────────────────────────────────────────────────────────────

class TestCreate:
    def test_end_to_end_adjacent_and_overlap(self, service):
        """A 09–10 ok, B 09:30–10:30 abgelehnt, C 10–11 ok (angrenzend)."""
        a = service.create_time_slot(_subject("09:00", "10:00"))
        with pytest.raises(SlotConflictError) as exc:
            service.create_time_slot(_subject("09:30", "10:30"))
        assert exc.value.conflicting.id == a.id
        c = service.create_time_slot(_subject("10:00", "11:00"))

        slots = service.list_time_slots(TimetableFilter(section_id="5a"))
        assert [s.id for s in slots] == [a.id, c.id]

    def test_created_slot_fields(self, service, store):
        slot = service.create_time_slot(_subject("9:00", "10:00", teacher_id="WEB"))
        assert slot.start_time == "09:00"
        assert slot.end_time == "10:00"
        assert slot.day_of_week.value == "Monday"
        assert slot.class_id == "5"
        assert slot.title == "Mathematik"
        assert slot.teacher_id == "WEB"
        assert slot.academic_year_id == "2025-2026"
        assert slot.created_at is not None

        row = store.get(TIME_SLOTS, slot.id)
        assert row["start_time"] == "09:00:00"
        assert row["day_of_week"] == 1
        assert row["slot_type"] == "subject"

    def test_casual_time_and_duration(self, service):
        slot = service.create_time_slot(_subject("8 am", duration=45))
        assert (slot.start_time, slot.end_time) == ("08:00", "08:45")

    def test_default_duration_from_config(self, service):
        slot = service.create_time_slot(_subject("1 pm"))
        assert (slot.start_time, slot.end_time) == ("13:00", "14:00")

    def test_default_teacher_first_sorted(self, service):
        """Ohne teacher_id wird die erste zugeordnete Lehrkraft vorbelegt."""
        slot = service.create_time_slot(_subject("09:00", "10:00"))
        assert slot.teacher_id == "KOC"

    def test_no_teacher_mapping_leaves_empty(self, service):
        slot = service.create_time_slot(_subject("09:00", "10:00", subject_id="sub-de"))
        assert slot.teacher_id is None

    def test_break_needs_title(self, service):
        with pytest.raises(ValidationError) as exc:
            service.create_time_slot(TimeSlotCreate(
                start_time="09:30", end_time="09:50", day_of_week="Monday",
                slot_type=SlotType.BREAK, section_id="5a"))
        assert exc.value.field == "title"

    def test_break_drops_subject(self, service):
        slot = service.create_time_slot(TimeSlotCreate(
            start_time="09:30", end_time="09:50", day_of_week="Monday",
            slot_type=SlotType.BREAK, title="Pause", subject_id="sub-ma", section_id="5a"))
        assert slot.subject_id is None
        assert slot.title == "Pause"
        assert slot.teacher_id is None

    def test_subject_needs_subject_id(self, service):
        with pytest.raises(ValidationError) as exc:
            service.create_time_slot(_subject("09:00", "10:00", subject_id=None))
        assert exc.value.field == "subject_id"

    def test_other_section_no_conflict(self, service):
        service.create_time_slot(_subject("09:00", "10:00", section="5a"))
        service.create_time_slot(_subject("09:00", "10:00", section="5b"))
        assert len(service.list_time_slots()) == 2

    def test_other_day_no_conflict(self, service):
        service.create_time_slot(_subject("09:00", "10:00", day="Monday"))
        service.create_time_slot(_subject("09:00", "10:00", day="Tuesday"))
        assert len(service.list_time_slots()) == 2

    @pytest.mark.parametrize("start,end", [("10:00", "09:00"), ("10:00", "10:00")])
    def test_start_not_before_end(self, service, start, end):
        with pytest.raises(ValidationError):
            service.create_time_slot(_subject(start, end))

    def test_duration_bounds(self, service):
        with pytest.raises(ValidationError) as exc:
            service.create_time_slot(_subject("09:00", "09:10"))
        assert exc.value.field == "duration"
        with pytest.raises(ValidationError):
            service.create_time_slot(_subject("08:00", "13:00"))

    def test_cross_midnight_rejected(self, service):
        with pytest.raises(ValidationError):
            service.create_time_slot(_subject("23:30", duration=60))


class TestValidationBeforeStore:
    """Ungültige Eingaben werden erkannt, bevor der Speicher angesprochen wird."""

    @pytest.mark.parametrize("data", [
        dict(start_time="25:00", end_time="10:00", day_of_week="Monday"),
        dict(start_time="09:00", end_time="kaputt", day_of_week="Monday"),
        dict(start_time="09:00", end_time="10:00", day_of_week="Funday"),
        dict(start_time="10:00", end_time="09:00", day_of_week="Monday"),
    ])
    def test_create_invalid_input(self, config, data):
        store = CountingStore(_make_store()._tables)
        service = TimetableService(store, config)
        with pytest.raises(ValidationError):
            service.create_time_slot(TimeSlotCreate(section_id="5a", subject_id="sub-ma", **data))
        assert store.calls == 0

    def test_create_empty_section(self, config):
        store = CountingStore()
        service = TimetableService(store, config)
        with pytest.raises(ValidationError):
            service.create_time_slot(_subject("09:00", "10:00", section=" "))
        assert store.calls == 0

    def test_update_invalid_time(self, config):
        store = CountingStore()
        service = TimetableService(store, config)
        with pytest.raises(ValidationError):
            service.update_time_slot("irgendwas", {"start_time": "abc"})
        assert store.calls == 0

    def test_update_invalid_dict(self, config):
        store = CountingStore()
        service = TimetableService(store, config)
        with pytest.raises(ValidationError):
            service.update_time_slot("irgendwas", {"duration": 0})
        assert store.calls == 0


# ─── ABFRAGEN ─────────────────────────────────────────────────────────────────

class TestQueries:
    def test_list_sorted_monday_first(self, service):
        service.create_time_slot(_subject("09:00", "10:00", day="Sunday"))
        service.create_time_slot(_subject("11:00", "12:00", day="Monday"))
        service.create_time_slot(_subject("08:00", "09:00", day="Monday"))
        service.create_time_slot(_subject("08:00", "09:00", day="Wednesday"))
        slots = service.list_time_slots()
        assert [(s.day_of_week.value, s.start_time) for s in slots] == [
            ("Monday", "08:00"), ("Monday", "11:00"), ("Wednesday", "08:00"), ("Sunday", "09:00"),
        ]

    def test_filter_day(self, service):
        service.create_time_slot(_subject("09:00", "10:00", day="Monday"))
        service.create_time_slot(_subject("09:00", "10:00", day="Friday"))
        slots = service.list_time_slots(TimetableFilter(day_of_week="Friday"))
        assert [s.day_of_week.value for s in slots] == ["Friday"]

    def test_filter_unknown_day_raises(self, service):
        with pytest.raises(ValidationError):
            service.list_time_slots(TimetableFilter(day_of_week="Funday"))

    def test_filter_class_resolves_sections(self, service):
        service.create_time_slot(_subject("09:00", "10:00", section="5a"))
        service.create_time_slot(_subject("09:00", "10:00", section="5b"))
        service.create_time_slot(_subject("09:00", "10:00", section="6a"))
        slots = service.list_time_slots(TimetableFilter(class_id="5"))
        assert sorted(s.section_id for s in slots) == ["5a", "5b"]
        assert all(s.class_id == "5" for s in slots)

    def test_filter_class_without_sections(self, service):
        service.create_time_slot(_subject("09:00", "10:00"))
        assert service.list_time_slots(TimetableFilter(class_id="9")) == []

    def test_filter_teacher(self, service):
        service.create_time_slot(_subject("09:00", "10:00", teacher_id="WEB"))
        service.create_time_slot(_subject("10:00", "11:00", teacher_id="SCH"))
        slots = service.list_time_slots(TimetableFilter(teacher_id="SCH"))
        assert [s.start_time for s in slots] == ["10:00"]

    def test_filter_academic_year(self, service, store):
        """Slots eines anderen Schuljahres fallen heraus."""
        service.create_time_slot(_subject("09:00", "10:00", day="Monday"))
        old_year = TimetableService(store, default_timetable_config("2024-2025"))
        old_year.create_time_slot(_subject("09:00", "10:00", day="Tuesday"))

        current = service.list_time_slots(TimetableFilter(academic_year_id="2025-2026"))
        assert [s.day_of_week.value for s in current] == ["Monday"]
        previous = service.list_time_slots(TimetableFilter(academic_year_id="2024-2025"))
        assert [s.academic_year_id for s in previous] == ["2024-2025"]
        assert len(service.list_time_slots()) == 2

    def test_bad_rows_skipped(self, service, store):
        """Zeilen mit ungültigem day_of_week oder Uhrzeit fallen heraus."""
        service.create_time_slot(_subject("09:00", "10:00"))
        store.insert(TIME_SLOTS, {"start_time": "09:00:00", "end_time": "10:00:00",
                                  "day_of_week": 9, "slot_type": "subject",
                                  "subject_id": "sub-ma", "section_id": "5a"})
        store.insert(TIME_SLOTS, {"start_time": "kaputt", "end_time": "10:00:00",
                                  "day_of_week": 2, "slot_type": "subject",
                                  "subject_id": "sub-ma", "section_id": "5a"})
        slots = service.list_time_slots()
        assert len(slots) == 1

    def test_get_missing_is_none(self, service):
        assert service.get_time_slot("gibt-es-nicht") is None

    def test_get_existing(self, service):
        slot = service.create_time_slot(_subject("09:00", "10:00"))
        fetched = service.get_time_slot(slot.id)
        assert fetched.id == slot.id
        assert fetched.title == "Mathematik"

    def test_section_class_lookup(self, service):
        assert service.get_section_ids_for_class("5") == ["5a", "5b"]
        assert service.get_class_id_for_section("6a") == "6"
        assert service.get_class_id_for_section("7z") is None

    def test_check_conflict(self, service):
        a = service.create_time_slot(_subject("09:00", "10:00"))
        assert service.check_conflict("09:30", "10:30", "Monday", "5a").id == a.id
        assert service.check_conflict("10:00", "11:00", "Monday", "5a") is None
        assert service.check_conflict("09:30", "10:30", "Monday", "5a", exclude_id=a.id) is None

    def test_time_range_from_config(self, store):
        config = default_timetable_config()
        config.grid.day_start_hour = 8
        config.grid.day_end_hour = 9
        service = TimetableService(store, config)
        assert service.get_time_range() == ["08:00", "08:30", "09:00", "09:30"]
        assert service.get_week_days()[0] == "Monday"


# ─── ÄNDERN & LÖSCHEN ─────────────────────────────────────────────────────────

class TestUpdateDelete:
    def test_partial_update_keeps_other_fields(self, service):
        slot = service.create_time_slot(_subject("09:00", "10:00", teacher_id="WEB"))
        updated = service.update_time_slot(slot.id, TimeSlotUpdate(end_time="10:30"))
        assert (updated.start_time, updated.end_time) == ("09:00", "10:30")
        assert updated.teacher_id == "WEB"
        assert updated.subject_id == "sub-ma"

    def test_update_with_dict_and_duration(self, service):
        slot = service.create_time_slot(_subject("09:00", "10:00"))
        updated = service.update_time_slot(slot.id, {"start_time": "2 pm", "duration": 30})
        assert (updated.start_time, updated.end_time) == ("14:00", "14:30")

    def test_update_shift_within_own_interval(self, service):
        """Der Slot selbst zählt nicht als Konflikt."""
        slot = service.create_time_slot(_subject("09:00", "10:00"))
        updated = service.update_time_slot(slot.id, {"start_time": "09:15", "end_time": "10:15"})
        assert updated.start_time == "09:15"

    def test_update_into_conflict_rejected(self, service):
        service.create_time_slot(_subject("09:00", "10:00"))
        b = service.create_time_slot(_subject("10:00", "11:00"))
        with pytest.raises(SlotConflictError):
            service.update_time_slot(b.id, {"start_time": "09:30"})
        assert service.get_time_slot(b.id).start_time == "10:00"

    def test_update_move_day(self, service):
        service.create_time_slot(_subject("09:00", "10:00", day="Tuesday"))
        b = service.create_time_slot(_subject("09:00", "10:00", day="Monday"))
        with pytest.raises(SlotConflictError):
            service.update_time_slot(b.id, {"day_of_week": "Tuesday"})
        moved = service.update_time_slot(b.id, {"day_of_week": "Thursday"})
        assert moved.day_of_week.value == "Thursday"

    def test_update_to_break(self, service):
        slot = service.create_time_slot(_subject("09:00", "10:00"))
        updated = service.update_time_slot(slot.id, {"slot_type": "break", "title": "Hofpause"})
        assert updated.slot_type == SlotType.BREAK
        assert updated.subject_id is None
        assert updated.title == "Hofpause"

    def test_update_missing_is_none(self, service):
        assert service.update_time_slot("gibt-es-nicht", {"end_time": "11:00"}) is None

    def test_delete(self, service):
        slot = service.create_time_slot(_subject("09:00", "10:00"))
        assert service.delete_time_slot(slot.id) is True
        assert service.get_time_slot(slot.id) is None
        assert service.delete_time_slot(slot.id) is False


# ─── PERSISTENZFEHLER ─────────────────────────────────────────────────────────

class TestPersistenceErrors:
    def test_list_wraps_store_error(self, config):
        service = TimetableService(FailingStore(), config)
        with pytest.raises(PersistenceError) as exc:
            service.list_time_slots()
        assert isinstance(exc.value.cause, StoreError)
        assert exc.value.__cause__ is exc.value.cause

    def test_create_does_not_fall_back(self, config):
        """Kein lokal erzeugter Slot, wenn der Speicher versagt."""
        service = TimetableService(FailingStore(), config)
        with pytest.raises(PersistenceError):
            service.create_time_slot(_subject("09:00", "10:00"))

    def test_validation_wins_over_store_failure(self, config):
        service = TimetableService(FailingStore(), config)
        with pytest.raises(ValidationError):
            service.create_time_slot(_subject("kaputt", "10:00"))


class TestFailedWrites:
    """Ein fehlgeschlagener Schreibzugriff hinterlässt keinen Slot und keine Änderung."""

    @pytest.fixture
    def broken_store(self):
        return BrokenWriteStore(_make_store()._tables)

    def test_failed_insert_leaves_no_slot(self, broken_store, config):
        service = TimetableService(broken_store, config)
        broken_store.broken = True
        with pytest.raises(PersistenceError) as exc:
            service.create_time_slot(_subject("09:00", "10:00"))
        assert isinstance(exc.value.cause, StoreError)

        broken_store.broken = False
        assert service.list_time_slots() == []
        assert broken_store.select(TIME_SLOTS) == []
        # Kein Scheinkonflikt mit dem verworfenen Slot
        assert service.create_time_slot(_subject("09:00", "10:00")).start_time == "09:00"

    def test_failed_update_keeps_old_row(self, broken_store, config):
        service = TimetableService(broken_store, config)
        slot = service.create_time_slot(_subject("09:00", "10:00"))
        broken_store.broken = True
        with pytest.raises(PersistenceError):
            service.update_time_slot(slot.id, {"end_time": "10:30"})

        broken_store.broken = False
        assert service.get_time_slot(slot.id).end_time == "10:00"
        assert broken_store.get(TIME_SLOTS, slot.id)["end_time"] == "10:00:00"

    def test_failed_delete_keeps_row(self, broken_store, config):
        service = TimetableService(broken_store, config)
        slot = service.create_time_slot(_subject("09:00", "10:00"))
        broken_store.broken = True
        with pytest.raises(PersistenceError):
            service.delete_time_slot(slot.id)

        broken_store.broken = False
        assert service.get_time_slot(slot.id) is not None

    def test_failed_file_write_never_reaches_disk(self, tmp_path, config):
        """Auch ein späterer erfolgreicher Schreibzugriff schreibt den verworfenen Slot nicht."""
        path = tmp_path / "timetable.json"
        store = BrokenWriteFileStore(path)
        service = TimetableService(store, config)

        store.broken = True
        with pytest.raises(PersistenceError):
            service.create_time_slot(TimeSlotCreate(
                start_time="09:00", end_time="10:00", day_of_week="Monday",
                slot_type=SlotType.BREAK, title="Pause", section_id="5a"))

        store.broken = False
        assert service.list_time_slots(TimetableFilter(section_id="5a")) == []
        service.create_time_slot(_subject("11:00", "12:00"))

        rows = JsonFileStore(path).select(TIME_SLOTS)
        assert [r["start_time"] for r in rows] == ["11:00:00"]

    def test_programming_error_not_wrapped(self, config):
        """Nur Speicherfehler werden zu PersistenceError."""
        service = TimetableService(BuggyStore(), config)
        with pytest.raises(KeyError):
            service.list_time_slots()
