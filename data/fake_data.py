"""Demo-Daten für die Zeitslot-Verwaltung.

Legt Klassen mit je zwei Lerngruppen, Fächer, Lehrkraft-Fach-Zuordnungen und
einen überschneidungsfreien Wochenplan (Mo–Fr) an. Die Slots werden über den
TimetableService angelegt, damit dieselben Prüfungen greifen wie im Betrieb.
"""

import random
from typing import Optional

from config.schema import TimetableConfig
from data.store import SECTIONS, SUBJECTS, TEACHER_SUBJECTS, TableStore
from models.time_slot import SlotType, TimeSlotCreate

_SUBJECTS = [
    ("sub-ma", "Mathematik"),
    ("sub-de", "Deutsch"),
    ("sub-en", "Englisch"),
    ("sub-bi", "Biologie"),
    ("sub-ge", "Geschichte"),
    ("sub-sp", "Sport"),
    ("sub-mu", "Musik"),
]

# (teacher_id, [subject_ids])
_TEACHERS = [
    ("MÜL", ["sub-ma", "sub-bi"]),
    ("SCH", ["sub-de", "sub-ge"]),
    ("WEB", ["sub-en"]),
    ("FIS", ["sub-sp", "sub-mu"]),
    ("KOC", ["sub-ma", "sub-en"]),
]

# Tagesraster: (start, ende, None → Fach, sonst Titel einer Pause)
_DAY_PATTERN: list[tuple[str, str, Optional[str]]] = [
    ("08:00", "08:45", None),
    ("08:45", "09:30", None),
    ("09:30", "09:50", "Pause"),
    ("09:50", "10:35", None),
    ("10:35", "11:20", None),
    ("11:20", "12:00", "Mittagspause"),
    ("12:00", "12:45", None),
]

_SCHOOL_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]


class DemoDataGenerator:
    """Füllt einen TableStore mit reproduzierbaren Beispieldaten."""

    def __init__(self, config: TimetableConfig, seed: Optional[int] = None,
                 classes: tuple[str, ...] = ("5", "6")) -> None:
        self.config = config
        self.rng = random.Random(seed)
        self.classes = classes

    def generate(self, store: TableStore) -> dict[str, int]:
        """Schreibt alle Tabellen und gibt die Anzahl Zeilen je Tabelle zurück."""
        from timetable.service import TimetableService

        for subject_id, name in _SUBJECTS:
            store.insert(SUBJECTS, {"id": subject_id, "name": name})
        for teacher_id, subject_ids in _TEACHERS:
            for subject_id in subject_ids:
                store.insert(TEACHER_SUBJECTS, {"teacher_id": teacher_id,
                                                "subject_id": subject_id})

        section_ids = []
        for class_id in self.classes:
            for label in ("a", "b"):
                section_id = f"{class_id}{label}"
                store.insert(SECTIONS, {"id": section_id, "class_id": class_id,
                                        "name": f"Klasse {class_id} – Gruppe {label.upper()}"})
                section_ids.append(section_id)

        service = TimetableService(store, self.config)
        subject_ids = [s for s, _ in _SUBJECTS]
        created = 0
        for section_id in section_ids:
            for day in _SCHOOL_DAYS:
                for start, end, pause_title in _DAY_PATTERN:
                    if pause_title is None:
                        data = TimeSlotCreate(
                            start_time=start, end_time=end, day_of_week=day,
                            slot_type=SlotType.SUBJECT,
                            subject_id=self.rng.choice(subject_ids),
                            section_id=section_id,
                        )
                    else:
                        data = TimeSlotCreate(
                            start_time=start, end_time=end, day_of_week=day,
                            slot_type=SlotType.BREAK, title=pause_title,
                            section_id=section_id,
                        )
                    service.create_time_slot(data)
                    created += 1

        return {
            "sections": len(section_ids),
            "subjects": len(_SUBJECTS),
            "teacher_subjects": sum(len(s) for _, s in _TEACHERS),
            "time_slots": created,
        }

    def print_summary(self, counts: dict[str, int]) -> None:
        """Gibt eine Übersicht der erzeugten Daten aus."""
        from rich.console import Console
        from rich.table import Table
        from rich import box

        table = Table(title="Demo-Daten", box=box.ROUNDED)
        table.add_column("Tabelle", style="bold")
        table.add_column("Zeilen", justify="right")
        for name, count in counts.items():
            table.add_row(name, str(count))
        Console().print(table)
