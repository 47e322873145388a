"""Prüfung des gespeicherten Wochenplans.

Sicherheitsnetz unabhängig vom Service: Prüfen und Schreiben sind dort nicht
atomar, parallele Bearbeiter oder Handänderungen an der Datendatei können
also Überschneidungen hinterlassen. Arbeitet direkt auf den Speicherzeilen.
"""

import logging
from collections import defaultdict
from typing import Literal

from pydantic import BaseModel

from data.store import TIME_SLOTS, TableStore
from models.time_slot import SlotType
from timetable.conflicts import intervals_overlap
from timetable.time_utils import from_db_time, number_to_day, time_to_minutes

logger = logging.getLogger(__name__)


class ValidationViolation(BaseModel):
    """Eine einzelne Regelverletzung."""

    severity: Literal["error", "warning"]
    constraint: str      # z.B. "slot_overlap"
    description: str
    entity: str          # slot_id / section_id


class ValidationReport(BaseModel):
    """Ergebnis der Wochenplan-Prüfung."""

    violations: list[ValidationViolation]
    is_valid: bool       # True wenn keine Errors (Warnings ok)
    checked_slots: int = 0

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        errors = [v for v in self.violations if v.severity == "error"]
        warnings = [v for v in self.violations if v.severity == "warning"]

        status = (
            "[bold green]✓ VALIDE[/bold green]"
            if self.is_valid
            else "[bold red]✗ VERLETZUNGEN GEFUNDEN[/bold red]"
        )
        lines = [
            status,
            f"Geprüfte Slots: {self.checked_slots}",
            f"Fehler: {len(errors)} | Warnungen: {len(warnings)}",
        ]
        console.print(Panel("\n".join(lines), title="Wochenplan-Prüfung", border_style="cyan"))

        if not self.violations:
            console.print("[dim]Keine Verletzungen gefunden.[/dim]")
            return

        table = Table(box=box.ROUNDED, show_lines=True)
        table.add_column("Typ", width=8)
        table.add_column("Regel", width=22)
        table.add_column("Entität", width=14)
        table.add_column("Beschreibung")

        for v in self.violations:
            color = "red" if v.severity == "error" else "yellow"
            table.add_row(
                f"[{color}]{v.severity.upper()}[/{color}]",
                v.constraint,
                v.entity,
                v.description,
            )
        console.print(table)


class ScheduleValidator:
    """Prüft alle gespeicherten Zeitslots auf Regelverletzungen."""

    def validate(self, store: TableStore) -> ValidationReport:
        rows = store.select(TIME_SLOTS)
        violations: list[ValidationViolation] = []

        readable: list[tuple[dict, int, int]] = []
        for row in rows:
            found = self._check_row(row)
            violations.extend(found)
            if not any(v.severity == "error" for v in found):
                start = time_to_minutes(from_db_time(row["start_time"]))
                end = time_to_minutes(from_db_time(row["end_time"]))
                readable.append((row, start, end))

        violations.extend(self._check_overlaps(readable))

        has_errors = any(v.severity == "error" for v in violations)
        logger.info(f"Wochenplan geprüft: {len(rows)} Slots, {len(violations)} Verletzungen")
        return ValidationReport(
            violations=violations, is_valid=not has_errors, checked_slots=len(rows)
        )

    # ── Einzelne Prüfungen ────────────────────────────────────────────────────

    def _check_row(self, row: dict) -> list[ValidationViolation]:
        """Lesbarkeit einer Zeile: Tag, Uhrzeiten, Intervall, Pflichtfelder."""
        slot_id = str(row.get("id"))
        violations: list[ValidationViolation] = []

        if number_to_day(row.get("day_of_week")) is None:
            violations.append(ValidationViolation(
                severity="error", constraint="invalid_day", entity=slot_id,
                description=f"day_of_week {row.get('day_of_week')!r} ist kein Wochentag (0–6)",
            ))
        start, end = from_db_time(row.get("start_time")), from_db_time(row.get("end_time"))
        if not start or not end:
            violations.append(ValidationViolation(
                severity="error", constraint="invalid_time", entity=slot_id,
                description=f"Uhrzeit nicht lesbar: {row.get('start_time')!r}–{row.get('end_time')!r}",
            ))
        elif time_to_minutes(start) >= time_to_minutes(end):
            violations.append(ValidationViolation(
                severity="error", constraint="inverted_interval", entity=slot_id,
                description=f"Start {start} liegt nicht vor Ende {end}",
            ))
        if not row.get("section_id"):
            violations.append(ValidationViolation(
                severity="error", constraint="missing_section", entity=slot_id,
                description="Slot ist keiner Lerngruppe zugeordnet",
            ))

        slot_type = row.get("slot_type") or SlotType.SUBJECT.value
        if slot_type == SlotType.SUBJECT.value and not row.get("subject_id"):
            violations.append(ValidationViolation(
                severity="warning", constraint="missing_subject", entity=slot_id,
                description="Fach-Slot ohne subject_id",
            ))
        elif slot_type in (SlotType.BREAK.value, SlotType.EVENT.value) and not row.get("title"):
            violations.append(ValidationViolation(
                severity="warning", constraint="missing_title", entity=slot_id,
                description=f"Slot vom Typ '{slot_type}' ohne Titel",
            ))
        elif slot_type not in {t.value for t in SlotType}:
            violations.append(ValidationViolation(
                severity="error", constraint="invalid_slot_type", entity=slot_id,
                description=f"Unbekannter slot_type {slot_type!r}",
            ))
        return violations

    def _check_overlaps(
        self, readable: list[tuple[dict, int, int]]
    ) -> list[ValidationViolation]:
        """Keine zwei Slots derselben Lerngruppe überschneiden sich am selben Tag."""
        violations: list[ValidationViolation] = []
        by_section_day: dict[tuple, list[tuple[dict, int, int]]] = defaultdict(list)
        for item in readable:
            row = item[0]
            by_section_day[(row["section_id"], row["day_of_week"])].append(item)

        for (section_id, day), items in sorted(by_section_day.items(), key=lambda kv: str(kv[0])):
            items.sort(key=lambda it: it[1])
            for i, (row_a, start_a, end_a) in enumerate(items):
                for row_b, start_b, end_b in items[i + 1:]:
                    if start_b >= end_a:
                        break
                    if intervals_overlap(start_b, end_b, start_a, end_a):
                        violations.append(ValidationViolation(
                            severity="error",
                            constraint="slot_overlap",
                            entity=section_id,
                            description=(
                                f"{number_to_day(day)}: {row_a['id']} "
                                f"({from_db_time(row_a['start_time'])}–{from_db_time(row_a['end_time'])}) "
                                f"überschneidet sich mit {row_b['id']} "
                                f"({from_db_time(row_b['start_time'])}–{from_db_time(row_b['end_time'])})"
                            ),
                        ))
        return violations
