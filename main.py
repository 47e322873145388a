"""Stundenplan-Zeitslots — Haupt-CLI.

Verwendung:
  python main.py setup                       Ersteinrichtung (Wizard)
  python main.py config show                 Konfiguration anzeigen
  python main.py generate                    Demo-Daten erzeugen
  python main.py slots list [--day ...]      Zeitslots auflisten
  python main.py slots add ...               Zeitslot anlegen
  python main.py slots edit <id> ...         Zeitslot ändern
  python main.py slots delete <id>           Zeitslot löschen
  python main.py show <section>              Wochenplan einer Lerngruppe
  python main.py validate                    Wochenplan auf Überschneidungen prüfen
  python main.py export                      Wochenpläne als Excel exportieren
"""

import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich import box

from timetable.errors import TimetableError

console = Console()

DAY_CHOICES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
SLOT_TYPE_CHOICES = ["subject", "break", "event"]


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load_config_or_abort():
    """Lädt die Konfiguration oder bricht mit Fehlermeldung ab."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    if mgr.first_run_check():
        console.print(
            "[red]Keine Konfiguration gefunden.[/red]\n"
            "Führen Sie zunächst [bold]python main.py setup[/bold] aus."
        )
        sys.exit(1)
    try:
        config = mgr.load()
    except ValueError as e:
        console.print(f"[red bold]{e}[/red bold]")
        sys.exit(1)
    _setup_logging(config.log_level.value)
    return mgr, config


def _open_service():
    """Konfiguration + Datenspeicher + Service."""
    from data.store import JsonFileStore, StoreError
    from timetable.service import TimetableService

    mgr, config = _load_config_or_abort()
    try:
        store = JsonFileStore(Path(config.storage.data_file))
    except StoreError as e:
        console.print(f"[red bold]Datenspeicher nicht lesbar:[/red bold] {e}")
        sys.exit(1)
    return config, store, TimetableService(store, config)


def _abort(e: Exception) -> None:
    console.print(f"[red bold]Fehler:[/red bold] {escape(str(e))}")
    sys.exit(1)


def _print_slots(slots, title: str) -> None:
    if not slots:
        console.print("[dim]Keine Zeitslots gefunden.[/dim]")
        return
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("ID", style="dim", overflow="fold")
    table.add_column("Tag")
    table.add_column("Zeit")
    table.add_column("Typ")
    table.add_column("Bezeichnung", style="bold")
    table.add_column("Lehrkraft")
    table.add_column("Lerngruppe")
    for s in slots:
        table.add_row(
            s.id, s.day_of_week.value, f"{s.start_time}–{s.end_time}",
            s.slot_type.value, s.label, s.teacher_id or "—", s.section_id,
        )
    console.print(table)


# ─── SETUP ────────────────────────────────────────────────────────────────────

@click.command("setup")
def cmd_setup():
    """Ersteinrichtung: Konfiguration mit dem Setup-Wizard anlegen."""
    from config.wizard import run_wizard
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check():
        console.print("[yellow]Eine Konfiguration existiert bereits.[/yellow]")
        if not click.confirm("Trotzdem neu einrichten?", default=False):
            return

    config = run_wizard()
    if config is not None:
        mgr.save(config)
        console.print("[bold green]Einrichtung abgeschlossen![/bold green]")
        console.print("Führen Sie jetzt [bold]python main.py generate[/bold] aus.")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen."""


@cmd_config.command("show")
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    from config.wizard import show_config_table
    mgr, config = _load_config_or_abort()
    show_config_table(config)


# ─── GENERATE ─────────────────────────────────────────────────────────────────

@click.command("generate")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@click.option("--force", is_flag=True, default=False,
              help="Bestehende Datendatei überschreiben.")
def cmd_generate(seed: int, force: bool):
    """Erzeugt Demo-Daten (Lerngruppen, Fächer, Wochenplan)."""
    from data.fake_data import DemoDataGenerator
    from data.store import JsonFileStore

    mgr, config = _load_config_or_abort()
    path = Path(config.storage.data_file)
    if path.exists():
        if not force:
            console.print(f"[yellow]Datendatei existiert bereits: {path}[/yellow]\n"
                          "Mit [bold]--force[/bold] überschreiben.")
            sys.exit(1)
        path.unlink()

    gen = DemoDataGenerator(config, seed=seed)
    try:
        counts = gen.generate(JsonFileStore(path))
    except TimetableError as e:
        _abort(e)
    gen.print_summary(counts)
    console.print(f"[green]✓[/green] Daten gespeichert: {path}")


# ─── SLOTS ────────────────────────────────────────────────────────────────────

@click.group("slots")
def cmd_slots():
    """Zeitslots auflisten, anlegen, ändern, löschen."""


@cmd_slots.command("list")
@click.option("--day", type=click.Choice(DAY_CHOICES, case_sensitive=False), default=None)
@click.option("--class-id", default=None, help="Nur Lerngruppen dieser Klasse.")
@click.option("--section-id", default=None)
@click.option("--teacher-id", default=None)
@click.option("--academic-year-id", default=None, help="Nur Slots dieses Schuljahres.")
def slots_list(day, class_id, section_id, teacher_id, academic_year_id):
    """Listet Zeitslots, optional gefiltert."""
    from models.time_slot import TimetableFilter

    config, store, service = _open_service()
    try:
        slots = service.list_time_slots(TimetableFilter(
            day_of_week=day, class_id=class_id,
            section_id=section_id, teacher_id=teacher_id,
            academic_year_id=academic_year_id,
        ))
    except TimetableError as e:
        _abort(e)
    _print_slots(slots, f"Zeitslots ({len(slots)})")


@cmd_slots.command("add")
@click.option("--day", required=True, type=click.Choice(DAY_CHOICES, case_sensitive=False))
@click.option("--start", "start_time", required=True, help='Startzeit, z.B. "08:00" oder "8 am".')
@click.option("--end", "end_time", default=None, help="Endzeit (alternativ --duration).")
@click.option("--duration", type=int, default=None, help="Dauer in Minuten.")
@click.option("--section-id", required=True)
@click.option("--type", "slot_type", type=click.Choice(SLOT_TYPE_CHOICES), default="subject")
@click.option("--subject-id", default=None)
@click.option("--title", default=None, help="Pflicht bei break/event.")
@click.option("--teacher-id", default=None)
def slots_add(day, start_time, end_time, duration, section_id, slot_type,
              subject_id, title, teacher_id):
    """Legt einen Zeitslot an (mit Überschneidungsprüfung)."""
    from models.time_slot import SlotType, TimeSlotCreate

    config, store, service = _open_service()
    try:
        slot = service.create_time_slot(TimeSlotCreate(
            start_time=start_time, end_time=end_time, duration=duration,
            day_of_week=day, slot_type=SlotType(slot_type),
            subject_id=subject_id, title=title, teacher_id=teacher_id,
            section_id=section_id,
        ))
    except (TimetableError, PydanticValidationError) as e:
        _abort(e)
    console.print(f"[green]✓[/green] Angelegt: {slot} [dim]({slot.id})[/dim]")


@cmd_slots.command("edit")
@click.argument("slot_id")
@click.option("--day", type=click.Choice(DAY_CHOICES, case_sensitive=False), default=None)
@click.option("--start", "start_time", default=None)
@click.option("--end", "end_time", default=None)
@click.option("--duration", type=int, default=None)
@click.option("--section-id", default=None)
@click.option("--type", "slot_type", type=click.Choice(SLOT_TYPE_CHOICES), default=None)
@click.option("--subject-id", default=None)
@click.option("--title", default=None)
@click.option("--teacher-id", default=None)
def slots_edit(slot_id, **options):
    """Ändert die angegebenen Felder eines Zeitslots."""
    changes = {k: v for k, v in options.items() if v is not None}
    if not changes:
        console.print("[yellow]Keine Änderungen angegeben.[/yellow]")
        return

    config, store, service = _open_service()
    try:
        slot = service.update_time_slot(slot_id, changes)
    except TimetableError as e:
        _abort(e)
    if slot is None:
        console.print(f"[yellow]Zeitslot {slot_id} nicht gefunden.[/yellow]")
        sys.exit(1)
    console.print(f"[green]✓[/green] Geändert: {slot}")


@cmd_slots.command("delete")
@click.argument("slot_id")
def slots_delete(slot_id):
    """Löscht einen Zeitslot."""
    config, store, service = _open_service()
    try:
        deleted = service.delete_time_slot(slot_id)
    except TimetableError as e:
        _abort(e)
    if deleted:
        console.print(f"[green]✓[/green] Zeitslot {slot_id} gelöscht.")
    else:
        console.print(f"[yellow]Zeitslot {slot_id} nicht gefunden – nichts zu löschen.[/yellow]")


# ─── SHOW ─────────────────────────────────────────────────────────────────────

@click.command("show")
@click.argument("section_id")
@click.option("--day", type=click.Choice(DAY_CHOICES, case_sensitive=False), default=None,
              help="Nur diesen Tag anzeigen (Tagesansicht).")
@click.option("--twelve-hour", "twelve_hour", is_flag=True, default=False,
              help="Uhrzeiten mit AM/PM anzeigen (Tagesansicht).")
def cmd_show(section_id: str, day: str, twelve_hour: bool):
    """Zeigt den Wochenplan (oder einen Tag) einer Lerngruppe."""
    from export.helpers import visible_days
    from export.tui_renderer import render_day_rows, render_week_rows
    from models.time_slot import TimetableFilter

    config, store, service = _open_service()
    try:
        slots = service.list_time_slots(TimetableFilter(section_id=section_id))
    except TimetableError as e:
        _abort(e)
    if not slots:
        console.print(f"[dim]Keine Zeitslots für Lerngruppe {section_id}.[/dim]")
        return

    if day:
        day = day.capitalize()
        table = Table(title=f"{section_id} – {day}", box=box.ROUNDED)
        for col in ("Zeit", "Typ", "Bezeichnung", "Lehrkraft"):
            table.add_column(col)
        for row in render_day_rows(slots, day, twelve_hour=twelve_hour):
            table.add_row(*row)
        console.print(table)
        return

    days = visible_days(slots)
    table = Table(title=f"Wochenplan {section_id}", box=box.ROUNDED, show_lines=True)
    table.add_column("Zeit", style="bold")
    for d in days:
        table.add_column(d, justify="center")
    for row in render_week_rows(slots, days):
        table.add_row(*row)
    console.print(table)


# ─── VALIDATE ─────────────────────────────────────────────────────────────────

@click.command("validate")
def cmd_validate():
    """Prüft alle gespeicherten Zeitslots auf Überschneidungen und Fehler."""
    from analysis.schedule_validator import ScheduleValidator

    config, store, service = _open_service()
    report = ScheduleValidator().validate(store)
    report.print_rich()
    sys.exit(0 if report.is_valid else 1)


# ─── EXPORT ───────────────────────────────────────────────────────────────────

@click.command("export")
@click.option("--output", "-o", default="output/wochenplaene.xlsx",
              help="Ausgabepfad der Excel-Datei.")
@click.option("--class-id", default=None, help="Nur Lerngruppen dieser Klasse.")
def cmd_export(output: str, class_id: str):
    """Exportiert die Wochenpläne (ein Blatt je Lerngruppe) als Excel."""
    from export.excel_export import WeekExcelExporter
    from models.time_slot import TimetableFilter

    config, store, service = _open_service()
    try:
        slots = service.list_time_slots(TimetableFilter(class_id=class_id))
    except TimetableError as e:
        _abort(e)
    sheets = WeekExcelExporter(slots, school_name=config.school_name).export(Path(output))
    console.print(f"[green]✓[/green] Excel gespeichert: {output} ({len(sheets)} Blätter)")


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
def cli():
    """Zeitslot-Verwaltung für Stundenpläne.

    Starten Sie mit: python main.py setup
    """


def main():
    cli()


# Befehle registrieren
cli.add_command(cmd_setup)
cli.add_command(cmd_config)
cli.add_command(cmd_generate)
cli.add_command(cmd_slots)
cli.add_command(cmd_show)
cli.add_command(cmd_validate)
cli.add_command(cmd_export)


if __name__ == "__main__":
    main()
