"""Interaktiver Setup-Wizard für die Ersteinrichtung der Zeitslot-Verwaltung.

Nutzt rich für die Konsolenausgabe.
"""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table
from rich import box

from config.schema import SlotRules, StorageConfig, TimeGridSettings, TimetableConfig
from config.defaults import default_grid, default_slot_rules

console = Console()


def _header(title: str) -> None:
    console.print()
    console.print(Panel(f"[bold cyan]{title}[/bold cyan]", expand=False))


def _warn(text: str) -> None:
    console.print(f"[yellow]⚠[/yellow]  {text}")


def show_config_table(config: TimetableConfig) -> None:
    """Zeigt die Konfiguration als rich-Tabelle an."""
    table = Table(title="Konfiguration", box=box.ROUNDED)
    table.add_column("Parameter", style="bold")
    table.add_column("Wert")
    table.add_row("Schule", config.school_name)
    table.add_row("Schuljahr", config.academic_year_id)
    g = config.grid
    table.add_row("Raster", f"{g.day_start_hour:02d}:00 – {g.day_end_hour:02d}:xx, "
                            f"alle {g.step_minutes} min")
    r = config.slot_rules
    table.add_row("Slot-Dauer", f"{r.min_duration_minutes}–{r.max_duration_minutes} min "
                                f"(Standard {r.default_duration_minutes})")
    table.add_row("Datendatei", config.storage.data_file)
    table.add_row("Log-Level", config.log_level.value)
    console.print(table)


def _wizard_grid() -> TimeGridSettings:
    _header("Zeitraster")
    default = default_grid()
    if Confirm.ask(f"Standard-Raster übernehmen ({default.day_start_hour:02d}:00 – "
                   f"{default.day_end_hour:02d}:30, {default.step_minutes} min)?", default=True):
        return default
    while True:
        start = IntPrompt.ask("Erste Stunde", default=default.day_start_hour)
        end = IntPrompt.ask("Letzte Stunde", default=default.day_end_hour)
        step = IntPrompt.ask("Rasterweite (Minuten)", default=default.step_minutes)
        try:
            return TimeGridSettings(day_start_hour=start, day_end_hour=end, step_minutes=step)
        except ValueError as e:
            _warn(f"Ungültiges Raster: {e}")


def _wizard_slot_rules() -> SlotRules:
    _header("Slot-Dauer")
    default = default_slot_rules()
    if Confirm.ask("Standard-Dauern übernehmen (15–240 min, Standard 60)?", default=True):
        return default
    while True:
        lo = IntPrompt.ask("Minimale Dauer", default=default.min_duration_minutes)
        hi = IntPrompt.ask("Maximale Dauer", default=default.max_duration_minutes)
        std = IntPrompt.ask("Standard-Dauer", default=default.default_duration_minutes)
        try:
            return SlotRules(min_duration_minutes=lo, max_duration_minutes=hi,
                             default_duration_minutes=std)
        except ValueError as e:
            _warn(f"Ungültige Dauern: {e}")


def run_wizard() -> Optional[TimetableConfig]:
    """Führt durch die Einrichtung. Gibt None zurück, wenn abgebrochen wurde."""
    _header("Einrichtung der Zeitslot-Verwaltung")
    school_name = Prompt.ask("Name der Schule", default="Muster-Schule")
    academic_year_id = Prompt.ask("ID des aktiven Schuljahres", default="2025-2026")
    grid = _wizard_grid()
    slot_rules = _wizard_slot_rules()
    data_file = Prompt.ask("Datendatei", default="data/timetable.json")

    config = TimetableConfig(
        school_name=school_name,
        academic_year_id=academic_year_id,
        grid=grid,
        slot_rules=slot_rules,
        storage=StorageConfig(data_file=data_file),
    )
    show_config_table(config)
    if not Confirm.ask("Konfiguration speichern?", default=True):
        console.print("[yellow]Abgebrochen.[/yellow]")
        return None
    return config
