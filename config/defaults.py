from config.schema import (
    SlotRules,
    StorageConfig,
    TimeGridSettings,
    TimetableConfig,
)


def default_grid() -> TimeGridSettings:
    """Standard-Raster 07:00 – 17:30 in 30-Minuten-Schritten."""
    return TimeGridSettings(day_start_hour=7, day_end_hour=17, step_minutes=30)


def default_slot_rules() -> SlotRules:
    """Slots zwischen 15 Minuten und 4 Stunden, Standard 60 Minuten."""
    return SlotRules(
        min_duration_minutes=15,
        max_duration_minutes=240,
        default_duration_minutes=60,
    )


def default_timetable_config(academic_year_id: str = "2025-2026") -> TimetableConfig:
    """Vollständige Default-Konfiguration für ein Schuljahr."""
    return TimetableConfig(
        school_name="Muster-Schule",
        academic_year_id=academic_year_id,
        grid=default_grid(),
        slot_rules=default_slot_rules(),
        storage=StorageConfig(data_file="data/timetable.json"),
    )
