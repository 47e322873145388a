from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# ─── ZEITRASTER (Auswahlraster für Startzeiten) ───

class TimeGridSettings(BaseModel):
    """Raster, aus dem Startzeiten angeboten und in der Wochenansicht
    Zeilen gebildet werden."""
    # Erste Rasterstunde (z.B. 7 → 07:00)
    day_start_hour: int = Field(7, ge=0, le=23,
        description="Erste Stunde des Rasters")
    # Letzte Rasterstunde (inklusive, z.B. 17 → bis 17:30 bei 30-min-Raster)
    day_end_hour: int = Field(17, ge=0, le=23,
        description="Letzte Stunde des Rasters")
    # Rasterweite in Minuten
    step_minutes: int = Field(30, ge=5, le=60,
        description="Rasterweite in Minuten")

    @model_validator(mode='after')
    def validate_hours(self):
        if self.day_start_hour >= self.day_end_hour:
            raise ValueError(
                f"Rasterbeginn {self.day_start_hour} muss vor Rasterende "
                f"{self.day_end_hour} liegen")
        return self


# ─── SLOT-REGELN ───

class SlotRules(BaseModel):
    """Erlaubte Slot-Dauern (Minuten)."""
    min_duration_minutes: int = Field(15, ge=1,
        description="Minimale Slot-Dauer")
    max_duration_minutes: int = Field(240, ge=1,
        description="Maximale Slot-Dauer")
    # Vorbelegung, wenn weder Endzeit noch Dauer angegeben sind
    default_duration_minutes: int = Field(60, ge=1,
        description="Standard-Dauer für neue Slots")

    @model_validator(mode='after')
    def validate_bounds(self):
        if not (self.min_duration_minutes <= self.default_duration_minutes
                <= self.max_duration_minutes):
            raise ValueError(
                "Es muss gelten: min_duration ≤ default_duration ≤ max_duration")
        return self


# ─── DATENSPEICHER ───

class StorageConfig(BaseModel):
    # JSON-Datei mit allen Tabellen (time_slots, sections, subjects, teacher_subjects)
    data_file: str = Field("data/timetable.json",
        description="Pfad zur JSON-Datendatei")


# ─── GESAMT-CONFIG ───

class TimetableConfig(BaseModel):
    """Gesamtkonfiguration der Stundenplan-Verwaltung."""
    school_name: str = Field("Muster-Schule",
        description="Name der Schule")
    # Aktives Schuljahr: wird neuen Slots zugeordnet
    academic_year_id: str = Field(
        description="ID des aktiven Schuljahres")
    grid: TimeGridSettings = Field(default_factory=TimeGridSettings)
    slot_rules: SlotRules = Field(default_factory=SlotRules)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    log_level: LogLevel = Field(LogLevel.INFO)

    @field_validator("academic_year_id")
    @classmethod
    def non_empty_year(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("academic_year_id darf nicht leer sein")
        return v
