"""Fehlerhierarchie für die Zeitslot-Verwaltung.

ValidationError    – Eingaben ungültig (Uhrzeit, Wochentag, Pflichtfeld, Überschneidung).
                     Wird VOR jedem Zugriff auf die Persistenz ausgelöst.
PersistenceError   – Der Datenspeicher hat einen Lese-/Schreibzugriff abgelehnt.
                     Die ursprüngliche Ausnahme hängt an `cause` (und __cause__).

"Nicht gefunden" ist kein Fehler: get/update liefern None, delete liefert False.
"""

from typing import Any, Optional


class TimetableError(Exception):
    """Basisklasse aller Fehler der Zeitslot-Verwaltung."""


class ValidationError(TimetableError):
    """Ungültige Eingabe, erkannt bevor der Datenspeicher angesprochen wird."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class SlotConflictError(ValidationError):
    """Der neue Zeitslot überschneidet sich mit einem bestehenden Slot."""

    def __init__(self, message: str, conflicting: Any = None):
        super().__init__(message, field="start_time")
        self.conflicting = conflicting


class PersistenceError(TimetableError):
    """Lese- oder Schreibfehler im Datenspeicher."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message if cause is None else f"{message}: {cause}")
        self.cause = cause
