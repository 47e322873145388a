"""Zeitslot-Verwaltung: Uhrzeit-Hilfen, Überschneidungsprüfung, Service."""

from .errors import PersistenceError, SlotConflictError, TimetableError, ValidationError
from .conflicts import find_conflict, has_conflict
from .service import TimetableService

__all__ = [
    "PersistenceError",
    "SlotConflictError",
    "TimetableError",
    "ValidationError",
    "find_conflict",
    "has_conflict",
    "TimetableService",
]
