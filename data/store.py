"""Tabellenspeicher für Stundenplan-Daten.

Der Service kennt nur die vier Verben select/insert/update/delete auf
benannten Tabellen mit String-IDs. InMemoryStore hält alles im Speicher
(Tests, Demo), JsonFileStore schreibt nach jeder Änderung eine JSON-Datei.
"""

import copy
import json
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

logger = logging.getLogger(__name__)

# Tabellennamen
TIME_SLOTS = "time_slots"
SECTIONS = "sections"
SUBJECTS = "subjects"
TEACHER_SUBJECTS = "teacher_subjects"

TABLES = (TIME_SLOTS, SECTIONS, SUBJECTS, TEACHER_SUBJECTS)


class StoreError(Exception):
    """Fehler beim Zugriff auf den Datenspeicher."""


class TableStore(ABC):
    """Abstrakter Tabellenspeicher (Zeilen sind flache Dicts mit 'id')."""

    @abstractmethod
    def select(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
        in_filters: Optional[dict[str, Iterable[Any]]] = None,
    ) -> list[dict]:
        """Alle Zeilen, deren Spalten den Gleichheits- bzw. IN-Filtern genügen."""

    @abstractmethod
    def insert(self, table: str, row: dict) -> dict:
        """Legt eine Zeile an und gibt sie inkl. id/created_at zurück."""

    @abstractmethod
    def update(self, table: str, row_id: str, changes: dict) -> Optional[dict]:
        """Übernimmt changes in die Zeile row_id. None wenn nicht vorhanden."""

    @abstractmethod
    def delete(self, table: str, row_id: str) -> bool:
        """Entfernt die Zeile. False wenn nicht vorhanden."""

    def get(self, table: str, row_id: str) -> Optional[dict]:
        """Einzelne Zeile per ID oder None."""
        rows = self.select(table, {"id": row_id})
        return rows[0] if rows else None


class InMemoryStore(TableStore):
    """Speicher im Arbeitsspeicher. Zeilen werden beim Lesen/Schreiben kopiert."""

    def __init__(self, tables: Optional[dict[str, list[dict]]] = None) -> None:
        self._tables: dict[str, list[dict]] = {name: [] for name in TABLES}
        for name, rows in (tables or {}).items():
            self._tables[name] = [dict(r) for r in rows]

    def _table(self, table: str) -> list[dict]:
        if table not in self._tables:
            raise StoreError(f"Unbekannte Tabelle: {table}")
        return self._tables[table]

    def select(self, table, filters=None, in_filters=None) -> list[dict]:
        rows = self._table(table)
        in_sets = {k: set(vs) for k, vs in (in_filters or {}).items()}
        result = []
        for row in rows:
            if filters and any(row.get(k) != v for k, v in filters.items()):
                continue
            if any(row.get(k) not in vs for k, vs in in_sets.items()):
                continue
            result.append(copy.deepcopy(row))
        return result

    def insert(self, table: str, row: dict) -> dict:
        rows = self._table(table)
        now = datetime.now(timezone.utc).isoformat()
        stored = {"id": row.get("id") or str(uuid.uuid4()),
                  "created_at": now, "updated_at": now}
        stored.update({k: v for k, v in row.items() if k != "id"})
        self._commit(rows, rows + [stored])
        return copy.deepcopy(stored)

    def update(self, table: str, row_id: str, changes: dict) -> Optional[dict]:
        rows = self._table(table)
        for i, row in enumerate(rows):
            if row.get("id") == row_id:
                changed = dict(row)
                changed.update({k: v for k, v in changes.items() if k != "id"})
                changed["updated_at"] = datetime.now(timezone.utc).isoformat()
                self._commit(rows, rows[:i] + [changed] + rows[i + 1:])
                return copy.deepcopy(changed)
        return None

    def delete(self, table: str, row_id: str) -> bool:
        rows = self._table(table)
        remaining = [r for r in rows if r.get("id") != row_id]
        if len(remaining) == len(rows):
            return False
        self._commit(rows, remaining)
        return True

    def _commit(self, rows: list[dict], new_rows: list[dict]) -> None:
        """Übernimmt new_rows in die Tabelle; schlägt _flush fehl, gilt wieder der alte Stand."""
        previous = list(rows)
        rows[:] = new_rows
        try:
            self._flush()
        except Exception:
            rows[:] = previous
            raise

    def _flush(self) -> None:
        """Hook für persistente Unterklassen."""

    def __repr__(self) -> str:
        counts = ", ".join(f"{k}={len(v)}" for k, v in self._tables.items())
        return f"{type(self).__name__}({counts})"


class JsonFileStore(InMemoryStore):
    """Alle Tabellen in einer JSON-Datei: {"time_slots": [...], "sections": [...], ...}."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        super().__init__(self._load())

    def _load(self) -> dict[str, list[dict]]:
        if not self.path.exists():
            logger.info(f"Datendatei {self.path} existiert noch nicht – starte leer")
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Datendatei nicht lesbar: {self.path}") from e
        if not isinstance(raw, dict):
            raise StoreError(f"Datendatei hat kein Tabellen-Objekt: {self.path}")
        return raw

    def _flush(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self._tables, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise StoreError(f"Datendatei nicht schreibbar: {self.path}") from e
