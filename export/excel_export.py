"""Excel-Export des Wochenplans (openpyxl): ein Tabellenblatt je Lerngruppe."""

from collections import defaultdict
from pathlib import Path

from models.time_slot import TimeSlot

from export.helpers import (
    COLORS, build_grid, format_slot, slot_color, time_rows, today_str, visible_days,
)


class WeekExcelExporter:
    """Exportiert Zeitslots gruppiert nach Lerngruppe in eine Excel-Datei."""

    # Spaltenbreiten (Excel-Einheiten)
    COL_ZEIT_W = 15
    COL_DAY_W  = 22

    # Zeilenhöhen (Punkte)
    ROW_HEADER_H = 22
    ROW_SLOT_H   = 36

    def __init__(self, slots: list[TimeSlot], school_name: str = ""):
        self.slots = slots
        self.school_name = school_name

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export(self, output_path: Path) -> list[str]:
        """Erstellt die Excel-Datei; gibt die Namen der Tabellenblätter zurück."""
        from openpyxl import Workbook
        wb = Workbook()
        wb.remove(wb.active)   # Leeres Standard-Sheet entfernen

        by_section: dict[str, list[TimeSlot]] = defaultdict(list)
        for s in self.slots:
            by_section[s.section_id].append(s)

        if not by_section:
            ws = wb.create_sheet(title="Leer")
            ws.cell(row=1, column=1, value="Keine Zeitslots vorhanden")

        for section_id in sorted(by_section):
            self._sheet_section(wb, section_id, by_section[section_id])

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)
        return wb.sheetnames

    # ─── Style-Helpers ────────────────────────────────────────────────────────

    def _fill(self, hex_color: str):
        from openpyxl.styles import PatternFill
        return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")

    def _center_align(self, wrap: bool = True):
        from openpyxl.styles import Alignment
        return Alignment(wrap_text=wrap, horizontal="center", vertical="center")

    def _thin_border(self):
        from openpyxl.styles import Border, Side
        s = Side(border_style="thin", color="BBBBBB")
        return Border(left=s, right=s, top=s, bottom=s)

    # ─── Sheet je Lerngruppe ──────────────────────────────────────────────────

    def _sheet_section(self, wb, section_id: str, slots: list[TimeSlot]) -> None:
        from openpyxl.styles import Font
        from openpyxl.utils import get_column_letter

        ws = wb.create_sheet(title=section_id[:31])   # Excel: max. 31 Zeichen
        days = visible_days(slots)
        border = self._thin_border()

        ws.column_dimensions["A"].width = self.COL_ZEIT_W
        for col in range(2, 2 + len(days)):
            ws.column_dimensions[get_column_letter(col)].width = self.COL_DAY_W

        headers = ["Zeit"] + days
        fill = self._fill(COLORS["header"])
        for col, text in enumerate(headers, 1):
            cell = ws.cell(row=1, column=col, value=text)
            cell.fill = fill
            cell.font = Font(bold=True, color="FFFFFF", size=10)
            cell.alignment = self._center_align(wrap=False)
            cell.border = border
        ws.row_dimensions[1].height = self.ROW_HEADER_H

        grid = build_grid(slots)
        excel_row = 2
        for start, end in time_rows(slots):
            c = ws.cell(row=excel_row, column=1, value=f"{start}–{end}")
            c.alignment = self._center_align(wrap=False)
            c.border = border
            c.font = Font(size=8)

            for offset, day in enumerate(days):
                here = grid.get((day, start, end), [])
                content = "\n".join(format_slot(s) for s in here)
                color = slot_color(here[0]) if here else COLORS["free"]
                c = ws.cell(row=excel_row, column=2 + offset, value=content)
                c.fill = self._fill(color)
                c.alignment = self._center_align()
                c.border = border
                c.font = Font(size=8)

            ws.row_dimensions[excel_row].height = self.ROW_SLOT_H
            excel_row += 1

        footer = f"{self.school_name} – Stand {today_str()}".strip(" –")
        ws.cell(row=excel_row + 1, column=1, value=footer).font = Font(italic=True, size=8)
