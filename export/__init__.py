"""Export-Modul: Terminal-Wochenansicht (Rich) und Excel (openpyxl)."""

from export.excel_export import WeekExcelExporter
from export.tui_renderer import render_day_rows, render_week_rows

__all__ = ["WeekExcelExporter", "render_day_rows", "render_week_rows"]
