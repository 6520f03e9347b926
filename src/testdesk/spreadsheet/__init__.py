"""시험항목 엑셀 导入导出"""
from .columns import TEST_ITEM_COLUMNS, SHEET_NAME, XLSX_MEDIA_TYPE
from .errors import SpreadsheetImportError
from .exporter import export_test_items, export_filename
from .importer import ImportRow, detect_source_format, read_grid, parse_test_item_rows

__all__ = [
    "TEST_ITEM_COLUMNS",
    "SHEET_NAME",
    "XLSX_MEDIA_TYPE",
    "SpreadsheetImportError",
    "export_test_items",
    "export_filename",
    "ImportRow",
    "detect_source_format",
    "read_grid",
    "parse_test_item_rows",
]
