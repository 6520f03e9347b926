import math
import zipfile
from dataclasses import dataclass, asdict
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Union
import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from testdesk.api.models.enums import TestResult, ProgressStatus, ReportStatus, enum_values
from testdesk.utils.common import get_file_extension
from testdesk.utils.dates import parse_user_date
from testdesk.utils.decorators import log_function_call
from testdesk.logger.logger import logger
from .columns import TEST_ITEM_COLUMNS, DATE_FIELDS, column_title
from .errors import (
    SpreadsheetImportError,
    NO_DATA_MESSAGE,
    NO_VALID_ROWS_MESSAGE,
    UNSUPPORTED_FORMAT_MESSAGE,
    UNREADABLE_FILE_MESSAGE,
)

SPREADSHEET = "spreadsheet"
DELIMITED_TEXT = "delimited-text"

SOURCE_FORMATS = {
    ".xlsx": SPREADSHEET,
    ".xlsm": SPREADSHEET,
    ".csv": DELIMITED_TEXT,
}

CSV_ENCODINGS = ("utf-8-sig", "cp949")

# (字段, 合法取值, 空值时的默认值); 默认值为None表示空值本身必须合法
ENUM_RULES = [
    ("test_result", enum_values(TestResult), None),
    ("progress_status", enum_values(ProgressStatus), ProgressStatus.WAITING.value),
    ("report_status", enum_values(ReportStatus), ReportStatus.WAITING.value),
]

@dataclass
class ImportRow:
    """通过校验的一行数据"""
    name: str
    planned_start_date: str = ""
    planned_end_date: str = ""
    actual_end_date: str = ""
    test_condition: str = ""
    judgment_criteria: str = ""
    test_data: str = ""
    test_result: str = ""
    progress_status: str = ProgressStatus.WAITING.value
    report_status: str = ReportStatus.WAITING.value
    notes: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

def detect_source_format(filename: str) -> str:
    """根据扩展名判断上传文件的格式"""
    source_format = SOURCE_FORMATS.get(get_file_extension(filename or ""))
    if source_format is None:
        raise ValueError(UNSUPPORTED_FORMAT_MESSAGE)
    return source_format

def cell_to_text(value: Any) -> str:
    """单元格值转为去除首尾空白的字符串"""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()

def _read_xlsx(file_path: Union[str, Path]) -> List[List[str]]:
    try:
        workbook = load_workbook(file_path, read_only=True, data_only=True)
    except (zipfile.BadZipFile, InvalidFileException, KeyError):
        raise ValueError(UNREADABLE_FILE_MESSAGE)

    try:
        sheet = workbook.worksheets[0]
        return [
            [cell_to_text(value) for value in row]
            for row in sheet.iter_rows(values_only=True)
        ]
    finally:
        # read_only 模式会一直持有文件句柄
        workbook.close()

def _read_csv(file_path: Union[str, Path]) -> List[List[str]]:
    width = len(TEST_ITEM_COLUMNS)
    for encoding in CSV_ENCODINGS:
        try:
            # 固定读取为 11 列: 字段少的行补空, 字段多的行截断
            df = pd.read_csv(
                file_path,
                header=None,
                names=list(range(width)),
                index_col=False,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=False,
                encoding=encoding,
                engine="python",
                on_bad_lines=lambda fields: fields[:width],
            )
        except UnicodeDecodeError:
            logger.debug(f"CSV 编码不是 {encoding}, 尝试下一个")
            continue
        except pd.errors.EmptyDataError:
            return []
        except pd.errors.ParserError:
            raise ValueError(UNREADABLE_FILE_MESSAGE)
        return [
            [cell_to_text(value) for value in row]
            for row in df.itertuples(index=False, name=None)
        ]
    raise ValueError(UNREADABLE_FILE_MESSAGE)

def read_grid(file_path: Union[str, Path], source_format: str) -> List[List[str]]:
    """把上传文件读取为二维字符串表格, 两种格式得到相同结构

    Args:
        file_path: 文件路径
        source_format: spreadsheet 或 delimited-text

    Returns:
        List[List[str]]: 包含表头的全部行
    """
    if source_format == SPREADSHEET:
        return _read_xlsx(file_path)
    if source_format == DELIMITED_TEXT:
        return _read_csv(file_path)
    raise ValueError(UNSUPPORTED_FORMAT_MESSAGE)

def _invalid_value_message(line: int, field: str, value: str) -> str:
    return f"{line}행: '{column_title(field)}' 값이 올바르지 않습니다 ({value})"

@log_function_call()
def parse_test_item_rows(grid: List[List[str]]) -> List[ImportRow]:
    """校验表格数据并转换为导入行

    第一行为表头; 全空行直接跳过; 所有行的枚举错误汇总后一次性报告,
    只要有一处错误就整体拒绝。

    Args:
        grid: read_grid 返回的二维表格

    Returns:
        List[ImportRow]: 按原顺序排列的导入行

    Raises:
        SpreadsheetImportError: 数据不足或存在校验错误
    """
    if len(grid) < 2:
        raise SpreadsheetImportError(NO_DATA_MESSAGE)

    fields = [column.field for column in TEST_ITEM_COLUMNS]
    errors: List[str] = []
    rows: List[ImportRow] = []

    for index in range(1, len(grid)):
        cells = [cell.strip() if isinstance(cell, str) else cell_to_text(cell) for cell in grid[index]]
        cells = (cells + [""] * len(fields))[:len(fields)]
        if not any(cells):
            continue

        # 表头占第 1 行
        line = index + 1
        values = dict(zip(fields, cells))

        for field, allowed, default in ENUM_RULES:
            value = values[field]
            if not value and default is not None:
                values[field] = default
            elif value not in allowed:
                errors.append(_invalid_value_message(line, field, value))

        if not values["name"]:
            values["name"] = f"시험항목 {index}"

        for field in DATE_FIELDS:
            if values[field]:
                values[field] = parse_user_date(values[field]) or values[field]

        rows.append(ImportRow(**values))

    if errors:
        logger.warning(f"导入校验失败, 共 {len(errors)} 处错误")
        raise SpreadsheetImportError(errors=errors)

    if not rows:
        raise SpreadsheetImportError(NO_VALID_ROWS_MESSAGE)

    return rows
