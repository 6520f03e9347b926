import io
from collections.abc import Mapping
from datetime import date
from typing import Any, Iterable, Optional
import pandas as pd
from openpyxl.utils import get_column_letter
from testdesk.utils.decorators import log_function_call
from testdesk.logger.logger import logger
from .columns import TEST_ITEM_COLUMNS, SHEET_NAME

def _field_value(item: Any, field: str) -> str:
    """取字段值, 缺失或None时返回空字符串"""
    if isinstance(item, Mapping):
        value = item.get(field)
    else:
        value = getattr(item, field, None)
    return "" if value is None else str(value)

@log_function_call()
def export_test_items(items: Iterable[Any]) -> bytes:
    """把测试项导出为单工作表的 xlsx 文档

    Args:
        items: 测试项 (ORM 对象或字典), 按传入顺序逐行写出

    Returns:
        bytes: xlsx 文件内容
    """
    titles = [column.title for column in TEST_ITEM_COLUMNS]
    rows = [
        [_field_value(item, column.field) for column in TEST_ITEM_COLUMNS]
        for item in items
    ]

    df = pd.DataFrame(rows, columns=titles, dtype=object)

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=SHEET_NAME)
        worksheet = writer.sheets[SHEET_NAME]
        for index, column in enumerate(TEST_ITEM_COLUMNS, start=1):
            worksheet.column_dimensions[get_column_letter(index)].width = column.width
        # 以 = 开头的文本按字符串写入, 不作为公式
        for row in worksheet.iter_rows(min_row=2):
            for cell in row:
                if isinstance(cell.value, str) and cell.value.startswith("="):
                    cell.data_type = "s"

    logger.info(f"测试项已导出: {len(rows)} 行")
    return buffer.getvalue()

def export_filename(project_name: str, on: Optional[date] = None) -> str:
    """导出文件名: {项目名}_시험항목_{YYYYMMDD}.xlsx"""
    on = on or date.today()
    safe_name = "".join(ch for ch in project_name if ch not in '\\/:*?"<>|').strip() or "project"
    return f"{safe_name}_{SHEET_NAME}_{on.strftime('%Y%m%d')}.xlsx"
