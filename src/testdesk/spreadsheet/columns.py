from dataclasses import dataclass
from typing import List

SHEET_NAME = "시험항목"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

@dataclass(frozen=True)
class Column:
    """表格列定义: 模型字段、表头标题和列宽"""
    field: str
    title: str
    width: int

# 列顺序固定, 导入时按位置读取
TEST_ITEM_COLUMNS: List[Column] = [
    Column("name", "시험항목명", 30),
    Column("planned_start_date", "계획 시작일", 14),
    Column("planned_end_date", "계획 종료일", 14),
    Column("actual_end_date", "실제 종료일", 14),
    Column("test_condition", "시험 조건", 30),
    Column("judgment_criteria", "판정 기준", 30),
    Column("test_data", "시험 데이터", 30),
    Column("test_result", "시험 결과", 10),
    Column("progress_status", "진행 상태", 10),
    Column("report_status", "보고서 상태", 12),
    Column("notes", "비고", 30),
]

DATE_FIELDS = ("planned_start_date", "planned_end_date", "actual_end_date")

def column_title(field: str) -> str:
    """根据字段名取表头标题"""
    for column in TEST_ITEM_COLUMNS:
        if column.field == field:
            return column.title
    raise KeyError(field)
