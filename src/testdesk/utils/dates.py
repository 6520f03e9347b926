"""日期规范化

存储格式统一为 YYYY-MM-DD, 页面显示格式为 YYYY.MM.DD。
用户输入可以使用 '.', '-', '/' 作为分隔符。
"""
import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

INVALID_DATE_MESSAGE = "날짜 형식이 올바르지 않습니다"

MIN_YEAR = 1900
MAX_YEAR = 2100

_SEPARATORS = re.compile(r"[-/]")
_NOT_DATE_CHARS = re.compile(r"[^\d.]")

def parse_user_date(text: str) -> Optional[str]:
    """把用户输入解析为 YYYY-MM-DD

    Args:
        text: 用户输入, 如 2024.1.5 / 2024-01-05 / 2024/01/05

    Returns:
        Optional[str]: 规范化后的日期, 无法识别或日历上不存在时返回None
    """
    if not text:
        return None

    cleaned = _NOT_DATE_CHARS.sub("", _SEPARATORS.sub(".", text))
    parts = cleaned.split(".")
    if len(parts) != 3:
        return None

    year_text, month_text, day_text = parts
    if len(year_text) != 4 or not 1 <= len(month_text) <= 2 or not 1 <= len(day_text) <= 2:
        return None

    year, month, day = int(year_text), int(month_text), int(day_text)
    if not (MIN_YEAR <= year <= MAX_YEAR and 1 <= month <= 12 and 1 <= day <= 31):
        return None

    # 过滤 2 月 30 日这类日历上不存在的日期
    try:
        parsed = date(year, month, day)
    except ValueError:
        return None
    if (parsed.year, parsed.month, parsed.day) != (year, month, day):
        return None

    return f"{year:04d}-{month:02d}-{day:02d}"

def format_for_display(iso: str) -> str:
    """YYYY-MM-DD -> YYYY.MM.DD, 格式不符时原样返回"""
    if not iso:
        return ""
    parts = iso.split("-")
    if len(parts) == 3:
        return ".".join(parts)
    return iso

@dataclass
class DateInputResult:
    """一次日期输入提交的结果"""
    value: str
    display: str
    error: str = ""

    @property
    def ok(self) -> bool:
        return not self.error

def commit_date_input(text: str, previous: str = "") -> DateInputResult:
    """提交日期输入框的内容

    空输入表示清空日期; 无法识别的输入保留之前的值并返回错误信息。

    Args:
        text: 输入框中的文本
        previous: 之前已保存的值 (YYYY-MM-DD 或空)

    Returns:
        DateInputResult: 应保存的值、显示文本和错误信息
    """
    if not text or not text.strip():
        return DateInputResult(value="", display="")

    iso = parse_user_date(text)
    if iso is None:
        return DateInputResult(
            value=previous,
            display=format_for_display(previous),
            error=INVALID_DATE_MESSAGE
        )
    return DateInputResult(value=iso, display=format_for_display(iso))

def validate_date_field(value: Optional[str]) -> Optional[str]:
    """pydantic 校验器使用: 空值清空, 合法输入规范化, 其余抛出 ValueError"""
    if value is None:
        return None
    if not value.strip():
        return ""
    iso = parse_user_date(value)
    if iso is None:
        raise ValueError(INVALID_DATE_MESSAGE)
    return iso

def today_string() -> str:
    """今天的日期 (YYYY-MM-DD)"""
    return date.today().isoformat()
