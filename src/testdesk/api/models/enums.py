from enum import Enum

class TestResult(str, Enum):
    """시험 결과 (미판정은 빈 문자열)"""
    NONE = ""
    OK = "OK"
    NG = "NG"
    TBD = "TBD"

class ProgressStatus(str, Enum):
    """진행 상태"""
    WAITING = "대기중"
    IN_PROGRESS = "진행중"
    DONE = "완료"

class ReportStatus(str, Enum):
    """보고서 상태"""
    WAITING = "대기중"
    DRAFTING = "작성중"
    DONE = "완료"

class ProjectStatus(str, Enum):
    """프로젝트 상태"""
    IN_PROGRESS = "진행중"
    DONE = "완료"
    ON_HOLD = "보류"

class IssueSeverity(str, Enum):
    """문제 심각도"""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

def enum_values(enum_cls) -> set:
    """枚举的全部合法取值"""
    return {member.value for member in enum_cls}
