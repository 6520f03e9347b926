from datetime import datetime
from typing import List, Optional
from pydantic import field_validator
from testdesk.utils.dates import validate_date_field
from .base import CamelModel
from .enums import IssueSeverity, ProgressStatus
from .test_item import AttachmentInfo

class IssueItemFields(CamelModel):
    """问题项可编辑字段"""
    severity: Optional[IssueSeverity] = None
    occurred_date: Optional[str] = None
    planned_end_date: Optional[str] = None
    actual_end_date: Optional[str] = None
    last_modified_date: Optional[str] = None
    related_test_item_id: Optional[str] = None  # 空字符串表示取消关联
    issue_content: Optional[str] = None
    issue_cause: Optional[str] = None
    issue_countermeasure: Optional[str] = None
    verification_result: Optional[str] = None
    progress_status: Optional[ProgressStatus] = None
    notes: Optional[str] = None

    @field_validator("occurred_date", "planned_end_date", "actual_end_date", "last_modified_date")
    def validate_dates(cls, v: Optional[str]) -> Optional[str]:
        return validate_date_field(v)

class IssueItemCreate(IssueItemFields):
    """问题项创建模型"""
    name: str

    @field_validator("name")
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("문제항목명을 입력하세요")
        return v

class IssueItemUpdate(IssueItemFields):
    """问题项部分更新模型"""
    name: Optional[str] = None

    @field_validator("name")
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("문제항목명을 입력하세요")
        return v.strip() if v else v

class IssueItemInfo(CamelModel):
    """问题项信息模型"""
    id: str
    project_id: str
    name: str
    severity: str
    occurred_date: str = ""
    planned_end_date: str = ""
    actual_end_date: str = ""
    last_modified_date: str = ""
    related_test_item_id: Optional[str] = None
    issue_content: str = ""
    issue_cause: str = ""
    issue_countermeasure: str = ""
    verification_result: str = ""
    progress_status: str
    notes: str = ""
    photos: List[str] = []
    graphs: List[str] = []
    attachments: List[AttachmentInfo] = []
    created_at: datetime
