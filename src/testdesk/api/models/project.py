from datetime import datetime
from typing import Optional
from pydantic import field_validator
from testdesk.utils.dates import validate_date_field
from .base import CamelModel
from .enums import ProjectStatus

class ProjectBase(CamelModel):
    """项目可编辑字段"""
    description: Optional[str] = None
    product_spec: Optional[str] = None
    schedule_description: Optional[str] = None
    product_spec_description: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    @field_validator("start_date", "end_date")
    def validate_dates(cls, v: Optional[str]) -> Optional[str]:
        return validate_date_field(v)

class ProjectCreate(ProjectBase):
    """项目创建模型"""
    name: str
    status: ProjectStatus = ProjectStatus.IN_PROGRESS

    @field_validator("name")
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("프로젝트명을 입력하세요")
        return v

class ProjectUpdate(ProjectBase):
    """项目更新模型, 只更新传入的字段"""
    name: Optional[str] = None
    status: Optional[ProjectStatus] = None

    @field_validator("name")
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("프로젝트명을 입력하세요")
        return v.strip() if v else v

class ProjectInfo(CamelModel):
    """项目信息模型"""
    id: str
    user_id: str
    name: str
    description: str = ""
    product_spec: str = ""
    schedule_image: str = ""
    schedule_description: str = ""
    product_image: str = ""
    product_spec_description: str = ""
    start_date: str = ""
    end_date: str = ""
    status: str
    last_updated_at: str = ""
    created_at: datetime

class ProjectSummary(CamelModel):
    """项目进度统计"""
    total_tests: int
    completed_tests: int
    ok_count: int
    ng_count: int
    tbd_count: int
    reports_completed: int
    total_issues: int
    completed_issues: int
    progress: float
