from typing import Optional
from sqlalchemy import String, Text, ForeignKey, JSON, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship
from .base import Base

class User(Base):
    """用户模型"""

    username: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    password: Mapped[str] = mapped_column(String(255))  # bcrypt 哈希

    projects: Mapped[list["Project"]] = relationship(back_populates="user", cascade="all, delete-orphan")

class Project(Base):
    """项目模型"""

    user_id: Mapped[str] = mapped_column(ForeignKey("user.id"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, default="")
    product_spec: Mapped[str] = mapped_column(Text, default="")
    schedule_image: Mapped[str] = mapped_column(String(1024), default="")
    schedule_description: Mapped[str] = mapped_column(Text, default="")
    product_image: Mapped[str] = mapped_column(String(1024), default="")
    product_spec_description: Mapped[str] = mapped_column(Text, default="")
    start_date: Mapped[str] = mapped_column(String(10), default="")  # YYYY-MM-DD
    end_date: Mapped[str] = mapped_column(String(10), default="")
    status: Mapped[str] = mapped_column(String(20), default="진행중")
    last_updated_at: Mapped[str] = mapped_column(String(10), default="")

    user: Mapped["User"] = relationship(back_populates="projects")
    test_items: Mapped[list["TestItem"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="TestItem.position"
    )
    issue_items: Mapped[list["IssueItem"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="IssueItem.position"
    )

class TestItem(Base):
    """测试项模型"""

    project_id: Mapped[str] = mapped_column(ForeignKey("project.id"), index=True)
    position: Mapped[int] = mapped_column(Integer, default=0)  # 项目内的插入顺序

    name: Mapped[str] = mapped_column(String(255))
    planned_start_date: Mapped[str] = mapped_column(String(10), default="")
    planned_end_date: Mapped[str] = mapped_column(String(10), default="")
    actual_end_date: Mapped[str] = mapped_column(String(10), default="")
    test_condition: Mapped[str] = mapped_column(Text, default="")
    judgment_criteria: Mapped[str] = mapped_column(Text, default="")
    test_data: Mapped[str] = mapped_column(Text, default="")
    test_result: Mapped[str] = mapped_column(String(10), default="")
    progress_status: Mapped[str] = mapped_column(String(20), default="대기중")
    report_status: Mapped[str] = mapped_column(String(20), default="대기중")
    notes: Mapped[str] = mapped_column(Text, default="")

    # 上传文件: photos/graphs 为 URL 列表, attachments 为 {url, filename, size} 列表
    photos: Mapped[list] = mapped_column(JSON, default=list)
    graphs: Mapped[list] = mapped_column(JSON, default=list)
    attachments: Mapped[list] = mapped_column(JSON, default=list)

    project: Mapped["Project"] = relationship(back_populates="test_items")

class IssueItem(Base):
    """问题项模型"""

    project_id: Mapped[str] = mapped_column(ForeignKey("project.id"), index=True)
    position: Mapped[int] = mapped_column(Integer, default=0)

    name: Mapped[str] = mapped_column(String(255))
    severity: Mapped[str] = mapped_column(String(10), default="Low")
    occurred_date: Mapped[str] = mapped_column(String(10), default="")
    planned_end_date: Mapped[str] = mapped_column(String(10), default="")
    actual_end_date: Mapped[str] = mapped_column(String(10), default="")
    last_modified_date: Mapped[str] = mapped_column(String(10), default="")
    related_test_item_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    issue_content: Mapped[str] = mapped_column(Text, default="")
    issue_cause: Mapped[str] = mapped_column(Text, default="")
    issue_countermeasure: Mapped[str] = mapped_column(Text, default="")
    verification_result: Mapped[str] = mapped_column(Text, default="")
    progress_status: Mapped[str] = mapped_column(String(20), default="대기중")
    notes: Mapped[str] = mapped_column(Text, default="")

    photos: Mapped[list] = mapped_column(JSON, default=list)
    graphs: Mapped[list] = mapped_column(JSON, default=list)
    attachments: Mapped[list] = mapped_column(JSON, default=list)

    project: Mapped["Project"] = relationship(back_populates="issue_items")
