from typing import List, Optional, Dict, Any
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from testdesk.api.models.enums import ProgressStatus, ReportStatus, TestResult
from testdesk.api.services.errors import NotFoundError, PROJECT_NOT_FOUND
from testdesk.db.models import Project, TestItem, IssueItem
from testdesk.storage.storage import get_storage_service
from testdesk.utils.dates import today_string
from testdesk.logger.logger import logger

IMAGE_FIELDS = {
    "product": "product_image",
    "schedule": "schedule_image",
}

class ProjectService:
    """项目服务"""

    @classmethod
    async def list_projects(cls, user_id: str, db: AsyncSession) -> List[Project]:
        """获取用户的全部项目(按创建时间)"""
        result = await db.execute(
            select(Project)
            .where(Project.user_id == user_id)
            .order_by(Project.created_at)
        )
        return list(result.scalars().all())

    @classmethod
    async def get_project(
        cls,
        project_id: str,
        db: AsyncSession,
        user_id: Optional[str] = None
    ) -> Project:
        """获取项目

        Args:
            project_id: 项目ID
            db: 数据库会话
            user_id: 指定时要求项目属于该用户

        Raises:
            NotFoundError: 项目不存在或不属于该用户
        """
        query = select(Project).where(Project.id == project_id)
        if user_id is not None:
            query = query.where(Project.user_id == user_id)

        result = await db.execute(query)
        project = result.scalar_one_or_none()
        if not project:
            logger.warning(f"未找到项目: {project_id}")
            raise NotFoundError(PROJECT_NOT_FOUND)
        return project

    @classmethod
    async def create_project(cls, user_id: str, data: Dict[str, Any], db: AsyncSession) -> Project:
        """创建项目"""
        try:
            project = Project(user_id=user_id, last_updated_at=today_string(), **data)
            db.add(project)
            await db.commit()
            await db.refresh(project)

            logger.info(f"项目创建成功: {project.id}")
            return project

        except Exception as e:
            logger.error(f"项目创建失败: {str(e)}")
            await db.rollback()
            raise

    @classmethod
    async def update_project(
        cls,
        project_id: str,
        updates: Dict[str, Any],
        db: AsyncSession,
        user_id: Optional[str] = None
    ) -> Project:
        """部分更新项目"""
        project = await cls.get_project(project_id, db, user_id)

        for field, value in updates.items():
            setattr(project, field, value)
        project.last_updated_at = today_string()

        await db.commit()
        await db.refresh(project)

        logger.info(f"项目信息更新成功: {project_id}, 字段: {list(updates)}")
        return project

    @classmethod
    async def delete_project(
        cls,
        project_id: str,
        db: AsyncSession,
        user_id: Optional[str] = None
    ) -> bool:
        """删除项目, 其下的测试项和问题项一并删除"""
        project = await cls.get_project(project_id, db, user_id)

        await db.delete(project)
        await db.commit()

        logger.info(f"项目删除成功: {project_id}")
        return True

    @classmethod
    async def set_image(
        cls,
        project_id: str,
        image_type: str,
        file_info: Dict[str, Any],
        db: AsyncSession,
        user_id: Optional[str] = None
    ) -> Project:
        """设置项目的产品图片或日程图片"""
        field = IMAGE_FIELDS.get(image_type)
        if field is None:
            raise ValueError("이미지 종류는 product 또는 schedule 이어야 합니다")

        project = await cls.get_project(project_id, db, user_id)
        previous = getattr(project, field)

        setattr(project, field, file_info["url"])
        project.last_updated_at = today_string()
        await db.commit()
        await db.refresh(project)

        if previous:
            await get_storage_service().delete_file(previous)
        return project

    @classmethod
    async def touch(cls, project_id: str, db: AsyncSession) -> None:
        """刷新项目最后修改日期 (不提交)"""
        project = await db.get(Project, project_id)
        if project:
            project.last_updated_at = today_string()

    @classmethod
    async def next_position(cls, model, project_id: str, db: AsyncSession) -> int:
        """项目内下一个排序位置"""
        current = await db.scalar(
            select(func.max(model.position)).where(model.project_id == project_id)
        )
        return (current or 0) + 1

    @classmethod
    async def get_summary(
        cls,
        project_id: str,
        db: AsyncSession,
        user_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """统计项目的测试进度"""
        await cls.get_project(project_id, db, user_id)

        test_items = (await db.execute(
            select(TestItem).where(TestItem.project_id == project_id)
        )).scalars().all()
        issue_items = (await db.execute(
            select(IssueItem).where(IssueItem.project_id == project_id)
        )).scalars().all()

        total_tests = len(test_items)
        completed_tests = sum(1 for t in test_items if t.progress_status == ProgressStatus.DONE.value)

        return {
            "total_tests": total_tests,
            "completed_tests": completed_tests,
            "ok_count": sum(1 for t in test_items if t.test_result == TestResult.OK.value),
            "ng_count": sum(1 for t in test_items if t.test_result == TestResult.NG.value),
            "tbd_count": sum(1 for t in test_items if t.test_result == TestResult.TBD.value),
            "reports_completed": sum(1 for t in test_items if t.report_status == ReportStatus.DONE.value),
            "total_issues": len(issue_items),
            "completed_issues": sum(1 for i in issue_items if i.progress_status == ProgressStatus.DONE.value),
            "progress": round(completed_tests / total_tests * 100, 1) if total_tests else 0.0,
        }
