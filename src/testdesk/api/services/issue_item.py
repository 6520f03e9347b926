from typing import List, Optional, Dict, Any
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from testdesk.api.services.errors import NotFoundError, ISSUE_ITEM_NOT_FOUND
from testdesk.api.services.project import ProjectService
from testdesk.api.services.test_item import FILE_KINDS
from testdesk.db.models import IssueItem, TestItem, Project
from testdesk.storage.storage import get_storage_service
from testdesk.utils.dates import today_string
from testdesk.logger.logger import logger

class IssueItemService:
    """问题项服务"""

    @classmethod
    async def list_by_project(cls, project_id: str, db: AsyncSession) -> List[IssueItem]:
        """按插入顺序获取项目的问题项"""
        result = await db.execute(
            select(IssueItem)
            .where(IssueItem.project_id == project_id)
            .order_by(IssueItem.position, IssueItem.created_at)
        )
        return list(result.scalars().all())

    @classmethod
    async def get_issue_item(
        cls,
        item_id: str,
        db: AsyncSession,
        user_id: Optional[str] = None
    ) -> IssueItem:
        """获取问题项

        Raises:
            NotFoundError: 问题项不存在
        """
        query = select(IssueItem).where(IssueItem.id == item_id)
        if user_id is not None:
            query = query.join(Project, Project.id == IssueItem.project_id).where(Project.user_id == user_id)

        result = await db.execute(query)
        item = result.scalar_one_or_none()
        if not item:
            logger.warning(f"未找到问题项: {item_id}")
            raise NotFoundError(ISSUE_ITEM_NOT_FOUND)
        return item

    @classmethod
    async def _check_related_test_item(
        cls,
        project_id: str,
        data: Dict[str, Any],
        db: AsyncSession
    ) -> None:
        """关联的测试项必须属于同一项目; 空字符串表示取消关联"""
        if "related_test_item_id" not in data:
            return
        related_id = data["related_test_item_id"]
        if not related_id:
            data["related_test_item_id"] = None
            return

        related = await db.scalar(
            select(TestItem.id)
            .where(TestItem.id == related_id)
            .where(TestItem.project_id == project_id)
        )
        if related is None:
            raise ValueError("연결할 시험항목이 이 프로젝트에 없습니다")

    @classmethod
    async def create_issue_item(cls, project_id: str, data: Dict[str, Any], db: AsyncSession) -> IssueItem:
        """在项目末尾添加问题项"""
        await cls._check_related_test_item(project_id, data, db)
        try:
            item = IssueItem(
                project_id=project_id,
                position=await ProjectService.next_position(IssueItem, project_id, db),
                last_modified_date=today_string(),
                **data
            )
            db.add(item)
            await ProjectService.touch(project_id, db)
            await db.commit()
            await db.refresh(item)

            logger.info(f"问题项创建成功: {item.id}")
            return item

        except Exception as e:
            logger.error(f"问题项创建失败: {str(e)}")
            await db.rollback()
            raise

    @classmethod
    async def update_issue_item(
        cls,
        item_id: str,
        updates: Dict[str, Any],
        db: AsyncSession,
        user_id: Optional[str] = None
    ) -> IssueItem:
        """部分更新问题项, 未显式指定时刷新最后修改日期"""
        item = await cls.get_issue_item(item_id, db, user_id)
        await cls._check_related_test_item(item.project_id, updates, db)

        for field, value in updates.items():
            setattr(item, field, value)
        if "last_modified_date" not in updates:
            item.last_modified_date = today_string()

        await ProjectService.touch(item.project_id, db)
        await db.commit()
        await db.refresh(item)

        logger.info(f"问题项更新成功: {item_id}, 字段: {list(updates)}")
        return item

    @classmethod
    async def delete_issue_item(
        cls,
        item_id: str,
        db: AsyncSession,
        user_id: Optional[str] = None
    ) -> bool:
        """删除问题项"""
        item = await cls.get_issue_item(item_id, db, user_id)
        urls = list(item.photos or []) + list(item.graphs or []) + [
            a.get("url") for a in (item.attachments or []) if a.get("url")
        ]

        await db.delete(item)
        await ProjectService.touch(item.project_id, db)
        await db.commit()

        storage = get_storage_service()
        for url in urls:
            await storage.delete_file(url)

        logger.info(f"问题项删除成功: {item_id}")
        return True

    @classmethod
    async def add_file(
        cls,
        item_id: str,
        kind: str,
        file_info: Dict[str, Any],
        db: AsyncSession,
        user_id: Optional[str] = None
    ) -> IssueItem:
        """追加照片、图表或附件"""
        if kind not in FILE_KINDS:
            raise ValueError(f"不支持的文件类型: {kind}")

        item = await cls.get_issue_item(item_id, db, user_id)
        entry = file_info if kind == "attachments" else file_info["url"]
        setattr(item, kind, list(getattr(item, kind) or []) + [entry])
        item.last_modified_date = today_string()

        await ProjectService.touch(item.project_id, db)
        await db.commit()
        await db.refresh(item)
        return item
