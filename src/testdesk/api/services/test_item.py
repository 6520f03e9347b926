from typing import List, Optional, Dict, Any, Iterable
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from testdesk.api.services.errors import NotFoundError, TEST_ITEM_NOT_FOUND
from testdesk.api.services.project import ProjectService
from testdesk.db.models import TestItem, IssueItem, Project
from testdesk.spreadsheet.importer import ImportRow
from testdesk.storage.storage import get_storage_service
from testdesk.logger.logger import logger

FILE_KINDS = ("photos", "graphs", "attachments")

class TestItemService:
    """测试项服务"""

    @classmethod
    async def list_all(cls, user_id: str, db: AsyncSession) -> List[TestItem]:
        """获取用户所有项目下的测试项"""
        result = await db.execute(
            select(TestItem)
            .join(Project, Project.id == TestItem.project_id)
            .where(Project.user_id == user_id)
            .order_by(TestItem.project_id, TestItem.position)
        )
        return list(result.scalars().all())

    @classmethod
    async def list_by_project(
        cls,
        project_id: str,
        db: AsyncSession,
        test_result: Optional[str] = None
    ) -> List[TestItem]:
        """按插入顺序获取项目的测试项

        Args:
            project_id: 项目ID
            db: 数据库会话
            test_result: 按测试结果过滤
        """
        query = select(TestItem).where(TestItem.project_id == project_id)
        if test_result is not None:
            query = query.where(TestItem.test_result == test_result)
        query = query.order_by(TestItem.position, TestItem.created_at)

        result = await db.execute(query)
        return list(result.scalars().all())

    @classmethod
    async def get_test_item(
        cls,
        item_id: str,
        db: AsyncSession,
        user_id: Optional[str] = None
    ) -> TestItem:
        """获取测试项, user_id 指定时要求所属项目属于该用户

        Raises:
            NotFoundError: 测试项不存在
        """
        query = select(TestItem).where(TestItem.id == item_id)
        if user_id is not None:
            query = query.join(Project, Project.id == TestItem.project_id).where(Project.user_id == user_id)

        result = await db.execute(query)
        item = result.scalar_one_or_none()
        if not item:
            logger.warning(f"未找到测试项: {item_id}")
            raise NotFoundError(TEST_ITEM_NOT_FOUND)
        return item

    @classmethod
    async def create_test_item(cls, project_id: str, data: Dict[str, Any], db: AsyncSession) -> TestItem:
        """在项目末尾添加测试项"""
        try:
            item = TestItem(
                project_id=project_id,
                position=await ProjectService.next_position(TestItem, project_id, db),
                **data
            )
            db.add(item)
            await ProjectService.touch(project_id, db)
            await db.commit()
            await db.refresh(item)

            logger.info(f"测试项创建成功: {item.id}")
            return item

        except Exception as e:
            logger.error(f"测试项创建失败: {str(e)}")
            await db.rollback()
            raise

    @classmethod
    async def bulk_create(
        cls,
        project_id: str,
        rows: Iterable[ImportRow],
        db: AsyncSession
    ) -> List[TestItem]:
        """批量创建测试项, 保持行顺序, 在同一事务中提交"""
        try:
            position = await ProjectService.next_position(TestItem, project_id, db)
            items = []
            for offset, row in enumerate(rows):
                item = TestItem(project_id=project_id, position=position + offset, **row.to_dict())
                db.add(item)
                items.append(item)

            await ProjectService.touch(project_id, db)
            await db.commit()
            for item in items:
                await db.refresh(item)

            logger.info(f"批量创建测试项成功: 项目 {project_id}, 共 {len(items)} 条")
            return items

        except Exception as e:
            logger.error(f"批量创建测试项失败: {str(e)}")
            await db.rollback()
            raise

    @classmethod
    async def update_test_item(
        cls,
        item_id: str,
        updates: Dict[str, Any],
        db: AsyncSession,
        user_id: Optional[str] = None
    ) -> TestItem:
        """部分更新测试项"""
        item = await cls.get_test_item(item_id, db, user_id)

        for field, value in updates.items():
            setattr(item, field, value)

        await ProjectService.touch(item.project_id, db)
        await db.commit()
        await db.refresh(item)

        logger.info(f"测试项更新成功: {item_id}, 字段: {list(updates)}")
        return item

    @classmethod
    async def delete_test_item(
        cls,
        item_id: str,
        db: AsyncSession,
        user_id: Optional[str] = None
    ) -> bool:
        """删除测试项, 并解除问题项对它的关联"""
        item = await cls.get_test_item(item_id, db, user_id)
        urls = list(item.photos or []) + list(item.graphs or []) + [
            a.get("url") for a in (item.attachments or []) if a.get("url")
        ]

        await db.execute(
            update(IssueItem)
            .where(IssueItem.related_test_item_id == item_id)
            .values(related_test_item_id=None)
        )
        await db.delete(item)
        await ProjectService.touch(item.project_id, db)
        await db.commit()

        storage = get_storage_service()
        for url in urls:
            await storage.delete_file(url)

        logger.info(f"测试项删除成功: {item_id}")
        return True

    @classmethod
    async def add_file(
        cls,
        item_id: str,
        kind: str,
        file_info: Dict[str, Any],
        db: AsyncSession,
        user_id: Optional[str] = None
    ) -> TestItem:
        """追加照片、图表或附件

        Args:
            kind: photos / graphs / attachments
            file_info: StorageService.save_upload 的返回值
        """
        if kind not in FILE_KINDS:
            raise ValueError(f"不支持的文件类型: {kind}")

        item = await cls.get_test_item(item_id, db, user_id)
        entry = file_info if kind == "attachments" else file_info["url"]
        # JSON 列需要整体赋值新列表才能被识别为修改
        setattr(item, kind, list(getattr(item, kind) or []) + [entry])

        await ProjectService.touch(item.project_id, db)
        await db.commit()
        await db.refresh(item)
        return item
