import shutil
import tempfile
from pathlib import Path
from typing import List, Tuple, Optional
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from testdesk.api.services.project import ProjectService
from testdesk.api.services.test_item import TestItemService
from testdesk.config.settings import settings
from testdesk.db.models import TestItem
from testdesk.spreadsheet import (
    SpreadsheetImportError,
    detect_source_format,
    read_grid,
    parse_test_item_rows,
    export_test_items,
    export_filename,
)
from testdesk.spreadsheet.errors import IMPORT_FAILED_MESSAGE
from testdesk.utils.common import ensure_dir, get_file_extension, remove_file_quietly
from testdesk.logger.logger import logger

class SpreadsheetService:
    """测试项表格导入导出服务"""

    @classmethod
    async def export_project_items(
        cls,
        project_id: str,
        db: AsyncSession,
        user_id: Optional[str] = None
    ) -> Tuple[bytes, str]:
        """导出项目的全部测试项

        Returns:
            Tuple[bytes, str]: (xlsx 内容, 下载文件名)
        """
        project = await ProjectService.get_project(project_id, db, user_id)
        items = await TestItemService.list_by_project(project_id, db)

        content = export_test_items(items)
        filename = export_filename(project.name)
        logger.info(f"项目 {project_id} 导出 {len(items)} 个测试项: {filename}")
        return content, filename

    @classmethod
    def save_temp_upload(cls, file: UploadFile) -> Path:
        """把上传的表格保存为临时文件, 由调用方负责删除"""
        if not file.filename:
            raise ValueError("업로드된 파일이 없습니다")
        detect_source_format(file.filename)

        temp_dir = ensure_dir(settings.storage.TEMP_DIR)
        with tempfile.NamedTemporaryFile(
            delete=False,
            dir=temp_dir,
            suffix=get_file_extension(file.filename)
        ) as temp:
            try:
                shutil.copyfileobj(file.file, temp)
            except BaseException:
                temp.close()
                remove_file_quietly(temp.name)
                raise
            return Path(temp.name)

    @classmethod
    async def import_test_items(
        cls,
        project_id: str,
        file_path: Path,
        filename: str,
        db: AsyncSession
    ) -> List[TestItem]:
        """从表格导入测试项, 校验全部通过后才写入

        Args:
            project_id: 目标项目ID
            file_path: 已保存的上传文件
            filename: 原始文件名, 用于判断格式
            db: 数据库会话

        Raises:
            SpreadsheetImportError: 校验失败, errors 包含所有出错行
            ValueError: 文件格式不支持或无法读取
            RuntimeError: 其他导入错误
        """
        try:
            source_format = detect_source_format(filename)
            grid = read_grid(file_path, source_format)
            rows = parse_test_item_rows(grid)
            items = await TestItemService.bulk_create(project_id, rows, db)

            logger.info(f"项目 {project_id} 导入 {len(items)} 个测试项: {filename}")
            return items

        except SpreadsheetImportError as e:
            logger.warning(f"测试项导入被拒绝: {filename}, {len(e.errors)} 处错误")
            raise
        except ValueError:
            raise
        except Exception as e:
            logger.error(f"测试项导入失败: {filename}, {str(e)}")
            raise RuntimeError(IMPORT_FAILED_MESSAGE) from e
        finally:
            remove_file_quietly(file_path)
