from typing import Optional, Dict, Any
from pathlib import Path
import mimetypes
import shutil
import minio
from fastapi import UploadFile
from testdesk.config.settings import settings
from testdesk.logger.logger import logger
from testdesk.utils.common import ensure_dir, unique_filename, remove_file_quietly

LOCAL_URL_PREFIX = "/uploads"

class StorageService:
    """存储服务类，保存项目图片和测试项/问题项的上传文件

    启用对象存储时上传到 MinIO, 否则保存在本地 UPLOAD_DIR
    """

    def __init__(self):
        """初始化存储服务"""
        self.enabled = settings.storage.STORAGE_ENABLED
        self.upload_dir = ensure_dir(settings.storage.UPLOAD_DIR)
        if not self.enabled:
            logger.info(f"对象存储未启用, 使用本地目录: {self.upload_dir}")
            return

        try:
            self.client = minio.Minio(
                settings.storage.STORAGE_ENDPOINT,
                access_key=settings.storage.STORAGE_ACCESS_KEY,
                secret_key=settings.storage.STORAGE_SECRET_KEY,
                secure=settings.storage.STORAGE_PUBLIC_URL.startswith("https"),
                region=settings.storage.STORAGE_REGION or None
            )

            # 确保存储桶存在
            if not self.client.bucket_exists(settings.storage.STORAGE_BUCKET_NAME):
                self.client.make_bucket(settings.storage.STORAGE_BUCKET_NAME)
                logger.info(f"创建存储桶: {settings.storage.STORAGE_BUCKET_NAME}")

            logger.info("存储服务初始化成功")
        except Exception as e:
            logger.error(f"存储服务初始化失败: {str(e)}")
            raise

    async def save_upload(self, file: UploadFile) -> Dict[str, Any]:
        """保存上传文件

        Args:
            file: FastAPI 上传文件

        Returns:
            Dict[str, Any]: {url, filename, size}
        """
        if not file.filename:
            raise ValueError("업로드된 파일이 없습니다")

        object_name = unique_filename(file.filename)
        local_path = self.upload_dir / object_name

        with open(local_path, "wb") as out:
            shutil.copyfileobj(file.file, out)
        size = local_path.stat().st_size

        if self.enabled:
            try:
                url = await self.upload_file(local_path, object_name)
            finally:
                remove_file_quietly(local_path)
        else:
            url = f"{LOCAL_URL_PREFIX}/{object_name}"

        logger.info(f"文件保存成功: {file.filename} -> {url} ({size} bytes)")
        return {"url": url, "filename": file.filename, "size": size}

    async def upload_file(self, file_path: Path, object_name: Optional[str] = None) -> str:
        """
        上传文件到对象存储

        Args:
            file_path: 本地文件路径
            object_name: 对象存储中的文件名，如果不指定则使用文件名

        Returns:
            str: 文件的公共访问URL
        """
        file_path = Path(file_path)
        object_name = object_name or file_path.name

        try:
            self.client.fput_object(
                settings.storage.STORAGE_BUCKET_NAME,
                object_name,
                str(file_path),
                content_type=mimetypes.guess_type(str(file_path))[0] or "application/octet-stream"
            )
        except Exception as e:
            logger.error(f"文件上传失败: {str(e)}")
            raise

        return f"{settings.storage.STORAGE_PUBLIC_URL}/{settings.storage.STORAGE_BUCKET_NAME}/{object_name}"

    async def delete_file(self, url: str) -> bool:
        """
        删除已保存的文件

        Args:
            url: save_upload 返回的URL

        Returns:
            bool: 删除是否成功
        """
        object_name = url.rsplit('/', 1)[-1]
        if not self.enabled:
            return remove_file_quietly(self.upload_dir / object_name)

        try:
            self.client.remove_object(settings.storage.STORAGE_BUCKET_NAME, object_name)
            logger.info(f"文件删除成功: {object_name}")
            return True
        except Exception as e:
            logger.error(f"文件删除失败: {str(e)}")
            return False

# 全局存储服务实例
_storage_service: Optional[StorageService] = None

def get_storage_service() -> StorageService:
    """获取存储服务实例"""
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service
