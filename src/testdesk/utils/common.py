import os
import uuid
from pathlib import Path
from typing import Union
from testdesk.logger.logger import logger

def ensure_dir(dir_path: Union[str, Path]) -> Path:
    """确保目录存在,如果不存在则创建"""
    path = Path(dir_path)
    path.mkdir(parents=True, exist_ok=True)
    return path

def get_file_extension(file_path: Union[str, Path]) -> str:
    """获取文件扩展名(小写, 含点)"""
    return Path(file_path).suffix.lower()

def unique_filename(original_name: str) -> str:
    """生成保留原扩展名的唯一文件名"""
    return f"{uuid.uuid4().hex}{get_file_extension(original_name)}"

def remove_file_quietly(file_path: Union[str, Path, None]) -> bool:
    """删除文件, 文件不存在时忽略

    Returns:
        bool: 调用结束后文件是否已不存在
    """
    if not file_path:
        return True
    try:
        if os.path.exists(file_path):
            os.unlink(file_path)
        return True
    except OSError as e:
        logger.error(f"删除文件失败: {file_path}, {str(e)}")
        return False

