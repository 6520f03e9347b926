import sys
from pathlib import Path
from loguru import logger
from testdesk.config.settings import settings

def setup_logger():
    """配置日志记录器"""
    # 创建日志目录
    log_dir = Path(settings.log.LOG_FILE).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    # 移除默认的处理器
    logger.remove()

    # 控制台处理器
    logger.add(
        sink=sys.stderr,
        level=settings.log.LOG_LEVEL,
        format=settings.log.LOG_FORMAT,
        colorize=True,
        backtrace=True,
        diagnose=settings.DEBUG,
    )

    # 文件处理器
    logger.add(
        sink=settings.log.LOG_FILE,
        level=settings.log.LOG_LEVEL,
        format=settings.log.LOG_FORMAT,
        rotation=settings.log.LOG_ROTATION,
        retention=settings.log.LOG_RETENTION,
        compression="zip",
        backtrace=True,
        diagnose=settings.DEBUG,
        enqueue=True,
    )

    return logger

# 创建全局日志实例
logger = setup_logger()

__all__ = ["logger"]
