from functools import wraps
import time
from typing import Callable, TypeVar, ParamSpec
from testdesk.logger.logger import logger

P = ParamSpec("P")
R = TypeVar("R")

def log_function_call(level: str = "DEBUG") -> Callable[[Callable[P, R]], Callable[P, R]]:
    """函数调用日志装饰器

    Args:
        level: 日志级别

    Returns:
        装饰后的函数
    """
    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start_time = time.time()

            logger.log(level, "开始执行函数: {}", func.__name__)

            try:
                result = func(*args, **kwargs)

                execution_time = time.time() - start_time
                logger.log(level, "函数 {} 执行完成, 耗时: {:.3f}秒", func.__name__, execution_time)

                return result
            except Exception as e:
                execution_time = time.time() - start_time

                logger.log(
                    "WARNING",
                    "函数 {} 执行异常:\n耗时: {:.3f}秒\n异常信息: {}\n",
                    func.__name__,
                    execution_time,
                    str(e)
                )

                raise
        return wrapper
    return decorator
