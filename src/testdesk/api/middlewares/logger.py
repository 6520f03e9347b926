from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from typing import Callable
import json
import time
from testdesk.logger.logger import logger

# 请求体中不记录原文的字段
SENSITIVE_FIELDS = {"password"}

class LoggerMiddleware(BaseHTTPMiddleware):
    """日志中间件,用于记录请求和响应信息"""

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        start_time = time.time()

        logger.info(f"Request started: {request.method} {request.url.path}")

        try:
            body = await request.body()
            if body:
                content_type = request.headers.get("content-type", "")

                if "application/json" in content_type:
                    try:
                        body_json = json.loads(body.decode('utf-8'))
                        if isinstance(body_json, dict):
                            body_json = {
                                k: ("***" if k in SENSITIVE_FIELDS else v)
                                for k, v in body_json.items()
                            }
                        logger.debug(f"Request body (JSON): {json.dumps(body_json, ensure_ascii=False)}")
                    except (json.JSONDecodeError, UnicodeDecodeError):
                        logger.warning("Failed to parse JSON request body")
                elif "multipart/form-data" in content_type:
                    logger.debug(f"Request contains form data ({len(body)} bytes, not logged)")
                else:
                    logger.debug(f"Request body type: {content_type} (not logged)")
        except Exception as e:
            logger.warning(f"Failed to process request body: {str(e)}")

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(f"Request failed: {str(exc)}")
            raise

        process_time = time.time() - start_time

        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"- Status: {response.status_code} "
            f"- Process time: {process_time:.3f}s"
        )

        return response
