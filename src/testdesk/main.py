from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import JSONResponse
from loguru import logger
from testdesk.api.middlewares.logger import LoggerMiddleware
from testdesk.api.models.base import ResponseModel
from testdesk.api.routers import auth, projects, test_items, issue_items
from testdesk.config.settings import settings
from testdesk.db import init_db
from testdesk.storage.storage import LOCAL_URL_PREFIX
from testdesk.utils.common import ensure_dir

# 创建FastAPI应用实例
app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="시험항목/문제항목 관리 API",
    version=settings.APP_VERSION,
)

# 配置CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 添加日志中间件
app.add_middleware(LoggerMiddleware)

# 注册路由
app.include_router(auth.router)
app.include_router(projects.router)
app.include_router(test_items.router)
app.include_router(issue_items.router)

# 本地上传文件
app.mount(
    LOCAL_URL_PREFIX,
    StaticFiles(directory=str(ensure_dir(settings.storage.UPLOAD_DIR))),
    name="uploads"
)

# 健康检查接口
@app.get("/health")
async def health_check():
    """健康检查接口"""
    return ResponseModel(data={"status": "ok"})

# 异常处理
@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """HTTP异常处理器"""
    logger.warning(f"HTTP error occurred: {exc.status_code} {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ResponseModel(
            code=exc.status_code,
            message=str(exc.detail),
            data=None
        ).model_dump()
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc):
    """请求参数校验异常处理器"""
    messages = []
    for error in exc.errors():
        msg = str(error.get("msg", ""))
        # 自定义校验器抛出的 ValueError 带有该前缀
        messages.append(msg.removeprefix("Value error, "))
    logger.warning(f"请求参数校验失败: {request.url.path} {messages}")
    return JSONResponse(
        status_code=422,
        content=ResponseModel(
            code=422,
            message="\n".join(messages) or "요청 값이 올바르지 않습니다",
            data=None
        ).model_dump()
    )

@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """通用异常处理器"""
    logger.error(f"Unexpected error occurred: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content=ResponseModel(
            code=500,
            message="Internal server error",
            data=None
        ).model_dump()
    )

# 启动事件
@app.on_event("startup")
async def startup_event():
    """应用启动时的事件处理"""
    await init_db()
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} started")
