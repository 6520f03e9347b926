import uvicorn
from testdesk.config.settings import settings

if __name__ == "__main__":
    uvicorn.run(
        "testdesk.main:app",  # 使用模块路径
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG  # 调试模式下启用热重载
    )
