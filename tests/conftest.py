import os
import tempfile
from pathlib import Path

# 设置测试环境变量 (必须在导入 testdesk 之前)
_tmp_root = Path(tempfile.mkdtemp(prefix="testdesk-tests-"))
os.environ["STORAGE_ENABLED"] = "false"  # 禁用对象存储
os.environ["DB_URL"] = "sqlite+aiosqlite:///:memory:"  # 使用内存数据库
os.environ["UPLOAD_DIR"] = str(_tmp_root / "uploads")
os.environ["TEMP_DIR"] = str(_tmp_root / "temp")
os.environ["LOG_FILE"] = str(_tmp_root / "logs" / "test.log")
os.environ["BCRYPT_ROUNDS"] = "4"

import httpx
import pytest
import pytest_asyncio
from testdesk.api.services.auth import AuthService
from testdesk.api.services.project import ProjectService
from testdesk.db import Base, engine, AsyncSessionLocal
from testdesk.main import app

@pytest_asyncio.fixture(autouse=True)
async def setup_database():
    """每个测试使用全新的内存数据库"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()

@pytest_asyncio.fixture
async def db_session():
    """创建测试数据库会话"""
    async with AsyncSessionLocal() as session:
        yield session
        await session.rollback()

@pytest_asyncio.fixture
async def user(db_session):
    """测试用户"""
    return await AuthService.register("tester", "secret", db_session)

@pytest_asyncio.fixture
async def project(db_session, user):
    """测试项目"""
    return await ProjectService.create_project(user.id, {"name": "전원 모듈"}, db_session)

@pytest_asyncio.fixture
async def client():
    """API 测试客户端 (不触发 startup 事件, 表由 setup_database 创建)"""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

@pytest_asyncio.fixture
async def auth_headers(client):
    """注册并登录, 返回 Bearer 认证头"""
    await client.post("/api/auth/register", json={"username": "apiuser", "password": "pass1234"})
    response = await client.post("/api/auth/login", json={"username": "apiuser", "password": "pass1234"})
    token = response.json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def temp_dir() -> Path:
    """导入临时文件目录"""
    return Path(os.environ["TEMP_DIR"])
