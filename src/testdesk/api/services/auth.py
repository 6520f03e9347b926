from datetime import datetime, timedelta
from typing import Optional, Dict, Any
import bcrypt
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from testdesk.config.settings import settings
from testdesk.db.models import User
from testdesk.logger.logger import logger

def get_password_hash(password: str) -> str:
    """bcrypt 哈希 (bcrypt 只使用前 72 字节)"""
    password_bytes = password.encode('utf-8')[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.auth.BCRYPT_ROUNDS))
    return hashed.decode('utf-8')

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """校验密码"""
    password_bytes = plain_password.encode('utf-8')[:72]
    return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))

def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """创建访问令牌"""
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.auth.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {"sub": user_id, "exp": expire, "type": "access"}
    return jwt.encode(payload, settings.auth.JWT_SECRET_KEY, algorithm=settings.auth.JWT_ALGORITHM)

def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """解析访问令牌, 无效或过期时返回None"""
    try:
        payload = jwt.decode(token, settings.auth.JWT_SECRET_KEY, algorithms=[settings.auth.JWT_ALGORITHM])
    except JWTError as e:
        logger.debug(f"令牌无效: {str(e)}")
        return None
    if payload.get("type") != "access" or not payload.get("sub"):
        return None
    return payload

class AuthService:
    """用户认证服务"""

    @classmethod
    async def get_user(cls, user_id: str, db: AsyncSession) -> Optional[User]:
        """根据ID获取用户"""
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @classmethod
    async def get_user_by_username(cls, username: str, db: AsyncSession) -> Optional[User]:
        """根据用户名获取用户"""
        result = await db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    @classmethod
    async def register(cls, username: str, password: str, db: AsyncSession) -> User:
        """注册新用户

        Raises:
            ValueError: 用户名已被使用
        """
        if await cls.get_user_by_username(username, db):
            raise ValueError("이미 사용 중인 사용자명입니다")

        user = User(username=username, password=get_password_hash(password))
        db.add(user)
        await db.commit()
        await db.refresh(user)

        logger.info(f"用户注册成功: {user.username} ({user.id})")
        return user

    @classmethod
    async def authenticate(cls, username: str, password: str, db: AsyncSession) -> Optional[User]:
        """校验用户名和密码, 失败时返回None"""
        user = await cls.get_user_by_username(username, db)
        if not user or not verify_password(password, user.password):
            logger.warning(f"登录失败: {username}")
            return None
        return user
