from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger
from testdesk.api.dependencies import get_current_user
from testdesk.api.models.auth import UserCreate, UserLogin, UserInfo, TokenInfo
from testdesk.api.models.base import ResponseModel
from testdesk.api.services.auth import AuthService, create_access_token
from testdesk.db.models import User
from testdesk.db.session import get_db

router = APIRouter(prefix="/api/auth", tags=["auth"])

@router.post("/register")
async def register(
    request: UserCreate,
    db: AsyncSession = Depends(get_db)
) -> ResponseModel[UserInfo]:
    """注册用户"""
    try:
        user = await AuthService.register(request.username, request.password, db)
        return ResponseModel(
            message="회원가입이 완료되었습니다",
            data=UserInfo.model_validate(user)
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"用户注册失败: {str(e)}")
        raise HTTPException(status_code=500, detail="회원가입에 실패했습니다")

@router.post("/login")
async def login(
    request: UserLogin,
    db: AsyncSession = Depends(get_db)
) -> ResponseModel[TokenInfo]:
    """登录并返回访问令牌"""
    if not request.username or not request.password:
        raise HTTPException(status_code=400, detail="사용자명과 비밀번호를 입력하세요")

    user = await AuthService.authenticate(request.username, request.password, db)
    if not user:
        raise HTTPException(status_code=401, detail="사용자명 또는 비밀번호가 올바르지 않습니다")

    logger.info(f"用户登录: {user.username}")
    return ResponseModel(
        message="로그인되었습니다",
        data=TokenInfo(id=user.id, username=user.username, token=create_access_token(user.id))
    )

@router.post("/logout")
async def logout(current_user: User = Depends(get_current_user)) -> ResponseModel:
    """登出 (令牌无状态, 由客户端丢弃)"""
    logger.info(f"用户登出: {current_user.username}")
    return ResponseModel(message="로그아웃되었습니다")

@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)) -> ResponseModel[UserInfo]:
    """获取当前登录用户"""
    return ResponseModel(data=UserInfo.model_validate(current_user))
