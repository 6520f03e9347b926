from pydantic import BaseModel, field_validator

class UserCreate(BaseModel):
    """注册请求模型"""
    username: str
    password: str

    @field_validator("username")
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("사용자명은 3자 이상이어야 합니다")
        return v

    @field_validator("password")
    def validate_password(cls, v: str) -> str:
        if len(v) < 4:
            raise ValueError("비밀번호는 4자 이상이어야 합니다")
        return v

class UserLogin(BaseModel):
    """登录请求模型"""
    username: str = ""
    password: str = ""

class UserInfo(BaseModel):
    """用户信息模型"""
    id: str
    username: str

    class Config:
        from_attributes = True

class TokenInfo(UserInfo):
    """登录成功后返回的令牌"""
    token: str
    token_type: str = "bearer"
