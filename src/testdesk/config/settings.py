from pydantic import Field, ConfigDict, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
import os

# 项目根目录 (src/testdesk/config -> 仓库根目录)
BASE_DIR = Path(__file__).resolve().parents[3]

class LogConfig(BaseSettings):
    """日志配置"""
    LOG_LEVEL: str = Field("INFO", description="日志级别")
    LOG_FILE: str = Field(str(BASE_DIR / "logs/app.log"), description="日志文件路径")
    LOG_FORMAT: str = Field(
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>",
        description="日志格式"
    )
    LOG_ROTATION: str = Field("500 MB", description="日志轮转大小")
    LOG_RETENTION: str = Field("10 days", description="日志保留时间")

    model_config = ConfigDict(
        env_file="",
        env_prefix="",
        extra="ignore",
        case_sensitive=True
    )

    @field_validator("LOG_LEVEL")
    def validate_log_level(cls, v: str) -> str:
        """验证日志级别"""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in valid_levels:
            import warnings
            warnings.warn(f"无效的日志级别: {v}，使用默认值: INFO")
            return "INFO"
        return v

class DatabaseConfig(BaseSettings):
    """数据库配置"""
    DB_URL: str = Field(
        default=f"sqlite+aiosqlite:///{BASE_DIR}/data/testdesk.db",
        description="数据库连接URL"
    )
    DB_ECHO: bool = Field(False, description="是否打印SQL语句")

    model_config = ConfigDict(
        env_file="",
        env_prefix="",
        extra="ignore",
        case_sensitive=True
    )

class StorageConfig(BaseSettings):
    """文件存储配置

    STORAGE_ENABLED 为 False 时上传文件保存在 UPLOAD_DIR, 通过 /uploads 访问
    """
    STORAGE_ENABLED: bool = Field(False, description="是否启用对象存储")
    STORAGE_ENDPOINT: str = Field("", description="存储服务端点")
    STORAGE_ACCESS_KEY: str = Field("", description="访问密钥")
    STORAGE_SECRET_KEY: str = Field("", description="访问密钥")
    STORAGE_BUCKET_NAME: str = Field("", description="存储桶名称")
    STORAGE_PUBLIC_URL: str = Field("", description="公共访问URL")
    STORAGE_REGION: str = Field("", description="区域")
    UPLOAD_DIR: str = Field(str(BASE_DIR / "uploads"), description="本地上传目录")
    TEMP_DIR: str = Field(str(BASE_DIR / "data/temp"), description="导入临时文件目录")

    model_config = ConfigDict(
        env_file="",
        env_prefix="",
        extra="ignore",
        case_sensitive=True
    )

class AuthConfig(BaseSettings):
    """认证配置"""
    JWT_SECRET_KEY: str = Field("change-me", description="JWT签名密钥")
    JWT_ALGORITHM: str = Field("HS256", description="JWT算法")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60 * 24, description="令牌有效期(分钟)")
    BCRYPT_ROUNDS: int = Field(12, description="bcrypt 计算轮数")

    model_config = ConfigDict(
        env_file="",
        env_prefix="",
        extra="ignore",
        case_sensitive=True
    )

class Settings(BaseSettings):
    """应用配置"""
    APP_NAME: str = Field("TestDesk", description="应用名称")
    APP_VERSION: str = Field("1.0.0", description="应用版本")
    DEBUG: bool = Field(False, description="调试模式")

    BASE_DIR: Path = Field(default=BASE_DIR, description="项目根目录")

    # 子配置
    log: LogConfig = Field(default_factory=LogConfig)
    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        env_prefix=""
    )

    def __init__(self, **kwargs):
        from dotenv import dotenv_values

        env_path = BASE_DIR / ".env"
        env_config = dotenv_values(env_path) if env_path.exists() else {}

        if env_config:
            log_config = {k: v for k, v in env_config.items() if k.startswith('LOG_')}
            if log_config:
                kwargs['log'] = LogConfig(**log_config)

            db_config = {k: v for k, v in env_config.items() if k.startswith('DB_')}
            if db_config:
                kwargs['db'] = DatabaseConfig(**db_config)

            storage_config = {
                k: v for k, v in env_config.items()
                if k.startswith('STORAGE_') or k in ('UPLOAD_DIR', 'TEMP_DIR')
            }
            if storage_config:
                if 'STORAGE_ENABLED' in storage_config:
                    storage_config['STORAGE_ENABLED'] = storage_config['STORAGE_ENABLED'].lower() == 'true'
                kwargs['storage'] = StorageConfig(**storage_config)

            auth_config = {
                k: v for k, v in env_config.items()
                if k.startswith('JWT_') or k in ('ACCESS_TOKEN_EXPIRE_MINUTES', 'BCRYPT_ROUNDS')
            }
            if auth_config:
                kwargs['auth'] = AuthConfig(**auth_config)

            if 'APP_NAME' in env_config:
                kwargs['APP_NAME'] = env_config['APP_NAME']
            if 'APP_VERSION' in env_config:
                kwargs['APP_VERSION'] = env_config['APP_VERSION']
            if 'DEBUG' in env_config:
                kwargs['DEBUG'] = env_config['DEBUG'].lower() == 'true'

        super().__init__(**kwargs)
        self._init_directories()

        if self.DEBUG and not os.environ.get('RELOAD_PROCESS'):
            self._print_debug_info()

    def _init_directories(self):
        """初始化必要的目录"""
        Path(self.log.LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
        Path(self.storage.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
        Path(self.storage.TEMP_DIR).mkdir(parents=True, exist_ok=True)

        # sqlite 文件数据库需要目录存在
        if ":memory:" not in self.db.DB_URL and "sqlite" in self.db.DB_URL:
            db_path = self.db.DB_URL.split(":///", 1)[-1]
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    def _print_debug_info(self):
        """打印调试信息"""
        print("\n=== 配置加载信息 ===")
        print(f"项目根目录: {self.BASE_DIR}")
        print(f"日志级别: {self.log.LOG_LEVEL}")
        print(f"日志文件: {self.log.LOG_FILE}")
        print(f"数据库URL: {self.db.DB_URL}")
        print(f"存储功能: {'已启用' if self.storage.STORAGE_ENABLED else '未启用'}")
        if self.storage.STORAGE_ENABLED:
            print(f"存储桶: {self.storage.STORAGE_BUCKET_NAME}")
        else:
            print(f"上传目录: {self.storage.UPLOAD_DIR}")
        print("===================\n")

# 创建全局配置实例
settings = Settings()

__all__ = ["settings"]
