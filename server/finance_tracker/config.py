from pydantic_settings import BaseSettings
from pathlib import Path


class Settings(BaseSettings):
    # 项目信息
    APP_NAME: str = "Personal Finance Tracker"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # 数据库
    DATABASE_DIR: Path = Path(__file__).resolve().parent.parent / "data"
    DATABASE_NAME: str = "finance_tracker.db"
    DB_RETRY_ATTEMPTS: int = 3

    @property
    def DATABASE_URL(self) -> str:
        self.DATABASE_DIR.mkdir(parents=True, exist_ok=True)
        return f"sqlite+aiosqlite:///{self.DATABASE_DIR / self.DATABASE_NAME}"

    # 单用户登录
    AUTH_USERNAME: str = "admin"
    AUTH_PASSWORD: str = "change-me"
    AUTH_PASSWORD_HASH: str | None = None

    # 会话 (JWT 签名 cookie)
    JWT_SECRET_KEY: str = "dev-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "expense_tracker_session"
    SESSION_EXPIRE_MINUTES: int = 60 * 24  # 1 天
    SESSION_REMEMBER_EXPIRE_MINUTES: int = 60 * 24 * 30  # 30 天

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
