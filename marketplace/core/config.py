from pydantic_settings import BaseSettings
from typing import Optional, Any


class Settings(BaseSettings):
    PROJECT_NAME: str = "TIC Americas Marketplace API"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"

    SECRET_KEY: str
    ADMIN_CODE: str
    SIGNUP_TOKEN_EXPIRE_HOURS: int = 24
    LOGIN_TOKEN_EXPIRE_DAYS: int = 30
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60
    PASSWORD_MIN_LENGTH: int = 6
    BCRYPT_ROUNDS: int = 10
    HASH_WORKERS: int = 4

    DATABASE_URL: Optional[str] = None

    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_PORT: str = "5432"
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_DB: Optional[str] = None
    SQLALCHEMY_DATABASE_URI: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_POOL_TIMEOUT: int = 30

    FRONTEND_URL: str = "http://localhost:5173"
    BACKEND_URL: str = "http://localhost:5000"
    UPLOAD_DIR: str = "uploads"

    SMTP_TLS: bool = True
    SMTP_PORT: Optional[int] = None
    SMTP_HOST: Optional[str] = None
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_TIMEOUT: float = 10.0
    EMAILS_FROM_EMAIL: Optional[str] = None
    EMAILS_FROM_NAME: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    def __init__(self, **data: Any):
        super().__init__(**data)
        if self.DATABASE_URL:
            self.SQLALCHEMY_DATABASE_URI = self.DATABASE_URL
        else:
            self.SQLALCHEMY_DATABASE_URI = f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

        if not self.EMAILS_FROM_NAME:
            self.EMAILS_FROM_NAME = "TIC Americas"

        if self.is_production and len(self.SECRET_KEY) < 16:
            raise ValueError("SECRET_KEY must be at least 16 characters in production")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
