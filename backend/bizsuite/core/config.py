"""BizSuite Configuration

Configuration settings for the BizSuite service.
"""

from pydantic_settings import BaseSettings
from pathlib import Path


class Settings(BaseSettings):
    """BizSuite settings"""

    # Service Configuration
    APP_NAME: str = "BizSuite Service"
    VERSION: str = "0.1.0"
    DEBUG: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database Configuration
    DATABASE_URL: str = "sqlite+aiosqlite:///./bizsuite.db"

    # CORS Configuration
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    # Auth Configuration
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Business Defaults
    DEFAULT_PAYMENT_TERMS_DAYS: int = 30
    DEFAULT_VAT_RATE: float = 0.15
    DEFAULT_COUNTRY: str = "ZA"
    DEFAULT_CURRENCY: str = "ZAR"
    DEFAULT_CURRENCY_SYMBOL: str = "R"

    # Pagination Defaults
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()


def get_data_dir() -> Path:
    """Get the data directory path, creating it if necessary"""
    data_dir = Path(__file__).parent.parent / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir
