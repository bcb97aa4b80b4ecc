"""Конфигурация приложения"""
from pydantic import Field
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Настройки приложения"""

    # Telegram Bot
    BOT_TOKEN: str = ""

    # Database
    # Если задан DATABASE_URL, отдельные DB_* параметры игнорируются
    DATABASE_URL: str = ""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_NAME: str = "minipraisells"
    DEBUG_MODE: bool = False

    # FastAPI
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 3000
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000,https://CenPenAdmin.github.io"

    # Virtual currency
    STARTING_BALANCE: int = Field(default=1000, ge=0)
    CURRENCY_NAME: str = "appraiCENTS"
    CURRENCY_SYMBOL: str = "aC"

    # Auction Settings
    MIN_BID_INCREMENT: int = Field(default=1, ge=1)
    MAX_BID_AMOUNT: int = Field(default=999999, ge=1)
    # Длительность демонстрационных аукционов (в часах). По умолчанию неделя.
    AUCTION_DURATION_HOURS: float = 168.0
    SEED_SAMPLE_AUCTIONS: bool = True

    # App info
    APP_NAME: str = "Mini Praisells"
    APP_DESCRIPTION: str = "Virtual Art Auctions with appraiCENTS"

    @property
    def cors_origins_list(self) -> List[str]:
        """Список разрешенных источников CORS"""
        if not self.CORS_ORIGINS:
            return []
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def database_url(self) -> str:
        """URL подключения к базе данных"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
