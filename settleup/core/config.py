from decimal import Decimal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite+aiosqlite:///./settleup.db"
    DB_ECHO: bool = False
    DB_CONNECT_RETRIES: int = 5
    LOG_LEVEL: str = "INFO"

    # balances closer than this to zero count as settled
    SETTLEMENT_TOLERANCE: Decimal = Decimal("0.01")

settings = Settings()
