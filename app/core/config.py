from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    DATABASE_URL: Optional[str] = None
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "123456"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "inventory"
    AUTO_CREATE_TABLES: bool = True

    # Redis
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_HOSTS: Optional[str] = None
    CELERY_BROKER_DB: int = 1
    CELERY_RESULT_DB: int = 2

    # Stock locking: "local" (per-process) or "redis" (Redlock)
    STOCK_LOCK_BACKEND: str = "local"
    STOCK_LOCK_TIMEOUT: float = 5.0
    STOCK_LOCK_TTL_MS: int = 10000
    STOCK_LOCK_RETRY_COUNT: int = 25
    STOCK_LOCK_RETRY_DELAY: float = 0.2

    LOW_STOCK_ALERTS_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg://"
            f"{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
            f"{self.POSTGRES_DB}"
        )

    @property
    def redis_url(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    def celery_url(self, db: int) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{db}"


settings = Settings()
