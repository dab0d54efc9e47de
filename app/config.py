from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"

class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Supabase settings
    SUPABASE_DB_URL: str | None = None

    # =================================================================
    # DATABASE POOL SETTINGS
    # =================================================================
    DB_POOL_MIN_SIZE: int = 2
    DB_POOL_MAX_SIZE: int = 10
    DB_POOL_TIMEOUT: float = 30.0
    DB_POOL_MAX_IDLE: float = 600.0  # 10 minutes
    DB_POOL_MAX_LIFETIME: float = 3600.0  # 1 hour
    DB_STATEMENT_TIMEOUT: str = "60s"

    # =================================================================
    # ANALYTICS SETTINGS
    # =================================================================
    # Rows per range request; the hosted store caps single responses at 1000
    ANALYTICS_PAGE_SIZE: int = 1000
    # Used when a location has no hours table configured
    ANALYTICS_DEFAULT_OPERATING_HOURS: float = 8.0
    # Used when a location has no stylist capacity configured
    ANALYTICS_DEFAULT_STYLIST_CAPACITY: int = 4

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def get_db_pool_config(self) -> dict:
        """
        Get database pool configuration.
        Adjust environment-specific settings based on self.environment.
        """
        config = {
            "min_size": self.DB_POOL_MIN_SIZE,
            "max_size": self.DB_POOL_MAX_SIZE,
            "timeout": self.DB_POOL_TIMEOUT,
            "max_idle": self.DB_POOL_MAX_IDLE,
            "max_lifetime": self.DB_POOL_MAX_LIFETIME,
        }

        if self.environment == "development":
            # Analytics fan-out opens several connections per report
            config.update(
                {
                    "min_size": 2,
                    "max_size": 8,
                    "timeout": 15.0,
                }
            )

        return config

settings = Settings()
