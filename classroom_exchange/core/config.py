from datetime import datetime

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Runtime
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./classroom_exchange.db"
    auto_create_tables: bool = True

    # Trading hours (exchange local time)
    timezone: str = "Asia/Seoul"
    trading_windows: list[str] = [
        "08:00-08:20",
        "09:10-09:20",
        "10:10-10:20",
        "11:10-11:20",
        "12:10-12:20",
        "13:00-13:10",
        "14:00-14:10",
        "15:00-15:10",
    ]
    trading_always_open: bool = False
    beta_ends_at: datetime | None = None  # naive values are exchange local time

    # Accounts
    initial_cash: float = 1_000_000.0

    # Price impact defaults (used when a stock has no stored settings)
    default_impact_rate: float = 0.01
    default_max_change_rate: float = 0.05
    default_min_volume: int = 10

    # Redis (live board events)
    redis_host: str = "localhost"
    redis_port: int = 6379
    events_enabled: bool = True


settings = Settings()
