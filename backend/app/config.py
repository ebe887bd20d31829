from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Redis (health snapshot bus)
    REDIS_URL: str = "redis://redis:6379/0"

    # App
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    SYSTEM_NAME: str = "STATCOM"

    # Demo mode: mock health poller instead of real telemetry
    DEMO_MODE: bool = False
    DEMO_SEED_HISTORY: bool = True
    DEMO_RANDOM_SEED: int | None = None
    POLL_INTERVAL: float = 2.0

    # Alarm ledger
    ALARM_LOOKBACK_HOURS: float = 6.0
    ALARM_CLEAR_PROBABILITY: float = 0.4
    ALARM_CLEAR_WINDOW_HOURS: float = 4.0
    ALARM_SEED_MIN: int = 20
    ALARM_SEED_MAX: int = 30
    ALARM_SEED_WINDOW_DAYS: float = 7.0
    ALARM_HISTORY_LIMIT: int = 5000         # cleared records kept in memory

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
