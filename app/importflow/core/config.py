from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "IMPORTFLOW"
    DATABASE_URL: str = "sqlite+pysqlite:///./importflow.db"
    APP_BASE_URL: str = "http://localhost:8000"
    AUTO_ARCHIVE_THRESHOLD_DAYS: int = 30
    AUTO_ARCHIVE_STATUSES: list[str] = ["arrived_pta", "arrived_klm", "arrived_offsite"]
    INSPECTION_STUCK_DAYS: int = 3
    CAPACITY_WARNING_PERCENT: float = 85.0
    DIGEST_RETENTION_DAYS: int = 90
    DIGEST_SHIPMENT_CONTEXT_LIMIT: int = 10
    ARCHIVE_KEY_REFS_MAX_LENGTH: int = 100
    DELAYED_NOTIFICATION_COOLDOWN_HOURS: int = 24
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    EMAIL_FROM: str = "notifications@importflow.local"
    EMAIL_TIMEOUT_SEC: int = 10
    METRICS_ENABLED: bool = True
    TELEMETRY_BUFFER_SIZE: int = 500
    OPS_ENABLE_SCHEDULED_JOBS: bool = True


settings = Settings()
