from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Storage backend: "memory" keeps records in-process, "redis" persists them
    STORAGE_BACKEND: str = Field(default="memory", pattern="^(memory|redis)$")
    REDIS_URL: str = "redis://localhost:6379/0"
    RECORD_KEY_PREFIX: str = Field(default="garbage:", min_length=1)

    # Uploads
    MAX_FILE_SIZE: int = 5 * 1024 * 1024  # 5MB
    ALLOWED_CONTENT_TYPES: set = {
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/tiff",
    }

    # Pending captures are kept per client session, oldest dropped first
    MAX_CAPTURE_SESSIONS: int = Field(default=1000, ge=1)

    # Frontend origins allowed by CORS
    CORS_ORIGINS: list = ["http://localhost:3000"]

    # Development settings
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"


settings = Settings()
