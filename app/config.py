from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = "development"

    # Database
    database_url: str = "sqlite:///./ad_analyzer.db"
    seed_default_users: bool = Field(
        default=True,
        description="Insert the demo and admin accounts on startup if absent"
    )

    # Authentication
    jwt_secret: str = "your-super-secret-jwt-key-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24
    bcrypt_rounds: int = 12

    # OpenAI
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_smart_model: str = "gpt-4o"
    openai_transcription_model: str = "whisper-1"

    # HTTP
    frontend_url: Optional[str] = Field(
        default=None,
        description="Allowed CORS origin; every origin is allowed when unset"
    )

    # Uploads & media
    upload_dir: str = "./uploads"
    max_upload_mb: int = 200
    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"

    # Background processing
    redis_url: Optional[str] = None
    task_queue_enabled: bool = Field(
        default=False,
        description="Dispatch uploads to the Celery worker instead of in-process background tasks"
    )

    @property
    def cors_origins(self) -> list[str]:
        if not self.frontend_url:
            return ["*"]
        return [o.strip() for o in self.frontend_url.split(",") if o.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
