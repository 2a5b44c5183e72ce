import logging
from typing import Literal, Optional
from pathlib import Path
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    ENV: Literal["development", "staging", "production", "test"] = Field("development")
    PORT: int = Field(8000)
    LOG_LEVEL: str = Field(default="INFO")
    CORS_ORIGINS: str = Field(default="*")
    SEED_DEMO_DATA: bool = Field(default=True)

    # Storage
    DATABASE_URL: str = Field(default="sqlite:///./leadcrm.db")
    REDIS_URL: Optional[str] = None
    HISTORY_TTL_SECONDS: int = Field(default=86400)
    MAX_CONVERSATION_HISTORY: int = Field(default=50)

    # Completion API used by the program advisor
    OPENAI_API_KEY: str = Field("dummy")
    OPENAI_BASE_URL: Optional[str] = None
    OPENAI_MODEL: str = Field(default="gpt-4o")
    OPENAI_TIMEOUT_SECONDS: float = Field(default=60.0)
    OPENAI_MAX_TOKENS: int = Field(default=2048)

    @field_validator("LOG_LEVEL", mode="after")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept lower-case level names from the environment"""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("REDIS_URL", "OPENAI_BASE_URL", mode="before")
    @classmethod
    def blank_as_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=level or settings.LOG_LEVEL,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


try:
    settings = Settings()
except ValidationError as e:
    logger.error("Env validation failed:\n%s", e.json(indent=2))
    raise
