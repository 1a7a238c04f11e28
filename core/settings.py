import re
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, PostgresDsn, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CustomSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


class AppSettings(CustomSettings):
    ENVIRONMENT: Literal["local", "dev", "prod"] = Field(default="local")
    LOG_LEVEL: str = Field(default="INFO")
    JSON_LOGS: bool = Field(default=False)


class PgDbSettings(CustomSettings):
    POSTGRES_ENGINE: str = Field(default="postgresql+asyncpg")
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: SecretStr = Field(default="postgres")
    POSTGRES_DB: str = Field(default="support_chat")
    POSTGRES_HOST: str = Field(default="localhost")
    POSTGRES_PORT: int = Field(default=5432)
    DATABASE_URL: PostgresDsn | str = Field(default="")
    DATABASE_AUTO_CREATE: bool = Field(default=False)

    @model_validator(mode="before")
    def validate_postgres_dsn(cls, data: dict):
        if isinstance(data, dict) and not data.get("DATABASE_URL"):
            _built_uri = PostgresDsn.build(
                scheme=data.get("POSTGRES_ENGINE", "postgresql+asyncpg"),
                username=data.get("POSTGRES_USER", "postgres"),
                password=data.get("POSTGRES_PASSWORD", "postgres"),
                host=data.get("POSTGRES_HOST", "localhost"),
                port=int(data.get("POSTGRES_PORT", 5432)),
                path=data.get("POSTGRES_DB", "support_chat"),
            ).unicode_string()
            data["DATABASE_URL"] = _built_uri
        return data


class OpenAISettings(CustomSettings):
    """Configuration for the reply generator's OpenAI calls.

    Env vars:
    - OPENAI_API_KEY (replies are disabled when empty)
    - OPENAI_MODEL / OPENAI_FALLBACK_MODEL
    - OPENAI_MODERN_MODEL_PREFIX (models routed through the Responses API)
    - OPENAI_MAX_OUTPUT_TOKENS, OPENAI_TEMPERATURE
    - OPENAI_BASE_URL, OPENAI_TIMEOUT_SECONDS
    """

    OPENAI_API_KEY: SecretStr = Field(default="")
    OPENAI_MODEL: str = Field(default="gpt-5-nano")
    OPENAI_FALLBACK_MODEL: str = Field(default="gpt-4o-mini")
    OPENAI_MODERN_MODEL_PREFIX: str = Field(default="gpt-5")
    OPENAI_MAX_OUTPUT_TOKENS: int = Field(default=300, ge=1)
    OPENAI_TEMPERATURE: float = Field(default=0.2, ge=0.0, le=2.0)
    OPENAI_BASE_URL: Optional[str] = Field(default=None)
    OPENAI_TIMEOUT_SECONDS: float = Field(default=60.0, gt=0)


class ChatSettings(CustomSettings):
    CHAT_HISTORY_LIMIT: int = Field(default=30, ge=1)
    CHAT_MAX_MESSAGE_LENGTH: int = Field(default=4000, ge=1)


class ServerSettings(CustomSettings):
    """HTTP server settings.

    CORS_ORIGIN accepts a comma-separated list of origins. Entries ending in
    ``:*`` match any port, e.g. ``http://localhost:*``. Leaving it unset (or
    ``*``) allows every origin, which is convenient in development.
    """

    PORT: int = Field(default=3101)
    CORS_ORIGIN: Optional[str] = Field(default=None)

    def cors_allow_all(self) -> bool:
        return self.CORS_ORIGIN is None or self.CORS_ORIGIN.strip() in ("", "*")

    def cors_origins(self) -> List[str]:
        if self.cors_allow_all():
            return ["*"]
        entries = [s.strip() for s in self.CORS_ORIGIN.split(",")]
        return [e for e in entries if e and not e.endswith(":*")]

    def cors_origin_regex(self) -> Optional[str]:
        if self.cors_allow_all():
            return None
        prefixes = [
            s.strip()[:-2] for s in self.CORS_ORIGIN.split(",") if s.strip().endswith(":*")
        ]
        if not prefixes:
            return None
        escaped = "|".join(re.escape(p) for p in prefixes)
        return f"^(?:{escaped})(?::\\d+)?$"


class UiSettings(CustomSettings):
    """Configuration for the Streamlit chat UI.

    Set via env vars:
    - API_BASE_URL
    """

    API_BASE_URL: str = Field(default="http://localhost:3101")


class Settings(BaseModel):
    APP: AppSettings = Field(default_factory=AppSettings)
    DATABASE: PgDbSettings = Field(default_factory=PgDbSettings)
    OPENAI: OpenAISettings = Field(default_factory=OpenAISettings)
    CHAT: ChatSettings = Field(default_factory=ChatSettings)
    SERVER: ServerSettings = Field(default_factory=ServerSettings)
    UI: UiSettings = Field(default_factory=UiSettings)


@lru_cache
def get_settings() -> Settings:
    return Settings()


SETTINGS = get_settings()
