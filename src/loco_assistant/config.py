"""Application configuration contract."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from loco_assistant.errors import ConfigError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = Field(alias="APP_ENV", default="dev")
    log_level: str = Field(alias="LOG_LEVEL", default="INFO")
    app_base_url: str = Field(alias="APP_BASE_URL", default="http://localhost:8081")

    assistant_name: str = Field(alias="ASSISTANT_NAME", default="Loco Assistant")
    assistant_max_steps: int = Field(alias="ASSISTANT_MAX_STEPS", default=10)
    assistant_max_tokens: int = Field(alias="ASSISTANT_MAX_TOKENS", default=2000)
    assistant_history_limit: int = Field(alias="ASSISTANT_HISTORY_LIMIT", default=24)
    assistant_transcript_limit: int = Field(alias="ASSISTANT_TRANSCRIPT_LIMIT", default=120)
    invite_ttl_days: int = Field(alias="INVITE_TTL_DAYS", default=7)

    primary_provider: str = Field(alias="PRIMARY_PROVIDER", default="gemini")
    provider_timeout_seconds: int = Field(alias="PROVIDER_TIMEOUT_SECONDS", default=120)
    chatgpt_base_url: str = Field(alias="CHATGPT_BASE_URL", default="https://api.openai.com/v1")
    chatgpt_api_key: str = Field(alias="CHATGPT_API_KEY", default="")
    chatgpt_model: str = Field(alias="CHATGPT_MODEL", default="gpt-4o-mini")
    claude_base_url: str = Field(alias="CLAUDE_BASE_URL", default="https://api.anthropic.com/v1")
    claude_api_key: str = Field(alias="CLAUDE_API_KEY", default="")
    claude_model: str = Field(alias="CLAUDE_MODEL", default="claude-sonnet-4-5")
    gemini_base_url: str = Field(
        alias="GEMINI_BASE_URL",
        default="https://generativelanguage.googleapis.com/v1beta/openai",
    )
    gemini_api_key: str = Field(alias="GEMINI_API_KEY", default="")
    gemini_model: str = Field(alias="GEMINI_MODEL", default="gemini-2.5-flash")

    image_fetch_max_bytes: int = Field(alias="IMAGE_FETCH_MAX_BYTES", default=8_000_000)
    image_fetch_timeout_seconds: int = Field(alias="IMAGE_FETCH_TIMEOUT_SECONDS", default=20)

    resend_api_key: str = Field(alias="RESEND_API_KEY", default="")
    resend_from_email: str = Field(alias="RESEND_FROM_EMAIL", default="")
    resend_base_url: str = Field(alias="RESEND_BASE_URL", default="https://api.resend.com")
    resend_timeout_seconds: int = Field(alias="RESEND_TIMEOUT_SECONDS", default=15)


def provider_credentials(settings: Settings, name: str) -> tuple[str, str, str]:
    """Return ``(base_url, api_key, model)`` for a provider name."""
    if name == "chatgpt":
        return settings.chatgpt_base_url, settings.chatgpt_api_key, settings.chatgpt_model
    if name == "claude":
        return settings.claude_base_url, settings.claude_api_key, settings.claude_model
    return settings.gemini_base_url, settings.gemini_api_key, settings.gemini_model


def validate_settings_for_env(settings: Settings) -> None:
    if settings.assistant_max_steps < 1:
        raise ConfigError("invalid configuration: ASSISTANT_MAX_STEPS must be >= 1")

    if settings.app_env != "prod":
        return

    missing: list[str] = []
    required_non_empty = {
        "APP_BASE_URL": settings.app_base_url,
        "PRIMARY_PROVIDER": settings.primary_provider,
        "RESEND_API_KEY": settings.resend_api_key,
        "RESEND_FROM_EMAIL": settings.resend_from_email,
    }
    for key, value in required_non_empty.items():
        if not value.strip():
            missing.append(key)

    primary = settings.primary_provider.strip().lower()
    _, api_key, _ = provider_credentials(settings, primary)
    if not api_key.strip():
        missing.append(f"{primary.upper()}_API_KEY")
    if settings.app_base_url.startswith("http://localhost"):
        missing.append("APP_BASE_URL(non-localhost value)")

    if missing:
        keys = ", ".join(sorted(set(missing)))
        raise ConfigError(f"invalid production configuration: {keys}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
