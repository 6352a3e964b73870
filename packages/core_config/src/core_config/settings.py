from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from core_config.constants import (
    CACHE_TTL_SEC,
    STUB_CACHE_TTL_SEC,
    CACHE_MAX_ENTRIES,
    TIMEOUT_LLM_MS,
)

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    environment: str = Field(default="dev", alias="ENVIRONMENT")
    service_log_level: str = Field(default="INFO", alias="SERVICE_LOG_LEVEL")

    # Generative backend (credential supplied out of band)
    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4.1-mini", alias="OPENAI_MODEL")
    openai_base_url: str = Field(default="https://api.openai.com/v1", alias="OPENAI_BASE_URL")
    llm_temperature: float = Field(default=0.2, alias="LLM_TEMPERATURE")
    # Retries apply to transport errors and 429/5xx only.
    llm_retries: int = Field(default=1, alias="LLM_RETRIES")

    # ── Stage time-outs – milliseconds ───────────────────────
    timeout_llm_ms: int = Field(default=TIMEOUT_LLM_MS, alias="TIMEOUT_LLM_MS")

    # In-process options cache
    cache_ttl_sec: float = Field(default=CACHE_TTL_SEC, alias="NAV_CACHE_TTL_SEC")
    stub_cache_ttl_sec: float = Field(default=STUB_CACHE_TTL_SEC, alias="NAV_STUB_CACHE_TTL_SEC")
    cache_max_entries: int = Field(default=CACHE_MAX_ENTRIES, alias="NAV_CACHE_MAX_ENTRIES")

    # HTTP client pool
    http_max_keepalive: int = Field(default=20, alias="HTTP_MAX_KEEPALIVE")
    http_max_connections: int = Field(default=100, alias="HTTP_MAX_CONNECTIONS")
    http_connect_timeout: float = Field(default=5.0, alias="HTTP_CONNECT_TIMEOUT")

    cors_allow_origin: str = Field(default="*", alias="CORS_ALLOW_ORIGIN")

    @property
    def has_credential(self) -> bool:
        """True when an upstream API key is configured."""
        return bool((self.openai_api_key or "").strip())

def get_settings() -> "Settings":
    return Settings()  # type: ignore
