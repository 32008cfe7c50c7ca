from functools import lru_cache
from typing import Annotated, Any, Literal
from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    # Application Configuration
    API_NAME: str = "DevReport"
    API_SUMMARY: str = "Aggregates developer activity from task trackers"
    DEVREPORT_VERSION: str = "v0.1.x"

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    USER_AGENT: str = "DevReport"

    # ClickUp
    CLICKUP_API_TOKEN: str | None = None
    CLICKUP_BASE_URL: str = "https://api.clickup.com/api/v2"
    CLICKUP_LIST_IDS: Annotated[list[str], NoDecode] = []
    CLICKUP_FOLDER_ID: str | None = None
    CLICKUP_ASSIGNEE_IDS: Annotated[list[str], NoDecode] = []
    CLICKUP_CATEGORY: str = ""
    CLICKUP_ROLLUP: bool = False
    CLICKUP_ROLLUP_OPEN_SENTINEL: bool = True

    # Fetch pipeline
    MAX_WORKERS: int = 5
    REQUESTS_PER_MINUTE: int = 100
    RATE_LIMIT_BURST: int = 10
    MAX_RETRIES: int = 5
    RETRY_BACKOFF_BASE: float = 2.0  # Seconds, doubled on every retry
    REQUEST_TIMEOUT: float = 30.0

    # Rephrasing
    REPHRASE_ENABLED: bool = False
    OLLAMA_BASE_URL: str = "http://localhost:11434/v1"
    REPHRASE_MODEL: str = "gemma3"
    REPHRASE_TIMEOUT: float = 60.0

    @field_validator("LOG_LEVEL", mode="before")
    def normalize_log_level(cls, v: Any):
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("CLICKUP_LIST_IDS", "CLICKUP_ASSIGNEE_IDS", mode="before")
    def validate_list_from_string(cls, v: Any):
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("MAX_WORKERS", mode="after")
    def clamp_max_workers(cls, v: int):
        return max(1, v)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings():
    return Settings()
