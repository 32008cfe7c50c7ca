from dataclasses import dataclass
from openai import AsyncOpenAI

from devreport.config import Settings


@dataclass
class ClientConfig:
    api_key: str
    base_url: str | None = None
    timeout: float | None = None


def create_client(config: ClientConfig) -> AsyncOpenAI:
    return AsyncOpenAI(
        api_key=config.api_key,
        base_url=config.base_url,
        timeout=config.timeout,
        max_retries=0,
    )


def get_rephrase_openai_client(settings: Settings) -> AsyncOpenAI:
    if not settings.OLLAMA_BASE_URL:
        raise ValueError("OLLAMA_BASE_URL is not set")
    # Ollama ignores the key but the client requires one
    return create_client(
        ClientConfig(
            api_key="ollama",
            base_url=settings.OLLAMA_BASE_URL,
            timeout=settings.REPHRASE_TIMEOUT,
        )
    )
