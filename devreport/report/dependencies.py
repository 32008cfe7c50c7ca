import logging
from functools import lru_cache
from fastapi import Depends

from devreport.clickup.config import ClickUpSourceConfig
from devreport.clickup.source import ClickUpSource
from devreport.common.exceptions import KnownException
from devreport.config import Settings, get_settings
from devreport.llm_providers.client import get_rephrase_openai_client
from devreport.rephrase.base import PassthroughRewriter, TextRewriter
from devreport.rephrase.ollama import OllamaRephraser
from devreport.report.base import ActivitySource
from devreport.report.generator import ReportGenerator

logger = logging.getLogger(__name__)


def get_rewriter(settings: Settings) -> TextRewriter:
    if not settings.REPHRASE_ENABLED:
        return PassthroughRewriter()
    return OllamaRephraser(
        openai_client=get_rephrase_openai_client(settings),
        model=settings.REPHRASE_MODEL,
        timeout=settings.REPHRASE_TIMEOUT,
    )


def build_sources(settings: Settings) -> list[ActivitySource]:
    sources: list[ActivitySource] = []

    if settings.CLICKUP_API_TOKEN:
        if settings.CLICKUP_LIST_IDS or settings.CLICKUP_FOLDER_ID:
            config = ClickUpSourceConfig.from_settings(settings)
            sources.append(
                ClickUpSource(config=config, rewriter=get_rewriter(settings))
            )
            logger.info(
                f"ClickUp source initialized (mode={config.mode}, "
                f"assignees={len(config.assignee_ids)})"
            )
        else:
            logger.warning(
                "CLICKUP_API_TOKEN is set but neither CLICKUP_LIST_IDS nor "
                "CLICKUP_FOLDER_ID is configured"
            )

    return sources


@lru_cache
def get_sources() -> list[ActivitySource]:
    # Built once per process so every request shares the same rate limiters
    return build_sources(get_settings())


def get_report_generator(
    sources: list[ActivitySource] = Depends(get_sources),
) -> ReportGenerator:
    if not sources:
        raise KnownException(
            "No data sources configured. Set CLICKUP_API_TOKEN and "
            "CLICKUP_LIST_IDS or CLICKUP_FOLDER_ID."
        )
    return ReportGenerator(sources)
