import asyncio
import logging
from types import TracebackType
from typing import Type
from aiohttp import ClientSession, ClientTimeout

from devreport.clickup.config import ClickUpSourceConfig
from devreport.clickup.schemas import FolderListsResponse, ListDetails
from devreport.common.exceptions import FetchError, KnownException
from devreport.common.rate_limiter import TokenBucketLimiter
from devreport.common.transport import (
    QueryParams,
    RateLimitedTransport,
    TransportResponse,
)

logger = logging.getLogger(__name__)


class ClickUpClient:
    def __init__(self, *, config: ClickUpSourceConfig, limiter: TokenBucketLimiter):
        if not config.api_token:
            raise KnownException("CLICKUP_API_TOKEN is required to access ClickUp API")

        self.base_url = config.base_url.rstrip("/")
        self.session: ClientSession = ClientSession(
            headers={
                "Accept": "application/json",
                "User-Agent": config.user_agent,
                "Authorization": config.api_token,
            },
            timeout=ClientTimeout(total=config.request_timeout),
        )
        self.transport = RateLimitedTransport(
            session=self.session,
            limiter=limiter,
            max_retries=config.max_retries,
            retry_backoff=config.retry_backoff,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(
        self, exc_type: Type[Exception], exc: Exception, tb: TracebackType
    ):
        if self.session:
            await self.session.close()

    async def request(
        self,
        method: str,
        path: str,
        params: QueryParams | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> TransportResponse:
        url = f"{self.base_url}/{path.lstrip('/')}"
        return await self.transport.send(
            method, url, params=params, cancel_event=cancel_event
        )

    async def health_check(self) -> None:
        response = await self.request("GET", "/user")
        if not response.ok:
            raise FetchError(response.status, response.body)

    async def fetch_list_details(self, list_id: str) -> ListDetails:
        response = await self.request("GET", f"/list/{list_id}")
        if not response.ok:
            raise FetchError(response.status, response.body, list_id=list_id)
        return ListDetails.model_validate(response.json())

    async def get_list_ids_and_names_from_folder(
        self, folder_id: str
    ) -> tuple[list[str], dict[str, str]]:
        """Resolve every list in a folder.

        Returns the list IDs in folder order and a mapping of list ID to list name.
        """
        response = await self.request("GET", f"/folder/{folder_id}/list")
        if not response.ok:
            raise FetchError(response.status, response.body)

        lists = FolderListsResponse.model_validate(response.json()).lists
        logger.info(f"Found {len(lists)} lists in folder {folder_id}")
        return [item.id for item in lists], {item.id: item.name for item in lists}
