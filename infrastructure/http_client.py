"""Outbound HTTP for the mail API. One client per process, closed by the lifespan."""

from typing import Any, Optional

import httpx

from shared.logging import get_logger

log = get_logger(__name__)

DEFAULT_USER_AGENT = "tips90-backend"


class HttpClient:
    def __init__(
        self,
        timeout: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": user_agent},
            transport=transport,
        )

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        """POST and return the response whatever its status; transport errors propagate."""
        try:
            return await self._client.post(url, **kwargs)
        except httpx.HTTPError as e:
            log.warning(
                "http_request_failed",
                method="POST",
                url=url,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

    async def aclose(self) -> None:
        await self._client.aclose()
