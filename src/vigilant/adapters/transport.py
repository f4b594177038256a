"""HTTP transport adapter posting JSON payloads with httpx."""

from typing import Any

import httpx

from vigilant.core.errors import InvalidTokenError, ServerError

_HEADERS = {"Content-Type": "application/json"}


class HttpTransport:
    """httpx implementation of TransportPort.

    Failures are classified by status: 401 raises InvalidTokenError, every
    other non-2xx status and every network-level failure raises ServerError.

    Args:
        url: Full message endpoint URL (see Config.url).
        client: Optional pre-configured AsyncClient. A client passed in is
            not closed by aclose().
        timeout: Request timeout in seconds for a client created here.
    """

    def __init__(
        self,
        url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def url(self) -> str:
        return self._url

    async def post(self, payload: dict[str, Any]) -> None:
        try:
            response = await self._client.post(self._url, json=payload, headers=_HEADERS)
        except httpx.HTTPError as e:
            raise ServerError(detail=f"{type(e).__name__}: {e}") from e

        if response.status_code == 401:
            raise InvalidTokenError(response.status_code)
        if not response.is_success:
            raise ServerError(response.status_code)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
