"""HTTP client wrapper for the upstream API."""

import httpx

from core.exceptions import UpstreamConnectionError, UpstreamTimeoutError
from core.request_types import (
    BufferedBody,
    NoBody,
    OutboundRequest,
    RelayFailure,
    StreamBody,
    UpstreamResponse,
    UpstreamTarget,
)


class UpstreamClient:
    """Send one request to the upstream and stream its response back."""

    def __init__(self, client: httpx.AsyncClient, target: UpstreamTarget) -> None:
        self._client = client
        self._target = target

    async def send(self, outbound: OutboundRequest) -> UpstreamResponse | RelayFailure:
        """Issue the request exactly once. Network failures come back as RelayFailure."""
        content = None
        if isinstance(outbound.body, BufferedBody):
            content = outbound.body.data
        elif isinstance(outbound.body, StreamBody):
            content = outbound.body.chunks
        elif not isinstance(outbound.body, NoBody):
            raise TypeError(f"Unsupported body type: {type(outbound.body).__name__}")

        # Built directly so the client's default headers and cookies are not merged in
        req = httpx.Request(
            outbound.method,
            outbound.url,
            headers=outbound.headers,
            content=content,
            extensions={"timeout": self._client.timeout.as_dict()},
        )
        try:
            response = await self._client.send(req, stream=True)
        except httpx.TimeoutException as e:
            return RelayFailure(UpstreamTimeoutError(f"Upstream timeout: {e!r}", self._target.host))
        except httpx.RequestError as e:
            return RelayFailure(
                UpstreamConnectionError(f"Upstream connection error: {e!r}", self._target.host)
            )

        return UpstreamResponse(
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            headers=list(response.headers.raw),
            body=StreamBody(response.aiter_raw(), response.aclose),
        )
