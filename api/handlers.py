"""FastAPI route handlers."""

from collections.abc import AsyncIterator

from fastapi import Request, Response
from fastapi.responses import StreamingResponse

from core.body import close_body
from core.exceptions import InternalRelayError
from core.headers import get_header
from core.request_types import (
    BufferedBody,
    FinalResponse,
    InboundRequest,
    NoBody,
    RelayFailure,
    StreamBody,
)
from services.relay_service import RelayService


def to_inbound(request: Request) -> InboundRequest:
    """Convert a Starlette request into a framework-free InboundRequest.

    Header names and values stay raw bytes so nothing is re-encoded on the way out.
    """
    raw_path = request.scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else request.url.path
    query = request.scope.get("query_string", b"").decode("latin-1")
    headers = list(request.headers.raw)

    has_body = "content-length" in request.headers or "transfer-encoding" in request.headers
    body = StreamBody(request.stream()) if has_body else NoBody()
    return InboundRequest(
        method=request.method,
        path=path,
        query=query,
        headers=headers,
        body=body,
    )


async def _relay_stream(body: StreamBody) -> AsyncIterator[bytes]:
    """Yield upstream chunks; the upstream stream is closed even on disconnect."""
    try:
        async for chunk in body.chunks:
            yield chunk
    finally:
        await close_body(body)


def to_response(final: FinalResponse) -> Response:
    """Convert a FinalResponse into a Starlette response, keeping repeated headers."""
    if isinstance(final.body, StreamBody):
        response: Response = StreamingResponse(
            _relay_stream(final.body), status_code=final.status_code
        )
    elif isinstance(final.body, BufferedBody):
        response = Response(content=final.body.data, status_code=final.status_code)
    else:
        response = Response(status_code=final.status_code)

    raw_headers = [(key.lower(), value) for key, value in final.headers]
    has_length = get_header(final.headers, b"Content-Length") is not None
    if isinstance(final.body, BufferedBody) and not has_length:
        raw_headers.append((b"content-length", str(len(final.body.data)).encode("ascii")))
    response.raw_headers = raw_headers
    return response


async def handle_relay(request: Request) -> Response:
    """Relay any method on any path to the upstream."""
    relay_service: RelayService = request.app.state.relay_service
    final = await relay_service.handle(to_inbound(request))
    try:
        return to_response(final)
    except Exception as e:
        await close_body(final.body)
        failure = RelayFailure(InternalRelayError(f"{type(e).__name__}: {e}"))
        return to_response(relay_service.fail(failure))
