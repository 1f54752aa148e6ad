"""Relay pipeline: preflight, outbound request, upstream call, final response."""

import time

from core.body import close_body, prepare_outbound_body
from core.exceptions import InternalRelayError
from core.headers import ERROR_HEADERS, HeaderBuilder, get_header
from core.preflight import PreflightHandler
from core.protocols import RequestLogger
from core.request_types import (
    BufferedBody,
    FinalResponse,
    InboundRequest,
    OutboundRequest,
    RelayFailure,
    StreamBody,
    UpstreamTarget,
)
from services.upstream import UpstreamClient

ERROR_STATUS = 502
ERROR_MESSAGE = "API relay error"


def error_response() -> FinalResponse:
    """The fixed response for every request-level failure."""
    return FinalResponse(
        status_code=ERROR_STATUS,
        headers=list(ERROR_HEADERS),
        body=BufferedBody(ERROR_MESSAGE.encode("utf-8")),
        reason_phrase="Bad Gateway",
    )


class RelayService:
    """Forward every inbound request to the single upstream target."""

    def __init__(
        self,
        target: UpstreamTarget,
        upstream: UpstreamClient,
        logger: RequestLogger,
        header_builder: HeaderBuilder | None = None,
        preflight: PreflightHandler | None = None,
    ) -> None:
        self._target = target
        self._upstream = upstream
        self._logger = logger
        self._headers = header_builder or HeaderBuilder()
        self._preflight = preflight or PreflightHandler()

    async def handle(self, request: InboundRequest) -> FinalResponse:
        """Produce the response for one inbound request. Never raises for request errors."""
        preflight = self._preflight.respond(request)
        if preflight is not None:
            self._logger.log_preflight(request.path)
            return preflight

        started = time.monotonic()
        result = await self.relay(request)
        if isinstance(result, RelayFailure):
            result = self.fail(result)

        self._logger.log_response(
            request.method, request.path, result.status_code, time.monotonic() - started
        )
        return result

    def fail(self, failure: RelayFailure) -> FinalResponse:
        """Log a failure and return the fixed error response in its place."""
        self._logger.log_error(failure.kind, ERROR_STATUS, str(failure.error))
        return error_response()

    async def relay(self, request: InboundRequest) -> FinalResponse | RelayFailure:
        """Run the pipeline; failures are returned, not raised."""
        try:
            outbound = await self.build_outbound(request)
            if isinstance(outbound, RelayFailure):
                return outbound

            self._logger.log_relay(
                outbound.method, outbound.url, outbound.headers, path=request.path
            )
            response = await self._upstream.send(outbound)
            if isinstance(response, RelayFailure):
                return response

            try:
                headers = self._headers.apply_security_headers(response.headers)
            except Exception:
                await close_body(response.body)
                raise

            return FinalResponse(
                status_code=response.status_code,
                headers=headers,
                body=response.body,
                reason_phrase=response.reason_phrase,
            )
        except Exception as e:
            return RelayFailure(InternalRelayError(f"{type(e).__name__}: {e}"))

    async def build_outbound(self, request: InboundRequest) -> OutboundRequest | RelayFailure:
        """Build the upstream request from the inbound one."""
        raw_content_type = get_header(request.headers, b"Content-Type")
        content_type = raw_content_type.decode("latin-1") if raw_content_type else None
        body = await prepare_outbound_body(request.method, content_type, request.body)
        if isinstance(body, RelayFailure):
            return body

        headers = self._headers.build_upstream_headers(
            request.headers,
            self._target.host,
            keep_content_length=isinstance(body, StreamBody),
        )
        return OutboundRequest(
            method=request.method,
            url=self._target.url_for(request.path, request.query),
            headers=headers,
            body=body,
        )
