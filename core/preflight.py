"""CORS preflight handling."""

from core.headers import PREFLIGHT_HEADERS
from core.request_types import FinalResponse, InboundRequest, NoBody


class PreflightHandler:
    """Answer OPTIONS requests locally instead of relaying them."""

    def respond(self, request: InboundRequest) -> FinalResponse | None:
        """Return the 204 preflight response, or None for any other method."""
        if request.method.upper() != "OPTIONS":
            return None
        return FinalResponse(
            status_code=204,
            headers=list(PREFLIGHT_HEADERS),
            body=NoBody(),
            reason_phrase="No Content",
        )
