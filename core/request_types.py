"""Shared request data types."""

from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field

from core.exceptions import RelayError

Headers = list[tuple[bytes, bytes]]


@dataclass(frozen=True)
class NoBody:
    """No body is sent."""


@dataclass(frozen=True)
class BufferedBody:
    """Body held fully in memory."""

    data: bytes


@dataclass
class StreamBody:
    """Body forwarded chunk by chunk without buffering."""

    chunks: AsyncIterator[bytes]
    close: Callable[[], Awaitable[None]] | None = None


Body = NoBody | BufferedBody | StreamBody


@dataclass
class InboundRequest:
    """A request as received at the edge.

    ``path`` is the raw, still percent-encoded path and ``query`` the raw query
    string without the leading ``?``.
    """

    method: str
    path: str
    query: str = ""
    headers: Headers = field(default_factory=list)
    body: Body = field(default_factory=NoBody)


@dataclass(frozen=True)
class UpstreamTarget:
    """The single upstream every request is relayed to."""

    base_url: str
    host: str

    def url_for(self, path: str, query: str = "") -> str:
        url = f"{self.base_url}{path}"
        if query:
            url += f"?{query}"
        return url


@dataclass
class OutboundRequest:
    """Prepared data for the upstream request."""

    method: str
    url: str
    headers: Headers
    body: Body


@dataclass
class UpstreamResponse:
    status_code: int
    reason_phrase: str
    headers: Headers
    body: StreamBody


@dataclass
class FinalResponse:
    """Response handed back to the serving layer."""

    status_code: int
    headers: Headers
    body: Body = field(default_factory=NoBody)
    reason_phrase: str = ""


@dataclass(frozen=True)
class RelayFailure:
    """Failed pipeline step; carries the error instead of raising it."""

    error: RelayError

    @property
    def kind(self) -> str:
        return self.error.kind
