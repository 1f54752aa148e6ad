"""Header rewriting for upstream requests and relayed responses.

Headers are raw ``(name, value)`` byte pairs as they appear on the wire, so
values with non-ASCII bytes pass through without being re-encoded.
"""

from core.request_types import Headers

# Connection-local headers; the relay opens its own upstream connection.
DROPPED_REQUEST_HEADERS = frozenset(
    {b"connection", b"upgrade-insecure-requests", b"transfer-encoding"}
)
DROPPED_RESPONSE_HEADERS = frozenset({b"connection", b"keep-alive", b"transfer-encoding"})

SECURITY_HEADERS: tuple[tuple[bytes, bytes], ...] = (
    (b"Strict-Transport-Security", b"max-age=31536000; includeSubDomains; preload"),
    (b"X-Content-Type-Options", b"nosniff"),
    (b"X-Frame-Options", b"DENY"),
    (b"X-XSS-Protection", b"1; mode=block"),
    (b"Access-Control-Allow-Origin", b"*"),
    (b"Content-Security-Policy", b"default-src 'self'; upgrade-insecure-requests;"),
)

PREFLIGHT_HEADERS: tuple[tuple[bytes, bytes], ...] = (
    (b"Access-Control-Allow-Origin", b"*"),
    (b"Access-Control-Allow-Methods", b"GET, POST, PUT, DELETE, PATCH, OPTIONS"),
    (b"Access-Control-Allow-Headers", b"Content-Type, Authorization, X-Requested-With"),
    (b"Access-Control-Max-Age", b"86400"),
    (b"Cache-Control", b"public, max-age=86400"),
)

ERROR_HEADERS: tuple[tuple[bytes, bytes], ...] = (
    (b"Content-Type", b"text/plain;charset=UTF-8"),
    (b"Access-Control-Allow-Origin", b"*"),
)


def get_header(headers: Headers, name: bytes) -> bytes | None:
    """Return the first value for ``name``, case-insensitively."""
    name = name.lower()
    for key, value in headers:
        if key.lower() == name:
            return value
    return None


def remove_header(headers: Headers, name: bytes) -> Headers:
    name = name.lower()
    return [(key, value) for key, value in headers if key.lower() != name]


def set_header(headers: Headers, name: bytes, value: bytes) -> Headers:
    """Replace every value of ``name`` with a single ``value``.

    The new value keeps the position of the first existing occurrence.
    """
    lowered = name.lower()
    result: Headers = []
    replaced = False
    for key, existing in headers:
        if key.lower() != lowered:
            result.append((key, existing))
        elif not replaced:
            result.append((name, value))
            replaced = True
    if not replaced:
        result.append((name, value))
    return result


class HeaderBuilder:
    """Build upstream request headers and final response headers."""

    def build_upstream_headers(
        self,
        headers: Headers,
        host: str,
        *,
        keep_content_length: bool,
    ) -> Headers:
        """Copy inbound headers, point Host at the upstream, drop connection-local ones.

        ``Content-Length`` is kept only when the inbound body is forwarded
        byte for byte.
        """
        upstream = [
            (key, value) for key, value in headers if key.lower() not in DROPPED_REQUEST_HEADERS
        ]
        if not keep_content_length:
            upstream = remove_header(upstream, b"Content-Length")
        return set_header(upstream, b"Host", host.encode("ascii"))

    def apply_security_headers(self, headers: Headers) -> Headers:
        """Copy upstream response headers and force the security/CORS set."""
        final = [
            (key, value) for key, value in headers if key.lower() not in DROPPED_RESPONSE_HEADERS
        ]
        for name, value in SECURITY_HEADERS:
            final = set_header(final, name, value)
        return final
