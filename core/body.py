"""Request body policy: JSON normalization or raw passthrough."""

import json
from typing import Any

from core.exceptions import InvalidJSON
from core.request_types import Body, BufferedBody, NoBody, RelayFailure, StreamBody

BODYLESS_METHODS = frozenset({"GET", "HEAD"})


def is_json_content_type(content_type: str | None) -> bool:
    """True for ``application/json`` with or without parameters."""
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def encode_json_body(raw: bytes) -> bytes | RelayFailure:
    """Parse and re-serialize a JSON body compactly, key order preserved."""
    try:
        data = json.loads(raw.decode("utf-8"), parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError) as e:
        return RelayFailure(InvalidJSON(f"Invalid JSON body: {e}"))
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


async def read_body(body: Body) -> bytes:
    """Drain a body variant into memory."""
    if isinstance(body, NoBody):
        return b""
    if isinstance(body, BufferedBody):
        return body.data
    chunks = [chunk async for chunk in body.chunks]
    return b"".join(chunks)


async def close_body(body: Body) -> None:
    """Release the connection behind a streamed body, if any."""
    if isinstance(body, StreamBody) and body.close is not None:
        await body.close()


async def prepare_outbound_body(
    method: str,
    content_type: str | None,
    body: Body,
) -> Body | RelayFailure:
    """Select the outbound body for a request.

    GET and HEAD never carry a body. JSON bodies are validated and normalized;
    anything else is forwarded untouched.
    """
    if method.upper() in BODYLESS_METHODS:
        return NoBody()

    if is_json_content_type(content_type):
        encoded = encode_json_body(await read_body(body))
        if isinstance(encoded, RelayFailure):
            return encoded
        return BufferedBody(encoded)

    return body
