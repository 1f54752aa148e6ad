"""Shared protocol definitions."""

from typing import Protocol

from core.request_types import Headers


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard)."""

    def log_relay(self, method: str, url: str, headers: Headers, *, path: str) -> None: ...
    def log_preflight(self, path: str) -> None: ...
    def log_response(self, method: str, path: str, status: int, elapsed: float) -> None: ...
    def log_error(self, kind: str, status: int, message: str) -> None: ...
