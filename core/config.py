"""Configuration models and loading."""

import json
import os
from pathlib import Path
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, ValidationError, field_validator

from core.exceptions import ConfigurationError
from core.request_types import UpstreamTarget

CONFIG_DIR = Path.home() / ".config" / "https-relay"
CONFIG_FILE = CONFIG_DIR / "config.json"

ENDPOINT_ENV = "API_ENDPOINT"
PORT_ENV = "RELAY_PORT"

DEFAULT_PORTS = {"http": 80, "https": 443}


class ProxySettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8787
    dashboard: bool = True


class UpstreamSettings(BaseModel):
    base_url: str
    timeout: float = 300.0
    connect_timeout: float = 10.0
    max_connections: int = 100
    max_keepalive_connections: int = 20

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("upstream base_url is empty")
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https"):
            raise ValueError(f"unsupported scheme in {value!r}")
        if not parts.hostname:
            raise ValueError(f"missing host in {value!r}")
        if parts.query or parts.fragment:
            raise ValueError(f"query or fragment not allowed in {value!r}")
        # Raises ValueError on a non-numeric port
        parts.port
        return value.rstrip("/")

    def target(self) -> UpstreamTarget:
        """Build the immutable upstream target."""
        parts = urlsplit(self.base_url)
        host = parts.hostname or ""
        if ":" in host:
            host = f"[{host}]"
        elif not host.isascii():
            host = host.encode("idna").decode("ascii")
        if parts.port is not None and parts.port != DEFAULT_PORTS[parts.scheme]:
            host = f"{host}:{parts.port}"
        return UpstreamTarget(base_url=self.base_url, host=host)


class LoggingSettings(BaseModel):
    request_logs: bool = False


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    upstream: UpstreamSettings
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def _template() -> dict:
    return {
        "proxy": ProxySettings().model_dump(),
        "upstream": {"base_url": ""},
        "logging": LoggingSettings().model_dump(),
    }


def load_config(path: Path = CONFIG_FILE, environ: dict[str, str] | None = None) -> Config:
    """Load configuration from JSON file and environment.

    Creates a template file when none exists. Raises ConfigurationError when the
    upstream is missing or the file cannot be parsed.
    """
    environ = os.environ if environ is None else environ

    if path.exists():
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"{path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path} must contain a JSON object")
    else:
        path.parent.mkdir(parents=True, exist_ok=True)
        data = _template()
        path.write_text(json.dumps(data, indent=2))

    if endpoint := environ.get(ENDPOINT_ENV):
        data.setdefault("upstream", {})["base_url"] = endpoint
    if port := environ.get(PORT_ENV):
        data.setdefault("proxy", {})["port"] = port

    return parse_config(data)


def parse_config(data: dict) -> Config:
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
