"""Shared logging utilities."""

import json
import shutil
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "relay.log"

SENSITIVE_MARKERS = ("key", "authorization", "cookie", "token")


def write_incoming_log(
    method: str,
    url: str,
    headers: list[tuple[bytes, bytes]],
    *,
    path: str,
    log_root: Path = LOG_ROOT,
) -> Path:
    """Write a single relayed request log entry."""
    payload = {
        "timestamp": _utc_now(),
        "method": method,
        "path": path,
        "target": url,
        "headers": _redact_headers(headers),
    }
    return _write_json(log_root / "incoming", payload)


def write_cli_log(
    level: str,
    message: str,
    **extra: Any,
) -> None:
    """Append a line to the rolling CLI log file."""
    CLI_LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
    extra_str = " ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""
    line = f"[{timestamp}] {level}: {message}"
    if extra_str:
        line += f" {extra_str}"
    line += "\n"
    with CLI_LOG_FILE.open("a") as f:
        f.write(line)


def clear_logs(log_root: Path = LOG_ROOT) -> None:
    """Remove request logs from a previous run."""
    shutil.rmtree(log_root / "incoming", ignore_errors=True)


def _write_json(folder: Path, payload: dict[str, Any]) -> Path:
    """Write payload to a unique JSON file in the given folder."""
    folder.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S.%fZ")
    file_path = folder / f"{timestamp}_{uuid4().hex}.json"
    file_path.write_text(json.dumps(payload, indent=2, default=str))
    return file_path


def _redact_headers(headers: list[tuple[bytes, bytes]]) -> list[tuple[str, str]]:
    """Redact sensitive headers."""
    redacted = []
    for raw_key, raw_value in headers:
        key = raw_key.decode("latin-1")
        value = raw_value.decode("latin-1")
        if any(marker in key.lower() for marker in SENSITIVE_MARKERS):
            redacted.append((key, _mask(value)))
        else:
            redacted.append((key, value))
    return redacted


def _mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return value[:6] + "..." + value[-4:]


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()
