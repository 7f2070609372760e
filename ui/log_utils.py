"""Shared logging utilities."""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "proxy.log"

SENSITIVE_HEADER_MARKERS = ("authorization", "key", "token", "cookie")


def write_incoming_log(
    method: str,
    path: str,
    headers: dict[str, str],
    destination: str,
    *,
    log_root: Path = LOG_ROOT,
) -> Path:
    """Write a single incoming request log entry (bodies are streamed, never logged)."""
    payload = {
        "timestamp": _utc_now(),
        "method": method,
        "path": path,
        "destination": destination,
        "headers": _redact_headers(headers),
    }
    return _write_json(log_root / "incoming" / _host_folder(destination), payload)


def write_cli_log(
    level: str,
    message: str,
    *,
    log_file: Path | None = None,
    **extra: Any,
) -> None:
    """Append a line to the rolling CLI log file."""
    log_file = log_file or CLI_LOG_FILE
    log_file.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
    extra_str = " ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""
    line = f"[{timestamp}] {level}: {message}"
    if extra_str:
        line += f" {extra_str}"
    line += "\n"
    with log_file.open("a") as f:
        f.write(line)


def _write_json(folder: Path, payload: dict[str, Any]) -> Path:
    """Write payload to a unique JSON file in the given folder."""
    folder.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S.%fZ")
    file_path = folder / f"{timestamp}_{uuid4().hex}.json"
    file_path.write_text(json.dumps(payload, indent=2, default=str))
    return file_path


def _host_folder(destination: str) -> str:
    """Folder name for a destination: its host, or '_invalid'."""
    _, _, rest = destination.partition("://")
    host = rest.split("/", 1)[0].split(":", 1)[0]
    # Keep folder names on a single path level
    host = host.replace("..", "_").strip(".")
    return host or "_invalid"


def _redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact sensitive headers."""
    redacted = {}
    for key, value in headers.items():
        if any(marker in key.lower() for marker in SENSITIVE_HEADER_MARKERS):
            redacted[key] = _mask(value)
        else:
            redacted[key] = value
    return redacted


def _mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return value[:6] + "..." + value[-4:]


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()
