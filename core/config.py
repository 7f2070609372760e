"""Configuration models and loading."""

import json
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

CONFIG_DIR = Path.home() / ".config" / "identity-proxy"
CONFIG_FILE = CONFIG_DIR / "config.json"


class ProxySettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080
    health_path: str = "/_hc"
    shutdown_grace_period: float = 15.0
    keep_alive_timeout: int = 5


class UpstreamSettings(BaseModel):
    scheme: str = "https"
    # None disables the destination timeout entirely
    timeout: float | None = None
    follow_redirects: bool = True
    relay_response_headers: bool = False
    # Failure bodies always read "Unauthorized", whatever the status
    legacy_error_text: bool = True


class LoggingSettings(BaseModel):
    request_logs: bool = False


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_config(path: Path = CONFIG_FILE) -> Config:
    """Load configuration from JSON file, creating default if needed."""
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        default = Config()
        path.write_text(default.model_dump_json(indent=2))
        return default

    try:
        data = json.loads(path.read_text())
        return Config.model_validate(data)
    except (json.JSONDecodeError, ValidationError):
        # Backup corrupted config and recreate default
        backup = path.with_suffix(".json.bak")
        path.rename(backup)
        default = Config()
        path.write_text(default.model_dump_json(indent=2))
        return default
