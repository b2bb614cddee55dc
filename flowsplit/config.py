# flowsplit/config.py
"""
Settings for the CLI.

Sources, later ones win:
  1. built-in defaults
  2. YAML file (~/.config/flowsplit/config.yaml, or --config PATH)
  3. environment:
       N8N_API_URL          base URL of the n8n instance
       N8N_API_KEY          API key sent as X-N8N-API-KEY
       FLOWSPLIT_WORKDIR    where pulled workflows are decomposed (default: ./.flowsplit)
       FLOWSPLIT_TIMEOUT    HTTP timeout in seconds (default: 30)
       FLOWSPLIT_LOG_LEVEL  log level (default: INFO)
"""
from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from flowsplit.utils.io import PathLike, read_yaml, to_path, write_yaml

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "flowsplit" / "config.yaml"

_ENV_MAP = {
    "api_url": "N8N_API_URL",
    "api_key": "N8N_API_KEY",
    "workdir": "FLOWSPLIT_WORKDIR",
    "timeout": "FLOWSPLIT_TIMEOUT",
    "log_level": "FLOWSPLIT_LOG_LEVEL",
}


@dataclass
class Settings:
    api_url: str = ""
    api_key: str = ""
    workdir: str = ".flowsplit"
    timeout: float = 30.0
    log_level: str = "INFO"

    def merged(self, values: Mapping[str, Any]) -> "Settings":
        known = {f.name for f in fields(self)}
        data = asdict(self)
        data.update({k: v for k, v in values.items() if k in known and v is not None})
        try:
            data["timeout"] = float(data["timeout"])
        except (TypeError, ValueError) as e:
            raise ValueError(f"timeout must be a number, got {data['timeout']!r}") from e
        data["log_level"] = str(data["log_level"]).upper()
        return Settings(**data)


def _env_values(environ: Mapping[str, str]) -> Dict[str, Any]:
    return {key: environ[var] for key, var in _ENV_MAP.items() if environ.get(var)}


def load_settings(
    config_path: Optional[PathLike] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Build Settings from defaults, the YAML file (if present) and the environment."""
    environ = os.environ if environ is None else environ
    settings = Settings()

    path = to_path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if path.is_file():
        data = read_yaml(path) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a YAML mapping")
        settings = settings.merged(data)
    elif config_path:
        raise FileNotFoundError(f"Config file not found: {path}")

    return settings.merged(_env_values(environ))


def save_settings(settings: Settings, config_path: Optional[PathLike] = None) -> Path:
    """Persist settings as YAML, readable by the owner only (it holds the API key)."""
    path = write_yaml(to_path(config_path) if config_path else DEFAULT_CONFIG_PATH, asdict(settings))
    path.chmod(0o600)
    return path
