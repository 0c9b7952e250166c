"""
Settings shared by the navigator CLI, the REST connector and the sequencer.

Settings are read from ~/.tmfolders/config.yaml, or from the file named by
the TMFOLDERS_CONFIG environment variable. YAML is tried first, then JSON.
A missing file means defaults.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from box import Box
from pydantic import BaseModel, Field, ValidationError

from navigator.sequencer import SequenceBudget

DEFAULT_API_BASE_URL = "https://app.tm4j.smartbear.com/backend/rest/tests/2.0"
CONFIG_ENV_VAR = "TMFOLDERS_CONFIG"


class NavigatorSettings(BaseModel):
    """Runtime settings. Intervals are in seconds."""

    api_base_url: str = Field(default=DEFAULT_API_BASE_URL, description="Test-management REST base URL")
    request_timeout: float = Field(default=10.0, gt=0)
    locate_attempts: int = Field(default=10, ge=1, description="Checks per chain element")
    locate_interval: float = Field(default=0.5, ge=0)
    fallback_attempts: int = Field(default=20, ge=1, description="Checks when only the target id is known")
    tree_load_attempts: int = Field(default=20, ge=1)
    tree_load_interval: float = Field(default=0.5, ge=0)
    settle_attempts: int = Field(default=3, ge=1, description="Checks for the expanded marker after expanding")
    settle_interval: float = Field(default=0.1, ge=0)
    log_level: str = Field(default="INFO")
    logfile: Optional[str] = None

    def as_box(self) -> Box:
        return Box(self.model_dump(mode="python"))

    def sequence_budget(self) -> SequenceBudget:
        return SequenceBudget(
            locate_attempts=self.locate_attempts,
            locate_interval=self.locate_interval,
            fallback_attempts=self.fallback_attempts,
            settle_attempts=self.settle_attempts,
            settle_interval=self.settle_interval,
        )


def default_config_path() -> Path:
    return Path(os.path.expanduser("~/.tmfolders/config.yaml"))


def load_settings(path: str | Path | None = None) -> NavigatorSettings:
    """Load settings from ``path``, $TMFOLDERS_CONFIG or the default location."""
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or default_config_path()
    path = Path(path)
    if not path.exists():
        return NavigatorSettings()
    return coerce_settings(path.read_text())


def coerce_settings(value: Any) -> NavigatorSettings:
    """Normalize a mapping or YAML/JSON text into NavigatorSettings."""
    if isinstance(value, NavigatorSettings):
        return value
    payload: Mapping[str, Any]
    if isinstance(value, Mapping):
        payload = value
    elif isinstance(value, (str, bytes)):
        payload = _load_text_payload(value)
    else:
        raise TypeError("Unsupported value for settings")
    try:
        return NavigatorSettings.model_validate(payload)
    except ValidationError as exc:
        raise ValueError("Invalid settings payload") from exc


def _load_text_payload(raw: str | bytes) -> dict[str, Any]:
    text = raw.decode() if isinstance(raw, bytes) else raw
    try:
        return yaml.safe_load(text) or {}
    except yaml.YAMLError:
        return json.loads(text)
