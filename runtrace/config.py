"""Settings store backed by a JSON file in the per-user config directory."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields

import click

from runtrace.models import CpuCore, fits_int32

logger = logging.getLogger(__name__)

APP_NAME = "runtrace"
CONFIG_FILENAME = "config.json"
TELEMETRY_ENDPOINT = "https://api.runtrace.dev/telemetry"
VERIFY_ENDPOINT = "https://api.runtrace.dev/profile"


def default_config_dir() -> str:
    """Per-user config directory. RUNTRACE_CONFIG_DIR wins when set."""
    override = os.environ.get("RUNTRACE_CONFIG_DIR", "").strip()
    if override:
        return override
    return click.get_app_dir(APP_NAME)


@dataclass
class Settings:
    enable_telemetry: bool = True
    telemetry_endpoint_url: str = TELEMETRY_ENDPOINT
    verify_endpoint_url: str = VERIFY_ENDPOINT
    username: str = ""
    token: str = ""
    web_service: bool = True            # remote login verification available

    # User configuration reported in the UserConfig section
    cpu_core: CpuCore = CpuCore.JIT
    resolution_factor: int = 1
    toggle_framelimit: bool = True

    config_dir: str = field(default_factory=default_config_dir)

    def to_dict(self) -> dict:
        """Persistable form. config_dir is where the file lives, so it is not stored."""
        data = asdict(self)
        data.pop("config_dir")
        data["cpu_core"] = int(self.cpu_core)
        return data


def _get_config_path(config_dir: str) -> str:
    return os.path.join(config_dir, CONFIG_FILENAME)


def _load_config(config_path: str) -> dict:
    """Load config from file, returning empty dict if not found."""
    if not os.path.exists(config_path):
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.debug("Ignoring unreadable config %s: %s", config_path, e)
        return {}
    return data if isinstance(data, dict) else {}


def _save_config(config_path: str, cfg: dict) -> None:
    os.makedirs(os.path.dirname(config_path), exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(cfg, f, indent=2)


def load_settings(config_dir: str | None = None) -> Settings:
    """Build Settings from config.json, then apply the RUNTRACE_TELEMETRY override.

    Unknown keys are ignored. Values of the wrong type fall back to defaults.
    """
    config_dir = config_dir or default_config_dir()
    cfg = _load_config(_get_config_path(config_dir))
    settings = Settings(config_dir=config_dir)

    for f in fields(Settings):
        if f.name == "config_dir" or f.name not in cfg:
            continue
        default = getattr(settings, f.name)
        value = cfg[f.name]
        try:
            if isinstance(default, CpuCore):
                value = CpuCore(value)
            elif isinstance(default, bool):
                if not isinstance(value, bool):
                    raise ValueError(value)
            elif isinstance(default, int):
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ValueError(value)
                # reported as INT32 fields
                if not fits_int32(value):
                    raise ValueError(value)
            elif not isinstance(value, str):
                raise ValueError(value)
        except ValueError:
            logger.debug("Ignoring invalid config value %s=%r", f.name, value)
            continue
        setattr(settings, f.name, value)

    if os.environ.get("RUNTRACE_TELEMETRY", "").lower() == "off":
        settings.enable_telemetry = False
    return settings


def save_settings(settings: Settings) -> None:
    _save_config(_get_config_path(settings.config_dir), settings.to_dict())
