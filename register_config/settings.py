"""
Sync settings (``register_config.settings``).

Settings come from one YAML file (``data/settings.yaml`` unless
``REGISTER_SETTINGS_PATH`` points elsewhere) with ``REGISTER_DATABASE_URL``
overriding the database URL.  Unknown keys are rejected so that typos do
not silently fall back to defaults.

Failure modes
-------------
* Unknown key, wrong type or out-of-range value  -> ``SettingsError``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

from register_kernel.exceptions import SettingsError

from register_config.loader import load_yaml_file

DATA_DIR = Path(__file__).parent / "data"
DEFAULT_SETTINGS_PATH = DATA_DIR / "settings.yaml"
DEFAULT_OVERRIDES_PATH = DATA_DIR / "payer_overrides.yaml"

ENV_DATABASE_URL = "REGISTER_DATABASE_URL"
ENV_SETTINGS_PATH = "REGISTER_SETTINGS_PATH"


@dataclass(frozen=True)
class SyncSettings:
    """Everything a sync run needs besides its collaborators."""

    database_url: str = "postgresql://localhost/register"
    members_api_base: str = "https://members-api.parliament.uk/api"
    interests_api_base: str = "https://interests-api.parliament.uk/api/v1"
    page_size: int = 20
    page_delay_seconds: float = 0.1
    request_timeout_seconds: float = 30.0
    batch_size: int = 100
    employment_category_id: int = 12
    deadline_seconds: float | None = 1800.0
    stale_run_after_seconds: float = 3600.0
    concurrent_fetches: bool = True
    overrides_path: Path = DEFAULT_OVERRIDES_PATH

    def __post_init__(self) -> None:
        for key in ("page_size", "batch_size"):
            if getattr(self, key) < 1:
                raise SettingsError(key, "must be at least 1")
        for key in ("page_delay_seconds", "request_timeout_seconds", "stale_run_after_seconds"):
            if getattr(self, key) < 0:
                raise SettingsError(key, "must not be negative")
        if self.deadline_seconds is not None and self.deadline_seconds <= 0:
            raise SettingsError("deadline_seconds", "must be positive or null")


_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "database_url": (str,),
    "members_api_base": (str,),
    "interests_api_base": (str,),
    "page_size": (int,),
    "page_delay_seconds": (int, float),
    "request_timeout_seconds": (int, float),
    "batch_size": (int,),
    "employment_category_id": (int,),
    "deadline_seconds": (int, float, type(None)),
    "stale_run_after_seconds": (int, float),
    "concurrent_fetches": (bool,),
    "overrides_path": (str,),
}


def parse_settings(data: Mapping[str, Any], base_dir: Path | None = None) -> SyncSettings:
    """
    Build SyncSettings from a mapping (usually parsed YAML).

    A relative ``overrides_path`` is resolved against ``base_dir``.
    """
    known = {f.name for f in fields(SyncSettings)}
    values: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            raise SettingsError(key, "unknown setting")
        expected = _FIELD_TYPES[key]
        # bool is an int subclass; only concurrent_fetches accepts it
        if isinstance(value, bool) and bool not in expected:
            raise SettingsError(key, f"expected {expected[0].__name__}, got bool")
        if not isinstance(value, expected):
            raise SettingsError(key, f"expected {expected[0].__name__}, got {type(value).__name__}")
        values[key] = value

    if "overrides_path" in values:
        path = Path(values["overrides_path"])
        if not path.is_absolute() and base_dir is not None:
            path = base_dir / path
        values["overrides_path"] = path

    return SyncSettings(**values)


def load_settings(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> SyncSettings:
    """
    Load settings from YAML, then apply environment overrides.

    Args:
        path: Settings file.  Defaults to $REGISTER_SETTINGS_PATH, then
            the packaged data/settings.yaml.
        environ: Environment mapping (defaults to os.environ).
    """
    env = os.environ if environ is None else environ
    if path is None:
        path = Path(env[ENV_SETTINGS_PATH]) if env.get(ENV_SETTINGS_PATH) else DEFAULT_SETTINGS_PATH

    settings = parse_settings(load_yaml_file(path), base_dir=path.parent)

    database_url = env.get(ENV_DATABASE_URL)
    if database_url:
        settings = replace(settings, database_url=database_url)
    return settings
