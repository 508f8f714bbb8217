"""
register_config -- YAML-backed sync settings and the manual payer override list.

Architecture position:
    Configuration.  Imports register_kernel (exceptions, logging) and the
    pure register_ingestion domain types.  register_kernel and
    register_ingestion never import from here.
"""

from register_config.overrides import load_overrides, parse_overrides
from register_config.settings import (
    DEFAULT_OVERRIDES_PATH,
    DEFAULT_SETTINGS_PATH,
    SyncSettings,
    load_settings,
    parse_settings,
)

__all__ = [
    "DEFAULT_OVERRIDES_PATH",
    "DEFAULT_SETTINGS_PATH",
    "SyncSettings",
    "load_overrides",
    "load_settings",
    "parse_overrides",
    "parse_settings",
]
