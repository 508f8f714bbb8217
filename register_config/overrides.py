"""
Manual payer override list (``register_config.overrides``).

The list is the escape hatch for systematic misclassifications.  Each
entry maps a name pattern to a payer type and optional subtype:

    overrides:
      - pattern: "acme holdings"
        type: Individual
        reason: "Sole trader registered under a company-style name"

Patterns are matched exactly first, then as substrings in file order, so
more specific patterns must be listed before more general ones.

Failure modes
-------------
* Entry without a pattern or with an unknown type  -> ``InvalidOverrideError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping

from register_kernel.exceptions import InvalidOverrideError
from register_kernel.logging_config import get_logger

from register_ingestion.domain.types import PayerOverride, PayerType

from register_config.loader import load_yaml_file

logger = get_logger("config.overrides")

_TYPES_BY_NAME = {t.value.lower(): t for t in PayerType}


def parse_override(index: int, data: Any) -> PayerOverride:
    if not isinstance(data, Mapping):
        raise InvalidOverrideError(index, "entry must be a mapping")

    pattern = data.get("pattern")
    if not isinstance(pattern, str) or not pattern.strip():
        raise InvalidOverrideError(index, "pattern is required")

    type_name = data.get("type")
    payer_type = _TYPES_BY_NAME.get(str(type_name).lower()) if type_name else None
    if payer_type is None:
        raise InvalidOverrideError(
            index,
            f"type must be one of {', '.join(t.value for t in PayerType)}, got {type_name!r}",
        )

    return PayerOverride(
        pattern=pattern.strip(),
        payer_type=payer_type,
        subtype=data.get("subtype") or None,
        reason=data.get("reason") or None,
    )


def parse_overrides(entries: Iterable[Any]) -> list[PayerOverride]:
    """Parse override entries, preserving their order."""
    return [parse_override(i, entry) for i, entry in enumerate(entries)]


def load_overrides(path: Path) -> list[PayerOverride]:
    """Load the override list from YAML.  A missing file means no overrides."""
    if not path.exists():
        logger.warning("payer_overrides_missing", extra={"path": str(path)})
        return []

    data = load_yaml_file(path)
    entries = data.get("overrides") or []
    if not isinstance(entries, list):
        raise InvalidOverrideError(-1, "overrides must be a list")

    overrides = parse_overrides(entries)
    logger.info(
        "payer_overrides_read",
        extra={"path": str(path), "override_count": len(overrides)},
    )
    return overrides
