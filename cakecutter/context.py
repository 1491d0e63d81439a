"""Context model: merging, original snapshots and abbreviation loading.

A context is a plain ``dict`` mapping string keys to JSON values.  Keys that
start with ``_`` are configuration-internal (``_copy_without_render``,
``_extensions``) and never appear in the original snapshot.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import JsonValue

from cakecutter.utils import load_json

logger = logging.getLogger(__name__)

INTERNAL_PREFIX = "_"

Context = dict[str, JsonValue]


def merge(defaults: Mapping[str, Any], declared: Mapping[str, Any]) -> Context:
    """Merge default values into the template-declared context.

    Every key of *declared* is kept unchanged; a key from *defaults* is only
    added when *declared* does not define it.
    """
    merged: Context = dict(declared)
    for key, value in defaults.items():
        if key not in merged:
            merged[key] = value
    return merged


def snapshot_original(context: Mapping[str, Any]) -> Context:
    """Return a copy of *context* without configuration-internal keys."""
    return {
        key: value
        for key, value in context.items()
        if not key.startswith(INTERNAL_PREFIX)
    }


def load_abbreviations(path: str | Path) -> dict[str, JsonValue]:
    """Read an abbreviation mapping from a JSON file.

    Never raises: a missing, unreadable or malformed file, or one whose
    top-level value is not an object, yields an empty mapping.
    """
    abbrev_path = Path(path)
    if not abbrev_path.is_file():
        logger.debug("No abbreviation file at %s", abbrev_path)
        return {}
    try:
        data = load_json(abbrev_path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring abbreviation file %s: %s", abbrev_path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning(
            "Ignoring abbreviation file %s: expected a JSON object, got %s",
            abbrev_path,
            type(data).__name__,
        )
        return {}
    return data


# ---------------------------------------------------------------------------
# Total conversions for loosely-typed JSON values
# ---------------------------------------------------------------------------


def as_list(value: Any, key: str = "value") -> list[Any]:
    """Return *value* if it is a list, otherwise an empty list.

    ``None`` (key absent) is silently treated as empty; any other non-list
    value is reported.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    logger.warning(
        "Expected %s to be an array, got %s; treating it as empty",
        key,
        type(value).__name__,
    )
    return []


def as_string_list(value: Any, key: str = "value") -> list[str]:
    """Like :func:`as_list`, additionally dropping non-string entries."""
    strings: list[str] = []
    for item in as_list(value, key):
        if isinstance(item, str):
            strings.append(item)
        else:
            logger.warning("Skipping non-string entry %r in %s", item, key)
    return strings
