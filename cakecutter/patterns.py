"""Glob matching for ``_copy_without_render`` exclusion patterns."""

from __future__ import annotations

import fnmatch
import logging
import re
from functools import lru_cache
from pathlib import PurePath
from typing import Any

logger = logging.getLogger(__name__)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    # fnmatch.translate lets ``*`` cross ``/``, which is what pattern
    # authors get unless they spell out the separator themselves.
    return re.compile(fnmatch.translate(pattern))


def is_excluded(path: str | PurePath, patterns: Any) -> bool:
    """Return ``True`` if *path* matches any of *patterns*.

    Matching is case-sensitive shell-glob matching (``*``, ``?``, ``[...]``)
    against the POSIX form of *path*.  Unusable patterns are logged and
    skipped; a *patterns* value that is not a list counts as empty.
    """
    if not isinstance(patterns, (list, tuple)):
        if patterns is not None:
            logger.warning(
                "Expected _copy_without_render to be an array, got %s",
                type(patterns).__name__,
            )
        return False

    candidate = path.as_posix() if isinstance(path, PurePath) else str(path)
    for pattern in patterns:
        if not isinstance(pattern, str):
            logger.warning("Skipping unusable copy pattern %r", pattern)
            continue
        try:
            regex = _compile(pattern)
        except re.error as exc:
            logger.warning("Skipping unusable copy pattern %r: %s", pattern, exc)
            continue
        if regex.match(candidate):
            return True
    return False
