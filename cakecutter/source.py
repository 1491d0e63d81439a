"""Template source acquisition.

Turns the user's template argument into a local directory: a directory is
used in place, a zip archive is extracted and a git repository is cloned,
both into a temporary directory that is removed when generation finishes.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
import zipfile
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from cakecutter.exceptions import TemplateSourceError
from cakecutter.template import TEMPLATE_CONFIG_NAME
from cakecutter.utils import is_within

logger = logging.getLogger(__name__)

BUILTIN_ABBREVIATIONS: dict[str, str] = {
    "gh": "https://github.com/{0}.git",
    "gl": "https://gitlab.com/{0}.git",
    "bb": "https://bitbucket.org/{0}",
}

GIT_SCHEMES = frozenset({"http", "https", "git", "ssh", "file"})


class SourceKind(str, Enum):
    DIRECTORY = "directory"
    ZIP = "zip"
    REPOSITORY = "repository"


@dataclass(frozen=True)
class TemplateSource:
    """Where a template comes from, before it is available locally."""

    kind: SourceKind
    location: str
    directory: str | None = None
    checkout: str | None = None


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def expand_abbreviations(template: str, abbreviations: Mapping[str, Any] | None = None) -> str:
    """Expand shorthands like ``gh:owner/repo`` into full locations.

    User abbreviations override the built-in ones.  An expansion may use
    ``{0}`` to place the text after the colon; otherwise that text is
    appended.  Non-string expansions are ignored.
    """
    known: dict[str, Any] = {**BUILTIN_ABBREVIATIONS, **(abbreviations or {})}

    exact = known.get(template)
    if isinstance(exact, str):
        return exact

    prefix, sep, rest = template.partition(":")
    expansion = known.get(prefix) if sep else None
    if not isinstance(expansion, str):
        return template
    if "{0}" in expansion:
        return expansion.replace("{0}", rest)
    return expansion + rest


def is_git_repo(url: str) -> bool:
    """Return ``True`` for git URLs and scp-style ``user@host:path`` locations."""
    parsed = urlparse(url)
    if parsed.scheme:
        return parsed.scheme.lower() in GIT_SCHEMES
    return "@" in url and ":" in url


def parse_template_input(
    template: str,
    directory: str | None = None,
    checkout: str | None = None,
) -> TemplateSource:
    """Classify the template argument.

    Args:
        template: Local directory, local ``.zip`` file or git URL.
        directory: Optional subdirectory of the source holding the template.
        checkout: Optional branch, tag or commit for repository sources.

    Raises:
        TemplateSourceError: If *template* is a non-zip file or neither an
            existing path nor a git URL.
    """
    path = Path(template).expanduser()
    if path.exists():
        if path.is_file():
            if path.suffix.lower() == ".zip":
                return TemplateSource(SourceKind.ZIP, str(path), directory)
            raise TemplateSourceError(f"Must provide a directory, not a file: {template}")
        return TemplateSource(SourceKind.DIRECTORY, str(path), directory)

    if is_git_repo(template):
        return TemplateSource(SourceKind.REPOSITORY, template, directory, checkout)
    raise TemplateSourceError(
        f"Template {template} is neither an existing path nor a valid git URL"
    )


# ---------------------------------------------------------------------------
# Materialization
# ---------------------------------------------------------------------------


@contextmanager
def materialize(source: TemplateSource) -> Iterator[Path]:
    """Yield a local directory holding the template described by *source*."""
    if source.kind is SourceKind.DIRECTORY:
        yield _subdirectory(Path(source.location), source.directory)
        return

    with tempfile.TemporaryDirectory(prefix="cakecutter-") as tmp:
        workdir = Path(tmp)
        if source.kind is SourceKind.ZIP:
            root = _extract_zip(Path(source.location), workdir / "archive")
        else:
            root = _clone(source.location, workdir / "repo", source.checkout)
        yield _subdirectory(root, source.directory)
    logger.debug("Removed temporary template copy of %s", source.location)


def _subdirectory(root: Path, directory: str | None) -> Path:
    if not directory:
        return root
    target = root / directory
    if not target.is_dir() or not is_within(target, root):
        raise TemplateSourceError(
            f"Directory {directory} is given but can not be found in {root}"
        )
    return target


def _extract_zip(archive: Path, dest: Path) -> Path:
    """Extract *archive* into *dest* and return the template root inside it.

    An archive wrapping everything in one top-level folder (the usual layout
    of downloaded repositories) is descended into.
    """
    logger.info("Extracting %s", archive)
    try:
        with zipfile.ZipFile(archive) as zf:
            for name in zf.namelist():
                if not is_within(dest / name, dest):
                    raise TemplateSourceError(f"Unsafe path {name!r} in archive {archive}")
            zf.extractall(dest)
    except zipfile.BadZipFile as exc:
        raise TemplateSourceError(f"Invalid zip archive {archive}: {exc}") from exc
    except OSError as exc:
        raise TemplateSourceError(f"Unable to extract {archive}: {exc}") from exc

    entries = list(dest.iterdir()) if dest.exists() else []
    if not entries:
        raise TemplateSourceError(f"Zip archive {archive} is empty")
    if (
        len(entries) == 1
        and entries[0].is_dir()
        and not (dest / TEMPLATE_CONFIG_NAME).exists()
    ):
        return entries[0]
    return dest


def _run_git(*args: str, cwd: str | Path | None = None, timeout: float = 300.0) -> str:
    """Run a git command and return its stdout.

    Raises TemplateSourceError if git is missing, times out or exits
    non-zero.
    """
    cmd = ["git", *args]
    cmd_str = " ".join(cmd)
    try:
        process = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        raise TemplateSourceError("git is required to use repository templates") from exc
    except subprocess.TimeoutExpired as exc:
        raise TemplateSourceError(f"Git command timed out after {timeout}s: {cmd_str}") from exc

    if process.returncode != 0:
        raise TemplateSourceError(
            f"Git command failed (exit {process.returncode}): {cmd_str}\n{process.stderr.strip()}"
        )
    return process.stdout.strip()


def _clone(url: str, dest: Path, checkout: str | None = None) -> Path:
    logger.info("Cloning %s", url)
    if checkout:
        _run_git("clone", url, str(dest))
        _run_git("checkout", checkout, cwd=dest)
    else:
        _run_git("clone", "--depth", "1", url, str(dest))
    return dest
