"""cakecutter configuration.

Typed configuration for a generation run.  ``UserConfig`` holds the values a
user persists in a JSON config file; ``GenerationOptions`` holds the
per-run directives.  Both are Pydantic v2 models, created once by the entry
point and passed explicitly to the rest of the system.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("./config.json")
DEFAULT_ABBREVIATION_FILE = ".abv.json"


class UserConfig(BaseModel):
    """User-level configuration loaded from a JSON file."""

    default_context: dict[str, str] = Field(
        default_factory=dict,
        description="Values merged under every template's declared context",
    )
    abbreviation_file: str | None = Field(
        default=DEFAULT_ABBREVIATION_FILE,
        description="JSON file mapping template shorthands to expansions",
    )
    extensions: list[str] = Field(
        default_factory=list,
        description="Extra Jinja2 extensions loaded for every template",
    )

    # Location the config was read from; relative paths resolve against it.
    source_path: Path | None = Field(default=None, exclude=True)

    @field_validator("extensions", mode="before")
    @classmethod
    def _normalise_extensions(cls, value: object) -> object:
        if value is None or value == "None":
            return []
        if isinstance(value, str):
            return [value]
        return value

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    def abbreviation_path(self) -> Path | None:
        """Resolved path of the abbreviation file, if one is configured.

        A relative path is taken relative to the directory of the config
        file it was loaded from, or the working directory otherwise.
        """
        if not self.abbreviation_file:
            return None
        path = Path(self.abbreviation_file).expanduser()
        if not path.is_absolute() and self.source_path is not None:
            path = self.source_path.parent / path
        return path

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, path: str | Path) -> "UserConfig":
        """Load a configuration file, raising on any problem.

        Raises:
            OSError: If the file cannot be read.
            pydantic.ValidationError: If the content is not valid JSON or
                does not match the model.
        """
        config_path = Path(path)
        raw = config_path.read_text(encoding="utf-8")
        config = cls.model_validate_json(raw)
        return config.model_copy(update={"source_path": config_path})

    @classmethod
    def load_or_default(cls, path: str | Path | None) -> "UserConfig":
        """Load *path*, falling back to the built-in defaults.

        A missing file falls back silently; an unreadable or malformed one
        falls back with a warning.
        """
        if path is None:
            return cls()
        config_path = Path(path)
        if not config_path.exists():
            logger.debug("No user config at %s, using defaults", config_path)
            return cls()
        try:
            return cls.load(config_path)
        except (OSError, UnicodeDecodeError, ValidationError) as exc:
            logger.warning("Ignoring user config %s: %s", config_path, exc)
            return cls()

    @classmethod
    def from_env(cls, path: str | Path | None = None) -> "UserConfig":
        """Build a ``UserConfig`` honouring environment overrides.

        Recognised variables (all optional):
            CAKECUTTER_CONFIG: config file used when *path* is not given.
            CAKECUTTER_ABBREVIATION_FILE: overrides ``abbreviation_file``.
        """
        if path is None:
            path = os.environ.get("CAKECUTTER_CONFIG") or DEFAULT_CONFIG_PATH
        config = cls.load_or_default(path)
        if os.environ.get("CAKECUTTER_ABBREVIATION_FILE"):
            config = config.model_copy(
                update={
                    "abbreviation_file": os.environ["CAKECUTTER_ABBREVIATION_FILE"],
                    "source_path": None,
                }
            )
        return config


class GenerationOptions(BaseModel):
    """Directives for a single generation run."""

    output_dir: Path | None = Field(
        default=None,
        description="Base directory for the generated project (cwd when unset)",
    )
    overwrite_if_exists: bool = Field(default=False)
    skip_if_file_exists: bool = Field(
        default=False,
        description="Leave files that already exist untouched when overwriting",
    )
    keep_project_on_failure: bool = Field(default=False)
    accept_hooks: bool = Field(
        default=True,
        description="Accepted for compatibility; hooks are never executed",
    )
