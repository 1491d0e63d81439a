"""Template descriptor: the resolved, in-memory view of one template."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, JsonValue

from cakecutter.context import (
    as_string_list,
    load_abbreviations,
    merge,
    snapshot_original,
)
from cakecutter.exceptions import SourceConfigError
from cakecutter.utils import load_json_object

TEMPLATE_CONFIG_NAME = "cakecutter.json"
COPY_WITHOUT_RENDER_KEY = "_copy_without_render"
EXTENSIONS_KEY = "_extensions"


class TemplateDescriptor(BaseModel):
    """One resolved template.

    ``original_context`` is captured when the descriptor is resolved and
    holds only user-facing keys; it is never recomputed afterwards.
    """

    model_config = ConfigDict(frozen=True)

    root: Path = Field(..., description="Directory holding cakecutter.json and the project tree")
    context: dict[str, JsonValue] = Field(default_factory=dict)
    original_context: dict[str, JsonValue] = Field(default_factory=dict)
    abbreviations: dict[str, JsonValue] = Field(default_factory=dict)

    @property
    def copy_without_render(self) -> list[str]:
        """Glob patterns of files copied verbatim."""
        return as_string_list(
            self.context.get(COPY_WITHOUT_RENDER_KEY), COPY_WITHOUT_RENDER_KEY
        )

    @property
    def extensions(self) -> list[str]:
        """Jinja2 extensions requested by the template itself."""
        return as_string_list(self.context.get(EXTENSIONS_KEY), EXTENSIONS_KEY)


def read_template_config(root_path: str | Path) -> dict[str, Any]:
    """Read the template's declared values from ``cakecutter.json``.

    Raises:
        SourceConfigError: If the file is missing, unreadable, not valid JSON
            or not a JSON object.
    """
    config_path = Path(root_path) / TEMPLATE_CONFIG_NAME
    try:
        return load_json_object(config_path)
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceConfigError(f"Unable to read {config_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise SourceConfigError(f"Malformed JSON in {config_path}: {exc}") from exc
    except ValueError as exc:
        raise SourceConfigError(str(exc)) from exc


def resolve(
    root_path: str | Path,
    default_values: Mapping[str, Any],
    abbreviation_path: str | Path | None = None,
    abbreviations: Mapping[str, Any] | None = None,
) -> TemplateDescriptor:
    """Build the descriptor for the template at *root_path*.

    Values declared in ``cakecutter.json`` take precedence over
    *default_values*.  Abbreviations are loaded when *abbreviation_path* is
    given; a broken abbreviation file degrades to an empty mapping.  An
    already loaded *abbreviations* mapping is used as is instead.
    """
    root = Path(root_path)
    declared = read_template_config(root)
    context = merge(default_values, declared)
    if abbreviations is None:
        abbreviations = (
            load_abbreviations(abbreviation_path) if abbreviation_path is not None else {}
        )
    return TemplateDescriptor(
        root=root,
        context=context,
        original_context=snapshot_original(context),
        abbreviations=abbreviations,
    )
