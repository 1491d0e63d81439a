"""Jinja2 rendering for template names, paths and file contents.

Provides the TemplateRenderer class which renders inline template strings
against a context.  The same rendering rules apply whether the string is the
name of the project directory, a relative path inside the template, or the
body of a file.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError

from cakecutter.exceptions import RenderError, SourceConfigError

NAMESPACE = "cakecutter"

_LINE_ENDING_RE = re.compile(r"\r\n|\r|\n")


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 template strings for project generation.

    Undefined names are errors rather than empty strings, so a template that
    references a key missing from the context never produces output.
    Rendering keeps the input's whitespace untouched outside of placeholder
    expressions, including its line endings.
    """

    def __init__(self, extensions: Iterable[str] = ()) -> None:
        self.extensions = list(dict.fromkeys(extensions))
        try:
            self.env = Environment(
                autoescape=False,
                keep_trailing_newline=True,
                undefined=StrictUndefined,
                extensions=self.extensions,
            )
        except (ImportError, AttributeError, ValueError) as exc:
            raise SourceConfigError(
                f"Unable to load Jinja2 extensions {self.extensions}: {exc}"
            ) from exc
        # Register custom filters
        self.env.filters["slugify"] = _slugify_filter
        self.env.filters["pascal_case"] = _pascal_case_filter
        self.env.filters["snake_case"] = _snake_case_filter
        self.env.filters["camel_case"] = _camel_case_filter
        # Jinja2 rewrites every line ending to newline_sequence.
        self._envs: dict[str, Environment] = {
            "\n": self.env,
            "\r\n": self.env.overlay(newline_sequence="\r\n"),
            "\r": self.env.overlay(newline_sequence="\r"),
        }

    def render(
        self,
        template_text: str,
        context: Mapping[str, Any],
        source: str = "",
    ) -> str:
        """Render *template_text* with the provided context.

        Args:
            template_text: Text containing ``{{ ... }}`` placeholders.
            context: Values available inside the template, both at top level
                and under the ``cakecutter`` namespace.
            source: Label used in error messages (a path, usually).

        Returns:
            The rendered text.

        Raises:
            RenderError: On undefined keys, syntax errors, mixed line endings
                or any error raised while the template is evaluated.
        """
        env = self._envs[line_ending(template_text, source)]
        try:
            template = env.from_string(template_text)
            return template.render(**namespaced(context))
        except TemplateError as exc:
            raise RenderError(exc.message or str(exc), source=source) from exc
        except Exception as exc:
            raise RenderError(f"{type(exc).__name__}: {exc}", source=source) from exc


def line_ending(text: str, source: str = "") -> str:
    """Return the single line ending used by *text* (``"\\n"`` when none).

    Raises:
        RenderError: If *text* mixes ``\\n``, ``\\r\\n`` and ``\\r`` endings.
    """
    endings = set(_LINE_ENDING_RE.findall(text))
    if len(endings) > 1:
        raise RenderError(
            "Mixed line endings can not be rendered faithfully; add the file "
            "to _copy_without_render to copy it verbatim",
            source=source,
        )
    return endings.pop() if endings else "\n"


def namespaced(context: Mapping[str, Any]) -> dict[str, Any]:
    """Expose *context* at top level and under the ``cakecutter`` key.

    A context that already defines ``cakecutter`` keeps its own value.
    """
    values = dict(context)
    values.setdefault(NAMESPACE, dict(context))
    return values


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

# Acronyms stay whole: "HTTPServer2" splits into "HTTP", "Server2".
_WORD_RE = re.compile(r"[A-Z]+(?![a-z])[0-9]*|[A-Z]?[a-z]+[0-9]*|[0-9]+")


def _words(value: Any) -> list[str]:
    return _WORD_RE.findall(str(value))


def _slugify_filter(value: Any) -> str:
    """Lowercase alphanumeric runs joined by ``-``."""
    return "-".join(re.findall(r"[a-z0-9]+", str(value).lower()))


def _pascal_case_filter(value: Any) -> str:
    return "".join(word[:1].upper() + word[1:].lower() for word in _words(value))


def _snake_case_filter(value: Any) -> str:
    return "_".join(word.lower() for word in _words(value))


def _camel_case_filter(value: Any) -> str:
    pascal = _pascal_case_filter(value)
    return pascal[:1].lower() + pascal[1:]
