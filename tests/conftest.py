"""Shared pytest fixtures for the cakecutter test suite.

Provides reusable fixtures for:
- Building template trees (``cakecutter.json`` plus project files) on disk
- A ready-made demo template
- Output directories
- Resetting logger state between tests
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest


# ---------------------------------------------------------------------------
# Template builders
# ---------------------------------------------------------------------------

def build_template(
    root: Path,
    config: dict[str, Any] | None,
    files: dict[str, str | bytes],
) -> Path:
    """Write a template tree under *root*.

    Keys of *files* are paths relative to *root*; a key ending in ``/``
    creates an empty directory.  ``config`` of ``None`` skips writing
    ``cakecutter.json``.
    """
    root.mkdir(parents=True, exist_ok=True)
    if config is not None:
        (root / "cakecutter.json").write_text(json.dumps(config), encoding="utf-8")
    for rel, content in files.items():
        path = root / rel
        if rel.endswith("/"):
            path.mkdir(parents=True, exist_ok=True)
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


TemplateFactory = Callable[..., Path]


@pytest.fixture
def template_factory(tmp_path: Path) -> TemplateFactory:
    """Factory building a template under ``tmp_path / name``."""

    def _factory(
        config: dict[str, Any] | None,
        files: dict[str, str | bytes],
        name: str = "template",
    ) -> Path:
        return build_template(tmp_path / name, config, files)

    return _factory


@pytest.fixture
def demo_template(template_factory: TemplateFactory) -> Path:
    """A small template with a README, a nested module and a binary asset."""
    return template_factory(
        {
            "project_name": "demo",
            "name": "World",
            "package": "demo_pkg",
            "_copy_without_render": ["*.bin", "static/*"],
        },
        {
            "{{project_name}}/README.md": "Hello {{name}}\n",
            "{{project_name}}/{{package}}/__init__.py": '"""{{ project_name }} package."""\n',
            "{{project_name}}/assets/logo.bin": b"\x89PNG\r\n{{ not_rendered }}\x00\xff",
            "{{project_name}}/static/app.js": "const tpl = `{{ raw }}`;\n",
            "{{project_name}}/empty/": "",
        },
    )


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Empty base directory for generated projects (auto-cleanup)."""
    out = tmp_path / "output"
    out.mkdir()
    return out


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _reset_cakecutter_logger():
    """Undo ``setup_logging`` so caplog sees records in every test."""
    yield
    logger = logging.getLogger("cakecutter")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
