"""Tests for the cakecutter entry point (cakecutter.main).

Covers:
- cakecutter() orchestration with user config defaults and abbreviations
- Extensions from user config and template
- CLI argument handling, output and exit codes
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from cakecutter.config import UserConfig
from cakecutter.context import load_abbreviations
from cakecutter.exceptions import DestinationExistsError, RenderError
from cakecutter.main import cakecutter, main

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# cakecutter()
# ---------------------------------------------------------------------------


class TestCakecutter:
    def test_generates_project(self, demo_template, output_dir):
        result = cakecutter(str(demo_template), output_dir=output_dir)
        assert result.destination == output_dir / "demo"
        assert (result.destination / "README.md").read_text(encoding="utf-8") == "Hello World\n"

    def test_user_default_context(self, template_factory, output_dir):
        root = template_factory(
            {"project_name": "demo"}, {"{{project_name}}/LICENSE": "(c) {{ author }}"}
        )
        config = UserConfig(default_context={"author": "Jane", "project_name": "ignored"})
        result = cakecutter(str(root), output_dir=output_dir, config=config)
        assert result.destination.name == "demo"
        assert (result.destination / "LICENSE").read_text(encoding="utf-8") == "(c) Jane"

    def test_directory_option(self, template_factory, tmp_path, output_dir):
        template_factory(
            {"project_name": "nested"},
            {"{{project_name}}/a.txt": "a"},
            name="repo/templates/basic",
        )
        result = cakecutter(
            str(tmp_path / "repo"), directory="templates/basic", output_dir=output_dir
        )
        assert result.destination == output_dir / "nested"

    def test_user_abbreviation(self, demo_template, tmp_path, output_dir):
        abbrev = tmp_path / "abv.json"
        abbrev.write_text(
            json.dumps({"local": str(demo_template.parent) + "/{0}"}), encoding="utf-8"
        )
        config = UserConfig(abbreviation_file=str(abbrev))
        result = cakecutter(
            f"local:{demo_template.name}", output_dir=output_dir, config=config
        )
        assert (result.destination / "README.md").exists()

    def test_abbreviation_file_read_once(self, demo_template, tmp_path, output_dir):
        abbrev = tmp_path / "abv.json"
        abbrev.write_text(
            json.dumps({"local": str(demo_template.parent) + "/{0}"}), encoding="utf-8"
        )
        config = UserConfig(abbreviation_file=str(abbrev))
        with patch(
            "cakecutter.main.load_abbreviations", wraps=load_abbreviations
        ) as mock_main, patch("cakecutter.template.load_abbreviations") as mock_template:
            cakecutter(f"local:{demo_template.name}", output_dir=output_dir, config=config)
        mock_main.assert_called_once_with(abbrev)
        mock_template.assert_not_called()

    def test_extensions_from_config_and_template(self, template_factory, output_dir):
        root = template_factory(
            {"project_name": "demo", "items": [1, 2, 3], "_extensions": ["jinja2.ext.do"]},
            {
                "{{project_name}}/out.txt": (
                    "{% set acc = [] %}{% for i in items %}{% if i > 2 %}{% break %}"
                    "{% endif %}{% do acc.append(i) %}{% endfor %}{{ acc|join(',') }}"
                )
            },
        )
        config = UserConfig(extensions=["jinja2.ext.loopcontrols"])
        result = cakecutter(str(root), output_dir=output_dir, config=config)
        assert (result.destination / "out.txt").read_text(encoding="utf-8") == "1,2"

    def test_replay_warns_and_generates(self, demo_template, output_dir, caplog):
        with caplog.at_level(logging.WARNING, logger="cakecutter"):
            result = cakecutter(str(demo_template), output_dir=output_dir, replay=True)
        assert "Replay is not supported" in caplog.text
        assert result.destination.exists()

    def test_errors_propagate(self, demo_template, output_dir):
        (output_dir / "demo").mkdir()
        with pytest.raises(DestinationExistsError):
            cakecutter(str(demo_template), output_dir=output_dir)

    def test_render_failure_rolls_back(self, template_factory, output_dir):
        root = template_factory(
            {"project_name": "demo"}, {"{{project_name}}/a.txt": "{{ missing_key }}"}
        )
        with pytest.raises(RenderError):
            cakecutter(str(root), output_dir=output_dir)
        assert not (output_dir / "demo").exists()


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


class TestMain:
    @pytest.fixture(autouse=True)
    def _isolated_env(self, tmp_path, monkeypatch):
        monkeypatch.delenv("CAKECUTTER_CONFIG", raising=False)
        monkeypatch.delenv("CAKECUTTER_ABBREVIATION_FILE", raising=False)
        monkeypatch.chdir(tmp_path)

    def test_success(self, demo_template, output_dir):
        with patch("cakecutter.main.print_success") as mock_success, patch(
            "cakecutter.main.print_summary_table"
        ) as mock_table:
            main([str(demo_template), "-o", str(output_dir)])
        mock_success.assert_called_once()
        assert mock_table.call_args.args[0]["Project"] == str(output_dir / "demo")
        assert (output_dir / "demo" / "README.md").exists()

    def test_destination_exists_exit_code(self, demo_template, output_dir):
        (output_dir / "demo").mkdir()
        with patch("cakecutter.main.print_error") as mock_error:
            with pytest.raises(SystemExit) as exc_info:
                main([str(demo_template), "-o", str(output_dir)])
        assert exc_info.value.code == 4
        assert "DestinationExistsError" in mock_error.call_args.args[0]

    def test_overwrite_flag(self, demo_template, output_dir):
        (output_dir / "demo").mkdir()
        with patch("cakecutter.main.print_success"), patch("cakecutter.main.print_summary_table"):
            main([str(demo_template), "-o", str(output_dir), "--overwrite-if-exists"])
        assert (output_dir / "demo" / "README.md").exists()

    def test_keep_project_on_failure_reported(self, template_factory, output_dir):
        root = template_factory(
            {"project_name": "demo"},
            {"{{project_name}}/a.txt": "ok", "{{project_name}}/b.txt": "{{ nope }}"},
        )
        with patch("cakecutter.main.print_error"), patch(
            "cakecutter.main.print_warning"
        ) as mock_warning:
            with pytest.raises(SystemExit) as exc_info:
                main([str(root), "-o", str(output_dir), "--keep-project-on-failure"])
        assert exc_info.value.code == 5
        assert "Partial output" in mock_warning.call_args.args[0]
        assert (output_dir / "demo" / "a.txt").exists()

    def test_bad_template_argument(self, tmp_path):
        with patch("cakecutter.main.print_error") as mock_error:
            with pytest.raises(SystemExit) as exc_info:
                main([str(tmp_path / "does-not-exist")])
        assert exc_info.value.code == 2
        assert "TemplateSourceError" in mock_error.call_args.args[0]

    def test_config_file_used(self, template_factory, tmp_path, output_dir):
        root = template_factory(
            {"project_name": "demo"}, {"{{project_name}}/a.txt": "{{ author }}"}
        )
        config_path = tmp_path / "my-config.json"
        config_path.write_text(
            json.dumps({"default_context": {"author": "Jane"}}), encoding="utf-8"
        )
        with patch("cakecutter.main.print_success"), patch("cakecutter.main.print_summary_table"):
            main([str(root), "-o", str(output_dir), "-c", str(config_path)])
        assert (output_dir / "demo" / "a.txt").read_text(encoding="utf-8") == "Jane"
