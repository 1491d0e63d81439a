"""Project tree generation.

Takes a resolved ``TemplateDescriptor`` and writes the rendered project: the
destination directory is named after the template's project-root
placeholder directory, every entry below it is rendered (or copied verbatim
when it matches ``_copy_without_render``), and a failure part-way through
removes whatever the run already wrote.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from cakecutter.config import GenerationOptions
from cakecutter.exceptions import (
    CakecutterError,
    DestinationExistsError,
    DestinationResolutionError,
    RenderError,
    TemplateIOError,
)
from cakecutter.patterns import is_excluded
from cakecutter.renderer import TemplateRenderer
from cakecutter.template import TemplateDescriptor
from cakecutter.utils import is_within

logger = logging.getLogger(__name__)

PLACEHOLDER_OPEN = "{{"
PROJECT_DIR_MARKERS: tuple[str, ...] = ("cakecutter", "project_name")


class GenerationState(str, Enum):
    """Lifecycle of a generation run."""

    START = "start"
    DESTINATION_RESOLVED = "destination_resolved"
    WALKING = "walking"
    COMPLETE = "complete"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"


@dataclass
class GenerationResult:
    """Outcome of a successful run."""

    destination: Path
    written: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)


def is_project_dir_name(name: str) -> bool:
    """Return ``True`` for names like ``{{ cakecutter.project_name }}``."""
    return name.startswith(PLACEHOLDER_OPEN) and any(
        marker in name for marker in PROJECT_DIR_MARKERS
    )


# ---------------------------------------------------------------------------
# Tree generator
# ---------------------------------------------------------------------------


class TreeGenerator:
    """Renders one template into a destination directory.

    A generator instance performs a single run.  Everything it creates is
    recorded so that a failed run can be rolled back; when the destination
    directory itself was created by the run, rollback removes it entirely.

    Attributes:
        template: The resolved template.
        options: Run directives (output dir, overwrite, rollback policy).
        renderer: Renderer shared by names, paths and file bodies.
        state: Current ``GenerationState``.
    """

    def __init__(
        self,
        template: TemplateDescriptor,
        options: GenerationOptions | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.template = template
        self.options = options or GenerationOptions()
        self.renderer = renderer or TemplateRenderer(template.extensions)
        self.state = GenerationState.START
        self._created: list[Path] = []
        self._created_destination = False

    # -- Public API --------------------------------------------------------

    def generate(self) -> GenerationResult:
        """Generate the project and return what was written.

        Raises:
            DestinationResolutionError: No project-root placeholder directory.
            DestinationExistsError: Destination exists, overwrite disallowed.
            RenderError: A name, path or file body failed to render.
            TemplateIOError: A filesystem operation failed.
        """
        if self.state is not GenerationState.START:
            raise RuntimeError("A TreeGenerator can only run once")

        logger.info("Generating project from %s", self.template.root)
        if self.options.accept_hooks:
            logger.debug("Hook execution is not supported; no hooks will run")

        project_template = self.find_project_template()
        destination = self.resolve_destination(project_template)
        self._prepare_destination(destination)
        self.state = GenerationState.DESTINATION_RESOLVED

        result = GenerationResult(destination=destination)
        try:
            self.state = GenerationState.WALKING
            patterns = self.template.copy_without_render
            for entry in self._walk(project_template):
                self._process_entry(entry, project_template, destination, patterns, result)
        except Exception as exc:
            self._fail(exc, destination)
            raise

        self.state = GenerationState.COMPLETE
        logger.info(
            "Generated %d entries in %s", len(result.written), destination
        )
        return result

    def find_project_template(self) -> Path:
        """Return the template root's project-root placeholder directory."""
        root = self.template.root
        try:
            candidates = sorted(
                child
                for child in root.iterdir()
                if child.is_dir() and is_project_dir_name(child.name)
            )
        except OSError as exc:
            raise TemplateIOError(f"Unable to list template directory {root}: {exc}", root) from exc

        if not candidates:
            raise DestinationResolutionError(
                f"No output directory pattern found in {root}: expected a directory "
                f"named like '{{{{ cakecutter.project_name }}}}'"
            )
        if len(candidates) > 1:
            names = ", ".join(c.name for c in candidates)
            raise DestinationResolutionError(
                f"Ambiguous output directory pattern in {root}: {names}"
            )
        return candidates[0]

    def resolve_destination(self, project_template: Path) -> Path:
        """Render the project directory name and join it with the base dir."""
        name = self.renderer.render(
            project_template.name, self.template.context, source=project_template.name
        ).strip()
        if not name:
            raise RenderError("Project directory name renders to an empty string",
                              source=project_template.name)

        base = self.options.output_dir or Path.cwd()
        destination = base / name
        if not is_within(destination, base):
            raise RenderError(
                f"Project directory '{name}' escapes the output directory {base}",
                source=project_template.name,
            )
        return destination

    # -- Destination -------------------------------------------------------

    def _prepare_destination(self, destination: Path) -> None:
        if destination.exists():
            if not self.options.overwrite_if_exists:
                raise DestinationExistsError(destination)
            logger.debug("Output directory %s already exists, will overwrite", destination)
            return
        try:
            destination.mkdir(parents=True)
        except OSError as exc:
            raise TemplateIOError(
                f"Unable to create output directory {destination}: {exc}", destination
            ) from exc
        self._created_destination = True

    # -- Walking -----------------------------------------------------------

    def _walk(self, project_template: Path) -> list[Path]:
        """All entries below *project_template*, parents before children."""
        try:
            return sorted(project_template.rglob("*"))
        except OSError as exc:
            raise TemplateIOError(
                f"Unable to walk template directory {project_template}: {exc}",
                project_template,
            ) from exc

    def _process_entry(
        self,
        entry: Path,
        project_template: Path,
        destination: Path,
        patterns: list[str],
        result: GenerationResult,
    ) -> None:
        try:
            rel_path = entry.relative_to(project_template).as_posix()
        except ValueError as exc:
            raise TemplateIOError(
                f"{entry} is not inside the template directory {project_template}", entry
            ) from exc

        rendered = self.renderer.render(rel_path, self.template.context, source=rel_path)
        target = self._output_path(destination, rendered, rel_path)

        if entry.is_dir():
            self._make_dirs(target)
            result.written.append(target)
            return

        if target.exists() and self.options.skip_if_file_exists:
            logger.info("Skipping existing file %s", target)
            result.skipped.append(target)
            return

        self._make_dirs(target.parent)
        existed = target.exists()
        if is_excluded(rel_path, patterns):
            logger.debug("Copying %s without rendering", rel_path)
            self._copy_file(entry, target)
        else:
            logger.debug("Rendering %s", rel_path)
            self._render_file(entry, target, rel_path)
        if not existed:
            self._created.append(target)
        result.written.append(target)

    def _output_path(self, destination: Path, rendered: str, rel_path: str) -> Path:
        if not rendered.strip():
            raise RenderError("Path renders to an empty string", source=rel_path)
        target = destination / rendered
        if not is_within(target, destination) or target.resolve() == destination.resolve():
            raise RenderError(
                f"Rendered path '{rendered}' escapes the project directory", source=rel_path
            )
        return target

    # -- Writing -----------------------------------------------------------

    def _make_dirs(self, path: Path) -> None:
        missing: list[Path] = []
        current = path
        while not current.exists():
            missing.append(current)
            current = current.parent
        if not missing:
            return
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise TemplateIOError(f"Unable to create directory {path}: {exc}", path) from exc
        self._created.extend(reversed(missing))

    def _copy_file(self, source: Path, target: Path) -> None:
        try:
            shutil.copy(source, target)
        except OSError as exc:
            raise TemplateIOError(f"Unable to copy {source} to {target}: {exc}", target) from exc

    def _render_file(self, source: Path, target: Path, rel_path: str) -> None:
        try:
            with open(source, encoding="utf-8", newline="") as fh:
                text = fh.read()
        except UnicodeDecodeError as exc:
            raise TemplateIOError(
                f"{rel_path} is not UTF-8 text; add it to _copy_without_render "
                f"to copy it verbatim",
                source,
            ) from exc
        except OSError as exc:
            raise TemplateIOError(f"Unable to read {source}: {exc}", source) from exc

        rendered = self.renderer.render(text, self.template.context, source=rel_path)

        try:
            with open(target, "w", encoding="utf-8", newline="") as fh:
                fh.write(rendered)
            shutil.copymode(source, target)
        except OSError as exc:
            raise TemplateIOError(f"Unable to write {target}: {exc}", target) from exc

    # -- Failure handling --------------------------------------------------

    def _fail(self, exc: Exception, destination: Path) -> None:
        if self.options.keep_project_on_failure:
            self.state = GenerationState.FAILED
            logger.warning("Generation failed; keeping partial output in %s", destination)
            rolled_back = False
        else:
            rolled_back = self._rollback(destination)
            self.state = GenerationState.ROLLED_BACK
        if isinstance(exc, CakecutterError):
            exc.destination = destination
            exc.rolled_back = rolled_back

    def _rollback(self, destination: Path) -> bool:
        """Remove what this run created.  Returns ``True`` on a clean removal."""
        try:
            if self._created_destination:
                logger.info("Removing %s after failed generation", destination)
                shutil.rmtree(destination)
            else:
                # Deepest entries were created last.
                for path in reversed(self._created):
                    if path.is_dir() and not path.is_symlink():
                        shutil.rmtree(path)
                    else:
                        path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Rollback of %s incomplete: %s", destination, exc)
            return False
        return True
