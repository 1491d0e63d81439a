"""cakecutter entry point.

Loads the user configuration, materializes the template source, resolves
the template descriptor and runs the tree generator.

Usage::

    python -m cakecutter.main ./my-template
    python -m cakecutter.main gh:owner/template -o ./projects --overwrite-if-exists
"""

from __future__ import annotations

import logging
import sys
import time
from pathlib import Path

from cakecutter.config import GenerationOptions, UserConfig
from cakecutter.context import load_abbreviations
from cakecutter.exceptions import CakecutterError
from cakecutter.generator import GenerationResult, TreeGenerator
from cakecutter.renderer import TemplateRenderer
from cakecutter.source import expand_abbreviations, materialize, parse_template_input
from cakecutter.template import resolve
from cakecutter.utils import (
    format_duration,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    setup_logging,
)

logger = logging.getLogger(__name__)


def cakecutter(
    template: str,
    *,
    directory: str | None = None,
    checkout: str | None = None,
    output_dir: str | Path | None = None,
    config: UserConfig | None = None,
    replay: bool = False,
    no_input: bool = True,
    overwrite_if_exists: bool = False,
    skip_if_file_exists: bool = False,
    keep_project_on_failure: bool = False,
    accept_hooks: bool = True,
) -> GenerationResult:
    """Generate a project from *template*.

    Args:
        template: Local directory, zip file, git URL or abbreviation.
        directory: Subdirectory of the source holding the template.
        checkout: Branch, tag or commit for repository templates.
        output_dir: Base directory for the project (cwd when omitted).
        config: User configuration; built-in defaults when omitted.
        replay: Accepted for compatibility; replay is not supported.
        no_input: Accepted for compatibility; prompting is not supported.
        overwrite_if_exists: Write into an existing project directory.
        skip_if_file_exists: With overwriting, keep files that already exist.
        keep_project_on_failure: Leave partial output after a failure.
        accept_hooks: Accepted for compatibility; hooks never run.

    Returns:
        The ``GenerationResult`` of the run.

    Raises:
        CakecutterError: Any fatal error; see ``cakecutter.exceptions``.
    """
    config = config or UserConfig()
    if replay:
        logger.warning("Replay is not supported; generating from scratch")
    if not no_input:
        logger.info("Interactive input is not supported; using template values")

    abbreviation_path = config.abbreviation_path()
    abbreviations = load_abbreviations(abbreviation_path) if abbreviation_path else {}
    location = expand_abbreviations(template, abbreviations)
    source = parse_template_input(location, directory, checkout)

    options = GenerationOptions(
        output_dir=Path(output_dir) if output_dir is not None else None,
        overwrite_if_exists=overwrite_if_exists,
        skip_if_file_exists=skip_if_file_exists,
        keep_project_on_failure=keep_project_on_failure,
        accept_hooks=accept_hooks,
    )

    with materialize(source) as root:
        logger.info("Using template %s", root)
        descriptor = resolve(root, config.default_context, abbreviation_path, abbreviations)
        renderer = TemplateRenderer([*config.extensions, *descriptor.extensions])
        return TreeGenerator(descriptor, options, renderer).generate()


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``cakecutter`` / ``python -m cakecutter.main``."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="cakecutter",
        description="Create a project from a cakecutter project template",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  cakecutter ./my-template\n"
            "  cakecutter template.zip -o ./projects\n"
            "  cakecutter gh:owner/template --checkout v2 --overwrite-if-exists\n"
        ),
    )

    parser.add_argument("template", help="Template directory, zip file, git URL or abbreviation")
    parser.add_argument(
        "--directory", "-d",
        default=None,
        help="Subdirectory of the template source that holds cakecutter.json",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="User config file (default: $CAKECUTTER_CONFIG or ./config.json)",
    )
    parser.add_argument(
        "--output-dir", "-o",
        default=None,
        help="Where to create the project (default: current directory)",
    )
    parser.add_argument("--checkout", default=None, help="Branch, tag or commit to check out")
    parser.add_argument("--overwrite-if-exists", action="store_true")
    parser.add_argument(
        "--skip-if-file-exists",
        action="store_true",
        help="With --overwrite-if-exists, keep files that already exist",
    )
    parser.add_argument(
        "--keep-project-on-failure",
        action="store_true",
        help="Do not delete partial output when generation fails",
    )
    parser.add_argument("--accept-hooks", action="store_true", help="Accepted; hooks never run")
    parser.add_argument("--replay", "-r", action="store_true", help="Not supported")
    parser.add_argument("--no-input", "-n", action="store_true", help="Never prompt (always on)")
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Increase log output (-v info, -vv debug)",
    )

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    config = UserConfig.from_env(args.config)

    started = time.monotonic()
    try:
        result = cakecutter(
            args.template,
            directory=args.directory,
            checkout=args.checkout,
            output_dir=args.output_dir,
            config=config,
            replay=args.replay,
            no_input=True,
            overwrite_if_exists=args.overwrite_if_exists,
            skip_if_file_exists=args.skip_if_file_exists,
            keep_project_on_failure=args.keep_project_on_failure,
            accept_hooks=args.accept_hooks,
        )
    except CakecutterError as exc:
        print_error(f"Error ({exc.kind}): {exc.message}")
        if exc.destination is not None and not exc.rolled_back:
            if args.keep_project_on_failure:
                print_warning(f"Partial output left in {exc.destination}")
            else:
                print_warning(f"Could not fully remove {exc.destination}")
        sys.exit(exc.exit_code)

    print_summary_table(
        {
            "Project": str(result.destination),
            "Entries written": str(len(result.written)),
            "Entries skipped": str(len(result.skipped)),
            "Duration": format_duration(time.monotonic() - started),
        },
        title="cakecutter",
    )
    print_success("Successfully generated files")


if __name__ == "__main__":
    main()
