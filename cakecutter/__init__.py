"""cakecutter -- creates projects from project templates.

A template is a directory holding a ``cakecutter.json`` file with default
values and a project directory whose name is a placeholder such as
``{{ cakecutter.project_name }}``.  Directory names, file names and file
contents are rendered with Jinja2; files matching ``_copy_without_render``
are copied verbatim.

Quick usage::

    from cakecutter import GenerationOptions, TreeGenerator, resolve

    descriptor = resolve("./my-template", {"author": "Jane"})
    result = TreeGenerator(descriptor, GenerationOptions(output_dir="/tmp")).generate()
"""

from cakecutter.config import GenerationOptions, UserConfig
from cakecutter.exceptions import (
    CakecutterError,
    DestinationExistsError,
    DestinationResolutionError,
    RenderError,
    SourceConfigError,
    TemplateIOError,
    TemplateSourceError,
)
from cakecutter.generator import GenerationResult, TreeGenerator
from cakecutter.main import cakecutter
from cakecutter.renderer import TemplateRenderer
from cakecutter.template import TemplateDescriptor, resolve

__all__ = [
    "CakecutterError",
    "DestinationExistsError",
    "DestinationResolutionError",
    "GenerationOptions",
    "GenerationResult",
    "RenderError",
    "SourceConfigError",
    "TemplateDescriptor",
    "TemplateIOError",
    "TemplateRenderer",
    "TemplateSourceError",
    "TreeGenerator",
    "UserConfig",
    "cakecutter",
    "resolve",
]
