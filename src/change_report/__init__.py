"""OpenAPI change report - Markdown, HTML and terminal tree renderings of API diffs."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("openapi-change-report")
except PackageNotFoundError:
    # Package not installed (development mode without editable install)
    __version__ = "0.1.0"

from change_report.config import RenderConfig, default_render_config, merge_configs
from change_report.errors import (
    HTMLNotSupportedError,
    InvalidInputError,
    MarkdownNotSupportedError,
    RenderError,
)
from change_report.html import ChangeClass
from change_report.renderers import (
    ChangeReportRenderer,
    HTMLRenderer,
    MarkdownRenderer,
    OutputFormat,
    RenderInput,
    render_html,
    render_markdown,
)
from change_report.tree import TreeConfig, build_change_tree, render_tree

__all__ = [
    "__version__",
    "ChangeClass",
    "ChangeReportRenderer",
    "HTMLNotSupportedError",
    "HTMLRenderer",
    "InvalidInputError",
    "MarkdownNotSupportedError",
    "MarkdownRenderer",
    "OutputFormat",
    "RenderConfig",
    "RenderError",
    "RenderInput",
    "TreeConfig",
    "build_change_tree",
    "default_render_config",
    "merge_configs",
    "render_html",
    "render_markdown",
    "render_tree",
]
