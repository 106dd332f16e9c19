"""
Renderer classes and the functional entry points.

Usage:
    from change_report import RenderInput, render_html

    html = render_html(RenderInput(document_changes=changes, config=config))
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Union

from change_report.config import RenderConfig, default_render_config
from change_report.errors import HTMLNotSupportedError, InvalidInputError
from change_report.html import ChangeHTMLRenderer
from change_report.markdown import EMPTY_REPORT, MarkdownReporter
from change_report.model import DocumentChanges, Locator
from change_report.post_process import post_process


logger = logging.getLogger(__name__)


class OutputFormat(str, Enum):
    MARKDOWN = "markdown"
    HTML = "html"


@dataclass
class RenderInput:
    """Everything a renderer needs for one report.

    Attributes:
        document_changes: Root of the change tree; None means no changes
        locator: Optional line lookup into the new document
        right_doc_content: Raw new document, used to detect JSON vs YAML
        config: Render options; None uses the defaults
    """

    document_changes: Optional[DocumentChanges] = None
    locator: Optional[Locator] = None
    right_doc_content: Union[bytes, str, None] = None
    config: Optional[RenderConfig] = None


class ChangeReportRenderer(Protocol):
    def render_markdown(self, input: Optional[RenderInput]) -> str:
        ...

    def render_html(self, input: Optional[RenderInput]) -> str:
        ...


def _require_input(input: Optional[RenderInput], renderer: str) -> RenderInput:
    if input is None:
        raise InvalidInputError(renderer=renderer)
    return input


def _markdown(input: RenderInput) -> str:
    if input.document_changes is None:
        return EMPTY_REPORT
    return MarkdownReporter(
        input.document_changes,
        locator=input.locator,
        right_doc_content=input.right_doc_content,
        config=input.config,
    ).generate()


class MarkdownRenderer:
    """Produces Markdown only."""

    def render_markdown(self, input: Optional[RenderInput]) -> str:
        return _markdown(_require_input(input, type(self).__name__))

    def render_html(self, input: Optional[RenderInput]) -> str:
        raise HTMLNotSupportedError(renderer=type(self).__name__)


class HTMLRenderer:
    """Produces Markdown and the HTML rendering of it.

    Args:
        config: Options for the HTML overlay; defaults when None
    """

    def __init__(self, config: Optional[RenderConfig] = None):
        self.config = config if config is not None else default_render_config()

    def render_markdown(self, input: Optional[RenderInput]) -> str:
        return _markdown(_require_input(input, type(self).__name__))

    def render_html(self, input: Optional[RenderInput]) -> str:
        input = _require_input(input, type(self).__name__)
        markdown = _markdown(input)
        html = ChangeHTMLRenderer(self.config).render(markdown)

        if input.config is not None and input.config.html is not None:
            html = post_process(html, input.config.html)
        else:
            logger.debug("No HTML config on input; post-processing skipped")
        return html


def render_markdown(input: Optional[RenderInput]) -> str:
    """Render the Markdown change report."""
    return MarkdownRenderer().render_markdown(input)


def render_html(input: Optional[RenderInput]) -> str:
    """Render the HTML change report, configured by the input's config."""
    config = input.config if input is not None else None
    return HTMLRenderer(config).render_html(input)
