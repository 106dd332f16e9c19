"""
Exceptions raised by the change report renderers.
"""

from typing import Optional


ERR_HTML_NOT_SUPPORTED = "HTML rendering not supported by this renderer"
ERR_MARKDOWN_NOT_SUPPORTED = "markdown rendering not supported by this renderer"
ERR_INVALID_INPUT = "invalid render input: missing required fields"


class RenderError(Exception):
    """Base exception for change report rendering failures.

    Attributes:
        renderer: Name of the renderer that raised the error (if known).
    """

    default_message = "change report rendering failed"

    def __init__(
        self,
        message: Optional[str] = None,
        renderer: Optional[str] = None,
    ):
        super().__init__(message or self.default_message)
        self.renderer = renderer


class HTMLNotSupportedError(RenderError):
    """Raised when a renderer cannot produce HTML output."""

    default_message = ERR_HTML_NOT_SUPPORTED


class MarkdownNotSupportedError(RenderError):
    """Raised when a renderer cannot produce Markdown output."""

    default_message = ERR_MARKDOWN_NOT_SUPPORTED


class InvalidInputError(RenderError):
    """Raised when the render input is missing."""

    default_message = ERR_INVALID_INPUT
