"""
Color schemes for terminal tree output.

Schemes wrap text in ANSI escape sequences produced by rich styles using the
256-color palette shared with the rest of the tooling: green for additions,
yellow for modifications, red for removals, bold red for breaking changes and
grey for tree chrome, locations and statistics.
"""

from typing import Protocol

from rich.color import ColorSystem
from rich.style import Style


GREEN = Style(color="color(46)")
YELLOW = Style(color="color(220)")
RED = Style(color="color(196)")
RED_BOLD = Style(color="color(196)", bold=True)
GREY = Style(color="color(240)")


def _paint(style: Style, text: str) -> str:
    return style.render(text, color_system=ColorSystem.EIGHT_BIT)


class ColorScheme(Protocol):
    """Colorizes each semantic role of the tree output."""

    def addition(self, text: str) -> str: ...

    def modification(self, text: str) -> str: ...

    def removal(self, text: str) -> str: ...

    def breaking(self, text: str) -> str: ...

    def tree_branch(self, text: str) -> str: ...

    def location_info(self, text: str) -> str: ...

    def statistics(self, text: str) -> str: ...


class NoColorScheme:
    """Returns text unchanged; for pipes and non-TTY output."""

    def addition(self, text: str) -> str:
        return text

    def modification(self, text: str) -> str:
        return text

    def removal(self, text: str) -> str:
        return text

    def breaking(self, text: str) -> str:
        return text

    def tree_branch(self, text: str) -> str:
        return text

    def location_info(self, text: str) -> str:
        return text

    def statistics(self, text: str) -> str:
        return text


class GrayscaleColorScheme(NoColorScheme):
    """Dims tree chrome, locations and statistics; change symbols stay plain."""

    def tree_branch(self, text: str) -> str:
        return _paint(GREY, text)

    def location_info(self, text: str) -> str:
        return _paint(GREY, text)

    def statistics(self, text: str) -> str:
        return _paint(GREY, text)


class TerminalColorScheme(GrayscaleColorScheme):
    """Full semantic colors on top of the grayscale chrome."""

    def addition(self, text: str) -> str:
        return _paint(GREEN, text)

    def modification(self, text: str) -> str:
        return _paint(YELLOW, text)

    def removal(self, text: str) -> str:
        return _paint(RED, text)

    def breaking(self, text: str) -> str:
        return _paint(RED_BOLD, text)
