"""
Symbols for change kinds and box-drawing chrome used by the tree renderer.
"""

from dataclasses import dataclass


TREE_BRANCH = "├──"
TREE_LAST_BRANCH = "└──"
TREE_BRANCH_DOWN = "├─┬"
TREE_LAST_BRANCH_DOWN = "└─┬"
TREE_VERTICAL = "│ "
TREE_EMPTY = "  "


@dataclass(frozen=True)
class ChangeSymbols:
    """Markers for modified, added and removed properties plus a breaking suffix."""

    modified: str
    added: str
    removed: str
    breaking: str


EMOJI_SYMBOLS = ChangeSymbols(
    modified="[🔀]",
    added="[➕]",
    removed="[➖]",
    breaking="❌",
)

ASCII_SYMBOLS = ChangeSymbols(
    modified="[M]",
    added="[+]",
    removed="[-]",
    breaking="{X}",
)


def get_symbols(use_emojis: bool) -> ChangeSymbols:
    return EMOJI_SYMBOLS if use_emojis else ASCII_SYMBOLS


def branch_symbol(is_last: bool, has_children: bool) -> str:
    """Pick the branch glyph for a tree entry."""
    if has_children:
        return TREE_LAST_BRANCH_DOWN if is_last else TREE_BRANCH_DOWN
    return TREE_LAST_BRANCH if is_last else TREE_BRANCH
