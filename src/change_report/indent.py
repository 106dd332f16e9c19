"""
Indentation rules for Markdown list bodies and embedded code fences.

CommonMark keeps a fenced code block inside a list item only when the fence
is indented to the item's content column. For a list marker at N spaces the
code block therefore sits at N + 2 spaces:

    marker column | code block column
    0             | 2
    2             | 4
    4             | 6
    6             | 8
    8             | 10
"""

MAX_INDENT = 100

# read-only; the only module-level cache in the renderers
_INDENT_CACHE = {2: "  ", 4: "    ", 6: "      ", 8: "        "}


def get_indent(level: int) -> str:
    """Return the list indentation for a nesting level (two spaces per level)."""
    if level <= 0:
        return ""
    return "  " * level


def spaces(count: int) -> str:
    return _INDENT_CACHE.get(count) or " " * count


def code_block_indent(marker_column: int) -> int:
    """Column a code block must start at to stay inside a list item at marker_column."""
    return marker_column + 2


def media_type_code_indent(indent_level: int) -> int:
    """Code block column for media-type property changes at indent_level."""
    return (indent_level + 1) * 2 + 2


def indent_multiline_desc(desc: str, indent_spaces: int) -> str:
    """Indent the continuation lines of a list item description.

    A description that opens with a code fence has every line indented.
    Otherwise the first line is left alone, since the list marker already
    positions it, and each following line is indented.
    """
    if indent_spaces <= 0 or indent_spaces > MAX_INDENT or "\n" not in desc:
        return desc

    indent = spaces(indent_spaces)
    lines = desc.split("\n")

    if lines[0].strip().startswith("```"):
        return "\n".join(indent + line for line in lines)

    return "\n".join([lines[0]] + [indent + line for line in lines[1:]])
