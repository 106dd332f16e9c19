"""
HTML rendering of change report Markdown.

The Markdown is parsed by markdown-it-py (CommonMark plus GFM tables and
strikethrough) into a SyntaxTreeNode tree, then rendered node by node. The
rules for each node type inject report markup: model-type icons before
labelled code spans, HTTP method and operation path elements, change-type
classes on list items, anchored headings and styled tables.
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml
from markdown_it.tree import SyntaxTreeNode

from change_report.config import RenderConfig, default_render_config


logger = logging.getLogger(__name__)


HTTP_METHOD_NAMES = frozenset(
    ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS", "TRACE", "CONNECT", "QUERY")
)

REFLINK_TEXT = "See referenced component"
REFLINK_ICON = '<sl-icon name="arrow-right" class="reflink"></sl-icon>'

# Checked in order: compound patterns must precede their generic forms.
OBJECT_TYPE_PATTERNS: Tuple[Tuple[str, str], ...] = (
    ("Request Body", "requestBody"),
    ("Request Bodies", "requestBody"),
    ("Response Body", "requestBody"),
    ("Security Scheme:", "securityScheme"),
    ("Media Type", "mediaType"),
    ("External Doc", "externalDoc"),
    ("Schema:", "schema"),
    ("Query Parameter", "parameter"),
    ("Path Parameter", "parameter"),
    ("Header Parameter", "parameter"),
    ("Cookie Parameter", "parameter"),
    ("Parameter", "parameter"),
    ("Response", "response"),
    ("Responses", "response"),
    ("Header", "header"),
    ("Security", "security"),
    ("Link", "link"),
    ("Callback", "callback"),
    ("Callbacks", "callback"),
    ("Example", "example"),
    ("Webhook", "webhook"),
    ("Server:", "server"),
    ("Tag", "tag"),
    ("Path", "path"),
    ("Operation", "operation"),
    ("Deprecated", "operation"),
    ("Extension", "extension"),
    ("Component", "components"),
)

LOCATION_PREFIXES = ("Query", "Path", "Header", "Cookie")

_LIST_TYPES = ("bullet_list", "ordered_list")


class ChangeClass(str, Enum):
    """Change classification of a rendered list item."""

    UNKNOWN = "unknown"
    ADDITION = "addition"
    MODIFICATION = "modification"
    REMOVAL = "removal"
    BREAKING = "breaking"


def classify_change_text(text: str) -> ChangeClass:
    """Classify list item text by the first matching keyword."""
    if not text:
        return ChangeClass.UNKNOWN
    lowered = text.lower()
    if "breaking" in lowered:
        return ChangeClass.BREAKING
    if "added" in lowered:
        return ChangeClass.ADDITION
    if "removed" in lowered:
        return ChangeClass.REMOVAL
    if "changed" in lowered or "modified" in lowered:
        return ChangeClass.MODIFICATION
    return ChangeClass.UNKNOWN


def slugify(text: str) -> str:
    """Lowercase ASCII slug: alphanumeric runs joined by single hyphens."""
    parts: List[str] = []
    pending_hyphen = False
    for char in text.lower():
        if ("a" <= char <= "z") or ("0" <= char <= "9"):
            if pending_hyphen:
                parts.append("-")
                pending_hyphen = False
            parts.append(char)
        elif parts:
            pending_hyphen = True
    return "".join(parts)


def match_object_type(text: str) -> Optional[Tuple[str, str]]:
    """Match label text that precedes a code span against the object-type table.

    Returns:
        Tuple of (icon name, matched label text), or None
    """
    trimmed = text.strip()
    for pattern, icon in OBJECT_TYPE_PATTERNS:
        for suffix in (pattern + " ", pattern + ": "):
            if text.endswith(suffix):
                return icon, suffix
        if trimmed in (pattern, pattern + ":"):
            return icon, text
    return None


def location_prefix(label: str) -> str:
    """Parameter location word of a label such as "Query Parameter "."""
    trimmed = label.strip()
    for prefix in LOCATION_PREFIXES:
        if trimmed.startswith(prefix + " Parameter"):
            return prefix
    return ""


def is_operation_path(text: str) -> bool:
    if not text.startswith("/"):
        return False
    return "#/" not in text and "/components/" not in text and "/definitions/" not in text


def http_status_class(text: str) -> str:
    """CSS class for a three digit HTTP status code, "" for anything else."""
    text = text.strip()
    if len(text) != 3 or not text.isdigit() or not text.isascii():
        return ""
    code = int(text)
    if 100 <= code < 400:
        return "http-200"
    if 400 <= code < 500:
        return "http-400"
    if code >= 500:
        return "http-500"
    return ""


def collect_text(node: SyntaxTreeNode) -> str:
    """Concatenate the text and code-span content below a node."""
    parts: List[str] = []

    def walk(current: SyntaxTreeNode) -> None:
        if current.type in ("text", "code_inline"):
            parts.append(current.content)
        for child in current.children:
            walk(child)

    walk(node)
    return "".join(parts)


def _ancestors(node: SyntaxTreeNode):
    parent = node.parent
    while parent is not None:
        yield parent
        parent = parent.parent


def _cell_alignment(node: SyntaxTreeNode) -> str:
    style = str(node.attrs.get("style", ""))
    if style.startswith("text-align:"):
        return style[len("text-align:"):]
    return ""


def create_parser(config: RenderConfig) -> MarkdownIt:
    """Build the CommonMark parser with GFM tables and the configured options."""
    html = config.html
    options = {
        "html": bool(html and html.allow_raw_html),
        "xhtmlOut": bool(html and html.xhtml_output),
        "breaks": bool(html and html.hard_wraps),
    }
    return MarkdownIt("commonmark", options).enable(["table", "strikethrough"])


class ChangeHTMLRenderer:
    """Renders change report Markdown to HTML with the report's node rules.

    Args:
        config: Render configuration (defaults when None)
    """

    def __init__(self, config: Optional[RenderConfig] = None):
        self.config = config or default_render_config()
        self.parser = create_parser(self.config)
        self._handlers: Dict[str, Callable[[SyntaxTreeNode, List[str]], None]] = {
            "root": self._render_children,
            "inline": self._render_children,
            "paragraph": self._paragraph,
            "heading": self._heading,
            "bullet_list": self._bullet_list,
            "ordered_list": self._ordered_list,
            "list_item": self._list_item,
            "blockquote": self._blockquote,
            "hr": self._thematic_break,
            "fence": self._fenced_code,
            "code_block": self._indented_code,
            "html_block": self._raw_html,
            "html_inline": self._raw_html,
            "table": self._table,
            "thead": self._table_header,
            "tbody": self._table_body,
            "tr": self._table_row,
            "th": self._table_cell,
            "td": self._table_cell,
            "text": self._text,
            "code_inline": self._code_span,
            "em": self._emphasis,
            "strong": self._emphasis,
            "s": self._strikethrough,
            "link": self._link,
            "image": self._image,
            "softbreak": self._soft_break,
            "hardbreak": self._hard_break,
        }
        self._heading_ids: Dict[str, int] = {}

    def render(self, markdown: str) -> str:
        """Convert Markdown to HTML."""
        tree = SyntaxTreeNode(self.parser.parse(markdown))
        self._heading_ids = {}
        out: List[str] = []
        self._render_node(tree, out)
        return "".join(out)

    # -------------------------------------------------------------------------
    # Config accessors
    # -------------------------------------------------------------------------

    @property
    def _html(self):
        return self.config.html

    def _property_name_class(self) -> str:
        styling = self.config.styling
        if styling is not None and styling.property_name_class:
            return styling.property_name_class
        return "code"

    def _breaking_class(self) -> str:
        return self.config.breaking.css_class if self.config.breaking is not None else ""

    def _code_block_class(self) -> str:
        code_block = self.config.code_block
        if code_block is not None and code_block.css_class:
            return code_block.css_class
        return "code-block"

    def _nested_list_fix(self) -> bool:
        return bool(self._html and self._html.enable_nested_list_fix)

    def _custom_renderer(self, element_type: str):
        custom = self.config.custom
        if custom is None:
            return None
        return custom.element_renderers.get(element_type)

    def _void(self, tag: str) -> str:
        return f"<{tag} />" if self._html and self._html.xhtml_output else f"<{tag}>"

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def _render_node(self, node: SyntaxTreeNode, out: List[str]) -> None:
        handler = self._handlers.get(node.type)
        if handler is None:
            logger.debug("No HTML rule for markdown node %r; rendering children", node.type)
            self._render_children(node, out)
            return
        handler(node, out)

    def _render_children(self, node: SyntaxTreeNode, out: List[str]) -> None:
        for child in node.children:
            self._render_node(child, out)

    # -------------------------------------------------------------------------
    # Blocks
    # -------------------------------------------------------------------------

    def _paragraph(self, node: SyntaxTreeNode, out: List[str]) -> None:
        if node.hidden:
            # tight list item: inline content only
            self._render_children(node, out)
            if node.next_sibling is not None:
                out.append("\n")
            return
        out.append("<p>")
        self._render_children(node, out)
        out.append("</p>\n")

    def _heading(self, node: SyntaxTreeNode, out: List[str]) -> None:
        level = node.tag[1:]
        heading_id = self._heading_id(node)
        html = self._html
        heading_class = html.heading_class if html is not None else ""
        anchors = bool(html and html.add_heading_anchors)

        out.append(f"<h{level}")
        if heading_id:
            out.append(f' id="{heading_id}"')
        if heading_class:
            out.append(f' class="{heading_class}"')
        out.append(">")
        if heading_id and anchors:
            out.append(f'<a href="#{heading_id}" class="heading-anchor">')

        self._render_children(node, out)

        if heading_id and anchors:
            out.append("</a>")
        out.append(f"</h{level}>\n")

    def _heading_id(self, node: SyntaxTreeNode) -> str:
        slug = slugify(collect_text(node))
        if not slug:
            return ""
        prefix = self._html.heading_id_prefix if self._html is not None else ""
        heading_id = prefix + slug
        seen = self._heading_ids.get(heading_id, 0)
        self._heading_ids[heading_id] = seen + 1
        if seen:
            heading_id = f"{heading_id}-{seen}"
        return heading_id

    def _bullet_list(self, node: SyntaxTreeNode, out: List[str]) -> None:
        out.append("<ul>\n")
        self._render_children(node, out)
        out.append("</ul>\n")

    def _ordered_list(self, node: SyntaxTreeNode, out: List[str]) -> None:
        start = node.attrs.get("start")
        out.append(f'<ol start="{start}">\n' if start is not None else "<ol>\n")
        self._render_children(node, out)
        out.append("</ol>\n")

    def _list_item(self, node: SyntaxTreeNode, out: List[str]) -> None:
        change_class = classify_change_text(collect_text(node))
        out.append(f'<li class="{self._list_item_class(change_class)}"')
        breaking = self.config.breaking
        if change_class == ChangeClass.BREAKING and breaking is not None and breaking.data_attr:
            out.append(f' {breaking.data_attr}="true"')
        out.append(">")
        self._render_children(node, out)
        out.append("</li>\n")

    def _list_item_class(self, change_class: ChangeClass) -> str:
        styling = self.config.styling
        if styling is None:
            return ""
        if change_class == ChangeClass.BREAKING:
            return self._breaking_class()
        if change_class == ChangeClass.ADDITION:
            return styling.addition_class
        if change_class == ChangeClass.MODIFICATION:
            return styling.modification_class
        if change_class == ChangeClass.REMOVAL:
            return styling.removal_class
        return ""

    def _blockquote(self, node: SyntaxTreeNode, out: List[str]) -> None:
        out.append("<blockquote>\n")
        self._render_children(node, out)
        out.append("</blockquote>\n")

    def _thematic_break(self, node: SyntaxTreeNode, out: List[str]) -> None:
        out.append(self._void("hr") + "\n")

    def _fenced_code(self, node: SyntaxTreeNode, out: List[str]) -> None:
        info = node.info.strip()
        language = info.split()[0] if info else ""
        code_class = f"language-{language}" if language else ""

        custom = self._custom_renderer("code-block")
        if custom is not None:
            out.append(
                custom.render("code-block", node.content, {"language": language, "classes": code_class})
            )
            return

        # a wrapping <div> would close the enclosing list item
        skip_div = self._nested_list_fix()
        if not skip_div:
            out.append(f'<div class="{self._code_block_class()}"')
            if language:
                out.append(f' data-language="{escapeHtml(language)}"')
            out.append(">")
            header_generator = self.config.code_block.header_generator if self.config.code_block else None
            if language and header_generator is not None:
                out.append(header_generator(language))

        out.append("<pre><code")
        if code_class:
            out.append(f' class="{escapeHtml(code_class)}"')
        out.append(">")
        out.append(escapeHtml(node.content))
        out.append("</code></pre>" if skip_div else "</code></pre></div>")

    def _indented_code(self, node: SyntaxTreeNode, out: List[str]) -> None:
        out.append(f"<pre><code>{escapeHtml(node.content)}</code></pre>\n")

    def _raw_html(self, node: SyntaxTreeNode, out: List[str]) -> None:
        out.append(node.content)

    def _table(self, node: SyntaxTreeNode, out: List[str]) -> None:
        table_class = self._html.table_class if self._html is not None else ""
        out.append(f'<table class="{table_class}">\n' if table_class else "<table>\n")
        self._render_children(node, out)
        out.append("</table>\n")

    def _table_header(self, node: SyntaxTreeNode, out: List[str]) -> None:
        header_class = self._html.table_header_class if self._html is not None else ""
        out.append(f'<thead class="{header_class}">\n' if header_class else "<thead>\n")
        self._render_children(node, out)
        out.append("</thead>\n")

    def _table_body(self, node: SyntaxTreeNode, out: List[str]) -> None:
        out.append("<tbody>\n")
        self._render_children(node, out)
        out.append("</tbody>\n")

    def _table_row(self, node: SyntaxTreeNode, out: List[str]) -> None:
        row_class = self._html.table_row_class if self._html is not None else ""
        out.append(f'<tr class="{row_class}">' if row_class else "<tr>")
        self._render_children(node, out)
        out.append("</tr>\n")

    def _table_cell(self, node: SyntaxTreeNode, out: List[str]) -> None:
        tag = "th" if any(parent.type == "thead" for parent in _ancestors(node)) else "td"
        align = _cell_alignment(node)
        out.append(f'<{tag} align="{align}">' if align else f"<{tag}>")
        self._render_children(node, out)
        out.append(f"</{tag}>")

    # -------------------------------------------------------------------------
    # Inlines
    # -------------------------------------------------------------------------

    def _text(self, node: SyntaxTreeNode, out: List[str]) -> None:
        text = node.content

        if self._html is not None and self._html.enable_object_icons and not self._in_heading(node):
            next_node = node.next_sibling
            match = match_object_type(text) if next_node is not None else None
            if match is not None and next_node.type == "code_inline":
                icon, label = match
                top_level = self._list_depth(node) == 1
                if top_level:
                    # the icon replaces the label text
                    remainder = text[: len(text) - len(label)]
                    if remainder:
                        out.append(escapeHtml(remainder))
                    location = location_prefix(label)
                    if location:
                        out.append(escapeHtml(location) + " ")
                    out.append(f'<pb33f-model-icon icon="{icon}" size="tiny"></pb33f-model-icon> ')
                    return
                out.append(f'<pb33f-model-icon icon="{icon}" size="tiny"></pb33f-model-icon> ')

        if REFLINK_TEXT in text:
            out.append(REFLINK_ICON)
            return

        out.append(escapeHtml(text))

    @staticmethod
    def _in_heading(node: SyntaxTreeNode) -> bool:
        return any(parent.type == "heading" for parent in _ancestors(node))

    @staticmethod
    def _list_depth(node: SyntaxTreeNode) -> int:
        return sum(1 for parent in _ancestors(node) if parent.type in _LIST_TYPES)

    def _code_span(self, node: SyntaxTreeNode, out: List[str]) -> None:
        content = node.content

        if is_operation_path(content):
            out.append(
                f'<pb33f-render-operation-path path="{escapeHtml(content)}">'
                "</pb33f-render-operation-path>"
            )
            return

        classes = self._property_name_class()
        if "#/" in content:
            classes += " component-reference"
        status_class = http_status_class(content)
        if status_class:
            classes += " " + status_class

        custom = self._custom_renderer("code-span")
        if custom is not None:
            out.append(custom.render("code-span", content, {"classes": classes}))
            return

        out.append(f'<code class="{classes}">{escapeHtml(content)}</code>')

    def _emphasis(self, node: SyntaxTreeNode, out: List[str]) -> None:
        tag = "strong" if node.type == "strong" else "em"

        if tag == "strong":
            first_text = next((c.content for c in node.children if c.type == "text"), "")
            if first_text in HTTP_METHOD_NAMES:
                out.append(f'<pb33f-http-method method="{first_text}" tiny></pb33f-http-method>')
                return

        breaking_class = self._breaking_class()
        if breaking_class and "breaking" in collect_text(node).lower():
            out.append(f'<{tag} class="{breaking_class}">')
        else:
            out.append(f"<{tag}>")
        self._render_children(node, out)
        out.append(f"</{tag}>")

    def _strikethrough(self, node: SyntaxTreeNode, out: List[str]) -> None:
        out.append("<del>")
        self._render_children(node, out)
        out.append("</del>")

    def _link(self, node: SyntaxTreeNode, out: List[str]) -> None:
        href = str(node.attrs.get("href", ""))
        out.append(f'<a href="{escapeHtml(href)}"')
        html = self._html
        if html is not None and html.link_class:
            out.append(f' class="{html.link_class}"')
        if html is not None and html.external_links_new_tab and href.startswith(("http://", "https://")):
            out.append(' target="_blank" rel="noopener noreferrer"')
        title = node.attrs.get("title")
        if title:
            out.append(f' title="{escapeHtml(str(title))}"')
        out.append(">")
        self._render_children(node, out)
        out.append("</a>")

    def _image(self, node: SyntaxTreeNode, out: List[str]) -> None:
        src = escapeHtml(str(node.attrs.get("src", "")))
        alt = escapeHtml(collect_text(node))
        if self._html is not None and self._html.xhtml_output:
            out.append(f'<img src="{src}" alt="{alt}" />')
        else:
            out.append(f'<img src="{src}" alt="{alt}">')

    def _soft_break(self, node: SyntaxTreeNode, out: List[str]) -> None:
        if self._html is not None and self._html.hard_wraps:
            out.append(self._void("br") + "\n")
        else:
            out.append("\n")

    def _hard_break(self, node: SyntaxTreeNode, out: List[str]) -> None:
        out.append(self._void("br") + "\n")


def markdown_to_html(markdown: str, config: Optional[RenderConfig] = None) -> str:
    """Render report Markdown to HTML without post-processing."""
    return ChangeHTMLRenderer(config).render(markdown)
