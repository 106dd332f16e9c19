"""
String-level rewrites applied to rendered report HTML.

These rules depend on the surrounding HTML rather than on a single Markdown
node: the object summary table is identified by its header text, and the
sidebar moves everything between the title and the first section heading.
"""

import logging
import re
from typing import List, Optional

from change_report.config import HTMLConfig


logger = logging.getLogger(__name__)


REGULAR_MARKER_PATTERN = re.compile(r"<!-- pb33f-[^>]+ -->")
ESCAPED_MARKER_PATTERN = re.compile(r"&lt;!-- pb33f-[^&]+ --&gt;")
BREAKING_EMOJI_PATTERN = re.compile(r'<strong(?: class="[^"]*")?>\(💔 breaking\)</strong>')

BREAKING_ICON = (
    '<span class="breaking"><sl-icon name="heartbreak-fill" class="removed" '
    'aria-hidden="true" library="default"></sl-icon></span>'
)

SUMMARY_TABLE_CLASS = "object-change-summary"

# display names from format_object_type() to model icon names
OBJECT_TYPE_ICONS = {
    "Info": "info",
    "Contact": "contact",
    "License": "license",
    "Operation": "operation",
    "Parameter": "parameter",
    "Schema": "schema",
    "Response": "response",
    "Request Body": "requestBody",
    "Header": "header",
    "Media Type": "mediaType",
    "Path": "path",
    "Tag": "tag",
    "Security": "securityScheme",
    "Server": "server",
    "Webhook": "webhook",
    "Callback": "callback",
    "Example": "example",
    "Extension": "extension",
    "Component": "components",
    "Components": "components",
    "Paths": "path",
    "Path Item": "path",
}


class PostProcessor:
    """Applies the ordered HTML rewrites for one HTML configuration."""

    def __init__(self, config: Optional[HTMLConfig] = None):
        self.config = config

    def process(self, html: str) -> str:
        html = self.process_object_summary_table(html)
        html = self.replace_breaking_emoji(html)

        if self.config is not None and self.config.enable_floating_sidebar:
            html = self.wrap_metadata_section(html)

        if self.config is None or not self.config.enable_nested_list_fix:
            return html
        return self.remove_markers(html)

    @staticmethod
    def remove_markers(html: str) -> str:
        """Strip example markers, raw or escaped."""
        html = REGULAR_MARKER_PATTERN.sub("", html)
        return ESCAPED_MARKER_PATTERN.sub("", html)

    @staticmethod
    def replace_breaking_emoji(html: str) -> str:
        return BREAKING_EMOJI_PATTERN.sub(BREAKING_ICON, html)

    @staticmethod
    def wrap_metadata_section(html: str) -> str:
        """Move the content between the title and the first <h2> into a sidebar."""
        h1_start = html.find("<h1")
        if h1_start == -1:
            logger.debug("No <h1> found; sidebar wrap skipped")
            return html
        h1_close = html.find("</h1>", h1_start)
        if h1_close == -1:
            return html
        h2_start = html.find("<h2")
        if h2_start == -1:
            logger.debug("No <h2> found; sidebar wrap skipped")
            return html

        h1_end = h1_close + len("</h1>")
        return "".join(
            (
                html[:h1_start],
                '<div class="report-clearfix">\n',
                '<aside class="metadata-sidebar">',
                html[h1_end:h2_start],
                "</aside>\n",
                html[h1_start:h1_end],
                "\n",
                html[h2_start:],
                "\n</div>",
            )
        )

    def process_object_summary_table(self, html: str) -> str:
        """Class the object summary table and prefix its type cells with icons."""
        header_idx = html.find("<th>Object")
        if header_idx == -1:
            logger.debug("No object summary table found")
            return html

        table_idx = html.rfind("<table", 0, header_idx)
        if table_idx == -1:
            return html
        tag_end = html.find(">", table_idx)
        table_end = html.find("</table>", table_idx)
        if tag_end == -1 or table_end == -1:
            return html

        table_tag = html[table_idx:tag_end + 1]
        for quote in ('class="', "class='"):
            idx = table_tag.find(quote)
            if idx != -1:
                cut = idx + len(quote)
                table_tag = f"{table_tag[:cut]}{SUMMARY_TABLE_CLASS} {table_tag[cut:]}"
                break
        else:
            table_tag = f'<table class="{SUMMARY_TABLE_CLASS}"{table_tag[len("<table"):]}'

        content = self._add_row_icons(html[tag_end + 1:table_end])
        return html[:table_idx] + table_tag + content + html[table_end:]

    def _add_row_icons(self, table_html: str) -> str:
        parts: List[str] = []
        pos = 0
        while True:
            row_start = table_html.find("<tr", pos)
            if row_start == -1:
                parts.append(table_html[pos:])
                break
            parts.append(table_html[pos:row_start])
            row_end = table_html.find("</tr>", row_start)
            if row_end == -1:
                parts.append(table_html[row_start:])
                break
            row_end += len("</tr>")
            parts.append(self._row_with_icon(table_html[row_start:row_end]))
            pos = row_end
        return "".join(parts)

    @staticmethod
    def _row_with_icon(row_html: str) -> str:
        cell_start = row_html.find("<td>")
        if cell_start == -1:
            return row_html
        content_start = cell_start + len("<td>")
        cell_end = row_html.find("</td>", content_start)
        if cell_end == -1:
            return row_html

        content = row_html[content_start:cell_end]
        icon = OBJECT_TYPE_ICONS.get(content.strip())
        if icon is None:
            return row_html
        return (
            f'{row_html[:content_start]}<pb33f-model-icon icon="{icon}" size="tiny">'
            f"</pb33f-model-icon>{content}{row_html[cell_end:]}"
        )


def post_process(html: str, config: Optional[HTMLConfig]) -> str:
    return PostProcessor(config).process(html)
