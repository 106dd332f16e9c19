"""
Markdown report generation.

MarkdownReporter walks a DocumentChanges tree once and writes a GitHub
flavored Markdown report: a title, a summary with an object-type table, a
breakdown section per part of the document and a trailing "Referenced
Changes" section listing every $ref'd component exactly once.

Code blocks nested in list items are indented to the item's content column
(see change_report.indent) so CommonMark keeps them inside the list.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple, Union

from change_report.config import RenderConfig
from change_report.describe import (
    ChangeDescriber,
    format_object_type,
    format_operation_path,
    is_parameter_object_change,
)
from change_report.indent import get_indent, indent_multiline_desc, media_type_code_indent, spaces
from change_report.model import (
    Change,
    ChangeStatistics,
    DocumentChanges,
    ExtensionChanges,
    Locator,
    MediaTypeChanges,
    OperationChanges,
    ParameterChanges,
    PathItemChanges,
    SecurityRequirementChanges,
    ServerChanges,
    Tag,
    TagChanges,
    find_line_number,
)
from change_report.references import (
    ReferencedChange,
    ReferenceType,
    collect_referenced_changes,
)
from change_report.values import DataFormat, detect_document_format


logger = logging.getLogger(__name__)


BREAKING_MARKER = "**(💔 breaking)**"

REPORT_TITLE = "# What Changed Report\n\n"
NO_CHANGES = "No changes detected.\n\n"
EMPTY_REPORT = "# What Changed?\n\nNo changes detected between the API versions.\n\n"

SUMMARY_TABLE_HEADER = (
    "| Object               | Total Changes | Breaking Changes |\n"
    "|----------------------|---------------|------------------|\n"
)

REFERENCED_INTRO = (
    "The following component changes are referenced in multiple locations "
    "throughout the document.\n\n"
)

_CALLBACK_SUMMARY_PROPERTIES = ("summary", "description", "operationId")


def sanitize_marker_name(name: str) -> str:
    """Make a name safe for use inside an HTML comment marker."""
    return name.replace("-", "_").replace(">", "gt").replace("<", "lt")


class TypeStatistic:
    """Direct property-change counts for one object kind."""

    __slots__ = ("total", "breaking")

    def __init__(self) -> None:
        self.total = 0
        self.breaking = 0


class MarkdownReporter:
    """Generates the Markdown change report for one document.

    Args:
        document_changes: Root of the change tree
        locator: Optional line lookup into the new document
        right_doc_content: Raw new document, used to detect JSON vs YAML
        config: Render configuration; only html.enable_nested_list_fix is
            consulted here
    """

    def __init__(
        self,
        document_changes: Optional[DocumentChanges],
        locator: Optional[Locator] = None,
        right_doc_content: Union[bytes, str, None] = None,
        config: Optional[RenderConfig] = None,
    ):
        self.document = document_changes
        self.locator = locator
        self.config = config
        self.source_format: DataFormat = detect_document_format(right_doc_content)
        self.describer = ChangeDescriber(locator, self.source_format)
        self._out: List[str] = []

    # =========================================================================
    # Entry point
    # =========================================================================

    def generate(self) -> str:
        """Build the report and return it as a string."""
        if self.document is None:
            return EMPTY_REPORT

        self._out = []
        self._write(REPORT_TITLE)
        self._summary()
        self._breakdown()
        self._referenced_changes()
        report = "".join(self._out)
        self._out = []
        return report

    # =========================================================================
    # Primitives
    # =========================================================================

    def _write(self, text: str) -> None:
        self._out.append(text)

    @property
    def inject_markers(self) -> bool:
        return bool(
            self.config is not None
            and self.config.html is not None
            and self.config.html.enable_nested_list_fix
        )

    def _wrap_example(self, name: str, indent_level: int, content: Callable[[], None]) -> None:
        indent = get_indent(indent_level)
        safe = sanitize_marker_name(name)
        if self.inject_markers:
            self._write(f"{indent}<!-- pb33f-example-start:{safe} -->\n")
        content()
        if self.inject_markers:
            self._write(f"{indent}<!-- pb33f-example-end:{safe} -->\n")

    def _breaking_marker(self, has_code_block: bool, code_indent: int) -> None:
        if has_code_block:
            # blank line then the marker at the item's content column
            self._write("\n\n" + spaces(code_indent) + BREAKING_MARKER)
        else:
            self._write(" " + BREAKING_MARKER)

    def _render_change(self, change: Optional[Change]) -> None:
        """Top-level list item for a change, with breaking marker."""
        if change is None:
            return
        desc, has_code_block = self.describer.describe(change)
        if has_code_block:
            desc = indent_multiline_desc(desc, 2)
        self._write("- " + desc)
        if change.breaking:
            self._breaking_marker(has_code_block, 2)
        self._write("\n")

    def _render_changes(self, changes: List[Change]) -> None:
        for change in changes:
            self._render_change(change)

    def _write_indented_change(self, change: Change, code_indent: int, prefix: str) -> None:
        desc, has_code_block = self.describer.describe(change)
        if has_code_block:
            desc = indent_multiline_desc(desc, code_indent)
        self._write(f"{prefix}- {desc}\n")

    def _render_nested_extensions(
        self,
        extensions: Optional[ExtensionChanges],
        indent: bool,
    ) -> None:
        if extensions is None or extensions.total_changes() == 0:
            return
        prefix, code_indent = ("  ", 4) if indent else ("", 2)
        for change in extensions.property_changes():
            desc, has_code_block = self.describer.describe(change)
            if has_code_block:
                desc = indent_multiline_desc(desc, code_indent)
            self._write(f"{prefix}- {desc}")
            if change.breaking:
                self._breaking_marker(has_code_block, code_indent)
            self._write("\n")

    @staticmethod
    def _heading(title: str, breaking: bool) -> str:
        if breaking:
            return f"#### {title} {BREAKING_MARKER}\n\n"
        return f"#### {title}\n\n"

    # =========================================================================
    # Summary
    # =========================================================================

    def _summary(self) -> None:
        doc = self.document
        total = doc.total_changes()
        breaking = doc.total_breaking()

        if total == 0:
            self._write(NO_CHANGES)
            return

        change_word = "change" if total == 1 else "changes"
        self._write(f"**{total}** {change_word} detected")
        if breaking > 0:
            verb = "are" if breaking > 1 or total > 1 else "is"
            self._write(f", **{breaking}** {verb} {BREAKING_MARKER}.\n\n")
        else:
            self._write(", with **no** breaking changes.\n\n")

        stats = ChangeStatistics.from_changes(doc.all_changes())
        if stats.additions:
            self._write(f"- Additions: **{stats.additions}**\n")
        if stats.modifications:
            self._write(f"- Modifications: **{stats.modifications}**\n")
        if stats.removals:
            self._write(f"- Removals: **{stats.removals}**\n")
        self._write("\n")

        self._type_statistics()

    def type_statistics(self) -> Dict[str, TypeStatistic]:
        """Count direct property changes per object kind across the tree."""
        stats: Dict[str, TypeStatistic] = {}
        doc = self.document
        if doc is None:
            return stats

        def add(kind: str, changes: List[Change]) -> None:
            if not changes:
                return
            stat = stats.setdefault(kind, TypeStatistic())
            for change in changes:
                stat.total += 1
                if change.breaking:
                    stat.breaking += 1

        if doc.info is not None:
            add("info", doc.info.property_changes())
            if doc.info.contact is not None:
                add("contact", doc.info.contact.property_changes())
            if doc.info.license is not None:
                add("license", doc.info.license.property_changes())

        for server in doc.servers:
            add("server", server.property_changes())
        for tag in doc.tags:
            add("tag", tag.property_changes())
        for requirement in doc.security:
            add("security", requirement.property_changes())

        if doc.paths is not None:
            add("paths", doc.paths.property_changes())
            for path in sorted(doc.paths.path_items):
                self._path_item_statistics(add, doc.paths.path_items[path])

        for name in sorted(doc.webhooks):
            self._path_item_statistics(add, doc.webhooks[name])

        if doc.components is not None:
            add("components", doc.components.property_changes())
            for name in sorted(doc.components.schemas):
                add("schema", doc.components.schemas[name].property_changes())
            for name in sorted(doc.components.security_schemes):
                add("securityScheme", doc.components.security_schemes[name].property_changes())

        if doc.extensions is not None:
            add("extension", doc.extensions.property_changes())

        return stats

    @staticmethod
    def _path_item_statistics(
        add: Callable[[str, List[Change]], None],
        item: Optional[PathItemChanges],
    ) -> None:
        if item is None:
            return
        add("pathItem", item.property_changes())

        for _, operation in item.operations():
            if operation is None:
                continue
            add("operation", operation.property_changes())
            for param in operation.parameters:
                add("parameter", param.property_changes())
            for server in operation.servers:
                add("server", server.property_changes())

            if operation.responses is not None:
                for code in sorted(operation.responses.responses):
                    response = operation.responses.responses[code]
                    add("response", response.property_changes())
                    for header in sorted(response.headers):
                        add("header", response.headers[header].property_changes())
                    for media_type in sorted(response.content):
                        media = response.content[media_type]
                        add("mediaType", media.property_changes())
                        for example in sorted(media.examples):
                            add("example", media.examples[example].property_changes())

            body = operation.request_body
            if body is not None:
                add("requestBody", body.property_changes())
                for media_type in sorted(body.content):
                    media = body.content[media_type]
                    add("mediaType", media.property_changes())
                    for example in sorted(media.examples):
                        add("example", media.examples[example].property_changes())

            for name in sorted(operation.callbacks):
                add("callback", operation.callbacks[name].property_changes())

        for param in item.parameters:
            add("parameter", param.property_changes())

    def _type_statistics(self) -> None:
        stats = self.type_statistics()
        if not stats:
            return
        self._write(SUMMARY_TABLE_HEADER)
        for kind in sorted(stats):
            stat = stats[kind]
            breaking = str(stat.breaking) if stat.breaking else "-"
            self._write(f"| {format_object_type(kind)} | {stat.total} | {breaking} |\n")
        self._write("\n")

    # =========================================================================
    # Breakdown
    # =========================================================================

    def _breakdown(self) -> None:
        doc = self.document
        self._write("## Change Breakdown\n\n")

        if doc.info is not None and doc.info.total_changes() > 0:
            self._write("### Document Info\n\n")
            self._info()

        if doc.servers:
            self._write("### Servers\n\n")
            self._servers()

        if doc.security:
            self._write("### Security\n\n")
            self._security()

        if doc.tags:
            self._write("### Tags\n\n")
            self._tags()

        if doc.paths is not None and doc.paths.total_changes() > 0:
            self._write("### Operations\n\n")
            self._paths()

        if doc.webhooks:
            self._write("### Webhooks\n\n")
            self._webhooks()

        if doc.components is not None and doc.components.total_changes() > 0:
            self._write("### Components\n\n")
            self._components()

        if doc.extensions is not None and doc.extensions.total_changes() > 0:
            self._write("### Extensions\n\n")
            self._write("---\n\n#### Document Extensions\n\n")
            self._render_changes(doc.extensions.property_changes())
            self._write("\n")

    # -------------------------------------------------------------------------
    # Info, servers, security, tags
    # -------------------------------------------------------------------------

    def _info(self) -> None:
        info = self.document.info

        if info.property_changes():
            self._write("---\n\n")
            if info.total_breaking() > 0:
                self._write(f"#### Info {BREAKING_MARKER} \n\n")
            else:
                self._write("#### Info\n\n")
            self._render_changes(info.property_changes())
            self._write("\n")

        if info.contact is not None and info.contact.total_changes() > 0:
            self._write("---\n\n#### Contact\n\n")
            self._render_changes(info.contact.property_changes())
            self._write("\n")

        if info.license is not None and info.license.total_changes() > 0:
            self._write("---\n\n#### License\n\n")
            self._render_changes(info.license.property_changes())
            self._render_nested_extensions(info.license.extensions, False)
            self._write("\n")

        self._render_nested_extensions(info.extensions, False)

    def server_identifier(self, server: ServerChanges) -> str:
        """Heading label for a server: its URL when recoverable, else its line."""
        if server.server is not None and server.server.url:
            return f"Server: `{server.server.url}`"

        fallback_line = 0
        for change in server.property_changes():
            if change.property == "url":
                if change.new:
                    return f"Server: `{change.new}`"
                if change.original:
                    return f"Server: `{change.original}`"

            # e.g. a whole server added under "servers"
            if change.change_type.is_object:
                url = change.new or change.original
                if url.startswith(("http://", "https://")):
                    return f"Server: `{url}`"

            if not fallback_line:
                fallback_line = change.line()

        if fallback_line:
            return f"Server (line {fallback_line})"
        return "Server"

    def _servers(self) -> None:
        for server in self.document.servers:
            if server is None or server.total_changes() == 0:
                continue
            self._write("---\n\n")
            self._write(self._heading(self.server_identifier(server), server.total_breaking() > 0))
            self._render_changes(server.property_changes())
            self._render_nested_extensions(server.extensions, False)
            self._write("\n")

    @staticmethod
    def security_requirement_name(requirement: SecurityRequirementChanges) -> str:
        for change in requirement.property_changes():
            if change.property and change.property != "security":
                return f"Security Requirement: `{change.property}`"

        for change in requirement.all_changes():
            if "security[" not in change.path:
                continue
            start = change.path.rfind("['")
            if start == -1:
                continue
            start += 2
            end = change.path.find("']", start)
            if end > start:
                return f"Security Requirement: `{change.path[start:end]}`"

        return "Security Requirement"

    def _security(self) -> None:
        for requirement in self.document.security:
            if requirement is None or requirement.total_changes() == 0:
                continue
            self._write("---\n\n")
            self._write(
                self._heading(
                    self.security_requirement_name(requirement),
                    requirement.total_breaking() > 0,
                )
            )
            self._render_changes(requirement.property_changes())
            self._write("\n")

    def tag_name(self, tag: TagChanges) -> str:
        """Heading label for a tag, recovered from the change or the locator."""
        for change in tag.property_changes():
            if change.change_type.is_object and change.property and change.property != "tags":
                return f"Tag: `{change.property}`"

        all_changes = tag.all_changes()
        if all_changes and self.locator is not None:
            line = find_line_number(all_changes)
            if line:
                for value in self.describer.located_values(line):
                    if isinstance(value, Tag) and value.name:
                        return f"Tag: `{value.name}`"
                return f"Tag (__line {line}__)"

        return "Tag"

    def _tags(self) -> None:
        for tag in self.document.tags:
            if tag is None or tag.total_changes() == 0:
                continue
            self._write("---\n\n")
            self._write(self._heading(self.tag_name(tag), tag.total_breaking() > 0))
            self._render_changes(tag.property_changes())
            self._render_nested_extensions(tag.extensions, False)
            self._write("\n")

    # -------------------------------------------------------------------------
    # Paths and webhooks
    # -------------------------------------------------------------------------

    def _paths(self) -> None:
        paths = self.document.paths

        if paths.property_changes():
            self._render_changes(paths.property_changes())
            self._write("\n")

        for path in sorted(paths.path_items):
            item = paths.path_items[path]
            if item is None or item.total_changes() == 0:
                continue

            ref = item.change_reference()
            if ref:
                self._write("---\n\n")
                self._write(f"#### Path `{path}`: See referenced component `{ref}`\n\n")
                continue

            if item.property_changes() or item.parameters:
                self._write("---\n\n")
                self._write(self._heading(f"Path `{path}`", item.total_breaking() > 0))

            self._path_item_content(path, item, "Path Parameters")

    def _webhooks(self) -> None:
        webhooks = self.document.webhooks
        for name in sorted(webhooks):
            item = webhooks[name]
            if item is None or item.total_changes() == 0:
                continue

            ref = item.change_reference()
            if ref:
                self._write("---\n\n")
                self._write(f"#### Webhook: `{name}`: See referenced component `{ref}`\n\n")
                continue

            if item.property_changes() or item.parameters:
                self._write("---\n\n")
                self._write(self._heading(f"Webhook: `{name}`", item.total_breaking() > 0))

            self._path_item_content(name, item, "Webhook Parameters")

    def _path_item_content(self, name: str, item: PathItemChanges, parameters_label: str) -> None:
        self._render_changes(item.property_changes())

        if item.parameters:
            self._write(f"\n**{parameters_label}:**\n\n")
            for param in item.parameters:
                self._parameter(param)

        self._render_nested_extensions(item.extensions, False)

        if item.property_changes() or item.parameters:
            self._write("\n")

        for method, operation in item.operations():
            if operation is not None and operation.total_changes() > 0:
                self._operation(method, name, operation)

    def _parameter(self, param: Optional[ParameterChanges]) -> None:
        if param is None or param.total_changes() == 0:
            return
        label = self.describer.parameter_name(param)
        ref = param.change_reference()
        if ref:
            self._write(f"- {label}: See referenced component `{ref}`\n")
            return
        self._write(f"- {label}:\n")
        for change in param.property_changes():
            self._write_indented_change(change, 4, "  ")
        if param.schema is not None:
            for change in param.schema.all_changes():
                self._write_indented_change(change, 4, "  ")
        self._render_nested_extensions(param.extensions, True)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def _operation(self, method: str, path: str, operation: OperationChanges) -> None:
        self._write("---\n\n")
        self._write(self._heading(f"**{method}** `{path}`", operation.total_breaking() > 0))

        parameter_changes, other_changes = self._split_parameter_changes(operation)

        if other_changes:
            self._wrap_example(
                "operation-properties",
                0,
                lambda: self._render_changes(other_changes),
            )
            self._write("\n")

        if parameter_changes or operation.parameters:
            self._write("**Parameters:**\n\n")
            self._render_changes(parameter_changes)
            for param in operation.parameters:
                self._parameter(param)
            self._write("\n")

        self._operation_external_docs(operation)
        self._operation_servers(operation)
        self._operation_request_body(operation)

        if operation.responses is not None and operation.responses.total_changes() > 0:
            self._write("**Responses:**\n\n")
            self._responses(operation)

        if operation.callbacks:
            self._write("**Callbacks:**\n\n")
            for name in sorted(operation.callbacks):
                self._callback(name, operation.callbacks[name])
            self._write("\n")

        if operation.extensions is not None and operation.extensions.total_changes() > 0:
            self._render_nested_extensions(operation.extensions, False)

        self._write("\n")

    @staticmethod
    def _split_parameter_changes(operation: OperationChanges) -> Tuple[List[Change], List[Change]]:
        parameter_changes: List[Change] = []
        other_changes: List[Change] = []
        for change in operation.property_changes():
            if change.property == "parameters" or is_parameter_object_change(change):
                parameter_changes.append(change)
            else:
                other_changes.append(change)
        return parameter_changes, other_changes

    def _operation_external_docs(self, operation: OperationChanges) -> None:
        docs = operation.external_docs
        if docs is None or docs.total_changes() == 0:
            return
        ref = docs.change_reference()
        if ref:
            self._write(f"**External Documentation:** See referenced component `{ref}`\n\n")
            return
        self._write("**External Documentation:**\n\n")
        self._render_changes(docs.property_changes())
        self._render_nested_extensions(docs.extensions, False)
        self._write("\n")

    def _operation_servers(self, operation: OperationChanges) -> None:
        header_written = False
        for server in operation.servers:
            if server is None or server.total_changes() == 0:
                continue
            if not header_written:
                self._write("**Servers:**\n\n")
                header_written = True

            server_id = self.server_identifier(server)
            ref = server.change_reference()
            if ref:
                self._write(f"- {server_id}: See referenced component `{ref}`\n")
                continue

            self._write(f"- {server_id}:\n")
            for change in server.property_changes():
                self._write_indented_change(change, 4, "  ")
            for name in sorted(server.variables):
                variable = server.variables[name]
                if variable is not None and variable.total_changes() > 0:
                    self._write(f"  - Variable `{name}`:\n")
                    for change in variable.property_changes():
                        self._write_indented_change(change, 6, "    ")
            self._render_nested_extensions(server.extensions, True)

        if header_written:
            self._write("\n")

    def _operation_request_body(self, operation: OperationChanges) -> None:
        body = operation.request_body
        if body is None or body.total_changes() == 0:
            return
        ref = body.change_reference()
        if ref:
            self._write(f"**Request Body:** See referenced component `{ref}`\n\n")
            return

        self._write("**Request Body:**\n\n")
        self._render_changes(body.property_changes())

        for media_type in sorted(body.content):
            media = body.content[media_type]
            if media is None or media.total_changes() == 0:
                continue
            media_ref = media.change_reference()
            if media_ref:
                self._write(f"- Media Type `{media_type}`: See referenced component `{media_ref}`\n")
                continue
            self._write(f"- Media Type `{media_type}`:\n")
            # examples before properties so the media-type list stays open
            self._media_type_examples(media, 1)
            self._media_type_properties(media, 1)
            self._render_nested_extensions(media.extensions, True)

        self._render_nested_extensions(body.extensions, False)
        self._write("\n")

    def _media_type_examples(self, media: MediaTypeChanges, indent_level: int) -> None:
        """Example sub-list of a media type whose list marker sits at indent_level."""
        prefix = get_indent(indent_level)
        change_prefix = get_indent(indent_level + 1)
        code_indent = media_type_code_indent(indent_level)
        for name in sorted(media.examples):
            example = media.examples[name]
            if example is None or example.total_changes() == 0:
                continue
            ref = example.change_reference()
            if ref:
                self._write(f"{prefix}- Example `{name}`: See referenced component `{ref}`\n")
                continue

            def content(example=example, name=name) -> None:
                self._write(f"{prefix}- Example `{name}`:\n")
                for change in example.property_changes():
                    self._write_indented_change(change, code_indent, change_prefix)

            self._wrap_example(name, indent_level, content)

    def _media_type_properties(self, media: MediaTypeChanges, indent_level: int) -> None:
        prefix = get_indent(indent_level + 1)
        code_indent = media_type_code_indent(indent_level)
        for change in media.property_changes():
            self._write_indented_change(change, code_indent, prefix)

    def _responses(self, operation: OperationChanges) -> None:
        responses = operation.responses
        self._render_changes(responses.property_changes())

        for code in sorted(responses.responses):
            response = responses.responses[code]
            if response is None or response.total_changes() == 0:
                continue

            ref = response.change_reference()
            if ref:
                self._write(f"- Response `{code}`: See referenced component `{ref}`\n")
                continue

            self._write(f"- Response `{code}`:\n")
            for change in response.property_changes():
                self._write_indented_change(change, 4, "  ")

            for name in sorted(response.headers):
                header = response.headers[name]
                if header is None or header.total_changes() == 0:
                    continue
                header_ref = header.change_reference()
                if header_ref:
                    self._write(f"  - Header `{name}`: See referenced component `{header_ref}`\n")
                    continue
                self._write(f"  - Header `{name}`:\n")
                for change in header.property_changes():
                    self._write_indented_change(change, 6, "    ")

            for content_type in sorted(response.content):
                media = response.content[content_type]
                if media is None or media.total_changes() == 0:
                    continue
                media_ref = media.change_reference()
                if media_ref:
                    self._write(
                        f"  - Content `{content_type}`: See referenced component `{media_ref}`\n"
                    )
                    continue
                self._write(f"  - Content `{content_type}`:\n")
                self._media_type_examples(media, 2)
                self._media_type_properties(media, 2)

            for name in sorted(response.links):
                link = response.links[name]
                if link is None or link.total_changes() == 0:
                    continue
                link_ref = link.change_reference()
                if link_ref:
                    self._write(f"  - Link `{name}`: See referenced component `{link_ref}`\n")
                    continue
                self._write(f"  - Link `{name}`:\n")
                for change in link.property_changes():
                    self._write_indented_change(change, 6, "    ")

            self._render_nested_extensions(response.extensions, True)

        self._write("\n")

    def _callback(self, name: str, callback) -> None:
        if callback is None or callback.total_changes() == 0:
            return
        ref = callback.change_reference()
        if ref:
            self._write(f"- Callback `{name}`: See referenced component `{ref}`\n")
            return

        self._write(f"- Callback `{name}`:\n")
        for change in callback.property_changes():
            self._write_indented_change(change, 4, "  ")

        for expression in sorted(callback.expressions):
            item = callback.expressions[expression]
            if item is None or item.total_changes() == 0:
                continue
            self._write(f"  - Expression `{expression}`:\n")
            for change in item.property_changes():
                self._write_indented_change(change, 6, "    ")
            # summaries only; full operation detail would nest without bound
            for method, operation in item.operations():
                if operation is None or operation.total_changes() == 0:
                    continue
                self._write(f"    - **{method}**: {operation.total_changes()} change(s)\n")
                for change in operation.property_changes():
                    if change.property in _CALLBACK_SUMMARY_PROPERTIES:
                        self._write_indented_change(change, 8, "      ")

        self._render_nested_extensions(callback.extensions, True)

    # -------------------------------------------------------------------------
    # Components
    # -------------------------------------------------------------------------

    def _components(self) -> None:
        components = self.document.components

        if components.property_changes():
            self._render_changes(components.property_changes())
            self._write("\n")

        for name in sorted(components.schemas):
            schema = components.schemas[name]
            if schema is None or schema.total_changes() == 0:
                continue
            self._write("---\n\n")
            ref = schema.change_reference()
            if ref:
                self._write(f"#### Schema: `{name}`: See referenced component `{ref}`\n\n")
                continue
            self._write(self._heading(f"Schema: `{name}`", schema.total_breaking() > 0))
            self._render_changes(schema.all_changes())
            self._render_nested_extensions(schema.extensions, False)
            self._write("\n")

        for name in sorted(components.security_schemes):
            scheme = components.security_schemes[name]
            if scheme is None or scheme.total_changes() == 0:
                continue
            self._write("---\n\n")
            ref = scheme.change_reference()
            if ref:
                self._write(f"#### Security Scheme: `{name}`: See referenced component `{ref}`\n\n")
                continue
            self._write(self._heading(f"Security Scheme: `{name}`", scheme.total_breaking() > 0))
            self._render_changes(scheme.property_changes())
            self._render_nested_extensions(scheme.extensions, False)
            self._write("\n")

        self._render_nested_extensions(components.extensions, False)

    # =========================================================================
    # Referenced changes
    # =========================================================================

    def _referenced_changes(self) -> None:
        referenced = collect_referenced_changes(self.document)
        if not referenced:
            return

        self._write("\n\n---\n\n## Referenced Changes\n\n")
        self._write(REFERENCED_INTRO)

        for ref_type in ReferenceType:
            components = referenced.get(ref_type)
            if not components:
                continue
            self._write(f"### {ref_type.title}\n\n")
            for full_path in sorted(components):
                self._referenced_change(components[full_path])

    def _referenced_change(self, entry: ReferencedChange) -> None:
        self._write("---\n\n")
        self._write(f"#### `{entry.reference.component}`\n\n")
        self._write(f"**Reference:** `{entry.reference.full_path}`\n\n")
        self._render_changes(entry.changes)

        if entry.used_in:
            self._write("\n**Used in:**\n\n")
            for usage in entry.sorted_usages():
                self._write(f"- {format_operation_path(usage.path)}\n")
                if usage.description:
                    for depth, part in enumerate(usage.description.split(", "), start=1):
                        self._write(f"{get_indent(depth)}- {part}\n")

        self._write("\n")


def generate_markdown(
    document_changes: Optional[DocumentChanges],
    locator: Optional[Locator] = None,
    right_doc_content: Union[bytes, str, None] = None,
    config: Optional[RenderConfig] = None,
) -> str:
    """Convenience wrapper around MarkdownReporter.generate()."""
    return MarkdownReporter(document_changes, locator, right_doc_content, config).generate()
