"""
Unit tests for change_report.markdown.

Tests the report skeleton, summary statistics, each breakdown section and
the example markers emitted for the nested list fix.
"""

from change_report.config import HTMLConfig, RenderConfig
from change_report.markdown import (
    BREAKING_MARKER,
    EMPTY_REPORT,
    MarkdownReporter,
    generate_markdown,
    sanitize_marker_name,
)
from change_report.model import (
    CallbackChanges,
    ChangeKind,
    DocumentChanges,
    ExampleChanges,
    ExtensionChanges,
    InfoChanges,
    MediaTypeChanges,
    OperationChanges,
    PathItemChanges,
    RequestBodyChanges,
    SecurityRequirementChanges,
    Server,
    ServerChanges,
    ServerVariableChanges,
    TagChanges,
)
from tests.conftest import document_with_operation, make_change


def nested_list_fix_config() -> RenderConfig:
    return RenderConfig(html=HTMLConfig(enable_nested_list_fix=True))


class TestReportSkeleton:
    """Tests for the title, summary and empty cases."""

    def test_none_document(self):
        """Should return the empty report for a missing document."""
        assert generate_markdown(None) == EMPTY_REPORT

    def test_document_without_changes(self):
        """Should say no changes were detected and still open the breakdown."""
        assert generate_markdown(DocumentChanges()) == (
            "# What Changed Report\n\nNo changes detected.\n\n## Change Breakdown\n\n"
        )

    def test_single_info_change(self):
        """Should produce the full report for a single info change."""
        doc = DocumentChanges(
            info=InfoChanges(changes=[make_change("title", original="Pets", new="Pet Store")])
        )

        assert generate_markdown(doc) == (
            "# What Changed Report\n\n"
            "**1** change detected, with **no** breaking changes.\n\n"
            "- Modifications: **1**\n"
            "\n"
            "| Object               | Total Changes | Breaking Changes |\n"
            "|----------------------|---------------|------------------|\n"
            "| Info | 1 | - |\n"
            "\n"
            "## Change Breakdown\n\n"
            "### Document Info\n\n"
            "---\n\n"
            "#### Info\n\n"
            "- `title` changed to *'Pet Store'*\n"
            "\n"
        )

    def test_breaking_summary(self, pet_store_changes):
        """Should count all changes and breaking changes in the summary."""
        report = generate_markdown(pet_store_changes)

        assert f"**8** changes detected, **4** are {BREAKING_MARKER}.\n\n" in report
        assert "- Additions: **2**\n- Modifications: **4**\n- Removals: **2**\n" in report

    def test_single_breaking_change_uses_is(self):
        """Should use "is" when exactly one change exists and it is breaking."""
        doc = DocumentChanges(
            extensions=ExtensionChanges(
                changes=[make_change("x-a", ChangeKind.PROPERTY_REMOVED, original="1", breaking=True)]
            )
        )
        assert f"**1** change detected, **1** is {BREAKING_MARKER}." in generate_markdown(doc)

    def test_deterministic(self, pet_store_changes):
        """Should produce identical output across runs."""
        assert generate_markdown(pet_store_changes) == generate_markdown(pet_store_changes)


class TestTypeStatistics:
    """Tests for the object summary table."""

    def test_rows_sorted_by_kind(self, pet_store_changes):
        """Should list direct change counts per kind in key order."""
        report = generate_markdown(pet_store_changes)

        assert (
            "| Extension | 1 | - |\n"
            "| Info | 1 | - |\n"
            "| Media Type | 1 | - |\n"
            "| Operation | 1 | - |\n"
            "| Parameter | 2 | 2 |\n"
            "| Response | 1 | 1 |\n"
            "| Schema | 1 | 1 |\n"
        ) in report

    def test_direct_changes_only(self):
        """Should not count nested changes towards their parent's kind."""
        operation = OperationChanges(
            request_body=RequestBodyChanges(
                content={
                    "application/json": MediaTypeChanges(
                        changes=[make_change("schema", new="Pet", original="Animal")]
                    )
                }
            )
        )
        stats = MarkdownReporter(document_with_operation(operation)).type_statistics()

        assert set(stats) == {"mediaType"}
        assert stats["mediaType"].total == 1

    def test_operation_servers_counted(self):
        """Should count operation-level server changes as server changes."""
        operation = OperationChanges(
            servers=[ServerChanges(changes=[make_change("url", original="a", new="b")])]
        )
        stats = MarkdownReporter(document_with_operation(operation)).type_statistics()

        assert stats["server"].total == 1


class TestBreakdownSections:
    """Tests for the per-section breakdown."""

    def test_server_heading_from_url_change(self):
        """Should name servers by their URL."""
        doc = DocumentChanges(
            servers=[ServerChanges(changes=[make_change("url", original="https://v1", new="https://v2")])]
        )
        assert "### Servers\n\n---\n\n#### Server: `https://v2`\n\n" in generate_markdown(doc)

    def test_server_heading_line_fallback(self):
        """Should fall back to the line number when no URL is known."""
        doc = DocumentChanges(
            servers=[ServerChanges(changes=[make_change("description", original="a", new="b", line=8)])]
        )
        assert "#### Server (line 8)\n\n" in generate_markdown(doc)

    def test_security_requirement_heading(self):
        """Should name security requirements by their scheme."""
        doc = DocumentChanges(
            security=[
                SecurityRequirementChanges(
                    changes=[make_change("oauth", ChangeKind.OBJECT_ADDED, new="read")]
                )
            ]
        )
        assert "#### Security Requirement: `oauth`\n\n" in generate_markdown(doc)

    def test_tag_heading(self):
        """Should name tags from their object change."""
        doc = DocumentChanges(
            tags=[TagChanges(changes=[make_change("pets", ChangeKind.OBJECT_ADDED, new="pets")])]
        )
        assert "### Tags\n\n---\n\n#### Tag: `pets`\n\n" in generate_markdown(doc)

    def test_operation_heading_breaking(self, pet_store_changes):
        """Should mark operation headings that contain breaking changes."""
        report = generate_markdown(pet_store_changes)
        assert f"#### **GET** `/pets` {BREAKING_MARKER}\n\n" in report

    def test_referenced_parameter_line(self, pet_store_changes):
        """Should replace a referenced parameter's body with a pointer line."""
        report = generate_markdown(pet_store_changes)
        assert (
            "**Parameters:**\n\n"
            "- Parameter `limit`: See referenced component `#/components/parameters/Limit`\n"
        ) in report

    def test_responses(self, pet_store_changes):
        """Should list response changes under their status code."""
        report = generate_markdown(pet_store_changes)
        assert (
            "**Responses:**\n\n"
            "- Response `404`:\n"
            "  - `description` removed *'Not found'*\n"
        ) in report

    def test_request_body_media_type(self, pet_store_changes):
        """Should nest media type property changes under the media type."""
        report = generate_markdown(pet_store_changes)
        assert (
            "**Request Body:**\n\n"
            "- Media Type `application/json`:\n"
            "    - Example `value` added *'{\"name\": \"Rex\"}'*\n"
        ) in report

    def test_referenced_component_schema(self, pet_store_changes):
        """Should point referenced component schemas at their reference."""
        report = generate_markdown(pet_store_changes)
        assert (
            "### Components\n\n---\n\n"
            "#### Schema: `Pet`: See referenced component `#/components/schemas/Pet`\n\n"
        ) in report

    def test_operation_servers_with_variables(self):
        """Should list server variables in a sorted sub-list."""
        operation = OperationChanges(
            servers=[
                ServerChanges(
                    server=Server(url="https://api.example.com"),
                    variables={
                        "region": ServerVariableChanges(
                            changes=[make_change("default", original="us", new="eu")]
                        ),
                    },
                )
            ]
        )
        report = generate_markdown(document_with_operation(operation))

        assert (
            "**Servers:**\n\n"
            "- Server: `https://api.example.com`:\n"
            "  - Variable `region`:\n"
            "    - `default` changed to *'eu'*\n"
        ) in report

    def test_callback_summaries(self):
        """Should summarise callback operations instead of nesting them fully."""
        inner = OperationChanges(
            changes=[
                make_change("summary", original="a", new="b"),
                make_change("deprecated", ChangeKind.PROPERTY_ADDED, new="true"),
            ]
        )
        operation = OperationChanges(
            callbacks={
                "onEvent": CallbackChanges(
                    expressions={"{$request.body#/url}": PathItemChanges(post=inner)}
                )
            }
        )
        report = generate_markdown(document_with_operation(operation, method="post"))

        assert (
            "**Callbacks:**\n\n"
            "- Callback `onEvent`:\n"
            "  - Expression `{$request.body#/url}`:\n"
            "    - **POST**: 2 change(s)\n"
            "      - `summary` changed to *'b'*\n"
        ) in report
        assert "Deprecated `deprecated` added" not in report

    def test_webhooks(self):
        """Should render webhook operations under the webhook name."""
        doc = DocumentChanges(
            webhooks={
                "newPet": PathItemChanges(
                    post=OperationChanges(changes=[make_change("summary", original="a", new="b")])
                )
            }
        )
        report = generate_markdown(doc)

        assert "### Webhooks\n\n---\n\n#### **POST** `newPet`\n\n" in report

    def test_document_extensions(self):
        """Should render document extensions under their own heading."""
        doc = DocumentChanges(
            extensions=ExtensionChanges(
                changes=[make_change("x-owner", ChangeKind.PROPERTY_ADDED, new="team-a")]
            )
        )
        assert (
            "### Extensions\n\n---\n\n#### Document Extensions\n\n"
            "- Extension `x-owner` added *'team-a'*\n"
        ) in generate_markdown(doc)


class TestCodeBlockIndentation:
    """Tests for code blocks inside list items."""

    def test_breaking_marker_after_code_block(self):
        """Should place the breaking marker on its own line at the item's content column."""
        doc = DocumentChanges(
            extensions=ExtensionChanges(
                changes=[
                    make_change(
                        "x-limits",
                        ChangeKind.PROPERTY_REMOVED,
                        original='{"max": 10}',
                        breaking=True,
                    )
                ]
            )
        )
        report = generate_markdown(doc)

        assert (
            "- Extension `x-limits` removed:\n"
            "  \n"
            "  ```json\n"
            "  {\n"
            '    "max": 10\n'
            "  }\n"
            "  ```\n"
            "\n"
            f"  {BREAKING_MARKER}\n"
        ) in report

    def test_nested_code_block_indent(self):
        """Should indent media type code blocks past the nested list marker."""
        media = MediaTypeChanges(
            changes=[make_change("x-sample", ChangeKind.PROPERTY_ADDED, new='{"id": 1}')]
        )
        operation = OperationChanges(
            request_body=RequestBodyChanges(content={"application/json": media})
        )
        report = generate_markdown(document_with_operation(operation, method="post"))

        assert "    - Extension `x-sample` added:\n      \n      ```json\n" in report


class TestExampleMarkers:
    """Tests for nested-list-fix markers."""

    def _document(self):
        media = MediaTypeChanges(
            examples={
                "rex-1": ExampleChanges(
                    changes=[make_change("summary", original="Rex", new="Rex the dog")]
                )
            }
        )
        operation = OperationChanges(
            changes=[make_change("summary", original="a", new="b")],
            request_body=RequestBodyChanges(content={"application/json": media}),
        )
        return document_with_operation(operation, method="post")

    def test_markers_emitted(self):
        """Should wrap examples and operation properties in markers when enabled."""
        report = generate_markdown(self._document(), config=nested_list_fix_config())

        assert (
            "  <!-- pb33f-example-start:rex_1 -->\n"
            "  - Example `rex-1`:\n"
            "    - `summary` changed to *'Rex the dog'*\n"
            "  <!-- pb33f-example-end:rex_1 -->\n"
        ) in report
        assert "<!-- pb33f-example-start:operation_properties -->\n" in report

    def test_markers_absent_by_default(self):
        """Should not emit markers without the nested list fix."""
        report = generate_markdown(self._document())

        assert "pb33f-example" not in report
        assert "  - Example `rex-1`:\n" in report

    def test_sanitize_marker_name(self):
        """Should make names safe inside HTML comments."""
        assert sanitize_marker_name("a-b<c>") == "a_bltcgt"


class TestReferencedChanges:
    """Tests for the trailing Referenced Changes section."""

    def test_section_layout(self, pet_store_changes):
        """Should render each referenced component once with its usage sites."""
        report = generate_markdown(pet_store_changes)

        assert "\n\n---\n\n## Referenced Changes\n\n" in report
        assert report.index("### Schemas") < report.index("### Parameters")
        assert (
            "#### `Limit`\n\n"
            "**Reference:** `#/components/parameters/Limit`\n\n"
            f"- `required` changed to *'true'* {BREAKING_MARKER}\n"
            "\n**Used in:**\n\n"
            "- **GET** `/pets`\n"
            "  - Parameter\n"
            "- **POST** `/pets`\n"
            "  - Parameter\n"
        ) in report
        assert report.count("#### `Limit`") == 1

    def test_absent_without_references(self):
        """Should omit the section when nothing is referenced."""
        doc = DocumentChanges(info=InfoChanges(changes=[make_change("title", original="a", new="b")]))
        assert "Referenced Changes" not in generate_markdown(doc)
