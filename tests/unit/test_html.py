"""
Unit tests for change_report.html.

Tests the helper classifiers and each node rule of ChangeHTMLRenderer:
headings, list items, code spans, emphasis, links, fenced code, tables and
the object-icon text rule.
"""

import pytest

from change_report.config import (
    CodeBlockConfig,
    CustomConfig,
    HTMLConfig,
    RenderConfig,
    default_render_config,
)
from change_report.html import (
    ChangeClass,
    ChangeHTMLRenderer,
    classify_change_text,
    http_status_class,
    is_operation_path,
    location_prefix,
    markdown_to_html,
    match_object_type,
    slugify,
)


def config_with(**html_options) -> RenderConfig:
    config = default_render_config()
    for name, value in html_options.items():
        setattr(config.html, name, value)
    return config


# =============================================================================
# Helpers
# =============================================================================


class TestSlugify:
    """Tests for slugify()."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("What Changed?", "what-changed"),
            ("  GET /pets/{id} ", "get-pets-id"),
            ("Schema: Pet", "schema-pet"),
            ("--", ""),
        ],
    )
    def test_slugs(self, text, expected):
        """Should join alphanumeric runs with single hyphens."""
        assert slugify(text) == expected


class TestClassifyChangeText:
    """Tests for classify_change_text()."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("x removed (💔 breaking)", ChangeClass.BREAKING),
            ("Added path '/pets'", ChangeClass.ADDITION),
            ("description removed", ChangeClass.REMOVAL),
            ("title changed to 'b'", ChangeClass.MODIFICATION),
            ("Parameter limit modified", ChangeClass.MODIFICATION),
            ("Response 200:", ChangeClass.UNKNOWN),
            ("", ChangeClass.UNKNOWN),
        ],
    )
    def test_keywords(self, text, expected):
        """Should classify by the first matching keyword."""
        assert classify_change_text(text) == expected


class TestHttpStatusClass:
    """Tests for http_status_class()."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("200", "http-200"),
            ("302", "http-200"),
            ("404", "http-400"),
            ("503", "http-500"),
            ("099", ""),
            ("20x", ""),
            ("2000", ""),
            ("default", ""),
        ],
    )
    def test_status_ranges(self, text, expected):
        """Should map three digit codes to their class."""
        assert http_status_class(text) == expected


class TestObjectTypeMatching:
    """Tests for match_object_type() and location_prefix()."""

    def test_compound_before_generic(self):
        """Should prefer compound labels over their generic forms."""
        assert match_object_type("Query Parameter ") == ("parameter", "Query Parameter ")
        assert match_object_type("Request Body ") == ("requestBody", "Request Body ")
        assert match_object_type("Security Scheme: ") == ("securityScheme", "Security Scheme: ")

    def test_generic_label(self):
        """Should match generic labels after other text."""
        assert match_object_type("- Header ") == ("header", "Header ")

    def test_no_match(self):
        """Should return None for text that is not a label."""
        assert match_object_type("changed to ") is None

    def test_location_prefix(self):
        assert location_prefix("Query Parameter ") == "Query"
        assert location_prefix("Cookie Parameter ") == "Cookie"
        assert location_prefix("Parameter ") == ""

    def test_operation_path(self):
        assert is_operation_path("/pets/{id}") is True
        assert is_operation_path("#/components/schemas/Pet") is False
        assert is_operation_path("/components/schemas/Pet") is False
        assert is_operation_path("pets") is False


# =============================================================================
# Node rules
# =============================================================================


class TestHeadings:
    """Tests for the heading rule."""

    def test_anchored_heading(self):
        """Should add an id, class and self-link."""
        assert markdown_to_html("# What Changed?\n") == (
            '<h1 id="change-what-changed" class="change-heading">'
            '<a href="#change-what-changed" class="heading-anchor">What Changed?</a></h1>\n'
        )

    def test_duplicate_ids(self):
        """Should keep heading ids unique within a document."""
        html = markdown_to_html("## Tags\n\n## Tags\n")
        assert 'id="change-tags"' in html
        assert 'id="change-tags-1"' in html

    def test_anchors_disabled(self):
        """Should omit the self-link when anchors are off."""
        html = markdown_to_html("## Tags\n", config_with(add_heading_anchors=False))
        assert html == '<h2 id="change-tags" class="change-heading">Tags</h2>\n'

    def test_operation_heading(self):
        """Should render method and path elements without icons."""
        html = markdown_to_html("#### **GET** `/pets`\n")

        assert '<pb33f-http-method method="GET" tiny></pb33f-http-method>' in html
        assert '<pb33f-render-operation-path path="/pets"></pb33f-render-operation-path>' in html
        assert "pb33f-model-icon" not in html
        assert 'id="change-get-pets"' in html


class TestListItems:
    """Tests for the list item rule."""

    def test_change_classes(self):
        """Should class list items by their change keyword."""
        html = markdown_to_html("- `title` changed to *'b'*\n- `x` added **(💔 breaking)**\n")

        assert '<li class="change-modification">' in html
        assert '<li class="breaking-change" data-breaking="true">' in html
        assert '<strong class="breaking-change">(💔 breaking)</strong>' in html

    def test_unknown_item(self):
        """Should leave the class empty for unclassified items."""
        assert '<li class="">' in markdown_to_html("- Response `200`:\n")


class TestCodeSpans:
    """Tests for the code span rule."""

    def test_status_code(self):
        """Should add the HTTP status class to status code spans."""
        html = markdown_to_html("- Response `404`:\n")
        assert '<code class="property-name http-400">404</code>' in html

    def test_component_reference(self):
        """Should mark JSON pointers as component references."""
        html = markdown_to_html("Uses `#/components/schemas/Pet`\n")
        assert '<code class="property-name component-reference">#/components/schemas/Pet</code>' in html

    def test_operation_path_escaped(self):
        """Should escape operation paths inside the path element."""
        html = markdown_to_html('Path `/a"b`\n', config_with(enable_object_icons=False))
        assert '<pb33f-render-operation-path path="/a&quot;b"></pb33f-render-operation-path>' in html

    def test_custom_renderer(self):
        """Should delegate code spans to a custom element renderer."""

        class KbdRenderer:
            def render(self, element_type, content, metadata):
                return f'<kbd class="{metadata["classes"]}">{content}</kbd>'

        config = default_render_config()
        config.custom = CustomConfig(element_renderers={"code-span": KbdRenderer()})

        html = markdown_to_html("text `name` here\n", config)
        assert html == '<p>text <kbd class="property-name">name</kbd> here</p>\n'


class TestObjectIcons:
    """Tests for icon injection in text before code spans."""

    def test_top_level_parameter(self):
        """Should replace the label with location and icon in top-level items."""
        html = markdown_to_html("- Query Parameter `page` added\n")

        assert (
            'Query <pb33f-model-icon icon="parameter" size="tiny"></pb33f-model-icon> '
            '<code class="property-name">page</code> added'
        ) in html
        assert "Query Parameter" not in html

    def test_nested_label_kept(self):
        """Should keep the label text after the icon in nested items."""
        html = markdown_to_html("- Response `200`:\n  - Header `X-Rate`:\n")

        assert (
            '<pb33f-model-icon icon="header" size="tiny"></pb33f-model-icon> Header '
            '<code class="property-name">X-Rate</code>'
        ) in html

    def test_reference_link(self):
        """Should replace the reference text with an arrow icon."""
        html = markdown_to_html(
            "- Parameter `limit`: See referenced component `#/components/parameters/Limit`\n"
        )

        assert (
            '<sl-icon name="arrow-right" class="reflink"></sl-icon>'
            '<code class="property-name component-reference">#/components/parameters/Limit</code>'
        ) in html
        assert "See referenced component" not in html

    def test_icons_disabled(self):
        """Should leave labels alone when icons are off."""
        html = markdown_to_html(
            "- Query Parameter `page` added\n", config_with(enable_object_icons=False)
        )
        assert "Query Parameter <code" in html
        assert "pb33f-model-icon" not in html


class TestLinks:
    """Tests for the link rule."""

    def test_external_link(self):
        """Should open external links in a new tab."""
        html = markdown_to_html("[docs](https://example.com)\n")
        assert (
            '<a href="https://example.com" class="doc-link" '
            'target="_blank" rel="noopener noreferrer">docs</a>'
        ) in html

    def test_internal_link(self):
        """Should not add a target to document-local links."""
        html = markdown_to_html("[top](#top)\n")
        assert '<a href="#top" class="doc-link">top</a>' in html


class TestFencedCode:
    """Tests for the fenced code block rule."""

    def test_wrapped_in_div(self):
        """Should wrap code blocks in a language-tagged div by default."""
        html = markdown_to_html("```yaml\na: 1\n```\n")
        assert html == (
            '<div class="code-block" data-language="yaml">'
            '<pre><code class="language-yaml">a: 1\n</code></pre></div>'
        )

    def test_nested_list_fix_drops_div(self):
        """Should leave the bare <pre> when the nested list fix is on."""
        html = markdown_to_html("```yaml\na: 1\n```\n", config_with(enable_nested_list_fix=True))
        assert html == '<pre><code class="language-yaml">a: 1\n</code></pre>'

    def test_header_generator(self):
        """Should emit the header inside the wrapper div."""
        config = default_render_config()
        config.code_block = CodeBlockConfig(header_generator=lambda lang: f"<header>{lang}</header>")

        html = markdown_to_html("```json\n{}\n```\n", config)
        assert html.startswith('<div class="code-block" data-language="json"><header>json</header><pre>')

    def test_header_suppressed_with_nested_list_fix(self):
        """Should not emit the header when the wrapper div is suppressed."""
        config = config_with(enable_nested_list_fix=True)
        config.code_block = CodeBlockConfig(header_generator=lambda lang: f"<header>{lang}</header>")

        assert "<header>" not in markdown_to_html("```json\n{}\n```\n", config)

    def test_code_stays_in_list_item(self):
        """Should keep an indented fence inside its list item."""
        html = markdown_to_html(
            "- Extension `x-a` added:\n  \n  ```json\n  {}\n  ```\n",
            config_with(enable_nested_list_fix=True),
        )
        assert "</ul><pre>" not in html
        assert html.index("<pre>") < html.index("</li>")


class TestTables:
    """Tests for the table rules."""

    def test_classes_and_alignment(self):
        """Should apply table classes and cell alignment."""
        html = markdown_to_html("| Object | Total |\n|---|:-:|\n| Info | 1 |\n")

        assert '<table class="change-table">' in html
        assert '<thead class="table-header">' in html
        assert '<tr class="table-row">' in html
        assert "<th>Object</th>" in html
        assert '<th align="center">Total</th>' in html
        assert "<td>Info</td>" in html
        assert '<td align="center">1</td>' in html


class TestRendererOptions:
    """Tests for parser options."""

    def test_hard_wraps(self):
        """Should turn soft breaks into <br> with hard wraps on."""
        assert markdown_to_html("a\nb\n", config_with(hard_wraps=True)) == "<p>a<br>\nb</p>\n"

    def test_soft_breaks(self):
        assert markdown_to_html("a\nb\n") == "<p>a\nb</p>\n"

    def test_xhtml_output(self):
        """Should self-close void elements in XHTML mode."""
        assert markdown_to_html("---\n", config_with(xhtml_output=True)) == "<hr />\n"

    def test_raw_html_escaped_by_default(self):
        """Should escape raw HTML unless it is allowed."""
        html = markdown_to_html("<!-- pb33f-example-start:a -->\n")
        assert "&lt;!-- pb33f-example-start:a --&gt;" in html

    def test_raw_html_allowed(self):
        html = markdown_to_html("<!-- pb33f-example-start:a -->\n", config_with(allow_raw_html=True))
        assert html == "<!-- pb33f-example-start:a -->\n"

    def test_default_config(self):
        """Should fall back to the default config when none is given."""
        assert ChangeHTMLRenderer().config.html.heading_id_prefix == "change-"

    def test_missing_sections(self):
        """Should render with a config that has no sections."""
        html = ChangeHTMLRenderer(RenderConfig(html=HTMLConfig())).render("- `a` added\n")
        assert '<li class="">' in html
