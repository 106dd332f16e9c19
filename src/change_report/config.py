"""
Render configuration for change reports.

A RenderConfig is split into sections that are consumed by different stages:

1. breaking: badge, CSS class and data attribute used for breaking changes
2. styling: CSS classes for property names and change kinds
3. code_block: fenced code block wrapper and optional header generator
4. html: heading, link, table and layout options for the HTML overlay
5. custom: per-element renderer hooks

Configs can be built in code, loaded from a plain mapping with
RenderConfig.from_dict() (for example a parsed TOML or YAML section),
and layered with merge_configs().
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol


logger = logging.getLogger(__name__)


class ElementRenderer(Protocol):
    """Hook that renders one HTML element type in place of the built-in rule."""

    def render(self, element_type: str, content: str, metadata: Dict[str, str]) -> str:
        ...


HeaderGenerator = Callable[[str], str]


class NestedListFixStrategy(str, Enum):
    """How fenced code blocks are kept inside their enclosing list items.

    Only INLINE changes rendering; EXTRACT and FLATTEN are reserved.
    """

    INLINE = "inline"
    EXTRACT = "extract"
    FLATTEN = "flatten"


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _merge_string(base: str, override: str) -> str:
    return override if override else base


@dataclass
class BreakingConfig:
    """Presentation of breaking changes.

    Attributes:
        badge: Short badge text for breaking changes
        css_class: CSS class applied to breaking list items and emphasis
        data_attr: Attribute set to "true" on breaking list items
    """

    badge: str = "💔"
    css_class: str = "breaking-change"
    data_attr: str = "data-breaking"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BreakingConfig":
        defaults = cls()
        return cls(
            badge=str(data.get("badge", defaults.badge)),
            css_class=str(data.get("class", data.get("css_class", defaults.css_class))),
            data_attr=str(data.get("data_attr", defaults.data_attr)),
        )


@dataclass
class StylingConfig:
    """CSS classes for property names and change kinds."""

    property_name_class: str = "property-name"
    property_name_prefix: str = "`"
    property_name_suffix: str = "`"
    addition_class: str = "change-addition"
    modification_class: str = "change-modification"
    removal_class: str = "change-removal"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StylingConfig":
        defaults = cls()
        return cls(
            property_name_class=str(data.get("property_name_class", defaults.property_name_class)),
            property_name_prefix=str(data.get("property_name_prefix", defaults.property_name_prefix)),
            property_name_suffix=str(data.get("property_name_suffix", defaults.property_name_suffix)),
            addition_class=str(data.get("addition_class", defaults.addition_class)),
            modification_class=str(data.get("modification_class", defaults.modification_class)),
            removal_class=str(data.get("removal_class", defaults.removal_class)),
        )


@dataclass
class CodeBlockConfig:
    """Fenced code block options.

    Attributes:
        enable_syntax_highlighting: Reserved flag for client-side highlighting
        css_class: Class of the wrapper div around <pre>
        header_generator: Callable returning header HTML for a language
    """

    enable_syntax_highlighting: bool = False
    css_class: str = "code-block"
    header_generator: Optional[HeaderGenerator] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CodeBlockConfig":
        defaults = cls()
        return cls(
            enable_syntax_highlighting=_parse_bool(data.get("enable_syntax_highlighting", False)),
            css_class=str(data.get("class", data.get("css_class", defaults.css_class))),
        )


@dataclass
class HTMLConfig:
    """Options for the HTML overlay and the post-processor.

    Attributes:
        external_links_new_tab: Open http(s) links in a new tab
        link_class: Class added to every <a>
        heading_id_prefix: Prefix of generated heading ids
        heading_class: Class added to every heading
        add_heading_anchors: Wrap heading content in a self-link
        table_class: Class of <table>
        table_header_class: Class of <thead>
        table_row_class: Class of <tr>
        wrap_sections_in_divs: Reserved layout flag
        section_div_class: Reserved class for section wrappers
        allow_raw_html: Pass raw HTML in the Markdown through
        xhtml_output: Emit XHTML-style void elements
        hard_wraps: Render soft line breaks as <br>
        enable_object_icons: Inject model icons before object labels
        enable_nested_list_fix: Keep code blocks inside list items and emit example markers
        nested_list_fix_strategy: Strategy used by the nested list fix
        enable_floating_sidebar: Move the summary into a sidebar aside
        sidebar_width: Reserved width hint for the sidebar
    """

    external_links_new_tab: bool = True
    link_class: str = "doc-link"
    heading_id_prefix: str = "change-"
    heading_class: str = "change-heading"
    add_heading_anchors: bool = True
    table_class: str = "change-table"
    table_header_class: str = "table-header"
    table_row_class: str = "table-row"
    wrap_sections_in_divs: bool = False
    section_div_class: str = "change-section"
    allow_raw_html: bool = False
    xhtml_output: bool = False
    hard_wraps: bool = False
    enable_object_icons: bool = True
    enable_nested_list_fix: bool = False
    nested_list_fix_strategy: NestedListFixStrategy = NestedListFixStrategy.INLINE
    enable_floating_sidebar: bool = False
    sidebar_width: str = ""

    _STRING_FIELDS = (
        "link_class",
        "heading_id_prefix",
        "heading_class",
        "table_class",
        "table_header_class",
        "table_row_class",
        "section_div_class",
        "sidebar_width",
    )
    _BOOL_FIELDS = (
        "external_links_new_tab",
        "add_heading_anchors",
        "wrap_sections_in_divs",
        "allow_raw_html",
        "xhtml_output",
        "hard_wraps",
        "enable_object_icons",
        "enable_nested_list_fix",
        "enable_floating_sidebar",
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HTMLConfig":
        defaults = cls()
        values: Dict[str, Any] = {}
        for name in cls._STRING_FIELDS:
            values[name] = str(data.get(name, getattr(defaults, name)))
        for name in cls._BOOL_FIELDS:
            values[name] = _parse_bool(data.get(name, getattr(defaults, name)))
        strategy = data.get("nested_list_fix_strategy", defaults.nested_list_fix_strategy.value)
        try:
            values["nested_list_fix_strategy"] = NestedListFixStrategy(str(strategy).lower())
        except ValueError:
            logger.debug("Unknown nested list fix strategy %r, using inline", strategy)
            values["nested_list_fix_strategy"] = NestedListFixStrategy.INLINE
        return cls(**values)


@dataclass
class CustomConfig:
    """Per-element renderer hooks keyed by element type ("code-span", "code-block")."""

    element_renderers: Dict[str, ElementRenderer] = field(default_factory=dict)


@dataclass
class RenderConfig:
    """Complete render configuration. A section left as None is skipped by its consumer."""

    breaking: Optional[BreakingConfig] = None
    styling: Optional[StylingConfig] = None
    code_block: Optional[CodeBlockConfig] = None
    html: Optional[HTMLConfig] = None
    custom: Optional[CustomConfig] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RenderConfig":
        """Create config from a mapping of sections.

        Args:
            data: Dict with optional breaking/styling/code_block/html sections

        Returns:
            RenderConfig instance; absent sections take their defaults
        """
        return cls(
            breaking=BreakingConfig.from_dict(data.get("breaking") or {}),
            styling=StylingConfig.from_dict(data.get("styling") or {}),
            code_block=CodeBlockConfig.from_dict(data.get("code_block") or {}),
            html=HTMLConfig.from_dict(data.get("html") or {}),
            custom=CustomConfig(),
        )


def default_render_config() -> RenderConfig:
    """Return a fresh config populated with the default of every section."""
    return RenderConfig(
        breaking=BreakingConfig(),
        styling=StylingConfig(),
        code_block=CodeBlockConfig(),
        html=HTMLConfig(),
        custom=CustomConfig(),
    )


# =============================================================================
# Merging
# =============================================================================


def merge_configs(
    base: Optional[RenderConfig],
    override: Optional[RenderConfig],
) -> Optional[RenderConfig]:
    """Layer override on top of base.

    Non-empty override strings win, booleans always take the override value,
    and element renderers are unioned with the override winning on conflicts.
    A missing side returns the other unchanged.
    """
    if override is None:
        return base
    if base is None:
        return override

    return RenderConfig(
        breaking=_merge_breaking(base.breaking, override.breaking),
        styling=_merge_styling(base.styling, override.styling),
        code_block=_merge_code_block(base.code_block, override.code_block),
        html=_merge_html(base.html, override.html),
        custom=_merge_custom(base.custom, override.custom),
    )


def _merge_breaking(base, override):
    if override is None:
        return base
    if base is None:
        return override
    if not (override.badge or override.css_class or override.data_attr):
        return base
    return BreakingConfig(
        badge=_merge_string(base.badge, override.badge),
        css_class=_merge_string(base.css_class, override.css_class),
        data_attr=_merge_string(base.data_attr, override.data_attr),
    )


def _merge_styling(base, override):
    if override is None:
        return base
    if base is None:
        return override
    names = (
        "property_name_class",
        "property_name_prefix",
        "property_name_suffix",
        "addition_class",
        "modification_class",
        "removal_class",
    )
    if not any(getattr(override, name) for name in names):
        return base
    return StylingConfig(
        **{name: _merge_string(getattr(base, name), getattr(override, name)) for name in names}
    )


def _merge_code_block(base, override):
    if override is None:
        return base
    if base is None:
        return override
    return CodeBlockConfig(
        enable_syntax_highlighting=override.enable_syntax_highlighting,
        css_class=_merge_string(base.css_class, override.css_class),
        header_generator=override.header_generator or base.header_generator,
    )


def _merge_html(base, override):
    if override is None:
        return base
    if base is None:
        return override

    strings_unset = not any(getattr(override, name) for name in HTMLConfig._STRING_FIELDS)
    flags_equal = all(
        getattr(override, name) == getattr(base, name) for name in HTMLConfig._BOOL_FIELDS
    ) and override.nested_list_fix_strategy == base.nested_list_fix_strategy
    if strings_unset and flags_equal:
        return base

    merged = replace(override)
    for name in HTMLConfig._STRING_FIELDS:
        setattr(merged, name, _merge_string(getattr(base, name), getattr(override, name)))
    return merged


def _merge_custom(base, override):
    if override is None:
        return base
    if base is None:
        return override
    renderers = dict(base.element_renderers or {})
    renderers.update(override.element_renderers or {})
    return CustomConfig(element_renderers=renderers)
