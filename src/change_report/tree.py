"""
Terminal tree view of a change tree.

TreeRenderer draws a ChangeNode tree with box-drawing characters, one line
per node followed by one line per property change. build_change_tree() turns
a DocumentChanges into such a node tree, sectioned like the Markdown report.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from change_report.colors import ColorScheme, NoColorScheme
from change_report.model import (
    Change,
    ChangeKind,
    ChangeNode,
    ComponentsChanges,
    DocumentChanges,
    OperationChanges,
    PathItemChanges,
    PropertyChanges,
    SchemaChanges,
    ServerChanges,
    TagChanges,
)
from change_report.symbols import TREE_EMPTY, TREE_VERTICAL, branch_symbol, get_symbols


logger = logging.getLogger(__name__)


@dataclass
class TreeConfig:
    """Options for the tree renderer.

    Attributes:
        use_emojis: Emoji change symbols when True, ASCII ([M] [+] [-]) otherwise
        show_line_numbers: Append " (line:col)" after property names
        show_statistics: Append " (N changes, M breaking)" to nodes
        color_scheme: Colorizer for terminal output; None renders plain text
    """

    use_emojis: bool = True
    show_line_numbers: bool = True
    show_statistics: bool = False
    color_scheme: Optional[ColorScheme] = None


class TreeRenderer:
    """Renders one ChangeNode tree.

    Subtree statistics are computed in a single post-order pass and cached
    by node identity for the lifetime of the renderer.
    """

    def __init__(self, root: Optional[ChangeNode], config: Optional[TreeConfig] = None):
        self.root = root
        self.config = config or TreeConfig()
        self.symbols = get_symbols(self.config.use_emojis)
        self.colors: ColorScheme = self.config.color_scheme or NoColorScheme()
        self._stats: Dict[int, Tuple[int, int]] = {}

    def render(self) -> str:
        if self.root is None:
            return ""

        if self.config.show_statistics:
            self.compute_stats(self.root)

        out: List[str] = []
        children = self.root.children
        for i, child in enumerate(children):
            self._render_node(out, child, "", i == len(children) - 1)
        return "".join(out)

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def compute_stats(self, node: Optional[ChangeNode]) -> Tuple[int, int]:
        """Return (total, breaking) for the subtree rooted at node."""
        if node is None:
            return 0, 0
        cached = self._stats.get(id(node))
        if cached is not None:
            return cached

        total = 0
        breaking = 0
        for change in node_property_changes(node):
            total += 1
            if change.breaking:
                breaking += 1

        for child in node.children:
            child_total, child_breaking = self.compute_stats(child)
            total += child_total
            breaking += child_breaking

        self._stats[id(node)] = (total, breaking)
        return total, breaking

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _render_node(self, out: List[str], node: Optional[ChangeNode], prefix: str, is_last: bool) -> None:
        if node is None:
            return

        changes = node_property_changes(node)
        has_items = bool(changes) or bool(node.children)

        out.append(prefix)
        out.append(self.colors.tree_branch(branch_symbol(is_last, has_items)))
        out.append(node_label(node))

        if self.config.show_statistics:
            total, breaking = self._stats.get(id(node), (0, 0))
            if total > 0:
                if breaking > 0:
                    text = f" ({total} changes, {breaking} breaking)"
                else:
                    text = f" ({total} changes)"
                out.append(self.colors.statistics(text))
        out.append("\n")

        child_prefix = prefix + self.colors.tree_branch(TREE_EMPTY if is_last else TREE_VERTICAL)

        for i, change in enumerate(changes):
            last_item = i == len(changes) - 1 and not node.children
            self._render_change(out, change, child_prefix, last_item)

        for i, child in enumerate(node.children):
            self._render_node(out, child, child_prefix, i == len(node.children) - 1)

    def _render_change(self, out: List[str], change: Optional[Change], prefix: str, is_last: bool) -> None:
        if change is None:
            return

        out.append(prefix)
        out.append(self.colors.tree_branch(branch_symbol(is_last, False)))
        out.append(self._change_symbol(change))
        out.append(" ")
        out.append(change.property)

        if self.config.show_line_numbers:
            line, column = change_location(change)
            if line > 0:
                out.append(self.colors.location_info(f" ({line}:{column})"))

        if change.breaking:
            out.append(" ")
            out.append(self.colors.breaking(self.symbols.breaking))
        out.append("\n")

    def _change_symbol(self, change: Change) -> str:
        kind = change.change_type
        if kind.is_addition:
            return self.colors.addition(self.symbols.added)
        if kind.is_removal:
            return self.colors.removal(self.symbols.removed)
        return self.colors.modification(self.symbols.modified)


def node_label(node: ChangeNode) -> str:
    return node.label or node.type or "Unknown"


def node_property_changes(node: ChangeNode) -> List[Change]:
    collected: List[Change] = []
    for container in node.changes:
        if container is not None:
            collected.extend(container.property_changes())
    return collected


def change_location(change: Change) -> Tuple[int, int]:
    """(line, column) of a change; removals point into the original document."""
    ctx = change.context
    if ctx is None:
        return 0, 0
    if change.change_type in (ChangeKind.PROPERTY_REMOVED, ChangeKind.OBJECT_REMOVED):
        return ctx.original_line or 0, ctx.original_column or 0
    return ctx.new_line or 0, ctx.new_column or 0


def render_tree(node: Optional[ChangeNode], config: Optional[TreeConfig] = None) -> str:
    """Render a change node tree as box-drawing text."""
    return TreeRenderer(node, config).render()


# =============================================================================
# Change tree to node tree
# =============================================================================


def _flat(label: str, node_type: str, container: Optional[PropertyChanges]) -> Optional[ChangeNode]:
    """Node listing every change of a container subtree directly."""
    if container is None or not container.total_changes():
        return None
    return ChangeNode(label=label, type=node_type, changes=list(container.walk()))


def _group(label: str, node_type: str, children: List[Optional[ChangeNode]]) -> Optional[ChangeNode]:
    kept = [child for child in children if child is not None]
    if not kept:
        return None
    return ChangeNode(label=label, type=node_type, children=kept)


def _server_label(server: ServerChanges) -> str:
    if server.server is not None and server.server.url:
        return server.server.url
    for change in server.property_changes():
        if change.property == "url" and (change.new or change.original):
            return change.new or change.original
    return "Server"


def _tag_label(tag: TagChanges) -> str:
    for change in tag.property_changes():
        if change.change_type.is_object and change.property and change.property != "tags":
            return change.property
    return "Tag"


def _schema_node(name: str, schema: Optional[SchemaChanges]) -> Optional[ChangeNode]:
    if schema is None or not schema.total_changes():
        return None
    children: List[Optional[ChangeNode]] = [
        _schema_node(prop, child) for prop, child in sorted(schema.properties.items())
    ]
    children.append(_schema_node("items", schema.items))
    for keyword, variants in (("allOf", schema.all_of), ("anyOf", schema.any_of), ("oneOf", schema.one_of)):
        for i, variant in enumerate(variants):
            children.append(_schema_node(f"{keyword}[{i}]", variant))
    children.append(_flat("Extensions", "extension", schema.extensions))
    return ChangeNode(
        label=name,
        type="schema",
        changes=[schema],
        children=[child for child in children if child is not None],
    )


def _operation_node(method: str, operation: Optional[OperationChanges]) -> Optional[ChangeNode]:
    if operation is None or not operation.total_changes():
        return None

    children: List[Optional[ChangeNode]] = [
        _group(
            "Parameters",
            "parameter",
            [_flat(param.name or "Parameter", "parameter", param) for param in operation.parameters],
        ),
    ]
    if operation.request_body is not None:
        body = operation.request_body
        children.append(
            _group(
                "Request Body",
                "requestBody",
                [_flat("Request Body", "requestBody", PropertyChanges(changes=body.changes))]
                + [_flat(media, "mediaType", content) for media, content in sorted(body.content.items())]
                + [_flat("Extensions", "extension", body.extensions)],
            )
        )
    if operation.responses is not None:
        responses = operation.responses
        children.append(
            _group(
                "Responses",
                "response",
                [_flat("Responses", "response", PropertyChanges(changes=responses.changes))]
                + [_flat(code, "response", response) for code, response in sorted(responses.responses.items())]
                + [_flat("Extensions", "extension", responses.extensions)],
            )
        )
    children.append(
        _group(
            "Callbacks",
            "callback",
            [_flat(name, "callback", callback) for name, callback in sorted(operation.callbacks.items())],
        )
    )
    children.append(
        _group(
            "Servers",
            "server",
            [_flat(_server_label(server), "server", server) for server in operation.servers],
        )
    )
    children.append(_flat("Security", "security", _merged(operation.security)))
    children.append(_flat("External Docs", "externalDoc", operation.external_docs))
    children.append(_flat("Extensions", "extension", operation.extensions))

    return ChangeNode(
        label=method,
        type="operation",
        changes=[operation],
        children=[child for child in children if child is not None],
    )


def _merged(containers: List[PropertyChanges]) -> Optional[PropertyChanges]:
    if not containers:
        return None
    merged = PropertyChanges()
    for container in containers:
        merged.changes.extend(container.all_changes())
    return merged


def _path_item_node(name: str, node_type: str, item: Optional[PathItemChanges]) -> Optional[ChangeNode]:
    if item is None or not item.total_changes():
        return None
    children: List[Optional[ChangeNode]] = [
        _operation_node(method, operation) for method, operation in item.operations()
    ]
    children.append(
        _group(
            "Parameters",
            "parameter",
            [_flat(param.name or "Parameter", "parameter", param) for param in item.parameters],
        )
    )
    children.append(
        _group("Servers", "server", [_flat(_server_label(s), "server", s) for s in item.servers])
    )
    children.append(_flat("Extensions", "extension", item.extensions))
    return ChangeNode(
        label=name,
        type=node_type,
        changes=[item],
        children=[child for child in children if child is not None],
    )


def _components_node(components: Optional[ComponentsChanges]) -> Optional[ChangeNode]:
    if components is None or not components.total_changes():
        return None
    children: List[Optional[ChangeNode]] = [
        _group(
            "Schemas",
            "schema",
            [_schema_node(name, schema) for name, schema in sorted(components.schemas.items())],
        ),
        _group(
            "Security Schemes",
            "securityScheme",
            [
                _flat(name, "securityScheme", scheme)
                for name, scheme in sorted(components.security_schemes.items())
            ],
        ),
        _flat("Extensions", "extension", components.extensions),
    ]
    return ChangeNode(
        label="Components",
        type="components",
        changes=[components],
        children=[child for child in children if child is not None],
    )


def build_change_tree(document_changes: Optional[DocumentChanges]) -> ChangeNode:
    """Build the node tree for a document's changes.

    The returned root is labelled "Document"; the renderer starts from its
    children, which follow the report sections in order.
    """
    root = ChangeNode(label="Document", type="document")
    if document_changes is None:
        return root

    doc = document_changes
    sections: List[Optional[ChangeNode]] = []

    if doc.info is not None and doc.info.total_changes():
        sections.append(
            ChangeNode(
                label="Info",
                type="info",
                changes=[doc.info],
                children=[
                    child
                    for child in (
                        _flat("Contact", "contact", doc.info.contact),
                        _flat("License", "license", doc.info.license),
                        _flat("Extensions", "extension", doc.info.extensions),
                    )
                    if child is not None
                ],
            )
        )

    sections.append(
        _group("Servers", "server", [_flat(_server_label(s), "server", s) for s in doc.servers])
    )
    sections.append(_flat("Security", "security", _merged(doc.security)))
    sections.append(_group("Tags", "tag", [_flat(_tag_label(tag), "tag", tag) for tag in doc.tags]))
    sections.append(_flat("External Docs", "externalDoc", doc.external_docs))

    if doc.paths is not None:
        sections.append(
            _group(
                "Paths",
                "paths",
                [_flat("Paths", "paths", PropertyChanges(changes=doc.paths.changes))]
                + [
                    _path_item_node(path, "pathItem", item)
                    for path, item in sorted(doc.paths.path_items.items())
                ]
                + [_flat("Extensions", "extension", doc.paths.extensions)],
            )
        )

    sections.append(
        _group(
            "Webhooks",
            "webhook",
            [_path_item_node(name, "webhook", item) for name, item in sorted(doc.webhooks.items())],
        )
    )
    sections.append(_components_node(doc.components))
    sections.append(_flat("Extensions", "extension", doc.extensions))

    if doc.changes:
        sections.insert(0, _flat("Document", "document", PropertyChanges(changes=list(doc.changes))))
    root.children = [section for section in sections if section is not None]
    logger.debug("Built change tree with %d sections", len(root.children))
    return root
