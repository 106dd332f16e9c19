"""
Change tree consumed by the renderers.

The tree is produced elsewhere by diffing two versions of an OpenAPI document.
This module fixes its shape: atomic Change records grouped into containers
that all share the Changeable capability (property changes, recursive
changes, totals and an optional $ref pointer).

It also defines the narrow view of the document model used to recover
object kinds and names from line numbers, and the ChangeNode tree used by
the terminal tree renderer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Iterator, List, Optional, Protocol, Tuple


logger = logging.getLogger(__name__)


HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD", "TRACE", "QUERY")


# =============================================================================
# Change records
# =============================================================================


class ChangeKind(IntEnum):
    """Kind of an atomic change, numbered like the change-tree producer."""

    MODIFIED = 1
    PROPERTY_ADDED = 2
    OBJECT_ADDED = 3
    OBJECT_REMOVED = 4
    PROPERTY_REMOVED = 5

    @property
    def is_addition(self) -> bool:
        return self in (ChangeKind.PROPERTY_ADDED, ChangeKind.OBJECT_ADDED)

    @property
    def is_removal(self) -> bool:
        return self in (ChangeKind.PROPERTY_REMOVED, ChangeKind.OBJECT_REMOVED)

    @property
    def is_object(self) -> bool:
        return self in (ChangeKind.OBJECT_ADDED, ChangeKind.OBJECT_REMOVED)


@dataclass
class ChangeContext:
    """Source positions of a change on both sides of the diff."""

    original_line: Optional[int] = None
    original_column: Optional[int] = None
    new_line: Optional[int] = None
    new_column: Optional[int] = None

    def line(self) -> int:
        """Line on the new side, falling back to the original side (0 if unknown)."""
        if self.new_line is not None:
            return self.new_line
        if self.original_line is not None:
            return self.original_line
        return 0


@dataclass
class Change:
    """A single atomic change.

    Plain fields carry scalars; the *_encoded fields carry a serialized form
    (JSON or YAML) of complex values. The *_object fields hold the model
    object on each side when the producer has one.
    """

    property: str = ""
    change_type: ChangeKind = ChangeKind.MODIFIED
    breaking: bool = False
    original: str = ""
    new: str = ""
    original_encoded: str = ""
    new_encoded: str = ""
    original_object: Any = None
    new_object: Any = None
    path: str = ""
    context: Optional[ChangeContext] = None

    def line(self) -> int:
        return self.context.line() if self.context is not None else 0


def find_line_number(changes: List[Change]) -> int:
    """Return the first known line among changes, or 0."""
    for change in changes:
        line = change.line()
        if line:
            return line
    return 0


# =============================================================================
# Changeable containers
# =============================================================================


@dataclass
class PropertyChanges:
    """Base container implementing the Changeable capability.

    Subclasses list their nested containers in _children(); maps are walked
    in key order so every derived list is deterministic.
    """

    changes: List[Change] = field(default_factory=list)
    reference: str = ""

    def property_changes(self) -> List[Change]:
        return list(self.changes)

    def _children(self) -> Iterator[Optional["PropertyChanges"]]:
        return iter(())

    def walk(self) -> Iterator["PropertyChanges"]:
        """Yield this container and every nested container, depth first."""
        yield self
        for child in self._children():
            if child is not None:
                yield from child.walk()

    def all_changes(self) -> List[Change]:
        collected = list(self.changes)
        for child in self._children():
            if child is not None:
                collected.extend(child.all_changes())
        return collected

    def total_changes(self) -> int:
        return len(self.all_changes())

    def total_breaking(self) -> int:
        return sum(1 for change in self.all_changes() if change.breaking)

    def change_reference(self) -> str:
        return self.reference


def _sorted_values(mapping: Dict[str, Any]) -> Iterator[Any]:
    for key in sorted(mapping):
        yield mapping[key]


@dataclass
class ExtensionChanges(PropertyChanges):
    """Changes to x- extension properties."""


@dataclass
class ContactChanges(PropertyChanges):
    pass


@dataclass
class LicenseChanges(PropertyChanges):
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield self.extensions


@dataclass
class InfoChanges(PropertyChanges):
    contact: Optional[ContactChanges] = None
    license: Optional[LicenseChanges] = None
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield self.contact
        yield self.license
        yield self.extensions


@dataclass
class ServerVariableChanges(PropertyChanges):
    pass


@dataclass
class ServerChanges(PropertyChanges):
    server: Optional["Server"] = None
    variables: Dict[str, ServerVariableChanges] = field(default_factory=dict)
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield from _sorted_values(self.variables)
        yield self.extensions


@dataclass
class ExternalDocChanges(PropertyChanges):
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield self.extensions


@dataclass
class TagChanges(PropertyChanges):
    external_docs: Optional[ExternalDocChanges] = None
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield self.external_docs
        yield self.extensions


@dataclass
class SecurityRequirementChanges(PropertyChanges):
    pass


@dataclass
class SchemaChanges(PropertyChanges):
    properties: Dict[str, "SchemaChanges"] = field(default_factory=dict)
    items: Optional["SchemaChanges"] = None
    all_of: List["SchemaChanges"] = field(default_factory=list)
    any_of: List["SchemaChanges"] = field(default_factory=list)
    one_of: List["SchemaChanges"] = field(default_factory=list)
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield from _sorted_values(self.properties)
        yield self.items
        yield from self.all_of
        yield from self.any_of
        yield from self.one_of
        yield self.extensions


@dataclass
class ExampleChanges(PropertyChanges):
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield self.extensions


@dataclass
class HeaderChanges(PropertyChanges):
    schema: Optional[SchemaChanges] = None
    examples: Dict[str, ExampleChanges] = field(default_factory=dict)
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield self.schema
        yield from _sorted_values(self.examples)
        yield self.extensions


@dataclass
class LinkChanges(PropertyChanges):
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield self.extensions


@dataclass
class ParameterChanges(PropertyChanges):
    name: str = ""
    schema: Optional[SchemaChanges] = None
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield self.schema
        yield self.extensions


@dataclass
class MediaTypeChanges(PropertyChanges):
    schema: Optional[SchemaChanges] = None
    examples: Dict[str, ExampleChanges] = field(default_factory=dict)
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield self.schema
        yield from _sorted_values(self.examples)
        yield self.extensions


@dataclass
class RequestBodyChanges(PropertyChanges):
    content: Dict[str, MediaTypeChanges] = field(default_factory=dict)
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield from _sorted_values(self.content)
        yield self.extensions


@dataclass
class ResponseChanges(PropertyChanges):
    headers: Dict[str, HeaderChanges] = field(default_factory=dict)
    content: Dict[str, MediaTypeChanges] = field(default_factory=dict)
    links: Dict[str, LinkChanges] = field(default_factory=dict)
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield from _sorted_values(self.headers)
        yield from _sorted_values(self.content)
        yield from _sorted_values(self.links)
        yield self.extensions


@dataclass
class ResponsesChanges(PropertyChanges):
    responses: Dict[str, ResponseChanges] = field(default_factory=dict)
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield from _sorted_values(self.responses)
        yield self.extensions


@dataclass
class CallbackChanges(PropertyChanges):
    expressions: Dict[str, "PathItemChanges"] = field(default_factory=dict)
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield from _sorted_values(self.expressions)
        yield self.extensions


@dataclass
class OperationChanges(PropertyChanges):
    parameters: List[ParameterChanges] = field(default_factory=list)
    external_docs: Optional[ExternalDocChanges] = None
    servers: List[ServerChanges] = field(default_factory=list)
    request_body: Optional[RequestBodyChanges] = None
    responses: Optional[ResponsesChanges] = None
    callbacks: Dict[str, CallbackChanges] = field(default_factory=dict)
    security: List[SecurityRequirementChanges] = field(default_factory=list)
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield from self.parameters
        yield self.external_docs
        yield from self.servers
        yield self.request_body
        yield self.responses
        yield from _sorted_values(self.callbacks)
        yield from self.security
        yield self.extensions


@dataclass
class PathItemChanges(PropertyChanges):
    get: Optional[OperationChanges] = None
    post: Optional[OperationChanges] = None
    put: Optional[OperationChanges] = None
    delete: Optional[OperationChanges] = None
    patch: Optional[OperationChanges] = None
    options: Optional[OperationChanges] = None
    head: Optional[OperationChanges] = None
    trace: Optional[OperationChanges] = None
    query: Optional[OperationChanges] = None
    servers: List[ServerChanges] = field(default_factory=list)
    parameters: List[ParameterChanges] = field(default_factory=list)
    extensions: Optional[ExtensionChanges] = None

    def operations(self) -> List[Tuple[str, Optional[OperationChanges]]]:
        """Return (METHOD, changes) pairs in the fixed HTTP method order."""
        return [(method, getattr(self, method.lower())) for method in HTTP_METHODS]

    def _children(self):
        for _, operation in self.operations():
            yield operation
        yield from self.servers
        yield from self.parameters
        yield self.extensions


WebhookChanges = PathItemChanges


@dataclass
class PathsChanges(PropertyChanges):
    path_items: Dict[str, PathItemChanges] = field(default_factory=dict)
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield from _sorted_values(self.path_items)
        yield self.extensions


@dataclass
class SecuritySchemeChanges(PropertyChanges):
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield self.extensions


@dataclass
class ComponentsChanges(PropertyChanges):
    schemas: Dict[str, SchemaChanges] = field(default_factory=dict)
    security_schemes: Dict[str, SecuritySchemeChanges] = field(default_factory=dict)
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield from _sorted_values(self.schemas)
        yield from _sorted_values(self.security_schemes)
        yield self.extensions


@dataclass
class DocumentChanges(PropertyChanges):
    """Root of the change tree."""

    info: Optional[InfoChanges] = None
    servers: List[ServerChanges] = field(default_factory=list)
    security: List[SecurityRequirementChanges] = field(default_factory=list)
    tags: List[TagChanges] = field(default_factory=list)
    external_docs: Optional[ExternalDocChanges] = None
    paths: Optional[PathsChanges] = None
    webhooks: Dict[str, WebhookChanges] = field(default_factory=dict)
    components: Optional[ComponentsChanges] = None
    extensions: Optional[ExtensionChanges] = None

    def _children(self):
        yield self.info
        yield from self.servers
        yield from self.security
        yield from self.tags
        yield self.external_docs
        yield self.paths
        yield from _sorted_values(self.webhooks)
        yield self.components
        yield self.extensions


@dataclass
class ChangeStatistics:
    """Counts of additions, modifications and removals across a change set."""

    additions: int = 0
    modifications: int = 0
    removals: int = 0

    @classmethod
    def from_changes(cls, changes: List[Change]) -> "ChangeStatistics":
        stats = cls()
        for change in changes:
            if change.change_type.is_addition:
                stats.additions += 1
            elif change.change_type.is_removal:
                stats.removals += 1
            elif change.change_type == ChangeKind.MODIFIED:
                stats.modifications += 1
        return stats


# =============================================================================
# Document model view
# =============================================================================


@dataclass
class Info:
    title: str = ""


@dataclass
class Contact:
    name: str = ""


@dataclass
class License:
    name: str = ""


@dataclass
class Tag:
    name: str = ""


@dataclass
class Operation:
    operation_id: str = ""


@dataclass
class Parameter:
    name: str = ""
    location: str = ""


@dataclass
class Schema:
    name: str = ""


@dataclass
class Response:
    code: str = ""


@dataclass
class RequestBody:
    description: str = ""


@dataclass
class Header:
    name: str = ""


@dataclass
class MediaType:
    name: str = ""


@dataclass
class PathItem:
    path: str = ""


@dataclass
class Server:
    url: str = ""


@dataclass
class SecurityScheme:
    name: str = ""


@dataclass
class Callback:
    name: str = ""


@dataclass
class Link:
    name: str = ""


@dataclass
class Example:
    name: str = ""


@dataclass
class ExternalDoc:
    url: str = ""


_MODEL_KINDS = (
    (Info, "info"),
    (Contact, "contact"),
    (License, "license"),
    (Tag, "tag"),
    (Operation, "operation"),
    (Parameter, "parameter"),
    (Schema, "schema"),
    (Response, "response"),
    (RequestBody, "requestBody"),
    (Header, "header"),
    (MediaType, "mediaType"),
    (PathItem, "path"),
    (Server, "server"),
    (SecurityScheme, "securityScheme"),
    (Callback, "callback"),
    (Link, "link"),
    (Example, "example"),
    (ExternalDoc, "externalDoc"),
)


def model_kind(value: Any) -> Optional[str]:
    """Return the kind string for a document-model object, or None."""
    for model_type, kind in _MODEL_KINDS:
        if isinstance(value, model_type):
            return kind
    return None


class ModelNode(Protocol):
    """A located node in the document model."""

    parent: Optional["ModelNode"]

    def value(self) -> Any:
        ...


class Locator(Protocol):
    """Maps a line of the new document back to the model nodes on it."""

    def locate_by_line(self, line: int) -> List[ModelNode]:
        ...


@dataclass
class LocatedNode:
    """Simple ModelNode holding a model object and an optional parent."""

    obj: Any = None
    parent: Optional["LocatedNode"] = None

    def value(self) -> Any:
        return self.obj


class LineLocator:
    """In-memory Locator keyed by line number."""

    def __init__(self, nodes: Optional[Dict[int, List[Any]]] = None):
        self._nodes: Dict[int, List[Any]] = {}
        for line, entries in (nodes or {}).items():
            for entry in entries:
                self.add(line, entry)

    def add(self, line: int, entry: Any) -> None:
        node = entry if hasattr(entry, "value") and callable(entry.value) else LocatedNode(entry)
        self._nodes.setdefault(line, []).append(node)

    def locate_by_line(self, line: int) -> List[ModelNode]:
        return list(self._nodes.get(line, []))


def locate(locator: Optional[Locator], line: int) -> List[ModelNode]:
    """Run a locator lookup, treating any failure as "nothing found"."""
    if locator is None or line <= 0:
        return []
    try:
        return list(locator.locate_by_line(line) or [])
    except Exception as exc:  # locator failures only degrade labels
        logger.debug("Locator lookup failed for line %d: %s", line, exc)
        return []


# =============================================================================
# Tree view
# =============================================================================


@dataclass(eq=False)
class ChangeNode:
    """A node of the change tree as shown by the tree renderer.

    Attributes:
        label: Display label (falls back to type)
        type: Object type of the node
        changes: Containers whose property changes are listed under the node
        children: Child nodes
    """

    label: str = ""
    type: str = ""
    changes: List[PropertyChanges] = field(default_factory=list)
    children: List["ChangeNode"] = field(default_factory=list)
