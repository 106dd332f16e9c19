"""
Reference analysis and collection.

analyze_reference() parses a JSON pointer ($ref) into its component kind and
name. collect_referenced_changes() walks a change tree once and groups every
container carrying a $ref by its pointer, recording each place it is used so
the report can print the component's changes exactly once.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import cmp_to_key
from typing import Dict, List, Optional

from change_report.model import (
    Change,
    DocumentChanges,
    OperationChanges,
    PathItemChanges,
    PropertyChanges,
    find_line_number,
)


logger = logging.getLogger(__name__)


class ReferenceType(str, Enum):
    """Kind of component a reference points at, in report order."""

    SCHEMA = "schema"
    PARAMETER = "parameter"
    HEADER = "header"
    RESPONSE = "response"
    REQUEST_BODY = "requestBody"
    SECURITY_SCHEME = "securityScheme"
    EXAMPLE = "example"
    LINK = "link"
    CALLBACK = "callback"
    OTHER = "other"

    @property
    def title(self) -> str:
        return _TYPE_TITLES[self]


_TYPE_TITLES = {
    ReferenceType.SCHEMA: "Schemas",
    ReferenceType.PARAMETER: "Parameters",
    ReferenceType.HEADER: "Headers",
    ReferenceType.RESPONSE: "Responses",
    ReferenceType.REQUEST_BODY: "Request Bodies",
    ReferenceType.SECURITY_SCHEME: "Security Schemes",
    ReferenceType.EXAMPLE: "Examples",
    ReferenceType.LINK: "Links",
    ReferenceType.CALLBACK: "Callbacks",
    ReferenceType.OTHER: "Other References",
}

_COMPONENT_KINDS = {
    "schemas": ReferenceType.SCHEMA,
    "parameters": ReferenceType.PARAMETER,
    "headers": ReferenceType.HEADER,
    "responses": ReferenceType.RESPONSE,
    "requestBodies": ReferenceType.REQUEST_BODY,
    "securitySchemes": ReferenceType.SECURITY_SCHEME,
    "examples": ReferenceType.EXAMPLE,
    "links": ReferenceType.LINK,
    "callbacks": ReferenceType.CALLBACK,
}

# Swagger 2 top-level sections
_LEGACY_KINDS = (
    ("#/definitions/", ReferenceType.SCHEMA),
    ("#/parameters/", ReferenceType.PARAMETER),
    ("#/responses/", ReferenceType.RESPONSE),
)


@dataclass
class ReferenceInfo:
    """Parsed form of a $ref pointer.

    Attributes:
        full_path: The reference exactly as written
        type: Kind of component referenced
        component: Component name (or the whole pointer for unknown shapes)
        file_path: File part of a remote reference
        is_local: Reference starts with "#/"
        is_remote: Reference names another file
    """

    full_path: str
    type: ReferenceType = ReferenceType.OTHER
    component: str = ""
    file_path: str = ""
    is_local: bool = False
    is_remote: bool = False


@dataclass
class UsageLocation:
    """A place in the document where a referenced component is used."""

    path: str
    description: str = ""
    line_number: int = 0


@dataclass
class ReferencedChange:
    """Changes of one referenced component and every site that uses it."""

    reference: ReferenceInfo
    changes: List[Change] = field(default_factory=list)
    used_in: List[UsageLocation] = field(default_factory=list)

    def sorted_usages(self) -> List[UsageLocation]:
        return sort_usage_locations(self.used_in)


ReferencedChanges = Dict[ReferenceType, Dict[str, ReferencedChange]]


def analyze_reference(ref: str) -> Optional[ReferenceInfo]:
    """Parse a JSON pointer reference.

    Args:
        ref: Reference such as "#/components/schemas/Pet" or "pet.yaml#/Pet"

    Returns:
        ReferenceInfo, or None for an empty reference
    """
    if not ref:
        return None

    info = ReferenceInfo(full_path=ref)
    pointer = ref

    if ref.startswith("#/"):
        info.is_local = True
    else:
        info.is_remote = True
        if "#" in ref:
            file_path, fragment = ref.split("#", 1)
            info.file_path = file_path
            pointer = "#" + fragment

    if pointer.startswith("#/components/"):
        kind, sep, name = pointer[len("#/components/"):].partition("/")
        if sep:
            info.type = _COMPONENT_KINDS.get(kind, ReferenceType.OTHER)
            info.component = name
        return info

    for prefix, ref_type in _LEGACY_KINDS:
        if pointer.startswith(prefix):
            info.type = ref_type
            info.component = pointer[len(prefix):]
            return info

    info.type = ReferenceType.OTHER
    info.component = pointer
    return info


def sort_usage_locations(locations: List[UsageLocation]) -> List[UsageLocation]:
    """Order usages by line number when both are known, else by path."""
    return sorted(locations, key=cmp_to_key(_compare_usages))


def _compare_usages(a: UsageLocation, b: UsageLocation) -> int:
    if a.line_number and b.line_number:
        return a.line_number - b.line_number
    return (a.path > b.path) - (a.path < b.path)


# =============================================================================
# Collection
# =============================================================================


class _Collector:
    """Accumulates referenced changes during one walk."""

    def __init__(self) -> None:
        self.referenced: ReferencedChanges = {}

    def add(self, changes: Optional[PropertyChanges], site: str, description: str) -> None:
        if changes is None:
            return
        ref = changes.change_reference()
        info = analyze_reference(ref)
        if info is None:
            return

        property_changes = changes.property_changes()
        # a reference wrapper without changes of its own is not a change
        if not property_changes:
            return

        bucket = self.referenced.setdefault(info.type, {})

        entry = bucket.get(info.full_path)
        if entry is None:
            entry = ReferencedChange(reference=info, changes=property_changes)
            bucket[info.full_path] = entry
        entry.used_in.append(
            UsageLocation(
                path=site,
                description=description,
                line_number=find_line_number(property_changes),
            )
        )

    def path_item(self, name: str, label: str, item: Optional[PathItemChanges]) -> None:
        if item is None:
            return
        site = f"{label} `{name}`"
        if item.change_reference():
            self.add(item, site, "PathItem")
            return
        for param in item.parameters:
            self.add(param, site, "Parameter")
        for method, operation in item.operations():
            self.operation(f"{name} {method}", operation)

    def operation(self, site: str, operation: Optional[OperationChanges]) -> None:
        if operation is None or operation.total_changes() == 0:
            return

        for param in operation.parameters:
            self.add(param, site, "Parameter")

        if operation.external_docs is not None:
            self.add(operation.external_docs, site, "External Documentation")

        for server in operation.servers:
            self.add(server, site, "Server")

        body = operation.request_body
        if body is not None:
            self.add(body, site, "Request Body")
            for media_type in sorted(body.content):
                media = body.content[media_type]
                self.add(media, site, f"Request Body, Media Type `{media_type}`")
                for example in sorted(media.examples):
                    self.add(
                        media.examples[example],
                        site,
                        f"Request Body, Media Type `{media_type}`, Example `{example}`",
                    )

        if operation.responses is not None:
            for code in sorted(operation.responses.responses):
                response = operation.responses.responses[code]
                self.add(response, site, f"Response `{code}`")
                for header in sorted(response.headers):
                    self.add(
                        response.headers[header],
                        site,
                        f"Response `{code}`, Header `{header}`",
                    )
                for media_type in sorted(response.content):
                    media = response.content[media_type]
                    self.add(media, site, f"Response `{code}`, Media Type `{media_type}`")
                    for example in sorted(media.examples):
                        self.add(
                            media.examples[example],
                            site,
                            f"Response `{code}`, Media Type `{media_type}`, Example `{example}`",
                        )
                for link in sorted(response.links):
                    self.add(response.links[link], site, f"Response `{code}`, Link `{link}`")

        for name in sorted(operation.callbacks):
            self.add(operation.callbacks[name], site, f"Callback `{name}`")


def collect_referenced_changes(document: Optional[DocumentChanges]) -> ReferencedChanges:
    """Group every referenced container in the tree by reference type and pointer.

    Returns:
        Mapping of ReferenceType to {full pointer: ReferencedChange}; types
        and pointers without changes are absent
    """
    if document is None:
        return {}

    collector = _Collector()

    if document.paths is not None:
        for path in sorted(document.paths.path_items):
            collector.path_item(path, "Path", document.paths.path_items[path])

    for name in sorted(document.webhooks):
        collector.path_item(name, "Webhook", document.webhooks[name])

    if document.components is not None:
        for name in sorted(document.components.schemas):
            collector.add(document.components.schemas[name], "Components", f"Schema `{name}`")
        for name in sorted(document.components.security_schemes):
            collector.add(
                document.components.security_schemes[name],
                "Components",
                f"Security Scheme `{name}`",
            )

    referenced = {ref_type: bucket for ref_type, bucket in collector.referenced.items() if bucket}
    logger.debug(
        "Collected %d referenced components",
        sum(len(bucket) for bucket in referenced.values()),
    )
    return referenced
