"""
Change descriptions.

Turns a single Change into the Markdown fragment shown in a report list item,
for example "Extension `x-retries` removed:" followed by a YAML code block, or
"Query Parameter `page` added". The fragment never carries the breaking
marker; callers append it so it can be placed after a code block.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from change_report.model import (
    Change,
    ChangeKind,
    Locator,
    ParameterChanges,
    Parameter,
    locate,
    model_kind,
)
from change_report.values import (
    DataFormat,
    format_encoded_value,
    format_extension_value_with_target_format,
    format_value,
    is_serialized_object,
)


logger = logging.getLogger(__name__)


OPERATION_PATH_METHODS = frozenset(
    ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS", "TRACE", "CONNECT", "QUERY")
)

_OBJECT_TYPE_NAMES = {
    "info": "Info",
    "contact": "Contact",
    "license": "License",
    "operation": "Operation",
    "parameter": "Parameter",
    "schema": "Schema",
    "response": "Response",
    "requestBody": "Request Body",
    "header": "Header",
    "mediaType": "Media Type",
    "path": "Path",
    "tag": "Tag",
    "security": "Security",
    "securityScheme": "Security",
    "server": "Server",
    "webhook": "Webhook",
    "callback": "Callback",
    "link": "Link",
    "example": "Example",
    "externalDoc": "External Doc",
    "extension": "Extension",
    "paths": "Paths",
    "components": "Component",
    "document": "Document",
}

# properties whose label gets an object-type prefix the HTML layer can iconify
_PROPERTY_PREFIXES = {
    "tags": "Tag",
    "servers": "Server:",
    "security": "Security",
    "externalDocs": "External Doc",
    "callbacks": "Callback",
    "requestBodies": "Request Bodies",
    "deprecated": "Deprecated",
    "responses": "Responses",
}

_EXAMPLE_LABEL = "Example `value`"


def format_object_type(object_type: str) -> str:
    """Display name for an internal object kind ("requestBody" -> "Request Body")."""
    name = _OBJECT_TYPE_NAMES.get(object_type)
    if name is not None:
        return name
    return object_type[:1].upper() + object_type[1:]


def format_operation_path(site: str) -> str:
    """Format a usage site such as "/pets/{id} GET" as "**GET** `/pets/{id}`".

    Sites that do not end in an HTTP method are emitted in bold, except bare
    paths, which become code spans.
    """
    if not site:
        return ""
    path, sep, method = site.rpartition(" ")
    if not sep:
        if site.startswith("/"):
            return f"`{site}`"
        return f"**{site}**"
    if method in OPERATION_PATH_METHODS:
        return f"**{method}** `{path}`"
    return f"**{site}**"


def capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def property_type_prefix(prop: str) -> str:
    return _PROPERTY_PREFIXES.get(prop, "")


@dataclass
class ParameterInfo:
    """Name and location (query, path, header, cookie) of a parameter."""

    name: str = ""
    location: str = ""


def _as_parameter(obj: Any) -> Optional[Parameter]:
    if isinstance(obj, Parameter):
        return obj
    # producers may hand over the whole parameter list that changed
    if isinstance(obj, (list, tuple)) and obj and isinstance(obj[0], Parameter):
        return obj[0]
    return None


def is_parameter_object_change(change: Optional[Change]) -> bool:
    """True when the change's model object is a Parameter."""
    if change is None:
        return False
    if change.new_object is not None:
        return isinstance(change.new_object, Parameter)
    if change.original_object is not None:
        return isinstance(change.original_object, Parameter)
    return False


class ChangeDescriber:
    """Builds list-item descriptions for changes of one document.

    Args:
        locator: Optional line lookup into the new document, used to recover
            object kinds and names the change record does not carry
        source_format: Format of the new document; JSON values are rendered
            as YAML when it is YAML
    """

    def __init__(
        self,
        locator: Optional[Locator] = None,
        source_format: DataFormat = DataFormat.PLAIN_TEXT,
    ):
        self.locator = locator
        self.source_format = source_format

    # -------------------------------------------------------------------------
    # Line lookups
    # -------------------------------------------------------------------------

    def located_values(self, line: int) -> List[Any]:
        return [node.value() for node in locate(self.locator, line)]

    def infer_change_type(self, change: Change) -> str:
        """Kind of the model object on the change's line, or "document"."""
        if self.locator is None or change.context is None:
            return "document"
        for value in self.located_values(change.line()):
            kind = model_kind(value)
            if kind is not None:
                return kind
        return "document"

    def extract_parameter_info(self, change: Change) -> ParameterInfo:
        param = _as_parameter(change.new_object) or _as_parameter(change.original_object)
        if param is not None:
            return ParameterInfo(name=param.name, location=param.location)

        info = ParameterInfo(name=change.new or change.original)
        for value in self.located_values(change.line()):
            if isinstance(value, Parameter):
                return ParameterInfo(name=value.name, location=value.location)
        return info

    def parameter_name(self, param: ParameterChanges) -> str:
        """Label for a parameter container, "Parameter `name`" when a name is found."""
        if param.name:
            return f"Parameter `{param.name}`"

        for change in param.property_changes():
            if change.property == "name":
                if change.new:
                    return f"Parameter `{change.new}`"
                if change.original:
                    return f"Parameter `{change.original}`"

        ref = param.change_reference()
        if "/parameters/" in ref:
            tail = ref.rsplit("/", 1)[-1]
            if tail:
                return f"Parameter `{tail}`"

        for change in param.all_changes():
            start = change.path.find("parameters['")
            if start == -1:
                continue
            start += len("parameters['")
            end = change.path.find("']", start)
            if end > start:
                return f"Parameter `{change.path[start:end]}`"

        if self.locator is not None:
            for change in param.all_changes():
                name = self._located_parameter_name(change.line())
                if name:
                    return f"Parameter `{name}`"

        return "Parameter"

    def _located_parameter_name(self, line: int) -> str:
        for node in locate(self.locator, line):
            current = node
            while current is not None:
                value = current.value()
                if isinstance(value, Parameter) and value.name:
                    return value.name
                current = getattr(current, "parent", None)
        return ""

    # -------------------------------------------------------------------------
    # Descriptions
    # -------------------------------------------------------------------------

    def describe(self, change: Change) -> Tuple[str, bool]:
        """Describe a change.

        Returns:
            Tuple of (markdown fragment, whether it contains a code block)
        """
        prop = change.property or "value"
        kind = change.change_type

        if prop in ("path", "schemas"):
            noun = "path" if prop == "path" else "schema"
            if kind.is_addition:
                if change.new:
                    return f"Added {noun} *'{format_value(change.new)}'*", False
                return f"Added {noun}", False
            if kind.is_removal:
                if change.original:
                    return f"Removed {noun} *'{format_value(change.original)}'*", False
                return f"Removed {noun}", False

        inferred = self.infer_change_type(change)
        if prop == "parameters" or is_parameter_object_change(change) or inferred == "parameter":
            return self._describe_parameter(change), False

        is_extension = prop.startswith("x-")
        if prop == "example":
            label = _EXAMPLE_LABEL
        elif is_extension:
            label = f"Extension `{prop}`"
        elif property_type_prefix(prop):
            label = f"{property_type_prefix(prop)} `{prop}`"
        elif kind.is_object and inferred != "document":
            label = f"{format_object_type(inferred)} `{prop}`"
        else:
            label = f"`{prop}`"

        if kind.is_addition:
            if change.new or change.new_encoded:
                if kind == ChangeKind.OBJECT_ADDED and is_serialized_object(change.new):
                    return f"{label} added", False
                return self._value_change(label, change, is_extension, "added", use_new=True)
            return f"{label} added", False

        if kind.is_removal:
            if change.original or change.original_encoded:
                if kind == ChangeKind.OBJECT_REMOVED and is_serialized_object(change.original):
                    return f"{label} removed", False
                return self._value_change(label, change, is_extension, "removed", use_new=False)
            return f"{label} removed", False

        if kind == ChangeKind.MODIFIED:
            if change.original or change.new or change.original_encoded or change.new_encoded:
                return self._value_change(label, change, is_extension, "changed to", use_new=True)
            return f"{label} modified", False

        return f"{label} changed", False

    def _describe_parameter(self, change: Change) -> str:
        info = self.extract_parameter_info(change)
        kind = change.change_type
        if not info.name:
            if kind.is_addition:
                return "Parameter added"
            if kind.is_removal:
                return "Parameter removed"
            return "Parameter modified"

        label = f"Parameter `{info.name}`"
        if info.location:
            label = f"{capitalize_first(info.location)} {label}"

        if kind.is_addition:
            return f"{label} added"
        if kind.is_removal:
            return f"{label} removed"
        if change.original and change.new:
            return (
                f"{label} changed from *'{format_value(change.original)}'* "
                f"to *'{format_value(change.new)}'*"
            )
        return f"{label} modified"

    def _value_change(
        self,
        label: str,
        change: Change,
        is_extension: bool,
        verb: str,
        use_new: bool,
    ) -> Tuple[str, bool]:
        if use_new:
            value, encoded = change.new, change.new_encoded
        else:
            value, encoded = change.original, change.original_encoded

        if encoded:
            formatted, is_block = format_encoded_value(encoded, self.source_format)
            if is_block:
                return f"{label} {verb}:\n\n{formatted}", True
            return f"{label} {verb} *'{format_value(encoded)}'*", False

        if is_extension:
            formatted, is_block = format_extension_value_with_target_format(
                value, self.source_format
            )
            if is_block:
                return f"{label} {verb}:\n\n{formatted}", True

        return f"{label} {verb} *'{format_value(value)}'*", False
