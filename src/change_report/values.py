"""
Structured value formatting.

Detects JSON, YAML and XML inside change values, pretty-prints them and
wraps them in fenced code blocks. JSON values are converted to YAML when the
source document is YAML so the report reads in the document's own format.
Every parse failure falls back to the original text as plain text.
"""

import json
import logging
from enum import Enum
from typing import Any, Optional, Tuple, Union
from xml.etree import ElementTree

import yaml


logger = logging.getLogger(__name__)


class DataFormat(str, Enum):
    """Format of a structured value; the value is the code fence language."""

    PLAIN_TEXT = ""
    JSON = "json"
    YAML = "yaml"
    XML = "xml"


def detect_format(value: str) -> DataFormat:
    """Guess the structured format of a value from its shape."""
    if not value:
        return DataFormat.PLAIN_TEXT

    trimmed = value.strip()

    if (
        "\n" in trimmed
        and (": " in trimmed or ":\n" in trimmed)
        and not trimmed.startswith(("{", "["))
    ):
        return DataFormat.YAML

    if (trimmed.startswith("{") and trimmed.endswith("}")) or (
        trimmed.startswith("[") and trimmed.endswith("]")
    ):
        return DataFormat.JSON

    if trimmed.startswith("<") and trimmed.endswith(">"):
        return DataFormat.XML

    return DataFormat.PLAIN_TEXT


def _dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False)


def _dump_yaml(data: Any) -> str:
    try:
        dumped = yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=True)
    except TypeError:
        # mixed key types (e.g. 200 and "default") cannot be ordered
        dumped = yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
    return dumped.rstrip("\n")


def _pretty_json(value: str) -> Optional[str]:
    try:
        return _dump_json(json.loads(value))
    except ValueError as exc:
        logger.debug("Value is not valid JSON: %s", exc)
        return None


def _pretty_yaml(value: str) -> Optional[str]:
    try:
        return _dump_yaml(yaml.safe_load(value))
    except yaml.YAMLError as exc:
        logger.debug("Value is not valid YAML: %s", exc)
        return None


def _check_xml(value: str) -> Optional[str]:
    try:
        ElementTree.fromstring(value)
    except ElementTree.ParseError as exc:
        logger.debug("Value is not well-formed XML: %s", exc)
        return None
    return value


_PRETTY_PRINTERS = {
    DataFormat.JSON: _pretty_json,
    DataFormat.YAML: _pretty_yaml,
    DataFormat.XML: _check_xml,
}


def pretty_print(value: str) -> Tuple[str, DataFormat]:
    """Pretty-print a structured value.

    Returns:
        Tuple of (formatted text, detected format); (value, PLAIN_TEXT) when
        the value is not structured or fails to parse
    """
    data_format = detect_format(value)
    printer = _PRETTY_PRINTERS.get(data_format)
    if printer is not None:
        formatted = printer(value)
        if formatted is not None:
            return formatted, data_format
    return value, DataFormat.PLAIN_TEXT


def format_as_code_block(value: str, data_format: DataFormat) -> str:
    return f"```{data_format.value}\n{value}\n```"


def indent_code_block(code_block: str, indent_spaces: int) -> str:
    """Prefix every line of a code block with indent_spaces spaces."""
    if indent_spaces <= 0:
        return code_block
    indent = " " * indent_spaces
    return "\n".join(indent + line for line in code_block.split("\n"))


def should_format_as_block(value: str) -> bool:
    return bool(value) and detect_format(value) != DataFormat.PLAIN_TEXT


def format_extension_value(value: str) -> Tuple[str, bool]:
    """Format a value as a code block when it is structured."""
    if not should_format_as_block(value):
        return value, False
    pretty, data_format = pretty_print(value)
    return format_as_code_block(pretty, data_format), True


def convert_json_to_yaml(value: str) -> Optional[str]:
    """Re-emit a JSON document as YAML, or None when it is not valid JSON."""
    try:
        data = json.loads(value)
    except ValueError as exc:
        logger.debug("Cannot convert invalid JSON to YAML: %s", exc)
        return None
    return _dump_yaml(data)


def format_extension_value_with_target_format(
    value: str,
    target_format: DataFormat,
) -> Tuple[str, bool]:
    """Format a value as a code block in the source document's format.

    JSON values are converted to YAML when the target is YAML; any other
    structured value is pretty-printed in its own format.

    Returns:
        Tuple of (text, is_code_block)
    """
    value_format = detect_format(value)
    if value_format == DataFormat.PLAIN_TEXT:
        return value, False

    if value_format == DataFormat.JSON and target_format == DataFormat.YAML:
        converted = convert_json_to_yaml(value)
        if converted is not None:
            return format_as_code_block(converted, DataFormat.YAML), True

    pretty = _PRETTY_PRINTERS[value_format](value)
    if pretty is None:
        pretty = value
    return format_as_code_block(pretty, value_format), True


def format_encoded_value(value: str, target_format: DataFormat) -> Tuple[str, bool]:
    """Format a serialized complex value.

    Behaves like format_extension_value_with_target_format, and additionally
    treats a single-line YAML mapping or sequence (such as "amount: 49.99\\n")
    as YAML, since encoded fields always hold serialized values.
    """
    formatted, is_block = format_extension_value_with_target_format(value, target_format)
    if is_block:
        return formatted, True
    try:
        data = yaml.safe_load(value)
    except yaml.YAMLError:
        return value, False
    if isinstance(data, (dict, list)) and data:
        return format_as_code_block(_dump_yaml(data), DataFormat.YAML), True
    return value, False


def detect_document_format(content: Union[bytes, str, None]) -> DataFormat:
    """Detect whether a whole document is JSON or YAML (PLAIN_TEXT when empty)."""
    if not content:
        return DataFormat.PLAIN_TEXT
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    trimmed = content.strip()
    if not trimmed:
        return DataFormat.PLAIN_TEXT
    if trimmed[0] in "{[":
        return DataFormat.JSON
    return DataFormat.YAML


def format_value(value: str) -> str:
    """Render a scalar inline: "(empty)" for blanks, newlines folded into spaces."""
    if value == "":
        return "(empty)"
    if "\n" in value:
        return " ".join(value.replace("\n", " ").split())
    return value


def is_serialized_object(value: str) -> bool:
    """True for JSON-looking object text that names a name, description or type."""
    trimmed = value.strip()
    if not trimmed.startswith("{"):
        return False
    return '"name"' in trimmed or '"description"' in trimmed or '"type"' in trimmed
