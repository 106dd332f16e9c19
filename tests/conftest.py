"""
Root pytest configuration and shared builders.

Builders keep test change trees short: make_change() fills the context from
line/column keywords, and the fixtures assemble small but realistic
documents (a pet store sharing a parameter and a schema between sites).
"""

from typing import Any, Optional

import pytest

from change_report.model import (
    Change,
    ChangeContext,
    ChangeKind,
    ComponentsChanges,
    DocumentChanges,
    ExtensionChanges,
    InfoChanges,
    MediaTypeChanges,
    OperationChanges,
    ParameterChanges,
    PathItemChanges,
    PathsChanges,
    RequestBodyChanges,
    ResponseChanges,
    ResponsesChanges,
    SchemaChanges,
)


def make_change(
    prop: str,
    kind: ChangeKind = ChangeKind.MODIFIED,
    original: str = "",
    new: str = "",
    breaking: bool = False,
    line: int = 0,
    column: int = 0,
    original_line: int = 0,
    original_column: int = 0,
    path: str = "",
    new_object: Any = None,
    original_object: Any = None,
    new_encoded: str = "",
    original_encoded: str = "",
) -> Change:
    """Build a Change; line/column populate the new side of the context."""
    context: Optional[ChangeContext] = None
    if line or column or original_line or original_column:
        context = ChangeContext(
            original_line=original_line or None,
            original_column=original_column or None,
            new_line=line or None,
            new_column=column or None,
        )
    return Change(
        property=prop,
        change_type=kind,
        breaking=breaking,
        original=original,
        new=new,
        original_encoded=original_encoded,
        new_encoded=new_encoded,
        original_object=original_object,
        new_object=new_object,
        path=path,
        context=context,
    )


def document_with_operation(
    operation: OperationChanges,
    path: str = "/pets",
    method: str = "get",
) -> DocumentChanges:
    """Wrap a single operation in paths -> path item -> document."""
    item = PathItemChanges()
    setattr(item, method, operation)
    return DocumentChanges(paths=PathsChanges(path_items={path: item}))


@pytest.fixture
def pet_schema_changes():
    """Changes to the shared Pet schema, reached through a $ref."""
    return SchemaChanges(
        changes=[
            make_change(
                "name",
                ChangeKind.PROPERTY_REMOVED,
                original="string",
                breaking=True,
                original_line=42,
                original_column=9,
            ),
        ],
        reference="#/components/schemas/Pet",
    )


@pytest.fixture
def limit_parameter_changes():
    """Changes to the shared limit parameter, reached through a $ref."""
    return ParameterChanges(
        name="limit",
        changes=[
            make_change("required", original="false", new="true", breaking=True, line=20, column=9),
        ],
        reference="#/components/parameters/Limit",
    )


@pytest.fixture
def pet_store_changes(pet_schema_changes, limit_parameter_changes):
    """A document touching info, two operations, components and extensions."""
    listing = OperationChanges(
        changes=[
            make_change("summary", original="List pets", new="List all pets", line=12, column=7),
        ],
        parameters=[limit_parameter_changes],
        responses=ResponsesChanges(
            responses={
                "404": ResponseChanges(
                    changes=[
                        make_change(
                            "description",
                            ChangeKind.PROPERTY_REMOVED,
                            original="Not found",
                            breaking=True,
                            original_line=18,
                            original_column=11,
                        ),
                    ],
                ),
            },
        ),
    )
    create = OperationChanges(
        parameters=[limit_parameter_changes],
        request_body=RequestBodyChanges(
            content={
                "application/json": MediaTypeChanges(
                    changes=[
                        make_change(
                            "example",
                            ChangeKind.PROPERTY_ADDED,
                            new='{"name": "Rex"}',
                            line=30,
                            column=11,
                        ),
                    ],
                ),
            },
        ),
    )
    return DocumentChanges(
        info=InfoChanges(
            changes=[make_change("title", original="Pets", new="Pet Store", line=3, column=10)],
        ),
        paths=PathsChanges(
            path_items={"/pets": PathItemChanges(get=listing, post=create)},
        ),
        components=ComponentsChanges(
            schemas={"Pet": pet_schema_changes},
        ),
        extensions=ExtensionChanges(
            changes=[make_change("x-owner", ChangeKind.PROPERTY_ADDED, new="team-a", line=5)],
        ),
    )
