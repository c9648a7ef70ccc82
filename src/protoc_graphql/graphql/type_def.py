"""Render GraphQL declarations in schema definition language (SDL).

Rendering is a pure function of the declarations: fields and values are
written in the order they were appended and never re-sorted.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Sequence

from jinja2 import Environment, FileSystemLoader

from protoc_graphql.graphql.types import (
    Argument,
    Enum,
    EnumValue,
    ExtendObject,
    Field,
    Input,
    Object,
    Scalar,
    Type,
    TypeModifier,
    Union,
)

_INDENT = "  "


@lru_cache(maxsize=None)
def _get_template_env() -> Environment:
    template_dir = Path(__file__).parent.parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def type_def(graphql_type: Type) -> str:
    """Return the SDL representation of a single declaration."""
    if isinstance(graphql_type, Scalar):
        return _render("scalar.graphql.j2", name=graphql_type.name,
                       description=description_lines(graphql_type.description))
    if isinstance(graphql_type, Object):
        return _type_def_fields("type", graphql_type)
    if isinstance(graphql_type, ExtendObject):
        return _type_def_fields("extend type", graphql_type)
    if isinstance(graphql_type, Input):
        return _type_def_fields("input", graphql_type)
    if isinstance(graphql_type, Enum):
        return _type_def_enum(graphql_type)
    if isinstance(graphql_type, Union):
        return _render("union.graphql.j2", name=graphql_type.name,
                       type_names=graphql_type.type_names,
                       description=description_lines(graphql_type.description))
    raise TypeError(f"unsupported GraphQL declaration: {graphql_type!r}")


def schema_def(types: Sequence[Type]) -> str:
    """Render declarations separated by blank lines, ending with a newline."""
    if not types:
        return ""
    return _render("schema.graphql.j2", definitions=[type_def(t) for t in types])


def type_ref(type_name: str, modifiers: TypeModifier) -> str:
    """Apply list and non-null modifiers to a type name, e.g. `[Foo!]!`."""
    ref = type_name
    if modifiers & TypeModifier.NON_NULL:
        ref += "!"
    if modifiers & TypeModifier.LIST:
        ref = f"[{ref}]"
        if modifiers & TypeModifier.NON_NULL_LIST:
            ref += "!"
    return ref


def field_def(field: Field) -> str:
    definition = field.name
    if field.arguments:
        definition += "(" + ", ".join(argument_def(a) for a in field.arguments) + ")"
    definition += ": " + type_ref(field.type_name, field.modifiers)
    for directive in field.directives:
        definition += " @" + directive
    return definition


def argument_def(argument: Argument) -> str:
    definition = f"{argument.name}: {type_ref(argument.type_name, argument.modifiers)}"
    if argument.default:
        definition += " = " + argument.default
    return definition


def enum_value_def(value: EnumValue) -> str:
    definition = value.name
    for directive in value.directives:
        definition += " @" + directive
    return definition


def description_lines(description: str, indent: str = "") -> List[str]:
    """Return the lines of a block string, without trailing whitespace on blank lines."""
    if not description:
        return []

    lines = [indent + '"""']
    for line in description.replace('"""', '\\"""').split("\n"):
        lines.append(indent + line if line.strip() else "")
    lines.append(indent + '"""')
    return lines


def _type_def_fields(keyword: str, graphql_type) -> str:
    fields: List[Dict] = [
        {
            "definition": field_def(f),
            "description": description_lines(f.description, _INDENT),
        }
        for f in graphql_type.fields
    ]
    return _render(
        "object.graphql.j2",
        keyword=keyword,
        name=graphql_type.name,
        fields=fields,
        description=description_lines(graphql_type.description),
    )


def _type_def_enum(enum: Enum) -> str:
    values: List[Dict] = [
        {
            "definition": enum_value_def(v),
            "description": description_lines(v.description, _INDENT),
        }
        for v in enum.values
    ]
    return _render(
        "enum.graphql.j2",
        name=enum.name,
        values=values,
        description=description_lines(enum.description),
    )


def _render(template_name: str, **context) -> str:
    return _get_template_env().get_template(template_name).render(**context)
