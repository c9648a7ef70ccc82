"""In-memory representation of GraphQL schema declarations."""

from __future__ import annotations

import enum
import typing
from dataclasses import dataclass, field
from typing import List


class TypeModifier(enum.IntFlag):
    # When combining non-null and list modifiers, NON_NULL only refers to
    # the items inside the list while NON_NULL_LIST refers to the list.
    NONE = 0
    NON_NULL = enum.auto()
    LIST = enum.auto()
    NON_NULL_LIST = enum.auto()


@dataclass
class Argument:
    name: str
    type_name: str
    modifiers: TypeModifier = TypeModifier.NONE
    default: str = ""


@dataclass
class Field:
    name: str
    type_name: str
    modifiers: TypeModifier = TypeModifier.NONE
    arguments: List[Argument] = field(default_factory=list)
    directives: List[str] = field(default_factory=list)
    description: str = ""


@dataclass
class Scalar:
    name: str
    description: str = ""


@dataclass
class Object:
    name: str
    fields: List[Field] = field(default_factory=list)
    description: str = ""


@dataclass
class ExtendObject:
    name: str
    fields: List[Field] = field(default_factory=list)
    description: str = ""


@dataclass
class Input:
    name: str
    fields: List[Field] = field(default_factory=list)
    description: str = ""


@dataclass
class EnumValue:
    name: str
    directives: List[str] = field(default_factory=list)
    description: str = ""


@dataclass
class Enum:
    name: str
    values: List[EnumValue] = field(default_factory=list)
    description: str = ""


@dataclass
class Union:
    name: str
    type_names: List[str] = field(default_factory=list)
    description: str = ""


Type = typing.Union[Scalar, Object, ExtendObject, Input, Enum, Union]

SCALAR_INT = Scalar("Int")
SCALAR_FLOAT = Scalar("Float")
SCALAR_STRING = Scalar("String")
SCALAR_BOOLEAN = Scalar("Boolean")

DIRECTIVE_DEPRECATED = "deprecated"
