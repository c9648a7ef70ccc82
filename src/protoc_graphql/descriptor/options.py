"""GraphQL options attached to protobuf declarations.

Option values arrive already resolved and are looked up by the qualified
identity of the declaration they belong to:

  - files:                      the file name, e.g. "acme/user.proto"
  - messages, enums, services:  the full name, e.g. ".acme.User"
  - fields, enum values,
    methods:                    the parent full name plus the member name,
                                e.g. ".acme.User.team_id"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from protoc_graphql.errors import OptionError

OPERATION_QUERY = "query"
OPERATION_MUTATION = "mutation"
OPERATION_SUBSCRIPTION = "subscription"
OPERATION_NONE = "none"


@dataclass(frozen=True)
class FileOptions:
    namespace: str = ""


@dataclass(frozen=True)
class FieldOptions:
    foreign_key: str = ""


@dataclass(frozen=True)
class EnumValueOptions:
    name: str = ""
    skip: bool = False
    deprecated: bool = False


@dataclass(frozen=True)
class ServiceOptions:
    skip: bool = False


@dataclass(frozen=True)
class MethodOptions:
    operation: str = ""
    skip: bool = False
    load_one: str = ""
    load_many: str = ""


@dataclass(frozen=True)
class ForeignKey:
    """A field annotation pointing at the object a key field refers to."""

    # Fully qualified name starting with a '.' including the package name.
    full_name: str
    field_name: str


@dataclass(frozen=True)
class Loader:
    """Directive describing how to batch-load a message for a method."""

    # Fully qualified name starting with a '.' including the package name.
    full_name: str
    many: bool
    request_field_path: List[str]
    response_field_path: List[str]
    object_key_field_path: List[str]


@dataclass
class OptionIndex:
    """Resolved options for every annotated declaration of a compilation."""

    files: Dict[str, FileOptions] = field(default_factory=dict)
    fields: Dict[str, FieldOptions] = field(default_factory=dict)
    enum_values: Dict[str, EnumValueOptions] = field(default_factory=dict)
    services: Dict[str, ServiceOptions] = field(default_factory=dict)
    methods: Dict[str, MethodOptions] = field(default_factory=dict)

    def for_file(self, name: str) -> FileOptions:
        return self.files.get(name, FileOptions())

    def for_field(self, name: str) -> FieldOptions:
        return self.fields.get(name, FieldOptions())

    def for_enum_value(self, name: str) -> EnumValueOptions:
        return self.enum_values.get(name, EnumValueOptions())

    def for_service(self, name: str) -> ServiceOptions:
        return self.services.get(name, ServiceOptions())

    def for_method(self, name: str) -> MethodOptions:
        return self.methods.get(name, MethodOptions())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OptionIndex:
        """Build an index from plain mappings, e.g. a decoded JSON document.

        The top-level keys are "files", "fields", "enum_values", "services"
        and "methods"; each maps an identity to the keyword arguments of the
        matching options class.
        """
        kinds = {
            "files": FileOptions,
            "fields": FieldOptions,
            "enum_values": EnumValueOptions,
            "services": ServiceOptions,
            "methods": MethodOptions,
        }
        unknown = set(data) - set(kinds)
        if unknown:
            raise OptionError(f"unknown option sections: {sorted(unknown)}")

        index = cls()
        for kind, options_cls in kinds.items():
            table = getattr(index, kind)
            for identity, values in (data.get(kind) or {}).items():
                try:
                    table[identity] = options_cls(**values)
                except TypeError as e:
                    raise OptionError(f"invalid {kind} options for {identity}: {e}") from e
        return index


def _qualify(name: str) -> str:
    # Ensure that the type name is fully qualified with a preceding '.'.
    if not name.startswith("."):
        return "." + name
    return name


def parse_foreign_key(value: str) -> Optional[ForeignKey]:
    """Parse a "protobuf_type:field_name" annotation, None when unset."""
    if not value:
        return None

    parts = value.split(":")
    if len(parts) != 2:
        raise OptionError(
            f"Foreign key expected to have format 'protobuf_type:field_name', got {value}"
        )
    return ForeignKey(full_name=_qualify(parts[0]), field_name=parts[1])


def parse_loader(value: str, many: bool) -> Optional[Loader]:
    """Parse a "protobuf_type:request_path:response_path:object_key_path" loader."""
    if not value:
        return None

    parts = value.split(":")
    if len(parts) != 4:
        raise OptionError(
            "Loader expected to have format "
            "'protobuf_type:request_field_path:response_field_path:object_key_field_path', "
            f"got {value}"
        )
    return Loader(
        full_name=_qualify(parts[0]),
        many=many,
        request_field_path=parts[1].split("."),
        response_field_path=parts[2].split("."),
        object_key_field_path=parts[3].split("."),
    )
