"""Build the descriptor tree for a protobuf file.

Nested messages and enums are flattened into per-file lists, each entry
keeping a reference to its enclosing message.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from google.protobuf import descriptor_pb2

from protoc_graphql.descriptor.comments import attach_comments
from protoc_graphql.descriptor.model import (
    Enum,
    EnumValue,
    Field,
    File,
    Message,
    Method,
    Oneof,
    Service,
)
from protoc_graphql.descriptor.options import OptionIndex, parse_foreign_key, parse_loader

logger = logging.getLogger(__name__)


def wrap_file(
    proto: descriptor_pb2.FileDescriptorProto,
    options: Optional[OptionIndex] = None,
) -> File:
    """Wrap a FileDescriptorProto into a navigable File tree."""
    if options is None:
        options = OptionIndex()

    file = File(proto=proto, options=options.for_file(proto.name))

    for service_proto in proto.service:
        _wrap_service(file, service_proto, options)
    for message_proto in proto.message_type:
        _wrap_message(file, message_proto, None, options)
    for enum_proto in proto.enum_type:
        _wrap_enum(file, enum_proto, None, options)
    attach_comments(file)

    logger.debug(
        "Wrapped %s: %d message(s), %d enum(s), %d service(s)",
        proto.name, len(file.messages), len(file.enums), len(file.services),
    )
    return file


def calculate_type_name(name: str, parent: Optional[Message]) -> List[str]:
    """Return the local name path from the outermost message to `name`."""
    parts = [name]
    while parent is not None:
        parts.append(parent.proto.name)
        parent = parent.parent
    parts.reverse()
    return parts


def full_name(package: str, type_name: List[str]) -> str:
    if not package:
        return "." + ".".join(type_name)
    return f".{package}.{'.'.join(type_name)}"


def _wrap_service(
    file: File,
    proto: descriptor_pb2.ServiceDescriptorProto,
    options: OptionIndex,
) -> None:
    type_name = [proto.name]
    service = Service(
        proto=proto,
        file=file,
        type_name=type_name,
        full_name=full_name(file.package, type_name),
    )
    service.options = options.for_service(service.full_name)

    for method_proto in proto.method:
        method_options = options.for_method(f"{service.full_name}.{method_proto.name}")
        method = Method(proto=method_proto, service=service, options=method_options)
        for value, many in ((method_options.load_one, False), (method_options.load_many, True)):
            loader = parse_loader(value, many)
            if loader is not None:
                method.loaders.append(loader)
        service.methods.append(method)

    file.services.append(service)


def _wrap_message(
    file: File,
    proto: descriptor_pb2.DescriptorProto,
    parent: Optional[Message],
    options: OptionIndex,
) -> None:
    type_name = calculate_type_name(proto.name, parent)
    message = Message(
        proto=proto,
        file=file,
        parent=parent,
        is_map=proto.options.map_entry,
        type_name=type_name,
        full_name=full_name(file.package, type_name),
    )
    file.messages.append(message)
    if parent is not None:
        parent.nested.append(message)

    _wrap_oneofs(message)
    _wrap_fields(message, options)
    for nested_proto in proto.nested_type:
        _wrap_message(file, nested_proto, message, options)
    for enum_proto in proto.enum_type:
        _wrap_enum(file, enum_proto, message, options)


def _is_oneof_member(field_proto: descriptor_pb2.FieldDescriptorProto) -> bool:
    # proto3 optional fields live in a synthetic oneof but are plain fields.
    return field_proto.HasField("oneof_index") and not field_proto.proto3_optional


def _wrap_oneofs(parent: Message) -> None:
    for index, oneof_proto in enumerate(parent.proto.oneof_decl):
        parent.oneofs.append(Oneof(proto=oneof_proto, parent=parent, index=index, synthetic=True))

    for field_proto in parent.proto.field:
        if _is_oneof_member(field_proto):
            parent.oneofs[field_proto.oneof_index].synthetic = False


def _wrap_fields(parent: Message, options: OptionIndex) -> None:
    seen_oneofs = set()
    for field_proto in parent.proto.field:
        field_options = options.for_field(f"{parent.full_name}.{field_proto.name}")
        field = Field(
            name=field_proto.name,
            parent=parent,
            proto=field_proto,
            options=field_options,
            foreign_key=parse_foreign_key(field_options.foreign_key),
        )

        if not _is_oneof_member(field_proto):
            parent.fields.append(field)
            continue

        # Members are recorded on their oneof; the effective field list only
        # gets a placeholder the first time the oneof is encountered.
        index = field_proto.oneof_index
        oneof = parent.oneofs[index]
        oneof.fields.append(field)
        if index in seen_oneofs:
            continue
        seen_oneofs.add(index)

        parent.fields.append(
            Field(name=oneof.name, parent=parent, is_oneof=True, oneof_index=index)
        )


def _wrap_enum(
    file: File,
    proto: descriptor_pb2.EnumDescriptorProto,
    parent: Optional[Message],
    options: OptionIndex,
) -> None:
    type_name = calculate_type_name(proto.name, parent)
    enum = Enum(
        proto=proto,
        file=file,
        parent=parent,
        type_name=type_name,
        full_name=full_name(file.package, type_name),
    )
    for value_proto in proto.value:
        enum.values.append(
            EnumValue(
                proto=value_proto,
                options=options.for_enum_value(f"{enum.full_name}.{value_proto.name}"),
            )
        )

    file.enums.append(enum)
    if parent is not None:
        parent.enums.append(enum)
