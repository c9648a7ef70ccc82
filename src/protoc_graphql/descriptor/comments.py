"""Attach source comments to the descriptor tree.

protoc addresses each declaration with a path of integers: the first two
select a top-level declaration kind and its index, the rest recurse into
the declaration structurally. The numbers are field numbers of the
descriptor protos.
"""

from __future__ import annotations

from typing import Optional, Sequence

from google.protobuf import descriptor_pb2

from protoc_graphql.descriptor.model import Enum, Field, File, Message

# FileDescriptorProto
_FILE_MESSAGE = 4
_FILE_ENUM = 5
_FILE_SERVICE = 6
# DescriptorProto
_MESSAGE_FIELD = 2
_MESSAGE_NESTED = 3
_MESSAGE_ENUM = 4
_MESSAGE_ONEOF = 8
# EnumDescriptorProto
_ENUM_VALUE = 2
# ServiceDescriptorProto
_SERVICE_METHOD = 2

Location = descriptor_pb2.SourceCodeInfo.Location


def attach_comments(file: File) -> None:
    top_messages = [m for m in file.messages if m.parent is None]
    top_enums = [e for e in file.enums if e.parent is None]

    for location in file.proto.source_code_info.location:
        if not location.leading_comments and not location.trailing_comments:
            continue

        # At least 2 elements are needed to describe a definition: the
        # file's field number and the index within that field.
        path = list(location.path)
        if len(path) < 2:
            continue

        kind, index, rest = path[0], path[1], path[2:]
        if kind == _FILE_MESSAGE:
            _set_message_comments(top_messages[index], location, rest)
        elif kind == _FILE_ENUM:
            _set_enum_comments(top_enums[index], location, rest)
        elif kind == _FILE_SERVICE:
            service = file.services[index]
            if not rest:
                service.comments = combine_comments(location)
            elif rest[0] == _SERVICE_METHOD and len(rest) == 2:
                service.methods[rest[1]].comments = combine_comments(location)


def _set_message_comments(message: Message, location: Location, path: Sequence[int]) -> None:
    if not path:
        message.comments = combine_comments(location)
        return

    kind, index, rest = path[0], path[1], path[2:]
    if kind == _MESSAGE_FIELD:
        field = _find_field(message, message.proto.field[index].name)
        if field is not None and not rest:
            field.comments = combine_comments(location)
    elif kind == _MESSAGE_NESTED:
        _set_message_comments(message.nested[index], location, rest)
    elif kind == _MESSAGE_ENUM:
        _set_enum_comments(message.enums[index], location, rest)
    elif kind == _MESSAGE_ONEOF and not rest:
        for field in message.fields:
            if field.is_oneof and field.oneof_index == index:
                field.comments = combine_comments(location)


def _set_enum_comments(enum: Enum, location: Location, path: Sequence[int]) -> None:
    if not path:
        enum.comments = combine_comments(location)
        return

    if path[0] == _ENUM_VALUE and len(path) == 2:
        enum.values[path[1]].comments = combine_comments(location)


def _find_field(message: Message, name: str) -> Optional[Field]:
    for field in message.fields:
        if not field.is_oneof and field.name == name:
            return field
    for oneof in message.oneofs:
        for field in oneof.fields:
            if field.name == name:
                return field
    return None


def combine_comments(location: Location) -> str:
    """Join the leading and trailing comments of a location.

    Leading detached comments are ignored since they usually do not belong
    to the definition that follows them.
    """
    parts = [
        text
        for text in (
            format_comments(location.leading_comments).strip(),
            format_comments(location.trailing_comments).strip(),
        )
        if text
    ]
    return "\n\n".join(parts)


def format_comments(comment: str) -> str:
    """Drop the single space protoc keeps after `//` on every line.

    Block comments already have their leading whitespace stripped by protoc,
    so their formatting is left alone.
    """
    lines = []
    for line in comment.split("\n"):
        if line.startswith(" "):
            line = line[1:]
        lines.append(line)
    return "\n".join(lines)
