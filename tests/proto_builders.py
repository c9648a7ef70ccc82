"""Helpers building descriptor protos the way protoc would hand them over."""

from typing import Optional, Sequence

from google.protobuf import descriptor_pb2

FieldProto = descriptor_pb2.FieldDescriptorProto

OPTIONAL = FieldProto.LABEL_OPTIONAL
REPEATED = FieldProto.LABEL_REPEATED


def make_field(name: str, number: int, type_: int, type_name: str = "",
               label: int = OPTIONAL, oneof_index: Optional[int] = None,
               proto3_optional: bool = False, deprecated: bool = False) -> FieldProto:
    f = FieldProto(name=name, number=number, type=type_, label=label)
    if type_name:
        f.type_name = type_name
    if oneof_index is not None:
        f.oneof_index = oneof_index
    if proto3_optional:
        f.proto3_optional = True
    if deprecated:
        f.options.deprecated = True
    return f


def string_field(name: str, number: int, **kwargs) -> FieldProto:
    return make_field(name, number, FieldProto.TYPE_STRING, **kwargs)


def message_field(name: str, number: int, type_name: str, **kwargs) -> FieldProto:
    return make_field(name, number, FieldProto.TYPE_MESSAGE, type_name=type_name, **kwargs)


def make_message(name: str, fields: Sequence[FieldProto] = (),
                 nested: Sequence[descriptor_pb2.DescriptorProto] = (),
                 enums: Sequence[descriptor_pb2.EnumDescriptorProto] = (),
                 oneofs: Sequence[str] = (),
                 map_entry: bool = False) -> descriptor_pb2.DescriptorProto:
    message = descriptor_pb2.DescriptorProto(name=name)
    message.field.extend(fields)
    message.nested_type.extend(nested)
    message.enum_type.extend(enums)
    for oneof in oneofs:
        message.oneof_decl.add(name=oneof)
    if map_entry:
        message.options.map_entry = True
    return message


def make_map_entry(name: str, key_type: int, value_type: int,
                   value_type_name: str = "") -> descriptor_pb2.DescriptorProto:
    return make_message(
        name,
        fields=[
            make_field("key", 1, key_type),
            make_field("value", 2, value_type, type_name=value_type_name),
        ],
        map_entry=True,
    )


def make_enum(name: str, values: Sequence[str]) -> descriptor_pb2.EnumDescriptorProto:
    enum = descriptor_pb2.EnumDescriptorProto(name=name)
    for number, value in enumerate(values):
        enum.value.add(name=value, number=number)
    return enum


def make_method(name: str, input_type: str, output_type: str,
                client_streaming: bool = False, server_streaming: bool = False,
                deprecated: bool = False) -> descriptor_pb2.MethodDescriptorProto:
    method = descriptor_pb2.MethodDescriptorProto(
        name=name,
        input_type=input_type,
        output_type=output_type,
    )
    if client_streaming:
        method.client_streaming = True
    if server_streaming:
        method.server_streaming = True
    if deprecated:
        method.options.deprecated = True
    return method


def make_service(name: str, methods: Sequence[descriptor_pb2.MethodDescriptorProto] = ()
                 ) -> descriptor_pb2.ServiceDescriptorProto:
    service = descriptor_pb2.ServiceDescriptorProto(name=name)
    service.method.extend(methods)
    return service


def make_file(name: str = "acme/test.proto", package: str = "acme", syntax: str = "proto3",
              messages: Sequence[descriptor_pb2.DescriptorProto] = (),
              enums: Sequence[descriptor_pb2.EnumDescriptorProto] = (),
              services: Sequence[descriptor_pb2.ServiceDescriptorProto] = (),
              dependencies: Sequence[str] = ()) -> descriptor_pb2.FileDescriptorProto:
    file = descriptor_pb2.FileDescriptorProto(name=name, package=package)
    if syntax:
        file.syntax = syntax
    file.dependency.extend(dependencies)
    file.message_type.extend(messages)
    file.enum_type.extend(enums)
    file.service.extend(services)
    return file


def add_comment(file: descriptor_pb2.FileDescriptorProto, path: Sequence[int],
                leading: str = "", trailing: str = "", detached: Sequence[str] = ()) -> None:
    location = file.source_code_info.location.add()
    location.path.extend(path)
    if leading:
        location.leading_comments = leading
    if trailing:
        location.trailing_comments = trailing
    location.leading_detached_comments.extend(detached)


def well_known_file(name: str, messages: Sequence[descriptor_pb2.DescriptorProto]
                    ) -> descriptor_pb2.FileDescriptorProto:
    return make_file(name=name, package="google.protobuf", messages=messages)


def timestamp_file() -> descriptor_pb2.FileDescriptorProto:
    return well_known_file("google/protobuf/timestamp.proto", [
        make_message("Timestamp", fields=[
            make_field("seconds", 1, FieldProto.TYPE_INT64),
            make_field("nanos", 2, FieldProto.TYPE_INT32),
        ]),
    ])


WRAPPER_VALUE_TYPES = {
    "DoubleValue": FieldProto.TYPE_DOUBLE,
    "FloatValue": FieldProto.TYPE_FLOAT,
    "Int64Value": FieldProto.TYPE_INT64,
    "UInt64Value": FieldProto.TYPE_UINT64,
    "Int32Value": FieldProto.TYPE_INT32,
    "UInt32Value": FieldProto.TYPE_UINT32,
    "BoolValue": FieldProto.TYPE_BOOL,
    "StringValue": FieldProto.TYPE_STRING,
    "BytesValue": FieldProto.TYPE_BYTES,
}


def wrappers_file() -> descriptor_pb2.FileDescriptorProto:
    return well_known_file("google/protobuf/wrappers.proto", [
        make_message(name, fields=[make_field("value", 1, value_type)])
        for name, value_type in WRAPPER_VALUE_TYPES.items()
    ])


def duration_file() -> descriptor_pb2.FileDescriptorProto:
    return well_known_file("google/protobuf/duration.proto", [
        make_message("Duration", fields=[
            make_field("seconds", 1, FieldProto.TYPE_INT64),
            make_field("nanos", 2, FieldProto.TYPE_INT32),
        ]),
    ])


def struct_file() -> descriptor_pb2.FileDescriptorProto:
    return well_known_file("google/protobuf/struct.proto", [
        make_message("Struct", fields=[
            message_field("fields", 1, ".google.protobuf.Struct.FieldsEntry", label=REPEATED),
        ], nested=[
            make_map_entry("FieldsEntry", FieldProto.TYPE_STRING, FieldProto.TYPE_STRING),
        ]),
    ])
