"""Cross-referenced wrappers around protobuf descriptor protos."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from google.protobuf import descriptor_pb2

from protoc_graphql.descriptor.options import (
    EnumValueOptions,
    FieldOptions,
    FileOptions,
    ForeignKey,
    Loader,
    MethodOptions,
    ServiceOptions,
)

FieldProto = descriptor_pb2.FieldDescriptorProto


@dataclass(eq=False)
class File:
    proto: descriptor_pb2.FileDescriptorProto
    options: FileOptions = field(default_factory=FileOptions)
    # All the protobuf types defined in this file, including nested types.
    messages: List[Message] = field(default_factory=list)
    enums: List[Enum] = field(default_factory=list)
    services: List[Service] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.proto.name

    @property
    def package(self) -> str:
        return self.proto.package

    @property
    def syntax(self) -> str:
        # An unset syntax means proto2.
        return self.proto.syntax or "proto2"


@dataclass(eq=False)
class Message:
    proto: descriptor_pb2.DescriptorProto
    file: File
    # None if the message is a top level message (not nested).
    parent: Optional[Message] = None
    nested: List[Message] = field(default_factory=list)
    enums: List[Enum] = field(default_factory=list)
    # Effective fields, where all fields of one oneof are collapsed into a
    # single placeholder field. This differs from proto.field.
    fields: List[Field] = field(default_factory=list)
    oneofs: List[Oneof] = field(default_factory=list)
    is_map: bool = False
    type_name: List[str] = field(default_factory=list)
    # Fully qualified name starting with a '.' including the package name.
    full_name: str = ""
    comments: str = ""

    @property
    def name(self) -> str:
        return self.proto.name

    @property
    def package(self) -> str:
        return self.file.package

    def __repr__(self) -> str:
        return f"Message({self.full_name})"


@dataclass(eq=False)
class Field:
    name: str
    parent: Message
    # None if is_oneof is True.
    proto: Optional[FieldProto] = None
    options: FieldOptions = field(default_factory=FieldOptions)
    is_oneof: bool = False
    oneof_index: int = -1
    foreign_key: Optional[ForeignKey] = None
    comments: str = ""

    @property
    def oneof(self) -> Optional[Oneof]:
        if not self.is_oneof:
            return None
        return self.parent.oneofs[self.oneof_index]

    @property
    def is_repeated(self) -> bool:
        return self.proto is not None and self.proto.label == FieldProto.LABEL_REPEATED

    @property
    def is_explicitly_optional(self) -> bool:
        """True for proto3 `optional` fields and proto2 `optional` fields."""
        if self.proto is None:
            return False
        if self.proto.proto3_optional:
            return True
        return (
            self.parent.file.syntax == "proto2"
            and self.proto.label == FieldProto.LABEL_OPTIONAL
        )

    @property
    def is_deprecated(self) -> bool:
        return self.proto is not None and self.proto.options.deprecated

    def __repr__(self) -> str:
        return f"Field({self.parent.full_name}.{self.name})"


@dataclass(eq=False)
class Oneof:
    proto: descriptor_pb2.OneofDescriptorProto
    parent: Message
    index: int
    fields: List[Field] = field(default_factory=list)
    # Oneofs generated by protoc for proto3 optional fields.
    synthetic: bool = False

    @property
    def name(self) -> str:
        return self.proto.name


@dataclass(eq=False)
class Enum:
    proto: descriptor_pb2.EnumDescriptorProto
    file: File
    # None if the enum is a top level enum (not nested).
    parent: Optional[Message] = None
    values: List[EnumValue] = field(default_factory=list)
    type_name: List[str] = field(default_factory=list)
    # Fully qualified name starting with a '.' including the package name.
    full_name: str = ""
    comments: str = ""

    @property
    def name(self) -> str:
        return self.proto.name

    @property
    def package(self) -> str:
        return self.file.package

    def __repr__(self) -> str:
        return f"Enum({self.full_name})"


@dataclass(eq=False)
class EnumValue:
    proto: descriptor_pb2.EnumValueDescriptorProto
    options: EnumValueOptions = field(default_factory=EnumValueOptions)
    comments: str = ""

    @property
    def name(self) -> str:
        return self.proto.name

    @property
    def display_name(self) -> str:
        return self.options.name or self.proto.name

    @property
    def is_deprecated(self) -> bool:
        return self.options.deprecated or self.proto.options.deprecated


@dataclass(eq=False)
class Service:
    proto: descriptor_pb2.ServiceDescriptorProto
    file: File
    options: ServiceOptions = field(default_factory=ServiceOptions)
    type_name: List[str] = field(default_factory=list)
    # Fully qualified name starting with a '.' including the package name.
    full_name: str = ""
    methods: List[Method] = field(default_factory=list)
    comments: str = ""

    @property
    def name(self) -> str:
        return self.proto.name

    @property
    def package(self) -> str:
        return self.file.package


@dataclass(eq=False)
class Method:
    proto: descriptor_pb2.MethodDescriptorProto
    service: Service
    options: MethodOptions = field(default_factory=MethodOptions)
    loaders: List[Loader] = field(default_factory=list)
    comments: str = ""

    @property
    def name(self) -> str:
        return self.proto.name

    @property
    def input_type(self) -> str:
        return self.proto.input_type

    @property
    def output_type(self) -> str:
        return self.proto.output_type

    @property
    def is_streaming(self) -> bool:
        return self.proto.client_streaming or self.proto.server_streaming

    @property
    def is_deprecated(self) -> bool:
        return self.proto.options.deprecated
