"""Map protobuf declarations to GraphQL declarations.

Mapping happens in two passes. Every message and enum reachable from the
input first gets its GraphQL names, so that recursive and mutually
recursive messages can refer to each other by name. The declaration
bodies are built afterwards, at most once per message and mode (object or
input), tracked by a BuildState per message.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from google.protobuf import descriptor_pb2

from protoc_graphql.descriptor.model import Enum, Field, File, Message, Method, Oneof, Service
from protoc_graphql.descriptor.options import (
    OPERATION_MUTATION,
    OPERATION_NONE,
    OPERATION_QUERY,
    OPERATION_SUBSCRIPTION,
    Loader,
    OptionIndex,
)
from protoc_graphql.descriptor.wrap import wrap_file
from protoc_graphql.errors import MappingError
from protoc_graphql.graphql import types as graphql
from protoc_graphql.graphql.types import TypeModifier
from protoc_graphql.mapper.graph import Graph
from protoc_graphql.mapper.naming import TypeNameParts, build_type_name
from protoc_graphql.mapper.parameters import (
    INPUT_MODE_ALL,
    INPUT_MODE_NONE,
    JS_64BIT_TYPE_NUMBER,
    Parameters,
)

logger = logging.getLogger(__name__)

FieldProto = descriptor_pb2.FieldDescriptorProto

# GraphQL does not allow declarations without fields.
PLACEHOLDER_FIELD_NAME = "_"
# Distinguishes the member wrapper objects of a oneof union.
DISCRIMINATOR_FIELD_NAME = "case"
INPUT_ARGUMENT_NAME = "input"

TIMESTAMP_TYPE = ".google.protobuf.Timestamp"
DURATION_TYPE = ".google.protobuf.Duration"
STRUCT_TYPE = ".google.protobuf.Struct"

_FLOAT_TYPES = (FieldProto.TYPE_FLOAT, FieldProto.TYPE_DOUBLE)
_INT_TYPES = (
    FieldProto.TYPE_INT32,
    FieldProto.TYPE_SINT32,
    FieldProto.TYPE_SFIXED32,
    FieldProto.TYPE_UINT32,
    FieldProto.TYPE_FIXED32,
)
_INT64_TYPES = (
    FieldProto.TYPE_INT64,
    FieldProto.TYPE_SINT64,
    FieldProto.TYPE_SFIXED64,
    FieldProto.TYPE_UINT64,
    FieldProto.TYPE_FIXED64,
)
_STRING_TYPES = (FieldProto.TYPE_STRING, FieldProto.TYPE_BYTES)

# 64-bit wrappers are resolved through the js_64bit_type parameter.
_INT64 = "int64"
_WRAPPER_TYPES: Dict[str, str] = {
    ".google.protobuf.DoubleValue": graphql.SCALAR_FLOAT.name,
    ".google.protobuf.FloatValue": graphql.SCALAR_FLOAT.name,
    ".google.protobuf.Int64Value": _INT64,
    ".google.protobuf.UInt64Value": _INT64,
    ".google.protobuf.Int32Value": graphql.SCALAR_INT.name,
    ".google.protobuf.UInt32Value": graphql.SCALAR_INT.name,
    ".google.protobuf.BoolValue": graphql.SCALAR_BOOLEAN.name,
    ".google.protobuf.StringValue": graphql.SCALAR_STRING.name,
    ".google.protobuf.BytesValue": graphql.SCALAR_STRING.name,
}

# (operation, root type name, ServiceMapper attribute)
_ROOT_TYPES = (
    (OPERATION_QUERY, "Query", "queries"),
    (OPERATION_MUTATION, "Mutation", "mutations"),
    (OPERATION_SUBSCRIPTION, "Subscription", "subscriptions"),
)


class BuildState(enum.Flag):
    NONE = 0
    OBJECT = enum.auto()
    INPUT = enum.auto()


@dataclass
class OneofMapper:
    descriptor: Oneof
    union: graphql.Union
    objects: List[graphql.Object] = field(default_factory=list)
    input: Optional[graphql.Input] = None


@dataclass
class MessageMapper:
    descriptor: Message
    object: Optional[graphql.Object] = None
    input: Optional[graphql.Input] = None
    oneofs: List[OneofMapper] = field(default_factory=list)


@dataclass
class EnumMapper:
    descriptor: Enum
    enum: graphql.Enum


@dataclass
class ServiceMapper:
    descriptor: Service
    queries: Optional[graphql.Object] = None
    mutations: Optional[graphql.Object] = None
    subscriptions: Optional[graphql.Object] = None
    extensions: List[graphql.ExtendObject] = field(default_factory=list)
    # Method name -> loaders, for the layer that resolves requests.
    loaders: Dict[str, List[Loader]] = field(default_factory=dict)

    @property
    def root_objects(self) -> List[graphql.Object]:
        return [o for o in (self.queries, self.mutations, self.subscriptions) if o is not None]


class Mapper:
    """Map a closed set of protobuf files to GraphQL declarations.

    The files may be given in any order but every referenced type must be
    defined by one of them.
    """

    def __init__(
        self,
        file_protos: Sequence[descriptor_pb2.FileDescriptorProto],
        params: Optional[Parameters] = None,
        options: Optional[OptionIndex] = None,
    ):
        self.params = params if params is not None else Parameters()
        self.options = options if options is not None else OptionIndex()

        # Maps file names to descriptors.
        self.files: Dict[str, File] = {}
        # Maps qualified protobuf names to descriptors.
        self.messages: Dict[str, Message] = {}
        self.enums: Dict[str, Enum] = {}

        # Maps qualified protobuf names to GraphQL type names,
        # e.g. ".google.protobuf.StringValue" -> "GoogleProtobuf_StringValue".
        self.object_names: Dict[str, str] = {}
        self.input_names: Dict[str, str] = {}
        self.enum_names: Dict[str, str] = {}

        self.message_mappers: Dict[str, MessageMapper] = {}
        self.enum_mappers: Dict[str, EnumMapper] = {}
        self.service_mappers: Dict[str, ServiceMapper] = {}
        # Custom scalars referenced through the well-known type overrides.
        self.scalars: Dict[str, graphql.Scalar] = {}

        self._state: Dict[str, BuildState] = {}

        for file_proto in file_protos:
            file = wrap_file(file_proto, self.options)
            self.files[file.name] = file
            for message in file.messages:
                self.messages[message.full_name] = message
            for enum_ in file.enums:
                self.enums[enum_.full_name] = enum_

        self.graph = Graph(self.messages.values())
        self._map()

    # -- ordering --

    def ordered_messages(self, file: Optional[File] = None) -> List[Message]:
        """Messages in dependency order, optionally only those of one file."""
        ordered = self.graph.sort_to(self.messages.values())
        if file is None:
            return ordered
        return [m for m in ordered if m.file is file]

    # -- passes --

    def _map(self) -> None:
        for enum_ in self.enums.values():
            self.enum_names[enum_.full_name] = self._type_name(enum_.file, enum_.type_name)
        for message in self.messages.values():
            self._assign_names(message)

        for enum_ in self.enums.values():
            self._build_enum(enum_)

        ordered = self.ordered_messages()
        for message in ordered:
            self._build_message(message, BuildState.OBJECT)

        if self.params.input_mode == INPUT_MODE_NONE:
            logger.info("Input mode is none, only methods without request fields are mapped")
            input_messages = []
        elif self.params.input_mode == INPUT_MODE_ALL:
            input_messages = ordered
        else:
            roots = []
            for method in self._mapped_methods():
                message = self._request_message(method)
                # Methods without request fields take no argument at all.
                if message.fields:
                    roots.append(message)
            input_messages = self.graph.sort_to(roots)
        for message in input_messages:
            self._build_message(message, BuildState.INPUT)

        for file in self.files.values():
            for service in file.services:
                self._build_service(service)

    def _assign_names(self, message: Message) -> None:
        if message.full_name in self.object_names:
            return

        self.object_names[message.full_name] = self._type_name(
            message.file, message.type_name, is_map=message.is_map
        )
        self.input_names[message.full_name] = self._type_name(
            message.file, message.type_name, is_map=message.is_map, input=True
        )
        logger.debug(
            "Named %s -> %s / %s",
            message.full_name,
            self.object_names[message.full_name],
            self.input_names[message.full_name],
        )

        for referrer, type_name in self._references(message):
            self._assign_names(self._lookup_message(type_name, referrer))
        for field_proto in message.proto.field:
            if field_proto.type == FieldProto.TYPE_ENUM:
                self._lookup_enum(field_proto.type_name, f"{message.full_name}.{field_proto.name}")

    def _references(
        self, message: Message, foreign_keys: bool = True
    ) -> Iterable[Tuple[str, str]]:
        """Yield (referrer, full name) for every message a message depends on."""
        for field_proto in message.proto.field:
            if field_proto.type == FieldProto.TYPE_MESSAGE:
                yield f"{message.full_name}.{field_proto.name}", field_proto.type_name
        if not foreign_keys:
            return
        for f in message.fields:
            if f.foreign_key is not None:
                yield f"{message.full_name}.{f.name}", f.foreign_key.full_name

    def _mapped_methods(self) -> List[Method]:
        methods = []
        for file in self.files.values():
            for service in file.services:
                if service.options.skip:
                    continue
                methods.extend(m for m in service.methods if self._is_mapped_method(m))
        return methods

    def _request_message(self, method: Method) -> Message:
        return self._lookup_message(method.input_type, f"{method.service.full_name}.{method.name}")

    @staticmethod
    def _is_mapped_method(method: Method) -> bool:
        if method.options.skip or method.options.operation == OPERATION_NONE:
            return False
        # Streaming methods have no GraphQL equivalent.
        return not method.is_streaming

    # -- enums --

    def _build_enum(self, enum_: Enum) -> None:
        values = [
            graphql.EnumValue(
                name=value.display_name,
                directives=[graphql.DIRECTIVE_DEPRECATED] if value.is_deprecated else [],
                description=value.comments,
            )
            for value in enum_.values
            if not value.options.skip
        ]
        self.enum_mappers[enum_.full_name] = EnumMapper(
            descriptor=enum_,
            enum=graphql.Enum(
                name=self.enum_names[enum_.full_name],
                values=values,
                description=enum_.comments,
            ),
        )

    # -- messages --

    def _build_message(self, message: Message, mode: BuildState) -> None:
        state = self._state.get(message.full_name, BuildState.NONE)
        if state & mode:
            logger.debug("Already built %s (%s)", message.full_name, mode.name)
            return
        if mode is BuildState.INPUT and not state & BuildState.OBJECT:
            # Oneof inputs are attached to the mappers built with the object.
            self._build_message(message, BuildState.OBJECT)
            state = self._state[message.full_name]
        self._state[message.full_name] = state | mode
        logger.debug("Building %s (%s)", message.full_name, mode.name)

        mapper = self.message_mappers.setdefault(
            message.full_name, MessageMapper(descriptor=message)
        )
        if mode is BuildState.OBJECT:
            mapper.object = graphql.Object(
                name=self.object_names[message.full_name],
                fields=self._graphql_fields(message, mode),
                description=message.comments,
            )
            mapper.oneofs = [
                self._build_oneof(oneof) for oneof in message.oneofs if not oneof.synthetic
            ]
        else:
            mapper.input = graphql.Input(
                name=self.input_names[message.full_name],
                fields=self._graphql_fields(message, mode),
                description=message.comments,
            )
            for oneof_mapper in mapper.oneofs:
                oneof_mapper.input = self._build_oneof_input(oneof_mapper.descriptor)

        # Referenced messages need a declaration in the same mode. Foreign
        # keys only add fields to objects.
        references = self._references(message, foreign_keys=mode is BuildState.OBJECT)
        for referrer, type_name in references:
            self._build_message(self._lookup_message(type_name, referrer), mode)

    def _graphql_fields(self, message: Message, mode: BuildState) -> List[graphql.Field]:
        if not message.fields:
            return [graphql.Field(name=PLACEHOLDER_FIELD_NAME, type_name=graphql.SCALAR_BOOLEAN.name)]

        transform = self.params.field_name_transformer
        fields: List[graphql.Field] = []
        for f in message.fields:
            if f.is_oneof:
                oneof = f.oneof
                path = message.type_name + [oneof.name]
                fields.append(
                    graphql.Field(
                        name=transform(oneof.name),
                        type_name=self._type_name(
                            message.file, path, input=mode is BuildState.INPUT
                        ),
                        description=f.comments,
                    )
                )
                continue

            fields.append(self._graphql_field(f, mode))
            if f.foreign_key is not None and mode is BuildState.OBJECT:
                fields.append(self._foreign_key_field(f))
        return fields

    def _graphql_field(self, f: Field, mode: BuildState) -> graphql.Field:
        proto = f.proto
        is_input = mode is BuildState.INPUT
        referrer = f"{f.parent.full_name}.{f.name}"

        if proto.type in _FLOAT_TYPES:
            type_name = graphql.SCALAR_FLOAT.name
        elif proto.type in _INT_TYPES:
            type_name = graphql.SCALAR_INT.name
        elif proto.type == FieldProto.TYPE_BOOL:
            type_name = graphql.SCALAR_BOOLEAN.name
        elif proto.type in _STRING_TYPES:
            type_name = graphql.SCALAR_STRING.name
        elif proto.type in _INT64_TYPES:
            type_name = self._int64_type_name()
        elif proto.type == FieldProto.TYPE_ENUM:
            type_name = self.enum_names[self._lookup_enum(proto.type_name, referrer).full_name]
        elif proto.type == FieldProto.TYPE_MESSAGE:
            target = self._lookup_message(proto.type_name, referrer)
            names = self.input_names if is_input else self.object_names
            type_name = names[target.full_name]
        else:
            raise MappingError(
                f"{referrer}: unexpected protobuf descriptor type: "
                f"{FieldProto.Type.Name(proto.type)}"
            )

        if proto.type == FieldProto.TYPE_MESSAGE:
            # Map elements are non-nullable.
            modifiers = TypeModifier.NON_NULL if target.is_map else TypeModifier.NONE
        elif is_input or (f.is_explicitly_optional and not f.parent.is_map):
            modifiers = TypeModifier.NONE
        else:
            modifiers = TypeModifier.NON_NULL

        if f.is_repeated:
            # Repeated values are never null but the list may be omitted in inputs.
            modifiers = TypeModifier.NON_NULL | TypeModifier.LIST
            if not is_input:
                modifiers |= TypeModifier.NON_NULL_LIST

        type_name, modifiers = self._special_types(proto.type_name, type_name, modifiers)

        return graphql.Field(
            name=self.params.field_name_transformer(f.name),
            type_name=type_name,
            modifiers=modifiers,
            directives=[graphql.DIRECTIVE_DEPRECATED] if f.is_deprecated else [],
            description=f.comments,
        )

    def _int64_type_name(self) -> str:
        if self.params.js_64bit_type == JS_64BIT_TYPE_NUMBER:
            return graphql.SCALAR_FLOAT.name
        return graphql.SCALAR_STRING.name

    def _special_types(
        self, proto_type_name: str, type_name: str, modifiers: TypeModifier
    ) -> Tuple[str, TypeModifier]:
        overrides = {
            TIMESTAMP_TYPE: self.params.timestamp_type_name,
            DURATION_TYPE: self.params.duration_type_name,
            STRUCT_TYPE: self.params.struct_type_name,
        }
        scalar_name = overrides.get(proto_type_name)
        if scalar_name:
            self.scalars.setdefault(scalar_name, graphql.Scalar(name=scalar_name))
            return scalar_name, modifiers

        if self.params.wrappers_as_null and proto_type_name in _WRAPPER_TYPES:
            wrapped = _WRAPPER_TYPES[proto_type_name]
            if wrapped == _INT64:
                wrapped = self._int64_type_name()
            return wrapped, modifiers & ~TypeModifier.NON_NULL

        return type_name, modifiers

    def _foreign_key_field(self, f: Field) -> graphql.Field:
        referrer = f"{f.parent.full_name}.{f.name}"
        target = self._lookup_message(f.foreign_key.full_name, referrer)
        modifiers = TypeModifier.NONE
        if f.is_repeated:
            modifiers = TypeModifier.NON_NULL | TypeModifier.LIST | TypeModifier.NON_NULL_LIST
        return graphql.Field(
            name=self.params.field_name_transformer(f.foreign_key.field_name),
            type_name=self.object_names[target.full_name],
            modifiers=modifiers,
        )

    # -- oneofs --

    def _build_oneof(self, oneof: Oneof) -> OneofMapper:
        parent = oneof.parent
        path = parent.type_name + [oneof.name]
        placeholder = next(f for f in parent.fields if f.is_oneof and f.oneof_index == oneof.index)

        objects = []
        for member in oneof.fields:
            objects.append(
                graphql.Object(
                    name=self._type_name(parent.file, path + [member.name]),
                    fields=[
                        graphql.Field(
                            name=DISCRIMINATOR_FIELD_NAME,
                            type_name=graphql.SCALAR_STRING.name,
                            modifiers=TypeModifier.NON_NULL,
                        ),
                        self._graphql_field(member, BuildState.OBJECT),
                    ],
                    description=member.comments,
                )
            )

        return OneofMapper(
            descriptor=oneof,
            union=graphql.Union(
                name=self._type_name(parent.file, path),
                type_names=[o.name for o in objects],
                description=placeholder.comments,
            ),
            objects=objects,
        )

    def _build_oneof_input(self, oneof: Oneof) -> graphql.Input:
        # All members are nullable side by side, so "exactly one member is
        # set" is not expressed by the input type.
        parent = oneof.parent
        return graphql.Input(
            name=self._type_name(parent.file, parent.type_name + [oneof.name], input=True),
            fields=[self._graphql_field(member, BuildState.INPUT) for member in oneof.fields],
        )

    # -- services --

    def _build_service(self, service: Service) -> None:
        if service.options.skip:
            logger.debug("Skipping service %s", service.full_name)
            return

        groups: Dict[str, List[graphql.Field]] = {op: [] for op, _, _ in _ROOT_TYPES}
        for method in service.methods:
            if not self._is_mapped_method(method):
                logger.debug("Skipping method %s.%s", service.full_name, method.name)
                continue
            if self.params.input_mode == INPUT_MODE_NONE and self._request_message(method).fields:
                logger.debug(
                    "Skipping method %s.%s, its request needs an input type",
                    service.full_name, method.name,
                )
                continue

            operation = method.options.operation or OPERATION_QUERY
            if operation not in groups:
                raise MappingError(
                    f"{service.full_name}.{method.name}: unknown operation {operation!r}"
                )
            groups[operation].append(self._graphql_field_from_method(method))

        mapper = ServiceMapper(
            descriptor=service,
            loaders={m.name: list(m.loaders) for m in service.methods if m.loaders},
        )
        method_name = self.params.method_name_transformer
        for operation, root_name, attribute in _ROOT_TYPES:
            fields = groups[operation]
            if not fields:
                continue

            root = graphql.Object(
                name=self._type_name(service.file, service.type_name + [root_name]),
                fields=fields,
                description=service.comments,
            )
            setattr(mapper, attribute, root)

            if self.params.root_type_prefix is not None:
                mapper.extensions.append(
                    graphql.ExtendObject(
                        name=self.params.root_type_prefix + root_name,
                        fields=[
                            graphql.Field(
                                name=method_name(service.name),
                                type_name=root.name,
                                modifiers=TypeModifier.NON_NULL,
                            )
                        ],
                    )
                )

        self.service_mappers[service.full_name] = mapper

    def _graphql_field_from_method(self, method: Method) -> graphql.Field:
        referrer = f"{method.service.full_name}.{method.name}"

        # Only add an argument if there are fields in the request message.
        arguments = []
        input_message = self._lookup_message(method.input_type, referrer)
        if input_message.fields:
            self._build_message(input_message, BuildState.INPUT)
            arguments.append(
                graphql.Argument(
                    name=INPUT_ARGUMENT_NAME,
                    type_name=self.input_names[input_message.full_name],
                    modifiers=TypeModifier.NON_NULL,
                )
            )

        name = self.params.method_name_transformer(method.name)
        directives = [graphql.DIRECTIVE_DEPRECATED] if method.is_deprecated else []

        # If the response message has no fields then return a nullable
        # Boolean. Whether it is true or null is up to the resolver.
        output_message = self._lookup_message(method.output_type, referrer)
        if not output_message.fields:
            return graphql.Field(
                name=name,
                type_name=graphql.SCALAR_BOOLEAN.name,
                arguments=arguments,
                directives=directives,
                description=method.comments,
            )

        return graphql.Field(
            name=name,
            type_name=self.object_names[output_message.full_name],
            modifiers=TypeModifier.NON_NULL,
            arguments=arguments,
            directives=directives,
            description=method.comments,
        )

    # -- lookups --

    def _type_name(
        self, file: File, type_name: List[str], is_map: bool = False, input: bool = False
    ) -> str:
        parts = TypeNameParts(
            package=file.package,
            type_name=type_name,
            is_map=is_map,
            input=input,
            namespace=file.options.namespace,
        )
        return build_type_name(parts, trim_prefix=self.params.trim_prefix)

    def _lookup_message(self, full_name: str, referrer: str) -> Message:
        message = self.messages.get(full_name)
        if message is None:
            raise MappingError(f"{referrer}: unknown message type {full_name}")
        return message

    def _lookup_enum(self, full_name: str, referrer: str) -> Enum:
        enum_ = self.enums.get(full_name)
        if enum_ is None:
            raise MappingError(f"{referrer}: unknown enum type {full_name}")
        return enum_

