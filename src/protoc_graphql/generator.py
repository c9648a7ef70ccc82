"""Assemble GraphQL schema files from mapped protobuf declarations."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set

from google.protobuf import descriptor_pb2

from protoc_graphql.descriptor.options import OptionIndex
from protoc_graphql.errors import MappingError
from protoc_graphql.graphql import types as graphql
from protoc_graphql.graphql.type_def import schema_def
from protoc_graphql.mapper.mapper import Mapper
from protoc_graphql.mapper.parameters import Parameters

logger = logging.getLogger(__name__)

OUTPUT_SUFFIX = "_pb.graphql"


def output_file_name(proto_name: str) -> str:
    """acme/user.proto -> acme/user_pb.graphql"""
    if proto_name.endswith(".proto"):
        proto_name = proto_name[: -len(".proto")]
    return proto_name + OUTPUT_SUFFIX


def file_types(
    mapper: Mapper,
    file_name: str,
    emitted_scalars: Optional[Set[str]] = None,
) -> List[graphql.Type]:
    """Collect the GraphQL declarations of one protobuf file, in output order.

    Custom scalars are declared by the first file referencing them;
    `emitted_scalars` carries the names already declared by earlier files.
    """
    if emitted_scalars is None:
        emitted_scalars = set()
    file = mapper.files.get(file_name)
    if file is None:
        raise MappingError(f"file to generate {file_name} is not among the input files")

    enums: List[graphql.Type] = [mapper.enum_mappers[e.full_name].enum for e in file.enums]

    objects: List[graphql.Type] = []
    inputs: List[graphql.Type] = []
    for message in mapper.ordered_messages(file):
        message_mapper = mapper.message_mappers[message.full_name]
        objects.append(message_mapper.object)
        for oneof in message_mapper.oneofs:
            objects.append(oneof.union)
            objects.extend(oneof.objects)

        if message_mapper.input is not None:
            inputs.append(message_mapper.input)
            inputs.extend(o.input for o in message_mapper.oneofs if o.input is not None)

    roots: List[graphql.Type] = []
    extensions: List[graphql.Type] = []
    for service in file.services:
        service_mapper = mapper.service_mappers.get(service.full_name)
        if service_mapper is None:
            continue
        roots.extend(service_mapper.root_objects)
        extensions.extend(service_mapper.extensions)

    declarations = enums + objects + inputs + roots + extensions
    scalars: List[graphql.Type] = []
    for name in _referenced_type_names(declarations):
        if name in mapper.scalars and name not in emitted_scalars:
            emitted_scalars.add(name)
            scalars.append(mapper.scalars[name])

    return scalars + declarations


def _referenced_type_names(declarations: Sequence[graphql.Type]) -> List[str]:
    names: List[str] = []
    for declaration in declarations:
        for f in getattr(declaration, "fields", []):
            names.append(f.type_name)
            names.extend(a.type_name for a in f.arguments)
    return names


def generate(
    file_protos: Sequence[descriptor_pb2.FileDescriptorProto],
    files_to_generate: Sequence[str],
    params: Optional[Parameters] = None,
    options: Optional[OptionIndex] = None,
) -> Dict[str, str]:
    """Map all files, then render each file to generate.

    Returns output file names mapped to their content. Files without any
    declaration produce no output.
    """
    mapper = Mapper(file_protos, params, options)

    outputs: Dict[str, str] = {}
    emitted_scalars: Set[str] = set()
    for file_name in files_to_generate:
        types = file_types(mapper, file_name, emitted_scalars)
        if not types:
            logger.info("No GraphQL types for %s", file_name)
            continue
        outputs[output_file_name(file_name)] = schema_def(types)
        logger.info("Generated %d GraphQL type(s) for %s", len(types), file_name)
    return outputs
