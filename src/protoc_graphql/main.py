from __future__ import annotations

import argparse
import json
import logging
import os
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence

from google.protobuf import descriptor_pb2
from google.protobuf.compiler import plugin_pb2
from google.protobuf.message import DecodeError

from protoc_graphql.descriptor.options import OptionIndex
from protoc_graphql.errors import CompileError, OptionError
from protoc_graphql.generator import generate
from protoc_graphql.mapper.parameters import Parameters

logger = logging.getLogger(__name__)

PLUGIN_NAME = "protoc-gen-graphql"
WELL_KNOWN_PREFIX = "google/protobuf/"


def _configure_logging(verbose: bool) -> None:
    # stdout carries the generated output, so logs always go to stderr.
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )


def load_options(path: str) -> OptionIndex:
    """Load declaration options from a JSON file, empty when no path is given."""
    if not path:
        return OptionIndex()
    try:
        data = json.loads(Path(path).read_text())
    except OSError as e:
        raise OptionError(f"cannot read options file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise OptionError(f"invalid options file {path}: {e}") from e
    return OptionIndex.from_dict(data)


def run_plugin(request: plugin_pb2.CodeGeneratorRequest) -> plugin_pb2.CodeGeneratorResponse:
    """Handle one protoc plugin request.

    Compilation failures are reported through the response error, as protoc
    expects, and never produce partial output.
    """
    response = plugin_pb2.CodeGeneratorResponse()
    response.supported_features = plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL
    logger.debug(
        "Request for %d of %d file(s), parameter %r",
        len(request.file_to_generate), len(request.proto_file), request.parameter,
    )

    try:
        params = Parameters.parse(request.parameter)
        options = load_options(params.options_path)
        outputs = generate(request.proto_file, request.file_to_generate, params, options)
    except CompileError as e:
        logger.debug("Compilation failed: %s", e)
        response.error = str(e)
        return response

    for name, content in outputs.items():
        out = response.file.add()
        out.name = name
        out.content = content
    return response


def _fail(message: str) -> None:
    print(f"{PLUGIN_NAME}: {message}", file=sys.stderr)
    sys.exit(1)


def plugin_main() -> None:
    """protoc plugin entry point: request on stdin, response on stdout."""
    _configure_logging(verbose=bool(os.environ.get("PROTOC_GEN_GRAPHQL_VERBOSE")))

    try:
        request = plugin_pb2.CodeGeneratorRequest.FromString(sys.stdin.buffer.read())
    except DecodeError as e:
        _fail(f"error parsing input: {e}")

    response = run_plugin(request)

    try:
        sys.stdout.buffer.write(response.SerializeToString())
        sys.stdout.buffer.flush()
    except OSError as e:
        _fail(f"error writing output: {e}")


def compile_descriptor_set(proto_path: str, includes: Sequence[str]) -> descriptor_pb2.FileDescriptorSet:
    """Compile a .proto file with protoc into a descriptor set with source info."""
    inc_args: List[str] = []
    seen = set()
    for inc in [os.path.dirname(os.path.abspath(proto_path)), *includes]:
        if inc and inc not in seen:
            seen.add(inc)
            inc_args.extend(["-I", inc])

    with tempfile.TemporaryDirectory() as td:
        desc_path = os.path.join(td, "descriptor_set.pb")
        cmd = [
            "protoc",
            "--include_imports",
            "--include_source_info",
            f"--descriptor_set_out={desc_path}",
        ] + inc_args + [proto_path]
        try:
            subprocess.run(cmd, check=True, capture_output=True)
        except FileNotFoundError as e:
            raise RuntimeError(
                "'protoc' not found. Please install Protocol Buffers compiler and ensure it is in PATH."
            ) from e
        except subprocess.CalledProcessError as e:
            raise RuntimeError(f"protoc failed: {e.stderr.decode('utf-8', errors='ignore')}") from e

        return descriptor_pb2.FileDescriptorSet.FromString(Path(desc_path).read_bytes())


def read_descriptor_set(path: str) -> descriptor_pb2.FileDescriptorSet:
    return descriptor_pb2.FileDescriptorSet.FromString(Path(path).read_bytes())


def run(
    descriptor_set: descriptor_pb2.FileDescriptorSet,
    out_dir: str,
    parameter: str = "",
    options_path: str = "",
    files: Optional[Sequence[str]] = None,
) -> List[str]:
    """Generate schema files for a descriptor set into out_dir.

    Without `files`, every file except the well-known types is generated.
    Returns the generated file paths.
    """
    params = Parameters.parse(parameter)
    options = load_options(options_path or params.options_path)

    if not files:
        files = [f.name for f in descriptor_set.file if not f.name.startswith(WELL_KNOWN_PREFIX)]

    outputs = generate(descriptor_set.file, files, params, options)

    generated: List[str] = []
    for name, content in outputs.items():
        file_path = os.path.join(out_dir, name)
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        Path(file_path).write_text(content)
        generated.append(file_path)
    return generated


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Compile protobuf declarations into a GraphQL schema",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--descriptor-set",
        help="FileDescriptorSet produced by protoc --include_imports --descriptor_set_out",
    )
    source.add_argument(
        "--proto",
        help="Path to a .proto file, compiled with protoc",
    )
    parser.add_argument(
        "-I", "--include",
        action="append",
        default=[],
        help="Additional include directory for --proto",
    )
    parser.add_argument(
        "--file",
        action="append",
        default=[],
        help="Name of a file in the descriptor set to generate (default: all but well-known types)",
    )
    parser.add_argument("--out", required=True, help="Output directory for generated .graphql files")
    parser.add_argument("--parameter", default="", help="Comma separated generator parameters")
    parser.add_argument("--options", default="", help="JSON file with declaration options")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        if args.proto:
            descriptor_set = compile_descriptor_set(args.proto, args.include)
        else:
            descriptor_set = read_descriptor_set(args.descriptor_set)
        generated = run(descriptor_set, args.out, args.parameter, args.options, args.file)
    except (CompileError, RuntimeError, OSError, DecodeError) as e:
        print(f"FATAL: {e}", file=sys.stderr)
        sys.exit(1)

    if not generated:
        print("No GraphQL types generated.")
        return
    for path in generated:
        print(f"  Generated: {path}")
    print("Done!")


if __name__ == "__main__":
    main()
