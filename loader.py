"""
pb Schema Loader

Runs protoc (from grpcio-tools) over .proto files and loads the resulting
FileDescriptorSet into a MessageRegistry.
"""

import logging
import os
import re
import subprocess
import sys
import tempfile
from dataclasses import dataclass, field

from google.protobuf import descriptor_pb2

from errors import ParseError
from registry import MessageRegistry


logger = logging.getLogger(__name__)

# gcc-style protoc diagnostic: "file.proto:12:3: message" or "file.proto: message"
DIAGNOSTIC_RE = re.compile(r"^(?P<file>[^:]*?\.proto)(?::(?P<line>\d+):(?P<column>\d+))?: (?P<message>.+)$")

DESCRIPTOR_SET_NAME = "descriptor_set.pb"


@dataclass
class Schema:
    """Parsed proto files and the registry built from them."""
    files: list[descriptor_pb2.FileDescriptorProto] = field(default_factory=list)
    registry: MessageRegistry = field(default_factory=MessageRegistry)

    @property
    def file_names(self) -> list[str]:
        return [f.name for f in self.files]


def split_option_values(values: list[str] | None) -> list[str]:
    """Flatten repeated/comma-separated option values, dropping duplicates.

    Args:
        values: Raw option values, e.g. ["a,b", "c", "a"]

    Returns:
        Ordered unique values, e.g. ["a", "b", "c"]
    """
    result = []
    for value in values or []:
        for item in value.split(","):
            item = item.strip()
            if item and item not in result:
                result.append(item)
    return result


def parse_diagnostic(line: str) -> dict | None:
    """Split a protoc diagnostic line into file, line, column and message."""
    match = DIAGNOSTIC_RE.match(line)
    if match is None:
        return None
    return {
        "file_path": match.group("file"),
        "line": int(match.group("line")) if match.group("line") else None,
        "column": int(match.group("column")) if match.group("column") else None,
        "message": match.group("message"),
    }


def relative_proto_name(path: str, import_paths: list[str]) -> str:
    """Map an on-disk proto path back to its name under the first import path holding it.

    Newer protoc releases report absolute paths; names relative to the
    import path are what the user passed with -F.
    """
    if not os.path.isabs(path):
        return path
    for import_path in import_paths:
        root = os.path.realpath(import_path)
        if os.path.commonpath([root, os.path.realpath(path)]) == root:
            return os.path.relpath(os.path.realpath(path), root).replace(os.sep, "/")
    return path


def _protoc_error(diagnostics: list[str], returncode: int, import_paths: list[str]) -> ParseError:
    if not diagnostics:
        return ParseError(f"protoc exited with status {returncode}")

    # Warnings may be printed ahead of the first error
    for line in diagnostics:
        diagnostic = parse_diagnostic(line)
        if diagnostic is not None and not diagnostic["message"].startswith("warning:"):
            return ParseError(
                diagnostic["message"],
                line=diagnostic["line"],
                column=diagnostic["column"],
                file_path=relative_proto_name(diagnostic["file_path"], import_paths),
                diagnostics=diagnostics,
            )
    return ParseError(diagnostics[-1], diagnostics=diagnostics)


def run_protoc(import_paths: list[str], proto_files: list[str]) -> descriptor_pb2.FileDescriptorSet:
    """Compile proto files into a FileDescriptorSet including all imports.

    Args:
        import_paths: Directories searched for proto files and their imports
        proto_files: Files to parse, relative to one of the import paths

    Returns:
        FileDescriptorSet with dependencies ordered before their dependents

    Raises:
        ParseError: If protoc rejects any file
    """
    with tempfile.TemporaryDirectory(prefix="pb-") as tmp_dir:
        out_path = os.path.join(tmp_dir, DESCRIPTOR_SET_NAME)

        # grpc_tools.protoc appends its bundled well-known types include itself,
        # which disables protoc's implicit "." so it has to be explicit here.
        args = [sys.executable, "-m", "grpc_tools.protoc"]
        args += [f"--proto_path={path}" for path in (import_paths or ["."])]
        args += ["--include_imports", f"--descriptor_set_out={out_path}"]
        args += list(proto_files)

        logger.debug("running %s", " ".join(args))
        try:
            proc = subprocess.run(args, capture_output=True, text=True)
        except OSError as e:
            raise ParseError(f"could not run protoc: {e}") from e

        diagnostics = [line for line in proc.stderr.splitlines() if line.strip()]
        if proc.returncode != 0:
            raise _protoc_error(diagnostics, proc.returncode, import_paths or ["."])
        for line in diagnostics:
            logger.warning("protoc: %s", line)

        fds = descriptor_pb2.FileDescriptorSet()
        with open(out_path, "rb") as f:
            fds.ParseFromString(f.read())
        return fds


def load(import_paths: list[str] | None, proto_files: list[str] | None) -> Schema:
    """Parse proto files and register every message they declare.

    Args:
        import_paths: Import directories, in search order
        proto_files: Proto files to parse, in load order

    Returns:
        Schema holding the file descriptors in load order and their registry

    Raises:
        ParseError: If any file has invalid syntax, a missing import or a type conflict
    """
    import_paths = split_option_values(import_paths)
    proto_files = split_option_values(proto_files)

    schema = Schema()
    if not proto_files:
        logger.debug("no proto files given, schema is empty")
        return schema

    fds = run_protoc(import_paths, proto_files)

    for file_proto in fds.file:
        try:
            schema.registry.add_file(file_proto)
        except (TypeError, ValueError, KeyError) as e:
            raise ParseError(str(e), file_path=file_proto.name) from e
        schema.files.append(file_proto)

    logger.debug("loaded %d files, %d message types", len(schema.files), len(schema.registry.message_names))
    return schema
