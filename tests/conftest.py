import io
import logging
import sys
from pathlib import Path

import pytest
from google.protobuf import descriptor_pb2

# Add project root to sys.path so the top-level modules import during tests
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from registry import MessageRegistry  # noqa: E402

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def restore_root_logger():
    """pb.cli_main sets the root logger level; put it back after each test."""
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)


@pytest.fixture
def fixtures_dir() -> str:
    return str(FIXTURES_DIR)


@pytest.fixture
def write_proto(tmp_path):
    """Write proto sources under tmp_path and return the directory."""
    def _write(name: str, source: str) -> str:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source)
        return str(tmp_path)
    return _write


def point_file_proto() -> descriptor_pb2.FileDescriptorProto:
    file_desc = descriptor_pb2.FileDescriptorProto()
    file_desc.name = "point.proto"
    file_desc.syntax = "proto3"

    point = file_desc.message_type.add()
    point.name = "Point"
    for number, name in enumerate(["x", "y"], start=1):
        field = point.field.add()
        field.name = name
        field.json_name = name
        field.number = number
        field.label = descriptor_pb2.FieldDescriptorProto.LABEL_OPTIONAL
        field.type = descriptor_pb2.FieldDescriptorProto.TYPE_INT32
    return file_desc


@pytest.fixture
def point_registry() -> MessageRegistry:
    """Registry with a single package-less Point message, built without protoc."""
    registry = MessageRegistry()
    registry.add_file(point_file_proto())
    return registry


class RecordingStream(io.BytesIO):
    """BytesIO that remembers whether anyone read from it."""

    def __init__(self, data: bytes = b""):
        super().__init__(data)
        self.was_read = False

    def read(self, *args):
        self.was_read = True
        return super().read(*args)


@pytest.fixture
def stdin_bytes(monkeypatch):
    """Replace sys.stdin with one whose buffer yields the given bytes."""
    def _set(data: bytes) -> RecordingStream:
        stream = RecordingStream(data)
        monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(stream))
        return stream
    return _set
