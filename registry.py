"""
pb Message Registry

Resolves fully-qualified type names to empty dynamic message instances.
Only types from files added to the registry can be resolved.
"""

from typing import Protocol

from google.protobuf import descriptor_pb2
from google.protobuf import descriptor_pool
from google.protobuf import message_factory
from google.protobuf.message import Message

from errors import ResolveError


class MessageResolver(Protocol):
    """Anything that can turn a message name into a fresh, mutable instance."""

    def resolve(self, name: str) -> Message:
        ...


def normalize_type_name(name: str) -> str:
    """Strip a type URL prefix or a leading dot from a message name.

    "type.googleapis.com/pkg.Point", ".pkg.Point" and "pkg.Point" all
    name the same type.
    """
    if "/" in name:
        name = name.rsplit("/", 1)[1]
    return name.lstrip(".")


class MessageRegistry:
    """Registry of message types backed by a private descriptor pool."""

    def __init__(self):
        self.pool = descriptor_pool.DescriptorPool()
        self._message_names: list[str] = []

    def add_file(self, file_proto: descriptor_pb2.FileDescriptorProto):
        """Add a parsed file and register its messages.

        Files must be added after the files they import.

        Returns:
            The pool's FileDescriptor for the added file
        """
        self.pool.Add(file_proto)
        file_desc = self.pool.FindFileByName(file_proto.name)

        prefix = f"{file_proto.package}." if file_proto.package else ""

        def collect(message_protos, scope: str):
            for msg in message_protos:
                full_name = f"{scope}{msg.name}"
                self._message_names.append(full_name)
                collect(msg.nested_type, f"{full_name}.")

        collect(file_proto.message_type, prefix)
        return file_desc

    @property
    def message_names(self) -> list[str]:
        """Fully-qualified names of every registered message, nested ones included."""
        return list(self._message_names)

    def __contains__(self, name: str) -> bool:
        return normalize_type_name(name) in self._message_names

    def resolve(self, name: str) -> Message:
        """Return a new, empty instance of the named message.

        Raises:
            ResolveError: If no registered file declares the message
        """
        full_name = normalize_type_name(name)
        if full_name not in self._message_names:
            raise ResolveError(name)
        try:
            descriptor = self.pool.FindMessageTypeByName(full_name)
        except KeyError:
            raise ResolveError(name) from None
        return message_factory.GetMessageClass(descriptor)()
