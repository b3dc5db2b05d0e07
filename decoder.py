"""
pb Message Decoder

Decodes a binary (or base64-wrapped) protobuf payload against a message type
resolved at runtime and renders it as indented JSON.
"""

import base64
import binascii
import logging
from typing import BinaryIO

from google.protobuf import json_format
from google.protobuf import message as pb_message

from errors import DecodeError, InputError, SerializeError
from registry import MessageResolver


logger = logging.getLogger(__name__)

BIN = "bin"
BASE64 = "base64"

JSON_INDENT = 2


def read_input(stream: BinaryIO, encoding: str = BIN) -> bytes:
    """Read a whole stream, undoing base64 if requested.

    Any encoding other than "base64" is read as raw binary.

    Raises:
        InputError: If reading fails or the base64 text is malformed
    """
    try:
        data = stream.read()
    except OSError as e:
        raise InputError(f"failed to read input from stdin: {e}") from e

    if encoding != BASE64:
        if encoding != BIN:
            logger.debug("unknown input type %r, reading as %s", encoding, BIN)
        logger.debug("read %d bytes", len(data))
        return data

    # Line breaks are allowed anywhere in the base64 text
    text = data.replace(b"\r", b"").replace(b"\n", b"")
    try:
        decoded = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InputError(f"failed to read base64-encoded input from stdin: {e}") from e
    logger.debug("read %d base64 bytes, %d decoded", len(data), len(decoded))
    return decoded


def message_to_json(msg: pb_message.Message) -> str:
    """Render a message as JSON with declared field names and two-space indent.

    Raises:
        SerializeError: If a field value can't be represented in JSON
    """
    try:
        return json_format.MessageToJson(
            msg,
            preserving_proto_field_name=True,
            indent=JSON_INDENT,
            descriptor_pool=msg.DESCRIPTOR.file.pool,
        )
    except (json_format.SerializeToJsonError, TypeError, ValueError) as e:
        raise SerializeError(f"failed to marshal message: {e}") from e


def decode(resolver: MessageResolver, message_name: str, stream: BinaryIO, encoding: str = BIN) -> str:
    """Decode one message from a stream and return it as JSON.

    The message type is resolved before anything is read from the stream.

    Args:
        resolver: Source of empty message instances by name
        message_name: Fully-qualified message name
        stream: Binary stream holding the payload, read to the end
        encoding: "bin" or "base64"

    Returns:
        The JSON document, without a trailing newline

    Raises:
        ResolveError: If the message type is unknown
        InputError: If the stream can't be read or decoded
        DecodeError: If the bytes aren't a valid encoding of the message
        SerializeError: If JSON marshaling fails
    """
    msg = resolver.resolve(message_name)

    data = read_input(stream, encoding)

    try:
        msg.ParseFromString(data)
    except pb_message.DecodeError as e:
        raise DecodeError(f"failed to unmarshal message: {e}") from e

    return message_to_json(msg)
