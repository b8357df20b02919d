"""
Binary codec for SUT control messages.

Every integer on the wire is fixed-width little-endian; strings are UTF-8
and length-prefixed. The ``struct`` formats below use an explicit ``<`` so
the byte order does not depend on the host.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Any, Callable

from .errors import MessageDecodeError
from .model import MessageType, RequestMessage, ResponseMessage, ResultCode, TestsuiteId

U8 = struct.Struct("<B")
U16 = struct.Struct("<H")
U32 = struct.Struct("<I")

# messageType, testsuiteId, commandId, caseNameLength
REQUEST_PREFIX = struct.Struct("<HHHH")
# requestId, payloadLength
REQUEST_TRAILER = struct.Struct("<II")


@dataclass
class ByteReader:
    """Cursor over a byte buffer that refuses to read past ``limit``."""

    buffer: bytes
    limit: int
    cursor: int = 0
    on_error: Callable[[str], Exception] = field(default=lambda msg: MessageDecodeError(code="DECODE_ERROR", message=msg))

    @property
    def remaining(self) -> int:
        return self.limit - self.cursor

    def take(self, size: int, what: str) -> bytes:
        if size < 0 or size > self.remaining:
            raise self.on_error(f"{what}: need {size} bytes at offset {self.cursor}, {self.remaining} available")
        start = self.cursor
        self.cursor += size
        return bytes(self.buffer[start : self.cursor])

    def u8(self, what: str) -> int:
        return U8.unpack(self.take(U8.size, what))[0]

    def u16(self, what: str) -> int:
        return U16.unpack(self.take(U16.size, what))[0]

    def u32(self, what: str) -> int:
        return U32.unpack(self.take(U32.size, what))[0]

    def text(self, size: int, what: str) -> str:
        raw = self.take(size, what)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise self.on_error(f"{what}: invalid utf-8 ({e.reason})") from e


def pack_text16(text: str) -> bytes:
    raw = text.encode("utf-8")
    if len(raw) > 0xFFFF:
        raise ValueError(f"string too long for a 16-bit length prefix: {len(raw)} bytes")
    return U16.pack(len(raw)) + raw


def pack_blob32(data: bytes) -> bytes:
    return U32.pack(len(data)) + data


def decode_request(
    buffer: bytes,
    *,
    expected_testsuite: int = TestsuiteId.RDP_TESTSUITE,
) -> RequestMessage:
    fields: dict[str, Any] = {}

    def fail(msg: str) -> MessageDecodeError:
        return MessageDecodeError(code="DECODE_ERROR", message=msg, fields=dict(fields))

    reader = ByteReader(buffer=buffer, limit=len(buffer), on_error=fail)
    message_type = reader.u16("messageType")
    testsuite_id = reader.u16("testsuiteId")
    fields["testsuite_id"] = testsuite_id
    fields["command_id"] = reader.u16("commandId")
    fields["case_name"] = reader.text(reader.u16("caseNameLength"), "caseName")
    fields["request_id"] = reader.u32("requestId")

    if message_type != MessageType.SUT_CONTROL_REQUEST:
        raise fail(f"unexpected messageType {message_type:#06x}")
    if testsuite_id != expected_testsuite:
        raise fail(f"unexpected testsuiteId {testsuite_id:#06x}")

    payload_length = reader.u32("payloadLength")
    payload = reader.take(payload_length, "payload")
    if reader.remaining:
        raise fail(f"{reader.remaining} trailing bytes after a payload of {payload_length} bytes")

    return RequestMessage(
        message_type=message_type,
        testsuite_id=testsuite_id,
        command_id=fields["command_id"],
        case_name=fields["case_name"],
        request_id=fields["request_id"],
        payload=payload,
    )


def encode_request(request: RequestMessage) -> bytes:
    return b"".join(
        [
            U16.pack(request.message_type),
            U16.pack(request.testsuite_id),
            U16.pack(request.command_id),
            pack_text16(request.case_name),
            U32.pack(request.request_id),
            pack_blob32(request.payload),
        ]
    )


def encode_response(response: ResponseMessage) -> bytes:
    error = (response.error_message or "").encode("utf-8")
    return b"".join(
        [
            U16.pack(MessageType.SUT_CONTROL_RESPONSE),
            U16.pack(response.testsuite_id),
            U16.pack(response.command_id),
            pack_text16(response.case_name),
            U32.pack(response.request_id),
            U32.pack(response.result_code),
            pack_blob32(error),
            pack_blob32(response.payload or b""),
        ]
    )


def decode_response(buffer: bytes) -> ResponseMessage:
    reader = ByteReader(buffer=buffer, limit=len(buffer))
    message_type = reader.u16("messageType")
    if message_type != MessageType.SUT_CONTROL_RESPONSE:
        raise MessageDecodeError(code="DECODE_ERROR", message=f"unexpected messageType {message_type:#06x}")
    testsuite_id = reader.u16("testsuiteId")
    command_id = reader.u16("commandId")
    case_name = reader.text(reader.u16("caseNameLength"), "caseName")
    request_id = reader.u32("requestId")
    result_code = reader.u32("resultCode")
    error_message = reader.text(reader.u32("errorMessageLength"), "errorMessage")
    payload = reader.take(reader.u32("payloadLength"), "payload")
    if reader.remaining:
        raise MessageDecodeError(code="DECODE_ERROR", message=f"{reader.remaining} trailing bytes after response")
    return ResponseMessage(
        testsuite_id=testsuite_id,
        command_id=command_id,
        case_name=case_name,
        request_id=request_id,
        result_code=ResultCode.SUCCESS if result_code == ResultCode.SUCCESS else ResultCode.FAIL,
        error_message=error_message or None,
        payload=payload or None,
    )
