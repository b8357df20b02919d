from __future__ import annotations

from .codec import U8, U16, U32, ByteReader, pack_text16
from .errors import PayloadDecodeError
from .model import (
    ConnectionConfig,
    ConnectionParameters,
    ConnectPayloadType,
    FileConnectionConfig,
    ScreenImage,
    ScreenType,
)


def _payload_error(message: str) -> PayloadDecodeError:
    return PayloadDecodeError(code="PAYLOAD_DECODE_ERROR", message=message)


def decode_connection_config(buffer: bytes, length: int, cursor: int = 0) -> tuple[ConnectionConfig, int]:
    """Decode a connection payload starting at ``cursor``.

    Returns the decoded config and the cursor just past the last byte read.
    Nothing at or beyond ``length`` is ever read; bytes left over after a
    complete arm are ignored.
    """
    if length > len(buffer):
        raise _payload_error(f"declared length {length} exceeds buffer of {len(buffer)} bytes")
    reader = ByteReader(buffer=buffer, limit=length, cursor=cursor, on_error=_payload_error)

    tag = reader.u8("payload type")
    if tag == ConnectPayloadType.FILE:
        descriptor = reader.text(reader.u32("descriptor length"), "descriptor")
        return FileConnectionConfig(descriptor=descriptor), reader.cursor

    if tag == ConnectPayloadType.PARAMETERS:
        address = reader.text(reader.u16("address length"), "address")
        port = reader.u16("port")
        raw_screen_type = reader.u8("screen type")
        try:
            screen_type = ScreenType(raw_screen_type)
        except ValueError:
            raise _payload_error(f"unknown screen type {raw_screen_type:#04x}") from None
        width = height = 0
        if screen_type != ScreenType.FULL_SCREEN:
            width = reader.u16("desktop width")
            height = reader.u16("desktop height")
        params = ConnectionParameters(
            address=address,
            port=port,
            screen_type=screen_type,
            desktop_width=width,
            desktop_height=height,
        )
        return params, reader.cursor

    raise _payload_error(f"unknown connection payload type {tag:#04x}")


def encode_connection_config(config: ConnectionConfig) -> bytes:
    if isinstance(config, FileConnectionConfig):
        raw = config.descriptor.encode("utf-8")
        return U8.pack(ConnectPayloadType.FILE) + U32.pack(len(raw)) + raw
    parts = [
        U8.pack(ConnectPayloadType.PARAMETERS),
        pack_text16(config.address),
        U16.pack(config.port),
        U8.pack(config.screen_type),
    ]
    if config.screen_type != ScreenType.FULL_SCREEN:
        parts.append(U16.pack(config.desktop_width))
        parts.append(U16.pack(config.desktop_height))
    return b"".join(parts)


def connection_target(params: ConnectionParameters) -> str:
    if params.port == 0:
        return params.address
    return f"{params.address}:{params.port}"


def build_client_arguments(params: ConnectionParameters) -> list[str]:
    args = [f"/v:{connection_target(params)}"]
    if params.screen_type == ScreenType.FULL_SCREEN:
        args.append("/f")
    else:
        args.append(f"/w:{params.desktop_width}")
        args.append(f"/h:{params.desktop_height}")
    return args


def encode_screenshot(image: ScreenImage) -> bytes:
    expected = image.width * image.height * 3
    if len(image.pixels) != expected:
        raise ValueError(
            f"pixel buffer holds {len(image.pixels)} bytes, expected {expected} for {image.width}x{image.height} RGB"
        )
    return U32.pack(image.width) + U32.pack(image.height) + bytes(image.pixels)
