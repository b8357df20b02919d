from __future__ import annotations

import json
import socket
from pathlib import Path

from .codec import REQUEST_PREFIX, REQUEST_TRAILER
from .errors import MessageTooLarge, TransportClosed


def read_json(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def recv_exact(conn: socket.socket, size: int) -> bytes:
    chunks: list[bytes] = []
    got = 0
    while got < size:
        chunk = conn.recv(min(size - got, 64 * 1024))
        if not chunk:
            raise TransportClosed(code="TRANSPORT_CLOSED", message=f"peer closed after {got} of {size} bytes")
        chunks.append(chunk)
        got += len(chunk)
    return b"".join(chunks)


def read_request_bytes(conn: socket.socket, *, max_bytes: int) -> bytes | None:
    """Read one complete request off the stream; ``None`` on a clean close."""
    first = conn.recv(REQUEST_PREFIX.size)
    if not first:
        return None
    prefix = first + recv_exact(conn, REQUEST_PREFIX.size - len(first))
    case_name_length = REQUEST_PREFIX.unpack(prefix)[3]
    case_name = recv_exact(conn, case_name_length)
    trailer = recv_exact(conn, REQUEST_TRAILER.size)
    payload_length = REQUEST_TRAILER.unpack(trailer)[1]

    total = len(prefix) + len(case_name) + len(trailer) + payload_length
    if total > max_bytes:
        raise MessageTooLarge(code="MESSAGE_TOO_LARGE", message=f"request of {total} bytes exceeds {max_bytes}")
    return prefix + case_name + trailer + recv_exact(conn, payload_length)
