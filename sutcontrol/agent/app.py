from __future__ import annotations

import dataclasses
import logging
import socket
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from sutcontrol.capabilities.base import Capabilities
from sutcontrol.capabilities.selection import select_capabilities

from .codec import decode_request, encode_response
from .config import AgentConfig, load_config
from .deferred import DeferredActionRunner
from .dispatcher import CommandDispatcher, DispatchOutcome
from .errors import MessageDecodeError, MessageTooLarge, TransportClosed
from .handlers import HandlerContext
from .io import read_request_bytes
from .model import ResponseMessage, ResultCode, TestsuiteId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentContext:
    config: AgentConfig
    dispatcher: CommandDispatcher
    runner: DeferredActionRunner


def build_context(
    config: AgentConfig,
    *,
    capabilities: Capabilities | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> AgentContext:
    if capabilities is None:
        capabilities = select_capabilities(
            config.platform,
            descriptor_path=config.descriptor_path,
            screenshot_region=config.screenshot_region,
        )
    handler_context = HandlerContext(
        capabilities=capabilities,
        reconnect_wait_seconds=config.reconnect_wait_seconds,
        sleep=sleep,
    )
    return AgentContext(
        config=config,
        dispatcher=CommandDispatcher(handler_context),
        runner=DeferredActionRunner(single_flight=config.single_flight_reconnect),
    )


def _decode_failure(e: MessageDecodeError) -> ResponseMessage:
    fields = e.fields
    return ResponseMessage(
        testsuite_id=fields.get("testsuite_id", TestsuiteId.RDP_TESTSUITE),
        command_id=fields.get("command_id", 0),
        case_name=fields.get("case_name", ""),
        request_id=fields.get("request_id", 0),
        result_code=ResultCode.FAIL,
        error_message=f"Failed to decode request: {e.message}",
    )


def handle_message(ctx: AgentContext, raw: bytes) -> DispatchOutcome:
    try:
        request = decode_request(raw)
    except MessageDecodeError as e:
        logger.warning("rejecting malformed request: %s", e)
        return DispatchOutcome(response=_decode_failure(e))
    return ctx.dispatcher.dispatch(request)


def serve_connection(ctx: AgentContext, conn: socket.socket) -> int:
    served = 0
    while True:
        try:
            raw = read_request_bytes(conn, max_bytes=ctx.config.max_message_bytes)
        except (TransportClosed, MessageTooLarge, OSError) as e:
            logger.warning("dropping driver connection: %s", e)
            return served
        if raw is None:
            return served
        outcome = handle_message(ctx, raw)
        try:
            conn.sendall(encode_response(outcome.response))
        except OSError as e:
            # the response never reached the driver, so its deferred action is dropped
            logger.warning("dropping driver connection while answering request %s: %s", outcome.response.request_id, e)
            return served
        if outcome.deferred is not None:
            ctx.runner.schedule(outcome.deferred)
        served += 1


def run_forever(
    *,
    config_path: Path | None,
    schemas_base_dir: Path,
    host: str | None = None,
    port: int | None = None,
) -> None:
    cfg = load_config(config_path, schemas_base_dir=schemas_base_dir) if config_path else AgentConfig()
    if host is not None:
        cfg = dataclasses.replace(cfg, listen_host=host)
    if port is not None:
        cfg = dataclasses.replace(cfg, listen_port=port)
    ctx = build_context(cfg)

    with socket.create_server((cfg.listen_host, cfg.listen_port)) as server:
        logger.info("SUT control agent listening on %s:%s", cfg.listen_host, cfg.listen_port)
        try:
            while True:
                conn, addr = server.accept()
                logger.info("driver connected from %s", addr[0])
                with conn:
                    served = serve_connection(ctx, conn)
                logger.info("driver %s disconnected after %d request(s)", addr[0], served)
        finally:
            ctx.runner.shutdown(wait_for_pending=False)
