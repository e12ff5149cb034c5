from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from chat_delivery.api.deps import get_registry, get_verifier
from chat_delivery.application.dto.principal import Principal
from chat_delivery.config import settings
from chat_delivery.infrastructure.ws.connection import WsConnection
from chat_delivery.infrastructure.ws.protocol import (
    EchoFrame,
    ErrorFrame,
    PingFrame,
    PongFrame,
    encode_frame,
    parse_inbound,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])


async def _authenticate(token: str) -> Principal | None:
    try:
        verifier = get_verifier()
        return await verifier.verify(token)
    except Exception:
        logger.debug("WS auth failed", exc_info=True)
        return None


@router.websocket(settings.WS_PATH)
async def ws_chat(
    websocket: WebSocket,
    token: str = Query(...),
) -> None:
    principal = await _authenticate(token)
    if principal is None:
        await websocket.close(code=4001, reason="Authentication failed")
        return

    registry = get_registry()
    conn = WsConnection(websocket, principal.user_id)
    # Registered while CONNECTING; broadcasts start reaching it once OPEN.
    registry.register(conn)
    try:
        await conn.open()
    except Exception:
        registry.unregister(conn)
        raise

    heartbeat_task: asyncio.Task[None] | None = None
    if settings.WS_HEARTBEAT_SECONDS > 0:
        heartbeat_task = asyncio.create_task(
            _heartbeat(conn, settings.WS_HEARTBEAT_SECONDS),
            name=f"ws-heartbeat-{principal.user_id}",
        )
    try:
        await _read_loop(conn)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", principal.user_id)
    finally:
        if heartbeat_task is not None:
            heartbeat_task.cancel()
        conn.mark_closed()
        registry.unregister(conn)


async def _heartbeat(conn: WsConnection, interval: int) -> None:
    try:
        while True:
            await asyncio.sleep(interval)
            await conn.send_text(encode_frame(PongFrame()))
    except asyncio.CancelledError:
        pass
    except Exception:
        logger.debug("Heartbeat stopped for %r", conn)


async def _read_loop(conn: WsConnection) -> None:
    while True:
        raw = await conn.receive_text()
        try:
            frame = parse_inbound(raw)
        except ValueError:
            logger.debug("Non-JSON frame from %r", conn)
            await conn.send_text(encode_frame(ErrorFrame(message="invalid_payload")))
            continue

        if isinstance(frame, PingFrame):
            reply = PongFrame()
        else:
            reply = EchoFrame(data=frame.data)
        await conn.send_text(encode_frame(reply))
