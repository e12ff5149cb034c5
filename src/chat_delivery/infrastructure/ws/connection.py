from __future__ import annotations

import logging

from fastapi import WebSocket

from chat_delivery.domain.value_objects.enums import ConnectionState

logger = logging.getLogger(__name__)


class WsConnection:
    """One client's real-time channel: CONNECTING -> OPEN -> CLOSED."""

    def __init__(self, websocket: WebSocket, user_id: str) -> None:
        self._ws = websocket
        self.user_id = user_id
        self.state = ConnectionState.CONNECTING

    def __repr__(self) -> str:
        return f"<WsConnection user={self.user_id} state={self.state}>"

    async def open(self) -> None:
        await self._ws.accept()
        self.state = ConnectionState.OPEN

    async def receive_text(self) -> str:
        return await self._ws.receive_text()

    async def send_text(self, raw: str) -> None:
        await self._ws.send_text(raw)

    def mark_closed(self) -> None:
        self.state = ConnectionState.CLOSED

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        if self.state is ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSED
        try:
            await self._ws.close(code=code, reason=reason)
        except RuntimeError:
            # Transport already finished the close handshake.
            logger.debug("Close on finished transport: %r", self)
