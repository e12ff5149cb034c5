"""In-process registry of open real-time connections."""
from __future__ import annotations

import logging
from typing import Protocol

from pydantic import BaseModel

from chat_delivery.application.exceptions import DeliveryWarning
from chat_delivery.domain.value_objects.enums import ConnectionState
from chat_delivery.infrastructure.ws.protocol import encode_frame

logger = logging.getLogger(__name__)


class Connection(Protocol):
    state: ConnectionState

    async def send_text(self, raw: str) -> None: ...

    def mark_closed(self) -> None: ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...


class ConnectionRegistry:
    """Tracks open connections; the only owner of the active set.

    Connections carry no conversation membership: a broadcast goes to every
    open connection and clients filter on the conversation id in the frame.
    """

    def __init__(self) -> None:
        self._active: set[Connection] = set()

    def __len__(self) -> int:
        return len(self._active)

    def __contains__(self, conn: object) -> bool:
        return conn in self._active

    def register(self, conn: Connection) -> None:
        self._active.add(conn)
        logger.debug("Connection registered: %r (active=%d)", conn, len(self._active))

    def unregister(self, conn: Connection) -> None:
        if conn in self._active:
            self._active.discard(conn)
            logger.debug("Connection unregistered: %r (active=%d)", conn, len(self._active))

    async def broadcast(self, frame: BaseModel) -> int:
        """Send frame to every open connection; return the number reached."""
        raw = encode_frame(frame)
        delivered = 0
        for conn in list(self._active):
            if conn.state is ConnectionState.CLOSED:
                self.unregister(conn)
                continue
            if conn.state is not ConnectionState.OPEN:
                continue
            try:
                await self._deliver(conn, raw)
            except DeliveryWarning as warning:
                logger.warning("Dropping connection: %s", warning.detail)
                conn.mark_closed()
                self.unregister(conn)
            else:
                delivered += 1
        return delivered

    async def close_all(self) -> None:
        for conn in list(self._active):
            self.unregister(conn)
            await conn.close(code=1001, reason="Server shutting down")

    @staticmethod
    async def _deliver(conn: Connection, raw: str) -> None:
        try:
            await conn.send_text(raw)
        except Exception as exc:
            raise DeliveryWarning(f"delivery to {conn!r} failed: {exc!r}") from exc
