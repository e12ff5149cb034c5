"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from chat_delivery.application.dto.principal import Principal
from chat_delivery.application.ports.auth import TokenVerifier
from chat_delivery.application.ports.bus import EventBroadcaster
from chat_delivery.config import settings
from chat_delivery.infrastructure.auth.hs256_verifier import HS256Verifier
from chat_delivery.infrastructure.bus.local import LocalBroadcaster
from chat_delivery.infrastructure.db.session import AsyncSessionLocal
from chat_delivery.infrastructure.db.uow import SqlAlchemyUoW, session_uow
from chat_delivery.infrastructure.ws.registry import ConnectionRegistry
from chat_delivery.services.delivery_service import DeliveryCoordinator

_bearer_scheme = HTTPBearer()


async def get_uow() -> AsyncIterator[SqlAlchemyUoW]:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        try:
            yield uow
        finally:
            await session.close()


UoWDep = Annotated[SqlAlchemyUoW, Depends(get_uow)]


_verifier: TokenVerifier | None = None


def get_verifier() -> TokenVerifier:
    global _verifier  # noqa: PLW0603
    if _verifier is None:
        _verifier = HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)
    return _verifier


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(_bearer_scheme)],
) -> Principal:
    verifier = get_verifier()
    try:
        return await verifier.verify(credentials.credentials)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


# Process-wide real-time state. The broadcaster is swapped for the Redis one
# at startup when FANOUT_BACKEND=redis.
_registry = ConnectionRegistry()
_coordinator: DeliveryCoordinator | None = None


def get_registry() -> ConnectionRegistry:
    return _registry


def configure_coordinator(broadcaster: EventBroadcaster) -> DeliveryCoordinator:
    global _coordinator  # noqa: PLW0603
    _coordinator = DeliveryCoordinator(broadcaster, session_uow)
    return _coordinator


def get_coordinator() -> DeliveryCoordinator:
    if _coordinator is None:
        return configure_coordinator(LocalBroadcaster(_registry))
    return _coordinator


CoordinatorDep = Annotated[DeliveryCoordinator, Depends(get_coordinator)]
