from __future__ import annotations

from typing import Protocol

from chat_delivery.domain.entities.user import UserProfile


class UserReader(Protocol):
    async def exists(self, user_id: str) -> bool: ...

    async def get_profiles(self, user_ids: list[str]) -> dict[str, UserProfile]: ...
