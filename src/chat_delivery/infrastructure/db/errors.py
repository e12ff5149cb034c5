"""Translation of driver/ORM failures into application errors."""
from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError

from chat_delivery.application.exceptions import PersistenceError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def translate_db_errors(func: F) -> F:
    """Raise PersistenceError for ORM failures and for an unreachable server."""
    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Storage call %s failed", func.__qualname__, exc_info=True)
            raise PersistenceError("Storage operation failed") from exc

    return cast(F, wrapper)
