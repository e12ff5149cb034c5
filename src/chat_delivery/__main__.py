"""Entrypoint: python -m chat_delivery"""
from __future__ import annotations

import uvicorn

from chat_delivery.config import settings
from chat_delivery.log_config import configure_logging


def main() -> None:
    configure_logging()
    uvicorn.run(
        "chat_delivery.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_level=settings.LOG_LEVEL.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
