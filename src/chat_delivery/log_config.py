from __future__ import annotations

import logging

from chat_delivery.api.middleware.correlation_id import CorrelationIdFilter
from chat_delivery.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(correlation_id)s]: %(message)s"


def configure_logging(level: str | None = None) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), handlers=[handler], force=True)
