"""Entrypoint: python -m support_chat"""
from __future__ import annotations

import logging

import uvicorn

from support_chat.api.middleware.correlation_id import CorrelationIdFilter
from support_chat.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(request_id)s]: %(message)s"


def configure_logging(level: str) -> None:
    handler = logging.StreamHandler()
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(level=level.upper(), handlers=[handler])


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(
        "support_chat.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_level=settings.LOG_LEVEL,
        log_config=None,
    )


if __name__ == "__main__":
    main()
