"""Create the chat tables on a fresh database."""
from __future__ import annotations

import asyncio
import logging

from support_chat.infrastructure.db.session import create_schema, engine

logger = logging.getLogger(__name__)


async def init_db() -> None:
    try:
        await create_schema()
        logger.info("Chat schema is up to date")
    finally:
        await engine.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(init_db())


if __name__ == "__main__":
    main()
