"""Entry point для HTTP API реферального движка."""

from __future__ import annotations

import uvicorn
from loguru import logger

from .context import settings
from .logging_config import setup_logging


def main() -> None:
    setup_logging(json=settings.logging.json_output, level=settings.logging.level)
    logger.info("Запуск {app} в окружении {env}", app=settings.app_name, env=settings.environment)
    uvicorn.run(
        "referral_engine.web.app:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
