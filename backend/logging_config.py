"""Centralized logging configuration."""

import logging

from config import settings

NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def setup_logging() -> None:
    """Configure logging for the application.

    Sets root logger level from settings.LOG_LEVEL and suppresses
    noisy third-party loggers to WARNING. SQLAlchemy statement logging
    stays off unless settings.LOG_SQL is enabled.
    """
    logging.basicConfig(
        format="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
        datefmt="%H:%M:%S",
        level=getattr(logging, settings.LOG_LEVEL),
        force=True,
    )

    sql_level = logging.INFO if settings.LOG_SQL else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(sql_level)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
