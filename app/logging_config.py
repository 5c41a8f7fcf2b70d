"""
logging_config.py — Loguru setup for Scout

Services, cache and connectors log through stdlib
logging.getLogger("scout.<component>"). This module routes those records
into Loguru and tags each one with its component, so triage, cache and
provider lines can be filtered apart.

Business Rules:
- Loguru is the only sink; stdlib records are forwarded, never printed twice
- JSON lines when APP_URL points anywhere but localhost, colour otherwise
- LOG_LEVEL env var sets the floor (default INFO)
- httpx/httpcore/uvicorn.access/sqlalchemy.engine are held at WARNING

Called by: app/main.py (lifespan startup)
"""

import logging
import os
import sys

from loguru import logger

_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine")

_DEV_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[component]}</magenta> | "
    "{message}"
)


def _is_production(app_url: str) -> bool:
    return bool(app_url) and "localhost" not in app_url and "127.0.0.1" not in app_url


def _component(name: str) -> str:
    """"scout.triage" -> "triage"; third-party names pass through."""
    return name.split(".", 1)[1] if name.startswith("scout.") else name


def setup_logging() -> None:
    """Install the Loguru sink and the stdlib bridge. Safe to call again."""
    logger.remove()
    logger.configure(extra={"component": "app"})

    level = os.getenv("LOG_LEVEL", "INFO").upper()
    production = _is_production(os.getenv("APP_URL", ""))

    if production:
        logger.add(sys.stdout, level=level, serialize=True, backtrace=False, diagnose=False)
    else:
        logger.add(sys.stdout, level=level, format=_DEV_FORMAT, colorize=True)

    logging.basicConfig(handlers=[_LoguruBridge()], level=0, force=True)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info("Logging configured (level={}, json={})", level, production)


class _LoguruBridge(logging.Handler):
    """Forward a stdlib LogRecord to Loguru, keeping caller and component."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so Loguru reports the real caller
        frame, depth = sys._getframe(1), 1
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.bind(component=_component(record.name)).opt(
            depth=depth, exception=record.exc_info
        ).log(level, record.getMessage())
