"""loguru setup: stdlib records are routed into loguru and tagged with the request id."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from loguru import logger as loguru_logger

from admin_console.core.middleware import get_current_request_id
from admin_console.settings import settings
from admin_console.settings.config import Settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[request_id]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

# httpx logs every provider round trip at INFO; the client logs failures itself
QUIET_LOGGERS = ("httpx", "httpcore")


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame = logging.currentframe()
        depth = 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        loguru_logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _attach_request_id(record: dict) -> None:
    record["extra"].setdefault("request_id", get_current_request_id() or "-")


def configure_logging(config: Settings):
    level = "DEBUG" if config.debug else "INFO"

    loguru_logger.remove()
    loguru_logger.configure(patcher=_attach_request_id)
    # stderr keeps uvicorn's stdout access log separate
    loguru_logger.add(sink=sys.stderr, level=level, format=LOG_FORMAT)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    if not config.debug:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    if config.log_to_file:
        file_path = Path(config.log_file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        loguru_logger.add(
            sink=str(file_path),
            level=level,
            format=LOG_FORMAT,
            rotation="100 MB",
            retention="10 days",
            enqueue=True,
            backtrace=False,
            diagnose=False,
        )

    return loguru_logger


logger = configure_logging(settings)
