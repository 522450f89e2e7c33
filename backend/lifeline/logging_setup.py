# lifeline/logging_setup.py
# ------------------------------------------------------------
# loguru console logging.
#
# - single colored console sink
# - stdlib logging (uvicorn, fastapi) is routed into loguru
# ------------------------------------------------------------

from __future__ import annotations

import logging
import sys

from loguru import logger


class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def _hook_stdlib_logging() -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for noisy in ("uvicorn", "uvicorn.access", "uvicorn.error", "asyncio"):
        lg = logging.getLogger(noisy)
        lg.handlers = [InterceptHandler()]
        lg.propagate = False


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level:<7}</level> | "
    "<cyan>{extra[component]}</cyan> - "
    "<level>{message}</level>"
)


def setup_logging(log_level: str = "INFO") -> None:
    """
    Replace loguru's default sink and absorb stdlib logging.
    Safe to call more than once.
    """
    logger.remove()
    logger.configure(extra={"component": "lifeline"})
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        colorize=True,
        backtrace=False,
        diagnose=False,
        level=log_level.upper(),
    )
    _hook_stdlib_logging()


def get_logger(component: str):
    """Return a logger bound to a component name."""
    return logger.bind(component=component)
