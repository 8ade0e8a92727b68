"""Process-level logging setup."""

import os

from loguru import logger
from rich.console import Console
from rich.logging import RichHandler

_configured_level = None


def _build_stderr_handler() -> RichHandler:
    # stdout is reserved for the generated command so `eval "$(uwu ...)"` works.
    return RichHandler(
        console=Console(stderr=True),
        show_level=True,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )


def configure_logging(debug: bool = False) -> None:
    """Configure loguru once per level; later calls with the same level are no-ops."""
    global _configured_level

    logger.enable("uwu")

    level = "DEBUG" if debug else os.getenv("UWU_LOG_LEVEL", "WARNING").upper()
    if level == _configured_level:
        return

    logger.remove()
    logger.add(
        _build_stderr_handler(),
        level=level,
        format="{name}:{function} | {message}",
        backtrace=False,
        diagnose=False,
    )
    _configured_level = level
