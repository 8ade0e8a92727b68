"""uwu: describe a shell command in plain words, get the command back."""

from loguru import logger

__version__ = "0.1.0"

# Silent when imported as a library; the CLI turns it on in configure_logging.
logger.disable("uwu")
