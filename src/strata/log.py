"""Logging setup: stdlib loggers rendered through rich."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_LOGGER_NAME = "strata"


def configure_logging(level: str | int = "WARNING", console: Console | None = None) -> logging.Logger:
    """Attach a RichHandler to the ``strata`` logger and set its level.

    Calling this more than once replaces the previous handler instead of
    stacking duplicates.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    logger.propagate = False

    # litellm is chatty at INFO; keep it at WARNING unless debugging strata itself
    logging.getLogger("LiteLLM").setLevel(
        logging.DEBUG if logger.level == logging.DEBUG else logging.WARNING
    )
    return logger
