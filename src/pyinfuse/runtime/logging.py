import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "pyinfuse"


def configure_logging(
    level: Union[int, str] = logging.INFO,
    rich_output: bool = True,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Send pyinfuse log records to the terminal.

    Replaces any handler installed by a previous call, so it is safe to call
    more than once.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for existing in list(logger.handlers):
        if getattr(existing, "_pyinfuse", False):
            logger.removeHandler(existing)

    handler: logging.Handler
    if rich_output:
        handler = RichHandler(
            console=console or Console(stderr=True), show_path=False, markup=False
        )
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    handler._pyinfuse = True  # type: ignore[attr-defined]

    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
