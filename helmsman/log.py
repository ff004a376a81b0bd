"""
Logging setup.

Library modules log through logging.getLogger(__name__) under the "helmsman"
namespace and never configure handlers themselves; the package logger carries a
NullHandler. Applications that want to see the output call configure(), which
attaches a rich handler writing to stderr; configure_from(settings) does the
same at the level read from the HELMSMAN_LOG_LEVEL setting.
"""
import logging

from rich.console import Console
from rich.logging import RichHandler

from .faults import InvalidConfigurationError

NAMESPACE = "helmsman"


def configure(level="INFO", /, *, console=None):
    """
    attach a RichHandler to the helmsman logger and set its level.

    calling it again replaces the handler installed by the previous call.
    returns the handler.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise InvalidConfigurationError(f"{level!r} is not a logging level.", level=level)
        level = resolved

    logger = logging.getLogger(NAMESPACE)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console if console is not None else Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    return handler


def configure_from(settings, /, *, console=None):
    """configure() at the level named by helmsman.config.Settings.log_level."""
    return configure(settings.log_level, console=console)


__all__ = (
    "NAMESPACE",
    "configure",
    "configure_from",
)
