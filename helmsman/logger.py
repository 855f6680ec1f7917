"""
Helmsman logging levels and handler setup.

The command-line levels (silent, warn, info, verbose, debug, trace) map onto
the standard logging module; VERBOSE and TRACE are registered as extra level
names. configure_logging() installs a single rich handler writing to stderr
on the "helmsman" logger and, optionally, on the embedding application's one.
"""
import logging

from rich.console import Console
from rich.logging import RichHandler

VERBOSE = 15
TRACE = 5
SILENT = logging.CRITICAL + 10

logging.addLevelName(VERBOSE, "VERBOSE")
logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(SILENT, "SILENT")

LEVELS = {
    "silent": SILENT,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "verbose": VERBOSE,
    "debug": logging.DEBUG,
    "trace": TRACE,
}
"""
Level names accepted by --loglevel, from the quietest to the noisiest.
"""

ROOT = "helmsman"


def level_of(name, /):
    """
    Numeric logging level for a command-line level name.
    """
    if not isinstance(name, str):
        raise TypeError("log level must be a string")
    try:
        return LEVELS[name.strip().lower()]
    except KeyError:
        raise ValueError(f"unknown log level {name!r} (expected one of: {', '.join(LEVELS)})") from None


def configure_logging(level="info", /, console=None, *, names=()):
    """
    Install (or replace) the rich handler and set the level.

    Parameters
    - level: a name from LEVELS or a numeric logging level.
    - console: rich Console receiving the records; stderr when omitted.
    - names: further logger names (the application's own) to configure the same way.

    Calling it again replaces the handler installed by the previous call, so
    the dispatcher can reconfigure once the options are parsed.
    """
    if isinstance(level, str):
        level = level_of(level)
    elif not isinstance(level, int):
        raise TypeError("log level must be a string or an integer")

    handler = RichHandler(
        console=console if console is not None else Console(stderr=True),
        show_time=False,
        show_path=level <= logging.DEBUG,
        markup=False,
        rich_tracebacks=True,
    )
    handler.set_name(ROOT)

    for name in (ROOT, *names):
        logger = logging.getLogger(name)
        for existing in [h for h in logger.handlers if h.get_name() == ROOT]:
            logger.removeHandler(existing)
        logger.addHandler(handler)
        logger.setLevel(level)
        logger.propagate = False
    return handler


__all__ = (
    "VERBOSE",
    "TRACE",
    "SILENT",
    "LEVELS",
    "level_of",
    "configure_logging",
)
