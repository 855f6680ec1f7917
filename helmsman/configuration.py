"""
Helmsman configuration target and invocation context.

Configuration is the default target handed to option callbacks; any mutable
object (or mapping) works as long as the definitions agree on the fields.
Context describes one invocation: which program, which configuration, which
commands were typed and which canonical commands they resolved to.
"""
import pathlib

from rich.console import Console

from .logger import configure_logging
from .utils import Unset, coalesce, lookup, mirror


class Configuration:
    """
    Default configuration target.

    Fields written by the common options
    - log_level: one of helmsman.logger.LEVELS ("info" by default).
    - cwd: working folder, as given by -C (resolved, never chdir'ed into).
    - is_help_request: -h/--help was given.
    - is_version_request: --version was given.

    Applications subclass it to add their own fields.
    """

    def __init__(self, **fields):
        self.log_level = "info"
        self.cwd = pathlib.Path.cwd()
        self.is_help_request = False
        self.is_version_request = False
        for key, value in fields.items():
            setattr(self, key, value)

    def __repr__(self):
        return "%s(%s)" % (
            type(self).__name__,
            ", ".join(f"{key}={value!r}" for key, value in vars(self).items() if not key.startswith("_"))
        )


class Context:
    """
    One invocation of an application.

    - prog: program name used in help and messages.
    - config: the configuration target of this invocation.
    - console: rich console used for help and version output.
    - error_console: rich console receiving log records (stderr by default).
    - colorful: whether help and faults are styled.
    - version: version string of the application.
    - words: command words as typed (possibly abbreviated).
    - commands: canonical commands they resolved to (outermost first).
    - forwarded: arguments given after "--", untouched by option parsing.
    """
    prog = mirror("prog")
    console = mirror("console")
    error_console = mirror("error_console")
    version = mirror("version")

    def __init__(self, prog, config, /, console=Unset, error_console=Unset, version="0.0.0", *, colorful=True):
        if not isinstance(prog, str) or not prog:
            raise TypeError("context 'prog' must be a non-empty string")
        self._prog = prog
        self.config = config
        self._console = coalesce(console) or Console()
        self._error_console = coalesce(error_console) or Console(stderr=True)
        self._version = version
        self.colorful = colorful
        self.words = []
        self.commands = []
        self.forwarded = []

    @property
    def command(self):
        """
        Canonical matched command path ("config get"), or None.
        """
        return " ".join(self.commands) or None

    def reconfigure(self):
        """
        Apply the configured log level to the helmsman and program loggers.
        """
        return configure_logging(
            lookup(self.config, "log_level", "info"),
            console=self.error_console,
            names=(self.prog,)
        )

    def __repr__(self):
        return f"context(prog={self.prog!r}, version={self.version!r}, commands={self.commands!r})"


__all__ = (
    "Configuration",
    "Context",
)
