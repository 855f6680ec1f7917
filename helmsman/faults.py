"""
Helmsman faults (exit codes, errors) and rendering.

Scope
- ExitCode: canonical, stable process exit codes surfaced by the application loop.
- CommandError: base type carrying a message, an exit code and free-form options
  (hint, offending command/option/value); knows how to render itself with rich.
- CommandSyntaxError and its children: user input is malformed (unknown or
  ambiguous command, option without value, value outside the allowed set).
  These are recoverable: the application reports them, shows help and returns
  ExitCode.SYNTAX. Never a traceback.
- ApplicationError / InputError / OutputError / ChildError / PrerequisitesError /
  CommandTypeError: other expected failures, each mapped to its own exit code.
- report(): print any fault to a rich console.

Programming errors (framework misuse such as duplicate command registration)
are not faults: they are raised as ValueError/TypeError at registration time.

Customization
- The host application can define a __styles__ mapping in __main__ to override
  palette entries, exactly like the help renderer.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class ExitCode(IntEnum):
    """
    process exit codes (stable identifiers).

    - SUCCESS: everything went fine.
    - SYNTAX: ambiguous/unsupported command, bad option value, missing mandatory option.
    - APPLICATION: any functional error, including unexpected exceptions.
    - INPUT: no file, no folder, wrong format, etc.
    - OUTPUT: cannot create file, cannot write, etc.
    - CHILD: a spawned child process returned an error.
    - PREREQUISITES: prerequisites not met (interpreter too old, missing tool).
    - TYPE: type error detected by the command.
    """
    SUCCESS         = 0
    SYNTAX          = 1
    APPLICATION     = 2
    INPUT           = 3
    OUTPUT          = 4
    CHILD           = 5
    PREREQUISITES   = 6
    TYPE            = 7


class CommandError(Exception):
    """
    base class for all command triggered errors.

    contract
    - message: one sentence, shown as-is.
    - exit_code: class default, overridable per instance.
    - options: read-only mapping of context (hint, command, option, value, prog...).
    """
    exit_code = ExitCode.APPLICATION
    title = "application error"

    def __init__(self, message, /, exit_code=Unset, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__} message must be a string")
        super().__init__(message)
        self.message = message
        if exit_code is not Unset:
            self.exit_code = ExitCode(exit_code)
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan exit code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", True)

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), styles[style] if colorful else "")

        prog = coalesce(self.options.get("prog", Unset), getattr(main, "__prog__", "helmsman"))

        header = Text.assemble(
            "[ ",
            text(prog, "prog-name"),
            " — ",
            text(str(int(self.exit_code)), "code"),
            " | ",
            text(self.title.title(), "error-title"),
            " ]"
        )
        renders = [header, text(self.message, "error-message")]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
        return Group(*renders)


class CommandSyntaxError(CommandError):
    exit_code = ExitCode.SYNTAX
    title = "syntax error"


class NotUniqueCommandError(CommandSyntaxError):
    title = "ambiguous command"


class UnsupportedCommandError(CommandSyntaxError):
    title = "unknown command"


class MissingCommandError(CommandSyntaxError):
    title = "missing command"


class MissingValueError(CommandSyntaxError):
    title = "missing option value"


class IllegalValueError(CommandSyntaxError):
    title = "illegal option value"


class ApplicationError(CommandError):
    exit_code = ExitCode.APPLICATION
    title = "application error"


class InputError(CommandError):
    exit_code = ExitCode.INPUT
    title = "input error"


class OutputError(CommandError):
    exit_code = ExitCode.OUTPUT
    title = "output error"


class ChildError(CommandError):
    exit_code = ExitCode.CHILD
    title = "child process error"


class PrerequisitesError(CommandError):
    exit_code = ExitCode.PREREQUISITES
    title = "prerequisites not met"


class CommandTypeError(CommandError):
    exit_code = ExitCode.TYPE
    title = "type error"


def report(fault, /, console=console):
    """
    print a fault on the given rich console (stderr by default).

    anything without a __rich__ hook is printed through its str().
    """
    if not isinstance(fault, BaseException):
        raise TypeError("report() argument must be an exception")
    console.print(fault if hasattr(fault, "__rich__") else Text(str(fault)))


__all__ = (
    "ExitCode",
    "CommandError",
    "CommandSyntaxError",
    "NotUniqueCommandError",
    "UnsupportedCommandError",
    "MissingCommandError",
    "MissingValueError",
    "IllegalValueError",
    "ApplicationError",
    "InputError",
    "OutputError",
    "ChildError",
    "PrerequisitesError",
    "CommandTypeError",
    "report",
)
