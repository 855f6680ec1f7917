"""
Helmsman command base class.

A command is what the dispatcher instantiates once the command words are
resolved. It parses its own arguments (its own option groups plus the
application's common ones), answers help requests, reports missing
mandatory options and finally runs execute() with the positional arguments.

    >>> class Copy(Command):
    ...     descr = "Copy files"
    ...     groups = [OptionGroup("Copy options", [
    ...         ValueOption("--file", metavar="file", dest="file", mandatory=True, descr="Input file"),
    ...     ])]
    ...
    ...     def execute(self, args):
    ...         print("copy", self.context.config.file, *args)
"""
import logging
import os
import pathlib
import time

from .faults import CommandSyntaxError, ExitCode
from .help import HelpFormatter
from .parser import check_mandatory, parse
from .utils import lookup

logger = logging.getLogger(__name__)


class Command:
    """
    Base class of command implementations.

    Class attributes
    - descr: one-line description, shown in the commands table and in help.
    - groups: the command's own option groups.

    Instances receive the invocation Context and the common groups; subclasses
    override execute(), and may override option_groups() to build groups per
    instance.
    """
    descr = None
    groups = ()

    def __init__(self, context, /, common=()):
        self.context = context
        self.common = list(common)

    def option_groups(self):
        """
        Groups parsed (and shown in help) for this command, own ones first.
        """
        seen = set()
        groups = []
        for group in (*self.groups, *self.common):
            if id(group) not in seen:
                seen.add(id(group))
                groups.append(group)
        return groups

    def help(self):
        HelpFormatter(
            self.context.prog,
            self.option_groups(),
            command=self.context.command,
            descr=self.descr,
            colorful=self.context.colorful,
            console=self.context.console,
        ).print()

    def run(self, argv, /):
        """
        Parse `argv`, then execute; returns the process exit code.

        - help requested: command help, success.
        - unknown options: warned about and dropped.
        - arguments after "--": kept apart in context.forwarded.
        - missing mandatory options: every one logged, help, syntax code.
        """
        config = self.context.config
        groups = self.option_groups()

        try:
            result = parse(argv, config, groups)
        except CommandSyntaxError as error:
            logger.error("%s", error)
            self.help()
            return ExitCode.SYNTAX
        self.context.reconfigure()

        if lookup(config, "is_help_request", False):
            self.help()
            return ExitCode.SUCCESS

        args = []
        for argument in result.remaining:
            if argument.startswith("-") and argument != "-":
                logger.warning("Option '%s' not supported; ignored", argument)
            else:
                args.append(argument)

        if messages := check_mandatory(groups):
            for message in messages:
                logger.error("%s", message)
            self.help()
            return ExitCode.SYNTAX

        self.context.forwarded = list(result.forwarded)
        display = " ".join((self.context.prog, *self.context.commands))
        logger.debug("executing %r with %r, forwarding %r", display, args, self.context.forwarded)
        started = time.perf_counter()
        code = self.execute(args)
        logger.info("'%s' completed in %.3f s.", display, time.perf_counter() - started)
        return ExitCode.SUCCESS if code is None else code

    def execute(self, args, /):
        """
        Do the work; return an exit code (None means success).

        `args` holds the positional arguments; those given after "--" are in
        self.context.forwarded.
        """
        raise NotImplementedError(f"{type(self).__name__} must implement execute()")

    def resolve_path(self, path, /):
        """
        Absolute, normalized form of `path`; relative ones are taken from the
        configured working folder (-C), else the process one.
        """
        path = pathlib.Path(path)
        if not path.is_absolute():
            path = pathlib.Path(lookup(self.context.config, "cwd", None) or pathlib.Path.cwd()) / path
        return pathlib.Path(os.path.normpath(path))


__all__ = (
    "Command",
)
