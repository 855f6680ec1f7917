"""
Helmsman application: registry, common options and the dispatcher loop.

Flow of Application.main(argv)
1. early pass over the common groups (--version), logging configured.
2. --version: print the version, success.
3. full pass over the common groups (log level, -C, -h...).
4. single-command applications hand every argument to their command.
5. otherwise the leading command words are resolved with the trie, the
   command is built from its target and runs with the arguments that
   follow the words it consumed.

Outcomes are mapped to exit codes: syntax faults are logged and followed by
help (ExitCode.SYNTAX), other CommandErrors are reported with their own
code, anything else is logged with its traceback (ExitCode.APPLICATION).

    >>> class Tool(Application):
    ...     prog = "tool"
    ...     version = "1.2.0"
    ...     commands = [
    ...         (["copy", "c"], Copy),
    ...         (["conf"], "tool.conf:Conf"),
    ...     ]
    >>> Tool().main(["co"])  # ambiguous: logged, help, 1
    1
"""
import importlib
import importlib.metadata
import inspect
import logging
import os
import pathlib
import re
import sys

from .command import Command
from .configuration import Configuration, Context
from .faults import CommandError, CommandSyntaxError, ExitCode, report
from .help import HelpFormatter
from .logger import LEVELS
from .options import EnumOption, Flag, OptionGroup, OptionTable, flag, value_option
from .parser import check_mandatory, own_arguments, parse
from .trie import CommandTrie
from .utils import Unset, assign, lookup

logger = logging.getLogger(__name__)

COMMON_OPTIONS = "Common options"

_WORD = re.compile(r"[a-z][a-z-]*")


class Registry:
    """
    Commands and option groups of one application.

    Built once at startup (register_command / add_groups / append_to_group),
    then only read: resolve through `commands`, parse through parse().
    """

    def __init__(self):
        self.commands = CommandTrie()
        self.options = OptionTable()

    def register_command(self, aliases, target=None, /):
        """
        Register a command (canonical name first, then aliases); returns the
        command's sub-command trie.
        """
        return self.commands.register(aliases, target)

    def add_groups(self, groups, /):
        self.options.add_groups(groups)

    def append_to_group(self, title, definitions, /, *, front=False):
        self.options.append_to_group(title, definitions, front=front)

    @property
    def common_groups(self):
        return self.options.common_groups

    def parse(self, argv, config, groups=Unset, /, *, early=False):
        """
        parse() against the given groups, or every registered group.
        """
        return parse(argv, config, self.options.compose() if groups is Unset else groups, early=early)

    def check_mandatory(self, groups=Unset, /):
        return check_mandatory(self.options.compose() if groups is Unset else groups)


def common_options():
    """
    A fresh "Common options" group (help, version, log level, -C).
    """

    @flag("-d", "--debug", descr="Debug messages (twice for trace)")
    def debug(config):
        assign(config, "log_level", "trace" if lookup(config, "log_level") == "debug" else "debug")

    @value_option("-C", metavar="folder", descr="Set current folder",
                  init=lambda config: assign(config, "cwd", pathlib.Path.cwd()))
    def folder(config, value):
        assign(config, "cwd", (pathlib.Path(lookup(config, "cwd") or pathlib.Path.cwd()) / value).resolve())

    return OptionGroup(COMMON_OPTIONS, [
        Flag("-h", "--help", dest="is_help_request", helper=True, descr="Quick help"),
        Flag("--version", dest="is_version_request", early=True, descr="Show version"),
        EnumOption("--loglevel", metavar="level", choices=LEVELS, dest="log_level", default="info",
                   default_descr="info", descr="Set log level"),
        Flag("-s", "--silent", action=lambda config: assign(config, "log_level", "silent"),
             descr="Disable all messages (--loglevel silent)"),
        Flag("-q", "--quiet", action=lambda config: assign(config, "log_level", "warn"),
             descr="Mostly quiet, warnings and errors (--loglevel warn)"),
        Flag("--informative", action=lambda config: assign(config, "log_level", "info"),
             descr="Informative (--loglevel info)"),
        Flag("-v", "--verbose", action=lambda config: assign(config, "log_level", "verbose"),
             descr="Verbose (--loglevel verbose)"),
        debug,
        Flag("-dd", "--trace", action=lambda config: assign(config, "log_level", "trace"),
             descr="Trace messages (--loglevel trace, -d -d)"),
        folder,
    ], common=True)


def load(path, /):
    """
    Import a command target given as "package.module" or "package.module:Class".

    Without ":Class" the module must define exactly one Command subclass.
    Failing to find it is a defect of the embedding application: TypeError.
    """
    module, _, name = path.partition(":")
    module = importlib.import_module(module)
    if name:
        try:
            target = getattr(module, name)
        except AttributeError:
            raise TypeError(f"module {module.__name__!r} has no attribute {name!r}") from None
        if not (inspect.isclass(target) and issubclass(target, Command)):
            raise TypeError(f"{path!r} is not a Command subclass")
        return target

    found = [
        value for value in vars(module).values()
        if inspect.isclass(value) and issubclass(value, Command) and value is not Command
        and value.__module__ == module.__name__
    ]
    match len(found):
        case 1:
            return found[0]
        case 0:
            raise TypeError(f"module {module.__name__!r} does not define a Command subclass")
        case _:
            raise TypeError(f"module {module.__name__!r} defines several Command subclasses; use '{path}:Class'")


class Application:
    """
    Base class of command-line applications.

    Class attributes
    - prog: program name (defaults to the basename of sys.argv[0]).
    - descr: paragraph shown under the usage line.
    - version: version string; when None, read from `distribution`.
    - distribution: installed distribution name used for the version lookup.
    - commands: [(aliases, target), ...] registered at construction.
    - command: Command subclass of a single-command application (no trie).
    - groups: additional option groups (common or not).
    - configuration: factory of the configuration target.
    - colorful: style help and faults.

    Programmatic registration goes through setup(registry).
    """
    prog = None
    descr = None
    version = None
    distribution = None
    commands = ()
    command = None
    groups = ()
    configuration = Configuration
    colorful = True

    def __init__(self, *, console=Unset, error_console=Unset):
        self.console = console
        self.error_console = error_console

        self.registry = Registry()
        self.registry.add_groups(common_options())
        self.registry.add_groups(self.groups)
        for aliases, target in self.commands:
            self.registry.register_command(aliases, target)
        self.setup(self.registry)

        if self.command is not None and self.registry.commands:
            raise TypeError(f"{type(self).__name__} cannot declare both 'command' and 'commands'")

    def setup(self, registry, /):
        """
        Hook for programmatic registration (nested sub-commands, extra groups).
        """

    def get_prog(self):
        return self.prog or os.path.basename(sys.argv[0]) or "helmsman"

    def get_version(self):
        """
        Application.version, else the installed distribution's, else "0.0.0".
        """
        if self.version:
            return self.version
        if self.distribution:
            try:
                return importlib.metadata.version(self.distribution)
            except importlib.metadata.PackageNotFoundError:
                logger.debug("distribution %r not installed", self.distribution)
        return "0.0.0"

    def create_context(self):
        return Context(
            self.get_prog(),
            self.configuration(),
            console=self.console,
            error_console=self.error_console,
            version=self.get_version(),
            colorful=self.colorful,
        )

    def help(self, context, /):
        HelpFormatter(
            context.prog,
            self.registry.options.compose(),
            self.registry.commands,
            descr=self.descr,
            colorful=context.colorful,
            console=context.console,
        ).print()

    def identify_commands(self, argv, /):
        """
        Leading run of command-looking words (lowercased), before "--".
        """
        words = []
        if not self.registry.commands:
            return words
        for argument in own_arguments(argv):
            if not _WORD.fullmatch(argument := argument.lower()):
                break
            words.append(argument)
        return words

    def build(self, target, context, /):
        """
        Turn a registered target (class, factory or dotted path) into a Command.
        """
        if isinstance(target, str):
            target = load(target)
        if not callable(target):
            raise TypeError(f"command target {target!r} is not callable")
        command = target(context, self.registry.common_groups)
        if not isinstance(command, Command):
            raise TypeError(f"command target {target!r} did not build a Command")
        return command

    def main(self, argv=Unset, /):
        """
        Run one invocation; returns the exit code (never raises for faults).
        """
        argv = sys.argv[1:] if argv is Unset else list(argv)
        context = self.create_context()
        try:
            return int(self.dispatch(context, argv))
        except CommandSyntaxError as error:
            logger.error("%s", error)
            self.help(context)
            return int(error.exit_code)
        except CommandError as error:
            logger.debug("%s: %s", type(error).__name__, error)
            report(error, console=context.error_console)
            return int(error.exit_code)
        except Exception as error:
            if logger.isEnabledFor(logging.ERROR):
                logger.exception("unexpected failure: %s", error)
            else:
                # silenced logs still get the traceback
                context.error_console.print_exception()
            return int(ExitCode.APPLICATION)

    def dispatch(self, context, argv, /):
        config = context.config
        common = self.registry.common_groups

        parse(argv, config, common, early=True)
        context.reconfigure()
        if lookup(config, "is_version_request", False):
            context.console.print(context.version, highlight=False)
            return ExitCode.SUCCESS

        parse(argv, config, common)
        context.reconfigure()
        logger.debug("%s %s, config %r", context.prog, context.version, config)

        if self.command is not None:
            return self.build(self.command, context).run(argv)

        words = self.identify_commands(argv)
        if not words:
            if lookup(config, "is_help_request", False):
                self.help(context)
                return ExitCode.SUCCESS
            if not self.registry.commands:
                raise TypeError(f"{type(self).__name__} declares neither 'command' nor 'commands'")
            logger.error("Missing mandatory command.")
            self.help(context)
            return ExitCode.SYNTAX

        resolution = self.registry.commands.resolve(words)
        consumed = len(words) - len(resolution.unconsumed_words)
        context.words = words[:consumed]
        context.commands = resolution.commands
        logger.debug("command %r resolved from %r", resolution.matched_command, context.words)

        return self.build(resolution.target, context).run(argv[consumed:])

    @classmethod
    def start(cls, argv=Unset, /, **options):
        """
        Entry point for console scripts: run and exit with the code.
        """
        sys.exit(cls(**options).main(argv))


__all__ = (
    "Application",
    "Registry",
    "common_options",
    "load",
    "COMMON_OPTIONS",
)
