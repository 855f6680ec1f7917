"""
Application dispatcher tests (end to end, through Application.main).

Scope
- --version, help requests and the missing command case.
- Command resolution faults mapped to the syntax exit code.
- Command runs: positionals, forwarded arguments, unknown options,
  mandatory options, command help.
- Exit codes of CommandErrors and unexpected exceptions.
- Targets given as classes, factories and dotted paths; nested commands;
  single-command applications.
- Common options: log levels and -C.

Conventions
- Test method names follow CamelCase per project convention.
- Consoles write to io.StringIO(); logs are checked with assertLogs.
"""
import io
import pathlib
import sys
import types
import unittest
from unittest import TestCase, mock

from rich.console import Console

from helmsman.application import Application, Registry, common_options, load
from helmsman.command import Command
from helmsman.faults import ExitCode, InputError
from helmsman.options import Flag, OptionGroup, ValueOption


class Copy(Command):
    descr = "Copy a file"
    groups = [OptionGroup("Copy options", [
        ValueOption("--file", metavar="file", dest="file", mandatory=True, descr="Input file"),
    ])]
    calls = []

    def execute(self, args):
        type(self).calls.append((args, self.context.config.file))


class Conf(Command):
    descr = "Show the configuration"
    calls = []

    def execute(self, args):
        type(self).calls.append((args, self.context.config.log_level, self.context.config.cwd))


class Fail(Command):
    error = None

    def execute(self, args):
        raise type(self).error


class Code(Command):
    def execute(self, args):
        return ExitCode.OUTPUT


class Get(Command):
    calls = []

    def execute(self, args):
        type(self).calls.append((args, list(self.context.commands)))


class Tool(Application):
    prog = "tool"
    version = "1.2.3"
    descr = "Tool for tests."
    commands = [
        (["copy", "c"], Copy),
        (["conf"], Conf),
        (["fail"], Fail),
        (["exit-code"], Code),
    ]

    def setup(self, registry):
        config = registry.register_command(["config", "cfg"])
        config.register("get", Get)


def consoles():
    return {
        "console": Console(file=io.StringIO(), width=150),
        "error_console": Console(file=io.StringIO(), width=150),
    }


class ApplicationTestCase(TestCase):

    def setUp(self):
        Copy.calls.clear()
        Conf.calls.clear()
        Get.calls.clear()
        self.app = Tool(**consoles())

    @property
    def output(self):
        return self.app.console.file.getvalue()


class TestDispatch(ApplicationTestCase):
    """Top-level flow of Application.main."""

    def testVersion(self):
        self.assertEqual(self.app.main(["--version"]), ExitCode.SUCCESS)
        self.assertEqual(self.output.strip(), "1.2.3")

    def testVersionWinsOverEverything(self):
        self.assertEqual(self.app.main(["bogus", "--version", "--loglevel", "bogus"]), ExitCode.SUCCESS)

    def testHelpWithoutCommand(self):
        self.assertEqual(self.app.main(["-h"]), ExitCode.SUCCESS)
        self.assertIn("usage: tool [options...] <command> [command options...]", self.output)
        self.assertIn("Tool for tests.", self.output)
        self.assertIn("copy (c)", self.output)
        self.assertIn("Common options:", self.output)

    def testMissingCommand(self):
        with self.assertLogs("helmsman", "ERROR") as logs:
            self.assertEqual(self.app.main([]), ExitCode.SYNTAX)
        self.assertIn("Missing mandatory command.", logs.output[0])
        self.assertIn("usage: tool", self.output)

    def testOptionsBeforeCommandEndTheCommandWords(self):
        with self.assertLogs("helmsman", "ERROR") as logs:
            self.assertEqual(self.app.main(["-v", "copy"]), ExitCode.SYNTAX)
        self.assertIn("Missing mandatory command.", logs.output[0])

    def testAmbiguousCommand(self):
        with self.assertLogs("helmsman", "ERROR") as logs:
            self.assertEqual(self.app.main(["co"]), ExitCode.SYNTAX)
        self.assertIn("Command 'co' is not unique.", logs.output[0])
        self.assertIn("usage: tool", self.output)

    def testUnsupportedCommand(self):
        with self.assertLogs("helmsman", "ERROR") as logs:
            self.assertEqual(self.app.main(["xyz"]), ExitCode.SYNTAX)
        self.assertIn("Command 'xyz' is not supported.", logs.output[0])

    def testIllegalCommonValue(self):
        with self.assertLogs("helmsman", "ERROR") as logs:
            self.assertEqual(self.app.main(["--loglevel", "bogus"]), ExitCode.SYNTAX)
        self.assertIn("Value 'bogus' not allowed for '--loglevel'", logs.output[0])

    def testIdentifyCommands(self):
        self.assertEqual(self.app.identify_commands(["Copy", "x1", "y"]), ["copy"])
        self.assertEqual(self.app.identify_commands(["a", "--", "b"]), ["a"])
        self.assertEqual(self.app.identify_commands(["-v", "copy"]), [])
        self.assertEqual(self.app.identify_commands(["multi-word", "x"]), ["multi-word", "x"])


class TestCommands(ApplicationTestCase):
    """Runs of resolved commands."""

    def testAliasRunsCommand(self):
        code = self.app.main(["c", "--file", "a.txt", "x", "--", "-y", "z"])
        self.assertEqual(code, ExitCode.SUCCESS)
        self.assertEqual(Copy.calls, [(["x"], "a.txt")])

    def testPositionalCaseIsPreserved(self):
        self.assertEqual(self.app.main(["copy", "Src", "--file", "f"]), ExitCode.SUCCESS)
        self.assertEqual(Copy.calls, [(["Src"], "f")])

    def testUnknownOptionIsWarnedAndDropped(self):
        with self.assertLogs("helmsman", "WARNING") as logs:
            self.assertEqual(self.app.main(["copy", "--file", "f", "--bogus"]), ExitCode.SUCCESS)
        self.assertIn("Option '--bogus' not supported; ignored", logs.output[0])
        self.assertEqual(Copy.calls, [([], "f")])

    def testMissingMandatoryOption(self):
        with self.assertLogs("helmsman", "ERROR") as logs:
            self.assertEqual(self.app.main(["copy"]), ExitCode.SYNTAX)
        self.assertIn("Mandatory '--file' not found", logs.output[0])
        self.assertIn("usage: tool copy [options...]", self.output)
        self.assertEqual(Copy.calls, [])

    def testMissingValue(self):
        with self.assertLogs("helmsman", "ERROR") as logs:
            self.assertEqual(self.app.main(["copy", "--file"]), ExitCode.SYNTAX)
        self.assertIn("'--file' expects a value", logs.output[0])

    def testCommandHelp(self):
        self.assertEqual(self.app.main(["copy", "-h"]), ExitCode.SUCCESS)
        self.assertIn("usage: tool copy [options...]", self.output)
        self.assertIn("Copy options:", self.output)
        self.assertIn("--file <file>", self.output)
        self.assertEqual(Copy.calls, [])

    def testCommandErrorExitCode(self):
        Fail.error = InputError("no such file", prog="tool", colorful=False)
        self.assertEqual(self.app.main(["fail"]), ExitCode.INPUT)
        self.assertIn("no such file", self.app.error_console.file.getvalue())

    def testUnexpectedExceptionIsApplicationError(self):
        Fail.error = RuntimeError("boom")
        with self.assertLogs("helmsman", "ERROR") as logs:
            self.assertEqual(self.app.main(["fail"]), ExitCode.APPLICATION)
        self.assertIn("boom", logs.output[0])

    def testReturnedExitCode(self):
        self.assertEqual(self.app.main(["exit-code"]), ExitCode.OUTPUT)

    def testNestedCommand(self):
        self.assertEqual(self.app.main(["cfg", "get", "key"]), ExitCode.SUCCESS)
        self.assertEqual(Get.calls, [(["key"], ["config", "get"])])

    def testGroupWithoutSubCommand(self):
        with self.assertLogs("helmsman", "ERROR") as logs:
            self.assertEqual(self.app.main(["config"]), ExitCode.SYNTAX)
        self.assertIn("Command 'config' requires a sub-command.", logs.output[0])


class TestCommonOptions(ApplicationTestCase):
    """Log levels and working folder."""

    def testDefaults(self):
        self.app.main(["conf"])
        self.assertEqual(Conf.calls, [([], "info", pathlib.Path.cwd())])

    def testLogLevelShortcuts(self):
        for argv, level in (
                (["-s"], "silent"),
                (["-q"], "warn"),
                (["--informative"], "info"),
                (["-v"], "verbose"),
                (["-d"], "debug"),
                (["-d", "-d"], "trace"),
                (["-dd"], "trace"),
                (["--trace"], "trace"),
                (["--loglevel", "warn"], "warn"),
        ):
            Conf.calls.clear()
            self.assertEqual(self.app.main(["conf", *argv]), ExitCode.SUCCESS)
            self.assertEqual(Conf.calls[0][1], level, argv)

    def testWorkingFolder(self):
        self.app.main(["conf", "-C", "sub"])
        self.assertEqual(Conf.calls[0][2], (pathlib.Path.cwd() / "sub").resolve())

    def testRegistryAppendToCommonGroup(self):
        calls = []
        self.app.registry.append_to_group("Common options", [
            Flag("--extra", action=lambda config: calls.append(True), descr="Extra"),
        ])
        self.assertEqual(self.app.main(["conf", "--extra"]), ExitCode.SUCCESS)
        self.assertEqual(calls, [True, True])


class TestTargets(TestCase):
    """Factories, dotted paths, single-command applications."""

    def setUp(self):
        Copy.calls.clear()
        self.app = Tool(**consoles())

    def testFactoryTarget(self):
        class App(Application):
            prog = "app"
            commands = [("copy", lambda context, common: Copy(context, common))]

        self.assertEqual(App(**consoles()).main(["copy", "--file", "f"]), ExitCode.SUCCESS)
        self.assertEqual(Copy.calls, [([], "f")])

    def testFactoryMustBuildACommand(self):
        class App(Application):
            prog = "app"
            commands = [("copy", lambda context, common: object())]

        with self.assertLogs("helmsman", "ERROR"):
            self.assertEqual(App(**consoles()).main(["copy"]), ExitCode.APPLICATION)

    def testDottedPathTarget(self):
        module = types.ModuleType("fake_commands")

        class Remote(Command):
            calls = []

            def execute(self, args):
                type(self).calls.append(args)

        Remote.__module__ = "fake_commands"
        module.Remote = Remote

        class App(Application):
            prog = "app"
            commands = [("remote", "fake_commands"), ("named", "fake_commands:Remote")]

        with mock.patch.dict(sys.modules, {"fake_commands": module}):
            app = App(**consoles())
            self.assertEqual(app.main(["remote", "a"]), ExitCode.SUCCESS)
            self.assertEqual(app.main(["named", "b"]), ExitCode.SUCCESS)
        self.assertEqual(Remote.calls, [["a"], ["b"]])

    def testModuleWithoutCommandRaises(self):
        with mock.patch.dict(sys.modules, {"empty_commands": types.ModuleType("empty_commands")}):
            with self.assertRaises(TypeError):
                load("empty_commands")
            with self.assertRaises(TypeError):
                load("empty_commands:Missing")

    def testSingleCommandApplication(self):
        class Echo(Command):
            calls = []

            def execute(self, args):
                type(self).calls.append(args)

        class App(Application):
            prog = "echo"
            command = Echo

        self.assertEqual(App(**consoles()).main(["a", "-v", "b"]), ExitCode.SUCCESS)
        self.assertEqual(Echo.calls, [["a", "b"]])

    def testForwardedArgumentsAreKeptApart(self):
        class Echo(Command):
            calls = []

            def execute(self, args):
                type(self).calls.append((args, self.context.forwarded))

        class App(Application):
            prog = "echo"
            command = Echo

        app = App(**consoles())
        for argv in (["a", "b"], ["--", "a", "b"], ["a", "--", "-v", "b"]):
            self.assertEqual(app.main(argv), ExitCode.SUCCESS)
        self.assertEqual(Echo.calls, [
            (["a", "b"], []),
            ([], ["a", "b"]),
            (["a"], ["-v", "b"]),
        ])

    def testCompletionIsLogged(self):
        with self.assertLogs("helmsman", "INFO") as logs:
            self.assertEqual(self.app.main(["copy", "--file", "f"]), ExitCode.SUCCESS)
        self.assertTrue(any("'tool copy' completed in" in line for line in logs.output))

    def testResolvePathUsesConfiguredFolder(self):
        class Where(Command):
            calls = []

            def execute(self, args):
                type(self).calls.extend(self.resolve_path(arg) for arg in args)

        class App(Application):
            prog = "where"
            command = Where

        root = pathlib.Path.cwd().anchor
        absolute = str(pathlib.Path(root, "elsewhere", "b"))
        self.assertEqual(App(**consoles()).main(["-C", "sub", "a/../x", absolute]), ExitCode.SUCCESS)
        self.assertEqual(Where.calls, [pathlib.Path.cwd() / "sub" / "x", pathlib.Path(absolute)])

    def testSilencedFailureStillShowsTraceback(self):
        class App(Application):
            prog = "app"
            commands = [("run", "commandless_module")]

        app = App(**consoles())
        with mock.patch.dict(sys.modules, {"commandless_module": types.ModuleType("commandless_module")}):
            self.assertEqual(app.main(["run", "-s"]), ExitCode.APPLICATION)
        self.assertIn("TypeError", app.error_console.file.getvalue())

    def testCommandAndCommandsAreExclusive(self):
        class App(Application):
            command = Copy
            commands = [("copy", Copy)]

        with self.assertRaises(TypeError):
            App()

    def testVersionFromDistribution(self):
        class App(Application):
            distribution = "some-distribution"

        with mock.patch("importlib.metadata.version", return_value="9.9.9"):
            self.assertEqual(App().get_version(), "9.9.9")

    def testVersionFallback(self):
        class App(Application):
            distribution = "surely-not-an-installed-distribution"

        self.assertEqual(App().get_version(), "0.0.0")
        self.assertEqual(Application().get_version(), "0.0.0")


class TestRegistry(TestCase):

    def testRegistryParsesEveryGroup(self):
        registry = Registry()
        registry.add_groups(common_options())
        registry.add_groups(OptionGroup("Own options", [Flag("-x", dest="x")]))
        config = {}

        result = registry.parse(["-x", "-v", "rest"], config)

        self.assertEqual(result.remaining, ["rest"])
        self.assertTrue(config["x"])
        self.assertEqual(config["log_level"], "verbose")
        self.assertIsNone(registry.check_mandatory())

    def testRegisterCommandReturnsChildTrie(self):
        registry = Registry()
        children = registry.register_command(["config"])
        children.register("get", Copy)
        self.assertEqual(registry.commands.resolve(["config", "get"]).matched_command, "config get")


if __name__ == "__main__":
    unittest.main()
