from rich.pretty import pprint

from helmsman import *


class Copy(Command):
    descr = "Copy files (prints what it would do)"
    groups = [OptionGroup("Copy options", [
        ValueOption("--file", metavar="file", dest="file", mandatory=True, descr="Input file"),
        Flag("-n", "--dry-run", dest="dry_run", descr="Do nothing"),
    ], pre_options="<target>...")]

    def execute(self, args):
        pprint({
            "file": str(self.resolve_path(self.context.config.file)),
            "targets": args,
            "forwarded": self.context.forwarded,
            "dry_run": self.context.config.dry_run,
        })


class Show(Command):
    descr = "Show the parsed configuration"

    def execute(self, args):
        pprint(self.context.config)
        pprint(self.context)


class Demo(Application):
    prog = "demo"
    version = "0.1.0"
    descr = "Abbreviate freely: 'demo c --file a b' runs copy."
    commands = [
        (["copy", "c"], Copy),
        (["show"], Show),
    ]


if __name__ == '__main__':
    Demo.start()
