"""
Helmsman help rendering (rich).

The formatter only reads: the option groups (names, value shape, choices,
mandatory/multiple/default decorations) and the command trie (top-level
canonical names, aliases and their descriptions). Nothing is mutated, so
the same table can be rendered any number of times between parses.

Layout
- usage line: program, matched command path, [options...], <command>.
- description paragraph.
- commands table (when the trie is not empty).
- option groups, definitions without a description left out; helper and
  early definitions are listed apart, at the end.

Customization
- Define a mapping named __styles__ in __main__ to override any palette entry.
- colorful=False strips every style.
"""
from collections import defaultdict

from rich.box import ROUNDED
from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from .options import EnumOption
from .utils import Unset, coalesce


class HelpFormatter:
    """
    Render usage, commands and option groups of a program or a command.

    Parameters
    - prog: program name shown in the usage line.
    - groups: option groups, in display order.
    - commands: CommandTrie (or None) listed as the available commands.
    - command: canonical command path when rendering a command's own help.
    - descr: free text paragraph under the usage line.
    - colorful: apply the palette.
    - console: rich Console used by print() (stdout when omitted).
    """

    def __init__(self, prog, groups, /, commands=None, *, command=Unset, descr=Unset, colorful=True, console=Unset):
        self.prog = prog
        self.groups = list(groups)
        self.commands = commands
        self.command = coalesce(command)
        self.descr = coalesce(descr)
        self.colorful = colorful
        self.console = coalesce(console) or Console()

    def render(self):
        """
        Build the help as a single rich renderable.
        """
        styles = defaultdict(str, {
            # === Head sections ===
            "usage-label": "bold #00E6FF",  # CYAN → signature info color
            "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
            "command-name": "bold #36C5F0",  # SKY-BLUE → matched command path
            "usage-section": "#36C5F0",
            "description-section": "italic #A3A3A3",  # Neutral gray

            # === Groups / definitions ===
            "group-label": "bold #FFFFFF",  # Pure white headers
            "argument-description": "#9CA3AF",  # Muted gray
            "option-name": "bold #00E6FF",  # CYAN for value options
            "flag-name": "bold #22C55E",  # GREEN for flags
            "metavar": "bold #FFD600",  # AMBER for parameters
            "choice": "bold #FF4D94",  # MAGENTA → choices stand out
            "decoration": "dim #9CA3AF",  # (optional, default x)

            # === Commands table ===
            "children-title": "bold #FFFFFF",
            "children-table": "#4B5563",  # Slate border
            "children": "bold #36C5F0",
            "aliases": "#36C5F0 dim",
            "children-description": "#9CA3AF",
            "hint": "bold #22C55E",
        } | getattr(__import__('__main__'), "__styles__", {}))

        def styler(style):
            return styles[style] if self.colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not self.colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        def names(definition):
            style = "option-name" if definition.takes_value else "flag-name"
            return Text("|").join(text(name, styler(style)) for name in definition.names)

        def shape(definition):
            # "<metavar> (a|b)" for enums, "<metavar>" for values, nothing for flags
            if not definition.takes_value:
                return Text("")
            shape = Text.assemble("<", text(definition.metavar, styler("metavar")), ">")
            if isinstance(definition, EnumOption):
                shape.append(" (")
                shape.append(Text("|").join(text(choice, styler("choice")) for choice in definition.choices))
                shape.append(")")
            return shape

        def decorations(definition):
            parts = []
            if not definition.mandatory:
                parts.append("optional")
                if definition.default_descr:
                    parts.append(f"default {definition.default_descr}")
            if definition.multiple:
                parts.append("multiple")
            if not parts:
                return Text("")
            return text("(%s)" % ", ".join(parts), styler("decoration"))

        width = self.console.width
        renders = []

        # Usage line
        usage = Text()
        usage.append(text("usage", styler("usage-label"))).append(":")
        usage.append(" ")
        usage.append(text(self.prog, styler("program-name")))
        if self.command:
            usage.append(" ").append(text(self.command, styler("command-name")))
        for group in self.groups:
            if group.pre_options:
                usage.append(" ").append(text(group.pre_options, styler("usage-section")))
        usage.append(" ").append(text("[options...]", styler("usage-section")))
        if self.commands:
            usage.append(" ").append(text("<command> [command options...]", styler("usage-section")))
        for group in self.groups:
            if group.post_options:
                usage.append(" ").append(text(group.post_options, styler("usage-section")))
        renders.append(usage.append("\n"))

        # Description paragraph
        if self.descr:
            renders.append(text(self.descr, styler("description-section")).append("\n"))

        # Commands table
        if self.commands:
            table = Table(
                "command", "help",
                title=text("commands", styler("children-title")),
                width=int(width * (2 / 3)),
                box=ROUNDED,
                style=styler("children-table"),
                header_style=styler("children-title"),
            )
            for entry in self.commands:
                name = text(entry.name, styler("children"))
                if entry.aliases:
                    name = Text.assemble(name, " ", text("(%s)" % ", ".join(entry.aliases), styler("aliases")))
                if descr := describe(entry):
                    help = text(descr, styler("children-description"))
                else:
                    route = " ".join((self.prog, *entry.path))
                    help = Text.assemble(
                        text("no description", styler("children-description")),
                        " — ",
                        text(f"run '{route} --help' for details", styler("hint")),
                    )
                table.add_row(name, help)
            renders.append(table)

        # Option groups, helper and early definitions set apart
        indent = 24
        apart = []
        body = Text()
        for group in self.groups:
            listed = []
            for definition in group:
                if definition.helper or definition.early:
                    if definition.descr and definition not in apart:
                        apart.append(definition)
                elif definition.descr:
                    listed.append(definition)
            if not listed:
                continue

            body.append("\n" if body else "")
            body.append(text(group.title, styler("group-label"))).append(":")
            body.append("\n")
            for definition in listed:
                section = Text("  ")
                section.append(names(definition))
                if definition.takes_value:
                    section.append(" ").append(shape(definition))
                if len(section) >= indent:
                    section.append("\n").append(" " * indent)
                else:
                    section.append(" " * (indent - len(section)))

                descr = text(definition.descr, styler("argument-description"))
                if decoration := decorations(definition):
                    descr = Text.assemble(descr, " ", decoration)
                wrapped = descr.wrap(self.console, max(width - indent, 20))
                try:
                    section.append(wrapped.pop(0))
                except IndexError:
                    pass
                for line in wrapped:
                    section.append("\n").append(" " * indent).append(line)
                body.append(section).append("\n")

        if apart:
            body.append("\n" if body else "")
            for definition in apart:
                section = Text()
                section.append(names(definition))
                if definition.takes_value:
                    section.append(" ").append(shape(definition))
                section.append(" " * max(indent - len(section), 1))
                section.append(text(definition.descr, styler("argument-description")))
                body.append(section).append("\n")

        if body:
            renders.append(body)

        if isinstance(renders[-1], Text):
            renders[-1].rstrip()
        return Group(*renders)

    def print(self):
        self.console.print(self.render())


def describe(entry, /):
    """
    Description of a command entry: the target's `descr`, or None.

    Dotted paths are not imported just to render help.
    """
    if isinstance(entry.target, str) or entry.target is None:
        return None
    return getattr(entry.target, "descr", None)


__all__ = (
    "HelpFormatter",
    "describe",
)
