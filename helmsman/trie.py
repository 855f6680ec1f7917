"""
Helmsman command trie: resolve abbreviated and aliased command words.

Every registered spelling (canonical name and aliases) is stored as a path of
lowercase characters terminated by a single space. Each node counts how many
distinct commands pass through it; a node owned by exactly one command keeps
that command's target, so the walk can stop as soon as the typed text is
unique.

    >>> trie = CommandTrie()
    >>> _ = trie.register(["copy", "c"], "copy.mod")
    >>> _ = trie.register(["conf"], "conf.mod")
    >>> trie.resolve(["c"]).target
    'copy.mod'
    >>> trie.resolve(["con"]).matched_command
    'conf'

Resolution rules
- the shortest unique prefix wins; no fuzzy matching is performed.
- a failing character equal to the terminating space means the typed text
  was a valid but ambiguous prefix (NotUniqueCommandError); any other
  failing character means the command is unknown (UnsupportedCommandError).
- once unique, the rest of the current word is ignored and the following
  words are handed back as unconsumed (or resolved against the command's
  own sub-commands, when it has any).
"""
import logging
from typing import NamedTuple

from .faults import MissingCommandError, NotUniqueCommandError, UnsupportedCommandError
from .utils import mirror

logger = logging.getLogger(__name__)

TERMINATOR = " "


class Resolution(NamedTuple):
    """
    Outcome of CommandTrie.resolve().

    - target: whatever was registered for the command (class, factory or dotted path).
    - matched_command: canonical spelling, space-joined for nested sub-commands.
    - unconsumed_words: words left over after the command, in order.
    """
    target: object
    matched_command: str
    unconsumed_words: list

    @property
    def commands(self):
        return self.matched_command.split(TERMINATOR)


class Node:
    """
    One character of one or more registered spellings.

    The root node has no character. `unaliased` names the first command that
    created the node; `target` survives only while that command is the sole owner.
    """
    __slots__ = ("character", "children", "target", "unaliased", "_owners")

    def __init__(self, character=None, target=None, unaliased=None):
        self.character = character
        self.children = {}
        self.target = target
        self.unaliased = unaliased
        self._owners = {unaliased} if unaliased is not None else set()

    @property
    def count(self):
        return len(self._owners)

    def add(self, character, target, unaliased):
        """
        Walk to (or create) the child for `character` on behalf of `unaliased`.
        """
        try:
            child = self.children[character]
        except KeyError:
            child = self.children[character] = type(self)(character, target, unaliased)
            return child
        if unaliased not in child._owners:
            child._owners.add(unaliased)
            # a second command shares this prefix, it is no longer unique
            child.target = None
        return child

    def owners(self):
        return sorted(self._owners)

    def __repr__(self):
        return f"node(character={self.character!r}, count={self.count}, target={self.target!r})"


class Entry:
    """
    A registered command: canonical name, aliases, target and sub-commands.
    """
    name = mirror("name")
    aliases = mirror("aliases")
    target = mirror("target")
    children = mirror("children")

    def __init__(self, name, aliases, target, owner):
        self._name = name
        self._aliases = tuple(aliases)
        self._target = target
        self._owner = owner
        self._children = type(owner)(parent=self)

    @property
    def path(self):
        """
        Canonical names from the top-level command down to this one.
        """
        return self._owner.path + (self.name,)

    def __repr__(self):
        return f"entry(name={self.name!r}, aliases={self.aliases!r}, target={self.target!r})"


def _normalize(spelling):
    if not isinstance(spelling, str):
        raise TypeError("command names must be strings")
    if not (spelling := " ".join(spelling.split()).lower()):
        raise ValueError("command names cannot be empty")
    return spelling


class CommandTrie:
    """
    Character trie of the commands registered at one level.

    Built once at startup through register(); read-only afterwards, so
    resolve() is safe to call any number of times.
    """

    def __init__(self, parent=None):
        self._root = Node()
        self._entries = {}
        self._spellings = {}
        self._parent = parent

    @property
    def path(self):
        """
        Canonical names of the commands above this trie (empty at the top).
        """
        if self._parent is None:
            return ()
        return self._parent.path

    @property
    def names(self):
        """
        Canonical command names, in registration order.
        """
        return tuple(self._entries)

    def __iter__(self):
        return iter(self._entries.values())

    def __len__(self):
        return len(self._entries)

    def __bool__(self):
        return bool(self._entries)

    def __contains__(self, name):
        return isinstance(name, str) and name.lower() in self._entries

    def __getitem__(self, name):
        return self._entries[name.lower()]

    def register(self, aliases, target=None):
        """
        Add one command with its aliases and return its sub-command trie.

        Parameters
        - aliases: str | list[str]
          the first spelling is the canonical one; the others are aliases
          (usually shorter, sometimes common misspellings).
        - target: any
          the implementation: a Command subclass, a factory, or a dotted
          "package.module[:Class]" path. May be omitted only when the command
          gets sub-commands through the returned trie.

        Raises
        - ValueError: duplicate canonical command, a spelling already used by
          another command, or a repeated alias. These are defects of the
          embedding application, not user input.
        """
        if isinstance(aliases, str):
            aliases = [aliases]
        spellings = [_normalize(alias) for alias in aliases]
        if not spellings:
            raise ValueError("a command needs at least one name")

        name = spellings[0]
        where = " ".join(self.path + (name,))
        if name in self._entries:
            raise ValueError(f"duplicate command {where!r}")
        if len(set(spellings)) != len(spellings):
            raise ValueError(f"command {where!r} repeats an alias")
        for spelling in spellings:
            if spelling in self._spellings:
                raise ValueError(f"command {where!r} reuses {spelling!r}, already registered by {self._spellings[spelling]!r}")

        entry = Entry(name, spellings[1:], target, self)
        self._entries[name] = entry

        for spelling in spellings:
            self._spellings[spelling] = name
            node = self._root
            for character in spelling + TERMINATOR:
                node = node.add(character, target, name)

        logger.debug("registered command %r (aliases %r)", where, spellings[1:])
        return entry.children

    def resolve(self, words):
        """
        Resolve typed command words to a registered command.

        Returns
        - Resolution(target, matched_command, unconsumed_words)

        Raises
        - NotUniqueCommandError: the words are a prefix of more than one command.
        - UnsupportedCommandError: no command starts with the words.
        - MissingCommandError: the command only groups sub-commands and none was given.
        """
        if isinstance(words, str):
            words = words.split()
        words = [word for word in (str(word).strip().lower() for word in words) if word]
        if not words:
            raise MissingCommandError(self._missing_message(), hint=self._hint())

        text = TERMINATOR.join(words) + TERMINATOR
        typed = " ".join(self.path + (text.strip(),))

        node = self._root
        for index, character in enumerate(text):
            try:
                node = node.children[character]
            except KeyError:
                if character == TERMINATOR:
                    raise NotUniqueCommandError(
                        f"Command '{typed}' is not unique.",
                        command=typed,
                        candidates=node.owners(),
                        hint="did you mean one of: %s?" % ", ".join(node.owners())
                    ) from None
                raise UnsupportedCommandError(
                    f"Command '{typed}' is not supported.",
                    command=typed,
                    hint=self._hint()
                ) from None

            if node.count != 1:
                continue

            # unique from here on: skip the rest of the current word
            end = text.index(TERMINATOR, index)
            return self._descend(self._entries[node.unaliased], text[end + 1:].split())

        raise NotUniqueCommandError(
            f"Command '{typed}' is not unique.",
            command=typed,
            candidates=node.owners(),
            hint="did you mean one of: %s?" % ", ".join(node.owners())
        )

    def _descend(self, entry, rest):
        if entry.children and rest:
            resolution = entry.children.resolve(rest)
            return Resolution(
                resolution.target,
                f"{entry.name} {resolution.matched_command}",
                resolution.unconsumed_words
            )
        if entry.target is None:
            if not entry.children:
                raise TypeError(f"command {' '.join(self.path + (entry.name,))!r} has neither a target nor sub-commands")
            raise MissingCommandError(entry.children._missing_message(), hint=entry.children._hint())

        logger.debug("resolved command %r, unconsumed %r", entry.name, rest)
        return Resolution(entry.target, entry.name, rest)

    def _missing_message(self):
        if self.path:
            return f"Command '{' '.join(self.path)}' requires a sub-command."
        return "Missing mandatory command."

    def _hint(self):
        return "valid commands are: %s" % ", ".join(self.names)


__all__ = (
    "CommandTrie",
    "Resolution",
    "Entry",
    "Node",
)
