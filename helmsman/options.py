r"""
Helmsman option definitions, groups and the option table.

Overview
- Definitions (a closed set of shapes)
  • Flag: presence-only switch, e.g. -v/--verbose; its action gets no value.
  • ValueOption: consumes the next argument as its value, e.g. --file <file>.
  • EnumOption: like ValueOption, but the value must be one of `choices`.

- Decorators
  • @flag(...), @value_option(...), @enum_option(...): build a definition and
    bind the decorated function as its action.

- Grouping
  • OptionGroup: titled, ordered list of definitions; `common` groups are
    shared by every command, others belong to one command.
  • OptionTable: ordered collection of groups, with the common ones kept apart
    so they can be composed with a command's own groups.

Callbacks
- init(config): run once at the start of every parse to set the default.
- action(config) for flags, action(config, value) for value-bearing options.
- dest/default: shorthand that synthesizes init/action storing into the
  configuration (item assignment for mappings, attributes otherwise);
  multiple=True accumulates values into a list.

Metadata (sanitized on construction)
- names: shell-style spellings matching r"--?[^\W\d_](-?[^\W_]+)*", unique.
- descr: help message; definitions without one are not listed in help.
- early: must be applied before the other options (the caller runs an early pass).
- mandatory: absence after a parse is an error (see parser.check_mandatory).
- helper: the help-request option, shown on its own line instead of the listing.
- multiple / default_descr: help decorations only.

Quick example:
    >>> from helmsman.options import Flag, EnumOption, OptionGroup
    >>> group = OptionGroup("Common options", [
    ...     Flag("-v", "--verbose", dest="verbose", descr="Verbose output"),
    ...     EnumOption("--loglevel", choices=("silent", "info"), dest="log_level", default="info"),
    ... ], common=True)
"""
import builtins
import functools
import operator
import re
from collections.abc import Iterable

from .utils import *


class DefinitionType(type):
    """
    Metaclass that turns definitions into introspectable, read-only records.

    Responsibilities
    - Expose every name listed in __introspectable__ as a read-only property
      backed by "_<name>" (see mirror()).
    - Provide stable __repr__/__rich_repr__ implementations for diagnostics.
    - Derive __typename__ from the class name ("ValueOption" -> "value-option"),
      used in error messages.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in ("names", *type(self).__displayable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _noop(*unused):
    pass


def _sanitize_names(cls, names, /):
    """
    validate option spellings; order is preserved (the help shows them as given).
    """
    if not names:
        raise TypeError(f"{cls.__typename__} must specify at least one name")
    sanitized = []
    for name in names:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} names cannot be empty-strings")
        elif not re.fullmatch(r"--?[^\W\d_](-?[^\W_]+)*", name):
            raise ValueError(f"{cls.__typename__} names must be valid shell-style option names ({name!r})")
        elif name in sanitized:
            raise ValueError(f"{cls.__typename__} names cannot contain duplicates")
        sanitized.append(name)
    return tuple(sanitized)


def _sanitize_text(cls, field, value, /):
    if not isinstance(value, str | Unset):
        raise TypeError(f"{cls.__typename__} {field!r} must be a string")
    if isinstance(value, str) and not (value := value.strip()):
        raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")
    return coalesce(value)


class Definition(metaclass=DefinitionType):
    """
    Shared part of all option definitions.

    Not instantiated directly: use Flag, ValueOption or EnumOption. The
    `matched` attribute is the only mutable state; the parser resets it at the
    start of every parse and sets it when one of the names is seen.
    """

    __introspectable__ = (
        "names",
        "descr",
        "init",
        "action",
        "early",
        "mandatory",
        "helper",
        "multiple",
        "default_descr",
    )
    __displayable__ = ("descr", "early", "mandatory", "helper")

    takes_value = False

    def __init__(
            self,
            names,
            /,
            action=Unset,
            init=Unset,
            dest=Unset,
            default=Unset,
            descr=Unset,
            *,
            early=False,
            mandatory=False,
            helper=False,
            multiple=False,
            default_descr=Unset
    ):
        if type(self) is Definition:
            raise TypeError("Definition cannot be instantiated directly; use Flag, ValueOption or EnumOption")

        cls = type(self)
        self._names = _sanitize_names(cls, names)
        self._descr = _sanitize_text(cls, "descr", descr)
        self._default_descr = _sanitize_text(cls, "default_descr", default_descr)
        self._early = bool(early)
        self._mandatory = bool(mandatory)
        self._helper = bool(helper)
        self._multiple = bool(multiple)

        if dest is not Unset:
            if not isinstance(dest, str) or not dest:
                raise TypeError(f"{cls.__typename__} 'dest' must be a non-empty string")
            if action is not Unset or init is not Unset:
                raise TypeError(f"{cls.__typename__} cannot combine 'dest' with 'action' or 'init'")
            init, action = self._synthesize(dest, default)
        elif default is not Unset:
            raise TypeError(f"{cls.__typename__} 'default' requires 'dest'")

        if not callable(init := coalesce(init, _noop)):
            raise TypeError(f"{cls.__typename__} 'init' must be callable")
        if action is not Unset and not callable(action):
            raise TypeError(f"{cls.__typename__} 'action' must be callable")

        self._init = init
        self._action = action
        self.matched = False

    def _synthesize(self, dest, default):
        raise NotImplementedError

    def __contains__(self, token):
        return token in self.names

    def reset(self, config, /):
        """
        Run the initializer and clear the matched flag (start of a parse).
        """
        self.matched = False
        self._init(config)


class Flag(Definition):
    """
    Presence-only option: the action is called with the configuration only.

    With dest=..., the initializer stores `default` (False when omitted) and
    the action stores True; with multiple=True the action counts occurrences.
    """

    def __init__(self, *names, **options):
        super().__init__(names, **options)

    def _synthesize(self, dest, default):
        if self.multiple:
            def init(config):
                assign(config, dest, coalesce(default, 0))

            def action(config):
                assign(config, dest, lookup(config, dest, 0) + 1)
        else:
            def init(config):
                assign(config, dest, coalesce(default, False))

            def action(config):
                assign(config, dest, True)
        return rename(init, f"init_{dest}"), rename(action, f"set_{dest}")

    def apply(self, config, /):
        self.matched = True
        if self._action is not Unset:
            self._action(config)


class ValueOption(Definition):
    """
    Option consuming the next argument as its value.

    - metavar: label of the value in help (`<file>`); defaults to "s", like
      the classic `<s>` placeholder.
    - type: converter applied to the raw string before the action sees it;
      TypeError/ValueError from it becomes an illegal value fault.
    """

    __introspectable__ = Definition.__introspectable__ + ("metavar", "type")
    __displayable__ = Definition.__displayable__ + ("metavar",)

    takes_value = True

    def __init__(self, *names, metavar=Unset, type=str, **options):
        super().__init__(names, **options)
        metavar = _sanitize_text(builtins.type(self), "metavar", metavar)
        self._metavar = "s" if metavar is None else metavar
        if not callable(type):
            raise TypeError(f"{builtins.type(self).__typename__} 'type' must be callable")
        self._type = type

    def _synthesize(self, dest, default):
        if self.multiple:
            def init(config):
                assign(config, dest, list(coalesce(default, ())))

            def action(config, value):
                lookup(config, dest).append(value)
        else:
            def init(config):
                assign(config, dest, coalesce(default))

            def action(config, value):
                assign(config, dest, value)
        return rename(init, f"init_{dest}"), rename(action, f"set_{dest}")

    def convert(self, value, /):
        return self._type(value)

    def apply(self, config, value, /):
        self.matched = True
        if self._action is not Unset:
            self._action(config, value)


class EnumOption(ValueOption):
    """
    Value option restricted to a closed set of allowed values.

    choices are kept in the given order (help lists them as given); duplicates
    are rejected. The membership check runs on the raw string, before `type`.
    """

    __introspectable__ = ValueOption.__introspectable__ + ("choices",)
    __displayable__ = ValueOption.__displayable__ + ("choices",)

    def __init__(self, *names, choices, **options):
        super().__init__(*names, **options)
        cls = builtins.type(self)
        if isinstance(choices, str) or not isinstance(choices, Iterable):
            raise TypeError(f"{cls.__typename__} 'choices' must be an iterable of strings")
        sanitized = []
        for choice in choices:
            if not isinstance(choice, str):
                raise TypeError(f"{cls.__typename__} 'choices' must be an iterable of strings")
            if choice in sanitized:
                raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
            sanitized.append(choice)
        if not sanitized:
            raise ValueError(f"{cls.__typename__} 'choices' cannot be empty")
        self._choices = tuple(sanitized)

    def allows(self, value, /):
        return value in self._choices


def _decorator(factory, kind):
    @rename(kind)
    def decorator(*args, **kwargs):
        if "action" in kwargs:
            raise TypeError(f"@{kind}() binds the decorated function as the action")

        @rename(kind)
        def wrapper(callback, /):
            if not callable(callback):
                raise TypeError(f"@{kind}() must be applied to a callable")
            return factory(*args, action=callback, **kwargs)

        return wrapper

    return decorator


flag = _decorator(Flag, "flag")
flag.__doc__ = """
Decorator form of Flag: the decorated function becomes the action.

    @flag("-d", "--debug", descr="Debug messages")
    def debug(config):
        config.log_level = "trace" if config.log_level == "debug" else "debug"
"""

value_option = _decorator(ValueOption, "value_option")
value_option.__doc__ = """
Decorator form of ValueOption: the decorated function becomes the action.

    @value_option("-C", metavar="folder", descr="Set current folder")
    def folder(config, value):
        config.cwd = value
"""

enum_option = _decorator(EnumOption, "enum_option")
enum_option.__doc__ = """
Decorator form of EnumOption: the decorated function becomes the action.
"""


class OptionGroup:
    """
    Titled, ordered list of option definitions.

    - common: shared by every command (kept apart by the OptionTable).
    - front: when added to a table, go before the groups already there.
    - pre_options / post_options: free text the help renderer places around
      `[options...]` in the usage line (e.g. "<file>...").
    """
    title = mirror("title")
    definitions = mirror("definitions")
    common = mirror("common")
    front = mirror("front")
    pre_options = mirror("pre_options")
    post_options = mirror("post_options")

    def __init__(self, title, definitions=(), *, common=False, front=False, pre_options=Unset, post_options=Unset):
        if not isinstance(title, str) or not (title := title.strip()):
            raise TypeError("option group 'title' must be a non-empty string")
        self._title = title
        self._definitions = []
        self._common = bool(common)
        self._front = bool(front)
        self._pre_options = coalesce(pre_options)
        self._post_options = coalesce(post_options)
        self.append(definitions)

    def append(self, definitions, /, *, front=False):
        """
        Add definitions at the end (or in front) of the group.
        """
        definitions = list(definitions)
        for definition in definitions:
            if not isinstance(definition, Definition):
                raise TypeError(f"option group {self.title!r} accepts only option definitions, got {definition!r}")
        if front:
            self._definitions[:0] = definitions
        else:
            self._definitions.extend(definitions)

    def __iter__(self):
        return iter(self._definitions)

    def __len__(self):
        return len(self._definitions)

    def __repr__(self):
        return f"option-group(title={self.title!r}, definitions={len(self)}, common={self.common!r})"


class OptionTable:
    """
    Ordered collection of option groups, common groups kept apart.

    compose(groups) yields the groups a parse should see: the given command
    groups first, then the common ones, each group at most once.
    """

    def __init__(self, groups=()):
        self._groups = []
        self._common = []
        self.add_groups(groups)

    @property
    def groups(self):
        return tuple(self._groups)

    @property
    def common_groups(self):
        return tuple(self._common)

    def add_groups(self, groups, /):
        if isinstance(groups, OptionGroup):
            groups = [groups]
        for group in groups:
            if not isinstance(group, OptionGroup):
                raise TypeError(f"option table accepts only option groups, got {group!r}")
            target = self._common if group.common else self._groups
            if group in target:
                raise ValueError(f"option group {group.title!r} is already registered")
            if group.front:
                target.insert(0, group)
            else:
                target.append(group)

    def append_to_group(self, title, definitions, /, *, front=False, common=True):
        """
        Add definitions to every registered group titled `title`.

        common=True searches the common groups as well as the others.
        """
        groups = [*self._groups, *self._common] if common else list(self._groups)
        found = [group for group in groups if group.title == title]
        if not found:
            raise ValueError(f"no option group titled {title!r}")
        definitions = list(definitions)
        for group in found:
            group.append(definitions, front=front)

    def compose(self, groups=()):
        seen = set()
        composed = []
        for group in (*groups, *self._groups, *self._common):
            if id(group) not in seen:
                seen.add(id(group))
                composed.append(group)
        return composed

    def __iter__(self):
        return iter(self.compose())


def definitions(groups, /):
    """
    Flatten groups into their definitions, in order, each definition once.
    """
    if isinstance(groups, OptionGroup):
        groups = [groups]
    seen = set()
    for group in groups:
        for definition in group:
            if id(definition) not in seen:
                seen.add(id(definition))
                yield definition


__all__ = (
    # Definitions
    "Definition",
    "Flag",
    "ValueOption",
    "EnumOption",

    # Decorators
    "flag",
    "value_option",
    "enum_option",

    # Grouping
    "OptionGroup",
    "OptionTable",
    "definitions",
)
