"""
Helmsman option-parsing engine.

One left-to-right pass over an argument vector against option groups:

- every definition in scope is initialized (init(config)) and unmatched;
- a literal "--" ends the scan, everything after it is forwarded verbatim;
- "-" prefixed arguments are compared, in registration order, with the
  definition names (exact match, first wins); value-bearing definitions
  consume the next argument;
- anything else, including unknown "-" tokens, is kept as remaining.

The engine never reorders early definitions: callers that need them applied
first run a separate parse(..., early=True) pass before the full one.

    >>> from helmsman.options import Flag, OptionGroup
    >>> group = OptionGroup("Options", [Flag("--flag", dest="flag")])
    >>> config = {}
    >>> parse(["a", "--flag", "--", "b", "--flag"], config, [group])
    ParseResult(remaining=['a'], forwarded=['b', '--flag'])
    >>> config
    {'flag': True}
"""
import logging
from typing import NamedTuple

from .faults import IllegalValueError, MissingValueError
from .logger import TRACE
from .options import EnumOption, definitions

logger = logging.getLogger(__name__)

SEPARATOR = "--"


class ParseResult(NamedTuple):
    """
    Outcome of parse(): unrecognized arguments and arguments after "--".
    """
    remaining: list
    forwarded: list


def own_arguments(argv, /):
    """
    Arguments before the first "--" (all of them when there is none).
    """
    argv = list(argv)
    try:
        return argv[:argv.index(SEPARATOR)]
    except ValueError:
        return argv


def forwarded_arguments(argv, /):
    """
    Arguments after the first "--" (empty when there is none).
    """
    argv = list(argv)
    try:
        return argv[argv.index(SEPARATOR) + 1:]
    except ValueError:
        return []


def _scope(groups, early):
    return [definition for definition in definitions(groups) if definition.early or not early]


def parse(argv, config, groups, /, *, early=False):
    """
    Apply the arguments to `config` through the definitions of `groups`.

    Parameters
    - argv: iterable of str, the arguments (program name excluded).
    - config: mutable target handed to every init/action callback.
    - groups: OptionGroup or iterable of OptionGroup, searched in order.
    - early: only early definitions are in scope (initialized and matched).

    Returns
    - ParseResult(remaining, forwarded)

    Raises
    - MissingValueError: a value-bearing option is the last argument.
    - IllegalValueError: an enum option got a value outside its choices, or
      the value converter rejected it.
    """
    scope = _scope(groups, early)
    for definition in scope:
        definition.reset(config)

    remaining = []
    forwarded = []
    arguments = iter(argv)
    for argument in arguments:
        if argument == SEPARATOR:
            forwarded.extend(arguments)
            break

        if not argument.startswith("-"):
            remaining.append(argument)
            continue

        for definition in scope:
            if argument in definition:
                break
        else:
            remaining.append(argument)
            continue

        if not definition.takes_value:
            logger.log(TRACE, "option %r", argument)
            definition.apply(config)
            continue

        try:
            value = next(arguments)
        except StopIteration:
            raise MissingValueError(
                f"'{argument}' expects a value",
                option=argument,
                hint=f"usage: {argument} <{definition.metavar}>"
            ) from None

        if isinstance(definition, EnumOption) and not definition.allows(value):
            raise IllegalValueError(
                f"Value '{value}' not allowed for '{argument}'",
                option=argument,
                value=value,
                hint="allowed values are: %s" % ", ".join(definition.choices)
            )
        try:
            converted = definition.convert(value)
        except (TypeError, ValueError):
            raise IllegalValueError(
                f"Value '{value}' not allowed for '{argument}'",
                option=argument,
                value=value
            ) from None

        logger.log(TRACE, "option %r = %r", argument, value)
        definition.apply(config, converted)

    if early:
        logger.debug("early pass done, %d argument(s) left", len(remaining))
    else:
        logger.debug("parse done, remaining %r, forwarded %r", remaining, forwarded)
    return ParseResult(remaining, forwarded)


def check_mandatory(groups, /):
    """
    Report mandatory definitions that the last parse did not match.

    Returns one "Mandatory '<names>' not found" message per unmatched
    mandatory definition, or None when every mandatory one was matched.
    """
    messages = [
        "Mandatory '%s' not found" % " ".join(definition.names)
        for definition in definitions(groups)
        if definition.mandatory and not definition.matched
    ]
    return messages or None


__all__ = (
    "ParseResult",
    "parse",
    "check_mandatory",
    "own_arguments",
    "forwarded_arguments",
    "SEPARATOR",
)
