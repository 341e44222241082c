"""
Flag normalization: one command's flags → carapace flag table.

For every visible flag (neither hidden nor deprecated), in declaration order:
- exclusivity: partners that exist on the command and are visible form a
  sorted group together with the flag; equal groups are recorded once, in
  first-discovery order.
- definition key: "-c, --name" or "--name", plus "=" for options and "*=" for
  repeatable options (carapace-spec flag modifiers).
- description: summary, else description, else "".
- completion: own options, replaced by a persistent override, replaced by a
  per-command override.

A "--help" entry is appended unless the command declares a visible flag named
"help" itself; carapace rejects specs that define the same flag twice.
"""
from typing import NamedTuple

from .logs import get_logger
from .overrides import Overrides
from .utils import coalesce

logger = get_logger(__name__)

HELP = ("--help", "Show help for command")


class FlagTable(NamedTuple):
    flags: dict[str, str]
    exclusiveflags: list[list[str]]
    completion: dict[str, list[str]]


def render(flag, /):
    """
    Return the carapace definition key of a flag.

    >>> render(Flag("target-org", "option", "o"))
    '-o, --target-org='
    >>> render(Flag("values", "option", multiple=True))
    '--values*='
    """
    key = f"-{flag.char}, --{flag.name}" if flag.char else f"--{flag.name}"
    if flag.kind == "option":
        key += "*=" if flag.multiple else "="
    return key


def _exclusives(flag, flags, /):
    partners = [
        name for name in flag.exclusive
        if name in flags and flags[name].visible
    ]
    return sorted([*partners, flag.name]) if partners else None


def normalize(flags, command, overrides=None, /):
    """
    Build the FlagTable of a command.

    Parameters
    - flags: Mapping[str, Flag], usually Command.flags.
    - command: the command id, used for per-command overrides.
    - overrides: Overrides | None (None behaves like empty overrides).

    Never raises for well-typed input: empty flags yield a table holding only
    the synthesized help entry.
    """
    if overrides is None:
        overrides = Overrides()
    table = FlagTable({}, [], {})
    helped = False

    for name, flag in flags.items():
        if not flag.visible:
            continue

        if (group := _exclusives(flag, flags)) and group not in table.exclusiveflags:
            table.exclusiveflags.append(group)

        helped = helped or name == "help"

        table.flags[render(flag)] = coalesce(flag.summary, coalesce(flag.description, ""))

        if flag.options:
            table.completion[name] = list(flag.options)
        if (values := overrides.lookup(command, name)) is not None:
            table.completion[name] = values

    if not helped:
        table.flags[HELP[0]] = HELP[1]

    logger.debug(
        "%s: %d flags, %d exclusive groups, %d completions",
        command, len(table.flags), len(table.exclusiveflags), len(table.completion)
    )
    return table


__all__ = (
    "FlagTable",
    "render",
    "normalize",
)
