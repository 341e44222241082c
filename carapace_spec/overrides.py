"""
Flag-value completion overrides.

An overrides document (YAML) supplies completion values that win over the
values a flag declares itself:

    persistentFlagsCompletion:
      target-org: ["$(sf org list --json | ...)"]
    commandOverrides:
      flags:
        "force:org:open":
          browser: [chrome, edge, firefox]

Precedence for one (command id, flag name) pair, lowest to highest:
the flag's own options < persistentFlagsCompletion[flag] <
commandOverrides.flags[command][flag]. Overrides.lookup() answers with the
highest-precedence entry present.

A missing document behaves exactly like an empty one (Overrides()).
"""
import os
from collections.abc import Mapping, Sequence

import yaml

from .faults import MalformedOverridesError
from .logs import get_logger
from .utils import freeze

logger = get_logger(__name__)

ENVIRONMENT = "OCLIF_CARAPACE_SPEC_MACROS_FILE"


def _values(values, where, /):
    """
    Internal: validate one completion list and copy it into a tuple of strings.

    YAML scalars (numbers, booleans) are rendered with str() so that `[1, 2]`
    completes as "1" and "2".
    """
    if isinstance(values, str) or not isinstance(values, Sequence):
        raise MalformedOverridesError(f"completion values for {where} must be a list")
    for value in values:
        if isinstance(value, Mapping) or (isinstance(value, Sequence) and not isinstance(value, str)):
            raise MalformedOverridesError(f"completion values for {where} must be scalars")
    return tuple(value if isinstance(value, str) else str(value) for value in values)


def _section(section, where, /):
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise MalformedOverridesError(f"{where} must be a mapping")
    return section


class Overrides:
    """
    Lookup tables for flag-value completion overrides.

    - persistent: flag name → values, for any command.
    - commands:   command id → flag name → values, highest precedence.
    """

    __slots__ = ("_persistent", "_commands")

    def __init__(self, persistent=None, commands=None):
        self._persistent = {
            str(flag): _values(values, f"flag {flag!r}")
            for flag, values in _section(persistent, "persistentFlagsCompletion").items()
        }
        self._commands = {}
        for command, flags in _section(commands, "commandOverrides.flags").items():
            self._commands[str(command)] = {
                str(flag): _values(values, f"flag {flag!r} of command {command!r}")
                for flag, values in _section(flags, f"commandOverrides.flags.{command}").items()
            }

    @property
    def persistent(self):
        return freeze(self._persistent)

    @property
    def commands(self):
        return freeze(self._commands)

    def __bool__(self):
        return bool(self._persistent or self._commands)

    def __repr__(self):
        return f"overrides(persistent={len(self._persistent)}, commands={len(self._commands)})"

    def lookup(self, command, flag, /):
        """
        Return the override values for `flag` on `command`, or None.

        The per-command table is consulted first; an entry there always wins
        over the persistent table. Empty lists are valid overrides.
        """
        try:
            return list(self._commands[command][flag])
        except KeyError:
            pass
        try:
            return list(self._persistent[flag])
        except KeyError:
            return None

    @classmethod
    def fromdict(cls, document, /):
        """
        Build overrides from a parsed document (see module docstring).

        None (an empty YAML file) yields empty overrides; unknown top-level
        keys are ignored.
        """
        document = _section(document, "overrides document")
        commands = _section(document.get("commandOverrides"), "commandOverrides")
        return cls(document.get("persistentFlagsCompletion"), commands.get("flags"))

    @classmethod
    def load(cls, path, /):
        """
        Read an overrides document from a YAML file.

        Errors
        - OSError and yaml.YAMLError propagate unchanged.
        - MalformedOverridesError when the document has the wrong shape.
        """
        logger.debug("loading overrides from %s", path)
        with open(path, encoding="utf-8") as stream:
            document = yaml.safe_load(stream)
        try:
            return cls.fromdict(document)
        except MalformedOverridesError as exception:
            raise MalformedOverridesError(f"{path}: {exception.message}", path=str(path)) from None

    @classmethod
    def fromenv(cls, path=None, /, environ=None):
        """
        Load overrides from `path`, else from $OCLIF_CARAPACE_SPEC_MACROS_FILE.

        Returns empty overrides when neither is set.
        """
        environ = os.environ if environ is None else environ
        if not (path := path or environ.get(ENVIRONMENT)):
            return cls()
        return cls.load(path)


__all__ = (
    "ENVIRONMENT",
    "Overrides",
)
