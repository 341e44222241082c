r"""
carapace_spec node descriptors.

Overview
- Nodes (tagged union, discriminated by the class attribute `kind`)
  • Topic:   kind == "topic",   a grouping placeholder (id, summary).
  • Command: kind == "command", a runnable command (id, summary, flags).
  Both expose `path`, the id split on ":" (e.g. "force:org:open" →
  ("force", "org", "open")).

- Flags
  • Flag: one named flag of a command, with an optional single-character alias,
    a kind ("boolean" or "option"), repeatability, static completion values
    (options), mutually-exclusive partners, and visibility (hidden/deprecated).
  • Flag.frommanifest(name, data) converts an oclif manifest flag entry.

- Introspection & representation
  • DescriptorType metaclass exposes the names listed in __introspectable__ as
    read-only properties (containers are returned as immutable views) and gives
    every descriptor a stable __repr__/__rich_repr__.

Metadata (sanitized on construction)
- Identity
  • Node.id / Flag.name: non-empty str. Ids are NOT checked for well-formed
    colon segments; the node source owns that contract.
- Text
  • summary/description: str | Unset (None coming from a manifest is Unset).
- Flags
  • char: Unset | one-character str.
  • kind: "boolean" | "option".
  • options/exclusive: iterables of str, stabilized to tuples (order kept).
  • multiple/deprecated/hidden: coerced with bool(); oclif's deprecation
    objects ({message, to}) therefore count as deprecated.

Quick example:
    >>> Command("force:org:open", "Open an org", flags=[
    ...     Flag("target-org", "option", "o", summary="Org alias"),
    ...     Flag("browser", "option", options=["chrome", "firefox"]),
    ... ])
"""
import functools
import operator
import re
from collections.abc import Iterable, Mapping

from .utils import *


class DescriptorType(type):
    """
    Metaclass that turns descriptor classes into introspectable, read-only records.

    Responsibilities
    - Expose every name in __introspectable__ as a read-only property mirroring
      the private backing field (self._<name>).
    - Provide stable __repr__/__rich_repr__ implementations for diagnostics.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in error messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__.
    """
    __introspectable__ = ()
    __displayable__ = Unset

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
            """
            Return a concise, stable representation with key metadata.

            Example
            - flag(name='verbose', kind='boolean', char='v', ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_identity(cls, metadata, key, /):
    """
    Internal: validate the identifying string of a descriptor (node id, flag name).
    """
    if not isinstance(identity := metadata[key], str):
        raise TypeError(f"{cls.__typename__} {key!r} must be a string")
    elif not identity.strip():
        raise ValueError(f"{cls.__typename__} {key!r} cannot be empty")


def _sanitize_text(cls, metadata, *keys):
    """
    Internal: validate free-text fields (summary, description).

    - Accepted: str (kept verbatim, may be empty) or Unset.
    - None is normalized to Unset since manifests use null for "absent".
    """
    for key in keys:
        if metadata[key] is None:
            metadata[key] = Unset
        elif not isinstance(metadata[key], str | Unset):
            raise TypeError(f"{cls.__typename__} {key!r} must be a string")


def _sanitize_strings(cls, metadata, *keys):
    """
    Internal: validate and stabilize iterables of strings (options, exclusive).

    - None is treated as empty.
    - A plain string is rejected (it would silently iterate characters).
    - Items must be strings; order and duplicates are kept as given.
    """
    for key in keys:
        if (strings := metadata[key]) is None:
            strings = ()
        if isinstance(strings, str) or not isinstance(strings, Iterable):
            raise TypeError(f"{cls.__typename__} {key!r} must be an iterable of strings")
        strings = tuple(strings)
        if not all(isinstance(string, str) for string in strings):
            raise TypeError(f"{cls.__typename__} {key!r} must be an iterable of strings")
        metadata[key] = strings


def _sanitize_flag_metadata(cls, metadata, /):
    """
    Internal: validate flag-only fields (char, kind).

    - char: Unset | None | "" mean "no alias"; otherwise exactly one character.
    - kind: "boolean" or "option".
    """
    if metadata["char"] in (None, ""):
        metadata["char"] = Unset
    if not isinstance(char := metadata["char"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'char' must be a string")
    elif isinstance(char, str) and len(char) != 1:
        raise ValueError(f"{cls.__typename__} 'char' must be a single character")

    if metadata["kind"] not in ("boolean", "option"):
        raise ValueError(f"{cls.__typename__} 'kind' must be 'boolean' or 'option'")


class Flag(metaclass=DescriptorType):
    """
    Named flag of a command.

    Highlights
    - kind "boolean" takes no value; kind "option" takes one (or several when
      multiple is True).
    - options: static completion values offered for an option's value.
    - exclusive: names of flags that cannot be combined with this one.
    - hidden/deprecated flags never reach a generated spec.
    """

    __introspectable__ = (
        "name",
        "kind",
        "char",
        "summary",
        "description",
        "multiple",
        "options",
        "exclusive",
        "deprecated",
        "hidden",
    )

    def __new__(
            cls,
            name,
            /,
            kind="boolean",
            char=Unset,
            summary=Unset,
            description=Unset,
            *,
            multiple=False,
            options=(),
            exclusive=(),
            deprecated=False,
            hidden=False
    ):
        metadata = {
            "name": name,
            "kind": kind,
            "char": char,
            "summary": summary,
            "description": description,
            "multiple": bool(multiple),
            "options": options,
            "exclusive": exclusive,
            "deprecated": bool(deprecated),
            "hidden": bool(hidden),
        }
        _sanitize_identity(cls, metadata, "name")
        _sanitize_text(cls, metadata, "summary", "description")
        _sanitize_strings(cls, metadata, "options", "exclusive")
        _sanitize_flag_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def visible(self):
        """
        True unless the flag is hidden or deprecated.
        """
        return not (self._hidden or self._deprecated)

    @classmethod
    def frommanifest(cls, name, data, /):
        """
        Build a Flag from an oclif manifest flag entry.

        Recognized keys: type, char, summary, description, multiple, options,
        exclusive, deprecated, hidden. Unknown keys (default, allowNo, env,
        helpGroup, ...) are ignored.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"{cls.__typename__} {name!r} manifest entry must be a mapping")
        return cls(
            name,
            data.get("type") or "boolean",
            data.get("char"),
            data.get("summary"),
            data.get("description"),
            multiple=data.get("multiple", False),
            options=data.get("options"),
            exclusive=data.get("exclusive"),
            deprecated=data.get("deprecated", False),
            hidden=data.get("hidden", False),
        )


class Node(metaclass=DescriptorType):
    """
    Abstract node of the flat sequence handed to the tree builder.

    Only Topic and Command can be instantiated; `kind` tells them apart.
    """
    kind = Unset

    __introspectable__ = (
        "id",
        "summary",
    )

    def __new__(cls, id, summary=Unset, /):
        if cls.kind is Unset:
            raise TypeError(f"{cls.__typename__} cannot be instantiated, use topic or command")
        metadata = {
            "id": id,
            "summary": summary,
        }
        _sanitize_identity(cls, metadata, "id")
        _sanitize_text(cls, metadata, "summary")

        self = super().__new__(cls)
        self._id = metadata["id"]
        self._summary = coalesce(metadata["summary"], "")
        return self

    @property
    def path(self):
        """
        The id split into its colon-delimited segments.
        """
        return tuple(self._id.split(":"))


class Topic(Node):
    """
    Grouping node: contributes a description for a path, never flags.
    """
    kind = "topic"

    __displayable__ = (
        "kind",
        "id",
        "summary",
    )


class Command(Node):
    """
    Runnable node: contributes a description and a flag table for a path.

    flags
    - Mapping[str, Flag | Mapping]: keys are flag names; manifest-shaped
      mappings are converted with Flag.frommanifest().
    - Iterable[Flag]: keyed by each flag's name.
    Insertion order is preserved; it drives the rendered flag order.
    """
    kind = "command"

    __introspectable__ = (
        "flags",
    )
    __displayable__ = (
        "kind",
        "id",
        "summary",
        "flags",
    )

    def __new__(cls, id, summary=Unset, /, flags=None):
        self = super().__new__(cls, id, summary)
        self._flags = _resolve_flags(cls, flags)
        return self


def _resolve_flags(cls, flags, /):
    """
    Internal: normalize the flags argument of Command into an ordered dict.
    """
    resolved = {}
    if flags is None:
        return resolved

    if isinstance(flags, Mapping):
        for name, flag in flags.items():
            if isinstance(flag, Mapping):
                flag = Flag.frommanifest(name, flag)
            elif not isinstance(flag, Flag):
                raise TypeError(f"{cls.__typename__} flag {name!r} must be a flag or a mapping")
            elif flag.name != name:
                raise ValueError(f"{cls.__typename__} flag {flag.name!r} is registered as {name!r}")
            resolved[name] = flag
        return resolved

    if isinstance(flags, str) or not isinstance(flags, Iterable):
        raise TypeError(f"{cls.__typename__} 'flags' must be a mapping or an iterable of flags")

    for flag in flags:
        if not isinstance(flag, Flag):
            raise TypeError(f"{cls.__typename__} 'flags' must be a mapping or an iterable of flags")
        if flag.name in resolved:
            raise ValueError(f"{cls.__typename__} flag name {flag.name!r} is already in use")
        resolved[flag.name] = flag
    return resolved


__all__ = (
    # Flags
    "Flag",

    # Nodes
    "Node",
    "Topic",
    "Command",
)

# Not part of the public API.
del DescriptorType
