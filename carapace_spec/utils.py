"""
carapace_spec utilities (shared helpers for descriptors and tree nodes)

Overview
- UnsetType / Unset
  • Sentinel for "not provided", distinct from None and from empty containers.
    A flag without a short alias has char=Unset; a topic-only tree node has
    flags=Unset (an empty flag table is still a flag table).

- coalesce(value, default=None)
  • Materialize Unset into a concrete default, keeping None/""/() as given.

- rename(callable, name) / @rename("name")
  • Give generated accessors readable names in tracebacks and reprs.

- mirror("attr")
  • Read-only property over the private backing field self._attr. Containers
    come back as immutable views (tuple, MappingProxyType, frozenset) so the
    public surface of a descriptor cannot be mutated by accident.

Usage guidance
- Builders mutate private fields (self._commands, ...) directly; everything
  else goes through the mirrored properties.
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Sentinel type for a value that was never provided.

    - bool(Unset) is False.
    - repr(Unset) is "Unset".
    - UnsetType() always returns the same instance.
    - The type cannot be subclassed.
    """

    def __or__(self, other, /):
        # allows `str | Unset` in isinstance() checks
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return `default` when `object` is Unset, otherwise `object` unchanged.

    Falsey values are preserved: coalesce("", "x") == "" and
    coalesce(None, "x") is None.
    """
    return default if object is Unset else object


def rename(*parameters):
    """
    Set __name__/__qualname__ on a callable, or build a decorator that does.

    Forms
    - rename(callable, name) -> callable (renamed in place)
    - rename(name)           -> decorator
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            callable.__qualname__ = name
            callable.__name__ = name
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def freeze(object, /):
    """
    Return an immutable view of a (possibly nested) container.

    - str is returned as-is.
    - Sequence → tuple, Mapping → MappingProxyType, Set → frozenset,
      applied recursively to the values.
    """
    if isinstance(object, str):
        return object
    if isinstance(object, Sequence):
        return tuple(map(freeze, object))
    if isinstance(object, Mapping):
        return MappingProxyType(dict(zip(object.keys(), map(freeze, object.values()))))
    if isinstance(object, Set):
        return frozenset(map(freeze, object))
    return object


def mirror(name, /):
    """
    Define a read-only property exposing self._{name} through freeze().
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return freeze(getattr(self, "_" + name))

    return property(getter)


Unset = UnsetType()
"""
Singleton "not provided" marker; see UnsetType.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "freeze",
    "mirror",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
