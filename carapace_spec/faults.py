"""
carapace_spec faults (errors and warnings) and rendering.

Scope
- FaultCode: stable numeric identifiers for every user-facing issue raised
  while loading manifests/overrides, resolving directories and writing specs.
- SpecException / SpecWarning: base types that carry a message plus options and
  know how to render themselves (rich) and how to surface (raise, warn, print).
- trigger(): single entry point to surface any fault.

Surfacing
- Outside shell mode (the default, i.e. library use) exceptions are raised and
  warnings go through warnings.warn.
- In shell mode (the carapace-gen command line) both are printed to stderr with
  rich; exceptions then exit with status 1.

Each concrete class defines its own code, title and hint; any of them can be
overridden per instance through options (copy.replace(fault, hint=...)).
"""
import copy
import sys
import warnings
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - inputs (2110x/2111x)
      • MALFORMED_OVERRIDES, MISSING_MANIFEST, MALFORMED_MANIFEST
    - environment (2112x)
      • UNRESOLVED_DIRECTORY
    - output (2113x)
      • UNWRITABLE_SPEC
    - warnings (22xxx)
      • DUPLICATE_COMMAND
    """
    # --- input errors (21xxx) ---
    MALFORMED_OVERRIDES  = 21101
    MISSING_MANIFEST     = 21111
    MALFORMED_MANIFEST   = 21112

    # --- environment errors (21xxx) ---
    UNRESOLVED_DIRECTORY = 21121

    # --- output errors (21xxx) ---
    UNWRITABLE_SPEC      = 21131

    # --- warnings (22xxx) ---
    DUPLICATE_COMMAND    = 22101


_styles = {
    "error": {
        "prog-name": "bold #E6E6F0",
        "code": "bold #00E5FF",
        "title": "bold #FF4DA6",
        "message": "#C8C8D0",
        "hint-arrow": "#9CE19C dim",
        "hint": "italic #9CE19C",
    },
    "warning": {
        "prog-name": "bold #E6E6F0",
        "code": "bold #FFB400",
        "title": "bold #FFC2E0",
        "message": "#D6D6DE",
        "hint-arrow": "#B8EFAF dim",
        "hint": "italic #B8EFAF",
    },
}


def _render(fault, kind):
    """
    Build the rich renderable shared by exceptions and warnings.

    layout
    - header: "[ prog — code | Title ]"
    - body:   message, then " → hint" when a hint is present
    - fancy:  both wrapped in a Panel with the header as title
    """
    styles = _styles[kind]
    colorful = fault.options.get("colorful", True)

    def text(fragment, style):
        if not fragment:
            return Text("")
        return Text(str(fragment), style if colorful else "")

    header = Text.assemble(
        "[ ",
        text(fault.options.get("prog", "carapace-gen"), styles["prog-name"]),
        " — ",
        text(str(fault.code.value) if fault.code else "-", styles["code"]),
        " | ",
        text(fault.title.title(), styles["title"]),
        " ]"
    )
    body = [text(fault.message, styles["message"])]
    if fault.hint:
        body.append(Text.assemble(text(" → ", styles["hint-arrow"]), text(fault.hint, styles["hint"])))

    if fault.options.get("fancy", False):
        return Panel(Group(*body), title=header, title_align="left")
    return Group(header, *body)


class SpecException(Exception):
    code = None
    title = "error"
    hint = None

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)
        # per-instance overrides of the class defaults
        for name in ("code", "title", "hint"):
            if name in options:
                setattr(self, name, options[name])

    def __str__(self):
        return self.message

    def __rich__(self):
        return _render(self, "error")

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MalformedOverridesError(SpecException):
    code = FaultCode.MALFORMED_OVERRIDES
    title = "malformed overrides"
    hint = "expected persistentFlagsCompletion and commandOverrides.flags mappings of flag names to lists"


class MissingManifestError(SpecException):
    code = FaultCode.MISSING_MANIFEST
    title = "missing manifest"
    hint = "run `oclif manifest` in the plugin directory to generate oclif.manifest.json"


class MalformedManifestError(SpecException):
    code = FaultCode.MALFORMED_MANIFEST
    title = "malformed manifest"
    hint = "regenerate the manifest with `oclif manifest`"


class UnresolvedDirectoryError(SpecException):
    code = FaultCode.UNRESOLVED_DIRECTORY
    title = "unresolved directory"
    hint = "pass an explicit destination with --output"


class UnwritableSpecError(SpecException):
    code = FaultCode.UNWRITABLE_SPEC
    title = "unwritable spec"
    hint = "check the permissions of the destination directory"


class SpecWarning(Warning):
    code = None
    title = "warning"
    hint = None

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)
        for name in ("code", "title", "hint"):
            if name in options:
                setattr(self, name, options[name])

    def __str__(self):
        return self.message

    def __rich__(self):
        return _render(self, "warning")

    def __trigger__(self):
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=self.options.get("stacklevel", 3))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DuplicateCommandWarning(SpecWarning):
    code = FaultCode.DUPLICATE_COMMAND
    title = "duplicate command"
    hint = "the first command registered at this path was kept"


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged through copy.replace() before triggering.

    typical options
    - shell, fancy, colorful, prog, hint, and any context a caller wants to keep
      attached to the fault (path, command, ...).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "FaultCode",
    "SpecException",
    "MalformedOverridesError",
    "MissingManifestError",
    "MalformedManifestError",
    "UnresolvedDirectoryError",
    "UnwritableSpecError",
    "SpecWarning",
    "DuplicateCommandWarning",
    "trigger",
)
