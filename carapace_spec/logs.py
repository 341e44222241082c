"""
Logger helpers for the carapace_spec namespace.

- setup_logger(verbose=False, console=None): attach a single rich handler to the
  "carapace_spec" logger (stderr, INFO or DEBUG) and return it.
- get_logger(name): namespaced logger factory ("carapace_spec.*").

Library modules only ever call get_logger(__name__); handlers are installed by
the command line, so importing the package never configures logging.
"""
import logging

from rich.console import Console
from rich.logging import RichHandler

ROOT = "carapace_spec"


def setup_logger(verbose=False, console=None):
    base = logging.getLogger(ROOT)
    base.setLevel(logging.DEBUG if verbose else logging.INFO)
    if base.handlers:
        return base

    base.propagate = False
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=verbose,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    base.addHandler(handler)
    return base


def get_logger(name=None):
    """Return a logger under the carapace_spec namespace."""
    if not name or name == ROOT:
        return logging.getLogger(ROOT)
    if name.startswith(ROOT + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT}.{name}")


__all__ = (
    "setup_logger",
    "get_logger",
)
