"""
Directory resolution for generated specs.

- user_config_dir(): same rules as Go's os.UserConfigDir (carapace is written
  in Go and reads user specs from <UserConfigDir>/carapace/specs).
- cache_dir(bin, dirname): the oclif cache directory of a CLI.
- spec_path(bin, dirname): where carapace-gen keeps the spec file by default.
- carapace_spec_path(bin): carapace's own user spec location.

All functions take `platform`/`environ`/`home` keywords so they can be
evaluated for another OS than the running one.
"""
import os
import sys
from pathlib import Path, PurePosixPath, PureWindowsPath

from .faults import UnresolvedDirectoryError

SPEC_DIRECTORY = "oclif-carapace-spec"


def _context(platform, environ, home):
    platform = sys.platform if platform is None else platform
    environ = os.environ if environ is None else environ
    flavour = PureWindowsPath if platform == "win32" else PurePosixPath
    if home is None:
        try:
            home = str(Path.home())
        except RuntimeError:
            home = ""
    return platform, environ, flavour, home


def user_config_dir(*, platform=None, environ=None, home=None):
    """
    Return the directory for user-specific configuration data.

    - Windows: %APPDATA% (an error when unset).
    - macOS:   ~/Library/Application Support
    - others:  $XDG_CONFIG_HOME, else ~/.config

    Raises UnresolvedDirectoryError when it cannot be determined.
    """
    platform, environ, flavour, home = _context(platform, environ, home)

    if platform == "win32":
        if appdata := environ.get("APPDATA"):
            return flavour(appdata)
        raise UnresolvedDirectoryError("APPDATA is not set")

    if not home:
        raise UnresolvedDirectoryError("home directory not found")

    if platform == "darwin":
        return flavour(home, "Library", "Application Support")

    if xdg := environ.get("XDG_CONFIG_HOME"):
        return flavour(xdg)
    return flavour(home, ".config")


def cache_dir(bin, dirname=None, /, *, platform=None, environ=None, home=None):
    """
    Return the oclif cache directory of the CLI `bin`.

    - $<BIN>_CACHE_DIR (bin upper-cased, dashes as underscores) wins.
    - macOS:   ~/Library/Caches/<dirname>
    - Windows: %LOCALAPPDATA%/<dirname> (falls back to ~/AppData/Local)
    - others:  ($XDG_CACHE_HOME or ~/.cache)/<dirname>

    `dirname` defaults to `bin`.
    """
    platform, environ, flavour, home = _context(platform, environ, home)
    dirname = dirname or bin

    if override := environ.get(bin.upper().replace("-", "_") + "_CACHE_DIR"):
        return flavour(override)

    if platform == "win32" and (local := environ.get("LOCALAPPDATA")):
        return flavour(local, dirname)
    if platform not in ("win32", "darwin") and (xdg := environ.get("XDG_CACHE_HOME")):
        return flavour(xdg, dirname)

    if not home:
        raise UnresolvedDirectoryError(f"cache directory of {bin!r} cannot be determined")

    match platform:
        case "darwin":
            return flavour(home, "Library", "Caches", dirname)
        case "win32":
            return flavour(home, "AppData", "Local", dirname)
        case _:
            return flavour(home, ".cache", dirname)


def spec_path(bin, dirname=None, /, **context):
    return cache_dir(bin, dirname, **context) / SPEC_DIRECTORY / f"{bin}.yml"


def carapace_spec_path(bin, /, **context):
    return user_config_dir(**context) / "carapace" / "specs" / f"{bin}.yaml"


__all__ = (
    "SPEC_DIRECTORY",
    "user_config_dir",
    "cache_dir",
    "spec_path",
    "carapace_spec_path",
)
