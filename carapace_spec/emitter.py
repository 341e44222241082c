"""
Spec serialization.

- dumps(tree): YAML text of a TreeNode (or an already rendered dict).
- write(tree, path): all-or-nothing write of that text to `path`.

The YAML never contains anchors or aliases (carapace refuses them), keys keep
insertion order and non-ASCII descriptions are written as-is, so the same tree
always yields the same bytes.
"""
import os
import stat
import tempfile
from pathlib import Path

import yaml

from .logs import get_logger

logger = get_logger(__name__)


class SpecDumper(yaml.SafeDumper):
    """
    Safe dumper that expands shared structures instead of aliasing them.
    """

    def ignore_aliases(self, data):
        return True


def dumps(tree, /):
    data = tree.todict() if hasattr(tree, "todict") else tree
    return yaml.dump(
        data,
        Dumper=SpecDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=float("inf"),
    )


def _mode(path, /):
    """
    Internal: permission bits for the spec at `path`.

    An existing spec keeps its mode; a new one gets 0o666 minus the umask.
    """
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write(tree, path, /):
    """
    Serialize `tree` and atomically replace `path` with the result.

    The text is rendered before anything touches the disk, written to a
    temporary sibling and renamed over `path`. On any failure the temporary
    file is removed and a previous spec at `path` stays untouched. The
    permissions of a previous spec are preserved.

    Errors
    - OSError propagates unchanged.
    """
    text = dumps(tree)
    path = Path(path)

    path.parent.mkdir(parents=True, exist_ok=True)
    descriptor, temporary = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)

    try:
        with os.fdopen(descriptor, "w", encoding="utf-8") as stream:
            stream.write(text)
        os.chmod(temporary, _mode(path))
        os.replace(temporary, path)
    except BaseException:
        Path(temporary).unlink(missing_ok=True)
        raise

    logger.debug("wrote %d bytes to %s", len(text.encode("utf-8")), path)
    return path


__all__ = (
    "SpecDumper",
    "dumps",
    "write",
)
