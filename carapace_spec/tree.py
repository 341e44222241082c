"""
carapace_spec tree builder.

What this module provides
- TreeNode: one command-tree node (name, description, children, and for
  runnable commands a flag table plus optional completion and exclusivity data).
- build(nodes, bin, description, overrides): fold a flat Topic/Command sequence
  into a single tree rooted at the program name.

How nodes are folded
- Each node id is split on ":" and walked from the root, one segment at a time.
- A missing segment is created in place (children keep encounter order; they
  are never sorted). Intermediate segments are plain, non-command nodes.
- On the last segment:
  • nothing there yet → a new node (a command node when the source is a Command);
  • a non-command node there and the source is a Command → co-topic promotion:
    the command's description, flags, completion and exclusivity replace the
    placeholder's while its children are kept (e.g. `force` is both a topic
    and a runnable command);
  • a command node there and the source is a Command → the first one is kept
    and a DuplicateCommandWarning is emitted;
  • anything there and the source is a Topic → left untouched.

Ordering contract (not validated)
- Topics must precede the commands sharing their prefix. Breaking it yields
  different descriptions, never an exception.

Example
    >>> tree = build([Topic("force", "topic"), Command("force", "cmd")], "sf")
    >>> [node.description for node in tree.commands]
    ['cmd']
"""
import copy

from .faults import DuplicateCommandWarning, trigger
from .flags import normalize
from .logs import get_logger
from .utils import Unset, coalesce, mirror

logger = get_logger(__name__)


class TreeNode:
    """
    Node of the generated command tree.

    - command is True iff the node carries a flag table (flags is not Unset).
    - completion/exclusiveflags are Unset when there is nothing to record.
    - commands: children in insertion order, unique by name.
    """

    __slots__ = ("_name", "_description", "_children", "_flags", "_completion", "_exclusiveflags")

    def __init__(
            self,
            name,
            description="",
            /,
            commands=(),
            flags=Unset,
            completion=Unset,
            exclusiveflags=Unset
    ):
        if not isinstance(name, str):
            raise TypeError("tree-node 'name' must be a string")
        if not isinstance(description, str):
            raise TypeError("tree-node 'description' must be a string")
        self._name = name
        self._description = description
        self._children = {}
        for child in commands:
            if child.name in self._children:
                raise ValueError(f"tree-node child name {child.name!r} is already in use")
            self._children[child.name] = child
        self._flags = flags if flags is Unset else dict(flags)
        self._completion = completion if completion is Unset else {
            flag: list(values) for flag, values in completion.items()
        }
        self._exclusiveflags = exclusiveflags if exclusiveflags is Unset else [
            list(group) for group in exclusiveflags
        ]
        if self._flags is Unset and (self._completion is not Unset or self._exclusiveflags is not Unset):
            raise ValueError("tree-node completion and exclusiveflags require flags")

    name = mirror("name")
    description = mirror("description")
    flags = mirror("flags")
    completion = mirror("completion")
    exclusiveflags = mirror("exclusiveflags")

    @property
    def commands(self):
        return tuple(self._children.values())

    @property
    def command(self):
        return self._flags is not Unset

    def child(self, name, /):
        """
        Return the child named `name`, or None.
        """
        return self._children.get(name)

    def __replace__(self, /, **changes):
        """
        Return a new node with `changes` applied.

        Children are carried over (same child nodes, new container) unless
        `commands` is among the changes.
        """
        clone = type(self)(
            changes.pop("name", self._name),
            changes.pop("description", self._description),
            changes.pop("commands", self._children.values()),
            **{
                field: changes.pop(field, getattr(self, "_" + field))
                for field in ("flags", "completion", "exclusiveflags")
            }
        )
        if changes:
            raise TypeError(f"tree-node has no fields {', '.join(map(repr, changes))}")
        return clone

    def __rich_repr__(self):
        yield "name", self._name
        yield "description", self._description
        if self.command:
            yield "flags", self._flags
        yield "commands", [child.name for child in self._children.values()]

    def __repr__(self):
        kind = "command" if self.command else "topic"
        return f"tree-node({self._name!r}, {kind}, children={len(self._children)})"

    def todict(self):
        """
        Render this subtree with the carapace-spec schema.

        Key order: name, description, flags, completion, exclusiveflags,
        commands. Optional keys only appear on command nodes with data.
        """
        data = {
            "name": self._name,
            "description": self._description,
        }
        if self.command:
            data["flags"] = dict(self._flags)
            if self._completion:
                data["completion"] = {
                    "flag": {flag: list(values) for flag, values in self._completion.items()}
                }
            if self._exclusiveflags:
                data["exclusiveflags"] = [list(group) for group in self._exclusiveflags]
        data["commands"] = [child.todict() for child in self._children.values()]
        return data


def _materialize(segment, node, table, /):
    """
    Internal: tree node for `segment` realized from a source node.
    """
    if table is None:
        return TreeNode(segment, node.summary)
    return TreeNode(
        segment,
        node.summary,
        flags=table.flags,
        completion=table.completion or Unset,
        exclusiveflags=table.exclusiveflags or Unset,
    )


def _promote(existing, node, table, /):
    """
    Internal: co-topic promotion, a placeholder becoming a command.

    The command's metadata wins; the placeholder's children are kept.
    """
    return copy.replace(
        existing,
        description=node.summary,
        flags=table.flags,
        completion=table.completion or Unset,
        exclusiveflags=table.exclusiveflags or Unset,
    )


def _settle(parent, segment, node, table, /):
    """
    Internal: place `node` as the child `segment` of `parent` (last path segment).
    """
    existing = parent._children.get(segment)

    match node.kind:
        case "topic":
            if existing is None:
                parent._children[segment] = _materialize(segment, node, None)
        case "command":
            if existing is None:
                parent._children[segment] = _materialize(segment, node, table)
            elif not existing.command:
                logger.debug("promoting topic %r to command", node.id)
                parent._children[segment] = _promote(existing, node, table)
            else:
                trigger(DuplicateCommandWarning(
                    f"command {node.id!r} is defined more than once",
                    command=node.id,
                ))
        case _:
            raise TypeError(f"build() unknown node kind {node.kind!r}")


def build(nodes, bin, /, description=Unset, overrides=None):
    """
    Fold `nodes` into a command tree rooted at `bin`.

    Parameters
    - nodes: iterable of Topic | Command, topics first (see module docstring).
    - bin: program name, used as the root node name.
    - description: root description; defaults to "{bin} CLI".
    - overrides: Overrides | None, flag-value completion overrides.

    Returns
    - TreeNode: the root. The build is deterministic: identical inputs give
      identical trees, and thus byte-identical serialized specs.
    """
    root = TreeNode(bin, coalesce(description, f"{bin} CLI"))

    for node in nodes:
        table = normalize(node.flags, node.id, overrides) if node.kind == "command" else None
        *segments, last = node.path

        parent = root
        for segment in segments:
            if (child := parent._children.get(segment)) is None:
                child = parent._children[segment] = TreeNode(segment, node.summary)
            parent = child

        _settle(parent, last, node, table)

    return root


__all__ = (
    "TreeNode",
    "build",
)
