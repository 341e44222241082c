"""
Node source for oclif-style command line projects.

A project root is a directory holding `package.json` and an
`oclif.manifest.json` (generated by `oclif manifest`). Project.load() reads
the root plugin, the core plugins it lists under `oclif.plugins` that are
installed in `node_modules/`, and any extra plugin directories, then
Project.nodes() hands the tree builder an ordered Topic/Command sequence:

1. topics (declared, or implied by command ids) that have at least one
   sub-topic, sorted by id;
2. per plugin, per manifest command (hidden and deprecated ones skipped): the
   command, then each alias preceded by "topic help" placeholders for alias
   prefixes that are not known topics yet.

Summaries have their `<%= config.<attribute> %>` expressions expanded and keep
their first line only; double quotes and backticks are escaped with three
backslashes and square brackets with two, as carapace expands them once when
reading a spec file.
"""
import json
import re
from collections.abc import Mapping, Sequence
from pathlib import Path

from .faults import MalformedManifestError, MissingManifestError
from .logs import get_logger
from .nodes import Command, Topic
from .utils import mirror

logger = get_logger(__name__)

PACKAGE = "package.json"
MANIFEST = "oclif.manifest.json"
PLACEHOLDER = "topic help"

_ESCAPES = str.maketrans({
    '"': '\\\\\\"',
    "`": "\\\\\\`",
    "[": "\\\\[",
    "]": "\\\\]",
})

_TEMPLATE = re.compile(r"<%[=-]\s*config\.(\w+)\s*-?%>")


def render(summary, /, config=None):
    """
    Expand `<%= config.<attribute> %>` expressions with values from `config`.

    Unknown attributes are kept verbatim. No other template syntax is
    interpreted.
    """
    if not config:
        return summary

    def substitute(match):
        if (value := config.get(match[1])) is None:
            return match[0]
        return str(value)

    return _TEMPLATE.sub(substitute, summary)


def sanitize(summary, /, config=None):
    """
    Make a manifest summary fit for a spec description.

    None becomes "". Config expressions are expanded first (see render()),
    then only the first line is kept, so a multi-line description contributes
    its headline.
    """
    if summary is None:
        return ""
    return render(summary, config).translate(_ESCAPES).split("\n", 1)[0]


def _read(path, /):
    """
    Internal: parse a JSON object from `path`.
    """
    try:
        with open(path, encoding="utf-8") as stream:
            document = json.load(stream)
    except FileNotFoundError:
        raise MissingManifestError(f"{path} does not exist", path=str(path)) from None
    except OSError as exception:
        raise MissingManifestError(
            f"cannot read {path}: {exception.strerror or exception}",
            path=str(path),
            hint="check that the path is a readable file",
        ) from exception
    except (json.JSONDecodeError, UnicodeDecodeError) as exception:
        raise MalformedManifestError(f"{path}: {exception}", path=str(path)) from None

    if not isinstance(document, Mapping):
        raise MalformedManifestError(f"{path}: expected a JSON object", path=str(path))
    return document


def _mapping(document, key, where, /):
    if (section := document.get(key)) is None:
        return {}
    if not isinstance(section, Mapping):
        raise MalformedManifestError(f"{where}: {key!r} must be an object")
    return section


def _flatten(topics, where, prefix="", /):
    """
    Internal: yield (id, entry) for nested oclif topic declarations.
    """
    for name, entry in topics.items():
        if not isinstance(entry, Mapping):
            raise MalformedManifestError(f"{where}: topic {prefix + name!r} must be an object")
        yield prefix + name, entry
        yield from _flatten(_mapping(entry, "subtopics", where), where, f"{prefix}{name}:")


class Plugin:
    """
    One oclif plugin: its package metadata and manifest commands.
    """

    __slots__ = ("_name", "_root", "_package", "_commands")

    def __init__(self, name, root, package, commands):
        self._name = name
        self._root = Path(root)
        self._package = package
        self._commands = commands

    name = mirror("name")
    root = mirror("root")
    package = mirror("package")
    commands = mirror("commands")

    def __repr__(self):
        return f"plugin({self._name!r}, commands={len(self._commands)})"

    @property
    def oclif(self):
        return _mapping(self._package, "oclif", str(self._root / PACKAGE))

    @property
    def topics(self):
        """
        Explicitly declared topics, nested subtopics flattened to colon ids.
        """
        where = str(self._root / PACKAGE)
        return dict(_flatten(_mapping(self.oclif, "topics", where), where))

    @classmethod
    def load(cls, root, /):
        """
        Read `root/package.json` and `root/oclif.manifest.json`.

        Errors
        - MissingManifestError when either file is absent.
        - MalformedManifestError when either is not valid JSON of the
          expected shape.
        """
        root = Path(root)
        package = _read(root / PACKAGE)
        manifest = _read(root / MANIFEST)
        commands = _mapping(manifest, "commands", str(root / MANIFEST))
        for id, command in commands.items():
            if not isinstance(command, Mapping):
                raise MalformedManifestError(f"{root / MANIFEST}: command {id!r} must be an object")
        name = package.get("name") or root.name
        logger.debug("loaded plugin %s with %d commands from %s", name, len(commands), root)
        return cls(name, root, package, dict(commands))


def _listed(command, /):
    return not command.get("hidden") and command.get("state") != "deprecated"


class Project:
    """
    An oclif command line project: the root plugin plus its plugins.

    - bin: oclif.bin, else the package name.
    - description: the package description, else "{bin} CLI".
    - dirname: oclif.dirname, else bin (names the cache directory).
    - config: the values `<%= config.<attribute> %>` expressions in summaries
      expand to (bin, name, dirname and version by default).
    """

    __slots__ = ("_bin", "_description", "_dirname", "_plugins", "_config")

    def __init__(self, bin, description, dirname, plugins, config=None):
        self._bin = bin
        self._description = description
        self._dirname = dirname
        self._plugins = tuple(plugins)
        self._config = {"bin": bin, "dirname": dirname} if config is None else dict(config)

    bin = mirror("bin")
    description = mirror("description")
    dirname = mirror("dirname")
    plugins = mirror("plugins")
    config = mirror("config")

    def __repr__(self):
        return f"project({self._bin!r}, plugins={[plugin.name for plugin in self._plugins]})"

    @classmethod
    def load(cls, root, /, plugins=()):
        """
        Load the project at `root`.

        Core plugins listed in `oclif.plugins` are read from
        `root/node_modules/<name>` when installed there with a manifest and
        skipped otherwise. Directories in `plugins` are always read.
        """
        main = Plugin.load(root)
        oclif = main.oclif
        loaded = [main]

        core = oclif.get("plugins") or []
        if isinstance(core, str) or not isinstance(core, Sequence):
            raise MalformedManifestError(f"{main.root / PACKAGE}: 'oclif.plugins' must be a list")
        for name in core:
            directory = main.root / "node_modules" / str(name)
            if not (directory / MANIFEST).is_file():
                logger.debug("skipping plugin %s: no manifest in %s", name, directory)
                continue
            loaded.append(Plugin.load(directory))

        loaded.extend(Plugin.load(directory) for directory in plugins)

        bin = oclif.get("bin") or main.name
        dirname = oclif.get("dirname") or bin
        config = {
            "bin": bin,
            "name": main.name,
            "dirname": dirname,
            "version": main.package.get("version"),
        }
        return cls(
            bin,
            main.package.get("description") or f"{bin} CLI",
            dirname,
            loaded,
            config,
        )

    def topics(self):
        """
        Return the Topic nodes of the project.

        Declared topics are merged across plugins, a later declaration with a
        description replacing an earlier one. Every non-hidden command id adds
        itself and its prefixes as implicit topics, described by the command
        summary unless already known. Hidden topics are kept. Topics without
        a sub-topic are dropped; the rest is sorted by id.
        """
        declared = {}
        for plugin in self._plugins:
            for id, entry in plugin.topics.items():
                declared[id] = entry.get("description") or declared.get(id)

            for id, command in plugin.commands.items():
                if command.get("hidden"):
                    continue
                segments = id.split(":")
                fallback = command.get("summary") or command.get("description")
                for end in range(len(segments), 0, -1):
                    declared.setdefault(":".join(segments[:end]), fallback)

        ids = sorted(declared)
        topics = []
        for id in ids:
            if not any(other.startswith(id + ":") for other in ids):
                continue
            description = declared[id]
            topics.append(Topic(
                id,
                sanitize(description, self._config) if description else f"{id.replace(':', ' ')} commands",
            ))
        return topics

    def commands(self, /, topics=()):
        """
        Yield the Command nodes of every plugin, aliases included.

        `topics` are the ids already known to the consumer; alias prefixes
        outside of them are introduced by placeholder Topic nodes first.
        """
        known = set(topics)

        for plugin in self._plugins:
            for id, data in plugin.commands.items():
                if not _listed(data):
                    continue

                try:
                    command = Command(
                        data.get("id") or id,
                        sanitize(data.get("summary") or data.get("description"), self._config),
                        flags=data.get("flags"),
                    )
                except (TypeError, ValueError) as exception:
                    raise MalformedManifestError(
                        f"{plugin.root / MANIFEST}: command {id!r}: {exception}",
                        path=str(plugin.root / MANIFEST),
                    ) from exception
                yield command

                if data.get("deprecateAliases"):
                    continue
                for alias in data.get("aliases") or ():
                    if not isinstance(alias, str):
                        raise MalformedManifestError(
                            f"{plugin.root / MANIFEST}: aliases of {id!r} must be strings",
                            path=str(plugin.root / MANIFEST),
                        )
                    segments = alias.split(":")
                    for end in range(1, len(segments)):
                        if (prefix := ":".join(segments[:end])) not in known:
                            known.add(prefix)
                            yield Topic(prefix, PLACEHOLDER)
                    yield Command(alias, command.summary, flags=command.flags)

    def nodes(self):
        """
        Return the full node sequence: topics first, then commands.
        """
        topics = self.topics()
        nodes = [*topics, *self.commands([topic.id for topic in topics])]
        logger.debug("%s: %d topics, %d nodes", self._bin, len(topics), len(nodes))
        return nodes


__all__ = (
    "PACKAGE",
    "MANIFEST",
    "PLACEHOLDER",
    "render",
    "sanitize",
    "Plugin",
    "Project",
)
