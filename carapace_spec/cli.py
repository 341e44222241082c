"""
carapace-gen: generate a carapace spec for an oclif command line.

    carapace-gen ROOT [--plugin DIR]... [-o FILE | --carapace]
                 [--overrides FILE] [-r] [-v] [--no-color]

By default the spec file goes to the CLI's cache directory
(<cache>/oclif-carapace-spec/<bin>.yml) and instructions to source it are
printed. --carapace writes it where carapace looks for user specs instead.

refresh() is the plugin install/uninstall hook: it regenerates the cached
spec without printing anything, provided this plugin is installed.
"""
import argparse
import warnings
from pathlib import Path

import yaml
from rich.console import Console
from rich.markup import escape

from . import emitter
from .faults import (
    MalformedOverridesError,
    SpecException,
    SpecWarning,
    UnwritableSpecError,
    trigger,
)
from .logs import get_logger, setup_logger
from .manifest import Project
from .overrides import ENVIRONMENT, Overrides
from .paths import carapace_spec_path, spec_path
from .tree import build

logger = get_logger(__name__)

PROG = "carapace-gen"
PLUGIN_NAME = "oclif-carapace-spec"
USAGE = "https://carapace-sh.github.io/carapace-spec/carapace-spec/usage.html"


def parser():
    parser = argparse.ArgumentParser(
        prog=PROG,
        description=(
            "Generate a carapace spec file for an oclif command line.\n\n"
            "Use the generated spec with carapace to get shell completion:\n"
            "https://github.com/carapace-sh/carapace-spec"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "root",
        type=Path,
        help="Directory holding package.json and oclif.manifest.json",
    )
    parser.add_argument(
        "--plugin",
        type=Path,
        action="append",
        default=[],
        metavar="DIR",
        help="Extra plugin directory to include (repeatable)",
    )
    destination = parser.add_mutually_exclusive_group()
    destination.add_argument(
        "-o",
        "--output",
        type=Path,
        metavar="FILE",
        help="Write the spec file to FILE instead of the cache directory",
    )
    destination.add_argument(
        "--carapace",
        action="store_true",
        help="Write the spec file to carapace's user spec directory",
    )
    parser.add_argument(
        "--overrides",
        type=Path,
        metavar="FILE",
        help=f"Flag completion overrides (YAML); defaults to ${ENVIRONMENT}",
    )
    parser.add_argument(
        "-r",
        "--refresh-cache",
        action="store_true",
        help="Refresh cache (ignores displaying instructions)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every step",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colors",
    )
    return parser


def generate(project, /, destination=None, overrides=None):
    """
    Build the carapace spec of `project` and write it to `destination`.

    `destination` defaults to the cached spec path of the project. Returns
    the path written. Faults and OSError propagate.
    """
    if destination is None:
        destination = spec_path(project.bin, project.dirname)
    tree = build(project.nodes(), project.bin, description=project.description, overrides=overrides)
    return emitter.write(tree, destination)


def instructions(bin, path, /, carapace=False, console=None):
    """
    Print how to enable completion with the generated spec.
    """
    console = console or Console()
    if carapace:
        first = (
            "1) carapace picks up the spec file from its user spec directory:\n\n"
            f"  [cyan]{escape(str(path))}[/cyan]\n\n"
            f"  Run [cyan]carapace {escape(bin)}[/cyan] once to check it is listed."
        )
    else:
        first = (
            "1) Source the following spec file in your shell profile:\n\n"
            f"  [cyan]{escape(str(path))}[/cyan]\n\n"
            "  [bold]Instructions for supported shells by carapace-gen:[/bold]\n"
            f"  {USAGE}"
        )
    console.print(
        f"\n{first}\n\n"
        "2) Start using autocomplete\n\n"
        f"  [cyan]{escape(bin)} <TAB>[/cyan]              ## Command completion\n"
        f"  [cyan]{escape(bin)} command --<TAB>[/cyan]    ## Flag completion\n",
        highlight=False,
    )


def _overrides(path, /, environ=None):
    """
    Internal: load overrides, reporting unreadable or invalid files as faults.
    """
    try:
        return Overrides.fromenv(path, environ=environ)
    except yaml.YAMLError as exception:
        raise MalformedOverridesError(f"overrides are not valid YAML: {exception}") from exception
    except OSError as exception:
        raise MalformedOverridesError(
            f"cannot read overrides: {exception}",
            hint=f"check --overrides or ${ENVIRONMENT}",
        ) from exception


def _run(arguments, /):
    overrides = _overrides(arguments.overrides)
    project = Project.load(arguments.root, plugins=arguments.plugin)

    destination = arguments.output
    if arguments.carapace:
        destination = carapace_spec_path(project.bin)

    try:
        path = generate(project, destination, overrides)
    except OSError as exception:
        target = exception.filename or destination or spec_path(project.bin, project.dirname)
        raise UnwritableSpecError(
            f"cannot write {target}: {exception.strerror or exception}"
        ) from exception
    return project, path


def _report(records, /, **options):
    for record in records:
        if isinstance(record.message, SpecWarning):
            trigger(record.message, **options)
        else:
            warnings.showwarning(record.message, record.category, record.filename, record.lineno)


def main(argv=None):
    """
    Entry point of the carapace-gen command; returns the exit status.
    """
    arguments = parser().parse_args(argv)
    setup_logger(arguments.verbose, Console(stderr=True, no_color=arguments.no_color))
    options = {"shell": True, "colorful": not arguments.no_color, "prog": PROG}

    fault = None
    with warnings.catch_warnings(record=True) as records:
        warnings.simplefilter("always", SpecWarning)
        try:
            project, path = _run(arguments)
        except SpecException as exception:
            fault = exception

    _report(records, **options)
    if fault is not None:
        trigger(fault, **options)

    if arguments.refresh_cache:
        logger.debug("refreshed %s", path)
        return 0

    logger.info("generated %s", path)
    instructions(
        project.bin,
        path,
        carapace=arguments.carapace,
        console=Console(no_color=arguments.no_color),
    )
    return 0


def refresh(root, /, plugins=(), installed=None, environ=None):
    """
    Regenerate the cached spec of the CLI at `root` after plugin changes.

    `installed` lists the names of the installed plugins; when omitted the
    plugins found by Project.load() are used. Nothing happens unless
    PLUGIN_NAME is among them. Returns the path written, or None.
    """
    project = Project.load(root, plugins=plugins)
    if installed is None:
        installed = [plugin.name for plugin in project.plugins]
    if PLUGIN_NAME not in installed:
        logger.debug("%s is not installed in %s, skipping refresh", PLUGIN_NAME, project.bin)
        return None
    return generate(project, overrides=_overrides(None, environ=environ))


__all__ = (
    "PROG",
    "PLUGIN_NAME",
    "parser",
    "generate",
    "instructions",
    "main",
    "refresh",
)
