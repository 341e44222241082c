"""
Emitter behavioral tests (YAML rendering and atomic writes).

Scope
- Validate the rendered schema, key order and the absence of anchors/aliases.
- Validate byte-identical output across repeated builds.
- Validate that write() replaces the destination atomically and leaves a prior
  spec untouched when anything fails, keeping its permissions.

Conventions
- Test method names follow CamelCase per project convention.
- Files live in per-test temporary directories.
"""

from __future__ import annotations

import os
import stat
import tempfile
import unittest
from pathlib import Path
from unittest import TestCase, mock

import yaml

from carapace_spec import Command, Overrides, Topic, build
from carapace_spec.emitter import dumps, write


def nodes():
    shared = {
        "target-org": {"type": "option", "char": "o", "summary": "Target org."},
        "json": {"type": "boolean", "summary": "Format output as json."},
    }
    return [
        Topic("org", "Manage orgs"),
        Command("org:open", "Open an org in the browser", flags=shared),
        Command("org:display", "Display an org", flags=shared),
        Command("open", "Open an org in the browser", flags=shared),
    ]


def overrides():
    return Overrides({"target-org": ["$(sf org list)"]})


class TestDumps(TestCase):
    """Behavioral tests for dumps()."""

    def testSchema(self):
        data = yaml.safe_load(dumps(build(nodes(), "sf", overrides=overrides())))
        self.assertEqual(data["name"], "sf")
        self.assertEqual(data["description"], "sf CLI")
        org = data["commands"][0]
        self.assertEqual(org["name"], "org")
        self.assertNotIn("flags", org)
        opened = org["commands"][0]
        self.assertEqual(opened["flags"], {
            "-o, --target-org=": "Target org.",
            "--json": "Format output as json.",
            "--help": "Show help for command",
        })
        self.assertEqual(opened["completion"], {"flag": {"target-org": ["$(sf org list)"]}})

    def testKeyOrderPreserved(self):
        text = dumps(build(nodes(), "sf", overrides=overrides()))
        self.assertLess(text.index("name: sf"), text.index("description: sf CLI"))
        self.assertLess(text.index("-o, --target-org="), text.index("--json"))
        self.assertLess(text.index("--json"), text.index("--help"))

    def testNoAnchorsForSharedStructures(self):
        text = dumps(build(nodes(), "sf", overrides=overrides()))
        self.assertNotIn("&id", text)
        self.assertNotIn("*id", text)

    def testNoAnchorsForSharedDict(self):
        shared = {"flag": {"a": ["x"]}}
        text = dumps({"one": shared, "two": shared})
        self.assertNotIn("&", text)
        self.assertEqual(yaml.safe_load(text), {"one": shared, "two": shared})

    def testIdempotent(self):
        first = dumps(build(nodes(), "sf", overrides=overrides()))
        second = dumps(build(nodes(), "sf", overrides=overrides()))
        self.assertEqual(first.encode("utf-8"), second.encode("utf-8"))

    def testUnicodeKeptVerbatim(self):
        text = dumps(build([Command("déployer", "Déploie vite")], "sf"))
        self.assertIn("Déploie vite", text)

    def testLongDescriptionsNotWrapped(self):
        summary = " ".join(["word"] * 60)
        text = dumps(build([Command("deploy", summary)], "sf"))
        self.assertIn(summary, text)

    def testEscapedSummaryRoundTrips(self):
        summary = 'Use \\\\\\"quotes\\\\\\" and \\\\[brackets\\\\]'
        data = yaml.safe_load(dumps(build([Command("deploy", summary)], "sf")))
        self.assertEqual(data["commands"][0]["description"], summary)


class TestWrite(TestCase):
    """Behavioral tests for write()."""

    def setUp(self):
        self.directory = tempfile.TemporaryDirectory()
        self.addCleanup(self.directory.cleanup)
        self.path = Path(self.directory.name) / "cache" / "oclif-carapace-spec" / "sf.yml"

    def testCreatesParentsAndWrites(self):
        tree = build(nodes(), "sf")
        self.assertEqual(write(tree, self.path), self.path)
        self.assertEqual(self.path.read_text(encoding="utf-8"), dumps(tree))

    def testReplacesPreviousSpec(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("stale", encoding="utf-8")
        write(build(nodes(), "sf"), self.path)
        self.assertNotEqual(self.path.read_text(encoding="utf-8"), "stale")

    def testNoTemporaryFilesLeft(self):
        write(build(nodes(), "sf"), self.path)
        self.assertEqual(os.listdir(self.path.parent), ["sf.yml"])

    def testFailedReplaceKeepsPriorSpec(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("previous", encoding="utf-8")
        with mock.patch("carapace_spec.emitter.os.replace", side_effect=PermissionError(13, "denied")):
            with self.assertRaises(PermissionError):
                write(build(nodes(), "sf"), self.path)
        self.assertEqual(self.path.read_text(encoding="utf-8"), "previous")
        self.assertEqual(os.listdir(self.path.parent), ["sf.yml"])

    @unittest.skipIf(os.name == "nt", "POSIX permission bits")
    def testKeepsModeOfPreviousSpec(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("previous", encoding="utf-8")
        os.chmod(self.path, 0o600)
        write(build(nodes(), "sf"), self.path)
        self.assertEqual(stat.S_IMODE(os.stat(self.path).st_mode), 0o600)

    @unittest.skipIf(os.name == "nt", "POSIX permission bits")
    def testNewSpecFollowsUmask(self):
        self.addCleanup(os.umask, os.umask(0o077))
        write(build(nodes(), "sf"), self.path)
        self.assertEqual(stat.S_IMODE(os.stat(self.path).st_mode), 0o600)

    def testRenderFailureTouchesNothing(self):
        with mock.patch("carapace_spec.emitter.dumps", side_effect=yaml.YAMLError("boom")):
            with self.assertRaises(yaml.YAMLError):
                write(build(nodes(), "sf"), self.path)
        self.assertFalse(self.path.parent.exists())


if __name__ == "__main__":
    unittest.main()
