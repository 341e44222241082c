"""
Tree builder behavioral tests (nesting, co-topic promotion, ordering, duplicates).

Scope
- Validate the root node and nested command paths.
- Validate co-topic promotion: command metadata wins, children are kept.
- Validate that sibling order follows the node sequence.
- Validate first-writer-wins on duplicate commands and the emitted warning.
- Validate TreeNode construction, replacement and rendering.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Topic, Command, Flag, Overrides, build, TreeNode).
"""

from __future__ import annotations

import copy
import unittest
import warnings
from unittest import TestCase

from carapace_spec import (
    Command,
    DuplicateCommandWarning,
    Flag,
    Overrides,
    Topic,
    TreeNode,
    build,
)
from carapace_spec.utils import Unset


class TestBuild(TestCase):
    """Behavioral tests for build()."""

    def testBasicTree(self):
        tree = build([Command("test", "Test command", flags={
            "help": {"type": "boolean", "char": "h", "description": "Show help for command"},
        })], "test-cli", description="Test CLI")
        self.assertEqual(tree.name, "test-cli")
        self.assertEqual(tree.description, "Test CLI")
        self.assertEqual(len(tree.commands), 1)
        self.assertEqual(tree.commands[0].name, "test")
        self.assertEqual(tree.commands[0].description, "Test command")
        self.assertTrue(tree.commands[0].command)

    def testRootDescriptionDefault(self):
        self.assertEqual(build([], "sf").description, "sf CLI")

    def testRootIsNotACommand(self):
        self.assertFalse(build([], "sf").command)

    def testNestedCommands(self):
        tree = build([Command("parent", flags={}), Command("parent:child", flags={})], "test-cli")
        self.assertEqual([node.name for node in tree.commands], ["parent"])
        self.assertEqual([node.name for node in tree.commands[0].commands], ["child"])

    def testIntermediateSegmentsAreCreated(self):
        tree = build([Command("org:list:metadata", "List metadata")], "sf")
        org = tree.child("org")
        self.assertFalse(org.command)
        self.assertFalse(org.child("list").command)
        self.assertTrue(org.child("list").child("metadata").command)

    def testCoTopicPromotion(self):
        tree = build([
            Topic("force", "topic"),
            Topic("force:org", "org topic"),
            Command("force:org:open", "open"),
            Command("force", "cmd", flags={"json": {"type": "boolean"}}),
        ], "sf")
        force = tree.child("force")
        self.assertEqual(force.description, "cmd")
        self.assertTrue(force.command)
        self.assertIn("--json", force.flags)
        self.assertEqual([node.name for node in force.commands], ["org"])
        self.assertEqual(force.child("org").child("open").description, "open")

    def testPromotionKeepsPosition(self):
        tree = build([
            Topic("alpha", "a"),
            Topic("beta", "b"),
            Command("alpha", "run alpha"),
        ], "sf")
        self.assertEqual([node.name for node in tree.commands], ["alpha", "beta"])

    def testTopicDoesNotOverwriteCommand(self):
        tree = build([Command("force", "cmd"), Topic("force", "topic")], "sf")
        self.assertEqual(tree.child("force").description, "cmd")
        self.assertTrue(tree.child("force").command)

    def testSiblingOrderFollowsSequence(self):
        tree = build([Command("zeta"), Command("alpha"), Command("mid")], "sf")
        self.assertEqual([node.name for node in tree.commands], ["zeta", "alpha", "mid"])

    def testDuplicateCommandFirstWins(self):
        with warnings.catch_warnings(record=True) as records:
            warnings.simplefilter("always")
            tree = build([
                Command("deploy", "first", flags={"a": {"type": "boolean"}}),
                Command("deploy", "second", flags={"b": {"type": "boolean"}}),
            ], "sf")
        self.assertEqual(tree.child("deploy").description, "first")
        self.assertIn("--a", tree.child("deploy").flags)
        self.assertEqual(len(records), 1)
        self.assertIsInstance(records[0].message, DuplicateCommandWarning)
        self.assertEqual(records[0].message.options["command"], "deploy")

    def testOverridesThreaded(self):
        tree = build(
            [Command("org:open", flags={"browser": {"type": "option"}})],
            "sf",
            overrides=Overrides(commands={"org:open": {"browser": ["firefox"]}}),
        )
        self.assertEqual(tree.child("org").child("open").completion, {"browser": ("firefox",)})

    def testCompletionAbsentWithoutValues(self):
        tree = build([Command("deploy", flags={"wait": {"type": "option"}})], "sf")
        self.assertIs(tree.child("deploy").completion, Unset)
        self.assertIs(tree.child("deploy").exclusiveflags, Unset)

    def testDeterministic(self):
        nodes = [
            Topic("org", "orgs"),
            Command("org:open", "open", flags={"a": Flag("a", exclusive=["b"]), "b": Flag("b")}),
        ]
        self.assertEqual(build(nodes, "sf").todict(), build(nodes, "sf").todict())


class TestTreeNode(TestCase):
    """Behavioral tests for TreeNode."""

    def testDuplicateChildRejected(self):
        with self.assertRaises(ValueError):
            TreeNode("root", "", [TreeNode("a"), TreeNode("a")])

    def testCompletionRequiresFlags(self):
        with self.assertRaises(ValueError):
            TreeNode("deploy", "", completion={"wait": ["1"]})

    def testNameMustBeString(self):
        with self.assertRaises(TypeError):
            TreeNode(1)

    def testReplaceKeepsChildren(self):
        child = TreeNode("org")
        topic = TreeNode("force", "topic", [child])
        command = copy.replace(topic, description="cmd", flags={"--help": "Show help for command"})
        self.assertIs(command.child("org"), child)
        self.assertTrue(command.command)
        self.assertFalse(topic.command)
        self.assertEqual(topic.description, "topic")

    def testReplaceUnknownFieldRejected(self):
        with self.assertRaises(TypeError):
            copy.replace(TreeNode("force"), summary="x")

    def testToDictKeyOrder(self):
        node = TreeNode(
            "deploy",
            "Deploy",
            [TreeNode("start", "Start")],
            flags={"--a": "", "--b": "", "--help": "Show help for command"},
            completion={"a": ["x"]},
            exclusiveflags=[["a", "b"]],
        )
        data = node.todict()
        self.assertEqual(list(data), ["name", "description", "flags", "completion", "exclusiveflags", "commands"])
        self.assertEqual(data["completion"], {"flag": {"a": ["x"]}})
        self.assertEqual(data["commands"], [{"name": "start", "description": "Start", "commands": []}])

    def testToDictTopicHasNoFlags(self):
        self.assertEqual(TreeNode("org", "orgs").todict(), {"name": "org", "description": "orgs", "commands": []})

    def testToDictEmptyFlagTableKept(self):
        self.assertEqual(TreeNode("run", "", flags={}).todict()["flags"], {})


if __name__ == "__main__":
    unittest.main()
