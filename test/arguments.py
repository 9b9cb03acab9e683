"""
Argument model behavioral tests (records, sanitizing, PopupState).

Scope
- Validate construction and normalization of Switch, Option, Config, Heading
  and Action, including the TypeError/ValueError split of bad metadata.
- Validate identity and bindings.
- Validate PopupState collections, duplicate detection and CLI projection.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API only.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from gitpop import (
    Switch,
    Option,
    Config,
    ConfigOption,
    Heading,
    Action,
    PopupState,
    DuplicatedArgumentError,
)


class TestSwitch(TestCase):
    """Switch construction and identity."""

    def testIdentityAndBinding(self):
        s = Switch("a", "all", "All references")
        self.assertEqual(s.id, "-a")
        self.assertEqual(s.binding, "-a")
        self.assertEqual(s.cli_flag, "all")
        self.assertEqual(s.cli_base, "all")
        self.assertFalse(s.enabled)

    def testCustomPrefixes(self):
        s = Switch("G", "G", "Search changes", key_prefix="", cli_prefix="-")
        self.assertEqual(s.binding, "G")
        self.assertEqual(s.input_template, "-G: ")

    def testInputSwitchCannotStartEnabled(self):
        with self.assertRaises(ValueError):
            Switch("G", "G", "Search changes", cli_prefix="-", requires_input=True, enabled=True)

    def testIncompatibleBecomesFrozenset(self):
        s = Switch("a", "all", "All references", incompatible=["no-all", "no-all"])
        self.assertEqual(s.incompatible, frozenset({"no-all"}))

    def testIncompatibleAcceptsMappingKeys(self):
        s = Switch("a", "all", "All references", incompatible={"no-all": True})
        self.assertEqual(s.incompatible, frozenset({"no-all"}))

    def testIncompatibleBareStringRejected(self):
        with self.assertRaises(TypeError):
            Switch("a", "all", "All references", incompatible="no-all")

    def testKeyWhitespaceRejected(self):
        with self.assertRaises(ValueError):
            Switch("a b", "all", "All references")

    def testEmptyFlagRejected(self):
        with self.assertRaises(ValueError):
            Switch("a", "", "All references")

    def testDescriptionTrimmedAndRequired(self):
        self.assertEqual(Switch("a", "all", "  All references ").description, "All references")
        with self.assertRaises(ValueError):
            Switch("a", "all", "   ")
        with self.assertRaises(TypeError):
            Switch("a", "all", 3)

    def testMetadataIsReadOnly(self):
        s = Switch("a", "all", "All references")
        with self.assertRaises(AttributeError):
            s.key = "b"

    def testSealed(self):
        with self.assertRaises(TypeError):
            class Custom(Switch):
                pass

    def testTypename(self):
        self.assertEqual(type(Switch("a", "all", "All")).__typename__, "switch")
        self.assertTrue(repr(Switch("a", "all", "All")).startswith("switch(id='-a'"))


class TestOption(TestCase):
    """Option construction, defaults and choices."""

    def testDefaults(self):
        o = Option("n", "max-count", "Limit number of commits")
        self.assertEqual(o.id, "=n")
        self.assertEqual(o.value, "")
        self.assertIsNone(o.default)
        self.assertIsNone(o.choices)

    def testChoicesBecomeTuple(self):
        o = Option("f", "format", "Pretty format", choices=["oneline", "full"])
        self.assertEqual(o.choices, ("oneline", "full"))

    def testDuplicateChoicesRejected(self):
        with self.assertRaises(ValueError):
            Option("f", "format", "Pretty format", choices=["full", "full"])

    def testEmptyChoicesRejected(self):
        with self.assertRaises(ValueError):
            Option("f", "format", "Pretty format", choices=[])

    def testNonStringValueRejected(self):
        with self.assertRaises(TypeError):
            Option("n", "max-count", "Limit number of commits", value=3)


class TestConfig(TestCase):
    """Config construction and option normalization."""

    def testIdentityIsName(self):
        c = Config("r", "branch.main.rebase")
        self.assertEqual(c.id, "branch.main.rebase")
        self.assertEqual(c.binding, "r")
        self.assertEqual(c.value, "unset")
        self.assertEqual(c.touches, ("branch.main.rebase",))

    def testEmptyValueMeansUnset(self):
        self.assertEqual(Config("r", "branch.main.rebase", value="").value, "unset")

    def testOptionForms(self):
        c = Config("r", "branch.main.rebase", options=[
            "true",
            ("false", "no"),
            {"value": "merges"},
            {"value": "interactive", "display": ""},
        ])
        self.assertEqual(c.options, (
            ConfigOption("true", "true"),
            ConfigOption("false", "no"),
            ConfigOption("merges", "merges"),
            ConfigOption("interactive", ""),
        ))

    def testDuplicatedOptionValuesRejected(self):
        with self.assertRaises(ValueError):
            Config("r", "branch.main.rebase", options=["true", ("true", "yes")])

    def testMappingWithoutValueRejected(self):
        with self.assertRaises(ValueError):
            Config("r", "branch.main.rebase", options=[{"display": "yes"}])

    def testPassiveMayHaveEmptyKey(self):
        self.assertTrue(Config("", "branch.main.merge", passive=True).passive)
        with self.assertRaises(ValueError):
            Config("", "branch.main.merge")

    def testCallbackMustBeCallable(self):
        with self.assertRaises(TypeError):
            Config("p", "pull.mode", callback="nope")

    def testTouchesBareStringRejected(self):
        with self.assertRaises(TypeError):
            Config("p", "pull.mode", callback=lambda popup, config: None, touches="pull.mode")


class TestAction(TestCase):
    """Action construction."""

    def testImplemented(self):
        self.assertTrue(Action("l", "current", lambda popup: None).implemented)
        self.assertFalse(Action("r", "reflog").implemented)
        self.assertIsNone(Action("r", "reflog").callback)

    def testHeadingTextMustBeString(self):
        with self.assertRaises(TypeError):
            Heading(3)


class TestPopupState(TestCase):
    """PopupState collections, duplicates and projection."""

    def testActiveCliFlags(self):
        state = PopupState("log", args=[
            Heading("Commit Limiting"),
            Option("n", "max-count", "Limit number of commits", value="256"),
            Switch("a", "all", "All references", enabled=True),
            Switch("m", "no-merges", "Omit merges"),
            Option("a", "author", "Limit to author"),
        ])
        self.assertEqual(state.active_cli_flags(), ["--max-count=256", "--all"])

    def testInternalArgumentsExcluded(self):
        state = PopupState("log", args=[
            Switch("g", "graph", "Show graph", enabled=True, internal=True),
            Option("c", "color", "Color", value="always", internal=True),
        ])
        self.assertEqual(state.active_cli_flags(), [])
        self.assertEqual(state.internal_flags(), {"graph": True})

    def testLookup(self):
        switch = Switch("a", "all", "All references")
        config = Config("r", "branch.main.rebase")
        state = PopupState("log", args=[switch], config=[config])
        self.assertIs(state.lookup("-a"), switch)
        self.assertIs(state.lookup("branch.main.rebase"), config)
        with self.assertRaises(KeyError):
            state.lookup("-z")

    def testDuplicateIdRejected(self):
        with self.assertRaises(DuplicatedArgumentError):
            PopupState("log", args=[
                Switch("a", "all", "All references"),
                Switch("a", "author-date-order", "Author date order"),
            ])

    def testDuplicateBindingRejected(self):
        with self.assertRaises(DuplicatedArgumentError):
            PopupState(
                "log",
                config=[Config("l", "log.decorate")],
                actions=[[Action("l", "current", lambda popup: None)]],
            )

    def testPrefixBindingRejected(self):
        with self.assertRaises(DuplicatedArgumentError):
            PopupState(
                "branch",
                config=[Config("bu", "branch.main.remote", options=["a", "b"], value="a")],
                actions=[[Action("b", "checkout", lambda popup: None)]],
            )

    def testSpecialKeyPrefixRejected(self):
        with self.assertRaises(DuplicatedArgumentError):
            PopupState("log", args=[
                Switch("<tab>", "all", "All references", key_prefix=""),
                Switch("<tab>a", "author-date-order", "Author date order", key_prefix=""),
            ])

    def testSharedPrefixKeysAccepted(self):
        state = PopupState(
            "branch",
            config=[Config("bu", "branch.main.remote"), Config("bd", "branch.main.description")],
            args=[Switch("a", "all", "All references"), Option("a", "author", "Limit to author")],
        )
        self.assertEqual(len(state.variables()), 2)

    def testPassiveConfigsShareEmptyKey(self):
        state = PopupState("branch", config=[
            Config("", "branch.main.merge", passive=True),
            Config("", "branch.main.remote", passive=True),
        ])
        self.assertEqual(len(state.variables()), 2)

    def testWrongItemKindRejected(self):
        with self.assertRaises(TypeError):
            PopupState("log", args=[Action("l", "current")])

    def testEmptyNameRejected(self):
        with self.assertRaises(ValueError):
            PopupState("  ")

    def testEnvIsReadOnly(self):
        state = PopupState("log", env={"highlight": "main"})
        with self.assertRaises(TypeError):
            state.env["highlight"] = "dev"


if __name__ == "__main__":
    unittest.main()
