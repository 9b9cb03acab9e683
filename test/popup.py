"""
Popup engine behavioral tests (toggle/set, patching, dispatch, CLI assembly).

Scope
- Validate switch toggling, input-carrying switches and incompatible switches.
- Validate option prompting (free text with defaults, choices) and config
  cycling, free text, callbacks and passive refresh.
- Validate the patch protocol: identity lookup, highlight delegation, faults.
- Validate dispatch from bindings and <tab>, actions and their continuations.

Conventions
- Test method names follow CamelCase per project convention.
- Popups draw on a quiet Console(file=io.StringIO()) and read input from a
  scripted prompter; env={"highlight": "main"} keeps git out of the picture.
"""

from __future__ import annotations

import io
import unittest
import warnings
from unittest import TestCase
from unittest.mock import patch

from rich.console import Console

from gitpop import (
    Popup,
    PopupState,
    Switch,
    Option,
    Config,
    Heading,
    Action,
    MemoryState,
    MemoryConfig,
    ComponentNotFoundError,
    UnhandledValueError,
    NotImplementedWarning,
)
from gitpop.ui import text

CANCEL = object()


class ScriptedPrompter:
    """Answers prompts from a fixed script; CANCEL simulates Ctrl-C."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.prompts = []

    def _next(self, prompt):
        self.prompts.append(prompt)
        return self.answers.pop(0)

    def free_text(self, prompt, default="", cancel_value=""):
        answer = self._next(prompt)
        return cancel_value if answer is CANCEL else answer

    def select_one(self, choices, prompt=""):
        answer = self._next(prompt)
        return None if answer is CANCEL else answer

    def confirm(self, prompt):
        answer = self._next(prompt)
        return False if answer is CANCEL else answer


def quiet():
    return Console(file=io.StringIO(), width=120)


def make_popup(*answers, args=(), config=(), actions=(), shell=True, store=None, configs=None):
    state = PopupState("log", args=args, config=config, actions=actions, env={"highlight": "main"})
    return Popup(
        state,
        store=store if store is not None else MemoryState(),
        config=configs if configs is not None else MemoryConfig(),
        prompter=ScriptedPrompter(*answers),
        console=quiet(),
        colorful=False,
        shell=shell,
    )


def node(popup, id):
    return popup.buffer.ui.find_component(lambda component: component.id == id)


def line_of(popup, fragment):
    for index, line in enumerate(popup.buffer.ui.lines):
        if fragment in line.plain:
            return index
    raise AssertionError(f"no line contains {fragment!r}")


class TestSwitches(TestCase):
    """Switch toggling, persistence and patching."""

    def testToggleEnablesAndPatches(self):
        popup = make_popup(args=[Switch("a", "all", "All references")]).show()
        popup.press("-", "a")
        switch = popup.state.lookup("-a")
        self.assertTrue(switch.enabled)
        self.assertEqual(node(popup, "-a").highlight, "switch-enabled")
        self.assertEqual(popup.store.get(("log", "all")), True)
        self.assertEqual(popup.to_cli(), "--all")

    def testToggleTwiceRestores(self):
        popup = make_popup(args=[Switch("a", "all", "All references")]).show()
        popup.press("-", "a", "-", "a")
        self.assertFalse(popup.state.lookup("-a").enabled)
        self.assertEqual(node(popup, "-a").highlight, "switch-disabled")
        self.assertEqual(popup.store.get(("log", "all")), False)
        self.assertEqual(popup.to_cli(), "")

    def testIncompatibleSwitchIsDisabled(self):
        popup = make_popup(args=[
            Switch("a", "all", "All references", incompatible=["no-all"]),
            Switch("A", "no-all", "No references", enabled=True),
        ]).show()
        popup.press("-", "a")
        self.assertEqual(popup.active_cli_flags(), ["--all"])
        self.assertFalse(popup.state.lookup("-A").enabled)
        self.assertEqual(popup.store.get(("log", "no-all")), False)
        self.assertEqual(node(popup, "-A").highlight, "switch-disabled")

    def testIncompatibleSwitchesDoNotCascade(self):
        popup = make_popup(args=[
            Switch("a", "a-flag", "First", incompatible=["b-flag"]),
            Switch("b", "b-flag", "Second", enabled=True, incompatible=["c-flag"]),
            Switch("c", "c-flag", "Third", enabled=True),
        ]).show()
        popup.press("-", "a")
        self.assertEqual(popup.active_cli_flags(), ["--a-flag", "--c-flag"])

    def testDisablingLeavesIncompatibleSwitchesAlone(self):
        popup = make_popup(args=[
            Switch("a", "all", "All references", enabled=True, incompatible=["no-all"]),
            Switch("A", "no-all", "No references"),
        ]).show()
        popup.press("-", "a")
        self.assertEqual(popup.active_cli_flags(), [])
        self.assertFalse(popup.state.lookup("-A").enabled)

    def testRequiresInputAppendsSuffix(self):
        popup = make_popup("foo", args=[
            Switch("G", "G", "Search changes", cli_prefix="-", requires_input=True),
        ]).show()
        popup.press("-", "G")
        self.assertEqual(popup.to_cli(), "-Gfoo")
        self.assertEqual(popup.prompter.prompts, ["-G: "])
        self.assertEqual(node(popup, "-G").plain(), "-Gfoo")

        popup.press("-", "G")
        switch = popup.state.lookup("-G")
        self.assertFalse(switch.enabled)
        self.assertEqual(switch.cli_flag, "G")
        self.assertEqual(node(popup, "-G").plain(), "-G")

    def testRequiresInputCancelledStaysDisabled(self):
        popup = make_popup(CANCEL, args=[
            Switch("G", "G", "Search changes", cli_prefix="-", requires_input=True),
        ]).show()
        popup.press("-", "G")
        self.assertFalse(popup.state.lookup("-G").enabled)
        self.assertIsNone(popup.store.get(("log", "G")))
        self.assertEqual(popup.to_cli(), "")

    def testForceDisabledInputSwitchResetsFlag(self):
        popup = make_popup("foo", args=[
            Switch("G", "G", "Search changes", cli_prefix="-", requires_input=True),
            Switch("S", "S", "Search occurrences", cli_prefix="-", incompatible=["G"]),
        ]).show()
        popup.press("-", "G", "-", "S")
        switch = popup.state.lookup("-G")
        self.assertFalse(switch.enabled)
        self.assertEqual(switch.cli_flag, "G")
        self.assertEqual(popup.to_cli(), "-S")

    def testInternalSwitchStaysOffCommandLine(self):
        popup = make_popup(args=[
            Switch("a", "all", "All references"),
            Switch("g", "graph", "Show graph", internal=True),
        ]).show()
        popup.press("-", "a", "-", "g")
        self.assertEqual(popup.active_cli_flags(), ["--all"])
        self.assertEqual(popup.internal_flags(), {"graph": True})


class TestOptions(TestCase):
    """Option prompting, defaults and choices."""

    def testEmptyInputFallsBackToDefault(self):
        popup = make_popup("", args=[
            Option("n", "max-count", "Limit number of commits", default="256"),
        ]).show()
        popup.press("=", "n")
        self.assertEqual(popup.to_cli(), "--max-count=256")
        self.assertEqual(popup.store.get(("log", "max-count")), "256")
        self.assertEqual(node(popup, "=n").highlight, "option-enabled")

    def testTypedValueIsUsed(self):
        popup = make_popup("10", args=[
            Option("n", "max-count", "Limit number of commits", default="256"),
        ]).show()
        popup.press("=", "n")
        self.assertEqual(popup.active_cli_flags(), ["--max-count=10"])
        self.assertEqual(node(popup, "=n").plain(), "--max-count=10")

    def testEmptyInputWithoutDefaultClears(self):
        popup = make_popup("", args=[
            Option("a", "author", "Limit to author", value="me"),
        ]).show()
        popup.press("=", "a")
        self.assertEqual(popup.to_cli(), "")
        self.assertEqual(node(popup, "=a").highlight, "option-disabled")

    def testCancelKeepsPriorValue(self):
        popup = make_popup(CANCEL, args=[
            Option("n", "max-count", "Limit number of commits", value="5", default="256"),
        ]).show()
        popup.press("=", "n")
        self.assertEqual(popup.to_cli(), "--max-count=5")
        self.assertIsNone(popup.store.get(("log", "max-count")))

    def testChoicesSelectThenClear(self):
        popup = make_popup("full", args=[
            Option("f", "format", "Pretty format", choices=["oneline", "full"]),
        ]).show()
        popup.press("=", "f")
        self.assertEqual(popup.to_cli(), "--format=full")
        popup.press("=", "f")
        self.assertEqual(popup.to_cli(), "")
        self.assertEqual(popup.prompter.prompts, ["Pretty format"])

    def testChoicesCancelledKeepsUnset(self):
        popup = make_popup(CANCEL, args=[
            Option("f", "format", "Pretty format", choices=["oneline", "full"]),
        ]).show()
        popup.press("=", "f")
        self.assertEqual(popup.state.lookup("=f").value, "")

    def testFlagOrderFollowsDeclaration(self):
        popup = make_popup("3", args=[
            Heading("Commit Limiting"),
            Option("n", "max-count", "Limit number of commits"),
            Switch("a", "all", "All references"),
            Switch("m", "no-merges", "Omit merges"),
        ]).show()
        popup.press("-", "m", "-", "a", "=", "n")
        self.assertEqual(popup.active_cli_flags(), ["--max-count=3", "--all", "--no-merges"])
        self.assertEqual(popup.to_cli(), "--max-count=3 --all --no-merges")


class TestConfigs(TestCase):
    """Config cycling, free text, callbacks and passive refresh."""

    def testOptionsCycleAndWrap(self):
        popup = make_popup(config=[
            Config("r", "branch.main.rebase", value="c", options=["a", "b", "c"]),
        ]).show()
        popup.press("r")
        config = popup.state.lookup("branch.main.rebase")
        self.assertEqual(config.value, "a")
        self.assertEqual(popup.config.get("branch.main.rebase").value, "a")
        component = node(popup, "branch.main.rebase")
        self.assertEqual(component.plain(), "[a|b|c]")
        highlights = {child.value: child.highlight for child in component.children}
        self.assertEqual(highlights["a"], "config-enabled")
        self.assertEqual(highlights["c"], "config-disabled")

    def testCyclingReturnsToStart(self):
        popup = make_popup(config=[
            Config("r", "branch.main.rebase", value="b", options=["a", "b", "c"]),
        ]).show()
        popup.press("r", "r", "r")
        self.assertEqual(popup.state.lookup("branch.main.rebase").value, "b")
        self.assertEqual(len(node(popup, "branch.main.rebase").children), 7)

    def testUnknownValueRestartsAtFirstOption(self):
        popup = make_popup(config=[
            Config("r", "branch.main.rebase", value="weird", options=["true", "false"]),
        ]).show()
        popup.press("r")
        self.assertEqual(popup.state.lookup("branch.main.rebase").value, "true")

    def testFreeTextSetsAndUnsets(self):
        popup = make_popup("origin", "", config=[Config("u", "branch.main.remote")]).show()
        popup.press("u")
        self.assertEqual(popup.config.get("branch.main.remote").value, "origin")
        self.assertEqual(node(popup, "branch.main.remote").children[0].highlight, "config-enabled")
        self.assertEqual(popup.prompter.prompts, ["branch.main.remote > "])

        popup.press("u")
        self.assertEqual(popup.state.lookup("branch.main.remote").value, "unset")
        self.assertIsNone(popup.config.get("branch.main.remote"))
        self.assertEqual(node(popup, "branch.main.remote").plain(), "unset")

    def testFreeTextCancelKeepsValue(self):
        popup = make_popup(CANCEL, config=[Config("u", "branch.main.remote", value="origin")]).show()
        popup.press("u")
        self.assertEqual(popup.state.lookup("branch.main.remote").value, "origin")
        self.assertIsNone(popup.config.get("branch.main.remote"))

    def testTypeOverridesEnabledHighlight(self):
        popup = make_popup("x", config=[Config("u", "branch.main.remote", type="branch-name")]).show()
        popup.press("u")
        self.assertEqual(node(popup, "branch.main.remote").children[0].highlight, "branch-name")

    def testCallbackDelegates(self):
        calls = []

        def callback(popup, config):
            calls.append(config.name)
            config.value = "merges"
            popup.update_component(config.id, "config-enabled", config.value)

        popup = make_popup(config=[Config("p", "pull.mode", callback=callback)]).show()
        popup.press("p")
        self.assertEqual(calls, ["pull.mode"])
        self.assertEqual(popup.config.get("pull.mode").value, "merges")
        self.assertEqual(node(popup, "pull.mode").plain(), "merges")

    def testCallbackTouchingUnknownComponentFails(self):
        popup = make_popup(config=[Config("p", "pull.mode", callback=lambda popup, config: None, touches=["nope"])])
        with self.assertRaises(ComponentNotFoundError):
            popup.show()

    def testPassiveConfigRefreshes(self):
        configs = MemoryConfig()
        popup = make_popup("origin", configs=configs, config=[
            Config("u", "branch.main.remote"),
            Config("", "branch.main.merge", passive=True),
        ]).show()
        configs.set("branch.main.merge", "refs/heads/main")
        popup.press("u")
        passive = popup.state.lookup("branch.main.merge")
        self.assertEqual(passive.value, "refs/heads/main")
        self.assertEqual(node(popup, "branch.main.merge").plain(), "refs/heads/main")

    def testPassiveConfigIsNotBound(self):
        popup = make_popup(config=[Config("", "branch.main.merge", passive=True)])
        self.assertNotIn("", popup.mappings())


class TestRichPrompterInput(TestCase):
    """Empty answers typed into the default prompter, end to end."""

    def popup(self, **collections):
        state = PopupState("log", env={"highlight": "main"}, **collections)
        return Popup(state, console=quiet(), colorful=False).show()

    def testEmptyInputClearsOption(self):
        popup = self.popup(args=[Option("a", "author", "Limit to author", value="me")])
        with patch("builtins.input", return_value=""):
            popup.press("=", "a")
        self.assertEqual(popup.to_cli(), "")

    def testEmptyInputFallsBackToDefault(self):
        popup = self.popup(args=[Option("n", "max-count", "Limit number of commits", value="5", default="1")])
        with patch("builtins.input", return_value=""):
            popup.press("=", "n")
        self.assertEqual(popup.state.lookup("=n").value, "1")
        self.assertEqual(popup.to_cli(), "--max-count=1")

    def testEmptyInputUnsetsConfig(self):
        popup = self.popup(config=[Config("u", "branch.main.remote", value="origin")])
        with patch("builtins.input", return_value=""):
            popup.press("u")
        self.assertEqual(popup.state.lookup("branch.main.remote").value, "unset")
        self.assertEqual(node(popup, "branch.main.remote").plain(), "unset")

    def testInterruptKeepsOption(self):
        popup = self.popup(args=[Option("a", "author", "Limit to author", value="me")])
        with patch("builtins.input", side_effect=KeyboardInterrupt):
            popup.press("=", "a")
        self.assertEqual(popup.to_cli(), "--author=me")


class TestPatching(TestCase):
    """update_component identity lookup and faults."""

    def testUnknownIdRaises(self):
        popup = make_popup(args=[Switch("a", "all", "All references")]).show()
        with self.assertRaises(ComponentNotFoundError):
            popup.update_component("-z", "switch-enabled")

    def testPatchBeforeShowRaises(self):
        popup = make_popup(args=[Switch("a", "all", "All references")])
        with self.assertRaises(ComponentNotFoundError):
            popup.update_component("-a", "switch-enabled")

    def testUnhandledValueRaises(self):
        popup = make_popup(args=[Switch("a", "all", "All references")]).show()
        with self.assertRaises(UnhandledValueError):
            popup.update_component("-a", value=42)

    def testNodeListReplacesTrailingChildren(self):
        popup = make_popup(args=[Option("a", "author", "Limit to author")]).show()
        popup.update_component("=a", value=[text("me")])
        self.assertEqual(node(popup, "=a").plain(), "--author=me")

    def testPatchIsVisibleInLayout(self):
        popup = make_popup(args=[Switch("a", "all", "All references")]).show()
        popup.update_component("-a", value="everything")
        self.assertIn(" -a All references (--everything)", [line.plain for line in popup.buffer.ui.lines])


class TestDispatch(TestCase):
    """Keymap, <tab>, actions and closing."""

    def testTabTogglesSwitchUnderCursor(self):
        popup = make_popup(args=[
            Switch("a", "all", "All references"),
            Switch("m", "no-merges", "Omit merges"),
        ]).show()
        popup.buffer.goto(line_of(popup, "(--no-merges)"))
        popup.press("<tab>")
        self.assertEqual(popup.active_cli_flags(), ["--no-merges"])

    def testTabCyclesConfigUnderCursor(self):
        popup = make_popup(config=[
            Config("r", "branch.main.rebase", value="false", options=["true", "false"]),
        ]).show()
        popup.buffer.goto(line_of(popup, "branch.main.rebase"))
        popup.press("<tab>")
        self.assertEqual(popup.state.lookup("branch.main.rebase").value, "true")

    def testTabOnTitleDoesNothing(self):
        popup = make_popup(args=[Switch("a", "all", "All references")]).show()
        popup.buffer.goto(line_of(popup, "Arguments"))
        popup.press("<tab>")
        self.assertEqual(popup.to_cli(), "")

    def testUnboundKeysAreIgnored(self):
        popup = make_popup(args=[Switch("a", "all", "All references")]).show()
        popup.press("x", "-", "z", "-", "a")
        self.assertEqual(popup.to_cli(), "--all")

    def testQuitCloses(self):
        popup = make_popup(args=[Switch("a", "all", "All references")]).show()
        popup.press("q")
        self.assertIsNone(popup.buffer)
        with self.assertRaises(RuntimeError):
            popup.press("-", "a")

    def testActionRunsContinuationAfterClose(self):
        events = []

        def callback(popup):
            events.append(("callback", popup.to_cli(), popup.buffer is not None))
            return lambda: events.append(("continuation", popup.buffer is None))

        popup = make_popup(
            args=[Switch("a", "all", "All references")],
            actions=[[Heading("Log"), Action("l", "current", callback)]],
        ).show()
        popup.press("-", "a", "l")
        self.assertEqual(events, [("callback", "--all", True), ("continuation", True)])

    def testKeysAfterActionAreIgnored(self):
        popup = make_popup(
            args=[Switch("a", "all", "All references")],
            actions=[[Action("l", "current", lambda popup: None)]],
        ).show()
        buffer = popup.buffer
        buffer.feed("l", "-", "a")
        self.assertEqual(popup.to_cli(), "")
        self.assertTrue(buffer.closed)

    def testUnimplementedActionWarns(self):
        popup = make_popup(actions=[[Action("r", "reflog")]], shell=False).show()
        with self.assertWarns(NotImplementedWarning):
            popup.press("r")
        self.assertIsNotNone(popup.buffer)

    def testUnimplementedActionNotifiesInShell(self):
        popup = make_popup(actions=[[Action("r", "reflog")]]).show()
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            popup.press("r")
        self.assertIn("has not been implemented yet", popup.console.file.getvalue())
        self.assertIsNotNone(popup.buffer)


if __name__ == "__main__":
    unittest.main()
