"""
gitpop popup engine: state mutations, in-place patching and key dispatch.

What this module provides
- Popup: wraps a PopupState and the collaborators it needs
  • state store   (persisted switch/option values, see gitpop.stores)
  • config store  (config variable values, see gitpop.stores / gitpop.git)
  • prompter      (free_text / select_one / confirm, see gitpop.prompts)
  • console       (where the buffer is drawn)

Lifecycle
- show() builds the Display Node tree once, binds the keymap and draws it.
- Every key press mutates one argument, persists it and patches its Display
  Node in place through update_component(); the tree is never rebuilt.
- q / <esc> close the popup. Invoking an implemented action closes it too,
  then runs the continuation the action returned, if any.

Keymap
- q, <esc>        close
- <tab>           toggle/set the argument on the line under the cursor
- <up>, <down>    move the cursor
- one binding per switch/option (key_prefix + key), per non-passive config
  (key) and per action (key)

Quick example:
    >>> popup = (
    ...     Popup.builder()
    ...     .name("log")
    ...     .switch("a", "all", "All references")
    ...     .option("n", "max-count", "Limit number of commits", default="256")
    ...     .action("l", "Log current", lambda popup: print(popup.to_cli()))
    ...     .build()
    ... )
    >>> popup.show().press("-", "a")
    >>> popup.to_cli()
    '--all'
"""
import logging
from collections.abc import Sequence

from rich.console import Console

from . import components
from .arguments import Switch, Option, Config, Heading, Action, PopupState
from .config import settings, styles
from .faults import *
from .git import current_branch
from .prompts import RichPrompter
from .stores import MemoryState, MemoryConfig
from .ui import Buffer, Node
from .utils import *

logger = logging.getLogger(__name__)


class Popup:
    """
    Interactive menu for one command family.

    Parameters
    - state: PopupState
    - store: state store (defaults to a fresh MemoryState)
    - config: config store (defaults to a fresh MemoryConfig)
    - prompter: prompt collaborators (defaults to RichPrompter on console)
    - console: rich Console used for drawing and notifications
    - kind: "split" | "floating"; defaults to settings()["kind"]
    - colorful: render highlight tokens with the palette
    - shell: print notifications (True) or emit them through warnings.warn (False)
    """

    def __init__(
            self,
            state,
            /,
            *,
            store=Unset,
            config=Unset,
            prompter=Unset,
            console=Unset,
            kind=Unset,
            colorful=True,
            shell=True,
    ):
        if not isinstance(state, PopupState):
            raise TypeError(f"popup state must be a PopupState, not {type(state).__name__}")
        self.state = state
        self.console = console if console is not Unset else Console()
        self.store = store if store is not Unset else MemoryState()
        self.config = config if config is not Unset else MemoryConfig()
        self.prompter = prompter if prompter is not Unset else RichPrompter(self.console)
        self.kind = kind
        self.colorful = bool(colorful)
        self.shell = bool(shell)
        self.buffer = None

    @staticmethod
    def builder(**collaborators):
        """
        Return a PopupBuilder producing Popup instances with the given collaborators.
        """
        from .builder import PopupBuilder
        return PopupBuilder(Popup, **collaborators)

    # --- CLI assembly ---

    def active_cli_flags(self):
        return self.state.active_cli_flags()

    def internal_flags(self):
        return self.state.internal_flags()

    def to_cli(self):
        """
        All active flags joined by spaces, ready to append to a git invocation.
        """
        return " ".join(self.active_cli_flags())

    # --- buffer ---

    def close(self):
        if self.buffer is not None:
            self.buffer.close()
            self.buffer = None

    def _fault(self, fault, code, title, /, **options):
        trigger(fault, popup=self.state.name, code=code, title=title, colorful=self.colorful, **options)

    def update_component(self, id, highlight=None, value=None):
        """
        Patch the Display Node identified by id, then redraw.

        Parameters
        - id: the node id (argument id)
        - highlight: new highlight token, applied to the node itself, or to its
          first child when the node delegates its highlight
        - value:
          • str: replaces the text of the node's trailing text child
          • sequence of Nodes: replaces the node's last len(value) children

        Raises
        - ComponentNotFoundError: no node carries id (model and tree out of sync).
        - UnhandledValueError: value is neither a string nor a sequence of nodes.
        """
        component = None
        if self.buffer is not None:
            component = self.buffer.ui.find_component(lambda node: node.id == id)
        if component is None:
            self._fault(
                ComponentNotFoundError(f"component {id!r} not found, cannot update"),
                FaultCode.COMPONENT_NOT_FOUND,
                "component not found",
                hint="show() the popup first and patch only ids of declared arguments",
            )

        if highlight is not None:
            if component.highlight is not None:
                component.highlight = highlight
            else:
                component.children[0].highlight = highlight

        if value is not None:
            match value:
                case str() if component.children and component.children[-1].kind == "text":
                    component.children[-1].value = value
                case Sequence() if not isinstance(value, str) and all(isinstance(node, Node) for node in value):
                    if value:
                        del component.children[-len(value):]
                    component.children.extend(value)
                case _:
                    self._fault(
                        UnhandledValueError(f"cannot patch component {id!r} with {type(value).__name__}"),
                        FaultCode.UNHANDLED_VALUE,
                        "unhandled value",
                        hint="pass a string or a sequence of display nodes",
                    )

        self.buffer.ui.update()

    # --- mutations ---

    def toggle_switch(self, switch):
        """
        Flip a switch, persist it, redraw it, then turn off incompatible switches.

        - requires_input: enabling prompts for the suffix appended to the flag;
          an empty or cancelled prompt leaves the switch disabled. Disabling
          resets the flag to its declared form.
        - incompatible: when the switch ends up enabled, every other enabled
          switch whose flag is listed is disabled, persisted and redrawn. This
          runs once; disabling never cascades further.
        """
        if switch.requires_input:
            if switch.enabled:
                switch.enabled = False
                switch.cli_flag = switch.cli_base
            else:
                suffix = self.prompter.free_text(switch.input_template, "", "")
                if not suffix:
                    logger.debug(f"Input for {switch.id!r} cancelled, switch stays disabled")
                    return
                switch.enabled = True
                switch.cli_flag = switch.cli_base + suffix
        else:
            switch.enabled = not switch.enabled

        self.store.set((self.state.name, switch.cli_base), switch.enabled)
        self.update_component(switch.id, components.switch_highlight(switch), switch.cli_flag)

        if switch.enabled and switch.incompatible:
            for other in self.state.switches():
                if other is switch or not other.enabled:
                    continue
                if {other.cli_flag, other.cli_base} & switch.incompatible:
                    logger.debug(f"Disabling {other.id!r}, incompatible with {switch.id!r}")
                    other.enabled = False
                    other.cli_flag = other.cli_base
                    self.store.set((self.state.name, other.cli_base), other.enabled)
                    self.update_component(other.id, components.switch_highlight(other), other.cli_flag)

    def _assign_option(self, option, value):
        option.value = value
        self.store.set((self.state.name, option.cli_flag), option.value)
        self.update_component(option.id, components.option_highlight(option), option.value)

    def set_option(self, option):
        """
        Set or clear an option's value.

        - choices: unset → pick one of the choices; set → clear. A cancelled
          pick keeps the option unset.
        - free text: prompt seeded with the current value; empty input falls
          back to the declared default, if any. A cancelled prompt keeps the
          current value.
        """
        if option.choices:
            if not option.value:
                choice = self.prompter.select_one(option.choices, option.description)
                if choice is None:
                    return
                self._assign_option(option, choice)
            else:
                self._assign_option(option, "")
            return

        value = self.prompter.free_text(f"{option.cli_prefix}{option.cli_flag}=", option.value, None)
        if value is None:
            return
        if not value and option.default:
            value = option.default
        self._assign_option(option, value)

    def set_config(self, config):
        """
        Change a config variable and push it to the config store.

        First populated field wins
        - options: advance to the next option value, wrapping; an unknown
          current value restarts at the first option.
        - callback: callback(popup, config) does the mutation and patching.
        - otherwise: free-text prompt; empty input means "unset", a cancelled
          prompt changes nothing.

        Afterwards every passive config is re-read from the store and redrawn
        when its value changed.
        """
        if config.passive:
            logger.debug(f"Config {config.name!r} is passive, ignoring direct change")
            return

        if config.options:
            values = [option.value for option in config.options]
            try:
                config.value = values[(values.index(config.value) + 1) % len(values)]
            except ValueError:
                config.value = values[0]
            self.update_component(config.id, None, components.config_choices(config))
        elif config.callback:
            config.callback(self, config)
        else:
            result = self.prompter.free_text(
                f"{config.name} > ",
                "" if config.value == "unset" else config.value,
                None,
            )
            if result is None:
                return
            config.value = result or "unset"
            self.update_component(config.id, components.config_highlight(config), config.value)

        self.config.set(config.name, config.value)
        self._refresh_passive()

    def _refresh_passive(self):
        for variable in self.state.variables():
            if not variable.passive:
                continue
            entry = self.config.get(variable.name)
            fresh = entry.value if entry is not None else "unset"
            if fresh == variable.value:
                continue
            variable.value = fresh
            if variable.options:
                self.update_component(variable.id, None, components.config_choices(variable))
            else:
                self.update_component(variable.id, components.config_highlight(variable), variable.value)

    # --- dispatch ---

    def _invoke(self, action):
        if not action.implemented:
            self._fault(
                NotImplementedWarning(f"{action.description} has not been implemented yet"),
                FaultCode.NOT_IMPLEMENTED,
                "not implemented",
                shell=self.shell,
                console=self.console,
            )
            return
        logger.debug(f"Invoking action {action.key!r} of {self.state.name!r}")
        continuation = action.callback(self)
        self.close()
        if callable(continuation):
            continuation()

    def dispatch(self, argument):
        """
        Route an argument to its mutation.
        """
        match argument:
            case Switch():
                self.toggle_switch(argument)
            case Option():
                self.set_option(argument)
            case Config():
                self.set_config(argument)
            case Action():
                self._invoke(argument)
            case Heading():
                raise TypeError("headings cannot be dispatched")
            case _:
                raise TypeError(f"cannot dispatch {type(argument).__name__}")

    def cycle(self):
        """
        Toggle/set the argument on the line under the cursor (bound to <tab>).
        """
        for node in self.buffer.ui.get_component_stack_under_cursor():
            if node.tag in ("Switch", "Option", "Config"):
                self.dispatch(self.state.lookup(node.value))
                break

    def _handler(self, argument):
        def handler():
            self.dispatch(argument)
        return rename(handler, f"{type(argument).__typename__}:{argument.binding}")

    def mappings(self):
        """
        Build the keymap for the current state: fixed keys plus one binding per
        switch, option, non-passive config and action.
        """
        mappings = {
            "q": self.close,
            "<esc>": self.close,
            "<tab>": self.cycle,
        }
        for argument in self.state.args:
            if isinstance(argument, Switch | Option):
                mappings[argument.binding] = self._handler(argument)
        for config in self.state.variables():
            if not config.passive:
                mappings[config.binding] = self._handler(config)
        for action in self.state.buttons():
            mappings[action.binding] = self._handler(action)
        return mappings

    # --- rendering ---

    def items(self):
        return components.build(self.state, gap=settings()["gap"])

    def _after(self, buffer):
        buffer.matchadd(self.state.env.get("highlight") or current_branch(), "branch-name")
        for config in self.state.variables():
            if config.callback is None:
                continue
            for id in config.touches:
                if buffer.ui.find_component(lambda node: node.id == id) is None:
                    self._fault(
                        ComponentNotFoundError(f"config {config.name!r} declares unknown component {id!r}"),
                        FaultCode.COMPONENT_NOT_FOUND,
                        "component not found",
                        hint="touches must list ids of switches, options or configs of this popup",
                    )

    def show(self):
        """
        Render the popup, bind its keymap and draw it. Returns self.
        """
        self.buffer = Buffer.create(
            self.state.name,
            coalesce(self.kind, settings()["kind"]),
            self.mappings(),
            self.items,
            self._after,
            console=self.console,
            styles=styles(),
            colorful=self.colorful,
        )
        return self

    def press(self, *keys):
        """
        Feed key tokens to the shown popup ("-", "a" toggles switch "-a").
        """
        if (buffer := self.buffer) is None:
            raise RuntimeError(f"popup {self.state.name!r} is not shown")
        buffer.feed(*keys)
        return self

    def run(self):
        """
        Show the popup and read keys from the console until it closes.
        """
        buffer = self.show().buffer
        buffer.run()

    def __repr__(self):
        return f"popup(name={self.state.name!r}, shown={self.buffer is not None})"


__all__ = (
    "Popup",
)
