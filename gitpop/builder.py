"""
gitpop builder: fluent declaration of a popup.

Declarations are collected in order and turned into argument records on
build(), after the persisted values have been read back:

- Switch.enabled  ← state store[(popup name, declared flag)], when a boolean
- Option.value    ← state store[(popup name, flag)], when a string
- Config.value    ← config store[name], "unset" when absent (passive or not)

Switches that require input always start disabled, since the suffix the user
typed is not persisted.

Quick example:
    >>> popup = (
    ...     PopupBuilder()
    ...     .name("log")
    ...     .arg_heading("Commit Limiting")
    ...     .option("n", "max-count", "Limit number of commits", default="256")
    ...     .switch("a", "all", "All references", incompatible=["no-all"])
    ...     .action_group("Log")
    ...     .action("l", "Log current", lambda popup: None)
    ...     .build()
    ... )
"""
import logging

from .arguments import Switch, Option, Config, Heading, Action, PopupState
from .stores import MemoryState, MemoryConfig
from .utils import *

logger = logging.getLogger(__name__)


class PopupBuilder:
    """
    Collects a popup's declarations and builds it.

    Parameters
    - factory: callable(state, **collaborators) producing the popup; Popup when
      obtained through Popup.builder()
    - collaborators: keyword arguments forwarded to factory (store, config,
      prompter, console, kind, colorful, shell). store and config are also
      used to seed initial values, and default to in-memory stores.
    """

    def __init__(self, factory=Unset, /, **collaborators):
        if factory is Unset:
            from .popup import Popup as factory
        if not callable(factory):
            raise TypeError("popup builder 'factory' must be callable")
        self._factory = factory
        self._collaborators = collaborators
        collaborators.setdefault("store", MemoryState())
        collaborators.setdefault("config", MemoryConfig())

        self._name = None
        self._env = {}
        self._args = []
        self._config = []
        self._actions = []

    def name(self, name, /):
        self._name = name
        return self

    def env(self, env=Unset, /, **values):
        """
        Merge contextual values (e.g. highlight="main") into the popup env.
        """
        self._env |= dict(coalesce(env, {})) | values
        return self

    def arg_heading(self, heading, /):
        self._args.append(Heading(heading))
        return self

    def switch(self, key, cli_flag, description, /, **options):
        self._args.append((Switch, key, cli_flag, description, options))
        return self

    def option(self, key, cli_flag, description, /, **options):
        self._args.append((Option, key, cli_flag, description, options))
        return self

    def config_heading(self, heading, /):
        self._config.append(Heading(heading))
        return self

    def config(self, key, name, /, **options):
        self._config.append((Config, key, name, options))
        return self

    def action_group(self, heading=Unset, /):
        """
        Start a new column of actions, optionally titled.
        """
        self._actions.append([] if heading is Unset else [Heading(heading)])
        return self

    def action(self, key, description, callback=Unset, /):
        if not self._actions:
            self._actions.append([])
        self._actions[-1].append(Action(key, description, callback))
        return self

    def _seed_argument(self, declaration):
        match declaration:
            case Heading():
                return declaration
            case (builtin, key, flag, description, options) if builtin is Switch:
                stored = self._collaborators["store"].get((self._name, flag))
                if isinstance(stored, bool) and not options.get("requires_input", False):
                    options = options | {"enabled": stored}
                return Switch(key, flag, description, **options)
            case (builtin, key, flag, description, options) if builtin is Option:
                stored = self._collaborators["store"].get((self._name, flag))
                if isinstance(stored, str):
                    options = options | {"value": stored}
                return Option(key, flag, description, **options)

    def _seed_config(self, declaration):
        match declaration:
            case Heading():
                return declaration
            case (_, key, name, options):
                entry = self._collaborators["config"].get(name)
                value = entry.value if entry is not None else "unset"
                return Config(key, name, **(options | {"value": value}))

    def build(self):
        """
        Seed the declared arguments from the stores and build the popup.

        Raises
        - ValueError: when no name has been given.
        """
        if not self._name:
            raise ValueError("popup builder requires a name, call .name() before .build()")

        state = PopupState(
            self._name,
            args=[self._seed_argument(declaration) for declaration in self._args],
            config=[self._seed_config(declaration) for declaration in self._config],
            actions=self._actions,
            env=self._env,
        )
        logger.debug(f"Built popup {state!r}")
        return self._factory(state, **self._collaborators)


__all__ = (
    "PopupBuilder",
)
