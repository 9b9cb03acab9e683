r"""
gitpop argument model: the typed records a popup is assembled from.

Overview
- Interactive arguments
  • Switch: boolean CLI flag (e.g. --all), optionally parameterized by user
    input appended to the flag (e.g. -G<regex>).
  • Option: CLI flag carrying a value (e.g. --max-count=256), optionally
    restricted to a fixed tuple of choices.
  • Config: a variable backed by the configuration store rather than the
    command line (e.g. branch.main.rebase), cycled through options, edited as
    free text, or delegated to a callback.
- Structure
  • Heading: non-interactive separator within args/config or an action group.
  • Action: named key that runs a callback with the popup.
- State
  • PopupState: owns the ordered collections and projects them into the
    command-line flag list.

Identity
- Switch and Option are identified, and bound in the keymap, by
  key_prefix + key ("-a", "=n").
- Config is bound by its key and identified by its name, so a passive config
  without a usable key still has a stable identity.
- Action is bound by its key and has no Display Node identity.

Metadata (sanitized on construction)
- key / cli_flag: non-empty strings without whitespace.
- description: non-empty string.
- incompatible: iterable of flags (a bare string is rejected), stored as a frozenset.
- choices: iterable without duplicates, stored as a tuple.
- options (Config): (value, display) pairs, plain strings, or mappings with
  "value" and optional "display"; stored as a tuple of ConfigOption.
- callback: callable.

Mutable state
- Switch.enabled, Switch.cli_flag, Option.value, Config.value are plain
  attributes; everything else is exposed through read-only properties.

Quick example:
    >>> state = PopupState("log", args=[
    ...     Heading("Commit Limiting"),
    ...     Option("n", "max-count", "Limit number of commits", value="256"),
    ...     Switch("a", "all", "All references", enabled=True),
    ... ])
    >>> state.active_cli_flags()
    ['--max-count=256', '--all']
"""
import builtins
import functools
import operator
import re
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import NamedTuple

from .faults import DuplicatedArgumentError, FaultCode, trigger
from .utils import *


class ConfigOption(NamedTuple):
    """One selectable value of an options-valued Config."""
    value: str
    display: str


class ArgumentType(type):
    """
    Metaclass that gives argument records a stable shape.

    Responsibilities
    - Derive __typename__ from the class name ("ConfigOption" → "config-option")
      for messages and diagnostics.
    - Expose every name listed in __introspectable__ as a read-only property
      over its "_name" backing field via mirror().
    - Provide __repr__/__rich_repr__ over __displayable__ (or __introspectable__
      when unset).
    - Seal classes created with sealed=True against subclassing, so pattern
      matching over the five variants stays exhaustive.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        if options.get("sealed", False):
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self

    def __init__(cls, name, bases, namespace, **options):
        super().__init__(name, bases, namespace)


def _sanitize_token(cls, metadata, name, /, *, empty=False):
    """
    Internal: validate a key/flag-like field in place.

    Tokens are typed by the user or glued into a command line, so whitespace
    is never allowed. Empty strings are rejected unless empty=True.
    """
    if not isinstance(token := metadata[name], str):
        raise TypeError(f"{cls.__typename__} {name!r} must be a string")
    if not token and not empty:
        raise ValueError(f"{cls.__typename__} {name!r} cannot be empty")
    if re.search(r"\s", token):
        raise ValueError(f"{cls.__typename__} {name!r} cannot contain whitespace")


def _sanitize_description(cls, metadata, /):
    """
    Internal: trim and validate the description shown next to the key.
    """
    if not isinstance(description := metadata["description"], str):
        raise TypeError(f"{cls.__typename__} 'description' must be a string")
    elif not (description := description.strip()):
        raise ValueError(f"{cls.__typename__} 'description' cannot be empty")
    metadata["description"] = description


def _sanitize_callback(cls, metadata, /):
    """
    Internal: callbacks are optional, but when given they must be callable.
    """
    if (callback := metadata["callback"]) is not Unset and not callable(callback):
        raise TypeError(f"{cls.__typename__} 'callback' must be callable")
    metadata["callback"] = coalesce(callback)


def _sanitize_incompatible(cls, metadata, /):
    """
    Internal: normalize the set of flags a switch turns off when enabled.

    Accepts any iterable of strings, including a {flag: True} mapping, whose
    keys are taken. A bare string is rejected, since iterating it would
    silently produce single characters.
    """
    if isinstance(incompatible := metadata["incompatible"], str) or not isinstance(incompatible, Iterable):
        raise TypeError(f"{cls.__typename__} 'incompatible' must be an iterable of strings")

    flags = set()
    for flag in incompatible:
        if not isinstance(flag, str):
            raise TypeError(f"{cls.__typename__} 'incompatible' must be an iterable of strings")
        elif not (flag := flag.strip()):
            raise ValueError(f"{cls.__typename__} 'incompatible' cannot contain empty strings")
        flags.add(flag)
    metadata["incompatible"] = frozenset(flags)


def _sanitize_choices(cls, metadata, /):
    """
    Internal: choices keep their declaration order and reject duplicates.
    """
    if (choices := metadata["choices"]) is Unset:
        metadata["choices"] = None
        return
    if isinstance(choices, str) or not isinstance(choices, Iterable):
        raise TypeError(f"{cls.__typename__} 'choices' must be an iterable of strings")

    sanitized = []
    for choice in choices:
        if not isinstance(choice, str):
            raise TypeError(f"{cls.__typename__} 'choices' must be an iterable of strings")
        if choice in sanitized:
            raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
        sanitized.append(choice)
    if not sanitized:
        raise ValueError(f"{cls.__typename__} 'choices' cannot be empty")
    metadata["choices"] = tuple(sanitized)


def _sanitize_options(cls, metadata, /):
    """
    Internal: normalize config options into a tuple of ConfigOption.

    Accepted item forms
    - "value"                                → ConfigOption("value", "value")
    - ("value", "display")                   → ConfigOption("value", "display")
    - {"value": "value", "display": "shown"} → ConfigOption("value", "shown")

    An option whose display is "" is kept for cycling but hidden when
    rendered (a value the user can reach but which has no label).
    """
    if (options := metadata["options"]) is Unset:
        metadata["options"] = None
        return
    if isinstance(options, str) or not isinstance(options, Iterable):
        raise TypeError(f"{cls.__typename__} 'options' must be an iterable")

    sanitized = []
    for option in options:
        match option:
            case str():
                option = ConfigOption(option, option)
            case Mapping():
                try:
                    option = ConfigOption(option["value"], option.get("display", option["value"]))
                except KeyError:
                    raise ValueError(f"{cls.__typename__} 'options' mappings must have a 'value'") from None
            case (value, display):
                option = ConfigOption(value, display)
            case _:
                raise TypeError(f"{cls.__typename__} 'options' items must be strings, pairs, or mappings")
        if not isinstance(option.value, str) or not isinstance(option.display, str):
            raise TypeError(f"{cls.__typename__} 'options' values and displays must be strings")
        if option.value in map(operator.attrgetter("value"), sanitized):
            raise ValueError(f"{cls.__typename__} 'options' cannot contain duplicated values")
        sanitized.append(option)
    if not sanitized:
        raise ValueError(f"{cls.__typename__} 'options' cannot be empty")
    metadata["options"] = tuple(sanitized)


class Switch(metaclass=ArgumentType, sealed=True):
    """
    Boolean CLI flag toggled from the popup.

    Properties
    - key, key_prefix: keys the user presses; id and binding are their concatenation.
    - cli_base: the flag as declared; cli_flag starts equal to it and carries the
      user-supplied suffix while a requires_input switch is enabled.
    - cli_prefix: prepended to the flag on the command line (default "--").
    - incompatible: flags turned off when this switch is turned on.
    - internal: never emitted on the command line, read via internal_flags().
    """

    __introspectable__ = (
        "key",
        "key_prefix",
        "cli_base",
        "cli_prefix",
        "description",
        "requires_input",
        "input_template",
        "incompatible",
        "internal",
    )
    __displayable__ = ("id", "cli_flag", "enabled", "description", "incompatible", "internal")

    def __init__(
            self,
            key,
            cli_flag,
            description,
            /,
            *,
            key_prefix="-",
            cli_prefix="--",
            enabled=False,
            requires_input=False,
            input_template=Unset,
            incompatible=(),
            internal=False,
    ):
        """
        Construct a Switch.

        Parameters
        - key: str
          Key pressed after key_prefix to toggle the switch.
        - cli_flag: str
          Flag without its prefix, e.g. "all" for --all or "G" with cli_prefix="-".
        - description: str
          Short label shown next to the key.
        - requires_input: bool
          Prompt for a value appended to the flag when enabling. Such a
          switch cannot be constructed enabled.
        - input_template: Unset | str
          Prompt shown when requires_input is set; defaults to "<prefix><flag>: ".
        - incompatible: Iterable[str]
          Flags (without prefix) disabled when this switch gets enabled.
        """
        metadata = {
            "key": key,
            "key_prefix": key_prefix,
            "cli_base": cli_flag,
            "cli_prefix": cli_prefix,
            "description": description,
            "requires_input": bool(requires_input),
            "input_template": input_template,
            "incompatible": incompatible,
            "internal": bool(internal),
        }
        _sanitize_token(type(self), metadata, "key")
        _sanitize_token(type(self), metadata, "key_prefix", empty=True)
        _sanitize_token(type(self), metadata, "cli_base")
        _sanitize_token(type(self), metadata, "cli_prefix", empty=True)
        _sanitize_description(type(self), metadata)
        _sanitize_incompatible(type(self), metadata)
        if not isinstance(template := metadata["input_template"], str | Unset):
            raise TypeError(f"{type(self).__typename__} 'input_template' must be a string")
        metadata["input_template"] = coalesce(template, f"{cli_prefix}{cli_flag}: ")
        if metadata["requires_input"] and enabled:
            raise ValueError(f"{type(self).__typename__} requiring input cannot start enabled")

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        self.enabled = bool(enabled)
        self.cli_flag = self._cli_base

    @property
    def id(self):
        return self._key_prefix + self._key

    @property
    def binding(self):
        return self._key_prefix + self._key


class Option(metaclass=ArgumentType, sealed=True):
    """
    CLI flag carrying a value.

    Properties
    - value (mutable): "" means unset and the option is left off the command line.
    - default: value used when the user submits an empty prompt (None when not declared).
    - choices: tuple of allowed values; the option then alternates between
      "pick one" and "clear" instead of prompting for free text.
    """

    __introspectable__ = (
        "key",
        "key_prefix",
        "cli_flag",
        "cli_prefix",
        "description",
        "default",
        "choices",
        "internal",
    )
    __displayable__ = ("id", "cli_flag", "value", "default", "choices", "internal")

    def __init__(
            self,
            key,
            cli_flag,
            description,
            /,
            *,
            key_prefix="=",
            cli_prefix="--",
            value="",
            default=Unset,
            choices=Unset,
            internal=False,
    ):
        metadata = {
            "key": key,
            "key_prefix": key_prefix,
            "cli_flag": cli_flag,
            "cli_prefix": cli_prefix,
            "description": description,
            "default": default,
            "choices": choices,
            "internal": bool(internal),
        }
        _sanitize_token(type(self), metadata, "key")
        _sanitize_token(type(self), metadata, "key_prefix", empty=True)
        _sanitize_token(type(self), metadata, "cli_flag")
        _sanitize_token(type(self), metadata, "cli_prefix", empty=True)
        _sanitize_description(type(self), metadata)
        _sanitize_choices(type(self), metadata)
        if not isinstance(default := metadata["default"], str | Unset):
            raise TypeError(f"{type(self).__typename__} 'default' must be a string")
        metadata["default"] = coalesce(default)
        if not isinstance(value, str):
            raise TypeError(f"{type(self).__typename__} 'value' must be a string")

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        self.value = value

    @property
    def id(self):
        return self._key_prefix + self._key

    @property
    def binding(self):
        return self._key_prefix + self._key


class Config(metaclass=ArgumentType, sealed=True):
    """
    Variable backed by the configuration store.

    Behaviors (first populated field wins)
    - options: cycle to the next option value, wrapping around.
    - callback: delegate to callback(popup, config); the callback declares the
      Display Nodes it patches through touches (defaults to its own id).
    - otherwise: prompt for free text; "" maps back to "unset".

    A passive config is never bound to a key: it mirrors the store after any
    other config changes.
    """

    __introspectable__ = (
        "key",
        "name",
        "type",
        "options",
        "passive",
        "callback",
        "touches",
    )
    __displayable__ = ("id", "key", "value", "type", "options", "passive")

    def __init__(
            self,
            key,
            name,
            /,
            *,
            value="unset",
            type=Unset,
            options=Unset,
            passive=False,
            callback=Unset,
            touches=Unset,
    ):
        metadata = {
            "key": key,
            "name": name,
            "type": type,
            "options": options,
            "passive": bool(passive),
            "callback": callback,
            "touches": touches,
        }
        cls = builtins.type(self)
        _sanitize_token(cls, metadata, "key", empty=metadata["passive"])
        _sanitize_token(cls, metadata, "name")
        _sanitize_options(cls, metadata)
        _sanitize_callback(cls, metadata)
        if not isinstance(highlight := metadata["type"], str | Unset):
            raise TypeError(f"{cls.__typename__} 'type' must be a string")
        metadata["type"] = coalesce(highlight)

        if (touches := metadata["touches"]) is Unset:
            touches = (name,)
        elif isinstance(touches, str) or not isinstance(touches, Iterable):
            raise TypeError(f"{cls.__typename__} 'touches' must be an iterable of component ids")
        touches = tuple(touches)
        if not all(isinstance(id, str) and id for id in touches):
            raise TypeError(f"{cls.__typename__} 'touches' must be an iterable of component ids")
        metadata["touches"] = touches

        if not isinstance(value, str):
            raise TypeError(f"{cls.__typename__} 'value' must be a string")

        for attribute, object in metadata.items():
            setattr(self, "_" + attribute, object)

        self.value = value or "unset"

    @property
    def id(self):
        return self._name

    @property
    def binding(self):
        return self._key


class Heading(metaclass=ArgumentType, sealed=True):
    """
    Non-interactive separator. In args it starts a new section titled with its
    text; in config and action groups it is rendered as a title row.
    """

    __introspectable__ = ("text",)

    def __init__(self, text, /):
        if not isinstance(text, str):
            raise TypeError(f"{type(self).__typename__} 'text' must be a string")
        self._text = text


class Action(metaclass=ArgumentType, sealed=True):
    """
    Named key running callback(popup).

    An action without a callback is a placeholder: it is shown muted and
    pressing it raises a "not implemented" notification instead of closing the
    popup. A callback may return another callable, which runs once the popup
    has been closed.
    """

    __introspectable__ = ("key", "description", "callback")

    def __init__(self, key, description, /, callback=Unset):
        metadata = {
            "key": key,
            "description": description,
            "callback": callback,
        }
        _sanitize_token(type(self), metadata, "key")
        _sanitize_description(type(self), metadata)
        _sanitize_callback(type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def binding(self):
        return self._key

    @property
    def implemented(self):
        return self._callback is not None


class PopupState:
    """
    Ordered collections making up one popup.

    Attributes
    - name: persisted-state namespace and buffer title.
    - args: Switch | Option | Heading, in declaration order.
    - config: Config | Heading, in declaration order.
    - actions: tuple of action groups, each a tuple of Action | Heading.
    - env: read-only contextual values (e.g. {"highlight": "main"}).

    Raises
    - TypeError: for items of the wrong kind in a collection.
    - DuplicatedArgumentError: when two arguments share an id or a binding,
      or when one binding is the beginning of another ("b" and "bu").
    """

    def __init__(self, name, /, args=(), config=(), actions=(), env=MappingProxyType({})):
        if not isinstance(name, str):
            raise TypeError("popup state 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError("popup state 'name' cannot be empty")

        self.name = name
        self.args = list(args)
        self.config = list(config)
        self.actions = [list(group) for group in actions]
        self.env = MappingProxyType(dict(env))

        for argument in self.args:
            if not isinstance(argument, Switch | Option | Heading):
                raise TypeError(f"popup state 'args' cannot contain {builtins.type(argument).__name__}")
        for config in self.config:
            if not isinstance(config, Config | Heading):
                raise TypeError(f"popup state 'config' cannot contain {builtins.type(config).__name__}")
        for group in self.actions:
            for action in group:
                if not isinstance(action, Action | Heading):
                    raise TypeError(f"popup state 'actions' cannot contain {builtins.type(action).__name__}")

        self._index = {}
        bindings = {}
        for argument in self.interactive():
            if (id := argument.id) in self._index:
                trigger(
                    DuplicatedArgumentError(f"id {id!r} is declared twice in popup {name!r}"),
                    popup=name,
                    code=FaultCode.DUPLICATED_ARGUMENT,
                    title="duplicated argument",
                )
            self._index[id] = argument

        for argument in (*self.interactive(), *self.buttons()):
            if isinstance(argument, Config) and argument.passive:
                continue
            if bindings.setdefault(tokenize(binding := argument.binding), argument) is not argument:
                trigger(
                    DuplicatedArgumentError(f"key {binding!r} is bound twice in popup {name!r}"),
                    popup=name,
                    code=FaultCode.DUPLICATED_ARGUMENT,
                    title="duplicated argument",
                )

        # A binding that is a prefix of another fires first and shadows it.
        for tokens in bindings:
            for index in range(1, len(tokens)):
                if (prefix := tokens[:index]) in bindings:
                    trigger(
                        DuplicatedArgumentError(
                            f"key {''.join(prefix)!r} shadows key {''.join(tokens)!r} in popup {name!r}"
                        ),
                        popup=name,
                        code=FaultCode.DUPLICATED_ARGUMENT,
                        title="duplicated argument",
                        hint="a key cannot be the beginning of another key",
                    )

    def interactive(self):
        """
        Yield every argument that owns a Display Node (switches, options, configs).
        """
        for argument in self.args:
            if not isinstance(argument, Heading):
                yield argument
        for config in self.config:
            if not isinstance(config, Heading):
                yield config

    def buttons(self):
        """
        Yield every action across all groups, skipping headings.
        """
        for group in self.actions:
            for action in group:
                if isinstance(action, Action):
                    yield action

    def switches(self):
        return [argument for argument in self.args if isinstance(argument, Switch)]

    def options(self):
        return [argument for argument in self.args if isinstance(argument, Option)]

    def variables(self):
        return [config for config in self.config if isinstance(config, Config)]

    def lookup(self, id, /):
        """
        Return the argument identified by id.

        Raises
        - KeyError: when no switch, option, or config carries that id.
        """
        return self._index[id]

    def active_cli_flags(self):
        """
        Project args into command-line flags, in declaration order.

        - Switch: enabled and not internal → cli_prefix + cli_flag
        - Option: non-empty value and not internal → cli_prefix + cli_flag + "=" + value
        """
        flags = []
        for argument in self.args:
            match argument:
                case Switch(enabled=True, internal=False):
                    flags.append(argument.cli_prefix + argument.cli_flag)
                case Option(internal=False) if argument.value:
                    flags.append(f"{argument.cli_prefix}{argument.cli_flag}={argument.value}")
        return flags

    def internal_flags(self):
        """
        Map each enabled internal switch's flag to True.
        """
        return {
            argument.cli_flag: True
            for argument in self.args
            if isinstance(argument, Switch) and argument.internal and argument.enabled
        }

    def __repr__(self):
        return f"popup-state(name={self.name!r}, args={len(self.args)}, config={len(self.config)}, actions={len(self.actions)})"


__all__ = (
    # Records
    "Switch",
    "Option",
    "Config",
    "ConfigOption",
    "Heading",
    "Action",

    # State
    "PopupState",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del ArgumentType
