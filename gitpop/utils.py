"""
gitpop utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the argument model, the render tree and the
  popup engine.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/""/[].

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated key handlers for clean logs.

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr).

- intersperse(items, separator)
  • Place a separator between every two items of a sequence.

- spread(key)
  • Space out a multi-character key label ("bu" → "b u") so it lines up with single keys.

- tokenize(binding)
  • Split a binding into key tokens: "-a" → ("-", "a"), "<tab>" → ("<tab>",).

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> spread("bu")
    'b u'
    >>> tokenize("=<tab>")
    ('=', '<tab>')
"""
import builtins
import functools
import re
from collections.abc import Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and "".
    - Printable: repr(Unset) -> "Unset" for friendly diagnostics.
    - Non-subclassable: this type is sealed; do not subclass.
    - Singleton per process: UnsetType() always yields the same instance.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | Unset).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        """
        Support reversed PEP 604 unions when UnsetType appears on the right.
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        """
        Ensure a single instance for this sentinel type.
        """
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        """
        Disallow subclassing to preserve sentinel semantics.
        """
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Falsey values like None, 0, "" or [] are preserved as-is; only Unset is
    replaced.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce("", "fallback")     -> ""
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable
    - rename(name) -> decorator

    Notes
    - Key handlers are closures created in loops; renaming them after their
      binding keeps debug logs and tracebacks readable.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The generated property reads "_{name}" from the instance. Sets are handed
    out as frozensets and mappings as plain dict copies, so callers cannot
    reach into the argument's declaration through the public API.

    Example
    - Given self._key, declare key = mirror("key") to expose it safely.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        object = getattr(self, "_" + name)
        if isinstance(object, Set):
            return frozenset(object)
        if isinstance(object, Mapping):
            return dict(object)
        return object

    return property(getter)


def intersperse(items, separator, /):
    """
    Return a new list with separator placed between every two items.

    The separator is produced by calling it when it is callable, so every gap
    receives its own fresh node instead of one shared instance.

    Examples
    - intersperse(["a", "b", "c"], "|") -> ["a", "|", "b", "|", "c"]
    - intersperse([], "|")              -> []
    """
    result = []
    for index, item in enumerate(items):
        if index:
            result.append(separator() if callable(separator) else separator)
        result.append(item)
    return result


def spread(key, /):
    """
    Space out the characters of a multi-character key label.

    Single-character keys are returned unchanged.

    Examples
    - spread("d")  -> "d"
    - spread("bu") -> "b u"
    """
    if not isinstance(key, str):
        raise TypeError("spread() argument must be a string")
    return " ".join(key) if len(key) > 1 else key


@functools.cache
def tokenize(binding, /):
    """
    Split a binding into the key tokens a terminal delivers one at a time.

    Angle-bracket names ("<tab>", "<esc>", "<c-c>") are single tokens,
    everything else is one token per character.

    Examples
    - tokenize("-a")    -> ("-", "a")
    - tokenize("<esc>") -> ("<esc>",)
    - tokenize("z<cr>") -> ("z", "<cr>")
    """
    if not isinstance(binding, str):
        raise TypeError("tokenize() argument must be a string")
    elif not binding:
        raise ValueError("tokenize() argument must be a non-empty string")
    return tuple(re.findall(r"<[^<>\s]+>|.", binding, flags=re.DOTALL))


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Notes
- Singleton: there is only one Unset instance.
- Distinct from None and from the "unset" config value string.
- Typical pattern: value = coalesce(user_value, default).
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "intersperse",
    "spread",
    "tokenize",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
