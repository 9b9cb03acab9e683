"""
gitpop faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every issue the popup
  engine can surface.
- PopupException / PopupWarning: base types that carry message + options and
  know how to render themselves with rich.
- trigger(): central entry point to surface any fault.

Categories
- Contract faults (exceptions): the argument model and the render tree went
  out of sync, e.g. an id with no Display Node or a patch value of an unknown
  type. They are logged and always raised; there is no recovery path.
- Notifications (warnings): expected, non-fatal situations such as invoking an
  action that has no callback yet. In shell mode they are printed as a
  notification and the popup stays open; otherwise they go through
  warnings.warn so callers (and tests) can observe them.

Prompt cancellation is not a fault at all: it resolves to "keep the prior
value" inside the popup engine and never reaches this module.
"""
import copy
import inspect
import logging
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

logger = logging.getLogger(__name__)

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the popup engine (stable identifiers).

    grouping (by high-level domain)
    - render tree (211xx)
      • COMPONENT_NOT_FOUND, UNHANDLED_VALUE
    - argument model (212xx)
      • DUPLICATED_ARGUMENT
    - notifications (221xx)
      • NOT_IMPLEMENTED

    normalize() allows the host to remap codes to custom labels through a
    __codes__ mapping in __main__ while keeping the numeric ids stable.
    """
    # --- render tree errors (211xx) ---
    COMPONENT_NOT_FOUND         = 21101
    UNHANDLED_VALUE             = 21102

    # --- argument model errors (212xx) ---
    DUPLICATED_ARGUMENT         = 21201

    # --- notifications (221xx) ---
    NOT_IMPLEMENTED             = 22101

    def normalize(self):
        """
        return a host-normalized string for this code.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _styler(options, palette):
    # Styles only apply when colorful (default True).
    styles = defaultdict(str, palette | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if options.get("colorful", True) else ""
    return styler


def _render(self, palette, title_style, message_style):
    styler = _styler(self.options, palette)

    header = Text.assemble(
        "[ ",
        Text(str(self.options.get("popup", "popup")), styler("prog-name")),
        " — ",
        Text(self.options.get("code", FaultCode.NOT_IMPLEMENTED).normalize(), styler("code")),
        " | ",
        Text(str(self.options.get("title", "fault")).title(), styler(title_style)),
        " ]",
    )
    message = Text(str(self.message), styler(message_style))

    renders = [message]
    if hint := self.options.get("hint"):
        renders.append(Text.assemble(Text(" → ", styler("hint-arrow")), Text(str(hint), styler("hint"))))

    if self.options.get("fancy", False):
        return Panel(Group(*renders), title=header, title_align="left")
    return Group(header, *renders)


class PopupException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        }, "error-title", "error-message")

    def __trigger__(self) -> None:
        logger.error(f"[{self.options.get('code', '?')}] {self.message}")
        raise self from None

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ComponentNotFoundError(PopupException): ...
class UnhandledValueError(PopupException): ...
class DuplicatedArgumentError(PopupException): ...


class PopupWarning(Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "warning-title": "bold #FFC2E0",
            "warning-message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        }, "warning-title", "warning-message")

    def __trigger__(self) -> None:
        logger.warning(f"[{self.options.get('code', '?')}] {self.message}")
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        self.options.get("console", console).print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class NotImplementedWarning(PopupWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace before triggering.
    - exceptions are logged then raised; warnings are printed (shell=True) or
      emitted through warnings.warn (shell=False).

    typical options
    - popup, code, title, hint, shell, fancy, colorful, console.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "PopupException",
    "ComponentNotFoundError",
    "UnhandledValueError",
    "DuplicatedArgumentError",
    "PopupWarning",
    "NotImplementedWarning",
    "FaultCode",
    "trigger",
)
