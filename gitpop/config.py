"""
gitpop configuration: palette and popup settings.

Both are host-overridable the same way: define a mapping in __main__ and it
is merged over the defaults every time a popup is shown.

- __styles__: highlight token → rich style, e.g.
      __styles__ = {"switch-enabled": "bold green"}
- __popup__: popup settings, e.g.
      __popup__ = {"kind": "floating"}

Palette keys
- switch-key, switch-enabled, switch-disabled
- option-key, option-enabled, option-disabled
- config-key, config-enabled, config-disabled
- section-title, action-key, action-disabled
- branch-name, panel-title

Settings keys
- kind: "split" (plain lines) | "floating" (panel); default "split"
- gap: spaces between action-group columns; default 3
"""
from collections import defaultdict

DEFAULT_STYLES = {
    # === Switches ===
    "switch-key": "bold #C678DD",  # Purple keys
    "switch-enabled": "bold #00E6FF",  # CYAN when on
    "switch-disabled": "#737373",  # Dim gray when off

    # === Options ===
    "option-key": "bold #C678DD",
    "option-enabled": "bold #00E6FF",
    "option-disabled": "#737373",

    # === Config variables ===
    "config-key": "bold #C678DD",
    "config-enabled": "bold #00E6FF",
    "config-disabled": "#737373",

    # === Structure ===
    "section-title": "bold #FF4D94",  # MAGENTA-PINK section titles
    "action-key": "bold #C678DD",
    "action-disabled": "#4B5563 italic",  # Slate placeholders

    # === Decorations ===
    "branch-name": "bold #22C55E",  # GREEN branch name matches
    "panel-title": "bold #FF4D94",
}

DEFAULT_SETTINGS = {
    "kind": "split",
    "gap": 3,
}


def styles():
    """
    Return the palette with __main__.__styles__ merged over the defaults.

    Unknown tokens map to "" (plain) instead of raising.
    """
    return defaultdict(str, DEFAULT_STYLES | getattr(__import__("__main__"), "__styles__", {}))


def settings():
    """
    Return popup settings with __main__.__popup__ merged over the defaults.
    """
    merged = DEFAULT_SETTINGS | getattr(__import__("__main__"), "__popup__", {})
    if merged["kind"] not in ("split", "floating"):
        raise ValueError(f"popup 'kind' must be 'split' or 'floating', not {merged['kind']!r}")
    if not isinstance(merged["gap"], int) or merged["gap"] < 1:
        raise ValueError("popup 'gap' must be a positive integer")
    return merged


__all__ = (
    "DEFAULT_STYLES",
    "DEFAULT_SETTINGS",
    "styles",
    "settings",
)
