"""
gitpop components: pure projection of a PopupState into Display Nodes.

Tree shape (top to bottom, blank line between blocks)
- Config block: "Variables" title unless the first entry is a heading, then
  one row per variable:   " <key> <name> <value>"
- Argument sections: consecutive switches/options grouped under the nearest
  preceding heading ("Arguments" when none):
      " -a All references (--all)"
      " =n Limit number of commits (--max-count=256)"
- Actions grid: one column per action group, separated by the configured gap.

Identity
- Every Switch/Option/Config row is tagged with its kind and carries the
  argument id as value; the nested row holding the flag or value carries the
  same id as its node id, which is what update_component patches.
- The id row of a switch/option owns its highlight; the id row of a config
  delegates it to its first child.

Nothing in here reads stores or prompts: calling build() twice on the same
state yields equal trees.
"""
from .arguments import Switch, Option, Config, Heading, Action
from .ui import text, row, col
from .utils import *


def switch_highlight(switch, /):
    return "switch-enabled" if switch.enabled else "switch-disabled"


def option_highlight(option, /):
    return "option-enabled" if option.value else "option-disabled"


def config_highlight(config, /):
    """
    Highlight for a free-text config value: its declared type when set,
    "config-disabled" while the value is empty or "unset".
    """
    if config.value and config.value != "unset":
        return config.type or "config-enabled"
    return "config-disabled"


def config_choices(config, /):
    """
    Render an options-valued config as "[a|b|c]" with the active value highlighted.

    Options with an empty display are reachable by cycling but not shown.
    """
    options = [
        text(option.display, "config-enabled" if option.value == config.value else "config-disabled")
        for option in config.options
        if option.display
    ]
    return [
        text("[", "config-disabled"),
        *intersperse(options, lambda: text("|", "config-disabled")),
        text("]", "config-disabled"),
    ]


def config_value(config, /):
    """
    Value nodes placed under a config's id row.
    """
    if config.options:
        return config_choices(config)
    return [text(config.value or "unset", config_highlight(config))]


def config_label(config, /):
    if config.passive:
        return " "
    return spread(config.key)


def switch_row(switch, /):
    return row([
        text(" "),
        row([text(switch.key_prefix), text(switch.key)], highlight="switch-key"),
        text(" "),
        text(switch.description),
        text(" ("),
        row([text(switch.cli_prefix), text(switch.cli_flag)], id=switch.id, highlight=switch_highlight(switch)),
        text(")"),
    ], tag="Switch", value=switch.id)


def option_row(option, /):
    return row([
        text(" "),
        row([text(option.key_prefix), text(option.key)], highlight="option-key"),
        text(" "),
        text(option.description),
        text(" ("),
        row([
            text(option.cli_prefix),
            text(option.cli_flag),
            text("="),
            text(option.value or ""),
        ], id=option.id, highlight=option_highlight(option)),
        text(")"),
    ], tag="Option", value=option.id)


def config_row(config, /):
    return row([
        text(" "),
        row([text(config_label(config))], highlight="config-key"),
        text(f" {config.name} "),
        row(config_value(config), id=config.id),
    ], tag="Config", value=config.id)


def heading_row(heading, /):
    return row([text(heading.text)], highlight="section-title")


def section(title, items, /):
    return col([
        text(title, "section-title"),
        col(items),
    ], tag="Section")


def config_block(configs, /):
    """
    Render the config collection as one block.
    """
    children = []
    if not isinstance(configs[0], Heading):
        children.append(text("Variables", "section-title"))

    rows = []
    for config in configs:
        match config:
            case Heading():
                rows.append(heading_row(config))
            case Config():
                rows.append(config_row(config))
            case _:
                raise TypeError(f"config block cannot render {type(config).__name__}")
    children.append(col(rows))
    return col(children)


def argument_sections(args, /):
    """
    Group consecutive switches/options under the nearest preceding heading.
    """
    sections = []
    items = []
    title = "Arguments"
    for argument in args:
        match argument:
            case Switch():
                items.append(switch_row(argument))
            case Option():
                items.append(option_row(argument))
            case Heading():
                if items:
                    sections.append(section(title, items))
                    items = []
                title = argument.text
            case _:
                raise TypeError(f"argument section cannot render {type(argument).__name__}")
    if items:
        sections.append(section(title, items))
    return sections


def action_item(action, /):
    match action:
        case Heading():
            return heading_row(action)
        case Action(implemented=False):
            return row([
                text(" "),
                text(action.key),
                text(" "),
                text(action.description),
            ], highlight="action-disabled")
        case Action():
            return row([
                text(" "),
                text(action.key, "action-key"),
                text(" "),
                text(action.description),
            ])
        case _:
            raise TypeError(f"actions grid cannot render {type(action).__name__}")


def actions_grid(groups, /, *, gap=3):
    """
    Lay action groups out side by side: group N is column N, and row i holds
    the i-th entry of every group, each cell padded to its column's width.
    """
    columns = [[action_item(action) for action in group] for group in groups if group]
    widths = [max(len(cell.plain()) for cell in column) for column in columns]
    height = max(map(len, columns), default=0)

    rows = []
    for index in range(height):
        cells = []
        for number, (column, width) in enumerate(zip(columns, widths)):
            last = number == len(columns) - 1
            if index < len(column):
                cells.append(column[index])
                padding = width - len(column[index].plain())
            else:
                padding = width
            if not last:
                cells.append(text(" " * (padding + gap)))
        rows.append(row(cells))
    return col(rows, tag="Actions", padding_left=1)


def build(state, /, *, gap=3):
    """
    Build the top-level nodes for a PopupState: config block, argument
    sections, actions grid, separated by blank lines.
    """
    items = []
    if state.config:
        items.append(config_block(state.config))
    items.extend(argument_sections(state.args))
    if any(state.actions):
        items.append(actions_grid(state.actions, gap=gap))
    return intersperse(items, lambda: text(""))


__all__ = (
    "switch_highlight",
    "option_highlight",
    "config_highlight",
    "config_choices",
    "config_value",
    "config_label",
    "switch_row",
    "option_row",
    "config_row",
    "heading_row",
    "section",
    "config_block",
    "argument_sections",
    "action_item",
    "actions_grid",
    "build",
)
