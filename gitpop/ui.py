"""
gitpop display tree and buffer host.

What this module provides
- Node: a Display Node. Leaves are "text" nodes holding a string; "row" nodes
  concatenate their descendants on one line; "col" nodes stack children on
  separate lines. Any node may carry a tag (semantic role), an id (stable
  identity used for patching), a value (the id of the argument it was built
  from, never the argument itself) and a highlight token.
- text / row / col: node constructors.
- Ui: owns the current tree, lays it out into rich Text lines and answers
  lookups (find_component, get_component_stack_under_cursor).
- Keymap: resolves key tokens into bindings, including multi-key ones ("-a").
- Buffer: a named, drawable surface with a keymap, a cursor and a close hook.

Layout rules
- A text node directly inside a col occupies its own line.
- A row flattens all its descendants into one line. Text nodes without a
  highlight inherit the nearest enclosing highlight.
- Highlight tokens are resolved to rich styles through the palette handed to
  Ui (see gitpop.config.styles).
"""
import logging
import operator

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import *

logger = logging.getLogger(__name__)


class Node:
    """
    Display Node.

    Attributes
    - kind: "text" | "row" | "col"
    - tag: semantic role ("Switch", "Option", "Config", "Section", "Actions") or None
    - id: stable identity for update_component, or None
    - value: for text nodes the displayed string; for tagged rows the id of
      the argument the row was built from
    - highlight: style token, or None to inherit
    - children: ordered child nodes (empty for text)
    - padding_left: spaces prepended to every line this node produces
    """

    __slots__ = ("kind", "tag", "id", "value", "highlight", "children", "padding_left")

    def __init__(self, kind, /, children=(), *, tag=None, id=None, value=None, highlight=None, padding_left=0):
        if kind not in ("text", "row", "col"):
            raise ValueError(f"node kind must be 'text', 'row', or 'col', not {kind!r}")
        self.kind = kind
        self.tag = tag
        self.id = id
        self.value = value
        self.highlight = highlight
        self.children = list(children)
        self.padding_left = padding_left

    def walk(self):
        """
        Yield this node and all its descendants, depth-first, parents first.
        """
        yield self
        for child in self.children:
            yield from child.walk()

    def plain(self):
        """
        Concatenated text of all descendant text nodes.
        """
        if self.kind == "text":
            return self.value
        return "".join(map(operator.methodcaller("plain"), self.children))

    def __repr__(self):
        fields = [self.kind]
        for name in ("tag", "id", "highlight"):
            if (object := getattr(self, name)) is not None:
                fields.append(f"{name}={object!r}")
        if self.kind == "text":
            fields.append(f"value={self.value!r}")
        else:
            fields.append(f"children={len(self.children)}")
        return f"node({', '.join(fields)})"


def text(value, /, highlight=None):
    if not isinstance(value, str):
        raise TypeError(f"text node value must be a string, not {type(value).__name__}")
    return Node("text", value=value, highlight=highlight)


def row(children, /, **options):
    return Node("row", children, **options)


def col(children, /, **options):
    return Node("col", children, **options)


class Ui:
    """
    Holder of the current Display Node tree.

    Parameters
    - styles: mapping of highlight token → rich style (missing tokens render plain)
    - colorful: when False, highlight tokens are ignored
    - redraw: called after every update()
    """

    def __init__(self, styles=Unset, /, *, colorful=True, redraw=Unset):
        self.styles = coalesce(styles, {})
        self.colorful = colorful
        self._redraw = coalesce(redraw)
        self.root = col([])
        self.cursor = 0
        self._lines = []
        self._stacks = []

    def render(self, *nodes):
        """
        Replace the whole tree. Only used for the initial show.
        """
        self.root = col(nodes)
        self._layout()

    def find_component(self, predicate, /):
        """
        Return the first node (depth-first, parents first) for which predicate is true, or None.
        """
        for node in self.root.walk():
            if predicate(node):
                return node
        return None

    def get_component_stack_under_cursor(self):
        """
        Return the nodes making up the line under the cursor, innermost first.
        """
        try:
            return list(reversed(self._stacks[self.cursor]))
        except IndexError:
            return []

    @property
    def lines(self):
        return list(self._lines)

    def update(self):
        """
        Re-layout the tree after in-place patches and request a redraw.
        """
        self._layout()
        if self._redraw is not None:
            self._redraw()

    def _style(self, highlight):
        if not self.colorful or highlight is None:
            return ""
        return self.styles.get(highlight, "")

    def _flatten(self, node, line, stack, highlight):
        # Everything under a row lands on the same line.
        highlight = node.highlight if node.highlight is not None else highlight
        if node.kind == "text":
            line.append(node.value, self._style(highlight))
            return
        if node.kind == "row":
            stack.append(node)
        line.append(" " * node.padding_left)
        for child in node.children:
            self._flatten(child, line, stack, highlight)

    def _emit(self, node, ancestors, highlight, padding):
        highlight = node.highlight if node.highlight is not None else highlight
        padding += node.padding_left
        if node.kind == "col":
            for child in node.children:
                self._emit(child, [*ancestors, node], highlight, padding)
            return

        line = Text(" " * padding)
        stack = [*ancestors]
        if node.kind == "text":
            line.append(node.value, self._style(highlight))
            stack.append(node)
        else:
            stack.append(node)
            for child in node.children:
                self._flatten(child, line, stack, highlight)
        self._lines.append(line)
        self._stacks.append(stack)

    def _layout(self):
        self._lines = []
        self._stacks = []
        self._emit(self.root, [], None, 0)
        self.cursor = max(0, min(self.cursor, len(self._lines) - 1))


class Keymap:
    """
    Key-sequence dispatcher.

    Bindings are strings tokenized with utils.tokenize ("-a" → "-", "a"). Keys
    are fed one token at a time: a pending sequence that exactly matches a
    binding fires it, a proper prefix of some binding waits for more keys, and
    anything else is dropped.
    """

    def __init__(self, mappings=Unset, /):
        self._bindings = {}
        self._prefixes = set()
        self._pending = ()
        for binding, handler in coalesce(mappings, {}).items():
            self.bind(binding, handler)

    def bind(self, binding, handler, /):
        if not callable(handler):
            raise TypeError(f"keymap handler for {binding!r} must be callable")
        tokens = tokenize(binding)
        self._bindings[tokens] = handler
        for index in range(1, len(tokens)):
            self._prefixes.add(tokens[:index])

    @property
    def pending(self):
        return "".join(self._pending)

    def __contains__(self, binding):
        return tokenize(binding) in self._bindings

    def __iter__(self):
        return map("".join, self._bindings)

    def __len__(self):
        return len(self._bindings)

    def feed(self, key, /):
        """
        Feed one key token. Returns True when a binding fired.
        """
        self._pending = (*self._pending, key)
        if (handler := self._bindings.get(self._pending)) is not None:
            logger.debug(f"Key sequence {self.pending!r} → {getattr(handler, '__name__', handler)}")
            self._pending = ()
            handler()
            return True
        if self._pending not in self._prefixes:
            logger.debug(f"Dropping unbound key sequence {self.pending!r}")
            self._pending = ()
        return False


class Buffer:
    """
    Drawable surface hosting one Ui.

    Parameters
    - name: title of the buffer
    - kind: "split" draws plain lines, "floating" draws inside a panel
    - mappings: {binding: handler}; "<up>" and "<down>" move the cursor unless overridden
    - render: callable returning the top-level nodes of the tree
    - after: optional hook called with the buffer after the first draw
    - console: rich Console to draw on
    - styles / colorful: forwarded to Ui
    """

    def __init__(self, name, kind, mappings, render, /, after=Unset, *, console=Unset, styles=Unset, colorful=True):
        self.name = name
        self.kind = kind
        self.console = coalesce(console) or Console()
        self.ui = Ui(styles, colorful=colorful, redraw=self.draw)
        self.keymap = Keymap({"<up>": self.up, "<down>": self.down} | dict(mappings))
        self.closed = False
        self._render = render
        self._after = coalesce(after)
        self._matches = []

    @classmethod
    def create(cls, *args, **kwargs):
        """
        Construct, render, draw, and run the after hook.
        """
        self = cls(*args, **kwargs)
        self.ui.render(*self._render())
        if self._after is not None:
            self._after(self)
        self.draw()
        return self

    def matchadd(self, word, highlight, /):
        """
        Highlight every occurrence of word when drawing (e.g. the current branch name).
        """
        if word:
            self._matches.append((word, highlight))

    def lines(self):
        """
        Laid out lines with match highlights applied.
        """
        lines = [line.copy() for line in self.ui.lines]
        for line in lines:
            for word, highlight in self._matches:
                line.highlight_words([word], self.ui._style(highlight))
        return lines

    def draw(self):
        if self.closed:
            return
        renderable = Group(*self.lines())
        if self.kind == "floating":
            renderable = Panel(
                renderable,
                title=Text(self.name, style=self.ui._style("panel-title")),
                title_align="left",
            )
        self.console.print(renderable)

    def up(self):
        self.ui.cursor = max(0, self.ui.cursor - 1)

    def down(self):
        self.ui.cursor = min(len(self.ui.lines) - 1, self.ui.cursor + 1)

    def goto(self, line, /):
        self.ui.cursor = max(0, min(line, len(self.ui.lines) - 1))

    def feed(self, *keys):
        """
        Feed key tokens in order. Keys arriving after close are ignored.
        """
        for key in keys:
            if self.closed:
                logger.debug(f"Buffer {self.name!r} is closed, ignoring {key!r}")
                return
            self.keymap.feed(key)

    def close(self):
        self.closed = True

    def run(self):
        """
        Read keys from the console until the buffer closes.

        Each line read is fed token by token, so "-a" typed on one line is the
        same as "-" then "a". An empty line feeds "<cr>".
        """
        while not self.closed:
            try:
                line = self.console.input(Text(f"{self.name}> ", style=self.ui._style("section-title")))
            except (EOFError, KeyboardInterrupt):
                self.feed("<esc>")
                if not self.closed:
                    self.close()
                continue
            self.feed(*(tokenize(line) if line else ("<cr>",)))


__all__ = (
    "Node",
    "text",
    "row",
    "col",
    "Ui",
    "Keymap",
    "Buffer",
)
