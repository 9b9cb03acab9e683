import logging
from pathlib import Path

from rich.console import Console

from gitpop import *
from gitpop.git import git, GitConfig

__popup__ = {"kind": "floating"}

console = Console()


def show_log(popup):
    flags = popup.active_cli_flags()

    def run():
        console.print(git("log", "--oneline", *flags, check=False).stdout)
    return run


def show_branches(popup):
    def run():
        console.print(git("branch", "--list", check=False).stdout)
    return run


if __name__ == '__main__':
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    (
        Popup.builder(
            store=FileState(Path.home() / ".cache" / "gitpop" / "state.json"),
            config=GitConfig(),
            console=console,
        )
        .name("log")
        .config("d", "log.decorate", options=["short", "full", "auto", "no"])
        .config("s", "log.showSignature", options=[("true", "true"), ("false", "false")])
        .arg_heading("Commit Limiting")
        .option("n", "max-count", "Limit number of commits", default="256")
        .option("a", "author", "Limit to author")
        .switch("m", "no-merges", "Omit merges", incompatible=["merges"])
        .switch("M", "merges", "Only merges", incompatible=["no-merges"])
        .switch("G", "G", "Search changes", cli_prefix="-", requires_input=True)
        .arg_heading("History Simplification")
        .switch("a", "all", "All references")
        .switch("D", "simplify-by-decoration", "Simplify by decoration")
        .arg_heading("Formatting")
        .option("f", "format", "Pretty format", choices=["oneline", "short", "medium", "full"])
        .action_group("Log")
        .action("l", "current", show_log)
        .action("b", "branches", show_branches)
        .action_group("Reflog")
        .action("r", "current")
        .build()
        .run()
    )
