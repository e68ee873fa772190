from __future__ import annotations

from collections.abc import Sequence

from InquirerPy import inquirer
from InquirerPy.base.control import Choice
from rich.console import Console
from rich.text import Text

from .models import Group, Server
from .styles import group_tag

console = Console()


class ServerItem:
    """A server as shown in the selection list."""

    def __init__(self, server: Server):
        self.server = server

    def title(self) -> str:
        return self.server.name

    def description(self) -> str:
        return self.server.description()

    def label(self) -> str:
        """Single-line label; the fuzzy filter matches against it (name, host and group)."""
        label = f"{self.title()}  {self.description()}"
        if self.server.group:
            label = f"[{self.server.group}] {label}"
        return label


def filter_by_group(servers: Sequence[Server], group: str) -> list[Server]:
    """Keep servers whose group matches, ignoring case. An empty group keeps everything."""
    if not group:
        return list(servers)
    return [s for s in servers if s.group.lower() == group.lower()]


def group_legend(servers: Sequence[Server], groups: Sequence[Group]) -> Text | None:
    """Colored tags for the configured groups that the listed servers belong to."""
    used = {s.group for s in servers}
    legend = Text()
    for g in groups:
        if g.name in used:
            legend.append_text(group_tag(g.name, g.color))
    return legend if legend.plain else None


def select_server(servers: Sequence[Server], groups: Sequence[Group] = ()) -> Server | None:
    """Show a fuzzy-filterable list. Returns the chosen server, or None if the user quit.

    Choice labels are plain text, so group colors are shown in a legend above the list.
    """
    legend = group_legend(servers, groups)
    if legend is not None:
        console.print(legend)

    items = [ServerItem(s) for s in servers]
    choices = [Choice(value=i, name=item.label()) for i, item in enumerate(items)]
    try:
        index = inquirer.fuzzy(
            message="Select a server:",
            choices=choices,
            mandatory=False,
            keybindings={"skip": [{"key": "escape"}, {"key": "c-z"}]},
            instruction="type to filter",
            long_instruction="↑↓ navigate • enter: connect • esc: quit",
            max_height="70%",
        ).execute()
    except KeyboardInterrupt:
        return None

    if index is None:
        return None
    return items[index].server
