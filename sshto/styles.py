from __future__ import annotations

from rich.style import Style
from rich.text import Text

# Colors
PRIMARY = "color(69)"
SECONDARY = "color(241)"
WARNING = "color(214)"
DANGER = "color(196)"

GROUP_COLORS = {
    "red": "color(196)",
    "green": "color(42)",
    "yellow": "color(214)",
    "blue": "color(69)",
    "magenta": "color(165)",
    "cyan": "color(51)",
    "white": "color(255)",
    "gray": "color(241)",
}

TITLE = Style(color=PRIMARY, bold=True)
SELECTED = Style(color=PRIMARY, bold=True)
DIM = Style(color=SECONDARY)
ERROR = Style(color=DANGER, bold=True)
WARNING_STYLE = Style(color=WARNING)
HELP = Style(color=SECONDARY)
CURSOR = Style(reverse=True)


def group_color(color: str) -> str:
    """Map a palette name to a terminal color. Unknown names fall back to gray."""
    return GROUP_COLORS.get(color, SECONDARY)


def group_tag(name: str, color: str) -> Text:
    """Render a group name as a colored badge."""
    tag = Text()
    tag.append(f" {name} ", style=Style(color="black", bgcolor=group_color(color)))
    tag.append(" ")
    return tag
