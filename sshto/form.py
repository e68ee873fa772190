"""Interactive add/edit form.

`FormModel` is a small state machine over six text fields. It is driven one
key at a time through `update()` and knows nothing about the terminal;
`run_form()` wires it to a prompt_toolkit event loop.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from enum import IntEnum

from prompt_toolkit.application import Application
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.key_binding import KeyBindings, KeyPress
from prompt_toolkit.keys import Keys
from prompt_toolkit.layout import Layout, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from rich.console import Console, Group as RenderGroup
from rich.text import Text

from . import styles
from .errors import SshtoError, ValidationError
from .models import Group, Server
from .validation import validate_host, validate_key_file, validate_name, validate_port

PORT_RE = re.compile(r"^[+-]?\d+$")

HELP_LINE = "tab/shift+tab: navigate • enter: next/submit • esc: cancel"


class Field(IntEnum):
    NAME = 0
    HOST = 1
    USER = 2
    PORT = 3
    KEY = 4
    GROUP = 5


# prompt, placeholder, char limit
FIELD_SPECS = {
    Field.NAME: ("Name: ", "server-name", 64),
    Field.HOST: ("Host: ", "192.168.1.1 or hostname.com", 256),
    Field.USER: ("User: ", "optional", 64),
    Field.PORT: ("Port: ", "22", 5),
    Field.KEY: ("Key:  ", "~/.ssh/id_rsa (optional)", 256),
    Field.GROUP: ("Group:", "optional", 64),
}


class TextInput:
    """Single-line text buffer with a cursor."""

    def __init__(self, prompt: str, placeholder: str = "", char_limit: int = 0):
        self.prompt = prompt
        self.placeholder = placeholder
        self.char_limit = char_limit
        self.value = ""
        self.cursor = 0

    def set_value(self, value: str) -> None:
        if self.char_limit:
            value = value[: self.char_limit]
        self.value = value
        self.cursor = len(value)

    def insert(self, text: str) -> None:
        text = "".join(ch for ch in text if ch.isprintable())
        if self.char_limit:
            text = text[: max(self.char_limit - len(self.value), 0)]
        if not text:
            return
        self.value = self.value[: self.cursor] + text + self.value[self.cursor :]
        self.cursor += len(text)

    def update(self, key: str) -> None:
        if key == "backspace":
            if self.cursor > 0:
                self.value = self.value[: self.cursor - 1] + self.value[self.cursor :]
                self.cursor -= 1
        elif key == "delete":
            self.value = self.value[: self.cursor] + self.value[self.cursor + 1 :]
        elif key == "left":
            self.cursor = max(self.cursor - 1, 0)
        elif key == "right":
            self.cursor = min(self.cursor + 1, len(self.value))
        elif key == "home":
            self.cursor = 0
        elif key == "end":
            self.cursor = len(self.value)
        elif key == "ctrl+u":
            self.value = self.value[self.cursor :]
            self.cursor = 0
        elif key == "ctrl+k":
            self.value = self.value[: self.cursor]
        elif len(key) == 1:
            self.insert(key)

    def render(self, focused: bool = False) -> Text:
        line = Text()
        line.append(self.prompt, style=styles.SELECTED if focused else "")
        line.append(" ")
        if not self.value:
            if focused:
                line.append(self.placeholder[:1] or " ", style=styles.CURSOR)
                line.append(self.placeholder[1:], style=styles.DIM)
            else:
                line.append(self.placeholder, style=styles.DIM)
            return line

        if not focused:
            line.append(self.value)
            return line

        line.append(self.value[: self.cursor])
        line.append(self.value[self.cursor : self.cursor + 1] or " ", style=styles.CURSOR)
        line.append(self.value[self.cursor + 1 :])
        return line


class FormModel:
    """State of the add/edit form.

    Focus cycles through the fields in `Field` order. Enter on the last field
    validates and, on success, builds `result` and sets `done`. Esc or Ctrl-C
    sets `canceled`. Both are terminal.
    """

    def __init__(self, server: Server | None = None, groups: Sequence[Group] = ()):
        self.inputs = [TextInput(*FIELD_SPECS[field]) for field in Field]
        self.focused = Field.NAME
        self.is_edit = server is not None
        self.groups = list(groups)
        self.done = False
        self.canceled = False
        self.error: SshtoError | None = None
        self.warning: str | None = None
        self.result: Server | None = None

        if server is not None:
            self.inputs[Field.NAME].set_value(server.name)
            self.inputs[Field.HOST].set_value(server.host)
            self.inputs[Field.USER].set_value(server.user)
            if server.port:
                self.inputs[Field.PORT].set_value(str(server.port))
            self.inputs[Field.KEY].set_value(server.key)
            self.inputs[Field.GROUP].set_value(server.group)

    @property
    def finished(self) -> bool:
        return self.done or self.canceled

    def value(self, field: Field) -> str:
        return self.inputs[field].value.strip()

    def update(self, key: str) -> None:
        """Process one key press."""
        if self.finished:
            return

        if key in ("esc", "ctrl+c"):
            self.canceled = True
        elif key in ("tab", "down"):
            self._move(1)
        elif key in ("shift+tab", "up"):
            self._move(-1)
        elif key == "enter":
            if self.focused == Field.GROUP:
                self._submit()
            else:
                self._move(1)
        else:
            self.inputs[self.focused].update(key)

    def paste(self, text: str) -> None:
        if not self.finished:
            self.inputs[self.focused].insert(text)

    def _move(self, step: int) -> None:
        self.focused = Field((self.focused + step) % len(Field))

    def _submit(self) -> None:
        try:
            port = self._validate()
        except SshtoError as e:
            self.error = e
            return

        self.error = None
        self.result = Server(
            name=self.value(Field.NAME),
            host=self.value(Field.HOST),
            user=self.value(Field.USER),
            port=port,
            key=self.value(Field.KEY),
            group=self.value(Field.GROUP),
        )
        self.done = True

    def _validate(self) -> int:
        """Validate all fields and return the parsed port."""
        validate_name(self.value(Field.NAME))
        validate_host(self.value(Field.HOST))

        port = 0
        port_str = self.value(Field.PORT)
        if port_str:
            if not PORT_RE.match(port_str):
                raise ValidationError("port must be a valid number (0-65535)")
            port = int(port_str)
            validate_port(port)

        self.warning = validate_key_file(self.value(Field.KEY))
        return port

    def view(self) -> RenderGroup:
        lines: list[Text] = [Text("Edit Server" if self.is_edit else "Add Server", style=styles.TITLE), Text()]
        lines += [self.inputs[field].render(focused=field == self.focused) for field in Field]

        if self.error is not None:
            lines += [Text(), Text(f"Error: {self.error}", style=styles.ERROR)]
        if self.warning:
            lines += [Text(), Text(f"Warning: {self.warning}", style=styles.WARNING_STYLE)]

        if self.groups and self.focused == Field.GROUP:
            names = ", ".join(g.name for g in self.groups)
            lines += [Text(), Text(f"Available groups: {names}", style=styles.DIM)]

        lines += [Text(), Text(HELP_LINE, style=styles.HELP)]
        return RenderGroup(*lines)


KEY_NAMES = {
    Keys.Tab: "tab",
    Keys.BackTab: "shift+tab",
    Keys.Up: "up",
    Keys.Down: "down",
    Keys.Enter: "enter",
    Keys.ControlJ: "enter",
    Keys.Escape: "esc",
    Keys.ControlC: "ctrl+c",
    Keys.Backspace: "backspace",
    Keys.Delete: "delete",
    Keys.Left: "left",
    Keys.Right: "right",
    Keys.Home: "home",
    Keys.End: "end",
    Keys.ControlA: "home",
    Keys.ControlE: "end",
    Keys.ControlU: "ctrl+u",
    Keys.ControlK: "ctrl+k",
}


def key_name(press: KeyPress) -> str | None:
    """Translate a prompt_toolkit key press to the names FormModel understands."""
    if press.key in KEY_NAMES:
        return KEY_NAMES[press.key]
    if isinstance(press.key, Keys):
        return None
    return press.data


def render_ansi(renderable, console: Console | None = None) -> str:
    console = console or Console(force_terminal=True, color_system="256")
    with console.capture() as capture:
        console.print(renderable)
    return capture.get()


def run_form(model: FormModel) -> FormModel:
    """Run the form in the terminal until it is submitted or canceled."""
    console = Console(force_terminal=True, color_system="256")
    kb = KeyBindings()

    def handle(event) -> None:
        press = event.key_sequence[0]
        if press.key == Keys.BracketedPaste:
            model.paste(press.data)
        else:
            name = key_name(press)
            if name:
                model.update(name)
        if model.finished:
            event.app.exit()

    for key in [*KEY_NAMES, Keys.BracketedPaste, Keys.Any]:
        kb.add(key)(handle)

    control = FormattedTextControl(lambda: ANSI(render_ansi(model.view(), console)), focusable=True, show_cursor=False)
    Application(layout=Layout(Window(control)), key_bindings=kb, full_screen=False).run()
    return model
