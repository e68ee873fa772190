from __future__ import annotations

import contextlib
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .app import App
from .errors import ProcessError, SshtoError
from .form import FormModel, run_form
from .models import ConnectOptions, Group
from .selector import filter_by_group, select_server
from .ssh import build_command
from .styles import group_tag


class OrderCommands(typer.core.TyperGroup):
    """Sort commands alphabetically in help and treat a bare server name as `connect <name>`."""

    VALUE_OPTIONS = {"--config", "-u", "--user", "-p", "--port", "-k", "--key"}

    def list_commands(self, ctx):
        return sorted(super().list_commands(ctx))

    def parse_args(self, ctx, args):
        args = list(args)
        i = 0
        while i < len(args) and args[i].startswith("-"):
            i += 2 if args[i] in self.VALUE_OPTIONS else 1
        if i < len(args) and args[i] not in self.commands:
            args.insert(i, "connect")
        return super().parse_args(ctx, args)


app = typer.Typer(
    help="sshto: SSH connection manager with an interactive menu.",
    cls=OrderCommands,
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
groups_app = typer.Typer(
    help="List and manage server groups.",
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)
app.add_typer(groups_app, name="groups")

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    logger = logging.getLogger("sshto")
    logger.handlers[:] = [RichHandler(console=err_console, show_time=False, show_path=False)]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@contextlib.contextmanager
def _errors():
    """Report sshto errors and exit non-zero. An ssh exit status is passed through as is."""
    try:
        yield
    except ProcessError as e:
        raise typer.Exit(e.returncode) from e
    except SshtoError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e


def _cancelled() -> None:
    console.print("[dim]Cancelled.[/dim]")


def _confirm(message: str) -> bool:
    try:
        return typer.confirm(message, default=False)
    except (KeyboardInterrupt, typer.Abort):
        console.print()
        return False


def _select_and_connect(ctx_app: App, group: str) -> None:
    servers = filter_by_group(ctx_app.config.servers, group)
    if not servers:
        if group and ctx_app.config.servers:
            console.print(f"[yellow]No servers in group '{escape(group)}'.[/yellow]")
        else:
            console.print("[yellow]No servers configured. Use 'sshto add' to add a server.[/yellow]")
        return

    selected = select_server(servers, ctx_app.config.groups)
    if selected is None:
        return

    console.print(f"Connecting to [bold]{escape(selected.name)}[/bold]...")
    with _errors():
        ctx_app.connect(selected.name)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    config: Path | None = typer.Option(None, "--config", envvar="SSHTO_CONFIG", help="Config file path"),
    user: str = typer.Option("", "--user", "-u", help="Override user"),
    port: int = typer.Option(0, "--port", "-p", help="Override port"),
    key: str = typer.Option("", "--key", "-k", help="Override key file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
):
    """Run without arguments to pick a server interactively, or pass a server name to connect."""
    _setup_logging(verbose)
    with _errors():
        ctx.obj = App.load(config, ConnectOptions(user=user, port=port, key=key))

    if ctx.invoked_subcommand is None:
        _select_and_connect(ctx.obj, "")


@app.command("connect", help="Connect to a server. Alias: c")
@app.command("c", hidden=True)
def connect_cmd(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Server name"),
    user: str = typer.Option("", "--user", "-u", help="Override user"),
    port: int = typer.Option(0, "--port", "-p", help="Override port"),
    key: str = typer.Option("", "--key", "-k", help="Override key file"),
):
    """Connect to a server by name."""
    ctx_app: App = ctx.obj
    with _errors():
        ctx_app.connect(name, ctx_app.options(user, port, key))


@app.command("list", help="Pick a server from an interactive list. Aliases: ls, l")
@app.command("ls", hidden=True)
@app.command("l", hidden=True)
def list_cmd(
    ctx: typer.Context,
    group: str = typer.Option("", "--group", "-g", help="Filter by group"),
):
    """Open the fuzzy-filterable server list, then connect."""
    _select_and_connect(ctx.obj, group)


@app.command("add", help="Add a new server.")
def add_server(ctx: typer.Context):
    """Add a server through the interactive form."""
    ctx_app: App = ctx.obj
    model = run_form(FormModel(None, ctx_app.config.groups))
    if not model.done:
        _cancelled()
        return

    server = model.result
    with _errors():
        ctx_app.config.add_server(server)
        ctx_app.save()

    if model.warning:
        console.print(f"[yellow]Warning:[/yellow] {escape(model.warning)}")
    console.print(f"[green]Added:[/green] {escape(server.name)}  ({escape(server.description())})")


@app.command("edit", help="Edit a server.")
def edit(ctx: typer.Context, name: str = typer.Argument(..., help="Server name")):
    """Edit a server through the interactive form."""
    ctx_app: App = ctx.obj
    with _errors():
        server = ctx_app.config.find_server(name)

    model = run_form(FormModel(server.model_copy(), ctx_app.config.groups))
    if not model.done:
        _cancelled()
        return

    edited = model.result
    with _errors():
        ctx_app.config.update_server(name, edited)
        ctx_app.save()

    if model.warning:
        console.print(f"[yellow]Warning:[/yellow] {escape(model.warning)}")
    console.print(f"[green]Saved:[/green] {escape(edited.name)}")


@app.command("remove", help="Remove a server. Aliases: rm, delete")
@app.command("rm", hidden=True)
@app.command("delete", hidden=True)
def remove(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Server name"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """Remove a server."""
    ctx_app: App = ctx.obj
    with _errors():
        server = ctx_app.config.find_server(name)

    if not force and not _confirm(f"Remove '{server.name}' ({server.description()})?"):
        _cancelled()
        return

    with _errors():
        ctx_app.config.remove_server(name)
        ctx_app.save()
    console.print("[green]Removed.[/green]")


@app.command("test", help="Check that a server accepts a non-interactive login. Alias: t")
@app.command("t", hidden=True)
def probe_server(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Server name"),
    user: str = typer.Option("", "--user", "-u", help="Override user"),
    port: int = typer.Option(0, "--port", "-p", help="Override port"),
    key: str = typer.Option("", "--key", "-k", help="Override key file"),
):
    """Run ssh in batch mode with a short connect timeout."""
    ctx_app: App = ctx.obj
    console.print(f"Testing [bold]{escape(name)}[/bold]...")
    with _errors():
        server = ctx_app.test(name, ctx_app.options(user, port, key))
    console.print(f"[green]OK[/green] [dim]{escape(build_command(server))}[/dim]")


@app.command("config", help="Show config file path.")
def config_path(ctx: typer.Context):
    """Print the resolved config file path."""
    typer.echo(ctx.obj.config.path)


def _print_groups(ctx_app: App) -> None:
    groups = ctx_app.config.groups
    if not groups:
        console.print("[yellow]No groups configured. Use 'sshto groups add' to create one.[/yellow]")
        return

    table = Table(title="Groups")
    table.add_column("Group")
    table.add_column("Color", style="dim")
    table.add_column("Servers", justify="right")
    for g in groups:
        table.add_row(group_tag(g.name, g.color), g.color or "-", str(len(ctx_app.config.servers_by_group(g.name))))
    console.print(table)


@groups_app.callback(invoke_without_command=True)
def groups_main(ctx: typer.Context):
    """List all groups when no subcommand is given."""
    if ctx.invoked_subcommand is None:
        _print_groups(ctx.obj)


@groups_app.command("list", help="List groups with their server counts.")
def groups_list(ctx: typer.Context):
    _print_groups(ctx.obj)


@groups_app.command(
    "add",
    help="Add a group. Colors: red, green, yellow, blue, magenta, cyan, white, gray.",
)
def groups_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Group name"),
    color: str = typer.Argument("", help="Group color"),
):
    ctx_app: App = ctx.obj
    with _errors():
        ctx_app.config.add_group(Group(name=name, color=color))
        ctx_app.save()
    console.print(f"[green]Group added:[/green] {escape(name)}")


@groups_app.command("remove", help="Remove a group. Servers in it are kept. Alias: rm")
@groups_app.command("rm", hidden=True)
def groups_remove(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Group name"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    ctx_app: App = ctx.obj
    with _errors():
        ctx_app.config.find_group(name)

    members = ctx_app.config.servers_by_group(name)
    if members and not force:
        console.print(f"[yellow]Warning:[/yellow] {len(members)} server(s) belong to this group.")
        if not _confirm(f"Remove group '{name}'?"):
            _cancelled()
            return

    with _errors():
        ctx_app.config.remove_group(name)
        ctx_app.save()
    console.print(f"[green]Group removed:[/green] {escape(name)}")


def main():
    app()


if __name__ == "__main__":
    main()
