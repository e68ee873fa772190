from __future__ import annotations

import logging
import platform
import shutil
import subprocess

from rich.console import Console
from rich.markup import escape

from .errors import ConnectionTestFailed
from .models import ConnectOptions, Defaults, Server
from .validation import expand_path

SSH_BINARY = "ssh"
DEFAULT_PORT = 22
TEST_OPTIONS = ["-o", "ConnectTimeout=5", "-o", "BatchMode=yes", "exit"]

console = Console()
log = logging.getLogger(__name__)


def has_ssh() -> bool:
    """Check if SSH client is available."""
    return shutil.which(SSH_BINARY) is not None


def resolve(server: Server, defaults: Defaults, overrides: ConnectOptions | None = None) -> Server:
    """
    Merge a server with global defaults, then apply per-call overrides.
    Precedence per field: overrides > server > defaults > 22 (port only).
    """
    user = server.user or defaults.user
    port = server.port or defaults.port or DEFAULT_PORT
    key = server.key or defaults.key

    if overrides is not None:
        user = overrides.user or user
        port = overrides.port or port
        key = overrides.key or key

    return server.model_copy(update={"user": user, "port": port, "key": key})


def build_args(server: Server) -> list[str]:
    """Build ssh arguments. Order matters: key, port, destination."""
    args: list[str] = []
    if server.key:
        args += ["-i", expand_path(server.key)]
    if server.port and server.port != DEFAULT_PORT:
        args += ["-p", str(server.port)]
    args.append(f"{server.user}@{server.host}" if server.user else server.host)
    return args


def build_command(server: Server) -> str:
    """Return the ssh command line for display. Never executed through a shell."""
    return " ".join([SSH_BINARY, *build_args(server)])


def _print_install_hint() -> None:
    system = platform.system()
    if system == "Windows":
        console.print(
            "Install OpenSSH Client:\n"
            "  • Via Windows Features: Settings → Apps → Optional Features → OpenSSH Client\n"
            "  • Via winget: [cyan]winget install --id Microsoft.OpenSSH.Client -e[/cyan]"
        )
    elif system == "Darwin":
        console.print("SSH client should be installed by default on macOS.\nTry: [cyan]brew install openssh[/cyan]")
    else:  # Linux and others
        console.print(
            "Install SSH client via package manager:\n"
            "  • Ubuntu/Debian: [cyan]sudo apt install openssh-client[/cyan]\n"
            "  • Fedora/RHEL: [cyan]sudo dnf install openssh-clients[/cyan]\n"
            "  • Arch: [cyan]sudo pacman -S openssh[/cyan]"
        )


def connect(server: Server) -> int:
    """Run an interactive ssh session attached to the terminal. Returns exit code."""
    if not has_ssh():
        console.print("[red]SSH client not found.[/red]")
        _print_install_hint()
        return 127

    cmd = [SSH_BINARY, *build_args(server)]
    console.print(f"[cyan]SSH: {escape(build_command(server))}[/cyan]")
    log.debug("Executing %s", cmd)
    try:
        return subprocess.call(cmd)  # noqa: S603
    except KeyboardInterrupt:
        return 130


def test_connection(server: Server) -> None:
    """Probe a server non-interactively. Raises ConnectionTestFailed with ssh's output."""
    cmd = [SSH_BINARY, *build_args(server), *TEST_OPTIONS]
    log.debug("Testing %s", cmd)
    try:
        result = subprocess.run(  # noqa: S603
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            check=False,
        )
    except OSError as e:
        raise ConnectionTestFailed(str(e)) from e

    if result.returncode != 0:
        raise ConnectionTestFailed(result.stdout)

