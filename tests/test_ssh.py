"""Tests for ssh module."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest
from rich.console import Console

from sshto import ssh
from sshto.errors import ConnectionTestFailed
from sshto.models import ConnectOptions, Defaults, Server


@pytest.mark.parametrize(
    ("server", "defaults", "expected"),
    [
        # server values win over defaults
        (
            Server(name="s", host="h", user="admin", port=2222, key="~/k"),
            Defaults(user="deploy", port=2200, key="~/d"),
            ("admin", 2222, "~/k"),
        ),
        # unset server fields fall back to defaults
        (Server(name="s", host="h"), Defaults(user="deploy", port=2200, key="~/d"), ("deploy", 2200, "~/d")),
        # port falls back to 22 when neither sets it
        (Server(name="s", host="h"), Defaults(), ("", 22, "")),
    ],
)
def test_resolve_defaults(server: Server, defaults: Defaults, expected: tuple):
    resolved = ssh.resolve(server, defaults)
    assert (resolved.user, resolved.port, resolved.key) == expected


def test_resolve_overrides_win():
    server = Server(name="s", host="h", user="admin", port=2222, key="~/k")
    resolved = ssh.resolve(server, Defaults(user="deploy"), ConnectOptions(user="root", port=2022, key="~/o"))

    assert (resolved.user, resolved.port, resolved.key) == ("root", 2022, "~/o")


def test_resolve_empty_override_keeps_server_values():
    """Test an empty override does not revert explicit server values to defaults."""
    server = Server(name="s", host="h", user="admin", port=2222)
    resolved = ssh.resolve(server, Defaults(user="deploy", port=22), ConnectOptions())

    assert resolved.user == "admin"
    assert resolved.port == 2222


def test_resolve_partial_override():
    server = Server(name="s", host="h")
    resolved = ssh.resolve(server, Defaults(user="deploy", port=2200), ConnectOptions(port=2022))

    assert resolved.user == "deploy"
    assert resolved.port == 2022


def test_resolve_idempotent():
    server = Server(name="s", host="h", key="~/k")
    defaults = Defaults(user="deploy", port=2200)

    once = ssh.resolve(server, defaults, ConnectOptions())
    twice = ssh.resolve(once, defaults, ConnectOptions())
    assert once == twice


def test_resolve_does_not_mutate():
    server = Server(name="s", host="h")
    ssh.resolve(server, Defaults(user="deploy", port=2200), ConnectOptions(key="~/o"))

    assert server == Server(name="s", host="h")


def test_build_args_full(temp_ssh_dir: Path):
    home = temp_ssh_dir.parent
    server = Server(name="s", host="192.168.1.1", user="admin", port=2222, key="~/.ssh/mykey")

    assert ssh.build_args(server) == ["-i", f"{home}/.ssh/mykey", "-p", "2222", "admin@192.168.1.1"]
    assert ssh.build_command(server) == f"ssh -i {home}/.ssh/mykey -p 2222 admin@192.168.1.1"


@pytest.mark.parametrize(
    ("server", "expected"),
    [
        (Server(name="s", host="192.168.1.1", port=22), ["192.168.1.1"]),
        (Server(name="s", host="192.168.1.1", port=0), ["192.168.1.1"]),
        (Server(name="s", host="example.com", user="root"), ["root@example.com"]),
        (Server(name="s", host="example.com", port=2200), ["-p", "2200", "example.com"]),
        (Server(name="s", host="example.com", key="/keys/id"), ["-i", "/keys/id", "example.com"]),
    ],
)
def test_build_args(server: Server, expected: list[str]):
    assert ssh.build_args(server) == expected


def test_connect_runs_ssh(ssh_calls: list[list[str]]):
    rc = ssh.connect(Server(name="s", host="example.com", user="root", port=2200))

    assert rc == 0
    assert ssh_calls == [["ssh", "-p", "2200", "root@example.com"]]


def test_connect_echoes_bracketed_key(monkeypatch: pytest.MonkeyPatch, ssh_calls: list[list[str]]):
    """Test a key path with square brackets is shown literally."""
    out = Console(record=True, width=200)
    monkeypatch.setattr("sshto.ssh.console", out)

    rc = ssh.connect(Server(name="s", host="h", key="/keys/[/prod]/[bold]/id"))

    assert rc == 0
    assert "SSH: ssh -i /keys/[/prod]/[bold]/id h" in out.export_text()
    assert ssh_calls == [["ssh", "-i", "/keys/[/prod]/[bold]/id", "h"]]


def test_connect_returns_ssh_exit_code(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr("sshto.ssh.has_ssh", lambda: True)
    monkeypatch.setattr("sshto.ssh.subprocess.call", lambda cmd: 255)

    assert ssh.connect(Server(name="s", host="example.com")) == 255


def test_connect_without_client(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr("sshto.ssh.has_ssh", lambda: False)

    assert ssh.connect(Server(name="s", host="example.com")) == 127


def test_probe_success(monkeypatch: pytest.MonkeyPatch):
    seen = {}

    def fake_run(cmd, **kwargs):
        seen["cmd"] = cmd
        return subprocess.CompletedProcess(cmd, 0, stdout="")

    monkeypatch.setattr("sshto.ssh.subprocess.run", fake_run)
    ssh.test_connection(Server(name="s", host="example.com", user="root"))

    assert seen["cmd"] == [
        "ssh",
        "root@example.com",
        "-o",
        "ConnectTimeout=5",
        "-o",
        "BatchMode=yes",
        "exit",
    ]


def test_probe_failure_carries_output(monkeypatch: pytest.MonkeyPatch):
    output = "root@example.com: Permission denied (publickey).\n"
    monkeypatch.setattr(
        "sshto.ssh.subprocess.run",
        lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 255, stdout=output),
    )

    with pytest.raises(ConnectionTestFailed) as exc_info:
        ssh.test_connection(Server(name="s", host="example.com", user="root"))
    assert exc_info.value.output == output


def test_probe_missing_binary(monkeypatch: pytest.MonkeyPatch):
    def fake_run(cmd, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", "ssh")

    monkeypatch.setattr("sshto.ssh.subprocess.run", fake_run)

    with pytest.raises(ConnectionTestFailed):
        ssh.test_connection(Server(name="s", host="example.com"))
