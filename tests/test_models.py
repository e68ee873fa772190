"""Tests for data models."""

from __future__ import annotations

import pytest

from sshto.models import ConnectOptions, Defaults, Group, Server


def test_server_creation_minimal():
    """Test creating server with only name and host."""
    server = Server(name="web1", host="192.168.1.1")

    assert server.name == "web1"
    assert server.host == "192.168.1.1"
    assert server.user == ""
    assert server.port == 0  # unset
    assert server.key == ""
    assert server.group == ""


def test_server_creation_full():
    """Test creating server with all fields."""
    server = Server(name="db1", host="example.com", user="root", port=2222, key="~/.ssh/db_key", group="staging")

    assert server.user == "root"
    assert server.port == 2222
    assert server.key == "~/.ssh/db_key"
    assert server.group == "staging"


@pytest.mark.parametrize(
    ("server", "expected"),
    [
        (Server(name="s", host="192.168.1.1"), "192.168.1.1"),
        (Server(name="s", host="192.168.1.1", user="admin"), "admin@192.168.1.1"),
        (Server(name="s", host="192.168.1.1", user="admin", port=2222), "admin@192.168.1.1:2222"),
        (Server(name="s", host="192.168.1.1", port=22), "192.168.1.1"),
        (Server(name="s", host="192.168.1.1", port=0), "192.168.1.1"),
    ],
)
def test_server_description(server: Server, expected: str):
    """Test description() omits unset parts and the standard port."""
    assert server.description() == expected


def test_numeric_strings_are_coerced():
    """Test YAML numbers in string fields load as strings."""
    server = Server.model_validate({"name": 101, "host": "10.0.0.1", "user": 1000})
    assert server.name == "101"
    assert server.user == "1000"


def test_group_defaults():
    """Test group color is optional."""
    assert Group(name="production").color == ""


def test_defaults_and_options_empty():
    """Test defaults and overrides start empty."""
    assert Defaults() == Defaults(user="", port=0, key="")
    assert ConnectOptions() == ConnectOptions(user="", port=0, key="")
