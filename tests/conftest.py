"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner


@pytest.fixture
def runner() -> CliRunner:
    """Provide Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the default config path at a temporary file (not created)."""
    cfg_file = tmp_path / "config" / "config.yaml"
    monkeypatch.setattr("sshto.storage.default_config_path", lambda: cfg_file)
    monkeypatch.delenv("SSHTO_CONFIG", raising=False)
    return cfg_file


@pytest.fixture
def temp_ssh_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create temporary home with an .ssh directory."""
    ssh_dir = tmp_path / ".ssh"
    ssh_dir.mkdir(parents=True, exist_ok=True)

    # Patch Path.home() to use temp directory
    def mock_home() -> Path:
        return tmp_path

    monkeypatch.setattr(Path, "home", mock_home)
    return ssh_dir


@pytest.fixture
def sample_config_data() -> dict:
    """Provide sample config document for tests."""
    return {
        "groups": [
            {"name": "production", "color": "red"},
            {"name": "staging", "color": "yellow"},
        ],
        "servers": [
            {"name": "web1", "host": "192.168.1.10", "user": "admin", "group": "production"},
            {"name": "db1", "host": "192.168.1.20", "user": "root", "port": 2222, "key": "~/.ssh/db_key", "group": "staging"},
            {"name": "bastion", "host": "example.com"},
        ],
        "defaults": {"user": "deploy", "port": 22},
    }


@pytest.fixture
def config_file(temp_config: Path, sample_config_data: dict) -> Path:
    """Create config.yaml with sample data at the default location."""
    temp_config.parent.mkdir(parents=True, exist_ok=True)
    temp_config.write_text(yaml.safe_dump(sample_config_data, sort_keys=False), encoding="utf-8")
    return temp_config


@pytest.fixture
def ssh_calls(monkeypatch: pytest.MonkeyPatch) -> list[list[str]]:
    """Record ssh invocations instead of running them."""
    calls: list[list[str]] = []

    def fake_call(cmd):
        calls.append(cmd)
        return 0

    monkeypatch.setattr("sshto.ssh.has_ssh", lambda: True)
    monkeypatch.setattr("sshto.ssh.subprocess.call", fake_call)
    return calls
