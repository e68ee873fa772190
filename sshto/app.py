from __future__ import annotations

from pathlib import Path

from . import ssh
from .errors import ProcessError
from .models import ConnectOptions, Server
from .storage import Config


class App:
    """Per-invocation state shared by the commands: loaded config and root-level overrides."""

    def __init__(self, config: Config, overrides: ConnectOptions | None = None):
        self.config = config
        self.overrides = overrides or ConnectOptions()

    @classmethod
    def load(cls, path: Path | str | None = None, overrides: ConnectOptions | None = None) -> App:
        return cls(Config.load(path), overrides)

    def options(self, user: str = "", port: int = 0, key: str = "") -> ConnectOptions:
        """Command-level flags win over the root-level ones."""
        return ConnectOptions(
            user=user or self.overrides.user,
            port=port or self.overrides.port,
            key=key or self.overrides.key,
        )

    def resolve(self, name: str, opts: ConnectOptions | None = None) -> Server:
        server = self.config.find_server(name)
        return ssh.resolve(server, self.config.defaults, opts or self.overrides)

    def connect(self, name: str, opts: ConnectOptions | None = None) -> None:
        """Open an interactive session. A non-zero ssh exit raises ProcessError."""
        rc = ssh.connect(self.resolve(name, opts))
        if rc != 0:
            raise ProcessError(rc)

    def test(self, name: str, opts: ConnectOptions | None = None) -> Server:
        server = self.resolve(name, opts)
        ssh.test_connection(server)
        return server

    def save(self) -> None:
        self.config.save()
