from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import pydantic
import yaml
from platformdirs import user_config_dir
from pydantic import BaseModel, Field, PrivateAttr

from .errors import AlreadyExistsError, ConfigIOError, NotFoundError, ParseError
from .models import Defaults, Group, Server

APP_NAME = "sshto"
CONFIG_FILE = "config.yaml"

log = logging.getLogger(__name__)


def default_config_path() -> Path:
    return Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILE


class Config(BaseModel):
    """Servers, groups and defaults backed by a single YAML file."""

    groups: list[Group] = Field(default_factory=list)
    servers: list[Server] = Field(default_factory=list)
    defaults: Defaults = Field(default_factory=Defaults)

    _path: Path | None = PrivateAttr(default=None)

    @classmethod
    def load(cls, path: Path | str | None = None) -> Config:
        """Load config from disk. A missing file yields an empty config with port 22 defaults."""
        path = Path(path) if path else default_config_path()

        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            log.debug("Config %s not found, starting empty", path)
            cfg = cls(defaults=Defaults(port=22))
            cfg._path = path
            return cfg
        except OSError as e:
            raise ConfigIOError(f"reading config: {e}") from e

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ParseError(f"parsing config: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ParseError(f"parsing config: expected a mapping, got {type(data).__name__}")

        try:
            cfg = cls.model_validate({k: v for k, v in data.items() if v is not None})
        except pydantic.ValidationError as e:
            raise ParseError(f"parsing config: {e}") from e

        cfg._path = path
        log.debug("Loaded %d server(s) and %d group(s) from %s", len(cfg.servers), len(cfg.groups), path)
        return cfg

    @property
    def path(self) -> Path:
        return self._path or default_config_path()

    def to_document(self) -> dict:
        """Serializable form: empty optional fields and sections are omitted."""
        doc: dict = {}
        if self.groups:
            doc["groups"] = [g.model_dump(exclude_defaults=True) for g in self.groups]
        doc["servers"] = [s.model_dump(exclude_defaults=True) for s in self.servers]
        defaults = self.defaults.model_dump(exclude_defaults=True)
        if defaults:
            doc["defaults"] = defaults
        return doc

    def save(self) -> None:
        """Write config to disk, replacing the previous file in one step."""
        cfg_dir = self.path.parent
        try:
            cfg_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigIOError(f"creating config directory: {e}") from e

        data = yaml.safe_dump(self.to_document(), sort_keys=False, allow_unicode=True, default_flow_style=False)

        tmp_path = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=str(cfg_dir), prefix=".config_", suffix=".tmp")
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
            tmp_path.chmod(0o644)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            raise ConfigIOError(f"writing config: {e}") from e
        finally:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)

        log.debug("Saved %d server(s) to %s", len(self.servers), self.path)

    def find_server(self, name: str) -> Server:
        for s in self.servers:
            if s.name == name:
                return s
        raise NotFoundError(f"server {name!r} not found")

    def add_server(self, server: Server) -> None:
        if any(s.name == server.name for s in self.servers):
            raise AlreadyExistsError(f"server {server.name!r} already exists")
        self.servers.append(server)

    def update_server(self, name: str, server: Server) -> None:
        """Replace the server called `name` in place. Renaming is allowed."""
        for i, s in enumerate(self.servers):
            if s.name == name:
                if server.name != name and any(other.name == server.name for other in self.servers):
                    raise AlreadyExistsError(f"server {server.name!r} already exists")
                self.servers[i] = server
                return
        raise NotFoundError(f"server {name!r} not found")

    def remove_server(self, name: str) -> None:
        for i, s in enumerate(self.servers):
            if s.name == name:
                del self.servers[i]
                return
        raise NotFoundError(f"server {name!r} not found")

    def find_group(self, name: str) -> Group:
        for g in self.groups:
            if g.name == name:
                return g
        raise NotFoundError(f"group {name!r} not found")

    def add_group(self, group: Group) -> None:
        if any(g.name == group.name for g in self.groups):
            raise AlreadyExistsError(f"group {group.name!r} already exists")
        self.groups.append(group)

    def remove_group(self, name: str) -> None:
        """Remove a group. Servers referencing it keep their `group` value."""
        for i, g in enumerate(self.groups):
            if g.name == name:
                del self.groups[i]
                return
        raise NotFoundError(f"group {name!r} not found")

    def servers_by_group(self, group: str) -> list[Server]:
        return [s for s in self.servers if s.group == group]
