from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class _Entry(BaseModel):
    """Config file entry. Empty YAML scalars (`user:`) load as the field default."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class Server(_Entry):
    """SSH server profile."""

    name: str
    host: str
    user: str = ""
    port: int = 0
    key: str = ""
    group: str = ""

    def description(self) -> str:
        """Return `user@host:port`, omitting unset parts and the standard port."""
        desc = self.host
        if self.user:
            desc = f"{self.user}@{desc}"
        if self.port and self.port != 22:
            desc = f"{desc}:{self.port}"
        return desc


class Group(_Entry):
    """Named, colored tag for organizing servers."""

    name: str
    color: str = ""


class Defaults(_Entry):
    """Fallback values applied when a server leaves a field unset."""

    user: str = ""
    port: int = 0
    key: str = ""


class ConnectOptions(BaseModel):
    """Per-invocation overrides. Empty/zero means no override."""

    user: str = ""
    port: int = 0
    key: str = ""
