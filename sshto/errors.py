from __future__ import annotations


class SshtoError(Exception):
    """Base class for errors reported by the command layer."""


class NotFoundError(SshtoError):
    """Server or group lookup miss."""


class AlreadyExistsError(SshtoError):
    """Duplicate server or group name."""


class ValidationError(SshtoError):
    """Invalid name, host or port."""


class ParseError(SshtoError):
    """Config file exists but could not be parsed."""


class ConfigIOError(SshtoError):
    """Filesystem read/write failure."""


class ConnectionTestFailed(SshtoError):
    def __init__(self, output: str):
        super().__init__(f"connection test failed: {output}")
        self.output = output


class ProcessError(SshtoError):
    """SSH session exited with a non-zero status."""

    def __init__(self, returncode: int):
        super().__init__(f"ssh exited with status {returncode}")
        self.returncode = returncode
