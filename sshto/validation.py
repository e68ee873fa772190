from __future__ import annotations

import ipaddress
import re
import stat
from pathlib import Path

from .errors import ConfigIOError, ValidationError
from .models import Server

# RFC 1123 hostname: dot-separated labels, alphanumeric with internal hyphens
HOSTNAME_RE = re.compile(
    r"^([a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)*[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?$"
)

MAX_NAME_LENGTH = 64
MAX_HOSTNAME_LENGTH = 253
MAX_LABEL_LENGTH = 63


def validate_host(host: str) -> None:
    """Accept an IPv4/IPv6 literal or an RFC 1123 hostname."""
    if not host:
        raise ValidationError("host is required")

    # scoped IPv6 ("fe80::1%eth0") is not a plain address literal
    if "%" not in host:
        try:
            ipaddress.ip_address(host)
            return
        except ValueError:
            pass

    if len(host) > MAX_HOSTNAME_LENGTH:
        raise ValidationError(f"hostname too long (max {MAX_HOSTNAME_LENGTH} characters)")

    if not HOSTNAME_RE.match(host):
        raise ValidationError("invalid hostname format")

    for label in host.split("."):
        if len(label) > MAX_LABEL_LENGTH:
            raise ValidationError(f"hostname label too long (max {MAX_LABEL_LENGTH} characters)")


def validate_port(port: int) -> None:
    """Port 0 is valid and means "use the default"."""
    if port < 0 or port > 65535:
        raise ValidationError("port must be between 0 and 65535")


def validate_name(name: str) -> None:
    if not name:
        raise ValidationError("name is required")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"name too long (max {MAX_NAME_LENGTH} characters)")


def validate_server(server: Server) -> None:
    """Check name, host and port. The key file is not checked here."""
    validate_name(server.name)
    validate_host(server.host)
    validate_port(server.port)


def validate_key_file(path: str) -> str | None:
    """
    Check that a key file is usable.
    Returns a warning message for soft problems (missing, unreadable),
    raises for a directory or an inaccessible path.
    """
    if not path:
        return None

    expanded = Path(expand_path(path))
    try:
        info = expanded.stat()
    except FileNotFoundError:
        return f"key file does not exist: {path}"
    except OSError as e:
        raise ConfigIOError(f"cannot access key file: {e}") from e

    if stat.S_ISDIR(info.st_mode):
        raise ValidationError(f"key file is a directory: {path}")

    if not info.st_mode & stat.S_IRUSR:
        return f"key file may not be readable: {path}"

    return None


def expand_path(path: str) -> str:
    """Expand a leading `~/` to the home directory. Anything else is returned as is."""
    if path.startswith("~/"):
        return str(Path.home()) + path[1:]
    return path
