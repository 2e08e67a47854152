"""Cheap local format checks run before anything is sent to the console."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

_LABEL = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")
_DURATION = re.compile(r"^\d+(ns|us|µs|ms|s|m|h)(\d+(ns|us|µs|ms|s|m|h))*$")


def is_valid_listen_addr(value: str) -> bool:
    """``:8800`` or ``host:8800``."""
    return ":" in value


def is_valid_host(value: str) -> bool:
    host = value.strip()
    if not host:
        return False
    if host == "localhost":
        return True
    if re.search(r"[/\s]", host):
        return False
    labels = host.split(".")
    if len(labels) < 2:
        return False
    return all(_LABEL.match(label) for label in labels)


def is_valid_url(value: str) -> bool:
    try:
        parts = urlsplit(value.strip())
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def is_valid_duration(value: str) -> bool:
    """Go-style duration such as ``500ms`` or ``1m30s``."""
    return bool(_DURATION.match(value.strip()))
