# src/check_cert_chain/hostname.py

"""
Validation of user supplied host and port values.

Nothing reaches the retriever unless it went through sanitize_hostname().
"""

import logging
import re
from typing import Any, Optional

from check_cert_chain.errors import InvalidPort

logger = logging.getLogger(__name__)

MAX_HOSTNAME_LENGTH = 253

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_LABEL_RE = re.compile(r"[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?")


def is_valid_hostname(hostname: str) -> bool:
    """Checks a bare host against the DNS hostname grammar."""
    if not hostname:
        return False
    # A single trailing dot marks a fully qualified name
    name = hostname[:-1] if hostname.endswith(".") else hostname
    if not name or len(name) > MAX_HOSTNAME_LENGTH:
        return False
    return all(_LABEL_RE.fullmatch(label) for label in name.split("."))


def sanitize_hostname(value: Any) -> Optional[str]:
    """
    Normalize user input to a bare hostname.

    Leading/trailing whitespace, an http(s):// scheme, any path and any
    :port suffix are removed. The remainder must be a valid hostname;
    otherwise None is returned.
    """
    if not isinstance(value, str):
        return None

    candidate = _SCHEME_RE.sub("", value.strip())
    if "://" in candidate:
        logger.debug(f"Rejected hostname input with unsupported scheme: {value!r}")
        return None
    candidate = candidate.split("/", 1)[0]
    candidate = candidate.split(":", 1)[0]

    if is_valid_hostname(candidate):
        return candidate

    logger.debug(f"Rejected hostname input: {value!r}")
    return None


def validate_port(value: Any) -> int:
    """Returns the port as an int or raises InvalidPort."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidPort(detail=f"Port is not an integer: {value!r}")
    if not 1 <= value <= 65535:
        raise InvalidPort(detail=f"Port out of range: {value}")
    return value
