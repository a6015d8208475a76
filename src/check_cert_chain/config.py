# src/check_cert_chain/config.py

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

# --- Configuration ---
DEFAULT_PORT = 443
DEFAULT_TIMEOUT = 5.0  # Seconds allowed for the whole handshake
MAX_TIMEOUT = 30.0
DEFAULT_BACKEND = "pyopenssl"
BACKENDS = ("pyopenssl", "openssl")
DEFAULT_LOGLEVEL = "WARNING"

ENV_PREFIX = "CHECK_CERT_CHAIN_"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Runtime settings handed to the CLI and the web server."""

    timeout: float = DEFAULT_TIMEOUT
    backend: str = DEFAULT_BACKEND
    loglevel: str = DEFAULT_LOGLEVEL


def clamp_timeout(value: float) -> float:
    if value <= 0:
        return DEFAULT_TIMEOUT
    return min(value, MAX_TIMEOUT)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from CHECK_CERT_CHAIN_* environment variables.

    Invalid values are logged and replaced by their defaults.
    """
    env = os.environ if environ is None else environ

    timeout = DEFAULT_TIMEOUT
    raw_timeout = env.get(f"{ENV_PREFIX}TIMEOUT")
    if raw_timeout:
        try:
            timeout = clamp_timeout(float(raw_timeout))
        except ValueError:
            logger.warning(f"Ignoring invalid {ENV_PREFIX}TIMEOUT value: {raw_timeout!r}")

    backend = env.get(f"{ENV_PREFIX}BACKEND", DEFAULT_BACKEND).strip().lower()
    if backend not in BACKENDS:
        logger.warning(f"Unknown backend {backend!r}, falling back to {DEFAULT_BACKEND}")
        backend = DEFAULT_BACKEND

    loglevel = env.get(f"{ENV_PREFIX}LOGLEVEL", DEFAULT_LOGLEVEL).strip().upper() or DEFAULT_LOGLEVEL

    return Settings(timeout=timeout, backend=backend, loglevel=loglevel)
