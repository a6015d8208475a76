# src/check_cert_chain/retriever.py

"""
Capture the certificate chain a TLS server presents during the handshake.

Both backends return a RawTranscript in the layout of
``openssl s_client -showcerts``: diagnostic lines interleaved with one PEM
block per certificate, leaf first. Network problems never raise; the
transcript carries whatever was captured plus an ``error`` description.
Peer verification is always disabled, since expired, self-signed and
mismatched chains are exactly what callers want to look at.
"""

import logging
import select
import socket
import subprocess
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from OpenSSL import SSL, crypto

from check_cert_chain.config import DEFAULT_BACKEND, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

OPENSSL_BINARY = "openssl"


@dataclass(frozen=True)
class RawTranscript:
    """Untrusted handshake output; ``error`` is set when retrieval stopped early."""

    text: str = ""
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class _HandshakeTimeout(Exception):
    pass


def _format_name(name: crypto.X509Name) -> str:
    """Renders an X509Name the way s_client prints it (``CN = x, O = y``)."""
    parts = []
    for key, value in name.get_components():
        parts.append(f"{key.decode('ascii', 'replace')} = {value.decode('utf-8', 'replace')}")
    return ", ".join(parts)


def _wait_for_socket(sock: socket.socket, deadline: float, want_write: bool = False) -> None:
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise _HandshakeTimeout()
    if want_write:
        _, ready, _ = select.select([], [sock], [], remaining)
    else:
        ready, _, _ = select.select([sock], [], [], remaining)
    if not ready:
        raise _HandshakeTimeout()


def _render_chain(lines: List[str], chain: List[crypto.X509]) -> None:
    lines.append("---")
    lines.append("Certificate chain")
    for index, cert in enumerate(chain):
        lines.append(f" {index} s:{_format_name(cert.get_subject())}")
        lines.append(f"   i:{_format_name(cert.get_issuer())}")
        pem = crypto.dump_certificate(crypto.FILETYPE_PEM, cert).decode("ascii")
        lines.extend(pem.strip().splitlines())
    lines.append("---")


def _connect(hostname: str, port: int, deadline: float) -> socket.socket:
    """
    Resolves ``hostname`` and connects to the first address that answers.

    getaddrinfo itself cannot be interrupted, so a slow resolver is only
    noticed once it returns; every connect attempt after it gets just the
    time left before ``deadline``.
    """
    addresses = socket.getaddrinfo(hostname, port, type=socket.SOCK_STREAM)
    last_error = None
    for _, _, _, _, sockaddr in addresses:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise socket.timeout("timed out")
        try:
            return socket.create_connection(sockaddr[:2], timeout=remaining)
        except OSError as e:
            last_error = e
    raise last_error or OSError(f"No address found for {hostname}")


def fetch_pyopenssl_transcript(hostname: str, port: int, timeout: float = DEFAULT_TIMEOUT) -> RawTranscript:
    """
    Performs a TLS handshake with pyOpenSSL and renders the peer chain.

    The whole exchange (resolve, connect and handshake) is bounded by
    ``timeout``; see _connect for the one limit on name resolution.
    """
    deadline = time.monotonic() + timeout
    lines = []
    error = None

    logger.debug(f"Connecting to {hostname}:{port} (timeout {timeout}s)...")
    try:
        sock = _connect(hostname, port, deadline)
    except socket.timeout:
        logger.warning(f"Connection to {hostname}:{port} timed out.")
        return RawTranscript("", f"Connection to {hostname}:{port} timed out")
    except socket.gaierror as e:
        logger.warning(f"Could not resolve {hostname}: {e}")
        return RawTranscript("", f"Could not resolve {hostname}")
    except ConnectionRefusedError:
        logger.warning(f"Connection refused by {hostname}:{port}.")
        return RawTranscript("", f"Connection refused by {hostname}:{port}")
    except OSError as e:
        logger.warning(f"Network error connecting to {hostname}:{port}: {e}")
        return RawTranscript("", f"Network error connecting to {hostname}:{port}: {e}")

    lines.append(f"CONNECTED({hostname}:{port})")

    context = SSL.Context(SSL.TLS_METHOD)
    context.set_verify(SSL.VERIFY_NONE, lambda *args: True)
    conn = SSL.Connection(context, sock)
    try:
        conn.set_tlsext_host_name(hostname.rstrip(".").encode("ascii"))
        conn.set_connect_state()
        while True:
            try:
                conn.do_handshake()
                break
            except SSL.WantReadError:
                _wait_for_socket(sock, deadline)
            except SSL.WantWriteError:
                _wait_for_socket(sock, deadline, want_write=True)
    except _HandshakeTimeout:
        error = f"TLS handshake with {hostname}:{port} timed out"
        logger.warning(error)
    except SSL.Error as e:
        # The server may abort after sending its certificates (e.g. when it
        # requires a client certificate); whatever arrived is still kept.
        error = f"TLS handshake with {hostname}:{port} failed"
        logger.warning(f"{error}: {e}")
    except OSError as e:
        error = f"Network error during TLS handshake with {hostname}:{port}"
        logger.warning(f"{error}: {e}")

    try:
        chain = conn.get_peer_cert_chain() or []
        if chain:
            _render_chain(lines, chain)
        else:
            lines.append("no peer certificate available")
        if error is None:
            lines.append("New, " + (conn.get_protocol_version_name() or "unknown") +
                         ", Cipher is " + (conn.get_cipher_name() or "unknown"))
        else:
            lines.append(error)
        logger.info(f"Captured {len(chain)} certificate(s) from {hostname}:{port}")
    finally:
        try:
            conn.shutdown()
        except (SSL.Error, OSError):
            pass
        sock.close()

    return RawTranscript("\n".join(lines) + "\n", error)


def fetch_openssl_transcript(hostname: str, port: int, timeout: float = DEFAULT_TIMEOUT,
                             openssl_binary: str = OPENSSL_BINARY) -> RawTranscript:
    """
    Runs ``openssl s_client -showcerts`` and returns its combined output.

    The command is passed as an argument vector, never through a shell, and
    stdin is closed so s_client exits right after the handshake.
    """
    command = [
        openssl_binary, "s_client",
        "-connect", f"{hostname}:{port}",
        "-servername", hostname,
        "-showcerts",
    ]
    logger.debug(f"Running {' '.join(command)}")
    try:
        completed = subprocess.run(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        logger.warning(f"openssl s_client for {hostname}:{port} timed out after {timeout}s")
        partial = (e.output or b"").decode("utf-8", "replace")
        return RawTranscript(partial, f"TLS handshake with {hostname}:{port} timed out")
    except OSError as e:
        logger.error(f"Could not run {openssl_binary}: {e}")
        return RawTranscript("", f"Could not run {openssl_binary}")

    text = completed.stdout.decode("utf-8", "replace")
    error = None
    if completed.returncode != 0:
        error = f"openssl s_client exited with status {completed.returncode}"
        logger.warning(f"{error} for {hostname}:{port}")
    return RawTranscript(text, error)


BACKEND_FETCHERS: Dict[str, Callable[..., RawTranscript]] = {
    "pyopenssl": fetch_pyopenssl_transcript,
    "openssl": fetch_openssl_transcript,
}


def retrieve_transcript(hostname: str, port: int, timeout: float = DEFAULT_TIMEOUT,
                        backend: str = DEFAULT_BACKEND) -> RawTranscript:
    """Fetches the raw chain transcript for a sanitized hostname."""
    try:
        fetcher = BACKEND_FETCHERS[backend]
    except KeyError:
        raise ValueError(f"Unknown retrieval backend: {backend}") from None
    return fetcher(hostname, port, timeout)
