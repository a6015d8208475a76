# src/check_cert_chain/inspector.py

import datetime
import logging
from typing import Any, Optional

from check_cert_chain.config import DEFAULT_BACKEND, DEFAULT_PORT, DEFAULT_TIMEOUT
from check_cert_chain.decoder import decode_certificate
from check_cert_chain.errors import EmptyChain, InvalidHostname, RetrievalFailure
from check_cert_chain.hostname import sanitize_hostname, validate_port
from check_cert_chain.pem import extract_certificate_blocks
from check_cert_chain.report import ChainReport, assemble_report
from check_cert_chain.retriever import retrieve_transcript

logger = logging.getLogger(__name__)


def inspect(hostname: Any, port: Any = DEFAULT_PORT, timeout: float = DEFAULT_TIMEOUT,
            backend: str = DEFAULT_BACKEND, now: Optional[datetime.datetime] = None) -> ChainReport:
    """
    Retrieve and decode the certificate chain served at hostname:port.

    Raises InvalidHostname or InvalidPort before any network access,
    RetrievalFailure when the server could not be reached and EmptyChain when
    no certificate could be extracted or decoded. Blocks that fail to decode
    are dropped from the chain.
    """
    logger.debug(f"Sanitizing {hostname!r}")
    clean_host = sanitize_hostname(hostname)
    if clean_host is None:
        raise InvalidHostname(detail=f"Rejected hostname input: {hostname!r}")
    port = validate_port(port)

    logger.debug(f"Retrieving chain for {clean_host}:{port} via {backend}")
    transcript = retrieve_transcript(clean_host, port, timeout=timeout, backend=backend)

    logger.debug(f"Extracting certificate blocks for {clean_host}:{port}")
    blocks = extract_certificate_blocks(transcript.text)
    if not blocks:
        if transcript.failed:
            raise RetrievalFailure(detail=transcript.error)
        raise EmptyChain(detail=f"No certificate block in transcript for {clean_host}:{port}")

    logger.debug(f"Decoding certificate blocks for {clean_host}:{port}")
    records = []
    for block in blocks:
        record = decode_certificate(block, len(records))
        if record is not None:
            records.append(record)
    if not records:
        raise EmptyChain("Certificate parsing failed", detail=f"No block decoded for {clean_host}:{port}")

    logger.debug(f"Assembling report for {clean_host}:{port}")
    return assemble_report(clean_host, port, records, now=now)
