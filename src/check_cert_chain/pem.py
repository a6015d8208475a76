# src/check_cert_chain/pem.py

import logging
from dataclasses import dataclass
from typing import Iterator

logger = logging.getLogger(__name__)

BEGIN_MARKER = "-----BEGIN CERTIFICATE-----"
END_MARKER = "-----END CERTIFICATE-----"


@dataclass(frozen=True)
class CertificateBlock:
    """One BEGIN/END delimited certificate, markers included."""

    position: int
    text: str


class CertificateBlocks:
    """
    Lazy, restartable view over the certificate blocks of a transcript.

    Every iteration scans the transcript again from the start, so the
    sequence can be consumed more than once.
    """

    def __init__(self, transcript: str):
        self._transcript = transcript or ""

    def __iter__(self) -> Iterator[CertificateBlock]:
        current = None
        position = 0
        for line in self._transcript.splitlines():
            if BEGIN_MARKER in line:
                if current is not None:
                    logger.debug("Discarding certificate block without an END marker")
                current = [line]
            elif current is not None:
                current.append(line)
                if END_MARKER in line:
                    yield CertificateBlock(position, "\n".join(current) + "\n")
                    position += 1
                    current = None
        if current is not None:
            logger.debug("Discarding unterminated certificate block at end of transcript")

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __bool__(self) -> bool:
        return next(iter(self), None) is not None


def extract_certificate_blocks(transcript: str) -> CertificateBlocks:
    """Splits a handshake transcript into its PEM certificate blocks, in order."""
    return CertificateBlocks(transcript)
