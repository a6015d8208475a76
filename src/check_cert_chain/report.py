# src/check_cert_chain/report.py

"""
Assemble decoded certificates into a ChainReport and render it as JSON-ready
dictionaries. The leaf (first decoded certificate) drives the summary.
"""

import datetime
import logging
from dataclasses import dataclass
from datetime import timezone
from typing import Any, Dict, Iterable, List, Optional

from check_cert_chain.decoder import CertificateRecord
from check_cert_chain.errors import EmptyChain

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
SECONDS_PER_DAY = 86400


@dataclass(frozen=True)
class Summary:
    expired: Optional[bool]
    days_remaining: Optional[int]
    self_signed: bool


@dataclass(frozen=True)
class ChainReport:
    hostname: str
    port: int
    chain: List[CertificateRecord]
    summary: Summary
    checked_at: datetime.datetime

    @property
    def leaf(self) -> CertificateRecord:
        return self.chain[0]


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(timezone.utc)


def calculate_days_remaining(not_after: datetime.datetime, now: datetime.datetime) -> int:
    """
    Whole days from ``now`` until ``not_after``, truncated toward zero.

    Negative once the certificate has been expired for a full day; within
    the first day after expiry this reads 0 while ``expired`` is already
    True, so callers should test ``expired`` rather than the sign.
    """
    delta = not_after - now
    return int(delta.total_seconds() / SECONDS_PER_DAY)


def summarize_leaf(leaf: CertificateRecord, now: datetime.datetime) -> Summary:
    if leaf.not_after is None:
        return Summary(expired=None, days_remaining=None, self_signed=leaf.self_signed)
    return Summary(
        expired=leaf.not_after < now,
        days_remaining=calculate_days_remaining(leaf.not_after, now),
        self_signed=leaf.self_signed,
    )


def assemble_report(hostname: str, port: int, records: Iterable[CertificateRecord],
                    now: Optional[datetime.datetime] = None) -> ChainReport:
    """Builds the report; raises EmptyChain if there is no certificate at all."""
    chain = list(records)
    if not chain:
        raise EmptyChain(detail=f"No decodable certificate for {hostname}:{port}")

    now = now or utc_now()
    summary = summarize_leaf(chain[0], now)
    logger.info(f"{hostname}:{port}: {len(chain)} certificate(s), expired={summary.expired}, "
                f"days_remaining={summary.days_remaining}, self_signed={summary.self_signed}")
    return ChainReport(hostname=hostname, port=port, chain=chain, summary=summary, checked_at=now)


# --- Rendering ---

def format_timestamp(value: Optional[datetime.datetime]) -> Optional[str]:
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT) if value else None


def epoch_seconds(value: Optional[datetime.datetime]) -> Optional[int]:
    return int(value.timestamp()) if value else None


def record_to_dict(record: CertificateRecord, now: datetime.datetime) -> Dict[str, Any]:
    days_remaining = None
    if record.not_after is not None:
        days_remaining = calculate_days_remaining(record.not_after, now)
    return {
        "index": record.index,
        "subject": record.subject,
        "commonName": record.common_name,
        "issuer": record.issuer,
        "issuerName": record.issuer_name,
        "validFrom": format_timestamp(record.not_before),
        "validTo": format_timestamp(record.not_after),
        "validFromTimestamp": epoch_seconds(record.not_before),
        "validToTimestamp": epoch_seconds(record.not_after),
        "daysRemaining": days_remaining,
        "signatureAlgorithm": record.signature_algorithm,
        "serialNumber": record.serial_number,
        "serialNumberHex": record.serial_number_hex,
        "sha256Fingerprint": record.sha256_fingerprint,
        "san": list(record.san),
        "isCa": record.is_ca,
        "selfSigned": record.self_signed,
    }


def report_to_dict(report: ChainReport) -> Dict[str, Any]:
    """Response body for a successful inspection."""
    leaf = report.leaf
    return {
        "summary": {
            "hostname": report.hostname,
            "port": report.port,
            "expired": report.summary.expired,
            "daysRemaining": report.summary.days_remaining,
            "selfSigned": report.summary.self_signed,
        },
        "general": {
            "commonName": leaf.common_name,
            "issuer": leaf.issuer,
            "validFrom": format_timestamp(leaf.not_before),
            "validTo": format_timestamp(leaf.not_after),
            "signatureAlgorithm": leaf.signature_algorithm,
        },
        "chain": [record_to_dict(record, report.checked_at) for record in report.chain],
    }
