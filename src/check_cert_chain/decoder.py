# src/check_cert_chain/decoder.py

"""
Decode PEM certificate blocks into CertificateRecord objects.

A block that is not a structurally valid certificate decodes to None; the
caller drops it from the chain and carries on with the next block.
"""

import datetime
import logging
from dataclasses import dataclass, field
from datetime import timezone
from typing import List, Optional

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.x509.oid import ExtensionOID, NameOID

from check_cert_chain.pem import CertificateBlock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CertificateRecord:
    index: int
    subject: Optional[str]
    common_name: Optional[str]
    issuer: Optional[str]
    not_before: Optional[datetime.datetime]
    not_after: Optional[datetime.datetime]
    signature_algorithm: Optional[str]
    serial_number: Optional[str]
    self_signed: bool
    issuer_name: Optional[str] = None
    serial_number_hex: Optional[str] = None
    sha256_fingerprint: Optional[str] = None
    san: List[str] = field(default_factory=list)
    is_ca: bool = False


def get_common_name(name: x509.Name) -> Optional[str]:
    """Extracts the Common Name (CN) from a subject or issuer name."""
    try:
        cn_list = name.get_attributes_for_oid(NameOID.COMMON_NAME)
    except ValueError as e:
        logger.warning(f"Could not extract Common Name: {e}")
        return None
    if not cn_list:
        return None
    value = cn_list[0].value
    return value if isinstance(value, str) else value.decode("utf-8", "replace")


def is_self_signed(common_name: Optional[str], issuer_common_name: Optional[str]) -> bool:
    """True when both CNs are present, non-empty and equal."""
    return bool(common_name) and bool(issuer_common_name) and common_name == issuer_common_name


def get_signature_algorithm(cert: x509.Certificate) -> Optional[str]:
    """Short OID name of the signature algorithm, or its dotted form."""
    try:
        oid = cert.signature_algorithm_oid
    except ValueError as e:
        logger.warning(f"Could not determine signature algorithm: {e}")
        return None
    name = getattr(oid, "_name", None)
    if not name or name == "Unknown OID":
        return oid.dotted_string
    return name


def _as_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _validity(cert: x509.Certificate):
    try:
        return _as_utc(cert.not_valid_before_utc), _as_utc(cert.not_valid_after_utc)
    except ValueError as e:
        logger.warning(f"Could not parse certificate validity: {e}")
        return None, None


def _extract_san(extensions: x509.Extensions) -> List[str]:
    try:
        ext = extensions.get_extension_for_oid(ExtensionOID.SUBJECT_ALTERNATIVE_NAME)
    except x509.ExtensionNotFound:
        return []
    return ext.value.get_values_for_type(x509.DNSName)


def _is_ca(extensions: x509.Extensions) -> bool:
    try:
        return extensions.get_extension_for_oid(ExtensionOID.BASIC_CONSTRAINTS).value.ca
    except x509.ExtensionNotFound:
        return False


def decode_certificate(block: CertificateBlock, index: int) -> Optional[CertificateRecord]:
    """Parses one PEM block; returns None if it is not a valid certificate."""
    try:
        cert = x509.load_pem_x509_certificate(block.text.encode("ascii", "replace"))
    except ValueError as e:
        logger.warning(f"Skipping certificate block #{block.position}: {e}")
        return None

    try:
        subject_name, issuer = cert.subject, cert.issuer
    except ValueError as e:
        logger.warning(f"Skipping certificate block #{block.position}, unreadable names: {e}")
        return None

    try:
        subject = subject_name.rfc4514_string()
        issuer_name = issuer.rfc4514_string()
    except ValueError as e:
        logger.warning(f"Could not render names of certificate block #{block.position}: {e}")
        subject = issuer_name = None

    # Extensions are parsed lazily; duplicates or malformed entries only
    # surface here and make the whole block undecodable.
    try:
        extensions = cert.extensions
        san, is_ca = _extract_san(extensions), _is_ca(extensions)
    except (ValueError, x509.DuplicateExtension, x509.UnsupportedGeneralNameType) as e:
        logger.warning(f"Skipping certificate block #{block.position}, malformed extensions: {e}")
        return None

    common_name = get_common_name(subject_name)
    issuer_cn = get_common_name(issuer)
    not_before, not_after = _validity(cert)

    return CertificateRecord(
        index=index,
        subject=subject,
        common_name=common_name,
        issuer=issuer_cn,
        not_before=not_before,
        not_after=not_after,
        signature_algorithm=get_signature_algorithm(cert),
        serial_number=str(cert.serial_number),
        self_signed=is_self_signed(common_name, issuer_cn),
        issuer_name=issuer_name,
        serial_number_hex=format(cert.serial_number, "x"),
        sha256_fingerprint=cert.fingerprint(hashes.SHA256()).hex(),
        san=san,
        is_ca=is_ca,
    )
