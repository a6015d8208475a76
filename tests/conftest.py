import base64
import datetime
import logging
import textwrap
from datetime import timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from check_cert_chain.retriever import RawTranscript

NOW = datetime.datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    config.addinivalue_line("markers", "network: test talks to hosts on the internet")


def make_name(common_name=None, organization="Example Org"):
    attributes = [x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization)]
    if common_name is not None:
        attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    return x509.Name(attributes)


def make_certificate(subject_cn="leaf.example.com", issuer_cn="Test Intermediate CA",
                     not_before=None, not_after=None, issuer_key=None, is_ca=False,
                     san=None, serial_number=0x1234ABCD):
    """Returns (certificate, private_key); signs with issuer_key when given."""
    key = ec.generate_private_key(ec.SECP256R1())
    not_before = not_before or NOW - datetime.timedelta(days=30)
    not_after = not_after or NOW + datetime.timedelta(days=60)
    builder = (
        x509.CertificateBuilder()
        .subject_name(make_name(subject_cn))
        .issuer_name(make_name(issuer_cn))
        .public_key(key.public_key())
        .serial_number(serial_number)
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(x509.BasicConstraints(ca=is_ca, path_length=None), critical=True)
    )
    if san:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(name) for name in san]), critical=False)
    cert = builder.sign(issuer_key or key, hashes.SHA256())
    return cert, key


def to_pem(cert):
    return cert.public_bytes(serialization.Encoding.PEM).decode("ascii")


def make_duplicate_san_pem(subject_cn="broken.example.com"):
    """PEM text of a certificate carrying two SubjectAlternativeName extensions.

    The builder refuses duplicates, so an IssuerAlternativeName extension is
    added and its OID (2.5.29.18) rewritten to the SAN OID (2.5.29.17). The
    signature no longer verifies, which loading does not check.
    """
    key = ec.generate_private_key(ec.SECP256R1())
    cert = (
        x509.CertificateBuilder()
        .subject_name(make_name(subject_cn))
        .issuer_name(make_name(subject_cn))
        .public_key(key.public_key())
        .serial_number(0x5A5A)
        .not_valid_before(NOW - datetime.timedelta(days=1))
        .not_valid_after(NOW + datetime.timedelta(days=30))
        .add_extension(x509.SubjectAlternativeName([x509.DNSName(subject_cn)]), critical=False)
        .add_extension(x509.IssuerAlternativeName([x509.DNSName("issuer.example.com")]), critical=False)
        .sign(key, hashes.SHA256())
    )
    der = cert.public_bytes(serialization.Encoding.DER)
    der = der.replace(bytes.fromhex("0603551d12"), bytes.fromhex("0603551d11"), 1)
    body = "\n".join(textwrap.wrap(base64.b64encode(der).decode("ascii"), 64))
    return f"-----BEGIN CERTIFICATE-----\n{body}\n-----END CERTIFICATE-----\n"


def build_transcript(certs, host="example.com", port=443):
    """Renders certificates the way s_client -showcerts prints them."""
    lines = [f"CONNECTED({host}:{port})", "depth=0 CN = filler", "---", "Certificate chain"]
    for index, cert in enumerate(certs):
        lines.append(f" {index} s:CN = subject-{index}")
        lines.append(f"   i:CN = issuer-{index}")
        lines.extend(to_pem(cert).strip().splitlines())
    lines.extend(["---", "Server certificate", "SSL handshake has read 4242 bytes", "---"])
    return "\n".join(lines) + "\n"


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drops handlers installed by setup_logging so later tests do not write to stale streams."""
    yield
    logger = logging.getLogger("check_cert_chain")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def chain_certs():
    """Leaf signed by an intermediate, intermediate signed by a root."""
    root, root_key = make_certificate("Test Root CA", "Test Root CA", is_ca=True,
                                      not_after=NOW + datetime.timedelta(days=3650))
    intermediate, intermediate_key = make_certificate("Test Intermediate CA", "Test Root CA",
                                                      issuer_key=root_key, is_ca=True,
                                                      not_after=NOW + datetime.timedelta(days=1000))
    leaf, leaf_key = make_certificate("leaf.example.com", "Test Intermediate CA",
                                      issuer_key=intermediate_key,
                                      san=["leaf.example.com", "www.leaf.example.com"])
    return {
        "leaf": leaf, "leaf_key": leaf_key,
        "intermediate": intermediate, "intermediate_key": intermediate_key,
        "root": root, "root_key": root_key,
    }


@pytest.fixture
def fake_retriever(monkeypatch):
    """Replaces network retrieval with a canned transcript; returns the call log."""
    calls = []

    def install(transcript):
        def fake_retrieve(hostname, port, timeout=None, backend=None):
            calls.append((hostname, port, timeout, backend))
            if isinstance(transcript, RawTranscript):
                return transcript
            return RawTranscript(transcript)
        monkeypatch.setattr("check_cert_chain.inspector.retrieve_transcript", fake_retrieve)
        return calls

    return install
