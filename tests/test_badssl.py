import os

import pytest

from check_cert_chain import inspect
from check_cert_chain.errors import RetrievalFailure

pytestmark = [
    pytest.mark.network,
    pytest.mark.skipif(os.environ.get("CHECK_CERT_CHAIN_NETWORK_TESTS") != "1",
                       reason="set CHECK_CERT_CHAIN_NETWORK_TESTS=1 to run live tests"),
]


def test_expired_badssl():
    report = inspect("expired.badssl.com", 443)
    assert report.summary.expired is True
    assert report.summary.days_remaining < 0


def test_self_signed_badssl():
    report = inspect("self-signed.badssl.com", 443)
    assert report.summary.self_signed is True


def test_unreachable_port_fails_within_timeout():
    with pytest.raises(RetrievalFailure):
        inspect("badssl.com", 81, timeout=2)
