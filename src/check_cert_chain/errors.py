# src/check_cert_chain/errors.py

"""
Error kinds raised by the inspection pipeline.

Each error carries a short, user-facing ``message`` and the HTTP status the
web layer answers with. Internal detail (transcripts, socket errors) is kept
in ``detail`` for logging and never reaches a response body.
"""

from typing import Optional


class InspectionError(Exception):
    """Base class for terminal inspection failures."""

    status_code = 500
    default_message = "Certificate inspection failed"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class InvalidHostname(InspectionError):
    status_code = 400
    default_message = "Invalid hostname"


class InvalidPort(InspectionError):
    status_code = 400
    default_message = "Port must be between 1 and 65535"


class RetrievalFailure(InspectionError):
    status_code = 500
    default_message = "Could not retrieve the certificate chain"


class EmptyChain(InspectionError):
    status_code = 500
    default_message = "Certificate chain could not be extracted"
