# src/check_cert_chain/__init__.py

__version__ = "1.0.0"

from check_cert_chain.errors import (  # noqa: E402
    InspectionError,
    InvalidHostname,
    InvalidPort,
    RetrievalFailure,
    EmptyChain,
)
from check_cert_chain.inspector import inspect  # noqa: E402

__all__ = [
    "__version__",
    "inspect",
    "InspectionError",
    "InvalidHostname",
    "InvalidPort",
    "RetrievalFailure",
    "EmptyChain",
]
