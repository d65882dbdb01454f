"""Client for the addons.mozilla.org signing API."""

from amo_signer.common.exceptions import (
    AuthenticationError,
    BadResponseError,
    NoSignedFilesError,
    SigningError,
    SigningTimeoutError,
    TransportError,
    ValidationError,
)
from amo_signer.config import SignerConfig, load_config
from amo_signer.signing.client import AMOClient, sign_addon
from amo_signer.signing.models import SignResult

__version__ = "0.1.0"

__all__ = [
    "AMOClient",
    "sign_addon",
    "SignResult",
    "SignerConfig",
    "load_config",
    "SigningError",
    "ValidationError",
    "AuthenticationError",
    "BadResponseError",
    "SigningTimeoutError",
    "TransportError",
    "NoSignedFilesError",
]
