"""
JWT authentication for the signing API.

Every request carries a freshly minted token; nothing is cached so long
polls never present an expired token.
"""

import time
from typing import Callable

import jwt

from amo_signer.common.exceptions import AuthenticationError, ValidationError

# Lifetime of a minted token in seconds
DEFAULT_TOKEN_EXPIRES_IN = 60

JWT_ALGORITHM = "HS256"


class Authenticator:
    """
    Mints short-lived JWTs from an API key/secret pair.

    Claims:
        iss: API key (JWT issuer)
        iat: issue time, epoch seconds
        exp: iat + expires_in

    Usage:
        auth = Authenticator("user:12345:67", "secret")
        headers = {"Authorization": f"JWT {auth.sign()}"}
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        expires_in: int = DEFAULT_TOKEN_EXPIRES_IN,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize Authenticator.

        Args:
            api_key: JWT issuer
            api_secret: Shared secret for HMAC signing
            expires_in: Token lifetime in seconds
            clock: Time source (epoch seconds), injectable for tests
        """
        self._api_key = api_key
        self._api_secret = api_secret
        self.expires_in = expires_in
        self._clock = clock

    @property
    def api_key(self) -> str:
        return self._api_key

    def sign(self) -> str:
        """
        Mint a new token.

        Raises:
            ValidationError: API key or secret is empty
            AuthenticationError: Token encoding failed
        """
        if not self._api_key or not self._api_secret:
            raise ValidationError("API key/secret was not specified")

        issued_at = int(self._clock())
        claims = {
            "iss": self._api_key,
            "iat": issued_at,
            "exp": issued_at + self.expires_in,
        }
        try:
            return jwt.encode(claims, self._api_secret, algorithm=JWT_ALGORITHM)
        except jwt.exceptions.PyJWTError as e:
            raise AuthenticationError("Could not sign API token", cause=e) from e

    def authorization_header(self) -> str:
        """Return the Authorization header value for a new request."""
        return f"JWT {self.sign()}"
