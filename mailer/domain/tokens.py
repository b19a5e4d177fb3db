"""
Token authority - Stateless bearer tokens for confirmed email addresses.

A token is a JWT signed with HS512 that carries only `sub` (email),
`iss` (issuer hostname), `iat` and `exp`. Nothing is stored server-side;
every authorization decision is recomputed from the token and the
current time.

Validation outcomes:
- secret absent                      -> ConfigurationError (fatal)
- bad signature / malformed          -> InvalidToken
- signature valid, expired           -> ExpiredToken
- issuer absent or != expected host  -> InvalidToken
- subject absent                     -> MissingSubject
- otherwise                          -> subject email
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import jwt

from .exceptions import ConfigurationError, ExpiredToken, InvalidToken, MissingSubject, MissingToken
from .models import IdentityToken

logger = logging.getLogger(__name__)

ALGORITHM = "HS512"
DEFAULT_LIFETIME = timedelta(days=365)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TokenAuthority:
    """Issues and validates identity tokens with a process-wide secret."""

    secret: str
    lifetime: timedelta = DEFAULT_LIFETIME
    clock: Callable[[], datetime] = field(default=_utcnow)

    def __post_init__(self) -> None:
        self._require_secret()

    def issue(self, subject_email: str, issuer_host: str) -> IdentityToken:
        """
        Sign a token for `subject_email`, bound to `issuer_host`.

        The expiration is measured from the clock at issuance.
        """
        self._require_secret()
        issued_at = self.clock()
        expires_at = issued_at + self.lifetime
        encoded = jwt.encode(
            {"sub": subject_email, "iss": issuer_host, "iat": issued_at, "exp": expires_at},
            self.secret,
            algorithm=ALGORITHM,
        )
        return IdentityToken(
            subject=subject_email,
            issuer=issuer_host,
            issued_at=issued_at,
            expires_at=expires_at,
            encoded=encoded,
        )

    def validate(self, token: str, expected_issuer_host: str) -> str:
        """
        Validate a serialized token and return its subject email.

        Raises:
            ConfigurationError: signing secret is not configured
            InvalidToken: bad signature, malformed input or foreign issuer
            ExpiredToken: signature valid but expiration elapsed
            MissingSubject: token carries no subject
        """
        self._require_secret()
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                issuer=expected_issuer_host,
                options={"require": ["exp", "iss"]},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredToken("token expired") from None
        except jwt.InvalidTokenError as exc:
            logger.info("Rejected identity token: %s", exc)
            raise InvalidToken(str(exc)) from None

        subject = claims.get("sub")
        if not subject:
            raise MissingSubject("token has no subject")
        return subject

    def _require_secret(self) -> None:
        if not self.secret:
            logger.error("JWT secret is not configured")
            raise ConfigurationError("missing JWT secret")


def extract_bearer_token(authorization: str | None) -> str:
    """
    Extract the credential from an `Authorization: Bearer <token>` header.

    Raises:
        MissingToken: header absent, other scheme, or empty credential
    """
    if not authorization:
        raise MissingToken("missing Authorization header")
    scheme, _, credential = authorization.strip().partition(" ")
    credential = credential.strip()
    if scheme.lower() != "bearer" or not credential:
        raise MissingToken("Authorization header must use the Bearer scheme")
    return credential
