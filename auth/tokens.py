"""
auth/tokens.py -- Password hashing and session token utilities.

Security design decisions:
  Passwords: bcrypt, used directly (no passlib wrapper). Every hash call
       generates a fresh salt via bcrypt.gensalt(rounds); the resulting
       "$2b$<cost>$<salt><digest>" string is self-describing, so no separate
       salt column is needed.

  Session tokens: python-jose JWTs signed with HS256. TokenIssuer receives the
       signing key and lifetime at construction -- there is no module-level
       secret and no fallback constant. Verification is stateless: a token is
       valid until its exp claim passes or the signing key changes.

       verify() raises typed errors (MissingTokenError, InvalidTokenError,
       ExpiredTokenError) rather than returning None so the authorization gate
       can log which case occurred. All three collapse to a 401 at the edge.

Layer rule: no imports from api/ or listings/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from core.errors import ExpiredTokenError, InvalidTokenError, MissingTokenError

logger = logging.getLogger("classifieds.auth")

_ALGORITHM = "HS256"

# bcrypt reads at most 72 bytes of input.
MAX_PASSWORD_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def password_too_long(plain: str) -> bool:
    return len(plain.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(plain: str, rounds: int = 10) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Raises ValueError for passwords over MAX_PASSWORD_BYTES in UTF-8. Older
    bcrypt releases silently truncate such input and newer ones refuse it.
    AccountService rejects these with a ValidationError before they get here.
    """
    if password_too_long(plain):
        raise ValueError(f"Password is longer than {MAX_PASSWORD_BYTES} bytes.")
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A password over MAX_PASSWORD_BYTES can never have been hashed, so it fails
    without reaching bcrypt. A malformed stored hash makes bcrypt raise
    ValueError; that is a failed verification, not a server error.
    """
    if password_too_long(plain):
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("bcrypt rejected the stored hash or the presented password")
        return False


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


class TokenIssuer:
    """Issue and verify signed, time-bounded session tokens.

    Usage:
        issuer = TokenIssuer(settings.secret_key, settings.token_expire_seconds)
        token = issuer.issue(account.id)
        account_id = issuer.verify(token)
    """

    def __init__(self, secret_key: str, expire_seconds: int = 86400) -> None:
        if not secret_key:
            raise ValueError("TokenIssuer requires a signing key.")
        self._secret_key = secret_key
        self.expire_seconds = expire_seconds

    def issue(self, account_id: int, now: datetime | None = None) -> str:
        """Encode a signed JWT for account_id that expires expire_seconds after now.

        now defaults to the current UTC time; passing an earlier instant is how
        tests produce already-expired tokens.
        """
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(account_id),
            "iat": issued_at,
            "exp": issued_at + timedelta(seconds=self.expire_seconds),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str | None) -> int:
        """Verify signature and expiry and return the account id the token was issued for.

        Raises:
            MissingTokenError: token is None or empty.
            ExpiredTokenError: the signature is valid but exp has passed.
            InvalidTokenError: bad signature, malformed token, or missing/garbled sub.
        """
        if not token:
            raise MissingTokenError()
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except ExpiredSignatureError as exc:
            raise ExpiredTokenError() from exc
        except JWTError as exc:
            raise InvalidTokenError() from exc

        subject = payload.get("sub")
        if subject is None or "exp" not in payload:
            raise InvalidTokenError("Session token is missing required claims.")
        try:
            return int(subject)
        except (TypeError, ValueError) as exc:
            raise InvalidTokenError("Session token subject is not an account id.") from exc
