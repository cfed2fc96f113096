"""
tests/test_tokens.py -- Unit tests for auth/tokens.py.

Covers:
  - bcrypt round-trip: the original plaintext verifies, anything else does not
  - per-call salts and self-describing hash strings
  - TokenIssuer: issue/verify round-trip, expiry, tampering, wrong key,
    malformed tokens, missing tokens, missing claims
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.tokens import TokenIssuer, hash_password, verify_password
from core.errors import ExpiredTokenError, InvalidTokenError, MissingTokenError, UnauthorizedError

# ===========================================================================
# Password hashing
# ===========================================================================


class TestPasswordHashing:
    @pytest.mark.parametrize("password", ["hunter2", "pässwörd-ümlaut", " leading space", "x" * 64])
    def test_original_password_verifies(self, password):
        hashed = hash_password(password, rounds=4)
        assert verify_password(password, hashed) is True

    @pytest.mark.parametrize("guess", ["hunter3", "Hunter2", "hunter2 ", ""])
    def test_any_other_password_fails(self, guess):
        hashed = hash_password("hunter2", rounds=4)
        assert verify_password(guess, hashed) is False

    def test_hash_is_never_the_plaintext(self):
        assert "hunter2" not in hash_password("hunter2", rounds=4)

    def test_each_call_uses_a_fresh_salt(self):
        """Two hashes of one password differ, yet both verify."""
        first = hash_password("same-password", rounds=4)
        second = hash_password("same-password", rounds=4)
        assert first != second
        assert verify_password("same-password", first)
        assert verify_password("same-password", second)

    def test_hash_embeds_cost_factor(self):
        """The stored string carries its own algorithm and cost; no salt column is needed."""
        assert hash_password("pw", rounds=5).startswith("$2b$05$")

    def test_malformed_hash_fails_closed(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    def test_multibyte_password_at_byte_limit_round_trips(self):
        """36 x "ş" is exactly 72 UTF-8 bytes."""
        password = "ş" * 36
        hashed = hash_password(password, rounds=4)
        assert verify_password(password, hashed) is True
        assert verify_password("ş" * 35 + "s", hashed) is False

    def test_password_over_byte_limit_is_refused(self):
        """40 characters, 80 bytes: never silently truncated."""
        with pytest.raises(ValueError):
            hash_password("ş" * 40, rounds=4)

    def test_verify_with_overlong_password_fails_without_raising(self):
        hashed = hash_password("ş" * 36, rounds=4)
        assert verify_password("ş" * 36 + "extra", hashed) is False


# ===========================================================================
# Session tokens
# ===========================================================================


class TestTokenIssuer:
    def test_verify_returns_original_account_id(self, token_issuer):
        token = token_issuer.issue(42)
        assert token_issuer.verify(token) == 42

    def test_token_within_lifetime_verifies(self, token_issuer):
        """Issued 23 hours ago with a 24 hour lifetime -- still valid."""
        issued = datetime.now(timezone.utc) - timedelta(hours=23)
        token = token_issuer.issue(7, now=issued)
        assert token_issuer.verify(token) == 7

    def test_token_past_expiry_raises_expired(self, token_issuer):
        issued = datetime.now(timezone.utc) - timedelta(days=2)
        token = token_issuer.issue(7, now=issued)
        with pytest.raises(ExpiredTokenError):
            token_issuer.verify(token)

    def test_expiry_is_one_day_by_default(self):
        issuer = TokenIssuer("k" * 40)
        issued = datetime(2030, 1, 1, tzinfo=timezone.utc)
        claims = jwt.get_unverified_claims(issuer.issue(1, now=issued))
        assert claims["exp"] - claims["iat"] == 86400

    def test_tampered_signature_raises_invalid(self, token_issuer):
        header, payload, signature = token_issuer.issue(1).split(".")
        i = len(signature) // 2
        flipped = signature[:i] + ("A" if signature[i] != "A" else "B") + signature[i + 1 :]
        with pytest.raises(InvalidTokenError):
            token_issuer.verify(".".join([header, payload, flipped]))

    def test_tampered_payload_raises_invalid(self, token_issuer):
        """Swapping the account id in the payload breaks the signature."""
        header, _payload, signature = token_issuer.issue(1).split(".")
        forged = jwt.encode({"sub": "2", "exp": 4102444800}, "some-other-key-" + "z" * 32, algorithm="HS256")
        forged_payload = forged.split(".")[1]
        with pytest.raises(InvalidTokenError):
            token_issuer.verify(".".join([header, forged_payload, signature]))

    def test_token_from_another_key_raises_invalid(self, token_issuer):
        other = TokenIssuer("another-secret-key-" + "y" * 32)
        with pytest.raises(InvalidTokenError):
            token_issuer.verify(other.issue(1))

    @pytest.mark.parametrize("garbage", ["not-a-jwt", "a.b.c", "Bearer abc"])
    def test_malformed_token_raises_invalid(self, token_issuer, garbage):
        with pytest.raises(InvalidTokenError):
            token_issuer.verify(garbage)

    @pytest.mark.parametrize("missing", [None, ""])
    def test_missing_token_raises_missing(self, token_issuer, missing):
        with pytest.raises(MissingTokenError):
            token_issuer.verify(missing)

    def test_token_without_subject_raises_invalid(self):
        secret = "s" * 40
        token = jwt.encode({"exp": 4102444800}, secret, algorithm="HS256")
        with pytest.raises(InvalidTokenError):
            TokenIssuer(secret).verify(token)

    def test_token_without_expiry_raises_invalid(self):
        """A correctly signed token that never expires is not one we issued."""
        secret = "s" * 40
        token = jwt.encode({"sub": "1"}, secret, algorithm="HS256")
        with pytest.raises(InvalidTokenError):
            TokenIssuer(secret).verify(token)

    def test_all_token_errors_are_unauthorized(self):
        for cls in (MissingTokenError, InvalidTokenError, ExpiredTokenError):
            assert issubclass(cls, UnauthorizedError)
            assert cls().status_code == 401

    def test_empty_secret_is_rejected(self):
        with pytest.raises(ValueError):
            TokenIssuer("")
