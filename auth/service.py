"""
auth/service.py -- Account registration, authentication, and profile updates.

AccountService owns the credential rules; AccountStore only persists rows.

Security:
  authenticate() always runs a bcrypt comparison, against a dummy hash when
  the email is unknown, so response time does not reveal whether an account
  exists. Unknown email and wrong password raise the same
  InvalidCredentialsError with the same message.

  The plaintext password is passed straight into hash_password() and never
  kept on the Account object or written anywhere.

Layer rule: no imports from api/ or listings/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.models import Account
from auth.store import AccountStore, normalize_email
from auth.tokens import MAX_PASSWORD_BYTES, hash_password, password_too_long, verify_password
from core.errors import AccountNotFoundError, DuplicateEmailError, InvalidCredentialsError, ValidationError

logger = logging.getLogger("classifieds.auth")


def _require(field: str, value: str | None) -> str:
    """Return value stripped, or raise ValidationError if it is missing or blank."""
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{field} is required.", field=field)
    return cleaned


class AccountService:
    def __init__(self, store: AccountStore, bcrypt_rounds: int = 10) -> None:
        self.store = store
        self.bcrypt_rounds = bcrypt_rounds
        # Same cost factor as real hashes so both failure paths take equal time.
        self._dummy_hash = hash_password("classifieds_timing_dummy", rounds=bcrypt_rounds)

    def register(self, name: str, surname: str, email: str, phone: str, password: str) -> Account:
        """Create an account and return it.

        Raises DuplicateEmailError if the email (compared case-insensitively)
        is already registered, including when a concurrent request wins the
        race to the UNIQUE index.
        """
        name = _require("name", name)
        surname = _require("surname", surname)
        email = normalize_email(_require("email", email))
        phone = _require("phone", phone)
        if not password:
            raise ValidationError("password is required.", field="password")
        if password_too_long(password):
            raise ValidationError(f"password must be at most {MAX_PASSWORD_BYTES} bytes in UTF-8.", field="password")

        if self.store.get_by_email(email) is not None:
            raise DuplicateEmailError()

        account = Account(
            name=name,
            surname=surname,
            email=email,
            phone=phone,
            hashed_password=hash_password(password, rounds=self.bcrypt_rounds),
        )
        try:
            account_id = self.store.create_account(account)
        except IntegrityError as exc:
            raise DuplicateEmailError() from exc

        logger.info("Account %d registered", account_id)
        return self._get(account_id)

    def authenticate(self, email: str, password: str) -> Account:
        """Return the account for a correct email/password pair.

        Raises InvalidCredentialsError otherwise, without saying which half was wrong.
        """
        account = self.store.get_by_email(email or "")
        if account is None:
            # Equalize timing -- do NOT return early before running bcrypt.
            verify_password(password or "", self._dummy_hash)
            raise InvalidCredentialsError()
        if not verify_password(password or "", account.hashed_password):
            raise InvalidCredentialsError()
        return account

    def update_profile(self, account_id: int, name: str, surname: str, email: str, phone: str) -> Account:
        """Replace name, surname, email and phone. The password is not touched.

        Keeping one's own email (in any casing) is not a conflict; taking an
        email that belongs to another account raises DuplicateEmailError.
        """
        name = _require("name", name)
        surname = _require("surname", surname)
        email = normalize_email(_require("email", email))
        phone = _require("phone", phone)

        holder = self.store.get_by_email(email)
        if holder is not None and holder.id != account_id:
            raise DuplicateEmailError()

        try:
            updated = self.store.update_profile(account_id, name=name, surname=surname, email=email, phone=phone)
        except IntegrityError as exc:
            raise DuplicateEmailError() from exc
        if not updated:
            raise AccountNotFoundError()
        return self._get(account_id)

    def get(self, account_id: int) -> Account | None:
        return self.store.get_by_id(account_id)

    def _get(self, account_id: int) -> Account:
        account = self.store.get_by_id(account_id)
        if account is None:
            raise AccountNotFoundError()
        return account
