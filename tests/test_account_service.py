"""
tests/test_account_service.py -- Unit tests for auth/service.py.

Covers:
  - register: stored fields, hashed password, email normalization
  - duplicate email detection in any casing, including the UNIQUE-index race
  - authenticate: success, and one generic error for both failure modes
  - update_profile: field replacement, keeping one's own email, taking
    someone else's email, password untouched
"""

import pytest

from auth.tokens import verify_password
from core.errors import (
    AccountNotFoundError,
    DuplicateEmailError,
    InvalidCredentialsError,
    ValidationError,
)


def _register(service, email="ayse@example.com", password="s3cret-pass", **overrides):
    fields = {"name": "Ayşe", "surname": "Yılmaz", "email": email, "phone": "+90 555 000 0000"}
    fields.update(overrides)
    return service.register(password=password, **fields)


# ===========================================================================
# register
# ===========================================================================


class TestRegister:
    def test_returns_account_with_assigned_id(self, account_service):
        account = _register(account_service)
        assert account.id is not None
        assert account.name == "Ayşe"
        assert account.surname == "Yılmaz"
        assert account.phone == "+90 555 000 0000"
        assert account.created_at

    def test_password_is_stored_hashed(self, account_service):
        account = _register(account_service, password="s3cret-pass")
        assert account.hashed_password != "s3cret-pass"
        assert verify_password("s3cret-pass", account.hashed_password)

    def test_email_is_normalized(self, account_service):
        account = _register(account_service, email="  Ayse@Example.COM ")
        assert account.email == "ayse@example.com"

    def test_accounts_get_distinct_ids(self, account_service):
        first = _register(account_service, email="one@example.com")
        second = _register(account_service, email="two@example.com")
        assert first.id != second.id

    @pytest.mark.parametrize("email", ["ayse@example.com", "AYSE@example.com", "Ayse@Example.Com"])
    def test_duplicate_email_in_any_casing_is_rejected(self, account_service, email):
        _register(account_service, email="ayse@example.com")
        with pytest.raises(DuplicateEmailError):
            _register(account_service, email=email)

    def test_duplicate_does_not_create_second_account(self, account_service):
        original = _register(account_service, email="ayse@example.com", password="first-pass")
        with pytest.raises(DuplicateEmailError):
            _register(account_service, email="ayse@example.com", password="second-pass")
        # The original password still works; the failed attempt changed nothing.
        assert account_service.authenticate("ayse@example.com", "first-pass").id == original.id

    def test_unique_index_race_maps_to_duplicate(self, account_service, monkeypatch):
        """A concurrent insert that wins the UNIQUE index still yields DuplicateEmailError."""
        _register(account_service, email="race@example.com")
        monkeypatch.setattr(account_service.store, "get_by_email", lambda email: None)
        with pytest.raises(DuplicateEmailError):
            _register(account_service, email="race@example.com")

    @pytest.mark.parametrize("field", ["name", "surname", "email", "phone"])
    def test_blank_field_is_rejected(self, account_service, field):
        with pytest.raises(ValidationError) as exc_info:
            _register(account_service, **{field: "   "})
        assert exc_info.value.field == field

    def test_empty_password_is_rejected(self, account_service):
        with pytest.raises(ValidationError) as exc_info:
            _register(account_service, password="")
        assert exc_info.value.field == "password"

    def test_password_over_72_utf8_bytes_is_rejected(self, account_service):
        with pytest.raises(ValidationError) as exc_info:
            _register(account_service, password="ş" * 40)
        assert exc_info.value.field == "password"

    def test_multibyte_password_within_limit_works(self, account_service):
        account = _register(account_service, email="turkce@example.com", password="şifreğüçö" * 4)
        assert account_service.authenticate("turkce@example.com", "şifreğüçö" * 4).id == account.id


# ===========================================================================
# authenticate
# ===========================================================================


class TestAuthenticate:
    def test_correct_credentials_return_account(self, account_service):
        registered = _register(account_service)
        account = account_service.authenticate("ayse@example.com", "s3cret-pass")
        assert account.id == registered.id

    def test_email_lookup_ignores_case(self, account_service):
        registered = _register(account_service)
        assert account_service.authenticate("AYSE@EXAMPLE.COM", "s3cret-pass").id == registered.id

    def test_wrong_password_and_unknown_email_fail_identically(self, account_service):
        _register(account_service)
        with pytest.raises(InvalidCredentialsError) as wrong_password:
            account_service.authenticate("ayse@example.com", "not-it")
        with pytest.raises(InvalidCredentialsError) as unknown_email:
            account_service.authenticate("nobody@example.com", "s3cret-pass")
        assert wrong_password.value.message == unknown_email.value.message
        assert wrong_password.value.code == unknown_email.value.code == "invalid_credentials"

    def test_unknown_email_still_runs_bcrypt(self, account_service, monkeypatch):
        calls = []
        import auth.service as service_module

        real_verify = service_module.verify_password

        def counting_verify(plain, hashed):
            calls.append(hashed)
            return real_verify(plain, hashed)

        monkeypatch.setattr(service_module, "verify_password", counting_verify)
        with pytest.raises(InvalidCredentialsError):
            account_service.authenticate("ghost@example.com", "whatever")
        assert calls == [account_service._dummy_hash]

    def test_empty_password_fails(self, account_service):
        _register(account_service)
        with pytest.raises(InvalidCredentialsError):
            account_service.authenticate("ayse@example.com", "")


# ===========================================================================
# update_profile
# ===========================================================================


class TestUpdateProfile:
    def test_replaces_profile_fields(self, account_service):
        account = _register(account_service)
        updated = account_service.update_profile(
            account.id, name="Ayşe Nur", surname="Kaya", email="aysenur@example.com", phone="555-1111"
        )
        assert (updated.name, updated.surname, updated.email, updated.phone) == (
            "Ayşe Nur",
            "Kaya",
            "aysenur@example.com",
            "555-1111",
        )

    def test_password_is_untouched(self, account_service):
        account = _register(account_service, password="keep-me")
        account_service.update_profile(account.id, name="A", surname="B", email="new@example.com", phone="1")
        assert account_service.authenticate("new@example.com", "keep-me").id == account.id

    def test_keeping_own_email_in_other_casing_is_allowed(self, account_service):
        account = _register(account_service, email="ayse@example.com")
        updated = account_service.update_profile(
            account.id, name="Ayşe", surname="Yılmaz", email="AYSE@example.com", phone="555"
        )
        assert updated.email == "ayse@example.com"

    def test_taking_another_accounts_email_is_rejected(self, account_service):
        _register(account_service, email="taken@example.com")
        mine = _register(account_service, email="mine@example.com")
        with pytest.raises(DuplicateEmailError):
            account_service.update_profile(mine.id, name="A", surname="B", email="Taken@Example.com", phone="1")
        assert account_service.get(mine.id).email == "mine@example.com"

    def test_unknown_account_is_rejected(self, account_service):
        with pytest.raises(AccountNotFoundError):
            account_service.update_profile(9999, name="A", surname="B", email="x@example.com", phone="1")

    def test_blank_field_is_rejected(self, account_service):
        account = _register(account_service)
        with pytest.raises(ValidationError):
            account_service.update_profile(account.id, name="", surname="B", email="x@example.com", phone="1")

    def test_get_unknown_returns_none(self, account_service):
        assert account_service.get(12345) is None
