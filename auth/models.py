"""
auth/models.py -- Domain dataclass for account holders.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in listings/models.py -- dataclasses own domain shape; stores and services do
the work.

Layer rule: no imports from api/ or listings/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Account:
    """A registered identity that can own listings.

    email is always stored trimmed and lower-cased; AccountStore normalizes it
    on every write and lookup so uniqueness is case-insensitive.

    hashed_password is a bcrypt string and must never leave the service --
    api/models.AccountResponse has no field for it.
    """

    name: str
    surname: str
    email: str
    phone: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None
