"""
auth/dependencies.py -- The authorization gate as a FastAPI Depends() helper.

Every protected route declares `account: Account = Depends(get_current_account)`
(or mounts it as a router-level dependency). The gate runs before the handler
body and short-circuits by raising:

  1. Read "Authorization: Bearer <token>". No header -> MissingTokenError.
     Another scheme or an empty value -> InvalidTokenError.
  2. TokenIssuer.verify() -> InvalidTokenError / ExpiredTokenError on failure.
  3. Look the account up. Gone since issuance -> AccountNotFoundError.
  4. Hand the Account to the handler and park it on request.state.account.

All four failures are UnauthorizedError subclasses; api/main.py renders them
as one indistinguishable 401.

Layer rule: no imports from api/ or listings/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.models import Account
from auth.service import AccountService
from auth.tokens import TokenIssuer
from core.errors import AccountNotFoundError, InvalidTokenError, MissingTokenError, UnauthorizedError

logger = logging.getLogger("classifieds.auth")


def extract_bearer_token(request: Request) -> str:
    """Return the raw token from the Authorization header or raise."""
    auth_header = request.headers.get("Authorization", "").strip()
    if not auth_header:
        raise MissingTokenError()
    scheme, _, token = auth_header.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise InvalidTokenError("Authorization header must be 'Bearer <token>'.")
    return token


def get_current_account(request: Request) -> Account:
    """Require a valid session token. Raises an UnauthorizedError subclass otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(account: Account = Depends(get_current_account)): ...
    """
    issuer: TokenIssuer = request.app.state.token_issuer
    accounts: AccountService = request.app.state.account_service

    try:
        token = extract_bearer_token(request)
        account_id = issuer.verify(token)
        account = accounts.get(account_id)
        if account is None:
            raise AccountNotFoundError()
    except UnauthorizedError as exc:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
        raise

    request.state.account = account
    return account
