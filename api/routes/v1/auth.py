"""
api/routes/v1/auth.py -- Registration, login, and profile REST endpoints.

Routes:
  POST /api/v1/auth/register   -- create account; returns token + account (201)
  POST /api/v1/auth/login      -- password login; returns token + account
  GET  /api/v1/auth/me         -- current account (requires auth)
  PUT  /api/v1/auth/profile    -- update name/surname/email/phone (requires auth)

Security:
  AccountService.authenticate() equalizes timing between unknown email and
  wrong password -- use it, never inline get_by_email() + verify_password().
  Cache-Control: no-store on every response that carries a token.
  Errors are raised as core.errors subclasses; api/main.py renders them.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import AccountResponse, LoginRequest, ProfileUpdate, RegisterRequest, TokenResponse
from auth.dependencies import get_current_account
from auth.models import Account
from auth.service import AccountService
from auth.tokens import TokenIssuer

# Auth policy:
# - POST /api/v1/auth/register:  public
# - POST /api/v1/auth/login:     public
# - GET  /api/v1/auth/me:        requires auth (get_current_account)
# - PUT  /api/v1/auth/profile:   requires auth (get_current_account)
router = APIRouter()


def _token_response(request: Request, account: Account, status_code: int) -> JSONResponse:
    issuer: TokenIssuer = request.app.state.token_issuer
    token = issuer.issue(account.id)
    resp = JSONResponse(
        status_code=status_code,
        content=TokenResponse(
            access_token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=issuer.expire_seconds,
            account=AccountResponse.from_account(account),
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=TokenResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create an account and log it in.

    Emails are compared case-insensitively; a taken email is a 400
    duplicate_email, never a 409, so the client contract matches login.
    """
    accounts: AccountService = request.app.state.account_service
    account = accounts.register(
        name=body.name,
        surname=body.surname,
        email=body.email,
        phone=body.phone,
        password=body.password,
    )
    return _token_response(request, account, status_code=201)


@router.post("/auth/login", response_model=TokenResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password.

    Returns the same generic error for unknown email and wrong password
    ("invalid_credentials") to avoid leaking which accounts exist.
    """
    accounts: AccountService = request.app.state.account_service
    account = accounts.authenticate(body.email, body.password)
    return _token_response(request, account, status_code=200)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=AccountResponse)
def me(current_account: Account = Depends(get_current_account)) -> AccountResponse:
    """Return the public fields of the currently authenticated account."""
    return AccountResponse.from_account(current_account)


@router.put("/auth/profile", response_model=AccountResponse)
def update_profile(
    request: Request,
    body: ProfileUpdate,
    current_account: Account = Depends(get_current_account),
) -> AccountResponse:
    """Replace the caller's name, surname, email and phone. The password is untouched."""
    accounts: AccountService = request.app.state.account_service
    updated = accounts.update_profile(
        current_account.id,
        name=body.name,
        surname=body.surname,
        email=body.email,
        phone=body.phone,
    )
    return AccountResponse.from_account(updated)
