"""
API request and response models for the classifieds REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
listings/models.py, which own the internal domain representation. Route
handlers map between the two.

Request models do shape checks (types, lengths, vocabularies) so clients get
field-level 422s early; listings/service.py still re-validates, because the
service is callable without HTTP in front of it.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import Account
from auth.tokens import MAX_PASSWORD_BYTES, password_too_long
from listings.models import Listing, ListingPage

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class CategoryEnum(str, Enum):
    emlak = "Emlak"
    vasita = "Vasıta"
    elektronik = "Elektronik"
    ev_esyasi = "Ev Eşyası"
    is_makineleri = "İş Makineleri"
    diger = "Diğer"


class StatusEnum(str, Enum):
    active = "Active"
    sold = "Sold"
    inactive = "Inactive"


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    surname: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    phone: str = Field(min_length=1, max_length=30)
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_BYTES)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        """Length limits count characters; bcrypt counts UTF-8 bytes."""
        if password_too_long(value):
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes in UTF-8")
        return value


class LoginRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_BYTES)


class ProfileUpdate(BaseModel):
    """Request body for PUT /api/v1/auth/profile. Password is not accepted here."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    surname: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    phone: str = Field(min_length=1, max_length=30)


class AccountResponse(BaseModel):
    """Public account fields. No password or hash field."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    surname: str
    email: str
    phone: str

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(
            id=account.id,
            name=account.name,
            surname=account.surname,
            email=account.email,
            phone=account.phone,
        )


class TokenResponse(BaseModel):
    """Response for register and login: a bearer token plus the account it belongs to."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    account: AccountResponse


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


class ListingCreate(BaseModel):
    """Request body for POST /api/v1/listings. The owner comes from the token, never the body."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1, max_length=5000)
    price: float = Field(ge=0, allow_inf_nan=False)
    category: CategoryEnum
    images: list[str] = Field(min_length=1, max_length=20)
    location: str = Field(min_length=1, max_length=255)
    status: StatusEnum = StatusEnum.active


class ListingUpdate(BaseModel):
    """Request body for PUT /api/v1/listings/{id}. Every field is optional."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    category: Optional[CategoryEnum] = None
    images: Optional[list[str]] = Field(default=None, min_length=1, max_length=20)
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    status: Optional[StatusEnum] = None


class ListingResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str
    price: float
    category: str
    images: list[str]
    location: str
    status: str
    owner_id: int
    created_at: str
    updated_at: str

    @classmethod
    def from_listing(cls, listing: Listing) -> "ListingResponse":
        return cls(
            id=listing.id,
            title=listing.title,
            description=listing.description,
            price=listing.price,
            category=listing.category,
            images=listing.images,
            location=listing.location,
            status=listing.status,
            owner_id=listing.owner_id,
            created_at=listing.created_at,
            updated_at=listing.updated_at,
        )


class ListingPageResponse(BaseModel):
    """Response for GET /api/v1/listings."""

    model_config = ConfigDict(frozen=True)

    listings: list[ListingResponse]
    total_count: int
    total_pages: int
    current_page: int
    page_size: int

    @classmethod
    def from_page(cls, page: ListingPage) -> "ListingPageResponse":
        return cls(
            listings=[ListingResponse.from_listing(item) for item in page.listings],
            total_count=page.total_count,
            total_pages=page.total_pages,
            current_page=page.current_page,
            page_size=page.page_size,
        )
