"""
api/routes/v1/listings.py -- Listing routes for the classifieds REST API.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /listings/mine                 -- caller's own listings (auth)
  GET    /listings                      -- public search with paging
  POST   /listings                      -- create listing owned by caller (auth)
  GET    /listings/{listing_id}         -- public listing detail
  PUT    /listings/{listing_id}         -- partial update, owner only (auth)
  DELETE /listings/{listing_id}         -- delete, owner only (auth)
  GET    /accounts/{account_id}/listings -- public listings of one account

Ownership:
  PUT and DELETE answer 404 both when the listing does not exist and when it
  belongs to another account. They never answer 403.

/listings/mine must be registered before /listings/{listing_id}; otherwise
FastAPI tries to parse "mine" as an int and answers 422.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.models import (
    CategoryEnum,
    ListingCreate,
    ListingPageResponse,
    ListingResponse,
    ListingUpdate,
    MessageResponse,
)
from auth.dependencies import get_current_account
from auth.models import Account
from listings.service import ListingService

router = APIRouter()


def _service(request: Request) -> ListingService:
    return request.app.state.listing_service


# ---------------------------------------------------------------------------
# GET /listings/mine -- owner view (must be before /listings/{listing_id})
# ---------------------------------------------------------------------------


@router.get("/listings/mine", response_model=list[ListingResponse])
def list_my_listings(
    request: Request,
    current_account: Account = Depends(get_current_account),
) -> list[ListingResponse]:
    """Return every listing the caller owns, in the order they were created."""
    return [ListingResponse.from_listing(item) for item in _service(request).list_own(current_account)]


# ---------------------------------------------------------------------------
# GET /listings -- public search
# ---------------------------------------------------------------------------


@router.get("/listings", response_model=ListingPageResponse)
def search_listings(
    request: Request,
    search: Optional[str] = Query(default=None, max_length=200),
    category: Optional[CategoryEnum] = None,
    show_sold: Optional[bool] = Query(default=None, alias="showSold"),
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
) -> ListingPageResponse:
    """Search listings newest first.

    Query params:
      search   -- case-insensitive substring of title, description or location
      category -- exact category match
      showSold -- false hides sold listings; omitted or true shows everything
      page     -- 1-indexed page number; past the last page returns an empty list
      limit    -- page size, defaults to DEFAULT_PAGE_SIZE, capped at MAX_PAGE_SIZE
    """
    result = _service(request).search(
        search=search,
        category=category.value if category is not None else None,
        show_sold=show_sold,
        page=page,
        page_size=limit,
    )
    return ListingPageResponse.from_page(result)


# ---------------------------------------------------------------------------
# POST /listings -- create
# ---------------------------------------------------------------------------


@router.post("/listings", response_model=ListingResponse, status_code=201)
def create_listing(
    request: Request,
    body: ListingCreate,
    current_account: Account = Depends(get_current_account),
) -> ListingResponse:
    """Create a listing owned by the authenticated caller."""
    listing = _service(request).create(current_account, body.model_dump(mode="json"))
    return ListingResponse.from_listing(listing)


# ---------------------------------------------------------------------------
# /listings/{listing_id}
# ---------------------------------------------------------------------------


@router.get("/listings/{listing_id}", response_model=ListingResponse)
def get_listing(request: Request, listing_id: int) -> ListingResponse:
    """Public listing detail. Any caller may read any listing."""
    return ListingResponse.from_listing(_service(request).get(listing_id))


@router.put("/listings/{listing_id}", response_model=ListingResponse)
def update_listing(
    request: Request,
    listing_id: int,
    body: ListingUpdate,
    current_account: Account = Depends(get_current_account),
) -> ListingResponse:
    """Apply the fields present in the body to a listing the caller owns."""
    patch = body.model_dump(mode="json", exclude_unset=True)
    listing = _service(request).update(current_account, listing_id, patch)
    return ListingResponse.from_listing(listing)


@router.delete("/listings/{listing_id}", response_model=MessageResponse)
def delete_listing(
    request: Request,
    listing_id: int,
    current_account: Account = Depends(get_current_account),
) -> MessageResponse:
    _service(request).delete(current_account, listing_id)
    return MessageResponse(message="Listing deleted.")


# ---------------------------------------------------------------------------
# GET /accounts/{account_id}/listings -- public profile view
# ---------------------------------------------------------------------------


@router.get("/accounts/{account_id}/listings", response_model=list[ListingResponse])
def list_account_listings(request: Request, account_id: int) -> list[ListingResponse]:
    """Return one account's listings, newest first. An unknown account yields an empty list."""
    return [ListingResponse.from_listing(item) for item in _service(request).list_by_owner(account_id)]
