"""
listings/service.py -- Ownership-scoped listing operations and public search.

ListingService sits between the routes and ListingStore:
  - validates listing input (required fields, price >= 0, category/status
    vocabularies, at least one image reference);
  - stamps the owner from the authenticated account on create and never lets
    a patch change it;
  - turns "not found" and "not yours" into the same NotFoundError so callers
    cannot probe for other accounts' listings;
  - converts page/page_size into an offset window and computes total_pages.

The caller is expected to have passed the authorization gate already; the
service trusts the Account it is handed.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Optional

from auth.models import Account
from core.errors import NotFoundError, ValidationError
from listings.models import CATEGORIES, STATUS_ACTIVE, STATUSES, Listing, ListingPage
from listings.store import MUTABLE_FIELDS, ListingStore

logger = logging.getLogger("classifieds.listings")

_TEXT_FIELDS = ("title", "description", "location")


def _clean_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Trim text fields and image references; drop blank image entries."""
    cleaned = dict(fields)
    for name in _TEXT_FIELDS + ("category", "status"):
        if isinstance(cleaned.get(name), str):
            cleaned[name] = cleaned[name].strip()
    if cleaned.get("images") is not None:
        cleaned["images"] = [ref.strip() for ref in cleaned["images"] if isinstance(ref, str) and ref.strip()]
    return cleaned


def validate_listing_fields(fields: dict[str, Any]) -> None:
    """Raise ValidationError for the first rule a complete listing field set breaks."""
    for name in _TEXT_FIELDS:
        if not fields.get(name):
            raise ValidationError(f"{name} is required.", field=name)

    price = fields.get("price")
    if price is None or isinstance(price, bool) or not isinstance(price, (int, float)):
        raise ValidationError("price is required and must be a number.", field="price")
    if math.isnan(price) or price < 0:
        raise ValidationError("price must not be negative.", field="price")

    if fields.get("category") not in CATEGORIES:
        raise ValidationError(f"category must be one of: {', '.join(CATEGORIES)}", field="category")

    if fields.get("status") not in STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(STATUSES)}", field="status")

    if not fields.get("images"):
        raise ValidationError("At least one image reference is required.", field="images")


class ListingService:
    def __init__(self, store: ListingStore, default_page_size: int = 20, max_page_size: int = 100) -> None:
        self.store = store
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    # ------------------------------------------------------------------
    # Owner operations
    # ------------------------------------------------------------------

    def create(self, account: Account, listing_input: dict[str, Any]) -> Listing:
        """Create a listing owned by account. Any owner in the input is ignored."""
        fields = _clean_fields({k: v for k, v in listing_input.items() if k in MUTABLE_FIELDS})
        if not fields.get("status"):
            fields["status"] = STATUS_ACTIVE
        validate_listing_fields(fields)

        listing = Listing(
            title=fields["title"],
            description=fields["description"],
            price=float(fields["price"]),
            category=fields["category"],
            images=list(fields["images"]),
            location=fields["location"],
            status=fields["status"],
            owner_id=account.id,
        )
        listing_id = self.store.create_listing(listing)
        logger.info("Listing %d created by account %d", listing_id, account.id)
        return self._get_or_404(listing_id)

    def list_own(self, account: Account) -> list[Listing]:
        """Every listing owned by account, in insertion order."""
        return self.store.list_by_owner(account.id)

    def update(self, account: Account, listing_id: int, patch: dict[str, Any]) -> Listing:
        """Merge patch into an owned listing and return the result.

        Only MUTABLE_FIELDS are applied; keys with a None value are ignored.
        The merged listing is re-validated before anything is written.
        """
        current = self.store.get_owned_listing(listing_id, account.id)
        if current is None:
            raise NotFoundError()

        changes = _clean_fields({k: v for k, v in patch.items() if k in MUTABLE_FIELDS and v is not None})
        merged = {name: getattr(current, name) for name in MUTABLE_FIELDS}
        merged.update(changes)
        validate_listing_fields(merged)

        if "price" in changes:
            changes["price"] = float(changes["price"])
        # Always write, even for an empty patch, so updated_at is refreshed.
        if not self.store.update_listing(listing_id, account.id, **changes):
            # Deleted by the owner between the read and the write.
            raise NotFoundError()
        logger.info("Listing %d updated by account %d", listing_id, account.id)
        return self._get_or_404(listing_id)

    def delete(self, account: Account, listing_id: int) -> None:
        if not self.store.delete_listing(listing_id, account.id):
            raise NotFoundError()
        logger.info("Listing %d deleted by account %d", listing_id, account.id)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def get(self, listing_id: int) -> Listing:
        return self._get_or_404(listing_id)

    def list_by_owner(self, owner_id: int) -> list[Listing]:
        """Public view of one account's listings, newest first."""
        return self.store.list_by_owner(owner_id, newest_first=True)

    def search(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        show_sold: Optional[bool] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> ListingPage:
        """Return one page of matching listings, newest first.

        show_sold=None behaves like True (all statuses). Pages past the end
        yield an empty list, not an error.
        """
        if page < 1:
            raise ValidationError("page must be 1 or greater.", field="page")
        size = page_size if page_size is not None else self.default_page_size
        if size < 1 or size > self.max_page_size:
            raise ValidationError(f"limit must be between 1 and {self.max_page_size}.", field="limit")

        term = search.strip() if search else None
        listings, total = self.store.search(
            search=term or None,
            category=category or None,
            show_sold=show_sold is not False,
            offset=(page - 1) * size,
            limit=size,
        )
        return ListingPage(
            listings=listings,
            total_count=total,
            total_pages=math.ceil(total / size),
            current_page=page,
            page_size=size,
        )

    def _get_or_404(self, listing_id: int) -> Listing:
        listing = self.store.get_listing(listing_id)
        if listing is None:
            raise NotFoundError()
        return listing
