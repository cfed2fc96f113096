"""
listings/models.py -- Domain dataclass and vocabularies for classified listings.

These are pure data containers with zero logic. Validation and the ownership
rule live in listings/service.py; persistence in listings/store.py.
"""

from dataclasses import dataclass, field
from typing import Optional

# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

# Fixed category set. Values are stored and returned verbatim.
CATEGORIES: tuple[str, ...] = (
    "Emlak",
    "Vasıta",
    "Elektronik",
    "Ev Eşyası",
    "İş Makineleri",
    "Diğer",
)

STATUS_ACTIVE = "Active"
STATUS_SOLD = "Sold"
STATUS_INACTIVE = "Inactive"
STATUSES: tuple[str, ...] = (STATUS_ACTIVE, STATUS_SOLD, STATUS_INACTIVE)


@dataclass
class Listing:
    """A classified advertisement owned by exactly one account.

    owner_id is taken from the authenticated caller at creation and never
    changes afterwards. images holds references (URLs or keys), never bytes.

    id is None before the record is written to the database.
    """

    title: str
    description: str
    price: float
    category: str  # one of CATEGORIES
    location: str
    owner_id: int
    images: list[str] = field(default_factory=list)
    status: str = STATUS_ACTIVE  # one of STATUSES
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, refreshed by store on every update


@dataclass
class ListingPage:
    """One page of search results plus the totals a pager needs."""

    listings: list[Listing]
    total_count: int
    total_pages: int
    current_page: int
    page_size: int
