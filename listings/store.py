"""
listings/store.py -- SQLAlchemy-backed persistence layer for listings.

Uses SQLAlchemy Core (not ORM) so the dataclasses in listings/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. ListingStore is the repository;
_row_to_listing is the mapper. Services never touch SQL directly.

Ownership: every mutating query carries `owner_id = :owner` in its WHERE
clause next to `id = :id`. A listing owned by someone else and a listing that
does not exist both come back as "no row", which is exactly the distinction
the service must not leak. Doing the check inside the statement also means
there is no read-then-write window for another request to slip through.

Security: all queries use bound parameters. No f-strings in SQL. Search terms
are LIKE-escaped so "%" and "_" match literally.

Case folding: on SQLite, search compares fold_case(column) against a folded
term through a Python function registered on every connection, so "çanta"
finds "Çanta". Other backends use ILIKE.

Usage:
    store = ListingStore()                               # SQLite default
    store = ListingStore("postgresql://user:pw@host/db") # PostgreSQL
    listing_id = store.create_listing(listing)
    store.update_listing(listing_id, owner_id, status="Sold")
    rows, total = store.search(search="car", category=None, show_sold=False, offset=0, limit=20)
    store.close()
"""

import json
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Column,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    and_,
    create_engine,
    event,
    func,
    or_,
    select,
    text,
)
from sqlalchemy.engine import Engine

from listings.models import STATUS_SOLD, Listing

_DEFAULT_DB_URL = "sqlite:///classifieds.db"

# Fields callers may change through update_listing(). owner_id, id and the
# timestamps are not among them.
MUTABLE_FIELDS: frozenset[str] = frozenset(
    {"title", "description", "price", "category", "images", "location", "status"}
)

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_listings = Table(
    "listings",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("owner_id", Integer, nullable=False, index=True),  # accounts.id
    Column("title", String(255), nullable=False),
    Column("description", Text, nullable=False),
    Column("price", Float, nullable=False),
    Column("category", String(50), nullable=False, index=True),
    Column("images", Text, nullable=False),  # JSON array serialized as text
    Column("location", String(255), nullable=False),
    Column("status", String(20), nullable=False, server_default="Active"),
    Column("created_at", String(32), nullable=False, index=True),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety (per connection)."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# SQLite INTEGER PRIMARY KEY is a signed 64-bit value; larger ids cannot exist
# and would overflow the driver.
_MAX_ROW_ID = 2**63 - 1

# Turkish dotted and dotless i fold to plain "i" so "izmir" finds "İzmir"
# and "IZMIR" alike. str.casefold() alone turns "İ" into "i" plus a
# combining dot, which breaks substring matches.
_I_VARIANTS = str.maketrans({"İ": "i", "I": "i", "ı": "i"})


def _storable_id(value: int) -> bool:
    return 0 < value <= _MAX_ROW_ID


def fold_case(value):
    """Unicode-aware lower-casing used for search on both sides of LIKE."""
    if not isinstance(value, str):
        return value
    return value.translate(_I_VARIANTS).casefold()


def _register_fold_case(dbapi_conn, connection_record) -> None:
    """Expose fold_case() to SQL. SQLite's own lower() only folds ASCII."""
    dbapi_conn.create_function("fold_case", 1, fold_case, deterministic=True)


def _escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term is matched as a literal substring."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ListingStore:
    """Repository for Listing entities."""

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        self._sqlite = db_url.startswith("sqlite")
        if self._sqlite:
            event.listen(self.engine, "connect", _set_wal_mode)
            event.listen(self.engine, "connect", _register_fold_case)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_listing(self, listing: Listing) -> int:
        """Insert a new listing and return its assigned ID. Timestamps are set here."""
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _listings.insert().values(
                    owner_id=listing.owner_id,
                    title=listing.title,
                    description=listing.description,
                    price=listing.price,
                    category=listing.category,
                    images=json.dumps(listing.images, ensure_ascii=False),
                    location=listing.location,
                    status=listing.status,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def update_listing(self, listing_id: int, owner_id: int, **fields) -> bool:
        """Update mutable fields on a listing owned by owner_id and refresh updated_at.

        Accepted fields: see MUTABLE_FIELDS. Unknown fields raise ValueError.
        Returns True if a row was updated, False if the listing does not exist
        or belongs to someone else.
        """
        unknown = set(fields) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown listing fields: {unknown!r}")
        if not _storable_id(listing_id):
            return False
        if "images" in fields:
            fields["images"] = json.dumps(fields["images"], ensure_ascii=False)
        fields["updated_at"] = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _listings.update()
                .where((_listings.c.id == listing_id) & (_listings.c.owner_id == owner_id))
                .values(**fields)
            )
            conn.commit()
        return result.rowcount > 0

    def delete_listing(self, listing_id: int, owner_id: int) -> bool:
        """Delete a listing owned by owner_id. Returns False if not found or not owned."""
        if not _storable_id(listing_id):
            return False
        with self.engine.connect() as conn:
            result = conn.execute(
                _listings.delete().where((_listings.c.id == listing_id) & (_listings.c.owner_id == owner_id))
            )
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_listing(self, listing_id: int) -> Optional[Listing]:
        if not _storable_id(listing_id):
            return None
        with self.engine.connect() as conn:
            row = conn.execute(_listings.select().where(_listings.c.id == listing_id)).fetchone()
        return _row_to_listing(row) if row is not None else None

    def get_owned_listing(self, listing_id: int, owner_id: int) -> Optional[Listing]:
        """Return the listing only if owner_id owns it; None covers both absent and foreign."""
        if not _storable_id(listing_id):
            return None
        with self.engine.connect() as conn:
            row = conn.execute(
                _listings.select().where((_listings.c.id == listing_id) & (_listings.c.owner_id == owner_id))
            ).fetchone()
        return _row_to_listing(row) if row is not None else None

    def list_by_owner(self, owner_id: int, newest_first: bool = False) -> list[Listing]:
        """Return every listing of one owner.

        Default order is insertion order (ascending id); newest_first flips it
        to creation time descending for public profile pages.
        """
        if not _storable_id(owner_id):
            return []
        query = _listings.select().where(_listings.c.owner_id == owner_id)
        if newest_first:
            query = query.order_by(_listings.c.created_at.desc(), _listings.c.id.desc())
        else:
            query = query.order_by(_listings.c.id)
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_listing(r) for r in rows]

    def search(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        show_sold: bool = True,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Listing], int]:
        """Filter, count, and page listings newest first.

        search   -- case-insensitive substring over title OR description OR location
        category -- exact match
        show_sold -- False drops status "Sold"

        Returns (rows for the requested window, total matches before paging).
        """
        conditions = []
        if search:
            columns = (_listings.c.title, _listings.c.description, _listings.c.location)
            if self._sqlite:
                pattern = f"%{_escape_like(fold_case(search))}%"
                matches = [func.fold_case(col).like(pattern, escape="\\") for col in columns]
            else:
                pattern = f"%{_escape_like(search)}%"
                matches = [col.ilike(pattern, escape="\\") for col in columns]
            conditions.append(or_(*matches))
        if category:
            conditions.append(_listings.c.category == category)
        if not show_sold:
            conditions.append(_listings.c.status != STATUS_SOLD)

        where = and_(*conditions) if conditions else None
        count_query = select(func.count()).select_from(_listings)
        page_query = _listings.select()
        if where is not None:
            count_query = count_query.where(where)
            page_query = page_query.where(where)
        page_query = (
            page_query.order_by(_listings.c.created_at.desc(), _listings.c.id.desc())
            .offset(offset)
            .limit(limit)
        )
        with self.engine.connect() as conn:
            total = conn.execute(count_query).scalar() or 0
            rows = conn.execute(page_query).fetchall()
        return [_row_to_listing(r) for r in rows], total

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_listing(row) -> Listing:
    return Listing(
        id=row.id,
        owner_id=row.owner_id,
        title=row.title,
        description=row.description,
        price=row.price,
        category=row.category,
        images=json.loads(row.images) if row.images else [],
        location=row.location,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
