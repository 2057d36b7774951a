from __future__ import annotations

import re

KNOWN_COLLECTIONS: tuple[str, ...] = (
    "profiles",
    "rooms",
    "bookings",
    "menu_items",
    "orders",
    "inventory",
    "maintenance_requests",
    "transactions",
    "halls",
    "hall_bookings",
    "recipes",
    "pool_sessions",
)

# Seeding runs when this collection is empty after hydration.
ANCHOR_COLLECTION = "profiles"

DEFAULT_KEY_PREFIX = "table_"

COLLECTION_NAME_RE = re.compile(r"^[a-z][a-z0-9_]{0,63}$")


def validate_collection_name(name: str) -> str:
    if not isinstance(name, str) or not COLLECTION_NAME_RE.match(name):
        raise ValueError(f"invalid collection name: {name!r}")
    return name


def storage_key(collection: str, *, prefix: str = DEFAULT_KEY_PREFIX) -> str:
    return f"{prefix}{collection}"
