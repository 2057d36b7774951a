from __future__ import annotations

import uuid
from typing import Any

from .records import Profile, Room

ADMIN_PROFILE_ID = "00000000-0000-0000-0000-000000000001"


def baseline_records(now: str) -> dict[str, list[dict[str, Any]]]:
    """
    First-boot data: the administrator profile and three starter rooms.
    Keyed by collection name; records are already stamped with `now`.
    """
    admin = Profile(
        id=ADMIN_PROFILE_ID,
        email="admin@hotel.com",
        full_name="System Administrator",
        role="admin",
        phone="+1-555-0100",
        avatar_url=None,
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    rooms = [
        Room(
            id=str(uuid.uuid4()),
            room_number="101",
            room_type="standard",
            status="available",
            price_per_night=120.0,
            amenities=["WiFi", "TV", "Air Conditioning"],
            floor=1,
            max_occupancy=2,
            description="Comfortable standard room with city view",
            created_at=now,
            updated_at=now,
        ),
        Room(
            id=str(uuid.uuid4()),
            room_number="102",
            room_type="deluxe",
            status="occupied",
            price_per_night=180.0,
            amenities=["WiFi", "TV", "Air Conditioning", "Mini Bar", "Balcony"],
            floor=1,
            max_occupancy=3,
            description="Spacious deluxe room with balcony",
            created_at=now,
            updated_at=now,
        ),
        Room(
            id=str(uuid.uuid4()),
            room_number="201",
            room_type="suite",
            status="available",
            price_per_night=350.0,
            amenities=["WiFi", "TV", "Air Conditioning", "Mini Bar", "Balcony", "Kitchen", "Living Room"],
            floor=2,
            max_occupancy=4,
            description="Luxury suite with separate living area",
            created_at=now,
            updated_at=now,
        ),
    ]
    return {
        "profiles": [admin.model_dump(mode="json")],
        "rooms": [r.model_dump(mode="json") for r in rooms],
    }
