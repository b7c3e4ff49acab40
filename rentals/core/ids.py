"""Identifier helpers.

Identifiers are UUID strings. New ones are minted from ULIDs so they sort
by creation time in indexes.
"""

from typing import Optional
import uuid

import ulid


def generate_id() -> str:
    """Generate a new time-ordered UUID string."""
    return str(ulid.ULID().to_uuid())


def parse_id(value: str) -> Optional[uuid.UUID]:
    """Parse and validate a UUID string."""
    try:
        return uuid.UUID(str(value))
    except (ValueError, AttributeError, TypeError):
        return None


def is_valid_id(value: str) -> bool:
    """Check if a string is a valid UUID."""
    return parse_id(value) is not None


def normalize_id(value: str) -> Optional[str]:
    """Canonical lowercase form of a UUID string, or None when malformed."""
    parsed = parse_id(value)
    return str(parsed) if parsed is not None else None
