# rentals/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import availability, bookings, business, credits, health, pricing

__all__ = [
    "availability",
    "bookings",
    "business",
    "credits",
    "health",
    "pricing",
]
