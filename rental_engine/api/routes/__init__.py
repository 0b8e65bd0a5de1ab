"""
API routes and endpoints.
"""

from . import assets, availability, health, ical, pricing, reservations

__all__ = ["assets", "availability", "health", "ical", "pricing", "reservations"]
