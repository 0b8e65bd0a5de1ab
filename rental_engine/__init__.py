"""
Rental Availability & Pricing Engine.

Overlap detection, tiered pricing and idempotent import of external
calendar feeds for vehicle and furnished-unit rentals.
"""

__version__ = "1.0.0"
__author__ = "Rental Operations Team"
__description__ = "Availability checks, tiered pricing and calendar feed sync for rentals"
