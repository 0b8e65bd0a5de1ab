"""
Availability and pricing: date intervals, tiered prices and overlap checks.
"""
