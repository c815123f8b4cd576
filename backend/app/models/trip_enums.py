"""
Trip-related enumerations.
"""

import enum


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    DRAFT = "DRAFT"  # Proposed, no vehicle/driver claimed yet
    DISPATCHED = "DISPATCHED"  # Vehicle and driver claimed
    COMPLETED = "COMPLETED"  # Delivered, claims released
    CANCELLED = "CANCELLED"  # Abandoned, claims released if held
