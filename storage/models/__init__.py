"""
Storage Models Package.

ORM models for the town store.

- Base: declarative base
- TownSnapshot: one row per town per poll cycle
"""

from storage.models.base import Base
from storage.models.towns import TownSnapshot


__all__ = [
    "Base",
    "TownSnapshot",
]
