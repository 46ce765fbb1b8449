"""
Data Ingestion - Area Merger.

============================================================
RESPONSIBILITY
============================================================
Groups raw area markers by town and merges each town's primary
descriptor with its optional "home" descriptor.

============================================================
RULES
============================================================
- Town key is the marker name up to the first "__"
- A name ending in "__home" is the secondary descriptor
- Within a group the last primary and last secondary win
- Merged text is primary + "\n" + secondary (when present)
- Groups with only a secondary descriptor produce nothing

============================================================
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from data_ingestion.types import AreaMarker


KEY_SEPARATOR = "__"
HOME_SUFFIX = "__home"

logger = logging.getLogger("normalizer.area_merger")


@dataclass
class MergedArea:
    """Primary and secondary descriptors collected for one town."""
    key: str
    primary: Optional[str] = None
    secondary: Optional[str] = None

    @property
    def description(self) -> Optional[str]:
        """Merged description, or None when no primary exists."""
        if self.primary is None:
            return None
        if self.secondary is None:
            return self.primary
        return f"{self.primary}\n{self.secondary}"


def town_key(marker_name: str) -> str:
    """Entity key for a marker name."""
    return marker_name.split(KEY_SEPARATOR, 1)[0]


def is_home_marker(marker_name: str) -> bool:
    """Whether the marker carries the secondary (home) descriptor."""
    return marker_name.endswith(HOME_SUFFIX)


def group_areas(markers: Iterable[AreaMarker]) -> Dict[str, MergedArea]:
    """
    Group markers by town key.

    Args:
        markers: All area markers from one fetch

    Returns:
        Mapping of town key to its collected descriptors
    """
    groups: Dict[str, MergedArea] = {}

    for marker in markers:
        key = town_key(marker.name)
        group = groups.setdefault(key, MergedArea(key=key))
        if is_home_marker(marker.name):
            group.secondary = marker.description
        else:
            group.primary = marker.description

    return groups


def merge_areas(markers: Iterable[AreaMarker]) -> Dict[str, str]:
    """
    Merge area markers into one description per town.

    Args:
        markers: All area markers from one fetch

    Returns:
        Mapping of town key to merged description, one entry per
        group that has a primary descriptor
    """
    merged: Dict[str, str] = {}

    for key, group in group_areas(markers).items():
        description = group.description
        if description is None:
            logger.debug(f"Skipping {key}: home marker without primary area")
            continue
        merged[key] = description

    return merged
