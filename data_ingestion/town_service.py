"""
Data Ingestion - Town Lookup Service.

Read side of the town store, used by the command surface.
A missing town is a normal outcome (None), not an error.
"""

import logging
from typing import Optional

from data_ingestion.types import TownRecord
from storage.repositories.towns import TownRepository


class TownService:
    """Case-insensitive lookup of the latest town snapshot."""

    def __init__(self, repository: TownRepository) -> None:
        self._repository = repository
        self._logger = logging.getLogger("town_service")

    def get_town_info(self, town_name: str) -> Optional[TownRecord]:
        """
        Latest snapshot for a town.

        Args:
            town_name: Town name in any letter case

        Returns:
            TownRecord, or None when the town is unknown
        """
        key = town_name.strip().lower()
        if not key:
            return None

        record = self._repository.get_latest(key)
        if record is None:
            self._logger.debug(f"Town not found: {key}")
        return record
