"""
In-Memory Town Repository.

Test double for TownRepository with the same latest-wins
semantics as the SQL implementation. Nothing is persisted
across processes.
"""

import copy
import threading
from typing import Dict, Optional

from data_ingestion.types import TownRecord
from storage.repositories.towns import TownRepository, validate_record


class InMemoryTownRepository(TownRepository):
    """Dictionary-backed repository keyed by (name_lower, last_updated)."""

    def __init__(self) -> None:
        self._snapshots: Dict[str, Dict[int, TownRecord]] = {}
        self._lock = threading.Lock()
        self.put_calls = 0

    def put(self, record: TownRecord) -> None:
        validate_record(record, "InMemoryTownRepository")
        with self._lock:
            self.put_calls += 1
            versions = self._snapshots.setdefault(record.name_lower, {})
            versions[record.last_updated] = copy.deepcopy(record)

    def get_latest(self, name_lower: str) -> Optional[TownRecord]:
        with self._lock:
            versions = self._snapshots.get(name_lower.lower())
            if not versions:
                return None
            return copy.deepcopy(versions[max(versions)])

    def snapshot_count(self, name_lower: Optional[str] = None) -> int:
        """Number of stored snapshots, optionally for one town."""
        with self._lock:
            if name_lower is not None:
                return len(self._snapshots.get(name_lower.lower(), {}))
            return sum(len(versions) for versions in self._snapshots.values())

    def town_keys(self) -> list:
        """Lookup keys of every stored town."""
        with self._lock:
            return sorted(self._snapshots)
