"""
Data Ingestion - Town Record Builder.

============================================================
RESPONSIBILITY
============================================================
Turns extracted raw strings into a typed TownRecord.

- Currency parsing ("$1,234.50" -> 1234.5)
- Date parsing ("Dec 1 2024" -> epoch seconds at UTC midnight)
- Lookup key normalization (name_lower)
- Snapshot timestamping immediately before persistence

============================================================
DESIGN PRINCIPLES
============================================================
- Parsers never raise; unparseable input becomes 0
- area_size and coordinates are not published by the feed
  and stay at their zero defaults

============================================================
"""

import dataclasses
import logging
import math
from datetime import datetime, timezone
from typing import Optional

from core.clock import ClockProtocol, SystemClock
from data_ingestion.normalizers.field_extractor import ExtractedFields, extract_fields
from data_ingestion.types import TownRecord


FOUNDED_DATE_FORMAT = "%b %d %Y"

logger = logging.getLogger("normalizer.town_builder")


def parse_currency(value: str) -> float:
    """
    Parse a currency string such as "$1,234.50".

    Args:
        value: Raw currency text

    Returns:
        Parsed amount, or 0.0 when the text is not a number
    """
    text = value[1:] if value.startswith("$") else value
    # Underscore digit grouping is not currency syntax
    if "_" in text:
        return 0.0
    try:
        amount = float(text.replace(",", ""))
    except ValueError:
        return 0.0
    if not math.isfinite(amount):
        return 0.0
    return amount


def parse_date(value: str) -> int:
    """
    Parse a founding date such as "Dec 1 2024".

    Args:
        value: Raw date text

    Returns:
        Epoch seconds of that date at 00:00 UTC, or 0 on failure
    """
    try:
        parsed = datetime.strptime(value.strip(), FOUNDED_DATE_FORMAT)
    except ValueError:
        return 0
    return int(parsed.replace(tzinfo=timezone.utc).timestamp())


def record_from_fields(name: str, fields: ExtractedFields) -> TownRecord:
    """Assemble a TownRecord from already-extracted fields."""
    return TownRecord(
        name=name,
        name_lower=name.lower(),
        affiliation=fields.affiliation or None,
        owner=fields.owner,
        peaceful=fields.peaceful,
        culture=fields.culture,
        board=fields.board,
        balance=parse_currency(fields.balance),
        upkeep_cost=parse_currency(fields.upkeep),
        founded_at=parse_date(fields.founded),
        resources=list(fields.resources),
        members=list(fields.members),
        trusted=list(fields.trusted),
    )


def build_town_record(
    name: str,
    description: str,
    clock: Optional[ClockProtocol] = None,
) -> TownRecord:
    """
    Build a TownRecord from a merged description.

    Args:
        name: Town name (the merge key)
        description: Merged primary + home description
        clock: Clock used for the provisional last_updated value

    Returns:
        Typed town record
    """
    record = record_from_fields(name, extract_fields(description))
    record.last_updated = (clock or SystemClock()).epoch_seconds()
    return record


def stamp_record(record: TownRecord, clock: ClockProtocol) -> TownRecord:
    """Copy of record with last_updated set to the clock's current second."""
    return dataclasses.replace(record, last_updated=clock.epoch_seconds())


def is_reference_town(record: TownRecord, reference_town: Optional[str]) -> bool:
    """Whether record is the configured reference town."""
    return bool(reference_town) and record.name_lower == reference_town.lower()


def log_reference_town(record: TownRecord) -> None:
    """Emit the full field dump for the reference town."""
    logger.info(f"Reference town snapshot:\n{record.describe()}")
