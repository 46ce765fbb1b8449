"""
Data Ingestion - Normalizers Package.

This package turns raw feed markers into typed town records.

Normalizers:
- area_merger: Groups markers by town and merges home descriptors
- field_extractor: Label-anchored extraction from marker markup
- town_builder: Typed TownRecord assembly and timestamping
"""

from data_ingestion.normalizers.area_merger import MergedArea, group_areas, merge_areas
from data_ingestion.normalizers.field_extractor import (
    ExtractedFields,
    affiliation,
    extract_fields,
    member_list,
    peaceful_flag,
    resource_list,
    scalar,
    trusted_list,
)
from data_ingestion.normalizers.town_builder import (
    build_town_record,
    parse_currency,
    parse_date,
    stamp_record,
)


__all__ = [
    "MergedArea",
    "group_areas",
    "merge_areas",
    "ExtractedFields",
    "affiliation",
    "extract_fields",
    "member_list",
    "peaceful_flag",
    "resource_list",
    "scalar",
    "trusted_list",
    "build_town_record",
    "parse_currency",
    "parse_date",
    "stamp_record",
]
