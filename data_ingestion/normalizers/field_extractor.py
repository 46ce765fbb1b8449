"""
Data Ingestion - Field Extractor.

============================================================
RESPONSIBILITY
============================================================
Pulls typed values out of a merged town description using
label-anchored pattern matching.

============================================================
MARKUP CONVENTION
============================================================
    <span style="font-weight:bold">Label</span>: value<br />

- The label may be preceded by other text inside the bold span
- The value runs up to the next "<br" (Trusted Players may also
  end at "</div>")
- Only the first occurrence of a label is honored
- Affiliation lives in a separate span:
    <span style="font-size:150%">Member of Nation</span>

============================================================
DEFAULTS
============================================================
Every function is total. A missing label yields:
- scalar: "0" (indistinguishable from a literal 0 downstream)
- lists: []
- affiliation: ""
- peaceful_flag: False

============================================================
"""

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional, Pattern


MISSING_SCALAR = "0"

BOLD_SPAN = r'<span style="font-weight:bold">'

MEMBERS_PATTERN = re.compile(
    BOLD_SPAN + r".*?(?:Residents|Members)\s*\(\d+\)\s*</span>:\s*(.*?)<br"
)
RESOURCES_PATTERN = re.compile(BOLD_SPAN + r".*?Resources\s*</span>:\s*(.*?)<br")
TRUSTED_PATTERN = re.compile(BOLD_SPAN + r".*?Trusted Players\s*</span>:\s*(.*?)(?:<br|</div>)")
AFFILIATION_PATTERN = re.compile(r'<span style="font-size:150%">Member of (.*?)</span>')
PEACEFUL_PATTERN = re.compile(BOLD_SPAN + r".*?Peaceful\?\s*</span>\s*((?i:true|false))")


@lru_cache(maxsize=64)
def _scalar_pattern(label: str) -> Pattern[str]:
    return re.compile(BOLD_SPAN + r".*?" + re.escape(label) + r"\s*</span>:\s*(.*?)<br")


def _first_capture(pattern: Pattern[str], desc: str) -> Optional[str]:
    match = pattern.search(desc)
    if match is None:
        return None
    return match.group(1).strip()


def _split_csv(value: str, drop_empty: bool) -> List[str]:
    items = [item.strip() for item in value.split(",")]
    if drop_empty:
        items = [item for item in items if item]
    return items


# =============================================================
# EXTRACTION OPERATIONS
# =============================================================

def scalar(desc: str, label: str) -> str:
    """
    Extract the value following a bold label.

    Args:
        desc: Merged town description
        label: Label text inside the bold span (e.g. "Bank")

    Returns:
        Trimmed value, or "0" when the label is absent
    """
    value = _first_capture(_scalar_pattern(label), desc)
    return MISSING_SCALAR if value is None else value


def member_list(desc: str) -> List[str]:
    """Residents listed under "Residents (n)"; empty names dropped."""
    value = _first_capture(MEMBERS_PATTERN, desc)
    if value is None:
        return []
    return _split_csv(value, drop_empty=True)


def resource_list(desc: str) -> List[str]:
    """
    Resources listed under "Resources".

    Empty entries from stray commas are kept as "" so the list lines up
    with what the feed published.
    """
    value = _first_capture(RESOURCES_PATTERN, desc)
    if value is None:
        return []
    return _split_csv(value, drop_empty=False)


def trusted_list(desc: str) -> List[str]:
    """Players listed under "Trusted Players"; empty entries kept."""
    value = _first_capture(TRUSTED_PATTERN, desc)
    if value is None:
        return []
    return _split_csv(value, drop_empty=False)


def affiliation(desc: str) -> str:
    """Nation name from "Member of ...", or "" for an unaffiliated town."""
    value = _first_capture(AFFILIATION_PATTERN, desc)
    return value or ""


def peaceful_flag(desc: str) -> bool:
    """True only when the Peaceful? label is followed by "true"."""
    value = _first_capture(PEACEFUL_PATTERN, desc)
    return value is not None and value.lower() == "true"


# =============================================================
# AGGREGATE
# =============================================================

@dataclass
class ExtractedFields:
    """Raw strings and lists pulled from one description."""
    owner: str = MISSING_SCALAR
    balance: str = MISSING_SCALAR
    upkeep: str = MISSING_SCALAR
    culture: str = MISSING_SCALAR
    board: str = MISSING_SCALAR
    founded: str = MISSING_SCALAR
    affiliation: str = ""
    peaceful: bool = False
    members: List[str] = field(default_factory=list)
    resources: List[str] = field(default_factory=list)
    trusted: List[str] = field(default_factory=list)


def extract_fields(desc: str) -> ExtractedFields:
    """Run every extractor against one merged description."""
    return ExtractedFields(
        owner=scalar(desc, "Mayor"),
        balance=scalar(desc, "Bank"),
        upkeep=scalar(desc, "Upkeep"),
        culture=scalar(desc, "Culture"),
        board=scalar(desc, "Board"),
        founded=scalar(desc, "Founded"),
        affiliation=affiliation(desc),
        peaceful=peaceful_flag(desc),
        members=member_list(desc),
        resources=resource_list(desc),
        trusted=trusted_list(desc),
    )
