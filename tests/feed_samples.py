"""
Marker feed samples.

Markup mirrors what the web map publishes for a town area
and its home block.
"""

from typing import Any, Dict, Optional


BOLD = '<span style="font-weight:bold">'


def town_markup(
    mayor: str = "Caesar",
    nation: Optional[str] = "Rome",
    peaceful: str = "false",
    bank: str = "$1,234.50",
    upkeep: str = "$100.00",
    founded: str = "Dec 1 2024",
    residents: str = "Caesar, Brutus",
    resident_count: int = 2,
    resources: str = "Wheat, Iron",
) -> str:
    """Primary area description for one town."""
    parts = ["<div>"]
    if nation is not None:
        parts.append(f'<span style="font-size:150%">Member of {nation}</span><br />')
    parts.extend([
        f"{BOLD}Mayor</span>: {mayor}<br />",
        f"{BOLD}Peaceful?</span> {peaceful}<br />",
        f"{BOLD}Culture</span>: Latin<br />",
        f"{BOLD}Board</span>: Veni vidi vici<br />",
        f"{BOLD}Bank</span>: {bank}<br />",
        f"{BOLD}Upkeep</span>: {upkeep}<br />",
        f"{BOLD}Founded</span>: {founded}<br />",
        f"{BOLD}Resources</span>: {resources}<br />",
        f"{BOLD}Residents ({resident_count})</span>: {residents}<br />",
        "</div>",
    ])
    return "".join(parts)


def home_markup(trusted: str = "Brutus, Cassius") -> str:
    """Home block description carrying the trusted players."""
    return f"<div>{BOLD}Trusted Players</span>: {trusted}</div>"


def feed_payload(areas: Dict[str, str], markerset: str = "towny.markerset") -> Dict[str, Any]:
    """Marker document wrapping the given area descriptions."""
    return {
        "sets": {
            markerset: {
                "areas": {name: {"desc": desc} for name, desc in areas.items()},
            },
        },
    }
