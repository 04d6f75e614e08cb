"""Static US region reference tables.

State names cover the full boundary dataset so every polygon can be
reconciled to a postal code. The county table is a small demo set — the
map service has no county polygons, so county clicks resolve by reverse
geocoding against this table only.
"""

from geoshade.core.types import Level, RegionRecord

# Full name → postal abbreviation, used to reconcile boundary feature names
STATE_CODES: dict[str, str] = {
    "Alabama": "AL", "Alaska": "AK", "Arizona": "AZ", "Arkansas": "AR",
    "California": "CA", "Colorado": "CO", "Connecticut": "CT", "Delaware": "DE",
    "District of Columbia": "DC", "Florida": "FL", "Georgia": "GA", "Hawaii": "HI",
    "Idaho": "ID", "Illinois": "IL", "Indiana": "IN", "Iowa": "IA",
    "Kansas": "KS", "Kentucky": "KY", "Louisiana": "LA", "Maine": "ME",
    "Maryland": "MD", "Massachusetts": "MA", "Michigan": "MI", "Minnesota": "MN",
    "Mississippi": "MS", "Missouri": "MO", "Montana": "MT", "Nebraska": "NE",
    "Nevada": "NV", "New Hampshire": "NH", "New Jersey": "NJ", "New Mexico": "NM",
    "New York": "NY", "North Carolina": "NC", "North Dakota": "ND", "Ohio": "OH",
    "Oklahoma": "OK", "Oregon": "OR", "Pennsylvania": "PA", "Rhode Island": "RI",
    "South Carolina": "SC", "South Dakota": "SD", "Tennessee": "TN", "Texas": "TX",
    "Utah": "UT", "Vermont": "VT", "Virginia": "VA", "Washington": "WA",
    "West Virginia": "WV", "Wisconsin": "WI", "Wyoming": "WY",
}

# Checklist options (demo subset)
STATE_OPTIONS: list[RegionRecord] = [
    RegionRecord(name="California", code="CA"),
    RegionRecord(name="Texas", code="TX"),
    RegionRecord(name="New York", code="NY"),
    RegionRecord(name="Florida", code="FL"),
    RegionRecord(name="Washington", code="WA"),
    RegionRecord(name="Illinois", code="IL"),
]

COUNTY_OPTIONS: list[RegionRecord] = [
    RegionRecord(name="San Francisco County, CA", code="06075"),
    RegionRecord(name="Los Angeles County, CA", code="06037"),
    RegionRecord(name="New York County, NY", code="36061"),
    RegionRecord(name="Miami-Dade County, FL", code="12086"),
    RegionRecord(name="King County, WA", code="53033"),
]

# "<County Name>, <ST>" → FIPS, used to reconcile reverse-geocoder output
COUNTY_CODES: dict[str, str] = {r.name: r.code for r in COUNTY_OPTIONS}

_COUNTY_SUFFIXES = ("County", "Parish", "Borough")


def options_for(level: Level) -> list[RegionRecord]:
    """Checklist options for a level."""
    return STATE_OPTIONS if level == Level.STATE else COUNTY_OPTIONS


def state_code_for(name: str) -> str | None:
    """'California' → 'CA'. None when the name is not a known state."""
    return STATE_CODES.get(name.strip())


def county_label(county_name: str, state_abbr: str) -> str:
    """Synthesize the county lookup key from geocoder components.

    'San Francisco', 'CA'        → 'San Francisco County, CA'
    'Orleans Parish', 'LA'       → 'Orleans Parish, LA'
    'Miami-Dade County', 'FL'    → 'Miami-Dade County, FL'
    """
    name = county_name.strip()
    if not name.endswith(_COUNTY_SUFFIXES):
        name = f"{name} County"
    return f"{name}, {state_abbr.strip()}"


def county_code_for(label: str) -> str | None:
    """Look up a county label in the demo table. None outside coverage."""
    return COUNTY_CODES.get(label)
