"""
regions.py — Region-name lookup tables.

Profile documents store states either as USPS abbreviations ("CA") or as
full names ("California"), and countries under whatever name the user's
geocoder returned. The polygon datasets the map joins against key
features by a single canonical `name`:

  • US states     → full state name        ("California")
  • world country → Natural Earth style    ("United States of America")

Every aggregation key passes through one of the normalizers below so the
counts line up with the polygon feature names. Extend the tables here
rather than adding special cases at the call sites.
"""

from typing import Optional

# ── US states (+ DC, PR) ──────────────────────────────────────────────────────

ABBREV_TO_STATE_NAME: dict[str, str] = {
    "AL": "Alabama",
    "AK": "Alaska",
    "AZ": "Arizona",
    "AR": "Arkansas",
    "CA": "California",
    "CO": "Colorado",
    "CT": "Connecticut",
    "DE": "Delaware",
    "DC": "District of Columbia",
    "FL": "Florida",
    "GA": "Georgia",
    "HI": "Hawaii",
    "ID": "Idaho",
    "IL": "Illinois",
    "IN": "Indiana",
    "IA": "Iowa",
    "KS": "Kansas",
    "KY": "Kentucky",
    "LA": "Louisiana",
    "ME": "Maine",
    "MD": "Maryland",
    "MA": "Massachusetts",
    "MI": "Michigan",
    "MN": "Minnesota",
    "MS": "Mississippi",
    "MO": "Missouri",
    "MT": "Montana",
    "NE": "Nebraska",
    "NV": "Nevada",
    "NH": "New Hampshire",
    "NJ": "New Jersey",
    "NM": "New Mexico",
    "NY": "New York",
    "NC": "North Carolina",
    "ND": "North Dakota",
    "OH": "Ohio",
    "OK": "Oklahoma",
    "OR": "Oregon",
    "PA": "Pennsylvania",
    "PR": "Puerto Rico",
    "RI": "Rhode Island",
    "SC": "South Carolina",
    "SD": "South Dakota",
    "TN": "Tennessee",
    "TX": "Texas",
    "UT": "Utah",
    "VT": "Vermont",
    "VA": "Virginia",
    "WA": "Washington",
    "WV": "West Virginia",
    "WI": "Wisconsin",
    "WY": "Wyoming",
}

# Lower-cased full name → abbreviation, for case-insensitive lookups.
_STATE_NAME_INDEX: dict[str, str] = {name.lower(): abbrev for abbrev, name in ABBREV_TO_STATE_NAME.items()}

# ── Countries ─────────────────────────────────────────────────────────────────

# Name the main app stores for US profiles, and the polygon feature name.
UNITED_STATES = "United States"
UNITED_STATES_FEATURE = "United States of America"

# Keys are lower-cased synonyms; values are polygon feature names.
COUNTRY_SYNONYMS: dict[str, str] = {
    "united states": UNITED_STATES_FEATURE,
    "united states of america": UNITED_STATES_FEATURE,
    "usa": UNITED_STATES_FEATURE,
    "us": UNITED_STATES_FEATURE,
    "u.s.": UNITED_STATES_FEATURE,
    "u.s.a.": UNITED_STATES_FEATURE,
    "america": UNITED_STATES_FEATURE,
    "uk": "United Kingdom",
    "u.k.": "United Kingdom",
    "united kingdom": "United Kingdom",
    "great britain": "United Kingdom",
    "britain": "United Kingdom",
    "england": "United Kingdom",
    "scotland": "United Kingdom",
    "wales": "United Kingdom",
    "northern ireland": "United Kingdom",
    "south korea": "South Korea",
    "korea, republic of": "South Korea",
    "republic of korea": "South Korea",
    "north korea": "North Korea",
    "russia": "Russia",
    "russian federation": "Russia",
    "czechia": "Czech Republic",
    "czech republic": "Czech Republic",
    "ivory coast": "Ivory Coast",
    "côte d'ivoire": "Ivory Coast",
    "cote d'ivoire": "Ivory Coast",
    "tanzania": "United Republic of Tanzania",
    "united republic of tanzania": "United Republic of Tanzania",
    "serbia": "Republic of Serbia",
    "republic of serbia": "Republic of Serbia",
    "the bahamas": "The Bahamas",
    "bahamas": "The Bahamas",
    "viet nam": "Vietnam",
    "vietnam": "Vietnam",
    "uae": "United Arab Emirates",
    "united arab emirates": "United Arab Emirates",
}


# Words kept lower-case when re-casing "bosnia and herzegovina" style input.
_MINOR_WORDS = {"and", "of", "the", "da", "de", "del", "du"}


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _recase(value: str) -> str:
    """Title-case all-lower / all-upper names; mixed case is trusted as typed."""
    if not (value.islower() or (value.isupper() and len(value) > 3)):
        return value
    words = value.lower().split()
    return " ".join(
        word if i and word in _MINOR_WORDS else word[:1].upper() + word[1:]
        for i, word in enumerate(words)
    )


def _case_variants(value: str) -> set[str]:
    return {value, value.lower(), value.upper(), value.title()}


def state_abbreviation(value: Optional[str]) -> Optional[str]:
    """Return the USPS abbreviation for a state name or abbreviation, or None if unknown."""
    value = _clean(value)
    if value is None:
        return None
    if value.upper() in ABBREV_TO_STATE_NAME:
        return value.upper()
    return _STATE_NAME_INDEX.get(value.lower())


def normalize_state(value: Optional[str]) -> Optional[str]:
    """
    Return the full state name for an abbreviation or full name, in any case.

    Unknown values pass through trimmed (they simply won't match a polygon).
    Blank values return None.
    """
    value = _clean(value)
    if value is None:
        return None
    abbrev = state_abbreviation(value)
    if abbrev is None:
        return value
    return ABBREV_TO_STATE_NAME[abbrev]


def normalize_country(value: Optional[str]) -> Optional[str]:
    """Map a stored country name onto the world polygon feature name."""
    value = _clean(value)
    if value is None:
        return None
    return COUNTRY_SYNONYMS.get(value.lower()) or _recase(value)


def is_united_states(value: Optional[str]) -> bool:
    return normalize_country(value) == UNITED_STATES_FEATURE


def country_aliases(value: str) -> list[str]:
    """
    Every stored spelling that normalizes to the same feature as *value*.

    Used to build `$in` filters, since documents keep whatever name the
    geocoder returned.
    """
    canonical = normalize_country(value)
    if canonical is None:
        return []
    aliases = _case_variants(value.strip()) | _case_variants(canonical)
    for synonym, feature in COUNTRY_SYNONYMS.items():
        if feature == canonical:
            aliases |= _case_variants(synonym)
    if canonical == UNITED_STATES_FEATURE:
        aliases |= _case_variants(UNITED_STATES)
    return sorted(a for a in aliases if a)


def state_aliases(value: str) -> list[str]:
    """Abbreviation and full name for a state, in the casings profiles store, for `$in` filters."""
    value = value.strip()
    if not value:
        return []
    abbrev = state_abbreviation(value)
    if abbrev is None:
        return sorted(_case_variants(value))
    return sorted({abbrev, abbrev.lower()} | _case_variants(ABBREV_TO_STATE_NAME[abbrev]))
