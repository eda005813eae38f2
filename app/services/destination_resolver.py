"""
Destination resolver - maps a free-text destination to a priced country.

Quotes are typed by hand ("Madrid, Spain", "Prague", "London & Bristol"),
so the country is found by keyword matching on the lower-cased text.
The first matching rule wins; unknown destinations fall back to Spain
pricing.
"""

import enum
from typing import Optional, Tuple


class Country(str, enum.Enum):
    """Countries with their own destination pricing."""
    CZECH_REPUBLIC = "Czech Republic"
    HUNGARY = "Hungary"
    POLAND = "Poland"
    DENMARK = "Denmark"
    PORTUGAL = "Portugal"
    SPAIN = "Spain"
    FRANCE = "France"
    ITALY = "Italy"
    UNITED_KINGDOM = "United Kingdom"


DEFAULT_COUNTRY = Country.SPAIN

# Ordered: the first rule with a matching keyword decides the country.
DESTINATION_KEYWORDS: Tuple[Tuple[Country, Tuple[str, ...]], ...] = (
    (Country.CZECH_REPUBLIC, ("prague", "czech")),
    (Country.HUNGARY, ("budapest", "hungary")),
    (Country.POLAND, ("krakow", "warsaw", "poland")),
    (Country.DENMARK, ("copenhagen", "denmark")),
    (Country.PORTUGAL, ("porto", "lisbon", "portugal")),
    (Country.SPAIN, ("barcelona", "madrid", "valencia", "seville", "bilbao", "gijon", "spain")),
    (Country.FRANCE, ("paris", "lyon", "france")),
    (Country.ITALY, ("rome", "milan", "florence", "venice", "naples", "bari", "catania", "italy")),
    (Country.UNITED_KINGDOM, ("london", "bristol", "uk", "united kingdom", "britain")),
)

COUNTRY_ALIASES = {
    "uk": Country.UNITED_KINGDOM,
}


def resolve_country(destination: str) -> Country:
    """
    Resolve the pricing country for a destination string.

    Matching is a plain substring test, so "Porto" also matches inside
    longer names and "uk" matches any text containing those letters.
    Returns DEFAULT_COUNTRY when nothing matches.
    """
    destination_lower = (destination or "").lower()

    for country, keywords in DESTINATION_KEYWORDS:
        if any(keyword in destination_lower for keyword in keywords):
            return country

    return DEFAULT_COUNTRY


def normalize_country_name(name: str) -> Optional[Country]:
    """Return the Country for an exact name or alias, None if unknown."""
    key = (name or "").strip().lower()
    if key in COUNTRY_ALIASES:
        return COUNTRY_ALIASES[key]
    for country in Country:
        if country.value.lower() == key:
            return country
    return None
