"""Location matcher: hierarchical city / country / preferred-location comparison.

Locations are "City, Region, Country" style strings. The first comma part is
treated as the city and the last as the country.
"""

import logging
from collections.abc import Iterable
from typing import NamedTuple

from src.core.schemas import FieldMatch
from src.matching.text import contains_either, normalize

logger = logging.getLogger(__name__)


class _Place(NamedTuple):
    full: str
    city: str
    country: str


def _parse(location: str | None) -> _Place:
    parts = [normalize(p) for p in (location or "").split(",")]
    parts = [p for p in parts if p]
    if not parts:
        return _Place("", "", "")
    return _Place(" ".join(parts), parts[0], parts[-1])


def match_location(
    candidate_location: str | None,
    job_location: str | None,
    preferred_locations: Iterable[str] = (),
) -> FieldMatch:
    """Score how close a job's location is to where the candidate lives or wants to be."""
    job = _parse(job_location)
    home = _parse(candidate_location)
    prefs = [p for p in preferred_locations or () if normalize(p)]

    if not job.full or (not home.full and not prefs):
        return FieldMatch(score=0.0, reason="No location data")

    if home.full:
        if home.full == job.full:
            return FieldMatch(score=100.0, reason="Perfect match")
        if home.city == job.city and home.country == job.country:
            return FieldMatch(score=95.0, reason="Same city and country")
        if home.city == job.city:
            return FieldMatch(score=80.0, reason="Same city")
        if home.country == job.country:
            return FieldMatch(score=70.0, reason="Same country")
        # "NYC" vs "New York City" style near-misses are not penalized.
        if contains_either(home.city, job.city):
            return FieldMatch(score=100.0, reason="Partial city match")
        if contains_either(home.country, job.country):
            return FieldMatch(score=50.0, reason="Partial country match")

    for pref in prefs:
        place = _parse(pref)
        if place.full == job.full:
            return FieldMatch(score=85.0, reason="Preferred location", matched=[pref])
        if contains_either(place.city, job.city):
            return FieldMatch(score=75.0, reason="Preferred city", matched=[pref])
        if contains_either(place.country, job.country):
            return FieldMatch(score=65.0, reason="Preferred country", matched=[pref])

    logger.debug("No location match: '%s' vs '%s'", candidate_location, job_location)
    return FieldMatch(score=0.0, reason="No match")
