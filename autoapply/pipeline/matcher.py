"""Filter chain for scraped listings.

Every filter is pure: same input, same output, no I/O. A listing survives
only if it passes all of them, so filter_listings is idempotent.

Filter order:
  1. ExcludeCompaniesFilter — case-insensitive substring on company
  2. LocationFilter         — preferred location contained in listing location
  3. ExperienceFilter       — listing range must intersect [min_exp, max_exp]
  4. SkillsFilter           — every required skill matches some listed skill
  5. RatingFilter           — parsed rating >= min_rating
"""

import logging
import re
from collections.abc import Callable

from autoapply.core.schemas import FilterPreferences, Listing

logger = logging.getLogger(__name__)

# A filter is a callable that takes listings and returns a subset.
Filter = Callable[[list[Listing]], list[Listing]]

_EXPERIENCE_RE = re.compile(r"(\d+)\s*(?:-\s*(\d+))?")
_RATING_RE = re.compile(r"\d+(?:\.\d+)?")


def parse_experience(text: str) -> tuple[int, int] | None:
    """'2-5 Yrs' → (2, 5), '3 Yrs' → (3, 3); None when no number is present."""
    match = _EXPERIENCE_RE.search(text or "")
    if match is None:
        return None
    low = int(match.group(1))
    high = int(match.group(2)) if match.group(2) else low
    if high < low:
        low, high = high, low
    return low, high


def parse_rating(text: str) -> float | None:
    """'4.1' → 4.1; None for missing or unparseable text."""
    match = _RATING_RE.search(text or "")
    if match is None:
        return None
    return float(match.group(0))


class _ListingFilter:
    """Shared call/log plumbing; subclasses implement ``_keep``."""

    def __call__(self, listings: list[Listing]) -> list[Listing]:
        if not self._active():
            return listings
        result = [listing for listing in listings if self._keep(listing)]
        removed = len(listings) - len(result)
        if removed:
            logger.debug("%s: removed %d listings", type(self).__name__, removed)
        return result

    def _active(self) -> bool:
        return True

    def _keep(self, listing: Listing) -> bool:
        raise NotImplementedError


class ExcludeCompaniesFilter(_ListingFilter):
    """Remove listings whose company contains any excluded name."""

    def __init__(self, exclude_companies: tuple[str, ...] | list[str]) -> None:
        self._names = [name.lower().strip() for name in exclude_companies if name.strip()]

    def _active(self) -> bool:
        return bool(self._names)

    def _keep(self, listing: Listing) -> bool:
        company = listing.company.lower()
        return not any(name in company for name in self._names)


class LocationFilter(_ListingFilter):
    """Keep listings whose location contains the preferred location.

    An empty preference keeps everything.
    """

    def __init__(self, location: str) -> None:
        self._location = location.lower().strip()

    def _active(self) -> bool:
        return bool(self._location)

    def _keep(self, listing: Listing) -> bool:
        return self._location in listing.location.lower()


class ExperienceFilter(_ListingFilter):
    """Keep listings whose experience range intersects [min_exp, max_exp].

    Missing or malformed experience text fails the filter.
    """

    def __init__(self, min_exp: int, max_exp: int) -> None:
        self._min = min_exp
        self._max = max_exp

    def _keep(self, listing: Listing) -> bool:
        parsed = parse_experience(listing.experience)
        if parsed is None:
            return False
        low, high = parsed
        return low <= self._max and high >= self._min


class SkillsFilter(_ListingFilter):
    """Keep listings where every required skill matches a listed skill.

    Matching is case-insensitive substring, in either direction.
    """

    def __init__(self, required_skills: tuple[str, ...] | list[str]) -> None:
        self._required = [s.lower().strip() for s in required_skills if s.strip()]

    def _active(self) -> bool:
        return bool(self._required)

    def _keep(self, listing: Listing) -> bool:
        listed = [s.lower() for s in listing.skills]
        return all(
            any(req in skill or skill in req for skill in listed)
            for req in self._required
        )


class RatingFilter(_ListingFilter):
    """Keep listings rated at least ``min_rating``.

    With min_rating > 0 an unparseable or missing rating fails.
    """

    def __init__(self, min_rating: float) -> None:
        self._min = min_rating

    def _active(self) -> bool:
        return self._min > 0

    def _keep(self, listing: Listing) -> bool:
        rating = parse_rating(listing.rating)
        return rating is not None and rating >= self._min


def build_filters(prefs: FilterPreferences) -> list[Filter]:
    return [
        ExcludeCompaniesFilter(prefs.exclude_companies),
        LocationFilter(prefs.location),
        ExperienceFilter(prefs.min_exp, prefs.max_exp),
        SkillsFilter(prefs.required_skills),
        RatingFilter(prefs.min_rating),
    ]


def run_filter_chain(listings: list[Listing], filters: list[Filter]) -> list[Listing]:
    """Apply filters in order, returning the surviving listings."""
    result = listings
    for f in filters:
        result = f(result)
    return result


def filter_listings(listings: list[Listing], prefs: FilterPreferences) -> list[Listing]:
    """Listings that satisfy every preference, in their original order."""
    return run_filter_chain(listings, build_filters(prefs))
