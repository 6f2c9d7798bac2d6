"""Naukri DOM parser — converts result cards into Listing objects.

Design rules:
  - Every selector lookup uses a fallback tuple.
  - Title is required; a card without one is skipped.
  - Missing optional fields (salary, rating, reviews, ...) return "".
"""

import logging
from typing import Protocol, runtime_checkable
from urllib.parse import urljoin

from autoapply.browser.actions import find_first, text_of
from autoapply.core.schemas import Listing
from autoapply.platforms.naukri.searcher import BASE_URL
from autoapply.platforms.naukri.selectors import (
    COMPANY_SELECTORS,
    DESCRIPTION_SELECTORS,
    EXPERIENCE_SELECTORS,
    LOCATION_SELECTORS,
    POSTED_SELECTORS,
    RATING_SELECTORS,
    REVIEWS_SELECTORS,
    SALARY_SELECTORS,
    SKILL_ITEM_SELECTOR,
    TITLE_LINK_SELECTORS,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class ElementLike(Protocol):
    """Minimal element interface so tests can use AsyncMock instead of patchright."""

    async def query_selector(self, selector: str) -> "ElementLike | None": ...
    async def query_selector_all(self, selector: str) -> "list[ElementLike]": ...
    async def get_attribute(self, name: str) -> str | None: ...
    async def text_content(self) -> str | None: ...


class NaukriParser:
    """Parses Naukri search-result cards into Listing objects."""

    async def parse_cards(self, cards: list[ElementLike]) -> list[Listing]:
        """Parse multiple cards, skipping any that fail."""
        results: list[Listing] = []
        for card in cards:
            try:
                listing = await self.parse_card(card)
                if listing is not None:
                    results.append(listing)
            except Exception:
                logger.debug("Failed to parse card, skipping", exc_info=True)
        return results

    async def parse_card(self, card: ElementLike) -> Listing | None:
        """Parse a single card. Returns None if the title cannot be read."""
        title_link = await find_first(card, TITLE_LINK_SELECTORS)
        title = await text_of(title_link)
        if not title:
            logger.debug("Card missing title — skipping")
            return None

        return Listing(
            title=title,
            company=await self._text(card, COMPANY_SELECTORS),
            location=await self._titled(card, LOCATION_SELECTORS),
            experience=await self._titled(card, EXPERIENCE_SELECTORS),
            salary=await self._titled(card, SALARY_SELECTORS),
            rating=await self._text(card, RATING_SELECTORS),
            reviews=await self._text(card, REVIEWS_SELECTORS),
            description=await self._text(card, DESCRIPTION_SELECTORS),
            skills=await self._skills(card),
            posted_on=await self._text(card, POSTED_SELECTORS),
            apply_link=await self._href(title_link),
        )

    # --- Private helpers ---

    async def _text(self, card: ElementLike, selectors: tuple[str, ...]) -> str:
        return await text_of(await find_first(card, selectors))

    async def _titled(self, card: ElementLike, selectors: tuple[str, ...]) -> str:
        """Prefer the ``title`` attribute (untruncated), fall back to text."""
        el = await find_first(card, selectors)
        if el is None:
            return ""
        try:
            value = await el.get_attribute("title")
            if value and value.strip():
                return value.strip()
        except Exception:
            logger.debug("Error reading title attribute", exc_info=True)
        return await text_of(el)

    async def _skills(self, card: ElementLike) -> list[str]:
        try:
            items = await card.query_selector_all(SKILL_ITEM_SELECTOR)
        except Exception:
            logger.debug("Error reading skills", exc_info=True)
            return []
        skills: list[str] = []
        for item in items:
            text = await text_of(item)
            if text:
                skills.append(text)
        return skills

    @staticmethod
    async def _href(link: ElementLike | None) -> str:
        if link is None:
            return ""
        try:
            href = await link.get_attribute("href")
        except Exception:
            logger.debug("Error reading href", exc_info=True)
            return ""
        if not href or not href.strip():
            return ""
        return urljoin(BASE_URL, href.strip())
