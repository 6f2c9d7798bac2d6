"""Naukri portal adapter — wires login, URL builder, parser and apply flow."""

import logging
from typing import Any
from urllib.parse import urljoin

from autoapply.browser.actions import random_sleep, text_of, wait_for_first
from autoapply.browser.session import SessionTokenStore
from autoapply.core.config import Settings
from autoapply.core.errors import ScrapeTimeout
from autoapply.core.schemas import ApplicationResult, Listing, LoginCredentials, SearchCriteria
from autoapply.oracle.oracle import DecisionOracle
from autoapply.platforms.base import PortalAdapter
from autoapply.platforms.naukri.apply import ApplicationFlow
from autoapply.platforms.naukri.parser import NaukriParser
from autoapply.platforms.naukri.searcher import BASE_URL, build_search_url
from autoapply.platforms.naukri.selectors import CARD_SELECTORS, NEXT_PAGE_SELECTOR, NEXT_PAGE_TEXT
from autoapply.platforms.naukri.session import NaukriSessionManager

logger = logging.getLogger(__name__)


class NaukriAdapter(PortalAdapter):
    """Naukri adapter. Pages are supplied per call by the orchestrator."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._parser = NaukriParser()
        self._sessions = NaukriSessionManager(
            SessionTokenStore(settings.browser.session_dir),
            retries=settings.browser.login_retries,
            timeout_ms=settings.browser.timeout_ms,
        )

    @property
    def portal_id(self) -> str:
        return "naukri"

    async def login(self, page: Any, credentials: LoginCredentials) -> None:
        await self._sessions.login(page, credentials)

    async def search(self, page: Any, criteria: SearchCriteria) -> None:
        url = build_search_url(criteria)
        logger.info("Searching Naukri: %s", url)
        await page.goto(url)

    async def scrape(self, page: Any, max_pages: int) -> list[Listing]:
        """Scrape up to ``max_pages`` result pages starting from the current one.

        Raises:
            ScrapeTimeout: If no result card appears on the first page.
        """
        all_listings: list[Listing] = []
        timeout_ms = self._settings.browser.timeout_ms

        for page_num in range(1, max_pages + 1):
            if await wait_for_first(page, CARD_SELECTORS, timeout_ms) is None:
                if page_num == 1:
                    msg = f"No listings appeared within {timeout_ms}ms"
                    raise ScrapeTimeout(msg)
                logger.warning("Page %d never rendered listings; stopping", page_num)
                break

            cards = await self._find_cards(page)
            listings = await self._parser.parse_cards(cards)
            all_listings.extend(listings)
            logger.info(
                "Page %d: found %d cards, parsed %d listings",
                page_num, len(cards), len(listings),
            )

            if page_num == max_pages:
                break
            if not await self._go_next(page):
                logger.info("No enabled '%s' control; last page reached", NEXT_PAGE_TEXT)
                break
            await random_sleep(2.0, 4.0)

        return all_listings

    async def apply(
        self,
        page: Any,
        listing: Listing,
        oracle: DecisionOracle,
        *,
        campaign_id: str = "",
    ) -> ApplicationResult:
        flow = ApplicationFlow(
            page,
            oracle,
            self._settings.apply,
            portal=self.portal_id,
            campaign_id=campaign_id,
        )
        return await flow.run(listing)

    async def _find_cards(self, page: Any) -> list[Any]:
        """Find result cards using fallback selectors."""
        for selector in CARD_SELECTORS:
            cards = await page.query_selector_all(selector)
            if cards:
                logger.debug("Found %d cards with selector '%s'", len(cards), selector)
                return cards  # type: ignore[no-any-return]
        logger.warning("No cards found with any selector")
        return []

    async def _go_next(self, page: Any) -> bool:
        """Follow the enabled "Next" control. Returns False on the last page."""
        for anchor in await page.query_selector_all(NEXT_PAGE_SELECTOR):
            if await text_of(anchor) != NEXT_PAGE_TEXT:
                continue
            if await anchor.get_attribute("disabled") is not None:
                return False
            href = await anchor.get_attribute("href")
            if href:
                await page.goto(urljoin(BASE_URL, href))
            else:
                await anchor.click()
                await page.wait_for_load_state("domcontentloaded")
            return True
        return False
