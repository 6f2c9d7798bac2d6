"""Reusable browser actions: bounded waits, selector fallbacks, and sleeps.

Design rules:
  - Every wait carries a timeout; waits are tied to a DOM condition.
  - Remaining fixed pauses go through settle()/random_sleep() with named
    durations from ApplyConfig.
"""

import asyncio
import logging
import random
from typing import Any

logger = logging.getLogger(__name__)


async def random_sleep(min_s: float, max_s: float) -> float:
    """Sleep for a random duration between min_s and max_s seconds.

    Floor enforcement: min_s is always respected as the absolute minimum.
    If max_s < min_s, max_s is raised to min_s.

    Returns the actual sleep duration (useful for testing).
    """
    floor = max(min_s, 0.0)
    ceiling = max(max_s, floor)
    duration = random.uniform(floor, ceiling)
    await asyncio.sleep(duration)
    return duration


async def settle(seconds: float) -> None:
    """Give the page a named settle period after an interaction."""
    if seconds > 0:
        await asyncio.sleep(seconds)


async def find_first(parent: Any, selectors: tuple[str, ...]) -> Any | None:
    """Return the first element matching any selector in order."""
    for selector in selectors:
        try:
            el = await parent.query_selector(selector)
            if el is not None:
                return el
        except Exception:
            logger.debug("Selector '%s' raised, trying next", selector, exc_info=True)
    return None


async def wait_for_first(page: Any, selectors: tuple[str, ...], timeout_ms: int) -> Any | None:
    """Wait until any selector is visible, sharing one timeout budget.

    Returns the element, or None when the budget runs out.
    """
    combined = ", ".join(selectors)
    try:
        return await page.wait_for_selector(combined, timeout=timeout_ms, state="visible")
    except Exception:
        logger.debug("No match for '%s' within %dms", combined, timeout_ms)
        return None


async def text_of(el: Any | None) -> str:
    """Stripped text content of an element, "" when missing."""
    if el is None:
        return ""
    try:
        text = await el.text_content()
    except Exception:
        logger.debug("Error reading text content", exc_info=True)
        return ""
    return text.strip() if text else ""


async def page_contains_text(page: Any, phrase: str) -> bool:
    """Case-sensitive substring check against the rendered body text."""
    try:
        body = await page.inner_text("body")
    except Exception:
        logger.debug("Could not read body text", exc_info=True)
        return False
    return phrase in (body or "")
