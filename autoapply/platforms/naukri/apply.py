"""Per-listing application state machine for Naukri.

States:
  OPENED → APPLY_TRIGGERED → {CONVERSATIONAL | STATIC_FORM | NO_FORM}
         → (ANSWERING)* → APPLIED | FAILED | UNKNOWN

The conversational drawer asks one question at a time. Each pass reads the
latest bot message and answers through whichever widget is offered:
  - radio set  → oracle picks one label (fallback: first option)
  - checkbox   → clicked and saved, no oracle call
  - otherwise  → oracle free-text answer typed into the contenteditable box
"""

import logging
from enum import Enum
from typing import Any

from autoapply.browser.actions import (
    find_first,
    page_contains_text,
    random_sleep,
    settle,
    text_of,
    wait_for_first,
)
from autoapply.core.config import ApplyConfig
from autoapply.core.errors import ApplyFlowTimeout
from autoapply.core.schemas import ApplicationResult, ApplicationStatus, Listing
from autoapply.oracle.oracle import DecisionOracle, match_option
from autoapply.platforms.naukri.selectors import (
    APPLY_BUTTON_SELECTORS,
    CHAT_DRAWER_SELECTORS,
    CHAT_ITEM_SELECTOR,
    CHAT_QUESTION_SELECTOR,
    CHECKBOX_SELECTOR,
    RADIO_CONTAINER_SELECTOR,
    RADIO_LABEL_SELECTOR,
    SAVE_BUTTON_SELECTOR,
    TEXT_INPUT_SELECTOR,
)

logger = logging.getLogger(__name__)

_SET_TEXT_JS = """(el, value) => {
    el.innerText = value;
    el.dispatchEvent(new Event('input', { bubbles: true }));
}"""


class ApplyState(str, Enum):
    OPENED = "opened"
    APPLY_TRIGGERED = "apply_triggered"
    CONVERSATIONAL = "conversational"
    STATIC_FORM = "static_form"
    NO_FORM = "no_form"
    ANSWERING = "answering"
    APPLIED = "applied"
    FAILED = "failed"
    UNKNOWN = "unknown"


TERMINAL_STATES = frozenset({ApplyState.APPLIED, ApplyState.FAILED, ApplyState.UNKNOWN})


class ApplicationFlow:
    """Drives one listing's application on a page the caller owns."""

    def __init__(
        self,
        page: Any,
        oracle: DecisionOracle,
        config: ApplyConfig,
        *,
        portal: str = "naukri",
        campaign_id: str = "",
    ) -> None:
        self._page = page
        self._oracle = oracle
        self._config = config
        self._portal = portal
        self._campaign_id = campaign_id
        self._state = ApplyState.OPENED
        self.history: list[ApplyState] = [ApplyState.OPENED]
        self.questions_answered = 0

    @property
    def state(self) -> ApplyState:
        return self._state

    async def run(self, listing: Listing) -> ApplicationResult:
        """Apply to ``listing``. Never raises; failures become Failed results."""
        if not listing.apply_link:
            return self._result(listing, ApplicationStatus.SKIPPED, "listing has no apply link")

        try:
            await self._page.goto(listing.apply_link)
            await self._trigger_apply()
            mode = await self._classify()
            if mode is ApplyState.CONVERSATIONAL:
                await self._answer_loop()
                await random_sleep(self._config.final_settle_s, self._config.final_settle_s * 2)
            else:
                await settle(self._config.static_settle_s)
            return await self._finish(listing, mode)
        except Exception as e:
            self._transition(ApplyState.FAILED)
            logger.warning("Application failed for '%s' at %s: %s", listing.title, listing.company, e)
            return self._result(listing, ApplicationStatus.FAILED, str(e) or type(e).__name__)

    # --- States ---

    async def _trigger_apply(self) -> None:
        button = await wait_for_first(
            self._page, APPLY_BUTTON_SELECTORS, self._config.apply_button_timeout_ms,
        )
        if button is None:
            msg = f"apply button not found within {self._config.apply_button_timeout_ms}ms"
            raise ApplyFlowTimeout(msg)
        await button.click()
        self._transition(ApplyState.APPLY_TRIGGERED)

    async def _classify(self) -> ApplyState:
        drawer = await wait_for_first(
            self._page, CHAT_DRAWER_SELECTORS, self._config.drawer_timeout_ms,
        )
        if drawer is not None:
            mode = ApplyState.CONVERSATIONAL
        elif "naukri.com" not in (self._page.url or ""):
            # Redirected to the employer's own application form.
            mode = ApplyState.STATIC_FORM
        else:
            mode = ApplyState.NO_FORM
        self._transition(mode)
        return mode

    async def _answer_loop(self) -> None:
        for attempt in range(self._config.max_chat_attempts):
            if await find_first(self._page, CHAT_DRAWER_SELECTORS) is None:
                logger.debug("Chat drawer closed after %d answers", self.questions_answered)
                return
            question = await self._latest_question()
            if not question:
                logger.debug("No question text readable; leaving chat loop")
                return

            self._transition(ApplyState.ANSWERING)
            logger.debug("Question %d: %s", attempt + 1, question)
            if not await self._answer(question):
                return
            self.questions_answered += 1
            await settle(self._config.answer_settle_s)

        logger.info("Chat attempt limit (%d) reached", self._config.max_chat_attempts)

    async def _finish(self, listing: Listing, mode: ApplyState) -> ApplicationResult:
        if await page_contains_text(self._page, self._config.success_phrase):
            self._transition(ApplyState.APPLIED)
            logger.info("Applied: '%s' at %s", listing.title, listing.company)
            return self._result(listing, ApplicationStatus.APPLIED)

        self._transition(ApplyState.UNKNOWN)
        reason = "no success confirmation"
        if mode is ApplyState.STATIC_FORM:
            reason = "external application form; no success confirmation"
        logger.info("No confirmation for '%s' at %s", listing.title, listing.company)
        return self._result(listing, ApplicationStatus.FAILED, reason)

    # --- Answer widgets ---

    async def _answer(self, question: str) -> bool:
        """Answer the current question. Returns False when no widget is usable."""
        radios = await self._page.query_selector_all(RADIO_CONTAINER_SELECTOR)
        if radios:
            return await self._answer_choice(question, radios)

        checkbox = await self._page.query_selector(CHECKBOX_SELECTOR)
        if checkbox is not None:
            await checkbox.click()
            # The chatbot only submits a selection through Save.
            await self._click_save()
            return True

        return await self._answer_text(question)

    async def _answer_choice(self, question: str, containers: list[Any]) -> bool:
        labels: list[tuple[str, Any]] = []
        for container in containers:
            label = await container.query_selector(RADIO_LABEL_SELECTOR)
            text = await text_of(label)
            if text:
                labels.append((text, label))
        if not labels:
            logger.warning("Radio set without readable labels for '%s'", question)
            return False

        options = [text for text, _ in labels]
        answer = await self._oracle.ask_constrained_choice(question, options)
        chosen = match_option(answer, options)
        if chosen is None:
            chosen = options[0]
            logger.warning(
                "Answer '%s' matches none of %s; falling back to '%s'", answer, options, chosen,
            )
        element = next(el for text, el in labels if text == chosen)
        await element.click()
        await self._click_save()
        return True

    async def _answer_text(self, question: str) -> bool:
        box = await self._page.query_selector(TEXT_INPUT_SELECTOR)
        if box is None:
            logger.warning("No input widget for question '%s'", question)
            return False
        answer = await self._oracle.ask_open_ended(question)
        await box.evaluate(_SET_TEXT_JS, answer)
        await box.focus()
        await self._page.keyboard.press("Enter")
        return True

    async def _click_save(self) -> None:
        save = await self._page.query_selector(SAVE_BUTTON_SELECTOR)
        if save is not None:
            await save.click()

    async def _latest_question(self) -> str:
        items = await self._page.query_selector_all(CHAT_ITEM_SELECTOR)
        if not items:
            return ""
        return await text_of(await items[-1].query_selector(CHAT_QUESTION_SELECTOR))

    # --- Bookkeeping ---

    def _transition(self, state: ApplyState) -> None:
        if self._state in TERMINAL_STATES:
            return
        self._state = state
        self.history.append(state)

    def _result(
        self,
        listing: Listing,
        status: ApplicationStatus,
        reason: str | None = None,
    ) -> ApplicationResult:
        return ApplicationResult(
            listing=listing,
            status=status,
            reason=reason,
            campaign_id=self._campaign_id,
            portal=self._portal,
            terminal_state=self._state.value,
        )
