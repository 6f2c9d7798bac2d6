"""Naukri login: credential form plus authenticated-state detection."""

import logging
from typing import Any

from autoapply.browser.actions import find_first, wait_for_first
from autoapply.browser.session import PortalSessionManager, SessionTokenStore
from autoapply.core.errors import LoginFailed
from autoapply.core.schemas import LoginCredentials
from autoapply.platforms.naukri.selectors import (
    AUTHENTICATED_URL,
    AUTHENTICATED_URL_MARKER,
    HOME_URL,
    LOGIN_LAYER_BUTTON,
    LOGIN_PASSWORD_INPUT,
    LOGIN_SUBMIT_BUTTON,
    LOGIN_USERNAME_INPUT,
)

logger = logging.getLogger(__name__)


class NaukriSessionManager(PortalSessionManager):
    """Session manager for www.naukri.com jobseeker accounts."""

    def __init__(
        self,
        token_store: SessionTokenStore,
        *,
        retries: int = 1,
        timeout_ms: int = 30000,
    ) -> None:
        super().__init__(token_store, retries=retries)
        self._timeout_ms = timeout_ms

    @property
    def portal_id(self) -> str:
        return "naukri"

    @property
    def authenticated_url(self) -> str:
        return AUTHENTICATED_URL

    async def is_authenticated(self, page: Any) -> bool:
        if AUTHENTICATED_URL_MARKER not in (page.url or ""):
            return False
        # Redirected back with the login layer still offered: not logged in.
        return await find_first(page, LOGIN_LAYER_BUTTON) is None

    async def submit_credentials(self, page: Any, credentials: LoginCredentials) -> None:
        await page.goto(HOME_URL)

        layer_button = await wait_for_first(page, LOGIN_LAYER_BUTTON, self._timeout_ms)
        if layer_button is None:
            msg = "Naukri login button not found"
            raise LoginFailed(msg)
        await layer_button.click()

        username = await wait_for_first(page, LOGIN_USERNAME_INPUT, self._timeout_ms)
        password = await find_first(page, LOGIN_PASSWORD_INPUT)
        submit = await find_first(page, LOGIN_SUBMIT_BUTTON)
        if username is None or password is None or submit is None:
            msg = "Naukri login form is incomplete"
            raise LoginFailed(msg)

        await username.fill(credentials.username)
        await password.fill(credentials.password)
        await submit.click()

        try:
            await page.wait_for_url(f"**/{AUTHENTICATED_URL_MARKER}**", timeout=self._timeout_ms)
        except Exception:
            logger.debug("No redirect to %s after submit", AUTHENTICATED_URL_MARKER, exc_info=True)
