"""Portal login with a persisted session token (cookie jar).

Flow for every login():
  1. Cached token present → apply it, open the authenticated URL, check state.
  2. Authenticated → done, no credential submission.
  3. Otherwise (including a navigation error or timeout during the check)
     discard the stale token, submit credentials (with bounded
     retry), and persist the fresh cookie jar.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from autoapply.core.errors import LoginFailed
from autoapply.core.schemas import LoginCredentials

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^a-z0-9]+")


class SessionTokenStore:
    """JSON cookie files keyed by (account, portal) under one directory."""

    def __init__(self, session_dir: str | Path) -> None:
        self._dir = Path(session_dir)

    def path_for(self, account: str, portal: str) -> Path:
        slug = _SLUG_RE.sub("_", account.lower()).strip("_") or "default"
        return self._dir / f"{portal}__{slug}.json"

    def load(self, account: str, portal: str) -> list[Any]:
        return _load_cookies(str(self.path_for(account, portal)))

    def save(self, account: str, portal: str, cookies: list[Any]) -> None:
        path = self.path_for(account, portal)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(cookies, indent=2))
        logger.debug("Saved %d cookies to %s", len(cookies), path)

    def discard(self, account: str, portal: str) -> None:
        path = self.path_for(account, portal)
        if path.exists():
            path.unlink()
            logger.info("Discarded stale session token %s", path)


class PortalSessionManager(ABC):
    """Base class for portal-specific login handling."""

    def __init__(self, token_store: SessionTokenStore, *, retries: int = 1) -> None:
        self._tokens = token_store
        self._retries = retries

    @property
    @abstractmethod
    def portal_id(self) -> str:
        """Portal identifier used to key session tokens."""

    @property
    @abstractmethod
    def authenticated_url(self) -> str:
        """A page only reachable with a valid session."""

    @abstractmethod
    async def is_authenticated(self, page: Any) -> bool:
        """Return True if the current page shows a logged-in state."""

    @abstractmethod
    async def submit_credentials(self, page: Any, credentials: LoginCredentials) -> None:
        """Drive the portal's login form. May raise on missing selectors."""

    async def login(self, page: Any, credentials: LoginCredentials) -> bool:
        """Authenticate ``page``'s context.

        Returns:
            True if a cached token was reused, False if credentials were submitted.

        Raises:
            LoginFailed: After the credential submission and its retries fail.
        """
        account = credentials.username
        cookies = self._tokens.load(account, self.portal_id)
        if cookies:
            if await self._reuse_token(page, cookies):
                logger.info("Reused session token for %s on %s", account, self.portal_id)
                return True
            logger.info("Session token for %s is stale, logging in again", account)
            self._tokens.discard(account, self.portal_id)
            try:
                await page.context.clear_cookies()
            except Exception as e:
                msg = f"Could not reset the {self.portal_id} session for {account}: {e}"
                raise LoginFailed(msg) from e

        last_error: Exception | None = None
        for attempt in range(self._retries + 1):
            try:
                await self.submit_credentials(page, credentials)
                if await self.is_authenticated(page):
                    self._tokens.save(account, self.portal_id, await page.context.cookies())
                    logger.info("Logged into %s as %s", self.portal_id, account)
                    return False
                last_error = None
                logger.warning(
                    "Login attempt %d/%d did not reach an authenticated page",
                    attempt + 1, self._retries + 1,
                )
            except Exception as e:
                last_error = e
                logger.warning(
                    "Login attempt %d/%d failed: %s", attempt + 1, self._retries + 1, e,
                )

        msg = f"Login to {self.portal_id} failed for {account}"
        if last_error is not None:
            msg = f"{msg}: {last_error}"
            raise LoginFailed(msg) from last_error
        raise LoginFailed(msg)

    async def _reuse_token(self, page: Any, cookies: list[Any]) -> bool:
        """Apply ``cookies`` and check them. Any failure counts as a stale token."""
        try:
            await page.context.add_cookies(cookies)
            await page.goto(self.authenticated_url)
            return await self.is_authenticated(page)
        except Exception as e:
            logger.warning("Session token check on %s failed: %s", self.portal_id, e)
            return False


def _load_cookies(path: str) -> list[Any]:
    """Load cookies from a JSON file. Returns empty list on any failure."""
    cookie_path = Path(path)
    if not cookie_path.exists():
        logger.debug("Cookie file not found: %s", path)
        return []
    try:
        data = json.loads(cookie_path.read_text())
        if isinstance(data, list):
            return data
        logger.warning("Cookie file is not a JSON array: %s", path)
        return []
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to load cookies from %s: %s", path, e)
        return []
