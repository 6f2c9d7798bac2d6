"""Tests for session tokens, the login state machine, and Naukri login."""

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from autoapply.browser.session import PortalSessionManager, SessionTokenStore, _load_cookies
from autoapply.core.errors import LoginFailed
from autoapply.core.schemas import LoginCredentials
from autoapply.platforms.naukri.session import NaukriSessionManager

CREDS = LoginCredentials(username="alice@example.com", password="secret")
COOKIES = [{"name": "nauk_at", "value": "abc", "domain": ".naukri.com", "path": "/"}]


# ---------------------------------------------------------------------------
# TestLoadCookies
# ---------------------------------------------------------------------------


class TestLoadCookies:
    """Cookie file loading — various success and failure paths."""

    def test_valid_cookie_file(self, tmp_path: Path) -> None:
        cookie_file = tmp_path / "cookies.json"
        cookie_file.write_text(json.dumps(COOKIES))
        result = _load_cookies(str(cookie_file))
        assert len(result) == 1
        assert result[0]["name"] == "nauk_at"

    def test_missing_file_returns_empty(self) -> None:
        assert _load_cookies("/nonexistent/path/cookies.json") == []

    def test_not_array_returns_empty(self, tmp_path: Path) -> None:
        cookie_file = tmp_path / "cookies.json"
        cookie_file.write_text('{"key": "value"}')
        assert _load_cookies(str(cookie_file)) == []

    def test_invalid_json_returns_empty(self, tmp_path: Path) -> None:
        cookie_file = tmp_path / "cookies.json"
        cookie_file.write_text("not-json{{{")
        assert _load_cookies(str(cookie_file)) == []


# ---------------------------------------------------------------------------
# TestSessionTokenStore
# ---------------------------------------------------------------------------


class TestSessionTokenStore:
    def test_save_load_discard(self, tmp_path: Path) -> None:
        store = SessionTokenStore(tmp_path / "sessions")
        store.save("alice@example.com", "naukri", COOKIES)
        assert store.load("alice@example.com", "naukri") == COOKIES
        store.discard("alice@example.com", "naukri")
        assert store.load("alice@example.com", "naukri") == []

    def test_keyed_by_account_and_portal(self, tmp_path: Path) -> None:
        store = SessionTokenStore(tmp_path)
        assert store.path_for("a@x.com", "naukri") != store.path_for("b@x.com", "naukri")
        assert store.path_for("a@x.com", "naukri") != store.path_for("a@x.com", "other")
        assert store.path_for("A@X.com", "naukri").name == "naukri__a_x_com.json"

    def test_discard_missing_is_noop(self, tmp_path: Path) -> None:
        SessionTokenStore(tmp_path).discard("nobody", "naukri")


# ---------------------------------------------------------------------------
# PortalSessionManager with a scripted portal
# ---------------------------------------------------------------------------


class _ScriptedManager(PortalSessionManager):
    """Authenticated state and submit outcomes are scripted per test."""

    def __init__(
        self,
        store: SessionTokenStore,
        *,
        auth_states: list[bool],
        submit_errors: list[Exception | None] | None = None,
        retries: int = 1,
    ) -> None:
        super().__init__(store, retries=retries)
        self._auth_states = list(auth_states)
        self._submit_errors = list(submit_errors or [])
        self.submissions = 0

    @property
    def portal_id(self) -> str:
        return "testportal"

    @property
    def authenticated_url(self) -> str:
        return "https://portal.test/home"

    async def is_authenticated(self, page: Any) -> bool:
        return self._auth_states.pop(0)

    async def submit_credentials(self, page: Any, credentials: LoginCredentials) -> None:
        self.submissions += 1
        if self._submit_errors:
            error = self._submit_errors.pop(0)
            if error is not None:
                raise error


def _page() -> MagicMock:
    page = MagicMock()
    page.goto = AsyncMock()
    page.context.add_cookies = AsyncMock()
    page.context.clear_cookies = AsyncMock()
    page.context.cookies = AsyncMock(return_value=COOKIES)
    return page


class TestPortalSessionManager:
    async def test_reuses_valid_token(self, tmp_path: Path) -> None:
        store = SessionTokenStore(tmp_path)
        store.save(CREDS.username, "testportal", COOKIES)
        manager = _ScriptedManager(store, auth_states=[True])
        page = _page()

        reused = await manager.login(page, CREDS)

        assert reused is True
        assert manager.submissions == 0
        page.context.add_cookies.assert_awaited_once_with(COOKIES)
        page.goto.assert_awaited_once_with("https://portal.test/home")

    async def test_stale_token_discarded_and_replaced(self, tmp_path: Path) -> None:
        store = SessionTokenStore(tmp_path)
        store.save(CREDS.username, "testportal", [{"name": "old", "value": "x"}])
        manager = _ScriptedManager(store, auth_states=[False, True])
        page = _page()

        reused = await manager.login(page, CREDS)

        assert reused is False
        assert manager.submissions == 1
        page.context.clear_cookies.assert_awaited_once()
        assert store.load(CREDS.username, "testportal") == COOKIES

    async def test_navigation_timeout_falls_back_to_login(self, tmp_path: Path) -> None:
        store = SessionTokenStore(tmp_path)
        store.save(CREDS.username, "testportal", [{"name": "old", "value": "x"}])
        manager = _ScriptedManager(store, auth_states=[True])
        page = _page()
        page.goto = AsyncMock(side_effect=TimeoutError("Timeout 30000ms exceeded"))

        reused = await manager.login(page, CREDS)

        assert reused is False
        assert manager.submissions == 1
        page.context.clear_cookies.assert_awaited_once()
        assert store.load(CREDS.username, "testportal") == COOKIES

    async def test_session_reset_failure_is_login_failed(self, tmp_path: Path) -> None:
        store = SessionTokenStore(tmp_path)
        store.save(CREDS.username, "testportal", COOKIES)
        manager = _ScriptedManager(store, auth_states=[False])
        page = _page()
        page.context.clear_cookies = AsyncMock(side_effect=RuntimeError("Target closed"))

        with pytest.raises(LoginFailed, match="Target closed"):
            await manager.login(page, CREDS)
        assert manager.submissions == 0

    async def test_fresh_login_persists_token(self, tmp_path: Path) -> None:
        store = SessionTokenStore(tmp_path)
        manager = _ScriptedManager(store, auth_states=[True])
        await manager.login(_page(), CREDS)
        assert store.load(CREDS.username, "testportal") == COOKIES

    async def test_single_retry_then_success(self, tmp_path: Path) -> None:
        manager = _ScriptedManager(
            SessionTokenStore(tmp_path),
            auth_states=[True],
            submit_errors=[TimeoutError("form slow"), None],
        )
        assert await manager.login(_page(), CREDS) is False
        assert manager.submissions == 2

    async def test_fails_after_retry(self, tmp_path: Path) -> None:
        manager = _ScriptedManager(
            SessionTokenStore(tmp_path),
            auth_states=[],
            submit_errors=[TimeoutError("1"), TimeoutError("2"), TimeoutError("3")],
        )
        with pytest.raises(LoginFailed, match="Login to testportal failed"):
            await manager.login(_page(), CREDS)
        assert manager.submissions == 2

    async def test_rejected_credentials(self, tmp_path: Path) -> None:
        store = SessionTokenStore(tmp_path)
        manager = _ScriptedManager(store, auth_states=[False, False])
        with pytest.raises(LoginFailed):
            await manager.login(_page(), CREDS)
        assert store.load(CREDS.username, "testportal") == []


# ---------------------------------------------------------------------------
# NaukriSessionManager
# ---------------------------------------------------------------------------


class TestNaukriSessionManager:
    async def test_authenticated_on_homepage(self, tmp_path: Path) -> None:
        manager = NaukriSessionManager(SessionTokenStore(tmp_path))
        page = MagicMock()
        page.url = "https://www.naukri.com/mnjuser/homepage"
        page.query_selector = AsyncMock(return_value=None)
        assert await manager.is_authenticated(page) is True

    async def test_not_authenticated_elsewhere(self, tmp_path: Path) -> None:
        manager = NaukriSessionManager(SessionTokenStore(tmp_path))
        page = MagicMock()
        page.url = "https://www.naukri.com/nlogin/login"
        assert await manager.is_authenticated(page) is False

    async def test_login_layer_still_present(self, tmp_path: Path) -> None:
        manager = NaukriSessionManager(SessionTokenStore(tmp_path))
        page = MagicMock()
        page.url = "https://www.naukri.com/mnjuser/homepage"
        page.query_selector = AsyncMock(return_value=AsyncMock())
        assert await manager.is_authenticated(page) is False

    async def test_submit_fills_form(self, tmp_path: Path) -> None:
        manager = NaukriSessionManager(SessionTokenStore(tmp_path), timeout_ms=1000)
        layer, username, password, submit = AsyncMock(), AsyncMock(), AsyncMock(), AsyncMock()

        async def _wait(selector: str, **kwargs: Any) -> AsyncMock:
            return layer if "Jobseeker Login" in selector else username

        async def _query(selector: str) -> AsyncMock | None:
            if "password" in selector:
                return password
            if "submit" in selector:
                return submit
            return None

        page = MagicMock()
        page.goto = AsyncMock()
        page.wait_for_selector = AsyncMock(side_effect=_wait)
        page.query_selector = AsyncMock(side_effect=_query)
        page.wait_for_url = AsyncMock()

        await manager.submit_credentials(page, CREDS)

        layer.click.assert_awaited_once()
        username.fill.assert_awaited_once_with("alice@example.com")
        password.fill.assert_awaited_once_with("secret")
        submit.click.assert_awaited_once()

    async def test_submit_without_login_button(self, tmp_path: Path) -> None:
        manager = NaukriSessionManager(SessionTokenStore(tmp_path), timeout_ms=1000)
        page = MagicMock()
        page.goto = AsyncMock()
        page.wait_for_selector = AsyncMock(side_effect=TimeoutError("gone"))
        with pytest.raises(LoginFailed, match="login button"):
            await manager.submit_credentials(page, CREDS)
