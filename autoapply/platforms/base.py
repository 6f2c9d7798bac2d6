"""Abstract base class for portal adapters and the adapter registry."""

import importlib
from abc import ABC, abstractmethod
from typing import Any

from autoapply.core.config import Settings
from autoapply.core.schemas import ApplicationResult, Listing, LoginCredentials, SearchCriteria
from autoapply.oracle.oracle import DecisionOracle


class PortalAdapter(ABC):
    """Everything the orchestrator needs from one job portal.

    Pages are injected per call; the adapter never owns the browser.
    """

    @property
    @abstractmethod
    def portal_id(self) -> str:
        """Unique identifier for this portal (e.g. 'naukri')."""

    @abstractmethod
    async def login(self, page: Any, credentials: LoginCredentials) -> None:
        """Authenticate the page's context, raising LoginFailed on failure."""

    @abstractmethod
    async def search(self, page: Any, criteria: SearchCriteria) -> None:
        """Navigate the page to the first results page for ``criteria``."""

    @abstractmethod
    async def scrape(self, page: Any, max_pages: int) -> list[Listing]:
        """Extract listings from the current results page onwards."""

    @abstractmethod
    async def apply(
        self,
        page: Any,
        listing: Listing,
        oracle: DecisionOracle,
        *,
        campaign_id: str = "",
    ) -> ApplicationResult:
        """Run the application flow for one listing on an isolated page."""


# Lazy registry: maps portal id → (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "naukri": ("autoapply.platforms.naukri.adapter", "NaukriAdapter"),
}


def get_adapter(portal: str, settings: Settings) -> PortalAdapter:
    """Instantiate the adapter for ``portal``.

    Raises:
        ValueError: If the portal is not supported.
    """
    if portal not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unsupported portal '{portal}'. Available: {valid}"
        raise ValueError(msg)
    module_path, class_name = _REGISTRY[portal]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls(settings)  # type: ignore[no-any-return]


def supported_portals() -> list[str]:
    return sorted(_REGISTRY)
