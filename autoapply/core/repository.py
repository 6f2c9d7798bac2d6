"""Narrow interfaces the engine uses to reach its collaborators.

The SQLite implementations live in ``autoapply.core.db``; tests substitute
in-memory fakes satisfying the same protocols.
"""

from datetime import datetime
from typing import Protocol, runtime_checkable

from autoapply.core.schemas import ApplicationResult, CampaignConfig, LoginCredentials, RunSummary


@runtime_checkable
class CampaignStore(Protocol):
    """Read access to campaign configurations plus schedule write-back."""

    def find_due_campaigns(self, now: datetime) -> list[CampaignConfig]: ...
    def find_campaign(self, campaign_id: str) -> CampaignConfig | None: ...
    def list_active_campaigns(self) -> list[CampaignConfig]: ...
    def update_schedule_timestamps(
        self,
        campaign_id: str,
        last_run: datetime | None,
        next_run: datetime,
    ) -> None: ...


@runtime_checkable
class CredentialStore(Protocol):
    """Lookup of already-decrypted portal credentials."""

    def get_login_credentials(self, owner: str, portal: str) -> LoginCredentials | None: ...


@runtime_checkable
class ResultRepository(Protocol):
    """Sink for application outcomes and run statistics."""

    def save_application(self, result: ApplicationResult) -> None: ...
    def save_run_summary(self, summary: RunSummary) -> None: ...
