"""Orchestrator: runs one campaign end to end against one portal.

Data flow:
  1. Guards: AI profile and credentials (no browser action on failure)
  2. Acquire the automation resource
  3. Login (token reuse or credential submission)
  4. Search → scrape → filter → cap at max_applications
  5. Apply to each listing sequentially, each on an isolated page
  6. Persist Applied results, notify, aggregate the run summary
  7. Write last_run/next_run, release the resource
"""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from patchright.async_api import Error as PlaywrightError

from autoapply.browser.resource import AutomationResource
from autoapply.core.config import Settings
from autoapply.core.errors import AutomationError, ResourceUnavailable
from autoapply.core.repository import CampaignStore, CredentialStore, ResultRepository
from autoapply.core.schedule import compute_next_run
from autoapply.core.schemas import (
    ApplicationResult,
    ApplicationStatus,
    CampaignConfig,
    FilterPreferences,
    Listing,
    RunSummary,
)
from autoapply.notify.messages import application_message, run_failure_message
from autoapply.notify.notifier import NotificationDispatcher
from autoapply.oracle.oracle import DecisionOracle, OracleHandle
from autoapply.pipeline.matcher import filter_listings
from autoapply.platforms.base import PortalAdapter, get_adapter

logger = logging.getLogger(__name__)

NO_PROFILE_REASON = "no AI profile configured"
NO_CREDENTIALS_REASON = "no credentials for portal"

AdapterFactory = Callable[[str, Settings], PortalAdapter]


class CampaignOrchestrator:
    """Composes session, scrape/filter and the application flow for a campaign."""

    def __init__(
        self,
        settings: Settings,
        resource: AutomationResource,
        oracle: OracleHandle,
        campaigns: CampaignStore,
        credentials: CredentialStore,
        results: ResultRepository,
        notifications: NotificationDispatcher,
        *,
        adapter_factory: AdapterFactory = get_adapter,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._settings = settings
        self._resource = resource
        self._oracle = oracle
        self._campaigns = campaigns
        self._credentials = credentials
        self._results = results
        self._notifications = notifications
        self._adapter_factory = adapter_factory
        self._clock = clock

    async def run(self, campaign: CampaignConfig) -> RunSummary:
        """Execute one campaign run and return its summary.

        Per-campaign automation errors produce a failed summary instead of
        propagating. An unsupported portal raises ValueError.
        """
        started_at = self._clock()

        if not campaign.ai_profile.strip():
            logger.warning("Campaign %s aborted: %s", campaign.id, NO_PROFILE_REASON)
            return self._record(campaign, started_at, success=False, reason=NO_PROFILE_REASON)

        credentials = self._credentials.get_login_credentials(campaign.owner, campaign.portal)
        if credentials is None:
            logger.warning("Campaign %s aborted: %s", campaign.id, NO_CREDENTIALS_REASON)
            return self._record(campaign, started_at, success=False, reason=NO_CREDENTIALS_REASON)

        adapter = self._adapter_factory(campaign.portal, self._settings)
        oracle = self._oracle.initialize(campaign.ai_profile)

        found = 0
        outcomes: list[ApplicationResult] = []
        reason: str | None = None
        try:
            await self._resource.acquire()
            page = await self._resource.new_isolated_page()
            try:
                await adapter.login(page, credentials)
                cookies = await page.context.cookies()
                await adapter.search(page, campaign.search)
                listings = await adapter.scrape(page, campaign.max_pages)
            finally:
                await self._resource.close_page(page)

            found = len(listings)
            prefs = FilterPreferences.from_campaign(campaign)
            selected = filter_listings(listings, prefs)[: campaign.filters.max_applications]
            logger.info(
                "Campaign %s: %d listings found, %d selected", campaign.id, found, len(selected),
            )

            for listing in selected:
                outcomes.append(
                    await self._apply_one(adapter, campaign, listing, oracle, cookies),
                )
        except (AutomationError, PlaywrightError) as e:
            reason = f"{type(e).__name__}: {e}"
            logger.error("Campaign %s failed: %s", campaign.id, reason)
        finally:
            await self._resource.release()

        summary = self._record(
            campaign,
            started_at,
            found=found,
            outcomes=outcomes,
            success=reason is None,
            reason=reason,
        )
        self._campaigns.update_schedule_timestamps(
            campaign.id, started_at, compute_next_run(campaign.schedule, self._clock()),
        )
        if reason is not None:
            self._notifications.dispatch(
                run_failure_message(summary, campaign.owner), campaign.notify_recipient,
            )
        return summary

    async def _apply_one(
        self,
        adapter: PortalAdapter,
        campaign: CampaignConfig,
        listing: Listing,
        oracle: DecisionOracle,
        cookies: list[Any],
    ) -> ApplicationResult:
        """Apply on a fresh isolated page; only resource loss escapes."""
        page = None
        try:
            page = await self._resource.new_isolated_page(cookies)
            result = await adapter.apply(page, listing, oracle, campaign_id=campaign.id)
        except ResourceUnavailable:
            raise
        except Exception as e:
            logger.warning("Listing '%s' failed: %s", listing.title, e, exc_info=True)
            result = ApplicationResult(
                listing=listing,
                status=ApplicationStatus.FAILED,
                reason=str(e) or type(e).__name__,
                campaign_id=campaign.id,
                portal=campaign.portal,
            )
        finally:
            if page is not None:
                await self._resource.close_page(page)

        if result.status is ApplicationStatus.APPLIED:
            self._results.save_application(result)
            self._notifications.dispatch(
                application_message(result, campaign.owner), campaign.notify_recipient,
            )
        return result

    def _record(
        self,
        campaign: CampaignConfig,
        started_at: datetime,
        *,
        found: int = 0,
        outcomes: list[ApplicationResult] | None = None,
        success: bool,
        reason: str | None,
    ) -> RunSummary:
        outcomes = outcomes or []
        applied = sum(1 for r in outcomes if r.status is ApplicationStatus.APPLIED)
        failed = sum(1 for r in outcomes if r.status is ApplicationStatus.FAILED)
        skipped = found - len(outcomes) + sum(
            1 for r in outcomes if r.status is ApplicationStatus.SKIPPED
        )
        summary = RunSummary(
            campaign_id=campaign.id,
            found=found,
            applied=applied,
            failed=failed,
            skipped=skipped,
            success=success,
            reason=reason,
            started_at=started_at,
            ended_at=self._clock(),
        )
        self._results.save_run_summary(summary)
        logger.info(
            "Campaign %s: %d found, %d applied, %d failed, %d skipped",
            campaign.id, found, applied, failed, skipped,
        )
        return summary
