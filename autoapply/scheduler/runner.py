"""Job runner: periodic tick, execution queue, and a single serialized worker.

Rules:
  - At most one campaign executes at a time (one worker, one drain flag).
  - next_run is persisted before a due campaign is enqueued, so a crash
    mid-run never causes an immediate re-trigger.
  - A manual run jumps ahead of every scheduled entry not yet started, but
    never preempts the campaign in progress.
  - Control-plane calls (run_now, add/remove/update_job) never raise.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from autoapply.core.repository import CampaignStore, ResultRepository
from autoapply.core.schedule import compute_next_run
from autoapply.core.schemas import (
    CampaignConfig,
    QueueEntry,
    QueuePriority,
    RunSummary,
    ScheduleDescriptor,
    TriggerAck,
)
from autoapply.scheduler.queue import ExecutionQueue

logger = logging.getLogger(__name__)


class CampaignExecutor(Protocol):
    async def run(self, campaign: CampaignConfig) -> RunSummary: ...


class TriggerHandle:
    """A registered recurring trigger for one campaign."""

    def __init__(self, campaign_id: str, schedule: ScheduleDescriptor, next_run: datetime) -> None:
        self.campaign_id = campaign_id
        self.schedule = schedule
        self.next_run = next_run

    def __repr__(self) -> str:
        return f"TriggerHandle({self.campaign_id!r}, next_run={self.next_run.isoformat()})"


class JobRunner:
    """Decides when campaigns run and executes them one at a time."""

    def __init__(
        self,
        campaigns: CampaignStore,
        executor: CampaignExecutor,
        results: ResultRepository,
        *,
        tick_interval_s: float = 60.0,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._campaigns = campaigns
        self._executor = executor
        self._results = results
        self._tick_interval_s = tick_interval_s
        self._clock = clock

        self._queue = ExecutionQueue()
        self._triggers: dict[str, TriggerHandle] = {}
        self._wake = asyncio.Event()
        self._processing = False
        self._ticking = False
        self._current: str | None = None

        self._loop: asyncio.AbstractEventLoop | None = None
        self._tick_task: asyncio.Task[None] | None = None
        self._worker_task: asyncio.Task[None] | None = None

    # --- Introspection ---

    @property
    def queue(self) -> ExecutionQueue:
        return self._queue

    @property
    def triggers(self) -> dict[str, TriggerHandle]:
        return dict(self._triggers)

    @property
    def current(self) -> str | None:
        """Campaign id currently executing, if any."""
        return self._current

    @property
    def is_processing(self) -> bool:
        return self._processing

    # --- Queue ---

    def enqueue(self, campaign_id: str, priority: QueuePriority = QueuePriority.SCHEDULED) -> bool:
        """Queue a campaign. Returns False if it is already queued or running."""
        if campaign_id == self._current or campaign_id in self._queue:
            logger.debug("Campaign %s already queued or running", campaign_id)
            return False
        self._queue.push(QueueEntry(campaign_id=campaign_id, priority=priority))
        logger.info("Queued campaign %s (%s, depth %d)", campaign_id, priority.value, len(self._queue))
        self._wake.set()
        return True

    async def tick(self) -> list[str]:
        """Enqueue every registered campaign whose next_run has passed.

        Returns the ids that were newly enqueued.
        """
        if self._ticking:
            logger.debug("Previous tick still running; skipping")
            return []
        self._ticking = True
        try:
            now = self._clock()
            enqueued: list[str] = []
            for campaign in self._campaigns.find_due_campaigns(now):
                handle = self._triggers.get(campaign.id)
                if handle is None or not campaign.is_active:
                    continue
                next_run = compute_next_run(campaign.schedule, now)
                self._campaigns.update_schedule_timestamps(campaign.id, None, next_run)
                handle.next_run = next_run
                if self.enqueue(campaign.id, QueuePriority.SCHEDULED):
                    enqueued.append(campaign.id)
            return enqueued
        finally:
            self._ticking = False

    async def process_queue(self) -> int:
        """Drain the queue strictly in order. A concurrent call is a no-op.

        One entry's failure (lookup, run or bookkeeping) is logged and the
        drain moves on to the next entry.

        Returns the number of entries executed by this call.
        """
        if self._processing:
            return 0
        self._processing = True
        processed = 0
        try:
            while (entry := self._queue.pop()) is not None:
                self._current = entry.campaign_id
                try:
                    await self._execute(entry)
                except Exception:
                    logger.exception("Queue entry %s failed; continuing", entry.campaign_id)
                finally:
                    self._current = None
                processed += 1
        finally:
            self._processing = False
        return processed

    async def _execute(self, entry: QueueEntry) -> None:
        campaign = self._campaigns.find_campaign(entry.campaign_id)
        if campaign is None or not campaign.is_active:
            logger.info("Campaign %s missing or inactive; dropping queue entry", entry.campaign_id)
            return

        logger.info("Running campaign %s (%s)", campaign.id, entry.priority.value)
        try:
            summary = await self._executor.run(campaign)
        except Exception as e:
            logger.exception("Campaign %s crashed", campaign.id)
            self._record_crash(campaign.id, e)
            return
        logger.info(
            "Campaign %s finished: success=%s applied=%d", campaign.id, summary.success, summary.applied,
        )

    def _record_crash(self, campaign_id: str, error: Exception) -> None:
        summary = RunSummary(
            campaign_id=campaign_id,
            success=False,
            reason=f"{type(error).__name__}: {error}",
            ended_at=self._clock(),
        )
        try:
            self._results.save_run_summary(summary)
        except Exception:
            logger.exception("Could not record failed run for %s", campaign_id)

    # --- Control plane ---

    def run_now(self, campaign_id: str) -> TriggerAck:
        """Queue a campaign ahead of scheduled work; returns immediately."""
        try:
            campaign = self._campaigns.find_campaign(campaign_id)
        except Exception as e:
            logger.exception("run_now lookup failed for %s", campaign_id)
            return TriggerAck(accepted=False, message=f"Lookup failed: {e}")
        if campaign is None:
            return TriggerAck(accepted=False, message="Job not found")
        if not campaign.is_active:
            return TriggerAck(accepted=False, message="Job is inactive")
        if not self.enqueue(campaign_id, QueuePriority.MANUAL):
            return TriggerAck(accepted=True, message="Job is already in the queue")
        return TriggerAck(accepted=True, queued=True, message="Job queued for immediate execution")

    def run_now_threadsafe(self, campaign_id: str, timeout_s: float = 5.0) -> TriggerAck:
        """run_now() for callers outside the runner's event loop thread."""
        if self._loop is None:
            return TriggerAck(accepted=False, message="Runner is not started")

        async def _call() -> TriggerAck:
            return self.run_now(campaign_id)

        future = asyncio.run_coroutine_threadsafe(_call(), self._loop)
        try:
            return future.result(timeout_s)
        except Exception as e:
            logger.warning("run_now from another thread failed: %s", e)
            return TriggerAck(accepted=False, message=f"Trigger failed: {e}")

    def add_job(self, campaign_id: str) -> TriggerAck:
        """Register (or re-register) a campaign's recurring trigger."""
        try:
            campaign = self._campaigns.find_campaign(campaign_id)
            if campaign is None:
                return TriggerAck(accepted=False, message="Job not found")
            self._triggers.pop(campaign_id, None)
            if not campaign.is_active:
                return TriggerAck(accepted=False, message="Job is inactive")

            next_run = campaign.next_run
            if next_run is None:
                next_run = compute_next_run(campaign.schedule, self._clock())
                self._campaigns.update_schedule_timestamps(campaign_id, None, next_run)
            self._triggers[campaign_id] = TriggerHandle(campaign_id, campaign.schedule, next_run)
        except Exception as e:
            logger.exception("add_job failed for %s", campaign_id)
            return TriggerAck(accepted=False, message=f"Scheduling failed: {e}")

        logger.info("Scheduled campaign %s, next run %s", campaign_id, next_run.isoformat())
        return TriggerAck(accepted=True, message=f"Job scheduled for {next_run.isoformat()}")

    def remove_job(self, campaign_id: str) -> TriggerAck:
        """Unregister a trigger and drop any not-yet-started queue entry."""
        had_trigger = self._triggers.pop(campaign_id, None) is not None
        dequeued = self._queue.remove(campaign_id)
        if not had_trigger and not dequeued:
            return TriggerAck(accepted=False, message="Job was not scheduled")
        logger.info("Removed campaign %s (dequeued=%s)", campaign_id, dequeued)
        return TriggerAck(accepted=True, message="Job removed")

    def update_job(self, campaign_id: str) -> TriggerAck:
        self.remove_job(campaign_id)
        return self.add_job(campaign_id)

    # --- Lifecycle ---

    async def start(self) -> None:
        """Register active campaigns and start the tick and worker tasks."""
        if self._tick_task is not None:
            return
        self._loop = asyncio.get_running_loop()
        for campaign in self._campaigns.list_active_campaigns():
            self.add_job(campaign.id)
        logger.info("Runner started with %d scheduled campaigns", len(self._triggers))
        self._tick_task = asyncio.create_task(self._tick_loop())
        self._worker_task = asyncio.create_task(self._worker())

    async def stop(self) -> None:
        for task in (self._tick_task, self._worker_task):
            if task is not None:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._tick_task = None
        self._worker_task = None
        self._triggers.clear()
        self._queue.clear()
        self._loop = None
        logger.info("Runner stopped")

    async def _tick_loop(self) -> None:
        while True:
            try:
                await self.tick()
            except Exception:
                logger.exception("Tick failed; retrying on the next tick")
            await asyncio.sleep(self._tick_interval_s)

    async def _worker(self) -> None:
        while True:
            await self._wake.wait()
            self._wake.clear()
            try:
                await self.process_queue()
            except Exception:
                logger.exception("Queue drain failed; waiting for the next wake-up")
