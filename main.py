"""CLI entry point for the autoapply engine."""

import argparse
import asyncio
import getpass
import logging
import sqlite3
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from autoapply.browser.resource import AutomationResource
from autoapply.core.config import Settings
from autoapply.core.db import (
    SqliteCampaignStore,
    SqliteCredentialStore,
    SqliteResultRepository,
    get_campaign,
    init_db,
    latest_run_summary,
    list_campaigns,
    set_credentials,
    upsert_campaign,
)
from autoapply.core.schedule import compute_next_run
from autoapply.core.schemas import CampaignConfig
from autoapply.notify.notifier import LogNotifier, NotificationDispatcher
from autoapply.oracle.oracle import OracleHandle, oracle_factory
from autoapply.pipeline.orchestrator import CampaignOrchestrator
from autoapply.platforms.base import supported_portals
from autoapply.scheduler.runner import JobRunner

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = "config/settings.yaml"


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG,
        help=f"Path to settings YAML file (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="autoapply - scheduled job-application campaigns",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- serve ---
    serve_parser = subparsers.add_parser("serve", help="Run the scheduler until interrupted")
    _add_common(serve_parser)

    # --- run ---
    run_parser = subparsers.add_parser("run", help="Run one campaign immediately")
    run_parser.add_argument("campaign_id", help="Campaign to execute")
    _add_common(run_parser)

    # --- import-campaigns ---
    import_parser = subparsers.add_parser(
        "import-campaigns",
        help="Create or update campaigns from a YAML file",
    )
    import_parser.add_argument("path", help="YAML file with a top-level 'campaigns' list")
    _add_common(import_parser)

    # --- set-credentials ---
    cred_parser = subparsers.add_parser("set-credentials", help="Store portal login credentials")
    cred_parser.add_argument("--owner", required=True, help="Campaign owner")
    cred_parser.add_argument(
        "--portal",
        default="naukri",
        choices=supported_portals(),
        help="Portal id (default: naukri)",
    )
    cred_parser.add_argument("--username", required=True, help="Portal username or email")
    cred_parser.add_argument(
        "--password",
        help="Portal password (prompted when omitted)",
    )
    _add_common(cred_parser)

    # --- train-profile ---
    train_parser = subparsers.add_parser(
        "train-profile",
        help="Build the oracle instruction from a resume PDF",
    )
    train_parser.add_argument("--resume", required=True, help="Path to resume PDF file")
    train_parser.add_argument(
        "--campaign",
        help="Also store the instruction as this campaign's AI profile",
    )
    train_parser.add_argument(
        "--provider",
        choices=["anthropic", "openai", "gemini", "ollama"],
        help="LLM provider (default: oracle.provider from settings)",
    )
    train_parser.add_argument(
        "--refresh",
        action="store_true",
        help="Ignore the cached instruction and rebuild it",
    )
    _add_common(train_parser)

    # --- status ---
    status_parser = subparsers.add_parser("status", help="List campaigns and their schedules")
    _add_common(status_parser)

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_settings(path: str) -> Settings:
    """Settings from YAML, or defaults when the default path is absent."""
    if path == DEFAULT_CONFIG and not Path(path).exists():
        logger.info("No %s found, using default settings", path)
        return Settings()
    return Settings.from_yaml(path)


def build_runner(
    settings: Settings,
    conn: sqlite3.Connection,
) -> tuple[JobRunner, AutomationResource, NotificationDispatcher]:
    """Wire stores, resource, oracle and orchestrator into a JobRunner."""
    campaigns = SqliteCampaignStore(conn)
    results = SqliteResultRepository(conn)
    resource = AutomationResource(settings.browser)
    dispatcher = NotificationDispatcher([LogNotifier()])
    orchestrator = CampaignOrchestrator(
        settings,
        resource,
        OracleHandle(oracle_factory(settings.oracle)),
        campaigns,
        SqliteCredentialStore(conn),
        results,
        dispatcher,
    )
    runner = JobRunner(
        campaigns,
        orchestrator,
        results,
        tick_interval_s=settings.scheduler.tick_interval_s,
    )
    return runner, resource, dispatcher


async def serve(settings: Settings) -> None:
    """Run the scheduler loop until cancelled."""
    conn = init_db(settings.database.path)
    runner, resource, dispatcher = build_runner(settings, conn)
    await runner.start()
    print(f"Scheduler running with {len(runner.triggers)} campaigns. Press Ctrl+C to stop.")
    try:
        await asyncio.Event().wait()
    finally:
        await runner.stop()
        await resource.release()
        await dispatcher.drain()
        conn.close()


async def run_once(settings: Settings, campaign_id: str) -> int:
    """Queue one campaign manually and drain the queue. Returns an exit code."""
    conn = init_db(settings.database.path)
    runner, resource, dispatcher = build_runner(settings, conn)
    try:
        ack = runner.run_now(campaign_id)
        print(ack.message)
        if not ack.queued:
            return 1
        await runner.process_queue()
        await dispatcher.drain()
        summary = latest_run_summary(conn, campaign_id)
    finally:
        await resource.release()
        conn.close()

    if summary is None:
        return 1
    status = "OK" if summary.success else f"FAILED ({summary.reason})"
    print(
        f"\nRun {status}: {summary.found} found, {summary.applied} applied, "
        f"{summary.failed} failed, {summary.skipped} skipped",
    )
    return 0 if summary.success else 1


def cmd_import_campaigns(settings: Settings, path: str) -> None:
    source = Path(path)
    if not source.exists():
        msg = f"Campaign file not found: {source}"
        raise FileNotFoundError(msg)
    raw: dict[str, Any] = yaml.safe_load(source.read_text()) or {}
    entries = raw.get("campaigns") or []
    if not isinstance(entries, list) or not entries:
        msg = f"{source} has no 'campaigns' list"
        raise ValueError(msg)

    campaigns = [CampaignConfig.model_validate(entry) for entry in entries]
    conn = init_db(settings.database.path)
    now = datetime.now()
    for campaign in campaigns:
        existing = get_campaign(conn, campaign.id)
        if existing is not None and campaign.last_run is None:
            campaign = campaign.model_copy(update={"last_run": existing.last_run})
        if campaign.next_run is None or campaign.next_run <= now:
            campaign = campaign.model_copy(
                update={"next_run": compute_next_run(campaign.schedule, now)},
            )
        upsert_campaign(conn, campaign)
        print(f"  {campaign.id}: next run {campaign.next_run:%Y-%m-%d %H:%M}")
    conn.close()
    print(f"Imported {len(campaigns)} campaigns into {settings.database.path}")


def cmd_set_credentials(settings: Settings, args: argparse.Namespace) -> None:
    password = args.password or getpass.getpass(f"{args.portal} password for {args.username}: ")
    if not password:
        msg = "password must not be empty"
        raise ValueError(msg)
    conn = init_db(settings.database.path)
    set_credentials(conn, args.owner, args.portal, args.username, password)
    conn.close()
    print(f"Credentials stored for {args.owner} on {args.portal}")


def cmd_train_profile(settings: Settings, args: argparse.Namespace) -> None:
    from autoapply.oracle.providers import get_provider
    from autoapply.oracle.trainer import prepare_instruction

    provider_name = args.provider or settings.oracle.provider
    provider = get_provider(provider_name)
    print(f"Building instruction from {args.resume} with {provider_name}...")
    instruction = prepare_instruction(
        settings.oracle.instruction_cache,
        args.resume,
        provider,
        settings.oracle.model if args.provider is None else None,
        refresh=args.refresh,
    )
    print(f"Instruction cached at {settings.oracle.instruction_cache} ({len(instruction)} chars)")

    if args.campaign:
        conn = init_db(settings.database.path)
        campaign = get_campaign(conn, args.campaign)
        if campaign is None:
            conn.close()
            msg = f"Campaign not found: {args.campaign}"
            raise ValueError(msg)
        upsert_campaign(conn, campaign.model_copy(update={"ai_profile": instruction}))
        conn.close()
        print(f"AI profile updated for campaign {args.campaign}")


def cmd_status(settings: Settings) -> None:
    conn = init_db(settings.database.path)
    campaigns = list_campaigns(conn)
    if not campaigns:
        print("No campaigns configured. Run: python main.py import-campaigns <file>")
    for c in campaigns:
        state = "active" if c.is_active else "inactive"
        next_run = c.next_run.strftime("%Y-%m-%d %H:%M") if c.next_run else "-"
        last_run = c.last_run.strftime("%Y-%m-%d %H:%M") if c.last_run else "-"
        print(f"{c.id} [{state}] {c.portal} '{c.search.keywords}'")
        print(f"  schedule: {c.schedule.frequency} at {c.schedule.time}; next {next_run}; last {last_run}")
        summary = latest_run_summary(conn, c.id)
        if summary is not None:
            outcome = "ok" if summary.success else f"failed: {summary.reason}"
            print(f"  last run: {summary.applied} applied / {summary.found} found ({outcome})")
    conn.close()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        if args.command == "serve":
            try:
                asyncio.run(serve(settings))
            except KeyboardInterrupt:
                print("\nStopped.")
        elif args.command == "run":
            sys.exit(asyncio.run(run_once(settings, args.campaign_id)))
        elif args.command == "import-campaigns":
            cmd_import_campaigns(settings, args.path)
        elif args.command == "set-credentials":
            cmd_set_credentials(settings, args)
        elif args.command == "train-profile":
            cmd_train_profile(settings, args)
        elif args.command == "status":
            cmd_status(settings)
    except (FileNotFoundError, ImportError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
