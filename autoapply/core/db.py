"""SQLite database layer for campaigns, credentials, applications and runs."""

import sqlite3
from datetime import datetime
from pathlib import Path

from autoapply.core.schemas import (
    ApplicationResult,
    ApplicationStatus,
    CampaignConfig,
    LoginCredentials,
    RunSummary,
)

_CAMPAIGNS_TABLE = """
CREATE TABLE IF NOT EXISTS campaigns (
    id          TEXT PRIMARY KEY,
    owner       TEXT    NOT NULL,
    portal      TEXT    NOT NULL,
    is_active   INTEGER NOT NULL DEFAULT 1,
    config_json TEXT    NOT NULL,
    last_run    TEXT,
    next_run    TEXT
);
"""

_CREDENTIALS_TABLE = """
CREATE TABLE IF NOT EXISTS portal_credentials (
    owner    TEXT NOT NULL,
    portal   TEXT NOT NULL,
    username TEXT NOT NULL,
    password TEXT NOT NULL,
    PRIMARY KEY (owner, portal)
);
"""

_APPLICATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS applications (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    campaign_id  TEXT NOT NULL,
    portal       TEXT NOT NULL,
    title        TEXT NOT NULL,
    company      TEXT NOT NULL DEFAULT '',
    location     TEXT NOT NULL DEFAULT '',
    experience   TEXT NOT NULL DEFAULT '',
    salary       TEXT NOT NULL DEFAULT '',
    rating       TEXT NOT NULL DEFAULT '',
    apply_link   TEXT NOT NULL DEFAULT '',
    status       TEXT NOT NULL,
    reason       TEXT,
    listing_json TEXT NOT NULL,
    applied_at   TEXT NOT NULL
);
"""

_RUN_SUMMARIES_TABLE = """
CREATE TABLE IF NOT EXISTS run_summaries (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    campaign_id TEXT    NOT NULL,
    found       INTEGER NOT NULL DEFAULT 0,
    applied     INTEGER NOT NULL DEFAULT 0,
    failed      INTEGER NOT NULL DEFAULT 0,
    skipped     INTEGER NOT NULL DEFAULT 0,
    success     INTEGER NOT NULL DEFAULT 1,
    reason      TEXT,
    started_at  TEXT    NOT NULL,
    ended_at    TEXT
);
"""


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_CAMPAIGNS_TABLE)
    conn.execute(_CREDENTIALS_TABLE)
    conn.execute(_APPLICATIONS_TABLE)
    conn.execute(_RUN_SUMMARIES_TABLE)
    conn.commit()
    return conn


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _campaign_from_row(row: sqlite3.Row) -> CampaignConfig:
    campaign = CampaignConfig.model_validate_json(row["config_json"])
    return campaign.model_copy(
        update={
            "is_active": bool(row["is_active"]),
            "last_run": datetime.fromisoformat(row["last_run"]) if row["last_run"] else None,
            "next_run": datetime.fromisoformat(row["next_run"]) if row["next_run"] else None,
        },
    )


def upsert_campaign(conn: sqlite3.Connection, campaign: CampaignConfig) -> None:
    """Insert or replace a campaign. Schedule columns follow the model."""
    conn.execute(
        """
        INSERT INTO campaigns (id, owner, portal, is_active, config_json, last_run, next_run)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            owner = excluded.owner,
            portal = excluded.portal,
            is_active = excluded.is_active,
            config_json = excluded.config_json,
            last_run = excluded.last_run,
            next_run = excluded.next_run
        """,
        (
            campaign.id,
            campaign.owner,
            campaign.portal,
            int(campaign.is_active),
            campaign.model_dump_json(exclude={"last_run", "next_run"}),
            _iso(campaign.last_run),
            _iso(campaign.next_run),
        ),
    )
    conn.commit()


def get_campaign(conn: sqlite3.Connection, campaign_id: str) -> CampaignConfig | None:
    row = conn.execute("SELECT * FROM campaigns WHERE id = ?", (campaign_id,)).fetchone()
    if row is None:
        return None
    return _campaign_from_row(row)


def list_campaigns(conn: sqlite3.Connection, *, active_only: bool = False) -> list[CampaignConfig]:
    query = "SELECT * FROM campaigns"
    if active_only:
        query += " WHERE is_active = 1"
    query += " ORDER BY id"
    return [_campaign_from_row(row) for row in conn.execute(query).fetchall()]


def get_due_campaigns(conn: sqlite3.Connection, now: datetime) -> list[CampaignConfig]:
    """Active campaigns whose next_run is set and not after ``now``."""
    rows = conn.execute(
        """
        SELECT * FROM campaigns
        WHERE is_active = 1 AND next_run IS NOT NULL AND next_run <= ?
        ORDER BY next_run
        """,
        (now.isoformat(),),
    ).fetchall()
    return [_campaign_from_row(row) for row in rows]


def set_schedule_timestamps(
    conn: sqlite3.Connection,
    campaign_id: str,
    last_run: datetime | None,
    next_run: datetime,
) -> None:
    """Write next_run, and last_run when given (None keeps the stored value)."""
    conn.execute(
        """
        UPDATE campaigns
        SET last_run = COALESCE(?, last_run), next_run = ?
        WHERE id = ?
        """,
        (_iso(last_run), next_run.isoformat(), campaign_id),
    )
    conn.commit()


def set_credentials(
    conn: sqlite3.Connection,
    owner: str,
    portal: str,
    username: str,
    password: str,
) -> None:
    conn.execute(
        """
        INSERT INTO portal_credentials (owner, portal, username, password)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(owner, portal)
        DO UPDATE SET username = excluded.username, password = excluded.password
        """,
        (owner, portal, username, password),
    )
    conn.commit()


def get_credentials(
    conn: sqlite3.Connection, owner: str, portal: str,
) -> LoginCredentials | None:
    row = conn.execute(
        "SELECT username, password FROM portal_credentials WHERE owner = ? AND portal = ?",
        (owner, portal),
    ).fetchone()
    if row is None:
        return None
    return LoginCredentials(username=row["username"], password=row["password"])


def insert_application(conn: sqlite3.Connection, result: ApplicationResult) -> int:
    """Record an application outcome. Returns the row ID."""
    listing = result.listing
    cursor = conn.execute(
        """
        INSERT INTO applications
            (campaign_id, portal, title, company, location, experience, salary,
             rating, apply_link, status, reason, listing_json, applied_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            result.campaign_id,
            result.portal,
            listing.title,
            listing.company,
            listing.location,
            listing.experience,
            listing.salary,
            listing.rating,
            listing.apply_link,
            result.status.value,
            result.reason,
            listing.model_dump_json(),
            result.timestamp.isoformat(),
        ),
    )
    conn.commit()
    return cursor.lastrowid or 0


def count_applications(
    conn: sqlite3.Connection,
    campaign_id: str,
    status: ApplicationStatus | None = None,
) -> int:
    query = "SELECT COUNT(*) FROM applications WHERE campaign_id = ?"
    params: list[str] = [campaign_id]
    if status is not None:
        query += " AND status = ?"
        params.append(status.value)
    return int(conn.execute(query, params).fetchone()[0])


def insert_run_summary(conn: sqlite3.Connection, summary: RunSummary) -> int:
    """Record a completed campaign run. Returns the row ID."""
    cursor = conn.execute(
        """
        INSERT INTO run_summaries
            (campaign_id, found, applied, failed, skipped, success, reason, started_at, ended_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            summary.campaign_id,
            summary.found,
            summary.applied,
            summary.failed,
            summary.skipped,
            int(summary.success),
            summary.reason,
            summary.started_at.isoformat(),
            _iso(summary.ended_at),
        ),
    )
    conn.commit()
    return cursor.lastrowid or 0


def latest_run_summary(conn: sqlite3.Connection, campaign_id: str) -> RunSummary | None:
    row = conn.execute(
        "SELECT * FROM run_summaries WHERE campaign_id = ? ORDER BY id DESC LIMIT 1",
        (campaign_id,),
    ).fetchone()
    if row is None:
        return None
    return RunSummary(
        campaign_id=row["campaign_id"],
        found=row["found"],
        applied=row["applied"],
        failed=row["failed"],
        skipped=row["skipped"],
        success=bool(row["success"]),
        reason=row["reason"],
        started_at=datetime.fromisoformat(row["started_at"]),
        ended_at=datetime.fromisoformat(row["ended_at"]) if row["ended_at"] else None,
    )


class SqliteCampaignStore:
    """CampaignStore backed by the ``campaigns`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def find_due_campaigns(self, now: datetime) -> list[CampaignConfig]:
        return get_due_campaigns(self._conn, now)

    def find_campaign(self, campaign_id: str) -> CampaignConfig | None:
        return get_campaign(self._conn, campaign_id)

    def list_active_campaigns(self) -> list[CampaignConfig]:
        return list_campaigns(self._conn, active_only=True)

    def update_schedule_timestamps(
        self,
        campaign_id: str,
        last_run: datetime | None,
        next_run: datetime,
    ) -> None:
        set_schedule_timestamps(self._conn, campaign_id, last_run, next_run)


class SqliteCredentialStore:
    """CredentialStore over plaintext rows; encryption happens upstream."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get_login_credentials(self, owner: str, portal: str) -> LoginCredentials | None:
        return get_credentials(self._conn, owner, portal)


class SqliteResultRepository:
    """ResultRepository writing to ``applications`` and ``run_summaries``."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def save_application(self, result: ApplicationResult) -> None:
        insert_application(self._conn, result)

    def save_run_summary(self, summary: RunSummary) -> None:
        insert_run_summary(self._conn, summary)
