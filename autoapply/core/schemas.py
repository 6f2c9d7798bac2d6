"""Core data models for the autoapply engine."""

import re
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


class ScheduleDescriptor(BaseModel):
    """When a campaign recurs.

    ``days`` uses 0=Sunday .. 6=Saturday and only matters for weekly/custom.
    """

    model_config = ConfigDict(frozen=True)

    frequency: Literal["hourly", "daily", "weekly", "custom"] = "daily"
    days: frozenset[int] = Field(default_factory=frozenset)
    time: str = "09:00"
    hourly_interval: int = Field(default=1, ge=1)

    @field_validator("days")
    @classmethod
    def days_in_week(cls, v: frozenset[int]) -> frozenset[int]:
        bad = sorted(d for d in v if d < 0 or d > 6)
        if bad:
            msg = f"days must be within 0-6 (Sunday=0), got {bad}"
            raise ValueError(msg)
        return v

    @field_validator("time")
    @classmethod
    def valid_clock_time(cls, v: str) -> str:
        if not _TIME_RE.match(v.strip()):
            msg = f"time must be HH:MM, got '{v}'"
            raise ValueError(msg)
        return v.strip()

    @property
    def hour_minute(self) -> tuple[int, int]:
        hours, minutes = self.time.split(":")
        return int(hours), int(minutes)


class SearchCriteria(BaseModel):
    """What to type into the portal search."""

    keywords: str
    min_experience: int = Field(default=0, ge=0)
    max_experience: int | None = None
    location: str = ""

    @field_validator("keywords")
    @classmethod
    def keywords_not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "keywords must not be empty"
            raise ValueError(msg)
        return v.strip()

    @model_validator(mode="after")
    def range_ordered(self) -> "SearchCriteria":
        if self.max_experience is not None and self.max_experience < self.min_experience:
            msg = "max_experience must be >= min_experience"
            raise ValueError(msg)
        return self

    @property
    def experience_range(self) -> tuple[int, int]:
        """Explicit range, or the applicant's experience plus two years."""
        upper = self.max_experience
        if upper is None:
            upper = self.min_experience + 2
        return self.min_experience, upper


class FilterCriteria(BaseModel):
    """Post-scrape predicates and the per-run application cap."""

    min_rating: float = Field(default=3.5, ge=0.0, le=5.0)
    required_skills: list[str] = Field(default_factory=list)
    exclude_companies: list[str] = Field(default_factory=list)
    max_applications: int = Field(default=10, ge=1)


class CampaignConfig(BaseModel):
    """A user's recurring automated application campaign."""

    id: str
    owner: str
    is_active: bool = True
    portal: str = "naukri"
    search: SearchCriteria
    filters: FilterCriteria = Field(default_factory=FilterCriteria)
    schedule: ScheduleDescriptor = Field(default_factory=ScheduleDescriptor)
    ai_profile: str = ""
    max_pages: int = Field(default=5, ge=1, le=20)
    notify_recipient: str | None = None
    last_run: datetime | None = None
    next_run: datetime | None = None


class FilterPreferences(BaseModel):
    """Flattened predicate inputs for ``filter_listings``."""

    model_config = ConfigDict(frozen=True)

    location: str = ""
    min_exp: int = 0
    max_exp: int = 100
    required_skills: tuple[str, ...] = ()
    min_rating: float = 0.0
    exclude_companies: tuple[str, ...] = ()

    @classmethod
    def from_campaign(cls, campaign: CampaignConfig) -> "FilterPreferences":
        """Derive preferences; without explicit skills, the keywords stand in."""
        skills = campaign.filters.required_skills
        if not skills:
            skills = [s.strip() for s in campaign.search.keywords.split(",")]
        min_exp, max_exp = campaign.search.experience_range
        return cls(
            location=campaign.search.location,
            min_exp=min_exp,
            max_exp=max_exp,
            required_skills=tuple(s for s in skills if s),
            min_rating=campaign.filters.min_rating,
            exclude_companies=tuple(c for c in campaign.filters.exclude_companies if c.strip()),
        )


class Listing(BaseModel):
    """A job listing scraped from a results page. Frozen, never persisted raw."""

    model_config = ConfigDict(frozen=True)

    title: str
    company: str = ""
    location: str = ""
    experience: str = ""
    salary: str = ""
    rating: str = ""
    reviews: str = ""
    description: str = ""
    skills: list[str] = Field(default_factory=list)
    posted_on: str = ""
    apply_link: str = ""
    scraped_at: datetime = Field(default_factory=datetime.now)

    @field_validator("skills")
    @classmethod
    def dedupe_skills(cls, v: list[str]) -> list[str]:
        seen: set[str] = set()
        result: list[str] = []
        for skill in v:
            s = skill.strip()
            if s and s not in seen:
                seen.add(s)
                result.append(s)
        return result


class ApplicationStatus(str, Enum):
    APPLIED = "Applied"
    SKIPPED = "Skipped"
    FAILED = "Failed"


class ApplicationResult(BaseModel):
    """Outcome of one listing's application flow."""

    model_config = ConfigDict(frozen=True)

    listing: Listing
    status: ApplicationStatus
    reason: str | None = None
    campaign_id: str = ""
    portal: str = ""
    terminal_state: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)


class RunSummary(BaseModel):
    """Aggregate statistics for one campaign run."""

    campaign_id: str
    found: int = 0
    applied: int = 0
    failed: int = 0
    skipped: int = 0
    success: bool = True
    reason: str | None = None
    started_at: datetime = Field(default_factory=datetime.now)
    ended_at: datetime | None = None


class QueuePriority(str, Enum):
    MANUAL = "manual"
    SCHEDULED = "scheduled"


class QueueEntry(BaseModel):
    """One pending campaign execution."""

    model_config = ConfigDict(frozen=True)

    campaign_id: str
    priority: QueuePriority = QueuePriority.SCHEDULED
    enqueued_at: datetime = Field(default_factory=datetime.now)


class LoginCredentials(BaseModel):
    """Decrypted portal credentials handed over by the credential store."""

    model_config = ConfigDict(frozen=True)

    username: str
    password: str = Field(repr=False)


class TriggerAck(BaseModel):
    """Immediate reply from the runner's control-plane calls.

    ``accepted`` says whether the request took effect; ``queued`` whether it
    resulted in a new queue entry.
    """

    accepted: bool
    message: str
    queued: bool = False
