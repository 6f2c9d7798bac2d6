"""Tests for core data models."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from autoapply.core.schemas import (
    ApplicationResult,
    ApplicationStatus,
    CampaignConfig,
    FilterCriteria,
    FilterPreferences,
    Listing,
    LoginCredentials,
    QueueEntry,
    QueuePriority,
    ScheduleDescriptor,
    SearchCriteria,
)


def _campaign(**kw: object) -> CampaignConfig:
    defaults: dict[str, object] = {
        "id": "c1",
        "owner": "alice",
        "search": SearchCriteria(keywords="Python, Django", min_experience=3, location="Pune"),
    }
    defaults.update(kw)
    return CampaignConfig(**defaults)  # type: ignore[arg-type]


class TestScheduleDescriptor:
    def test_defaults(self) -> None:
        s = ScheduleDescriptor()
        assert s.frequency == "daily"
        assert s.time == "09:00"
        assert s.hour_minute == (9, 0)

    def test_invalid_time_raises(self) -> None:
        with pytest.raises(ValidationError, match="HH:MM"):
            ScheduleDescriptor(time="25:00")

    def test_day_out_of_range_raises(self) -> None:
        with pytest.raises(ValidationError, match="0-6"):
            ScheduleDescriptor(frequency="weekly", days=frozenset({7}))

    def test_days_from_list(self) -> None:
        s = ScheduleDescriptor.model_validate({"frequency": "weekly", "days": [1, 3, 3]})
        assert s.days == frozenset({1, 3})

    def test_hourly_interval_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ScheduleDescriptor(frequency="hourly", hourly_interval=0)

    def test_frozen(self) -> None:
        s = ScheduleDescriptor()
        with pytest.raises(ValidationError):
            s.time = "10:00"  # type: ignore[misc]


class TestSearchCriteria:
    def test_keywords_stripped(self) -> None:
        assert SearchCriteria(keywords="  python ").keywords == "python"

    def test_empty_keywords_raise(self) -> None:
        with pytest.raises(ValidationError, match="keywords must not be empty"):
            SearchCriteria(keywords="   ")

    def test_default_range_is_plus_two(self) -> None:
        assert SearchCriteria(keywords="python", min_experience=3).experience_range == (3, 5)

    def test_explicit_range(self) -> None:
        criteria = SearchCriteria(keywords="python", min_experience=2, max_experience=8)
        assert criteria.experience_range == (2, 8)

    def test_inverted_range_raises(self) -> None:
        with pytest.raises(ValidationError, match="max_experience"):
            SearchCriteria(keywords="python", min_experience=5, max_experience=2)


class TestFilterPreferences:
    def test_keywords_stand_in_for_missing_skills(self) -> None:
        prefs = FilterPreferences.from_campaign(_campaign())
        assert prefs.required_skills == ("Python", "Django")

    def test_explicit_skills_win(self) -> None:
        campaign = _campaign(filters=FilterCriteria(required_skills=["FastAPI"]))
        assert FilterPreferences.from_campaign(campaign).required_skills == ("FastAPI",)

    def test_range_and_location(self) -> None:
        prefs = FilterPreferences.from_campaign(_campaign())
        assert (prefs.min_exp, prefs.max_exp) == (3, 5)
        assert prefs.location == "Pune"
        assert prefs.min_rating == 3.5


class TestListing:
    def test_skills_deduplicated_in_order(self) -> None:
        listing = Listing(title="Dev", skills=["Python", "SQL", "Python", " ", "AWS", "SQL"])
        assert listing.skills == ["Python", "SQL", "AWS"]

    def test_optional_fields_default_empty(self) -> None:
        listing = Listing(title="Dev")
        assert listing.salary == ""
        assert listing.rating == ""
        assert isinstance(listing.scraped_at, datetime)

    def test_frozen(self) -> None:
        listing = Listing(title="Dev")
        with pytest.raises(ValidationError):
            listing.title = "Other"  # type: ignore[misc]


class TestApplicationResult:
    def test_status_values(self) -> None:
        result = ApplicationResult(listing=Listing(title="Dev"), status=ApplicationStatus.APPLIED)
        assert result.status.value == "Applied"
        assert result.reason is None


class TestMisc:
    def test_queue_entry_default_priority(self) -> None:
        assert QueueEntry(campaign_id="c1").priority is QueuePriority.SCHEDULED

    def test_password_hidden_from_repr(self) -> None:
        creds = LoginCredentials(username="alice", password="hunter2")
        assert "hunter2" not in repr(creds)

    def test_campaign_defaults(self) -> None:
        campaign = _campaign()
        assert campaign.portal == "naukri"
        assert campaign.max_pages == 5
        assert campaign.filters.max_applications == 10
        assert campaign.next_run is None
