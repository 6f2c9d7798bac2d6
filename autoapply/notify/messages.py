"""Human-readable notification messages for applications and failed runs."""

from autoapply.core.schemas import ApplicationResult, RunSummary

_MISSING = "N/A"


def _or_na(value: str | None) -> str:
    return value.strip() if value and value.strip() else _MISSING


def application_message(result: ApplicationResult, owner: str) -> str:
    """Compose the "applied successfully" message for one listing."""
    listing = result.listing
    rating = _or_na(listing.rating)
    if listing.reviews.strip():
        rating = f"{rating} ({listing.reviews.strip()})"
    skills = ", ".join(listing.skills) if listing.skills else _MISSING

    lines = [
        "📢 *Job Applied Successfully!*",
        "",
        f"*Position:* {_or_na(listing.title)}",
        f"*Company:* {_or_na(listing.company)}",
        f"*Location:* {_or_na(listing.location)}",
        f"*Experience:* {_or_na(listing.experience)}",
        f"*Salary:* {_or_na(listing.salary)}",
        f"*Rating:* {rating}",
        f"*Posted On:* {_or_na(listing.posted_on)}",
        f"*Portal:* {_or_na(result.portal)}",
        f"*User:* {_or_na(owner)}",
        "",
        f"*Description:* {_or_na(listing.description)}",
        f"*Skills:* {skills}",
        f"*Apply Link:* {_or_na(listing.apply_link)}",
        "",
        "🟢 Please wait while we track the application status.",
    ]
    return "\n".join(lines)


def run_failure_message(summary: RunSummary, owner: str) -> str:
    """Compose the message sent when a campaign run aborts."""
    lines = [
        "⚠️ *Automated Job Run Failed*",
        "",
        f"*Campaign:* {summary.campaign_id}",
        f"*User:* {_or_na(owner)}",
        f"*Reason:* {_or_na(summary.reason)}",
        f"*Listings Found:* {summary.found}",
        f"*Applied:* {summary.applied}",
    ]
    return "\n".join(lines)
