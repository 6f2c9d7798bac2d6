"""Naukri search URL builder.

Pure functions — zero browser dependency.
"""

import logging
import re
from urllib.parse import quote, urlencode

from autoapply.core.schemas import SearchCriteria

logger = logging.getLogger(__name__)

BASE_URL = "https://www.naukri.com"

_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """'Python Developer, Django' → 'python-developer-django'."""
    return _NON_SLUG_RE.sub("-", text.lower()).strip("-")


def build_search_url(criteria: SearchCriteria, page: int = 1) -> str:
    """Build a Naukri results URL for keywords, location and experience.

    Args:
        criteria: Keywords (comma-separated allowed), location, experience.
        page: One-based page number. page=1 omits the page suffix.

    Returns:
        Fully qualified Naukri search URL.
    """
    path = f"{slugify(criteria.keywords)}-jobs"
    location = criteria.location.strip()
    if location:
        path += f"-in-{slugify(location)}"
    if page > 1:
        path += f"-{page}"

    params: dict[str, str] = {"k": criteria.keywords}
    if location:
        params["l"] = location
    params["experience"] = str(criteria.min_experience)

    return f"{BASE_URL}/{path}?{urlencode(params, quote_via=quote)}"
