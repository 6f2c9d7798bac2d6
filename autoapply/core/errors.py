"""Typed failures raised by the automation engine.

Per-listing errors become Failed application results; per-campaign errors
become a failed run summary. Neither ever stops the queue worker.
"""


class AutomationError(Exception):
    """Base class for every engine failure."""


class LoginFailed(AutomationError):
    """Credentials were rejected or the login form could not be driven."""


class ScrapeTimeout(AutomationError):
    """The listing container never appeared on the results page."""


class ApplyFlowTimeout(AutomationError):
    """The apply control never resolved for a listing."""


class OracleUnavailable(AutomationError):
    """The language model call failed, timed out, or returned nothing."""


class ResourceUnavailable(AutomationError):
    """The browser engine could not be launched."""
