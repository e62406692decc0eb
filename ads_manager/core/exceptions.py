"""
Error taxonomy for remote API calls, sessions and the campaign wizard
"""
from typing import Any, Dict, Optional


class PlatformApiError(RuntimeError):
    """Base error for a failed call to the Ads Platform API"""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class ApiAuthorizationError(PlatformApiError):
    """401 - the credential token is missing, invalid or expired"""


class ApiValidationError(PlatformApiError):
    """400/409/422 - the server rejected the request payload"""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
        field_errors: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(message, status_code=status_code, details=details)
        self.field_errors = field_errors or {}


class ApiNotFoundError(PlatformApiError):
    """404 - the requested entity does not exist"""


class ApiTransientError(PlatformApiError):
    """Network failure, timeout, rate limit or 5xx - safe for the user to retry"""


class SessionRequired(Exception):
    """Raised when a page needs an authenticated session and there is none"""


class DraftNotFound(LookupError):
    """Unknown or foreign campaign draft id"""


class DraftValidationError(ValueError):
    """A wizard step (or the whole draft) failed validation"""

    def __init__(self, step: int, errors: Dict[str, str]) -> None:
        super().__init__(f"Step {step} has {len(errors)} invalid field(s)")
        self.step = step
        self.errors = errors


class SubmissionInProgress(RuntimeError):
    """A create-campaign request for this draft is already pending"""
