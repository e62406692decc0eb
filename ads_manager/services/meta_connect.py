"""
Meta account connect (OAuth) flow

IDLE -> PENDING when the user is sent to the provider; back to IDLE when
the callback is resolved or when any authenticated page finds the marker.
The marker lives in the session because the navigation to the provider
throws away everything held in memory for the request.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Mapping, Optional

from ads_manager.core.config import settings
from ads_manager.core.exceptions import ApiAuthorizationError, PlatformApiError
from ads_manager.core.session import SessionContext
from ads_manager.services.platform_api import PlatformApiClient

logger = logging.getLogger(__name__)

BEGIN_FAILED_MESSAGE = "Failed to connect account. Please try again."
PAGES_FEATURES = "ads_management"
SUCCESS_MESSAGE = "Meta account connected successfully!"
DEFAULT_ERROR_MESSAGE = "An error occurred while connecting your Meta account."

ERROR_MESSAGES = {
    "connection_failed": "Failed to connect Meta account. Please try again.",
    "access_denied": "Access denied. You need to grant permissions to connect your Meta account.",
    "invalid_request": "Invalid request. Please try connecting again.",
}


class ConnectState(str, enum.Enum):
    IDLE = "idle"
    PENDING = "pending"


class CallbackStatus(str, enum.Enum):
    SUCCESS = "success"
    ERROR = "error"
    NONE = "none"


@dataclass
class CallbackOutcome:
    """What the callback page shows and where it goes next"""
    status: CallbackStatus
    message: Optional[str]
    redirect_to: str
    delay_seconds: int
    refresh_accounts: bool = False

    @property
    def is_error(self) -> bool:
        return self.status == CallbackStatus.ERROR


def error_message(code: Optional[str]) -> str:
    return ERROR_MESSAGES.get(code or "", DEFAULT_ERROR_MESSAGE)


class MetaConnectFlow:
    def __init__(self, session: SessionContext):
        self.session = session

    @property
    def state(self) -> ConnectState:
        return ConnectState.PENDING if self.session.connect_pending else ConnectState.IDLE

    async def begin(self, client: PlatformApiClient, meta_app_id: Optional[str] = None) -> str:
        """
        Ask the server for the provider authorization URL and mark the
        connect as pending. The marker is only set once the URL is known.
        """
        return await self._start(client.get_meta_connect_url(meta_app_id), "Meta connect")

    async def begin_pages(self, client: PlatformApiClient, features: str = PAGES_FEATURES) -> str:
        """Same as `begin`, for connecting Facebook Pages"""
        return await self._start(client.get_facebook_auth_url(features), "Facebook Pages connect")

    async def _start(self, request: Awaitable[str], label: str) -> str:
        try:
            auth_url = await request
        except ApiAuthorizationError:
            raise
        except PlatformApiError as e:
            logger.warning(f"Could not start {label}: {e.message}")
            raise PlatformApiError(
                BEGIN_FAILED_MESSAGE, status_code=e.status_code, details=e.details
            ) from e

        self.session.mark_connect_pending()
        logger.info(f"{label} started for user {self.session.user_id}")
        return auth_url

    def resolve(self, params: Mapping[str, str]) -> CallbackOutcome:
        """Interpret the provider's return to the callback path"""
        target = settings.DEFAULT_AUTHENTICATED_PATH
        was_pending = self.session.consume_connect_pending()

        code = params.get("error")
        if code:
            logger.info(f"Meta connect failed: {code}")
            return CallbackOutcome(
                status=CallbackStatus.ERROR,
                message=error_message(code),
                redirect_to=target,
                delay_seconds=settings.META_CONNECT_ERROR_REDIRECT_SECONDS,
            )

        if params.get("connected") == "true" or was_pending:
            logger.info(f"Meta account connected for user {self.session.user_id}")
            return CallbackOutcome(
                status=CallbackStatus.SUCCESS,
                message=SUCCESS_MESSAGE,
                redirect_to=target,
                delay_seconds=settings.META_CONNECT_SUCCESS_REDIRECT_SECONDS,
                refresh_accounts=True,
            )

        return CallbackOutcome(
            status=CallbackStatus.NONE,
            message=None,
            redirect_to=target,
            delay_seconds=0,
        )
