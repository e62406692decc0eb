"""
Campaign draft API endpoints - JSON surface of the creation wizard
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from ads_manager.core.deps import (
    get_account_service,
    get_campaign_service,
    get_draft_store,
    require_session,
)
from ads_manager.core.exceptions import (
    ApiValidationError,
    DraftNotFound,
    DraftValidationError,
    SubmissionInProgress,
)
from ads_manager.core.session import SessionContext
from ads_manager.schemas.common import DataResponse, ErrorResponse
from ads_manager.services.accounts import AccountService
from ads_manager.services.campaign_builder import CampaignWizard, DraftStore
from ads_manager.services.campaigns import CampaignService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/campaign-drafts", tags=["Campaign Drafts"])


def _error(status_code: int, message: str, detail: Any = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message, detail=detail).model_dump(),
    )


def _draft_response(draft_id: str, wizard: CampaignWizard, message: str = None) -> Dict[str, Any]:
    data = wizard.state()
    data["id"] = draft_id
    return DataResponse(data=data, message=message).model_dump()


def _get_wizard(drafts: DraftStore, draft_id: str, session: SessionContext) -> CampaignWizard:
    return drafts.get(draft_id, session.user_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_draft(
    session: SessionContext = Depends(require_session),
    accounts: AccountService = Depends(get_account_service),
    drafts: DraftStore = Depends(get_draft_store),
):
    """Start a new campaign draft"""
    draft_id, wizard = drafts.create(session.user_id, await accounts.list_accounts())
    session.draft_id = draft_id
    return _draft_response(draft_id, wizard, "Draft created")


@router.get("/{draft_id}")
async def get_draft(
    draft_id: str,
    session: SessionContext = Depends(require_session),
    drafts: DraftStore = Depends(get_draft_store),
):
    """Get draft state: step, fields, errors and estimates"""
    try:
        wizard = _get_wizard(drafts, draft_id, session)
    except DraftNotFound:
        return _error(status.HTTP_404_NOT_FOUND, "Draft not found")
    return _draft_response(draft_id, wizard)


@router.patch("/{draft_id}")
async def update_draft(
    draft_id: str,
    updates: Dict[str, Any] = Body(...),
    session: SessionContext = Depends(require_session),
    drafts: DraftStore = Depends(get_draft_store),
):
    """Merge a partial update into the draft (snake_case or camelCase keys)"""
    try:
        wizard = _get_wizard(drafts, draft_id, session)
        wizard.apply(updates)
    except DraftNotFound:
        return _error(status.HTTP_404_NOT_FOUND, "Draft not found")
    except DraftValidationError as e:
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "Invalid draft fields", e.errors)
    return _draft_response(draft_id, wizard)


@router.post("/{draft_id}/next")
async def next_step(
    draft_id: str,
    session: SessionContext = Depends(require_session),
    drafts: DraftStore = Depends(get_draft_store),
):
    """Advance when the current step validates"""
    try:
        wizard = _get_wizard(drafts, draft_id, session)
    except DraftNotFound:
        return _error(status.HTTP_404_NOT_FOUND, "Draft not found")

    if not wizard.next():
        return _error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            f"Step {int(wizard.step)} has invalid fields",
            wizard.errors,
        )
    return _draft_response(draft_id, wizard)


@router.post("/{draft_id}/previous")
async def previous_step(
    draft_id: str,
    session: SessionContext = Depends(require_session),
    drafts: DraftStore = Depends(get_draft_store),
):
    try:
        wizard = _get_wizard(drafts, draft_id, session)
    except DraftNotFound:
        return _error(status.HTTP_404_NOT_FOUND, "Draft not found")
    wizard.previous()
    return _draft_response(draft_id, wizard)


@router.post("/{draft_id}/goto")
async def go_to_step(
    draft_id: str,
    step: int = Body(..., embed=True),
    session: SessionContext = Depends(require_session),
    drafts: DraftStore = Depends(get_draft_store),
):
    """Jump to a step; forward jumps stop at the first invalid step"""
    try:
        wizard = _get_wizard(drafts, draft_id, session)
    except DraftNotFound:
        return _error(status.HTTP_404_NOT_FOUND, "Draft not found")

    try:
        reached = wizard.go_to(step)
    except ValueError:
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, f"Unknown step {step}")
    if not reached:
        return _error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            f"Step {int(wizard.step)} has invalid fields",
            wizard.errors,
        )
    return _draft_response(draft_id, wizard)


@router.post("/{draft_id}/submit", status_code=status.HTTP_201_CREATED)
async def submit_draft(
    draft_id: str,
    session: SessionContext = Depends(require_session),
    drafts: DraftStore = Depends(get_draft_store),
    campaigns: CampaignService = Depends(get_campaign_service),
):
    """
    Create the campaign from the merged draft in one request.

    409 while another submission of the same draft is pending. On failure
    the draft is kept so the call can be retried.
    """
    try:
        wizard = _get_wizard(drafts, draft_id, session)
    except DraftNotFound:
        return _error(status.HTTP_404_NOT_FOUND, "Draft not found")

    try:
        campaign = await wizard.submit(campaigns)
    except SubmissionInProgress as e:
        return _error(status.HTTP_409_CONFLICT, str(e))
    except DraftValidationError as e:
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(e), e.errors)
    except ApiValidationError as e:
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, e.message, e.field_errors)

    drafts.discard(draft_id)
    if session.draft_id == draft_id:
        session.draft_id = None
    return DataResponse(
        data=campaign.model_dump(mode="json", by_alias=True),
        message="Campaign created successfully",
    ).model_dump()


@router.delete("/{draft_id}")
async def discard_draft(
    draft_id: str,
    session: SessionContext = Depends(require_session),
    drafts: DraftStore = Depends(get_draft_store),
):
    """Discard a draft"""
    try:
        _get_wizard(drafts, draft_id, session)
    except DraftNotFound:
        return _error(status.HTTP_404_NOT_FOUND, "Draft not found")
    drafts.discard(draft_id)
    if session.draft_id == draft_id:
        session.draft_id = None
    return DataResponse(message="Draft discarded").model_dump()
