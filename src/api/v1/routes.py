"""
API v1 routes.

Defines REST endpoints for the Waitlist Registration API.
"""

import logging
import math

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from src.api.dependencies import get_client_context, get_coordinator, get_dispatcher
from src.api.models import (
    DuplicateResponse,
    EntryData,
    EntrySummary,
    ErrorResponse,
    JoinWaitlistRequest,
    JoinWaitlistResponse,
    NotificationStatusResponse,
    RejectionResponse,
    StatsResponse,
)
from src.domain.exceptions import StorageUnavailable
from src.domain.models import SubmissionRequest
from src.domain.notifications import NotificationDispatcher
from src.domain.ports import RegistrationState
from src.domain.registration import RegistrationCoordinator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/waitlist", tags=["v1"])

_REJECTION_STATUS = {
    RegistrationState.REJECTED_VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    RegistrationState.REJECTED_RATE_LIMIT: status.HTTP_429_TOO_MANY_REQUESTS,
    RegistrationState.REJECTED_INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@router.post(
    "",
    response_model=JoinWaitlistResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        200: {"model": DuplicateResponse, "description": "Email already on the waitlist"},
        422: {"model": RejectionResponse, "description": "Validation error"},
        429: {"model": RejectionResponse, "description": "Too many submissions"},
        500: {"model": RejectionResponse, "description": "Internal error"},
    },
    summary="Join the waitlist",
    description="Submit an email plus optional social handles and referral code. "
    "Returns the assigned waitlist position.",
)
def join_waitlist(
    request_data: JoinWaitlistRequest,
    client_context: tuple[str, str] = Depends(get_client_context),
    coordinator: RegistrationCoordinator = Depends(get_coordinator),
):
    """
    Join the waitlist.

    - **email**: Email address (required)
    - **twitter** / **telegram**: Handles, "@" added when missing
    - **discord**: Username
    - **referralCode**: Optional referral code

    Submitting an email that is already registered returns its existing
    position with 200 OK.
    """
    source_address, client_agent = client_context
    result = coordinator.register(
        SubmissionRequest(
            email=request_data.email,
            source_address=source_address,
            client_agent=client_agent,
            twitter=request_data.twitter,
            telegram=request_data.telegram,
            discord=request_data.discord,
            referral_code=request_data.referral_code,
        )
    )

    if result.registered:
        entry = result.entry
        return JoinWaitlistResponse(
            message="Successfully joined waitlist!",
            position=entry.position,
            data=EntryData(
                email=entry.email,
                twitter=entry.twitter,
                telegram=entry.telegram,
                discord=entry.discord,
                position=entry.position,
                joined_at=entry.joined_at,
            ),
        )

    if result.duplicate:
        body = DuplicateResponse(
            message="This email address is already on our waitlist",
            existing_position=result.existing_position,
        )
        return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump(by_alias=True))

    retry_after = math.ceil(result.retry_after) if result.retry_after is not None else None
    body = RejectionResponse(kind=result.kind, message=result.message, retry_after=retry_after)
    headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
    return JSONResponse(
        status_code=_REJECTION_STATUS[result.state],
        content=body.model_dump(by_alias=True, exclude_none=True),
        headers=headers,
    )


@router.get(
    "/stats",
    response_model=StatsResponse,
    responses={500: {"model": ErrorResponse, "description": "Storage unavailable"}},
    summary="Waitlist statistics",
)
def waitlist_stats(
    coordinator: RegistrationCoordinator = Depends(get_coordinator),
) -> StatsResponse:
    """Total number of entries plus the ten most recent submissions."""
    try:
        stats = coordinator.stats()
    except StorageUnavailable:
        logger.exception("Failed to fetch waitlist statistics")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch waitlist statistics",
        ) from None

    return StatsResponse(
        total=stats.total,
        recent_submissions=[
            EntrySummary(email=e.email, position=e.position, joined_at=e.joined_at)
            for e in stats.recent
        ],
    )


@router.get(
    "/position/{email}",
    response_model=EntrySummary,
    responses={
        404: {"model": ErrorResponse, "description": "Email not found"},
        500: {"model": ErrorResponse, "description": "Storage unavailable"},
    },
    summary="Look up a waitlist position",
)
def waitlist_position(
    email: str,
    coordinator: RegistrationCoordinator = Depends(get_coordinator),
) -> EntrySummary:
    """Return email, position and join time for a registered email."""
    try:
        entry = coordinator.lookup(email)
    except StorageUnavailable:
        logger.exception("Failed to fetch waitlist position")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch waitlist position",
        ) from None

    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Email not found in waitlist",
        )
    return EntrySummary(email=entry.email, position=entry.position, joined_at=entry.joined_at)


@router.get(
    "/notifications/status",
    response_model=NotificationStatusResponse,
    summary="Notification transport status",
)
def notification_status(
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> NotificationStatusResponse:
    """Whether a notification transport is configured, and which one."""
    current = dispatcher.status()
    return NotificationStatusResponse(
        configured=current.configured,
        transport=current.transport,
        admin_email=current.admin_email,
        max_attempts=current.max_attempts,
    )
