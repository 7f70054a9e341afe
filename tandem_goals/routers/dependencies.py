"""Shared router dependencies and error mapping."""
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from tandem_goals.config import settings
from tandem_goals.database import get_database
from tandem_goals.exceptions import (
    ForbiddenCrossOwnerLink,
    ForbiddenPartnerMutation,
    GoalInactive,
    GoalNotFound,
    GoalValidationError,
    LimitExceeded,
    TaskNotFound,
)
from tandem_goals.services.goal_service import GoalService


async def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None),
) -> str:
    """
    Dependency to get the acting user's ID.

    Identity is established upstream; requests carry it in ``X-User-Id``.

    Raises:
        HTTPException: If the header is missing or blank (401)
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return x_user_id.strip()


async def get_linked_partner_id(
    user_id: str = Depends(get_current_user_id),
    x_partner_id: Optional[str] = Header(default=None),
) -> str:
    """
    Dependency to get the partner the acting user is paired with.

    Pairing is established upstream with identity and arrives in
    ``X-Partner-Id``. Partner routes only ever touch this partner's goals.

    Raises:
        HTTPException: If no partner is linked or it is the user (403)
    """
    partner_id = (x_partner_id or "").strip()
    if not partner_id or partner_id == user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No partner linked",
        )
    return partner_id


def ensure_linked_partner(partner_id: str, linked_partner_id: str) -> None:
    """Reject requests about anyone but the linked partner (403)."""
    if partner_id != linked_partner_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not your partner",
        )


async def get_goal_service(db=Depends(get_database)) -> GoalService:
    """Dependency to get a goal service bound to the database."""
    return GoalService(db, max_active_goals=settings.max_active_goals)


GOAL_ERRORS = (
    GoalNotFound,
    TaskNotFound,
    GoalValidationError,
    LimitExceeded,
    GoalInactive,
    ForbiddenPartnerMutation,
    ForbiddenCrossOwnerLink,
)


def to_http_exception(error: Exception) -> HTTPException:
    """Map a goal engine error to the matching HTTP error."""
    if isinstance(error, (GoalNotFound, TaskNotFound)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, GoalValidationError):
        code = 422
    elif isinstance(error, (LimitExceeded, GoalInactive)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, (ForbiddenPartnerMutation, ForbiddenCrossOwnerLink)):
        code = status.HTTP_403_FORBIDDEN
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(error))
