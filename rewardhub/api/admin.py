"""
Admin gate endpoints.

The admin panel asks the server whether content management is available and
checks an operator's token before showing its forms. The same token is
required on every write endpoint through ``require_admin``.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from rewardhub.api.deps import admin_enabled, token_matches
from rewardhub.config import Settings, get_settings
from rewardhub.schemas import AdminStatusResponse, AdminVerifyRequest, SuccessResponse, ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/status", response_model=AdminStatusResponse, summary="Admin availability")
def admin_status(settings: Settings = Depends(get_settings)):
    return AdminStatusResponse(
        enabled=admin_enabled(settings),
        token_required=bool(settings.admin_token),
        environment=settings.environment,
    )


@router.post(
    "/verify",
    response_model=SuccessResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Wrong token"},
        403: {"model": ErrorResponse, "description": "Admin disabled"},
    },
    summary="Verify an admin token",
)
def verify_admin_token(payload: AdminVerifyRequest, settings: Settings = Depends(get_settings)):
    if not admin_enabled(settings):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin endpoints are disabled")
    if settings.admin_token and not token_matches(payload.token, settings):
        logger.warning("Admin token verification failed")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin token")
    return SuccessResponse(success=True)
