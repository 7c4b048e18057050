"""Sudo password validation routes."""

from fastapi import APIRouter, HTTPException, Request

from scriptbay.models import (
    AuthStatusResponse,
    ValidatePasswordRequest,
    ValidatePasswordResponse,
)
from scriptbay.services.validator import PrivilegeToolError, validate_password

router = APIRouter(prefix="/auth")


@router.get("/status", response_model=AuthStatusResponse)
async def auth_status(request: Request) -> AuthStatusResponse:
    """Report whether a sudo password is cached."""
    return AuthStatusResponse(authenticated=request.app.state.credential_store.is_set)


@router.post("/validate", response_model=ValidatePasswordResponse)
async def auth_validate(
    body: ValidatePasswordRequest, request: Request
) -> ValidatePasswordResponse:
    """Check a sudo password and cache it if sudo accepts it.

    ``valid: false`` means try another password; 503 means sudo itself
    could not be run.
    """
    try:
        valid = await validate_password(
            request.app.state.credential_store,
            body.password,
            sudo_path=request.app.state.sudo_path,
        )
    except PrivilegeToolError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return ValidatePasswordResponse(valid=valid)
