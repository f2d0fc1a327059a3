"""User settings API router."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.dependencies import CurrentUser, get_current_user, get_settings_service
from app.schemas.response_schema import ApiResponse, success_response
from app.schemas.settings_schema import SettingsResponse, SettingsUpdate
from app.services.settings_service import SettingsService

router = APIRouter(prefix="/api/v1/settings", tags=["settings"])

SettingsServiceDep = Annotated[SettingsService, Depends(get_settings_service)]
CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


@router.get("", response_model=ApiResponse[SettingsResponse])
async def get_settings(
    service: SettingsServiceDep,
    current_user: CurrentUserDep,
) -> dict:
    """Return the current user's settings, creating defaults on first access."""
    record = await service.get(current_user.id)
    return success_response(SettingsResponse.model_validate(record))


@router.patch("", response_model=ApiResponse[SettingsResponse])
async def update_settings(
    body: SettingsUpdate,
    service: SettingsServiceDep,
    current_user: CurrentUserDep,
) -> dict:
    """Update settings. Takes effect from the very next history write."""
    record = await service.update(current_user.id, body)
    return success_response(SettingsResponse.model_validate(record))
