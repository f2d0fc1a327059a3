"""History statistics API router."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.dependencies import (
    CurrentUser,
    get_current_user,
    get_retention_sweeper,
    get_settings_service,
    get_stats_service,
)
from app.schemas.response_schema import ApiResponse, success_response
from app.schemas.stats_schema import StatsResponse
from app.services.retention_policy import can_persist
from app.services.retention_sweeper import RetentionSweeper
from app.services.settings_service import SettingsService
from app.services.stats_service import StatsService

router = APIRouter(prefix="/api/v1/stats", tags=["stats"])


@router.get("", response_model=ApiResponse[StatsResponse])
async def get_stats(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    sweeper: Annotated[RetentionSweeper, Depends(get_retention_sweeper)],
    stats_service: Annotated[StatsService, Depends(get_stats_service)],
    settings_service: Annotated[SettingsService, Depends(get_settings_service)],
) -> dict:
    """Sweep expired sessions, then summarise what is stored."""
    swept = await sweeper.sweep(current_user.id)
    stats = await stats_service.compute_stats(current_user.id)
    user_settings = await settings_service.get(current_user.id)
    return success_response(
        StatsResponse(
            stats=stats,
            save_chat_history=can_persist(user_settings),
            auto_delete_days=(
                user_settings.auto_delete_days
                if user_settings.auto_delete_history
                else None
            ),
            swept_sessions=swept,
        )
    )
