"""Conversation (chat session) API router."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from app.dependencies import (
    CurrentUser,
    get_conversation_service,
    get_current_user,
    get_write_guard,
)
from app.schemas.conversation_schema import (
    AppendMessageRequest,
    ConversationListResponse,
    ConversationMessagesResponse,
    ConversationSummary,
    CreateConversationRequest,
    DeletedResponse,
    MessageResponse,
    UpdateConversationRequest,
)
from app.schemas.response_schema import ApiResponse, success_response
from app.services.conversation_service import ConversationService
from app.services.write_guard import WriteGuard

router = APIRouter(
    prefix="/api/v1/conversations",
    tags=["conversations"],
    dependencies=[Depends(get_current_user)],
)

ConversationServiceDep = Annotated[
    ConversationService, Depends(get_conversation_service)
]
WriteGuardDep = Annotated[WriteGuard, Depends(get_write_guard)]
CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


@router.get("", response_model=ApiResponse[ConversationListResponse])
async def list_conversations(
    service: ConversationServiceDep,
    cursor: str | None = Query(default=None),
    limit: int = Query(default=20, ge=1, le=100),
    archived: bool = Query(default=False),
    include_all: bool = Query(default=False),
) -> dict:
    """List the current user's conversations with cursor-based pagination."""
    result = await service.list_conversations(
        limit=limit,
        cursor=cursor,
        archived=None if include_all else archived,
    )
    return success_response(result)


@router.post(
    "",
    response_model=ApiResponse[ConversationSummary],
    status_code=status.HTTP_201_CREATED,
)
async def create_conversation(
    body: CreateConversationRequest,
    guard: WriteGuardDep,
    current_user: CurrentUserDep,
) -> dict:
    """Open a new conversation (refused when history saving is off)."""
    session = await guard.create_session(current_user.id, title=body.title)
    return success_response(ConversationSummary.model_validate(session))


@router.delete("", response_model=ApiResponse[DeletedResponse])
async def clear_history(service: ConversationServiceDep) -> dict:
    """Delete every conversation of the current user."""
    deleted = await service.clear_history()
    return success_response(DeletedResponse(deleted_sessions=deleted))


@router.post("/sweep", response_model=ApiResponse[DeletedResponse])
async def sweep_expired(service: ConversationServiceDep) -> dict:
    """Apply the retention policy now."""
    deleted = await service.sweep()
    return success_response(DeletedResponse(deleted_sessions=deleted))


@router.get(
    "/{session_id}/messages",
    response_model=ApiResponse[ConversationMessagesResponse],
)
async def list_messages(session_id: int, service: ConversationServiceDep) -> dict:
    """List the messages of a conversation in the order they were sent."""
    result = await service.get_messages(session_id)
    return success_response(result)


@router.post(
    "/{session_id}/messages",
    response_model=ApiResponse[MessageResponse],
    status_code=status.HTTP_201_CREATED,
)
async def append_message(
    session_id: int,
    body: AppendMessageRequest,
    guard: WriteGuardDep,
    current_user: CurrentUserDep,
) -> dict:
    """Store a message (refused when history saving is off)."""
    message = await guard.append_message(
        current_user.id, session_id, body.role, body.content
    )
    return success_response(MessageResponse.model_validate(message))


@router.patch("/{session_id}", response_model=ApiResponse[ConversationSummary])
async def update_conversation(
    session_id: int,
    body: UpdateConversationRequest,
    service: ConversationServiceDep,
) -> dict:
    """Rename and/or archive a conversation."""
    result = await service.update(session_id, title=body.title, archived=body.archived)
    return success_response(result)


@router.delete("/{session_id}", response_model=ApiResponse[None])
async def delete_conversation(
    session_id: int,
    service: ConversationServiceDep,
) -> dict:
    """Delete a conversation and its messages."""
    await service.delete(session_id)
    return success_response(None)
