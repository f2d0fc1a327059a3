"""Chat API router: one turn of conversation with guarded persistence."""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from langchain_core.language_models import BaseChatModel

from app.core.config import settings
from app.core.rate_limit import limiter
from app.dependencies import get_chat_service, get_current_user, get_llm
from app.schemas.chat_schema import ChatRequest, ChatResponse
from app.schemas.response_schema import ApiResponse, success_response
from app.services.chat_service import ChatService
from app.services.chat_title_task import generate_session_title

router = APIRouter(
    prefix="/api/v1/chat",
    tags=["chat"],
    dependencies=[Depends(get_current_user)],
)

ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
LLMDep = Annotated[BaseChatModel, Depends(get_llm)]


@router.post("", response_model=ApiResponse[ChatResponse])
@limiter.limit(settings.auth.chat_rate_limit)
async def chat(
    request: Request,
    body: ChatRequest,
    chat_service: ChatServiceDep,
    llm: LLMDep,
    background_tasks: BackgroundTasks,
) -> dict:
    """Answer a message; store the turn only if the user's settings allow it."""
    result, is_new_session = await chat_service.chat(body)
    if is_new_session and result.session_id is not None:
        background_tasks.add_task(
            generate_session_title,
            session_id=result.session_id,
            message=body.message,
            llm=llm,
        )
    return success_response(result)
