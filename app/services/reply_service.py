"""AI reply generation over a LangChain chat model."""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Protocol

import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from app.core.exceptions import UpstreamError

logger = structlog.get_logger()

SYSTEM_PROMPT_TEMPLATE = (
    "You are a friendly voice assistant. Answer in short, natural sentences "
    "that read well aloud.\n\n"
    "Current date and time: {system_time}"
)


class ContextMessage(Protocol):
    """Anything with a role and content: stored messages or client context."""

    role: str
    content: str


class ReplyService:
    """Stateless forwarder: prompt and prior turns in, reply text out."""

    def __init__(self, llm: BaseChatModel) -> None:
        self._llm = llm

    async def generate(
        self,
        prompt: str,
        context: Sequence[ContextMessage] = (),
    ) -> str:
        """Generate a reply. Provider failures raise UpstreamError."""
        messages = self._build_messages(prompt, context)
        try:
            response = await self._llm.ainvoke(messages)
        except Exception as exc:
            logger.warning("Reply generation failed", error=str(exc))
            raise UpstreamError("llm", str(exc)) from exc
        return str(response.content).strip()

    @staticmethod
    def _build_messages(
        prompt: str, context: Sequence[ContextMessage]
    ) -> list[BaseMessage]:
        """Convert prior turns to LangChain messages, framed by the system prompt."""
        system_time = datetime.now(tz=UTC).strftime("%Y-%m-%d %H:%M UTC")
        messages: list[BaseMessage] = [
            SystemMessage(content=SYSTEM_PROMPT_TEMPLATE.format(system_time=system_time))
        ]
        for msg in context:
            if msg.role == "user":
                messages.append(HumanMessage(content=msg.content))
            elif msg.role == "assistant":
                messages.append(AIMessage(content=msg.content))
        messages.append(HumanMessage(content=prompt))
        return messages
