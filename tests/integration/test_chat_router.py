"""Integration tests for POST /api/v1/chat."""

from collections.abc import AsyncGenerator, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from langchain_core.messages import AIMessage
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.dependencies import get_llm
from app.repositories.chat_repo import ChatRepository

SessionFactory = async_sessionmaker[AsyncSession]


@pytest.fixture
async def chat_client(
    asgi_app: FastAPI, mock_llm: MagicMock, token_factory: Callable[..., str]
) -> AsyncGenerator[AsyncClient, None]:
    """Authenticated client with the LLM replaced by a mock."""
    asgi_app.dependency_overrides[get_llm] = lambda: mock_llm
    transport = ASGITransport(app=asgi_app)
    headers = {"Authorization": f"Bearer {token_factory(1)}"}
    async with AsyncClient(
        transport=transport, base_url="http://test", headers=headers
    ) as ac:
        yield ac


class TestChat:
    @pytest.mark.asyncio
    async def test_new_conversation_is_stored(
        self, chat_client: AsyncClient, session_factory: SessionFactory
    ) -> None:
        response = await chat_client.post("/api/v1/chat", json={"message": "Hello"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["message"] == "Test response"
        assert data["saved"] is True
        session_id = data["session_id"]

        async with session_factory() as session:
            repo = ChatRepository(session)
            messages = await repo.find_messages_by_session_id(session_id)
            stored = await repo.find_session(1, session_id)
        assert [m.role for m in messages] == ["user", "assistant"]
        # Title comes from the background task, which reuses the mocked reply.
        assert stored is not None
        assert stored.title == "Test response"

    @pytest.mark.asyncio
    async def test_history_disabled_still_answers(
        self, chat_client: AsyncClient
    ) -> None:
        await chat_client.patch("/api/v1/settings", json={"save_chat_history": False})

        response = await chat_client.post("/api/v1/chat", json={"message": "Hello"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["message"] == "Test response"
        assert data["saved"] is False
        assert data["session_id"] is None

        listing = await chat_client.get("/api/v1/conversations")
        assert listing.json()["data"]["conversations"] == []

    @pytest.mark.asyncio
    async def test_continue_foreign_session_not_found(
        self, chat_client: AsyncClient, session_factory: SessionFactory
    ) -> None:
        async with session_factory() as session:
            repo = ChatRepository(session)
            foreign = await repo.create_session(user_id=2)
            await repo.commit()

        response = await chat_client.post(
            "/api/v1/chat", json={"message": "Hi", "session_id": foreign.id}
        )
        assert response.status_code == 404
        assert response.json()["code"] == "SESSION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_provider_failure_is_502(
        self, chat_client: AsyncClient, mock_llm: MagicMock
    ) -> None:
        mock_llm.ainvoke = AsyncMock(side_effect=RuntimeError("down"))

        response = await chat_client.post("/api/v1/chat", json={"message": "Hello"})

        assert response.status_code == 502
        assert response.json()["code"] == "UPSTREAM_ERROR"

    @pytest.mark.asyncio
    async def test_empty_message_rejected(self, chat_client: AsyncClient) -> None:
        response = await chat_client.post("/api/v1/chat", json={"message": ""})
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_follow_up_sends_stored_turns(
        self, chat_client: AsyncClient, mock_llm: MagicMock
    ) -> None:
        mock_llm.ainvoke.return_value = AIMessage(content="Nice to meet you, Ada")
        first = await chat_client.post("/api/v1/chat", json={"message": "I am Ada"})
        session_id = first.json()["data"]["session_id"]

        await chat_client.post(
            "/api/v1/chat", json={"message": "Who am I?", "session_id": session_id}
        )

        sent = mock_llm.ainvoke.call_args_list[-1].args[0]
        assert "I am Ada" in [m.content for m in sent]
        assert sent[-1].content == "Who am I?"
