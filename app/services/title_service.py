"""Service for generating chat session titles via LLM."""

from langchain_core.language_models import BaseChatModel

MAX_TITLE_LENGTH = 60


class TitleService:
    """Generates concise session titles from the opening user message."""

    def __init__(self, llm: BaseChatModel) -> None:
        self._llm = llm

    async def generate_title(self, message: str) -> str:
        """Summarise a user message into a title of a few words."""
        prompt = (
            "Summarise the following question as a conversation title of at most "
            "six words. Reply with the title only, no quotes:\n"
            f"{message}"
        )
        response = await self._llm.ainvoke(prompt)
        return str(response.content).strip().strip('"')[:MAX_TITLE_LENGTH]
