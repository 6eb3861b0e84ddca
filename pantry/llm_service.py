import asyncio
import logging
from typing import Any, Awaitable, Self, TypeVar

import httpx
import openai

from pantry.aopenai import (
    DEFAULT_BASE_URL,
    DEFAULT_MODEL,
    MAX_TOKENS,
    async_openai_client,
    openai_client_factory,
    quick_chat,
    vision_message,
)
from pantry.errors import ExtractionUnavailable, GenerationUnavailable, VisionUnavailable
from pantry.prompts import (
    SCAN_RECEIPT_PROMPT,
    ExtractIngredientsPrompt,
    SuggestRecipesPrompt,
)


logger = logging.getLogger(__name__)


T = TypeVar("T")


# Anything the call or its response envelope can throw at us.
CALL_ERRORS = (
    openai.OpenAIError,
    httpx.HTTPError,
    asyncio.TimeoutError,
    KeyError,
    IndexError,
    TypeError,
    ValueError,
)


def split_ingredients(text: str) -> list[str]:
    return [i.strip().lower() for i in text.split(",") if i.strip()]


class LLMService:
    """The generation, extraction and receipt vision collaborators.

    Every call is bounded by `timeout`; a timeout is reported the same way as
    any other failure of that collaborator.
    """

    @classmethod
    def from_config(cls, config: Any) -> Self:
        return cls(
            openai_client=async_openai_client(
                config.llm_api_key,
                base_url=config.llm_base_url,
                timeout=config.request_timeout,
            ),
            http_client=openai_client_factory(
                config.llm_api_key,
                base_url=config.llm_base_url,
                timeout=config.request_timeout,
            ),
            generation_model=config.generation_model,
            extraction_model=config.extraction_model,
            vision_model=config.vision_model,
            max_tokens=config.max_tokens,
            timeout=config.request_timeout,
        )

    def __init__(
        self,
        openai_client: openai.AsyncClient | None = None,
        http_client: httpx.AsyncClient | None = None,
        *,
        generation_model: str = DEFAULT_MODEL,
        extraction_model: str = "gemini-1.5-pro",
        vision_model: str = "gemini-1.5-pro",
        max_tokens: int = MAX_TOKENS,
        timeout: float = 60,
    ) -> None:
        self.openai_client = (
            async_openai_client(base_url=DEFAULT_BASE_URL)
            if openai_client is None
            else openai_client
        )
        self.http_client = (
            openai_client_factory(base_url=DEFAULT_BASE_URL)
            if http_client is None
            else http_client
        )
        self.generation_model = generation_model
        self.extraction_model = extraction_model
        self.vision_model = vision_model
        self.max_tokens = max_tokens
        self.timeout = timeout

    async def _bounded(self, aw: Awaitable[T]) -> T:
        return await asyncio.wait_for(aw, timeout=self.timeout)

    async def generate_recipes(self, ingredient_names: list[str]) -> str:
        prompt = SuggestRecipesPrompt(ingredient_names)
        try:
            return await self._bounded(
                quick_chat(
                    str(prompt),
                    openai_client=self.openai_client,
                    model=self.generation_model,
                    temperature=0.7,
                )
            )
        except CALL_ERRORS as e:
            logger.error("Recipe generation failed: %r", e)
            raise GenerationUnavailable(str(e) or type(e).__name__) from e

    async def extract_ingredients(self, recipe_text: str) -> list[str]:
        prompt = ExtractIngredientsPrompt(recipe_text)
        try:
            text = await self._bounded(
                quick_chat(
                    str(prompt),
                    openai_client=self.openai_client,
                    model=self.extraction_model,
                    temperature=0.2,
                )
            )
        except CALL_ERRORS as e:
            raise ExtractionUnavailable(str(e) or type(e).__name__) from e
        return split_ingredients(text)

    async def scan_receipt(self, image: bytes, mime_type: str | None = None) -> str:
        message = vision_message(SCAN_RECEIPT_PROMPT, image, mime_type or "image/jpeg")
        try:
            resp = await self._bounded(
                self.http_client.post(
                    "chat/completions",
                    json={
                        "model": self.vision_model,
                        "messages": [message],
                        "max_tokens": self.max_tokens,
                    },
                )
            )
            resp.raise_for_status()
            data = resp.json()
            if "error" in data:
                raise ValueError(f"Problem scanning receipt. {data['error']}")
            return data["choices"][0]["message"]["content"] or ""
        except CALL_ERRORS as e:
            logger.error("Receipt scan failed: %r", e)
            raise VisionUnavailable(str(e) or type(e).__name__) from e

    async def close(self) -> None:
        await self.openai_client.close()
        await self.http_client.aclose()
