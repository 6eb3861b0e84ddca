import base64
import os
from typing import Any

import httpx
import openai


LLM_TOKEN = os.environ.get("LLM_API_KEY")
# Gemini speaks the OpenAI chat protocol on this path.
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_MODEL = "gemini-2.0-flash"
MAX_TOKENS = 3000
TIMEOUT = 60


def openai_client_factory(
    token: str | None = None,
    *,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = TIMEOUT,
) -> httpx.AsyncClient:
    token = LLM_TOKEN if token is None else token
    return httpx.AsyncClient(
        base_url=base_url,
        headers={
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        },
        timeout=timeout,
    )


def async_openai_client(
    token: str | None = None,
    *,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = TIMEOUT,
    max_retries: int = 2,
) -> openai.AsyncClient:
    token = LLM_TOKEN if token is None else token
    return openai.AsyncClient(
        api_key=token or "",
        base_url=base_url,
        timeout=timeout,
        max_retries=max_retries,
    )


async def quick_chat(
    msg: str,
    *,
    openai_client: openai.AsyncClient,
    model: str | None = None,
    temperature: float | openai.NotGiven = openai.NOT_GIVEN,
) -> str:
    model = DEFAULT_MODEL if model is None else model
    resp = await openai_client.chat.completions.create(
        model=model,
        messages=[{"role": "user", "content": msg}],
        temperature=temperature,
    )
    ans = resp.choices[0].message.content or ""
    return ans.strip()


def image_data_url(image: bytes, mime_type: str = "image/jpeg") -> str:
    data = base64.b64encode(image).decode("utf-8")
    return f"data:{mime_type};base64,{data}"


def vision_message(prompt: str, image: bytes, mime_type: str = "image/jpeg") -> dict[str, Any]:
    """A user chat message carrying a text prompt followed by an inline image."""
    return {
        "role": "user",
        "content": [
            {"type": "text", "text": prompt},
            {"type": "image_url", "image_url": {"url": image_data_url(image, mime_type)}},
        ],
    }
