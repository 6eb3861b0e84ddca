import asyncio
import base64
import json
from typing import Any, Callable

import httpx
import openai
import pytest

from pantry.aopenai import vision_message
from pantry.errors import ExtractionUnavailable, GenerationUnavailable, VisionUnavailable
from pantry.llm_service import LLMService, split_ingredients


BASE_URL = "https://llm.test/v1/"


def completion(content: str) -> dict[str, Any]:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 0,
        "model": "test-model",
        "choices": [
            {
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": content},
            }
        ],
    }


def service(handler: Callable[..., Any], *, timeout: float = 5) -> LLMService:
    transport = httpx.MockTransport(handler)
    return LLMService(
        openai_client=openai.AsyncClient(
            api_key="test",
            base_url=BASE_URL,
            http_client=httpx.AsyncClient(transport=transport),
            max_retries=0,
        ),
        http_client=httpx.AsyncClient(base_url=BASE_URL, transport=transport),
        generation_model="gen-model",
        extraction_model="extract-model",
        vision_model="vision-model",
        timeout=timeout,
    )


@pytest.mark.asyncio
async def test_generate_recipes() -> None:
    seen: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json=completion('  [{"title": "Soup"}]\n'))

    llm = service(handler)
    got = await llm.generate_recipes(["tomato", "basil"])

    assert got == '[{"title": "Soup"}]'
    assert seen[0]["model"] == "gen-model"
    prompt = seen[0]["messages"][0]["content"]
    assert "tomato, basil" in prompt
    assert '"instructions"' in prompt


@pytest.mark.asyncio
async def test_generate_recipes_api_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": {"message": "boom"}})

    with pytest.raises(GenerationUnavailable):
        await service(handler).generate_recipes(["rice"])


@pytest.mark.asyncio
async def test_generate_recipes_timeout() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200, json=completion("[]"))

    with pytest.raises(GenerationUnavailable):
        await service(handler, timeout=0.01).generate_recipes(["rice"])


@pytest.mark.asyncio
async def test_extract_ingredients() -> None:
    seen: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json=completion("Eggs, English Muffin , ,hollandaise"))

    got = await service(handler).extract_ingredients("Eggs Benedict: Poach the eggs.")

    assert got == ["eggs", "english muffin", "hollandaise"]
    assert seen[0]["model"] == "extract-model"
    assert "Eggs Benedict: Poach the eggs." in seen[0]["messages"][0]["content"]


@pytest.mark.asyncio
async def test_extract_ingredients_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(ExtractionUnavailable):
        await service(handler).extract_ingredients("Soup: boil.")


@pytest.mark.asyncio
async def test_scan_receipt() -> None:
    seen: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/chat/completions"
        seen.append(json.loads(request.content))
        return httpx.Response(200, json=completion('[{"ingredient": "eggs"}]'))

    got = await service(handler).scan_receipt(b"\x89PNG", "image/png")

    assert got == '[{"ingredient": "eggs"}]'
    body = seen[0]
    assert body["model"] == "vision-model"
    text, image = body["messages"][0]["content"]
    assert text["type"] == "text"
    assert "grocery receipt" in text["text"]
    expected = base64.b64encode(b"\x89PNG").decode("utf-8")
    assert image["image_url"]["url"] == f"data:image/png;base64,{expected}"


@pytest.mark.parametrize(
    "response",
    (
        httpx.Response(500, text="oops"),
        httpx.Response(200, json={"error": {"message": "quota"}}),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, text="not json"),
    ),
)
@pytest.mark.asyncio
async def test_scan_receipt_failure(response: httpx.Response) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return response

    with pytest.raises(VisionUnavailable):
        await service(handler).scan_receipt(b"img")


def test_split_ingredients() -> None:
    assert split_ingredients(" Flour,SUGAR,, eggs ") == ["flour", "sugar", "eggs"]
    assert split_ingredients("") == []


def test_vision_message_defaults_to_jpeg() -> None:
    msg = vision_message("Read this.", b"img")
    assert msg["role"] == "user"
    assert msg["content"][0] == {"type": "text", "text": "Read this."}
    assert msg["content"][1]["image_url"]["url"] == "data:image/jpeg;base64,aW1n"
