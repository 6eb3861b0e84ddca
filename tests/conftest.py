import json
from typing import Any, Sequence
from uuid import uuid4

import pytest

from pantry.errors import ExtractionUnavailable, GenerationUnavailable, VisionUnavailable
from pantry.models import PantryEntry


def recipe_json(*titles: str) -> str:
    return json.dumps(
        [
            {
                "title": t,
                "summary": f"{t} summary.",
                "instructions": [f"Cook the {t.lower()}."],
                "substitutes": [],
            }
            for t in titles
        ]
    )


class FakeLLM:
    def __init__(
        self,
        *,
        raw: str = "[]",
        extracted: dict[str, list[str]] | None = None,
        receipt: str = "[]",
        generation_error: bool = False,
        extraction_errors: Sequence[str] = (),
        scan_error: bool = False,
    ) -> None:
        self.raw = raw
        self.extracted = {} if extracted is None else extracted
        self.receipt = receipt
        self.generation_error = generation_error
        self.extraction_errors = extraction_errors
        self.scan_error = scan_error
        self.generate_calls: list[list[str]] = []
        self.extract_calls: list[str] = []
        self.scan_calls: list[tuple[bytes, str | None]] = []

    async def generate_recipes(self, ingredient_names: list[str]) -> str:
        self.generate_calls.append(ingredient_names)
        if self.generation_error:
            raise GenerationUnavailable("down")
        return self.raw

    async def extract_ingredients(self, recipe_text: str) -> list[str]:
        self.extract_calls.append(recipe_text)
        title = recipe_text.split(":", 1)[0]
        if title in self.extraction_errors:
            raise ExtractionUnavailable("down")
        return self.extracted.get(title, [])

    async def scan_receipt(self, image: bytes, mime_type: str | None = None) -> str:
        self.scan_calls.append((image, mime_type))
        if self.scan_error:
            raise VisionUnavailable("down")
        return self.receipt


class FakePantryStore:
    def __init__(self, entries: dict[str, list[PantryEntry]] | None = None) -> None:
        self.entries = {} if entries is None else entries

    async def add(
        self, user_id: str, ingredient_name: str, quantity: str | None = None
    ) -> PantryEntry:
        entry = PantryEntry(
            id=uuid4().hex, ingredient_name=ingredient_name, quantity=quantity
        )
        self.entries.setdefault(user_id, []).append(entry)
        return entry

    async def add_many(
        self, user_id: str, entries: Sequence[PantryEntry]
    ) -> list[PantryEntry]:
        return [await self.add(user_id, e.ingredient_name, e.quantity) for e in entries]

    async def delete(self, user_id: str, entry_id: str) -> None:
        self.entries[user_id] = [
            e for e in self.entries.get(user_id, []) if e.id != entry_id
        ]

    async def list(self, user_id: str) -> list[PantryEntry]:
        return list(self.entries.get(user_id, []))


class FakeListStore:
    """Favorites or history, kept in memory."""

    def __init__(self, factory: Any) -> None:
        self.factory = factory
        self.items: dict[str, list[Any]] = {}

    async def add(self, user_id: str, *args: Any) -> Any:
        item = self.factory(*args)
        self.items.setdefault(user_id, []).append(item)
        return item

    async def delete(self, user_id: str, item_id: str) -> None:
        self.items[user_id] = [i for i in self.items.get(user_id, []) if i.id != item_id]

    async def list(self, user_id: str) -> list[Any]:
        return list(reversed(self.items.get(user_id, [])))


@pytest.fixture
def pantry_store() -> FakePantryStore:
    return FakePantryStore()
