"""Per-user stores for pantry entries, favorites and recipe history."""

from datetime import datetime, timezone
import json
from typing import Protocol, Sequence
from uuid import uuid4

from databases import Database
from databases.interfaces import Record

from pantry.models import Favorite, HistoryEntry, PantryEntry, Recipe


CREATE_TABLES = (
    """
    CREATE TABLE IF NOT EXISTS pantry (
        id VARCHAR(64) PRIMARY KEY,
        user_id VARCHAR(64) NOT NULL,
        ingredient VARCHAR(256) NOT NULL,
        quantity VARCHAR(256),
        created_at VARCHAR(32) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS favorites (
        id VARCHAR(64) PRIMARY KEY,
        user_id VARCHAR(64) NOT NULL,
        recipe_title VARCHAR(256) NOT NULL,
        recipe_text TEXT NOT NULL,
        created_at VARCHAR(32) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS recipe_history (
        id VARCHAR(64) PRIMARY KEY,
        user_id VARCHAR(64) NOT NULL,
        recipe_title VARCHAR(256) NOT NULL,
        ingredients_used TEXT NOT NULL,
        created_at VARCHAR(32) NOT NULL
    )
    """,
)


INSERT_PANTRY = """
INSERT INTO pantry(id, user_id, ingredient, quantity, created_at)
VALUES (:id, :user_id, :ingredient, :quantity, :created_at)
"""
LIST_PANTRY = """
SELECT id, ingredient, quantity FROM pantry
WHERE user_id = :user_id ORDER BY created_at DESC
"""
DELETE_PANTRY = "DELETE FROM pantry WHERE id = :id AND user_id = :user_id"


INSERT_FAVORITE = """
INSERT INTO favorites(id, user_id, recipe_title, recipe_text, created_at)
VALUES (:id, :user_id, :recipe_title, :recipe_text, :created_at)
"""
LIST_FAVORITES = """
SELECT id, recipe_title, recipe_text, created_at FROM favorites
WHERE user_id = :user_id ORDER BY created_at DESC
"""
DELETE_FAVORITE = "DELETE FROM favorites WHERE id = :id AND user_id = :user_id"


INSERT_HISTORY = """
INSERT INTO recipe_history(id, user_id, recipe_title, ingredients_used, created_at)
VALUES (:id, :user_id, :recipe_title, :ingredients_used, :created_at)
"""
LIST_HISTORY = """
SELECT id, recipe_title, ingredients_used, created_at FROM recipe_history
WHERE user_id = :user_id ORDER BY created_at DESC
"""
DELETE_HISTORY = "DELETE FROM recipe_history WHERE id = :id AND user_id = :user_id"


def now() -> datetime:
    return datetime.now(timezone.utc)


async def create_tables(db: Database) -> None:
    for query in CREATE_TABLES:
        await db.execute(query=query)  # pyright: ignore[reportUnknownMemberType]


class PantryStore(Protocol):
    # `list` is defined last in each store so earlier annotations see the builtin.

    async def add(
        self, user_id: str, ingredient_name: str, quantity: str | None = None
    ) -> PantryEntry:
        ...

    async def add_many(
        self, user_id: str, entries: Sequence[PantryEntry]
    ) -> list[PantryEntry]:
        ...

    async def delete(self, user_id: str, entry_id: str) -> None:
        ...

    async def list(self, user_id: str) -> list[PantryEntry]:
        ...


class FavoritesStore(Protocol):
    async def add(self, user_id: str, recipe: Recipe) -> Favorite:
        ...

    async def delete(self, user_id: str, favorite_id: str) -> None:
        ...

    async def list(self, user_id: str) -> list[Favorite]:
        ...


class HistoryStore(Protocol):
    async def add(
        self, user_id: str, recipe_title: str, ingredients_used: str
    ) -> HistoryEntry:
        ...

    async def delete(self, user_id: str, entry_id: str) -> None:
        ...

    async def list(self, user_id: str) -> list[HistoryEntry]:
        ...


def _pantry_entry(record: Record) -> PantryEntry:
    return PantryEntry(
        id=record["id"],
        ingredient_name=record["ingredient"],
        quantity=record["quantity"],
    )


class SqlPantryStore:
    """Pantry entries. A re-add creates a new row, nothing is merged."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def _insert(
        self, user_id: str, ingredient_name: str, quantity: str | None
    ) -> PantryEntry:
        id = uuid4().hex
        await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            INSERT_PANTRY,
            values={
                "id": id,
                "user_id": user_id,
                "ingredient": ingredient_name,
                "quantity": quantity,
                "created_at": now().isoformat(),
            },
        )
        return PantryEntry(id=id, ingredient_name=ingredient_name, quantity=quantity)

    async def add(
        self, user_id: str, ingredient_name: str, quantity: str | None = None
    ) -> PantryEntry:
        return await self._insert(user_id, ingredient_name, quantity)

    async def add_many(
        self, user_id: str, entries: Sequence[PantryEntry]
    ) -> list[PantryEntry]:
        async with self.db.transaction():
            return [
                await self._insert(user_id, e.ingredient_name, e.quantity)
                for e in entries
            ]

    async def delete(self, user_id: str, entry_id: str) -> None:
        await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            DELETE_PANTRY, values={"id": entry_id, "user_id": user_id}
        )

    async def list(self, user_id: str) -> list[PantryEntry]:
        result = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
            LIST_PANTRY, values={"user_id": user_id}
        )
        return [_pantry_entry(r) for r in result]


class SqlFavoritesStore:
    def __init__(self, db: Database) -> None:
        self.db = db

    async def add(self, user_id: str, recipe: Recipe) -> Favorite:
        favorite = Favorite(
            id=uuid4().hex,
            recipe_title=recipe.title,
            recipe=recipe,
            created_at=now(),
        )
        await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            INSERT_FAVORITE,
            values={
                "id": favorite.id,
                "user_id": user_id,
                "recipe_title": favorite.recipe_title,
                "recipe_text": json.dumps(recipe.to_dict()),
                "created_at": favorite.created_at.isoformat(),
            },
        )
        return favorite

    async def delete(self, user_id: str, favorite_id: str) -> None:
        await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            DELETE_FAVORITE, values={"id": favorite_id, "user_id": user_id}
        )

    async def list(self, user_id: str) -> list[Favorite]:
        result = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
            LIST_FAVORITES, values={"user_id": user_id}
        )
        return [
            Favorite(
                id=r["id"],
                recipe_title=r["recipe_title"],
                recipe=Recipe.create(**json.loads(r["recipe_text"])),
                created_at=datetime.fromisoformat(r["created_at"]),
            )
            for r in result
        ]


class SqlHistoryStore:
    def __init__(self, db: Database) -> None:
        self.db = db

    async def add(
        self, user_id: str, recipe_title: str, ingredients_used: str
    ) -> HistoryEntry:
        entry = HistoryEntry(
            id=uuid4().hex,
            recipe_title=recipe_title,
            ingredients_used=ingredients_used,
            created_at=now(),
        )
        await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            INSERT_HISTORY,
            values={
                "id": entry.id,
                "user_id": user_id,
                "recipe_title": entry.recipe_title,
                "ingredients_used": entry.ingredients_used,
                "created_at": entry.created_at.isoformat(),
            },
        )
        return entry

    async def delete(self, user_id: str, entry_id: str) -> None:
        await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            DELETE_HISTORY, values={"id": entry_id, "user_id": user_id}
        )

    async def list(self, user_id: str) -> list[HistoryEntry]:
        result = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
            LIST_HISTORY, values={"user_id": user_id}
        )
        return [
            HistoryEntry(
                id=r["id"],
                recipe_title=r["recipe_title"],
                ingredients_used=r["ingredients_used"],
                created_at=datetime.fromisoformat(r["created_at"]),
            )
            for r in result
        ]
