from pathlib import Path
from typing import AsyncIterator

from databases import Database
import pytest
import pytest_asyncio

from pantry.models import PantryEntry, Recipe
from pantry.repository import (
    SqlFavoritesStore,
    SqlHistoryStore,
    SqlPantryStore,
    create_tables,
)


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> AsyncIterator[Database]:
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'pantry.db'}")
    await database.connect()
    await create_tables(database)
    yield database
    await database.disconnect()


@pytest.mark.asyncio
async def test_pantry_store(db: Database) -> None:
    store = SqlPantryStore(db)
    eggs = await store.add("u1", "eggs", "12")
    again = await store.add("u1", "eggs")
    await store.add("u2", "milk")

    got = await store.list("u1")
    assert {(e.ingredient_name, e.quantity) for e in got} == {("eggs", "12"), ("eggs", None)}
    assert eggs.id != again.id

    await store.delete("u1", eggs.id or "")
    assert await store.list("u1") == [again]
    assert [e.ingredient_name for e in await store.list("u2")] == ["milk"]


@pytest.mark.asyncio
async def test_pantry_store_delete_is_user_scoped(db: Database) -> None:
    store = SqlPantryStore(db)
    milk = await store.add("u2", "milk")
    await store.delete("u1", milk.id or "")
    assert await store.list("u2") == [milk]


@pytest.mark.asyncio
async def test_pantry_store_add_many(db: Database) -> None:
    store = SqlPantryStore(db)
    got = await store.add_many(
        "u1",
        [
            PantryEntry(id=None, ingredient_name="rice", quantity="1kg"),
            PantryEntry(id=None, ingredient_name="peas"),
        ],
    )
    assert all(e.id for e in got)
    assert sorted(await store.list("u1"), key=lambda e: e.ingredient_name) == sorted(
        got, key=lambda e: e.ingredient_name
    )


@pytest.mark.asyncio
async def test_pantry_store_add_many_writes_nothing_on_failure(db: Database) -> None:
    store = SqlPantryStore(db)
    entries = [
        PantryEntry(id=None, ingredient_name="rice", quantity="1kg"),
        PantryEntry(id=None, ingredient_name=None),  # pyright: ignore[reportArgumentType]
    ]
    with pytest.raises(Exception):
        await store.add_many("u1", entries)
    assert await store.list("u1") == []


@pytest.mark.asyncio
async def test_favorites_store(db: Database) -> None:
    store = SqlFavoritesStore(db)
    recipe = Recipe.create(
        title="Soup",
        summary="Hot.",
        instructions=["Boil."],
        substitutes=["Stock for water"],
    )
    favorite = await store.add("u1", recipe)

    [got] = await store.list("u1")
    assert got.id == favorite.id
    assert got.recipe == recipe
    assert got.recipe_title == "Soup"

    await store.delete("u1", favorite.id)
    assert await store.list("u1") == []


@pytest.mark.asyncio
async def test_history_store(db: Database) -> None:
    store = SqlHistoryStore(db)
    entry = await store.add("u1", "Pilaf", "rice, peas")

    [got] = await store.list("u1")
    assert (got.id, got.recipe_title, got.ingredients_used) == (
        entry.id,
        "Pilaf",
        "rice, peas",
    )
    assert got.created_at == entry.created_at

    await store.delete("u1", entry.id)
    assert await store.list("u1") == []
