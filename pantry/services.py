"""Functionality behind the routes."""

import logging
from typing import Iterable, Protocol, Sequence

from pantry.errors import (
    GenerationFailed,
    GenerationUnavailable,
    ReceiptExtractionFailed,
    ValidationError,
    VisionUnavailable,
)
from pantry.models import (
    Favorite,
    PantryEntry,
    Recipe,
    ShoppingPlan,
    normalize_name,
)
from pantry.normalizer import normalize
from pantry.places import PlacesService
from pantry.receipts import parse_receipt
from pantry.reconciler import reconcile
from pantry.repository import FavoritesStore, HistoryStore, PantryStore


logger = logging.getLogger(__name__)


class RecipeModel(Protocol):
    async def generate_recipes(self, ingredient_names: list[str]) -> str:
        ...

    async def extract_ingredients(self, recipe_text: str) -> list[str]:
        ...

    async def scan_receipt(self, image: bytes, mime_type: str | None = None) -> str:
        ...


def clean_ingredients(ingredients: Iterable[str] | str) -> list[str]:
    """Trimmed, non-empty names. A string is read as a comma separated list."""
    if isinstance(ingredients, str):
        ingredients = ingredients.split(",")
    return [i.strip() for i in ingredients if i.strip()]


async def _generate(ingredient_names: list[str], *, llm: RecipeModel) -> list[Recipe]:
    try:
        raw = await llm.generate_recipes(ingredient_names)
    except GenerationUnavailable as e:
        raise GenerationFailed("Failed to get recipes.") from e
    return normalize(raw)


async def suggest_recipes(
    ingredients: Iterable[str] | str,
    *,
    llm: RecipeModel,
) -> list[Recipe]:
    names = clean_ingredients(ingredients)
    if not names:
        raise ValidationError("Please enter at least one ingredient.")
    return await _generate(names, llm=llm)


async def extract_ingredients(recipe_text: str, *, llm: RecipeModel) -> list[str]:
    if not recipe_text.strip():
        raise ValidationError("Provide a recipe.")
    return await llm.extract_ingredients(recipe_text)


async def generate_shopping_plan(
    pantry_entries: Sequence[PantryEntry],
    *,
    llm: RecipeModel,
) -> ShoppingPlan:
    """Recipes for the pantry plus what is still missing to cook them.

    Generation, normalization and reconciliation run strictly in that order.
    An empty pantry short-circuits without calling the model.
    """
    names = clean_ingredients(e.ingredient_name for e in pantry_entries)
    if not names:
        return ShoppingPlan()

    recipes = await _generate(names, llm=llm)

    async def extract(recipe: Recipe) -> list[str]:
        return await llm.extract_ingredients(recipe.extraction_text)

    shopping_list = await reconcile(recipes, names, extract)
    logger.info(
        "Plan: %d recipes, %d missing ingredients", len(recipes), len(shopping_list)
    )
    return ShoppingPlan(recipes=tuple(recipes), shopping_list=tuple(shopping_list))


async def plan_for_user(
    user_id: str,
    *,
    llm: RecipeModel,
    pantry: PantryStore,
    history: HistoryStore | None = None,
) -> ShoppingPlan:
    entries = await pantry.list(user_id)
    plan = await generate_shopping_plan(entries, llm=llm)
    if history is not None and plan.recipes:
        await record_history(user_id, plan, entries, history=history)
    return plan


async def record_history(
    user_id: str,
    plan: ShoppingPlan,
    pantry_entries: Sequence[PantryEntry],
    *,
    history: HistoryStore,
) -> None:
    used = ", ".join(clean_ingredients(e.ingredient_name for e in pantry_entries))
    for recipe in plan.recipes:
        await history.add(user_id, recipe.title, used)


async def import_receipt(
    image: bytes,
    mime_type: str | None = None,
    *,
    llm: RecipeModel,
) -> list[PantryEntry]:
    """Candidate pantry entries read off a receipt. Nothing is persisted."""
    if not image:
        raise ValidationError("No file uploaded.")
    try:
        raw = await llm.scan_receipt(image, mime_type)
    except VisionUnavailable as e:
        raise ReceiptExtractionFailed("Failed to scan receipt.") from e
    return [
        PantryEntry(id=None, ingredient_name=item.ingredient, quantity=item.quantity)
        for item in parse_receipt(raw)
    ]


async def import_receipt_to_pantry(
    user_id: str,
    image: bytes,
    mime_type: str | None = None,
    *,
    llm: RecipeModel,
    pantry: PantryStore,
) -> list[PantryEntry]:
    candidates = await import_receipt(image, mime_type, llm=llm)
    if not candidates:
        return []
    return await pantry.add_many(user_id, candidates)


async def add_to_pantry(
    user_id: str,
    ingredient: str,
    quantity: str | None = None,
    *,
    pantry: PantryStore,
) -> PantryEntry:
    ingredient = ingredient.strip()
    if not ingredient:
        raise ValidationError("Provide an ingredient.")
    quantity = quantity.strip() if quantity else None
    return await pantry.add(user_id, ingredient, quantity or None)


async def add_shopping_item_to_pantry(
    user_id: str,
    ingredient: str,
    quantity: str | None = None,
    *,
    pantry: PantryStore,
) -> PantryEntry:
    return await add_to_pantry(
        user_id, normalize_name(ingredient), quantity, pantry=pantry
    )


async def save_favorite(
    user_id: str,
    recipe: Recipe,
    *,
    favorites: FavoritesStore,
) -> Favorite:
    return await favorites.add(user_id, recipe)


async def find_nearby_stores(
    lat: float | None,
    lng: float | None,
    query: str | None,
    *,
    places: PlacesService,
) -> list[dict[str, object]]:
    if lat is None or lng is None or not query:
        raise ValidationError("Missing required parameters.")
    return await places.search(lat=lat, lng=lng, query=query)
