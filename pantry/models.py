from datetime import datetime
from typing import Any, NamedTuple, Self


def normalize_name(name: str) -> str:
    return name.strip().lower()


class Recipe(NamedTuple):
    title: str
    summary: str = ""
    instructions: tuple[str, ...] = ()
    substitutes: tuple[str, ...] = ()

    @classmethod
    def create(
        cls,
        *,
        title: str,
        summary: str = "",
        instructions: list[str] | tuple[str, ...] = (),
        substitutes: list[str] | tuple[str, ...] = (),
    ) -> Self:
        return cls(
            title=title,
            summary=summary,
            instructions=tuple(instructions),
            substitutes=tuple(substitutes),
        )

    @property
    def extraction_text(self) -> str:
        """Text handed to the extraction model."""
        return f"{self.title}: {' '.join(self.instructions)}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "summary": self.summary,
            "instructions": list(self.instructions),
            "substitutes": list(self.substitutes),
        }


class ReceiptItem(NamedTuple):
    ingredient: str
    quantity: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {"ingredient": self.ingredient, "quantity": self.quantity}


class ShoppingListEntry(NamedTuple):
    ingredient_name: str
    recipe_titles: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"ingredient": self.ingredient_name, "recipes": list(self.recipe_titles)}


class ShoppingPlan(NamedTuple):
    recipes: tuple[Recipe, ...] = ()
    shopping_list: tuple[ShoppingListEntry, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "recipes": [r.to_dict() for r in self.recipes],
            "shoppingList": [e.to_dict() for e in self.shopping_list],
        }


class PantryEntry:
    def __init__(
        self,
        *,
        id: str | None,
        ingredient_name: str,
        quantity: str | None = None,
    ) -> None:
        self.id = id
        self.ingredient_name = ingredient_name
        self.quantity = quantity

    def __repr__(self) -> str:
        return f"<PantryEntry(id={self.id}, ingredient_name={self.ingredient_name})>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PantryEntry):
            return NotImplemented
        return (self.id, self.ingredient_name, self.quantity) == (
            other.id,
            other.ingredient_name,
            other.quantity,
        )

    def to_dict(self) -> dict[str, str | None]:
        return {
            "id": self.id,
            "ingredient": self.ingredient_name,
            "quantity": self.quantity,
        }


class Favorite:
    def __init__(
        self,
        *,
        id: str,
        recipe_title: str,
        recipe: Recipe,
        created_at: datetime,
    ) -> None:
        self.id = id
        self.recipe_title = recipe_title
        self.recipe = recipe
        self.created_at = created_at

    def __repr__(self) -> str:
        return f"<Favorite(id={self.id}, recipe_title={self.recipe_title})>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "recipe_title": self.recipe_title,
            "recipe": self.recipe.to_dict(),
            "created_at": self.created_at.isoformat(),
        }


class HistoryEntry:
    def __init__(
        self,
        *,
        id: str,
        recipe_title: str,
        ingredients_used: str,
        created_at: datetime,
    ) -> None:
        self.id = id
        self.recipe_title = recipe_title
        self.ingredients_used = ingredients_used
        self.created_at = created_at

    def __repr__(self) -> str:
        return f"<HistoryEntry(id={self.id}, recipe_title={self.recipe_title})>"

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "recipe_title": self.recipe_title,
            "ingredients_used": self.ingredients_used,
            "created_at": self.created_at.isoformat(),
        }
