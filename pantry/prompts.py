SUGGEST_RECIPES_PROMPT = """
You're an AI cooking assistant. I have the following ingredients: {ingredients}.

Suggest exactly {n} diverse recipes I can cook using these ingredients.

Return ONLY a JSON array of objects in this format:

[
  {{
    "title": "Dish Name",
    "summary": "1-2 sentence description of the dish.",
    "instructions": ["Step 1...", "Step 2...", "Step 3..."],
    "substitutes": ["If any", "Otherwise return empty array"]
  }}
]

Each recipe should use available ingredients or suggest common substitutions.
Do not include any explanation before or after the JSON.
""".strip()


EXTRACT_INGREDIENTS_PROMPT = """
Extract only the ingredient names used in this recipe. Return as a comma-separated list.

{recipe}
""".strip()


SCAN_RECEIPT_PROMPT = """
You're a smart kitchen assistant. This is a grocery receipt. Extract the items and quantities in this JSON format:
[
  { "ingredient": "eggs", "quantity": "12" },
  { "ingredient": "milk", "quantity": "1 gallon" }
]
""".strip()


class SuggestRecipesPrompt:
    def __init__(
        self,
        ingredients: list[str],
        *,
        n: int = 3,
        content: str | None = None,
    ) -> None:
        self.ingredients = ingredients
        self.n = n
        self.content = SUGGEST_RECIPES_PROMPT if content is None else content

    def __str__(self) -> str:
        return self.content.format(ingredients=", ".join(self.ingredients), n=self.n)


class ExtractIngredientsPrompt:
    def __init__(self, recipe: str, content: str | None = None) -> None:
        self.recipe = recipe
        self.content = EXTRACT_INGREDIENTS_PROMPT if content is None else content

    def __str__(self) -> str:
        return self.content.format(recipe=self.recipe)
