"""Turns raw generation output into `Recipe` records.

Two decode strategies are tried in a fixed order:

1. `decode_json` expects a JSON array of recipe objects.
2. `decode_prose` splits numbered prose. This is lossy: the title is a guess
   and the whole segment becomes the single instruction.

The prose strategy only runs when the JSON strategy fails.
"""

import json
import logging
import re
from typing import Any, Callable

from pantry.errors import MalformedResponse
from pantry.models import Recipe


logger = logging.getLogger(__name__)


FENCE = re.compile(r"```[ \t]*json\b[ \t]*\n?|\bjson[ \t]*```|```", re.IGNORECASE)
LEADING_TAG = re.compile(r"^json[ \t]*(?:\n|$)", re.IGNORECASE)
NUMBERED = re.compile(r"\n?\d\.\s+")
TITLE_SEPARATOR = " - "


class Ok:
    def __init__(self, recipes: list[Recipe]) -> None:
        self.recipes = recipes

    def __repr__(self) -> str:
        return f"<Ok(recipes={len(self.recipes)})>"


class Err:
    def __init__(self, reason: str) -> None:
        self.reason = reason

    def __repr__(self) -> str:
        return f"<Err(reason={self.reason!r})>"


type Decoded = Ok | Err
type Strategy = Callable[[str], Decoded]


def sanitize(raw: str) -> str:
    """Strip code fences and surrounding whitespace.

    A bare `json` tag is only dropped when it sits alone on the first line.
    """
    text = FENCE.sub("", raw).strip()
    return LEADING_TAG.sub("", text).strip()


def _string_list(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    if not all(isinstance(v, str) for v in value):  # pyright: ignore[reportUnknownVariableType]
        return None
    return list(value)  # pyright: ignore[reportUnknownArgumentType]


def recipe_from_obj(obj: Any, idx: int) -> Recipe | str:
    if not isinstance(obj, dict):
        return f"element {idx} is not an object"

    title = obj.get("title")  # pyright: ignore[reportUnknownMemberType, reportUnknownVariableType]
    if not isinstance(title, str) or not title.strip():
        return f"element {idx} has no title"

    instructions = _string_list(obj.get("instructions"))  # pyright: ignore[reportUnknownMemberType]
    if instructions is None:
        return f"element {idx} has no instructions"

    summary = obj.get("summary", "")  # pyright: ignore[reportUnknownMemberType, reportUnknownVariableType]
    if summary is None:
        summary = ""
    if not isinstance(summary, str):
        return f"element {idx} has a non-string summary"

    substitutes = obj.get("substitutes")  # pyright: ignore[reportUnknownMemberType, reportUnknownVariableType]
    subs = [] if substitutes is None else _string_list(substitutes)
    if subs is None:
        return f"element {idx} has malformed substitutes"

    return Recipe.create(
        title=title,
        summary=summary,
        instructions=instructions,
        substitutes=subs,
    )


def decode_json(text: str) -> Decoded:
    try:
        data = json.loads(text)
    except ValueError as e:
        return Err(f"not JSON: {e}")

    if not isinstance(data, list):
        return Err("JSON is not an array")

    recipes: list[Recipe] = []
    for idx, obj in enumerate(data):  # pyright: ignore[reportUnknownVariableType, reportUnknownArgumentType]
        recipe = recipe_from_obj(obj, idx)
        if isinstance(recipe, str):
            return Err(recipe)
        recipes.append(recipe)
    return Ok(recipes)


def decode_prose(text: str) -> Decoded:
    segments = [s.strip() for s in NUMBERED.split(text)]
    segments = [s for s in segments if s]
    if not segments:
        return Err("no numbered segments")

    recipes: list[Recipe] = []
    for segment in segments:
        title = segment.partition(TITLE_SEPARATOR)[0]
        recipes.append(Recipe.create(title=title, instructions=[segment]))
    return Ok(recipes)


STRATEGIES: tuple[Strategy, ...] = (decode_json, decode_prose)


def decode(raw: str, strategies: tuple[Strategy, ...] = STRATEGIES) -> Decoded:
    text = sanitize(raw)
    reasons: list[str] = []
    for strategy in strategies:
        match strategy(text):
            case Ok() as ok:
                return ok
            case Err(reason=reason):
                logger.debug("%s failed: %s", strategy.__name__, reason)
                reasons.append(f"{strategy.__name__}: {reason}")
    return Err("; ".join(reasons) or "no strategies")


def normalize(raw: str) -> list[Recipe]:
    match decode(raw):
        case Ok(recipes=recipes):
            return recipes
        case Err(reason=reason):
            logger.warning("Could not normalize generation output: %r", raw)
            raise MalformedResponse(reason, raw)
