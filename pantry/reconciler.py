import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Sequence

from pantry.errors import ExtractionUnavailable
from pantry.models import Recipe, ShoppingListEntry, normalize_name


logger = logging.getLogger(__name__)


EXTRACT_TIMEOUT = 60


type Extract = Callable[[Recipe], Awaitable[Sequence[str]]]


async def _extract_or_skip(
    recipe: Recipe, extract: Extract, timeout: float | None
) -> list[str]:
    try:
        names = await asyncio.wait_for(extract(recipe), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Skipping %r, extraction timed out", recipe.title)
        return []
    except ExtractionUnavailable as e:
        logger.warning("Skipping %r, extraction failed: %s", recipe.title, e)
        return []
    except Exception:
        logger.warning("Skipping %r, extractor raised", recipe.title, exc_info=True)
        return []
    if not names:
        logger.info("Extraction returned nothing for %r", recipe.title)
        return []
    return [n for n in (normalize_name(name) for name in names) if n]


async def reconcile(
    recipes: Sequence[Recipe],
    pantry: Iterable[str],
    extract: Extract,
    *,
    timeout: float | None = EXTRACT_TIMEOUT,
) -> list[ShoppingListEntry]:
    """Ingredients the recipes need that are not in the pantry.

    Extraction runs concurrently, results are merged in recipe order so the
    output does not depend on which call finishes first. A recipe whose
    extraction fails or exceeds `timeout` contributes nothing.
    """
    if not recipes:
        return []

    known = {normalize_name(name) for name in pantry}
    extracted = await asyncio.gather(*(_extract_or_skip(r, extract, timeout) for r in recipes))

    # name -> ordered set of titles, both in first-seen order
    missing: dict[str, dict[str, None]] = {}
    for recipe, names in zip(recipes, extracted):
        for name in names:
            if name in known:
                continue
            missing.setdefault(name, {})[recipe.title] = None

    return [
        ShoppingListEntry(ingredient_name=name, recipe_titles=tuple(titles))
        for name, titles in missing.items()
    ]
