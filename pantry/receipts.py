import json
import logging
from typing import Any

from pantry.errors import ReceiptExtractionFailed
from pantry.models import ReceiptItem
from pantry.normalizer import sanitize


logger = logging.getLogger(__name__)


def _quantity(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ReceiptExtractionFailed(f"Unexpected quantity {value!r}")
    quantity = str(value).strip()
    return quantity or None


def parse_receipt(raw: str) -> list[ReceiptItem]:
    """Parse `[{"ingredient": ..., "quantity": ...}]` from a vision reply.

    All or nothing: any shape problem fails the whole receipt.
    Items with a blank ingredient are dropped.
    """
    try:
        data = json.loads(sanitize(raw))
    except ValueError as e:
        logger.warning("Failed to parse receipt output: %r", raw)
        raise ReceiptExtractionFailed("Receipt output is not JSON.", raw) from e

    if not isinstance(data, list):
        raise ReceiptExtractionFailed("Receipt output is not an array.", raw)

    items: list[ReceiptItem] = []
    for obj in data:  # pyright: ignore[reportUnknownVariableType]
        if not isinstance(obj, dict):
            raise ReceiptExtractionFailed("Receipt item is not an object.", raw)
        ingredient = obj.get("ingredient")  # pyright: ignore[reportUnknownMemberType, reportUnknownVariableType]
        if not isinstance(ingredient, str):
            raise ReceiptExtractionFailed("Receipt item has no ingredient.", raw)
        if not ingredient.strip():
            continue
        try:
            quantity = _quantity(obj.get("quantity"))  # pyright: ignore[reportUnknownMemberType]
        except ReceiptExtractionFailed as e:
            raise ReceiptExtractionFailed(e.reason, raw) from e
        items.append(ReceiptItem(ingredient=ingredient, quantity=quantity))
    return items
