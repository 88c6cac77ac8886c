"""
Checkout processor

Runs a cart through the counter ledger item by item. There is no rollback:
once the cart is valid, every item is attempted and the checkout succeeds,
with per-item outcomes reporting which counters could not be applied.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Sequence, Union

from bson import ObjectId
from pymongo.database import Database

from database import oid
from errors import InvalidArgument
from ledger import LineItemResult, apply_line_item

logger = logging.getLogger(__name__)


@dataclass
class CheckoutSummary:
    items: List[LineItemResult] = field(default_factory=list)
    status: str = "success"

    @property
    def items_processed(self) -> int:
        return len(self.items)

    @property
    def failed_increments(self) -> int:
        return sum(item.failures for item in self.items)

    def to_dict(self) -> dict:
        return {
            "message": "Checkout successful",
            "status": self.status,
            "items_processed": self.items_processed,
            "failed_increments": self.failed_increments,
            "items": [item.to_dict() for item in self.items],
        }


def _get(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def validate_line_items(line_items: Sequence[Any]) -> List[tuple]:
    """
    Check a cart and normalize it to (seller_id, product_id, quantity) tuples.

    Accepts mappings or objects with seller_id, id and quantity.

    Raises:
        InvalidArgument: empty cart, malformed ids, or a non-positive quantity
    """
    if line_items is None or isinstance(line_items, (str, bytes, Mapping)):
        raise InvalidArgument("cartItems must be a list of line items")
    line_items = list(line_items)
    if not line_items:
        raise InvalidArgument("cartItems must not be empty")

    normalized = []
    for index, item in enumerate(line_items):
        quantity = _get(item, "quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise InvalidArgument(
                "quantity must be a positive integer",
                details={"index": index, "quantity": quantity},
            )
        seller_id = oid(_get(item, "seller_id"), "seller id")
        product_id = oid(_get(item, "id"), "product id")
        normalized.append((seller_id, product_id, quantity))
    return normalized


def checkout(db: Database, user_id: Union[str, ObjectId], line_items: Sequence[Any]) -> CheckoutSummary:
    user_oid = oid(user_id, "user id")
    items = validate_line_items(line_items)

    logger.info(f"Checkout for user {user_oid}: {len(items)} line items")

    summary = CheckoutSummary()
    for seller_id, product_id, quantity in items:
        summary.items.append(apply_line_item(db, user_oid, seller_id, product_id, quantity))

    if summary.failed_increments:
        logger.warning(
            f"Checkout for user {user_oid} completed with "
            f"{summary.failed_increments} counter(s) not applied"
        )
    return summary
