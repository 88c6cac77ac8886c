"""
Counter ledger

Applies one checkout line item to the three sales counters: the buyer's
purchaseCount, the seller's sellCount and the product's sellCount. Each step
is an independent atomic $inc; a missing target skips that step without
undoing or blocking the others.
"""
import logging
from dataclasses import dataclass

from bson import ObjectId
from pymongo.database import Database

import catalog
from database import SELLERS, USERS, storage_errors
from errors import NotFound

logger = logging.getLogger(__name__)


@dataclass
class LineItemResult:
    seller_id: ObjectId
    product_id: ObjectId
    quantity: int
    user_incremented: bool = False
    seller_incremented: bool = False
    product_incremented: bool = False

    @property
    def failures(self) -> int:
        """Number of counters that could not be applied."""
        return [self.user_incremented, self.seller_incremented, self.product_incremented].count(False)

    def to_dict(self) -> dict:
        return {
            "seller_id": str(self.seller_id),
            "product_id": str(self.product_id),
            "quantity": self.quantity,
            "user_incremented": self.user_incremented,
            "seller_incremented": self.seller_incremented,
            "product_incremented": self.product_incremented,
        }


def _increment(db: Database, collection: str, doc_id: ObjectId, field: str, quantity: int) -> bool:
    with storage_errors(f"increment {collection}.{field}"):
        result = db[collection].update_one({"_id": doc_id}, {"$inc": {field: quantity}})
    return result.matched_count > 0


def apply_line_item(
    db: Database,
    user_id: ObjectId,
    seller_id: ObjectId,
    product_id: ObjectId,
    quantity: int,
) -> LineItemResult:
    """
    Apply one line item's quantity to the user, seller and product counters.

    Missing user, seller or product is recorded on the result; the line item
    counts as processed either way. Storage errors propagate.
    """
    result = LineItemResult(seller_id=seller_id, product_id=product_id, quantity=quantity)

    result.user_incremented = _increment(db, USERS, user_id, "purchaseCount", quantity)
    if not result.user_incremented:
        logger.warning(f"Checkout: user {user_id} not found, purchase count not updated")

    result.seller_incremented = _increment(db, SELLERS, seller_id, "sellCount", quantity)
    if not result.seller_incremented:
        logger.warning(f"Checkout: seller {seller_id} not found, skipping seller and product counts")
        return result

    try:
        catalog.increment_product_sell_count(db, seller_id, product_id, quantity)
        result.product_incremented = True
    except NotFound:
        logger.warning(f"Checkout: product {product_id} not found in seller {seller_id}")

    return result
