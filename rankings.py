"""
Best-sellers ranking over the flattened catalog.
"""
import logging
from typing import List

from pymongo.database import Database

from catalog import list_all_products_flattened
from errors import InvalidArgument

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50


def _rank_key(product: dict):
    # sellCount descending (stored null as zero), then product id among ties
    return (-(product["sellCount"] or 0), str(product.get("id")))


def top_sellers(db: Database, limit: int = DEFAULT_LIMIT) -> List[dict]:
    """
    Products that have sold at least once, best-selling first.

    Products without a sellCount field are left out rather than ranked as zero.
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise InvalidArgument("limit must be a positive integer", details={"limit": limit})

    sold = [p for p in list_all_products_flattened(db) if "sellCount" in p]
    sold.sort(key=_rank_key)

    logger.debug(f"Ranked {len(sold)} sold products, returning top {limit}")
    return sold[:limit]
