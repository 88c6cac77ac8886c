"""
Promotional banners.

A banner stores its seller's name as it was when the banner was created;
later seller renames are not propagated.
"""
import logging
from typing import List, Optional, Union

from bson import ObjectId
from pymongo.database import Database

from database import BANNERS, SELLERS, create_document, get_documents, oid, storage_errors
from errors import NotFound

logger = logging.getLogger(__name__)


def add_banner(db: Database, seller_id: Union[str, ObjectId], payload: dict) -> ObjectId:
    seller_oid = oid(seller_id, "seller id")
    with storage_errors("seller lookup"):
        seller = db[SELLERS].find_one({"_id": seller_oid}, {"name": 1})
    if seller is None:
        raise NotFound("Seller", seller_oid)

    document = {k: v for k, v in payload.items() if k not in ("_id", "sellerId", "sellerName")}
    document["sellerId"] = str(seller_oid)
    document["sellerName"] = seller.get("name")

    banner_id = create_document(db, BANNERS, document)
    logger.info(f"Seller {seller_oid} added banner {banner_id}")
    return banner_id


def list_banners(db: Database, seller_id: Optional[Union[str, ObjectId]] = None) -> List[dict]:
    if seller_id is None:
        return get_documents(db, BANNERS)
    return get_documents(db, BANNERS, {"sellerId": str(oid(seller_id, "seller id"))})


def delete_banner(db: Database, seller_id: Union[str, ObjectId], banner_id: Union[str, ObjectId]) -> None:
    """
    Delete a banner owned by the given seller.

    Raises:
        NotFound: seller missing, or no banner with that id belongs to the seller
    """
    seller_oid = oid(seller_id, "seller id")
    banner_oid = oid(banner_id, "banner id")

    with storage_errors("seller lookup"):
        seller_exists = db[SELLERS].count_documents({"_id": seller_oid}, limit=1) > 0
    if not seller_exists:
        raise NotFound("Seller", seller_oid)

    with storage_errors("delete banner"):
        result = db[BANNERS].delete_one({"_id": banner_oid, "sellerId": str(seller_oid)})
    if result.deleted_count == 0:
        raise NotFound("Banner", banner_oid)

    logger.info(f"Seller {seller_oid} deleted banner {banner_oid}")
