"""
Catalog store

Products live embedded in their seller's document ("products" array). Every
mutation here is a single atomic update addressed by product id ($push, $pull,
positional $inc); the array is never read, edited and written back whole, so
concurrent writers on one seller cannot lose each other's updates.
"""
import logging
from typing import Iterator, List, Union

from bson import ObjectId
from pymongo.database import Database

from database import SELLERS, oid, storage_errors
from errors import InvalidArgument, NotFound

logger = logging.getLogger(__name__)

IdLike = Union[str, ObjectId]

# Shape of one entry in the flattened product listing
FLATTEN_PIPELINE = [
    {"$unwind": "$products"},
    {"$project": {
        "_id": 0,
        "id": "$products.id",
        "name": "$products.name",
        "description": "$products.description",
        "image": "$products.image",
        "price": "$products.price",
        "category": "$products.category",
        "sellCount": "$products.sellCount",
        "seller_id": "$_id",
    }},
]


def _product_filter(seller_id: ObjectId, product_id: ObjectId) -> dict:
    return {"_id": seller_id, "products": {"$elemMatch": {"id": product_id}}}


def _seller_exists(db: Database, seller_id: ObjectId) -> bool:
    with storage_errors("seller lookup"):
        return db[SELLERS].count_documents({"_id": seller_id}, limit=1) > 0


def add_product(db: Database, seller_id: IdLike, attributes: dict) -> ObjectId:
    """
    Append a product to a seller's catalog.

    Returns:
        The generated product id

    Raises:
        NotFound: seller does not exist
    """
    seller_oid = oid(seller_id, "seller id")
    record = {k: v for k, v in attributes.items() if k not in ("id", "sellCount")}
    record["id"] = ObjectId()

    with storage_errors("add product"):
        result = db[SELLERS].update_one({"_id": seller_oid}, {"$push": {"products": record}})
    if result.matched_count == 0:
        raise NotFound("Seller", seller_oid)

    logger.info(f"Added product {record['id']} to seller {seller_oid}")
    return record["id"]


def remove_product(db: Database, seller_id: IdLike, product_id: IdLike) -> None:
    """
    Remove a product from its seller's catalog by id.

    Raises:
        NotFound: seller or product does not exist
    """
    seller_oid = oid(seller_id, "seller id")
    product_oid = oid(product_id, "product id")

    with storage_errors("remove product"):
        result = db[SELLERS].update_one(
            _product_filter(seller_oid, product_oid),
            {"$pull": {"products": {"id": product_oid}}},
        )
    if result.matched_count == 0:
        if not _seller_exists(db, seller_oid):
            raise NotFound("Seller", seller_oid)
        raise NotFound("Product", product_oid)

    logger.info(f"Removed product {product_oid} from seller {seller_oid}")


def find_product(db: Database, seller_id: IdLike, product_id: IdLike) -> dict:
    seller_oid = oid(seller_id, "seller id")
    product_oid = oid(product_id, "product id")

    with storage_errors("find product"):
        seller = db[SELLERS].find_one({"_id": seller_oid}, {"products": 1})
    if seller is None:
        raise NotFound("Seller", seller_oid)

    for product in seller.get("products") or []:
        if product.get("id") == product_oid:
            return product
    raise NotFound("Product", product_oid)


def list_products(db: Database, seller_id: IdLike) -> List[dict]:
    """A seller's products in insertion order."""
    seller_oid = oid(seller_id, "seller id")
    with storage_errors("list products"):
        seller = db[SELLERS].find_one({"_id": seller_oid}, {"products": 1})
    if seller is None:
        raise NotFound("Seller", seller_oid)
    return seller.get("products") or []


def increment_product_sell_count(
    db: Database, seller_id: IdLike, product_id: IdLike, delta: int
) -> None:
    """
    Atomically add delta to a product's sellCount (created on first sale).

    Raises:
        InvalidArgument: delta is not a positive integer
        NotFound: product is not (or no longer) in the seller's catalog
    """
    if isinstance(delta, bool) or not isinstance(delta, int) or delta < 1:
        raise InvalidArgument("delta must be a positive integer", details={"delta": delta})

    seller_oid = oid(seller_id, "seller id")
    product_oid = oid(product_id, "product id")

    with storage_errors("increment product sell count"):
        result = db[SELLERS].update_one(
            _product_filter(seller_oid, product_oid),
            {"$inc": {"products.$.sellCount": delta}},
        )
    if result.matched_count == 0:
        raise NotFound("Product", product_oid)


def list_all_products_flattened(db: Database) -> Iterator[dict]:
    """
    Every seller's products, each with its owning seller_id attached.

    Lazy and finite; call again to restart from a fresh snapshot.
    """
    with storage_errors("list all products"):
        cursor = db[SELLERS].aggregate(FLATTEN_PIPELINE)
        for product in cursor:
            yield product
