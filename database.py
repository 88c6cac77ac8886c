"""
Database access

MongoDB client and helpers shared by the marketplace modules.

Collections:
- "user"   -> buyers, with a purchaseCount counter
- "seller" -> sellers, with a sellCount counter and an embedded "products" array
- "banner" -> promotional banners, one per document
"""
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from config import get_settings
from errors import InvalidArgument, StorageFailure

logger = logging.getLogger(__name__)

USERS = "user"
SELLERS = "seller"
BANNERS = "banner"

_settings = get_settings()

# MongoClient connects lazily, so importing this module never blocks on the server.
# retryWrites is off: a timed-out $inc must surface as an error, not be replayed.
client = MongoClient(
    _settings.mongo_url,
    serverSelectionTimeoutMS=_settings.mongo_timeout_ms,
    connectTimeoutMS=_settings.mongo_timeout_ms,
    socketTimeoutMS=_settings.mongo_timeout_ms,
    retryWrites=False,
)
db = client[_settings.database_name]


def get_db() -> Database:
    """FastAPI dependency returning the marketplace database."""
    return db


def ensure_indexes(database: Database) -> None:
    """Unique mail per account collection; banner lookups by seller."""
    with storage_errors("create indexes"):
        database[USERS].create_index("mail", unique=True)
        database[SELLERS].create_index("mail", unique=True)
        database[BANNERS].create_index("sellerId")


@contextmanager
def storage_errors(operation: str):
    """Re-raise driver errors from the enclosed block as StorageFailure."""
    try:
        yield
    except PyMongoError as e:
        logger.error(f"{operation} failed: {e}")
        raise StorageFailure(f"{operation} failed", details={"operation": operation}) from e


def oid(id_str: Union[str, ObjectId], what: str = "id") -> ObjectId:
    if isinstance(id_str, ObjectId):
        return id_str
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise InvalidArgument(f"Invalid {what}", details={what: str(id_str)})


def create_document(database: Database, collection_name: str, data: Union[BaseModel, dict]) -> ObjectId:
    """Insert a document, stamping created_at/updated_at."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = dict(data)

    now = datetime.now(timezone.utc)
    data_dict["created_at"] = now
    data_dict["updated_at"] = now

    with storage_errors(f"insert into {collection_name}"):
        result = database[collection_name].insert_one(data_dict)
    return result.inserted_id


def get_documents(
    database: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
) -> List[dict]:
    with storage_errors(f"find in {collection_name}"):
        return list(database[collection_name].find(filter_dict or {}))


def serialize(value: Any) -> Any:
    """Convert ObjectIds (at any depth) to strings for JSON responses."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize(v) for v in value]
    return value
