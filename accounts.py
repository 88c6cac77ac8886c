"""
Account registration and login for buyers ("user") and sellers ("seller").
"""
import hmac
import logging

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from config import get_settings
from database import SELLERS, USERS, create_document, storage_errors
from errors import Conflict, InvalidArgument, StorageFailure, Unauthorized
from security import hash_password, issue_token, verify_password

logger = logging.getLogger(__name__)

ROLE_COLLECTIONS = {"user": USERS, "seller": SELLERS}


def _collection_for(role: str) -> str:
    try:
        return ROLE_COLLECTIONS[role]
    except KeyError:
        raise InvalidArgument("Invalid user type", details={"role": role})


def register(
    db: Database,
    name: str,
    mail: str,
    phone: str,
    password: str,
    role: str,
    seller_key: str = None,
) -> dict:
    """
    Create a buyer or seller account.

    Raises:
        InvalidArgument: role is not "user" or "seller"
        Conflict: mail already registered for this role
        Unauthorized: seller signup without the configured seller key
    """
    collection = _collection_for(role)

    with storage_errors("account lookup"):
        existing = db[collection].find_one({"mail": mail}, {"_id": 1})
    if existing:
        raise Conflict(f"{role.capitalize()} already exists", details={"mail": mail})

    if role == "seller":
        expected = get_settings().seller_signup_key
        if not expected or not hmac.compare_digest(seller_key or "", expected):
            raise Unauthorized("Invalid seller secret key")

    document = {
        "name": name,
        "mail": mail,
        "phone": phone,
        "password": hash_password(password),
        "userType": role,
    }
    if role == "seller":
        document.update(sellCount=0, products=[])
    else:
        document["purchaseCount"] = 0

    try:
        account_id = create_document(db, collection, document)
    except StorageFailure as e:
        # lost a race with a concurrent signup for the same mail
        if isinstance(e.__cause__, DuplicateKeyError):
            raise Conflict(f"{role.capitalize()} already exists", details={"mail": mail}) from e
        raise
    logger.info(f"Registered {role} {account_id}")
    return {"id": str(account_id), "name": name, "role": role}


def authenticate(db: Database, mail: str, password: str, role: str) -> dict:
    """
    Verify credentials and issue a session token.

    Raises:
        InvalidArgument: unknown role
        Unauthorized: unknown mail or wrong password
    """
    collection = _collection_for(role)

    with storage_errors("account lookup"):
        account = db[collection].find_one({"mail": mail})
    if not account:
        raise Unauthorized("User not found, Please signup.")

    if not verify_password(password, account.get("password", "")):
        raise Unauthorized("Invalid Credential, Please try again")

    account_id = str(account["_id"])
    return {
        "token": issue_token(account_id, role),
        "id": account_id,
        "name": account.get("name", ""),
        "role": role,
    }
