import pytest

import accounts
from database import SELLERS, USERS
from errors import Conflict, InvalidArgument, Unauthorized
from security import verify_password, verify_token

SELLER_KEY = "test-seller-key"


def _register(db, role="user", mail="ada@example.com", password="s3cret", **kwargs):
    return accounts.register(
        db, name="Ada", mail=mail, phone="555-0101", password=password, role=role, **kwargs
    )


def test_register_then_login_yields_same_identity(db):
    registered = _register(db)

    session = accounts.authenticate(db, "ada@example.com", "s3cret", "user")

    assert session["id"] == registered["id"]
    assert session["name"] == "Ada"
    subject = verify_token(session["token"])
    assert subject.id == registered["id"]
    assert subject.role == "user"


def test_password_is_stored_hashed(db):
    _register(db)
    stored = db[USERS].find_one({"mail": "ada@example.com"})

    assert stored["password"] != "s3cret"
    assert verify_password("s3cret", stored["password"])
    assert stored["purchaseCount"] == 0
    assert stored["userType"] == "user"


def test_wrong_password_is_unauthorized(db):
    _register(db)
    with pytest.raises(Unauthorized):
        accounts.authenticate(db, "ada@example.com", "guess", "user")


def test_unknown_account_is_unauthorized(db):
    with pytest.raises(Unauthorized):
        accounts.authenticate(db, "nobody@example.com", "s3cret", "user")


def test_login_checks_the_requested_role(db):
    _register(db)
    with pytest.raises(Unauthorized):
        accounts.authenticate(db, "ada@example.com", "s3cret", "seller")


def test_duplicate_registration_conflicts(db):
    _register(db)
    with pytest.raises(Conflict):
        _register(db, password="other")


def test_same_mail_may_register_in_each_role(db):
    _register(db, role="user")
    seller = _register(db, role="seller", seller_key=SELLER_KEY)
    assert seller["role"] == "seller"


@pytest.mark.parametrize("role", ["admin", "", "Seller"])
def test_unknown_role_is_invalid(db, role):
    with pytest.raises(InvalidArgument):
        _register(db, role=role)
    with pytest.raises(InvalidArgument):
        accounts.authenticate(db, "ada@example.com", "s3cret", role)


def test_seller_signup_requires_key(db):
    with pytest.raises(Unauthorized):
        _register(db, role="seller")
    with pytest.raises(Unauthorized):
        _register(db, role="seller", seller_key="wrong")
    assert db[SELLERS].count_documents({}) == 0


def test_seller_starts_with_empty_catalog(db):
    seller = _register(db, role="seller", seller_key=SELLER_KEY)
    stored = db[SELLERS].find_one({"mail": "ada@example.com"})

    assert str(stored["_id"]) == seller["id"]
    assert stored["sellCount"] == 0
    assert stored["products"] == []
