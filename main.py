import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database

import accounts
import banners
import catalog
import rankings
from checkout import checkout as run_checkout
from config import get_settings
from database import SELLERS, db, ensure_indexes, get_db, oid, serialize, storage_errors
from errors import NotFound, StorageFailure, setup_error_handlers
from middleware import RequestLoggingMiddleware
from schemas import (
    AddProductResponse,
    BannerPayload,
    CheckoutRequest,
    CheckoutResponse,
    LoginRequest,
    Message,
    ProductAttributes,
    RegistrationResult,
    SellerView,
    Session,
    SignupRequest,
)
from security import TokenSubject, get_current_subject

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} (database '{settings.database_name}')")
    try:
        ensure_indexes(db)
    except StorageFailure:
        logger.warning("Could not create indexes at startup; database may be unavailable")
    yield
    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)
setup_error_handlers(app)

# ---------- Helpers ----------

def seller_view(database: Database, seller_id) -> SellerView:
    with storage_errors("seller lookup"):
        seller = database[SELLERS].find_one({"_id": oid(seller_id, "seller id")}, {"password": 0})
    if seller is None:
        raise NotFound("Seller", seller_id)
    return SellerView(
        id=str(seller["_id"]),
        name=seller.get("name", ""),
        mail=seller.get("mail"),
        phone=seller.get("phone"),
        sellCount=seller.get("sellCount", 0),
        products=serialize(seller.get("products") or []),
    )

# ---------- Health ----------

@app.get("/")
def root():
    return {"message": f"{settings.app_name} running"}

@app.get("/health")
def health(database: Database = Depends(get_db)):
    resp = {
        "backend": "running",
        "database": "unavailable",
        "database_name": settings.database_name,
    }
    try:
        with storage_errors("ping"):
            database.command("ping")
        resp["database"] = "connected"
    except StorageFailure as e:
        resp["database"] = f"error: {e.message}"
    return resp

# ---------- Accounts ----------

@app.post("/signup", response_model=RegistrationResult)
def signup(req: SignupRequest, database: Database = Depends(get_db)):
    return accounts.register(
        database,
        name=req.name,
        mail=req.mail,
        phone=req.phone,
        password=req.password,
        role=req.usertype,
        seller_key=req.secretkey,
    )

@app.post("/login", response_model=Session)
def login(req: LoginRequest, database: Database = Depends(get_db)):
    return accounts.authenticate(database, req.mail, req.password, req.userType)

# ---------- Products ----------

@app.post("/seller/add/product/{seller_id}", response_model=AddProductResponse)
def add_product(
    seller_id: str,
    product: ProductAttributes,
    database: Database = Depends(get_db),
    subject: TokenSubject = Depends(get_current_subject),
):
    product_id = catalog.add_product(database, seller_id, product.model_dump(exclude_none=True))
    return AddProductResponse(
        message="Product added successfully",
        product_id=str(product_id),
        seller=seller_view(database, seller_id),
    )

@app.get("/seller/products/{seller_id}")
def list_seller_products(
    seller_id: str,
    database: Database = Depends(get_db),
    subject: TokenSubject = Depends(get_current_subject),
) -> List[dict]:
    return serialize(catalog.list_products(database, seller_id))

@app.delete("/seller/delete/product/{seller_id}/{product_id}", response_model=Message)
def delete_product(
    seller_id: str,
    product_id: str,
    database: Database = Depends(get_db),
    subject: TokenSubject = Depends(get_current_subject),
):
    catalog.remove_product(database, seller_id, product_id)
    return Message(message="Product deleted successfully")

@app.get("/all/products")
def list_all_products(database: Database = Depends(get_db)) -> List[dict]:
    return serialize(list(catalog.list_all_products_flattened(database)))

# ---------- Checkout ----------

@app.post("/checkout/{user_id}", response_model=CheckoutResponse)
def checkout(
    user_id: str,
    req: CheckoutRequest,
    database: Database = Depends(get_db),
    subject: TokenSubject = Depends(get_current_subject),
):
    summary = run_checkout(database, user_id, req.cartItems)
    return summary.to_dict()

@app.api_route("/best/seller/products", methods=["GET", "POST"])
def best_seller_products(database: Database = Depends(get_db)) -> List[dict]:
    return serialize(rankings.top_sellers(database, settings.top_sellers_limit))

# ---------- Banners ----------

@app.post("/seller/add/banner/{seller_id}", response_model=Message)
def add_banner(
    seller_id: str,
    banner: BannerPayload,
    database: Database = Depends(get_db),
    subject: TokenSubject = Depends(get_current_subject),
):
    banners.add_banner(database, seller_id, banner.model_dump(exclude_none=True))
    return Message(message="Banner added successfully")

@app.get("/seller/get/banner")
def list_banners(database: Database = Depends(get_db)) -> List[dict]:
    return serialize(banners.list_banners(database))

@app.get("/seller/banner/{seller_id}")
def list_seller_banners(seller_id: str, database: Database = Depends(get_db)) -> List[dict]:
    return serialize(banners.list_banners(database, seller_id))

@app.delete("/seller/delete/banner/{seller_id}/{banner_id}", response_model=Message)
def delete_banner(
    seller_id: str,
    banner_id: str,
    database: Database = Depends(get_db),
    subject: TokenSubject = Depends(get_current_subject),
):
    banners.delete_banner(database, seller_id, banner_id)
    return Message(message="Banner deleted successfully")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
