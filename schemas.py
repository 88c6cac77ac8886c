"""
Request and response schemas

Pydantic models for the marketplace API. Stored documents live in three
MongoDB collections:
- User   -> "user" collection
- Seller -> "seller" collection (products are embedded in the seller document)
- Banner -> "banner" collection
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StrictInt

Role = Literal["user", "seller"]

# ---------- Accounts ----------

class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1)
    mail: EmailStr
    phone: Optional[str] = None
    password: str = Field(..., min_length=1)
    # Validated by accounts.register so an unknown role is a 400, not a 422
    usertype: str = Field(..., description="'user' or 'seller'")
    secretkey: Optional[str] = Field(None, description="Required for seller signup")

class LoginRequest(BaseModel):
    mail: EmailStr
    password: str
    userType: str = "user"

class RegistrationResult(BaseModel):
    id: str
    name: str
    role: Role

class Session(BaseModel):
    token: str
    id: str
    name: str
    role: Role

# ---------- Catalog ----------

class ProductAttributes(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    image: Optional[str] = Field(None, description="Image URL or reference")
    price: float = Field(..., ge=0)
    category: Optional[str] = None

class SellerView(BaseModel):
    id: str
    name: str
    mail: Optional[str] = None
    phone: Optional[str] = None
    sellCount: int = 0
    products: List[dict] = Field(default_factory=list)

class AddProductResponse(BaseModel):
    message: str
    product_id: str
    seller: SellerView

# ---------- Checkout ----------

class LineItem(BaseModel):
    seller_id: str
    id: str = Field(..., description="Product id within the seller's catalog")
    # no coercion from "3" or 2.0
    quantity: StrictInt

class CheckoutRequest(BaseModel):
    cartItems: List[LineItem]

class LineItemOutcome(BaseModel):
    seller_id: str
    product_id: str
    quantity: int
    user_incremented: bool
    seller_incremented: bool
    product_incremented: bool

class CheckoutResponse(BaseModel):
    message: str = "Checkout successful"
    status: Literal["success"] = "success"
    items_processed: int
    failed_increments: int
    items: List[LineItemOutcome]

# ---------- Banners ----------

class BannerPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None
    image: Optional[str] = None
    description: Optional[str] = None
    link: Optional[str] = None

class Message(BaseModel):
    message: str
