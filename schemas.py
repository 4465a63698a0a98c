"""
Database Schemas for the Edopla marketplace

Each Pydantic model below corresponds to a MongoDB collection.
The collection name is the lowercase class name (e.g., Buyer -> "buyer").
References to other documents are stored as string ids.
"""
from datetime import datetime, timezone
from typing import List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field, EmailStr

from order_status import OrderStatus

PriceRange = Literal["$", "$$", "$$$"]
PRICE_RANGES = ("$", "$$", "$$$")


class Identification(BaseModel):
    email: Optional[EmailStr] = Field(None, description="Email used for form authentication")
    google_id: Optional[str] = None
    github_id: Optional[str] = None


class User(BaseModel):
    identification: Identification
    third_party: bool = Field(False, description="Signed up through an OAuth provider")
    password: Optional[str] = Field(None, description="BCrypt password hash")
    buyer_id: Optional[str] = Field(None, description="Reference to buyer _id")
    vendor_id: Optional[str] = Field(None, description="Reference to vendor _id")


class Buyer(BaseModel):
    buyer_name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    phone_number: Optional[str] = None
    carts: List[str] = Field(default_factory=list, description="Cart ids")
    saved_vendors: List[str] = Field(default_factory=list, description="Vendor ids")
    orders: List[str] = Field(default_factory=list, description="Order ids")


class Vendor(BaseModel):
    vendor_name: str = Field(..., min_length=1, description="Unique vendor name")
    address: str = Field(..., min_length=1)
    price_range: PriceRange
    phone_number: Optional[str] = None
    description: Optional[str] = None
    cuisine_types: List[str] = []
    menu: List[str] = Field(default_factory=list, description="Menu item ids")
    orders: List[str] = Field(default_factory=list, description="Order ids")


class Menuitem(BaseModel):
    name: str = Field(..., min_length=1)
    price: float = Field(..., gt=0)
    category: str = Field(..., min_length=1)
    description: Optional[str] = None
    available: bool = True
    expire_at: Optional[datetime] = Field(None, description="Set once removed from a menu")


class CartEntry(BaseModel):
    item_id: str = Field(..., description="Reference to menuitem _id")
    quantity: int = Field(..., ge=1)


class Cart(BaseModel):
    vendor_id: str = Field(..., description="Reference to vendor _id")
    items: List[CartEntry]
    saved_for_later: bool = False


class OrderLine(BaseModel):
    item_id: str
    name: str
    price: float
    quantity: int


class Order(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    buyer_id: str = Field(..., description="Reference to buyer _id")
    vendor_id: str = Field(..., description="Reference to vendor _id")
    items: List[OrderLine] = Field(..., description="Menu items with prices at the time of ordering")
    total_price: float = Field(..., ge=0)
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: OrderStatus = OrderStatus.PENDING.value


"""
Notes:
- Define new collections by creating new Pydantic classes in this file.
- The system will use these schemas for validation and documentation.
"""
