import os
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from fastapi import FastAPI, APIRouter, HTTPException, Depends, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware
from pydantic import BaseModel, EmailStr, Field
from pymongo.errors import DuplicateKeyError

import database
import manipulation
from auth import (
    MIN_PASSWORD_LENGTH,
    describe_password_strength,
    end_session,
    hash_password,
    requires_auth,
    requires_buyer,
    requires_vendor,
    start_session,
    verify_password,
)
from database import (
    DatabaseUnavailable,
    create_document,
    delete_document,
    delete_documents,
    get_document,
    get_document_by_id,
    get_documents,
    get_documents_by_ids,
    is_valid_id,
    modify_document,
    update_document,
)
from order_status import OrderStatus, can_transition, is_terminal
from schemas import Buyer, Cart, Identification, Menuitem, Order, OrderLine, PriceRange, User, Vendor

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SESSION_SECRET = os.getenv("SESSION_SECRET", "change-me-in-prod")
SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", 60 * 60))
FRONTEND_URL = os.getenv("FRONTEND_URL")
MENU_ITEM_RETENTION = timedelta(days=30)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is not None:
        database.ensure_indexes()
    yield
    database.disconnect()


app = FastAPI(title="Edopla Marketplace API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL] if FRONTEND_URL else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Signed session cookie holding user_id / buyer_id / vendor_id
app.add_middleware(
    SessionMiddleware,
    secret_key=SESSION_SECRET,
    session_cookie="edopla_session",
    max_age=SESSION_MAX_AGE,
    same_site="lax",
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed = (time.perf_counter() - start) * 1000
    logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed)
    return response


@app.exception_handler(DatabaseUnavailable)
async def database_unavailable(request: Request, exc: DatabaseUnavailable):
    logger.error("%s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


# Lost races on the unique email / vendor name indexes
@app.exception_handler(DuplicateKeyError)
async def duplicate_key(request: Request, exc: DuplicateKeyError):
    logger.warning("%s %s: duplicate key %s", request.method, request.url.path, exc.details)
    return JSONResponse(status_code=409, content={"detail": "Document with this value already exists"})


@app.exception_handler(Exception)
async def unknown_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "An unknown error occurred"})


# ===================== Helpers =====================
def _require_valid_id(_id: str, item: str):
    if not is_valid_id(_id):
        raise HTTPException(400, f"Invalid {item} id: {_id}")


def _get_or_404(collection_name: str, _id: str, item: str) -> dict:
    doc = get_document_by_id(collection_name, _id)
    if not doc:
        raise HTTPException(404, f"{item} not found")
    return doc


def _get_buyer(buyer_id: str) -> dict:
    return _get_or_404("buyer", buyer_id, "Buyer profile")


def _get_vendor(vendor_id: str) -> dict:
    return _get_or_404("vendor", vendor_id, "Vendor profile")


def _public_user(user: dict) -> dict:
    user = dict(user)
    user.pop("password", None)
    return user


def _public_vendor(vendor: dict) -> dict:
    vendor = dict(vendor)
    vendor.pop("orders", None)
    return vendor


def _sorted(sort_fn, docs: List[dict], option: Optional[str]) -> List[dict]:
    try:
        return sort_fn(docs, option)
    except ValueError as e:
        raise HTTPException(400, str(e))


# ===================== Public Endpoints =====================
@app.get("/")
def root():
    return {"message": "Edopla Marketplace API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        if database.db is not None:
            response["database"] = "✅ Available"
            response["connection_status"] = "Connected"
            response["collections"] = database.db.list_collection_names()
        else:
            response["database"] = "⚠️  Available but not initialized"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"
    response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
    response["database_name"] = "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set"
    return response


# ===================== Users =====================
users_router = APIRouter(prefix="/api/users", tags=["users"])


class FormCredentials(BaseModel):
    is_sign_up: bool = False
    email: EmailStr
    password: str = Field(..., min_length=1)


@users_router.get("")
def get_authenticated_user(user_id: str = Depends(requires_auth)):
    return _public_user(_get_or_404("user", user_id, "User"))


@users_router.post("/authenticate/form")
def authenticate_form(payload: FormCredentials, request: Request, response: Response):
    existing = get_document("user", {"identification.email": payload.email})
    if payload.is_sign_up:
        if existing:
            raise HTTPException(409, "User with this email already exists")
        if len(payload.password) < MIN_PASSWORD_LENGTH:
            raise HTTPException(422, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        user = User(identification=Identification(email=payload.email), password=hash_password(payload.password))
        # Unset identifiers stay absent so the sparse email index skips them
        user_id = create_document("user", user.model_dump(exclude_none=True))
        created = get_document_by_id("user", user_id)
        start_session(request, created)
        logger.info("User %s signed up", user_id)
        response.status_code = 201
        return {**_public_user(created), "password_strength": describe_password_strength(payload.password)}

    if not existing or not verify_password(payload.password, existing.get("password")):
        raise HTTPException(401, "Invalid credentials")
    start_session(request, existing)
    return _public_user(existing)


@users_router.post("/logout")
def logout(request: Request, user_id: str = Depends(requires_auth)):
    end_session(request)
    return {"message": "User successfully logged out"}


# ===================== Buyers =====================
buyers_router = APIRouter(prefix="/api/buyers", tags=["buyers"])


class BuyerDetails(BaseModel):
    buyer_name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    phone_number: Optional[str] = None


class SavedVendorToggle(BaseModel):
    vendor_id: str


@buyers_router.get("")
def get_buyer(buyer_id: str = Depends(requires_buyer)):
    return _get_buyer(buyer_id)


@buyers_router.post("", status_code=201)
def create_buyer(payload: BuyerDetails, request: Request, user_id: str = Depends(requires_auth)):
    user = _get_or_404("user", user_id, "User")
    if user.get("buyer_id"):
        raise HTTPException(409, "User already has a buyer profile")
    buyer_id = create_document("buyer", Buyer(**payload.model_dump()))
    update_document("user", user_id, {"buyer_id": buyer_id})
    request.session["buyer_id"] = buyer_id
    return get_document_by_id("buyer", buyer_id)


@buyers_router.patch("")
def update_buyer(payload: BuyerDetails, buyer_id: str = Depends(requires_buyer)):
    _get_buyer(buyer_id)
    update_document("buyer", buyer_id, payload.model_dump())
    return get_document_by_id("buyer", buyer_id)


@buyers_router.get("/saved-vendors")
def get_saved_vendors(buyer_id: str = Depends(requires_buyer)):
    buyer = _get_buyer(buyer_id)
    return [_public_vendor(v) for v in get_documents_by_ids("vendor", buyer.get("saved_vendors", []))]


@buyers_router.get("/vendor-lists")
def get_vendor_lists(buyer_id: str = Depends(requires_buyer)):
    """All vendors split into those the buyer has a cart with, saved ones, and the rest."""
    buyer = _get_buyer(buyer_id)
    vendors = [_public_vendor(v) for v in get_documents("vendor", sort=[("vendor_name", 1)])]
    cart_vendors = [{"_id": c["vendor_id"]} for c in get_documents_by_ids("cart", buyer.get("carts", []))]
    saved_vendors = [{"_id": v} for v in buyer.get("saved_vendors", [])]
    in_cart, saved, others = manipulation.prepare_lists(vendors, cart_vendors, saved_vendors)
    return {"in_cart": in_cart, "saved": saved, "others": others}


@buyers_router.patch("/saved-vendor")
def toggle_saved_vendor(payload: SavedVendorToggle, buyer_id: str = Depends(requires_buyer)):
    _require_valid_id(payload.vendor_id, "vendor")
    _get_or_404("vendor", payload.vendor_id, "Vendor")
    buyer = _get_buyer(buyer_id)
    saved = manipulation.toggle(buyer.get("saved_vendors", []), payload.vendor_id)
    update_document("buyer", buyer_id, {"saved_vendors": saved})
    return get_document_by_id("buyer", buyer_id)


# ===================== Vendors =====================
vendors_router = APIRouter(prefix="/api/vendors", tags=["vendors"])


class VendorDetails(BaseModel):
    vendor_name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    price_range: PriceRange
    phone_number: Optional[str] = None
    description: Optional[str] = None


class CuisineToggle(BaseModel):
    cuisine: str = Field(..., min_length=1)


def _ensure_unique_vendor_name(vendor_name: str, vendor_id: Optional[str] = None):
    existing = get_document("vendor", {"vendor_name": vendor_name})
    if existing and existing["_id"] != vendor_id:
        raise HTTPException(409, "Vendor with this name already exists")


@vendors_router.get("/all")
def get_all_vendors(
    q: Optional[str] = None,
    price_range: Optional[List[PriceRange]] = Query(None),
    cuisine: Optional[List[str]] = Query(None),
    sort: Optional[str] = None,
):
    vendors = [_public_vendor(v) for v in get_documents("vendor", sort=[("vendor_name", 1)])]
    if q:
        vendors = manipulation.search_vendors(vendors, q)
    vendors = manipulation.filter_vendors(vendors, price_range, cuisine)
    return _sorted(manipulation.sort_vendors, vendors, sort)


@vendors_router.get("")
def get_vendor(vendor_id: str = Depends(requires_vendor)):
    return _get_vendor(vendor_id)


@vendors_router.post("", status_code=201)
def create_vendor(payload: VendorDetails, request: Request, user_id: str = Depends(requires_auth)):
    user = _get_or_404("user", user_id, "User")
    if user.get("vendor_id"):
        raise HTTPException(409, "User already has a vendor profile")
    _ensure_unique_vendor_name(payload.vendor_name)
    vendor_id = create_document("vendor", Vendor(**payload.model_dump()))
    update_document("user", user_id, {"vendor_id": vendor_id})
    request.session["vendor_id"] = vendor_id
    return get_document_by_id("vendor", vendor_id)


@vendors_router.patch("")
def update_vendor(payload: VendorDetails, vendor_id: str = Depends(requires_vendor)):
    _get_vendor(vendor_id)
    _ensure_unique_vendor_name(payload.vendor_name, vendor_id)
    update_document("vendor", vendor_id, payload.model_dump())
    return get_document_by_id("vendor", vendor_id)


@vendors_router.patch("/cuisine")
def toggle_cuisine(payload: CuisineToggle, vendor_id: str = Depends(requires_vendor)):
    vendor = _get_vendor(vendor_id)
    cuisine_types = manipulation.toggle(vendor.get("cuisine_types", []), payload.cuisine)
    update_document("vendor", vendor_id, {"cuisine_types": cuisine_types})
    return cuisine_types


# ===================== Menus =====================
menus_router = APIRouter(prefix="/api/menus", tags=["menus"])


class MenuItemDetails(BaseModel):
    name: str = Field(..., min_length=1)
    price: float = Field(..., gt=0)
    category: str = Field(..., min_length=1)
    description: Optional[str] = None
    available: bool = True


def _get_owned_menu_item(vendor: dict, menu_item_id: str) -> dict:
    _require_valid_id(menu_item_id, "menu item")
    item = _get_or_404("menuitem", menu_item_id, "Menu item")
    if menu_item_id not in vendor.get("menu", []):
        raise HTTPException(403, "Menu item does not belong to the vendor")
    return item


@menus_router.get("/item/{menu_item_id}")
def get_menu_item(menu_item_id: str):
    _require_valid_id(menu_item_id, "menu item")
    return _get_or_404("menuitem", menu_item_id, "Menu item")


@menus_router.get("/{vendor_id}")
def get_menu(
    vendor_id: str,
    q: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    available_only: bool = False,
    sort: Optional[str] = None,
):
    _require_valid_id(vendor_id, "vendor")
    vendor = _get_or_404("vendor", vendor_id, "Vendor")
    menu = get_documents_by_ids("menuitem", vendor.get("menu", []))
    if available_only:
        menu = [item for item in menu if item.get("available")]
    if q:
        menu = manipulation.search_menu(menu, q)
    menu = manipulation.filter_menu(menu, (min_price, max_price), category)
    return _sorted(manipulation.sort_menu, menu, sort)


@menus_router.get("/{vendor_id}/summary")
def get_menu_summary(vendor_id: str):
    _require_valid_id(vendor_id, "vendor")
    vendor = _get_or_404("vendor", vendor_id, "Vendor")
    menu = get_documents_by_ids("menuitem", vendor.get("menu", []))
    price_range = manipulation.get_price_range(menu)
    return {
        "item_count": len(menu),
        "categories": manipulation.get_categories(menu),
        "price_range": {"min": price_range[0], "max": price_range[1]} if price_range else None,
    }


@menus_router.post("/item", status_code=201)
def create_menu_item(payload: MenuItemDetails, vendor_id: str = Depends(requires_vendor)):
    _get_vendor(vendor_id)
    item_id = create_document("menuitem", Menuitem(**payload.model_dump()))
    modify_document("vendor", vendor_id, {"$push": {"menu": item_id}})
    return get_document_by_id("menuitem", item_id)


@menus_router.patch("/item/{menu_item_id}")
def update_menu_item(menu_item_id: str, payload: MenuItemDetails, vendor_id: str = Depends(requires_vendor)):
    _get_owned_menu_item(_get_vendor(vendor_id), menu_item_id)
    update_document("menuitem", menu_item_id, payload.model_dump())
    return get_document_by_id("menuitem", menu_item_id)


@menus_router.patch("/item/{menu_item_id}/availability")
def toggle_availability(menu_item_id: str, vendor_id: str = Depends(requires_vendor)):
    item = _get_owned_menu_item(_get_vendor(vendor_id), menu_item_id)
    update_document("menuitem", menu_item_id, {"available": not item.get("available", False)})
    return get_document_by_id("menuitem", menu_item_id)


@menus_router.delete("/item/{menu_item_id}")
def delete_menu_item(menu_item_id: str, vendor_id: str = Depends(requires_vendor)):
    _get_owned_menu_item(_get_vendor(vendor_id), menu_item_id)
    modify_document("vendor", vendor_id, {"$pull": {"menu": menu_item_id}})
    # Past orders keep their own snapshot; the document itself expires later
    update_document("menuitem", menu_item_id, {"expire_at": datetime.now(timezone.utc) + MENU_ITEM_RETENTION})
    return {"message": "Menu item successfully deleted"}


# ===================== Carts =====================
carts_router = APIRouter(prefix="/api/carts", tags=["carts"])


class CartItemDetails(BaseModel):
    item_id: str
    quantity: int = Field(..., ge=1)


class CreateCartRequest(BaseModel):
    vendor_id: str
    items: List[CartItemDetails] = Field(..., min_length=1)


class UpdateCartRequest(BaseModel):
    items: List[CartItemDetails] = Field(..., min_length=1)


class UpdateCartItemRequest(BaseModel):
    item_id: str
    quantity: int = Field(..., ge=0)


def _populate_cart(cart: dict) -> dict:
    vendor = get_document_by_id("vendor", cart["vendor_id"])
    menu_items = {i["_id"]: i for i in get_documents_by_ids("menuitem", [e["item_id"] for e in cart["items"]])}
    populated = dict(cart)
    populated["vendor"] = {"_id": cart["vendor_id"], "vendor_name": vendor["vendor_name"] if vendor else ""}
    populated["items"] = [
        {
            "item": {key: menu_items[e["item_id"]].get(key) for key in ("_id", "name", "price", "available")},
            "quantity": e["quantity"],
        }
        for e in cart["items"]
        if e["item_id"] in menu_items
    ]
    return populated


def _get_owned_cart(buyer: dict, cart_id: str) -> dict:
    _require_valid_id(cart_id, "cart")
    cart = _get_or_404("cart", cart_id, "Cart")
    if cart_id not in buyer.get("carts", []):
        raise HTTPException(403, "Cart does not belong to the buyer")
    return cart


def _validate_cart_items(vendor: dict, item_ids: List[str]):
    if len(item_ids) != len(set(item_ids)):
        raise HTTPException(400, "Duplicate items are not allowed")
    menu = vendor.get("menu", [])
    for item_id in item_ids:
        _require_valid_id(item_id, "item")
        if item_id not in menu:
            raise HTTPException(400, f"Item '{item_id}' does not belong to the vendor")


def _delete_cart(buyer_id: str, cart_id: str):
    delete_document("cart", cart_id)
    modify_document("buyer", buyer_id, {"$pull": {"carts": cart_id}})


@carts_router.get("")
def get_carts(
    q: Optional[str] = None,
    saved_for_later: Optional[bool] = None,
    sort: Optional[str] = None,
    buyer_id: str = Depends(requires_buyer),
):
    buyer = _get_buyer(buyer_id)
    carts = [_populate_cart(c) for c in get_documents_by_ids("cart", buyer.get("carts", []))]
    if saved_for_later is not None:
        now, later = manipulation.separate_carts(carts)
        carts = later if saved_for_later else now
    if q:
        carts = manipulation.search_carts(carts, q)
    return _sorted(manipulation.sort_carts, carts, sort)


@carts_router.get("/{cart_id}")
def get_cart(cart_id: str, buyer_id: str = Depends(requires_buyer)):
    return _populate_cart(_get_owned_cart(_get_buyer(buyer_id), cart_id))


@carts_router.post("", status_code=201)
def create_cart(payload: CreateCartRequest, buyer_id: str = Depends(requires_buyer)):
    buyer = _get_buyer(buyer_id)
    _require_valid_id(payload.vendor_id, "vendor")
    vendor = _get_or_404("vendor", payload.vendor_id, "Vendor")
    for cart in get_documents_by_ids("cart", buyer.get("carts", [])):
        if cart["vendor_id"] == payload.vendor_id:
            raise HTTPException(409, "Vendor already has an existing cart")
    _validate_cart_items(vendor, [i.item_id for i in payload.items])

    cart = Cart(vendor_id=payload.vendor_id, items=[i.model_dump() for i in payload.items])
    cart_id = create_document("cart", cart)
    modify_document("buyer", buyer_id, {"$push": {"carts": cart_id}})
    return _populate_cart(get_document_by_id("cart", cart_id))


@carts_router.patch("/{cart_id}")
def update_cart(cart_id: str, payload: UpdateCartRequest, buyer_id: str = Depends(requires_buyer)):
    cart = _get_owned_cart(_get_buyer(buyer_id), cart_id)
    vendor = _get_or_404("vendor", cart["vendor_id"], "Vendor")
    _validate_cart_items(vendor, [i.item_id for i in payload.items])
    update_document("cart", cart_id, {"items": [i.model_dump() for i in payload.items]})
    return _populate_cart(get_document_by_id("cart", cart_id))


@carts_router.patch("/{cart_id}/item")
def update_cart_item(cart_id: str, payload: UpdateCartItemRequest, buyer_id: str = Depends(requires_buyer)):
    """Set one item's quantity. Zero removes the item; an emptied cart is deleted."""
    cart = _get_owned_cart(_get_buyer(buyer_id), cart_id)
    entries = [dict(e) for e in cart["items"]]
    existing = next((e for e in entries if e["item_id"] == payload.item_id), None)

    if payload.quantity == 0:
        if existing is None:
            raise HTTPException(404, "Item not found in cart")
        entries.remove(existing)
    elif existing is not None:
        existing["quantity"] = payload.quantity
    else:
        vendor = _get_or_404("vendor", cart["vendor_id"], "Vendor")
        _validate_cart_items(vendor, [payload.item_id])
        entries.append({"item_id": payload.item_id, "quantity": payload.quantity})

    if not entries:
        _delete_cart(buyer_id, cart_id)
        return {"message": "Cart successfully deleted", "deleted": True}
    update_document("cart", cart_id, {"items": entries})
    return _populate_cart(get_document_by_id("cart", cart_id))


@carts_router.patch("/{cart_id}/saved-for-later")
def toggle_saved_for_later(cart_id: str, buyer_id: str = Depends(requires_buyer)):
    cart = _get_owned_cart(_get_buyer(buyer_id), cart_id)
    update_document("cart", cart_id, {"saved_for_later": not cart.get("saved_for_later", False)})
    return _populate_cart(get_document_by_id("cart", cart_id))


@carts_router.delete("")
def empty_carts(buyer_id: str = Depends(requires_buyer)):
    buyer = _get_buyer(buyer_id)
    delete_documents("cart", buyer.get("carts", []))
    update_document("buyer", buyer_id, {"carts": []})
    return {"message": "Carts successfully deleted"}


@carts_router.delete("/{cart_id}")
def empty_cart(cart_id: str, buyer_id: str = Depends(requires_buyer)):
    _get_owned_cart(_get_buyer(buyer_id), cart_id)
    _delete_cart(buyer_id, cart_id)
    return {"message": "Cart successfully deleted"}


# ===================== Orders =====================
orders_router = APIRouter(prefix="/api/orders", tags=["orders"])


class PlaceOrderRequest(BaseModel):
    cart_id: str


class ProcessOrderRequest(BaseModel):
    is_accept: bool


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus


def _get_listed_order(owner: dict, order_id: str, owner_name: str) -> dict:
    _require_valid_id(order_id, "order")
    order = _get_or_404("order", order_id, "Order")
    if order_id not in owner.get("orders", []):
        raise HTTPException(403, f"Order does not belong to the {owner_name}")
    return order


def _set_status(order_id: str, status: OrderStatus) -> dict:
    update_document("order", order_id, {"status": status.value})
    logger.info("Order %s is now %s", order_id, status.value)
    return get_document_by_id("order", order_id)


@orders_router.get("/buyer")
def get_buyer_orders(buyer_id: str = Depends(requires_buyer)):
    buyer = _get_buyer(buyer_id)
    return get_documents_by_ids("order", buyer.get("orders", []))


@orders_router.get("/buyer/{order_id}")
def get_buyer_order(order_id: str, buyer_id: str = Depends(requires_buyer)):
    return _get_listed_order(_get_buyer(buyer_id), order_id, "buyer")


@orders_router.post("/buyer", status_code=201)
def place_order(payload: PlaceOrderRequest, buyer_id: str = Depends(requires_buyer)):
    cart = _get_owned_cart(_get_buyer(buyer_id), payload.cart_id)
    if not cart["items"]:
        raise HTTPException(400, "Cart is empty")

    menu_items = {i["_id"]: i for i in get_documents_by_ids("menuitem", [e["item_id"] for e in cart["items"]])}
    lines = []
    for entry in cart["items"]:
        item = menu_items.get(entry["item_id"])
        if item is None or item.get("expire_at") or not item.get("available"):
            name = item["name"] if item else entry["item_id"]
            raise HTTPException(409, f"Menu item '{name}' is no longer available")
        lines.append(OrderLine(item_id=item["_id"], name=item["name"], price=item["price"], quantity=entry["quantity"]))
    total_price = round(sum(line.price * line.quantity for line in lines), 2)

    order = Order(buyer_id=buyer_id, vendor_id=cart["vendor_id"], items=lines, total_price=total_price)
    order_id = create_document("order", order)
    modify_document("buyer", buyer_id, {"$push": {"orders": order_id}, "$pull": {"carts": cart["_id"]}})
    modify_document("vendor", cart["vendor_id"], {"$push": {"orders": order_id}})
    delete_document("cart", cart["_id"])
    logger.info("Order %s placed by buyer %s", order_id, buyer_id)
    return get_document_by_id("order", order_id)


@orders_router.patch("/buyer/{order_id}/cancel")
def cancel_order(order_id: str, buyer_id: str = Depends(requires_buyer)):
    order = _get_listed_order(_get_buyer(buyer_id), order_id, "buyer")
    if is_terminal(order["status"]):
        raise HTTPException(403, f"Order '{order_id}' is already {order['status']}")
    if order["status"] != OrderStatus.PENDING.value:
        raise HTTPException(403, f"Order '{order_id}' is not in 'pending' status")
    return _set_status(order_id, OrderStatus.CANCELLED)


@orders_router.get("/vendor")
def get_vendor_orders(vendor_id: str = Depends(requires_vendor)):
    vendor = _get_vendor(vendor_id)
    return get_documents_by_ids("order", vendor.get("orders", []))


@orders_router.get("/vendor/{order_id}")
def get_vendor_order(order_id: str, vendor_id: str = Depends(requires_vendor)):
    return _get_listed_order(_get_vendor(vendor_id), order_id, "vendor")


@orders_router.patch("/vendor/{order_id}/process")
def process_order(order_id: str, payload: ProcessOrderRequest, vendor_id: str = Depends(requires_vendor)):
    order = _get_listed_order(_get_vendor(vendor_id), order_id, "vendor")
    if order["status"] != OrderStatus.PENDING.value:
        raise HTTPException(403, "The order's status is not pending")
    return _set_status(order_id, OrderStatus.IN_PROGRESS if payload.is_accept else OrderStatus.CANCELLED)


@orders_router.patch("/vendor/{order_id}/status")
def update_order_status(order_id: str, payload: UpdateOrderStatusRequest, vendor_id: str = Depends(requires_vendor)):
    order = _get_listed_order(_get_vendor(vendor_id), order_id, "vendor")
    if is_terminal(order["status"]):
        raise HTTPException(403, f"Order '{order_id}' is already {order['status']}")
    if not can_transition(order["status"], payload.status):
        raise HTTPException(403, f"Invalid update to order status: {order['status']} -> {payload.status.value}")
    return _set_status(order_id, payload.status)


app.include_router(users_router)
app.include_router(buyers_router)
app.include_router(vendors_router)
app.include_router(menus_router)
app.include_router(carts_router)
app.include_router(orders_router)


# ===================== Schema Export for Docs =====================
@app.get("/schema")
def get_schema():
    return {
        "collections": [
            "user",
            "buyer",
            "vendor",
            "menuitem",
            "cart",
            "order"
        ],
        "notes": "Each class in schemas.py maps to a MongoDB collection (lowercase)."
    }


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
