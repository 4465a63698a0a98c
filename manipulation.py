"""
Search, filter and sort helpers for vendor lists, menus and carts.

All functions are pure: they take lists of documents as returned by the API
and return new lists, leaving their input untouched. Sorting relies on
``sorted`` and is therefore stable.
"""
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from schemas import PRICE_RANGES


def _refine(value: str) -> str:
    return (value or "").strip().lower()


def _name_key(field: str) -> Callable[[dict], str]:
    return lambda doc: (doc.get(field) or "").casefold()


def _apply_sort(options: Dict[str, Callable[[List[dict]], List[dict]]], docs: Sequence[dict], option: Optional[str]) -> List[dict]:
    if not option:
        return list(docs)
    if option not in options:
        raise ValueError(f"Unknown sort option '{option}'. Expected one of: {', '.join(options)}")
    return options[option](list(docs))


def toggle(values: Iterable[str], value: str) -> List[str]:
    """Remove the first occurrence of ``value``, or append it when missing."""
    values = list(values)
    if value in values:
        values.remove(value)
    else:
        values.append(value)
    return values


# ===================== Vendors =====================
def prepare_lists(active: Sequence[dict], cart_list: Sequence[dict], saved_list: Sequence[dict]) -> Tuple[List[dict], List[dict], List[dict]]:
    """Split ``active`` into vendors with a cart, saved vendors and the rest.

    A vendor with a cart is never also reported as saved.
    """
    cart_ids = {v["_id"] for v in cart_list}
    saved_ids = {v["_id"] for v in saved_list}
    in_cart, saved, unsaved = [], [], []
    for vendor in active:
        if vendor["_id"] in cart_ids:
            in_cart.append(vendor)
        elif vendor["_id"] in saved_ids:
            saved.append(vendor)
        else:
            unsaved.append(vendor)
    return in_cart, saved, unsaved


def search_vendors(vendors: Sequence[dict], value: str) -> List[dict]:
    """Match vendor name or cuisine types by substring, or the price range exactly."""
    refined = _refine(value)
    results = []
    for vendor in vendors:
        name = vendor.get("vendor_name", "").lower()
        cuisines = " ".join(vendor.get("cuisine_types") or []).lower()
        if refined in name or refined in cuisines or vendor.get("price_range") == refined:
            results.append(vendor)
    return results


def filter_vendors(vendors: Sequence[dict], price_ranges: Optional[Iterable[str]] = None, cuisines: Optional[Iterable[str]] = None) -> List[dict]:
    price_ranges = set(price_ranges or [])
    wanted = {c.lower() for c in cuisines or []}
    results = []
    for vendor in vendors:
        if price_ranges and vendor.get("price_range") not in price_ranges:
            continue
        if wanted and not wanted & {c.lower() for c in vendor.get("cuisine_types") or []}:
            continue
        results.append(vendor)
    return results


def _price_range_rank(vendor: dict) -> int:
    return PRICE_RANGES.index(vendor["price_range"])


VENDOR_SORT_OPTIONS = {
    "price-range-asc": lambda vs: sorted(vs, key=_price_range_rank),
    "price-range-desc": lambda vs: sorted(vs, key=_price_range_rank, reverse=True),
    "name-asc": lambda vs: sorted(vs, key=_name_key("vendor_name")),
    "name-desc": lambda vs: sorted(vs, key=_name_key("vendor_name"), reverse=True),
}


def sort_vendors(vendors: Sequence[dict], option: Optional[str]) -> List[dict]:
    return _apply_sort(VENDOR_SORT_OPTIONS, vendors, option)


# ===================== Menu =====================
def search_menu(menu: Sequence[dict], value: str) -> List[dict]:
    refined = _refine(value)
    return [
        item for item in menu
        if refined in item.get("name", "").lower() or refined in item.get("category", "").lower()
    ]


def get_price_range(menu: Sequence[dict]) -> Optional[Tuple[float, float]]:
    """Cheapest and most expensive price on the menu, or None for an empty menu."""
    prices = [item["price"] for item in menu]
    if not prices:
        return None
    return min(prices), max(prices)


def get_categories(menu: Sequence[dict]) -> List[str]:
    return sorted({item["category"] for item in menu})


def filter_menu(menu: Sequence[dict], price_range: Optional[Tuple[Optional[float], Optional[float]]] = None, category: Optional[str] = None) -> List[dict]:
    low, high = price_range or (None, None)
    results = []
    for item in menu:
        if category and item.get("category") != category:
            continue
        if low is not None and item["price"] < low:
            continue
        if high is not None and item["price"] > high:
            continue
        results.append(item)
    return results


MENU_SORT_OPTIONS = {
    "category": lambda m: sorted(m, key=_name_key("category")),
    "price-asc": lambda m: sorted(m, key=lambda item: item["price"]),
    "price-desc": lambda m: sorted(m, key=lambda item: item["price"], reverse=True),
    "name-asc": lambda m: sorted(m, key=_name_key("name")),
    "name-desc": lambda m: sorted(m, key=_name_key("name"), reverse=True),
}


def sort_menu(menu: Sequence[dict], option: Optional[str]) -> List[dict]:
    return _apply_sort(MENU_SORT_OPTIONS, menu, option)


# ===================== Carts =====================
# Carts here are in their populated form:
# {"vendor": {"vendor_name": ...}, "items": [{"item": {"name", "price"}, "quantity"}], ...}

def separate_carts(carts: Sequence[dict]) -> Tuple[List[dict], List[dict]]:
    """Return (carts to order now, carts saved for later)."""
    now, later = [], []
    for cart in carts:
        (later if cart.get("saved_for_later") else now).append(cart)
    return now, later


def cart_quantity(cart: dict) -> int:
    return sum(entry["quantity"] for entry in cart.get("items", []))


def cart_total(cart: dict) -> float:
    return round(sum(entry["item"]["price"] * entry["quantity"] for entry in cart.get("items", [])), 2)


def search_carts(carts: Sequence[dict], value: str) -> List[dict]:
    refined = _refine(value)
    results = []
    for cart in carts:
        vendor_name = (cart.get("vendor") or {}).get("vendor_name", "").lower()
        item_names = [entry["item"].get("name", "").lower() for entry in cart.get("items", [])]
        if refined in vendor_name or any(refined in name for name in item_names):
            results.append(cart)
    return results


CART_SORT_OPTIONS = {
    "quantity-asc": lambda cs: sorted(cs, key=cart_quantity),
    "quantity-desc": lambda cs: sorted(cs, key=cart_quantity, reverse=True),
    "price-asc": lambda cs: sorted(cs, key=cart_total),
    "price-desc": lambda cs: sorted(cs, key=cart_total, reverse=True),
}


def sort_carts(carts: Sequence[dict], option: Optional[str]) -> List[dict]:
    return _apply_sort(CART_SORT_OPTIONS, carts, option)
