"""
HTTP client for the Edopla API.

Responses outside the 2xx range are turned into exceptions by status code:
401 -> UnauthorizedError, 403 -> ForbiddenError, 409 -> ConflictError,
422 -> InvalidFieldError, anything else -> HttpError.
"""
import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class HttpError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UnauthorizedError(HttpError):
    pass


class ForbiddenError(HttpError):
    pass


class ConflictError(HttpError):
    pass


class InvalidFieldError(HttpError):
    pass


ERRORS_BY_STATUS = {
    401: UnauthorizedError,
    403: ForbiddenError,
    409: ConflictError,
    422: InvalidFieldError,
}


def _error_message(response) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        return response.text
    if isinstance(detail, list):
        # pydantic validation errors
        return "; ".join(str(err.get("msg")) for err in detail)
    return str(detail)


def raise_for_status(response, error_messages: Optional[Dict[int, str]] = None):
    status_code = response.status_code
    if 200 <= status_code < 300:
        return
    message = (error_messages or {}).get(status_code) or _error_message(response)
    error_class = ERRORS_BY_STATUS.get(status_code)
    if error_class is None:
        raise HttpError(f"Request failed with status: {status_code} and message: {message}", status_code)
    raise error_class(message, status_code)


class EdoplaClient:
    """Thin wrapper over a requests session; the cookie jar keeps the login session."""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()

    def _request(self, method: str, path: str, error_messages: Optional[Dict[int, str]] = None, **kwargs) -> Any:
        response = self.session.request(method, f"{self.base_url}{path}", **kwargs)
        logger.debug("%s %s -> %s", method, path, response.status_code)
        raise_for_status(response, error_messages)
        return response.json()

    # Users
    def get_logged_in_user(self) -> dict:
        return self._request("GET", "/api/users")

    def sign_up(self, email: str, password: str, **kwargs) -> dict:
        body = {"is_sign_up": True, "email": email, "password": password}
        return self._request("POST", "/api/users/authenticate/form", json=body, **kwargs)

    def log_in(self, email: str, password: str, **kwargs) -> dict:
        body = {"is_sign_up": False, "email": email, "password": password}
        return self._request("POST", "/api/users/authenticate/form", json=body, **kwargs)

    def log_out(self) -> dict:
        return self._request("POST", "/api/users/logout")

    # Buyers
    def get_buyer(self) -> dict:
        return self._request("GET", "/api/buyers")

    def create_buyer(self, buyer_name: str, address: str, phone_number: Optional[str] = None) -> dict:
        body = {"buyer_name": buyer_name, "address": address, "phone_number": phone_number}
        return self._request("POST", "/api/buyers", json=body)

    def update_buyer(self, buyer_name: str, address: str, phone_number: Optional[str] = None) -> dict:
        body = {"buyer_name": buyer_name, "address": address, "phone_number": phone_number}
        return self._request("PATCH", "/api/buyers", json=body)

    def get_saved_vendors(self) -> List[dict]:
        return self._request("GET", "/api/buyers/saved-vendors")

    def toggle_saved_vendor(self, vendor_id: str) -> dict:
        return self._request("PATCH", "/api/buyers/saved-vendor", json={"vendor_id": vendor_id})

    def get_vendor_lists(self) -> dict:
        return self._request("GET", "/api/buyers/vendor-lists")

    # Vendors
    def get_all_vendors(self, **params) -> List[dict]:
        return self._request("GET", "/api/vendors/all", params=params)

    def get_vendor(self) -> dict:
        return self._request("GET", "/api/vendors")

    def create_vendor(self, **details) -> dict:
        return self._request("POST", "/api/vendors", json=details)

    def update_vendor(self, **details) -> dict:
        return self._request("PATCH", "/api/vendors", json=details)

    def toggle_cuisine(self, cuisine: str) -> List[str]:
        return self._request("PATCH", "/api/vendors/cuisine", json={"cuisine": cuisine})

    # Menus
    def get_menu(self, vendor_id: str, **params) -> List[dict]:
        return self._request("GET", f"/api/menus/{vendor_id}", params=params)

    def get_menu_summary(self, vendor_id: str) -> dict:
        return self._request("GET", f"/api/menus/{vendor_id}/summary")

    def get_menu_item(self, menu_item_id: str) -> dict:
        return self._request("GET", f"/api/menus/item/{menu_item_id}")

    def create_menu_item(self, **details) -> dict:
        return self._request("POST", "/api/menus/item", json=details)

    def update_menu_item(self, menu_item_id: str, **details) -> dict:
        return self._request("PATCH", f"/api/menus/item/{menu_item_id}", json=details)

    def toggle_availability(self, menu_item_id: str) -> dict:
        return self._request("PATCH", f"/api/menus/item/{menu_item_id}/availability")

    def delete_menu_item(self, menu_item_id: str) -> dict:
        return self._request("DELETE", f"/api/menus/item/{menu_item_id}")

    # Carts
    def get_carts(self, **params) -> List[dict]:
        return self._request("GET", "/api/carts", params=params)

    def get_cart(self, cart_id: str) -> dict:
        return self._request("GET", f"/api/carts/{cart_id}")

    def create_cart(self, vendor_id: str, items: List[dict]) -> dict:
        return self._request("POST", "/api/carts", json={"vendor_id": vendor_id, "items": items})

    def update_cart(self, cart_id: str, items: List[dict]) -> dict:
        return self._request("PATCH", f"/api/carts/{cart_id}", json={"items": items})

    def update_cart_item(self, cart_id: str, item_id: str, quantity: int) -> dict:
        body = {"item_id": item_id, "quantity": quantity}
        return self._request("PATCH", f"/api/carts/{cart_id}/item", json=body)

    def toggle_saved_for_later(self, cart_id: str) -> dict:
        return self._request("PATCH", f"/api/carts/{cart_id}/saved-for-later")

    def empty_carts(self) -> dict:
        return self._request("DELETE", "/api/carts")

    def empty_cart(self, cart_id: str) -> dict:
        return self._request("DELETE", f"/api/carts/{cart_id}")

    # Orders
    def get_buyer_orders(self) -> List[dict]:
        return self._request("GET", "/api/orders/buyer")

    def get_buyer_order(self, order_id: str) -> dict:
        return self._request("GET", f"/api/orders/buyer/{order_id}")

    def place_order(self, cart_id: str) -> dict:
        return self._request("POST", "/api/orders/buyer", json={"cart_id": cart_id})

    def cancel_order(self, order_id: str) -> dict:
        return self._request("PATCH", f"/api/orders/buyer/{order_id}/cancel")

    def get_vendor_orders(self) -> List[dict]:
        return self._request("GET", "/api/orders/vendor")

    def get_vendor_order(self, order_id: str) -> dict:
        return self._request("GET", f"/api/orders/vendor/{order_id}")

    def process_order(self, order_id: str, is_accept: bool) -> dict:
        return self._request("PATCH", f"/api/orders/vendor/{order_id}/process", json={"is_accept": is_accept})

    def update_order_status(self, order_id: str, status: str) -> dict:
        return self._request("PATCH", f"/api/orders/vendor/{order_id}/status", json={"status": status})
