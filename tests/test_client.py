import pytest
from fastapi.testclient import TestClient

from client import (
    ConflictError,
    EdoplaClient,
    ForbiddenError,
    HttpError,
    InvalidFieldError,
    UnauthorizedError,
    raise_for_status,
)
from main import app
from tests.conftest import PASSWORD


class FakeResponse:
    def __init__(self, status_code, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("no JSON")
        return self._body


def edopla():
    return EdoplaClient("http://testserver/", session=TestClient(app))


@pytest.mark.parametrize("status_code, error_class", [
    (401, UnauthorizedError),
    (403, ForbiddenError),
    (409, ConflictError),
    (422, InvalidFieldError),
])
def test_status_codes_map_to_errors(status_code, error_class):
    with pytest.raises(error_class) as excinfo:
        raise_for_status(FakeResponse(status_code, {"detail": "nope"}))
    assert excinfo.value.message == "nope"
    assert excinfo.value.status_code == status_code


def test_other_statuses_raise_generic_error():
    with pytest.raises(HttpError) as excinfo:
        raise_for_status(FakeResponse(500, text="Internal Server Error"))
    assert type(excinfo.value) is HttpError
    assert str(excinfo.value) == "Request failed with status: 500 and message: Internal Server Error"


def test_custom_error_messages_override_detail():
    with pytest.raises(ConflictError, match="Email taken"):
        raise_for_status(FakeResponse(409, {"detail": "exists"}), {409: "Email taken"})


def test_success_does_not_raise():
    raise_for_status(FakeResponse(201, {}))


def test_client_end_to_end():
    vendor = edopla()
    vendor.sign_up("chef@edopla.io", PASSWORD)
    created = vendor.create_vendor(vendor_name="Curry Corner", address="8 Spice Lane", price_range="$$")
    assert vendor.toggle_cuisine("Indian") == ["Indian"]
    dal = vendor.create_menu_item(name="Dal", price=6.5, category="Mains")
    naan = vendor.create_menu_item(name="Naan", price=2.0, category="Breads")

    buyer = edopla()
    buyer.sign_up("diner@edopla.io", PASSWORD)
    buyer.create_buyer("Dee", "4 Birch Way")
    assert [v["vendor_name"] for v in buyer.get_all_vendors(q="indian")] == ["Curry Corner"]
    assert [i["name"] for i in buyer.get_menu(created["_id"], sort="price-asc")] == ["Naan", "Dal"]

    cart = buyer.create_cart(created["_id"], [{"item_id": dal["_id"], "quantity": 2}])
    cart = buyer.update_cart_item(cart["_id"], naan["_id"], 3)
    assert [e["quantity"] for e in cart["items"]] == [2, 3]
    with pytest.raises(ConflictError):
        buyer.create_cart(created["_id"], [{"item_id": naan["_id"], "quantity": 1}])

    order = buyer.place_order(cart["_id"])
    assert order["total_price"] == 19.0
    assert buyer.get_carts() == []

    vendor.process_order(order["_id"], True)
    vendor.update_order_status(order["_id"], "ready")
    assert buyer.get_buyer_order(order["_id"])["status"] == "ready"
    with pytest.raises(ForbiddenError):
        buyer.cancel_order(order["_id"])


def test_client_authentication_errors():
    anonymous = edopla()
    with pytest.raises(UnauthorizedError, match="User not authenticated"):
        anonymous.get_logged_in_user()

    user = edopla()
    user.sign_up("someone@edopla.io", PASSWORD)
    with pytest.raises(ConflictError):
        anonymous.sign_up("someone@edopla.io", PASSWORD)
    with pytest.raises(UnauthorizedError):
        anonymous.log_in("someone@edopla.io", "wrong-password")
    with pytest.raises(InvalidFieldError):
        user.create_vendor(vendor_name="X", address="Y", price_range="$$$$")

    user.log_out()
    with pytest.raises(UnauthorizedError):
        user.get_logged_in_user()


def test_client_vendor_lists_and_menu_summary():
    vendor = edopla()
    vendor.sign_up("baker@edopla.io", PASSWORD)
    created = vendor.create_vendor(vendor_name="Bread Box", address="6 Rye Row", price_range="$")
    vendor.create_menu_item(name="Sourdough", price=5.0, category="Loaves")

    buyer = edopla()
    buyer.sign_up("eater@edopla.io", PASSWORD)
    buyer.create_buyer("Eve", "7 Oat St")
    buyer.toggle_saved_vendor(created["_id"])
    assert [v["_id"] for v in buyer.get_vendor_lists()["saved"]] == [created["_id"]]
    assert buyer.get_menu_summary(created["_id"])["price_range"] == {"min": 5.0, "max": 5.0}
