import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from main import app

PASSWORD = "Password1!"


def sign_up(client, email, password=PASSWORD):
    response = client.post(
        "/api/users/authenticate/form",
        json={"is_sign_up": True, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()


def add_menu_item(client, name, price, category, available=True):
    response = client.post(
        "/api/menus/item",
        json={"name": name, "price": price, "category": category, "available": available},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture(autouse=True)
def mongo():
    database.connect(database_name="edopla_test", client=mongomock.MongoClient())
    yield database.db
    database.disconnect()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def user_client():
    client = TestClient(app)
    sign_up(client, "user@edopla.io")
    return client


@pytest.fixture
def buyer_client():
    client = TestClient(app)
    sign_up(client, "buyer@edopla.io")
    response = client.post(
        "/api/buyers",
        json={"buyer_name": "Bea Buyer", "address": "12 Elm Street", "phone_number": "555-0100"},
    )
    assert response.status_code == 201, response.text
    return client


@pytest.fixture
def vendor_client():
    client = TestClient(app)
    sign_up(client, "vendor@edopla.io")
    response = client.post(
        "/api/vendors",
        json={"vendor_name": "Taco Town", "address": "1 Main Street", "price_range": "$$"},
    )
    assert response.status_code == 201, response.text
    return client


@pytest.fixture
def vendor(vendor_client):
    return vendor_client.get("/api/vendors").json()


@pytest.fixture
def menu(vendor_client):
    return [
        add_menu_item(vendor_client, "Carnitas Taco", 3.5, "Tacos"),
        add_menu_item(vendor_client, "Horchata", 2.25, "Drinks"),
        add_menu_item(vendor_client, "Churros", 4.0, "Desserts"),
    ]


@pytest.fixture
def cart(buyer_client, vendor, menu):
    response = buyer_client.post(
        "/api/carts",
        json={
            "vendor_id": vendor["_id"],
            "items": [
                {"item_id": menu[0]["_id"], "quantity": 2},
                {"item_id": menu[1]["_id"], "quantity": 1},
            ],
        },
    )
    assert response.status_code == 201, response.text
    return response.json()
