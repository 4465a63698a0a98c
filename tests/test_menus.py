from fastapi.testclient import TestClient

from main import app
from tests.conftest import sign_up


def test_create_menu_item_adds_it_to_the_menu(client, vendor_client, vendor, menu):
    assert vendor_client.get("/api/vendors").json()["menu"] == [item["_id"] for item in menu]
    response = client.get(f"/api/menus/{vendor['_id']}")
    assert response.status_code == 200
    assert [item["name"] for item in response.json()] == ["Carnitas Taco", "Horchata", "Churros"]


def test_create_menu_item_requires_vendor(user_client):
    response = user_client.post("/api/menus/item", json={"name": "Tea", "price": 1.0, "category": "Drinks"})
    assert response.status_code == 401


def test_create_menu_item_validates_fields(vendor_client):
    assert vendor_client.post("/api/menus/item", json={"name": "Tea", "price": 0, "category": "Drinks"}).status_code == 422
    assert vendor_client.post("/api/menus/item", json={"name": "Tea", "price": 2}).status_code == 422


def test_get_menu_item(client, menu):
    response = client.get(f"/api/menus/item/{menu[1]['_id']}")
    assert response.status_code == 200
    assert response.json()["name"] == "Horchata"
    assert client.get("/api/menus/item/not-an-id").status_code == 400
    assert client.get("/api/menus/item/0123456789abcdef01234567").status_code == 404


def test_get_menu_for_unknown_vendor(client):
    assert client.get("/api/menus/bad").status_code == 400
    assert client.get("/api/menus/0123456789abcdef01234567").status_code == 404


def test_menu_search_filter_and_sort(client, vendor, menu):
    url = f"/api/menus/{vendor['_id']}"
    assert [i["name"] for i in client.get(url, params={"q": "taco"}).json()] == ["Carnitas Taco"]
    assert [i["name"] for i in client.get(url, params={"category": "Drinks"}).json()] == ["Horchata"]
    in_range = client.get(url, params={"min_price": 3, "max_price": 4}).json()
    assert [i["name"] for i in in_range] == ["Carnitas Taco", "Churros"]
    by_price = client.get(url, params={"sort": "price-desc"}).json()
    assert [i["name"] for i in by_price] == ["Churros", "Carnitas Taco", "Horchata"]
    assert client.get(url, params={"sort": "spiciness"}).status_code == 400


def test_menu_summary(client, vendor_client, vendor, menu):
    summary = client.get(f"/api/menus/{vendor['_id']}/summary").json()
    assert summary["item_count"] == 3
    assert summary["categories"] == ["Desserts", "Drinks", "Tacos"]
    assert summary["price_range"] == {"min": 2.25, "max": 4.0}


def test_menu_summary_for_empty_menu(client, vendor):
    summary = client.get(f"/api/menus/{vendor['_id']}/summary").json()
    assert summary == {"item_count": 0, "categories": [], "price_range": None}
    assert client.get("/api/menus/bad/summary").status_code == 400


def test_update_menu_item(vendor_client, menu):
    item_id = menu[0]["_id"]
    response = vendor_client.patch(
        f"/api/menus/item/{item_id}",
        json={"name": "Al Pastor Taco", "price": 3.75, "category": "Tacos", "description": "Pineapple"},
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Al Pastor Taco"
    assert response.json()["price"] == 3.75


def test_menu_items_belong_to_their_vendor(menu):
    other = TestClient(app)
    sign_up(other, "rival@edopla.io")
    other.post("/api/vendors", json={"vendor_name": "Rival Tacos", "address": "5 Side St", "price_range": "$"})
    item_id = menu[0]["_id"]

    body = {"name": "Stolen", "price": 1.0, "category": "Tacos"}
    assert other.patch(f"/api/menus/item/{item_id}", json=body).status_code == 403
    assert other.patch(f"/api/menus/item/{item_id}/availability").status_code == 403
    assert other.delete(f"/api/menus/item/{item_id}").status_code == 403


def test_toggle_availability(client, vendor_client, vendor, menu):
    item_id = menu[2]["_id"]
    assert vendor_client.patch(f"/api/menus/item/{item_id}/availability").json()["available"] is False
    available = client.get(f"/api/menus/{vendor['_id']}", params={"available_only": True}).json()
    assert [i["name"] for i in available] == ["Carnitas Taco", "Horchata"]
    assert vendor_client.patch(f"/api/menus/item/{item_id}/availability").json()["available"] is True


def test_delete_menu_item_schedules_expiry(client, vendor_client, vendor, menu):
    item_id = menu[1]["_id"]
    response = vendor_client.delete(f"/api/menus/item/{item_id}")
    assert response.status_code == 200

    assert item_id not in vendor_client.get("/api/vendors").json()["menu"]
    assert [i["name"] for i in client.get(f"/api/menus/{vendor['_id']}").json()] == ["Carnitas Taco", "Churros"]
    assert client.get(f"/api/menus/item/{item_id}").json()["expire_at"] is not None
    assert vendor_client.delete(f"/api/menus/item/{item_id}").status_code == 403
