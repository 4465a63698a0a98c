import pytest
from fastapi.testclient import TestClient

import database
import main
from main import app
from tests.conftest import PASSWORD, sign_up


def test_documents_by_ids_keep_requested_order():
    first = database.create_document("menuitem", {"name": "first"})
    second = database.create_document("menuitem", {"name": "second"})
    docs = database.get_documents_by_ids("menuitem", [second, "garbage", first, "0123456789abcdef01234567"])
    assert [d["name"] for d in docs] == ["second", "first"]
    assert all(isinstance(d["_id"], str) for d in docs)


def test_create_document_sets_timestamps():
    doc = database.get_document_by_id("buyer", database.create_document("buyer", {"buyer_name": "x"}))
    assert doc["created_at"] is not None and doc["updated_at"] is not None


def test_update_and_modify_report_matches():
    _id = database.create_document("vendor", {"menu": []})
    assert database.update_document("vendor", _id, {"address": "here"})
    assert database.update_document("vendor", _id, {"address": "here"})
    assert database.modify_document("vendor", _id, {"$push": {"menu": "a"}})
    assert database.get_document_by_id("vendor", _id)["menu"] == ["a"]
    assert not database.update_document("vendor", "bad-id", {"address": "x"})
    assert not database.modify_document("vendor", "0123456789abcdef01234567", {"$push": {"menu": "b"}})


def test_delete_helpers():
    ids = [database.create_document("cart", {"n": n}) for n in range(3)]
    assert database.delete_document("cart", ids[0])
    assert not database.delete_document("cart", ids[0])
    assert database.delete_documents("cart", ids[1:] + ["nope"]) == 2
    assert database.get_documents("cart") == []


def test_is_valid_id():
    assert database.is_valid_id("0123456789abcdef01234567")
    assert not database.is_valid_id("0123")
    assert not database.is_valid_id(None)


def test_unconfigured_database_raises(client):
    database.disconnect()
    with pytest.raises(database.DatabaseUnavailable):
        database.get_documents("vendor")
    response = client.get("/api/vendors/all")
    assert response.status_code == 503


def test_modify_document_leaves_operations_untouched():
    _id = database.create_document("vendor", {"menu": []})
    operations = {"$set": {"address": "there"}, "$push": {"menu": "a"}}
    assert database.modify_document("vendor", _id, operations)
    assert operations == {"$set": {"address": "there"}, "$push": {"menu": "a"}}
    assert database.get_document_by_id("vendor", _id)["address"] == "there"


def test_startup_builds_indexes():
    with TestClient(app):
        assert "identification.email_1" in database.db["user"].index_information()
        assert "vendor_name_1" in database.db["vendor"].index_information()
        ttl = database.db["menuitem"].index_information()["expire_at_1"]
        assert ttl["expireAfterSeconds"] == 0
    assert database.db is None


def test_duplicate_key_race_is_a_conflict(monkeypatch):
    with TestClient(app) as client:
        sign_up(client, "race@edopla.io")
        client.post("/api/vendors", json={"vendor_name": "Race Grill", "address": "2 Track Rd", "price_range": "$"})

        # Both requests get past the existence check before either inserts
        monkeypatch.setattr(main, "get_document", lambda *args, **kwargs: None)
        other = TestClient(app)
        response = other.post(
            "/api/users/authenticate/form",
            json={"is_sign_up": True, "email": "race@edopla.io", "password": PASSWORD},
        )
        assert response.status_code == 409

        sign_up(other, "second@edopla.io")
        response = other.post("/api/vendors", json={"vendor_name": "Race Grill", "address": "4 Lap Ln", "price_range": "$$"})
        assert response.status_code == 409
        assert response.json()["detail"] == "Document with this value already exists"
