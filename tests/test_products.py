from decimal import Decimal

import pytest

from app.models import Product


def _product_form(category_id: int, **overrides) -> dict:
    data = {
        "name": "Lamp",
        "description": "Desk lamp",
        "price": "19.99",
        "category_id": str(category_id),
    }
    data.update(overrides)
    return data


def _stored_images(storage) -> list:
    products_dir = storage.root / "products"
    if not products_dir.exists():
        return []
    return sorted(path.name for path in products_dir.iterdir())


def _product_count(session_factory) -> int:
    session = session_factory()
    try:
        return session.query(Product).count()
    finally:
        session.close()


def test_create_product_without_image(client, category):
    response = client.post(
        "/products",
        json={"name": "Lamp", "description": "Desk lamp", "price": 19.99, "category_id": category.id},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Lamp"
    assert Decimal(str(data["price"])) == Decimal("19.99")
    assert data["image"] is None
    assert data["image_url"] is None
    assert data["category"]["id"] == category.id


def test_create_product_with_image_stores_blob(client, category, storage, png_bytes):
    response = client.post(
        "/products",
        data=_product_form(category.id),
        files={"image": ("lamp.png", png_bytes, "image/png")},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["image"].startswith("products/")
    assert data["image"].endswith(".png")
    assert data["image_url"] == f"/storage/{data['image']}"
    assert storage.exists(data["image"])

    served = client.get(data["image_url"])
    assert served.status_code == 200
    assert served.content == png_bytes


def test_create_product_with_unknown_category_is_rejected(client, session_factory):
    response = client.post(
        "/products",
        json={"name": "Lamp", "description": "Desk lamp", "price": "1.00", "category_id": 999},
    )
    assert response.status_code == 422
    assert response.json()["details"] == {"category_id": ["The selected category id is invalid."]}
    assert _product_count(session_factory) == 0


def test_create_product_reports_every_invalid_field(client, category):
    response = client.post(
        "/products",
        json={"name": "", "price": -1, "category_id": category.id},
    )
    assert response.status_code == 422
    details = response.json()["details"]
    assert {"name", "description", "price"} <= set(details)


def test_create_product_rejects_non_image_upload(client, category, storage):
    response = client.post(
        "/products",
        data=_product_form(category.id),
        files={"image": ("notes.txt", b"plain text", "text/plain")},
    )
    assert response.status_code == 422
    assert "image" in response.json()["details"]
    assert _stored_images(storage) == []


def test_create_product_rejects_oversized_image(client, category, storage):
    response = client.post(
        "/products",
        data=_product_form(category.id),
        files={"image": ("huge.png", b"\x00" * (65 * 1024), "image/png")},
    )
    assert response.status_code == 422
    assert "image" in response.json()["details"]


def test_list_products_includes_category_and_image_url(client, category, png_bytes):
    client.post("/products", data=_product_form(category.id, name="First"))
    client.post(
        "/products",
        data=_product_form(category.id, name="Second"),
        files={"image": ("second.jpg", png_bytes, "image/jpeg")},
    )

    response = client.get("/products")
    assert response.status_code == 200
    data = response.json()
    assert [item["name"] for item in data] == ["First", "Second"]
    assert all(item["category"]["name"] == "Lighting" for item in data)
    assert data[0]["image_url"] is None
    assert data[1]["image_url"].startswith("/storage/products/")


def test_get_product(client, category):
    created = client.post("/products", data=_product_form(category.id)).json()

    response = client.get(f"/products/{created['id']}")
    assert response.status_code == 200
    data = response.json()
    assert data["description"] == "Desk lamp"
    assert data["category"]["name"] == "Lighting"


def test_get_missing_product_returns_404(client):
    response = client.get("/products/999")
    assert response.status_code == 404
    assert response.json() == {"error": "Product not found."}


def test_update_product_with_new_image_replaces_blob(client, category, storage, png_bytes):
    created = client.post(
        "/products",
        data=_product_form(category.id),
        files={"image": ("old.png", png_bytes, "image/png")},
    ).json()
    old_key = created["image"]

    response = client.put(
        f"/products/{created['id']}",
        data=_product_form(category.id, name="Lamp v2"),
        files={"image": ("new.webp", png_bytes, "image/webp")},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Lamp v2"
    assert data["image"] != old_key
    assert data["image_url"] == f"/storage/{data['image']}"
    assert not storage.exists(old_key)
    assert storage.exists(data["image"])
    assert len(_stored_images(storage)) == 1


def test_update_product_without_image_keeps_existing_image(client, category, storage, png_bytes):
    created = client.post(
        "/products",
        data=_product_form(category.id),
        files={"image": ("lamp.png", png_bytes, "image/png")},
    ).json()

    response = client.put(
        f"/products/{created['id']}",
        json={"name": "Lamp", "description": "Brighter", "price": "21.00", "category_id": category.id},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["description"] == "Brighter"
    assert data["image"] == created["image"]
    assert storage.exists(created["image"])


def test_update_product_can_move_it_to_another_category(client, category):
    other = client.post("/categories", json={"name": "Outdoor"}).json()
    created = client.post("/products", data=_product_form(category.id)).json()

    response = client.put(f"/products/{created['id']}", data=_product_form(other["id"]))
    assert response.status_code == 200
    assert response.json()["category"]["name"] == "Outdoor"


def test_update_missing_product_returns_404(client, category):
    response = client.put("/products/999", data=_product_form(category.id))
    assert response.status_code == 404
    assert response.json() == {"error": "Product not found."}


def test_update_product_with_invalid_price_changes_nothing(client, category, db_session):
    created = client.post("/products", data=_product_form(category.id)).json()

    response = client.put(f"/products/{created['id']}", data=_product_form(category.id, price="-5"))
    assert response.status_code == 422
    assert "price" in response.json()["details"]

    db_session.expire_all()
    assert db_session.get(Product, created["id"]).price == Decimal("19.99")


def test_delete_product_removes_blob(client, category, storage, db_session, png_bytes):
    created = client.post(
        "/products",
        data=_product_form(category.id),
        files={"image": ("lamp.png", png_bytes, "image/png")},
    ).json()

    response = client.delete(f"/products/{created['id']}")
    assert response.status_code == 204
    assert not storage.exists(created["image"])
    assert _stored_images(storage) == []

    db_session.expire_all()
    assert db_session.get(Product, created["id"]) is None


def test_delete_missing_product_returns_404(client):
    response = client.delete("/products/999")
    assert response.status_code == 404
    assert response.json() == {"error": "Product not found."}


def test_bulk_create_products_from_json(client, category):
    payload = {
        "products": [
            {"name": f"Item {index}", "description": "Bulk", "price": f"{index}.50", "category_id": category.id}
            for index in range(3)
        ]
    }
    response = client.post("/products/bulk", json=payload)
    assert response.status_code == 201
    data = response.json()
    assert [item["name"] for item in data] == ["Item 0", "Item 1", "Item 2"]
    assert all(item["category"]["id"] == category.id for item in data)


def test_bulk_create_products_with_images(client, category, storage, png_bytes):
    data = {}
    for index in range(2):
        data[f"products[{index}][name]"] = f"Product {index}"
        data[f"products[{index}][description]"] = "With image"
        data[f"products[{index}][price]"] = "9.99"
        data[f"products[{index}][category_id]"] = str(category.id)
    files = {
        "products[0][image]": ("product1.jpg", png_bytes, "image/jpeg"),
        "products[1][image]": ("product2.jpg", png_bytes, "image/jpeg"),
    }

    response = client.post("/products/bulk", data=data, files=files)
    assert response.status_code == 201
    created = response.json()
    assert [item["name"] for item in created] == ["Product 0", "Product 1"]
    assert all(storage.exists(item["image"]) for item in created)
    assert len(_stored_images(storage)) == 2


def test_bulk_create_with_invalid_item_persists_nothing(client, category, storage, session_factory, png_bytes):
    data = {
        "products[0][name]": "Valid",
        "products[0][description]": "Fine",
        "products[0][price]": "1.00",
        "products[0][category_id]": str(category.id),
        "products[1][name]": "Invalid",
        "products[1][description]": "Negative price",
        "products[1][price]": "-1",
        "products[1][category_id]": str(category.id),
    }
    files = {"products[0][image]": ("valid.png", png_bytes, "image/png")}

    response = client.post("/products/bulk", data=data, files=files)
    assert response.status_code == 422
    assert "products.1.price" in response.json()["details"]
    assert _product_count(session_factory) == 0
    assert _stored_images(storage) == []


def test_bulk_create_reports_unknown_categories_per_item(client, category, session_factory):
    payload = {
        "products": [
            {"name": "Known", "description": "Ok", "price": "1", "category_id": category.id},
            {"name": "Unknown", "description": "Nope", "price": "1", "category_id": 999},
        ]
    }
    response = client.post("/products/bulk", json=payload)
    assert response.status_code == 422
    assert response.json()["details"] == {"products.1.category_id": ["The selected category id is invalid."]}
    assert _product_count(session_factory) == 0


def test_bulk_create_rejects_gaps_in_form_indices(client, category, session_factory):
    response = client.post(
        "/products/bulk",
        data={
            "products[0][name]": "Lamp",
            "products[0][description]": "Desk lamp",
            "products[0][price]": "1",
            "products[0][category_id]": str(category.id),
            "products[5][name]": "Shade",
            "products[5][description]": "Paper shade",
            "products[5][price]": "-1",
            "products[5][category_id]": str(category.id),
        },
    )
    assert response.status_code == 422
    assert response.json()["details"] == {"products": ["Indexes must be consecutive starting at 0."]}
    assert _product_count(session_factory) == 0


@pytest.mark.parametrize(
    ("price", "stored"),
    [("19.999", "20.00"), ("19.994", "19.99"), ("0.005", "0.01"), ("123456789.50", "123456789.50")],
)
def test_price_is_rounded_to_cents(client, category, db_session, price, stored):
    response = client.post("/products", data=_product_form(category.id, price=price))
    assert response.status_code == 201
    assert Decimal(str(response.json()["price"])) == Decimal(stored)

    db_session.expire_all()
    assert db_session.get(Product, response.json()["id"]).price == Decimal(stored)


def test_float_price_from_json_is_rounded(client, category):
    response = client.post(
        "/products",
        json={"name": "Lamp", "description": "Desk lamp", "price": 0.1 + 0.2, "category_id": category.id},
    )
    assert response.status_code == 201
    assert Decimal(str(response.json()["price"])) == Decimal("0.30")


def test_price_beyond_column_range_is_rejected(client, category, session_factory):
    response = client.post("/products", data=_product_form(category.id, price="10000000000000"))
    assert response.status_code == 422
    assert "price" in response.json()["details"]
    assert _product_count(session_factory) == 0


@pytest.mark.parametrize("method", ["get", "delete"])
def test_out_of_range_product_id_is_not_found(client, method):
    response = getattr(client, method)("/products/99999999999999999999")
    assert response.status_code == 404
    assert response.json() == {"error": "Product not found."}


def test_update_out_of_range_product_id_is_not_found(client, category):
    response = client.put("/products/99999999999999999999", data=_product_form(category.id))
    assert response.status_code == 404
    assert response.json() == {"error": "Product not found."}


def test_out_of_range_category_id_is_invalid(client, session_factory):
    response = client.post("/products", data=_product_form(99999999999999999999))
    assert response.status_code == 422
    assert response.json()["details"] == {"category_id": ["The selected category id is invalid."]}
    assert _product_count(session_factory) == 0


def test_bulk_out_of_range_category_id_is_reported_per_item(client, category):
    payload = {
        "products": [
            {"name": "Known", "description": "Ok", "price": "1", "category_id": category.id},
            {"name": "Huge", "description": "Nope", "price": "1", "category_id": -(2**70)},
        ]
    }
    response = client.post("/products/bulk", json=payload)
    assert response.status_code == 422
    assert response.json()["details"] == {"products.1.category_id": ["The selected category id is invalid."]}
