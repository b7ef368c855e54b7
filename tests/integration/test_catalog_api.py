from decimal import Decimal


def test_create_and_fetch_product(client):
    resp = client.post("/api/products", json={"sku": "STL-1", "name": "Steel", "price": "2.50", "unit_of_measure": "kg"})
    assert resp.status_code == 201
    product = resp.json()
    fetched = client.get(f"/api/products/{product['id']}").json()
    assert fetched["sku"] == "STL-1"
    assert Decimal(fetched["price"]) == Decimal("2.50")


def test_duplicate_sku_is_a_conflict(client, make_product):
    make_product(sku="DUP")
    resp = client.post("/api/products", json={"sku": "DUP", "name": "Other"})
    assert resp.status_code == 409
    assert resp.json()["field"] == "sku"


def test_negative_price_is_rejected(client):
    resp = client.post("/api/products", json={"sku": "NEG", "name": "Bad", "price": "-1"})
    assert resp.status_code == 400
    assert resp.json()["field"] == "price"


def test_unknown_product_is_404(client):
    assert client.get("/api/products/missing").status_code == 404


def test_work_center_gets_generated_code(client, make_work_center):
    wc = make_work_center("Welding")
    assert wc["code"].startswith("WC-")
    listed = client.get("/api/manufacturing/work-centers").json()
    assert [w["id"] for w in listed] == [wc["id"]]


def test_request_id_is_echoed(client):
    resp = client.get("/health", headers={"X-Request-Id": "abc-123"})
    assert resp.status_code == 200
    assert resp.headers["X-Request-Id"] == "abc-123"
