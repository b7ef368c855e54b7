from decimal import Decimal

import pytest

ORDERS = "/api/manufacturing/production-orders"
BOMS = "/api/manufacturing/boms"


@pytest.fixture
def order_body(widget_bom, make_work_center):
    wc = make_work_center()

    def _body(**overrides):
        body = {
            "bom_id": widget_bom["bom"]["id"],
            "quantity": "2",
            "planned_start_date": "2026-01-10T08:00:00Z",
            "planned_end_date": "2026-01-12T17:00:00Z",
            "operations": [{"work_center_id": wc["id"], "name": "Assemble", "planned_duration": "4"}],
        }
        body.update(overrides)
        return body

    return _body


def _lines(materials):
    return [(m["product_id"], Decimal(m["required_quantity"]), m["unit_of_measure"]) for m in materials]


class TestCreateOrder:
    def test_materials_derived_from_bom(self, client, widget_bom, order_body):
        resp = client.post(ORDERS, json=order_body())
        assert resp.status_code == 201, resp.text
        body = resp.json()
        assert body["order_number"].startswith("PO-")
        assert body["product_id"] == widget_bom["widget"]["id"]
        assert body["status"] == "Planned"
        assert _lines(body["materialConsumptions"]) == [
            (widget_bom["steel"]["id"], Decimal("20"), "kg"),
            (widget_bom["screw"]["id"], Decimal("50"), "Each"),
        ]
        assert [m["line_number"] for m in body["materialConsumptions"]] == [1, 2]
        assert body["operations"][0]["sequence"] == 1

    def test_caller_supplied_materials_are_stored(self, client, widget_bom, order_body):
        steel = widget_bom["steel"]
        materials = [{"product_id": steel["id"], "required_quantity": "21", "unit_of_measure": "kg"}]
        body = client.post(ORDERS, json=order_body(materials=materials)).json()
        assert _lines(body["materialConsumptions"]) == [(steel["id"], Decimal("21"), "kg")]

    def test_end_before_start_is_rejected(self, client, order_body):
        resp = client.post(ORDERS, json=order_body(planned_end_date="2026-01-09T00:00:00Z"))
        assert resp.status_code == 400
        assert resp.json()["field"] == "planned_end_date"

    def test_no_operations_is_rejected(self, client, order_body):
        resp = client.post(ORDERS, json=order_body(operations=[]))
        assert resp.status_code == 400
        assert resp.json()["field"] == "operations"

    def test_zero_quantity_is_rejected(self, client, order_body):
        resp = client.post(ORDERS, json=order_body(quantity="0"))
        assert resp.status_code == 400
        assert resp.json()["field"] == "quantity"

    def test_unknown_bom_is_rejected(self, client, order_body):
        resp = client.post(ORDERS, json=order_body(bom_id="missing"))
        assert resp.status_code == 400
        assert resp.json()["field"] == "bom_id"

    def test_inactive_bom_is_rejected(self, client, widget_bom, order_body):
        client.post(f"{BOMS}/{widget_bom['bom']['id']}/toggle-active")
        resp = client.post(ORDERS, json=order_body())
        assert resp.status_code == 400
        assert resp.json()["field"] == "bom_id"

    def test_product_must_match_bom(self, client, widget_bom, order_body):
        resp = client.post(ORDERS, json=order_body(product_id=widget_bom["steel"]["id"]))
        assert resp.status_code == 400
        assert resp.json()["field"] == "product_id"

    def test_unknown_work_center_is_rejected(self, client, order_body):
        resp = client.post(ORDERS, json=order_body(operations=[{"work_center_id": "missing"}]))
        assert resp.status_code == 400
        assert resp.json()["field"] == "operations[0].work_center_id"

    def test_duplicate_order_number_is_a_conflict(self, client, order_body):
        assert client.post(ORDERS, json=order_body(order_number="PO-1")).status_code == 201
        resp = client.post(ORDERS, json=order_body(order_number="PO-1"))
        assert resp.status_code == 409
        assert resp.json()["field"] == "order_number"


class TestOrderDetail:
    def test_detail_shape(self, client, order_body):
        order = client.post(ORDERS, json=order_body()).json()
        body = client.get(f"{ORDERS}/{order['id']}").json()
        assert {"operations", "materialConsumptions", "qualityInspections"} <= body.keys()
        assert body["qualityInspections"] == []

    def test_snapshot_is_unaffected_by_later_bom_edits(self, client, widget_bom, order_body, make_product, add_item):
        order = client.post(ORDERS, json=order_body()).json()
        add_item(widget_bom["bom"]["id"], make_product("Glue")["id"], "1")
        body = client.get(f"{ORDERS}/{order['id']}").json()
        assert len(body["materialConsumptions"]) == 2

    def test_unknown_order_is_404(self, client):
        assert client.get(f"{ORDERS}/missing").status_code == 404

    def test_list_and_filter_by_status(self, client, order_body):
        order = client.post(ORDERS, json=order_body()).json()
        assert [o["id"] for o in client.get(ORDERS).json()] == [order["id"]]
        assert client.get(ORDERS, params={"status": "Completed"}).json() == []


class TestUpdateOrder:
    def test_status_and_progress(self, client, order_body):
        order = client.post(ORDERS, json=order_body()).json()
        resp = client.patch(f"{ORDERS}/{order['id']}", json={"status": "In Progress", "completed_quantity": "1"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "In Progress"
        assert Decimal(body["completed_quantity"]) == Decimal("1")

    def test_empty_patch_is_rejected(self, client, order_body):
        order = client.post(ORDERS, json=order_body()).json()
        assert client.patch(f"{ORDERS}/{order['id']}", json={}).status_code == 400

    def test_actual_end_before_start_is_rejected(self, client, order_body):
        order = client.post(ORDERS, json=order_body()).json()
        resp = client.patch(f"{ORDERS}/{order['id']}", json={
            "actual_start_date": "2026-01-11T00:00:00Z",
            "actual_end_date": "2026-01-10T00:00:00Z",
        })
        assert resp.status_code == 400
        assert resp.json()["field"] == "actual_end_date"

    def test_unknown_status_is_rejected(self, client, order_body):
        order = client.post(ORDERS, json=order_body()).json()
        assert client.patch(f"{ORDERS}/{order['id']}", json={"status": "Exploded"}).status_code == 400


def test_preview_materials(client, widget_bom):
    resp = client.post(f"{ORDERS}/preview-materials", json={"bom_id": widget_bom["bom"]["id"], "quantity": "4"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["product_id"] == widget_bom["widget"]["id"]
    assert [Decimal(m["required_quantity"]) for m in body["materials"]] == [Decimal("40"), Decimal("100")]


def test_quality_inspection(client, order_body):
    order = client.post(ORDERS, json=order_body()).json()
    resp = client.post(f"{ORDERS}/{order['id']}/quality-inspections", json={
        "result": "Pass", "quantity": "2", "quantity_passed": "2", "inspected_by": "qa",
    })
    assert resp.status_code == 201
    inspections = client.get(f"{ORDERS}/{order['id']}").json()["qualityInspections"]
    assert [i["result"] for i in inspections] == ["Pass"]


class TestQuantityScale:
    def test_order_quantity_finer_than_six_places_is_rejected(self, client, order_body):
        resp = client.post(ORDERS, json=order_body(quantity="1.0000001"))
        assert resp.status_code == 400
        assert resp.json()["field"] == "quantity"

    def test_supplied_material_finer_than_six_places_is_rejected(self, client, widget_bom, order_body):
        materials = [{"product_id": widget_bom["steel"]["id"], "required_quantity": "0.0000001", "unit_of_measure": "kg"}]
        resp = client.post(ORDERS, json=order_body(materials=materials))
        assert resp.status_code == 400
        assert resp.json()["field"] == "materials[0].required_quantity"

    def test_preview_matches_stored_lines(self, client, make_product, make_bom, add_item, make_work_center):
        bom = make_bom(make_product("Coating")["id"])
        add_item(bom["id"], make_product("Pigment")["id"], "0.000003", "kg")
        preview = client.post(f"{ORDERS}/preview-materials", json={"bom_id": bom["id"], "quantity": "0.5"}).json()

        order = client.post(ORDERS, json={
            "bom_id": bom["id"],
            "quantity": "0.5",
            "planned_start_date": "2026-01-10T08:00:00Z",
            "planned_end_date": "2026-01-10T17:00:00Z",
            "operations": [{"work_center_id": make_work_center()["id"]}],
        }).json()
        stored = client.get(f"{ORDERS}/{order['id']}").json()["materialConsumptions"]

        assert _lines(preview["materials"]) == _lines(stored)
        assert Decimal(stored[0]["required_quantity"]) == Decimal("0.000002")

    def test_line_rounding_to_zero_is_rejected(self, client, make_product, make_bom, add_item, make_work_center):
        bom = make_bom(make_product("Coating")["id"])
        add_item(bom["id"], make_product("Pigment")["id"], "0.000001", "kg")
        resp = client.post(ORDERS, json={
            "bom_id": bom["id"],
            "quantity": "0.4",
            "planned_start_date": "2026-01-10T08:00:00Z",
            "planned_end_date": "2026-01-10T17:00:00Z",
            "operations": [{"work_center_id": make_work_center()["id"]}],
        })
        assert resp.status_code == 400
        assert resp.json()["field"] == "quantity"


def test_scrap_rate_does_not_change_required_quantity(client, make_product, make_bom, add_item):
    bom = make_bom(make_product("Widget")["id"])
    add_item(bom["id"], make_product("Steel", uom="kg")["id"], "10", "kg", scrap_rate="20")
    body = client.post(f"{ORDERS}/preview-materials", json={"bom_id": bom["id"], "quantity": "3"}).json()
    assert Decimal(body["materials"][0]["required_quantity"]) == Decimal("30")


def test_list_limit_is_bounded(client):
    assert client.get(ORDERS, params={"limit": 0}).status_code == 400
    assert client.get(ORDERS, params={"limit": 5000}).status_code == 400
    assert client.get(ORDERS, params={"limit": 10}).status_code == 200
