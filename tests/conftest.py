"""
Shared fixtures: an in-memory SQLite database per test and a TestClient whose
``get_db`` dependency is bound to it.
"""

import os

# Must be set before main/app.db.session are imported.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_CREATE_ALL", "0")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db import models  # noqa: F401
from app.db.session import get_db
from main import app


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def db(session_factory):
    """Session for assertions; seed data through the API instead."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_product(client):
    counter = {"n": 0}

    def _make(name: str = "Part", price: str = "0", uom: str = "Each", sku: str | None = None) -> dict:
        counter["n"] += 1
        resp = client.post("/api/products", json={
            "sku": sku or f"SKU-{counter['n']:04d}",
            "name": name,
            "price": price,
            "unit_of_measure": uom,
        })
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make


@pytest.fixture
def make_work_center(client):
    def _make(name: str = "Assembly Line 1") -> dict:
        resp = client.post("/api/manufacturing/work-centers", json={"name": name, "capacity": "8"})
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make


@pytest.fixture
def make_bom(client):
    def _make(product_id: str, version: str = "1.0", name: str = "Widget BOM", **extra) -> dict:
        body = {"product_id": product_id, "version": version, "name": name}
        body.update(extra)
        resp = client.post("/api/manufacturing/boms", json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make


@pytest.fixture
def add_item(client):
    def _add(bom_id: str, component_id: str, quantity: str, uom: str = "Each", **extra) -> dict:
        body = {"component_id": component_id, "quantity": quantity, "unit_of_measure": uom}
        body.update(extra)
        resp = client.post(f"/api/manufacturing/boms/{bom_id}/items", json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _add


@pytest.fixture
def widget_bom(make_product, make_bom, add_item):
    """Widget BOM: 10 kg steel + 25 screws per unit."""
    widget = make_product("Widget", price="100")
    steel = make_product("Steel", price="2.50", uom="kg")
    screw = make_product("Screw", price="0.10")
    bom = make_bom(widget["id"])
    add_item(bom["id"], steel["id"], "10", "kg")
    add_item(bom["id"], screw["id"], "25", "Each")
    return {"bom": bom, "widget": widget, "steel": steel, "screw": screw}
