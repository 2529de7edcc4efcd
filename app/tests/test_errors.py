import logging

from app.core.database import get_db
from app.main import app


def test_unknown_route_is_wrapped_in_envelope(client):
    response = client.get("/api/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"code": 404, "message": "Not Found", "data": None}


def test_wrong_method_is_wrapped_in_envelope(client):
    response = client.delete("/api/categories")

    assert response.status_code == 405
    assert response.json()["code"] == 405


def test_validation_error_lists_fields(client):
    response = client.get("/api/products/not-a-number")

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid request parameters"
    assert any("product_id" in error for error in body["data"]["errors"])


def test_request_id_header_is_set_or_echoed(client):
    generated = client.get("/health")
    assert generated.headers["X-Request-ID"]

    echoed = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert echoed.headers["X-Request-ID"] == "abc123"


def test_not_found_resource(client):
    response = client.get("/api/products/12345")

    assert response.status_code == 404
    assert response.json()["message"] == "Product not found"


def test_unhandled_exception_is_logged_with_request_id(client, caplog):
    def broken_db():
        raise RuntimeError("database went away")

    app.dependency_overrides[get_db] = broken_db

    with caplog.at_level(logging.INFO, logger="app.main"):
        response = client.get("/api/categories", headers={"X-Request-ID": "req-500"})

    assert response.status_code == 500
    assert response.json() == {"code": 500, "message": "Internal server error", "data": None}
    assert response.headers["X-Request-ID"] == "req-500"
    assert "database went away" in caplog.text
    assert "[req-500] GET /api/categories 500" in caplog.text
