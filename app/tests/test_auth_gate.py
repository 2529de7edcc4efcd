from datetime import datetime, timedelta, timezone

from app.core.auth import TokenService


def test_missing_header_is_401(client):
    response = client.get("/api/users/profile")

    assert response.status_code == 401
    body = response.json()
    assert body["code"] == 401
    assert body["message"] == "Authorization header is required"
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_malformed_scheme_is_401(client, make_user, token_service):
    user = make_user()
    token = token_service.issue(user.user_id, user.username, user.role)

    for header in (f"Token {token}", token, "Bearer"):
        response = client.get("/api/users/profile", headers={"Authorization": header})
        assert response.status_code == 401
        assert response.json()["message"] == "Authorization header format must be Bearer {token}"


def test_expired_token_is_401(client, make_user, token_service):
    user = make_user()
    token = token_service.issue(user.user_id, user.username, user.role, now=datetime.now(timezone.utc) - timedelta(days=2))

    response = client.get("/api/users/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["message"] == "Token has expired"


def test_foreign_token_is_401(client, make_user):
    user = make_user()
    token = TokenService(secret="somebody-else").issue(user.user_id, user.username, user.role)

    response = client.get("/api/users/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"


def test_valid_token_passes(client, make_user, auth_headers):
    user = make_user()

    response = client.get("/api/users/profile", headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json()["data"]["username"] == user.username


def test_non_admin_on_admin_route_is_403(client, user_headers):
    response = client.post("/api/categories", json={"name": "Phones"}, headers=user_headers)

    assert response.status_code == 403
    assert response.json()["code"] == 403


def test_admin_route_without_token_is_401(client):
    response = client.post("/api/categories", json={"name": "Phones"})
    assert response.status_code == 401


def test_admin_passes_admin_gate(client, admin_headers):
    response = client.post("/api/categories", json={"name": "Phones"}, headers=admin_headers)
    assert response.status_code == 201


def test_optional_auth_never_rejects(client):
    assert client.get("/api/coupons").status_code == 200
    assert client.get("/api/coupons", headers={"Authorization": "Bearer broken"}).status_code == 200
    assert client.get("/api/coupons", headers={"Authorization": "Basic abc"}).status_code == 200
