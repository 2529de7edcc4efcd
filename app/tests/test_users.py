from app.user.models import Address


ADDRESS = {
    "name": "Alice",
    "phone": "13800000000",
    "province": "Zhejiang",
    "city": "Hangzhou",
    "district": "Xihu",
    "detail": "1 Lake Road",
}


def create_address(client, headers, **overrides):
    payload = dict(ADDRESS, **overrides)
    response = client.post("/api/addresses", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()["data"]


def defaults_of(db_session, user_id):
    db_session.expire_all()
    return [
        a.address_id
        for a in db_session.query(Address).filter(Address.user_id == user_id, Address.alive(), Address.is_default.is_(True))
    ]


def test_profile_update_and_cache_invalidation(client, make_user, auth_headers, cache):
    user = make_user()
    headers = auth_headers(user)

    assert client.get("/api/users/profile", headers=headers).json()["data"]["nickname"] is None
    assert f"user:info:{user.user_id}" in cache.data

    response = client.put("/api/users/profile", json={"nickname": "Ally"}, headers=headers)
    assert response.status_code == 200
    assert f"user:info:{user.user_id}" not in cache.data

    assert client.get("/api/users/profile", headers=headers).json()["data"]["nickname"] == "Ally"


def test_profile_update_rejects_taken_phone(client, make_user, auth_headers):
    make_user(username="bob", phone="13911111111")
    headers = auth_headers(make_user())

    response = client.put("/api/users/profile", json={"phone": "13911111111"}, headers=headers)
    assert response.status_code == 400


def test_change_password(client, make_user, auth_headers):
    headers = auth_headers(make_user())

    wrong = client.put("/api/users/password", json={"old_password": "nope", "new_password": "newsecret"}, headers=headers)
    assert wrong.status_code == 400

    ok = client.put("/api/users/password", json={"old_password": "secret123", "new_password": "newsecret"}, headers=headers)
    assert ok.status_code == 200

    login = client.post("/api/auth/login", json={"username": "alice", "password": "newsecret"})
    assert login.status_code == 200


def test_first_address_becomes_default(client, make_user, auth_headers):
    headers = auth_headers(make_user())

    first = create_address(client, headers)
    second = create_address(client, headers)

    assert first["is_default"] is True
    assert second["is_default"] is False


def test_new_default_address_leaves_exactly_one_default(client, db_session, make_user, auth_headers):
    user = make_user()
    headers = auth_headers(user)
    first = create_address(client, headers)

    second = create_address(client, headers, is_default=True)

    assert defaults_of(db_session, user.user_id) == [second["address_id"]]
    listed = client.get("/api/addresses", headers=headers).json()["data"]
    assert [a["address_id"] for a in listed if a["is_default"]] == [second["address_id"]]
    assert first["address_id"] in [a["address_id"] for a in listed]


def test_set_default_switches_default(client, db_session, make_user, auth_headers):
    user = make_user()
    headers = auth_headers(user)
    first = create_address(client, headers)
    second = create_address(client, headers)

    response = client.put(f"/api/addresses/{second['address_id']}/default", headers=headers)

    assert response.status_code == 200
    assert defaults_of(db_session, user.user_id) == [second["address_id"]]

    client.put(f"/api/addresses/{first['address_id']}", json={"is_default": True}, headers=headers)
    assert defaults_of(db_session, user.user_id) == [first["address_id"]]


def test_defaults_are_per_user(client, db_session, make_user, auth_headers):
    alice, bob = make_user(), make_user(username="bob")
    create_address(client, auth_headers(alice))
    create_address(client, auth_headers(bob), is_default=True)

    assert len(defaults_of(db_session, alice.user_id)) == 1
    assert len(defaults_of(db_session, bob.user_id)) == 1


def test_deleting_default_hands_over_to_latest(client, db_session, make_user, auth_headers):
    user = make_user()
    headers = auth_headers(user)
    first = create_address(client, headers)
    second = create_address(client, headers)
    third = create_address(client, headers)

    assert client.delete(f"/api/addresses/{first['address_id']}", headers=headers).status_code == 200

    assert defaults_of(db_session, user.user_id) == [third["address_id"]]
    listed = [a["address_id"] for a in client.get("/api/addresses", headers=headers).json()["data"]]
    assert first["address_id"] not in listed
    assert second["address_id"] in listed
    assert client.get(f"/api/addresses/{first['address_id']}", headers=headers).status_code == 404


def test_other_users_address_is_not_found(client, make_user, auth_headers):
    owner_headers = auth_headers(make_user())
    intruder_headers = auth_headers(make_user(username="mallory"))
    address = create_address(client, owner_headers)

    url = f"/api/addresses/{address['address_id']}"
    assert client.get(url, headers=intruder_headers).status_code == 404
    assert client.put(url, json={"city": "Elsewhere"}, headers=intruder_headers).status_code == 404
    assert client.delete(url, headers=intruder_headers).status_code == 404
    assert client.get(url, headers=owner_headers).status_code == 200


def test_change_password_rejects_new_password_over_byte_limit(client, make_user, auth_headers):
    headers = auth_headers(make_user())

    response = client.put(
        "/api/users/password", json={"old_password": "secret123", "new_password": "密" * 30}, headers=headers
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request parameters"
