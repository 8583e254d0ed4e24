"""User Routes — sync, current profile, heartbeat and search over HTTP."""

from tests.services.identity_tokens import auth_headers, make_token


async def test_sync_creates_profile_and_me_returns_it(client):
    headers = auth_headers("auth|alice")
    response = await client.post(
        "/api/v1/users/sync",
        json={"externalId": "auth|alice", "name": " Alice ", "email": "a@example.com"},
        headers=headers,
    )
    assert response.status_code == 200
    user_id = response.json()["userId"]

    me = await client.get("/api/v1/users/me", headers=headers)
    assert me.status_code == 200
    body = me.json()
    assert body["id"] == user_id
    assert body["name"] == "Alice"
    assert body["externalId"] == "auth|alice"
    assert body["lastSeenAt"] == 1_000


async def test_sync_without_token_is_401_with_challenge(client):
    response = await client.post(
        "/api/v1/users/sync", json={"externalId": "auth|alice", "name": "Alice"},
    )
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


async def test_sync_for_someone_else_is_403(client):
    response = await client.post(
        "/api/v1/users/sync",
        json={"externalId": "auth|bob", "name": "Bob"},
        headers=auth_headers("auth|alice"),
    )
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


async def test_sync_with_blank_name_is_400(client):
    response = await client.post(
        "/api/v1/users/sync",
        json={"externalId": "auth|alice", "name": "   "},
        headers=auth_headers("auth|alice"),
    )
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"]


async def test_me_degrades_to_null(client):
    assert (await client.get("/api/v1/users/me")).json() is None
    response = await client.get("/api/v1/users/me", headers=auth_headers("auth|nobody"))
    assert response.status_code == 200
    assert response.json() is None


async def test_invalid_token_is_401_even_on_lenient_reads(client):
    response = await client.get(
        "/api/v1/users/me",
        headers={"Authorization": f"Bearer {make_token('auth|x', secret='wrong')}"},
    )
    assert response.status_code == 401


async def test_heartbeat_creates_profile_from_token_claims(client, clock):
    token = make_token("auth|carol", name="Carol")
    headers = {"Authorization": f"Bearer {token}"}
    clock.advance(4_000)

    response = await client.post("/api/v1/users/me/presence", headers=headers)
    assert response.json() == {"lastSeenAt": 5_000}
    me = await client.get("/api/v1/users/me", headers=headers)
    assert me.json()["name"] == "Carol"


async def test_heartbeat_without_token_is_a_no_op(client):
    response = await client.post("/api/v1/users/me/presence")
    assert response.status_code == 200
    assert response.json() == {"lastSeenAt": None}


async def test_search_reports_online_state(client, clock, make_user):
    alice = await make_user("Alice")
    await make_user("Bob", last_seen_at=clock.now - 60_000)
    await make_user("Bobbie")

    response = await client.get(
        "/api/v1/users/search", params={"q": "bob"}, headers=auth_headers(alice),
    )
    assert response.status_code == 200
    results = {row["name"]: row for row in response.json()}
    assert set(results) == {"Bob", "Bobbie"}
    assert results["Bob"]["isOnline"] is False
    assert results["Bobbie"]["isOnline"] is True
    assert "externalId" not in results["Bob"]


async def test_search_without_profile_is_empty(client, make_user):
    await make_user("Bob")
    response = await client.get(
        "/api/v1/users/search", headers=auth_headers("auth|ghost"),
    )
    assert response.json() == []
