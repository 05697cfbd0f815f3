import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from app.main import app
from app.services.square_service import SquareService, get_square_service
from conftest import TEST_USER, run

CREDENTIALS = {"square_app_id": "sq0idp-app", "square_app_secret": "sq0csp-secret"}


def use_square(handler):
    service = SquareService(base_url="https://square.test", transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_square_service] = lambda: service
    return service


@pytest.fixture
def stored_credentials(db):
    run(db["users"].insert_one({"user_id": TEST_USER.uid, **CREDENTIALS}))


def test_start_oauth_stores_credentials_and_builds_url(client, user_doc):
    response = client.post("/api/v1/square/oauth/start", json=CREDENTIALS)

    assert response.status_code == 200
    url = urlparse(response.json()["authorization_url"])
    query = parse_qs(url.query)
    assert url.path == "/oauth2/authorize"
    assert query["client_id"] == ["sq0idp-app"]
    assert query["state"] == [TEST_USER.uid]
    assert query["response_type"] == ["code"]
    assert "ITEMS_READ" in query["scope"][0].split(" ")
    assert response.cookies.get("square_oauth_state") == TEST_USER.uid

    doc = user_doc()
    assert doc["square_app_id"] == "sq0idp-app"
    assert doc["square_app_secret"] == "sq0csp-secret"


def test_credentials_empty_without_user(client):
    response = client.get("/api/v1/square/credentials")

    assert response.json() == {"square_app_id": None, "square_app_secret": None}


def test_credentials_round_trip(client):
    client.post("/api/v1/square/oauth/start", json=CREDENTIALS)

    assert client.get("/api/v1/square/credentials").json() == CREDENTIALS


def test_oauth_status_requires_both_tokens(client, db):
    assert client.get("/api/v1/square/oauth/status").json() == {"is_connected": False}

    run(db["users"].insert_one({"user_id": TEST_USER.uid, "square_access_token": "EAAA"}))
    assert client.get("/api/v1/square/oauth/status").json() == {"is_connected": False}

    run(db["users"].update_one({"user_id": TEST_USER.uid}, {"$set": {"square_refresh_token": "EQAA"}}))
    assert client.get("/api/v1/square/oauth/status").json() == {"is_connected": True}


def test_callback_exchanges_code(client, stored_credentials, user_doc):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={
            "access_token": "EAAA-access",
            "refresh_token": "EQAA-refresh",
            "merchant_id": "ML123",
            "expires_at": "2030-01-01T00:00:00Z",
        })

    use_square(handler)

    response = client.get(
        "/api/square-callback",
        params={"code": "auth-code", "state": TEST_USER.uid},
        follow_redirects=False,
    )

    assert response.status_code == 302
    assert response.headers["location"] == "/dashboard/settings"

    body = json.loads(requests[0].content)
    assert requests[0].url.path == "/oauth2/token"
    assert body["grant_type"] == "authorization_code"
    assert body["code"] == "auth-code"
    assert body["client_id"] == "sq0idp-app"
    assert body["client_secret"] == "sq0csp-secret"

    doc = user_doc()
    assert doc["square_access_token"] == "EAAA-access"
    assert doc["square_refresh_token"] == "EQAA-refresh"
    assert doc["square_merchant_id"] == "ML123"
    assert client.get("/api/v1/square/oauth/status").json() == {"is_connected": True}


def test_callback_rejected_code(client, stored_credentials, user_doc):
    use_square(lambda request: httpx.Response(401, json={"errors": [{"code": "UNAUTHORIZED"}]}))

    response = client.get("/api/square-callback", params={"code": "bad", "state": TEST_USER.uid})

    assert response.status_code == 400
    assert response.text == "Failed to retrieve access token."
    assert "square_access_token" not in user_doc()


def test_callback_network_failure(client, stored_credentials):
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    use_square(handler)

    response = client.get("/api/square-callback", params={"code": "c", "state": TEST_USER.uid})

    assert response.status_code == 500
    assert response.text == "Internal server error."


def test_callback_with_oauth_error(client):
    response = client.get(
        "/api/square-callback",
        params={"error": "access_denied", "error_description": "user denied"},
    )

    assert response.status_code == 400
    assert response.text == 'OAuth error: "user denied"'


def test_callback_without_code(client):
    response = client.get("/api/square-callback")

    assert response.status_code == 400
    assert response.text == "Invalid callback request."


def test_callback_state_must_match_cookie(client, stored_credentials):
    use_square(lambda request: httpx.Response(500))
    client.cookies.set("square_oauth_state", "someone-else")

    response = client.get("/api/square-callback", params={"code": "c", "state": TEST_USER.uid})

    assert response.status_code == 400
    assert response.text == "OAuth state mismatch."


def test_catalog_search_requires_connection(client):
    response = client.get("/api/v1/square/catalog/search", params={"q": "latte"})

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_catalog_search_resolves_images(client, db):
    run(db["users"].insert_one({"user_id": TEST_USER.uid, "square_access_token": "EAAA"}))

    def handler(request):
        assert request.headers["authorization"] == "Bearer EAAA"
        if request.url.path == "/v2/catalog/search-catalog-items":
            assert json.loads(request.content) == {"text_filter": "latte", "limit": 5}
            return httpx.Response(200, json={"items": [
                {"id": "ITEM1", "type": "ITEM", "item_data": {
                    "name": "Oat Latte", "description": "Oat milk", "image_ids": ["IMG1"]}},
                {"id": "ITEM2", "type": "ITEM", "item_data": {"name": "Iced Latte"}},
                {"id": "VAR1", "type": "ITEM_VARIATION"},
            ]})
        if request.url.path == "/v2/catalog/object/IMG1":
            return httpx.Response(200, json={"object": {
                "id": "IMG1", "type": "IMAGE", "image_data": {"url": "https://img.test/latte.png"}}})
        return httpx.Response(404)

    use_square(handler)

    response = client.get("/api/v1/square/catalog/search", params={"q": "latte"})

    assert response.status_code == 200
    assert response.json() == [
        {"id": "ITEM1", "name": "Oat Latte", "description": "Oat milk", "image": "https://img.test/latte.png"},
        {"id": "ITEM2", "name": "Iced Latte", "description": None, "image": ""},
    ]


def test_catalog_search_vendor_failure_returns_null(client, db):
    run(db["users"].insert_one({"user_id": TEST_USER.uid, "square_access_token": "EAAA"}))
    use_square(lambda request: httpx.Response(500, json={"errors": []}))

    response = client.get("/api/v1/square/catalog/search", params={"q": "latte"})

    assert response.status_code == 200
    assert response.json() is None


def test_callback_code_takes_precedence_over_error(client, stored_credentials, user_doc):
    use_square(lambda request: httpx.Response(200, json={
        "access_token": "EAAA-access",
        "refresh_token": "EQAA-refresh",
        "merchant_id": "ML123",
    }))

    response = client.get(
        "/api/square-callback",
        params={"code": "auth-code", "state": TEST_USER.uid, "error": "access_denied"},
        follow_redirects=False,
    )

    assert response.status_code == 302
    assert user_doc()["square_access_token"] == "EAAA-access"
