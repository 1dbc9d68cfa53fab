# tennis_assistant/tests/test_routes.py
"""
Blueprint tests against the app factory, using the fake LLM from conftest.
"""

from __future__ import annotations

from typing import Any, Dict

from tennis_assistant.llm_service import LLMServiceError


def _chat(client, message: Any, session_id: str = "web-1", **extra):
    body: Dict[str, Any] = {"message": message, **extra}
    return client.post("/api/chat", json=body, headers={"X-Session-Id": session_id})


def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    data = res.get_json()
    assert data["status"] == "OK"
    assert data["productInfoLoaded"] is True
    assert data["llmConfigured"] is True
    assert data["activeSessions"] == 0
    assert data["maxChatsPerSession"] == 3


def test_chat_starts_flow(client):
    res = _chat(client, "vorrei consigli per una racchetta")
    assert res.status_code == 200
    body = res.get_json()
    assert body["currentFlow"] == "product_consultation"
    assert body["flowStep"] == 0
    assert body["sessionId"] == "web-1"


def test_chat_defaults_session_id(client, app):
    res = client.post("/api/chat", json={"message": "ciao"})
    assert res.status_code == 200
    assert app.extensions["registry"].peek("default") is not None


def test_chat_rejects_empty_message(client):
    assert _chat(client, "   ").status_code == 400
    assert _chat(client, None).status_code == 400
    assert client.post("/api/chat", data="not json", content_type="text/plain").status_code == 400


def test_chat_llm_failure_is_500(client, fake_llm):
    fake_llm.error = LLMServiceError("boom")
    res = _chat(client, "ciao")
    assert res.status_code == 500
    assert res.get_json()["error"] is True


def test_session_info_unknown_session(client):
    res = client.get("/api/session-info", headers={"X-Session-Id": "nobody"})
    body = res.get_json()
    assert res.status_code == 200
    assert body["isNew"] is True
    assert body["tokenCount"] == 0
    assert body["userPreferences"] == {
        "level": None, "budget": None, "playingSurface": None, "playingStyle": None,
    }


def test_session_info_is_idempotent(client):
    _chat(client, "ciao")
    headers = {"X-Session-Id": "web-1"}
    first = client.get("/api/session-info", headers=headers).get_json()
    second = client.get("/api/session-info", headers=headers).get_json()

    assert first == second
    assert first["tokenCount"] == 150
    assert "isNew" not in first


def test_session_info_does_not_create_session(client, app):
    client.get("/api/session-info", headers={"X-Session-Id": "ghost"})
    assert app.extensions["registry"].peek("ghost") is None


def test_reset_session(client):
    _chat(client, "consulenza")
    res = client.post("/api/reset-session", headers={"X-Session-Id": "web-1"})
    body = res.get_json()
    assert res.status_code == 200
    assert body["success"] is True
    assert body["chatInfo"]["currentChat"] == 1

    info = client.get("/api/session-info", headers={"X-Session-Id": "web-1"}).get_json()
    assert info["chatCount"] == 1
    assert info["currentFlow"] is None
    assert info["currentChatCost"] == 0


def test_reset_unknown_session(client, app):
    res = client.post("/api/reset-session", headers={"X-Session-Id": "nobody"})
    assert res.get_json() == {"success": True, "message": "Nuova sessione creata"}
    assert app.extensions["registry"].peek("nobody") is None


def test_product_info(client):
    data = client.get("/api/product-info").get_json()
    assert data["store"]["nome"] == "TennisShop Pro"
    assert len(data["prodotti"]) == 16


def test_product_search(client):
    res = client.get("/api/products/search?q=babolat")
    body = res.get_json()
    assert res.status_code == 200
    assert body["count"] == len(body["products"]) > 0
    assert all("babolat" in (p["name"] + p["description"]).lower() for p in body["products"])
    assert client.get("/api/products/search").status_code == 400


def test_product_recommendations(client):
    res = client.post(
        "/api/products/recommendations",
        json={"userPreferences": {"level": "principiante", "budget": "under50"}},
    )
    body = res.get_json()
    assert res.status_code == 200
    assert 0 < body["count"] <= 6
    assert all(p["price"] <= 50 for p in body["products"])
    prices = [p["price"] for p in body["products"]]
    assert prices == sorted(prices)


def test_cors_allows_session_header(client):
    res = client.options(
        "/api/chat",
        headers={
            "Origin": "http://localhost:8080",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "X-Session-Id",
        },
    )
    assert res.headers.get("Access-Control-Allow-Origin") in ("*", "http://localhost:8080")
    assert "x-session-id" in res.headers.get("Access-Control-Allow-Headers", "").lower()


def test_unknown_endpoint_is_json_404(client):
    res = client.get("/api/nope")
    assert res.status_code == 404
    assert res.get_json()["error"] == "Endpoint not found"


def test_force_new_session_requires_boolean(client, app):
    _chat(client, "consulenza")
    registry = app.extensions["registry"]

    _chat(client, "ciao", forceNewSession="false")
    assert registry.peek("web-1").chat_count == 0

    _chat(client, "ciao", forceNewSession=True)
    assert registry.peek("web-1").chat_count == 1


def test_json_keeps_insertion_order(client):
    body = _chat(client, "ciao").get_json()
    assert list(body)[0] == "response"
