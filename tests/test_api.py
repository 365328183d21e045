import json
from dataclasses import replace
from datetime import date, timedelta

import httpx
import pytest

from journal import crud
from journal.config import get_settings
from journal.errors import PersistenceError
from journal.models import InsightRecord
from journal.routes.insights import get_llm_transport
from journal.main import app

TRADE = {
    "ticker": "aapl",
    "entry_price": 100,
    "exit_price": 110,
    "size": 10,
    "confidence": 4,
    "setup_tag": "Breakout",
    "emotion_tag": "Calm",
    "notes": "Opening range breakout.",
    "trade_date": "2024-03-01",
}


def add_trade(client, headers, **overrides):
    response = client.post("/trades", json={**TRADE, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["trade"]


class TestAuthentication:
    def test_missing_token(self, client):
        response = client.post("/generate-insights")
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_wrong_secret(self, client, headers_for):
        headers = headers_for("user-1", secret="other-secret")
        response = client.post("/generate-insights", headers=headers)
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_expired_token(self, client, headers_for):
        headers = headers_for("user-1", expires_in=-60)
        assert client.get("/trades", headers=headers).status_code == 401

    def test_cors_preflight(self, client):
        response = client.options(
            "/generate-insights",
            headers={
                "Origin": "https://journal.example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "authorization, content-type",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert "POST" in response.headers["access-control-allow-methods"]


class TestGenerateInsights:
    def test_no_trades(self, client, auth_headers):
        response = client.post("/generate-insights", headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"error": "No trades found. Add some trades to generate insights."}

    def test_generates_and_stores_rule_based_insights(self, client, auth_headers, db_session):
        add_trade(client, auth_headers, exit_price=150)
        add_trade(client, auth_headers, exit_price=130, setup_tag="Pullback")

        response = client.post("/generate-insights", headers=auth_headers)
        assert response.status_code == 200
        insights = response.json()["insights"]
        assert insights[0] == {
            "type": "performance",
            "title": "Strong Trading Performance",
            "content": (
                "You've completed 2 trades with a 100% win rate, generating $800 in total P/L. "
                "Your consistent profitability shows good discipline and strategy execution."
            ),
            "severity": "success",
        }
        assert [i["title"] for i in insights] == [
            "Strong Trading Performance",
            "Setup Performance Standouts",
            "Excellent Win Rate Achievement",
        ]

        stored = db_session.query(InsightRecord).filter(InsightRecord.user_id == "user-1").all()
        assert len(stored) == 3

    def test_other_users_trades_are_ignored(self, client, auth_headers, headers_for):
        add_trade(client, auth_headers)
        other = headers_for("user-2")
        assert client.post("/generate-insights", headers=other).status_code == 400

    def test_persistence_failure_still_returns_insights(self, client, auth_headers, monkeypatch):
        add_trade(client, auth_headers)

        def fail(*args, **kwargs):
            raise PersistenceError("database is read-only")

        monkeypatch.setattr(crud, "create_insights", fail)
        response = client.post("/generate-insights", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["insights"][0]["title"] == "Strong Trading Performance"

    def test_remote_failure_falls_back(self, client, auth_headers, settings):
        add_trade(client, auth_headers)
        baseline = client.post("/generate-insights", headers=auth_headers).json()

        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        app.dependency_overrides[get_settings] = lambda: replace(settings, openai_api_key="sk-test")
        app.dependency_overrides[get_llm_transport] = lambda: httpx.MockTransport(handler)
        response = client.post("/generate-insights", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == baseline

    def test_non_text_model_reply_falls_back(self, client, auth_headers, settings):
        add_trade(client, auth_headers)
        baseline = client.post("/generate-insights", headers=auth_headers).json()

        def handler(request):
            return httpx.Response(200, json={"choices": [{"message": {"content": [{"type": "text"}]}}]})

        app.dependency_overrides[get_settings] = lambda: replace(settings, openai_api_key="sk-test")
        app.dependency_overrides[get_llm_transport] = lambda: httpx.MockTransport(handler)
        response = client.post("/generate-insights", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == baseline

    def test_remote_insights(self, client, auth_headers, settings):
        add_trade(client, auth_headers)
        reply = json.dumps([{"type": "pattern", "title": "Breakouts pay", "content": "Keep going.", "severity": "success"}])

        def handler(request):
            return httpx.Response(200, json={"choices": [{"message": {"content": reply}}]})

        app.dependency_overrides[get_settings] = lambda: replace(settings, openai_api_key="sk-test")
        app.dependency_overrides[get_llm_transport] = lambda: httpx.MockTransport(handler)
        response = client.post("/generate-insights", headers=auth_headers)

        assert response.json() == {"insights": [
            {"type": "pattern", "title": "Breakouts pay", "content": "Keep going.", "severity": "success"}
        ]}

    def test_unexpected_error_is_500(self, client, auth_headers, monkeypatch):
        add_trade(client, auth_headers)

        def boom(trades):
            raise RuntimeError("boom")

        monkeypatch.setattr("journal.analytics.aggregate_trades", boom)
        response = client.post("/generate-insights", headers=auth_headers)
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to generate insights"}

    def test_stored_insights_listing(self, client, auth_headers):
        add_trade(client, auth_headers)
        client.post("/generate-insights", headers=auth_headers)
        client.post("/generate-insights", headers=auth_headers)

        response = client.get("/insights", headers=auth_headers)
        assert response.status_code == 200
        insights = response.json()["insights"]
        # Two additive batches of two insights each
        assert len(insights) == 4
        assert insights[0]["id"] > insights[-1]["id"]
        assert {"id", "type", "title", "content", "severity", "created_at"} <= set(insights[0])


class TestTrades:
    def test_create_and_list(self, client, auth_headers):
        created = add_trade(client, auth_headers)
        add_trade(client, auth_headers, trade_date="2024-03-05", ticker="msft")

        assert created["ticker"] == "AAPL"
        response = client.get("/trades", headers=auth_headers)
        assert response.status_code == 200
        assert [t["ticker"] for t in response.json()["trades"]] == ["MSFT", "AAPL"]

    @pytest.mark.parametrize("field,value", [
        ("size", 0),
        ("entry_price", -1),
        ("confidence", 6),
        ("setup_tag", "Hunch"),
    ])
    def test_validation(self, client, auth_headers, field, value):
        response = client.post("/trades", json={**TRADE, field: value}, headers=auth_headers)
        assert response.status_code == 422

    def test_update_and_reopen(self, client, auth_headers):
        trade = add_trade(client, auth_headers)

        response = client.put(f"/trades/{trade['id']}", json={"notes": "Held too long."}, headers=auth_headers)
        assert response.json()["trade"]["notes"] == "Held too long."
        assert response.json()["trade"]["exit_price"] == 110

        response = client.put(f"/trades/{trade['id']}", json={"exit_price": None}, headers=auth_headers)
        assert response.json()["trade"]["exit_price"] is None

    def test_owner_isolation(self, client, auth_headers, headers_for):
        trade = add_trade(client, auth_headers)
        other = headers_for("user-2")

        assert client.get(f"/trades/{trade['id']}", headers=other).status_code == 404
        assert client.put(f"/trades/{trade['id']}", json={"notes": "x"}, headers=other).status_code == 404
        assert client.delete(f"/trades/{trade['id']}", headers=other).status_code == 404
        assert client.get("/trades", headers=other).json()["trades"] == []

    def test_delete(self, client, auth_headers):
        trade = add_trade(client, auth_headers)

        response = client.delete(f"/trades/{trade['id']}", headers=auth_headers)
        assert response.status_code == 200
        response = client.get(f"/trades/{trade['id']}", headers=auth_headers)
        assert response.status_code == 404
        assert response.json() == {"error": f"Trade {trade['id']} not found."}


class TestPortfolio:
    def test_summary_for_range(self, client, auth_headers):
        today = date.today()
        add_trade(client, auth_headers, trade_date=(today - timedelta(days=2)).isoformat())
        add_trade(client, auth_headers, trade_date=(today - timedelta(days=1)).isoformat(), exit_price=95)
        add_trade(client, auth_headers, trade_date=(today - timedelta(days=400)).isoformat())

        response = client.get("/portfolio", params={"range": "1m"}, headers=auth_headers)
        assert response.status_code == 200
        summary = response.json()
        assert summary["range"] == "1m"
        assert summary["total_trades"] == 2
        assert summary["total_pl"] == 50.0
        assert summary["avg_loss"] == 50.0
        assert [p["equity"] for p in summary["equity_curve"]] == [100.0, 50.0]

    def test_unknown_range_defaults(self, client, auth_headers):
        response = client.get("/portfolio", params={"range": "forever"}, headers=auth_headers)
        assert response.json()["range"] == "3m"
        assert response.json()["total_trades"] == 0
