"""
API endpoint tests
==================

Routes exercised through FastAPI's TestClient against the per-test database.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from zodiac_predictor import api
from zodiac_predictor.loader import SyncResult, SyncStatus


@pytest.fixture
def client(monkeypatch):
    monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)
    monkeypatch.delenv("TELEGRAM_CHAT_ID", raising=False)
    api.set_predictor(None)
    with TestClient(api.app) as test_client:
        yield test_client
    api.set_predictor(None)


class TestDataEndpoints:
    """Tests for health, data, sync and delete routes"""

    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert set(data["lottery_types"]) == {"HK", "XINAO", "LAOAO"}

    def test_data_requires_type(self, client):
        assert client.get("/api/data").status_code == 400
        assert client.get("/api/data", params={"type": "MARS"}).status_code == 400

    def test_data_returns_newest_first(self, client, seed_draws, draw_history):
        seed_draws("HK", draw_history([6, 5, 4]))

        resp = client.get("/api/data", params={"type": "hk", "limit": 2})

        assert resp.status_code == 200
        assert [r["expect"] for r in resp.json()] == ["2026003", "2026002"]

    def test_sync_success(self, client):
        result = SyncResult(lottery_type="HK", status=SyncStatus.SUCCESS, success=True, total=2, stored=2)
        with patch("zodiac_predictor.api.sync_lottery", return_value=result) as sync:
            resp = client.post("/api/sync/HK")

        assert resp.status_code == 200
        assert resp.json()["stored"] == 2
        sync.assert_called_once_with("HK")

    def test_sync_failure_is_bad_gateway(self, client):
        result = SyncResult(lottery_type="HK", status=SyncStatus.TIMEOUT, success=False, message="Timeout")
        with patch("zodiac_predictor.api.sync_lottery", return_value=result):
            resp = client.post("/api/sync/HK")

        assert resp.status_code == 502
        assert resp.json()["detail"]["status"] == "TIMEOUT"

    def test_delete_record(self, client, seed_draws, draw_history):
        seed_draws("HK", draw_history([6]))
        record_id = client.get("/api/data", params={"type": "HK"}).json()[0]["id"]

        assert client.delete(f"/api/records/{record_id}").status_code == 200
        assert client.delete(f"/api/records/{record_id}").status_code == 404


class TestPredictionEndpoints:
    """Tests for preview, create and latest prediction routes"""

    def test_preview_insufficient_history(self, client, seed_draws, draw_history):
        seed_draws("HK", draw_history([6, 5, 4]))

        resp = client.get("/api/lottery/HK")

        assert resp.status_code == 422
        detail = resp.json()["detail"]
        assert detail["records_available"] == 3
        assert detail["records_required"] == 20

    def test_preview_report(self, client, seed_draws, cycle_history):
        seed_draws("HK", cycle_history)

        resp = client.get("/api/lottery/HK")

        assert resp.status_code == 200
        data = resp.json()
        assert data["recommendations"]["combined_zodiacs"] == ['鼠', '蛇', '马', '牛', '羊', '虎']
        assert data["analysis_details"]["transition_from_last"]["from"] == '龙'
        # preview is not stored
        assert client.get("/api/predictions", params={"type": "HK"}).status_code == 404

    def test_create_then_fetch_latest(self, client, seed_draws, cycle_history):
        seed_draws("XINAO", cycle_history)

        created = client.post("/api/predictions/XINAO", params={"notify": "false"})
        assert created.status_code == 200

        latest = client.get("/api/predictions", params={"type": "XINAO"})
        assert latest.status_code == 200
        body = latest.json()
        assert body["lottery_type"] == "XINAO"
        assert body["prediction_data"]["recommendations"] == created.json()["recommendations"]

    def test_create_notifies_when_configured(self, client, seed_draws, cycle_history, monkeypatch):
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "token")
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "42")
        seed_draws("HK", cycle_history)

        with patch("zodiac_predictor.notifier.TelegramNotifier.send_report", return_value=True) as send:
            resp = client.post("/api/predictions/HK")

        assert resp.status_code == 200
        assert send.call_args[0][1] == "香港"

    def test_notification_failure_does_not_fail_request(self, client, seed_draws, cycle_history, monkeypatch):
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "token")
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "42")
        seed_draws("HK", cycle_history)

        with patch("zodiac_predictor.notifier.TelegramNotifier.send_report", return_value=False):
            resp = client.post("/api/predictions/HK")

        assert resp.status_code == 200

    def test_create_insufficient_history(self, client):
        resp = client.post("/api/predictions/LAOAO", params={"notify": "false"})
        assert resp.status_code == 422

    def test_latest_requires_known_type(self, client):
        assert client.get("/api/predictions").status_code == 400
        assert client.get("/api/predictions", params={"type": "HK"}).status_code == 404

    def test_engine_failure_is_server_error(self, client):
        with patch("zodiac_predictor.predictor.Predictor.generate_for_type", side_effect=RuntimeError("boom")):
            resp = client.get("/api/lottery/HK")

        assert resp.status_code == 500
