import pytest

from failure_monitor.routers import diagnostics


class TestServiceDescriptor:
    @pytest.mark.integration
    def test_root_describes_service(self, client):
        response = client.get("/")
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Stripe Payment Monitor"
        assert body["status"] == "running"
        assert "POST /webhook/stripe" in body["endpoints"]
        assert "POST /test" in body["endpoints"]

    @pytest.mark.integration
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.integration
    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"

    @pytest.mark.integration
    def test_request_id_is_generated(self, client):
        response = client.get("/health")
        assert response.headers["X-Request-ID"]


class TestLogs:
    @pytest.mark.integration
    def test_empty(self, client):
        assert client.get("/logs").json() == {"logs": []}

    @pytest.mark.integration
    def test_returns_last_twenty_in_order(self, client, ring_log):
        for i in range(60):
            ring_log.record(f"entry {i}")
        logs = client.get("/logs").json()["logs"]
        assert len(logs) == 20
        assert [entry["message"] for entry in logs] == [f"entry {i}" for i in range(40, 60)]
        assert set(logs[0]) == {"timestamp", "message"}


class TestSyntheticTrigger:
    @pytest.mark.integration
    def test_drives_both_sinks_once(self, counting_client, counting_sinks):
        response = counting_client.post("/test")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True

        data = body["testData"]
        assert data["payment_id"].startswith("test_")
        assert data["customer_email"] == "test@example.com"
        assert data["amount"] == 5000
        assert data["currency"] == "usd"
        assert data["failure_code"] == "card_declined"
        assert data["failure_message"] == "Test failure"
        assert data["failed_at"].endswith("Z")

        alert, record = counting_sinks
        assert len(alert.delivered) == 1
        assert len(record.delivered) == 1
        assert alert.delivered[0].payment_id == data["payment_id"]

    @pytest.mark.integration
    def test_renders_like_the_webhook_path(self, client, transport, store, ring_log):
        client.post("/test")
        assert "Amount: $50.00" in transport.sent[0][2]
        assert store.created[0][1]["Amount"] == 50
        messages = [e.message for e in ring_log.recent(20)]
        assert any(m.startswith("Alert sent for test_") for m in messages)
        assert "Added to Airtable: rec001" in messages

    @pytest.mark.integration
    def test_sink_failures_still_succeed(self, counting_client, counting_sinks):
        counting_sinks[0].error = RuntimeError("gmail down")
        response = counting_client.post("/test")
        assert response.status_code == 200
        assert len(counting_sinks[1].delivered) == 1

    @pytest.mark.integration
    def test_orchestration_error_returns_500(self, client, monkeypatch):
        async def broken_dispatch(*args, **kwargs):
            raise RuntimeError("dispatcher unavailable")

        monkeypatch.setattr(diagnostics, "dispatch", broken_dispatch)
        response = client.post("/test")
        assert response.status_code == 500
        assert response.json() == {"error": "dispatcher unavailable"}
