"""Tests for GET /status."""


class TestStatus:
    async def test_connected(self, test_client):
        resp = await test_client.get("/status")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "running"
        assert body["message"] == "PDF API is running successfully"
        assert body["timestamp"]
        assert body["database"]["status"] == "connected"
        assert body["database"]["current_time"]
        assert "error" not in body

    async def test_disconnected_still_200(self, offline_client):
        resp = await offline_client.get("/status")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "running"
        assert body["database"]["status"] == "disconnected"
        assert body["database"]["error"]
        assert body["error"] == body["database"]["error"]
        assert "current_time" not in body["database"]
