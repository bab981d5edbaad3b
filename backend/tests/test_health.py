def test_health_endpoints(client):
    plain = client.get("/api/health")
    assert plain.status_code == 200
    assert plain.json() == {"status": "ok"}

    live = client.get("/api/health/live")
    assert live.status_code == 200
    payload = live.json()
    assert payload["status"] == "ok"
    assert payload["grid"]["slots"] == 12
    assert payload["catalog"] == {"courses": 0, "tracks": 0}
