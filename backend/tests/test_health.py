def test_health_endpoints(client):
    assert client.get("/api/health").json() == {"status": "ok"}

    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    ready = client.get("/api/health/ready")
    assert ready.status_code in {200, 503}
    payload = ready.json()
    assert "database" in payload
    assert "missing_tables" in payload["database"]


def test_responses_carry_request_id_and_security_headers(client):
    response = client.get("/api/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["Permissions-Policy"] == "geolocation=(), microphone=(), camera=()"


def test_oversized_request_body_is_rejected(client):
    response = client.put("/api/system/state", content=b"x" * 2_500_001)
    assert response.status_code == 413
    assert "Request body too large" in response.json()["detail"]
