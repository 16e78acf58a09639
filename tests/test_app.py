def test_welcome(client):
    response = client.get("/server")

    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to trok!"}


def test_ping_answers_any_method(client):
    for method in ("GET", "POST", "DELETE"):
        response = client.request(method, "/ping")
        assert response.status_code == 200
        assert response.json()["message"].startswith("Pinged at ")
        assert response.json()["message"].endswith(" GMT")


def test_liveness(client):
    assert client.get("/live").json() == {"status": "alive"}


def test_health_reports_database_down_without_client(client):
    response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["checks"]["database"] == "unhealthy"
