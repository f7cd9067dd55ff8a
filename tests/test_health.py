def test_root_banner(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "running" in response.json()["message"]


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_invalid_body_is_422_with_field_errors(client):
    response = client.post("/slots", json={"time": "09:00"})
    assert response.status_code == 422
    fields = {tuple(error["loc"]) for error in response.json()["detail"]}
    assert ("body", "date") in fields
    assert ("body", "category") in fields
