def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True


def test_healthz_ok(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.data == b"ok"


def test_unknown_route_is_json_404(client):
    r = client.get("/api/nope")
    assert r.status_code == 404
    assert "not_found" in r.json["errors"]


def test_wrong_method_is_json_405(client, auth_headers):
    r = client.patch("/api/customers/1", headers=auth_headers)
    assert r.status_code == 405
    assert "method_not_allowed" in r.json["errors"]
