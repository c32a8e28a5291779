def test_material_crud(client):
    r = client.post("/api/materials", json={"name": " Portland  cement ", "unit": "bag", "stockQty": "40"})
    assert r.status_code == 201
    material = r.json()["data"]
    assert material["name"] == "Portland cement"
    assert material["stockQty"] == 40

    r = client.put(f"/api/materials/{material['id']}", json={"stockQty": 35.5})
    assert r.json()["data"]["stockQty"] == 35.5

    r = client.get("/api/materials", params={"search": "cement"})
    assert r.json()["count"] == 1

    r = client.delete(f"/api/materials/{material['id']}")
    assert r.json()["data"] == {"id": material["id"], "name": "Portland cement"}


def test_material_stock_cannot_go_negative(client):
    r = client.post("/api/materials", json={"name": "Sand", "stockQty": -2})
    assert r.status_code == 400
    assert r.json()["message"] == "Stock quantity cannot be negative"


def test_tool_defaults_and_listing_order(client):
    client.post("/api/tools", json={"name": "Vibrator"})
    client.post("/api/tools", json={"name": "Angle grinder", "quantityAvailable": 3})
    r = client.get("/api/tools")
    data = r.json()["data"]
    assert [t["name"] for t in data] == ["Angle grinder", "Vibrator"]
    assert data[1]["quantityAvailable"] == 0


def test_tool_requires_name(client):
    r = client.post("/api/tools", json={"quantityAvailable": 1})
    assert r.status_code == 400
    assert r.json()["message"] == "Tool name is required"
    assert client.get("/api/tools/abc").status_code == 400
    assert client.get("/api/tools/5").status_code == 404
