import inspect

import pytest
from fastapi.testclient import TestClient

from apregistry.app import app
from apregistry.core.settings import settings
from apregistry.services import venues
from conftest import FakeResponse

CENTRAL_PARK = {
    "nasid": "00259ccf1cac",
    "location_name": "Central Park Wi-Fi Zone",
    "street_address": "East 72nd St",
    "city": "New York",
    "state": "NY",
    "zip_code": "10021",
    "country": "United States",
    "latitude": 40.7725,
    "longitude": -73.9676,
    "wifi_group": "OUTDOOR",
    "wifi_type_categorization": "CITY PARK",
    "ap_make": "Cisco",
    "ap_model": "Aironet 2800",
    "estimated_upload_speed": 25,
    "estimated_download_speed": 100,
    "isp": "Spectrum",
    "venue_type": "Outdoor",
    "ssid": "CentralParkFreeWiFi",
    "bssid": "00:25:9c:cf:1c:ac",
    "venue_name_alt": "Central Park",
    "foot_traffic_estimates": "High",
}


def make_ap(**overrides):
    return {**CENTRAL_PARK, **overrides}


@pytest.fixture
def client(db_path):
    venues.reset_venue_classifier()
    with TestClient(app) as c:
        yield c
    venues.reset_venue_classifier()


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] == "OK"
    assert r.json()["version"] == "1.0.0"


# ---------- CRUD ----------

def test_create_and_get(client):
    r = client.post("/api/access-points", json=make_ap())
    assert r.status_code == 201
    ap_id = r.json()["id"]

    r = client.get(f"/api/access-points/{ap_id}")
    assert r.status_code == 200
    body = r.json()
    assert body["nasid"] == "00259ccf1cac"
    assert body["wifi_group"] == "OUTDOOR"
    assert body["created_at"]


def test_create_duplicate_nasid(client):
    assert client.post("/api/access-points", json=make_ap()).status_code == 201
    r = client.post("/api/access-points", json=make_ap(ssid="Other"))
    assert r.status_code == 409


def test_create_blank_optional_fields(client):
    r = client.post("/api/access-points", json=make_ap(bssid="", venue_type="", state="  "))
    assert r.status_code == 201
    body = client.get(f"/api/access-points/{r.json()['id']}").json()
    assert body["bssid"] is None
    assert body["venue_type"] is None
    assert body["state"] == ""


def test_create_accepts_classifier_groups(client):
    r = client.post("/api/access-points", json=make_ap(wifi_group="assembly",
                                                      wifi_type_categorization="COFFEE SHOP"))
    assert r.status_code == 201
    body = client.get(f"/api/access-points/{r.json()['id']}").json()
    assert body["wifi_group"] == "ASSEMBLY"


@pytest.mark.parametrize("field, value", [
    ("nasid", "not-a-mac!"),
    ("latitude", 91),
    ("longitude", -181),
    ("wifi_group", "SPACESHIP"),
    ("estimated_upload_speed", 0),
    ("estimated_download_speed", 10001),
    ("bssid", "00:25:9c"),
    ("foot_traffic_estimates", "Huge"),
    ("location_name", "   "),
])
def test_create_validation(client, field, value):
    r = client.post("/api/access-points", json=make_ap(**{field: value}))
    assert r.status_code == 422


def test_create_missing_required(client):
    payload = make_ap()
    del payload["ssid"]
    assert client.post("/api/access-points", json=payload).status_code == 422


def test_get_missing(client):
    assert client.get("/api/access-points/999").status_code == 404


def test_update(client):
    ap_id = client.post("/api/access-points", json=make_ap()).json()["id"]

    r = client.put(f"/api/access-points/{ap_id}", json={"ssid": "NewName", "estimated_upload_speed": 50})
    assert r.status_code == 200

    body = client.get(f"/api/access-points/{ap_id}").json()
    assert body["ssid"] == "NewName"
    assert body["estimated_upload_speed"] == 50
    assert body["city"] == "New York"


def test_update_no_fields(client):
    ap_id = client.post("/api/access-points", json=make_ap()).json()["id"]
    assert client.put(f"/api/access-points/{ap_id}", json={}).status_code == 400


def test_update_missing(client):
    assert client.put("/api/access-points/999", json={"ssid": "x"}).status_code == 404


@pytest.mark.parametrize("field", ["city", "nasid", "latitude", "wifi_group", "foot_traffic_estimates"])
def test_update_null_on_required_field(client, field):
    ap_id = client.post("/api/access-points", json=make_ap()).json()["id"]
    r = client.put(f"/api/access-points/{ap_id}", json={field: None})
    assert r.status_code == 422
    assert client.get(f"/api/access-points/{ap_id}").json()[field] == CENTRAL_PARK[field]


def test_update_null_clears_optional_field(client):
    ap_id = client.post("/api/access-points", json=make_ap()).json()["id"]
    r = client.put(f"/api/access-points/{ap_id}", json={"bssid": None, "venue_name_alt": None})
    assert r.status_code == 200
    body = client.get(f"/api/access-points/{ap_id}").json()
    assert body["bssid"] is None
    assert body["venue_name_alt"] is None


def test_update_nasid_conflict(client):
    client.post("/api/access-points", json=make_ap())
    other = client.post("/api/access-points", json=make_ap(nasid="001a1e2b3c4d")).json()["id"]
    r = client.put(f"/api/access-points/{other}", json={"nasid": "00259ccf1cac"})
    assert r.status_code == 409


def test_delete(client):
    ap_id = client.post("/api/access-points", json=make_ap()).json()["id"]
    assert client.delete(f"/api/access-points/{ap_id}").status_code == 200
    assert client.get(f"/api/access-points/{ap_id}").status_code == 404
    assert client.delete(f"/api/access-points/{ap_id}").status_code == 404


# ---------- Listing ----------

@pytest.fixture
def seeded(client):
    client.post("/api/access-points", json=make_ap())
    client.post("/api/access-points", json=make_ap(
        nasid="001a1e2b3c4d", location_name="Union Square Plaza Wi-Fi", city="San Francisco",
        wifi_group="MERCANTILE", wifi_type_categorization="SHOPPING MALL", ssid="UnionSquareWiFi",
    ))
    client.post("/api/access-points", json=make_ap(
        nasid="442a60adccee", location_name="Oxford Street Wi-Fi", city="London",
        country="United Kingdom", wifi_group="MERCANTILE",
        wifi_type_categorization="RETAIL STORE", ssid="OxfordStreetWiFi",
    ))
    return client


def test_list_pagination(seeded):
    r = seeded.get("/api/access-points", params={"page": 1, "limit": 2})
    body = r.json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}

    body = seeded.get("/api/access-points", params={"page": 2, "limit": 2}).json()
    assert len(body["data"]) == 1


def test_list_newest_first(seeded):
    names = [ap["location_name"] for ap in seeded.get("/api/access-points").json()["data"]]
    assert names[0] == "Oxford Street Wi-Fi"


def test_list_filters(seeded):
    body = seeded.get("/api/access-points", params={"wifi_group": "MERCANTILE"}).json()
    assert body["pagination"]["total"] == 2

    body = seeded.get("/api/access-points", params={"country": "United Kingdom"}).json()
    assert [ap["city"] for ap in body["data"]] == ["London"]

    body = seeded.get("/api/access-points", params={"search": "union"}).json()
    assert [ap["ssid"] for ap in body["data"]] == ["UnionSquareWiFi"]

    body = seeded.get("/api/access-points", params={"search": "Francisco", "wifi_group": "OUTDOOR"}).json()
    assert body["data"] == []
    assert body["pagination"]["pages"] == 0


def test_list_rejects_bad_paging(client):
    assert client.get("/api/access-points", params={"page": 0}).status_code == 422


# ---------- Auth ----------

def test_writes_need_token_when_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "auth_token", "s3cret")

    assert client.post("/api/access-points", json=make_ap()).status_code == 401
    r = client.post("/api/access-points", json=make_ap(), headers={"Authorization": "Token s3cret"})
    assert r.status_code == 401
    r = client.post("/api/access-points", json=make_ap(), headers={"Authorization": "Bearer nope"})
    assert r.status_code == 403
    r = client.post("/api/access-points", json=make_ap(), headers={"Authorization": "Bearer s3cret"})
    assert r.status_code == 201

    # reads stay open
    assert client.get("/api/access-points").status_code == 200


# ---------- Geocoding ----------

def test_geocoding_requires_params(client):
    assert client.get("/api/geocoding/search").status_code == 400
    assert client.get("/api/geocoding/reverse", params={"lat": 1}).status_code == 400
    assert client.get("/api/geocoding/mac-vendor").status_code == 400


def test_geocoding_search(client, fake_get):
    fake_get(FakeResponse(payload=[{
        "display_name": "Cafe", "lat": "1", "lon": "2", "class": "amenity", "type": "cafe", "address": {},
    }]))
    r = client.get("/api/geocoding/search", params={"q": "cafe"})
    assert r.status_code == 200
    assert r.json()[0]["wifi_type"] == "COFFEE SHOP"


def test_geocoding_search_upstream_down(client, fake_get):
    import requests
    fake_get(requests.ConnectionError("down"))
    r = client.get("/api/geocoding/search", params={"q": "cafe"})
    assert r.status_code == 500
    assert r.json()["detail"] == "Failed to search address"


def test_geocode_post(client, fake_get):
    calls = fake_get(FakeResponse(payload=[]))
    r = client.post("/api/access-points/geocode", json={"address": "10 Downing St", "limit": 2})
    assert r.status_code == 200
    assert r.json() == []
    assert calls[0]["params"]["limit"] == 2


def test_geocode_post_validation(client):
    assert client.post("/api/access-points/geocode", json={"address": "ab"}).status_code == 422


def test_mac_vendor_endpoint(client, fake_get):
    fake_get(FakeResponse(text="Ubiquiti Inc"))
    r = client.get("/api/geocoding/mac-vendor", params={"mac": "fc:ec:da:00:00:01"})
    assert r.json() == {"mac": "fc:ec:da:00:00:01", "vendor": "Ubiquiti"}


def test_mappings_and_stats(client):
    mappings = client.get("/api/geocoding/mappings").json()
    assert mappings["amenity,cafe"] == "ASSEMBLY - COFFEE SHOP"

    stats = client.get("/api/geocoding/stats").json()
    assert stats["total_mappings"] == len(mappings)
    assert stats["degraded"] is False
    assert stats["mac_vendor_mappings"] == 15


def test_blocking_handlers_run_in_threadpool():
    # sync endpoints are run off the event loop by FastAPI
    blocking = [
        route for route in app.routes
        if getattr(route, "path", "").startswith(("/api/access-points", "/api/geocoding"))
    ]
    assert blocking
    for route in blocking:
        assert not inspect.iscoroutinefunction(route.endpoint), route.path
