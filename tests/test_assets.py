import pytest
from fastapi.testclient import TestClient

from graffic.main import create_app

from tests.conftest import png_bytes


@pytest.fixture
def client(make_runtime):
    runtime = make_runtime(lambda b: b.version("thumb", width=16, height=16))
    with TestClient(create_app(runtime)) as c:
        yield c


def test_health(client):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_create_asset_sync(client):
    response = client.post("/api/v1/assets?kind=photo&sync=true", content=png_bytes((64, 48)))

    assert response.status_code == 201
    body = response.json()

    assert body["state"] == "processed"
    assert body["width"] == 64
    assert body["height"] == 48
    assert set(body["derivatives"]) == {"original", "thumb"}
    assert body["url"].endswith(f"photos/{body['id']}.png")


def test_asset_processing_lifecycle(client):
    create_resp = client.post(
        "/api/v1/assets?kind=photo&owner_type=Listing&owner_id=9",
        content=png_bytes(),
    )
    assert create_resp.status_code == 201

    asset_id = create_resp.json()["id"]

    get_resp = client.get(f"/api/v1/assets/{asset_id}")
    assert get_resp.status_code == 200
    assert get_resp.json()["owner_type"] == "Listing"
    assert get_resp.json()["state"] in [
        "received",
        "moved",
        "uploaded",
        "processed",
    ]

    thumb_resp = client.get(f"/api/v1/assets/{asset_id}/derivatives/thumb")
    assert thumb_resp.status_code == 200
    assert thumb_resp.json()["name"] == "thumb"


def test_create_asset_without_body_is_rejected(client):
    response = client.post("/api/v1/assets?kind=photo", content=b"")

    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


def test_unknown_kind_is_not_found(client):
    response = client.post("/api/v1/assets?kind=nope", content=png_bytes())

    assert response.status_code == 404


def test_from_uri_validates_scheme(client):
    response = client.post("/api/v1/assets/from-uri", json={"source_uri": "ftp://example.com/a.png"})

    assert response.status_code == 422


def test_delete_asset(client):
    asset_id = client.post("/api/v1/assets?kind=photo&sync=true", content=png_bytes()).json()["id"]

    assert client.delete(f"/api/v1/assets/{asset_id}").status_code == 204
    assert client.get(f"/api/v1/assets/{asset_id}").status_code == 404


class FakeDownload:
    def __init__(self, data):
        self.data = data

    def raise_for_status(self):
        pass

    def iter_content(self, chunk_size):
        yield self.data


def test_from_uri_downloads_during_request(client, monkeypatch):
    fetched = []

    def fake_get(url, **kwargs):
        fetched.append(url)
        return FakeDownload(png_bytes((32, 24)))

    monkeypatch.setattr("graffic.lifecycle.staging.requests.get", fake_get)

    response = client.post(
        "/api/v1/assets/from-uri",
        json={"source_uri": "https://cdn.example.com/a.png", "kind": "photo"},
    )

    assert response.status_code == 201
    assert fetched == ["https://cdn.example.com/a.png"]
    assert (response.json()["width"], response.json()["height"]) == (32, 24)
