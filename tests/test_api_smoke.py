import asyncio
import base64
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from sustainify.api.app import app
from sustainify.adapters.mock_adapter import MockAdapter

IMAGE_B64 = base64.b64encode(b"\xff\xd8\xff" + b"\x01" * 300).decode("ascii")


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SUSTAINIFY_RUNTIME_DIR", str(tmp_path / "runtime-data"))
    monkeypatch.setenv("SUSTAINIFY_ENV", "mock")
    return TestClient(app)


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_providers(client):
    resp = client.get("/api/providers")
    assert resp.status_code == 200
    ids = {p["id"] for p in resp.json()["providers"]}
    assert {"gemini", "openai", "vision"} <= ids
    assert all(p["available"] for p in resp.json()["providers"])


def test_identify_structured(client):
    resp = client.post("/identify", json={"image": IMAGE_B64})
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "plastic bottle"
    assert data["model"].startswith("mock:")


def test_identify_raw_fallback(client, monkeypatch):
    import importlib

    api_app = importlib.import_module("sustainify.api.app")
    monkeypatch.setattr(
        api_app.provider_config_loader,
        "create_adapter",
        lambda provider=None: MockAdapter(reply="It looks like a can."),
    )
    resp = client.post("/identify", json={"image": IMAGE_B64})
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "unknown"
    assert data["raw"] == "It looks like a can."


def test_identify_rejects_missing_image(client):
    resp = client.post("/identify", json={})
    assert resp.status_code == 400
    assert resp.json()["error"] == "No image provided"
    short = client.post("/identify", json={"image": "abc"})
    assert short.status_code == 400


def test_identify_unknown_provider(client):
    resp = client.post("/identify", json={"image": IMAGE_B64, "provider": "nope"})
    assert resp.status_code == 400


def test_identify_timeout(client, monkeypatch):
    import importlib

    api_app = importlib.import_module("sustainify.api.app")

    class SlowAdapter:
        id = "slow"

        async def identify(self, image_bytes, mime_type, prompt):
            await asyncio.sleep(0.5)
            return {"text": "{}"}

    monkeypatch.setattr(api_app.provider_config_loader, "create_adapter", lambda provider=None: SlowAdapter())
    monkeypatch.setenv("SUSTAINIFY_IDENTIFY_TIMEOUT", "0.01")
    resp = client.post("/identify", json={"image": IMAGE_B64})
    assert resp.status_code == 504
    assert "timed out" in resp.json()["error"]


def test_identify_upstream_failure_hides_details(client, monkeypatch):
    import importlib

    api_app = importlib.import_module("sustainify.api.app")

    class BrokenAdapter:
        id = "broken"

        async def identify(self, image_bytes, mime_type, prompt):
            raise RuntimeError("secret internal detail")

    monkeypatch.setattr(api_app.provider_config_loader, "create_adapter", lambda provider=None: BrokenAdapter())
    resp = client.post("/identify", json={"image": IMAGE_B64})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Identification failed. Try later."}


def test_quiz_score_appends_record_and_exports(client):
    defaults = client.get("/api/quiz/defaults").json()
    assert defaults["shower_min"] == 10

    payload = {
        "name": "Priya",
        "shower_min": 5,
        "uses_bucket": True,
        "hours_devices": 3,
        "num_led": 5,
        "ac_hours": 2,
        "disposable_count": 1,
        "uses_reusable": True,
        "recycles": True,
    }
    resp = client.post("/api/quiz/score", json=payload)
    assert resp.status_code == 200
    data = resp.json()
    assert data["scores"]["eco"] == 100
    assert data["perfect"] is True
    assert [b["title"] for b in data["badges"]] == ["Water Saver", "Energy Ninja", "Waste Warrior"]

    records = client.get("/api/quiz/records").json()["records"]
    assert len(records) == 1
    assert records[0]["name"] == "Priya"

    csv_resp = client.get("/api/quiz/records.csv")
    assert csv_resp.status_code == 200
    lines = csv_resp.text.strip().splitlines()
    assert lines[0].startswith("ts,name,shower_min")
    assert lines[1].endswith(",100")


def test_quiz_score_validates_ranges(client):
    resp = client.post("/api/quiz/score", json={"shower_min": 0})
    assert resp.status_code == 422


def test_records_replace_and_clear(client):
    client.post("/api/quiz/score", json={"name": "A"})
    replaced = client.put(
        "/api/quiz/records",
        json=[{"ts": "2024-01-01T00:00:00Z", "name": "B", "inputs": {"shower_min": 4}, "scores": None}],
    )
    assert replaced.status_code == 200
    records = client.get("/api/quiz/records").json()["records"]
    assert [r["name"] for r in records] == ["B"]

    assert client.delete("/api/quiz/records").json() == {"records": []}
    assert client.get("/api/quiz/records").json() == {"records": []}


def test_identify_huge_number_reply_falls_back(client, monkeypatch):
    import importlib

    api_app = importlib.import_module("sustainify.api.app")
    reply = '{"name": "can", "prob": 1' + "0" * 5000 + "}"
    monkeypatch.setattr(
        api_app.provider_config_loader,
        "create_adapter",
        lambda provider=None: MockAdapter(reply=reply),
    )
    resp = client.post("/identify", json={"image": IMAGE_B64})
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "unknown"
    assert data["raw"] == reply[:2000]


def test_lifespan_configures_logging(tmp_path, monkeypatch):
    runtime_dir = tmp_path / "runtime-data"
    monkeypatch.setenv("SUSTAINIFY_RUNTIME_DIR", str(runtime_dir))
    with TestClient(app) as lifespan_client:
        assert lifespan_client.get("/api/health").status_code == 200
    assert (runtime_dir / "logs" / "sustainify.log").exists()
