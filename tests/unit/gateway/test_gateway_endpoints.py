import json

import pytest
from fastapi.testclient import TestClient

from core_validator import reset_validator_cache
from gateway.app import app
from gateway.registry import load_registry, reset_registry_cache

client = TestClient(app)

CAT = "2c3e8f0a-5b1d-4c6e-9a7f-1d2b3c4d5e6f"
PRIVATE = "9b8a7c6d-1e2f-4a3b-8c9d-0e1f2a3b4c5d"
PDF = "0a1b2c3d-4e5f-4607-8899-aabbccddeeff"


@pytest.fixture(autouse=True)
def _bundled_registry(monkeypatch):
    for var in ("IMAGE_STYLES_REGISTRY_PATH", "DEFAULT_CONSUMER_ID", "VALIDATE_ENHANCED_OUTPUT",
                "IMAGE_STYLE_SUPPRESS_ITOK"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://cdn.example.com")
    reset_registry_cache()


def _value(uuid=CAT):
    return {"type": "file--file", "id": uuid, "meta": {"alt": "A cat", "title": None}}


def _enhance(value, settings=None, headers=None, params=None):
    body = {"value": value}
    if settings is not None:
        body["settings"] = settings
    return client.post("/v1/fields/image/enhance", json=body, headers=headers or {}, params=params)


def test_healthz():
    res = client.get("/healthz")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


def test_readyz_reflects_registry(monkeypatch, tmp_path):
    assert client.get("/readyz").json() == {"ready": True}
    monkeypatch.setenv("IMAGE_STYLES_REGISTRY_PATH", str(tmp_path / "missing.json"))
    assert client.get("/readyz").json() == {"ready": False}


def test_mobile_consumer_gets_its_styles():
    res = _enhance(_value(), headers={"X-Consumer-ID": "mobile-app"})
    assert res.status_code == 200
    data = res.json()["data"]
    assert sorted(data["meta"]["links"]) == ["large", "thumbnail"]
    href = data["meta"]["links"]["large"]["href"]
    assert href.startswith("https://cdn.example.com/files/styles/large/public/2024-05/cat.jpg?itok=")
    assert data["meta"]["alt"] == "A cat"
    assert data["meta"]["title"] is None


def test_default_consumer_when_none_named():
    data = _enhance(_value()).json()["data"]
    assert list(data["meta"]["links"]) == ["thumbnail"]


def test_query_parameter_selects_consumer():
    data = _enhance(_value(), params={"_consumer_id": "web-frontend"}).json()["data"]
    # retired_style is granted but no longer exists in the catalog
    assert sorted(data["meta"]["links"]) == ["hero_webp", "large", "medium", "thumbnail"]
    assert "/cat.jpg.webp?itok=" in data["meta"]["links"]["hero_webp"]["href"]


def test_field_refinement_narrows_consumer_grant():
    settings = {"styles": {"refine": True, "custom_selection": ["large", "huge"]}}
    data = _enhance(_value(), settings, headers={"X-Consumer-ID": "mobile-app"}).json()["data"]
    assert list(data["meta"]["links"]) == ["large"]


@pytest.mark.parametrize("uuid", [PRIVATE, PDF, "unknown-uuid"])
def test_unenhanceable_values_are_returned_unchanged(uuid):
    value = _value(uuid)
    res = _enhance(value, headers={"X-Consumer-ID": "mobile-app"})
    assert res.status_code == 200
    assert res.json() == {"data": value}


def test_private_file_for_editor():
    headers = {"X-Consumer-ID": "mobile-app", "X-User-Id": "3", "X-User-Roles": "Editor"}
    data = _enhance(_value(PRIVATE), headers=headers).json()["data"]
    assert data["meta"]["links"]["thumbnail"]["href"].startswith(
        "https://cdn.example.com/system/files/styles/thumbnail/private/scans/contract-scan.png?itok="
    )


def test_non_object_value_passes_through():
    assert _enhance("just-a-string").json() == {"data": "just-a-string"}


def test_missing_value_is_a_validation_error():
    res = client.post("/v1/fields/image/enhance", json={"settings": {}})
    assert res.status_code == 422
    body = res.json()
    assert body["error"]["code"] == "validation_failed"
    assert body["request_id"] == res.headers["x-request-id"]


def test_request_id_is_propagated():
    res = client.get("/v1/fields/image/schema", headers={"x-request-id": "abc123"})
    assert res.headers["x-request-id"] == "abc123"


def test_malformed_registry_degrades_to_pass_through(monkeypatch, tmp_path):
    path = tmp_path / "registry.json"
    path.write_text("{not json")
    monkeypatch.setenv("IMAGE_STYLES_REGISTRY_PATH", str(path))
    value = _value()
    assert _enhance(value, headers={"X-Consumer-ID": "mobile-app"}).json() == {"data": value}


def test_invalid_registry_entry_degrades_to_empty(monkeypatch, tmp_path):
    path = tmp_path / "registry.json"
    path.write_text(json.dumps({"styles": [{"id": ""}]}))
    monkeypatch.setenv("IMAGE_STYLES_REGISTRY_PATH", str(path))
    assert load_registry().loaded is False


@pytest.mark.parametrize(
    "content",
    [
        {"styles": 5},
        {"styles": {"thumbnail": {"id": "thumbnail"}}},
        {"consumers": True},
        {"files": "cat.jpg"},
        {"default_consumer_id": ["mobile-app"]},
        ["not", "an", "object"],
    ],
)
def test_structurally_malformed_registry_passes_through(content, monkeypatch, tmp_path):
    path = tmp_path / "registry.json"
    path.write_text(json.dumps(content))
    monkeypatch.setenv("IMAGE_STYLES_REGISTRY_PATH", str(path))
    value = _value()
    res = _enhance(value, headers={"X-Consumer-ID": "mobile-app"})
    assert res.status_code == 200
    assert res.json() == {"data": value}
    assert load_registry().loaded is False


def test_custom_registry_and_default_consumer_override(monkeypatch, tmp_path):
    path = tmp_path / "registry.json"
    path.write_text(json.dumps({
        "default_consumer_id": "a",
        "styles": [{"id": "square"}],
        "consumers": [{"id": "a", "image_style_ids": []}, {"id": "b", "image_style_ids": ["square"]}],
        "files": [{"uuid": "f1", "filename": "x.png", "uri": "public://x.png"}],
    }))
    monkeypatch.setenv("IMAGE_STYLES_REGISTRY_PATH", str(path))
    monkeypatch.setenv("DEFAULT_CONSUMER_ID", "b")
    monkeypatch.setenv("IMAGE_STYLE_SUPPRESS_ITOK", "1")
    data = _enhance(_value("f1")).json()["data"]
    assert data["meta"]["links"]["square"]["href"] == "https://cdn.example.com/files/styles/square/public/x.png"


def test_output_validation_does_not_change_response(monkeypatch):
    monkeypatch.setenv("VALIDATE_ENHANCED_OUTPUT", "true")
    res = _enhance(_value(), headers={"X-Consumer-ID": "mobile-app"})
    assert res.status_code == 200
    assert sorted(res.json()["data"]["meta"]["links"]) == ["large", "thumbnail"]


def test_missing_output_schema_is_not_fatal(monkeypatch, tmp_path):
    monkeypatch.setenv("VALIDATE_ENHANCED_OUTPUT", "true")
    monkeypatch.setenv("IMAGE_STYLES_SCHEMAS_DIR", str(tmp_path))
    reset_validator_cache()
    try:
        res = _enhance(_value(), headers={"X-Consumer-ID": "mobile-app"})
    finally:
        monkeypatch.delenv("IMAGE_STYLES_SCHEMAS_DIR")
        reset_validator_cache()
    assert res.status_code == 200
    assert sorted(res.json()["data"]["meta"]["links"]) == ["large", "thumbnail"]


def test_schema_endpoint():
    body = client.get("/v1/fields/image/schema").json()
    assert body["$schema"] == "https://json-schema.org/draft/2020-12/schema"
    assert "links" in body["properties"]["meta"]["properties"]


def test_settings_form_endpoint():
    form = client.get("/v1/fields/image/settings-form").json()["styles"]
    assert sorted(form["custom_selection"]["options"]) == ["hero_webp", "large", "medium", "thumbnail"]
    assert form["refine"]["default_value"] is False


def test_current_consumer_styles():
    body = client.get("/v1/consumers/current/image-styles", headers={"X-Consumer-ID": "web-frontend"}).json()
    assert body["consumer"] == {"id": "web-frontend", "label": "Web frontend"}
    assert body["image_style_ids"] == ["hero_webp", "large", "medium", "thumbnail"]


def test_current_consumer_without_default(monkeypatch, tmp_path):
    path = tmp_path / "registry.json"
    path.write_text(json.dumps({"styles": [{"id": "s"}], "consumers": []}))
    monkeypatch.setenv("IMAGE_STYLES_REGISTRY_PATH", str(path))
    assert client.get("/v1/consumers/current/image-styles").json() == {"consumer": None, "image_style_ids": []}


def test_metrics_endpoint_exposes_enhancer_counters():
    _enhance(_value(), headers={"X-Consumer-ID": "mobile-app"})
    _enhance(_value(PDF), headers={"X-Consumer-ID": "mobile-app"})
    text = client.get("/metrics").text
    assert "image_styles_enhanced_total" in text
    assert 'image_styles_skipped_total{reason="not_image"}' in text
    assert "gateway_http_requests_total" in text
