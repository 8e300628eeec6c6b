"""End-to-end tests through the FastAPI application."""

import pytest

from imagecache.core.security import sign

from .conftest import TEST_SECRET, image_size, make_image

FAR_FUTURE = "9999999999"


def _presigned(key: str = "key1", expires: str = FAR_FUTURE) -> dict:
    return {"key": key, "expires": expires, "signature": sign(key, expires, TEST_SECRET)}


def _upload(client, *files, params=None):
    return client.post(
        "/upload",
        params=_presigned() if params is None else params,
        files=[("images", item) for item in files],
    )


def test_upload_resize_and_cache_round_trip(client, settings, container):
    resp = _upload(client, ("cat.png", make_image(1000, 500), "image/png"))
    assert resp.status_code == 200, resp.text
    assert resp.json() == {
        "message": "uploaded",
        "files": [{"originalName": "cat.png", "filename": "cat.webp"}],
    }
    original = settings.asset_root / "cat.webp"
    assert original.is_file()

    resized = client.get("/images/cat.webp", params={"width": "400"})
    assert resized.status_code == 200
    assert resized.headers["content-type"] == "image/webp"
    assert resized.headers["x-image-variant"] == "derived"
    assert "immutable" in resized.headers["cache-control"]
    assert image_size(resized.content) == (400, 200)
    cached = settings.cache_root / "cat_400.webp"
    assert cached.is_file()
    mtime = cached.stat().st_mtime_ns

    again = client.get("/images/cat.webp", params={"width": "400"})
    assert again.content == resized.content
    assert cached.stat().st_mtime_ns == mtime
    assert container.derivations.stats()["writes"] == 1

    full = client.get("/images/cat.webp", params={"width": "1000"})
    assert full.status_code == 200
    assert full.headers["x-image-variant"] == "original"
    assert full.content == original.read_bytes()
    assert not (settings.cache_root / "cat_1000.webp").exists()


def test_upload_multiple_files(client):
    resp = _upload(
        client,
        ("a.jpg", make_image(40, 40, fmt="JPEG"), "image/jpeg"),
        ("b.gif", make_image(40, 40, fmt="GIF"), "image/gif"),
    )

    assert resp.status_code == 200, resp.text
    assert [item["filename"] for item in resp.json()["files"]] == ["a.webp", "b.webp"]


def test_upload_uses_only_the_base_file_name(client, settings):
    resp = _upload(client, ("../../evil.png", make_image(10, 10), "image/png"))

    assert resp.status_code == 200, resp.text
    assert resp.json()["files"][0]["filename"] == "evil.webp"
    assert (settings.asset_root / "evil.webp").is_file()


def test_upload_with_flipped_signature_is_forbidden(client):
    params = _presigned()
    sig = params["signature"]
    params["signature"] = ("0" if sig[0] != "0" else "1") + sig[1:]

    resp = _upload(client, ("cat.png", make_image(10, 10), "image/png"), params=params)

    assert resp.status_code == 403
    assert resp.json()["error"] == "invalid_signature"


def test_upload_with_expired_url_is_forbidden(client, settings):
    resp = _upload(client, ("cat.png", make_image(10, 10), "image/png"), params=_presigned(expires="1000"))

    assert resp.status_code == 403
    assert resp.json()["error"] == "expired"
    assert not (settings.asset_root / "cat.webp").exists()


@pytest.mark.parametrize("missing", ["key", "expires", "signature"])
def test_upload_without_presigned_parameter_is_bad_request(client, missing):
    params = _presigned()
    del params[missing]

    resp = _upload(client, ("cat.png", make_image(10, 10), "image/png"), params=params)

    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_request"


def test_upload_without_files_is_bad_request(client):
    resp = client.post("/upload", params=_presigned())

    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_request"


def test_upload_aborts_batch_on_first_failure(client, settings):
    resp = _upload(
        client,
        ("good.png", make_image(10, 10), "image/png"),
        ("broken.png", b"not an image", "image/png"),
        ("later.png", make_image(10, 10), "image/png"),
    )

    assert resp.status_code == 500
    assert resp.json()["error"] == "processing_failed"
    assert "files" not in resp.json()
    assert not (settings.asset_root / "later.webp").exists()


def test_missing_image_is_not_found(client):
    resp = client.get("/images/missing.webp", params={"width": "100"})

    assert resp.status_code == 404
    assert resp.json()["error"] == "asset_not_found"


def test_encoded_traversal_is_rejected(client):
    resp = client.get("/images/..%2F..%2Fetc%2Fpasswd", params={"width": "100"})

    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_path"


def test_double_encoded_traversal_is_rejected(client):
    resp = client.get("/images/..%252F..%252Fetc%252Fpasswd")

    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_path"


@pytest.mark.parametrize("width", ["abc", "0", "-10", ""])
def test_invalid_width_serves_original(client, settings, width):
    _upload(client, ("cat.png", make_image(100, 50), "image/png"))

    resp = client.get("/images/cat.webp", params={"width": width})

    assert resp.status_code == 200
    assert resp.headers["x-image-variant"] == "original"
    assert resp.content == (settings.asset_root / "cat.webp").read_bytes()
    assert list(settings.cache_root.rglob("*.webp")) == []


def test_nested_image_paths(client, settings, asset_store):
    asset_store.save("albums/2024/dog.png", make_image(200, 100))

    resp = client.get("/images/albums/2024/dog.webp", params={"width": "50"})

    assert resp.status_code == 200
    assert image_size(resp.content) == (50, 25)
    assert (settings.cache_root / "albums" / "2024" / "dog_50.webp").is_file()


def test_corrupt_source_reports_processing_failure_without_paths(client, settings):
    (settings.asset_root / "broken.webp").write_bytes(b"garbage")

    resp = client.get("/images/broken.webp", params={"width": "10"})

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "processing_failed"
    assert str(settings.asset_root) not in body["detail"]


def test_health_reports_cache_counters(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert set(body["cache"]) >= {"hits", "misses", "writes", "originals", "lost_races", "in_flight"}


def test_oversized_source_reports_processing_failure(client, asset_store, monkeypatch):
    from PIL import Image

    asset_store.save("big.png", make_image(100, 100))
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)

    resp = client.get("/images/big.webp", params={"width": "10"})

    assert resp.status_code == 500
    assert resp.json()["error"] == "processing_failed"


def test_unknown_route_returns_structured_error(client):
    resp = client.get("/nothing-here")

    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


def test_wrong_method_returns_structured_error(client):
    resp = client.delete("/upload")

    assert resp.status_code == 405
    assert resp.json()["error"] == "method_not_allowed"


def test_malformed_upload_field_returns_structured_error(client):
    resp = client.post("/upload", params=_presigned(), data={"images": "not a file"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "invalid_request"
    assert "images" in body["detail"]


def test_openapi_documents_error_payloads(client):
    schema = client.get("/openapi.json").json()

    assert "ErrorResponse" in schema["components"]["schemas"]
    for path, method in (("/images/{source}", "get"), ("/upload", "post")):
        responses = schema["paths"][path][method]["responses"]
        assert {"400", "403", "404", "500"} <= set(responses)
