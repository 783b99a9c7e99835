"""
Integration tests for the FastAPI surface.

Each test gets a fresh app (in-memory storage) via the `client` fixture. The
TestClient keeps cookies, so consecutive requests act as the same owner;
clearing the jar starts a new anonymous owner.
"""

import gzip
import time

import pytest

BASE_URL = "http://short.test"


def _code(short_url):
    return short_url.rsplit("/", 1)[-1]


def _wait_for_status(client, code, expected, timeout=5.0):
    deadline = time.monotonic() + timeout
    while True:
        status = client.get(f"/{code}", follow_redirects=False).status_code
        if status == expected or time.monotonic() > deadline:
            return status
        time.sleep(0.02)


# ---------------------------------------------------------------------
# Shortening
# ---------------------------------------------------------------------

def test_shorten_text_plain(client):
    response = client.post("/", content="  https://a.example \n", headers={"Content-Type": "text/plain"})
    assert response.status_code == 201
    assert response.text.startswith(BASE_URL + "/")
    assert "token" in response.cookies


def test_shorten_text_plain_empty_body(client):
    response = client.post("/", content="", headers={"Content-Type": "text/plain"})
    assert response.status_code == 400


def test_shorten_json_then_conflict(client):
    first = client.post("/api/shorten", json={"url": "https://a.example"})
    assert first.status_code == 201

    client.cookies.clear()
    second = client.post("/api/shorten", json={"url": "https://a.example"})
    assert second.status_code == 409
    assert second.json()["result"] == first.json()["result"]


def test_shorten_json_invalid_body(client):
    response = client.post("/api/shorten", content="not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400


def test_shorten_json_empty_url(client):
    response = client.post("/api/shorten", json={"url": ""})
    assert response.status_code == 400
    assert response.json()["detail"] == "URL cannot be empty"


@pytest.mark.parametrize(
    "path,content_type",
    [("/", "application/json"), ("/", "text/html"), ("/api/shorten", "text/plain")],
)
def test_shorten_rejects_wrong_content_type(client, path, content_type):
    body = '{"url": "https://ct.example"}' if path == "/api/shorten" else "https://ct.example"
    response = client.post(path, content=body, headers={"Content-Type": content_type})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid content type"
    assert client.get("/api/user/urls").status_code == 204


def test_shorten_text_plain_with_charset(client):
    response = client.post("/", content="https://a.example", headers={"Content-Type": "text/plain; charset=utf-8"})
    assert response.status_code == 201


def test_shorten_text_plain_invalid_utf8(client):
    response = client.post("/", content=b"https://a.example/\xff", headers={"Content-Type": "text/plain"})
    assert response.status_code == 400
    assert client.get("/api/user/urls").status_code == 204


def test_shorten_json_gzipped_body(client):
    body = gzip.compress(b'{"url": "https://gz.example"}')
    response = client.post(
        "/api/shorten",
        content=body,
        headers={"Content-Type": "application/json", "Content-Encoding": "gzip"},
    )
    assert response.status_code == 201

    redirect = client.get(f"/{_code(response.json()['result'])}", follow_redirects=False)
    assert redirect.headers["location"] == "https://gz.example"


def test_shorten_text_gzipped_body(client):
    response = client.post(
        "/",
        content=gzip.compress(b"https://gz.example/text"),
        headers={"Content-Type": "text/plain", "Content-Encoding": "gzip"},
    )
    assert response.status_code == 201


def test_invalid_gzip_body_is_500(client):
    response = client.post(
        "/api/shorten",
        content=b"definitely not gzip",
        headers={"Content-Type": "application/json", "Content-Encoding": "gzip"},
    )
    assert response.status_code == 500


def test_shorten_batch(client):
    payload = [
        {"correlation_id": "a", "original_url": "https://a.example"},
        {"correlation_id": "b", "original_url": "https://b.example"},
    ]
    response = client.post("/api/shorten/batch", json=payload)
    assert response.status_code == 201
    body = response.json()
    assert [item["correlation_id"] for item in body] == ["a", "b"]
    redirect = client.get(f"/{_code(body[1]['short_url'])}", follow_redirects=False)
    assert redirect.headers["location"] == "https://b.example"


def test_shorten_batch_empty(client):
    response = client.post("/api/shorten/batch", json=[])
    assert response.status_code == 400
    assert "batch cannot be empty" in response.json()["detail"]


# ---------------------------------------------------------------------
# Redirect
# ---------------------------------------------------------------------

def test_redirect(client):
    url = "https://a.example/path?q=1"
    short_url = client.post("/api/shorten", json={"url": url}).json()["result"]

    response = client.get(f"/{_code(short_url)}", follow_redirects=False)

    assert response.status_code == 307
    assert response.headers["location"] == url


def test_redirect_unknown_code(client):
    assert client.get("/missing1", follow_redirects=False).status_code == 404


# ---------------------------------------------------------------------
# Owner listing and deletion
# ---------------------------------------------------------------------

def test_user_urls_empty_is_204(client):
    assert client.get("/api/user/urls").status_code == 204


def test_user_urls_only_lists_own_records(client):
    client.post("/api/shorten", json={"url": "https://a.example"})
    mine = client.get("/api/user/urls")
    assert mine.status_code == 200
    assert [item["original_url"] for item in mine.json()] == ["https://a.example"]

    client.cookies.clear()
    client.post("/api/shorten", json={"url": "https://a.example"})
    assert client.get("/api/user/urls").status_code == 204


def test_delete_user_urls(client):
    codes = [
        _code(client.post("/api/shorten", json={"url": f"https://a.example/{i}"}).json()["result"])
        for i in range(12)
    ]

    response = client.request("DELETE", "/api/user/urls", json=codes)
    assert response.status_code == 202

    for code in codes:
        assert _wait_for_status(client, code, 410) == 410

    again = client.request("DELETE", "/api/user/urls", json=codes)
    assert again.status_code == 202


def test_delete_other_owners_urls_has_no_effect(client):
    victim = _code(client.post("/api/shorten", json={"url": "https://victim.example"}).json()["result"])

    client.cookies.clear()
    client.post("/api/shorten", json={"url": "https://attacker.example"})
    assert client.request("DELETE", "/api/user/urls", json=[victim]).status_code == 202

    # Let the background deletion finish before checking.
    client.app.state.service.deleter.close(wait=True)
    assert client.get(f"/{victim}", follow_redirects=False).status_code == 307


def test_delete_empty_list(client):
    assert client.request("DELETE", "/api/user/urls", json=[]).status_code == 400


# ---------------------------------------------------------------------
# Health and transport
# ---------------------------------------------------------------------

def test_ping(client):
    assert client.get("/ping").status_code == 200


def test_ping_failure(client, monkeypatch):
    from shortener_platform.exceptions import StorageError

    def _down():
        raise StorageError("down")

    monkeypatch.setattr(client.app.state.service.storage, "ping", _down)
    assert client.get("/ping").status_code == 500


@pytest.mark.parametrize("encoding,compressed", [("gzip", True), ("identity", False)])
def test_gzip_responses(client, encoding, compressed):
    payload = [{"correlation_id": str(i), "original_url": f"https://example.com/{i}"} for i in range(30)]
    client.post("/api/shorten/batch", json=payload)

    response = client.get("/api/user/urls", headers={"Accept-Encoding": encoding})

    assert response.status_code == 200
    assert (response.headers.get("content-encoding") == "gzip") is compressed
    assert len(response.json()) == 30
