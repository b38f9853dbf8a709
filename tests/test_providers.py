"""Tests for the upstream provider fetchers (HTTP is faked)."""

import pytest
import requests

import providers
from providers import ProviderError, fetch_google_place, fetch_hostaway_reviews, load_mock_reviews


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code
        self.ok = status_code < 400

    def json(self):
        return self.payload

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"HTTP {self.status_code}")


@pytest.fixture
def calls():
    return []


@pytest.fixture
def fake_get(monkeypatch, calls):
    def install(payload, status_code=200):
        def get(url, **kwargs):
            calls.append((url, kwargs))
            return FakeResponse(payload, status_code)
        monkeypatch.setattr(providers.requests, "get", get)
    return install


def test_hostaway_unconfigured_returns_none():
    assert fetch_hostaway_reviews(account_id="", api_key="", client_id="", client_secret="") is None


def test_hostaway_with_api_key(fake_get, calls, hostaway_review):
    fake_get({"status": "success", "result": [hostaway_review]})

    data = fetch_hostaway_reviews(account_id="61148", api_key="secret", limit=10)
    assert data["result"] == [hostaway_review]
    url, kwargs = calls[0]
    assert url.endswith("/reviews")
    assert kwargs["headers"]["Authorization"] == "Bearer secret"
    assert kwargs["headers"]["Account-Id"] == "61148"
    assert kwargs["params"] == {"limit": 10}


def test_hostaway_client_credentials(monkeypatch, fake_get, calls, hostaway_review):
    monkeypatch.setattr(providers.requests, "post", lambda url, **kwargs: FakeResponse({"access_token": "tok"}))
    fake_get({"result": [hostaway_review]})

    data = fetch_hostaway_reviews(account_id="", api_key="", client_id="id", client_secret="shh")
    assert data is not None
    assert calls[0][1]["headers"]["Authorization"] == "Bearer tok"


@pytest.mark.parametrize("payload,status_code", [
    ({"result": []}, 200),
    ({"status": "fail"}, 403),
])
def test_hostaway_empty_or_failed(fake_get, payload, status_code):
    fake_get(payload, status_code)
    assert fetch_hostaway_reviews(api_key="secret") is None


def test_hostaway_network_error(monkeypatch):
    def get(url, **kwargs):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(providers.requests, "get", get)
    assert fetch_hostaway_reviews(api_key="secret") is None


def test_google_place(fake_get, calls, google_place):
    fake_get({"status": "OK", "result": google_place})

    assert fetch_google_place("ChIJ123", "key") == google_place
    assert calls[0][1]["params"]["place_id"] == "ChIJ123"


@pytest.mark.parametrize("status,expected", [
    ("INVALID_REQUEST", 400),
    ("OVER_QUERY_LIMIT", 429),
    ("REQUEST_DENIED", 500),
])
def test_google_status_errors(fake_get, status, expected):
    fake_get({"status": status, "error_message": "nope"})

    with pytest.raises(ProviderError, match=status) as excinfo:
        fetch_google_place("ChIJ123", "key")
    assert excinfo.value.status_code == expected
    assert excinfo.value.upstream_status == status


def test_google_http_error(fake_get):
    fake_get({}, status_code=503)

    with pytest.raises(ProviderError, match="503"):
        fetch_google_place("ChIJ123", "key")


def test_load_mock_reviews(tmp_path):
    path = tmp_path / "reviews.json"
    path.write_text('{"status": "success", "result": [{"id": 1}]}', encoding="utf-8")
    assert load_mock_reviews(path)["result"] == [{"id": 1}]


def test_hostaway_reads_config_when_called(monkeypatch, fake_get, calls, hostaway_review):
    monkeypatch.setattr(providers.config, "HOSTAWAY_API_KEY", "late-key")
    monkeypatch.setattr(providers.config, "HOSTAWAY_ACCOUNT_ID", "777")
    monkeypatch.setattr(providers.config, "HOSTAWAY_REVIEW_LIMIT", 5)
    fake_get({"result": [hostaway_review]})

    assert fetch_hostaway_reviews() is not None
    kwargs = calls[0][1]
    assert kwargs["headers"]["Authorization"] == "Bearer late-key"
    assert kwargs["headers"]["Account-Id"] == "777"
    assert kwargs["params"] == {"limit": 5}


def test_hostaway_unconfigured_config_returns_none(monkeypatch):
    for name in ("HOSTAWAY_API_KEY", "HOSTAWAY_CLIENT_ID", "HOSTAWAY_CLIENT_SECRET"):
        monkeypatch.setattr(providers.config, name, "")
    assert fetch_hostaway_reviews() is None


def test_load_mock_reviews_default_path(monkeypatch, tmp_path):
    path = tmp_path / "sample.json"
    path.write_text('{"result": [{"id": 9}]}', encoding="utf-8")
    monkeypatch.setattr(providers.config, "MOCK_DATA_PATH", path)
    assert load_mock_reviews()["result"] == [{"id": 9}]
