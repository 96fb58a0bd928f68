import threading

import pytest
import requests

import service
from errors import UpstreamError, UpstreamSource


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


def fake_get(routes):
    """routes maps a url substring to a FakeResponse or an exception."""
    calls = []

    def _get(url, timeout=None):
        calls.append((url, timeout))
        for key, outcome in routes.items():
            if key in url:
                if isinstance(outcome, Exception):
                    raise outcome
                return outcome
        raise AssertionError(f"unexpected url {url}")

    _get.calls = calls
    return _get


def test_fetch_countries_ok(monkeypatch):
    get = fake_get({"restcountries": FakeResponse([{"name": "Japan"}])})
    monkeypatch.setattr(service.requests, "get", get)
    assert service.fetch_countries() == [{"name": "Japan"}]
    assert get.calls[0][1] == 10


def test_fetch_countries_http_error_is_tagged(monkeypatch):
    monkeypatch.setattr(service.requests, "get", fake_get({"restcountries": FakeResponse(status_code=500)}))
    with pytest.raises(UpstreamError) as exc:
        service.fetch_countries()
    assert exc.value.source is UpstreamSource.COUNTRIES


def test_fetch_countries_rejects_non_list(monkeypatch):
    monkeypatch.setattr(service.requests, "get", fake_get({"restcountries": FakeResponse({"message": "nope"})}))
    with pytest.raises(UpstreamError) as exc:
        service.fetch_countries()
    assert exc.value.source is UpstreamSource.COUNTRIES


def test_fetch_rates_returns_mapping(monkeypatch):
    payload = {"result": "success", "rates": {"USD": 1, "NGN": 1600.5}}
    monkeypatch.setattr(service.requests, "get", fake_get({"er-api": FakeResponse(payload)}))
    assert service.fetch_exchange_rates() == {"USD": 1, "NGN": 1600.5}


def test_fetch_rates_timeout_is_tagged(monkeypatch):
    monkeypatch.setattr(service.requests, "get", fake_get({"er-api": requests.Timeout("read timed out")}))
    with pytest.raises(UpstreamError) as exc:
        service.fetch_exchange_rates()
    assert exc.value.source is UpstreamSource.EXCHANGE_RATES


def test_fetch_rates_api_error_result(monkeypatch):
    payload = {"result": "error", "error-type": "unsupported-code"}
    monkeypatch.setattr(service.requests, "get", fake_get({"er-api": FakeResponse(payload)}))
    with pytest.raises(UpstreamError) as exc:
        service.fetch_exchange_rates()
    assert exc.value.source is UpstreamSource.EXCHANGE_RATES


def test_fetch_rates_invalid_json(monkeypatch):
    monkeypatch.setattr(service.requests, "get", fake_get({"er-api": FakeResponse(ValueError("bad json"))}))
    with pytest.raises(UpstreamError) as exc:
        service.fetch_exchange_rates()
    assert exc.value.source is UpstreamSource.EXCHANGE_RATES


def test_fetch_all_reports_failing_source(monkeypatch):
    monkeypatch.setattr(service, "fetch_countries", lambda timeout: [{"name": "Japan"}])

    def broken(timeout):
        raise UpstreamError(UpstreamSource.EXCHANGE_RATES, "boom")

    monkeypatch.setattr(service, "fetch_exchange_rates", broken)
    with pytest.raises(UpstreamError) as exc:
        service.fetch_all()
    assert exc.value.source is UpstreamSource.EXCHANGE_RATES


def test_fetch_all_returns_both(monkeypatch):
    monkeypatch.setattr(service, "fetch_countries", lambda timeout: [{"name": "Japan"}])
    monkeypatch.setattr(service, "fetch_exchange_rates", lambda timeout: {"JPY": 150.0})
    countries, rates = service.fetch_all()
    assert countries == [{"name": "Japan"}]
    assert rates == {"JPY": 150.0}


def test_fetch_all_runs_both_requests_at_once(monkeypatch):
    # each fake waits for the other; a sequential fetch_all breaks the barrier
    barrier = threading.Barrier(2, timeout=5)

    def countries(timeout):
        barrier.wait()
        return [{"name": "Japan"}]

    def rates(timeout):
        barrier.wait()
        return {"JPY": 150.0}

    monkeypatch.setattr(service, "fetch_countries", countries)
    monkeypatch.setattr(service, "fetch_exchange_rates", rates)
    assert service.fetch_all() == ([{"name": "Japan"}], {"JPY": 150.0})


def test_fetch_all_both_failing_reports_countries(monkeypatch):
    def broken(source):
        def _fetch(timeout):
            raise UpstreamError(source, "down")

        return _fetch

    monkeypatch.setattr(service, "fetch_countries", broken(UpstreamSource.COUNTRIES))
    monkeypatch.setattr(service, "fetch_exchange_rates", broken(UpstreamSource.EXCHANGE_RATES))
    with pytest.raises(UpstreamError) as exc:
        service.fetch_all()
    assert exc.value.source is UpstreamSource.COUNTRIES
