"""
Backend client and catalog loader tests against the fake sailing backend.
"""

import httpx
import pytest

from insights.catalog import CatalogLoader, FleetCatalog
from insights.client import BackendClient
from insights.config import Settings, get_settings
from insights.errors import TransportFailure


class TestBackendClient:
    def test_fetches_catalog_lists(self, backend_client):
        assert backend_client.get_sheets().data == ["A", "B", "C"]
        assert backend_client.get_metrics().status == "success"

    def test_posts_payload_to_wire_endpoint(self, backend_client, fake_backend):
        body = {"filter_by": "date", "filters": {"fromDate": "2024-01-01", "toDate": "2024-01-31"}}
        response = backend_client.get_rating_summary(body)
        assert response.count == 2
        assert fake_backend.calls("getRatingSmry") == [body]

    def test_http_error_becomes_transport_failure(self, backend_client, fake_backend):
        fake_backend.failing.add("issuesSmry")
        with pytest.raises(TransportFailure) as excinfo:
            backend_client.get_issues_summary({"filter_by": "date"})
        assert excinfo.value.operation == "issuesSummary"
        assert excinfo.value.status_code == 500

    def test_error_status_in_envelope_becomes_transport_failure(self, backend_client, fake_backend):
        fake_backend.error_status.add("semanticSearch")
        with pytest.raises(TransportFailure, match="backend exploded"):
            backend_client.semantic_search({"query": "x"})

    def test_malformed_body_becomes_transport_failure(self, fake_backend):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": "success", "results": "not-a-list"})

        with httpx.Client(transport=httpx.MockTransport(handler), base_url="http://backend") as http:
            client = BackendClient(http, settings=Settings())
            with pytest.raises(TransportFailure, match="malformed"):
                client.get_metric_rating({})

    def test_non_json_body_becomes_transport_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway</html>")

        with httpx.Client(transport=httpx.MockTransport(handler), base_url="http://backend") as http:
            with pytest.raises(TransportFailure, match="not JSON"):
                BackendClient(http, settings=Settings()).get_fleets()

    def test_network_error_becomes_transport_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with httpx.Client(transport=httpx.MockTransport(handler), base_url="http://backend") as http:
            with pytest.raises(TransportFailure, match="request failed"):
                BackendClient(http, settings=Settings()).get_sheets()

    def test_custom_prefix(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(200, json={"status": "success", "data": []})

        with httpx.Client(transport=httpx.MockTransport(handler), base_url="http://backend") as http:
            BackendClient(http, settings=Settings(api_prefix="/v2/sailing")).get_metrics()
        assert seen == ["/v2/sailing/metrics"]


class TestCatalogLoader:
    def test_loads_each_catalog_once(self, backend_client, fake_backend):
        loader = CatalogLoader(backend_client)
        first = loader.load_fleets()
        second = loader.load_fleets()
        assert first is second
        assert first.fleet_ids() == ["atlantic", "pacific", "nordic"]
        assert len(fake_backend.calls("fleets")) == 1

    def test_failure_yields_empty_catalog_and_warning(self, backend_client, fake_backend):
        fake_backend.failing.add("sheets")
        loader = CatalogLoader(backend_client)
        assert loader.load_sheets() == ()
        assert [w.catalog for w in loader.warnings] == ["sheets"]
        # other catalogs are unaffected
        assert loader.load_metrics() == ("Cabins", "F&B Quality", "Entertainment")

    def test_failed_fleets_give_an_empty_fleet_catalog(self, backend_client, fake_backend):
        fake_backend.failing.add("fleets")
        assert CatalogLoader(backend_client).load_fleets() == FleetCatalog()

    def test_reload_fetches_again(self, backend_client, fake_backend):
        fake_backend.failing.add("metrics")
        loader = CatalogLoader(backend_client)
        assert loader.load_metrics() == ()
        fake_backend.failing.clear()
        loader.reload()
        assert loader.load_metrics() == ("Cabins", "F&B Quality", "Entertainment")
        assert loader.warnings == []
        assert len(fake_backend.calls("metrics")) == 2


class TestSettings:
    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("SAILING_API_BASE_URL", "http://backend:5000/")
        monkeypatch.setenv("SAILING_API_PREFIX", "api")
        monkeypatch.setenv("SAILING_API_TIMEOUT", "not-a-number")
        monkeypatch.setenv("DASHBOARD_CORS_ORIGINS", "https://a.example, https://b.example")
        get_settings.cache_clear()
        try:
            settings = get_settings()
        finally:
            get_settings.cache_clear()
        assert settings.base_url == "http://backend:5000"
        assert settings.api_prefix == "/api"
        assert settings.timeout_s == 30.0
        assert settings.cors_origins == ("https://a.example", "https://b.example")
