"""Tests for the metrics scrape endpoint."""

import pytest


class TestMetricsAPI:
    """Test suite for metrics API endpoint."""

    def test_get_metrics_response_format(self, client):
        """The endpoint answers 200 with the text exposition content type."""
        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["Content-Type"] == "text/plain; version=0.0.4"
        assert isinstance(response.get_data(as_text=True), str)

    def test_get_metrics_with_stored_data(self, client, metric_registry, series_service):
        """Test metrics endpoint returns data after a series update."""
        metric_registry.register("http_requests_total", help="Total requests", type="counter")
        series_service.series("http_requests_total").update("5")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.get_data(as_text=True) == (
            "# HELP http_requests_total Total requests\n"
            "# TYPE http_requests_total counter\n"
            "http_requests_total 5\n"
            "\n"
        )

    def test_get_metrics_without_data(self, client, metric_registry):
        metric_registry.register("name", help="H", type="gauge")

        response = client.get("/metrics")

        assert response.get_data(as_text=True) == "# HELP name H\n# TYPE name gauge\n# No data\n\n"

    @pytest.mark.parametrize(
        "path",
        ["/metrics", "/metrics/", "/x/metrics", "/x/metrics/", "/a/b/metrics", "/a/b/metrics/", "/api/metrics"],
    )
    def test_get_metrics_any_path_ending_in_metrics(self, client, metric_registry, path):
        """Any path ending in /metrics serves the exposition without a redirect."""
        metric_registry.register("up", data_callback=lambda name: 1)

        response = client.get(path)

        assert response.status_code == 200
        assert "Location" not in response.headers
        assert response.get_data(as_text=True) == "up 1\n\n"

    def test_get_metrics_method_not_allowed(self, client):
        """Test that only GET method is allowed on /metrics endpoint."""
        assert client.post("/metrics").status_code == 405
        assert client.put("/metrics").status_code == 405
        assert client.delete("/metrics").status_code == 405

    def test_other_paths_are_not_found(self, client):
        assert client.get("/metricsx").status_code == 404
        assert client.get("/").status_code == 404

    def test_failing_metric_does_not_fail_scrape(self, client, metric_registry):
        def broken(name):
            raise RuntimeError("boom")

        metric_registry.register("broken", data_callback=broken)
        metric_registry.register("up", data_callback=lambda name: 1)

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.get_data(as_text=True) == "# No data\n\nup 1\n\n"
