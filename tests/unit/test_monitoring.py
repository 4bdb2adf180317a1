import pytest
from prometheus_client import REGISTRY

from bizmanager.utils.monitoring import observe_request, status_class


@pytest.mark.parametrize("code, expected", [(200, "2xx"), (204, "2xx"), (401, "4xx"), (429, "4xx"), (503, "5xx")])
def test_status_class(code, expected):
    assert status_class(code) == expected


def test_observe_request_groups_codes_by_class():
    labels = {"method": "GET", "route": "/tags/top", "status_class": "4xx"}
    before = REGISTRY.get_sample_value("bizmanager_http_requests_total", labels) or 0

    observe_request("GET", "/tags/top", 404, 0.01)
    observe_request("GET", "/tags/top", 422, 0.02)

    assert REGISTRY.get_sample_value("bizmanager_http_requests_total", labels) == before + 2
