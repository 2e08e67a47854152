"""Tests for service normalization and derived health status."""

from __future__ import annotations

import pytest

from conftest import SAMPLE_SERVICES, make_service

from conslee_monitor.registry.models import (
    HealthIssue,
    ManagedService,
    ProbeRequest,
    ServiceHealth,
    Verdict,
    filter_services,
)


class TestManagedServiceFromApi:
    def test_defaults_for_missing_fields(self):
        svc = ManagedService.from_api({"name": "bare"})
        assert svc.containers == []
        assert svc.mode == "on_demand"
        assert svc.enabled is True
        assert svc.running is False
        assert svc.host == ""
        assert svc.target_url == ""
        assert svc.health_path == ""
        assert svc.schedule is None

    def test_nulls_treated_as_missing(self):
        svc = ManagedService.from_api(
            {"name": "n", "host": None, "containers": None, "enabled": None, "targetUrl": None}
        )
        assert svc.host == ""
        assert svc.containers == []
        assert svc.enabled is True
        assert svc.target_url == ""

    def test_running_is_coerced(self):
        assert ManagedService.from_api({"name": "n", "running": 1}).running is True
        assert ManagedService.from_api({"name": "n", "running": None}).running is False

    def test_camel_case_fields(self):
        svc = ManagedService.from_api(SAMPLE_SERVICES[0])
        assert svc.target_url == "http://127.0.0.1:9000"
        assert svc.health_path == "/health"

    def test_schedule_defaults(self):
        svc = ManagedService.from_api({"name": "n", "schedule": {"mode": None}})
        assert svc.schedule is not None
        assert svc.schedule.mode == "on_demand"
        assert svc.schedule.days == []

    def test_name_required(self):
        with pytest.raises(ValueError):
            ManagedService.from_api({"host": "x.local"})


class TestProbeRequest:
    def test_payload_uses_wire_names(self):
        req = ProbeRequest(url="http://app.local/health", expect_host="app.local", require_signature=True)
        assert req.to_payload() == {
            "url": "http://app.local/health",
            "expectHost": "app.local",
            "allowWake": False,
            "requireSignature": True,
        }


class TestServiceHealth:
    def test_proxy_issue_wins(self):
        h = ServiceHealth(name="a", proxy=Verdict.UNHEALTHY, target=Verdict.UNHEALTHY)
        assert h.issue is HealthIssue.PROXY
        assert h.status_label == "proxy-unhealthy"

    def test_target_issue_behind_healthy_proxy(self):
        h = ServiceHealth(name="a", proxy=Verdict.HEALTHY, target=Verdict.UNHEALTHY)
        assert h.issue is HealthIssue.TARGET
        assert h.status_label == "target-unhealthy"

    def test_target_issue_hidden_without_healthy_proxy(self):
        h = ServiceHealth(name="a", proxy=Verdict.UNKNOWN, target=Verdict.UNHEALTHY)
        assert h.issue is HealthIssue.NONE

    def test_healthy(self):
        h = ServiceHealth(name="a", proxy=Verdict.HEALTHY, target=Verdict.HEALTHY)
        assert h.issue is HealthIssue.NONE
        assert h.status_label == "healthy"

    def test_disabled_label(self):
        assert ServiceHealth(name="a", enabled=False).status_label == "disabled"

    def test_to_dict(self):
        h = ServiceHealth(name="a", proxy=Verdict.HEALTHY)
        assert h.to_dict() == {
            "name": "a",
            "proxy": "healthy",
            "target": "unknown",
            "issue": "none",
            "status": "healthy",
        }


class TestFilterServices:
    def test_sorted_by_name(self):
        services = [make_service(name="zeta"), make_service(name="alpha")]
        assert [s.name for s in filter_services(services)] == ["alpha", "zeta"]

    def test_running_tab(self):
        services = [ManagedService.from_api(s) for s in SAMPLE_SERVICES]
        assert [s.name for s in filter_services(services, "running")] == ["app"]

    def test_scheduled_tab(self):
        services = [ManagedService.from_api(s) for s in SAMPLE_SERVICES]
        assert [s.name for s in filter_services(services, "scheduled")] == ["blog"]

    def test_unknown_tab(self):
        with pytest.raises(ValueError, match="Unknown tab"):
            filter_services([], "help")
