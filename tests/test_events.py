"""Tests for verdict events, the emitter and the in-memory log."""

from __future__ import annotations

from conslee_monitor.events import EventEmitter, EventLog, VerdictEvent
from conslee_monitor.events.emitter import RESET, SETTLED
from conslee_monitor.registry.models import Layer, Verdict


def _event(service: str = "app", verdict: Verdict = Verdict.HEALTHY, **kwargs) -> VerdictEvent:
    return VerdictEvent(
        event_type=kwargs.pop("event_type", SETTLED),
        service=service,
        layer=kwargs.pop("layer", Layer.PROXY),
        verdict=verdict,
        **kwargs,
    )


class Collector:
    def __init__(self) -> None:
        self.events: list[VerdictEvent] = []

    def on_event(self, event: VerdictEvent) -> None:
        self.events.append(event)


class Broken:
    def on_event(self, event: VerdictEvent) -> None:
        raise RuntimeError("listener failed")


class TestVerdictEvent:
    def test_changed(self):
        assert _event(verdict=Verdict.HEALTHY).changed
        assert not _event(verdict=Verdict.HEALTHY, previous=Verdict.HEALTHY).changed

    def test_to_dict(self):
        data = _event(event_type=RESET, layer=Layer.TARGET, verdict=Verdict.UNKNOWN, previous=Verdict.UNHEALTHY).to_dict()
        assert data["event_type"] == "verdict.reset"
        assert data["layer"] == "target"
        assert data["verdict"] == "unknown"
        assert data["previous"] == "unhealthy"
        assert data["service"] == "app"
        assert "timestamp" in data


class TestEventEmitter:
    def test_dispatch_in_registration_order(self):
        emitter = EventEmitter()
        order: list[str] = []

        class Named:
            def __init__(self, name: str) -> None:
                self.name = name

            def on_event(self, event: VerdictEvent) -> None:
                order.append(self.name)

        emitter.add_listener(Named("first"))
        emitter.add_listener(Named("second"))
        emitter.emit(_event())
        assert order == ["first", "second"]

    def test_listener_error_does_not_stop_others(self):
        emitter = EventEmitter()
        collector = Collector()
        emitter.add_listener(Broken())
        emitter.add_listener(collector)
        emitter.emit(_event())
        assert len(collector.events) == 1

    def test_remove_listener(self):
        emitter = EventEmitter()
        collector = Collector()
        emitter.add_listener(collector)
        emitter.remove_listener(collector)
        emitter.remove_listener(collector)
        emitter.emit(_event())
        assert collector.events == []


class TestEventLog:
    def test_most_recent_first(self):
        log = EventLog()
        for name in ("a", "b", "c"):
            log.on_event(_event(service=name))
        assert [e.service for e in log.get_recent()] == ["c", "b", "a"]

    def test_bounded(self):
        log = EventLog(max_size=2)
        for name in ("a", "b", "c"):
            log.on_event(_event(service=name))
        assert [e.service for e in log.get_recent()] == ["c", "b"]

    def test_filter_and_limit(self):
        log = EventLog()
        for name in ("a", "b", "a", "a"):
            log.on_event(_event(service=name))
        assert len(log.get_recent(service="a")) == 3
        assert len(log.get_recent(limit=2, service="a")) == 2
        assert log.get_recent(service="missing") == []
