"""Tests for the EventBus."""

from __future__ import annotations

from typing import Any

import pytest

from image_resizer_lib.core.events import EventBus


class TestEventBusSubscribeEmit:
    """Tests for subscribe/emit behaviour."""

    def test_handler_receives_emitted_kwargs(self) -> None:
        """A subscribed handler receives all keyword arguments."""
        bus = EventBus()
        received: list[dict[str, Any]] = []
        bus.subscribe("stage_failed", lambda **kw: received.append(kw))

        bus.emit("stage_failed", stage="encode", message="boom")

        assert received == [{"stage": "encode", "message": "boom"}]

    def test_events_are_independent(self) -> None:
        """Handlers only see the event they subscribed to."""
        bus = EventBus()
        received: list[str] = []
        bus.subscribe("completed", lambda **_kw: received.append("completed"))

        bus.emit("stage_failed", stage="metadata", message="x")

        assert received == []

    def test_failing_handler_does_not_stop_others(self, caplog: pytest.LogCaptureFixture) -> None:
        """An exception in one handler is logged and the next still runs."""
        bus = EventBus()
        calls: list[str] = []

        def broken(**_kw: Any) -> None:
            raise RuntimeError("handler bug")

        bus.subscribe("completed", broken)
        bus.subscribe("completed", lambda **_kw: calls.append("ok"))

        bus.emit("completed", ok=True)

        assert calls == ["ok"]
        assert any("Error in handler" in rec.getMessage() for rec in caplog.records)


class TestEventBusUnsubscribe:
    """Tests for handler removal."""

    def test_unsubscribed_handler_not_called(self) -> None:
        """After unsubscribe, the handler is no longer invoked."""
        bus = EventBus()
        calls: list[int] = []

        def handler(**_kw: Any) -> None:
            calls.append(1)

        bus.subscribe("completed", handler)
        bus.unsubscribe("completed", handler)
        bus.emit("completed")

        assert calls == []

    def test_unsubscribe_unknown_handler_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        """Removing a handler that was never added only logs a warning."""
        bus = EventBus()

        bus.unsubscribe("completed", lambda **_kw: None)

        assert any("was not subscribed" in rec.getMessage() for rec in caplog.records)
