"""Tests for signals and the local event bus."""

from swrcache import EventBus, LocalEventBus, Signal


class TestLocalEventBus:
    """Tests for LocalEventBus."""

    def test_satisfies_protocol(self, bus: LocalEventBus) -> None:
        """Test that LocalEventBus is an EventBus."""
        assert isinstance(bus, EventBus)

    def test_emit_reaches_only_matching_signal(self, bus: LocalEventBus) -> None:
        """Test that subscribers only hear their own signal."""
        calls: list[str] = []
        bus.subscribe(Signal.FOCUS, lambda: calls.append("focus"))
        bus.subscribe(Signal.RECONNECT, lambda: calls.append("reconnect"))

        assert bus.emit(Signal.FOCUS) == 1
        assert calls == ["focus"]

    def test_accepts_signal_names(self, bus: LocalEventBus) -> None:
        """Test that plain signal names are accepted."""
        calls: list[str] = []
        bus.subscribe("reconnect", lambda: calls.append("reconnect"))  # type: ignore[arg-type]
        bus.emit("reconnect")  # type: ignore[arg-type]
        assert calls == ["reconnect"]

    def test_unsubscribe_is_idempotent(self, bus: LocalEventBus) -> None:
        """Test that unsubscribing twice is harmless."""
        calls: list[int] = []
        unsubscribe = bus.subscribe(Signal.FOCUS, lambda: calls.append(1))
        assert bus.listener_count(Signal.FOCUS) == 1

        unsubscribe()
        unsubscribe()
        assert bus.listener_count(Signal.FOCUS) == 0
        assert bus.emit(Signal.FOCUS) == 0
        assert calls == []

    def test_unsubscribe_during_emit(self, bus: LocalEventBus) -> None:
        """Test that a callback may unsubscribe itself while being called."""
        calls: list[str] = []
        unsubscribe = bus.subscribe(Signal.FOCUS, lambda: unsubscribe())
        bus.subscribe(Signal.FOCUS, lambda: calls.append("second"))

        bus.emit(Signal.FOCUS)
        bus.emit(Signal.FOCUS)
        assert calls == ["second", "second"]

    def test_failing_callback_does_not_block_others(self, bus: LocalEventBus) -> None:
        """Test that a raising callback is logged and the rest still run."""
        calls: list[str] = []

        def broken() -> None:
            raise RuntimeError("boom")

        bus.subscribe(Signal.RECONNECT, broken)
        bus.subscribe(Signal.RECONNECT, lambda: calls.append("ok"))
        assert bus.emit(Signal.RECONNECT) == 2
        assert calls == ["ok"]
