from swarm.runtime.orchestration.events import EventBus


def test_listeners_run_in_registration_order():
    bus = EventBus()
    seen = []
    bus.on("agent:response", lambda data: seen.append(("first", data["content"])))
    bus.on("agent:response", lambda data: seen.append(("second", data["content"])))

    delivered = bus.emit("agent:response", {"content": "hello"})

    assert delivered == 2
    assert seen == [("first", "hello"), ("second", "hello")]


def test_failing_listener_does_not_stop_others(caplog):
    bus = EventBus()
    seen = []

    def broken(data):
        raise ValueError("listener bug")

    bus.on("task:complete", broken)
    bus.on("task:complete", lambda data: seen.append(data))

    assert bus.emit("task:complete", {"success": True}) == 1
    assert seen == [{"success": True}]
    assert "listener bug" in caplog.text


def test_off_removes_one_or_all_listeners():
    bus = EventBus()

    def a(data):
        return None

    def b(data):
        return None

    bus.on("session:end", a).on("session:end", b)
    bus.off("session:end", a)
    assert bus.listeners("session:end") == (b,)

    bus.on("session:end", a)
    bus.off("session:end")
    assert bus.listeners("session:end") == ()

    # unknown events and callbacks are ignored
    bus.off("never", a)
    bus.off("session:end", b)


def test_emit_without_listeners_or_payload():
    bus = EventBus()
    received = []
    assert bus.emit("nothing") == 0

    bus.on("ping", received.append)
    bus.emit("ping")
    assert received == [{}]


def test_listener_can_unsubscribe_during_dispatch():
    bus = EventBus()
    calls = []

    def once(data):
        calls.append("once")
        bus.off("tick", once)

    bus.on("tick", once)
    bus.on("tick", lambda data: calls.append("always"))

    bus.emit("tick")
    bus.emit("tick")

    assert calls == ["once", "always", "always"]
