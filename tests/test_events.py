from app.services.events import BookingChanged, publish, subscribe, unsubscribe


def test_publish_reaches_every_listener():
    a, b = [], []
    subscribe(a.append)
    subscribe(b.append)
    publish(BookingChanged("bk-1", "confirmed"))
    assert [e.booking_id for e in a] == ["bk-1"]
    assert [e.status for e in b] == ["confirmed"]


def test_subscribe_twice_delivers_once():
    seen = []
    listener = seen.append
    subscribe(listener)
    subscribe(listener)
    publish(BookingChanged("bk-1", "pending"))
    assert len(seen) == 1


def test_unsubscribe():
    seen = []
    subscribe(seen.append)
    unsubscribe(seen.append)
    publish(BookingChanged("bk-1", "pending"))
    assert seen == []


def test_broken_listener_is_logged_and_skipped(caplog):
    seen = []

    def broken(event):
        raise RuntimeError("boom")

    subscribe(broken)
    subscribe(seen.append)
    publish(BookingChanged("bk-2", "cancelled"))
    assert len(seen) == 1
    assert "booking_listener_failed" in caplog.text
