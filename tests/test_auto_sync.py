import threading

from classbook.services.auto_sync import AutoSync


def test_ticks_until_stopped():
    ticked = threading.Event()
    calls = []

    def callback():
        calls.append(1)
        ticked.set()

    auto = AutoSync(callback, interval=0.01)
    auto.start()
    assert ticked.wait(2)
    auto.stop(timeout=2)
    assert not auto.is_running()
    n = len(calls)
    assert n >= 1
    ticked.clear()
    assert not ticked.wait(0.05)
    assert len(calls) == n


def test_skips_ticks_when_not_allowed():
    calls = []
    checked = threading.Event()

    def should_run():
        checked.set()
        return False

    auto = AutoSync(lambda: calls.append(1), interval=0.01, should_run=should_run)
    auto.start()
    assert checked.wait(2)
    auto.stop(timeout=2)
    assert calls == []


def test_callback_errors_do_not_kill_the_loop():
    calls = []
    second = threading.Event()

    def callback():
        calls.append(1)
        if len(calls) >= 2:
            second.set()
        raise RuntimeError("remote down")

    auto = AutoSync(callback, interval=0.01)
    auto.start()
    assert second.wait(2)
    auto.stop(timeout=2)


def test_start_is_idempotent():
    auto = AutoSync(lambda: None, interval=60)
    auto.start()
    first = auto._thread
    auto.start()
    assert auto._thread is first
    auto.stop(timeout=2)
    auto.stop()
