"""NetworkMonitor and ConnectivityProbe tests."""

import httpx

from chatqueue.services.network import ConnectivityProbe, NetworkMonitor


async def test_publish_reaches_sync_and_async_listeners() -> None:
    monitor = NetworkMonitor()
    seen = []

    async def async_listener(connected):
        seen.append(("async", connected))

    monitor.add_listener(lambda connected: seen.append(("sync", connected)))
    monitor.add_listener(async_listener)

    await monitor.publish(True)

    assert seen == [("sync", True), ("async", True)]
    assert monitor.is_connected is True


async def test_unsubscribe_is_idempotent() -> None:
    monitor = NetworkMonitor()
    seen = []
    unsubscribe = monitor.add_listener(seen.append)

    unsubscribe()
    unsubscribe()
    await monitor.publish(False)

    assert seen == []


async def test_failing_listener_does_not_block_others() -> None:
    monitor = NetworkMonitor()
    seen = []

    def broken(connected):
        raise RuntimeError("bug")

    monitor.add_listener(broken)
    monitor.add_listener(seen.append)
    await monitor.publish(True)

    assert seen == [True]


async def test_probe_publishes_only_changes() -> None:
    statuses = [200, 200, 503, 503, 200]

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/health"
        return httpx.Response(statuses.pop(0))

    monitor = NetworkMonitor()
    seen = []
    monitor.add_listener(seen.append)
    probe = ConnectivityProbe(
        monitor,
        "http://chat.test",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    for _ in range(5):
        await probe.poll_once()

    assert seen == [True, False, True]


async def test_probe_treats_connection_errors_as_offline() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    monitor = NetworkMonitor()
    probe = ConnectivityProbe(
        monitor,
        "http://chat.test",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    assert await probe.poll_once() is False
    assert monitor.is_connected is False


async def test_probe_start_and_stop() -> None:
    monitor = NetworkMonitor()
    probe = ConnectivityProbe(
        monitor,
        "http://chat.test",
        interval=0.01,
        client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200))),
    )

    probe.start()
    await probe.stop()

    assert probe._task is None
