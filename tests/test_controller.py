"""SourceController: reconfiguration, stale-event suppression and intents."""

import asyncio

import pytest

from logview.services.logs import (
    ConfigurationError,
    ControllerState,
    LogStreamRequest,
    SourceController,
    SourceInfo,
    SourceResolutionError,
    parse_tail_depth,
)

from .conftest import FakeTransport, settle


SOURCES = [
    SourceInfo(source_id="c1", name="api-1", state="running"),
    SourceInfo(source_id="c2", name="api-2", state="exited"),
]


def _build_request(config, source):
    return LogStreamRequest(url=f"ws://dokploy/logs?containerId={source.source_id}&tail={config.tail_depth}")


def _controller(transport, sources=SOURCES, **kwargs):
    async def resolve():
        if isinstance(sources, Exception):
            raise sources
        return list(sources)

    return SourceController(
        "Runtime Logs: api",
        resolve_sources=resolve,
        build_request=_build_request,
        transport=transport.open,
        tail_depth_options=(100, 500, 1000),
        **kwargs,
    )


def _messages(snapshot):
    return [record.get("message_text") for record in snapshot.to_dict()["records"]]


class TestParseTailDepth:
    """Tail depth validation"""

    @pytest.mark.parametrize("value, expected", [(1, 1), (500, 500), ("1000", 1000), (" 20 ", 20)])
    def test_valid(self, value, expected):
        assert parse_tail_depth(value, maximum=10000) == expected

    @pytest.mark.parametrize("value", [0, -5, 10001, "abc", "", "1.5", 2.0, None, True])
    def test_invalid(self, value):
        with pytest.raises(ConfigurationError):
            parse_tail_depth(value, maximum=10000)


class TestOpen:
    """Initial source resolution"""

    def test_opens_first_source(self, transport):
        async def scenario():
            controller = _controller(transport)
            snapshot = await controller.open()
            await settle()
            return controller, snapshot

        controller, snapshot = asyncio.run(scenario())
        assert snapshot.source_id == "c1"
        assert snapshot.tail_depth == 100
        assert [source.label for source in snapshot.sources] == ["api-1 (running)", "api-2 (exited)"]
        assert transport.requests[0].url.endswith("containerId=c1&tail=100")
        assert controller.state is ControllerState.ACTIVE

    def test_no_sources(self, transport):
        async def scenario():
            controller = _controller(transport, sources=[])
            return await controller.open()

        snapshot = asyncio.run(scenario())
        assert snapshot.state == "no_source"
        assert snapshot.source_id is None
        assert transport.streams == []

    def test_resolution_failure_is_reported_as_no_source(self, transport):
        async def scenario():
            controller = _controller(transport, sources=SourceResolutionError("Dokploy unavailable"))
            return await controller.open()

        snapshot = asyncio.run(scenario())
        assert snapshot.state == "no_source"
        assert snapshot.detail == "Dokploy unavailable"

    def test_tail_depth_hidden_when_unsupported(self, transport):
        async def scenario():
            controller = _controller(transport, supports_tail=False)
            return await controller.open()

        assert asyncio.run(scenario()).tail_depth is None


class TestReconfiguration:
    """Source and tail changes replace the session"""

    def test_select_source_starts_fresh_buffer(self, transport):
        async def scenario():
            controller = _controller(transport)
            await controller.open()
            await settle()
            transport.latest.push("INFO: from c1\n")
            await settle()
            before = controller.snapshot()
            snapshot = await controller.select_source("c2")
            await settle()
            return before, snapshot

        before, snapshot = asyncio.run(scenario())
        assert _messages(before) == ["INFO: from c1"]
        assert snapshot.source_id == "c2"
        assert snapshot.records == ()
        assert snapshot.generation == before.generation + 1
        assert transport.streams[0].closed
        assert transport.requests[1].url.endswith("containerId=c2&tail=100")

    def test_late_events_from_old_session_are_dropped(self, transport):
        async def scenario():
            controller = _controller(transport)
            await controller.open()
            await settle()
            old_stream = transport.latest
            await controller.select_source("c2")
            queue = controller.subscribe()
            old_stream.push("ERROR: stale\n")
            transport.latest.push("INFO: fresh\n")
            await settle()
            seen = []
            while not queue.empty():
                seen.append(queue.get_nowait())
            return controller.snapshot(), seen

        snapshot, seen = asyncio.run(scenario())
        assert _messages(snapshot) == ["INFO: fresh"]
        for published in seen:
            assert "ERROR: stale" not in _messages(published)

    def test_set_tail_depth_reconnects_same_source(self, transport):
        async def scenario():
            controller = _controller(transport)
            await controller.open()
            await settle()
            snapshot = await controller.set_tail_depth("500")
            await settle()
            return snapshot

        snapshot = asyncio.run(scenario())
        assert snapshot.tail_depth == 500
        assert snapshot.source_id == "c1"
        assert [request.url[-len("c1&tail=500"):] for request in transport.requests[1:]] == ["c1&tail=500"]

    def test_invalid_tail_keeps_running_session(self, transport):
        async def scenario():
            controller = _controller(transport)
            await controller.open()
            await settle()
            with pytest.raises(ConfigurationError):
                await controller.set_tail_depth("lots")
            await settle()
            return controller, transport.streams[0].closed

        controller, old_closed = asyncio.run(scenario())
        assert controller.tail_depth == 100
        assert len(transport.streams) == 1
        assert not old_closed

    def test_unknown_source_is_rejected_before_teardown(self, transport):
        async def scenario():
            controller = _controller(transport)
            await controller.open()
            await settle()
            with pytest.raises(ConfigurationError):
                await controller.select_source("missing")
            return controller

        controller = asyncio.run(scenario())
        assert controller.config.source_id == "c1"
        assert controller.generation == 1

    def test_tail_change_rejected_for_deployment_views(self, transport):
        async def scenario():
            controller = _controller(transport, supports_tail=False)
            await controller.open()
            with pytest.raises(ConfigurationError):
                await controller.set_tail_depth(500)

        asyncio.run(scenario())

    def test_refresh_relists_sources(self, transport):
        listings = [SOURCES, [SOURCES[1]]]

        async def resolve():
            return list(listings.pop(0))

        async def scenario():
            controller = SourceController(
                "Runtime Logs: api",
                resolve_sources=resolve,
                build_request=_build_request,
                transport=transport.open,
            )
            await controller.open()
            await settle()
            snapshot = await controller.refresh()
            await settle()
            return snapshot

        snapshot = asyncio.run(scenario())
        assert [source.source_id for source in snapshot.sources] == ["c2"]
        assert snapshot.source_id == "c2"
        assert snapshot.generation == 2


class TestSubscriptions:
    """Snapshot delivery"""

    def test_subscriber_receives_initial_and_updates(self, transport):
        async def scenario():
            controller = _controller(transport)
            await controller.open()
            await settle()
            queue = controller.subscribe()
            initial = queue.get_nowait()
            transport.latest.push("Listening on port 3000\n")
            await settle()
            update = queue.get_nowait()
            return initial, update

        initial, update = asyncio.run(scenario())
        assert initial.state == "receiving"
        assert initial.placeholder == "Connected. Waiting for logs..."
        assert _messages(update) == ["Listening on port 3000"]
        assert "log-success" in update.content_html

    def test_full_queue_keeps_latest_snapshot(self, transport):
        async def scenario():
            controller = _controller(transport)
            await controller.open()
            await settle()
            queue = controller.subscribe()
            for index in range(100):
                transport.latest.push(f"line {index}\n")
                await settle(2)
            await settle()
            items = []
            while not queue.empty():
                items.append(queue.get_nowait())
            return items

        items = asyncio.run(scenario())
        assert len(items) <= 64
        assert _messages(items[-1])[-1] == "line 99"

    def test_close_ends_view(self, transport):
        async def scenario():
            controller = _controller(transport)
            await controller.open()
            await settle()
            await controller.close()
            with pytest.raises(ConfigurationError):
                await controller.refresh()
            return controller

        controller = asyncio.run(scenario())
        assert controller.state is ControllerState.CLOSED
        assert controller.snapshot().state == "ended"
        assert transport.streams[0].closed


class TestResolverFailures:
    """Listing failures never leave a view without a state"""

    def test_unexpected_failure_on_refresh_becomes_no_source(self, transport):
        calls = []

        async def resolve():
            calls.append(1)
            if len(calls) > 1:
                raise ValueError("1 validation error for Container")
            return list(SOURCES)

        async def scenario():
            controller = SourceController(
                "Runtime Logs: api",
                resolve_sources=resolve,
                build_request=_build_request,
                transport=transport.open,
            )
            await controller.open()
            await settle()
            snapshot = await controller.refresh()
            return controller, snapshot

        controller, snapshot = asyncio.run(scenario())
        assert snapshot.state == "no_source"
        assert snapshot.detail == "1 validation error for Container"
        assert controller.session is None
        assert controller.state is ControllerState.NO_SOURCE

    def test_refresh_recovers_after_failure(self, transport):
        listings = [RuntimeError("boom"), SOURCES]

        async def resolve():
            result = listings.pop(0)
            if isinstance(result, Exception):
                raise result
            return list(result)

        async def scenario():
            controller = SourceController(
                "Runtime Logs: api",
                resolve_sources=resolve,
                build_request=_build_request,
                transport=transport.open,
            )
            first = await controller.open()
            second = await controller.refresh()
            return first, second

        first, second = asyncio.run(scenario())
        assert first.state == "no_source"
        assert second.source_id == "c1"
        assert second.detail is None
