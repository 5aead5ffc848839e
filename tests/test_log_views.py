"""LogViewRegistry bookkeeping."""

import asyncio

import pytest

from logview.config import Settings
from logview.services import DokployError, LogViewRegistry
from logview.services.dokploy import Application, Container
from logview.services.logs import LogStreamRequest, SourceController

from .conftest import FakeTransport, settle


class StubDokploy:
    def __init__(self, containers):
        self.containers = containers

    async def get_application(self, application_id):
        return Application(application_id=application_id, name="API", app_name="api-x1y2")

    async def get_containers_by_app_label(self, app_name):
        if isinstance(self.containers, Exception):
            raise self.containers
        return self.containers

    def runtime_log_request(self, container_id, tail, server_id=None):
        return LogStreamRequest(url=f"ws://dokploy/docker-container-logs?containerId={container_id}&tail={tail}")


def _registry(client, transport):
    return LogViewRegistry(
        client_provider=lambda: client,
        transport=transport.open,
        settings=Settings(default_tail_depth=100, show_timestamps=False),
    )


class TestRegistry:
    """Opening and closing views"""

    def test_open_and_close(self):
        transport = FakeTransport()
        client = StubDokploy([Container(container_id="c1", name="api-1", state="running")])

        async def scenario():
            registry = _registry(client, transport)
            view = await registry.open_runtime_view("app-1")
            await settle()
            listed = [item.view_id for item in registry.list_views()]
            closed = await registry.close_view(view.view_id)
            return view, listed, closed, registry

        view, listed, closed, registry = asyncio.run(scenario())
        assert listed == [view.view_id]
        assert closed
        assert registry.get(view.view_id) is None
        assert transport.latest.closed

    def test_inventory_failure_gives_no_source_view(self):
        transport = FakeTransport()
        client = StubDokploy(DokployError("Dokploy request failed (500): boom"))

        async def scenario():
            registry = _registry(client, transport)
            view = await registry.open_runtime_view("app-1")
            return view.controller.snapshot()

        snapshot = asyncio.run(scenario())
        assert snapshot.state == "no_source"
        assert "boom" in snapshot.detail

    def test_failed_open_is_not_registered(self, monkeypatch):
        transport = FakeTransport()
        client = StubDokploy([])

        async def failing_open(self):
            raise RuntimeError("open failed")

        monkeypatch.setattr(SourceController, "open", failing_open)

        async def scenario():
            registry = _registry(client, transport)
            with pytest.raises(RuntimeError):
                await registry.open_runtime_view("app-1")
            return registry.list_views()

        assert asyncio.run(scenario()) == []

    def test_unconfigured_dokploy(self):
        async def scenario():
            registry = LogViewRegistry(client_provider=lambda: None, transport=FakeTransport().open)
            await registry.open_runtime_view("app-1")

        with pytest.raises(DokployError, match="not configured"):
            asyncio.run(scenario())
