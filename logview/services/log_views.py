"""Registry of open log views, each backed by a SourceController."""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from datetime import tzinfo
from typing import Callable, Dict, List, Optional

from ..config import Settings, get_settings
from ..logging_config import logger
from .dokploy import Application, DokployClient, DokployError, get_dokploy_client
from .logs import (
    LogTransport,
    SessionConfig,
    SourceController,
    SourceInfo,
    SourceResolutionError,
    open_websocket_stream,
)


RUNTIME_VIEW = "runtime"
DEPLOYMENT_VIEW = "deployment"


def _display_timezone() -> tzinfo:
    from ..utils.timezones import resolve_display_timezone

    return resolve_display_timezone()


@dataclass
class LogView:
    view_id: str
    kind: str
    application: Application
    controller: SourceController

    @property
    def stream_path(self) -> str:
        return f"/api/v1/logs/views/{self.view_id}/stream"


class LogViewRegistry:
    """Creates, tracks and tears down log views keyed by view id."""

    def __init__(
        self,
        *,
        client_provider: Callable[[], Optional[DokployClient]] = get_dokploy_client,
        transport: LogTransport = open_websocket_stream,
        settings: Optional[Settings] = None,
    ) -> None:
        self._client_provider = client_provider
        self._transport = transport
        self._settings = settings
        self._views: Dict[str, LogView] = {}
        self._lock = asyncio.Lock()

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def _client(self) -> DokployClient:
        client = self._client_provider()
        if client is None:
            raise DokployError("Dokploy is not configured")
        return client

    def get(self, view_id: str) -> Optional[LogView]:
        return self._views.get(view_id)

    def list_views(self) -> List[LogView]:
        return list(self._views.values())

    async def open_runtime_view(self, application_id: str, *, tail_depth: Optional[int] = None) -> LogView:
        """Open a view tailing the containers of an application."""
        client = self._client()
        application = await client.get_application(application_id)
        settings = self.settings

        async def resolve_sources() -> List[SourceInfo]:
            try:
                containers = await client.get_containers_by_app_label(application.app_name)
            except DokployError as exc:
                raise SourceResolutionError(str(exc)) from exc
            return [
                SourceInfo(source_id=container.container_id, name=container.name, state=container.state)
                for container in containers
            ]

        def build_request(config: SessionConfig, source: SourceInfo):
            return client.runtime_log_request(source.source_id, config.tail_depth, config.server_hint)

        controller = SourceController(
            f"Runtime Logs: {application.name}",
            resolve_sources=resolve_sources,
            build_request=build_request,
            transport=self._transport,
            tail_depth=tail_depth if tail_depth is not None else settings.default_tail_depth,
            max_tail_depth=settings.max_tail_depth,
            tail_depth_options=settings.tail_depth_options,
            show_timestamps=settings.show_timestamps,
            server_hint=application.server_id,
            tz_provider=_display_timezone,
        )
        return await self._register(RUNTIME_VIEW, application, controller)

    async def open_deployment_view(self, application_id: str) -> LogView:
        """Open a view following the build logs of an application's deployments."""
        client = self._client()
        application = await client.get_application(application_id)
        settings = self.settings

        async def resolve_sources() -> List[SourceInfo]:
            try:
                deployments = await client.get_deployments(application.application_id)
            except DokployError as exc:
                raise SourceResolutionError(str(exc)) from exc
            return [
                SourceInfo(
                    source_id=deployment.deployment_id,
                    name=deployment.display_name,
                    state=deployment.status,
                    log_path=deployment.log_path,
                )
                for deployment in deployments
                if deployment.log_path
            ]

        def build_request(config: SessionConfig, source: SourceInfo):
            return client.deployment_log_request(source.log_path or "")

        controller = SourceController(
            f"Deployment Logs: {application.name}",
            resolve_sources=resolve_sources,
            build_request=build_request,
            transport=self._transport,
            tail_depth=settings.default_tail_depth,
            max_tail_depth=settings.max_tail_depth,
            supports_tail=False,
            show_timestamps=settings.show_timestamps,
            tz_provider=_display_timezone,
        )
        return await self._register(DEPLOYMENT_VIEW, application, controller)

    async def _register(self, kind: str, application: Application, controller: SourceController) -> LogView:
        view = LogView(view_id=uuid.uuid4().hex, kind=kind, application=application, controller=controller)
        async with self._lock:
            self._views[view.view_id] = view
        try:
            await controller.open()
        except Exception:
            async with self._lock:
                self._views.pop(view.view_id, None)
            await controller.close()
            raise
        logger.info(
            "log view opened",
            extra={"view_id": view.view_id, "kind": kind, "application": application.application_id},
        )
        return view

    async def close_view(self, view_id: str) -> bool:
        async with self._lock:
            view = self._views.pop(view_id, None)
        if view is None:
            return False
        await view.controller.close()
        return True

    async def close_all(self) -> None:
        async with self._lock:
            views = list(self._views.values())
            self._views.clear()
        for view in views:
            await view.controller.close()
        if views:
            logger.info("closed all log views", extra={"count": len(views)})


_registry_instance: Optional[LogViewRegistry] = None


def get_log_view_registry() -> LogViewRegistry:
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = LogViewRegistry()
    return _registry_instance


__all__ = ["DEPLOYMENT_VIEW", "LogView", "LogViewRegistry", "RUNTIME_VIEW", "get_log_view_registry"]
