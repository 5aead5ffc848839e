from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from fastapi.responses import HTMLResponse

from ..logging_config import logger
from ..models import (
    LogViewClosedResponse,
    LogViewListResponse,
    LogViewResponse,
    LogViewSummary,
    OpenRuntimeViewRequest,
    SelectSourceRequest,
    SetTailRequest,
)
from ..services import LogView, LogViewRegistry, get_log_view_registry
from ..services.logs import ConfigurationError, ControllerSnapshot, render_empty_state, render_page

router = APIRouter(prefix="/logs", tags=["logs"])


def _require_view(registry: LogViewRegistry, view_id: str) -> LogView:
    view = registry.get(view_id)
    if view is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown log view: {view_id}")
    return view


def _view_payload(view: LogView, snapshot: ControllerSnapshot) -> Dict[str, Any]:
    payload = snapshot.to_dict()
    payload.update(
        view_id=view.view_id,
        kind=view.kind,
        application_id=view.application.application_id,
        stream_url=view.stream_path,
    )
    return payload


def _view_response(view: LogView, snapshot: Optional[ControllerSnapshot] = None) -> LogViewResponse:
    return LogViewResponse.model_validate(_view_payload(view, snapshot or view.controller.snapshot()))


@router.post("/runtime/{application_id}", response_model=LogViewResponse)
# Open a live view over the running containers of an application
async def open_runtime_view(
    application_id: str,
    payload: Optional[OpenRuntimeViewRequest] = None,
    registry: LogViewRegistry = Depends(get_log_view_registry),
) -> LogViewResponse:
    tail = payload.tail if payload else None
    view = await registry.open_runtime_view(application_id, tail_depth=tail)
    return _view_response(view)


@router.post("/deployments/{application_id}", response_model=LogViewResponse)
# Open a view over the build logs of an application's deployments
async def open_deployment_view(
    application_id: str,
    registry: LogViewRegistry = Depends(get_log_view_registry),
) -> LogViewResponse:
    view = await registry.open_deployment_view(application_id)
    return _view_response(view)


@router.get("/views", response_model=LogViewListResponse)
def list_views(registry: LogViewRegistry = Depends(get_log_view_registry)) -> LogViewListResponse:
    summaries = []
    for view in registry.list_views():
        snapshot = view.controller.snapshot()
        summaries.append(
            LogViewSummary(
                view_id=view.view_id,
                kind=view.kind,
                application_id=view.application.application_id,
                title=snapshot.title,
                state=snapshot.state,
            )
        )
    return LogViewListResponse(views=summaries)


@router.get("/views/{view_id}", response_model=LogViewResponse)
def get_view(view_id: str, registry: LogViewRegistry = Depends(get_log_view_registry)) -> LogViewResponse:
    return _view_response(_require_view(registry, view_id))


@router.get("/views/{view_id}/html", response_class=HTMLResponse)
# Render the current state of a view as a standalone page that follows the stream
def get_view_html(view_id: str, registry: LogViewRegistry = Depends(get_log_view_registry)) -> HTMLResponse:
    view = _require_view(registry, view_id)
    controller = view.controller
    snapshot = controller.snapshot()

    if snapshot.state == "no_source":
        html = render_empty_state(view.application.name, detail=snapshot.detail, stream_url=view.stream_path)
    else:
        html = render_page(
            snapshot.content_html,
            title=snapshot.title,
            state=snapshot.state,
            stream_url=view.stream_path,
            sources=[(source.source_id, source.label) for source in snapshot.sources],
            selected_source_id=snapshot.source_id,
            tail_depth=snapshot.tail_depth,
            tail_options=controller.tail_depth_options,
        )
    return HTMLResponse(html)


@router.post("/views/{view_id}/source", response_model=LogViewResponse)
async def select_source(
    view_id: str,
    payload: SelectSourceRequest,
    registry: LogViewRegistry = Depends(get_log_view_registry),
) -> LogViewResponse:
    view = _require_view(registry, view_id)
    snapshot = await view.controller.select_source(payload.source_id)
    return _view_response(view, snapshot)


@router.post("/views/{view_id}/tail", response_model=LogViewResponse)
async def set_tail(
    view_id: str,
    payload: SetTailRequest,
    registry: LogViewRegistry = Depends(get_log_view_registry),
) -> LogViewResponse:
    view = _require_view(registry, view_id)
    snapshot = await view.controller.set_tail_depth(payload.tail)
    return _view_response(view, snapshot)


@router.post("/views/{view_id}/refresh", response_model=LogViewResponse)
async def refresh_view(view_id: str, registry: LogViewRegistry = Depends(get_log_view_registry)) -> LogViewResponse:
    view = _require_view(registry, view_id)
    snapshot = await view.controller.refresh()
    return _view_response(view, snapshot)


@router.delete("/views/{view_id}", response_model=LogViewClosedResponse)
async def close_view(view_id: str, registry: LogViewRegistry = Depends(get_log_view_registry)) -> LogViewClosedResponse:
    if not await registry.close_view(view_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown log view: {view_id}")
    return LogViewClosedResponse()


async def _apply_intent(view: LogView, message: Dict[str, Any]) -> None:
    controller = view.controller
    command = message.get("command")
    if command == "changeContainer":
        await controller.select_source(str(message.get("containerId") or ""))
    elif command == "changeTail":
        await controller.set_tail_depth(message.get("tail"))
    elif command == "refresh":
        await controller.refresh()
    else:
        raise ConfigurationError(f"Unknown command: {command!r}")


async def _forward_snapshots(websocket: WebSocket, view: LogView, queue: "asyncio.Queue[ControllerSnapshot]") -> None:
    while True:
        snapshot = await queue.get()
        await websocket.send_json(_view_payload(view, snapshot))


@router.websocket("/views/{view_id}/stream")
# Push every update of a view to the client and accept source/tail/refresh intents
async def stream_view(
    websocket: WebSocket,
    view_id: str,
    registry: LogViewRegistry = Depends(get_log_view_registry),
) -> None:
    view = registry.get(view_id)
    if view is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    queue = view.controller.subscribe()
    forwarder = asyncio.create_task(_forward_snapshots(websocket, view, queue), name=f"log-view-{view_id}")
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
                if not isinstance(message, dict):
                    raise ConfigurationError("Intent must be a JSON object")
                await _apply_intent(view, message)
            except (json.JSONDecodeError, ConfigurationError) as exc:
                logger.debug("rejected log view intent", extra={"view_id": view_id, "error": str(exc)})
                await websocket.send_json({"ok": False, "error": str(exc)})
    except WebSocketDisconnect:
        logger.debug("log view client disconnected", extra={"view_id": view_id})
    finally:
        view.controller.unsubscribe(queue)
        forwarder.cancel()


__all__ = ["router"]
