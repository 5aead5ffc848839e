"""Dokploy API client for listing log sources and addressing log streams."""

from __future__ import annotations

import json
from typing import Any, List, Optional, Type, TypeVar
from urllib.parse import urlencode, urlsplit

import httpx
from pydantic import BaseModel, ValidationError

from ...config import get_settings
from ...logging_config import logger
from ..logs.transport import LogStreamRequest
from .models import Application, Container, Deployment


ModelT = TypeVar("ModelT", bound=BaseModel)


class DokployError(RuntimeError):
    """Raised when the Dokploy API returns an error response."""


class DokployClient:
    """Client for the Dokploy REST API."""

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.api_key = api_key
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.endpoint,
                headers={
                    "x-api-key": self.api_key,
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def _get(self, path: str, params: dict[str, str]) -> Any:
        client = await self._get_client()
        logger.debug("Dokploy request", extra={"path": path, "params": params})
        try:
            response = await client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            _raise_for_response(exc)
        except httpx.HTTPError as exc:
            raise DokployError(f"Dokploy request failed: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise DokployError(f"Dokploy returned invalid JSON for {path}") from exc

    async def get_application(self, application_id: str) -> Application:
        path = "/api/application.one"
        payload = await self._get(path, {"applicationId": application_id})
        return _validate(Application, payload, path)

    async def get_deployments(self, application_id: str) -> List[Deployment]:
        path = "/api/deployment.all"
        payload = await self._get(path, {"applicationId": application_id})
        return _validate_list(Deployment, payload, path)

    async def get_containers_by_app_label(self, app_name: str, container_type: str = "standalone") -> List[Container]:
        path = "/api/docker.getContainersByAppLabel"
        payload = await self._get(path, {"appName": app_name, "type": container_type})
        return _validate_list(Container, payload, path)

    def _ws_base(self) -> str:
        parts = urlsplit(self.endpoint)
        scheme = "wss" if parts.scheme == "https" else "ws"
        return f"{scheme}://{parts.netloc}"

    def runtime_log_request(self, container_id: str, tail: int, server_id: Optional[str] = None) -> LogStreamRequest:
        """Address the live output of a container, starting *tail* lines back."""
        params = {
            "containerId": container_id,
            "tail": str(tail),
            "since": "all",
            "search": "",
            "runType": "native",
        }
        if server_id:
            params["serverId"] = server_id
        return LogStreamRequest(
            url=f"{self._ws_base()}/docker-container-logs?{urlencode(params)}",
            headers={"x-api-key": self.api_key},
        )

    def deployment_log_request(self, log_path: str) -> LogStreamRequest:
        """Address the build log of a deployment."""
        return LogStreamRequest(
            url=f"{self._ws_base()}/listen-deployment?{urlencode({'logPath': log_path})}",
            headers={"x-api-key": self.api_key},
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None


def _validate(model: Type[ModelT], payload: Any, path: str) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        logger.error("unexpected Dokploy payload", extra={"path": path, "errors": exc.error_count()})
        raise DokployError(f"Dokploy returned an unexpected payload for {path}") from exc


def _validate_list(model: Type[ModelT], payload: Any, path: str) -> List[ModelT]:
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise DokployError(f"Dokploy returned an unexpected payload for {path}: expected a list")
    return [_validate(model, item, path) for item in payload]


def _raise_for_response(exc: httpx.HTTPStatusError) -> None:
    response = exc.response
    try:
        payload = response.json()
        detail = payload.get("message") or payload.get("error") or json.dumps(payload)
    except (ValueError, AttributeError):
        detail = response.text
    logger.error(
        "Dokploy API error",
        extra={"status_code": response.status_code, "response": detail},
    )
    raise DokployError(f"Dokploy request failed ({response.status_code}): {detail}") from exc


_dokploy_client: Optional[DokployClient] = None


def get_dokploy_client() -> Optional[DokployClient]:
    """Get the singleton Dokploy client instance."""
    global _dokploy_client

    if _dokploy_client is None:
        settings = get_settings()
        if settings.dokploy_endpoint and settings.dokploy_api_key:
            _dokploy_client = DokployClient(
                endpoint=settings.dokploy_endpoint,
                api_key=settings.dokploy_api_key,
                timeout=settings.request_timeout_seconds,
            )
        else:
            logger.warning("Dokploy client not configured: missing DOKPLOY_ENDPOINT or DOKPLOY_API_KEY")
            return None

    return _dokploy_client


__all__ = ["DokployClient", "DokployError", "get_dokploy_client"]
