"""Pydantic models for the Dokploy API payloads used by the log viewer."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Container(BaseModel):
    """Container reported by ``docker.getContainersByAppLabel``."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")
    container_id: str = Field(..., alias="containerId")
    name: str
    image: Optional[str] = None
    state: str = ""
    status: Optional[str] = None


class Deployment(BaseModel):
    """Single deployment (build job) of an application or compose stack."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")
    deployment_id: str = Field(..., alias="deploymentId")
    title: Optional[str] = None
    description: Optional[str] = None
    status: str = ""
    log_path: Optional[str] = Field(None, alias="logPath")
    created_at: Optional[str] = Field(None, alias="createdAt")
    application_id: Optional[str] = Field(None, alias="applicationId")
    compose_id: Optional[str] = Field(None, alias="composeId")

    @property
    def display_name(self) -> str:
        return self.title or self.deployment_id[:8]


class Application(BaseModel):
    """Deployable application as returned by ``application.one``."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")
    application_id: str = Field(..., alias="applicationId")
    name: str
    app_name: str = Field(..., alias="appName")
    description: Optional[str] = None
    application_status: Optional[str] = Field(None, alias="applicationStatus")
    server_id: Optional[str] = Field(None, alias="serverId")
    deployments: List[Deployment] = Field(default_factory=list)
