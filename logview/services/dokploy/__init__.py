"""Dokploy service module for inventory lookups and log stream addresses."""

from .client import DokployClient, DokployError, get_dokploy_client
from .models import Application, Container, Deployment

__all__ = [
    "Application",
    "Container",
    "Deployment",
    "DokployClient",
    "DokployError",
    "get_dokploy_client",
]
