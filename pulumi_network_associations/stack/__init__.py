"""Pulumi components applying a topology plan."""

from .cross_account import CrossAccountRouteHandler
from .network_associations import NetworkAssociations

__all__ = [
    "CrossAccountRouteHandler",
    "NetworkAssociations",
]
