"""Builders for transit gateway, peering and DNS association records."""

from .context import TopologyBuildContext
from .graph import AssociationGraphBuilder, AttachmentRef, collect_attachment_edges
from .maps import TopologyMapBuilder
from .peering import (
    PeeringConnection,
    PeeringRouteResolver,
    classify_cross_account,
)
from .plan import TopologyPlan, TopologyPlanner, build_topology_plan
from .records import DeferredId
from .registry import ExternallyManagedRegistry

__all__ = [
    "AssociationGraphBuilder",
    "AttachmentRef",
    "DeferredId",
    "ExternallyManagedRegistry",
    "PeeringConnection",
    "PeeringRouteResolver",
    "TopologyBuildContext",
    "TopologyMapBuilder",
    "TopologyPlan",
    "TopologyPlanner",
    "build_topology_plan",
    "classify_cross_account",
    "collect_attachment_edges",
]
