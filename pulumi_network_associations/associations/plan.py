"""Builds the full record plan of one deployment unit."""

from __future__ import annotations

from dataclasses import dataclass, field

import pulumi

from ..errors import NetworkTopologyError
from ..resolver.cache import LookupHelperCache
from ..resolver.lookup import LookupHelperFactory
from ..resolver.resolver import CrossBoundaryResourceResolver
from ..resolver.scope import Scope
from ..topology.accounts import AccountDirectory
from ..topology.config import TopologyConfig
from .context import TopologyBuildContext
from .direct_connect import build_dx_gateway_associations
from .dns import ResolverAssociationBuilder
from .graph import AssociationGraphBuilder, collect_attachment_edges
from .maps import TopologyMapBuilder
from .peering import PeeringRouteResolver
from .records import (
    AssociationRecord,
    DnsAssociationRecord,
    DxGatewayAssociationRecord,
    PeeringConnectionRecord,
    PrefixListReferenceRecord,
    PublishedValueRecord,
    RouteRecord,
    TransitGatewayRouteRecord,
)
from .registry import ExternallyManagedRegistry
from .static_routes import TransitGatewayStaticRouteBuilder


@dataclass
class TopologyPlan:
    """Everything one deployment unit creates, in creation order."""

    context: TopologyBuildContext
    dx_gateway_associations: list[DxGatewayAssociationRecord] = field(default_factory=list)
    associations: list[AssociationRecord] = field(default_factory=list)
    propagations: list[AssociationRecord] = field(default_factory=list)
    peering_connections: list[PeeringConnectionRecord] = field(default_factory=list)
    published_values: list[PublishedValueRecord] = field(default_factory=list)
    routes: list[RouteRecord] = field(default_factory=list)
    transit_gateway_routes: list[TransitGatewayRouteRecord] = field(default_factory=list)
    prefix_list_references: list[PrefixListReferenceRecord] = field(default_factory=list)
    dns_associations: list[DnsAssociationRecord] = field(default_factory=list)

    @property
    def scope(self) -> Scope:
        return self.context.scope

    @property
    def requires_cross_account_route_handler(self) -> bool:
        return any(route.cross_account is not None for route in self.routes)


class TopologyPlanner:
    """Runs the builders in order for one scope.

    Maps are complete before any record is emitted; associations precede
    propagations, which precede routes.
    """

    def __init__(
        self,
        topology: TopologyConfig,
        scope: Scope,
        lookup_factory: LookupHelperFactory,
        registry: ExternallyManagedRegistry | None = None,
    ):
        self.topology = topology
        self.accounts = AccountDirectory(topology.accounts)
        self.registry = registry or ExternallyManagedRegistry.from_config(
            topology.externally_managed
        )
        self.resolver = CrossBoundaryResourceResolver(
            caller=scope,
            helpers=LookupHelperCache(lookup_factory),
            home_region=topology.home_region,
            accelerator_prefix=topology.accelerator_prefix,
            parameter_prefix=topology.parameter_prefix,
            known_accounts=self.accounts.account_ids,
        )

    @property
    def scope(self) -> Scope:
        return self.resolver.caller

    def plan(self) -> TopologyPlan:
        try:
            return self._plan()
        except NetworkTopologyError as err:
            pulumi.log.error(f"Unable to plan network associations for {self.scope}: {err}")
            raise

    def _plan(self) -> TopologyPlan:
        context = TopologyMapBuilder(self.topology, self.accounts, self.resolver).build()
        plan = TopologyPlan(context=context)

        plan.dx_gateway_associations = build_dx_gateway_associations(
            self.topology, self.accounts, context
        )

        graph = AssociationGraphBuilder(
            context, self.registry, self.topology.accelerator_prefix
        )
        edges = list(collect_attachment_edges(self.topology, self.accounts, self.scope))
        for edge in edges:
            plan.associations.extend(graph.build_associations(edge.attachment, edge.associations))
        for edge in edges:
            plan.propagations.extend(graph.build_propagations(edge.attachment, edge.propagations))

        peering = PeeringRouteResolver(context, self.resolver, self.registry).build()
        plan.peering_connections = peering.connections
        plan.published_values = peering.published_values
        plan.routes = peering.routes

        static_routes = TransitGatewayStaticRouteBuilder(
            self.topology, self.accounts, context, self.registry
        ).build()
        plan.transit_gateway_routes = static_routes.routes
        plan.prefix_list_references = static_routes.prefix_list_references

        plan.dns_associations = ResolverAssociationBuilder(
            self.topology, self.accounts, context, self.resolver, self.registry
        ).build()

        pulumi.log.info(
            f"Planned {len(plan.associations)} associations, {len(plan.propagations)} "
            f"propagations, {len(plan.peering_connections)} peering connections and "
            f"{len(plan.routes)} peering routes for {self.scope}"
        )
        return plan


def build_topology_plan(
    topology: TopologyConfig,
    scope: Scope,
    lookup_factory: LookupHelperFactory,
    registry: ExternallyManagedRegistry | None = None,
) -> TopologyPlan:
    return TopologyPlanner(topology, scope, lookup_factory, registry).plan()
