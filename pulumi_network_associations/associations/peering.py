"""VPC peering connections and the routes on both sides of them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

import pulumi

from ..errors import ConfigurationError
from ..resolver.resolver import CrossBoundaryResourceResolver
from ..resolver.scope import Scope
from ..topology import keys
from ..topology.accounts import AccountDirectory
from ..topology.config import (
    RouteEntryConfig,
    TopologyConfig,
    VpcConfig,
    VpcPeeringConfig,
    VpcSpec,
    VpcTemplateConfig,
)
from .context import TopologyBuildContext
from .records import (
    CrossAccountTarget,
    PeeringConnectionRecord,
    PublishedValueRecord,
    RouteRecord,
)
from .registry import ExternallyManagedRegistry

PEERING_ROUTE_TYPE = "vpcPeering"


def classify_cross_account(
    requester: VpcSpec,
    accepter: VpcSpec,
    requester_account_ids: list[str] | tuple[str, ...],
    accepter_account_ids: list[str] | tuple[str, ...],
) -> bool:
    """Whether a peering crosses an account or region boundary.

    Templated VPCs compare their whole target account sets.
    """
    if requester.region != accepter.region:
        return True
    match (requester, accepter):
        case (VpcConfig(account=requester_account), VpcConfig(account=accepter_account)):
            return requester_account != accepter_account
        case _:
            return set(requester_account_ids) != set(accepter_account_ids)


@dataclass(frozen=True, eq=False)
class PeeringConnection:
    name: str
    requester: VpcSpec
    accepter: VpcSpec
    requester_account_ids: tuple[str, ...]
    accepter_account_ids: tuple[str, ...]
    cross_account: bool
    tags: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_config(
        cls,
        config: VpcPeeringConfig,
        topology: TopologyConfig,
        accounts: AccountDirectory,
    ) -> "PeeringConnection":
        requester = topology.find_vpc(config.requester)
        accepter = topology.find_vpc(config.accepter)
        if requester is None or accepter is None:
            raise ConfigurationError(
                f"VPC peering {config.name} references unknown VPCs {config.vpcs}",
                key=config.name,
            )
        requester_ids = tuple(accounts.vpc_account_ids(requester))
        accepter_ids = tuple(accounts.vpc_account_ids(accepter))
        return cls(
            name=config.name,
            requester=requester,
            accepter=accepter,
            requester_account_ids=requester_ids,
            accepter_account_ids=accepter_ids,
            cross_account=classify_cross_account(
                requester, accepter, requester_ids, accepter_ids
            ),
            tags=dict(config.tags),
        )

    @property
    def templated(self) -> bool:
        return isinstance(self.requester, VpcTemplateConfig) or isinstance(
            self.accepter, VpcTemplateConfig
        )

    def connection_key(self, accepter_account_id: str) -> str:
        return keys.peering_connection_key(
            self.name, accepter_account_id if self.templated else None
        )

    def accepter_is_local(self, accepter_account_id: str, scope: Scope) -> bool:
        return accepter_account_id == scope.account and self.accepter.region == scope.region

    def route_entries(self, vpc: VpcSpec) -> Iterator[tuple[str, RouteEntryConfig]]:
        """(route table name, entry) pairs of ``vpc`` that target this peering."""
        for route_table in vpc.route_tables:
            for entry in route_table.routes:
                if entry.type == PEERING_ROUTE_TYPE and entry.target == self.name:
                    yield route_table.name, entry


@dataclass
class PeeringPlan:
    connections: list[PeeringConnectionRecord] = field(default_factory=list)
    routes: list[RouteRecord] = field(default_factory=list)
    published_values: list[PublishedValueRecord] = field(default_factory=list)


class PeeringRouteResolver:
    """Builds peering connections and their requester and accepter routes.

    Works on the peerings whose requester VPC is deployed in the current
    scope; the requester unit creates the connection and writes the routes
    of both sides.
    """

    def __init__(
        self,
        context: TopologyBuildContext,
        resolver: CrossBoundaryResourceResolver,
        registry: ExternallyManagedRegistry | None = None,
    ):
        self.context = context
        self.resolver = resolver
        self.registry = registry or ExternallyManagedRegistry()
        self._emitted_routes: set[str] = set()

    @property
    def scope(self) -> Scope:
        return self.context.scope

    def build(self) -> PeeringPlan:
        plan = PeeringPlan()
        for peering in self.context.peerings:
            for accepter_account_id in peering.accepter_account_ids:
                connection, published = self.connect(peering, accepter_account_id)
                plan.connections.append(connection)
                plan.published_values.extend(published)
                plan.routes.extend(
                    self.emit_requester_routes(peering, accepter_account_id, connection)
                )
                plan.routes.extend(
                    self.emit_accepter_routes(peering, accepter_account_id, connection)
                )
        return plan

    def _published_names(self, peering: PeeringConnection, accepter_account_id: str) -> list[str]:
        if isinstance(peering.accepter, VpcTemplateConfig):
            return [f"{peering.name}/{accepter_account_id}"]
        return [peering.name]

    def _shared_names(self, peering: PeeringConnection) -> list[str]:
        if isinstance(peering.requester, VpcTemplateConfig):
            return [f"{peering.name}/{self.scope.account}"]
        return [peering.name]

    def connect(
        self, peering: PeeringConnection, accepter_account_id: str
    ) -> tuple[PeeringConnectionRecord, list[PublishedValueRecord]]:
        key = peering.connection_key(accepter_account_id)
        name = keys.resource_name(key, "peering")
        accepter_scope = Scope(accepter_account_id, peering.accepter.region)
        local = peering.accepter_is_local(accepter_account_id, self.scope)
        prefix = self.resolver.accelerator_prefix

        imported_id = None
        if self.registry.is_managed("vpc_peering", peering.name):
            imported_id = self.resolver.resolve(
                keys.ResourceType.VPC_PEERING,
                self._published_names(peering, accepter_account_id),
                self.scope,
            )
            pulumi.log.info(f"Peering {key} is externally managed, using {imported_id}")

        accepter_target = None
        if accepter_account_id != self.scope.account:
            accepter_target = CrossAccountTarget(
                accepter_account_id,
                peering.accepter.region,
                keys.role_name(prefix, keys.RolePurpose.VPC_PEERING, peering.accepter.region),
            )

        record = PeeringConnectionRecord(
            key=key,
            name=peering.name,
            resource_name=name,
            vpc_id=self.context.require("vpcs", peering.requester.name),
            peer_vpc_id=self.resolver.resolve(
                keys.ResourceType.VPC,
                [peering.accepter.name],
                accepter_scope,
                keys.RolePurpose.VPC_PEERING,
            ),
            peer_owner_id=accepter_account_id,
            peer_region=peering.accepter.region,
            auto_accept=local,
            accepter=accepter_target,
            tags={"Name": peering.name, **peering.tags},
            imported_peering_id=imported_id,
        )

        published: list[PublishedValueRecord] = []
        if imported_id is None:
            published.append(
                PublishedValueRecord(
                    key=f"{key}_parameter",
                    resource_name=keys.resource_name(name, "parameter"),
                    path=self.resolver.path(
                        keys.ResourceType.VPC_PEERING,
                        self._published_names(peering, accepter_account_id),
                    ),
                    value=record.peering_id,
                    region=self.scope.region,
                )
            )
            if peering.cross_account and accepter_account_id != self.scope.account:
                published.append(
                    PublishedValueRecord(
                        key=f"{key}_shared_parameter",
                        resource_name=keys.resource_name(name, "shared-parameter"),
                        path=self.resolver.path(
                            keys.ResourceType.VPC_PEERING, self._shared_names(peering)
                        ),
                        value=record.peering_id,
                        region=peering.accepter.region,
                        target=CrossAccountTarget(
                            accepter_account_id,
                            peering.accepter.region,
                            keys.role_name(
                                prefix, keys.RolePurpose.PARAMETER_SHARE, peering.accepter.region
                            ),
                        ),
                    )
                )
        return record, published

    def _primary_cidr(self, vpc: VpcSpec, owner: Scope) -> str:
        if vpc.cidrs:
            return vpc.cidrs[0]
        return self.resolver.resolve(
            keys.ResourceType.VPC_IPV4_CIDR_BLOCK,
            [vpc.name],
            owner,
            keys.RolePurpose.VPC_PEERING,
        )

    def _route_key(
        self, connection: PeeringConnectionRecord, vpc: VpcSpec, route_table: str, entry: str
    ) -> str:
        return f"{connection.key}_{vpc.name}_{route_table}_{entry}"

    def _route_name(
        self, vpc: VpcSpec, route_table: str, entry: str, peering: PeeringConnection, account_id: str
    ) -> str:
        return keys.resource_name(
            vpc.name, route_table, entry, account_id if peering.templated else None, "route"
        )

    def _emit(self, record: RouteRecord) -> list[RouteRecord]:
        if record.key in self._emitted_routes:
            pulumi.log.debug(f"Route {record.key} already emitted")
            return []
        self._emitted_routes.add(record.key)
        pulumi.log.debug(f"Emitting peering route {record.key}")
        return [record]

    def emit_requester_routes(
        self,
        peering: PeeringConnection,
        accepter_account_id: str,
        connection: PeeringConnectionRecord,
    ) -> list[RouteRecord]:
        """Routes in the requester VPC towards the accepter."""
        requester = peering.requester
        routes: list[RouteRecord] = []
        for route_table, entry in peering.route_entries(requester):
            prefix_list_id = None
            destination = entry.destination
            if entry.destination_prefix_list:
                prefix_list_id = self.context.require(
                    "prefix_lists", entry.destination_prefix_list
                )
            elif not (entry.destination or entry.ipv6_destination):
                destination = self._primary_cidr(
                    peering.accepter, Scope(accepter_account_id, peering.accepter.region)
                )
            routes.extend(
                self._emit(
                    RouteRecord(
                        key=self._route_key(connection, requester, route_table, entry.name),
                        resource_name=self._route_name(
                            requester, route_table, entry.name, peering, accepter_account_id
                        ),
                        route_table_id=self.context.require(
                            "route_tables", keys.vpc_route_table_key(requester.name, route_table)
                        ),
                        vpc_peering_connection_id=connection.peering_id,
                        region=requester.region,
                        destination=destination,
                        ipv6_destination=entry.ipv6_destination,
                        destination_prefix_list_id=prefix_list_id,
                    )
                )
            )
        return routes

    def emit_accepter_routes(
        self,
        peering: PeeringConnection,
        accepter_account_id: str,
        connection: PeeringConnectionRecord,
    ) -> list[RouteRecord]:
        """Routes in the accepter VPC back towards the requester."""
        accepter = peering.accepter
        local = peering.accepter_is_local(accepter_account_id, self.scope)
        routes: list[RouteRecord] = []
        for route_table, entry in peering.route_entries(accepter):
            prefix_list_id = None
            destination = entry.destination
            if entry.destination_prefix_list:
                prefix_list_key = (
                    entry.destination_prefix_list
                    if local
                    else keys.remote_prefix_list_key(
                        accepter_account_id, accepter.region, entry.destination_prefix_list
                    )
                )
                prefix_list_id = self.context.require("prefix_lists", prefix_list_key)
            elif not (entry.destination or entry.ipv6_destination):
                destination = self._primary_cidr(peering.requester, self.scope)

            route_table_id = self.context.require(
                "route_tables",
                keys.vpc_route_table_key(
                    accepter.name, route_table, None if local else accepter_account_id
                ),
            )
            key = self._route_key(connection, accepter, route_table, entry.name)
            target = None
            if not local:
                target = CrossAccountTarget(
                    accepter_account_id,
                    accepter.region,
                    keys.role_name(
                        self.resolver.accelerator_prefix,
                        keys.RolePurpose.VPC_PEERING,
                        accepter.region,
                    ),
                )
            routes.extend(
                self._emit(
                    RouteRecord(
                        key=key,
                        resource_name=self._route_name(
                            accepter, route_table, entry.name, peering, accepter_account_id
                        ),
                        route_table_id=route_table_id,
                        vpc_peering_connection_id=connection.peering_id,
                        region=accepter.region,
                        destination=destination,
                        ipv6_destination=entry.ipv6_destination,
                        destination_prefix_list_id=prefix_list_id,
                        cross_account=target,
                    )
                )
            )
        return routes
