from __future__ import annotations

import pulumi
import pulumi_aws as aws

from ..associations.plan import TopologyPlan
from ..associations.records import (
    AssociationRecord,
    CrossAccountTarget,
    DeferredId,
    DnsAssociationKind,
    DnsAssociationRecord,
    EdgeKind,
    Identifier,
)
from ..topology.keys import resource_name
from .cross_account import AssumedRoleProviders, CrossAccountRouteHandler, peering_route_args


class NetworkAssociations(pulumi.ComponentResource):
    """Creates the resources of a ``TopologyPlan`` for one deployment unit.

    Records addressed to another account are created through a provider that
    assumes the record's role. Peering routes in other accounts go through a
    ``CrossAccountRouteHandler``, created on first use.
    """

    association_ids: pulumi.Output[dict[str, str]]
    propagation_ids: pulumi.Output[dict[str, str]]
    peering_connection_ids: pulumi.Output[dict[str, str]]

    def __init__(
        self,
        name: str,
        plan: TopologyPlan,
        partition: str = "aws",
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__("pulumi-network-associations:aws:NetworkAssociations", name, None, opts)
        self._name = name
        self._partition = partition
        self.scope = plan.scope
        self.providers = AssumedRoleProviders(name, parent=self, partition=partition)
        self.route_handler: CrossAccountRouteHandler | None = None
        self.resources: dict[str, pulumi.CustomResource] = {}
        self.accepters: dict[str, aws.ec2.VpcPeeringConnectionAccepter] = {}

        self._create_dx_gateway_associations(plan)
        associations = [self._create_edge(r) for r in plan.associations]
        propagations = [self._create_edge(r) for r in plan.propagations]
        self._create_peering_connections(plan)
        self._create_published_values(plan)
        self._create_peering_routes(plan)
        self._create_transit_gateway_routes(plan)
        self._create_dns_associations(plan)

        self.association_ids = pulumi.Output.from_input(
            {r.key: res.id for r, res in zip(plan.associations, associations)}
        )
        self.propagation_ids = pulumi.Output.from_input(
            {r.key: res.id for r, res in zip(plan.propagations, propagations)}
        )
        self.peering_connection_ids = pulumi.Output.from_input(
            {r.key: self._value(r.peering_id) for r in plan.peering_connections}
        )
        self.register_outputs(
            {
                "association_ids": self.association_ids,
                "propagation_ids": self.propagation_ids,
                "peering_connection_ids": self.peering_connection_ids,
            }
        )

    def _value(self, value: Identifier | None) -> pulumi.Input[str] | None:
        if isinstance(value, DeferredId):
            return getattr(self.resources[value.record_key], value.attribute)
        return value

    def _opts(
        self,
        target: CrossAccountTarget | None = None,
        depends_on: list[pulumi.Resource] | None = None,
    ) -> pulumi.ResourceOptions:
        return pulumi.ResourceOptions(
            parent=self,
            provider=self.providers.get(target) if target else None,
            depends_on=depends_on or [],
        )

    def _region(self, region: str) -> str | None:
        return None if region == self.scope.region else region

    def _create_dx_gateway_associations(self, plan: TopologyPlan) -> None:
        for record in plan.dx_gateway_associations:
            if record.proposal:
                resource = aws.directconnect.GatewayAssociationProposal(
                    record.resource_name,
                    dx_gateway_id=record.dx_gateway_id,
                    dx_gateway_owner_account_id=record.dx_gateway_owner_account_id,
                    associated_gateway_id=record.transit_gateway_id,
                    allowed_prefixes=list(record.allowed_prefixes) or None,
                    opts=self._opts(),
                )
            else:
                resource = aws.directconnect.GatewayAssociation(
                    record.resource_name,
                    dx_gateway_id=record.dx_gateway_id,
                    associated_gateway_id=record.transit_gateway_id,
                    allowed_prefixes=list(record.allowed_prefixes) or None,
                    opts=self._opts(),
                )
            self.resources[record.key] = resource

    def _create_edge(self, record: AssociationRecord) -> pulumi.CustomResource:
        args = {
            "transit_gateway_attachment_id": self._value(record.transit_gateway_attachment_id),
            "transit_gateway_route_table_id": record.transit_gateway_route_table_id,
            "opts": self._opts(record.cross_account),
        }
        if record.kind is EdgeKind.ASSOCIATION:
            resource = aws.ec2transitgateway.RouteTableAssociation(record.resource_name, **args)
        else:
            resource = aws.ec2transitgateway.RouteTablePropagation(record.resource_name, **args)
        self.resources[record.key] = resource
        return resource

    def _create_peering_connections(self, plan: TopologyPlan) -> None:
        for record in plan.peering_connections:
            if record.imported_peering_id:
                continue
            peering = aws.ec2.VpcPeeringConnection(
                record.resource_name,
                vpc_id=record.vpc_id,
                peer_vpc_id=record.peer_vpc_id,
                peer_owner_id=record.peer_owner_id,
                peer_region=self._region(record.peer_region),
                auto_accept=record.auto_accept or None,
                tags=record.tags,
                opts=self._opts(),
            )
            self.resources[record.key] = peering
            if record.auto_accept:
                continue
            # Accept from the accepter side, assuming a role there when it is another account
            self.accepters[record.key] = aws.ec2.VpcPeeringConnectionAccepter(
                resource_name(record.resource_name, "accepter"),
                vpc_peering_connection_id=peering.id,
                auto_accept=True,
                region=None if record.accepter else self._region(record.peer_region),
                tags=record.tags,
                opts=self._opts(record.accepter),
            )

    def _create_published_values(self, plan: TopologyPlan) -> None:
        for record in plan.published_values:
            self.resources[record.key] = aws.ssm.Parameter(
                record.resource_name,
                name=record.path,
                type="String",
                value=self._value(record.value),
                region=None if record.target else self._region(record.region),
                opts=self._opts(record.target),
            )

    def _get_route_handler(self) -> CrossAccountRouteHandler:
        if self.route_handler is None:
            pulumi.log.info(f"Creating cross-account route handler for {self.scope}")
            self.route_handler = CrossAccountRouteHandler(
                f"{self._name}-cross-account-routes",
                partition=self._partition,
                opts=pulumi.ResourceOptions(parent=self),
            )
        return self.route_handler

    def _create_peering_routes(self, plan: TopologyPlan) -> None:
        for record in plan.routes:
            peering_id = self._value(record.vpc_peering_connection_id)
            depends_on = []
            if isinstance(record.vpc_peering_connection_id, DeferredId):
                accepter = self.accepters.get(record.vpc_peering_connection_id.record_key)
                if accepter is not None:
                    depends_on.append(accepter)
            if record.cross_account:
                route = self._get_route_handler().add_route(record, peering_id, depends_on)
            else:
                route = aws.ec2.Route(
                    record.resource_name,
                    **peering_route_args(record, peering_id),
                    region=self._region(record.region),
                    opts=self._opts(depends_on=depends_on),
                )
            self.resources[record.key] = route

    def _create_transit_gateway_routes(self, plan: TopologyPlan) -> None:
        for record in plan.transit_gateway_routes:
            self.resources[record.key] = aws.ec2transitgateway.Route(
                record.resource_name,
                destination_cidr_block=record.destination_cidr_block,
                transit_gateway_route_table_id=record.transit_gateway_route_table_id,
                transit_gateway_attachment_id=self._value(record.transit_gateway_attachment_id),
                blackhole=record.blackhole or None,
                opts=self._opts(),
            )
        for record in plan.prefix_list_references:
            self.resources[record.key] = aws.ec2transitgateway.PrefixListReference(
                record.resource_name,
                prefix_list_id=record.prefix_list_id,
                transit_gateway_route_table_id=record.transit_gateway_route_table_id,
                transit_gateway_attachment_id=self._value(record.transit_gateway_attachment_id),
                blackhole=record.blackhole or None,
                opts=self._opts(),
            )

    def _create_dns_association(self, record: DnsAssociationRecord) -> pulumi.CustomResource:
        match record.kind:
            case DnsAssociationKind.RESOLVER_RULE:
                return aws.route53.ResolverRuleAssociation(
                    record.resource_name,
                    resolver_rule_id=record.resource_id,
                    vpc_id=record.vpc_id,
                    opts=self._opts(),
                )
            case DnsAssociationKind.FIREWALL_RULE_GROUP:
                return aws.route53.ResolverFirewallRuleGroupAssociation(
                    record.resource_name,
                    name=record.name,
                    firewall_rule_group_id=record.resource_id,
                    priority=record.priority,
                    mutation_protection=record.mutation_protection,
                    vpc_id=record.vpc_id,
                    opts=self._opts(),
                )
            case DnsAssociationKind.QUERY_LOG_CONFIG:
                return aws.route53.ResolverQueryLogConfigAssociation(
                    record.resource_name,
                    resolver_query_log_config_id=record.resource_id,
                    resource_id=record.vpc_id,
                    opts=self._opts(),
                )
        raise ValueError(f"Unsupported DNS association kind {record.kind}")

    def _create_dns_associations(self, plan: TopologyPlan) -> None:
        for record in plan.dns_associations:
            self.resources[record.key] = self._create_dns_association(record)
