"""Builds the identifier maps of one deployment unit."""

from __future__ import annotations

import pulumi

from ..resolver.resolver import CrossBoundaryResourceResolver
from ..resolver.scope import Scope
from ..topology import keys
from ..topology.accounts import AccountDirectory
from ..topology.config import TopologyConfig, TransitGatewayConfig, VpcSpec
from ..topology.keys import ResourceType, RolePurpose
from .context import TopologyBuildContext
from .peering import PeeringConnection
from .records import AttachmentKind, DeferredId


class TopologyMapBuilder:
    """Resolves every identifier the current scope needs, once.

    Only entries relevant to the scope are resolved; everything else in the
    topology is skipped without a lookup.
    """

    def __init__(
        self,
        topology: TopologyConfig,
        accounts: AccountDirectory,
        resolver: CrossBoundaryResourceResolver,
    ):
        self.topology = topology
        self.accounts = accounts
        self.resolver = resolver
        self.scope = resolver.caller

    def build(self) -> TopologyBuildContext:
        context = TopologyBuildContext(scope=self.scope)
        self._set_peerings(context)
        self._set_vpcs(context)
        self._set_prefix_lists(context)
        self._set_route_tables(context)
        self._set_transit_gateways(context)
        self._set_vpc_attachments(context)
        self._set_vpn_attachments(context)
        self._set_dx_gateways(context)
        self._set_transit_gateway_peering_attachments(context)
        pulumi.log.info(
            f"Resolved {len(context.transit_gateway_attachments)} attachments, "
            f"{len(context.transit_gateway_route_tables)} local and "
            f"{len(context.remote_transit_gateway_route_tables)} remote transit gateway "
            f"route tables and {len(context.peerings)} peerings for {self.scope}"
        )
        return context

    def _gateway_scope(self, tgw: TransitGatewayConfig) -> Scope:
        return Scope(self.accounts.account_id(tgw.account), tgw.region)

    def deployed_in_scope(self, vpc: VpcSpec) -> bool:
        return vpc.region == self.scope.region and self.scope.account in self.accounts.vpc_account_ids(vpc)

    def _set_peerings(self, context: TopologyBuildContext) -> None:
        for config in self.topology.vpc_peering:
            peering = PeeringConnection.from_config(config, self.topology, self.accounts)
            if self.deployed_in_scope(peering.requester):
                context.peerings.append(peering)

    def _set_vpcs(self, context: TopologyBuildContext) -> None:
        for vpc in self.topology.vpc_resources:
            if self.deployed_in_scope(vpc):
                context.vpcs[vpc.name] = self.resolver.resolve(
                    ResourceType.VPC, [vpc.name], self.scope
                )

    def _set_prefix_lists(self, context: TopologyBuildContext) -> None:
        for prefix_list in self.topology.prefix_lists:
            account_ids = [
                self.accounts.account_id(name)
                for name in self.accounts.target_account_names(prefix_list.deployment_targets)
            ]
            if self.scope.account in account_ids and self.scope.region in prefix_list.regions:
                context.prefix_lists[prefix_list.name] = self.resolver.resolve(
                    ResourceType.PREFIX_LIST, [prefix_list.name], self.scope
                )

        # Prefix lists referenced by accepter routes written from this unit.
        for peering in context.peerings:
            accepter = peering.accepter
            for account_id in peering.accepter_account_ids:
                if peering.accepter_is_local(account_id, self.scope):
                    continue
                owner = Scope(account_id, accepter.region)
                for _, entry in peering.route_entries(accepter):
                    if not entry.destination_prefix_list:
                        continue
                    key = keys.remote_prefix_list_key(
                        account_id, accepter.region, entry.destination_prefix_list
                    )
                    context.prefix_lists[key] = self.resolver.resolve(
                        ResourceType.PREFIX_LIST,
                        [entry.destination_prefix_list],
                        owner,
                        RolePurpose.VPC_PEERING,
                    )

    def _set_route_tables(self, context: TopologyBuildContext) -> None:
        for vpc in self.topology.vpc_resources:
            if not self.deployed_in_scope(vpc):
                continue
            for route_table in vpc.route_tables:
                if any(entry.type == "vpcPeering" for entry in route_table.routes):
                    context.route_tables[keys.vpc_route_table_key(vpc.name, route_table.name)] = (
                        self.resolver.resolve(
                            ResourceType.ROUTE_TABLE, [vpc.name, route_table.name], self.scope
                        )
                    )

        for peering in context.peerings:
            accepter = peering.accepter
            route_tables = sorted({rt for rt, _ in peering.route_entries(accepter)})
            for account_id in peering.accepter_account_ids:
                if peering.accepter_is_local(account_id, self.scope):
                    continue
                owner = Scope(account_id, accepter.region)
                for route_table in route_tables:
                    key = keys.vpc_route_table_key(accepter.name, route_table, account_id)
                    context.route_tables[key] = self.resolver.resolve(
                        ResourceType.ROUTE_TABLE,
                        [accepter.name, route_table],
                        owner,
                        RolePurpose.VPC_PEERING,
                    )

    def _set_transit_gateways(self, context: TopologyBuildContext) -> None:
        for tgw in self.topology.transit_gateways:
            if self._gateway_scope(tgw) != self.scope:
                continue
            context.transit_gateways[tgw.name] = self.resolver.resolve(
                ResourceType.TRANSIT_GATEWAY, [tgw.name], self.scope
            )
            for route_table in tgw.route_tables:
                key = keys.transit_gateway_route_table_key(tgw.name, route_table.name)
                context.transit_gateway_route_tables[key] = self.resolver.resolve(
                    ResourceType.TRANSIT_GATEWAY_ROUTE_TABLE,
                    [tgw.name, route_table.name],
                    self.scope,
                )

    def _set_remote_route_tables(
        self, context: TopologyBuildContext, tgw: TransitGatewayConfig, names: list[str]
    ) -> None:
        owner = self._gateway_scope(tgw)
        for name in names:
            key = keys.remote_transit_gateway_route_table_key(tgw.name, tgw.account, name)
            context.remote_transit_gateway_route_tables[key] = self.resolver.resolve(
                ResourceType.TRANSIT_GATEWAY_ROUTE_TABLE,
                [tgw.name, name],
                owner,
                RolePurpose.TGW_ROUTE_TABLE_LOOKUP,
            )

    def _set_vpc_attachments(self, context: TopologyBuildContext) -> None:
        for vpc in self.topology.vpc_resources:
            if vpc.region != self.scope.region or not vpc.transit_gateway_attachments:
                continue
            owning_accounts = self.accounts.vpc_account_names(vpc)
            for attachment in vpc.transit_gateway_attachments:
                tgw = self.topology.find_transit_gateway(
                    attachment.transit_gateway.name, attachment.transit_gateway.account
                )
                gateway_local = self._gateway_scope(tgw) == self.scope
                for owning_account in owning_accounts:
                    owning_account_id = self.accounts.account_id(owning_account)
                    key = keys.attachment_key(tgw.name, owning_account, vpc.name)
                    if owning_account_id == self.scope.account:
                        context.transit_gateway_attachments[key] = self.resolver.resolve(
                            ResourceType.TRANSIT_GATEWAY_ATTACHMENT,
                            [vpc.name, attachment.name],
                            self.scope,
                        )
                        if not gateway_local:
                            self._set_remote_route_tables(
                                context,
                                tgw,
                                [
                                    *attachment.route_table_associations,
                                    *attachment.route_table_propagations,
                                ],
                            )
                    elif gateway_local:
                        context.transit_gateway_attachments[key] = self.resolver.lookup_attachment(
                            attachment.name,
                            owning_account_id,
                            context.require("transit_gateways", tgw.name),
                            AttachmentKind.VPC.value,
                        )

    def _set_vpn_attachments(self, context: TopologyBuildContext) -> None:
        for cgw in self.topology.customer_gateways:
            if Scope(self.accounts.account_id(cgw.account), cgw.region) != self.scope:
                continue
            for vpn in cgw.vpn_connections:
                if not vpn.transit_gateway:
                    continue
                key = keys.attachment_key(vpn.transit_gateway, cgw.account, vpn.name)
                context.transit_gateway_attachments[key] = self.resolver.lookup_attachment(
                    vpn.name,
                    self.scope.account,
                    context.require("transit_gateways", vpn.transit_gateway),
                    AttachmentKind.VPN.value,
                )

    def _set_dx_gateways(self, context: TopologyBuildContext) -> None:
        for dxgw in self.topology.direct_connect_gateways:
            for association in dxgw.transit_gateway_associations:
                tgw = self.topology.find_transit_gateway(association.name, association.account)
                if self._gateway_scope(tgw) != self.scope:
                    continue
                # DX gateways are global and publish their id in the home region.
                context.dx_gateways[dxgw.name] = self.resolver.resolve(
                    ResourceType.DIRECT_CONNECT_GATEWAY,
                    [dxgw.name],
                    Scope(self.accounts.account_id(dxgw.account), self.topology.home_region),
                    RolePurpose.DX_GATEWAY_LOOKUP,
                )
                if dxgw.account == tgw.account:
                    key = keys.attachment_key(tgw.name, tgw.account, dxgw.name)
                    context.transit_gateway_attachments[key] = DeferredId(
                        keys.dx_gateway_association_key(dxgw.name, tgw.name),
                        "transit_gateway_attachment_id",
                    )

    def _set_transit_gateway_peering_attachments(self, context: TopologyBuildContext) -> None:
        for peering in self.topology.transit_gateway_peering:
            requester, accepter = peering.requester, peering.accepter
            if Scope(self.accounts.account_id(requester.account), requester.region) == self.scope:
                key = keys.attachment_key(
                    requester.transit_gateway_name, requester.account, peering.name
                )
                context.transit_gateway_attachments[key] = self.resolver.resolve(
                    ResourceType.TRANSIT_GATEWAY_PEERING,
                    [requester.transit_gateway_name, peering.name],
                    self.scope,
                )
            if Scope(self.accounts.account_id(accepter.account), accepter.region) == self.scope:
                key = keys.attachment_key(
                    accepter.transit_gateway_name, accepter.account, peering.name
                )
                context.transit_gateway_attachments[key] = self.resolver.lookup_attachment(
                    peering.name,
                    self.scope.account,
                    context.require("transit_gateways", accepter.transit_gateway_name),
                    AttachmentKind.PEERING.value,
                )
