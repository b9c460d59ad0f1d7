"""Static routes and prefix list references in transit gateway route tables."""

from __future__ import annotations

from dataclasses import dataclass, field

import pulumi

from ..errors import ConfigurationError
from ..resolver.scope import Scope
from ..topology import keys
from ..topology.accounts import AccountDirectory
from ..topology.config import (
    DxGatewayAttachmentTarget,
    TopologyConfig,
    TransitGatewayConfig,
    TransitGatewayPeeringAttachmentTarget,
    TransitGatewayRouteEntryConfig,
    VpcAttachmentTarget,
    VpnAttachmentTarget,
)
from .context import TopologyBuildContext
from .records import Identifier, PrefixListReferenceRecord, TransitGatewayRouteRecord
from .registry import ExternallyManagedRegistry


@dataclass
class StaticRoutePlan:
    routes: list[TransitGatewayRouteRecord] = field(default_factory=list)
    prefix_list_references: list[PrefixListReferenceRecord] = field(default_factory=list)


class TransitGatewayStaticRouteBuilder:
    def __init__(
        self,
        topology: TopologyConfig,
        accounts: AccountDirectory,
        context: TopologyBuildContext,
        registry: ExternallyManagedRegistry | None = None,
    ):
        self.topology = topology
        self.accounts = accounts
        self.context = context
        self.registry = registry or ExternallyManagedRegistry()

    def build(self) -> StaticRoutePlan:
        plan = StaticRoutePlan()
        for tgw in self.topology.transit_gateways:
            if Scope(self.accounts.account_id(tgw.account), tgw.region) != self.context.scope:
                continue
            for route_table in tgw.route_tables:
                route_table_id = self.context.require(
                    "transit_gateway_route_tables",
                    keys.transit_gateway_route_table_key(tgw.name, route_table.name),
                )
                for entry in route_table.routes:
                    self._add(plan, tgw, route_table.name, route_table_id, entry)
        return plan

    def _attachment(
        self, tgw: TransitGatewayConfig, entry: TransitGatewayRouteEntryConfig
    ) -> tuple[str, Identifier]:
        """Name suffix and attachment id of a route target."""
        match entry.attachment:
            case VpcAttachmentTarget(vpc_name=vpc_name, account=account):
                key = keys.attachment_key(tgw.name, account, vpc_name)
                suffix = f"{vpc_name}-{account}"
            case VpnAttachmentTarget(vpn_connection_name=vpn_name):
                found = self.topology.find_vpn_connection(vpn_name)
                if found is None:
                    raise ConfigurationError(f"Unknown VPN connection {vpn_name}", key=vpn_name)
                key = keys.attachment_key(tgw.name, found[0].account, vpn_name)
                suffix = vpn_name
            case DxGatewayAttachmentTarget(direct_connect_gateway_name=dx_name):
                key = keys.attachment_key(tgw.name, tgw.account, dx_name)
                suffix = dx_name
            case TransitGatewayPeeringAttachmentTarget(transit_gateway_peering_name=peering):
                key = keys.attachment_key(tgw.name, tgw.account, peering)
                suffix = peering
            case _:
                raise ConfigurationError(f"Route in {tgw.name} has no attachment target")
        return suffix, self.context.require("transit_gateway_attachments", key)

    def _add(
        self,
        plan: StaticRoutePlan,
        tgw: TransitGatewayConfig,
        route_table: str,
        route_table_id: str,
        entry: TransitGatewayRouteEntryConfig,
    ) -> None:
        attachment_id = None
        suffix = "blackhole"
        if not entry.blackhole:
            suffix, attachment_id = self._attachment(tgw, entry)

        if entry.destination_cidr_block:
            name = keys.resource_name(tgw.name, route_table, entry.destination_cidr_block, suffix)
            if self.registry.is_managed("transit_gateway_route", name):
                pulumi.log.info(f"Skipping externally managed transit gateway route {name}")
                return
            plan.routes.append(
                TransitGatewayRouteRecord(
                    key=name,
                    resource_name=name,
                    transit_gateway_route_table_id=route_table_id,
                    destination_cidr_block=entry.destination_cidr_block,
                    transit_gateway_attachment_id=attachment_id,
                    blackhole=entry.blackhole,
                )
            )
            return

        name = keys.resource_name(tgw.name, route_table, entry.destination_prefix_list, suffix)
        if self.registry.is_managed("transit_gateway_route", name):
            pulumi.log.info(f"Skipping externally managed prefix list reference {name}")
            return
        plan.prefix_list_references.append(
            PrefixListReferenceRecord(
                key=name,
                resource_name=name,
                transit_gateway_route_table_id=route_table_id,
                prefix_list_id=self.context.require("prefix_lists", entry.destination_prefix_list),
                transit_gateway_attachment_id=attachment_id,
                blackhole=entry.blackhole,
            )
        )
