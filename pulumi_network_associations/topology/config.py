"""Topology description models and loaders."""

from __future__ import annotations

import ipaddress
from pathlib import Path
from typing import Literal

import pulumi
import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .keys import DEFAULT_ACCELERATOR_PREFIX, DEFAULT_PARAMETER_PREFIX

ROOT_ORGANIZATIONAL_UNIT = "Root"


class AccountConfig(BaseModel):
    name: str
    id: str
    organizational_unit: str = ROOT_ORGANIZATIONAL_UNIT


class DeploymentTargets(BaseModel):
    accounts: list[str] = Field(default_factory=list)
    organizational_units: list[str] = Field(default_factory=list)
    excluded_accounts: list[str] = Field(default_factory=list)


# Static route targets. Each variant forbids extra keys so a mapping matches
# exactly one of them.
class VpcAttachmentTarget(BaseModel):
    model_config = ConfigDict(extra="forbid")

    vpc_name: str
    account: str


class VpnAttachmentTarget(BaseModel):
    model_config = ConfigDict(extra="forbid")

    vpn_connection_name: str


class DxGatewayAttachmentTarget(BaseModel):
    model_config = ConfigDict(extra="forbid")

    direct_connect_gateway_name: str


class TransitGatewayPeeringAttachmentTarget(BaseModel):
    model_config = ConfigDict(extra="forbid")

    transit_gateway_peering_name: str


AttachmentTarget = (
    VpcAttachmentTarget
    | VpnAttachmentTarget
    | DxGatewayAttachmentTarget
    | TransitGatewayPeeringAttachmentTarget
)


class TransitGatewayRouteEntryConfig(BaseModel):
    destination_cidr_block: str | None = None
    destination_prefix_list: str | None = None
    blackhole: bool = False
    attachment: AttachmentTarget | None = None

    @model_validator(mode="after")
    def validate_route(self):
        if bool(self.destination_cidr_block) == bool(self.destination_prefix_list):
            raise ValueError(
                "Transit gateway routes need exactly one of destination_cidr_block "
                "or destination_prefix_list"
            )
        if self.blackhole == (self.attachment is not None):
            raise ValueError(
                "Transit gateway routes are either blackhole routes or have an attachment"
            )
        return self


class TransitGatewayRouteTableConfig(BaseModel):
    name: str
    routes: list[TransitGatewayRouteEntryConfig] = Field(default_factory=list)


class TransitGatewayConfig(BaseModel):
    name: str
    account: str
    region: str
    route_tables: list[TransitGatewayRouteTableConfig] = Field(default_factory=list)

    def route_table_names(self) -> list[str]:
        return [rt.name for rt in self.route_tables]


class TransitGatewayRef(BaseModel):
    name: str
    account: str


class TransitGatewayAttachmentConfig(BaseModel):
    name: str
    transit_gateway: TransitGatewayRef
    route_table_associations: list[str] = Field(default_factory=list)
    route_table_propagations: list[str] = Field(default_factory=list)


class TransitGatewayPeeringSide(BaseModel):
    transit_gateway_name: str
    account: str
    region: str


class TransitGatewayPeeringConfig(BaseModel):
    name: str
    requester: TransitGatewayPeeringSide
    accepter: TransitGatewayPeeringSide


class RouteEntryConfig(BaseModel):
    name: str
    type: str | None = None
    target: str | None = None
    destination: str | None = None
    ipv6_destination: str | None = None
    destination_prefix_list: str | None = None

    @model_validator(mode="after")
    def validate_destination(self):
        if self.destination_prefix_list and (self.destination or self.ipv6_destination):
            raise ValueError(
                f"Route {self.name} cannot combine a prefix list with a CIDR destination"
            )
        return self


class RouteTableConfig(BaseModel):
    name: str
    routes: list[RouteEntryConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_routes(self):
        names = [route.name for route in self.routes]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(
                f"Route names must be unique in route table {self.name}. "
                f"Found duplicates: {duplicates}"
            )
        return self


class DnsFirewallRuleGroupRef(BaseModel):
    name: str
    priority: int
    mutation_protection: Literal["ENABLED", "DISABLED"] | None = None


class _VpcBase(BaseModel):
    name: str
    region: str
    cidrs: list[str] = Field(default_factory=list)
    route_tables: list[RouteTableConfig] = Field(default_factory=list)
    transit_gateway_attachments: list[TransitGatewayAttachmentConfig] = Field(
        default_factory=list
    )
    resolver_rules: list[str] = Field(default_factory=list)
    dns_firewall_rule_groups: list[DnsFirewallRuleGroupRef] = Field(
        default_factory=list
    )
    query_logs: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_route_tables(self):
        names = [rt.name for rt in self.route_tables]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(
                f"Route table names must be unique in VPC {self.name}. "
                f"Found duplicates: {duplicates}"
            )
        return self

    def uses_dns_services(self) -> bool:
        return bool(self.resolver_rules or self.dns_firewall_rule_groups or self.query_logs)


class VpcConfig(_VpcBase):
    account: str


class VpcTemplateConfig(_VpcBase):
    deployment_targets: DeploymentTargets


VpcSpec = VpcConfig | VpcTemplateConfig


class VpcPeeringConfig(BaseModel):
    name: str
    vpcs: list[str]
    tags: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_pair(self):
        if len(self.vpcs) != 2:
            raise ValueError(
                f"VPC peering {self.name} needs exactly two VPCs [requester, accepter]"
            )
        return self

    @property
    def requester(self) -> str:
        return self.vpcs[0]

    @property
    def accepter(self) -> str:
        return self.vpcs[1]


class PrefixListConfig(BaseModel):
    name: str
    deployment_targets: DeploymentTargets
    regions: list[str]


class VpnConnectionConfig(BaseModel):
    name: str
    transit_gateway: str | None = None
    route_table_associations: list[str] = Field(default_factory=list)
    route_table_propagations: list[str] = Field(default_factory=list)


class CustomerGatewayConfig(BaseModel):
    name: str
    account: str
    region: str
    ip_address: str
    vpn_connections: list[VpnConnectionConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_ip_address(self):
        if any(vpn.transit_gateway for vpn in self.vpn_connections):
            try:
                ipaddress.IPv4Address(self.ip_address)
            except ValueError as err:
                raise ValueError(
                    f"Customer gateway {self.name} terminating on a transit gateway "
                    f"needs an IPv4 address, got {self.ip_address}"
                ) from err
        return self


class DxTransitGatewayAssociationConfig(BaseModel):
    name: str
    account: str
    allowed_prefixes: list[str] = Field(default_factory=list)
    route_table_associations: list[str] = Field(default_factory=list)
    route_table_propagations: list[str] = Field(default_factory=list)


class DxGatewayConfig(BaseModel):
    name: str
    account: str
    transit_gateway_associations: list[DxTransitGatewayAssociationConfig] = Field(
        default_factory=list
    )


class CentralNetworkServicesConfig(BaseModel):
    delegated_admin_account: str
    query_log_destinations: list[Literal["s3", "cloud-watch-logs"]] = Field(
        default_factory=lambda: ["cloud-watch-logs"]
    )


ExternallyManagedType = Literal[
    "transit_gateway_association",
    "transit_gateway_propagation",
    "transit_gateway_route",
    "vpc_peering",
    "query_logging_association",
]


class ExternallyManagedResource(BaseModel):
    type: ExternallyManagedType
    identifier: str


class TopologyConfig(BaseModel):
    home_region: str
    accelerator_prefix: str = DEFAULT_ACCELERATOR_PREFIX
    parameter_prefix: str = DEFAULT_PARAMETER_PREFIX
    accounts: list[AccountConfig]
    transit_gateways: list[TransitGatewayConfig] = Field(default_factory=list)
    transit_gateway_peering: list[TransitGatewayPeeringConfig] = Field(
        default_factory=list
    )
    vpcs: list[VpcConfig] = Field(default_factory=list)
    vpc_templates: list[VpcTemplateConfig] = Field(default_factory=list)
    vpc_peering: list[VpcPeeringConfig] = Field(default_factory=list)
    prefix_lists: list[PrefixListConfig] = Field(default_factory=list)
    customer_gateways: list[CustomerGatewayConfig] = Field(default_factory=list)
    direct_connect_gateways: list[DxGatewayConfig] = Field(default_factory=list)
    central_network_services: CentralNetworkServicesConfig | None = None
    externally_managed: list[ExternallyManagedResource] = Field(default_factory=list)

    @property
    def vpc_resources(self) -> list[VpcSpec]:
        return [*self.vpcs, *self.vpc_templates]

    def find_vpc(self, name: str) -> VpcSpec | None:
        return next((vpc for vpc in self.vpc_resources if vpc.name == name), None)

    def find_transit_gateway(
        self, name: str, account: str | None = None
    ) -> TransitGatewayConfig | None:
        return next(
            (
                tgw
                for tgw in self.transit_gateways
                if tgw.name == name and (account is None or tgw.account == account)
            ),
            None,
        )

    def find_vpn_connection(
        self, name: str
    ) -> tuple[CustomerGatewayConfig, VpnConnectionConfig] | None:
        for cgw in self.customer_gateways:
            for vpn in cgw.vpn_connections:
                if vpn.name == name:
                    return cgw, vpn
        return None

    @model_validator(mode="after")
    def validate_unique_names(self):
        vpc_names = [vpc.name for vpc in self.vpc_resources]
        duplicates = sorted({n for n in vpc_names if vpc_names.count(n) > 1})
        if duplicates:
            raise ValueError(f"VPC names must be unique. Found duplicates: {duplicates}")

        gateways = [(tgw.name, tgw.account) for tgw in self.transit_gateways]
        if len(gateways) != len(set(gateways)):
            raise ValueError(
                f"Transit gateway names must be unique per account. Found: {gateways}"
            )

        account_names = [a.name for a in self.accounts]
        if len(account_names) != len(set(account_names)):
            raise ValueError(f"Account names must be unique. Found: {account_names}")
        return self

    @model_validator(mode="after")
    def validate_account_references(self):
        known = {a.name for a in self.accounts}
        referenced: list[tuple[str, str]] = []
        for tgw in self.transit_gateways:
            referenced.append((f"transit gateway {tgw.name}", tgw.account))
        for vpc in self.vpcs:
            referenced.append((f"VPC {vpc.name}", vpc.account))
        for template in self.vpc_templates:
            targets = template.deployment_targets
            for name in [*targets.accounts, *targets.excluded_accounts]:
                referenced.append((f"VPC template {template.name}", name))
        for prefix_list in self.prefix_lists:
            for name in prefix_list.deployment_targets.accounts:
                referenced.append((f"prefix list {prefix_list.name}", name))
        for cgw in self.customer_gateways:
            referenced.append((f"customer gateway {cgw.name}", cgw.account))
        for dxgw in self.direct_connect_gateways:
            referenced.append((f"Direct Connect gateway {dxgw.name}", dxgw.account))
        if self.central_network_services:
            referenced.append(
                (
                    "central network services",
                    self.central_network_services.delegated_admin_account,
                )
            )
        unknown = [f"{owner}: {name}" for owner, name in referenced if name not in known]
        if unknown:
            raise ValueError(f"Unknown account names referenced by {unknown}")
        return self

    @model_validator(mode="after")
    def validate_references(self):
        for vpc in self.vpc_resources:
            for attachment in vpc.transit_gateway_attachments:
                ref = attachment.transit_gateway
                tgw = self.find_transit_gateway(ref.name, ref.account)
                if tgw is None:
                    raise ValueError(
                        f"VPC {vpc.name} attachment {attachment.name} references unknown "
                        f"transit gateway {ref.name} in account {ref.account}"
                    )
                if tgw.region != vpc.region:
                    raise ValueError(
                        f"VPC {vpc.name} ({vpc.region}) cannot attach to transit gateway "
                        f"{tgw.name} in {tgw.region}"
                    )
                self._check_route_tables(
                    tgw,
                    [*attachment.route_table_associations, *attachment.route_table_propagations],
                    f"VPC {vpc.name} attachment {attachment.name}",
                )
            if vpc.uses_dns_services() and self.central_network_services is None:
                raise ValueError(
                    f"VPC {vpc.name} uses Route 53 Resolver resources but "
                    "central_network_services is not configured"
                )

        for peering in self.vpc_peering:
            for name in peering.vpcs:
                if self.find_vpc(name) is None:
                    raise ValueError(
                        f"VPC peering {peering.name} references unknown VPC {name}"
                    )

        for cgw in self.customer_gateways:
            for vpn in cgw.vpn_connections:
                if not vpn.transit_gateway:
                    continue
                tgw = self.find_transit_gateway(vpn.transit_gateway, cgw.account)
                if tgw is None or tgw.region != cgw.region:
                    raise ValueError(
                        f"VPN connection {vpn.name} references unknown transit gateway "
                        f"{vpn.transit_gateway} in {cgw.account}/{cgw.region}"
                    )
                self._check_route_tables(
                    tgw,
                    [*vpn.route_table_associations, *vpn.route_table_propagations],
                    f"VPN connection {vpn.name}",
                )

        for dxgw in self.direct_connect_gateways:
            for association in dxgw.transit_gateway_associations:
                tgw = self.find_transit_gateway(association.name, association.account)
                if tgw is None:
                    raise ValueError(
                        f"Direct Connect gateway {dxgw.name} references unknown transit "
                        f"gateway {association.name} in account {association.account}"
                    )
                self._check_route_tables(
                    tgw,
                    [
                        *association.route_table_associations,
                        *association.route_table_propagations,
                    ],
                    f"Direct Connect gateway {dxgw.name}",
                )

        for peering in self.transit_gateway_peering:
            for side in (peering.requester, peering.accepter):
                if self.find_transit_gateway(side.transit_gateway_name, side.account) is None:
                    raise ValueError(
                        f"Transit gateway peering {peering.name} references unknown "
                        f"transit gateway {side.transit_gateway_name} in {side.account}"
                    )
        return self

    @staticmethod
    def _check_route_tables(tgw: TransitGatewayConfig, names: list[str], owner: str):
        unknown = sorted(set(names) - set(tgw.route_table_names()))
        if unknown:
            raise ValueError(
                f"{owner} references route tables {unknown} that transit gateway "
                f"{tgw.name} does not define"
            )


def load_topology_config(pulumi_config: pulumi.Config) -> TopologyConfig:
    """Load and validate the topology from structured Pulumi config."""
    return TopologyConfig(**pulumi_config.require_object("topology"))


def load_topology_file(path: str | Path) -> TopologyConfig:
    """Load and validate a YAML topology file."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return TopologyConfig(**data)
