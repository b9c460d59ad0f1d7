"""Records emitted by the builders and applied by the Pulumi component."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..errors import ConfigurationError


@dataclass(frozen=True)
class DeferredId:
    """An identifier produced by a resource created in this run.

    Resolved by the materializer as ``getattr(resources[record_key], attribute)``.
    """

    record_key: str
    attribute: str = "id"


Identifier = str | DeferredId


@dataclass(frozen=True)
class CrossAccountTarget:
    """Account, region and role a record is applied through."""

    account: str
    region: str
    role_name: str


class AttachmentKind(str, Enum):
    VPC = "vpc"
    VPN = "vpn"
    DIRECT_CONNECT = "direct-connect-gateway"
    PEERING = "peering"


class EdgeKind(str, Enum):
    ASSOCIATION = "association"
    PROPAGATION = "propagation"

    @property
    def externally_managed_type(self) -> str:
        return f"transit_gateway_{self.value}"


@dataclass(frozen=True)
class AssociationRecord:
    kind: EdgeKind
    key: str
    resource_name: str
    attachment_key: str
    transit_gateway_attachment_id: Identifier
    transit_gateway_route_table_id: str
    cross_account: CrossAccountTarget | None = None


@dataclass(frozen=True)
class PeeringConnectionRecord:
    key: str
    name: str
    resource_name: str
    vpc_id: str
    peer_vpc_id: str
    peer_owner_id: str
    peer_region: str
    auto_accept: bool
    accepter: CrossAccountTarget | None = None
    tags: dict[str, str] = field(default_factory=dict, hash=False)
    imported_peering_id: str | None = None

    @property
    def peering_id(self) -> Identifier:
        return self.imported_peering_id or DeferredId(self.key)


@dataclass(frozen=True)
class RouteRecord:
    key: str
    resource_name: str
    route_table_id: str
    vpc_peering_connection_id: Identifier
    region: str
    destination: str | None = None
    ipv6_destination: str | None = None
    destination_prefix_list_id: str | None = None
    cross_account: CrossAccountTarget | None = None

    def __post_init__(self):
        cidr = self.destination or self.ipv6_destination
        if cidr and self.destination_prefix_list_id:
            raise ConfigurationError(
                f"Route {self.key} cannot combine a CIDR destination with a prefix list",
                key=self.key,
            )
        if not cidr and not self.destination_prefix_list_id:
            raise ConfigurationError(f"Route {self.key} has no destination", key=self.key)


@dataclass(frozen=True)
class PublishedValueRecord:
    key: str
    resource_name: str
    path: str
    value: Identifier
    region: str
    target: CrossAccountTarget | None = None


@dataclass(frozen=True)
class TransitGatewayRouteRecord:
    key: str
    resource_name: str
    transit_gateway_route_table_id: str
    destination_cidr_block: str
    transit_gateway_attachment_id: Identifier | None = None
    blackhole: bool = False


@dataclass(frozen=True)
class PrefixListReferenceRecord:
    key: str
    resource_name: str
    transit_gateway_route_table_id: str
    prefix_list_id: str
    transit_gateway_attachment_id: Identifier | None = None
    blackhole: bool = False


@dataclass(frozen=True)
class DxGatewayAssociationRecord:
    key: str
    resource_name: str
    dx_gateway_id: str
    transit_gateway_id: str
    allowed_prefixes: tuple[str, ...] = ()
    proposal: bool = False
    dx_gateway_owner_account_id: str | None = None


class DnsAssociationKind(str, Enum):
    RESOLVER_RULE = "resolver-rule"
    FIREWALL_RULE_GROUP = "firewall-rule-group"
    QUERY_LOG_CONFIG = "query-log-config"


@dataclass(frozen=True)
class DnsAssociationRecord:
    kind: DnsAssociationKind
    key: str
    resource_name: str
    vpc_id: str
    resource_id: str
    name: str
    priority: int | None = None
    mutation_protection: str | None = None
