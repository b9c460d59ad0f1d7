"""Composite keys, published-value paths, role names and resource names.

Every function here is pure. Keys are what the builders use to index their
maps and to tell whether an edge was already emitted; resource names are what
Pulumi sees. Both must stay stable across runs and across list reordering.
"""

from __future__ import annotations

from enum import Enum

DEFAULT_PARAMETER_PREFIX = "/accelerator/network"
DEFAULT_ACCELERATOR_PREFIX = "AWSAccelerator"


class ResourceType(str, Enum):
    """Published-value path templates, one placeholder per name."""

    VPC = "vpc/{}/id"
    VPC_IPV4_CIDR_BLOCK = "vpc/{}/ipv4CidrBlock"
    ROUTE_TABLE = "vpc/{}/routeTable/{}/id"
    TRANSIT_GATEWAY = "transitGateways/{}/id"
    TRANSIT_GATEWAY_ROUTE_TABLE = "transitGateways/{}/routeTables/{}/id"
    TRANSIT_GATEWAY_ATTACHMENT = "vpc/{}/transitGatewayAttachment/{}/id"
    TRANSIT_GATEWAY_PEERING = "transitGateways/{}/peering/{}/id"
    PREFIX_LIST = "prefixList/{}/id"
    VPC_PEERING = "vpcPeering/{}/id"
    DIRECT_CONNECT_GATEWAY = "directConnectGateways/{}/id"
    RESOLVER_RULE = "route53Resolver/rule/{}/id"
    DNS_FIREWALL_RULE_GROUP = "route53Resolver/firewall/ruleGroup/{}/id"
    QUERY_LOG_CONFIG = "route53Resolver/queryLogConfig/{}/id"

    @property
    def arity(self) -> int:
        return self.value.count("{}")


class RolePurpose(str, Enum):
    """Purpose segment of a lookup or write role name."""

    PARAMETER_LOOKUP = "SsmParameterLookupRole"
    VPC_PEERING = "VpcPeeringRole"
    DESCRIBE_TGW_ATTACHMENTS = "DescribeTgwAttachRole"
    TGW_ROUTE_TABLE_LOOKUP = "TgwRouteTableLookupRole"
    DX_GATEWAY_LOOKUP = "DxGatewayLookupRole"
    CROSS_ACCOUNT_TGW_ROUTES = "CrossAccount-TgwRoutes-Role"
    PARAMETER_SHARE = "CrossAccount-SsmParameterShare-Role"


def parameter_path(
    resource_type: ResourceType,
    names: list[str] | tuple[str, ...],
    prefix: str = DEFAULT_PARAMETER_PREFIX,
) -> str:
    """Return the published-value path of a named resource."""
    if len(names) != resource_type.arity:
        raise ValueError(
            f"{resource_type.name} expects {resource_type.arity} name(s), got {list(names)}"
        )
    if any(not name for name in names):
        raise ValueError(f"Empty name in {list(names)} for {resource_type.name}")
    return f"{prefix.rstrip('/')}/{resource_type.value.format(*names)}"


def role_name(prefix: str, purpose: RolePurpose, region: str) -> str:
    return f"{prefix}-{purpose.value}-{region}"


def role_arn(account_id: str, name: str, partition: str = "aws") -> str:
    return f"arn:{partition}:iam::{account_id}:role/{name}"


def transit_gateway_route_table_key(gateway: str, route_table: str) -> str:
    return f"{gateway}_{route_table}"


def remote_transit_gateway_route_table_key(
    gateway: str, gateway_account: str, route_table: str
) -> str:
    return f"{gateway}_{gateway_account}_{route_table}"


def attachment_key(gateway: str, owning_account: str, child: str) -> str:
    """Key of an attachment of ``child`` (VPC, VPN, DX or peering) to ``gateway``."""
    return f"{gateway}_{owning_account}_{child}"


def edge_key(attachment: str, route_table: str) -> str:
    """Key of an association or propagation edge."""
    return f"{attachment}__{route_table}"


def vpc_route_table_key(
    vpc: str, route_table: str, account_id: str | None = None
) -> str:
    if account_id:
        return f"{vpc}_{account_id}_{route_table}"
    return f"{vpc}_{route_table}"


def remote_prefix_list_key(account_id: str, region: str, prefix_list: str) -> str:
    return f"{account_id}_{region}_{prefix_list}"


def peering_connection_key(name: str, accepter_account_id: str | None = None) -> str:
    if accepter_account_id:
        return f"{name}_{accepter_account_id}"
    return name


def dx_gateway_association_key(dx_gateway: str, transit_gateway: str) -> str:
    return f"{dx_gateway}_{transit_gateway}"


def resource_name(*parts: str | None) -> str:
    """Join name parts into a Pulumi resource name.

    Empty parts are dropped and ``/`` (CIDR masks, paths) becomes ``-``.
    """
    return "-".join(part.replace("/", "-") for part in parts if part)


def edge_resource_name(
    kind: str,
    attachment_name: str,
    route_table: str,
    owning_account: str | None = None,
) -> str:
    """Resource name of an association or propagation.

    The owning account is only part of the name for templated attachments,
    which exist once per target account.
    """
    return resource_name(attachment_name, route_table, owning_account, kind)
