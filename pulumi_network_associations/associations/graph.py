"""Transit gateway route table associations and propagations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

import pulumi

from ..errors import DuplicateAssociationError
from ..resolver.scope import Scope
from ..topology import keys
from ..topology.accounts import AccountDirectory
from ..topology.config import TopologyConfig, VpcTemplateConfig
from ..topology.keys import RolePurpose
from .context import TopologyBuildContext
from .records import AssociationRecord, AttachmentKind, CrossAccountTarget, EdgeKind
from .registry import ExternallyManagedRegistry


@dataclass(frozen=True)
class AttachmentRef:
    """An attachment of a child to a gateway, seen from the attachment owner."""

    kind: AttachmentKind
    gateway: str
    gateway_account: str
    gateway_scope: Scope
    owning_account: str
    child: str
    attachment_name: str
    templated: bool = False

    @property
    def key(self) -> str:
        return keys.attachment_key(self.gateway, self.owning_account, self.child)


@dataclass(frozen=True)
class AttachmentEdges:
    attachment: AttachmentRef
    associations: tuple[str, ...]
    propagations: tuple[str, ...]


class AssociationGraphBuilder:
    """Emits one record per (attachment, route table) edge.

    An edge requested twice in the same run is a configuration error; an
    externally managed edge is skipped but counts as satisfied.
    """

    def __init__(
        self,
        context: TopologyBuildContext,
        registry: ExternallyManagedRegistry | None = None,
        accelerator_prefix: str = keys.DEFAULT_ACCELERATOR_PREFIX,
    ):
        self.context = context
        self.registry = registry or ExternallyManagedRegistry()
        self.accelerator_prefix = accelerator_prefix
        self._emitted: set[tuple[EdgeKind, str]] = set()
        self.satisfied_externally: set[tuple[EdgeKind, str]] = set()

    def build_associations(
        self, attachment: AttachmentRef, route_table_names: list[str] | tuple[str, ...]
    ) -> list[AssociationRecord]:
        return self._build(EdgeKind.ASSOCIATION, attachment, route_table_names)

    def build_propagations(
        self, attachment: AttachmentRef, route_table_names: list[str] | tuple[str, ...]
    ) -> list[AssociationRecord]:
        return self._build(EdgeKind.PROPAGATION, attachment, route_table_names)

    def _cross_account_target(self, attachment: AttachmentRef) -> CrossAccountTarget | None:
        if attachment.gateway_scope == self.context.scope:
            return None
        region = attachment.gateway_scope.region
        return CrossAccountTarget(
            attachment.gateway_scope.account,
            region,
            keys.role_name(self.accelerator_prefix, RolePurpose.CROSS_ACCOUNT_TGW_ROUTES, region),
        )

    def _build(
        self,
        kind: EdgeKind,
        attachment: AttachmentRef,
        route_table_names: list[str] | tuple[str, ...],
    ) -> list[AssociationRecord]:
        records = []
        gateway_local = attachment.gateway_scope == self.context.scope
        for route_table in route_table_names:
            key = keys.edge_key(attachment.key, route_table)
            if self.registry.is_managed(kind.externally_managed_type, key):
                pulumi.log.info(f"Skipping externally managed {kind.value} {key}")
                self.satisfied_externally.add((kind, key))
                continue
            if (kind, key) in self._emitted:
                raise DuplicateAssociationError(
                    f"Transit gateway {kind.value} {key} requested more than once",
                    key=key,
                    scope=self.context.scope,
                )
            record = AssociationRecord(
                kind=kind,
                key=key,
                resource_name=keys.edge_resource_name(
                    kind.value,
                    attachment.attachment_name,
                    route_table,
                    attachment.owning_account if attachment.templated else None,
                ),
                attachment_key=attachment.key,
                transit_gateway_attachment_id=self.context.require(
                    "transit_gateway_attachments", attachment.key
                ),
                transit_gateway_route_table_id=self.context.transit_gateway_route_table_id(
                    attachment.gateway,
                    attachment.gateway_account,
                    route_table,
                    local=gateway_local,
                ),
                cross_account=self._cross_account_target(attachment),
            )
            self._emitted.add((kind, key))
            pulumi.log.debug(f"Emitting transit gateway {kind.value} {key}")
            records.append(record)
        return records


def collect_attachment_edges(
    topology: TopologyConfig, accounts: AccountDirectory, scope: Scope
) -> Iterator[AttachmentEdges]:
    """Attachments owned by ``scope`` with their route table edges.

    The unit that owns an attachment emits its edges, whichever account owns
    the gateway.
    """
    for vpc in topology.vpc_resources:
        if vpc.region != scope.region:
            continue
        templated = isinstance(vpc, VpcTemplateConfig)
        for owning_account in accounts.vpc_account_names(vpc):
            if accounts.account_id(owning_account) != scope.account:
                continue
            for attachment in vpc.transit_gateway_attachments:
                tgw = topology.find_transit_gateway(
                    attachment.transit_gateway.name, attachment.transit_gateway.account
                )
                yield AttachmentEdges(
                    AttachmentRef(
                        kind=AttachmentKind.VPC,
                        gateway=tgw.name,
                        gateway_account=tgw.account,
                        gateway_scope=Scope(accounts.account_id(tgw.account), tgw.region),
                        owning_account=owning_account,
                        child=vpc.name,
                        attachment_name=attachment.name,
                        templated=templated,
                    ),
                    tuple(attachment.route_table_associations),
                    tuple(attachment.route_table_propagations),
                )

    for cgw in topology.customer_gateways:
        if Scope(accounts.account_id(cgw.account), cgw.region) != scope:
            continue
        for vpn in cgw.vpn_connections:
            if not vpn.transit_gateway:
                continue
            yield AttachmentEdges(
                AttachmentRef(
                    kind=AttachmentKind.VPN,
                    gateway=vpn.transit_gateway,
                    gateway_account=cgw.account,
                    gateway_scope=scope,
                    owning_account=cgw.account,
                    child=vpn.name,
                    attachment_name=vpn.name,
                ),
                tuple(vpn.route_table_associations),
                tuple(vpn.route_table_propagations),
            )

    for dxgw in topology.direct_connect_gateways:
        for association in dxgw.transit_gateway_associations:
            tgw = topology.find_transit_gateway(association.name, association.account)
            tgw_scope = Scope(accounts.account_id(tgw.account), tgw.region)
            if tgw_scope != scope:
                continue
            yield AttachmentEdges(
                AttachmentRef(
                    kind=AttachmentKind.DIRECT_CONNECT,
                    gateway=tgw.name,
                    gateway_account=tgw.account,
                    gateway_scope=tgw_scope,
                    owning_account=tgw.account,
                    child=dxgw.name,
                    attachment_name=dxgw.name,
                ),
                tuple(association.route_table_associations),
                tuple(association.route_table_propagations),
            )
