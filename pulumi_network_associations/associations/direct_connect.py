"""Direct Connect gateway to transit gateway associations."""

from __future__ import annotations

from ..resolver.scope import Scope
from ..topology import keys
from ..topology.accounts import AccountDirectory
from ..topology.config import TopologyConfig
from .context import TopologyBuildContext
from .records import DxGatewayAssociationRecord


def build_dx_gateway_associations(
    topology: TopologyConfig, accounts: AccountDirectory, context: TopologyBuildContext
) -> list[DxGatewayAssociationRecord]:
    """One association per DX gateway and local transit gateway.

    A DX gateway owned by another account gets an association proposal
    instead; its owner accepts it outside this unit.
    """
    records = []
    for dxgw in topology.direct_connect_gateways:
        for association in dxgw.transit_gateway_associations:
            tgw = topology.find_transit_gateway(association.name, association.account)
            if Scope(accounts.account_id(tgw.account), tgw.region) != context.scope:
                continue
            proposal = dxgw.account != tgw.account
            records.append(
                DxGatewayAssociationRecord(
                    key=keys.dx_gateway_association_key(dxgw.name, tgw.name),
                    resource_name=keys.resource_name(
                        dxgw.name, tgw.name, "proposal" if proposal else "association"
                    ),
                    dx_gateway_id=context.require("dx_gateways", dxgw.name),
                    transit_gateway_id=context.require("transit_gateways", tgw.name),
                    allowed_prefixes=tuple(association.allowed_prefixes),
                    proposal=proposal,
                    dx_gateway_owner_account_id=(
                        accounts.account_id(dxgw.account) if proposal else None
                    ),
                )
            )
    return records
