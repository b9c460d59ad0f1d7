import pytest

from pulumi_network_associations import build_topology_plan
from pulumi_network_associations.associations.records import DeferredId, EdgeKind
from pulumi_network_associations.errors import ResourceNotFoundError
from pulumi_network_associations.resolver import Scope
from pulumi_network_associations.topology.keys import ResourceType
from tests.unit.conftest import (
    ACCOUNT_A,
    ACCOUNT_B,
    REGION,
    FakeNetworkStore,
    core_app_topology,
)


@pytest.fixture
def core_app_store(store: FakeNetworkStore) -> FakeNetworkStore:
    store.publish(ACCOUNT_A, REGION, ResourceType.TRANSIT_GATEWAY, ["Core"], "tgw-0a")
    store.publish(ACCOUNT_A, REGION, ResourceType.TRANSIT_GATEWAY_ROUTE_TABLE, ["Core", "rt1"], "tgw-rtb-1")
    store.publish(ACCOUNT_A, REGION, ResourceType.TRANSIT_GATEWAY_ROUTE_TABLE, ["Core", "rt2"], "tgw-rtb-2")
    store.publish(ACCOUNT_B, REGION, ResourceType.VPC, ["App"], "vpc-app")
    store.publish(
        ACCOUNT_B, REGION, ResourceType.TRANSIT_GATEWAY_ATTACHMENT, ["App", "App"], "tgw-attach-0123"
    )
    store.attachments[(ACCOUNT_B, REGION, "App", "vpc")] = "tgw-attach-0123"
    return store


def test_attachment_owner_emits_edges(core_app_store: FakeNetworkStore):
    plan = build_topology_plan(core_app_topology(), Scope(ACCOUNT_B, REGION), core_app_store.factory)

    (association,) = plan.associations
    assert association.key == "Core_B_App__rt1"
    assert association.transit_gateway_attachment_id == "tgw-attach-0123"
    assert association.transit_gateway_route_table_id == "tgw-rtb-1"
    assert association.cross_account.account == ACCOUNT_A

    (propagation,) = plan.propagations
    assert propagation.kind == EdgeKind.PROPAGATION
    assert propagation.transit_gateway_route_table_id == "tgw-rtb-2"
    assert not plan.requires_cross_account_route_handler


def test_gateway_owner_sees_same_attachment_without_edges(core_app_store: FakeNetworkStore):
    plan = build_topology_plan(core_app_topology(), Scope(ACCOUNT_A, REGION), core_app_store.factory)

    assert plan.associations == []
    assert plan.propagations == []
    assert plan.context.transit_gateway_attachments["Core_B_App"] == "tgw-attach-0123"


def test_dx_association_and_its_edges(autofill_store: FakeNetworkStore):
    topology = core_app_topology(
        direct_connect_gateways=[
            {
                "name": "dx",
                "account": "A",
                "transit_gateway_associations": [
                    {
                        "name": "Core",
                        "account": "A",
                        "allowed_prefixes": ["10.0.0.0/8"],
                        "route_table_associations": ["rt1"],
                    }
                ],
            }
        ],
    )

    plan = build_topology_plan(topology, Scope(ACCOUNT_A, REGION), autofill_store.factory)

    (dx,) = plan.dx_gateway_associations
    assert (dx.key, dx.resource_name, dx.proposal) == ("dx_Core", "dx-Core-association", False)
    assert dx.allowed_prefixes == ("10.0.0.0/8",)
    (association,) = plan.associations
    assert association.key == "Core_A_dx__rt1"
    assert association.transit_gateway_attachment_id == DeferredId(
        "dx_Core", "transit_gateway_attachment_id"
    )


def test_dx_gateway_of_another_account_is_proposed(autofill_store: FakeNetworkStore):
    topology = core_app_topology(
        direct_connect_gateways=[
            {
                "name": "dx",
                "account": "B",
                "transit_gateway_associations": [{"name": "Core", "account": "A"}],
            }
        ],
    )

    plan = build_topology_plan(topology, Scope(ACCOUNT_A, REGION), autofill_store.factory)

    (dx,) = plan.dx_gateway_associations
    assert dx.proposal
    assert dx.dx_gateway_owner_account_id == ACCOUNT_B
    assert dx.resource_name == "dx-Core-proposal"
    assert (
        Scope(ACCOUNT_B, REGION),
        "AWSAccelerator-DxGatewayLookupRole-us-east-1",
    ) in autofill_store.helpers_created


def test_vpn_attachment_edges(autofill_store: FakeNetworkStore):
    topology = core_app_topology(
        customer_gateways=[
            {
                "name": "onprem",
                "account": "A",
                "region": REGION,
                "ip_address": "203.0.113.10",
                "vpn_connections": [
                    {
                        "name": "vpn1",
                        "transit_gateway": "Core",
                        "route_table_associations": ["rt1"],
                        "route_table_propagations": ["rt1", "rt2"],
                    }
                ],
            }
        ],
    )

    plan = build_topology_plan(topology, Scope(ACCOUNT_A, REGION), autofill_store.factory)

    assert [r.key for r in plan.associations] == ["Core_A_vpn1__rt1"]
    assert {r.key for r in plan.propagations} == {"Core_A_vpn1__rt1", "Core_A_vpn1__rt2"}
    assert {r.transit_gateway_attachment_id for r in plan.propagations} == {
        f"tgw-attach-vpn1-{ACCOUNT_A}"
    }


def test_externally_managed_edges_come_from_topology(core_app_store: FakeNetworkStore):
    topology = core_app_topology(
        externally_managed=[
            {"type": "transit_gateway_association", "identifier": "Core_B_App__rt1"}
        ]
    )

    plan = build_topology_plan(topology, Scope(ACCOUNT_B, REGION), core_app_store.factory)

    assert plan.associations == []
    assert len(plan.propagations) == 1


def test_missing_published_value_fails_planning(store: FakeNetworkStore):
    with pytest.raises(ResourceNotFoundError) as excinfo:
        build_topology_plan(core_app_topology(), Scope(ACCOUNT_A, REGION), store.factory)
    assert excinfo.value.key == "/accelerator/network/transitGateways/Core/id"
    assert excinfo.value.scope == Scope(ACCOUNT_A, REGION)
