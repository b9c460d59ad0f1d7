from pulumi_network_associations.associations import DeferredId, TopologyMapBuilder
from pulumi_network_associations.resolver import Scope
from pulumi_network_associations.topology import AccountDirectory, TopologyConfig
from pulumi_network_associations.topology.keys import ResourceType
from tests.unit.conftest import (
    ACCOUNT_A,
    ACCOUNT_B,
    REGION,
    FakeNetworkStore,
    core_app_topology,
    make_resolver,
)


def _publish_core_app(store: FakeNetworkStore) -> None:
    store.publish(ACCOUNT_A, REGION, ResourceType.TRANSIT_GATEWAY, ["Core"], "tgw-0a")
    store.publish(ACCOUNT_A, REGION, ResourceType.TRANSIT_GATEWAY_ROUTE_TABLE, ["Core", "rt1"], "tgw-rtb-1")
    store.publish(ACCOUNT_A, REGION, ResourceType.TRANSIT_GATEWAY_ROUTE_TABLE, ["Core", "rt2"], "tgw-rtb-2")
    store.publish(ACCOUNT_B, REGION, ResourceType.VPC, ["App"], "vpc-app")
    store.publish(
        ACCOUNT_B, REGION, ResourceType.TRANSIT_GATEWAY_ATTACHMENT, ["App", "App"], "tgw-attach-0123"
    )
    store.attachments[(ACCOUNT_B, REGION, "App", "vpc")] = "tgw-attach-0123"


def _build(store: FakeNetworkStore, topology: TopologyConfig, scope: Scope):
    accounts = AccountDirectory(topology.accounts)
    resolver = make_resolver(store, scope, known_accounts=accounts.account_ids)
    return TopologyMapBuilder(topology, accounts, resolver).build()


def test_attachment_owner_reads_attachment_locally(store: FakeNetworkStore):
    _publish_core_app(store)
    scope = Scope(ACCOUNT_B, REGION)

    context = _build(store, core_app_topology(), scope)

    assert context.transit_gateway_attachments == {"Core_B_App": "tgw-attach-0123"}
    assert context.transit_gateways == {}
    assert context.remote_transit_gateway_route_tables == {
        "Core_A_rt1": "tgw-rtb-1",
        "Core_A_rt2": "tgw-rtb-2",
    }
    assert (scope, None) in store.helpers_created
    assert not any(role for s, role in store.helpers_created if s == scope)
    assert store.calls_to("find_transit_gateway_attachment") == []


def test_gateway_owner_looks_attachment_up_in_owning_account(store: FakeNetworkStore):
    _publish_core_app(store)

    context = _build(store, core_app_topology(), Scope(ACCOUNT_A, REGION))

    assert context.transit_gateways == {"Core": "tgw-0a"}
    assert context.transit_gateway_route_tables == {"Core_rt1": "tgw-rtb-1", "Core_rt2": "tgw-rtb-2"}
    assert context.transit_gateway_attachments == {"Core_B_App": "tgw-attach-0123"}
    assert (
        Scope(ACCOUNT_B, REGION),
        "AWSAccelerator-DescribeTgwAttachRole-us-east-1",
    ) in store.helpers_created


def test_unrelated_scope_resolves_nothing(store: FakeNetworkStore):
    context = _build(store, core_app_topology(), Scope(ACCOUNT_A, "eu-west-1"))

    assert context.transit_gateway_attachments == {}
    assert store.calls == []


def test_excluded_template_account_is_skipped(autofill_store: FakeNetworkStore):
    topology = core_app_topology(
        vpcs=[],
        vpc_templates=[
            {
                "name": "Shared",
                "region": REGION,
                "deployment_targets": {
                    "organizational_units": ["Root"],
                    "excluded_accounts": ["A"],
                },
                "transit_gateway_attachments": [
                    {
                        "name": "Shared",
                        "transit_gateway": {"name": "Core", "account": "A"},
                        "route_table_associations": ["rt1"],
                    }
                ],
            }
        ],
    )

    context = _build(autofill_store, topology, Scope(ACCOUNT_A, REGION))

    assert list(context.transit_gateway_attachments) == ["Core_B_Shared"]
    assert context.vpcs == {}


def test_dx_attachment_is_deferred_to_the_association(autofill_store: FakeNetworkStore):
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

    context = _build(autofill_store, topology, Scope(ACCOUNT_A, REGION))

    assert context.transit_gateway_attachments["Core_A_dx"] == DeferredId(
        "dx_Core", "transit_gateway_attachment_id"
    )
    assert context.dx_gateways["dx"].endswith("/directConnectGateways/dx/id")
