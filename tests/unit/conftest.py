from __future__ import annotations

import pytest

from pulumi_network_associations.resolver import LookupHelperCache, Scope
from pulumi_network_associations.resolver.resolver import CrossBoundaryResourceResolver
from pulumi_network_associations.topology import TopologyConfig, keys

REGION = "us-east-1"
OTHER_REGION = "us-west-2"
ACCOUNT_A = "111111111111"
ACCOUNT_B = "222222222222"
ACCOUNT_1 = "100000000001"
ACCOUNT_2 = "100000000002"
ACCOUNT_3 = "100000000003"


class FakeLookupHelper:
    def __init__(self, store: "FakeNetworkStore", scope: Scope, role_name: str | None):
        self.store = store
        self.scope = scope
        self.role_name = role_name

    def get_parameter(self, path: str) -> str | None:
        self.store.calls.append(("get_parameter", self.scope, self.role_name, path))
        value = self.store.parameters.get((self.scope.account, self.scope.region, path))
        if value is None and self.store.autofill:
            value = f"auto:{self.scope.account}:{self.scope.region}:{path}"
        return value

    def find_transit_gateway_attachment(
        self, name, transit_gateway_id, owner_account_id, attachment_type
    ) -> str | None:
        self.store.calls.append(
            ("find_transit_gateway_attachment", self.scope, self.role_name, name)
        )
        value = self.store.attachments.get(
            (self.scope.account, self.scope.region, name, attachment_type)
        )
        if value is None and self.store.autofill:
            value = f"tgw-attach-{name}-{owner_account_id}"
        return value

    def find_shared_resource(self, share_name, resource_type, owner_account_id) -> str | None:
        self.store.calls.append(
            ("find_shared_resource", self.scope, self.role_name, share_name)
        )
        value = self.store.shares.get((owner_account_id, share_name))
        if value is None and self.store.autofill:
            value = f"shared-{share_name}"
        return value


class FakeNetworkStore:
    """In-memory published values, attachments and resource shares."""

    def __init__(self, autofill: bool = False):
        self.autofill = autofill
        self.parameters: dict[tuple[str, str, str], str] = {}
        self.attachments: dict[tuple[str, str, str, str], str] = {}
        self.shares: dict[tuple[str, str], str] = {}
        self.calls: list[tuple] = []
        self.helpers_created: list[tuple[Scope, str | None]] = []

    def publish(
        self,
        account: str,
        region: str,
        resource_type: keys.ResourceType,
        names: list[str],
        value: str,
    ) -> None:
        self.parameters[(account, region, keys.parameter_path(resource_type, names))] = value

    def factory(self, scope: Scope, role_name: str | None = None) -> FakeLookupHelper:
        self.helpers_created.append((scope, role_name))
        return FakeLookupHelper(self, scope, role_name)

    def calls_to(self, method: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == method]


def make_resolver(
    store: FakeNetworkStore,
    caller: Scope,
    home_region: str = REGION,
    known_accounts: list[str] | None = None,
) -> CrossBoundaryResourceResolver:
    return CrossBoundaryResourceResolver(
        caller=caller,
        helpers=LookupHelperCache(store.factory),
        home_region=home_region,
        known_accounts=known_accounts,
    )


def core_app_topology(**overrides) -> TopologyConfig:
    """Gateway Core in account A, VPC App in account B, both in one region."""
    data = {
        "home_region": REGION,
        "accounts": [
            {"name": "A", "id": ACCOUNT_A, "organizational_unit": "Infrastructure"},
            {"name": "B", "id": ACCOUNT_B, "organizational_unit": "Workloads"},
        ],
        "transit_gateways": [
            {
                "name": "Core",
                "account": "A",
                "region": REGION,
                "route_tables": [{"name": "rt1"}, {"name": "rt2"}],
            }
        ],
        "vpcs": [
            {
                "name": "App",
                "account": "B",
                "region": REGION,
                "cidrs": ["10.20.0.0/16"],
                "transit_gateway_attachments": [
                    {
                        "name": "App",
                        "transit_gateway": {"name": "Core", "account": "A"},
                        "route_table_associations": ["rt1"],
                        "route_table_propagations": ["rt2"],
                    }
                ],
            }
        ],
    }
    data.update(overrides)
    return TopologyConfig(**data)


def templated_peering_topology(**overrides) -> TopologyConfig:
    """Single-account VPC Y (account 3) peered with templated VPC X (accounts 1, 2)."""
    data = {
        "home_region": REGION,
        "accounts": [
            {"name": "one", "id": ACCOUNT_1, "organizational_unit": "Workloads/Dev"},
            {"name": "two", "id": ACCOUNT_2, "organizational_unit": "Workloads/Prod"},
            {"name": "three", "id": ACCOUNT_3, "organizational_unit": "Infrastructure"},
        ],
        "vpcs": [
            {
                "name": "Y",
                "account": "three",
                "region": REGION,
                "cidrs": ["10.3.0.0/16"],
                "route_tables": [
                    {
                        "name": "private",
                        "routes": [{"name": "to-x", "type": "vpcPeering", "target": "P"}],
                    }
                ],
            }
        ],
        "vpc_templates": [
            {
                "name": "X",
                "region": REGION,
                "cidrs": ["10.1.0.0/16"],
                "deployment_targets": {"organizational_units": ["Workloads"]},
                "route_tables": [
                    {
                        "name": "private",
                        "routes": [{"name": "to-y", "type": "vpcPeering", "target": "P"}],
                    }
                ],
            }
        ],
        "vpc_peering": [{"name": "P", "vpcs": ["Y", "X"]}],
    }
    data.update(overrides)
    return TopologyConfig(**data)


@pytest.fixture
def store() -> FakeNetworkStore:
    return FakeNetworkStore()


@pytest.fixture
def autofill_store() -> FakeNetworkStore:
    return FakeNetworkStore(autofill=True)
