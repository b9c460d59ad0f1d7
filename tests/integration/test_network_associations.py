from __future__ import annotations

import boto3
import pulumi
import pulumi.automation as auto

from pulumi_network_associations import (
    Boto3LookupHelperFactory,
    NetworkAssociations,
    Scope,
    TopologyConfig,
    build_topology_plan,
)
from pulumi_network_associations.topology.keys import ResourceType, parameter_path
from tests.integration.conftest import (
    AWS_REGION,
    LOCALSTACK_ACCOUNT_ID,
    localstack_provider,
    pulumi_stack_factory,
    stack_scope,
)


def _get_route_table(ec2_client, route_table_id: str) -> dict:
    return ec2_client.describe_route_tables(RouteTableIds=[route_table_id])[
        "RouteTables"
    ][0]


def _has_peering_route(
    routes: list[dict], destination_cidr: str, peering_id: str
) -> bool:
    return any(
        route.get("DestinationCidrBlock") == destination_cidr
        and route.get("VpcPeeringConnectionId") == peering_id
        for route in routes
    )


class TestSameAccountPeering:
    HUB_CIDR = "10.10.0.0/16"
    SPOKE_CIDR = "10.20.0.0/16"

    @staticmethod
    def _topology() -> TopologyConfig:
        def vpc(name: str, cidr: str, target_route: str) -> dict:
            return {
                "name": name,
                "account": "network",
                "region": AWS_REGION,
                "cidrs": [cidr],
                "route_tables": [
                    {
                        "name": "private",
                        "routes": [
                            {"name": target_route, "type": "vpcPeering", "target": "hub-spoke"}
                        ],
                    }
                ],
            }

        return TopologyConfig(
            home_region=AWS_REGION,
            accounts=[{"name": "network", "id": LOCALSTACK_ACCOUNT_ID}],
            vpcs=[
                vpc("hub", TestSameAccountPeering.HUB_CIDR, "to-spoke"),
                vpc("spoke", TestSameAccountPeering.SPOKE_CIDR, "to-hub"),
            ],
            vpc_peering=[{"name": "hub-spoke", "vpcs": ["hub", "spoke"]}],
        )

    @staticmethod
    def _publish_vpc(ec2_client, ssm_client, name: str, cidr: str) -> str:
        vpc_id = ec2_client.create_vpc(CidrBlock=cidr)["Vpc"]["VpcId"]
        route_table_id = ec2_client.create_route_table(VpcId=vpc_id)["RouteTable"][
            "RouteTableId"
        ]
        for resource_type, names, value in [
            (ResourceType.VPC, [name], vpc_id),
            (ResourceType.ROUTE_TABLE, [name, "private"], route_table_id),
        ]:
            ssm_client.put_parameter(
                Name=parameter_path(resource_type, names),
                Value=value,
                Type="String",
                Overwrite=True,
            )
        return route_table_id

    @staticmethod
    def _program() -> None:
        scope = stack_scope()
        plan = build_topology_plan(
            TestSameAccountPeering._topology(),
            scope,
            Boto3LookupHelperFactory(boto3.Session(region_name=scope.region)),
        )
        associations = NetworkAssociations(
            "network",
            plan,
            opts=pulumi.ResourceOptions(provider=localstack_provider(scope)),
        )
        pulumi.export("peering_connection_ids", associations.peering_connection_ids)

    @staticmethod
    def test_creates_routes_on_both_sides(ec2_client, ssm_client):
        hub_route_table_id = TestSameAccountPeering._publish_vpc(
            ec2_client, ssm_client, "hub", TestSameAccountPeering.HUB_CIDR
        )
        spoke_route_table_id = TestSameAccountPeering._publish_vpc(
            ec2_client, ssm_client, "spoke", TestSameAccountPeering.SPOKE_CIDR
        )

        with pulumi_stack_factory() as create_stack:
            stack: auto.Stack = create_stack(
                TestSameAccountPeering._program, Scope(LOCALSTACK_ACCOUNT_ID, AWS_REGION)
            )
            result = stack.up(on_output=None)

            peering_id = result.outputs["peering_connection_ids"].value["hub-spoke"]

            hub_routes = _get_route_table(ec2_client, hub_route_table_id)["Routes"]
            assert _has_peering_route(hub_routes, TestSameAccountPeering.SPOKE_CIDR, peering_id)

            spoke_routes = _get_route_table(ec2_client, spoke_route_table_id)["Routes"]
            assert _has_peering_route(spoke_routes, TestSameAccountPeering.HUB_CIDR, peering_id)

            published = ssm_client.get_parameter(
                Name=parameter_path(ResourceType.VPC_PEERING, ["hub-spoke"])
            )["Parameter"]["Value"]
            assert published == peering_id
