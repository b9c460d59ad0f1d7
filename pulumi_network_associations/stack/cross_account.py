from __future__ import annotations

import pulumi
import pulumi_aws as aws

from ..associations.records import CrossAccountTarget, RouteRecord
from ..topology.keys import resource_name, role_arn


class AssumedRoleProviders:
    """AWS providers that assume a role in another account, one per target."""

    def __init__(
        self,
        name: str,
        parent: pulumi.Resource,
        partition: str = "aws",
        session_name: str = "network-associations",
    ):
        self._name = name
        self._parent = parent
        self._partition = partition
        self._session_name = session_name
        self._providers: dict[CrossAccountTarget, aws.Provider] = {}

    def get(self, target: CrossAccountTarget) -> aws.Provider:
        if target not in self._providers:
            self._providers[target] = aws.Provider(
                resource_name(self._name, target.role_name, target.account),
                region=target.region,
                assume_roles=[
                    aws.ProviderAssumeRoleArgs(
                        role_arn=role_arn(target.account, target.role_name, self._partition),
                        session_name=self._session_name,
                    )
                ],
                opts=pulumi.ResourceOptions(parent=self._parent),
            )
        return self._providers[target]

    def __len__(self) -> int:
        return len(self._providers)


def peering_route_args(record: RouteRecord, peering_id: pulumi.Input[str]) -> dict:
    return {
        "route_table_id": record.route_table_id,
        "destination_cidr_block": record.destination,
        "destination_ipv6_cidr_block": record.ipv6_destination,
        "destination_prefix_list_id": record.destination_prefix_list_id,
        "vpc_peering_connection_id": peering_id,
    }


class CrossAccountRouteHandler(pulumi.ComponentResource):
    """Writes peering routes into route tables owned by other accounts."""

    def __init__(
        self,
        name: str,
        partition: str = "aws",
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__(
            "pulumi-network-associations:aws:CrossAccountRouteHandler", name, None, opts
        )
        self.providers = AssumedRoleProviders(name, parent=self, partition=partition)
        self.routes: dict[str, aws.ec2.Route] = {}
        self.register_outputs({})

    def add_route(
        self,
        record: RouteRecord,
        peering_id: pulumi.Input[str],
        depends_on: list[pulumi.Resource] | None = None,
    ) -> aws.ec2.Route:
        if record.cross_account is None:
            raise ValueError(f"Route {record.key} has no cross-account target")
        route = aws.ec2.Route(
            record.resource_name,
            **peering_route_args(record, peering_id),
            opts=pulumi.ResourceOptions(
                parent=self,
                provider=self.providers.get(record.cross_account),
                depends_on=depends_on or [],
            ),
        )
        self.routes[record.key] = route
        return route
