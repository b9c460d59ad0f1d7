"""
Pulumi program wiring one account/region into a shared network topology.

Each stack is one deployment unit. It:
1. Resolves the identifiers it needs from the units that own them.
2. Associates and propagates its transit gateway attachments.
3. Creates the VPC peerings it requests, with routes on both sides.
"""

import boto3
import pulumi

from pulumi_network_associations import (
    Boto3LookupHelperFactory,
    NetworkAssociations,
    build_topology_plan,
)

from config import load_deployment_config, load_topology

pulumi_config = pulumi.Config("network")
deployment = load_deployment_config(pulumi_config)
topology = load_topology(pulumi_config, deployment)
deployment_name = f"{pulumi.get_project()}-{pulumi.get_stack()}"

# ------------------------------------------------------------------------------
# Plan
# ------------------------------------------------------------------------------
session = boto3.Session(profile_name=deployment.profile, region_name=deployment.region)
plan = build_topology_plan(
    topology,
    deployment.scope,
    Boto3LookupHelperFactory(session, partition=deployment.partition),
)

# ------------------------------------------------------------------------------
# Resources
# ------------------------------------------------------------------------------
associations = NetworkAssociations(
    f"{deployment_name}-network",
    plan=plan,
    partition=deployment.partition,
)

pulumi.export("association_ids", associations.association_ids)
pulumi.export("propagation_ids", associations.propagation_ids)
pulumi.export("peering_connection_ids", associations.peering_connection_ids)
pulumi.export("cross_account_route_handler", associations.route_handler is not None)
