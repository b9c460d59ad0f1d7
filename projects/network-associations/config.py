"""Configuration models and loaders for the network associations project."""

from __future__ import annotations

import pulumi
from pydantic import BaseModel, model_validator

from pulumi_network_associations import TopologyConfig, load_topology_config, load_topology_file
from pulumi_network_associations.resolver import Scope


class DeploymentConfig(BaseModel):
    account_id: str
    region: str
    partition: str = "aws"
    profile: str | None = None
    topology_file: str | None = None

    @model_validator(mode="after")
    def validate_account_id(self):
        if not (self.account_id.isdigit() and len(self.account_id) == 12):
            raise ValueError(f"Account id must be 12 digits, got '{self.account_id}'")
        return self

    @property
    def scope(self) -> Scope:
        return Scope(self.account_id, self.region)


def load_deployment_config(pulumi_config: pulumi.Config) -> DeploymentConfig:
    """Load the scope this stack deploys into."""
    aws_config = pulumi.Config("aws")
    return DeploymentConfig(
        account_id=pulumi_config.require("account_id"),
        region=aws_config.require("region"),
        partition=pulumi_config.get("partition") or "aws",
        profile=aws_config.get("profile"),
        topology_file=pulumi_config.get("topology_file"),
    )


def load_topology(pulumi_config: pulumi.Config, deployment: DeploymentConfig) -> TopologyConfig:
    """Topology from a YAML file when one is configured, else from stack config."""
    if deployment.topology_file:
        return load_topology_file(deployment.topology_file)
    return load_topology_config(pulumi_config)
