"""Cross-account, cross-region network associations for Pulumi."""

from .associations import TopologyPlan, build_topology_plan
from .errors import (
    ConfigurationError,
    DuplicateAssociationError,
    NetworkTopologyError,
    RemoteLookupFailure,
    ResourceNotFoundError,
)
from .resolver import Boto3LookupHelperFactory, CrossBoundaryResourceResolver, Scope
from .stack import NetworkAssociations
from .topology import TopologyConfig, load_topology_config, load_topology_file

__all__ = [
    "Boto3LookupHelperFactory",
    "ConfigurationError",
    "CrossBoundaryResourceResolver",
    "DuplicateAssociationError",
    "NetworkAssociations",
    "NetworkTopologyError",
    "RemoteLookupFailure",
    "ResourceNotFoundError",
    "Scope",
    "TopologyConfig",
    "TopologyPlan",
    "build_topology_plan",
    "load_topology_config",
    "load_topology_file",
]
