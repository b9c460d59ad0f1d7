"""Topology description, accounts and key scheme."""

from . import keys
from .accounts import AccountDirectory
from .config import (
    TopologyConfig,
    VpcConfig,
    VpcSpec,
    VpcTemplateConfig,
    load_topology_config,
    load_topology_file,
)

__all__ = [
    "AccountDirectory",
    "TopologyConfig",
    "VpcConfig",
    "VpcSpec",
    "VpcTemplateConfig",
    "keys",
    "load_topology_config",
    "load_topology_file",
]
