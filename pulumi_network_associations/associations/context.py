"""Per-unit maps of resolved identifiers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

from ..errors import ConfigurationError
from ..resolver.scope import Scope
from ..topology import keys
from .records import Identifier

if TYPE_CHECKING:
    from .peering import PeeringConnection

T = TypeVar("T")


@dataclass
class TopologyBuildContext:
    """Maps built by ``TopologyMapBuilder`` for one deployment unit.

    Populated once, before any record is emitted, then only read.
    """

    scope: Scope
    transit_gateways: dict[str, str] = field(default_factory=dict)
    transit_gateway_route_tables: dict[str, str] = field(default_factory=dict)
    remote_transit_gateway_route_tables: dict[str, str] = field(default_factory=dict)
    transit_gateway_attachments: dict[str, Identifier] = field(default_factory=dict)
    route_tables: dict[str, str] = field(default_factory=dict)
    prefix_lists: dict[str, str] = field(default_factory=dict)
    vpcs: dict[str, str] = field(default_factory=dict)
    dx_gateways: dict[str, str] = field(default_factory=dict)
    peerings: list[PeeringConnection] = field(default_factory=list)

    def require(self, map_name: str, key: str) -> str | Identifier:
        """Return ``key`` from the named map or fail naming the key."""
        values: dict = getattr(self, map_name)
        try:
            return values[key]
        except KeyError:
            raise ConfigurationError(
                f"Unable to locate {key} in {map_name} for {self.scope}",
                key=key,
                scope=self.scope,
            ) from None

    def transit_gateway_route_table_id(
        self, gateway: str, gateway_account: str, route_table: str, local: bool
    ) -> str:
        if local:
            return self.require(
                "transit_gateway_route_tables",
                keys.transit_gateway_route_table_key(gateway, route_table),
            )
        return self.require(
            "remote_transit_gateway_route_tables",
            keys.remote_transit_gateway_route_table_key(gateway, gateway_account, route_table),
        )
