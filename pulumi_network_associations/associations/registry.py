"""Resources that exist but are managed outside this program."""

from __future__ import annotations

from typing import Iterable

from ..topology.config import ExternallyManagedResource


class ExternallyManagedRegistry:
    """Set of (type, identifier) pairs the builders must not create.

    Identifiers are the same keys the builders use: edge keys for
    associations and propagations, resource names for static routes, the
    peering name for peering connections and the VPC name for query log
    associations.
    """

    def __init__(self, entries: Iterable[tuple[str, str]] = ()):
        self._entries = set(entries)

    @classmethod
    def from_config(cls, resources: list[ExternallyManagedResource]) -> "ExternallyManagedRegistry":
        return cls((r.type, r.identifier) for r in resources)

    def add(self, resource_type: str, identifier: str) -> None:
        self._entries.add((resource_type, identifier))

    def is_managed(self, resource_type: str, identifier: str) -> bool:
        return (resource_type, identifier) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
