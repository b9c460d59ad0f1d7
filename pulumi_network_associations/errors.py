"""Typed errors raised while resolving and wiring a network topology."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .resolver.scope import Scope


class NetworkTopologyError(Exception):
    """Base error carrying a structured payload.

    Callers should assert on ``kind``, ``key`` and ``scope`` rather than on the
    rendered message.
    """

    kind = "network_topology_error"

    def __init__(self, message: str, key: str | None = None, scope: Scope | None = None):
        super().__init__(message)
        self.key = key
        self.scope = scope

    def as_dict(self) -> dict:
        return {
            "kind": self.kind,
            "key": self.key,
            "scope": None if self.scope is None else str(self.scope),
            "message": str(self),
        }


class ConfigurationError(NetworkTopologyError, ValueError):
    """The topology references something that does not exist."""

    kind = "configuration_error"


class DuplicateAssociationError(ConfigurationError):
    """The same association or propagation edge was requested twice."""

    kind = "duplicate_association"


class ResourceNotFoundError(NetworkTopologyError):
    """A reference is valid but its value has not been published yet."""

    kind = "resource_not_found"

    def __init__(self, key: str, scope: Scope | None = None, detail: str | None = None):
        where = f" in {scope}" if scope is not None else ""
        message = f"Resource {key} not found{where}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, key=key, scope=scope)


class RemoteLookupFailure(NetworkTopologyError):
    """A remote call failed after the client exhausted its retries."""

    kind = "remote_lookup_failure"
