"""Cross-boundary resolution of published resource identifiers."""

from __future__ import annotations

from enum import Enum
from typing import Iterable

import pulumi

from ..errors import ConfigurationError, ResourceNotFoundError
from ..topology.keys import (
    DEFAULT_ACCELERATOR_PREFIX,
    DEFAULT_PARAMETER_PREFIX,
    ResourceType,
    RolePurpose,
    parameter_path,
    role_name,
)
from .cache import LookupHelperCache, ResolvedValueCache
from .scope import Scope


class Strategy(str, Enum):
    LOCAL = "local"
    REGIONAL = "regional"
    ASSUMED_ROLE = "assumed-role"


class CrossBoundaryResourceResolver:
    """Resolves a named resource's identifier from the scope that owns it.

    The caller scope is fixed for the whole run. For each owner scope the
    resolver picks the cheapest way to read the owner's published value:

    * the caller itself: a local read, never a role assumption;
    * the caller's account in another region: a read against that region,
      except for the home region, which is read through the same-account
      lookup role;
    * another account: a read through ``<prefix>-<Purpose>-<ownerRegion>``
      assumed in the owner account.

    Results are memoized per (path, owner) for the lifetime of the resolver.
    """

    def __init__(
        self,
        caller: Scope,
        helpers: LookupHelperCache,
        home_region: str,
        accelerator_prefix: str = DEFAULT_ACCELERATOR_PREFIX,
        parameter_prefix: str = DEFAULT_PARAMETER_PREFIX,
        known_accounts: Iterable[str] | None = None,
        cache: ResolvedValueCache | None = None,
    ):
        self.caller = caller
        self.home_region = home_region
        self.accelerator_prefix = accelerator_prefix
        self.parameter_prefix = parameter_prefix
        self._helpers = helpers
        self._known_accounts = None if known_accounts is None else set(known_accounts)
        self._cache = cache if cache is not None else ResolvedValueCache()

    def strategy(self, owner: Scope) -> Strategy:
        if owner == self.caller:
            return Strategy.LOCAL
        if owner.same_account(self.caller) and owner.region != self.home_region:
            return Strategy.REGIONAL
        return Strategy.ASSUMED_ROLE

    def _check_owner(self, owner: Scope) -> None:
        if self._known_accounts is not None and owner.account not in self._known_accounts:
            raise ConfigurationError(
                f"Owner account {owner.account} is not part of the topology",
                key=owner.account,
                scope=owner,
            )

    def _role_for(self, owner: Scope, purpose: RolePurpose) -> str | None:
        if self.strategy(owner) is not Strategy.ASSUMED_ROLE:
            return None
        if owner.same_account(self.caller):
            purpose = RolePurpose.PARAMETER_LOOKUP
        return role_name(self.accelerator_prefix, purpose, owner.region)

    def path(self, resource_type: ResourceType, names: list[str] | tuple[str, ...]) -> str:
        return parameter_path(resource_type, names, self.parameter_prefix)

    def resolve(
        self,
        resource_type: ResourceType,
        names: list[str] | tuple[str, ...],
        owner: Scope,
        purpose: RolePurpose = RolePurpose.PARAMETER_LOOKUP,
    ) -> str:
        """Return the identifier published for ``names`` in ``owner``.

        Raises ``ResourceNotFoundError`` when the owner has not published it.
        """
        self._check_owner(owner)
        path = self.path(resource_type, names)

        def _read() -> str:
            role = self._role_for(owner, purpose)
            pulumi.log.debug(
                f"Resolving {path} from {owner} ({self.strategy(owner).value})"
            )
            value = self._helpers.get(owner, role).get_parameter(path)
            if value is None:
                raise ResourceNotFoundError(path, owner)
            return value

        return self._cache.get_or_resolve(("parameter", path, owner), _read)

    def resolve_shared(
        self, share_name: str, resource_type: str, owner_account_id: str
    ) -> str:
        """Return the id of a resource shared with the caller by ``owner_account_id``."""
        owner = Scope(owner_account_id, self.caller.region)
        self._check_owner(owner)

        def _read() -> str:
            pulumi.log.debug(f"Looking up shared {resource_type} {share_name} from {owner}")
            value = self._helpers.get(self.caller).find_shared_resource(
                share_name, resource_type, owner_account_id
            )
            if value is None:
                raise ResourceNotFoundError(
                    share_name, owner, detail=f"no {resource_type} shared with {self.caller}"
                )
            return value

        return self._cache.get_or_resolve(
            ("share", share_name, resource_type, owner_account_id), _read
        )

    def lookup_attachment(
        self,
        name: str,
        owner_account_id: str,
        transit_gateway_id: str,
        attachment_type: str = "vpc",
    ) -> str:
        """Find an attachment by ``Name`` tag in the account that owns it."""
        owner = Scope(owner_account_id, self.caller.region)
        self._check_owner(owner)

        def _read() -> str:
            role = None
            if owner != self.caller:
                role = role_name(
                    self.accelerator_prefix,
                    RolePurpose.DESCRIBE_TGW_ATTACHMENTS,
                    owner.region,
                )
            pulumi.log.debug(f"Looking up {attachment_type} attachment {name} in {owner}")
            value = self._helpers.get(owner, role).find_transit_gateway_attachment(
                name, transit_gateway_id, owner_account_id, attachment_type
            )
            if value is None:
                raise ResourceNotFoundError(
                    name,
                    owner,
                    detail=f"no {attachment_type} attachment on {transit_gateway_id}",
                )
            return value

        return self._cache.get_or_resolve(
            ("attachment", name, owner, transit_gateway_id, attachment_type), _read
        )
