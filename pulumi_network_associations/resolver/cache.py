"""Per-run memoization of resolved values and lookup helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Hashable

import pulumi

from .scope import Scope

if TYPE_CHECKING:
    from .lookup import LookupHelper, LookupHelperFactory


class ResolvedValueCache:
    """Composite key to resolved value, populated at most once per key."""

    def __init__(self) -> None:
        self._values: dict[Hashable, str] = {}

    def get_or_resolve(self, key: Hashable, resolve: Callable[[], str]) -> str:
        if key not in self._values:
            self._values[key] = resolve()
        return self._values[key]

    def __contains__(self, key: Hashable) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)


class LookupHelperCache:
    """One lookup helper per (role, account, region).

    Role assumption happens inside the factory, so it runs once per key.
    """

    def __init__(self, factory: LookupHelperFactory):
        self._factory = factory
        self._helpers: dict[tuple[str | None, str, str], LookupHelper] = {}

    def get(self, scope: Scope, role_name: str | None = None) -> LookupHelper:
        key = (role_name, scope.account, scope.region)
        if key not in self._helpers:
            pulumi.log.debug(
                f"Creating lookup helper for {scope}"
                + (f" through role {role_name}" if role_name else "")
            )
            self._helpers[key] = self._factory(scope, role_name)
        return self._helpers[key]

    def __len__(self) -> int:
        return len(self._helpers)
