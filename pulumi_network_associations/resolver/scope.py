"""Execution and ownership scopes."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Scope:
    """An (account id, region) pair."""

    account: str
    region: str

    def __str__(self) -> str:
        return f"{self.account}/{self.region}"

    def same_account(self, other: "Scope") -> bool:
        return self.account == other.account

    def same_region(self, other: "Scope") -> bool:
        return self.region == other.region
