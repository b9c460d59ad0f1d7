"""Account name, id and organizational unit lookups."""

from __future__ import annotations

from ..errors import ConfigurationError
from .config import (
    ROOT_ORGANIZATIONAL_UNIT,
    AccountConfig,
    DeploymentTargets,
    VpcConfig,
    VpcSpec,
    VpcTemplateConfig,
)


class AccountDirectory:
    """Maps account names to ids and expands deployment targets."""

    def __init__(self, accounts: list[AccountConfig]):
        self._accounts = list(accounts)
        self._ids = {a.name: a.id for a in self._accounts}
        self._names = {a.id: a.name for a in self._accounts}

    @property
    def account_ids(self) -> set[str]:
        return set(self._names)

    def account_id(self, name: str) -> str:
        try:
            return self._ids[name]
        except KeyError:
            raise ConfigurationError(f"Unknown account {name}", key=name) from None

    def account_name(self, account_id: str) -> str:
        try:
            return self._names[account_id]
        except KeyError:
            raise ConfigurationError(
                f"Unknown account id {account_id}", key=account_id
            ) from None

    def is_known(self, account_id: str) -> bool:
        return account_id in self._names

    def _in_organizational_unit(self, account: AccountConfig, ou: str) -> bool:
        if ou == ROOT_ORGANIZATIONAL_UNIT:
            return True
        return account.organizational_unit == ou or account.organizational_unit.startswith(
            f"{ou}/"
        )

    def target_account_names(self, targets: DeploymentTargets) -> list[str]:
        """Accounts named directly or through an OU, minus exclusions.

        Order follows the directory so results are stable under reordering
        of the target lists.
        """
        excluded = set(targets.excluded_accounts)
        selected = set(targets.accounts)
        for account in self._accounts:
            if any(self._in_organizational_unit(account, ou) for ou in targets.organizational_units):
                selected.add(account.name)
        for name in selected:
            self.account_id(name)
        return [a.name for a in self._accounts if a.name in selected and a.name not in excluded]

    def vpc_account_names(self, vpc: VpcSpec) -> list[str]:
        match vpc:
            case VpcConfig(account=account):
                return [account]
            case VpcTemplateConfig(deployment_targets=targets):
                return self.target_account_names(targets)
        raise TypeError(f"Unsupported VPC definition {type(vpc).__name__}")

    def vpc_account_ids(self, vpc: VpcSpec) -> list[str]:
        return [self.account_id(name) for name in self.vpc_account_names(vpc)]
