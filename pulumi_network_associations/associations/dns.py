"""Route 53 Resolver associations for VPCs deployed in the current scope."""

from __future__ import annotations

import pulumi

from ..resolver.resolver import CrossBoundaryResourceResolver
from ..topology import keys
from ..topology.accounts import AccountDirectory
from ..topology.config import TopologyConfig, VpcSpec
from ..topology.keys import ResourceType
from .context import TopologyBuildContext
from .records import DnsAssociationKind, DnsAssociationRecord
from .registry import ExternallyManagedRegistry

QUERY_LOG_SUFFIXES = {"s3": "s3", "cloud-watch-logs": "cwl"}


class ResolverAssociationBuilder:
    """Associates resolver rules, DNS firewall rule groups and query logs.

    The delegated admin account owns these resources. In that account their
    ids are read from the local store; elsewhere they come from the resource
    shares the admin account created.
    """

    def __init__(
        self,
        topology: TopologyConfig,
        accounts: AccountDirectory,
        context: TopologyBuildContext,
        resolver: CrossBoundaryResourceResolver,
        registry: ExternallyManagedRegistry | None = None,
    ):
        self.topology = topology
        self.accounts = accounts
        self.context = context
        self.resolver = resolver
        self.registry = registry or ExternallyManagedRegistry()

    def build(self) -> list[DnsAssociationRecord]:
        services = self.topology.central_network_services
        if services is None:
            return []
        admin_account_id = self.accounts.account_id(services.delegated_admin_account)
        records: list[DnsAssociationRecord] = []
        for vpc in self.topology.vpc_resources:
            if vpc.name not in self.context.vpcs:
                continue
            records.extend(self._firewall_rule_groups(vpc, admin_account_id))
            records.extend(
                self._query_logs(vpc, admin_account_id, services.query_log_destinations)
            )
            records.extend(self._resolver_rules(vpc, admin_account_id))
        return records

    def _lookup(
        self,
        admin_account_id: str,
        resource_type: ResourceType,
        name: str,
        share_name: str,
        shared_type: str,
    ) -> str:
        if admin_account_id == self.context.scope.account:
            return self.resolver.resolve(resource_type, [name], self.context.scope)
        return self.resolver.resolve_shared(share_name, shared_type, admin_account_id)

    def _firewall_rule_groups(self, vpc: VpcSpec, admin_account_id: str):
        for group in vpc.dns_firewall_rule_groups:
            rule_group_id = self._lookup(
                admin_account_id,
                ResourceType.DNS_FIREWALL_RULE_GROUP,
                group.name,
                f"{group.name}_ResolverFirewallRuleGroupShare",
                "route53resolver:FirewallRuleGroup",
            )
            name = keys.resource_name(vpc.name, group.name, "rule-group")
            yield DnsAssociationRecord(
                kind=DnsAssociationKind.FIREWALL_RULE_GROUP,
                key=f"{vpc.name}_{group.name}",
                resource_name=name,
                vpc_id=self.context.vpcs[vpc.name],
                resource_id=rule_group_id,
                name=name,
                priority=group.priority,
                mutation_protection=group.mutation_protection,
            )

    def _query_logs(self, vpc: VpcSpec, admin_account_id: str, destinations: list[str]):
        if not vpc.query_logs:
            return
        if self.registry.is_managed("query_logging_association", vpc.name):
            pulumi.log.info(f"Skipping externally managed query log associations of {vpc.name}")
            return
        for query_log in vpc.query_logs:
            for destination in destinations:
                config_name = f"{query_log}-{QUERY_LOG_SUFFIXES[destination]}"
                config_id = self._lookup(
                    admin_account_id,
                    ResourceType.QUERY_LOG_CONFIG,
                    config_name,
                    f"{config_name}_QueryLogConfigShare",
                    "route53resolver:ResolverQueryLogConfig",
                )
                name = keys.resource_name(vpc.name, config_name, "query-log-association")
                yield DnsAssociationRecord(
                    kind=DnsAssociationKind.QUERY_LOG_CONFIG,
                    key=f"{vpc.name}_{config_name}",
                    resource_name=name,
                    vpc_id=self.context.vpcs[vpc.name],
                    resource_id=config_id,
                    name=name,
                )

    def _resolver_rules(self, vpc: VpcSpec, admin_account_id: str):
        for rule in vpc.resolver_rules:
            rule_id = self._lookup(
                admin_account_id,
                ResourceType.RESOLVER_RULE,
                rule,
                f"{rule}_ResolverRule",
                "route53resolver:ResolverRule",
            )
            name = keys.resource_name(vpc.name, rule, "rule-association")
            yield DnsAssociationRecord(
                kind=DnsAssociationKind.RESOLVER_RULE,
                key=f"{vpc.name}_{rule}",
                resource_name=name,
                vpc_id=self.context.vpcs[vpc.name],
                resource_id=rule_id,
                name=name,
            )
