"""Expectation Builder: resolve the intended governance topology.

Given the network's deployment config, decide who *should* hold which
timelock role. Defaults are applied once, here:

* governance falls back to the deployer on local networks,
* executors and managers default to ``[governance]``,
* governance is appended to either list when it is missing.

Roles per account are accumulated, so an account listed as both governance
and executor is expected to hold proposer, canceller and executor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from hats_verifier.chain.reader import ChainStateReader
from hats_verifier.core.deployment_config import DeploymentConfig, Numeric
from hats_verifier.core.errors import ConfigError
from hats_verifier.core.networks import is_local_network
from hats_verifier.core.types import RoleDescriptor, TimelockRole
from hats_verifier.verification.compare import normalize_address

logger = logging.getLogger(__name__)

TIMELOCK = "HATTimelockController"

# self-admin grant + governance proposer + governance canceller
BASE_ROLE_GRANTS = 3


@dataclass(frozen=True)
class GovernanceSettings:
    """Governance accounts after defaulting rules have been applied."""

    governance: str
    executors: tuple[str, ...]
    managers: tuple[str, ...]
    timelock_delay: Numeric

    @property
    def expected_grant_count(self) -> int:
        """``RoleGranted`` events the timelock should have emitted.

        Counted over list lengths, not distinct accounts.
        """
        return BASE_ROLE_GRANTS + len(self.executors) + len(self.managers)


def _with_governance(accounts: Iterable[str], governance: str) -> tuple[str, ...]:
    resolved = [a for a in accounts if a]
    if not resolved:
        return (governance,)
    if normalize_address(governance) not in {normalize_address(a) for a in resolved}:
        resolved.append(governance)
    return tuple(resolved)


def resolve_governance(config: DeploymentConfig, network: str, deployer: str) -> GovernanceSettings:
    """Apply the governance defaulting rules to ``config``."""
    governance = config.governance
    if not governance:
        if not is_local_network(network):
            raise ConfigError(f"No governance address configured for network '{network}'")
        if not deployer:
            raise ConfigError("Governance defaults to the deployer, but no deployer is known")
        logger.info("No governance configured; using deployer %s", deployer)
        governance = deployer

    return GovernanceSettings(
        governance=governance,
        executors=_with_governance(config.executors, governance),
        managers=_with_governance(config.managers, governance),
        timelock_delay=config.timelock_delay,
    )


@dataclass(frozen=True)
class TimelockRoles:
    """Role identifiers read from the deployed timelock."""

    timelock_admin: RoleDescriptor
    proposer: RoleDescriptor
    canceller: RoleDescriptor
    executor: RoleDescriptor
    manager: RoleDescriptor

    def all(self) -> list[RoleDescriptor]:
        return [self.timelock_admin, self.proposer, self.canceller, self.executor, self.manager]

    def name_of(self, role_id: str) -> str:
        """Human name for a role id, or the id itself when unknown."""
        for role in self.all():
            if role.role_id.lower() == str(role_id).lower():
                return role.name.value
        return str(role_id)


async def read_timelock_roles(reader: ChainStateReader) -> TimelockRoles:
    """Read the five role ids from the timelock.

    Every role is expected to be administered by TIMELOCK_ADMIN_ROLE, which
    administers itself.
    """
    ids: dict[TimelockRole, str] = {}
    for role in TimelockRole:
        ids[role] = str(await reader.read(TIMELOCK, role.value))

    admin = ids[TimelockRole.TIMELOCK_ADMIN]

    def _descriptor(role: TimelockRole) -> RoleDescriptor:
        return RoleDescriptor(name=role, role_id=ids[role], admin_role_id=admin)

    return TimelockRoles(
        timelock_admin=_descriptor(TimelockRole.TIMELOCK_ADMIN),
        proposer=_descriptor(TimelockRole.PROPOSER),
        canceller=_descriptor(TimelockRole.CANCELLER),
        executor=_descriptor(TimelockRole.EXECUTOR),
        manager=_descriptor(TimelockRole.MANAGER),
    )


@dataclass(frozen=True)
class ExpectedTopology:
    """Account -> role ids it is expected to hold. Built once per run."""

    roles_by_account: dict[str, frozenset[str]] = field(default_factory=dict)
    expected_grant_count: int = 0

    def roles_for(self, account: str) -> frozenset[str]:
        return self.roles_by_account.get(normalize_address(account), frozenset())

    def allows(self, account: str, role_id: str) -> bool:
        return str(role_id).lower() in self.roles_for(account)


def build_expected_topology(
    settings: GovernanceSettings,
    roles: TimelockRoles,
    timelock_address: str,
) -> ExpectedTopology:
    """Union every role each account should hold."""
    accumulated: dict[str, set[str]] = {}

    def _grant(account: str, role: RoleDescriptor) -> None:
        key = normalize_address(account)
        accumulated.setdefault(key, set()).add(role.role_id.lower())

    _grant(settings.governance, roles.proposer)
    _grant(settings.governance, roles.canceller)
    _grant(timelock_address, roles.timelock_admin)
    for executor in settings.executors:
        _grant(executor, roles.executor)
    for manager in settings.managers:
        _grant(manager, roles.manager)

    return ExpectedTopology(
        roles_by_account={k: frozenset(v) for k, v in accumulated.items()},
        expected_grant_count=settings.expected_grant_count,
    )
