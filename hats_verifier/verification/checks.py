"""Invariant checks run against the deployed HATS contracts.

Each ``check_*`` coroutine covers one category. Every evaluated condition is
recorded into the run's report, pass or fail, and no check stops the ones
after it. Reads are issued one at a time and never cached, so each check sees
the chain as of its own read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from hats_verifier.chain.reader import ChainStateReader, LogEvent
from hats_verifier.core.deployment_config import DeploymentConfig
from hats_verifier.core.types import CheckCategory, RoleGrant
from hats_verifier.verification.compare import compare_numeric, same_address, same_bytes
from hats_verifier.verification.report import VerificationReport
from hats_verifier.verification.topology import (
    TIMELOCK,
    ExpectedTopology,
    GovernanceSettings,
    TimelockRoles,
)

logger = logging.getLogger(__name__)

HAT_TOKEN = "HATToken"
HAT_TOKEN_LOCK = "HATTokenLock"
TOKEN_LOCK_FACTORY = "TokenLockFactory"
GOVERNANCE_ARBITRATOR = "HATGovernanceArbitrator"
HAT_ARBITRATOR = "HATArbitrator"
KLEROS_CONNECTOR = "HATKlerosConnector"
VAULTS_REGISTRY = "HATVaultsRegistry"
HAT_VAULT = "HATVault"
CLAIMS_MANAGER = "HATClaimsManager"


@dataclass
class VerificationContext:
    """Everything the checks of one run share."""

    reader: ChainStateReader
    config: DeploymentConfig
    governance: GovernanceSettings
    roles: TimelockRoles
    topology: ExpectedTopology
    timelock_address: str
    deployer: str
    network: str
    report: VerificationReport
    strict_role_grants: bool = False


# ── Access control ───────────────────────────────────────────────────────────


async def check_access_control(ctx: VerificationContext) -> None:
    """Role holders, role admins and the minimum delay of the timelock."""
    read, record = ctx.reader.read, ctx.report.record
    cat = CheckCategory.ACCESS_CONTROL
    roles = ctx.roles
    gov = ctx.governance.governance
    admin_id = roles.timelock_admin.role_id

    record(
        "Deployer doesn't have the timelock admin role",
        not await read(TIMELOCK, "hasRole", admin_id, ctx.deployer),
        cat,
    )
    record(
        "Timelock controller itself has the timelock admin role",
        await read(TIMELOCK, "hasRole", admin_id, ctx.timelock_address),
        cat,
    )
    record(
        f"Governance {gov} has the proposer role",
        await read(TIMELOCK, "hasRole", roles.proposer.role_id, gov),
        cat,
    )
    record(
        f"Governance {gov} has the canceller role",
        await read(TIMELOCK, "hasRole", roles.canceller.role_id, gov),
        cat,
    )
    for executor in ctx.governance.executors:
        record(
            f"Executor {executor} has the execute role",
            await read(TIMELOCK, "hasRole", roles.executor.role_id, executor),
            cat,
        )
    for manager in ctx.governance.managers:
        record(
            f"Manager {manager} has the manager role",
            await read(TIMELOCK, "hasRole", roles.manager.role_id, manager),
            cat,
        )

    delay = ctx.governance.timelock_delay
    record(
        f"Min delay is {delay} seconds",
        compare_numeric(await read(TIMELOCK, "getMinDelay"), delay),
        cat,
    )

    for role in (roles.timelock_admin, roles.proposer, roles.canceller, roles.executor):
        actual_admin = await read(TIMELOCK, "getRoleAdmin", role.role_id)
        record(
            f"TIMELOCK_ADMIN_ROLE should be the admin role of the {role.name.value}",
            str(actual_admin).lower() == role.admin_role_id.lower(),
            cat,
        )

    record(
        f"TIMELOCK_ADMIN_ROLE should NOT be the admin role of the deployer {ctx.deployer}",
        not await read(TIMELOCK, "hasRole", admin_id, ctx.deployer),
        cat,
    )


# ── Role grant history ───────────────────────────────────────────────────────


def _to_grant(log: LogEvent) -> RoleGrant:
    return RoleGrant(
        role_id=str(log.args.get("role", "")),
        account=str(log.args.get("account", "")),
        sender=str(log.args.get("sender", "")),
        block_number=log.block_number,
        log_index=log.log_index,
        transaction_hash=log.transaction_hash,
    )


def find_unexpected_grants(
    grants: list[RoleGrant], topology: ExpectedTopology
) -> list[RoleGrant]:
    """Grants whose ``(account, role)`` pair is absent from the topology."""
    return [g for g in grants if not topology.allows(g.account, g.role_id)]


async def check_role_grants(ctx: VerificationContext) -> list[RoleGrant]:
    """Compare the timelock's ``RoleGranted`` history with the expected topology.

    The count check is the only recorded outcome. When more grants exist than
    expected, each grant outside the topology is printed as a diagnostic
    (and, in strict mode, recorded as a failed check). Returns the
    unexpected grants found.
    """
    from_block = await ctx.reader.get_deployment_block(TIMELOCK)
    to_block = await ctx.reader.get_latest_block()
    logs = await ctx.reader.get_logs(TIMELOCK, "RoleGranted", from_block, to_block)
    grants = [_to_grant(log) for log in logs]

    expected = ctx.topology.expected_grant_count
    ctx.report.record(
        f"No unexpected roles were granted (expected {expected}, got {len(grants)})",
        len(grants) == expected,
        CheckCategory.ROLE_GRANTS,
    )

    if len(grants) <= expected:
        return []

    logger.info(
        "Timelock emitted %d RoleGranted events, %d expected; reconciling",
        len(grants),
        expected,
    )
    unexpected = find_unexpected_grants(grants, ctx.topology)
    for grant in unexpected:
        ctx.report.record_unexpected_grant(grant.account, grant.role_id)
        if ctx.strict_role_grants:
            ctx.report.record(
                f"Account {grant.account} was granted {ctx.roles.name_of(grant.role_id)} "
                f"at block {grant.block_number}",
                False,
                CheckCategory.ROLE_GRANTS,
            )
    return unexpected


# ── Cross-contract wiring ────────────────────────────────────────────────────


async def _owned_by_timelock(ctx: VerificationContext, contract_name: str) -> bool:
    return same_address(await ctx.reader.read(contract_name, "owner"), ctx.timelock_address)


async def check_wiring(ctx: VerificationContext) -> None:
    """Ownership of the token, lock factory and governance arbitrator."""
    read, record = ctx.reader.read, ctx.report.record
    cat = CheckCategory.WIRING

    # HATToken is only deployed by this pipeline on the in-process network
    if ctx.network == "hardhat":
        record(
            "HATToken governance is the HATTimelockController",
            await _owned_by_timelock(ctx, HAT_TOKEN),
            cat,
        )

    record(
        "TokenLockFactory owner is the HATTimelockController",
        await _owned_by_timelock(ctx, TOKEN_LOCK_FACTORY),
        cat,
    )
    record(
        "TokenLockFactory masterCopy is the HATTokenLock",
        same_address(
            await read(TOKEN_LOCK_FACTORY, "masterCopy"),
            await ctx.reader.get_deployed_address(HAT_TOKEN_LOCK),
        ),
        cat,
    )
    record(
        "Arbitrator owner is the HATTimelockController",
        await _owned_by_timelock(ctx, GOVERNANCE_ARBITRATOR),
        cat,
    )


# ── Kleros arbitration ───────────────────────────────────────────────────────


async def check_kleros(ctx: VerificationContext) -> None:
    """HATArbitrator and HATKlerosConnector parameters; only with ``useKleros``."""
    if not ctx.config.use_kleros:
        logger.info("useKleros is disabled; skipping arbitration checks")
        return

    read, record = ctx.reader.read, ctx.report.record
    cat = CheckCategory.ARBITRATION
    arb = ctx.config.hat_arbitrator_conf
    conn = ctx.config.hat_kleros_connector_conf

    record(
        "Arbitrator owner is the HATTimelockController",
        await _owned_by_timelock(ctx, HAT_ARBITRATOR),
        cat,
    )
    record(
        "Arbitrator court is the HATKlerosConnector",
        same_address(
            await read(HAT_ARBITRATOR, "court"),
            await ctx.reader.get_deployed_address(KLEROS_CONNECTOR),
        ),
        cat,
    )
    record(
        f"HATArbitrator expert committee is correct ({arb.expert_committee})",
        same_address(await read(HAT_ARBITRATOR, "expertCommittee"), arb.expert_committee),
        cat,
    )
    record(
        f"HATArbitrator token is correct ({arb.token})",
        same_address(await read(HAT_ARBITRATOR, "token"), arb.token),
        cat,
    )
    for method, expected in (
        ("bondsNeededToStartDispute", arb.bonds_needed_to_start_dispute),
        ("minBondAmount", arb.min_bond_amount),
        ("resolutionChallengePeriod", arb.resolution_challenge_period),
        ("submitClaimRequestReviewPeriod", arb.submit_claim_request_review_period),
    ):
        record(
            f"HATArbitrator {method} is correct ({expected})",
            compare_numeric(await read(HAT_ARBITRATOR, method), expected),
            cat,
        )

    record(
        f"HATKlerosConnector kleros arbitrator is correct ({conn.kleros_arbitrator})",
        same_address(await read(KLEROS_CONNECTOR, "klerosArbitrator"), conn.kleros_arbitrator),
        cat,
    )
    record(
        f"HATKlerosConnector arbitratorExtraData is correct ({conn.arbitrator_extra_data})",
        same_bytes(await read(KLEROS_CONNECTOR, "arbitratorExtraData"), conn.arbitrator_extra_data),
        cat,
    )
    record(
        "HATKlerosConnector hatArbitrator is HATArbitrator",
        same_address(
            await read(KLEROS_CONNECTOR, "hatArbitrator"),
            await ctx.reader.get_deployed_address(HAT_ARBITRATOR),
        ),
        cat,
    )
    for method, expected in (
        ("winnerMultiplier", conn.winner_multiplier),
        ("loserMultiplier", conn.loser_multiplier),
    ):
        record(
            f"HATKlerosConnector {method} is correct ({expected})",
            compare_numeric(await read(KLEROS_CONNECTOR, method), expected),
            cat,
        )


# ── Vaults registry ──────────────────────────────────────────────────────────


async def resolve_swap_token(ctx: VerificationContext) -> str:
    """Configured swap token; unset or ``"HATToken"`` means the deployed HATToken."""
    swap_token = ctx.config.hat_vaults_registry_conf.swap_token
    if not swap_token or swap_token == HAT_TOKEN:
        return await ctx.reader.get_deployed_address(HAT_TOKEN)
    return swap_token


async def check_registry(ctx: VerificationContext) -> None:
    """HATVaultsRegistry ownership, implementations and defaults."""
    read, record = ctx.reader.read, ctx.report.record
    deployed = ctx.reader.get_deployed_address
    cat = CheckCategory.REGISTRY
    conf = ctx.config.hat_vaults_registry_conf
    swap_token = await resolve_swap_token(ctx)

    record(
        "HATVaultsRegistry owner is the HATTimelockController",
        await _owned_by_timelock(ctx, VAULTS_REGISTRY),
        cat,
    )

    arbitrator = HAT_ARBITRATOR if conf.use_kleros else GOVERNANCE_ARBITRATOR
    record(
        f"HATVaultsRegistry default arbitrator is the {arbitrator}",
        same_address(await read(VAULTS_REGISTRY, "defaultArbitrator"), await deployed(arbitrator)),
        cat,
    )
    record(
        "HATVaultsRegistry HATVault implementation is correct",
        same_address(await read(VAULTS_REGISTRY, "hatVaultImplementation"), await deployed(HAT_VAULT)),
        cat,
    )
    record(
        "HATVaultsRegistry HATClaimsManager implementation is correct",
        same_address(
            await read(VAULTS_REGISTRY, "hatClaimsManagerImplementation"),
            await deployed(CLAIMS_MANAGER),
        ),
        cat,
    )
    record(
        "HATVaultsRegistry TokenLockFactory is correct",
        same_address(await read(VAULTS_REGISTRY, "tokenLockFactory"), await deployed(TOKEN_LOCK_FACTORY)),
        cat,
    )
    record(
        f"HATVaultsRegistry swap token is correct ({swap_token})",
        same_address(await read(VAULTS_REGISTRY, "HAT"), swap_token),
        cat,
    )
    record(
        f"HATVaultsRegistry default bountyGovernanceHAT is correct ({conf.bounty_governance_hat})",
        compare_numeric(await read(VAULTS_REGISTRY, "defaultBountyGovernanceHAT"), conf.bounty_governance_hat),
        cat,
    )
    record(
        f"HATVaultsRegistry default bountyHackerHATVested is correct ({conf.bounty_hacker_hat_vested})",
        compare_numeric(
            await read(VAULTS_REGISTRY, "defaultBountyHackerHATVested"), conf.bounty_hacker_hat_vested
        ),
        cat,
    )


# Run order matches the order the contracts are deployed in.
ALL_CHECKS = (
    check_access_control,
    check_role_grants,
    check_wiring,
    check_kleros,
    check_registry,
)
