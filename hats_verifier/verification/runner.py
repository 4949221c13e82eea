"""Run a full deployment verification.

Build expectations from config, read the timelock's role ids, run every
check category in order, print everything, then fail once if anything
failed. Environment errors raised by the reader propagate untouched, so a
run never reports success on an incomplete set of checks.
"""

from __future__ import annotations

import logging

from hats_verifier.chain.reader import ChainStateReader
from hats_verifier.core.deployment_config import DeploymentConfig
from hats_verifier.core.errors import ConfigError
from hats_verifier.verification.checks import ALL_CHECKS, VerificationContext
from hats_verifier.verification.report import ConsoleReporter, NullReporter, VerificationReport
from hats_verifier.verification.topology import (
    TIMELOCK,
    build_expected_topology,
    read_timelock_roles,
    resolve_governance,
)

logger = logging.getLogger(__name__)


async def resolve_deployer(reader: ChainStateReader, deployer: str = "") -> str:
    """Configured deployer, or the node's first account (hardhat's ``deployer``)."""
    if deployer:
        return deployer
    accounts = await reader.get_accounts()
    if not accounts:
        raise ConfigError("No deployer configured and the node reports no accounts")
    return accounts[0]


async def verify_deployment(
    reader: ChainStateReader,
    config: DeploymentConfig,
    network: str,
    deployer: str = "",
    reporter: ConsoleReporter | None = None,
    strict_role_grants: bool = False,
    raise_on_failure: bool = True,
) -> VerificationReport:
    """Verify the deployed system on ``network`` against ``config``.

    Returns the report when every check passed (or ``raise_on_failure`` is
    off). Otherwise raises ``VerificationFailedError`` after all checks have
    been evaluated and printed.
    """
    reporter = reporter or NullReporter()
    report = VerificationReport(reporter=reporter)

    deployer = await resolve_deployer(reader, deployer)
    governance = resolve_governance(config, network, deployer)
    roles = await read_timelock_roles(reader)
    timelock_address = await reader.get_deployed_address(TIMELOCK)
    topology = build_expected_topology(governance, roles, timelock_address)

    logger.info(
        "Verifying deployment on %s (%d executors, %d managers)",
        network,
        len(governance.executors),
        len(governance.managers),
        extra={"network": network},
    )

    reporter.heading("Verify the deployment:")
    reporter.context([
        {
            "deployer": deployer,
            "governance": governance.governance,
            "executors": list(governance.executors),
            "managers": list(governance.managers),
        },
        {role.name.value: role.role_id for role in roles.all()},
        {TIMELOCK: timelock_address},
    ])

    ctx = VerificationContext(
        reader=reader,
        config=config,
        governance=governance,
        roles=roles,
        topology=topology,
        timelock_address=timelock_address,
        deployer=deployer,
        network=network,
        report=report,
        strict_role_grants=strict_role_grants,
    )
    for check in ALL_CHECKS:
        await check(ctx)

    reporter.summary(report)
    logger.info(
        "Verification finished: %d checks, %d failed, %d unexpected grants",
        report.total_checks,
        report.failure_count,
        len(report.unexpected_grants),
        extra={"network": network},
    )

    if raise_on_failure:
        report.raise_if_failed()
    return report
