"""Shared fixtures for the verifier test suite."""

from __future__ import annotations

import io
from typing import Any

import pytest

from hats_verifier.chain.reader import LogEvent
from hats_verifier.core.deployment_config import DeploymentConfig
from hats_verifier.core.errors import ChainReadError
from hats_verifier.core.types import TimelockRole
from hats_verifier.verification.report import ConsoleReporter
from hats_verifier.verification.topology import TIMELOCK, resolve_governance


# ── Addresses & role ids ─────────────────────────────────────────────────────

DEPLOYER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
GOVERNANCE = "0x00000000000000000000000000000000000000a1"
EXECUTOR_B = "0x00000000000000000000000000000000000000b2"
MANAGER_C = "0x00000000000000000000000000000000000000c3"
INTRUDER = "0x00000000000000000000000000000000000000e5"

ADDRESSES = {
    TIMELOCK: "0x5FbDB2315678afecb367f032d93F642f64180aa3",
    "HATToken": "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512",
    "HATTokenLock": "0x9fE46736679d2D9a65F0992F2272dE9f3c7fa6e0",
    "TokenLockFactory": "0xCf7Ed3AccA5a467e9e704C703E8D87F634fB0Fc9",
    "HATGovernanceArbitrator": "0xDc64a140Aa3E981100a9becA4E685f962f0cF6C9",
    "HATArbitrator": "0x5FC8d32690cc91D4c39d9d3abcBD16989F875707",
    "HATKlerosConnector": "0x0165878A594ca255338adfa4d48449f69242Eb8F",
    "HATVaultsRegistry": "0xa513E6E4b8f2a923D98304ec87F64353C4D5C853",
    "HATVault": "0x2279B7A0a67DB372996a5FaB50D91eAA73d2eBe6",
    "HATClaimsManager": "0x8A791620dd6260079BF849Dc5567aDC3F2FdC318",
}

ROLE_IDS = {
    TimelockRole.TIMELOCK_ADMIN: "0x5f58e3a2316349923ce3780f8d587db2d72378aed66a8261c916544fa6846ca5",
    TimelockRole.PROPOSER: "0xb09aa5aeb3702cfd50b6b62bc4532604938f21248a27a1d5ca736082b6819cc1",
    TimelockRole.CANCELLER: "0xfd643c72710c63c0180259aba6b2d05451e3591a24e58b62239378085726f783",
    TimelockRole.EXECUTOR: "0xd8aa0f3194971a2a116679f7c2090f6939c8d4e01a2a8d7e41d55e5351469e63",
    TimelockRole.MANAGER: "0x241ecf16d79d0f8dbfb92cbc07fe17840425976cf0667f022fe9877caa831b08",
}

KLEROS_ARBITRATOR = "0x988b3A538b618C7A603e1c11Ab82Cd16dbE28069"
EXPERT_COMMITTEE = "0x00000000000000000000000000000000000000d4"


# ── Fake chain ───────────────────────────────────────────────────────────────


class FakeChainReader:
    """In-memory ``ChainStateReader``.

    Unknown reads raise ``ChainReadError`` the way a reverted or failed RPC
    call would. Every call is appended to ``calls`` in order.
    """

    def __init__(self) -> None:
        self.addresses: dict[str, str] = dict(ADDRESSES)
        self.values: dict[tuple[str, str], Any] = {}
        self.holders: set[tuple[str, str]] = set()
        self.role_admins: dict[str, str] = {}
        self.deployment_blocks: dict[str, int] = {TIMELOCK: 10}
        self.latest_block = 100
        self.logs: list[LogEvent] = []
        self.accounts: list[str] = [DEPLOYER]
        self.calls: list[tuple] = []
        self.fail_on: set[tuple[str, str]] = set()

    def grant(self, role: TimelockRole, account: str, emit: bool = True) -> None:
        role_id = ROLE_IDS[role]
        self.holders.add((role_id.lower(), account.lower()))
        if emit:
            self.logs.append(
                LogEvent(
                    event="RoleGranted",
                    args={"role": role_id, "account": account, "sender": DEPLOYER},
                    block_number=10 + len(self.logs),
                    log_index=0,
                )
            )

    async def read(self, contract_name: str, method: str, *args: Any) -> Any:
        self.calls.append(("read", contract_name, method, *args))
        if (contract_name, method) in self.fail_on:
            raise ChainReadError(f"{contract_name}.{method} reverted", method="eth_call")
        if contract_name == TIMELOCK and method == "hasRole":
            role_id, account = args
            return (str(role_id).lower(), str(account).lower()) in self.holders
        if contract_name == TIMELOCK and method == "getRoleAdmin":
            return self.role_admins[str(args[0]).lower()]
        if contract_name == TIMELOCK and method in {r.value for r in TimelockRole}:
            return ROLE_IDS[TimelockRole(method)]
        try:
            return self.values[(contract_name, method)]
        except KeyError:
            raise ChainReadError(f"no value for {contract_name}.{method}", method="eth_call") from None

    async def get_deployed_address(self, contract_name: str) -> str:
        self.calls.append(("address", contract_name))
        return self.addresses[contract_name]

    async def get_deployment_block(self, contract_name: str) -> int:
        self.calls.append(("deployment_block", contract_name))
        return self.deployment_blocks[contract_name]

    async def get_latest_block(self) -> int:
        self.calls.append(("latest_block",))
        return self.latest_block

    async def get_logs(
        self, contract_name: str, event_name: str, from_block: int, to_block: int
    ) -> list[LogEvent]:
        self.calls.append(("logs", contract_name, event_name, from_block, to_block))
        return [
            log for log in self.logs
            if log.event == event_name and from_block <= log.block_number <= to_block
        ]

    async def get_accounts(self) -> list[str]:
        self.calls.append(("accounts",))
        return list(self.accounts)

    def reads_of(self, contract_name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == "read" and c[1] == contract_name]


def healthy_chain(config: DeploymentConfig, network: str = "hardhat") -> FakeChainReader:
    """A fake chain on which every check for ``config`` passes."""
    chain = FakeChainReader()
    gov = resolve_governance(config, network, DEPLOYER)
    timelock = chain.addresses[TIMELOCK]

    admin_id = ROLE_IDS[TimelockRole.TIMELOCK_ADMIN]
    for role_id in ROLE_IDS.values():
        chain.role_admins[role_id.lower()] = admin_id

    chain.grant(TimelockRole.TIMELOCK_ADMIN, timelock)
    chain.grant(TimelockRole.PROPOSER, gov.governance)
    chain.grant(TimelockRole.CANCELLER, gov.governance)
    for executor in gov.executors:
        chain.grant(TimelockRole.EXECUTOR, executor)
    for manager in gov.managers:
        chain.grant(TimelockRole.MANAGER, manager)

    chain.values[(TIMELOCK, "getMinDelay")] = int(str(config.timelock_delay))

    for name in ("HATToken", "TokenLockFactory", "HATGovernanceArbitrator", "HATArbitrator", "HATVaultsRegistry"):
        chain.values[(name, "owner")] = timelock
    chain.values[("TokenLockFactory", "masterCopy")] = chain.addresses["HATTokenLock"].lower()

    reg = config.hat_vaults_registry_conf
    arbitrator = "HATArbitrator" if reg.use_kleros else "HATGovernanceArbitrator"
    swap_token = reg.swap_token if reg.swap_token and reg.swap_token != "HATToken" else chain.addresses["HATToken"]
    chain.values.update({
        ("HATVaultsRegistry", "defaultArbitrator"): chain.addresses[arbitrator],
        ("HATVaultsRegistry", "hatVaultImplementation"): chain.addresses["HATVault"],
        ("HATVaultsRegistry", "hatClaimsManagerImplementation"): chain.addresses["HATClaimsManager"],
        ("HATVaultsRegistry", "tokenLockFactory"): chain.addresses["TokenLockFactory"],
        ("HATVaultsRegistry", "HAT"): swap_token,
        ("HATVaultsRegistry", "defaultBountyGovernanceHAT"): int(str(reg.bounty_governance_hat)),
        ("HATVaultsRegistry", "defaultBountyHackerHATVested"): int(str(reg.bounty_hacker_hat_vested)),
    })

    if reg.use_kleros:
        arb = config.hat_arbitrator_conf
        conn = config.hat_kleros_connector_conf
        chain.values.update({
            ("HATArbitrator", "court"): chain.addresses["HATKlerosConnector"],
            ("HATArbitrator", "expertCommittee"): arb.expert_committee,
            ("HATArbitrator", "token"): arb.token,
            ("HATArbitrator", "bondsNeededToStartDispute"): int(str(arb.bonds_needed_to_start_dispute)),
            ("HATArbitrator", "minBondAmount"): int(str(arb.min_bond_amount)),
            ("HATArbitrator", "resolutionChallengePeriod"): int(str(arb.resolution_challenge_period)),
            ("HATArbitrator", "submitClaimRequestReviewPeriod"): int(str(arb.submit_claim_request_review_period)),
            ("HATKlerosConnector", "klerosArbitrator"): conn.kleros_arbitrator,
            ("HATKlerosConnector", "arbitratorExtraData"): conn.arbitrator_extra_data,
            ("HATKlerosConnector", "hatArbitrator"): chain.addresses["HATArbitrator"],
            ("HATKlerosConnector", "winnerMultiplier"): int(str(conn.winner_multiplier)),
            ("HATKlerosConnector", "loserMultiplier"): int(str(conn.loser_multiplier)),
        })

    return chain


# ── Config fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def basic_config() -> DeploymentConfig:
    """Governance set, default executor/manager lists, no Kleros."""
    return DeploymentConfig.model_validate({
        "governance": GOVERNANCE,
        "executors": [],
        "managers": [],
        "timelockDelay": 600,
        "hatVaultsRegistryConf": {
            "useKleros": False,
            "bountyGovernanceHAT": 1000,
            "bountyHackerHATVested": "2000",
            "swapToken": "HATToken",
        },
    })


@pytest.fixture
def kleros_config() -> DeploymentConfig:
    """Explicit executor/manager lists and the Kleros arbitration stack."""
    return DeploymentConfig.model_validate({
        "governance": GOVERNANCE,
        "executors": [EXECUTOR_B, GOVERNANCE],
        "managers": [MANAGER_C],
        "timelockDelay": "604800",
        "hatVaultsRegistryConf": {
            "useKleros": True,
            "bountyGovernanceHAT": 1000,
            "bountyHackerHATVested": 500,
        },
        "hatArbitratorConf": {
            "expertCommittee": EXPERT_COMMITTEE,
            "token": ADDRESSES["HATToken"],
            "bondsNeededToStartDispute": "1000000000000000000000",
            "minBondAmount": "10000000000000000000",
            "resolutionChallengePeriod": 432000,
            "submitClaimRequestReviewPeriod": 7776000,
        },
        "hatKlerosConnectorConf": {
            "klerosArbitrator": KLEROS_ARBITRATOR,
            "arbitratorExtraData": "0x0000000000000000000000000000000000000000000000000000000000000001",
            "winnerMultiplier": 3000,
            "loserMultiplier": 7000,
        },
    })


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def reporter(output: io.StringIO) -> ConsoleReporter:
    return ConsoleReporter(stream=output)
