"""Shared enums and records used across the verifier."""

from __future__ import annotations

import enum
from dataclasses import dataclass


# ── Enums ────────────────────────────────────────────────────────────────────


class CheckCategory(str, enum.Enum):
    """Group a check belongs to."""

    ACCESS_CONTROL = "access_control"
    ROLE_GRANTS = "role_grants"
    WIRING = "wiring"
    ARBITRATION = "arbitration"
    REGISTRY = "registry"


class TimelockRole(str, enum.Enum):
    """Named roles of the HATTimelockController, by their getter name."""

    TIMELOCK_ADMIN = "TIMELOCK_ADMIN_ROLE"
    PROPOSER = "PROPOSER_ROLE"
    CANCELLER = "CANCELLER_ROLE"
    EXECUTOR = "EXECUTOR_ROLE"
    MANAGER = "MANAGER_ROLE"


# ── Records ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RoleDescriptor:
    """An access-control role and the admin role expected to govern it."""

    name: TimelockRole
    role_id: str
    admin_role_id: str


@dataclass(frozen=True)
class RoleGrant:
    """A ``RoleGranted`` event as recorded on chain."""

    role_id: str
    account: str
    sender: str = ""
    block_number: int = 0
    log_index: int = 0
    transaction_hash: str = ""


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one evaluated check."""

    label: str
    passed: bool
    category: CheckCategory | None = None
