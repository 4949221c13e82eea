"""Exception hierarchy for the verifier.

Environment problems (``ChainReadError``, ``DeploymentNotFoundError``,
``ConfigError``) abort a run immediately. Failed invariants are not raised one
by one; they surface once, at the end, as ``VerificationFailedError``.
"""

from __future__ import annotations

from typing import Any


class VerifierError(Exception):
    """Base exception for verifier errors."""


class ConfigError(VerifierError):
    """Deployment configuration is missing or malformed."""


class DeploymentNotFoundError(VerifierError):
    """No deployment artifact exists for a contract on the target network."""

    def __init__(self, contract_name: str, network: str, detail: str = "") -> None:
        message = f"No deployment found for {contract_name} on {network}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.contract_name = contract_name
        self.network = network


class ChainReadError(VerifierError):
    """A remote read against the node failed."""

    def __init__(
        self,
        message: str,
        method: str | None = None,
        code: int | None = None,
        data: Any = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.code = code
        self.data = data


class VerificationFailedError(VerifierError):
    """One or more deployment checks evaluated to false."""

    def __init__(self, failure_count: int, failed_labels: list[str] | None = None) -> None:
        super().__init__(f"{failure_count} checks failed!")
        self.failure_count = failure_count
        self.failed_labels = list(failed_labels or [])
