"""Verification report and its console rendering.

The report is the run's only mutable state: every check is recorded into it
as soon as it is evaluated, and the reporter prints the result right away so
the operator sees every outcome even if a later read aborts the run.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Any, TextIO

from hats_verifier.core.errors import VerificationFailedError
from hats_verifier.core.types import CheckCategory, CheckResult


# ── Coloured output helpers ──────────────────────────────────────────────────

_RESET = "\x1b[0m"
_GREEN = "\x1b[32m"
_RED = "\x1b[31m"
_BOLD = "\x1b[1m"

_RULE = "*" * 48


class ConsoleReporter:
    """Print check outcomes as ``<label>: <true|false>`` lines."""

    def __init__(self, stream: TextIO | None = None, color: bool = True) -> None:
        self.stream = stream or sys.stdout
        self.color = color

    def _c(self, text: str, code: str) -> str:
        if not self.color:
            return text
        return f"{code}{text}{_RESET}"

    def _print(self, *parts: Any) -> None:
        print(*parts, file=self.stream)

    def heading(self, text: str) -> None:
        self._print(f"\n{text}\n")

    def context(self, sections: list[dict[str, Any]]) -> None:
        """Print general run info, one ruled block per section."""
        self._print(_RULE)
        for section in sections:
            for key, value in section.items():
                self._print(f"{key}: ", value)
            self._print(_RULE)

    def check(self, result: CheckResult) -> None:
        outcome = "true" if result.passed else "false"
        self._print(self._c(f"{result.label}: {outcome}", _GREEN if result.passed else _RED))

    def unexpected_grant(self, account: str, role: str) -> None:
        self._print(f"The account {account} should not have role {role}")

    def summary(self, report: VerificationReport) -> None:
        if report.failure_count:
            text = f"{report.failure_count} of {report.total_checks} checks failed"
            self._print(self._c(f"\n{text}", _BOLD + _RED))
        else:
            text = f"All {report.total_checks} checks passed"
            self._print(self._c(f"\n{text}", _BOLD + _GREEN))


class NullReporter(ConsoleReporter):
    """Reporter that prints nothing."""

    def _print(self, *parts: Any) -> None:
        return None


@dataclass
class VerificationReport:
    """Accumulated outcome of a verification run."""

    checks: list[CheckResult] = field(default_factory=list)
    unexpected_grants: list[tuple[str, str]] = field(default_factory=list)
    reporter: ConsoleReporter = field(default_factory=NullReporter, repr=False, compare=False)

    def record(self, label: str, passed: Any, category: CheckCategory | None = None) -> bool:
        """Record and print one check. Returns the outcome as a bool."""
        result = CheckResult(label=label, passed=bool(passed), category=category)
        self.checks.append(result)
        self.reporter.check(result)
        return result.passed

    def record_unexpected_grant(self, account: str, role: str) -> None:
        self.unexpected_grants.append((account, role))
        self.reporter.unexpected_grant(account, role)

    @property
    def total_checks(self) -> int:
        return len(self.checks)

    @property
    def failure_count(self) -> int:
        return sum(1 for c in self.checks if not c.passed)

    @property
    def failed_labels(self) -> list[str]:
        return [c.label for c in self.checks if not c.passed]

    @property
    def passed(self) -> bool:
        return self.failure_count == 0

    def raise_if_failed(self) -> None:
        """Raise the single terminal failure if any check failed."""
        if self.failure_count:
            raise VerificationFailedError(self.failure_count, self.failed_labels)
