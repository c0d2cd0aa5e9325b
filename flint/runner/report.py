# flint/runner/report.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from flint.engine.assertions import AssertionOutcome


class TestStatus(str, Enum):
    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class TestResult:
    """
    Per-test facts folded into the run report.
    """

    __test__ = False

    name: str
    status: TestStatus
    outcomes: List[AssertionOutcome] = field(default_factory=list)
    ticks_elapsed: int = 0
    error: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.status is TestStatus.PASSED

    @property
    def failures(self) -> List[AssertionOutcome]:
        return [o for o in self.outcomes if not o.passed]

    @property
    def first_failure_tick(self) -> Optional[int]:
        ticks = [o.tick for o in self.failures]
        return min(ticks) if ticks else None

    @classmethod
    def skipped(cls, name: str, reason: str) -> "TestResult":
        return cls(name=name, status=TestStatus.SKIPPED, error=reason)

    @classmethod
    def from_outcomes(
        cls,
        name: str,
        outcomes: List[AssertionOutcome],
        ticks_elapsed: int,
        error: Optional[str] = None,
    ) -> "TestResult":
        ok = error is None and all(o.passed for o in outcomes)
        return cls(
            name=name,
            status=TestStatus.PASSED if ok else TestStatus.FAILED,
            outcomes=list(outcomes),
            ticks_elapsed=ticks_elapsed,
            error=error,
        )


@dataclass
class RunReport:
    """
    Ordered per-test results plus run-level counts.
    """

    results: List[TestResult] = field(default_factory=list)
    aborted: Optional[str] = None

    def add(self, result: TestResult) -> None:
        self.results.append(result)

    def get(self, name: str) -> Optional[TestResult]:
        for r in reversed(self.results):
            if r.name == name:
                return r
        return None

    def _count(self, status: TestStatus) -> int:
        return sum(1 for r in self.results if r.status is status)

    @property
    def passed(self) -> int:
        return self._count(TestStatus.PASSED)

    @property
    def failed(self) -> int:
        return self._count(TestStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(TestStatus.SKIPPED)

    @property
    def all_passed(self) -> bool:
        """Every executed test passed and the run was not cut short."""
        return self.failed == 0 and self.aborted is None

    @property
    def exit_code(self) -> int:
        return 0 if self.all_passed else 1


_STYLE = {
    TestStatus.PASSED: "green",
    TestStatus.FAILED: "red",
    TestStatus.SKIPPED: "yellow",
}


def render_report(report: RunReport, console: Optional[Console] = None) -> None:
    console = console or Console()

    table = Table(title="Flint run", show_lines=False)
    table.add_column("Test")
    table.add_column("Status")
    table.add_column("Assertions", justify="right")
    table.add_column("Ticks", justify="right")
    table.add_column("First failure", justify="right")
    table.add_column("Note")

    for r in report.results:
        style = _STYLE[r.status]
        ok = sum(1 for o in r.outcomes if o.passed)
        table.add_row(
            escape(r.name),
            f"[{style}]{r.status.value}[/{style}]",
            f"{ok}/{len(r.outcomes)}",
            str(r.ticks_elapsed),
            "" if r.first_failure_tick is None else str(r.first_failure_tick),
            escape(r.error or ""),
        )
    console.print(table)

    for r in report.results:
        if not r.failures:
            continue
        console.print(f"[red bold]✗ {escape(r.name)}[/red bold]")
        for o in r.failures:
            console.print(f"    [red]{escape(o.describe())}[/red]")

    if report.aborted:
        console.print(f"[red bold]Run aborted:[/red bold] {escape(report.aborted)}")

    summary_style = "green" if report.all_passed else "red"
    console.print(
        f"[{summary_style} bold]{report.passed} passed[/{summary_style} bold], "
        f"{report.failed} failed, {report.skipped} skipped"
    )
