"""
Console reporter for run results.
"""

import os
import sys

from ..models import ScenarioOutcome, TestResultsSummary, TestStatus
from .base import ReportGenerator


def _supports_color() -> bool:
    """Return True if the output stream likely supports ANSI colours."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    # Non-TTY output (e.g. piped to a file) should not use colour
    if not hasattr(sys.stdout, "isatty") or not sys.stdout.isatty():
        return False
    return sys.platform != "win32" or "WT_SESSION" in os.environ


class ConsoleReporter(ReportGenerator):
    """Generate colored console output for run results."""

    def __init__(self) -> None:
        color = _supports_color()
        self.GREEN = "\033[92m" if color else ""
        self.RED = "\033[91m" if color else ""
        self.YELLOW = "\033[93m" if color else ""
        self.RESET = "\033[0m" if color else ""
        self.BOLD = "\033[1m" if color else ""

    def _symbol(self, status: TestStatus) -> str:
        if status == TestStatus.PASS:
            return f"{self.GREEN}✓{self.RESET}"
        if status == TestStatus.SKIP:
            return f"{self.YELLOW}○{self.RESET}"
        return f"{self.RED}✗{self.RESET}"

    def _scenario_lines(self, outcome: ScenarioOutcome) -> list:
        lines = []
        color = self.GREEN if outcome.success else self.RED
        lines.append(
            f"\n  {color}{self.BOLD}{outcome.scenario_name}{self.RESET} "
            f"({outcome.target}, {outcome.duration_seconds:.1f}s, "
            f"{outcome.apply_attempts} apply attempt(s))"
        )

        if outcome.error is not None:
            lines.append(f"    {self.RED}✗ {type(outcome.error).__name__}: {outcome.error}{self.RESET}")

        for check in outcome.checks:
            lines.append(f"    {self._symbol(check.status)} {check.check_name}")
            if check.status in (TestStatus.FAIL, TestStatus.ERROR):
                lines.append(f"      {check.message}")
                if "expected" in check.details or "actual" in check.details:
                    lines.append(
                        f"      Expected: {check.details.get('expected')!r}  "
                        f"Actual: {check.details.get('actual')!r}"
                    )

        if outcome.teardown_error is not None:
            lines.append(f"    {self.RED}✗ Teardown: {outcome.teardown_error}{self.RESET}")
        elif outcome.destroyed:
            lines.append(f"    {self.GREEN}✓{self.RESET} teardown")
        return lines

    def generate(self, summary: TestResultsSummary) -> str:
        """Generate console report."""
        lines = []

        lines.append(f"\n{self.BOLD}Infrastructure Test Results{self.RESET}")
        lines.append("=" * 60)

        lines.append(f"\n{self.BOLD}Summary:{self.RESET}")
        lines.append(f"  Scenarios: {summary.total_scenarios}")
        lines.append(f"  Total Checks: {summary.total_checks}")
        lines.append(f"  {self.GREEN}Passed: {summary.passed}{self.RESET}")
        lines.append(f"  {self.RED}Failed: {summary.failed}{self.RESET}")
        lines.append(f"  {self.YELLOW}Skipped: {summary.skipped}{self.RESET}")
        lines.append(f"  {self.RED}Errors: {summary.errors}{self.RESET}")
        lines.append(f"  {self.RED}Teardown Failures: {summary.teardown_failures}{self.RESET}")
        lines.append(f"  Duration: {summary.duration_seconds:.2f}s")

        if summary.success:
            lines.append(f"\n{self.GREEN}{self.BOLD}✓ ALL SCENARIOS PASSED{self.RESET}")
        else:
            lines.append(f"\n{self.RED}{self.BOLD}✗ SCENARIOS FAILED{self.RESET}")

        if summary.outcomes:
            lines.append(f"\n{self.BOLD}Scenarios:{self.RESET}")
            for outcome in summary.outcomes:
                lines.extend(self._scenario_lines(outcome))

        lines.append("")
        return "\n".join(lines)
