"""
Scenario outcome aggregation and utilities.
"""

from typing import List

from .models import ScenarioOutcome, TestResultsSummary, TestStatus


def aggregate_results(outcomes: List[ScenarioOutcome]) -> TestResultsSummary:
    """
    Aggregate scenario outcomes into a summary.

    A scenario that stopped on a fatal error counts as one error on top of
    whatever checks it managed to evaluate.

    Args:
        outcomes: List of ScenarioOutcome objects

    Returns:
        TestResultsSummary with aggregated statistics
    """
    checks = [c for o in outcomes for c in o.checks]
    passed = sum(1 for c in checks if c.status == TestStatus.PASS)
    failed = sum(1 for c in checks if c.status == TestStatus.FAIL)
    skipped = sum(1 for c in checks if c.status == TestStatus.SKIP)
    errors = sum(1 for c in checks if c.status == TestStatus.ERROR)
    errors += sum(1 for o in outcomes if o.error is not None)
    teardown_failures = sum(1 for o in outcomes if o.teardown_error is not None)

    return TestResultsSummary(
        total_scenarios=len(outcomes),
        total_checks=len(checks),
        passed=passed,
        failed=failed,
        skipped=skipped,
        errors=errors,
        teardown_failures=teardown_failures,
        duration_seconds=sum(o.duration_seconds for o in outcomes),
        outcomes=outcomes,
    )
