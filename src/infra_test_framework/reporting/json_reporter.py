"""
JSON reporter for run results.
"""

import json

from ..models import TestResultsSummary
from .base import ReportGenerator


class JSONReporter(ReportGenerator):
    """Generate JSON format for programmatic analysis."""

    def generate(self, summary: TestResultsSummary) -> str:
        """Generate JSON report."""
        report = {
            "summary": {
                "total_scenarios": summary.total_scenarios,
                "total_checks": summary.total_checks,
                "passed": summary.passed,
                "failed": summary.failed,
                "skipped": summary.skipped,
                "errors": summary.errors,
                "teardown_failures": summary.teardown_failures,
                "duration_seconds": summary.duration_seconds,
                "success": summary.success,
            },
            "scenarios": [
                {
                    "name": o.scenario_name,
                    "target": o.target,
                    "success": o.success,
                    "apply_attempts": o.apply_attempts,
                    "destroyed": o.destroyed,
                    "duration_seconds": o.duration_seconds,
                    "error": (
                        {"type": type(o.error).__name__, "message": str(o.error)}
                        if o.error is not None
                        else None
                    ),
                    "teardown_error": (
                        str(o.teardown_error) if o.teardown_error is not None else None
                    ),
                    "checks": [
                        {
                            "check_name": c.check_name,
                            "status": c.status.value,
                            "duration_ms": c.duration_ms,
                            "message": c.message,
                            "details": c.details,
                        }
                        for c in o.checks
                    ],
                }
                for o in summary.outcomes
            ],
        }

        return json.dumps(report, indent=2, default=str)
