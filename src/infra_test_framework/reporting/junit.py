"""
JUnit XML reporter for run results.
"""

import xml.etree.ElementTree as ET

from ..exceptions import OutputMissing, ResourceInspectionError
from ..models import TestResultsSummary, TestStatus
from .base import ReportGenerator


def _failed_step(error: Exception) -> str:
    """Name of the lifecycle step a fatal error stopped the scenario in."""
    if isinstance(error, OutputMissing):
        return "outputs"
    if isinstance(error, ResourceInspectionError):
        return "inspect"
    return "provision"


class JUnitReporter(ReportGenerator):
    """Generate JUnit XML format for CI/CD integration."""

    def generate(self, summary: TestResultsSummary) -> str:
        """Generate JUnit XML report."""
        testsuites = ET.Element("testsuites")
        testsuites.set("name", "Infrastructure Tests")
        testsuites.set("time", f"{summary.duration_seconds:.3f}")

        for outcome in summary.outcomes:
            testsuite = ET.SubElement(testsuites, "testsuite")
            testsuite.set("name", outcome.scenario_name)
            testsuite.set("time", f"{outcome.duration_seconds:.3f}")

            tests = failures = errors = skipped = 0

            # Fatal and teardown errors get their own test cases so CI shows them
            if outcome.error is not None:
                testcase = ET.SubElement(testsuite, "testcase")
                testcase.set("classname", outcome.scenario_name)
                testcase.set("name", _failed_step(outcome.error))
                error = ET.SubElement(testcase, "error")
                error.set("type", type(outcome.error).__name__)
                error.set("message", str(outcome.error))
                error.text = getattr(outcome.error, "output", "") or str(outcome.error)
                tests += 1
                errors += 1

            for result in outcome.checks:
                testcase = ET.SubElement(testsuite, "testcase")
                testcase.set("classname", outcome.scenario_name)
                testcase.set("name", result.check_name)
                testcase.set("time", f"{result.duration_ms / 1000:.3f}")
                tests += 1

                if result.status == TestStatus.FAIL:
                    failure = ET.SubElement(testcase, "failure")
                    failure.set("message", result.message)
                    failure.text = str(result.details)
                    failures += 1

                elif result.status == TestStatus.ERROR:
                    error = ET.SubElement(testcase, "error")
                    error.set("message", result.message)
                    error.text = str(result.details)
                    errors += 1

                elif result.status == TestStatus.SKIP:
                    skip = ET.SubElement(testcase, "skipped")
                    skip.set("message", result.message)
                    skipped += 1

            if outcome.destroyed:
                testcase = ET.SubElement(testsuite, "testcase")
                testcase.set("classname", outcome.scenario_name)
                testcase.set("name", "teardown")
                tests += 1
                if outcome.teardown_error is not None:
                    error = ET.SubElement(testcase, "error")
                    error.set("type", "TeardownFailed")
                    error.set("message", str(outcome.teardown_error))
                    error.text = outcome.teardown_error.output or str(outcome.teardown_error)
                    errors += 1

            testsuite.set("tests", str(tests))
            testsuite.set("failures", str(failures))
            testsuite.set("errors", str(errors))
            testsuite.set("skipped", str(skipped))

        ET.indent(testsuites, space="  ")
        return ET.tostring(testsuites, encoding="unicode", xml_declaration=True)
