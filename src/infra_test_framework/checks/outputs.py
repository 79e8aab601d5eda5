"""
Checks on the Terraform outputs captured after apply.
"""

from ..exceptions import OutputMissing
from ..models import CheckResult, TestStatus
from .base import Check, CheckContext


class OutputNotEmptyCheck(Check):
    """Check that a scalar output holds a non-empty value."""

    def __init__(self, output_name: str) -> None:
        super().__init__(
            name=f"{output_name}_not_empty",
            description=f"Verify output {output_name} is not empty",
        )
        self.output_name = output_name

    def evaluate(self, context: CheckContext) -> CheckResult:
        try:
            value = context.outputs.scalar(self.output_name)
        except OutputMissing as e:
            return self._create_result(
                status=TestStatus.ERROR,
                message=str(e),
                details={"output": self.output_name},
            )

        if not value.strip():
            return self._create_result(
                status=TestStatus.FAIL,
                message=f"Output '{self.output_name}' is empty",
                details={"output": self.output_name, "expected": "non-empty", "actual": value},
            )

        return self._create_result(
            status=TestStatus.PASS,
            message=f"Output '{self.output_name}' is set",
            details={"output": self.output_name, "actual": value},
        )


class OutputMapNotEmptyCheck(Check):
    """Check that a grouped output has at least one entry."""

    def __init__(self, output_name: str) -> None:
        super().__init__(
            name=f"{output_name}_not_empty",
            description=f"Verify grouped output {output_name} is not empty",
        )
        self.output_name = output_name

    def evaluate(self, context: CheckContext) -> CheckResult:
        try:
            group = context.outputs.group(self.output_name)
        except OutputMissing as e:
            return self._create_result(
                status=TestStatus.ERROR,
                message=str(e),
                details={"output": self.output_name},
            )

        if not group:
            return self._create_result(
                status=TestStatus.FAIL,
                message=f"Grouped output '{self.output_name}' has no entries",
                details={"output": self.output_name, "expected": "non-empty", "actual": {}},
            )

        return self._create_result(
            status=TestStatus.PASS,
            message=f"Grouped output '{self.output_name}' has {len(group)} entries",
            details={"output": self.output_name, "keys": sorted(group)},
        )


class OutputMapContainsKeyCheck(Check):
    """Check that a grouped output contains a given key."""

    def __init__(self, output_name: str, key: str) -> None:
        super().__init__(
            name=f"{output_name}_contains_{key}",
            description=f"Verify grouped output {output_name} contains {key}",
        )
        self.output_name = output_name
        self.key = key

    def evaluate(self, context: CheckContext) -> CheckResult:
        try:
            group = context.outputs.group(self.output_name)
        except OutputMissing as e:
            return self._create_result(
                status=TestStatus.ERROR,
                message=str(e),
                details={"output": self.output_name},
            )

        if self.key not in group:
            return self._create_result(
                status=TestStatus.FAIL,
                message=f"Grouped output '{self.output_name}' does not contain '{self.key}'",
                details={
                    "output": self.output_name,
                    "expected": self.key,
                    "actual": sorted(group),
                },
            )

        return self._create_result(
            status=TestStatus.PASS,
            message=f"Grouped output '{self.output_name}' contains '{self.key}'",
            details={"output": self.output_name, "key": self.key, "value": group[self.key]},
        )
