"""
Data models for the infrastructure test framework.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Optional, Union

from .exceptions import (
    AssertionFailed,
    InfraTestError,
    OutputMissing,
    TeardownFailed,
)

OutputValue = Union[str, Dict[str, str]]


class TestStatus(Enum):
    """Status of a check execution."""

    __test__ = False

    PASS = "pass"
    FAIL = "fail"
    SKIP = "skip"
    ERROR = "error"


class OutputSet(Mapping):
    """Read-only view of the Terraform outputs captured after apply."""

    def __init__(self, values: Optional[Dict[str, OutputValue]] = None, target: str = ""):
        frozen: Dict[str, OutputValue] = {}
        for name, value in (values or {}).items():
            frozen[name] = MappingProxyType(dict(value)) if isinstance(value, dict) else value
        self._values = MappingProxyType(frozen)
        self.target = target

    def __getitem__(self, name: str) -> OutputValue:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"OutputSet({dict(self._values)!r})"

    def scalar(self, name: str) -> str:
        """Return a scalar output, raising OutputMissing if it was not captured."""
        if name not in self._values:
            raise OutputMissing(name, self.target)
        value = self._values[name]
        if isinstance(value, Mapping):
            raise OutputMissing(name, self.target)
        return value

    def group(self, name: str) -> Mapping:
        """Return a grouped (map) output, raising OutputMissing if it was not captured."""
        if name not in self._values:
            raise OutputMissing(name, self.target)
        value = self._values[name]
        if not isinstance(value, Mapping):
            raise OutputMissing(name, self.target)
        return value


@dataclass(frozen=True)
class LoadBalancerSnapshot:
    """Point-in-time state of an application load balancer.

    ``enable_http2`` and ``idle_timeout`` are None when the API did not report
    the attribute.
    """

    arn: str
    dns_name: str
    state_code: str
    enable_http2: Optional[bool]
    enable_cross_zone_load_balancing: bool
    idle_timeout: Optional[int]
    attributes: Dict[str, str] = field(default_factory=dict)


@dataclass
class CheckResult:
    """Result of a single check execution."""

    check_name: str
    status: TestStatus
    duration_ms: float
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ScenarioOutcome:
    """Everything that happened while running one scenario."""

    scenario_name: str
    target: str
    checks: List[CheckResult] = field(default_factory=list)
    error: Optional[InfraTestError] = None
    teardown_error: Optional[TeardownFailed] = None
    apply_attempts: int = 0
    destroyed: bool = False
    duration_seconds: float = 0.0

    @property
    def failed_checks(self) -> List[CheckResult]:
        return [c for c in self.checks if c.status in (TestStatus.FAIL, TestStatus.ERROR)]

    @property
    def success(self) -> bool:
        """Return True if every check passed or was skipped and nothing errored."""
        return (
            self.error is None
            and self.teardown_error is None
            and not self.failed_checks
        )

    def raise_for_status(self) -> None:
        """Raise the primary failure of this scenario, if any.

        A fatal error wins over failed checks, and failed checks win over a
        teardown failure. The teardown failure stays available on
        ``teardown_error`` either way.
        """
        if self.error is not None:
            raise self.error
        failures = self.failed_checks
        if failures:
            raise AssertionFailed(
                self.scenario_name,
                [f"{c.check_name}: {c.message}" for c in failures],
            )
        if self.teardown_error is not None:
            raise self.teardown_error


@dataclass
class TestResultsSummary:
    """Aggregated summary of a test run."""

    __test__ = False

    total_scenarios: int
    total_checks: int
    passed: int
    failed: int
    skipped: int
    errors: int
    teardown_failures: int
    duration_seconds: float
    outcomes: List[ScenarioOutcome]

    @property
    def success(self) -> bool:
        """Return True if every scenario succeeded."""
        return all(o.success for o in self.outcomes)
