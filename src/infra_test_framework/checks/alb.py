"""
Application load balancer scenarios and the checks on its live state.
"""

from typing import Any, Dict, List, Type

from ..config import ScenarioConfig
from ..models import CheckResult, TestStatus
from .base import Check, CheckContext, Scenario
from .outputs import OutputMapContainsKeyCheck, OutputMapNotEmptyCheck, OutputNotEmptyCheck

EXPECTED_TARGET_GROUPS = ["frontend-tg", "backend-tg", "admin-tg", "static-tg"]


class LoadBalancerAttributeCheck(Check):
    """Check that an attribute of the live load balancer equals an expected value."""

    def __init__(self, name: str, attribute: str, expected: Any, description: str = "") -> None:
        super().__init__(name=name, description=description)
        self.attribute = attribute
        self.expected = expected

    def evaluate(self, context: CheckContext) -> CheckResult:
        if context.snapshot is None:
            return self._create_result(
                status=TestStatus.ERROR,
                message="No load balancer snapshot available",
                details={"attribute": self.attribute},
            )

        actual = getattr(context.snapshot, self.attribute)
        details = {"attribute": self.attribute, "expected": self.expected, "actual": actual}
        if actual != self.expected:
            return self._create_result(
                status=TestStatus.FAIL,
                message=f"{self.attribute} mismatch: expected {self.expected!r}, got {actual!r}",
                details=details,
            )

        return self._create_result(
            status=TestStatus.PASS,
            message=f"{self.attribute} is {actual!r}",
            details=details,
        )


class BasicALBScenario(Scenario):
    """Default module settings: an active ALB with HTTP/2, cross-zone and a 60s idle timeout."""

    required_outputs = ["alb_dns_name", "alb_id"]
    identifier_output = "alb_id"

    def get_checks(self) -> List[Check]:
        return [
            OutputNotEmptyCheck("alb_dns_name"),
            OutputNotEmptyCheck("alb_id"),
            LoadBalancerAttributeCheck(
                "alb_state_active",
                "state_code",
                "active",
                description="Verify the load balancer is active",
            ),
            LoadBalancerAttributeCheck(
                "alb_http2_enabled",
                "enable_http2",
                True,
                description="Verify HTTP/2 is enabled",
            ),
            LoadBalancerAttributeCheck(
                "alb_cross_zone_enabled",
                "enable_cross_zone_load_balancing",
                True,
                description="Verify cross-zone load balancing is enabled",
            ),
            LoadBalancerAttributeCheck(
                "alb_idle_timeout",
                "idle_timeout",
                60,
                description="Verify the idle timeout is 60 seconds",
            ),
        ]

    def default_smoke(self) -> bool:
        return True

    def get_priority(self) -> int:
        return 0


class AdvancedALBScenario(Scenario):
    """Custom settings: an ALB with one target group per application tier."""

    required_outputs = ["alb_id"]
    required_output_maps = ["target_group_ids"]

    def get_checks(self) -> List[Check]:
        checks: List[Check] = [
            OutputNotEmptyCheck("alb_id"),
            OutputMapNotEmptyCheck("target_group_ids"),
        ]
        for key in EXPECTED_TARGET_GROUPS:
            checks.append(OutputMapContainsKeyCheck("target_group_ids", key))
        return checks

    def default_smoke(self) -> bool:
        return False

    def get_priority(self) -> int:
        return 10


SCENARIO_TYPES: Dict[str, Type[Scenario]] = {
    "basic": BasicALBScenario,
    "advanced": AdvancedALBScenario,
}


def build_scenario(config: ScenarioConfig) -> Scenario:
    """
    Create the scenario matching a configuration's kind.

    Raises:
        ValueError: If the kind is unknown
    """
    scenario_type = SCENARIO_TYPES.get(config.kind)
    if scenario_type is None:
        raise ValueError(
            f"Unknown scenario kind '{config.kind}'. "
            f"Available kinds: {', '.join(SCENARIO_TYPES)}"
        )
    return scenario_type(config)
