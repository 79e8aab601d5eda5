"""
Custom exceptions for the infrastructure test framework.
"""

from typing import List, Optional


class InfraTestError(Exception):
    """Base exception for infrastructure test framework errors."""

    pass


class ProvisioningFailed(InfraTestError):
    """Raised when a Terraform step fails or exhausts its retries."""

    def __init__(
        self,
        step: str,
        target: str,
        message: str,
        attempts: int = 1,
        output: str = "",
    ):
        self.step = step
        self.target = target
        self.message = message
        self.attempts = attempts
        # Keep only the tail of the Terraform output; the end holds the error
        self.output = output[-2000:] if output else ""
        super().__init__(
            f"terraform {step} failed for {target} after {attempts} attempt(s): {message}"
        )


class OutputMissing(InfraTestError):
    """Raised when a required Terraform output is absent after apply."""

    def __init__(self, name: str, target: str = ""):
        self.name = name
        self.target = target
        where = f" in {target}" if target else ""
        super().__init__(f"Required output '{name}' is missing{where}")


class ResourceInspectionError(InfraTestError):
    """Raised when the live resource cannot be read from the cloud API."""

    def __init__(self, identifier: str, region: str, original_error: Optional[Exception] = None):
        self.identifier = identifier
        self.region = region
        self.original_error = original_error
        reason = f": {original_error}" if original_error else ""
        super().__init__(f"Failed to inspect load balancer {identifier} in {region}{reason}")


class AssertionFailed(InfraTestError):
    """Raised when one or more checks of a scenario did not hold."""

    def __init__(self, scenario: str, failures: List[str]):
        self.scenario = scenario
        self.failures = list(failures)
        super().__init__(
            f"{len(self.failures)} check(s) failed in scenario '{scenario}': "
            + "; ".join(self.failures)
        )


class TeardownFailed(InfraTestError):
    """Raised when terraform destroy fails."""

    def __init__(self, target: str, message: str, output: str = ""):
        self.target = target
        self.message = message
        self.output = output[-2000:] if output else ""
        super().__init__(f"terraform destroy failed for {target}: {message}")
