"""
Base class for report generators.
"""

from abc import ABC, abstractmethod

from ..models import TestResultsSummary


class ReportGenerator(ABC):
    """Base class for generating run reports."""

    @abstractmethod
    def generate(self, summary: TestResultsSummary) -> str:
        """
        Generate a report from a run summary.

        Args:
            summary: TestResultsSummary with scenario outcomes

        Returns:
            Report as a string
        """
        pass
