from .report import RunReport, TestResult, TestStatus, render_report
from .runner import TestRunner, dependency_waves, resolve_order

__all__ = [
    "RunReport", "TestResult", "TestStatus", "render_report",
    "TestRunner", "dependency_waves", "resolve_order",
]
