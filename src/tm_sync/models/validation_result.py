"""Validation issues and the validation result document."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Iterable, Optional, Sequence

from tm_sync.models.scan_result import percentage

PROBLEM_FILES_LIMIT = 5


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Category(StrEnum):
    DOCUMENTATION = "documentation"
    ACTION_STEPS = "action-steps"
    VERIFICATION_STEPS = "verification-steps"
    CASE_ID = "case-id"
    TITLE = "title"
    SYNTAX = "syntax"


class ErrorCode(StrEnum):
    OBJECTIVE_MISSING = "VAL_001"
    ACTION_STEPS_MISSING = "VAL_002"
    VERIFICATION_STEPS_MISSING = "VAL_003"
    CASE_ID_MISSING = "VAL_004"
    CASE_ID_MALFORMED = "VAL_005"
    TITLE_TOO_SHORT = "VAL_006"
    SYNTAX = "VAL_100"


@dataclass(frozen=True)
class ValidationIssue:
    severity: Severity
    category: Category
    message: str
    error_code: str
    file_path: str = ""
    line_number: Optional[int] = None
    suggested_fix: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "category": self.category.value,
            "message": self.message,
            "suggestedFix": self.suggested_fix,
            "filePath": self.file_path,
            "lineNumber": self.line_number,
            "errorCode": self.error_code,
        }


@dataclass
class TestValidationResult:
    __test__ = False

    file_path: str
    test_title: str
    passed: bool
    issues: list[ValidationIssue] = field(default_factory=list)
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "filePath": self.file_path,
            "testTitle": self.test_title,
            "passed": self.passed,
            "issues": [issue.to_dict() for issue in self.issues],
            "errorCount": self.error_count,
            "warningCount": self.warning_count,
            "infoCount": self.info_count,
        }


@dataclass
class ValidationSummary:
    total_errors: int = 0
    total_warnings: int = 0
    total_info: int = 0
    pass_rate: int = 0
    common_issue_category: Optional[Category] = None
    problem_files: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalErrors": self.total_errors,
            "totalWarnings": self.total_warnings,
            "totalInfo": self.total_info,
            "passRate": self.pass_rate,
            "commonIssueCategory": self.common_issue_category.value if self.common_issue_category else None,
            "problemFiles": list(self.problem_files),
        }


@dataclass
class ValidationReport:
    """Outcome of validating a set of tests. ``duration`` is in seconds."""

    total_tests: int = 0
    passed_tests: int = 0
    failed_tests: int = 0
    test_results: list[TestValidationResult] = field(default_factory=list)
    summary: ValidationSummary = field(default_factory=ValidationSummary)
    validated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duration: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalTests": self.total_tests,
            "passedTests": self.passed_tests,
            "failedTests": self.failed_tests,
            "testResults": [result.to_dict() for result in self.test_results],
            "summary": self.summary.to_dict(),
            "validatedAt": self.validated_at.isoformat(),
            "duration": self.duration,
        }


def create_test_validation_result(
    file_path: str,
    test_title: str,
    issues: Iterable[ValidationIssue],
) -> TestValidationResult:
    issue_list = list(issues)
    counts = Counter(issue.severity for issue in issue_list)
    return TestValidationResult(
        file_path=file_path,
        test_title=test_title,
        passed=counts[Severity.ERROR] == 0,
        issues=issue_list,
        error_count=counts[Severity.ERROR],
        warning_count=counts[Severity.WARNING],
        info_count=counts[Severity.INFO],
    )


def calculate_summary(test_results: Sequence[TestValidationResult]) -> ValidationSummary:
    """Aggregate per-test results.

    ``common_issue_category`` is the most frequent category (first seen wins
    a tie). ``problem_files`` lists up to five files ordered by their total
    error count, highest first.
    """
    passed = sum(1 for result in test_results if result.passed)

    category_counts: dict[Category, int] = {}
    for result in test_results:
        for issue in result.issues:
            category_counts[issue.category] = category_counts.get(issue.category, 0) + 1
    common = max(category_counts, key=category_counts.__getitem__) if category_counts else None

    errors_by_file: dict[str, int] = {}
    for result in test_results:
        if result.error_count > 0:
            errors_by_file[result.file_path] = errors_by_file.get(result.file_path, 0) + result.error_count
    problem_files = sorted(errors_by_file, key=lambda path: -errors_by_file[path])[:PROBLEM_FILES_LIMIT]

    return ValidationSummary(
        total_errors=sum(result.error_count for result in test_results),
        total_warnings=sum(result.warning_count for result in test_results),
        total_info=sum(result.info_count for result in test_results),
        pass_rate=percentage(passed, len(test_results)),
        common_issue_category=common,
        problem_files=problem_files,
    )


def build_validation_report(
    test_results: Sequence[TestValidationResult],
    duration: float = 0.0,
) -> ValidationReport:
    results = list(test_results)
    passed = sum(1 for result in results if result.passed)
    return ValidationReport(
        total_tests=len(results),
        passed_tests=passed,
        failed_tests=len(results) - passed,
        test_results=results,
        summary=calculate_summary(results),
        duration=max(duration, 0.0),
    )


def merge_validation_reports(reports: Iterable[ValidationReport]) -> ValidationReport:
    """Concatenate reports and recompute the summary; durations add up."""
    test_results: list[TestValidationResult] = []
    duration = 0.0
    for report in reports:
        test_results.extend(report.test_results)
        duration += report.duration
    return build_validation_report(test_results, duration)
