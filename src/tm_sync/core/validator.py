"""Documentation rules for parsed tests.

Every rule runs independently and contributes issues; a test passes when
none of its issues is an error. Validation failures are values, never
exceptions.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from tm_sync.core.parser import TestParser
from tm_sync.models.configuration import ValidationConfig
from tm_sync.models.parsed_test import ParsedTest
from tm_sync.models.validation_result import (
    Category,
    ErrorCode,
    Severity,
    TestValidationResult,
    ValidationIssue,
    ValidationReport,
    build_validation_report,
    create_test_validation_result,
)
from tm_sync.utils.errors import TmSyncError

logger = logging.getLogger(__name__)

MIN_TITLE_LENGTH = 10

PARSE_ERROR_TITLE = "File Parse Error"


@dataclass(frozen=True)
class ValidationOutcome:
    passed: bool
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity is Severity.ERROR]


class Validator:
    """Applies the configured documentation rules to a ``ParsedTest``."""

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        project_key = self.config.project_key or "MM"
        self._project_key = project_key
        self._case_id_format = re.compile(rf"^{re.escape(project_key)}-T\d+$", re.ASCII)
        self._title_prefix = re.compile(rf"^{re.escape(project_key)}-T\d+:\s*", re.ASCII)

    def validate(self, test: ParsedTest, file_path: str = "") -> ValidationOutcome:
        issues: list[ValidationIssue] = []
        line = test.line_number
        key = self._project_key

        def add(severity: Severity, category: Category, code: ErrorCode, message: str, fix: str) -> None:
            issues.append(
                ValidationIssue(
                    severity=severity,
                    category=category,
                    message=message,
                    error_code=code.value,
                    file_path=file_path,
                    line_number=line,
                    suggested_fix=fix,
                )
            )

        if self.config.requires_tag("objective") and not test.jsdoc_tags.objective:
            add(
                Severity.ERROR,
                Category.DOCUMENTATION,
                ErrorCode.OBJECTIVE_MISSING,
                "Missing required @objective tag",
                "Add @objective JSDoc tag describing what this test validates",
            )

        if self.config.enforce_action_comments and not test.action_steps:
            add(
                Severity.ERROR,
                Category.ACTION_STEPS,
                ErrorCode.ACTION_STEPS_MISSING,
                "Missing action step comments (// #)",
                "Add // # comments before action statements",
            )

        if self.config.enforce_verification_comments and not test.verification_steps:
            add(
                Severity.ERROR,
                Category.VERIFICATION_STEPS,
                ErrorCode.VERIFICATION_STEPS_MISSING,
                "Missing verification step comments (// *)",
                "Add // * comments before expect/assertion statements",
            )

        if not test.test_case_id:
            add(
                Severity.WARNING,
                Category.CASE_ID,
                ErrorCode.CASE_ID_MISSING,
                "Missing test case ID in test title (will be assigned automatically)",
                f"Add test case ID in format {key}-T#### to test title if already synced with TMS",
            )
        elif not self._case_id_format.match(test.test_case_id):
            add(
                Severity.ERROR,
                Category.CASE_ID,
                ErrorCode.CASE_ID_MALFORMED,
                f"Invalid test case ID format: {test.test_case_id}",
                f"Use format {key}-T#### (e.g., {key}-T12345)",
            )

        if len(self._title_prefix.sub("", test.title, count=1)) < MIN_TITLE_LENGTH:
            add(
                Severity.WARNING,
                Category.TITLE,
                ErrorCode.TITLE_TOO_SHORT,
                "Test title is too short",
                f"Use a more descriptive test title (at least {MIN_TITLE_LENGTH} characters)",
            )

        passed = not any(issue.severity is Severity.ERROR for issue in issues)
        return ValidationOutcome(passed=passed, issues=issues)

    def validate_to_result(self, test: ParsedTest, file_path: str) -> TestValidationResult:
        outcome = self.validate(test, file_path)
        return create_test_validation_result(file_path, test.title, outcome.issues)


def parse_failure_result(file_path: str, error: BaseException) -> TestValidationResult:
    """A failing result standing in for a file that could not be parsed."""
    issue = ValidationIssue(
        severity=Severity.ERROR,
        category=Category.SYNTAX,
        message=str(error),
        error_code=ErrorCode.SYNTAX.value,
        file_path=file_path,
        suggested_fix="Check that the file is readable UTF-8 TypeScript",
    )
    return create_test_validation_result(file_path, PARSE_ERROR_TITLE, [issue])


def validate_files(
    paths: Iterable[Path | str],
    parser: TestParser,
    validator: Validator,
) -> ValidationReport:
    """Parse and validate every file; unparseable files fail without stopping the run."""
    start = time.monotonic()
    results: list[TestValidationResult] = []

    for path in paths:
        file_path = str(path)
        try:
            parsed = parser.parse_test_file(path)
        except (TmSyncError, OSError) as exc:
            logger.warning("Could not parse %s: %s", file_path, exc)
            results.append(parse_failure_result(file_path, exc))
            continue

        for test in parsed.tests:
            results.append(validator.validate_to_result(test, file_path))

    return build_validation_report(results, duration=time.monotonic() - start)
