"""Sync-status scanning over test files and directories.

For each test the scanner computes the fingerprint and validation outcome,
classifies it against the file's mapping document and reports it in one
bucket:

* validation-error: unsynced because of an error-severity issue
* unmapped: unsynced, documentation fine, but no case id or mapping
* out-of-sync: mapped, fingerprint differs
* synced: mapped, fingerprint matches (no issue line)

A file that cannot be read, parsed, or whose mapping document is corrupt
yields a synthetic result; the remaining files are still scanned.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Iterable, Optional, Sequence

from tm_sync.core.change_detector import ChangeDetector
from tm_sync.core.mapping_manager import MappingManager
from tm_sync.core.parser import TestParser
from tm_sync.core.sync_status import classify_outcome
from tm_sync.core.validator import ValidationOutcome, Validator
from tm_sync.models.configuration import DEFAULT_EXCLUDE, ValidationConfig
from tm_sync.models.mapping import SyncStatus
from tm_sync.models.parsed_test import ParsedTest
from tm_sync.models.scan_result import (
    FileIssue,
    FileResult,
    ScanMetrics,
    ScanResult,
    ScanSummary,
    ScanTotals,
    percentage,
)
from tm_sync.utils.errors import TmSyncError
from tm_sync.utils.file_utils import find_files

DEFAULT_PATTERNS = ("**/*.spec.ts",)

FILE_SCAN_ERROR_TITLE = "File Scan Error"
UNMAPPED_MESSAGE = "Test is not mapped to a TMS test case"
OUT_OF_SYNC_MESSAGE = "Test content has changed since last sync"


class Scanner:
    """Scans test files and buckets every test by sync status."""

    def __init__(
        self,
        validation_config: Optional[ValidationConfig] = None,
        mapping_manager: Optional[MappingManager] = None,
        logger: Optional[logging.Logger] = None,
    ):
        config = validation_config or ValidationConfig()
        self._logger = logger or logging.getLogger(__name__)
        self.parser = TestParser(config.project_key, logger=self._logger)
        self.validator = Validator(config)
        self.change_detector = ChangeDetector()
        self.mapping_manager = mapping_manager or MappingManager(logger=self._logger)

    def scan_directory(
        self,
        root: Path | str,
        patterns: Optional[Sequence[str]] = None,
        exclude: Optional[Sequence[str]] = None,
    ) -> ScanResult:
        """Scan every file under ``root`` matching ``patterns`` minus ``exclude``."""
        start = time.monotonic()
        files = find_files(
            root,
            patterns or DEFAULT_PATTERNS,
            DEFAULT_EXCLUDE if exclude is None else exclude,
        )
        self._logger.debug("Found %d test file(s) under %s", len(files), root)
        return self._build_result(self.scan_files(files), start)

    def scan_paths(self, paths: Sequence[Path | str]) -> ScanResult:
        """Scan an explicit list of files into a full ``ScanResult``."""
        start = time.monotonic()
        return self._build_result(self.scan_files(paths), start)

    def scan_files(self, paths: Iterable[Path | str]) -> list[FileResult]:
        results: list[FileResult] = []
        for path in paths:
            try:
                results.append(self.scan_file(path))
            except (TmSyncError, OSError) as exc:
                self._logger.warning("Failed to scan %s: %s", path, exc)
                results.append(self._error_file_result(str(path), exc))
        return results

    def scan_file(self, path: Path | str) -> FileResult:
        """Scan one file.

        Raises:
            ParserError: the file cannot be read
            MappingStoreError: its mapping document is corrupt
        """
        parsed = self.parser.parse_test_file(path)
        mappings = self.mapping_manager.index_by_case_id(self.mapping_manager.load_mappings_for(path))

        result = FileResult(file_path=str(path), test_count=parsed.total_tests)
        for test in parsed.tests:
            current_hash = self.change_detector.calculate_hash(test)
            outcome = self.validator.validate(test, str(path))
            mapping = mappings.get(test.test_case_id) if test.test_case_id else None
            status = classify_outcome(test, mapping, current_hash, outcome)
            self._categorize(result, test, status, outcome)
        return result

    def _categorize(
        self,
        result: FileResult,
        test: ParsedTest,
        status: SyncStatus,
        outcome: ValidationOutcome,
    ) -> None:
        if status is SyncStatus.SYNCED:
            result.synced_count += 1
        elif status is SyncStatus.NEEDS_UPDATE:
            result.out_of_sync_count += 1
            result.issues.append(FileIssue(test.title, status, OUT_OF_SYNC_MESSAGE))
        elif not outcome.passed:
            result.validation_error_count += 1
            messages = ", ".join(issue.message for issue in outcome.errors)
            result.issues.append(FileIssue(test.title, SyncStatus.UNSYNCED, f"Validation failed: {messages}"))
        else:
            result.unmapped_count += 1
            result.issues.append(FileIssue(test.title, SyncStatus.UNSYNCED, UNMAPPED_MESSAGE))

    @staticmethod
    def _error_file_result(file_path: str, error: BaseException) -> FileResult:
        message = error.message if isinstance(error, TmSyncError) else str(error)
        return FileResult(
            file_path=file_path,
            validation_error_count=1,
            issues=[FileIssue(FILE_SCAN_ERROR_TITLE, SyncStatus.UNSYNCED, message)],
        )

    @staticmethod
    def calculate_metrics(file_results: Iterable[FileResult]) -> ScanTotals:
        """Sum file counts and derive the two coverage percentages.

        Both percentages are 0 when no tests were found and are otherwise
        clamped to 0..100 (synthetic error results add validation errors
        without adding tests).
        """
        summary = ScanSummary()
        for result in file_results:
            summary.total_files += 1
            summary.total_tests += result.test_count
            summary.synced_tests += result.synced_count
            summary.unmapped_tests += result.unmapped_count
            summary.out_of_sync_tests += result.out_of_sync_count
            summary.validation_errors += result.validation_error_count

        total = summary.total_tests
        mapped = summary.synced_tests + summary.out_of_sync_tests
        documented = max(total - summary.validation_errors, 0)
        metrics = ScanMetrics(
            sync_coverage=percentage(mapped, total),
            documentation_compliance=percentage(documented, total),
        )
        return ScanTotals(summary=summary, metrics=metrics)

    def _build_result(self, file_results: list[FileResult], start: float) -> ScanResult:
        totals = self.calculate_metrics(file_results)
        return ScanResult(
            summary=totals.summary,
            metrics=totals.metrics,
            file_results=file_results,
            duration=time.monotonic() - start,
        )
