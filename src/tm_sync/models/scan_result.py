"""Scan result document: per-file sync buckets and directory-level metrics."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from tm_sync.models.mapping import SyncStatus


def percentage(part: int, total: int) -> int:
    """Integer percentage rounded half-up; 0 when ``total`` is 0."""
    if total <= 0:
        return 0
    return int(math.floor(100 * part / total + 0.5))


@dataclass
class FileIssue:
    test_title: str
    sync_status: SyncStatus
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"testTitle": self.test_title, "syncStatus": self.sync_status.value, "message": self.message}


@dataclass
class FileResult:
    file_path: str
    test_count: int = 0
    synced_count: int = 0
    unmapped_count: int = 0
    out_of_sync_count: int = 0
    validation_error_count: int = 0
    issues: list[FileIssue] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "filePath": self.file_path,
            "testCount": self.test_count,
            "syncedCount": self.synced_count,
            "unmappedCount": self.unmapped_count,
            "outOfSyncCount": self.out_of_sync_count,
            "validationErrorCount": self.validation_error_count,
            "issues": [issue.to_dict() for issue in self.issues],
        }


@dataclass
class ScanSummary:
    total_files: int = 0
    total_tests: int = 0
    synced_tests: int = 0
    unmapped_tests: int = 0
    out_of_sync_tests: int = 0
    validation_errors: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "totalFiles": self.total_files,
            "totalTests": self.total_tests,
            "syncedTests": self.synced_tests,
            "unmappedTests": self.unmapped_tests,
            "outOfSyncTests": self.out_of_sync_tests,
            "validationErrors": self.validation_errors,
        }


@dataclass
class ScanMetrics:
    sync_coverage: int = 0
    documentation_compliance: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "syncCoverage": self.sync_coverage,
            "documentationCompliance": self.documentation_compliance,
        }


@dataclass
class ScanTotals:
    summary: ScanSummary
    metrics: ScanMetrics


@dataclass
class ScanResult:
    """Aggregate outcome of scanning a directory or a list of files.

    ``duration`` is in seconds.
    """

    summary: ScanSummary = field(default_factory=ScanSummary)
    metrics: ScanMetrics = field(default_factory=ScanMetrics)
    file_results: list[FileResult] = field(default_factory=list)
    scanned_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duration: float = 0.0

    @property
    def has_problems(self) -> bool:
        """True when nothing was found or some test is unmapped or out of sync."""
        return (
            self.summary.total_tests == 0
            or self.summary.unmapped_tests > 0
            or self.summary.out_of_sync_tests > 0
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "metrics": self.metrics.to_dict(),
            "fileResults": [result.to_dict() for result in self.file_results],
            "scannedAt": self.scanned_at.isoformat(),
            "duration": self.duration,
        }
