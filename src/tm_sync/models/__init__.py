"""Data models for tm-sync."""

from tm_sync.models.configuration import (
    FileSelectionConfig,
    LoggingConfig,
    MappingsConfig,
    TmsConfig,
    TmSyncConfig,
    ValidationConfig,
    default_config,
    merge_config,
    validate_config,
)
from tm_sync.models.mapping import (
    ConflictDetails,
    ConflictResolution,
    MappingMetadata,
    SyncStatus,
    TestCaseMapping,
    create_test_case_mapping,
    has_conflict,
    needs_sync,
    update_sync_status,
)
from tm_sync.models.parsed_test import (
    DocumentationTags,
    ParsedTest,
    ParseResult,
    TestKind,
    TestStep,
    is_valid_test_case_id,
)
from tm_sync.models.scan_result import (
    FileIssue,
    FileResult,
    ScanMetrics,
    ScanResult,
    ScanSummary,
    ScanTotals,
)
from tm_sync.models.validation_result import (
    Category,
    ErrorCode,
    Severity,
    TestValidationResult,
    ValidationIssue,
    ValidationReport,
    ValidationSummary,
    calculate_summary,
    create_test_validation_result,
    merge_validation_reports,
)

__all__ = [
    "Category",
    "ConflictDetails",
    "ConflictResolution",
    "DocumentationTags",
    "ErrorCode",
    "FileIssue",
    "FileResult",
    "FileSelectionConfig",
    "LoggingConfig",
    "MappingMetadata",
    "MappingsConfig",
    "ParseResult",
    "ParsedTest",
    "ScanMetrics",
    "ScanResult",
    "ScanSummary",
    "ScanTotals",
    "Severity",
    "SyncStatus",
    "TestCaseMapping",
    "TestKind",
    "TestStep",
    "TestValidationResult",
    "TmSyncConfig",
    "TmsConfig",
    "ValidationConfig",
    "ValidationIssue",
    "ValidationReport",
    "ValidationSummary",
    "calculate_summary",
    "create_test_case_mapping",
    "create_test_validation_result",
    "default_config",
    "has_conflict",
    "is_valid_test_case_id",
    "merge_config",
    "merge_validation_reports",
    "needs_sync",
    "update_sync_status",
    "validate_config",
]
