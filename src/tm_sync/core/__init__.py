"""Parsing, fingerprinting, validation and sync-status scanning."""

from tm_sync.core.change_detector import ChangeDetector, ChangeReport
from tm_sync.core.mapping_manager import MappingManager
from tm_sync.core.parser import TestParser
from tm_sync.core.scanner import Scanner
from tm_sync.core.sync_status import classify_outcome, classify_sync_status
from tm_sync.core.validator import ValidationOutcome, Validator, validate_files

__all__ = [
    "ChangeDetector",
    "ChangeReport",
    "MappingManager",
    "Scanner",
    "TestParser",
    "ValidationOutcome",
    "Validator",
    "classify_outcome",
    "classify_sync_status",
    "validate_files",
]
