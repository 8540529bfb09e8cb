"""Classify a parsed test against its stored mapping.

Rules are evaluated in priority order, first match wins:

1. documentation has an error-severity issue  -> unsynced
2. no case id, or no mapping for it           -> unsynced
3. stored fingerprint differs from current    -> needs-update
4. otherwise                                  -> synced

``conflict`` and ``orphaned`` are only ever written by a remote sync and
are never derived here.
"""

from __future__ import annotations

from typing import Optional

from tm_sync.core.validator import ValidationOutcome, Validator
from tm_sync.models.mapping import SyncStatus, TestCaseMapping
from tm_sync.models.parsed_test import ParsedTest


def classify_outcome(
    test: ParsedTest,
    mapping: Optional[TestCaseMapping],
    current_hash: str,
    outcome: ValidationOutcome,
) -> SyncStatus:
    """Classify using an already computed validation outcome."""
    if not outcome.passed:
        return SyncStatus.UNSYNCED
    if not test.test_case_id or mapping is None:
        return SyncStatus.UNSYNCED
    if mapping.last_synced_hash != current_hash:
        return SyncStatus.NEEDS_UPDATE
    return SyncStatus.SYNCED


def classify_sync_status(
    test: ParsedTest,
    mapping: Optional[TestCaseMapping],
    current_hash: str,
    validator: Validator,
) -> SyncStatus:
    return classify_outcome(test, mapping, current_hash, validator.validate(test))
