"""Tests for sync status classification."""

from __future__ import annotations

import pytest

from tm_sync.core.change_detector import ChangeDetector
from tm_sync.core.sync_status import classify_outcome, classify_sync_status
from tm_sync.core.validator import ValidationOutcome, Validator
from tm_sync.models.mapping import SyncStatus, create_test_case_mapping, update_sync_status
from tm_sync.models.parsed_test import DocumentationTags, ParsedTest, TestStep


@pytest.fixture
def classified() -> ParsedTest:
    return ParsedTest(
        title="MM-T42: Classified test title",
        test_case_id="MM-T42",
        jsdoc_tags=DocumentationTags(objective="Objective"),
        action_steps=(TestStep("Act", 2),),
        verification_steps=(TestStep("Assert", 4),),
    )


def mapping_with_hash(content_hash: str):
    mapping = create_test_case_mapping("a.spec.ts", "MM-T42: Classified test title")
    mapping = mapping.model_copy(update={"test_case_id": "MM-T42"})
    return update_sync_status(mapping, SyncStatus.SYNCED, content_hash)


def test_synced_when_hash_matches(classified):
    digest = ChangeDetector().calculate_hash(classified)
    status = classify_sync_status(classified, mapping_with_hash(digest), digest, Validator())
    assert status is SyncStatus.SYNCED


def test_needs_update_when_hash_differs(classified):
    digest = ChangeDetector().calculate_hash(classified)
    status = classify_sync_status(classified, mapping_with_hash("a" * 64), digest, Validator())
    assert status is SyncStatus.NEEDS_UPDATE


def test_unsynced_without_mapping(classified):
    digest = ChangeDetector().calculate_hash(classified)
    assert classify_sync_status(classified, None, digest, Validator()) is SyncStatus.UNSYNCED


def test_unsynced_without_case_id_even_if_mapped(classified):
    untagged = ParsedTest(
        title="Classified test title",
        jsdoc_tags=classified.jsdoc_tags,
        action_steps=classified.action_steps,
        verification_steps=classified.verification_steps,
    )
    digest = ChangeDetector().calculate_hash(untagged)
    status = classify_sync_status(untagged, mapping_with_hash(digest), digest, Validator())
    assert status is SyncStatus.UNSYNCED


def test_validation_error_wins_over_matching_hash(classified):
    undocumented = ParsedTest(title=classified.title, test_case_id="MM-T42")
    digest = ChangeDetector().calculate_hash(undocumented)
    status = classify_sync_status(undocumented, mapping_with_hash(digest), digest, Validator())
    assert status is SyncStatus.UNSYNCED


def test_classify_outcome_never_yields_conflict_or_orphaned(classified):
    digest = ChangeDetector().calculate_hash(classified)
    mapping = mapping_with_hash(digest).model_copy(update={"sync_status": SyncStatus.CONFLICT})
    results = {
        classify_outcome(classified, mapping, digest, ValidationOutcome(passed=True)),
        classify_outcome(classified, mapping, "b" * 64, ValidationOutcome(passed=True)),
        classify_outcome(classified, None, digest, ValidationOutcome(passed=True)),
        classify_outcome(classified, mapping, digest, ValidationOutcome(passed=False)),
    }
    assert results == {SyncStatus.SYNCED, SyncStatus.NEEDS_UPDATE, SyncStatus.UNSYNCED}
