"""Tests for content fingerprints."""

from __future__ import annotations

import hashlib

import pytest

from tm_sync.core.change_detector import ChangeDetector, canonical_content
from tm_sync.models.parsed_test import DocumentationTags, ParsedTest, TestStep


def make_test(**overrides) -> ParsedTest:
    values = {
        "title": "MM-T1: Fingerprinted test",
        "test_case_id": "MM-T1",
        "jsdoc_tags": DocumentationTags(objective="Check things", preconditions=("Logged in",)),
        "action_steps": (TestStep("Open page", 3), TestStep("Click button", 5)),
        "verification_steps": (TestStep("Dialog is shown", 7),),
    }
    values.update(overrides)
    return ParsedTest(**values)


@pytest.fixture
def detector():
    return ChangeDetector()


def test_canonical_content_layout():
    test = make_test(jsdoc_tags=DocumentationTags(objective="Obj", preconditions=("A", "B"), known_issue="Bug"))
    assert canonical_content(test) == (
        "objective:Obj\n"
        "precondition:A|B\n"
        "actions:Open page|Click button\n"
        "verifications:Dialog is shown\n"
        "knownIssue:Bug"
    )


def test_absent_sections_are_omitted():
    test = ParsedTest(title="Empty test body here")
    assert canonical_content(test) == ""


def test_hash_is_sha256_hex(detector):
    test = make_test()
    digest = detector.calculate_hash(test)
    assert digest == hashlib.sha256(canonical_content(test).encode("utf-8")).hexdigest()
    assert len(digest) == 64
    assert digest == digest.lower()


def test_hash_ignores_title_line_and_kind(detector):
    base = make_test()
    moved = make_test(title="MM-T1: Renamed test title", line_number=40)
    assert detector.calculate_hash(base) == detector.calculate_hash(moved)


def test_leading_and_trailing_whitespace_is_trimmed(detector):
    padded = make_test(
        jsdoc_tags=DocumentationTags(objective="  Check things ", preconditions=(" Logged in",)),
        action_steps=(TestStep(" Open page ", 3), TestStep("Click button  ", 5)),
    )
    assert detector.calculate_hash(padded) == detector.calculate_hash(make_test())


def test_interior_whitespace_matters(detector):
    spaced = make_test(action_steps=(TestStep("Open  page", 3), TestStep("Click button", 5)))
    assert detector.calculate_hash(spaced) != detector.calculate_hash(make_test())


def test_steps_are_ordered_by_line_number(detector):
    shuffled = make_test(action_steps=(TestStep("Click button", 5), TestStep("Open page", 3)))
    assert detector.calculate_hash(shuffled) == detector.calculate_hash(make_test())


def test_swapping_steps_in_source_changes_hash(detector):
    swapped = make_test(action_steps=(TestStep("Click button", 3), TestStep("Open page", 5)))
    assert detector.calculate_hash(swapped) != detector.calculate_hash(make_test())


def test_precondition_order_matters(detector):
    first = make_test(jsdoc_tags=DocumentationTags(objective="Obj", preconditions=("A", "B")))
    second = make_test(jsdoc_tags=DocumentationTags(objective="Obj", preconditions=("B", "A")))
    assert detector.calculate_hash(first) != detector.calculate_hash(second)


def test_detect_changes(detector):
    test = make_test()
    digest = detector.calculate_hash(test)

    unchanged = detector.detect_changes(test, digest)
    assert unchanged.has_changed is False
    assert unchanged.changed_fields == []

    changed = detector.detect_changes(make_test(verification_steps=(TestStep("Toast is shown", 7),)), digest)
    assert changed.has_changed is True
    assert changed.changed_fields == ["content"]
    assert detector.has_changed(test, "0" * 64)


def test_separator_in_precondition_does_not_collide(detector):
    joined = make_test(jsdoc_tags=DocumentationTags(objective="Obj", preconditions=("a|b",)))
    split = make_test(jsdoc_tags=DocumentationTags(objective="Obj", preconditions=("a", "b")))
    assert detector.calculate_hash(joined) != detector.calculate_hash(split)


def test_separator_in_step_text_does_not_collide(detector):
    joined = make_test(action_steps=(TestStep("Save|Cancel", 3),))
    split = make_test(action_steps=(TestStep("Save", 3), TestStep("Cancel", 5)))
    assert detector.calculate_hash(joined) != detector.calculate_hash(split)


def test_newline_in_leaf_cannot_forge_a_section(detector):
    forged = make_test(
        jsdoc_tags=DocumentationTags(objective="Obj\nknownIssue:Bug"),
        action_steps=(),
        verification_steps=(),
    )
    real = make_test(
        jsdoc_tags=DocumentationTags(objective="Obj", known_issue="Bug"),
        action_steps=(),
        verification_steps=(),
    )
    assert detector.calculate_hash(forged) != detector.calculate_hash(real)


def test_escaping_is_visible_in_canonical_content():
    test = ParsedTest(
        title="Escaped canonical content",
        jsdoc_tags=DocumentationTags(preconditions=("a|b", "c\\d")),
    )
    assert canonical_content(test) == "precondition:a\\|b|c\\\\d"
