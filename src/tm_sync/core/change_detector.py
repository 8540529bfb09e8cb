"""Content fingerprints for parsed tests.

The fingerprint is the SHA-256 of a canonical text built from the test's
documentation and steps. Canonicalization trims leaf values but keeps
interior whitespace, orders steps by source line, keeps preconditions in
source order and omits absent sections entirely. Inside each leaf value
``\\``, ``|`` and newlines are escaped so separators stay unambiguous:

    objective:<objective>
    precondition:<p1>|<p2>
    actions:<a1>|<a2>
    verifications:<v1>|<v2>
    knownIssue:<known issue>

Only the digest is stored in mapping files, so a change can be detected
but not attributed to a field.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Iterable

from tm_sync.models.parsed_test import ParsedTest, TestStep

SECTION_SEPARATOR = "\n"
ITEM_SEPARATOR = "|"


@dataclass(frozen=True)
class ChangeReport:
    has_changed: bool
    changed_fields: list[str] = field(default_factory=list)


def _leaf(value: str) -> str:
    """Trim ``value`` and escape the separator characters inside it."""
    return value.strip().replace("\\", "\\\\").replace(ITEM_SEPARATOR, "\\|").replace(SECTION_SEPARATOR, "\\n")


def _sorted_texts(steps: Iterable[TestStep]) -> list[str]:
    return [_leaf(step.text) for step in sorted(steps, key=lambda step: step.line_number)]


def canonical_content(test: ParsedTest) -> str:
    """Build the canonical text that ``calculate_hash`` digests."""
    tags = test.jsdoc_tags
    parts: list[str] = []

    if tags.objective:
        parts.append(f"objective:{_leaf(tags.objective)}")
    if tags.preconditions:
        parts.append("precondition:" + ITEM_SEPARATOR.join(_leaf(p) for p in tags.preconditions))
    if test.action_steps:
        parts.append("actions:" + ITEM_SEPARATOR.join(_sorted_texts(test.action_steps)))
    if test.verification_steps:
        parts.append("verifications:" + ITEM_SEPARATOR.join(_sorted_texts(test.verification_steps)))
    if tags.known_issue:
        parts.append(f"knownIssue:{_leaf(tags.known_issue)}")

    return SECTION_SEPARATOR.join(parts)


class ChangeDetector:
    """Fingerprints tests and compares them with stored digests."""

    def calculate_hash(self, test: ParsedTest) -> str:
        """Return the 64-character lowercase hex SHA-256 of the test content."""
        return hashlib.sha256(canonical_content(test).encode("utf-8")).hexdigest()

    def has_changed(self, test: ParsedTest, previous_hash: str) -> bool:
        return self.calculate_hash(test) != previous_hash

    def detect_changes(self, test: ParsedTest, previous_hash: str) -> ChangeReport:
        """Report whether the content differs from ``previous_hash``.

        ``changed_fields`` is either empty or the generic ``["content"]``:
        the previous canonical text is not retained, only its digest.
        """
        if not self.has_changed(test, previous_hash):
            return ChangeReport(has_changed=False)
        return ChangeReport(has_changed=True, changed_fields=["content"])
