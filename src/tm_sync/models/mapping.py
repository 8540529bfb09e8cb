"""Mapping records linking a test in code to its test-management case.

One JSON array of these records is stored next to each test file
(``{testFilePath}.mapping.json``). Keys are camelCase on disk.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

HASH_PATTERN = re.compile(r"^[0-9a-f]{64}$")

DEFAULT_CREATED_BY = "tm-sync-cli"


class SyncStatus(StrEnum):
    SYNCED = "synced"
    UNSYNCED = "unsynced"
    NEEDS_UPDATE = "needs-update"
    CONFLICT = "conflict"
    ORPHANED = "orphaned"


class ConflictResolution(StrEnum):
    PROMPT = "prompt"
    KEEP_LOCAL = "keep-local"
    KEEP_TMS = "keep-tms"
    MERGE = "merge"
    SKIP = "skip"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ConflictDetails(_CamelModel):
    local_changes: list[str] = Field(default_factory=list, alias="localChanges")
    tms_changes: list[str] = Field(default_factory=list, alias="tmsChanges")
    detected_at: datetime = Field(default_factory=_utcnow, alias="detectedAt")
    resolution_strategy: Optional[ConflictResolution] = Field(None, alias="resolutionStrategy")


class MappingMetadata(_CamelModel):
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")
    created_by: str = Field(..., alias="createdBy")
    sync_count: int = Field(..., ge=0, alias="syncCount", description="Successful sync operations")
    last_error: Optional[str] = Field(None, alias="lastError")


class TestCaseMapping(_CamelModel):
    """Association between one test and its remote test case."""

    id: str = Field(..., min_length=1, description="Opaque unique identifier (UUID)")
    test_file_path: str = Field(..., alias="testFilePath")
    test_title: str = Field(..., alias="testTitle")
    test_case_id: Optional[str] = Field(None, alias="testCaseId", description="Case id, e.g. MM-T12345")
    test_case_key: Optional[str] = Field(None, alias="testCaseKey")
    sync_status: SyncStatus = Field(..., alias="syncStatus")
    last_synced_hash: Optional[str] = Field(
        None,
        alias="lastSyncedHash",
        description="Fingerprint of the test content at the last sync",
    )
    last_synced_at: Optional[datetime] = Field(None, alias="lastSyncedAt")
    tms_version: Optional[int] = Field(None, alias="tmsVersion")
    tms_updated_at: Optional[datetime] = Field(None, alias="tmsUpdatedAt")
    conflict_details: Optional[ConflictDetails] = Field(None, alias="conflictDetails")
    metadata: MappingMetadata

    @field_validator("last_synced_hash")
    @classmethod
    def validate_hash(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not HASH_PATTERN.match(value):
            raise ValueError(f"lastSyncedHash must be 64 lowercase hex characters; got {value!r}")
        return value

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def create_test_case_mapping(
    test_file_path: str,
    test_title: str,
    created_by: str = DEFAULT_CREATED_BY,
) -> TestCaseMapping:
    now = _utcnow()
    return TestCaseMapping(
        id=str(uuid.uuid4()),
        test_file_path=test_file_path,
        test_title=test_title,
        sync_status=SyncStatus.UNSYNCED,
        metadata=MappingMetadata(created_at=now, updated_at=now, created_by=created_by, sync_count=0),
    )


def update_sync_status(
    mapping: TestCaseMapping,
    status: SyncStatus,
    content_hash: Optional[str] = None,
) -> TestCaseMapping:
    """Return a copy of ``mapping`` moved to ``status``.

    ``lastSyncedAt`` is stamped and ``syncCount`` bumped only when the
    mapping becomes synced together with a fingerprint; any other update
    leaves them untouched.
    """
    now = _utcnow()
    synced_with_hash = status is SyncStatus.SYNCED and content_hash is not None

    metadata = mapping.metadata.model_copy(
        update={
            "updated_at": now,
            "sync_count": mapping.metadata.sync_count + 1 if synced_with_hash else mapping.metadata.sync_count,
        }
    )
    updated = mapping.model_copy(
        update={
            "sync_status": status,
            "last_synced_hash": content_hash if content_hash is not None else mapping.last_synced_hash,
            "last_synced_at": now if synced_with_hash else mapping.last_synced_at,
            "metadata": metadata,
        }
    )
    # model_copy skips validation
    return TestCaseMapping.model_validate(updated.model_dump())


def needs_sync(mapping: TestCaseMapping) -> bool:
    return mapping.sync_status in (SyncStatus.UNSYNCED, SyncStatus.NEEDS_UPDATE, SyncStatus.CONFLICT)


def has_conflict(mapping: TestCaseMapping) -> bool:
    return mapping.sync_status is SyncStatus.CONFLICT and mapping.conflict_details is not None
