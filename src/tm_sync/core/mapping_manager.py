"""JSON mapping documents stored beside each test file.

A mapping document is a JSON array of ``TestCaseMapping`` records. A
missing document means "no mappings yet"; anything present but malformed
raises ``MappingStoreError`` rather than being repaired.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from tm_sync.models.configuration import MappingsConfig
from tm_sync.models.mapping import TestCaseMapping
from tm_sync.utils.errors import MappingStoreError, TmSyncError
from tm_sync.utils.file_utils import read_file, write_json

REQUIRED_FIELDS = ("id", "testFilePath", "testTitle", "syncStatus", "metadata")
REQUIRED_METADATA_FIELDS = ("createdAt", "updatedAt", "createdBy", "syncCount")


class MappingManager:
    """Loads and saves mapping documents."""

    def __init__(self, config: Optional[MappingsConfig] = None, logger: Optional[logging.Logger] = None):
        self.config = config or MappingsConfig()
        self._logger = logger or logging.getLogger(__name__)

    def mapping_path_for(self, test_file: Path | str) -> Path:
        """Mapping document location for ``test_file`` per ``mappings.fileName``."""
        return Path(self.config.file_name.replace("{testFilePath}", str(test_file)))

    def load_mapping(self, path: Path | str) -> list[TestCaseMapping]:
        """Load a mapping document.

        Returns an empty list when the document does not exist.

        Raises:
            MappingStoreError: invalid JSON, a non-array document, or a
                record missing required fields
            FileSystemError: the document exists but cannot be read
        """
        mapping_path = Path(path)
        if not mapping_path.exists():
            return []

        content = read_file(mapping_path)
        try:
            data = json.loads(content)
        except (json.JSONDecodeError, RecursionError) as exc:
            raise MappingStoreError(f"Invalid JSON in mapping file: {mapping_path}", str(mapping_path)) from exc

        if not isinstance(data, list):
            raise MappingStoreError("Mapping file must contain an array", str(mapping_path))

        mappings: list[TestCaseMapping] = []
        for entry in data:
            self._check_required_fields(entry, mapping_path)
            try:
                mappings.append(TestCaseMapping.model_validate(entry))
            except ValidationError as exc:
                raise MappingStoreError(
                    f"Invalid mapping record in {mapping_path}: {exc.errors()[0]['msg']}",
                    str(mapping_path),
                ) from exc
        return mappings

    def load_mappings_for(self, test_file: Path | str) -> list[TestCaseMapping]:
        return self.load_mapping(self.mapping_path_for(test_file))

    def save_mapping(self, path: Path | str, mappings: Iterable[TestCaseMapping]) -> None:
        """Write ``mappings`` atomically, creating parent directories."""
        write_json(path, [mapping.to_dict() for mapping in mappings])
        self._logger.debug("Saved mapping file %s", path)

    def get_all_mappings(self, directory: Path | str) -> list[TestCaseMapping]:
        """Load every ``*.json`` mapping document below ``directory``.

        Corrupt documents are logged and skipped.
        """
        root = Path(directory)
        if not root.is_dir():
            return []

        mappings: list[TestCaseMapping] = []
        for mapping_file in sorted(root.rglob("*.json")):
            try:
                mappings.extend(self.load_mapping(mapping_file))
            except TmSyncError as exc:
                self._logger.warning("Failed to load mapping from %s: %s", mapping_file, exc)
        return mappings

    @staticmethod
    def index_by_case_id(mappings: Iterable[TestCaseMapping]) -> dict[str, TestCaseMapping]:
        """Case id -> mapping; records without a case id are left out, later records win."""
        return {mapping.test_case_id: mapping for mapping in mappings if mapping.test_case_id}

    @staticmethod
    def _check_required_fields(entry: Any, path: Path) -> None:
        if not isinstance(entry, dict):
            raise MappingStoreError("Mapping must be an object", str(path))
        for name in REQUIRED_FIELDS:
            if name not in entry:
                raise MappingStoreError(f"Missing required field: {name}", str(path))
        metadata = entry["metadata"]
        if not isinstance(metadata, dict):
            raise MappingStoreError("Missing required field: metadata", str(path))
        for name in REQUIRED_METADATA_FIELDS:
            if name not in metadata:
                raise MappingStoreError(f"Missing required metadata field: {name}", str(path))
