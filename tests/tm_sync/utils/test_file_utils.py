"""Tests for file-system helpers."""

from __future__ import annotations

import pytest

from tm_sync.utils.errors import FileSystemError
from tm_sync.utils.file_utils import (
    delete_file,
    ensure_dir,
    find_files,
    is_excluded,
    read_file,
    read_json,
    write_file,
    write_json,
)


def test_write_creates_parents_and_leaves_no_temp_files(tmp_path):
    target = tmp_path / "a" / "b" / "doc.txt"
    write_file(target, "hello")
    assert read_file(target) == "hello"
    assert [p.name for p in target.parent.iterdir()] == ["doc.txt"]


def test_json_round_trip(tmp_path):
    target = tmp_path / "doc.json"
    write_json(target, [{"key": "välue"}])
    assert target.read_text(encoding="utf-8").endswith("]\n")
    assert read_json(target) == [{"key": "välue"}]


def test_read_missing_file(tmp_path):
    with pytest.raises(FileSystemError) as exc_info:
        read_file(tmp_path / "missing.txt")
    assert exc_info.value.operation == "read"


def test_delete_file(tmp_path):
    target = tmp_path / "x.txt"
    target.write_text("x", encoding="utf-8")
    assert delete_file(target) is True
    assert delete_file(target) is False


def test_ensure_dir_over_a_file(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(FileSystemError) as exc_info:
        ensure_dir(blocker / "child")
    assert exc_info.value.operation == "create"


@pytest.mark.parametrize(
    ("path", "excluded"),
    [
        ("node_modules/pkg/a.spec.ts", True),
        ("e2e/node_modules/pkg/a.spec.ts", True),
        ("build/out.spec.ts", True),
        ("e2e/tsconfig.tsbuildinfo", True),
        ("e2e/login.spec.ts", False),
        ("builder/login.spec.ts", False),
    ],
)
def test_is_excluded_with_defaults(path, excluded):
    patterns = ["node_modules/**", "build/**", "*.tsbuildinfo"]
    assert is_excluded(path, patterns) is excluded


def test_is_excluded_bare_and_glob_patterns():
    assert is_excluded("e2e/a.skip.ts", ["*.skip.ts"])
    assert is_excluded("e2e/fixtures/data.spec.ts", ["fixtures"])
    assert not is_excluded("e2e/a.spec.ts", ["", "   "])


def test_find_files(tmp_path):
    for name in ("b.spec.ts", "a.spec.ts", "sub/c.spec.ts", "node_modules/d.spec.ts", "notes.md"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("", encoding="utf-8")

    found = find_files(tmp_path, ["**/*.spec.ts", "*.spec.ts"], ["node_modules/**"])

    assert [p.relative_to(tmp_path).as_posix() for p in found] == ["a.spec.ts", "b.spec.ts", "sub/c.spec.ts"]


def test_find_files_requires_directory(tmp_path):
    with pytest.raises(FileSystemError):
        find_files(tmp_path / "missing", ["**/*.ts"])
