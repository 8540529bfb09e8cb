"""File-system helpers that raise FileSystemError with operation and path."""

from __future__ import annotations

import fnmatch
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Sequence

from tm_sync.utils.errors import FileSystemError


def read_file(path: Path | str) -> str:
    """Read a UTF-8 text file."""
    file_path = Path(path)
    try:
        return file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FileSystemError(f"Failed to read file: {exc}", "read", str(file_path)) from exc


def write_file(path: Path | str, content: str) -> None:
    """Atomically write ``content``, creating parent directories.

    The content lands in a sibling temp file first and is then moved into
    place, so readers never observe a half-written document.
    """
    file_path = Path(path)
    ensure_dir(file_path.parent)
    try:
        fd, tmp_name = tempfile.mkstemp(dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            os.replace(tmp_name, file_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise FileSystemError(f"Failed to write file: {exc}", "write", str(file_path)) from exc


def read_json(path: Path | str) -> Any:
    """Read and decode a JSON file. Decoding errors propagate as ValueError."""
    return json.loads(read_file(path))


def write_json(path: Path | str, data: Any) -> None:
    write_file(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def ensure_dir(path: Path | str) -> Path:
    dir_path = Path(path)
    try:
        dir_path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FileSystemError(f"Failed to create directory: {exc}", "create", str(dir_path)) from exc
    return dir_path


def delete_file(path: Path | str) -> bool:
    """Delete a file; returns False when it did not exist."""
    file_path = Path(path)
    try:
        file_path.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise FileSystemError(f"Failed to delete file: {exc}", "delete", str(file_path)) from exc
    return True


def is_excluded(relative_path: str, exclude: Iterable[str]) -> bool:
    """Return True when any path segment or the whole path matches an exclude pattern.

    A bare name such as ``node_modules`` excludes every path that passes
    through a directory of that name; glob patterns (``*.tsbuildinfo``,
    ``build/**``) are matched against the full POSIX path too.
    """
    parts = relative_path.split("/")
    for pattern in exclude:
        pattern = pattern.strip().rstrip("/")
        if not pattern:
            continue
        if fnmatch.fnmatch(relative_path, pattern) or fnmatch.fnmatch(relative_path, f"*/{pattern}"):
            return True
        segment = pattern
        while segment.startswith("**/"):
            segment = segment[3:]
        while segment.endswith("/**"):
            segment = segment[:-3]
        if "/" not in segment and any(fnmatch.fnmatch(part, segment) for part in parts):
            return True
    return False


def find_files(root: Path | str, patterns: Sequence[str], exclude: Sequence[str] = ()) -> list[Path]:
    """Glob ``patterns`` below ``root``, drop excluded paths, return sorted unique files."""
    root_path = Path(root)
    if not root_path.is_dir():
        raise FileSystemError(f"Not a directory: {root_path}", "read", str(root_path))

    found: set[Path] = set()
    for pattern in patterns:
        for candidate in root_path.glob(pattern):
            if not candidate.is_file():
                continue
            relative = candidate.relative_to(root_path).as_posix()
            if is_excluded(relative, exclude):
                continue
            found.add(candidate)
    return sorted(found)
