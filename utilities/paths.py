# utilities/paths.py
from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

MANIFEST_SUFFIXES: frozenset[str] = frozenset({".yaml", ".yml"})


def validate_path(path: Path, root: Path) -> Path:
    """Resolve symlinks and verify the path stays within root.

    Resolves the given path and the root via Path.resolve(), then checks that
    the resolved path is relative to the resolved root.  Raises ValueError if
    the path escapes the root (e.g. via symlinks or '..' segments).

    Returns the fully resolved path on success.
    """
    resolved = path.resolve()
    root_resolved = root.resolve()
    if not resolved.is_relative_to(root_resolved):
        raise ValueError(f"Path escapes manifest root: {path}")
    return resolved


def find_manifest_files(directories: list[Path], recursive: bool = True) -> list[Path]:
    """Return YAML manifest files found under *directories*.

    A directory that does not exist raises ``FileNotFoundError``. A path that
    is itself a file is returned as-is. Hidden entries (starting with ``.``)
    are skipped. Files resolving outside their directory are skipped with a
    debug log. Each directory's files are sorted; a file reachable from more
    than one directory is returned once.
    """
    seen: set[Path] = set()
    results: list[Path] = []

    for base_dir in directories:
        if not base_dir.exists():
            raise FileNotFoundError(f"Manifest directory does not exist: {base_dir}")

        if base_dir.is_file():
            candidates = [base_dir]
            root = base_dir.parent
        else:
            pattern = "**/*" if recursive else "*"
            candidates = sorted(base_dir.glob(pattern))
            root = base_dir

        for file_path in candidates:
            if file_path.suffix not in MANIFEST_SUFFIXES or not file_path.is_file():
                continue
            relative_parts = file_path.relative_to(root).parts
            if any(part.startswith(".") for part in relative_parts):
                continue
            try:
                validated = validate_path(path=file_path, root=root)
            except ValueError:
                logger.debug("Skipping path that failed validation: %s", file_path)
                continue
            if validated in seen:
                continue
            seen.add(validated)
            results.append(validated)

    return results
