# tests/conftest.py
from __future__ import annotations

import os
from pathlib import Path

import pytest

from tests.utils import emit_file, populate_manifests


@pytest.fixture
def fake_manifests(tmp_path: Path) -> Path:
    """Build a fake manifest tree.

    Returns the path to ``<tmp_path>/manifests/``.
    """
    return populate_manifests(tmp_path)


@pytest.fixture
def fake_manifests_with_symlink(tmp_path: Path) -> Path:
    """Build a manifest tree that includes a symlink escaping the root.

    ``escape.yaml`` points at a manifest outside the tree and must never be
    read.
    """
    root = populate_manifests(tmp_path)
    outside = tmp_path / "outside" / "secret-pod.yaml"
    emit_file(outside, "apiVersion: v1\nkind: Pod\nmetadata:\n  name: outside-pod\n")
    os.symlink(outside, root / "escape.yaml")
    return root
