# utilities/yaml_parser.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from utilities.config import selector_field_for_kind
from utilities.selector import Selector
from utilities.selector_parser import parse_label_selector

logger = logging.getLogger(__name__)

# Maximum manifest file size for YAML parsing: 100MB
MAX_YAML_SIZE: int = 100 * 1024 * 1024


def check_file_size(path: Path) -> None:
    """Raise ValueError if file exceeds MAX_YAML_SIZE.

    Called before every YAML load to prevent memory exhaustion from
    excessively large files.
    """
    file_size = path.stat().st_size
    if file_size > MAX_YAML_SIZE:
        raise ValueError(
            f"File {path} is {file_size} bytes, exceeding the maximum allowed size of {MAX_YAML_SIZE} bytes (100MB)"
        )


def _flatten(document: dict[str, Any], path: Path) -> list[dict[str, Any]]:
    """Expand a *List kind (PodList, List, ...) into its items."""
    kind = document.get("kind", "")
    if not (isinstance(kind, str) and kind.endswith("List")):
        return [document]

    items = document.get("items")
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValueError(
            f"Expected 'items' to be a list in {path}, got {type(items).__name__}"
        )
    return [item for item in items if isinstance(item, dict)]


def load_documents(path: Path) -> list[dict[str, Any]]:
    """Load every resource from a (possibly multi-document) YAML file.

    Uses yaml.safe_load_all() exclusively. Empty documents are skipped and
    *List kinds are expanded into their items.
    """
    check_file_size(path=path)
    content = path.read_text(encoding="utf-8")

    resources: list[dict[str, Any]] = []
    for document in yaml.safe_load_all(content):
        if document is None:
            continue
        if not isinstance(document, dict):
            raise ValueError(
                f"Expected a YAML mapping in {path}, got {type(document).__name__}"
            )
        resources.extend(_flatten(document, path))

    logger.debug("Loaded %d resource(s) from %s", len(resources), path)
    return resources


def extract_metadata(resource: dict[str, Any]) -> dict[str, Any]:
    """Extract common metadata fields from a Kubernetes resource dict.

    Returns a dict with keys: name, namespace, labels, kind, apiVersion.
    Missing fields default to empty string or empty dict (for labels).
    """
    metadata = resource.get("metadata", {}) or {}
    return {
        "name": metadata.get("name", ""),
        "namespace": metadata.get("namespace", ""),
        "labels": metadata.get("labels") or {},
        "kind": resource.get("kind", ""),
        "apiVersion": resource.get("apiVersion", ""),
    }


def extract_labels(resource: dict[str, Any]) -> dict[str, str]:
    """Return the label map of a resource.

    Raises ValueError when labels is not a mapping or holds non-string values
    (e.g. an unquoted ``true`` or ``1`` in the manifest).
    """
    meta = extract_metadata(resource=resource)
    labels = meta["labels"]
    if not isinstance(labels, Mapping):
        raise ValueError(
            f"{meta['kind']}/{meta['name']}: labels must be a mapping, got {type(labels).__name__}"
        )

    for key, value in labels.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise ValueError(
                f"{meta['kind']}/{meta['name']}: label {key!r} has non-string value {value!r}"
            )
    return dict(labels)


def _lookup(resource: dict[str, Any], path: tuple[str, ...]) -> Any:
    node: Any = resource
    for part in path:
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def extract_selector(
    resource: dict[str, Any], config_path: Path | None = None
) -> Selector | None:
    """Return the Selector a resource carries, per config/selector_fields.yaml.

    Returns None when the kind has no selector field or the field is absent.
    An empty labelSelector (e.g. ``podSelector: {}``) selects everything, while
    an empty map-form selector (a Service's ``selector: {}``) means no selector.
    """
    meta = extract_metadata(resource=resource)
    selector_field = selector_field_for_kind(meta["kind"], config_path=config_path)
    if selector_field is None:
        return None

    raw = _lookup(resource, selector_field.path)
    if raw is None:
        return None

    if selector_field.form == "map":
        if not isinstance(raw, Mapping):
            raise ValueError(
                f"{'.'.join(selector_field.path)} must be a mapping, got {type(raw).__name__}"
            )
        if not raw:
            return None
        return parse_label_selector({"matchLabels": raw})
    return parse_label_selector(raw)
