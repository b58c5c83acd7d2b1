# kube_select/cmd/get.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

from utilities.config import load_label_rules
from utilities.format import format_labels, format_table
from utilities.paths import find_manifest_files
from utilities.selector_parser import parse_selector
from utilities.yaml_parser import extract_labels, extract_metadata, load_documents


def _dedup_key(resource: dict[str, Any]) -> tuple[str, str, str]:
    """Return a deduplication key of (namespace, kind, name) for a resource."""
    meta = extract_metadata(resource=resource)
    return (meta["namespace"], meta["kind"], meta["name"])


def load_resources(directories: list[str]) -> list[dict[str, Any]]:
    """Load and deduplicate every resource found under *directories*.

    The first occurrence of a (namespace, kind, name) wins; files are read in
    sorted order so the result is deterministic.
    """
    files = find_manifest_files(directories=[Path(dir_path) for dir_path in directories])

    seen_keys: set[tuple[str, str, str]] = set()
    resources: list[dict[str, Any]] = []
    for file_path in files:
        for resource in load_documents(path=file_path):
            key = _dedup_key(resource=resource)
            if key in seen_keys:
                continue
            seen_keys.add(key)
            resources.append(resource)
    return resources


def _kind_matches(resource: dict[str, Any], kind: str | None) -> bool:
    if kind is None:
        return True
    return str(resource.get("kind", "")).lower() == kind.lower()


def _namespace_matches(resource: dict[str, Any], namespace: str | None) -> bool:
    if namespace is None:
        return True
    return extract_metadata(resource=resource)["namespace"] == namespace


def _build_row(resource: dict[str, Any]) -> list[str]:
    """Build a NAMESPACE / KIND / NAME / LABELS table row."""
    meta = extract_metadata(resource=resource)
    return [
        meta["namespace"],
        meta["kind"],
        meta["name"],
        format_labels(extract_labels(resource=resource)),
    ]


def run_get(args: argparse.Namespace) -> None:
    """Orchestrate the 'get' command.

    Loads manifests from the given directories, keeps those whose kind,
    namespace and labels match the query, then prints a formatted table.
    """
    # Step 1: Parse the selector up front so bad input fails before any I/O.
    try:
        selector = parse_selector(
            selector_str=args.label_selector or "",
            rules=load_label_rules(),
            strict=args.strict,
        )
    except ValueError as err:
        print(f"Error: {err}", file=sys.stderr)
        sys.exit(1)

    # Step 2: Load resources.
    try:
        resources = load_resources(directories=args.manifest_dir)
    except (FileNotFoundError, ValueError) as err:
        print(f"Error: {err}", file=sys.stderr)
        sys.exit(1)

    # Step 3: Filter by kind, namespace and labels.
    matched: list[dict[str, Any]] = []
    for resource in resources:
        if not _kind_matches(resource, args.kind):
            continue
        if not _namespace_matches(resource, args.namespace):
            continue
        if selector.matches(extract_labels(resource=resource)):
            matched.append(resource)

    # Step 4: Build table and print.
    if not matched:
        if args.namespace:
            print(f"No resources found in namespace {args.namespace}.")
        else:
            print("No resources found.")
        return

    headers = ["NAMESPACE", "KIND", "NAME", "LABELS"]
    rows = [_build_row(resource) for resource in matched]
    print(format_table(headers=headers, rows=rows))
