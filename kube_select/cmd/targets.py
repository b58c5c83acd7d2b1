# kube_select/cmd/targets.py
from __future__ import annotations

import argparse
import logging
import sys
from typing import Any

from kube_select.cmd.get import load_resources
from utilities.config import SelectorField, selector_field_for_kind
from utilities.format import format_selector_cell, format_table
from utilities.selector import Selector
from utilities.yaml_parser import extract_labels, extract_metadata, extract_selector

logger = logging.getLogger(__name__)


def find_targets(
    resource: dict[str, Any],
    selector: Selector,
    selector_field: SelectorField,
    resources: list[dict[str, Any]],
) -> list[str]:
    """Return the names of the resources *selector* picks out of *resources*.

    Only kinds listed as targets for the selecting kind are considered, and
    when the field is namespaced only resources in the same namespace.
    """
    namespace = extract_metadata(resource=resource)["namespace"]
    names: list[str] = []
    for candidate in resources:
        meta = extract_metadata(resource=candidate)
        if meta["kind"] not in selector_field.targets:
            continue
        if selector_field.namespaced and meta["namespace"] != namespace:
            continue
        if selector.matches(extract_labels(resource=candidate)):
            names.append(meta["name"])
    return sorted(names)


def run_targets(args: argparse.Namespace) -> None:
    """Execute the ``targets`` subcommand.

    For every resource that carries a selector (Services, workloads,
    NetworkPolicies, ...), list the resources it selects.
    """
    try:
        resources = load_resources(directories=args.manifest_dir)
    except (FileNotFoundError, ValueError) as err:
        print(f"Error: {err}", file=sys.stderr)
        sys.exit(1)

    rows: list[list[str]] = []
    for resource in resources:
        meta = extract_metadata(resource=resource)
        if args.namespace is not None and meta["namespace"] != args.namespace:
            continue

        selector_field = selector_field_for_kind(meta["kind"])
        if selector_field is None:
            continue

        try:
            selector = extract_selector(resource=resource)
        except ValueError as err:
            print(f"Error: {meta['kind']}/{meta['name']}: {err}", file=sys.stderr)
            sys.exit(1)
        if selector is None:
            logger.debug("%s/%s has no selector", meta["kind"], meta["name"])
            continue

        targets = find_targets(
            resource=resource,
            selector=selector,
            selector_field=selector_field,
            resources=resources,
        )
        rows.append(
            [
                meta["namespace"],
                meta["kind"],
                meta["name"],
                format_selector_cell(selector),
                ",".join(targets),
            ]
        )

    if not rows:
        print("No selectors found.")
        return

    headers = ["NAMESPACE", "KIND", "NAME", "SELECTOR", "MATCHES"]
    print(format_table(headers=headers, rows=rows))
