# kube_select/cmd/check.py
from __future__ import annotations

import argparse
import sys

from utilities.config import load_label_rules
from utilities.format import format_table, requirement_row
from utilities.selector_parser import parse_selector


def run_check(args: argparse.Namespace) -> None:
    """Execute the ``check`` subcommand.

    Parses the selector, then prints its canonical form and one table row
    per requirement. Exits 1 with the parse error on invalid input.
    """
    try:
        selector = parse_selector(
            selector_str=args.selector, rules=load_label_rules(), strict=args.strict
        )
    except ValueError as err:
        print(f"Error: {err}", file=sys.stderr)
        sys.exit(1)

    if selector.is_empty():
        print("Selector is empty and matches everything.")
        return

    print(f"Selector: {selector}")
    print()
    headers = ["KEY", "OPERATOR", "VALUES"]
    rows = [requirement_row(requirement) for requirement in selector]
    print(format_table(headers=headers, rows=rows))
