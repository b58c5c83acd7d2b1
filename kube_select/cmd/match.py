# kube_select/cmd/match.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import yaml

from utilities.config import load_label_rules
from utilities.labels import LabelRules, parse_label_set
from utilities.selector import Selector
from utilities.selector_parser import build_selector, parse_selector
from utilities.yaml_parser import check_file_size


def load_selector_file(path: Path, rules: LabelRules, strict: bool) -> Selector:
    """Load a selector from YAML.

    The document may be a textual selector, a ``matchExpressions`` list or a
    ``{matchLabels, matchExpressions}`` mapping. An empty file is the empty
    selector.
    """
    check_file_size(path=path)
    with open(path, encoding="utf-8") as fhandle:
        raw = yaml.safe_load(fhandle)

    if raw is None:
        return Selector()
    return build_selector(raw, rules=rules, strict=strict)


def run_match(args: argparse.Namespace) -> None:
    """Execute the ``match`` subcommand.

    Evaluates a selector given with -l (text) or -f (YAML file) against the
    label set given with --labels and prints ``true`` or ``false``.
    """
    rules = load_label_rules()

    try:
        if args.selector_file is not None:
            selector = load_selector_file(
                path=Path(args.selector_file), rules=rules, strict=args.strict
            )
        else:
            selector = parse_selector(
                selector_str=args.label_selector, rules=rules, strict=args.strict
            )
        labels = parse_label_set(args.labels, rules=rules, strict=args.strict)
    except (OSError, ValueError) as err:
        print(f"Error: {err}", file=sys.stderr)
        sys.exit(1)

    print("true" if selector.matches(labels) else "false")
