# kube_select/__main__.py
from __future__ import annotations

import argparse
import logging
import sys

from kube_select.cmd.check import run_check
from kube_select.cmd.get import run_get
from kube_select.cmd.match import run_match
from kube_select.cmd.targets import run_targets


def _add_strict_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--strict",
        action="store_true",
        default=False,
        help="Also enforce label length limits and DNS prefixes (config/label_rules.yaml)",
    )


def _add_manifest_dir_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-d",
        "--manifest-dir",
        action="append",
        default=None,
        help="Directory or file holding YAML manifests (repeatable, defaults to current directory)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="kube-select",
        description="Evaluate Kubernetes label selectors against labels and manifests",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug logging and full tracebacks on errors",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available subcommands")

    # --- match subcommand ---
    match_parser = subparsers.add_parser(
        name="match", help="Evaluate a selector against a label set"
    )
    source = match_parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "-l", "--selector", dest="label_selector", default=None, help="Label selector"
    )
    source.add_argument(
        "-f",
        "--selector-file",
        default=None,
        help="YAML file with a selector string, matchExpressions list or LabelSelector",
    )
    match_parser.add_argument(
        "--labels", default="", help="Label set as key1=value1,key2=value2"
    )
    _add_strict_flag(match_parser)
    match_parser.set_defaults(func=run_match)

    # --- check subcommand ---
    check_parser = subparsers.add_parser(
        name="check", help="Validate a selector and show its requirements"
    )
    check_parser.add_argument("selector", help="Label selector")
    _add_strict_flag(check_parser)
    check_parser.set_defaults(func=run_check)

    # --- get subcommand ---
    get_parser = subparsers.add_parser(
        name="get", help="List manifests whose labels match a selector"
    )
    _add_manifest_dir_flag(get_parser)
    get_parser.add_argument(
        "-l", "--selector", dest="label_selector", default=None, help="Label selector"
    )
    get_parser.add_argument(
        "-k", "--kind", default=None, help="Resource kind (e.g. Pod, Deployment)"
    )
    get_parser.add_argument("-n", "--namespace", default=None, help="Namespace")
    _add_strict_flag(get_parser)
    get_parser.set_defaults(func=run_get)

    # --- targets subcommand ---
    targets_parser = subparsers.add_parser(
        name="targets", help="Show which resources each selector selects"
    )
    _add_manifest_dir_flag(targets_parser)
    targets_parser.add_argument("-n", "--namespace", default=None, help="Namespace")
    targets_parser.set_defaults(func=run_targets)

    return parser


def _normalise_manifest_dir(args: argparse.Namespace) -> None:
    """Ensure args.manifest_dir is always a list for commands that read manifests.

    When -d is not provided, default to the current directory.
    """
    if hasattr(args, "manifest_dir") and args.manifest_dir is None:
        args.manifest_dir = ["."]


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for kube-select."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    _configure_logging(debug=args.debug)
    _normalise_manifest_dir(args=args)

    try:
        args.func(args)
    except Exception as err:
        if getattr(args, "debug", False):
            raise
        print(f"Error: {err}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
