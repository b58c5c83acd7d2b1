# utilities/format.py
from __future__ import annotations

from collections.abc import Mapping

from utilities.selector import Requirement, Selector

NONE_MARKER = "<none>"


def format_table(headers: list[str], rows: list[list[str]]) -> str:
    """Column-aligned tabular output matching ``kubectl get`` style.

    Auto-sizes columns based on content width. Left-aligns all columns.
    Headers are rendered in ALL CAPS. At least 2 spaces between columns.
    Empty cells are rendered as ``<none>``.
    """
    upper_headers = [hdr.upper() for hdr in headers]

    if not upper_headers:
        return ""

    col_count = len(upper_headers)
    cells = [
        [
            (str(row[idx]) or NONE_MARKER) if idx < len(row) else NONE_MARKER
            for idx in range(col_count)
        ]
        for row in rows
    ]

    col_widths = [len(hdr) for hdr in upper_headers]
    for row in cells:
        for idx, cell in enumerate(row):
            col_widths[idx] = max(col_widths[idx], len(cell))

    separator = "  "
    lines: list[str] = []
    for line_cells in [upper_headers, *cells]:
        # The last column is never padded, so lines carry no trailing spaces.
        parts = [
            cell.ljust(col_widths[idx]) if idx < col_count - 1 else cell
            for idx, cell in enumerate(line_cells)
        ]
        lines.append(separator.join(parts))

    return "\n".join(lines)


def format_labels(labels: Mapping[str, str]) -> str:
    """Render a label map as ``k1=v1,k2=v2`` sorted by key, like ``--show-labels``."""
    if not labels:
        return NONE_MARKER
    return ",".join(f"{key}={labels[key]}" for key in sorted(labels))


def format_selector_cell(selector: Selector) -> str:
    """Render a selector for a table cell; the empty selector selects everything."""
    return str(selector) if not selector.is_empty() else "<all>"


def requirement_row(requirement: Requirement) -> list[str]:
    """Build a KEY / OPERATOR / VALUES table row for a requirement."""
    values = ",".join(requirement.values)
    return [requirement.key, requirement.operator.value, values]
