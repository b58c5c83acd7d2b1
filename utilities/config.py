# utilities/config.py
from __future__ import annotations

import functools
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from utilities.labels import LabelRules

SELECTOR_FORMS: frozenset[str] = frozenset({"labelSelector", "map"})


@dataclass(frozen=True)
class SelectorField:
    """Where a resource kind keeps its selector and what the selector picks."""

    kind: str
    path: tuple[str, ...]
    form: str
    targets: tuple[str, ...]
    namespaced: bool = True


def config_dir() -> Path:
    """Return the path to the config/ directory at the project root."""
    return Path(__file__).parent.parent / "config"


def _load_yaml_mapping(config_path: Path) -> dict:
    with open(config_path, encoding="utf-8") as fhandle:
        raw = yaml.safe_load(fhandle)

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(
            f"Expected a YAML mapping in {config_path}, got {type(raw).__name__}"
        )
    return raw


@functools.lru_cache(maxsize=4)
def load_label_rules(config_path: Path | None = None) -> LabelRules:
    """Load config/label_rules.yaml into a LabelRules.

    Missing keys keep their LabelRules defaults; unknown keys raise ValueError.
    """
    if config_path is None:
        config_path = config_dir() / "label_rules.yaml"

    raw = _load_yaml_mapping(config_path)

    known = {field.name for field in fields(LabelRules)}
    unknown = sorted(str(key) for key in raw if key not in known)
    if unknown:
        raise ValueError(f"Unknown label rule(s) in {config_path}: {', '.join(unknown)}")

    for key in ("max_prefix_length", "max_name_length", "max_value_length"):
        value = raw.get(key, 1)
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValueError(f"{key} in {config_path} must be a positive integer")
    if "name_extra_chars" in raw:
        raw["name_extra_chars"] = str(raw["name_extra_chars"])

    return LabelRules(**raw)


@functools.lru_cache(maxsize=4)
def load_selector_fields(config_path: Path | None = None) -> dict[str, SelectorField]:
    """Load config/selector_fields.yaml and build a kind -> SelectorField lookup."""
    if config_path is None:
        config_path = config_dir() / "selector_fields.yaml"

    raw = _load_yaml_mapping(config_path)

    selector_fields: dict[str, SelectorField] = {}
    for kind, details in raw.items():
        if not isinstance(details, dict):
            continue

        form = details.get("form", "labelSelector")
        if form not in SELECTOR_FORMS:
            raise ValueError(
                f"{kind}: unknown selector form {form!r} in {config_path}"
            )

        path = str(details.get("path", "spec.selector"))
        targets = details.get("targets") or []

        selector_fields[str(kind)] = SelectorField(
            kind=str(kind),
            path=tuple(path.split(".")),
            form=form,
            targets=tuple(str(target) for target in targets),
            namespaced=bool(details.get("namespaced", True)),
        )

    return selector_fields


def selector_field_for_kind(
    kind: str, config_path: Path | None = None
) -> SelectorField | None:
    """Return the SelectorField for *kind*, or None if the kind has no selector."""
    return load_selector_fields(config_path=config_path).get(kind)
