# tests/utils.py
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from tests.constants import (
    ALLOW_ALL_POLICY_NAME,
    CACHE_1_LABELS,
    CACHE_1_NAME,
    DEPLOYMENT_NAME,
    HEADLESS_SERVICE_NAME,
    LEGACY_POLICY_NAME,
    MANIFEST_DIR_NAME,
    SERVICE_NAME,
    SHOP_NS,
    STAGING_NS,
    WEB_1_LABELS,
    WEB_1_NAME,
    WEB_2_LABELS,
    WEB_2_NAME,
    WEB_3_LABELS,
    WEB_3_NAME,
)


def emit_file(path: Path, content: str) -> None:
    """Create parent directories and write *content* to *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def dump_documents(resources: list[dict[str, Any]]) -> str:
    """Render resources as a multi-document YAML stream."""
    return yaml.dump_all(resources, default_flow_style=False, sort_keys=False)


def build_pod(
    name: str, namespace: str, labels: dict[str, str] | None = None
) -> dict[str, Any]:
    """Return a minimal Pod resource dict.

    Args:
        name: Pod name.
        namespace: Pod namespace.
        labels: Label dict. Defaults to ``{"app": name}``.
    """
    if labels is None:
        labels = {"app": name}
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": name, "namespace": namespace, "labels": labels},
        "spec": {"containers": [{"name": "main", "image": f"registry.test/{name}"}]},
    }


def build_pod_list(pods: list[dict[str, Any]]) -> dict[str, Any]:
    """Return a PodList wrapping *pods*."""
    return {
        "apiVersion": "v1",
        "kind": "PodList",
        "metadata": {"resourceVersion": "99999"},
        "items": pods,
    }


def build_deployment(
    name: str,
    namespace: str,
    match_labels: dict[str, str] | None = None,
    match_expressions: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Return a Deployment whose spec.selector is a LabelSelector."""
    selector: dict[str, Any] = {}
    if match_labels is not None:
        selector["matchLabels"] = match_labels
    if match_expressions is not None:
        selector["matchExpressions"] = match_expressions
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": name, "namespace": namespace, "labels": {"app": name}},
        "spec": {
            "replicas": 2,
            "selector": selector,
            "template": {
                "metadata": {"labels": dict(match_labels or {})},
                "spec": {"containers": [{"name": "main", "image": "registry.test/web"}]},
            },
        },
    }


def build_service(
    name: str, namespace: str, selector: dict[str, str] | None = None
) -> dict[str, Any]:
    """Return a Service; *selector* None leaves spec.selector out entirely."""
    spec: dict[str, Any] = {"ports": [{"port": 80, "targetPort": 8080}]}
    if selector is not None:
        spec["selector"] = selector
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": name, "namespace": namespace, "labels": {"app": name}},
        "spec": spec,
    }


def build_network_policy(
    name: str, namespace: str, pod_selector: dict[str, Any]
) -> dict[str, Any]:
    """Return a NetworkPolicy with the given podSelector."""
    return {
        "apiVersion": "networking.k8s.io/v1",
        "kind": "NetworkPolicy",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"podSelector": pod_selector, "policyTypes": ["Ingress"]},
    }


def populate_manifests(base_path: Path) -> Path:
    """Build a fake manifest tree and return its root.

    Layout under ``<base_path>/manifests/``::

        web/deployment.yaml     Deployment web (matchLabels + matchExpressions)
        web/pods.yaml           web-1, web-2 (multi-document)
        web/service.yml         Services web and headless (no selector)
        cache/pods.yaml         PodList holding cache-1
        staging/web-3.yaml      web-3 in another namespace
        policies.yaml           NetworkPolicies deny-legacy and allow-all
        .hidden/ignored.yaml    never read
    """
    root = base_path / MANIFEST_DIR_NAME

    emit_file(
        root / "web" / "deployment.yaml",
        dump_documents(
            [
                build_deployment(
                    DEPLOYMENT_NAME,
                    SHOP_NS,
                    match_labels={"app": "web"},
                    match_expressions=[
                        {"key": "tier", "operator": "In", "values": ["frontend"]},
                    ],
                )
            ]
        ),
    )
    emit_file(
        root / "web" / "pods.yaml",
        dump_documents(
            [
                build_pod(WEB_1_NAME, SHOP_NS, labels=WEB_1_LABELS),
                build_pod(WEB_2_NAME, SHOP_NS, labels=WEB_2_LABELS),
            ]
        ),
    )
    emit_file(
        root / "web" / "service.yml",
        dump_documents(
            [
                build_service(SERVICE_NAME, SHOP_NS, selector={"app": "web"}),
                build_service(HEADLESS_SERVICE_NAME, SHOP_NS),
            ]
        ),
    )
    emit_file(
        root / "cache" / "pods.yaml",
        dump_documents(
            [build_pod_list([build_pod(CACHE_1_NAME, SHOP_NS, labels=CACHE_1_LABELS)])]
        ),
    )
    emit_file(
        root / "staging" / "web-3.yaml",
        dump_documents([build_pod(WEB_3_NAME, STAGING_NS, labels=WEB_3_LABELS)]),
    )
    emit_file(
        root / "policies.yaml",
        dump_documents(
            [
                build_network_policy(
                    LEGACY_POLICY_NAME,
                    SHOP_NS,
                    {"matchExpressions": [{"key": "legacy", "operator": "Exists"}]},
                ),
                build_network_policy(ALLOW_ALL_POLICY_NAME, SHOP_NS, {}),
            ]
        ),
    )
    emit_file(
        root / ".hidden" / "ignored.yaml",
        dump_documents([build_pod("hidden-pod", SHOP_NS, labels={"app": "web"})]),
    )

    return root
