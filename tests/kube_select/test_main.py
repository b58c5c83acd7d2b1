# tests/kube_select/test_main.py
from __future__ import annotations

from pathlib import Path

import pytest

from kube_select.__main__ import build_parser, main
from tests.utils import dump_documents, emit_file


class TestBuildParser:
    """Tests for the argument parser."""

    def test_match_requires_a_selector_source(self) -> None:
        parser = build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["match", "--labels", "a=b"])

    def test_match_selector_sources_are_exclusive(self) -> None:
        parser = build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["match", "-l", "a", "-f", "sel.yaml"])

    def test_get_defaults(self) -> None:
        args = build_parser().parse_args(["get", "-l", "app=web"])
        assert args.label_selector == "app=web"
        assert args.manifest_dir is None
        assert args.kind is None
        assert args.namespace is None
        assert args.strict is False
        assert args.debug is False

    def test_repeatable_manifest_dir(self) -> None:
        args = build_parser().parse_args(["targets", "-d", "a", "-d", "b", "-n", "shop"])
        assert args.manifest_dir == ["a", "b"]
        assert args.namespace == "shop"


class TestMain:
    """Tests for main()."""

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main([])
        assert excinfo.value.code == 1
        assert "usage: kube-select" in capsys.readouterr().out

    def test_match(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["match", "-l", "app in (web,api),!legacy", "--labels", "app=api"])
        assert capsys.readouterr().out.strip() == "true"

    def test_check(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["check", "a notin (x)"])
        assert capsys.readouterr().out.startswith("Selector: a notin (x)")

    def test_get_with_manifest_dir(
        self, fake_manifests: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main(["get", "-d", str(fake_manifests), "-k", "Pod", "-l", "tier=cache"])
        output = capsys.readouterr().out
        assert "cache-1" in output
        assert "web-1" not in output

    def test_unexpected_error_exits(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        pod = {"kind": "Pod", "metadata": {"name": "p", "labels": {"enabled": True}}}
        emit_file(tmp_path / "pod.yaml", dump_documents([pod]))

        with pytest.raises(SystemExit) as excinfo:
            main(["get", "-d", str(tmp_path)])
        assert excinfo.value.code == 1
        assert "non-string value" in capsys.readouterr().err

    def test_debug_reraises(self, tmp_path: Path) -> None:
        pod = {"kind": "Pod", "metadata": {"name": "p", "labels": {"enabled": True}}}
        emit_file(tmp_path / "pod.yaml", dump_documents([pod]))

        with pytest.raises(ValueError, match="non-string value"):
            main(["--debug", "get", "-d", str(tmp_path)])
