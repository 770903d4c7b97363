"""Tests for rollup registry CLI — proves CLI dispatches correctly."""

import json
from pathlib import Path

import pytest

from conftest import CONFIG_ADDRESS, CREATED_TS, make_document
from rollup_registry.cli import _previous_is_proposed, build_parser, main
from rollup_registry.service import RegistryService


def _write(root: Path, document) -> Path:
    path = root / "data" / "sepolia" / f"{CONFIG_ADDRESS}.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


class TestCLIParsing:
    def test_validate_command(self) -> None:
        args = build_parser().parse_args([
            "validate", "data/sepolia/x.json",
            "--pr-title", "[Rollup] sepolia 0x... - L2", "--no-previous",
        ])
        assert args.command == "validate"
        assert args.file == Path("data/sepolia/x.json")
        assert args.no_previous
        assert args.operation is None

    def test_previous_sources_exclusive(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([
                "validate", "x.json", "--previous-dir", ".", "--no-previous",
            ])

    def test_operation_choices(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["signature", "x.json", "--operation", "delete"])

    def test_message_defaults(self) -> None:
        args = build_parser().parse_args(["message", "x.json"])
        assert args.operation == "register"
        assert args.timestamp is None


class TestCLIExecution:
    def test_no_command_shows_help(self) -> None:
        assert main([]) == 0

    def test_schema_pass(self, tmp_path: Path, capsys) -> None:
        assert main(["schema", str(_write(tmp_path, make_document()))]) == 0
        assert "PASSED" in capsys.readouterr().out

    def test_schema_fail(self, tmp_path: Path, capsys) -> None:
        document = make_document()
        del document["name"]
        assert main(["schema", str(_write(tmp_path, document))]) == 1
        assert "'name' is a required property" in capsys.readouterr().err

    def test_message(self, tmp_path: Path, capsys) -> None:
        path = _write(tmp_path, make_document())
        assert main(["message", str(path), "--operation", "register"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("Tokamak Rollup Registry\n")
        assert f"Timestamp: {CREATED_TS}" in out

    def test_message_explicit_timestamp(self, tmp_path: Path, capsys) -> None:
        path = _write(tmp_path, make_document())
        assert main(["message", str(path), "--timestamp", "1700000000"]) == 0
        assert "Timestamp: 1700000000" in capsys.readouterr().out

    def test_missing_file(self, tmp_path: Path) -> None:
        assert main(["schema", str(tmp_path / "missing.json")]) == 1


class TestPreviousDir:
    def test_working_tree_rejected(self, tmp_path: Path, capsys) -> None:
        path = _write(tmp_path, make_document())
        code = main(["validate", str(path), "--operation", "update", "--previous-dir", str(tmp_path)])
        assert code == 1
        assert "contains the proposed file itself" in capsys.readouterr().err

    def test_relative_paths_compared_resolved(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        _write(tmp_path, make_document())
        monkeypatch.chdir(tmp_path)
        relative = Path("data") / "sepolia" / f"{CONFIG_ADDRESS}.json"
        assert _previous_is_proposed(RegistryService(), Path("."), relative)

    def test_separate_checkout_accepted(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "proposed", make_document())
        _write(tmp_path / "accepted", make_document())
        assert not _previous_is_proposed(RegistryService(), tmp_path / "accepted", path)
