# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

from ngxgen.driver import main

FIXTURES = Path(__file__).resolve().parents[1] / "fixtures"


def test_writes_catalog(tmp_path: Path) -> None:
	out = tmp_path / "out" / "directives.json"
	assert main([str(FIXTURES / "normal"), "-o", str(out)]) == 0
	doc = json.loads(out.read_text())
	assert [d["name"] for d in doc["directives"]] == [
		"my_directive_1",
		"my_directive_2",
		"my_directive_3",
		"my_directive_4",
	]


def test_catalog_goes_to_stdout_without_output(capsys) -> None:
	assert main([str(FIXTURES / "repeat_define")]) == 0
	doc = json.loads(capsys.readouterr().out)
	assert [d["name"] for d in doc["directives"]] == ["my_directive_1", "my_directive_2"]


def test_unknown_bitmask_json_report(capsys) -> None:
	assert main([str(FIXTURES / "unknown_bitmask"), "--json"]) == 1
	report = json.loads(capsys.readouterr().out)
	assert report["exit_code"] == 1
	codes = [d["code"] for d in report["diagnostics"]]
	assert codes == ["E-MASK-UNKNOWN-TOKEN"]
	assert "FAKE_BITMASK" in report["diagnostics"][0]["message"]


def test_human_diagnostics_on_stderr(capsys) -> None:
	assert main([str(FIXTURES / "no_sentinel")]) == 1
	captured = capsys.readouterr()
	assert "mixed_tables.c:1:" in captured.err
	assert "E-TABLE-NO-SENTINEL" in captured.err
	assert "kept_directive" in captured.out


def test_strict_mode_fails_on_override(capsys) -> None:
	assert main([str(FIXTURES / "override"), "--json"]) == 0
	report = json.loads(capsys.readouterr().out)
	assert len(report["overrides"]) == 1
	assert main([str(FIXTURES / "override"), "--json", "--strict"]) == 1


def test_filter_and_override_flags(tmp_path: Path) -> None:
	out = tmp_path / "directives.json"
	code = main(
		[
			str(FIXTURES / "normal"),
			"--filter",
			"my_directive_2",
			"--override",
			"my_directive_1:NGX_HTTP_LOC_CONF|NGX_CONF_ANY",
			"-o",
			str(out),
		]
	)
	assert code == 0
	doc = json.loads(out.read_text())
	by_name = {d["name"]: d for d in doc["directives"]}
	assert "my_directive_2" not in by_name
	assert by_name["my_directive_1"]["scopes"] == ["HTTP_LOC"]
	assert by_name["my_directive_1"]["arity"] == "ANY"


def test_config_file_and_custom_tokens(tmp_path: Path) -> None:
	(tmp_path / "tokens.json").write_text(
		json.dumps({"extends_default": True, "tokens": {"FAKE_BITMASK": {"arity": "TAKE5"}}})
	)
	(tmp_path / "gen.json").write_text(json.dumps({"tokens": "tokens.json", "filter": ["my_directive_3"]}))
	out = tmp_path / "directives.json"
	assert main([str(FIXTURES / "unknown_bitmask"), "-c", str(tmp_path / "gen.json"), "-o", str(out)]) == 0
	doc = json.loads(out.read_text())
	assert [(d["name"], d["arity"]) for d in doc["directives"]] == [
		("my_directive_1", "TAKE5"),
		("my_directive_2", "FLAG"),
	]


def test_bad_config_exits_2(tmp_path: Path, capsys) -> None:
	cfg = tmp_path / "gen.json"
	cfg.write_text("{broken")
	assert main([str(FIXTURES / "normal"), "-c", str(cfg)]) == 2
	assert "E-CONFIG" in capsys.readouterr().err


def test_missing_source_path_exits_2(tmp_path: Path) -> None:
	assert main([str(tmp_path / "nope")]) == 2


def test_no_directives_found(tmp_path: Path, capsys) -> None:
	(tmp_path / "empty.c").write_text("int main(void) { return 0; }\n")
	assert main([str(tmp_path), "--json"]) == 1
	report = json.loads(capsys.readouterr().out)
	assert [d["code"] for d in report["diagnostics"]] == ["E-NO-DIRECTIVES"]


def test_unreadable_source_exits_2(tmp_path: Path, monkeypatch, capsys) -> None:
	src = tmp_path / "locked.c"
	src.write_text("")
	original = Path.read_text

	def _read_text(self, *args, **kwargs):
		if self == src:
			raise PermissionError(13, "Permission denied", str(self))
		return original(self, *args, **kwargs)

	monkeypatch.setattr(Path, "read_text", _read_text)
	assert main([str(tmp_path), "--json"]) == 2
	report = json.loads(capsys.readouterr().out)
	assert report["exit_code"] == 2
	assert "locked.c" in report["diagnostics"][0]["message"]
