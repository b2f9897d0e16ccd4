# tests/test_cli.py
"""
Tests for the command-line front end.
"""

import json

import pytest

from tsanalysis_shims.cli import (
    EXIT_ERROR,
    EXIT_INFRA,
    EXIT_OK,
    collect_source_files,
    load_rule_options,
    main,
)
from tsanalysis_shims.errors import ConfigurationError


@pytest.fixture
def project(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    (src / "clean.ts").write_text(
        "// @ts-expect-error: the upstream types are wrong\nfoo();\n",
        encoding="utf-8",
    )
    (src / "dirty.ts").write_text("// @ts-ignore\nbar();\n", encoding="utf-8")
    modules = src / "node_modules" / "dep"
    modules.mkdir(parents=True)
    (modules / "index.ts").write_text("// @ts-nocheck\n", encoding="utf-8")
    (src / "notes.md").write_text("// @ts-ignore\n", encoding="utf-8")
    return tmp_path


class TestCollectSourceFiles:

    def test_directory_walk(self, project):
        files = collect_source_files([str(project / "src")])
        assert [f.name for f in files] == ["clean.ts", "dirty.ts"]

    def test_explicit_file_kept(self, project):
        files = collect_source_files([str(project / "src" / "notes.md")])
        assert [f.name for f in files] == ["notes.md"]


class TestLoadRuleOptions:

    def test_preset(self):
        options = load_rule_options(preset="strict")
        level, policy = options["ban-ts-comment"]
        assert level == "error"
        assert policy["ts-ignore"] is True

    def test_unknown_preset(self):
        with pytest.raises(ConfigurationError):
            load_rule_options(preset="lenient")

    def test_bare_policy_object(self, tmp_path):
        path = tmp_path / "lint.json"
        path.write_text(json.dumps({"ts-ignore": False}), encoding="utf-8")
        assert load_rule_options(str(path)) == {"ban-ts-comment": {"ts-ignore": False}}

    def test_rules_wrapper(self, tmp_path):
        path = tmp_path / "lint.json"
        path.write_text(
            json.dumps({"rules": {"ban-ts-comment": "warn"}}), encoding="utf-8"
        )
        assert load_rule_options(str(path)) == {"ban-ts-comment": "warn"}

    def test_config_overrides_preset(self, tmp_path):
        path = tmp_path / "lint.json"
        path.write_text(json.dumps({"ban-ts-comment": "off"}), encoding="utf-8")
        options = load_rule_options(str(path), preset="recommended")
        assert options == {"ban-ts-comment": "off"}

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "lint.json"
        path.write_text("{nope", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_rule_options(str(path))


class TestLintCommand:

    def test_errors_exit_one(self, project, capsys):
        assert main(["lint", str(project / "src")]) == EXIT_ERROR
        out = capsys.readouterr().out
        assert "dirty.ts:1:1: error:" in out
        assert "[tsIgnoreInsteadOfExpectError]" in out
        assert "clean.ts" not in out

    def test_clean_exit_zero(self, project):
        assert main(["lint", str(project / "src" / "clean.ts")]) == EXIT_OK

    def test_json_output(self, project, capsys):
        main(["lint", str(project / "src"), "--output", "json"])
        (line,) = capsys.readouterr().out.splitlines()
        record = json.loads(line)
        assert record["messageId"] == "tsIgnoreInsteadOfExpectError"
        assert record["file"].endswith("dirty.ts")

    def test_summary_output(self, project, capsys):
        main(["lint", str(project / "src"), "--output", "summary"])
        assert "Checked 2 file(s): 1 diagnostics" in capsys.readouterr().out

    def test_output_file(self, project, tmp_path):
        target = tmp_path / "out" / "report.txt"
        main(["lint", str(project / "src"), "-o", str(target)])
        assert "tsIgnoreInsteadOfExpectError" in target.read_text(encoding="utf-8")

    def test_warn_config_exits_zero(self, project, tmp_path):
        config = tmp_path / "lint.json"
        config.write_text(json.dumps({"ban-ts-comment": "warn"}), encoding="utf-8")
        assert main(["lint", str(project / "src"), "--config", str(config)]) == EXIT_OK

    def test_invalid_pattern_is_infra_failure(self, project, tmp_path):
        config = tmp_path / "lint.json"
        config.write_text(
            json.dumps({"ts-expect-error": {"descriptionFormat": "(unclosed"}}),
            encoding="utf-8",
        )
        code = main(["lint", str(project / "src"), "--config", str(config)])
        assert code == EXIT_INFRA

    def test_missing_path(self, tmp_path):
        assert main(["lint", str(tmp_path / "absent.ts")]) == EXIT_INFRA

    def test_no_paths(self):
        assert main(["lint"]) == EXIT_INFRA

    def test_apply_suggestions(self, tmp_path):
        legacy = tmp_path / "legacy.ts"
        legacy.write_text(
            "/* @ts-ignore */ a();\n// @ts-ignore old typings\nb();\n",
            encoding="utf-8",
        )
        assert main(["lint", str(legacy), "--apply-suggestions"]) == EXIT_ERROR
        assert legacy.read_text(encoding="utf-8") == (
            "/* @ts-expect-error */ a();\n// @ts-expect-error old typings\nb();\n"
        )
        # The bare block directive still lacks a description.
        assert main(["lint", str(legacy)]) == EXIT_ERROR
        legacy.write_text("// @ts-expect-error old typings\nb();\n", encoding="utf-8")
        assert main(["lint", str(legacy)]) == EXIT_OK

    def test_list_checkers(self, capsys):
        assert main(["lint", "--list-checkers"]) == EXIT_OK
        out = capsys.readouterr().out
        assert "ban-ts-comment" in out
        assert "tsDirectiveComment" in out


class TestClassifyCommand:

    DUMP = {
        "types": [
            {"id": 1, "flags": ["Any"], "intrinsicName": "any"},
            {"id": 2, "flags": ["Object"], "symbol": "Array"},
            {"id": 3, "flags": ["Object"], "objectFlags": ["Reference"],
             "target": 2, "typeArguments": [1]},
            {"id": 4, "flags": ["Null"]},
        ]
    }

    def _write(self, tmp_path, data):
        path = tmp_path / "types.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return str(path)

    def test_rows(self, tmp_path, capsys):
        assert main(["classify", self._write(tmp_path, self.DUMP)]) == EXIT_OK
        rows = [json.loads(l) for l in capsys.readouterr().out.splitlines()]
        assert [r["id"] for r in rows] == [1, 2, 3, 4]
        assert rows[0]["any"] is True
        assert rows[2]["anyArray"] is True
        assert rows[2]["typeReference"] is True
        assert rows[3]["nullable"] is True
        assert "isOrHasBaseType" not in rows[0]

    def test_base_type(self, tmp_path, capsys):
        main(["classify", self._write(tmp_path, self.DUMP), "--base-type", "2"])
        rows = [json.loads(l) for l in capsys.readouterr().out.splitlines()]
        assert rows[1]["isOrHasBaseType"] is True
        assert rows[3]["isOrHasBaseType"] is False

    def test_unknown_base_type(self, tmp_path):
        code = main(["classify", self._write(tmp_path, self.DUMP), "--base-type", "99"])
        assert code == EXIT_INFRA

    def test_bad_dump(self, tmp_path):
        assert main(["classify", self._write(tmp_path, {"types": "x"})]) == EXIT_INFRA

    def test_non_integer_id(self, tmp_path):
        dump = {"types": [{"id": "seven", "flags": ["Any"]}]}
        assert main(["classify", self._write(tmp_path, dump)]) == EXIT_INFRA


class TestMain:

    def test_no_command(self):
        assert main([]) == EXIT_INFRA
