"""Tests for the command-line interface."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from duscan.cli import main


@pytest.fixture
def runner():
    return CliRunner()


class TestScanCommand:
    def test_report(self, runner, sample_tree):
        result = runner.invoke(main, ["scan", str(sample_tree)])

        assert result.exit_code == 0, result.output
        assert f"Scanning: {sample_tree.resolve()}" in result.output
        assert "Scan complete" in result.output
        assert "Files:       3" in result.output
        assert "Directories: 2" in result.output
        assert "Total size:  350 B" in result.output
        lines = result.output.splitlines()
        tree = lines[lines.index("100.00%      350 B root/"):]
        assert [line.split()[-1] for line in tree] == ["root/", "b", "a", "c/", "d"]

    def test_json(self, runner, sample_tree):
        result = runner.invoke(main, ["scan", str(sample_tree), "--json", "-n", "2"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["stats"] == {"files_scanned": 3, "dirs_scanned": 2, "errors": 0}
        tree = data["tree"]
        assert tree["size"] == 350
        assert [c["name"] for c in tree["children"]] == ["b", "a"]
        assert tree["other_count"] == 1
        assert tree["other_size"] == 50

    def test_top_and_depth(self, runner, sample_tree):
        result = runner.invoke(main, ["scan", str(sample_tree), "--top", "1", "--depth", "1"])

        assert result.exit_code == 0, result.output
        assert "... 2 more" in result.output
        assert " d\n" not in result.output

    def test_all_overrides_top(self, runner, make_tree):
        path = make_tree({f"f{i}": i + 1 for i in range(8)})
        result = runner.invoke(main, ["scan", str(path), "--all", "--top", "2", "-j", "1"])

        assert result.exit_code == 0, result.output
        for i in range(8):
            assert f" f{i}\n" in result.output
        assert "more" not in result.output

    def test_missing_path_fails(self, runner, tmp_path):
        result = runner.invoke(main, ["scan", str(tmp_path / "missing")])

        assert result.exit_code == 1
        assert "Failed to scan" in result.output

    def test_uses_configured_max_children(self, runner, sample_tree):
        runner.invoke(main, ["config", "scan.max_children", "1"])
        result = runner.invoke(main, ["scan", str(sample_tree), "--json"])

        tree = json.loads(result.output)["tree"]
        assert len(tree["children"]) == 1
        assert tree["other_count"] == 2


class TestConfigCommand:
    def test_list(self, runner, isolate_settings):
        result = runner.invoke(main, ["config"])

        assert result.exit_code == 0, result.output
        assert str(isolate_settings) in result.output
        assert "scan.max_children = 100" in result.output
        assert "scan.workers = null" in result.output

    def test_set_and_get(self, runner, isolate_settings):
        result = runner.invoke(main, ["config", "display.top", "9"])
        assert result.exit_code == 0, result.output
        assert json.loads(isolate_settings.read_text()) == {"display": {"top": 9}}

        result = runner.invoke(main, ["config", "display.top"])
        assert result.output.strip() == "9"

    def test_unknown_key(self, runner):
        result = runner.invoke(main, ["config", "nope", "1"])
        assert result.exit_code != 0

    @pytest.mark.parametrize(
        ("key", "value"),
        [("display.depth", "null"), ("scan.max_children", "abc"), ("display.top", "0"), ("scan.workers", "true")],
    )
    def test_rejects_invalid_values(self, runner, isolate_settings, sample_tree, key, value):
        result = runner.invoke(main, ["config", key, value])

        assert result.exit_code == 2
        assert "Invalid value" in result.output
        assert not isolate_settings.exists()

        scanned = runner.invoke(main, ["scan", str(sample_tree)])
        assert scanned.exit_code == 0, scanned.output

    def test_accepts_null_where_allowed(self, runner, make_tree):
        path = make_tree({f"f{i}": i + 1 for i in range(8)})
        runner.invoke(main, ["config", "display.top", "null"])

        result = runner.invoke(main, ["scan", str(path)])

        assert result.exit_code == 0, result.output
        assert "more" not in result.output

    def test_hand_edited_values_fall_back(self, runner, isolate_settings, sample_tree, caplog):
        isolate_settings.parent.mkdir(parents=True)
        isolate_settings.write_text(json.dumps({
            "scan": {"max_children": "abc", "workers": -3},
            "display": {"depth": None, "top": "many"},
        }))

        result = runner.invoke(main, ["scan", str(sample_tree), "--json"])

        assert result.exit_code == 0, result.output
        tree = json.loads(result.output)["tree"]
        assert [c["name"] for c in tree["children"]] == ["b", "a", "c"]

        result = runner.invoke(main, ["scan", str(sample_tree)])
        assert result.exit_code == 0, result.output
        assert result.output.rstrip().endswith("d")
        assert "Ignoring display.depth" in caplog.text
        assert "Ignoring scan.max_children" in caplog.text
