"""
End-to-end tests for the command line interface.
"""

import json

import pytest
from click.testing import CliRunner

from commit_timeline import SCHEMA_VERSION, VERSION
from commit_timeline.cli import main
from conftest import SAMPLE_ROWS, SECOND_ID, write_csv


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def events_json(tmp_path):
    path = tmp_path / "events.json"
    path.write_text(
        json.dumps(
            [
                {"type": "slider", "position": 0},
                {"type": "step", "commit": SECOND_ID},
                {"type": "hover", "commit": SECOND_ID, "pointer": [40, 60]},
            ]
        )
    )
    return path


class TestSummary:
    def test_summary(self, runner, loc_csv):
        result = runner.invoke(main, ["summary", str(loc_csv), "--no-color"])

        assert result.exit_code == 0, result.output
        assert "Commits: 3" in result.output
        assert "Total LOC: 7" in result.output
        assert "Authors: Alice (2), Bob (1)" in result.output
        assert "First commit: February 10, 2024 at 9:15 AM" in result.output

    def test_quiet(self, runner, loc_csv):
        result = runner.invoke(main, ["summary", str(loc_csv), "-q"])

        assert result.exit_code == 0
        assert "Commits: 3" not in result.output

    def test_malformed_dataset(self, runner, tmp_path):
        rows = list(SAMPLE_ROWS)
        rows[0] = rows[0][:9] + ("deep",) + rows[0][10:]
        path = write_csv(tmp_path / "loc.csv", rows)

        result = runner.invoke(main, ["summary", str(path), "--no-color"])

        assert result.exit_code == 1
        assert "ERROR" in result.output
        assert "depth" in result.output

    def test_missing_dataset(self, runner, tmp_path):
        result = runner.invoke(main, ["summary", str(tmp_path / "nope.csv")])
        assert result.exit_code == 2

    def test_bad_config_file(self, runner, loc_csv, tmp_path):
        config_path = tmp_path / "bad.yaml"
        config_path.write_text("colour: red\n")

        result = runner.invoke(
            main, ["summary", str(loc_csv), "--config", str(config_path), "--no-color"]
        )
        assert result.exit_code == 1
        assert "ERROR" in result.output

    def test_discovered_config_is_reported(self, runner, loc_csv):
        (loc_csv.parent / ".commit-timeline.yaml").write_text("initial_progress: 50\n")

        result = runner.invoke(main, ["summary", str(loc_csv), "--no-color"])

        assert result.exit_code == 0, result.output
        assert "Using configuration" in result.output
        assert ".commit-timeline.yaml" in result.output

    def test_empty_dataset_warns(self, runner, tmp_path):
        path = write_csv(tmp_path / "loc.csv", [])

        result = runner.invoke(main, ["summary", str(path), "--no-color"])

        assert result.exit_code == 0, result.output
        assert "contains no commits" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert VERSION in result.output


class TestExport:
    def test_writes_every_view(self, runner, loc_csv, tmp_path):
        out = tmp_path / "out"
        result = runner.invoke(main, ["export", str(loc_csv), "-o", str(out), "--no-color"])

        assert result.exit_code == 0, result.output
        for name in ["commits.json", "snapshot.json", "scatter.svg", "index.html", "manifest.json"]:
            assert (out / name).exists()

        commits = json.loads((out / "commits.json").read_text())
        assert len(commits) == 3

        snapshot = json.loads((out / "snapshot.json").read_text())
        assert snapshot["stats"]["commits"] == 3
        assert snapshot["slider"]["position"] == 100
        assert snapshot["schema_version"] == SCHEMA_VERSION

    def test_manifest_checksums(self, runner, loc_csv, tmp_path):
        out = tmp_path / "out"
        runner.invoke(main, ["export", str(loc_csv), "-o", str(out), "-q"])

        manifest = json.loads((out / "manifest.json").read_text())
        assert manifest["generator_version"] == VERSION
        assert set(manifest["outputs"]) == {"commits", "snapshot", "scatter", "page"}
        assert len(manifest["outputs"]["scatter"]["sha256"]) == 64

    def test_progress_zero(self, runner, loc_csv, tmp_path):
        out = tmp_path / "out"
        result = runner.invoke(
            main, ["export", str(loc_csv), "-o", str(out), "--progress", "0", "--no-color"]
        )

        assert result.exit_code == 0, result.output
        assert "Visible commits: 0 / 3" in result.output
        snapshot = json.loads((out / "snapshot.json").read_text())
        assert snapshot["stats"] == {
            "commits": 0,
            "files": 0,
            "total_lines": 0,
            "max_depth": 0,
            "longest_line": 0,
            "max_lines": 0,
        }
        assert snapshot["scatter"]["markers"] == []

    def test_brush(self, runner, loc_csv, tmp_path):
        out = tmp_path / "out"
        result = runner.invoke(
            main,
            ["export", str(loc_csv), "-o", str(out), "--brush", "0,0,1000,600", "--no-color"],
        )

        assert result.exit_code == 0, result.output
        assert "Selection: 3 commits selected" in result.output

    def test_bad_brush(self, runner, loc_csv, tmp_path):
        result = runner.invoke(
            main, ["export", str(loc_csv), "-o", str(tmp_path), "--brush", "1,2,3"]
        )
        assert result.exit_code == 2

    def test_nan_progress(self, runner, loc_csv, tmp_path):
        result = runner.invoke(
            main, ["export", str(loc_csv), "-o", str(tmp_path / "out"), "--progress", "nan"]
        )
        assert result.exit_code == 2
        assert "finite" in result.output

    def test_repo_url(self, runner, loc_csv, tmp_path):
        out = tmp_path / "out"
        runner.invoke(
            main,
            ["export", str(loc_csv), "-o", str(out), "-q", "--repo-url", "https://host/repo"],
        )

        commits = json.loads((out / "commits.json").read_text())
        assert commits[0]["url"] == "https://host/repo/commit/a1b2c3d4e5"

    def test_compact_preset(self, runner, loc_csv, tmp_path):
        out = tmp_path / "out"
        runner.invoke(main, ["export", str(loc_csv), "-o", str(out), "-q", "--preset", "compact"])

        snapshot = json.loads((out / "snapshot.json").read_text())
        assert snapshot["scatter"]["width"] == 640


class TestReplay:
    def test_records_every_state(self, runner, loc_csv, events_json, tmp_path):
        out = tmp_path / "out"
        result = runner.invoke(
            main, ["replay", str(loc_csv), str(events_json), "-o", str(out), "--no-color"]
        )

        assert result.exit_code == 0, result.output
        states = json.loads((out / "states.json").read_text())
        assert [s["message"] for s in states] == ["SliderMoved", "StepEntered", "Hovered"]
        assert states[0]["stats"]["commits"] == 0
        assert states[1]["stats"]["commits"] == 2
        assert states[2]["tooltip"]["short_id"] == "b2c3d4e"
        assert (out / "index.html").exists()

        manifest = json.loads((out / "manifest.json").read_text())
        assert "states" in manifest["outputs"]

    def test_unknown_commit(self, runner, loc_csv, tmp_path):
        events = tmp_path / "events.json"
        events.write_text(json.dumps([{"type": "step", "commit": "deadbeef"}]))

        result = runner.invoke(
            main, ["replay", str(loc_csv), str(events), "-o", str(tmp_path / "out"), "-q"]
        )

        assert result.exit_code == 1
        assert "Unknown commit: deadbeef" in result.output

    def test_invalid_script(self, runner, loc_csv, tmp_path):
        events = tmp_path / "events.yaml"
        events.write_text("- type: slider\n")

        result = runner.invoke(
            main, ["replay", str(loc_csv), str(events), "-o", str(tmp_path / "out"), "-q"]
        )

        assert result.exit_code == 1
        assert "Invalid event script" in result.output

    def test_nan_slider_position(self, runner, loc_csv, tmp_path):
        events = tmp_path / "events.yaml"
        events.write_text("- {type: slider, position: .nan}\n")

        result = runner.invoke(
            main, ["replay", str(loc_csv), str(events), "-o", str(tmp_path / "out"), "-q"]
        )

        assert result.exit_code == 1
        assert "finite" in result.output
        assert "Traceback" not in result.output
