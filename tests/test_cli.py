"""
tests/test_cli.py - Command Line Interface Tests

Exit codes: 0 success, 1 validation failure, 2 fatal error.
"""

import base64
import json

import pytest
from click.testing import CliRunner

from abcsim.cli import main
from abcsim.types_config import PRESETS


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def good_config(tmp_path):
    path = tmp_path / "params.yaml"
    path.write_text("preset: quantum_entanglement\nnABC: 4\ndensity: 1\n")
    return path


class TestPresets:

    def test_json(self, runner):
        result = runner.invoke(main, ["presets", "-o", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["black_hole"]["central_mass"] == 15.0

    def test_rich_names_not_truncated(self, runner):
        result = runner.invoke(main, ["presets"])
        assert result.exit_code == 0
        for name in PRESETS:
            assert name in result.output
        assert "…" not in result.output


class TestRun:

    def test_json_output(self, runner):
        result = runner.invoke(main, ["run", "--ticks", "5", "--seed", "3", "-o", "json", "--check"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["seed"] == 3
        assert data["ticks"] == 5
        assert data["violations"] == []
        assert data["metrics"]["node_count"] == 300

    def test_config_and_receipts(self, runner, good_config, tmp_path):
        receipts = tmp_path / "receipts.jsonl"
        result = runner.invoke(main, [
            "run", "-c", str(good_config), "-t", "3", "-s", "1",
            "--receipts", str(receipts), "-o", "json",
        ])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["metrics"]["node_count"] == 12
        lines = receipts.read_text().splitlines()
        assert len(lines) == data["receipt_count"]
        assert all("payload_hash" in json.loads(line) for line in lines)

    def test_rich_output(self, runner):
        result = runner.invoke(main, ["run", "-p", "planck_soup", "-t", "2", "-s", "4"])
        assert result.exit_code == 0
        assert "Pass/Fail: PASS" in result.output

    def test_bad_config_exits_2(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"n_abc": "lots"}))
        result = runner.invoke(main, ["run", "-c", str(path), "-o", "json"])
        assert result.exit_code == 2
        assert "error" in json.loads(result.output)


class TestValidateConfig:

    def test_valid(self, runner, good_config):
        result = runner.invoke(main, ["validate-config", str(good_config), "-o", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["valid"] is True
        assert data["parameters"]["n_abc"] == 4

    def test_invalid(self, runner, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("density: thick\n")
        result = runner.invoke(main, ["validate-config", str(path), "-o", "json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["valid"] is False

    def test_warnings_reported(self, runner, tmp_path):
        path = tmp_path / "warn.yaml"
        path.write_text("velocity: 1.2\n")
        result = runner.invoke(main, ["validate-config", str(path), "-o", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["warnings"]

    def test_strict(self, runner, tmp_path):
        path = tmp_path / "warn.yaml"
        path.write_text("velocity: 1.2\n")
        result = runner.invoke(main, ["validate-config", str(path), "--strict", "-o", "json"])
        assert result.exit_code == 1


class TestInspect:
    """Export from run, then verify with inspect."""

    @pytest.fixture
    def snapshot(self, runner, tmp_path):
        path = tmp_path / "snap.txt"
        result = runner.invoke(main, ["run", "-t", "3", "-s", "9", "--export", str(path), "-o", "json"])
        assert result.exit_code == 0
        return path

    def test_verified(self, runner, snapshot):
        result = runner.invoke(main, ["inspect", str(snapshot), "-o", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["valid"] is True
        assert data["payload"]["seed"] == 9

    def test_verified_rich(self, runner, snapshot):
        result = runner.invoke(main, ["inspect", str(snapshot)])
        assert result.exit_code == 0
        assert "VERIFIED" in result.output

    def test_tampered(self, runner, snapshot):
        document = json.loads(base64.b64decode(snapshot.read_text()))
        document["payload"]["seed"] = 10
        snapshot.write_text(base64.b64encode(json.dumps(document).encode()).decode())
        result = runner.invoke(main, ["inspect", str(snapshot), "-o", "json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["valid"] is False

    def test_garbage(self, runner, tmp_path):
        path = tmp_path / "junk.txt"
        path.write_text("%%%")
        result = runner.invoke(main, ["inspect", str(path), "-o", "json"])
        assert result.exit_code == 2
