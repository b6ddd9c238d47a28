"""
tests/test_export.py - Snapshot Export Tests
"""

import base64
import json

import pytest

from abcsim.constants import SNAPSHOT_VERSION
from abcsim.engine import EvolutionEngine, run_simulation
from abcsim.export import (
    export_snapshot,
    generate_report,
    load_snapshot,
    parameters_from_snapshot,
)
from abcsim.receipts import StopRule
from abcsim.types_config import SimParameters


@pytest.fixture
def engine():
    eng = EvolutionEngine(SimParameters(n_abc=5, radio_pi=2.0), seed=11)
    eng.mailbox.set_deduction("entanglement precedes collapse")
    eng.start()
    for _ in range(5):
        eng.step(0.016)
    return eng


def _reencode(document):
    return base64.b64encode(json.dumps(document).encode()).decode("ascii")


class TestSnapshot:
    """Signed base64 documents."""

    def test_round_trip(self, engine):
        document = load_snapshot(export_snapshot(engine))
        assert document["version"] == SNAPSHOT_VERSION
        assert document["payload"]["seed"] == 11
        assert parameters_from_snapshot(document) == engine.parameters

    def test_mailbox_included(self, engine):
        document = load_snapshot(export_snapshot(engine, {"agents": {"1": {"status": "idle"}}}))
        agent = document["payload"]["agent_state"]
        assert agent["shared_memory"]["user_deduction"] == "entanglement precedes collapse"
        assert agent["agents"] == {"1": {"status": "idle"}}

    def test_metrics_included(self, engine):
        document = load_snapshot(export_snapshot(engine))
        assert document["payload"]["metrics"]["node_count"] == 15

    def test_tampered_payload(self, engine):
        document = json.loads(base64.b64decode(export_snapshot(engine)))
        document["payload"]["parameters"]["central_mass"] = 99.0
        with pytest.raises(StopRule):
            load_snapshot(_reencode(document))

    def test_not_base64(self):
        with pytest.raises(ValueError):
            load_snapshot("not a snapshot!!")

    def test_base64_but_not_json(self):
        with pytest.raises(ValueError):
            load_snapshot(base64.b64encode(b"\x00\x01plain").decode())

    def test_unknown_version(self, engine):
        document = json.loads(base64.b64decode(export_snapshot(engine)))
        document["version"] = "1.0"
        with pytest.raises(ValueError):
            load_snapshot(_reencode(document))

    def test_missing_payload(self):
        with pytest.raises(ValueError):
            load_snapshot(_reencode({"version": SNAPSHOT_VERSION}))


class TestReport:

    def test_report_contents(self):
        result = run_simulation(SimParameters(n_abc=3), ticks=10, seed=2)
        report = generate_report(result)
        assert "=== SIMULATION REPORT ===" in report
        assert "Ticks: 10" in report
        assert "Seed: 2" in report
        assert report.endswith("Pass/Fail: PASS")
