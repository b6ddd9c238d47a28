"""
tests/test_measurement.py - Statistics and Validation Tests
"""

import math

import numpy as np
import pytest

from abcsim.constants import ENTROPY_EPSILON, KIND_TABLE, NodeKind, QuarkType
from abcsim.measurement import (
    largest_entangled_cluster,
    measure_statistics,
    project_metrics,
    scale_label,
)
from abcsim.types_config import SimParameters
from abcsim.types_state import EntangledPair, Node, Quark, WorldState
from abcsim.validation import emit_validation_receipt, validate_world


def node(node_id, vx=0.0, collapsed=False):
    charge, color, energy = KIND_TABLE[NodeKind.A]
    return Node(
        node_id=node_id,
        kind=NodeKind.A,
        charge=float(charge),
        color=color,
        base_energy=energy,
        position=np.zeros(2),
        velocity=np.array([vx, 0.0]),
        collapsed=collapsed,
    )


def quark(quark_id, node_ids):
    return Quark(
        quark_id=quark_id,
        quark_type=QuarkType.UP,
        charge=2 / 3,
        node_ids=node_ids,
        position=np.zeros(2),
        velocity=np.zeros(2),
        color="red",
    )


class TestMeasureStatistics:

    def test_empty_world(self):
        stats = measure_statistics(WorldState(parameters=SimParameters()))
        assert stats.mean_energy == 0.0
        assert stats.std_energy == 0.0
        assert stats.entropy == pytest.approx(math.log(ENTROPY_EPSILON))
        assert stats.complexity == 0.0
        assert stats.entanglement_index == 0.0
        assert stats.coherence == 0.0

    def test_kinetic_energy(self):
        world = WorldState(parameters=SimParameters())
        world.nodes = [node(0, 1.0), node(1, 3.0)]
        stats = measure_statistics(world)
        # energies 0.5 and 4.5
        assert stats.mean_energy == pytest.approx(2.5)
        assert stats.std_energy == pytest.approx(2.0)
        assert stats.entropy == pytest.approx(math.log(2.0 + ENTROPY_EPSILON))

    def test_collapsed_nodes_excluded_from_energy(self):
        world = WorldState(parameters=SimParameters())
        world.nodes = [node(0, 1.0), node(1, 10.0, collapsed=True)]
        assert measure_statistics(world).mean_energy == pytest.approx(0.5)

    def test_non_finite_energies_dropped(self):
        world = WorldState(parameters=SimParameters())
        world.nodes = [node(0, 1.0), node(1, float("inf")), node(2, 1e200)]
        stats = measure_statistics(world)
        assert stats.mean_energy == pytest.approx(0.5)
        assert stats.std_energy == 0.0
        assert math.isfinite(stats.entropy)

    def test_ratios(self):
        world = WorldState(parameters=SimParameters())
        world.nodes = [node(i) for i in range(10)]
        world.quarks = [quark(0, (0, 1, 2))]
        world.entangled = [EntangledPair(3, 4, 0.5), EntangledPair(5, 6, 1.0)]
        stats = measure_statistics(world)
        assert stats.complexity == pytest.approx(0.1)
        assert stats.entanglement_index == pytest.approx(0.2)
        assert stats.coherence == pytest.approx(0.75)

    def test_pure(self):
        world = WorldState(parameters=SimParameters())
        world.nodes = [node(0, 1.0)]
        measure_statistics(world)
        assert world.statistics.mean_energy == 0.0


class TestClusters:

    def test_no_pairs(self):
        assert largest_entangled_cluster(WorldState(parameters=SimParameters())) == 0

    def test_chain(self):
        world = WorldState(parameters=SimParameters())
        world.entangled = [EntangledPair(0, 1), EntangledPair(1, 2), EntangledPair(5, 6)]
        assert largest_entangled_cluster(world) == 3


class TestProjection:

    def test_scale_label_clamped(self):
        assert scale_label(0) == "Planck"
        assert scale_label(8) == "Cosmic"
        assert scale_label(42) == "Cosmic"
        assert scale_label(-3) == "Planck"

    def test_metrics_counts(self):
        world = WorldState(parameters=SimParameters())
        world.nodes = [node(0, collapsed=True), node(1), node(2)]
        metrics = project_metrics(world)
        assert metrics.node_count == 3
        assert metrics.collapsed_nodes == 1
        assert metrics.active_nodes == 2
        assert metrics.phase == "PRIMORDIAL"


class TestValidateWorld:

    def test_clean_world(self):
        world = WorldState(parameters=SimParameters())
        world.nodes = [node(0, collapsed=True), node(1, collapsed=True), node(2, collapsed=True)]
        world.quarks = [quark(0, (0, 1, 2))]
        assert validate_world(world) == []

    def test_duplicate_ids(self):
        world = WorldState(parameters=SimParameters())
        world.nodes = [node(0), node(0)]
        checks = {v["check"] for v in validate_world(world)}
        assert "unique_ids" in checks

    def test_shared_and_live_constituents(self):
        world = WorldState(parameters=SimParameters())
        world.nodes = [node(i) for i in range(5)]
        world.quarks = [quark(0, (0, 1, 2)), quark(1, (2, 3, 4))]
        checks = {v["check"] for v in validate_world(world)}
        assert {"shared_constituents", "unconsumed_constituents"} <= checks

    def test_non_finite_metrics(self):
        world = WorldState(parameters=SimParameters())
        world.rigidity = float("nan")
        violations = validate_world(world)
        assert violations == [{"check": "finite_metrics", "fields": ["rigidity"]}]

    def test_validation_receipt(self):
        world = WorldState(parameters=SimParameters())
        receipt = emit_validation_receipt(world, [])
        assert receipt["receipt_type"] == "validation"
        assert receipt["passed"] is True
