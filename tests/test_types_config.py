"""
tests/test_types_config.py - Parameter Store Tests
"""

import dataclasses

import pytest

from abcsim.types_config import (
    DEFAULT_PARAMETERS,
    PRESETS,
    REINIT_FIELDS,
    SimParameters,
    apply_patch,
    changed_fields,
    get_preset,
    node_count_for,
)


class TestSimParameters:

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_PARAMETERS.density = 2.0

    def test_defaults(self):
        p = SimParameters()
        assert p.n_abc == 100
        assert p.initial_rigidity == 10.0
        assert p.time_speed == 1.0

    def test_to_dict_round_trip(self):
        p = SimParameters(n_abc=7, radio_pi=2.0)
        assert SimParameters(**p.to_dict()) == p


class TestApplyPatch:
    """Shallow merge; bad input ignored, never raised."""

    def test_returns_new_snapshot(self):
        p = SimParameters()
        q = apply_patch(p, {"density": 2.0})
        assert p.density == 1.0
        assert q.density == 2.0

    def test_empty_patch_is_identity(self):
        p = SimParameters()
        assert apply_patch(p, {}) is p

    def test_unknown_keys_ignored(self):
        p = SimParameters()
        assert apply_patch(p, {"gravity_boost": 3, "molecules": True}) == p

    def test_aliases(self):
        q = apply_patch(SimParameters(), {"strongEnergy": 4, "radioPi": 0.5, "nABC": 12})
        assert q.strong_energy == 4.0
        assert q.radio_pi == 0.5
        assert q.n_abc == 12

    def test_int_fields_coerced(self):
        q = apply_patch(SimParameters(), {"n_abc": 12.0, "scale": 3.9})
        assert q.n_abc == 12 and isinstance(q.n_abc, int)
        assert q.scale == 3

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), "3", None, True, [1]])
    def test_bad_values_warn(self, value):
        with pytest.warns(UserWarning):
            q = apply_patch(SimParameters(), {"density": value})
        assert q.density == 1.0

    def test_changed_fields(self):
        p = SimParameters()
        q = apply_patch(p, {"density": 3.0, "velocity": 0.8})
        assert changed_fields(p, q) == frozenset({"density"})

    def test_reinit_fields(self):
        assert REINIT_FIELDS == frozenset({"n_abc", "density", "dimension_count"})


class TestNodeCount:
    """3 * min(MAX_TRIADS, floor(n_abc * density))."""

    @pytest.mark.parametrize("n_abc,density,expected", [
        (10, 1.0, 30),
        (100, 1.0, 300),
        (10, 0.25, 6),
        (0, 5.0, 0),
        (10, 0.0, 0),
        (10, -1.0, 0),
        (400, 3.0, 1500),
    ])
    def test_mapping(self, n_abc, density, expected):
        assert node_count_for(SimParameters(n_abc=n_abc, density=density)) == expected

    def test_non_finite_density(self):
        assert node_count_for(SimParameters(density=float("inf"))) == 0

    @pytest.mark.parametrize("n_abc,density", [(100, 1e307), (10 ** 300, 1e300)])
    def test_overflowing_product_hits_cap(self, n_abc, density):
        assert node_count_for(SimParameters(n_abc=n_abc, density=density)) == 1500

    def test_huge_negative_product(self):
        assert node_count_for(SimParameters(n_abc=100, density=-1e307)) == 0

    def test_monotonic_in_density(self):
        counts = [node_count_for(SimParameters(n_abc=10, density=d / 10)) for d in range(0, 40)]
        assert counts == sorted(counts)
        assert all(c % 3 == 0 for c in counts)


class TestPresets:

    def test_known_presets(self):
        assert set(PRESETS) == {
            "default", "planck_soup", "atomic_formation", "black_hole",
            "light_speed_test", "quantum_entanglement",
        }

    def test_velocities_are_fractions(self):
        assert all(0.0 <= p.velocity < 1.0 for p in PRESETS.values())

    def test_get_preset(self):
        assert get_preset("black_hole").central_mass == 15.0

    def test_unknown_preset(self):
        with pytest.raises(KeyError):
            get_preset("wormhole")
