"""Tests for growth configuration validation."""

from __future__ import annotations

import pytest

from Growth.config import GrowthConfig, RunPolicy, validate_pick_count


def test_defaults():
    cfg = GrowthConfig()
    assert cfg.pick_count == 1000
    assert cfg.batch_size == 1000
    assert cfg.yield_interval_s == pytest.approx(0.001)
    assert cfg.random_seed is None
    assert cfg.run_policy is RunPolicy.REJECT


def test_run_policy_accepts_strings():
    assert GrowthConfig(run_policy="queue").run_policy is RunPolicy.QUEUE
    assert GrowthConfig(run_policy=RunPolicy.REPLACE).run_policy is RunPolicy.REPLACE


@pytest.mark.parametrize("value", [0, -3, 2.5, True, "10", None])
def test_validate_pick_count_rejects_non_positive_integers(value):
    with pytest.raises(ValueError):
        validate_pick_count(value)


def test_validate_pick_count_returns_value():
    assert validate_pick_count(1) == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"pick_count": 0},
        {"batch_size": 0},
        {"batch_size": 1.5},
        {"yield_interval_s": -0.1},
        {"random_seed": -1},
        {"random_seed": 1.5},
        {"random_seed": "7"},
        {"random_seed": True},
        {"run_policy": "parallel"},
    ],
)
def test_invalid_config_raises(kwargs):
    with pytest.raises(ValueError):
        GrowthConfig(**kwargs)
