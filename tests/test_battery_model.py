"""
Contract tests for the simulated battery pack
"""

import random

from fakes import FixedRandom

from bmswatch.battery import Battery


def test_level_clamps_at_zero() -> None:
    """
    Discharge never drives the level negative
    """
    battery = Battery(FixedRandom(value=0.999), level_percent=0.2)

    assert battery.sample().level_percent == 0.0
    assert battery.sample().level_percent == 0.0


def test_temperature_drifts_by_signed_delta() -> None:
    """
    random() above 0.5 warms the pack, below cools it
    """
    warming = Battery(FixedRandom(value=0.75))
    cooling = Battery(FixedRandom(value=0.25))

    assert warming.sample().temperature_c == 25.5
    assert cooling.sample().temperature_c == 24.5


def test_health_decays_one_point_on_rare_draw() -> None:
    """
    randrange(1000) == 0 costs one health point, never below zero
    """
    battery = Battery(FixedRandom(range_value=0))
    assert battery.sample().health_percent == 99.0

    worn = Battery(FixedRandom(range_value=0), health_percent=0.5)
    assert worn.sample().health_percent == 0.0
    assert worn.sample().health_percent == 0.0


def test_health_untouched_on_common_draw() -> None:
    battery = Battery(FixedRandom(range_value=1))
    assert battery.sample().health_percent == 100.0


def test_seeded_run_respects_invariants() -> None:
    """
    Level and health stay in range and never increase; pack never charges
    """
    battery = Battery(random.Random(7))
    previous = battery.sample()

    for _ in range(500):
        current = battery.sample()
        assert 0.0 <= current.level_percent <= 100.0
        assert 0.0 <= current.health_percent <= 100.0
        assert current.level_percent <= previous.level_percent
        assert current.health_percent <= previous.health_percent
        assert current.is_charging is False
        previous = current
