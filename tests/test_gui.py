import pytest

from breathpacer.gui import ring_extent


def test_ring_starts_empty_and_sweeps_clockwise():
    assert ring_extent(0, 4) == 0
    assert ring_extent(2, 4) == pytest.approx(-179.95)


def test_ring_stops_short_of_full_circle():
    assert ring_extent(4, 4) == pytest.approx(-359.9)
    assert ring_extent(10, 4) == pytest.approx(-359.9)


def test_ring_zero_duration_stays_empty():
    assert ring_extent(1, 0) == 0.0
    assert ring_extent(-1, 4) == 0
