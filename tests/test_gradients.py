"""
Tests for GradientCatalog color and gradient assignment.
"""

import pytest

from splitflow_core.gradients import DEFAULT_PALETTE, ColorPair, GradientCatalog


def test_color_pair_wraps_modulo_palette():
    cat = GradientCatalog()
    k = len(DEFAULT_PALETTE)
    assert cat.color_pair(0) == ColorPair("#ec4899", "#be185d")
    assert cat.color_pair(k) == cat.color_pair(0)
    assert cat.color_pair(k + 3) == cat.color_pair(3)


def test_gradient_has_two_stops_with_fixed_opacities():
    grad = GradientCatalog().gradient(1)
    start, end = grad.stops
    assert grad.id == "flow-gradient-1"
    assert (start.offset, start.color, start.opacity) == ("0%", "#3b82f6", 0.7)
    assert (end.offset, end.color, end.opacity) == ("100%", "#1d4ed8", 0.9)
    assert grad.end_color == "#1d4ed8"


def test_gradient_ids_stable_across_catalogs():
    a = GradientCatalog().gradients(4)
    b = GradientCatalog().gradients(4)
    assert [g.id for g in a] == [g.id for g in b] == [f"flow-gradient-{i}" for i in range(4)]
    assert a == b


def test_custom_palette():
    cat = GradientCatalog([ColorPair("#000", "#111")])
    assert cat.color_pair(5) == ColorPair("#000", "#111")


def test_empty_palette_rejected():
    with pytest.raises(ValueError):
        GradientCatalog([])
