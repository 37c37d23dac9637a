"""Tests for the unit basis registry."""

import pytest

from loadset_transfer.units.registry import Dimension, UnitBasisRegistry, default_registry


def test_lookup_is_case_insensitive_and_trims():
    registry = default_registry()
    assert registry.lookup(Dimension.FORCE, " KN ") == (1000.0, True)
    assert registry.lookup(Dimension.FORCE, "Tonf") == (9806.65, True)
    assert registry.lookup(Dimension.LENGTH, "MM") == (0.001, True)


def test_host_enumeration_names_are_known():
    registry = default_registry()
    assert registry.lookup(Dimension.LENGTH, "inch") == (0.0254, True)
    assert registry.lookup(Dimension.LENGTH, "micron") == (1e-6, True)


@pytest.mark.parametrize("label", ["", "   ", None, "furlong"])
def test_unknown_or_blank_labels_are_not_found(label):
    multiplier, found = default_registry().lookup(Dimension.LENGTH, label)
    assert found is False
    assert multiplier == 1.0


def test_derived_dimension_has_no_table():
    multiplier, found = default_registry().lookup(Dimension.AREA_LOAD, "kN/m2")
    assert found is False
    with pytest.raises(ValueError, match="derived"):
        UnitBasisRegistry({Dimension.AREA_LOAD: {"Pa": 1.0}})


def test_duplicate_labels_after_normalization_are_rejected():
    with pytest.raises(ValueError, match="Duplicate"):
        UnitBasisRegistry({Dimension.FORCE: {"N": 1.0, " n": 1.0}})


def test_with_dimension_returns_new_registry():
    registry = default_registry()
    custom = registry.with_dimension(Dimension.FORCE, {"N": 1.0, "daN": 10.0})

    assert custom.lookup(Dimension.FORCE, "daN") == (10.0, True)
    assert custom.lookup(Dimension.FORCE, "kN")[1] is False
    assert registry.lookup(Dimension.FORCE, "daN")[1] is False
    assert custom.lookup(Dimension.LENGTH, "m") == (1.0, True)


def test_labels():
    labels = default_registry().labels(Dimension.TEMPERATURE_DELTA)
    assert set(labels) == {"c", "k", "f"}
