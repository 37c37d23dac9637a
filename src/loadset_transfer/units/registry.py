"""Unit basis tables: named units expressed as multiples of a canonical unit.

Canonical units are the newton for force, the metre for length and the
Celsius degree for temperature differences. Labels cover both the short
symbols and the unit enumeration names reported by the host programs
(``inch``, ``micron``, ``tonf``...).
"""

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType


class Dimension(str, Enum):
    """Physical dimension of a quantity."""

    FORCE = "force"
    LENGTH = "length"
    TEMPERATURE_DELTA = "temperature_delta"
    AREA_LOAD = "area_load"


# Derived dimension -> (base dimension, exponent) terms.
# A new derived quantity only needs an entry here.
DERIVED_DIMENSIONS: Mapping[Dimension, tuple[tuple[Dimension, int], ...]] = MappingProxyType(
    {
        Dimension.AREA_LOAD: ((Dimension.FORCE, 1), (Dimension.LENGTH, -2)),
    }
)

FORCE_TO_NEWTON = {
    "N": 1.0,
    "kN": 1_000.0,
    "MN": 1_000_000.0,
    "lb": 4.4482216152605,
    "kip": 4_448.2216152605,
    "kgf": 9.80665,
    "tonf": 9_806.65,
}

LENGTH_TO_METRE = {
    "m": 1.0,
    "cm": 0.01,
    "mm": 0.001,
    "micron": 1e-6,
    "ft": 0.3048,
    "in": 0.0254,
    "inch": 0.0254,
}

TEMPERATURE_DELTA_TO_CELSIUS = {
    "C": 1.0,
    "K": 1.0,
    "F": 5.0 / 9.0,
}

FALLBACK_MULTIPLIER = 1.0


def _normalize(label: str | None) -> str:
    return (label or "").strip().lower()


class UnitBasisRegistry:
    """Immutable lookup of unit label -> canonical multiplier per dimension.

    Lookups are case-insensitive and ignore surrounding whitespace. Unknown
    or blank labels report ``found=False`` with the fallback multiplier; the
    caller decides whether that is acceptable.
    """

    def __init__(self, tables: Mapping[Dimension, Mapping[str, float]]):
        frozen = {}
        for dimension, table in tables.items():
            if dimension in DERIVED_DIMENSIONS:
                raise ValueError(f"{dimension.value} is derived and cannot have a basis table")
            entries = {}
            for label, multiplier in table.items():
                key = _normalize(label)
                if not key:
                    raise ValueError(f"Blank unit label in {dimension.value} table")
                if key in entries:
                    raise ValueError(f"Duplicate unit label '{label}' in {dimension.value} table")
                entries[key] = float(multiplier)
            frozen[dimension] = MappingProxyType(entries)
        self._tables = MappingProxyType(frozen)

    @property
    def dimensions(self) -> tuple[Dimension, ...]:
        return tuple(self._tables)

    def labels(self, dimension: Dimension) -> tuple[str, ...]:
        """Normalized labels known for ``dimension``."""
        return tuple(self._tables.get(dimension, {}))

    def lookup(self, dimension: Dimension, label: str | None) -> tuple[float, bool]:
        """Return ``(multiplier, found)`` for ``label`` in ``dimension``."""
        key = _normalize(label)
        table = self._tables.get(dimension)
        if not key or table is None or key not in table:
            return FALLBACK_MULTIPLIER, False
        return table[key], True

    def with_dimension(self, dimension: Dimension, table: Mapping[str, float]) -> "UnitBasisRegistry":
        """Return a new registry with ``dimension`` added or replaced."""
        tables: dict[Dimension, Mapping[str, float]] = dict(self._tables)
        tables[dimension] = table
        return UnitBasisRegistry(tables)


def default_registry() -> UnitBasisRegistry:
    """Registry holding the force, length and temperature-delta tables."""
    return UnitBasisRegistry(
        {
            Dimension.FORCE: FORCE_TO_NEWTON,
            Dimension.LENGTH: LENGTH_TO_METRE,
            Dimension.TEMPERATURE_DELTA: TEMPERATURE_DELTA_TO_CELSIUS,
        }
    )
