"""Scale factors between unit systems.

The source side is always the unit system a value was authored in. A
returned factor converts a magnitude in source units to target units by
multiplication.

Strict conversion raises when a label is unknown and must be used for
anything written back to a model. Permissive conversion substitutes a
multiplier of 1.0 and is only meant for display text.
"""

import logging

from loadset_transfer.errors import ErrorCategory, TransferError
from loadset_transfer.units.models import UnitQuantity, UnitSystem
from loadset_transfer.units.registry import DERIVED_DIMENSIONS, Dimension, UnitBasisRegistry

logger = logging.getLogger(__name__)

AREA_LOAD_FALLBACK_LABEL = "Force/Length²"


def area_load_label(units: UnitSystem | None) -> str:
    """Display label for area loads, e.g. ``kN/m²``."""
    if units is None or not units.force or not units.length:
        return AREA_LOAD_FALLBACK_LABEL
    return f"{units.force}/{units.length}²"


def unit_label(units: UnitSystem, dimension: Dimension) -> str:
    if dimension is Dimension.AREA_LOAD:
        return area_load_label(units)
    return units.display(dimension)


class UnitConverter:
    """Composes basis lookups into conversion factors.

    Parameters
    ----------
    registry : UnitBasisRegistry
        Unit tables to resolve labels against.
    strict : bool
        Default policy for unknown labels; can be overridden per call.
    """

    def __init__(self, registry: UnitBasisRegistry, *, strict: bool = True):
        self.registry = registry
        self.strict = strict

    def scale_factor(
        self,
        dimension: Dimension,
        source_unit: str | None,
        target_unit: str | None,
        *,
        strict: bool | None = None,
    ) -> float:
        """Factor converting ``dimension`` values from ``source_unit`` to ``target_unit``."""
        if dimension in DERIVED_DIMENSIONS:
            raise ValueError(f"{dimension.value} is derived; use derived_scale_factor()")
        strict = self.strict if strict is None else strict

        source, source_found = self.registry.lookup(dimension, source_unit)
        target, target_found = self.registry.lookup(dimension, target_unit)

        missing = [
            repr(label)
            for label, found in ((source_unit, source_found), (target_unit, target_found))
            if not found
        ]
        if missing:
            if strict:
                raise TransferError(
                    ErrorCategory.UNIT_UNRESOLVED,
                    f"Unknown {dimension.value} unit(s): {', '.join(missing)}.",
                )
            logger.warning("Unknown %s unit(s) %s; using 1.0", dimension.value, ", ".join(missing))

        if target == 0:
            return 1.0
        return source / target

    def derived_scale_factor(
        self,
        dimension: Dimension,
        source: UnitSystem,
        target: UnitSystem,
        *,
        strict: bool | None = None,
    ) -> float:
        """Factor for a derived dimension, composed from its base-unit factors."""
        try:
            terms = DERIVED_DIMENSIONS[dimension]
        except KeyError:
            raise ValueError(f"{dimension.value} is not a derived dimension") from None

        factor = 1.0
        for base, exponent in terms:
            component = self.scale_factor(
                base, source.label_for(base), target.label_for(base), strict=strict
            )
            if component == 0 and exponent < 0:
                return 1.0
            factor *= component**exponent
        return factor

    def area_load_scale_factor(
        self,
        source_force_unit: str | None,
        source_length_unit: str | None,
        target_force_unit: str | None,
        target_length_unit: str | None,
        *,
        strict: bool | None = None,
    ) -> float:
        """Factor for force/length² values.

        Converting ``0.003 N/mm²`` to ``lb/in²`` uses a factor of about
        145.0377, giving about ``0.4351 lb/in²``.
        """
        return self.derived_scale_factor(
            Dimension.AREA_LOAD,
            UnitSystem(force=source_force_unit, length=source_length_unit),
            UnitSystem(force=target_force_unit, length=target_length_unit),
            strict=strict,
        )

    def factor_between(
        self,
        dimension: Dimension,
        source: UnitSystem,
        target: UnitSystem,
        *,
        strict: bool | None = None,
    ) -> float:
        if dimension in DERIVED_DIMENSIONS:
            return self.derived_scale_factor(dimension, source, target, strict=strict)
        return self.scale_factor(
            dimension, source.label_for(dimension), target.label_for(dimension), strict=strict
        )

    def convert(
        self,
        quantity: UnitQuantity,
        source: UnitSystem,
        target: UnitSystem,
        *,
        strict: bool | None = None,
    ) -> UnitQuantity:
        """Return ``quantity`` expressed in the ``target`` unit system."""
        factor = self.factor_between(quantity.dimension, source, target, strict=strict)
        return UnitQuantity(
            magnitude=quantity.magnitude * factor,
            unit_label=unit_label(target, quantity.dimension),
            dimension=quantity.dimension,
        )
