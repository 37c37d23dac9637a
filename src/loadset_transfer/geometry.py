"""Correlate area objects between two models.

Areas are matched by a key built from their control point coordinates,
``"[x1,y1]-[x2,y2]-...-[xn,yn]"`` in the point order reported by the host,
or by unique name when both models share names.
"""

import logging
from collections.abc import Iterable
from typing import Protocol

logger = logging.getLogger(__name__)


class AreaGeometry(Protocol):
    """Plan geometry lookups of one model."""

    def area_names(self) -> list[str]: ...

    def area_point_names(self, area_name: str) -> list[str]: ...

    def point_xy(self, point_name: str) -> tuple[float, float]: ...


def format_coordinate(x: float, y: float) -> str:
    return f"[{x:.15g},{y:.15g}]"


def control_point_key(geometry: AreaGeometry, area_name: str) -> str | None:
    """Coordinate key of ``area_name``; ``None`` if it has no points."""
    if not area_name or not area_name.strip():
        return None
    coordinates = [
        format_coordinate(*geometry.point_xy(point))
        for point in geometry.area_point_names(area_name)
        if point and point.strip()
    ]
    if not coordinates:
        return None
    return "-".join(coordinates)


def control_point_index(geometry: AreaGeometry) -> dict[str, list[str]]:
    """Key -> distinct area names sharing it, in host order."""
    index: dict[str, list[str]] = {}
    for area_name in geometry.area_names():
        key = control_point_key(geometry, area_name)
        if key is None:
            continue
        names = index.setdefault(key.casefold(), [])
        if area_name.casefold() not in (n.casefold() for n in names):
            names.append(area_name)
    return index


class GeometryCorrelator:
    """Match a source area to the first target area with the same coordinate key."""

    def __init__(self, source: AreaGeometry, target: AreaGeometry):
        self.source = source
        self.target = target
        self._index: dict[str, list[str]] | None = None

    def __call__(self, source_area_name: str) -> str | None:
        key = control_point_key(self.source, source_area_name)
        if key is None:
            return None
        if self._index is None:
            self._index = control_point_index(self.target)
            logger.debug("Indexed %d target area keys", len(self._index))
        matches = self._index.get(key.casefold())
        return matches[0] if matches else None


class NameCorrelator:
    """Match areas by unique name.

    With ``target_names`` the match is looked up case-insensitively and
    returned in the target's spelling; without, the source name is used.
    """

    def __init__(self, target_names: Iterable[str] | None = None):
        self._names = None if target_names is None else {n.casefold(): n for n in target_names}

    def __call__(self, source_area_name: str) -> str | None:
        if not source_area_name or not source_area_name.strip():
            return None
        if self._names is None:
            return source_area_name
        return self._names.get(source_area_name.casefold())
