"""Active sensor areas of the tracker layers for supported detector geometries."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum


class Detector(IntEnum):
    """Detector geometry selector."""

    MUCOL_V1 = 0
    MAIA_V0 = 1
    MUSIC_V2 = 2


@dataclass(frozen=True)
class SensorAreas:
    """Active area per layer index for each tracker region."""

    vxb: dict[int, float] = field(default_factory=dict)
    vxe: dict[int, float] = field(default_factory=dict)
    itb: dict[int, float] = field(default_factory=dict)
    ite: dict[int, float] = field(default_factory=dict)
    otb: dict[int, float] = field(default_factory=dict)
    ote: dict[int, float] = field(default_factory=dict)


_ITE = {0: 6639.65, 1: 10611.59, 2: 10078.04, 3: 9900.19, 4: 9307.37, 5: 8595.98, 6: 8299.56}
_OTE = {0: 69545.45, 1: 69545.45, 2: 69545.45, 3: 69545.45}


def sensor_areas(detector: Detector | int) -> SensorAreas:
    """Sensor areas of the given geometry; an unknown geometry has none."""
    value = int(detector)
    if value in (Detector.MUCOL_V1, Detector.MAIA_V0):
        return SensorAreas(
            vxb={0: 270.4, 1: 270.4, 2: 448.5, 3: 448.5,
                 4: 655.2, 5: 655.2, 6: 904.8, 7: 904.8},
            vxe={0: 389.0, 1: 389.0, 2: 378.96, 3: 378.96,
                 4: 364.36, 5: 364.36, 6: 312.48, 7: 312.48},
            itb={0: 8117.85, 1: 22034.16, 2: 51678.81},
            ite=dict(_ITE),
            otb={0: 140032.91, 1: 194828.39, 2: 249623.88},
            ote=dict(_OTE),
        )
    if value == Detector.MUSIC_V2:
        return SensorAreas(
            vxb={0: 540.8, 2: 702.0, 4: 897.0, 6: 1310.4, 8: 1809.6},
            vxe={0: 365.73, 2: 343.28, 4: 304.72, 6: 257.0},
            itb={0: 10437.24, 1: 22034.16, 2: 51678.81},
            ite=dict(_ITE),
            otb={0: 140032.91, 1: 194828.39, 2: 286154.2},
            ote=dict(_OTE),
        )
    return SensorAreas()


def _lookup(table: dict[int, float], region: str, layer: int) -> float:
    try:
        return table[layer]
    except KeyError:
        raise KeyError(f"no {region} sensor area for layer {layer}") from None


def barrel_area(areas: SensorAreas, x_val: float) -> float | None:
    """Area for a barrel layer-index bin edge: 0-9 vertex, 10-19 inner, 20-29 outer.

    Returns None outside those ranges and raises KeyError for an unknown layer.
    """
    if 0 <= x_val < 10:
        return _lookup(areas.vxb, "vertex barrel", int(x_val))
    if 10 <= x_val < 20:
        return _lookup(areas.itb, "inner barrel", int(x_val - 10))
    if 20 <= x_val < 30:
        return _lookup(areas.otb, "outer barrel", int(x_val - 20))
    return None


def endcap_area(areas: SensorAreas, x_val: float) -> float | None:
    """Area for a signed endcap layer-index bin edge; the sign is the z side.

    Magnitudes 1-9 are vertex, 11-19 inner and 21-29 outer endcap layers.
    Returns None outside those ranges and raises KeyError for an unknown layer.
    """
    z_dir = 1 if x_val > 0.0 else -1
    magnitude = abs(x_val)
    if 0 < magnitude < 10:
        return _lookup(areas.vxe, "vertex endcap", int(x_val / z_dir) - 1)
    if 10 < magnitude < 20:
        return _lookup(areas.ite, "inner endcap", int((x_val - z_dir * 10) / z_dir) - 1)
    if 20 < magnitude < 30:
        return _lookup(areas.ote, "outer endcap", int((x_val - z_dir * 20) / z_dir) - 1)
    return None