"""Pixel identification for in-pixel pile-up studies of the vertex barrel."""

from __future__ import annotations

from dataclasses import dataclass, field

from .hits import SimTrackerHit

_MASK64 = (1 << 64) - 1
_INT16_MIN, _INT16_MAX = -(1 << 15), (1 << 15) - 1

#: Modules along a vertex barrel ladder.
MODULES_PER_LADDER = 5
#: Half length of a vertex barrel layer in mm.
LAYER_HALF_LENGTH = 65.0
#: Offset added to non-positive local coordinates before truncation.
LOCAL_OFFSET = 10000


@dataclass
class PixelData:
    """Simulated hits that fell into one pixel, and the layer of that pixel."""

    layer: int = 0
    hits: list[SimTrackerHit] = field(default_factory=list)


def _wrap_int16(value: int) -> int:
    return ((value - _INT16_MIN) & 0xFFFF) + _INT16_MIN


def local_coordinate(value: float) -> int:
    """Truncate a local pixel position to a 16-bit signed integer.

    Non-positive values are shifted by LOCAL_OFFSET first.
    """
    shifted = value if value > 0.0 else value + LOCAL_OFFSET
    return _wrap_int16(int(shifted))


def module_index(z: float) -> int:
    """Module number 1..MODULES_PER_LADDER whose z slice holds z, or 0."""
    step = 2 * LAYER_HALF_LENGTH / MODULES_PER_LADDER
    index = 0
    for i in range(1, MODULES_PER_LADDER + 1):
        if LAYER_HALF_LENGTH + step * (i - 1) <= z < LAYER_HALF_LENGTH + step * i:
            index = i
    return index


def pixel_hash(x_local: int, y_local: int, module: int, ladder: int) -> int:
    """Pack four 16-bit signed values into a 64-bit key.

    Negative values are sign-extended to 64 bits before shifting, so they
    set every bit above their position.
    """
    parts = (("x_local", x_local, 48), ("y_local", y_local, 32),
             ("module", module, 16), ("ladder", ladder, 0))
    key = 0
    for name, value, shift in parts:
        if not _INT16_MIN <= value <= _INT16_MAX:
            raise ValueError(f"{name} {value} does not fit in 16 bits")
        key |= ((value & _MASK64) << shift) & _MASK64
    return key