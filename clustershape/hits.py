"""Event data: tracker hits, relations, collections and cell-ID decoding."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

#: Field layout of tracker cell identifiers.
TRACKER_ENCODING = "system:5,side:-2,layer:6,module:11,sensor:8"

TRACKERHIT = "TrackerHit"
TRACKERHITPLANE = "TrackerHitPlane"
SIMTRACKERHIT = "SimTrackerHit"
MCPARTICLE = "MCParticle"
LCRELATION = "LCRelation"

#: Speed of light in mm/ns.
SPEED_OF_LIGHT_MM_PER_NS = 299792458.0 / 1e6


@dataclass(frozen=True)
class _Field:
    name: str
    offset: int
    width: int
    signed: bool

    @property
    def mask(self) -> int:
        return (1 << self.width) - 1

    def check(self, value: int) -> None:
        if self.signed:
            lo, hi = -(1 << (self.width - 1)), (1 << (self.width - 1)) - 1
        else:
            lo, hi = 0, (1 << self.width) - 1
        if not lo <= value <= hi:
            raise ValueError(f"value {value} of field {self.name!r} outside [{lo}, {hi}]")


class CellIDDecoder:
    """Packs and unpacks named bit fields of a 64-bit cell identifier.

    The encoding is a comma separated list of ``name:width`` or
    ``name:offset:width``; a negative width marks a signed field.
    """

    def __init__(self, encoding: str = TRACKER_ENCODING) -> None:
        self.encoding = encoding
        self._fields: dict[str, _Field] = {}
        offset = 0
        for token in encoding.split(","):
            parts = [p.strip() for p in token.split(":")]
            try:
                if len(parts) == 2:
                    name, width = parts[0], int(parts[1])
                elif len(parts) == 3:
                    name, offset, width = parts[0], int(parts[1]), int(parts[2])
                else:
                    raise ValueError
            except ValueError:
                raise ValueError(f"malformed field description {token!r}") from None
            if not name or width == 0:
                raise ValueError(f"malformed field description {token!r}")
            if name in self._fields:
                raise ValueError(f"duplicate field {name!r}")
            size = abs(width)
            if offset < 0 or offset + size > 64:
                raise ValueError(f"field {name!r} does not fit in 64 bits")
            self._fields[name] = _Field(name, offset, size, width < 0)
            offset += size

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self._fields)

    def decode(self, cell_id: int) -> dict[str, int]:
        """Return the value of every field in the identifier."""
        values = {}
        for f in self._fields.values():
            value = (cell_id >> f.offset) & f.mask
            if f.signed and value & (1 << (f.width - 1)):
                value -= 1 << f.width
            values[f.name] = value
        return values

    def encode(self, fields: Mapping[str, int]) -> int:
        """Build an identifier from field values; missing fields are zero."""
        cell_id = 0
        for name, value in fields.items():
            try:
                f = self._fields[name]
            except KeyError:
                raise ValueError(f"unknown field {name!r}") from None
            f.check(value)
            cell_id |= (value & f.mask) << f.offset
        return cell_id


@dataclass
class SimTrackerHit:
    """Simulated energy deposit; position is in local pixel units inside clusters."""

    position: tuple[float, float, float]
    time: float = 0.0
    edep: float = 0.0
    cell_id: int = 0


@dataclass
class TrackerHit:
    """Reconstructed cluster built from simulated raw hits."""

    position: tuple[float, float, float]
    time: float = 0.0
    edep: float = 0.0
    cell_id: int = 0
    raw_hits: list[SimTrackerHit] = field(default_factory=list)


@dataclass
class TrackerHitPlane(TrackerHit):
    """Tracker hit on a planar sensor with measurement uncertainties du and dv."""

    du: float = 0.0
    dv: float = 0.0


@dataclass
class Relation:
    """Link from a reconstructed object to its truth counterpart."""

    from_hit: Any
    to_hit: Any
    weight: float = 1.0


@dataclass
class Collection:
    """Typed list of event objects."""

    type_name: str
    elements: list[Any] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.elements)

    def __getitem__(self, index: int) -> Any:
        return self.elements[index]


@dataclass
class Event:
    """Named collections of one event."""

    collections: dict[str, Collection] = field(default_factory=dict)
    run_number: int = 0
    event_number: int = 0

    def get_collection(self, name: str) -> Collection:
        try:
            return self.collections[name]
        except KeyError:
            raise KeyError(f"collection {name!r} not available in event") from None


def corrected_time(hit_time: float, position: tuple[float, float, float]) -> float:
    """Subtract the light travel time from the origin to the hit position."""
    distance = math.sqrt(sum(c * c for c in position))
    return hit_time - distance / SPEED_OF_LIGHT_MM_PER_NS