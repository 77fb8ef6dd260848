"""
Component kinds, placed components and the toolbox palette.

Magnitudes are stored in the kind's display unit: resistors in Ohms,
capacitors in microfarads. The unit is derived from the kind and can
never be set independently.
"""

import math
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Any, NamedTuple, Tuple

from circuit_engine.errors import MalformedComponentTemplate


class ComponentKind(str, Enum):
    RESISTOR = "resistor"
    CAPACITOR = "capacitor"

    @property
    def unit(self) -> str:
        return UNITS[self]


UNITS = {
    ComponentKind.RESISTOR: 'Ω',
    ComponentKind.CAPACITOR: 'μF',
}


class Point(NamedTuple):
    """Canvas coordinate where a component was released."""
    x: float
    y: float


# SI prefix table
_SI_PREFIXES = [
    (1e-3, 'm'),
    (1e0,  ''),
    (1e3,  'k'),
    (1e6,  'M'),
]


def engineering_notation(value: float, unit: str = '', precision: int = 3) -> str:
    """
    Format a value with an SI prefix for display.

    Examples:
        engineering_notation(10, 'Ω')     → '10Ω'
        engineering_notation(4700, 'Ω')   → '4.7kΩ'
        engineering_notation(1.875, 'Ω')  → '1.88Ω'
        engineering_notation(2, 'μF')     → '2μF'
    """
    if value == 0:
        return f"0{unit}"

    abs_value = abs(value)
    sign = '-' if value < 0 else ''

    for scale, prefix in reversed(_SI_PREFIXES):
        if abs_value >= scale:
            scaled = abs_value / scale
            if scaled == int(scaled):
                return f"{sign}{int(scaled)}{prefix}{unit}"
            return f"{sign}{scaled:.{precision}g}{prefix}{unit}"

    return f"{value:.{precision}g}{unit}"


@dataclass(frozen=True)
class ComponentTemplate:
    """An entry of the toolbox palette: a kind and its rated value."""
    kind: ComponentKind
    magnitude: float

    @property
    def unit(self) -> str:
        return self.kind.unit

    @property
    def label(self) -> str:
        return engineering_notation(self.magnitude, self.unit)

    def to_dict(self) -> dict:
        return {
            'kind': self.kind.value,
            'magnitude': self.magnitude,
            'unit': self.unit,
            'label': self.label,
        }


TOOLBOX_TEMPLATES: Tuple[ComponentTemplate, ...] = (
    ComponentTemplate(ComponentKind.RESISTOR, 2.0),
    ComponentTemplate(ComponentKind.RESISTOR, 3.0),
    ComponentTemplate(ComponentKind.RESISTOR, 5.0),
    ComponentTemplate(ComponentKind.RESISTOR, 10.0),
    ComponentTemplate(ComponentKind.CAPACITOR, 2.0),
    ComponentTemplate(ComponentKind.CAPACITOR, 3.0),
    ComponentTemplate(ComponentKind.CAPACITOR, 5.0),
    ComponentTemplate(ComponentKind.CAPACITOR, 10.0),
)


@dataclass(frozen=True)
class Component:
    """A component committed to the circuit. Only ever removed, never edited."""
    id: str
    kind: ComponentKind
    magnitude: float
    drop_point: Point
    accepted: bool = True

    @property
    def unit(self) -> str:
        return self.kind.unit

    @property
    def label(self) -> str:
        return engineering_notation(self.magnitude, self.unit)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'kind': self.kind.value,
            'magnitude': self.magnitude,
            'unit': self.unit,
            'label': self.label,
            'drop_point': {'x': self.drop_point.x, 'y': self.drop_point.y},
            'accepted': self.accepted,
        }


def _coerce_kind(kind: Any) -> ComponentKind:
    if isinstance(kind, ComponentKind):
        return kind
    if isinstance(kind, str):
        try:
            return ComponentKind(kind.strip().lower())
        except ValueError:
            pass
    raise MalformedComponentTemplate(f"Unknown component kind {kind!r}")


def _coerce_number(value: Any, what: str) -> float:
    # bool is an int subclass but never a meaningful magnitude or coordinate
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise MalformedComponentTemplate(f"{what} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise MalformedComponentTemplate(f"{what} must be finite, got {value!r}")
    return value


def _coerce_point(point: Any) -> Point:
    if isinstance(point, dict):
        if 'x' not in point or 'y' not in point:
            raise MalformedComponentTemplate(f"Point needs x and y, got {point!r}")
        x, y = point['x'], point['y']
    else:
        try:
            x, y = point
        except (TypeError, ValueError):
            raise MalformedComponentTemplate(f"Malformed drop point {point!r}")
    return Point(_coerce_number(x, 'x'), _coerce_number(y, 'y'))


@dataclass(frozen=True)
class PlacementRequest:
    """A validated placement payload crossing into the engine."""
    kind: ComponentKind
    magnitude: float
    point: Point

    @classmethod
    def parse(cls, kind: Any, magnitude: Any, point: Any) -> 'PlacementRequest':
        """
        Build a request from loosely typed view-layer input.

        Raises:
            MalformedComponentTemplate: unknown kind, non-positive or
                non-finite magnitude, or a point without two numeric
                coordinates.
        """
        kind = _coerce_kind(kind)
        magnitude = _coerce_number(magnitude, 'magnitude')
        if magnitude <= 0:
            raise MalformedComponentTemplate(
                f"{kind.value} magnitude must be positive, got {magnitude}"
            )
        return cls(kind=kind, magnitude=magnitude, point=_coerce_point(point))
