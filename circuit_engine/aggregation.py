"""
Series/parallel aggregation of placed components.

Resistors and capacitors combine by opposite rules:

    SERIES:    R = R₁ + R₂ + ...          1/C = 1/C₁ + 1/C₂ + ...
    PARALLEL:  1/R = 1/R₁ + 1/R₂ + ...    C = C₁ + C₂ + ...

Current is Ohm's law on the aggregate resistance alone. Capacitance does not
enter it; this is a DC steady-state teaching model, not an AC analysis.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

import numpy as np

from circuit_engine.components import Component, ComponentKind

# The predrawn circuit's battery (volts)
SUPPLY_VOLTAGE = 12.0


class TopologyMode(str, Enum):
    SERIES = "series"
    PARALLEL = "parallel"


@dataclass(frozen=True)
class ElectricalTotals:
    """Derived quantities. All zero is the empty circuit."""
    total_resistance: float = 0.0   # Ohms
    total_capacitance: float = 0.0  # μF
    current: float = 0.0            # Amps

    def to_dict(self) -> dict:
        return {
            'total_resistance': self.total_resistance,
            'total_capacitance': self.total_capacitance,
            'current': self.current,
        }


EMPTY_TOTALS = ElectricalTotals()


def _check_positive(values: Sequence[float]) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if np.any(arr <= 0):
        raise ValueError(f"Component magnitudes must be positive, got {list(values)}")
    return arr


def additive(values: Sequence[float]) -> float:
    """Plain sum. 0 for no values."""
    if len(values) == 0:
        return 0.0
    return float(np.sum(_check_positive(values)))


def harmonic(values: Sequence[float]) -> float:
    """Reciprocal of the sum of reciprocals. 0 for no values."""
    if len(values) == 0:
        return 0.0
    arr = _check_positive(values)
    if arr.size == 1:
        # exact: a lone part is its own total
        return float(arr[0])
    return float(1.0 / np.sum(1.0 / arr))


def combine_resistances(values: Sequence[float], mode: TopologyMode) -> float:
    return additive(values) if TopologyMode(mode) is TopologyMode.SERIES else harmonic(values)


def combine_capacitances(values: Sequence[float], mode: TopologyMode) -> float:
    return harmonic(values) if TopologyMode(mode) is TopologyMode.SERIES else additive(values)


def aggregate(
    components: Iterable[Component],
    mode: TopologyMode,
    supply_voltage: float = SUPPLY_VOLTAGE,
) -> ElectricalTotals:
    """
    Compute total resistance, total capacitance and current.

    Only accepted components contribute. Empty input yields EMPTY_TOTALS
    (zero current); it is not an error.

    Raises:
        ValueError: if a component with a non-positive magnitude slipped
            past placement validation.
    """
    mode = TopologyMode(mode)
    resistors = []
    capacitors = []
    for component in components:
        if not component.accepted:
            continue
        if component.kind is ComponentKind.RESISTOR:
            resistors.append(component.magnitude)
        elif component.kind is ComponentKind.CAPACITOR:
            capacitors.append(component.magnitude)

    total_resistance = combine_resistances(resistors, mode)
    total_capacitance = combine_capacitances(capacitors, mode)
    current = supply_voltage / total_resistance if total_resistance > 0 else 0.0

    return ElectricalTotals(
        total_resistance=total_resistance,
        total_capacitance=total_capacitance,
        current=current,
    )
