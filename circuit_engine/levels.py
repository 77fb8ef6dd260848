"""
Level catalog: the fixed, ordered list of puzzles.

Every target is a toolbox value, so each level is solvable with one
resistor and one capacitor.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple

from circuit_engine.errors import InvalidLevel


@dataclass(frozen=True)
class LevelDefinition:
    """One puzzle: reproduce the target resistor/capacitor pair."""
    id: int
    target_resistor: float    # Ohms
    target_capacitor: float   # μF
    title: str
    description: str = ''

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'target_resistor': self.target_resistor,
            'target_capacitor': self.target_capacitor,
            'title': self.title,
            'description': self.description,
        }


class LevelCatalog:
    """Read-only, 1-indexed level list with O(1) lookup by id."""

    def __init__(self, levels: Iterable[LevelDefinition]):
        levels = tuple(levels)
        if not levels:
            raise ValueError("A level catalog needs at least one level")

        ids = [level.id for level in levels]
        if ids != list(range(1, len(levels) + 1)):
            raise ValueError(f"Level ids must run 1..{len(levels)} in order, got {ids}")

        self._levels: Tuple[LevelDefinition, ...] = levels
        self._index: Dict[int, LevelDefinition] = {level.id: level for level in levels}

    def __len__(self) -> int:
        return len(self._levels)

    def __iter__(self) -> Iterator[LevelDefinition]:
        return iter(self._levels)

    def __contains__(self, level_id) -> bool:
        return self.is_valid(level_id)

    @property
    def first_id(self) -> int:
        return self._levels[0].id

    @property
    def last_id(self) -> int:
        return self._levels[-1].id

    def is_valid(self, level_id) -> bool:
        if isinstance(level_id, bool) or not isinstance(level_id, int):
            return False
        return level_id in self._index

    def get(self, level_id: int) -> LevelDefinition:
        """Raises InvalidLevel for ids outside the catalog."""
        if not self.is_valid(level_id):
            raise InvalidLevel(level_id)
        return self._index[level_id]

    def next_id(self, level_id: int) -> Optional[int]:
        """The following level's id, or None at the final level."""
        self.get(level_id)
        return level_id + 1 if level_id < self.last_id else None


LEVELS: Tuple[LevelDefinition, ...] = (
    LevelDefinition(1, 2, 2, "First Spark",
                    "Close both gaps: a 2Ω resistor and a 2μF capacitor."),
    LevelDefinition(2, 3, 2, "A Little More Resistance",
                    "Use a 3Ω resistor with a 2μF capacitor. The bulb dims as resistance rises."),
    LevelDefinition(3, 2, 3, "Storing Charge",
                    "Pair a 2Ω resistor with a 3μF capacitor."),
    LevelDefinition(4, 5, 2, "Current Limiter",
                    "A 5Ω resistor lets 2.4A flow from the 12V battery. Add a 2μF capacitor."),
    LevelDefinition(5, 5, 5, "Balanced Pair",
                    "Match a 5Ω resistor with a 5μF capacitor."),
    LevelDefinition(6, 10, 2, "Dim the Bulb",
                    "The largest resistor, 10Ω, with a 2μF capacitor."),
    LevelDefinition(7, 3, 5, "Charge Reservoir",
                    "A 3Ω resistor and a 5μF capacitor."),
    LevelDefinition(8, 10, 3, "Slow and Steady",
                    "10Ω and 3μF: only 1.2A reaches the motor."),
    LevelDefinition(9, 2, 10, "Big Capacitor",
                    "Fill the capacitor gap with 10μF and the resistor gap with 2Ω."),
    LevelDefinition(10, 10, 10, "Heavyweights",
                    "Both gaps take their largest parts: 10Ω and 10μF."),
    LevelDefinition(11, 5, 3, "Mix and Match",
                    "A 5Ω resistor and a 3μF capacitor."),
    LevelDefinition(12, 3, 10, "High Capacity",
                    "Combine 3Ω with 10μF."),
    LevelDefinition(13, 10, 5, "Gentle Current",
                    "10Ω and 5μF keep the current at 1.2A."),
    LevelDefinition(14, 5, 10, "Almost There",
                    "A 5Ω resistor with a 10μF capacitor."),
    LevelDefinition(15, 3, 3, "Circuit Master",
                    "Finish with a 3Ω resistor and a 3μF capacitor: 4A through the bulb."),
)

DEFAULT_CATALOG = LevelCatalog(LEVELS)
