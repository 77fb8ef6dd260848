"""
Acceptance regions and the placement predicate.

Each component kind owns one closed, axis-aligned rectangle on the
600 × 350 canvas. A drop is accepted only inside its own kind's rectangle;
drops into another kind's rectangle are rejected, never redirected.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from circuit_engine.components import ComponentKind, Point

logger = logging.getLogger(__name__)

CANVAS_WIDTH = 600
CANVAS_HEIGHT = 350


@dataclass(frozen=True)
class Region:
    """Closed rectangle: boundary points are inside."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, point: Point) -> bool:
        # NaN coordinates compare False and fall outside
        return self.x <= point.x <= self.right and self.y <= point.y <= self.bottom

    def overlaps(self, other: 'Region') -> bool:
        return not (
            self.right < other.x or other.right < self.x
            or self.bottom < other.y or other.bottom < self.y
        )

    def to_dict(self) -> dict:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}


# Gap rectangles in the predrawn circuit
RESISTOR_REGION = Region(x=300, y=100, width=120, height=40)
CAPACITOR_REGION = Region(x=300, y=280, width=120, height=40)

DEFAULT_REGIONS: Dict[ComponentKind, Region] = {
    ComponentKind.RESISTOR: RESISTOR_REGION,
    ComponentKind.CAPACITOR: CAPACITOR_REGION,
}


class PlacementValidator:
    """Stateless drop-point predicate over a {kind → region} table."""

    def __init__(self, regions: Optional[Mapping[ComponentKind, Region]] = None):
        table = dict(DEFAULT_REGIONS if regions is None else regions)

        kinds = list(table)
        for i, kind in enumerate(kinds):
            for other in kinds[i + 1:]:
                if table[kind].overlaps(table[other]):
                    raise ValueError(
                        f"Acceptance regions for {kind.value} and {other.value} overlap"
                    )

        self.unconfigured = tuple(k for k in ComponentKind if k not in table)
        for kind in self.unconfigured:
            logger.warning("No acceptance region for %s; placements will be rejected", kind.value)

        self._regions = table

    def region_for(self, kind: ComponentKind) -> Optional[Region]:
        return self._regions.get(kind)

    @property
    def regions(self) -> Dict[ComponentKind, Region]:
        return dict(self._regions)

    def validate(self, kind: ComponentKind, point: Point) -> bool:
        """True iff ``point`` lies inside the closed region owned by ``kind``."""
        region = self._regions.get(kind)
        if region is None:
            return False
        return region.contains(point)
