"""
CircuitState: the authoritative, session-owned circuit model.

All mutation goes through place_component, remove_component,
set_topology_mode, reset and change_level. Each one recomputes the
electrical totals and re-evaluates completeness before returning.
Completion handlers run synchronously inside the call that caused the
transition.

Conceptual states:

    Empty → PartiallyFilled → Complete(Correct | Incorrect)

"Complete" here means both gaps are filled; ``is_complete`` is only True
for the correct combination (or, without a catalog, for any filled pair).
"""

import itertools
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

from circuit_engine.aggregation import (
    EMPTY_TOTALS,
    SUPPLY_VOLTAGE,
    ElectricalTotals,
    TopologyMode,
    aggregate,
)
from circuit_engine.components import Component, ComponentKind, PlacementRequest
from circuit_engine.errors import InvalidLevel, MalformedComponentTemplate
from circuit_engine.levels import LevelCatalog
from circuit_engine.placement import PlacementValidator

logger = logging.getLogger(__name__)

# (level_id, elapsed_seconds, attempts)
CompletionHandler = Callable[[Optional[int], int, int], None]


class RejectionReason(str, Enum):
    OUTSIDE_REGION = "outside_region"
    MALFORMED_TEMPLATE = "malformed_template"
    SLOT_OCCUPIED = "slot_occupied"


@dataclass(frozen=True)
class PlacementResult:
    accepted: bool
    component_id: Optional[str] = None
    reason: Optional[RejectionReason] = None

    def __bool__(self) -> bool:
        return self.accepted

    @classmethod
    def accept(cls, component_id: str) -> 'PlacementResult':
        return cls(accepted=True, component_id=component_id)

    @classmethod
    def reject(cls, reason: RejectionReason) -> 'PlacementResult':
        return cls(accepted=False, reason=reason)


@dataclass(frozen=True)
class LevelChangeResult:
    ok: bool
    level_id: Optional[int]
    error: Optional[InvalidLevel] = None

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class LevelCompletion:
    """One transition into a correct, complete circuit."""
    level_id: Optional[int]
    elapsed_seconds: int
    attempts: int

    def to_dict(self) -> dict:
        return {
            'level_id': self.level_id,
            'elapsed_seconds': self.elapsed_seconds,
            'attempts': self.attempts,
        }


@dataclass(frozen=True)
class CircuitSnapshot:
    """Read-only view of a CircuitState for the view layer."""
    components: Tuple[Component, ...]
    topology_mode: TopologyMode
    supply_voltage: float
    totals: ElectricalTotals
    is_complete: bool
    is_correct_combination: Optional[bool]
    active_level_id: Optional[int]
    attempts: int
    multi_slot: bool = False
    completions: Tuple[LevelCompletion, ...] = field(default_factory=tuple)

    @property
    def total_resistance(self) -> float:
        return self.totals.total_resistance

    @property
    def total_capacitance(self) -> float:
        return self.totals.total_capacitance

    @property
    def current(self) -> float:
        return self.totals.current

    def to_dict(self) -> dict:
        return {
            'components': [c.to_dict() for c in self.components],
            'topology_mode': self.topology_mode.value,
            'supply_voltage': self.supply_voltage,
            **self.totals.to_dict(),
            'is_complete': self.is_complete,
            'is_correct_combination': self.is_correct_combination,
            'active_level_id': self.active_level_id,
            'attempts': self.attempts,
            'multi_slot': self.multi_slot,
        }


class CircuitState:
    """
    Placed components, topology mode, derived totals and level evaluation.

    Args:
        catalog: Level catalog for the leveled game. ``None`` gives the basic
            variant, where any resistor + capacitor pair completes the circuit.
        multi_slot: Allow several components per kind. Single-slot (the
            default) rejects a second part for an occupied gap.
        supply_voltage: Battery voltage used for the current.
        validator: Placement predicate; defaults to the canvas gap regions.
        clock: Monotonic seconds source used to time levels.

    One instance per play session. Not thread-safe and never shared.
    """

    def __init__(
        self,
        catalog: Optional[LevelCatalog] = None,
        *,
        multi_slot: bool = False,
        supply_voltage: float = SUPPLY_VOLTAGE,
        validator: Optional[PlacementValidator] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.catalog = catalog
        self.multi_slot = multi_slot
        self.supply_voltage = supply_voltage
        self.validator = validator or PlacementValidator()
        self._clock = clock

        self._components: List[Component] = []
        self._mode = TopologyMode.SERIES
        self._totals = EMPTY_TOTALS
        self._is_complete = False
        self._both_filled = False
        self._handlers: List[CompletionHandler] = []
        self._completions: List[LevelCompletion] = []
        # never rewound, so ids stay unique across resets
        self._ids = itertools.count(1)

        self.active_level_id: Optional[int] = catalog.first_id if catalog else None
        self._start_level()

    # --- Read accessors ---

    @property
    def components(self) -> Tuple[Component, ...]:
        return tuple(self._components)

    @property
    def topology_mode(self) -> TopologyMode:
        return self._mode

    @property
    def totals(self) -> ElectricalTotals:
        return self._totals

    @property
    def total_resistance(self) -> float:
        return self._totals.total_resistance

    @property
    def total_capacitance(self) -> float:
        return self._totals.total_capacitance

    @property
    def current(self) -> float:
        return self._totals.current

    @property
    def is_complete(self) -> bool:
        return self._is_complete

    @property
    def is_correct_combination(self) -> Optional[bool]:
        """None until both gaps are filled, then whether the pair is right."""
        if not self._both_filled:
            return None
        return self._matches_target()

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def completions(self) -> Tuple[LevelCompletion, ...]:
        return tuple(self._completions)

    def elapsed_seconds(self) -> int:
        return max(0, int(self._clock() - self._level_started_at))

    def has_kind(self, kind: ComponentKind) -> bool:
        return any(c.kind is kind and c.accepted for c in self._components)

    def snapshot(self) -> CircuitSnapshot:
        return CircuitSnapshot(
            components=self.components,
            topology_mode=self._mode,
            supply_voltage=self.supply_voltage,
            totals=self._totals,
            is_complete=self._is_complete,
            is_correct_combination=self.is_correct_combination,
            active_level_id=self.active_level_id,
            attempts=self._attempts,
            multi_slot=self.multi_slot,
            completions=self.completions,
        )

    # --- Subscription ---

    def on_level_complete(self, handler: CompletionHandler) -> CompletionHandler:
        """Register ``handler(level_id, elapsed_seconds, attempts)``."""
        if handler not in self._handlers:
            self._handlers.append(handler)
        return handler

    def remove_level_complete_handler(self, handler: CompletionHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    # --- Operations ---

    def place_component(self, kind, magnitude, point) -> PlacementResult:
        """
        Commit a dropped component if it lands in its own kind's gap.

        Rejections leave the state untouched: no component, no
        recomputation, no event.
        """
        try:
            request = PlacementRequest.parse(kind, magnitude, point)
        except MalformedComponentTemplate as e:
            logger.debug("Rejected malformed placement: %s", e)
            return PlacementResult.reject(RejectionReason.MALFORMED_TEMPLATE)

        if not self.validator.validate(request.kind, request.point):
            logger.debug("Rejected %s at (%s, %s): outside its region",
                         request.kind.value, request.point.x, request.point.y)
            return PlacementResult.reject(RejectionReason.OUTSIDE_REGION)

        if not self.multi_slot and self.has_kind(request.kind):
            logger.debug("Rejected %s: gap already occupied", request.kind.value)
            return PlacementResult.reject(RejectionReason.SLOT_OCCUPIED)

        component = Component(
            id=f"{request.kind.value}-{next(self._ids)}",
            kind=request.kind,
            magnitude=request.magnitude,
            drop_point=request.point,
        )
        self._components.append(component)
        logger.debug("Placed %s (%s)", component.id, component.label)
        self._refresh()
        return PlacementResult.accept(component.id)

    def remove_component(self, component_id: str) -> None:
        """Remove by id. Unknown ids are a no-op."""
        remaining = [c for c in self._components if c.id != component_id]
        if len(remaining) == len(self._components):
            return
        self._components = remaining
        logger.debug("Removed %s", component_id)
        self._refresh()

    def set_topology_mode(self, mode) -> None:
        self._mode = TopologyMode(mode)
        self._refresh()

    def reset(self) -> None:
        """Clear the board. The active level, its clock and attempts are kept."""
        self._components = []
        self._totals = EMPTY_TOTALS
        self._is_complete = False
        self._both_filled = False

    def change_level(self, level_id: int) -> LevelChangeResult:
        """Reset and switch level; out-of-range ids change nothing."""
        if self.catalog is None or not self.catalog.is_valid(level_id):
            logger.info("Ignoring change to invalid level %r", level_id)
            return LevelChangeResult(ok=False, level_id=self.active_level_id,
                                     error=InvalidLevel(level_id))
        self.reset()
        self.active_level_id = level_id
        self._start_level()
        return LevelChangeResult(ok=True, level_id=level_id)

    # --- Internals ---

    def _start_level(self) -> None:
        self._level_started_at = self._clock()
        self._attempts = 0

    def _matches_target(self) -> bool:
        if self.catalog is None or self.active_level_id is None:
            return True
        level = self.catalog.get(self.active_level_id)
        # exact match; no tolerance
        return (self._totals.total_resistance == level.target_resistor
                and self._totals.total_capacitance == level.target_capacitor)

    def _refresh(self) -> None:
        self._totals = aggregate(self._components, self._mode, self.supply_voltage)

        both = self.has_kind(ComponentKind.RESISTOR) and self.has_kind(ComponentKind.CAPACITOR)
        if both and not self._both_filled:
            self._attempts += 1
        self._both_filled = both

        was_complete = self._is_complete
        self._is_complete = both and self._matches_target()
        if self._is_complete and not was_complete:
            self._emit_completion()

    def _emit_completion(self) -> None:
        completion = LevelCompletion(
            level_id=self.active_level_id,
            elapsed_seconds=self.elapsed_seconds(),
            attempts=self._attempts,
        )
        self._completions.append(completion)
        logger.info("Level %s complete in %ss after %s attempt(s)",
                    completion.level_id, completion.elapsed_seconds, completion.attempts)
        for handler in list(self._handlers):
            try:
                handler(completion.level_id, completion.elapsed_seconds, completion.attempts)
            except Exception:
                logger.exception("Level-complete handler %r failed", handler)
