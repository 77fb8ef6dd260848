"""
Circuit Quest Engine

Evaluation core for the gap-filling circuit puzzle: placement validation,
series/parallel aggregation, circuit state and level progression.

Pure in-memory computation: no I/O and no rendering.
"""

from circuit_engine.errors import CircuitError, RejectedPlacement, MalformedComponentTemplate, InvalidLevel
from circuit_engine.components import (
    ComponentKind, Component, ComponentTemplate, PlacementRequest, Point,
    TOOLBOX_TEMPLATES, engineering_notation,
)
from circuit_engine.placement import PlacementValidator, Region, DEFAULT_REGIONS
from circuit_engine.aggregation import TopologyMode, ElectricalTotals, SUPPLY_VOLTAGE, aggregate
from circuit_engine.levels import LevelDefinition, LevelCatalog, LEVELS, DEFAULT_CATALOG
from circuit_engine.circuit import (
    CircuitState, CircuitSnapshot, PlacementResult, RejectionReason,
    LevelChangeResult, LevelCompletion,
)
from circuit_engine.scoring import ProgressTracker, PlayerStats, level_points

__version__ = "0.1.0"
