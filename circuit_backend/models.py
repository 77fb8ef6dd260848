"""Pydantic models for Circuit Quest API requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from circuit_engine.aggregation import TopologyMode
from circuit_engine.circuit import RejectionReason


# --- Requests ---

class PointModel(BaseModel):
    x: float
    y: float


class CreateSessionRequest(BaseModel):
    multi_slot: bool = Field(False, description="Allow several components per gap")


class PlaceComponentRequest(BaseModel):
    """Drop payload from the canvas.

    Kind and magnitude are validated by the engine so that a malformed
    template comes back as a rejected placement, not a 422.
    """
    kind: str = Field(..., max_length=32, description="'resistor' or 'capacitor'")
    magnitude: float = Field(..., description="Ohms for resistors, μF for capacitors")
    point: PointModel


class TopologyRequest(BaseModel):
    mode: TopologyMode


class LevelRequest(BaseModel):
    level_id: int


# --- Circuit state ---

class ComponentOut(BaseModel):
    id: str
    kind: str
    magnitude: float
    unit: str
    label: str
    drop_point: PointModel
    accepted: bool


class CompletionOut(BaseModel):
    level_id: Optional[int] = None
    elapsed_seconds: int
    attempts: int
    points: Optional[int] = None


class CircuitSnapshotOut(BaseModel):
    components: list[ComponentOut] = []
    topology_mode: TopologyMode
    supply_voltage: float
    total_resistance: float
    total_capacitance: float
    current: float
    is_complete: bool
    is_correct_combination: Optional[bool] = None
    active_level_id: Optional[int] = None
    attempts: int = 0
    multi_slot: bool = False


class PlayerStatsOut(BaseModel):
    total_score: int
    levels_completed: int
    total_levels: int
    badges: list[str] = []
    current_streak: int
    best_time: int
    progress_percentage: float


class SessionResponse(BaseModel):
    session_id: str
    circuit: CircuitSnapshotOut
    stats: PlayerStatsOut
    completions: list[CompletionOut] = []


class PlacementResponse(SessionResponse):
    accepted: bool
    component_id: Optional[str] = None
    reason: Optional[RejectionReason] = None


class SessionSummary(BaseModel):
    id: str
    active_level_id: Optional[int] = None
    component_count: int
    is_complete: bool
    total_score: int
    created_at: datetime
    updated_at: datetime


# --- Library ---

class LevelOut(BaseModel):
    id: int
    target_resistor: float
    target_capacitor: float
    title: str
    description: str = ""
    next_id: Optional[int] = None


class LevelListResponse(BaseModel):
    levels: list[LevelOut]
    total: int


class ComponentTemplateOut(BaseModel):
    kind: str
    magnitude: float
    unit: str
    label: str


class RegionOut(BaseModel):
    x: float
    y: float
    width: float
    height: float


class ComponentLibraryResponse(BaseModel):
    templates: list[ComponentTemplateOut]
    regions: dict[str, RegionOut]
    supply_voltage: float
