"""
Tests for the CircuitState state machine.

Validates:
1. Accepted placements recompute totals; rejected ones change nothing
2. Removal is idempotent and round-trips with placement
3. Topology changes never alter the component set
4. Completeness / correctness flags in basic and leveled variants
5. Completion events: one per transition, attempt counting, timing
6. Level changes and resets
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from circuit_engine.circuit import CircuitState, RejectionReason
from circuit_engine.aggregation import TopologyMode
from circuit_engine.components import ComponentKind
from circuit_engine.errors import InvalidLevel
from circuit_engine.levels import DEFAULT_CATALOG, LevelCatalog, LevelDefinition

R = ComponentKind.RESISTOR
C = ComponentKind.CAPACITOR
IN_R = (360, 120)   # inside the resistor gap
IN_C = (360, 300)   # inside the capacitor gap


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def leveled(clock):
    catalog = LevelCatalog([
        LevelDefinition(1, 2, 2, "Two and two"),
        LevelDefinition(2, 5, 3, "Five and three"),
    ])
    return CircuitState(catalog, clock=clock)


@pytest.fixture
def events(leveled):
    received = []
    leveled.on_level_complete(lambda *args: received.append(args))
    return received


class TestPlacement:
    """Test place_component."""

    def test_accepted_placement(self):
        circuit = CircuitState()
        result = circuit.place_component(R, 5, IN_R)
        assert result.accepted
        assert result
        assert result.reason is None
        assert [c.id for c in circuit.components] == [result.component_id]
        assert circuit.total_resistance == pytest.approx(5.0)
        assert circuit.current == pytest.approx(2.4)

    def test_component_fields(self):
        circuit = CircuitState()
        result = circuit.place_component("capacitor", 3, {'x': 310, 'y': 290})
        component = circuit.components[0]
        assert component.id == result.component_id
        assert component.kind is C
        assert component.unit == 'μF'
        assert component.label == '3μF'
        assert component.drop_point == (310, 290)
        assert component.accepted

    def test_outside_region_rejected(self):
        circuit = CircuitState()
        before = circuit.snapshot()
        result = circuit.place_component(R, 5, (10, 10))
        assert not result.accepted
        assert result.component_id is None
        assert result.reason is RejectionReason.OUTSIDE_REGION
        assert circuit.snapshot() == before

    def test_cross_kind_rejected_regardless_of_state(self):
        circuit = CircuitState(multi_slot=True)
        circuit.place_component(R, 2, IN_R)
        for mode in TopologyMode:
            circuit.set_topology_mode(mode)
            assert circuit.place_component(C, 2, IN_R).reason is RejectionReason.OUTSIDE_REGION
            assert circuit.place_component(R, 2, IN_C).reason is RejectionReason.OUTSIDE_REGION
        assert len(circuit.components) == 1

    @pytest.mark.parametrize("kind,magnitude,point", [
        (R, 0, IN_R),
        (R, -3, IN_R),
        (R, float('inf'), IN_R),
        (R, float('nan'), IN_R),
        (R, "5", IN_R),
        (R, True, IN_R),
        ("inductor", 5, IN_R),
        (None, 5, IN_R),
        (R, 5, None),
        (R, 5, {'x': 360}),
        (R, 5, (360, "a")),
    ])
    def test_malformed_rejected(self, kind, magnitude, point):
        circuit = CircuitState()
        result = circuit.place_component(kind, magnitude, point)
        assert result.reason is RejectionReason.MALFORMED_TEMPLATE
        assert circuit.components == ()
        assert circuit.total_resistance == 0

    def test_single_slot_rejects_second_part(self):
        circuit = CircuitState()
        assert circuit.place_component(R, 2, IN_R)
        result = circuit.place_component(R, 3, IN_R)
        assert result.reason is RejectionReason.SLOT_OCCUPIED
        assert circuit.total_resistance == pytest.approx(2.0)

    def test_ids_are_unique_across_resets(self):
        circuit = CircuitState()
        seen = set()
        for _ in range(3):
            seen.add(circuit.place_component(R, 2, IN_R).component_id)
            seen.add(circuit.place_component(C, 2, IN_C).component_id)
            circuit.reset()
        assert len(seen) == 6

    def test_insertion_order_preserved(self):
        circuit = CircuitState(multi_slot=True)
        ids = [
            circuit.place_component(C, 2, IN_C).component_id,
            circuit.place_component(R, 3, IN_R).component_id,
            circuit.place_component(R, 5, IN_R).component_id,
        ]
        assert [c.id for c in circuit.components] == ids


class TestRemoval:
    """Test remove_component."""

    def test_remove_twice_is_noop(self):
        circuit = CircuitState()
        cid = circuit.place_component(R, 2, IN_R).component_id
        circuit.place_component(C, 2, IN_C)
        circuit.remove_component(cid)
        after_first = circuit.snapshot()
        circuit.remove_component(cid)
        assert circuit.snapshot() == after_first

    def test_remove_unknown_id(self):
        circuit = CircuitState()
        circuit.place_component(R, 2, IN_R)
        before = circuit.snapshot()
        circuit.remove_component("resistor-999")
        assert circuit.snapshot() == before

    @pytest.mark.parametrize("kind,point", [(R, IN_R), (C, IN_C)])
    def test_place_then_remove_round_trip(self, kind, point):
        circuit = CircuitState(multi_slot=True)
        circuit.place_component(R, 3, IN_R)
        before = circuit.snapshot()
        cid = circuit.place_component(kind, 5, point).component_id
        circuit.remove_component(cid)
        after = circuit.snapshot()
        assert after.total_resistance == before.total_resistance
        assert after.total_capacitance == before.total_capacitance
        assert after.current == before.current
        assert after.is_complete == before.is_complete


class TestTopology:
    """Test set_topology_mode."""

    def test_series_to_parallel(self):
        circuit = CircuitState(multi_slot=True)
        circuit.place_component(R, 3, IN_R)
        circuit.place_component(R, 5, IN_R)
        assert circuit.total_resistance == pytest.approx(8.0)

        components = circuit.components
        circuit.set_topology_mode(TopologyMode.PARALLEL)
        assert circuit.total_resistance == pytest.approx(1 / (1 / 3 + 1 / 5))
        assert circuit.total_resistance == pytest.approx(1.875)
        assert circuit.components == components

    def test_accepts_string_mode(self):
        circuit = CircuitState()
        circuit.set_topology_mode("parallel")
        assert circuit.topology_mode is TopologyMode.PARALLEL

    def test_unknown_mode_raises(self):
        circuit = CircuitState()
        with pytest.raises(ValueError):
            circuit.set_topology_mode("diagonal")

    def test_capacitors_follow_inverse_rule(self):
        circuit = CircuitState(multi_slot=True)
        circuit.place_component(C, 2, IN_C)
        circuit.place_component(C, 2, IN_C)
        assert circuit.total_capacitance == pytest.approx(1.0)
        circuit.set_topology_mode(TopologyMode.PARALLEL)
        assert circuit.total_capacitance == pytest.approx(4.0)


class TestBasicCompleteness:
    """Without a catalog any resistor + capacitor pair completes the circuit."""

    def test_progression(self):
        circuit = CircuitState()
        assert not circuit.is_complete
        assert circuit.is_correct_combination is None

        circuit.place_component(R, 10, IN_R)
        assert not circuit.is_complete
        assert circuit.is_correct_combination is None

        circuit.place_component(C, 5, IN_C)
        assert circuit.is_complete
        assert circuit.is_correct_combination is True

    def test_event_carries_no_level(self, clock):
        circuit = CircuitState(clock=clock)
        received = []
        circuit.on_level_complete(lambda *args: received.append(args))
        circuit.place_component(R, 10, IN_R)
        circuit.place_component(C, 5, IN_C)
        assert received == [(None, 0, 1)]

    def test_change_level_without_catalog(self):
        circuit = CircuitState()
        result = circuit.change_level(1)
        assert not result.ok
        assert isinstance(result.error, InvalidLevel)
        assert circuit.active_level_id is None


class TestLeveledCompleteness:
    """Test target matching and completion events."""

    def test_starts_on_first_level(self, leveled):
        assert leveled.active_level_id == 1
        assert leveled.attempts == 0

    def test_wrong_then_right_combination(self, leveled, events, clock):
        leveled.place_component(R, 2, IN_R)
        cap = leveled.place_component(C, 3, IN_C).component_id
        assert not leveled.is_complete
        assert leveled.is_correct_combination is False
        assert events == []

        clock.advance(42)
        leveled.remove_component(cap)
        assert leveled.is_correct_combination is None
        leveled.place_component(C, 2, IN_C)

        assert leveled.is_complete
        assert leveled.is_correct_combination is True
        assert events == [(1, 42, 2)]

    def test_one_event_per_transition(self, leveled, events):
        leveled.place_component(R, 2, IN_R)
        cap = leveled.place_component(C, 2, IN_C).component_id
        leveled.set_topology_mode(TopologyMode.PARALLEL)
        leveled.set_topology_mode(TopologyMode.SERIES)
        assert len(events) == 1

        leveled.remove_component(cap)
        assert not leveled.is_complete
        leveled.place_component(C, 2, IN_C)
        assert len(events) == 2
        assert events[1][2] == 2

    def test_exact_match_only(self, clock):
        catalog = LevelCatalog([LevelDefinition(1, 2, 2, "Exact")])
        circuit = CircuitState(catalog, multi_slot=True, clock=clock)
        circuit.set_topology_mode(TopologyMode.PARALLEL)
        circuit.place_component(R, 3, IN_R)
        circuit.place_component(R, 5, IN_R)
        circuit.place_component(C, 2, IN_C)
        # 1.875Ω is not 2Ω
        assert circuit.is_correct_combination is False

    def test_multi_slot_compares_totals(self, clock):
        catalog = LevelCatalog([LevelDefinition(1, 8, 1, "Chain")])
        circuit = CircuitState(catalog, multi_slot=True, clock=clock)
        received = []
        circuit.on_level_complete(lambda *args: received.append(args))

        circuit.set_topology_mode(TopologyMode.PARALLEL)
        circuit.place_component(R, 3, IN_R)
        circuit.place_component(R, 5, IN_R)
        circuit.place_component(C, 2, IN_C)
        circuit.place_component(C, 2, IN_C)
        assert not circuit.is_complete  # 1.875Ω, 4μF
        assert received == []

        clock.advance(12)
        circuit.set_topology_mode(TopologyMode.SERIES)
        assert circuit.is_complete  # 8Ω, 1μF
        assert received == [(1, 12, 1)]

    def test_completion_history(self, leveled):
        leveled.place_component(R, 2, IN_R)
        leveled.place_component(C, 2, IN_C)
        completion = leveled.completions[0]
        assert completion.level_id == 1
        assert completion.to_dict() == {'level_id': 1, 'elapsed_seconds': 0, 'attempts': 1}

    def test_failing_handler_does_not_block_others(self, leveled):
        received = []

        def broken(*args):
            raise RuntimeError("view went away")

        leveled.on_level_complete(broken)
        leveled.on_level_complete(lambda *args: received.append(args))
        leveled.place_component(R, 2, IN_R)
        leveled.place_component(C, 2, IN_C)
        assert leveled.is_complete
        assert len(received) == 1

    def test_remove_handler(self, leveled):
        received = []
        handler = leveled.on_level_complete(lambda *args: received.append(args))
        leveled.on_level_complete(handler)  # duplicate registration ignored
        leveled.remove_level_complete_handler(handler)
        leveled.place_component(R, 2, IN_R)
        leveled.place_component(C, 2, IN_C)
        assert received == []


class TestResetAndLevels:
    """Test reset and change_level."""

    def test_reset_clears_board(self, leveled):
        leveled.place_component(R, 2, IN_R)
        leveled.place_component(C, 2, IN_C)
        leveled.set_topology_mode(TopologyMode.PARALLEL)
        leveled.reset()
        snap = leveled.snapshot()
        assert snap.components == ()
        assert snap.total_resistance == 0
        assert snap.total_capacitance == 0
        assert snap.current == 0
        assert not snap.is_complete
        assert snap.is_correct_combination is None
        assert snap.active_level_id == 1

    def test_reset_keeps_attempts(self, leveled, events):
        leveled.place_component(R, 5, IN_R)
        leveled.place_component(C, 5, IN_C)
        leveled.reset()
        leveled.place_component(R, 2, IN_R)
        leveled.place_component(C, 2, IN_C)
        assert events == [(1, 0, 2)]

    def test_reset_then_complete_emits_again(self, leveled, events):
        leveled.place_component(R, 2, IN_R)
        leveled.place_component(C, 2, IN_C)
        leveled.reset()
        leveled.place_component(R, 2, IN_R)
        leveled.place_component(C, 2, IN_C)
        assert len(events) == 2

    def test_change_level(self, leveled, events, clock):
        leveled.place_component(R, 2, IN_R)
        leveled.place_component(C, 3, IN_C)
        clock.advance(100)

        result = leveled.change_level(2)
        assert result.ok
        assert result.level_id == 2
        assert leveled.active_level_id == 2
        assert leveled.components == ()
        assert leveled.attempts == 0

        clock.advance(7)
        leveled.place_component(R, 5, IN_R)
        leveled.place_component(C, 3, IN_C)
        assert events == [(2, 7, 1)]

    @pytest.mark.parametrize("level_id", [0, 3, -1, 99, "1", 1.0, None, True])
    def test_change_to_invalid_level(self, leveled, level_id):
        leveled.place_component(R, 2, IN_R)
        before = leveled.snapshot()
        result = leveled.change_level(level_id)
        assert not result
        assert isinstance(result.error, InvalidLevel)
        assert result.level_id == 1
        assert leveled.snapshot() == before

    def test_default_catalog_session(self):
        circuit = CircuitState(DEFAULT_CATALOG)
        assert circuit.change_level(len(DEFAULT_CATALOG)).ok
        assert not circuit.change_level(len(DEFAULT_CATALOG) + 1).ok


class TestSnapshot:
    def test_to_dict(self):
        circuit = CircuitState()
        circuit.place_component(R, 2, IN_R)
        d = circuit.snapshot().to_dict()
        assert d['topology_mode'] == 'series'
        assert d['total_resistance'] == 2.0
        assert d['current'] == 6.0
        assert d['supply_voltage'] == 12.0
        assert d['components'][0]['kind'] == 'resistor'
        assert d['components'][0]['unit'] == 'Ω'
        assert d['is_correct_combination'] is None
