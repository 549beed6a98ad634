"""
Tests for the placement strategies, legalizer and engine.

Tests cover:
- Component bounds and the padded overlap test
- Each strategy's layout rules
- Legalization (clamp + relocate)
- Engine determinism, ranking and overlap-free output
"""

import pytest

from tapeplace.board.abstraction import AssemblyComponent, Connection, PadRef
from tapeplace.cancellation import CancellationToken
from tapeplace.catalog import Footprint, get_footprint
from tapeplace.connections import expand_components, infer_connections
from tapeplace.placement import (
    STRATEGIES,
    AnnealingConfig,
    Bounds,
    PlacedComponent,
    PlacementConfig,
    PlacementLegalizer,
    bind_connections,
    calculate_component_bounds,
    check_overlap,
    find_compact_position,
    find_overlaps,
    flow_column,
    generate_placements,
    place_components,
    place_grid,
    place_radial,
    place_symmetric,
)
from tapeplace.placement.bounds import DEFAULT_BOUNDS


def _placed(component_id: str, x: float, y: float, size: float = 4.0) -> PlacedComponent:
    half = size / 2
    return PlacedComponent(id=component_id, type="resistor_th", x=x, y=y, rotation=0.0,
                           bounds=Bounds(-half, -half, half, half))


def _on_grid(value: float, grid: float = 2.54) -> bool:
    steps = value / grid
    return abs(steps - round(steps)) < 1e-6


# =============================================================================
# Bounds
# =============================================================================

class TestBounds:
    """Tests for footprint bounds and overlap."""

    def test_resistor_bounds(self):
        """Pad squares at +/-5 (r 0.6) and the +/-1 outline."""
        bounds = calculate_component_bounds(get_footprint("resistor_th"))
        assert abs(bounds.min_x + 5.6) < 1e-9
        assert abs(bounds.max_x - 5.6) < 1e-9
        assert abs(bounds.min_y + 1.0) < 1e-9
        assert abs(bounds.max_y - 1.0) < 1e-9

    def test_rotated_bounds(self):
        """A quarter turn swaps the extents."""
        bounds = calculate_component_bounds(get_footprint("resistor_th"), 90)
        assert abs(bounds.width - 2.0) < 1e-9
        assert abs(bounds.height - 11.2) < 1e-9

    def test_empty_footprint_default(self):
        """Nothing to measure gives the 4 x 4 default."""
        assert calculate_component_bounds(Footprint(type="x", name="x")) == DEFAULT_BOUNDS

    def test_overlap_uses_spacing(self):
        """Boxes 4 mm apart overlap at spacing 5 but not at spacing 3."""
        a = _placed("a", 0, 0)
        b = _placed("b", 8, 0)
        assert check_overlap(a, b, spacing=5)
        assert not check_overlap(a, b, spacing=3)

    def test_find_overlaps(self):
        placement = [_placed("a", 0, 0), _placed("b", 1, 0), _placed("c", 50, 0)]
        assert find_overlaps(placement) == [("a", "b")]


# =============================================================================
# Strategies
# =============================================================================

class TestStrategies:
    """Tests for the individual layout strategies."""

    def test_grid_starts_at_margin(self, board, passive_assembly):
        """The first box's left/top edges land on the margin (then snap)."""
        expanded = expand_components(passive_assembly)
        placed = place_grid(expanded, board)
        first = placed[0]
        min_x, min_y, _, _ = first.world_bounds()
        assert abs(min_x - 10.0) < 2.54
        assert abs(min_y - 10.0) < 2.54
        assert placed[1].x > first.x

    def test_grid_wraps_rows(self, small_board):
        """Components that do not fit on the row start a new one."""
        expanded = expand_components([AssemblyComponent(type="resistor_th", quantity=3)])
        placed = place_grid(expanded, small_board)
        assert placed[1].y > placed[0].y
        assert placed[2].y > placed[1].y

    def test_positions_snap_to_grid(self, board, synth_assembly):
        """Every strategy snaps positions to 2.54."""
        expanded = expand_components(synth_assembly)
        for strategy in STRATEGIES:
            for comp in place_components(strategy, expanded, board):
                assert _on_grid(comp.x), f"{strategy}: x={comp.x}"
                assert _on_grid(comp.y), f"{strategy}: y={comp.y}"

    def test_symmetric_pairs_mirror(self, board):
        """A pair of identical parts sits either side of the centre line."""
        expanded = expand_components([AssemblyComponent(type="capacitor_th", quantity=2)])
        left, right = place_symmetric(expanded, board)
        assert left.x < 50 < right.x
        assert abs((50 - left.x) - (right.x - 50)) < 2.54 + 1e-9
        assert abs(left.y - right.y) < 1e-9

    def test_flow_columns(self, board, synth_assembly):
        """Pots left, controller in the middle, LED right."""
        assert flow_column("pot_9mm") == 0
        assert flow_column("mcu_arduino_nano") == 1
        assert flow_column("led_th") == 2

        expanded = expand_components(synth_assembly)
        placed = {p.type: p for p in place_components("flow", expanded, board)}
        assert placed["pot_9mm"].x < placed["mcu_arduino_nano"].x < placed["led_th"].x

    def test_radial_rotation_faces_outward(self, board):
        """The first component sits at the top with rotation 0."""
        expanded = expand_components([AssemblyComponent(type="led_th", quantity=4)])
        placed = place_radial(expanded, board)
        assert placed[0].rotation == 0.0
        assert placed[1].rotation == 90.0
        assert placed[0].y < 30

    def test_unknown_types_skipped(self, board):
        expanded = expand_components([AssemblyComponent(type="flux_capacitor"),
                                      AssemblyComponent(type="led_th")])
        placed = place_grid(expanded, board)
        assert [p.type for p in placed] == ["led_th"]

    def test_unknown_strategy(self, board):
        with pytest.raises(ValueError):
            place_components("spiral", [], board)

    def test_compact_position_for_oversized_part(self, board):
        """A part taller than the usable area still slides sideways to a free spot."""
        tall = Bounds(-2.0, -22.0, 2.0, 22.0)
        blocker = _placed("blocker", 12.7, 30)
        x, y = find_compact_position([blocker], tall, board.get_bounding_box(), PlacementConfig())

        candidate = PlacedComponent(id="tall", type="", x=x, y=y, rotation=0.0, bounds=tall)
        assert not check_overlap(candidate, blocker, 5.0)
        assert _on_grid(x)


# =============================================================================
# Legalizer
# =============================================================================

class TestLegalizer:
    """Tests for clamping and overlap removal."""

    def test_clamps_into_margin(self, board):
        """A component off the board is pulled inside the margin."""
        legalizer = PlacementLegalizer(board)
        legal, result = legalizer.legalize([_placed("a", -40, 200)])
        min_x, min_y, max_x, max_y = legal[0].world_bounds()
        assert min_x >= 10 - 1e-9
        assert max_y <= 50 + 1e-9
        assert result.clamped == 1

    def test_relocates_overlaps(self, board):
        """Stacked components are spread out."""
        stacked = [_placed(f"c{i}", 50, 30) for i in range(4)]
        legal, result = PlacementLegalizer(board).legalize(stacked)
        assert result.valid
        assert result.relocated == 3
        assert find_overlaps(legal) == []

    def test_input_untouched(self, board):
        original = [_placed("a", -40, 200)]
        PlacementLegalizer(board).legalize(original)
        assert original[0].x == -40

    def test_largest_part_keeps_its_spot(self, board):
        """Relocation runs largest first, so the small part is the one moved."""
        tall = PlacedComponent(id="tall", type="mcu_arduino_nano", x=30, y=30, rotation=0.0,
                               bounds=Bounds(-2.0, -22.0, 2.0, 22.0))
        legal, result = PlacementLegalizer(board).legalize([_placed("small", 30, 30), tall])
        assert [p.id for p in legal] == ["small", "tall"]
        assert legal[1].x == 30
        assert legal[0].x != 30
        assert result.relocated == 1
        assert result.valid

    def test_reports_unresolvable(self, small_board):
        """Too many parts for the board leaves overlaps, reported not raised."""
        crowded = [_placed(f"c{i}", 20, 15, size=10) for i in range(6)]
        _, result = PlacementLegalizer(small_board).legalize(crowded)
        assert not result.valid
        assert result.final_overlaps == len(result.unresolved)


# =============================================================================
# Engine
# =============================================================================

class TestPlacementEngine:
    """Tests for generate_placements."""

    @pytest.fixture
    def quick(self) -> AnnealingConfig:
        """Short annealing runs keep the engine tests fast."""
        return AnnealingConfig(max_iterations=60)

    def test_one_arrangement_per_strategy(self, board, synth_assembly, quick):
        arrangements = generate_placements(synth_assembly, board, annealing_config=quick)
        assert sorted(a.strategy for a in arrangements) == sorted(STRATEGIES)
        assert {a.id for a in arrangements} == {f"arr_{s}" for s in STRATEGIES}

    def test_sorted_by_score(self, board, synth_assembly, quick):
        arrangements = generate_placements(synth_assembly, board, annealing_config=quick)
        scores = [a.score for a in arrangements]
        assert scores == sorted(scores, reverse=True)
        assert all(0 <= s <= 100 for s in scores)

    def test_no_overlaps(self, board, synth_assembly, quick):
        """Every arrangement is free of padded overlaps."""
        connections = infer_connections(synth_assembly).connections
        arrangements = generate_placements(synth_assembly, board, connections,
                                           seed=3, annealing_config=quick)
        for arr in arrangements:
            assert arr.valid, arr.name
            placed = [
                PlacedComponent(id=c.id, type=c.type, x=c.position[0], y=c.position[1],
                                rotation=c.rotation,
                                bounds=calculate_component_bounds(get_footprint(c.type), c.rotation))
                for c in arr.components
            ]
            assert find_overlaps(placed) == [], arr.name

    @pytest.mark.parametrize("seed", range(5))
    def test_flow_with_tall_controller(self, board, synth_assembly, seed):
        """The Nano is taller than the 100 x 60 board's usable area; flow must still be clean."""
        arr = generate_placements(synth_assembly, board, seed=seed, strategies=["flow"])[0]
        placed = [
            PlacedComponent(id=c.id, type=c.type, x=c.position[0], y=c.position[1],
                            rotation=c.rotation,
                            bounds=calculate_component_bounds(get_footprint(c.type), c.rotation))
            for c in arr.components
        ]
        assert find_overlaps(placed) == []
        assert arr.valid

    def test_same_seed_same_result(self, board, synth_assembly, quick):
        """Placement is a pure function of its inputs and seed."""
        first = generate_placements(synth_assembly, board, seed=7, annealing_config=quick)
        second = generate_placements(synth_assembly, board, seed=7, annealing_config=quick)
        assert [(a.id, a.score, [c.position for c in a.components]) for a in first] == \
               [(a.id, a.score, [c.position for c in a.components]) for a in second]

    def test_strategy_subset_does_not_change_results(self, board, synth_assembly, quick):
        """Each strategy has its own RNG stream."""
        everything = generate_placements(synth_assembly, board, seed=5, annealing_config=quick)
        radial_only = generate_placements(synth_assembly, board, seed=5,
                                          strategies=["radial"], annealing_config=quick)
        radial = next(a for a in everything if a.strategy == "radial")
        assert [c.position for c in radial.components] == \
               [c.position for c in radial_only[0].components]

    def test_components_keep_assembly_order(self, board, synth_assembly, quick):
        arrangements = generate_placements(synth_assembly, board, annealing_config=quick)
        ids = [c.id for c in expand_components(synth_assembly)]
        for arr in arrangements:
            assert [c.id for c in arr.components] == ids

    def test_components_carry_pads(self, board, synth_assembly, quick):
        arr = generate_placements(synth_assembly, board, strategies=["grid"],
                                  annealing_config=quick)[0]
        nano = arr.get_component("comp_0_mcu_arduino_nano")
        assert len(nano.pads) == 30
        assert nano.pads[3].id == "comp_0_mcu_arduino_nano.3"

    def test_empty_assembly(self, board):
        assert generate_placements([], board) == []

    def test_cancelled_token(self, board, synth_assembly):
        """A tripped token stops before the first strategy."""
        token = CancellationToken()
        token.cancel()
        assert generate_placements(synth_assembly, board, token=token) == []


class TestBindConnections:
    """Tests for pinning positional references to ids."""

    def test_binds_index_only_refs(self, synth_assembly):
        expanded = expand_components(synth_assembly)
        conn = Connection(id="c", from_ref=PadRef(1, 1), to_ref=PadRef(0, 18))
        bound = bind_connections([conn], expanded)[0]
        assert bound.from_ref.component_id == "comp_1_pot_9mm"
        assert bound.to_ref.component_id == "comp_0_mcu_arduino_nano"

    def test_leaves_bound_and_bad_refs(self, synth_assembly):
        expanded = expand_components(synth_assembly)
        conn = Connection(id="c", from_ref=PadRef(1, 1, "custom"), to_ref=PadRef(42, 0))
        assert bind_connections([conn], expanded)[0] is conn

    def test_config_snap(self):
        assert abs(PlacementConfig().snap(3.0) - 2.54) < 1e-9
