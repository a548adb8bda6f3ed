"""Tests for the snap/merge procedure."""

import math
from dataclasses import replace
from typing import List, Optional, Sequence

import pytest

from jigsaw_engine import BoardState, Piece, SnapTolerances, angle_difference, perform_snap, snap_rotation


def square(cx: float, cy: float, half: float = 50.0) -> tuple:
    return ((cx - half, cy - half), (cx + half, cy - half), (cx + half, cy + half), (cx - half, cy + half))


def make_piece(index: int, neighbors: Sequence[int], x: float, y: float, rotation: float = 0.0) -> Piece:
    """A 100x100 piece in a single row of cells, centered at (50 + 100*index, 50)."""
    centroid = (50.0 + 100.0 * index, 50.0)
    return Piece(
        id=f"piece-{index}",
        index=index,
        polygon=square(*centroid),
        centroid=centroid,
        x=x,
        y=y,
        rotation=rotation,
        neighbor_ids=tuple(f"piece-{n}" for n in neighbors),
        z_index=index,
    )


def row_board(placements: List[tuple], scale: float = 1.0) -> BoardState:
    """Board of pieces in a row, each adjacent to the next.

    Args:
        placements: (x, y, rotation) per piece.
        scale: Image-to-board scale.
    """
    count = len(placements)
    pieces = []
    for i, (x, y, rotation) in enumerate(placements):
        neighbors = [n for n in (i - 1, i + 1) if 0 <= n < count]
        pieces.append(make_piece(i, neighbors, x, y, rotation))
    return BoardState(pieces=tuple(pieces), next_z=count + 1, scale=scale)


def polar(origin: tuple, length: float, angle: float) -> tuple:
    rad = math.radians(angle)
    return (origin[0] + length * math.cos(rad), origin[1] + length * math.sin(rad))


def single_group(state: BoardState) -> Optional[tuple]:
    assert len(state.groups) == 1
    return state.groups[0].piece_ids


class TestAngles:
    """Tests for angle helpers."""

    @pytest.mark.parametrize(
        "a,b,expected",
        [(10, 350, 20), (350, 10, -20), (180, 0, 180), (0, 180, 180), (90, 90, 0), (725, 0, 5)],
    )
    def test_angle_difference(self, a: float, b: float, expected: float) -> None:
        assert angle_difference(a, b) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "angle,expected",
        [(85, 90), (79, 79), (355, 0), (8, 0), (100, 90), (270.5, 270), (45, 45), (280, 270), (281, 281)],
    )
    def test_snap_rotation(self, angle: float, expected: float) -> None:
        assert snap_rotation(angle, 90, 10) == pytest.approx(expected)


class TestSnapGates:
    """Tests for the rotation and position gates."""

    def test_exact_alignment_merges(self) -> None:
        state = row_board([(500, 500, 0), (600, 500, 0)])
        merged = perform_snap(state, "piece-0", 1.0)

        assert sorted(single_group(merged)) == ["piece-0", "piece-1"]
        assert merged.completed is True

    def test_distance_at_gate_merges(self) -> None:
        state = row_board([(500, 500, 0), (620, 500, 0)])
        assert perform_snap(state, "piece-0", 1.0).groups

    def test_distance_past_gate_does_not_merge(self) -> None:
        state = row_board([(500, 500, 0), (621, 500, 0)])
        assert perform_snap(state, "piece-0", 1.0) is state

    @pytest.mark.parametrize("rotation", [15, 345, 10])
    def test_angle_within_gate_merges(self, rotation: float) -> None:
        state = row_board([(500, 500, 0), (600, 500, rotation)])
        assert perform_snap(state, "piece-0", 1.0).groups

    @pytest.mark.parametrize("rotation", [16, 344, 90, 180])
    def test_angle_past_gate_does_not_merge(self, rotation: float) -> None:
        state = row_board([(500, 500, 0), (600, 500, rotation)])
        assert perform_snap(state, "piece-0", 1.0) is state

    def test_angle_gate_wraps_around_zero(self) -> None:
        expected = polar((500, 500), 100, 355)
        state = row_board([(500, 500, 355), (expected[0], expected[1], 5)])
        assert perform_snap(state, "piece-0", 1.0).groups

    def test_projection_uses_active_rotation(self) -> None:
        # Rotated a quarter turn, the right-hand neighbor belongs below
        state = row_board([(500, 500, 90), (500, 600, 90)])
        assert perform_snap(state, "piece-0", 1.0).groups

        unrotated = row_board([(500, 500, 90), (600, 500, 90)])
        assert perform_snap(unrotated, "piece-0", 1.0) is unrotated

    def test_projection_uses_scale(self) -> None:
        state = row_board([(500, 500, 0), (550, 500, 0)])
        assert perform_snap(state, "piece-0", 0.5).groups
        assert perform_snap(state, "piece-0", 1.0) is state

    def test_custom_tolerances(self) -> None:
        state = row_board([(500, 500, 0), (630, 500, 0)])
        assert perform_snap(state, "piece-0", 1.0) is state
        assert perform_snap(state, "piece-0", 1.0, SnapTolerances(distance=30.0)).groups

    def test_snap_from_either_side(self) -> None:
        state = row_board([(500, 500, 0), (600, 500, 0)])
        assert perform_snap(state, "piece-1", 1.0).groups


class TestMerge:
    """Tests for the merged group record."""

    def test_group_is_anchored_to_active_entity(self) -> None:
        state = row_board([(500, 500, 0), (605, 500, 10), (2000, 2000, 0)])
        merged = perform_snap(state, "piece-0", 1.0)
        group = merged.groups[0]

        assert group.piece_ids == ("piece-0", "piece-1")
        assert group.centroid == pytest.approx((100.0, 50.0))
        assert (group.x, group.y) == pytest.approx((550.0, 500.0))
        assert group.rotation == 0
        assert len(group.polygons) == 2

    def test_merge_selects_group_and_raises_it(self) -> None:
        state = row_board([(500, 500, 0), (600, 500, 0), (2000, 2000, 0)])
        merged = perform_snap(state, "piece-0", 1.0)
        group = merged.groups[0]

        assert merged.selected_id == group.id
        assert group.z_index == 4
        assert merged.next_z == 5

    def test_group_ids_are_unique(self) -> None:
        state = row_board([(500, 500, 0), (600, 500, 0), (2000, 2000, 0)])
        first = perform_snap(state, "piece-0", 1.0).groups[0].id
        second = perform_snap(state, "piece-0", 1.0).groups[0].id
        assert first != second

    def test_incomplete_merge_is_not_completed(self) -> None:
        state = row_board([(500, 500, 0), (600, 500, 0), (2000, 2000, 0)])
        merged = perform_snap(state, "piece-0", 1.0)
        assert merged.completed is False
        assert [p.id for p in merged.singles()] == ["piece-2"]

    def test_absorbed_piece_id_is_ignored(self) -> None:
        state = row_board([(500, 500, 0), (600, 500, 0), (2000, 2000, 0)])
        merged = perform_snap(state, "piece-0", 1.0)
        assert perform_snap(merged, "piece-0", 1.0) is merged

    def test_unknown_id_is_ignored(self) -> None:
        state = row_board([(500, 500, 0), (600, 500, 0)])
        assert perform_snap(state, "piece-99", 1.0) is state

    def test_group_snaps_to_group(self) -> None:
        state = row_board([(500, 500, 0), (600, 500, 0), (1500, 500, 0), (1600, 500, 0)])
        state = perform_snap(state, "piece-0", 1.0)
        state = perform_snap(state, "piece-2", 1.0)
        assert len(state.groups) == 2

        left, right = state.groups
        # Slide the right group so its centroid lands where the left group expects it
        expected_x = left.x + (right.centroid[0] - left.centroid[0])
        state = BoardState(
            pieces=state.pieces,
            groups=(left, replace(right, x=expected_x)),
            next_z=state.next_z,
        )
        merged = perform_snap(state, right.id, 1.0)

        assert sorted(single_group(merged)) == ["piece-0", "piece-1", "piece-2", "piece-3"]
        assert merged.completed is True


class TestChaining:
    """Tests for cascading merges within one call."""

    def test_three_in_a_row_merge_in_one_call(self) -> None:
        state = row_board([(500, 500, 0), (600, 500, 0), (700, 500, 0)])
        merged = perform_snap(state, "piece-0", 1.0)

        assert sorted(single_group(merged)) == ["piece-0", "piece-1", "piece-2"]
        assert merged.completed is True
        assert merged.next_z == state.next_z + 2

    def test_chain_through_rotated_layout(self) -> None:
        b = polar((500, 500), 100, 30)
        c = polar((500, 500), 200, 30)
        state = row_board([(500, 500, 30), (b[0], b[1], 30), (c[0], c[1], 30)])
        merged = perform_snap(state, "piece-1", 1.0)

        assert len(single_group(merged)) == 3
        assert merged.groups[0].rotation == 30

    def test_chain_stops_at_misaligned_piece(self) -> None:
        state = row_board([(500, 500, 0), (600, 500, 0), (700, 500, 0), (800, 500, 45)])
        merged = perform_snap(state, "piece-0", 1.0)

        assert sorted(single_group(merged)) == ["piece-0", "piece-1", "piece-2"]
        assert merged.completed is False
