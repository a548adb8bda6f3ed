"""Tests for the assembly store."""

from dataclasses import replace
from typing import List

import pytest

from jigsaw_engine import AssemblyStore, BoardState, EngineSettings, Piece


def row_pieces(positions: List[tuple]) -> List[Piece]:
    """100x100 cells in one row, each adjacent to the next, placed at `positions`."""
    pieces = []
    count = len(positions)
    for i, (x, y) in enumerate(positions):
        cx, cy = 50.0 + 100.0 * i, 50.0
        pieces.append(
            Piece(
                id=f"piece-{i}",
                index=i,
                polygon=((cx - 50, cy - 50), (cx + 50, cy - 50), (cx + 50, cy + 50), (cx - 50, cy + 50)),
                centroid=(cx, cy),
                x=x,
                y=y,
                rotation=0.0,
                neighbor_ids=tuple(f"piece-{n}" for n in (i - 1, i + 1) if 0 <= n < count),
                z_index=i,
            )
        )
    return pieces


@pytest.fixture
def store() -> AssemblyStore:
    store = AssemblyStore(EngineSettings())
    store.load(row_pieces([(500, 500), (1000, 500), (1500, 500)]), scale=1.0)
    return store


def assert_partition(state: BoardState) -> None:
    """Every piece is either single or in exactly one group."""
    grouped = [pid for group in state.groups for pid in group.piece_ids]
    assert len(grouped) == len(set(grouped))
    singles = [p.id for p in state.singles()]
    assert sorted(singles + grouped) == sorted(p.id for p in state.pieces)
    assert len(state.entities()) == len(singles) + len(state.groups)


class TestInitialize:
    """Tests for starting new boards."""

    @pytest.mark.parametrize("strategy", ["organic", "grid"])
    def test_initialize_resets_board(self, strategy: str) -> None:
        store = AssemblyStore(EngineSettings())
        state = store.initialize(800, 600, 1600, 1200, 12, strategy=strategy, seed=5)

        assert len(state.pieces) == 12
        assert state.groups == ()
        assert state.selected_id is None
        assert state.completed is False
        assert state.next_z == 13
        assert state.scale == pytest.approx(1.2)
        assert state.strategy == strategy
        assert state.image_size == (800, 600)
        assert len(store.entities()) == 12

    def test_initialize_uses_configured_strategy(self) -> None:
        store = AssemblyStore(EngineSettings(DEFAULT_STRATEGY="grid"))
        state = store.initialize(400, 400, 1000, 1000, 9, seed=1)
        assert state.strategy == "grid"
        assert all(p.boundary is not None for p in state.pieces)

    def test_reinitialize_discards_groups(self, store: AssemblyStore) -> None:
        store.move("piece-1", -400, 0)
        store.attempt_snap("piece-1")
        assert store.state.groups

        state = store.initialize(400, 300, 800, 600, 6, seed=2)
        assert state.groups == ()
        assert len(state.pieces) == 6


class TestSelect:
    """Tests for selection and z-ordering."""

    def test_select_raises_to_top(self, store: AssemblyStore) -> None:
        state = store.select("piece-0")
        assert state.selected_id == "piece-0"
        assert state.piece("piece-0").z_index == 4
        assert state.next_z == 5

        state = store.select("piece-2")
        assert state.piece("piece-2").z_index == 5
        assert max(p.z_index for p in state.pieces) == 5

    def test_select_none_clears(self, store: AssemblyStore) -> None:
        store.select("piece-1")
        state = store.select(None)
        assert state.selected_id is None
        assert state.piece("piece-1").z_index == 4

    def test_select_unknown_is_ignored(self, store: AssemblyStore) -> None:
        before = store.state
        assert store.select("piece-99") is before

    def test_select_group(self, store: AssemblyStore) -> None:
        store.move("piece-1", -400, 0)
        group = store.attempt_snap("piece-1").groups[0]
        state = store.select(group.id)
        assert state.selected_id == group.id
        assert state.group(group.id).z_index == state.next_z - 1


class TestMoveAndRotate:
    """Tests for move and rotate operations."""

    def test_move_by_delta(self, store: AssemblyStore) -> None:
        state = store.move("piece-0", 25, -40)
        piece = state.piece("piece-0")
        assert (piece.x, piece.y) == (525, 460)

    def test_move_does_not_snap(self, store: AssemblyStore) -> None:
        state = store.move("piece-1", -400, 0)
        assert state.groups == ()

    def test_move_unknown_is_ignored(self, store: AssemblyStore) -> None:
        before = store.state
        assert store.move("group-nope", 1, 1) is before

    @pytest.mark.parametrize("angle,expected", [(370, 10), (-30, 330), (720, 0), (359.5, 359.5), (90, 90)])
    def test_rotate_normalizes(self, store: AssemblyStore, angle: float, expected: float) -> None:
        state = store.rotate("piece-0", angle)
        assert state.piece("piece-0").rotation == pytest.approx(expected)

    def test_rotate_by_default_step(self, store: AssemblyStore) -> None:
        store.rotate("piece-0", 350)
        state = store.rotate_by("piece-0")
        assert state.piece("piece-0").rotation == pytest.approx(5)

    def test_rotate_by_delta(self, store: AssemblyStore) -> None:
        state = store.rotate_by("piece-0", -45)
        assert state.piece("piece-0").rotation == pytest.approx(315)

    def test_move_group(self, store: AssemblyStore) -> None:
        store.move("piece-1", -400, 0)
        group = store.attempt_snap("piece-1").groups[0]
        state = store.move(group.id, 10, 20)
        moved = state.group(group.id)
        assert (moved.x, moved.y) == pytest.approx((group.x + 10, group.y + 20))


class TestRelease:
    """Tests for release-time rotation snapping and merging."""

    def test_release_squares_rotation(self, store: AssemblyStore) -> None:
        store.rotate("piece-2", 85)
        state = store.release("piece-2")
        assert state.piece("piece-2").rotation == 90

    def test_release_keeps_rotation_outside_tolerance(self, store: AssemblyStore) -> None:
        store.rotate("piece-2", 60)
        state = store.release("piece-2")
        assert state.piece("piece-2").rotation == 60

    def test_release_snaps_rotation_then_merges(self, store: AssemblyStore) -> None:
        store.move("piece-1", -400, 3)
        store.rotate("piece-1", 356)
        state = store.release("piece-1")

        assert len(state.groups) == 1
        assert sorted(state.groups[0].piece_ids) == ["piece-0", "piece-1"]
        assert state.groups[0].rotation == 0
        assert state.selected_id == state.groups[0].id
        assert_partition(state)

    def test_release_far_away_does_nothing(self, store: AssemblyStore) -> None:
        before = store.state
        assert store.release("piece-0") is before

    def test_release_uses_explicit_scale(self, store: AssemblyStore) -> None:
        store.move("piece-1", -450, 0)
        assert store.release("piece-1", scale=0.5).groups


class TestHitTest:
    """Tests for picking the entity under a board point."""

    def test_hit_single_piece(self, store: AssemblyStore) -> None:
        assert store.entity_at(510, 490).id == "piece-0"
        assert store.entity_at(1020, 530).id == "piece-1"

    def test_miss(self, store: AssemblyStore) -> None:
        assert store.entity_at(750, 500) is None

    def test_topmost_wins(self, store: AssemblyStore) -> None:
        store.move("piece-2", -1000, 0)
        assert store.entity_at(500, 500).id == "piece-2"
        store.select("piece-0")
        assert store.entity_at(500, 500).id == "piece-0"

    def test_hit_respects_rotation(self, store: AssemblyStore) -> None:
        store.load(row_pieces([(500, 500)]), scale=1.0)
        tall = store.state.pieces[0]
        store.load([replace(tall, polygon=((0, 40), (100, 40), (100, 60), (0, 60)))], scale=1.0)

        assert store.entity_at(540, 500) is not None
        assert store.entity_at(500, 540) is None
        store.rotate("piece-0", 90)
        assert store.entity_at(500, 540) is not None
        assert store.entity_at(540, 500) is None

    def test_hit_group(self, store: AssemblyStore) -> None:
        store.move("piece-1", -400, 0)
        group = store.attempt_snap("piece-1").groups[0]
        assert store.entity_at(580, 500).id == group.id


class TestCompletion:
    """Tests for solving a whole puzzle."""

    @staticmethod
    def solve_in_place(store: AssemblyStore) -> None:
        """Lay every piece where it belongs relative to piece-0 and release it."""
        state = store.state
        origin = (200.0, 200.0)
        c0 = state.pieces[0].centroid
        # Turned upside down, unplaced pieces can never pass the angle gate
        for piece in state.pieces:
            store.rotate(piece.id, 180)
        for piece in state.pieces:
            current = store.state.piece(piece.id)
            target_x = origin[0] + (piece.centroid[0] - c0[0]) * state.scale
            target_y = origin[1] + (piece.centroid[1] - c0[1]) * state.scale
            store.move(piece.id, target_x - current.x, target_y - current.y)
            store.rotate(piece.id, 0)
            store.release(piece.id)
            assert_partition(store.state)

    @pytest.mark.parametrize("strategy", ["organic", "grid"])
    def test_solving_piece_by_piece_completes(self, strategy: str) -> None:
        store = AssemblyStore(EngineSettings())
        store.initialize(800, 600, 1600, 1200, 12, strategy=strategy, seed=21)
        self.solve_in_place(store)

        state = store.state
        assert state.completed is True
        assert len(state.groups) == 1
        assert state.singles() == []
        assert len(state.entities()) == 1

    @pytest.mark.parametrize("strategy", ["organic", "grid"])
    def test_one_release_chains_whole_puzzle(self, strategy: str) -> None:
        store = AssemblyStore(EngineSettings())
        state = store.initialize(600, 600, 1200, 1200, 16, strategy=strategy, seed=4)
        c0 = state.pieces[0].centroid
        for piece in state.pieces:
            store.rotate(piece.id, 0)
            store.move(
                piece.id,
                300 + (piece.centroid[0] - c0[0]) * state.scale - piece.x,
                300 + (piece.centroid[1] - c0[1]) * state.scale - piece.y,
            )
        assert store.state.groups == ()

        state = store.attempt_snap("piece-0")
        assert state.completed is True
        assert len(state.groups[0].piece_ids) == 16

    def test_completed_board_ignores_mutations(self, store: AssemblyStore) -> None:
        store.move("piece-1", -400, 0)
        store.move("piece-2", -800, 0)
        state = store.attempt_snap("piece-0")
        assert state.completed is True
        group_id = state.groups[0].id

        assert store.move(group_id, 50, 50) is state
        assert store.rotate(group_id, 90) is state
        assert store.rotate_by(group_id) is state
        assert store.release(group_id) is state
        assert store.attempt_snap(group_id) is state

        state = store.select(None)
        assert state.selected_id is None
        assert state.completed is True
