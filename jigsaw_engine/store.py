"""Authoritative board state and the operations that change it."""

import logging
import threading
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from .config import EngineSettings, get_settings
from .generator import compute_board_scale, generate_puzzle_pieces
from .geometry import point_in_polygon, to_board
from .models import BoardState, Entity, Piece, Strategy
from .snapping import SnapTolerances, normalize_angle, perform_snap, snap_rotation

logger = logging.getLogger(__name__)


class AssemblyStore:
    """Single writer of a puzzle board.

    Each operation replaces the immutable BoardState wholesale under a lock,
    so readers of `state` always see a complete snapshot. Operations naming
    an id that is not a current piece or group are ignored.
    """

    def __init__(self, settings: Optional[EngineSettings] = None):
        """Initialize an empty store.

        Args:
            settings: Engine settings; the cached global settings when omitted.
        """
        self.settings = settings or get_settings()
        self.tolerances = SnapTolerances.from_settings(self.settings)
        self._state = BoardState()
        self._lock = threading.RLock()

    @property
    def state(self) -> BoardState:
        return self._state

    def entities(self) -> List[Entity]:
        return self._state.entities()

    def initialize(
        self,
        image_width: float,
        image_height: float,
        board_width: float,
        board_height: float,
        piece_count: int,
        strategy: Optional[Strategy] = None,
        seed: Optional[int] = None,
    ) -> BoardState:
        """Discard the current board and start a new shuffled puzzle."""
        strategy = strategy or self.settings.DEFAULT_STRATEGY
        pieces = generate_puzzle_pieces(
            image_width,
            image_height,
            piece_count,
            board_width,
            board_height,
            strategy=strategy,
            seed=seed,
            settings=self.settings,
        )
        scale = compute_board_scale(
            image_width, image_height, board_width, board_height, self.settings.BOARD_FILL_RATIO
        )
        return self.load(
            pieces,
            scale,
            image_size=(image_width, image_height),
            board_size=(board_width, board_height),
            strategy=strategy,
        )

    def load(
        self,
        pieces: Sequence[Piece],
        scale: float,
        image_size: Tuple[float, float] = (0.0, 0.0),
        board_size: Tuple[float, float] = (0.0, 0.0),
        strategy: Optional[Strategy] = None,
    ) -> BoardState:
        """Start a board from pieces generated elsewhere, e.g. on a worker thread."""
        with self._lock:
            self._state = BoardState(
                pieces=tuple(pieces),
                groups=(),
                selected_id=None,
                next_z=len(pieces) + 1,
                completed=False,
                scale=scale,
                image_size=image_size,
                board_size=board_size,
                strategy=strategy,
            )
            return self._state

    def select(self, entity_id: Optional[str]) -> BoardState:
        """Select an entity and raise it to the top, or clear the selection."""
        with self._lock:
            state = self._state
            if entity_id is None:
                self._state = replace(state, selected_id=None)
                return self._state

            if state.entity(entity_id) is None:
                logger.debug("Ignoring select of unknown id %s", entity_id)
                return state

            self._state = self._update_entity(
                replace(state, selected_id=entity_id, next_z=state.next_z + 1),
                entity_id,
                z_index=state.next_z,
            )
            return self._state

    def move(self, entity_id: str, dx: float, dy: float) -> BoardState:
        """Translate an entity by a board-space delta; no bounds are enforced."""
        with self._lock:
            entity = self._mutable_entity(entity_id, "move")
            if entity is None:
                return self._state
            self._state = self._update_entity(self._state, entity_id, x=entity.x + dx, y=entity.y + dy)
            return self._state

    def rotate(self, entity_id: str, angle: float) -> BoardState:
        """Set an entity's absolute rotation in degrees."""
        with self._lock:
            if self._mutable_entity(entity_id, "rotate") is None:
                return self._state
            self._state = self._update_entity(self._state, entity_id, rotation=normalize_angle(angle))
            return self._state

    def rotate_by(self, entity_id: str, delta: Optional[float] = None) -> BoardState:
        """Rotate relative to the current angle, by one wheel step by default."""
        with self._lock:
            entity = self._mutable_entity(entity_id, "rotate")
            if entity is None:
                return self._state
            step = self.settings.WHEEL_ROTATION_STEP if delta is None else delta
            return self.rotate(entity_id, entity.rotation + step)

    def attempt_snap(self, entity_id: str, scale: Optional[float] = None) -> BoardState:
        """Merge the entity with any aligned neighbors, chaining merges."""
        with self._lock:
            if self._mutable_entity(entity_id, "snap") is None:
                return self._state
            scale = self._state.scale if scale is None else scale
            self._state = perform_snap(self._state, entity_id, scale, self.tolerances)
            return self._state

    def release(self, entity_id: str, scale: Optional[float] = None) -> BoardState:
        """Finish a drag or rotate: square up the rotation, then try to snap."""
        with self._lock:
            entity = self._mutable_entity(entity_id, "release")
            if entity is None:
                return self._state
            snapped = snap_rotation(
                entity.rotation, self.tolerances.rotation_step, self.tolerances.rotation_tolerance
            )
            if snapped != entity.rotation:
                self._state = self._update_entity(self._state, entity_id, rotation=snapped)
            return self.attempt_snap(entity_id, scale)

    def entity_at(self, x: float, y: float) -> Optional[Entity]:
        """Topmost entity whose outline contains the board point (x, y)."""
        state = self._state
        for entity in sorted(state.entities(), key=lambda e: e.z_index, reverse=True):
            for polygon in entity.polygons:
                outline = to_board(polygon, entity.centroid, entity.x, entity.y, entity.rotation, state.scale)
                if point_in_polygon((x, y), outline):
                    return entity
        return None

    def _mutable_entity(self, entity_id: str, action: str) -> Optional[Entity]:
        entity = self._state.entity(entity_id)
        if entity is None:
            logger.debug("Ignoring %s of unknown id %s", action, entity_id)
            return None
        if self._state.completed:
            logger.debug("Ignoring %s of %s: puzzle is complete", action, entity_id)
            return None
        return entity

    @staticmethod
    def _update_entity(state: BoardState, entity_id: str, **changes: float) -> BoardState:
        if state.group(entity_id) is not None:
            groups = tuple(replace(g, **changes) if g.id == entity_id else g for g in state.groups)
            return replace(state, groups=groups)
        pieces = tuple(replace(p, **changes) if p.id == entity_id else p for p in state.pieces)
        return replace(state, pieces=pieces)
