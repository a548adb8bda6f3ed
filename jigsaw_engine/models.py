"""Data models for jigsaw pieces, merged groups and the board.

Every record is a frozen dataclass: the assembly store replaces records instead
of mutating them, so a snapshot handed to a renderer never changes under it.
"""

from dataclasses import dataclass, field
from functools import cached_property
from typing import Dict, List, Literal, Optional, Tuple, Union

import numpy as np

Point = Tuple[float, float]
EdgeType = Literal["tab", "blank", "flat"]
Strategy = Literal["organic", "grid"]


@dataclass(frozen=True)
class BezierCurve:
    """A cubic Bezier curve defined by 4 control points."""

    p0: Point  # Start point
    p1: Point  # Control point 1
    p2: Point  # Control point 2
    p3: Point  # End point

    def evaluate(self, t: float) -> Point:
        """Evaluate the curve at parameter t (0 to 1)."""
        t2 = t * t
        t3 = t2 * t
        mt = 1 - t
        mt2 = mt * mt
        mt3 = mt2 * mt

        x = mt3 * self.p0[0] + 3 * mt2 * t * self.p1[0] + 3 * mt * t2 * self.p2[0] + t3 * self.p3[0]
        y = mt3 * self.p0[1] + 3 * mt2 * t * self.p1[1] + 3 * mt * t2 * self.p2[1] + t3 * self.p3[1]
        return (x, y)

    def get_points(self, num_points: int = 20) -> np.ndarray:
        """Generate points along the curve."""
        t_values = np.linspace(0, 1, num_points)
        return np.array([self.evaluate(t) for t in t_values])

    @property
    def is_straight(self) -> bool:
        """True when both control points lie on the chord (a straight run)."""
        x0, y0 = self.p0
        dx = self.p3[0] - x0
        dy = self.p3[1] - y0
        length = max(abs(dx), abs(dy), 1e-12)
        for px, py in (self.p1, self.p2):
            if abs(dx * (py - y0) - dy * (px - x0)) / length > 1e-9:
                return False
        return True


@dataclass(frozen=True)
class PieceCell:
    """One tessellation cell before it is placed on the board.

    Produced by the organic and grid strategies; `neighbors` are generation
    indices rather than ids.
    """

    polygon: Tuple[Point, ...]
    centroid: Point
    neighbors: Tuple[int, ...]
    boundary: Optional[Tuple[BezierCurve, ...]] = None
    edge_types: Optional[Tuple[EdgeType, EdgeType, EdgeType, EdgeType]] = None
    grid_position: Optional[Tuple[int, int]] = None


@dataclass(frozen=True)
class Piece:
    """A single puzzle piece.

    Attributes:
        id: Stable identifier, ``piece-<index>``.
        index: Generation order, used to enumerate neighbors deterministically.
        polygon: Outline in image space (padded rectangle for grid pieces).
        centroid: Centroid of the true cell in image space.
        x: Board-space x of the centroid.
        y: Board-space y of the centroid.
        rotation: Orientation in degrees, normalized to [0, 360).
        neighbor_ids: Ids of true geometric neighbors, ascending by index.
        z_index: Stacking order.
        boundary: Interlocking outline (grid strategy only).
        edge_types: Top, right, bottom and left edge types (grid strategy only).
        grid_position: (row, col) of the cell (grid strategy only).
    """

    id: str
    index: int
    polygon: Tuple[Point, ...]
    centroid: Point
    x: float
    y: float
    rotation: float
    neighbor_ids: Tuple[str, ...]
    z_index: int
    boundary: Optional[Tuple[BezierCurve, ...]] = None
    edge_types: Optional[Tuple[EdgeType, EdgeType, EdgeType, EdgeType]] = None
    grid_position: Optional[Tuple[int, int]] = None

    @property
    def kind(self) -> str:
        return "piece"

    @property
    def piece_ids(self) -> Tuple[str, ...]:
        return (self.id,)

    @property
    def polygons(self) -> Tuple[Tuple[Point, ...], ...]:
        return (self.polygon,)

    @property
    def boundaries(self) -> Tuple[Optional[Tuple[BezierCurve, ...]], ...]:
        return (self.boundary,)


@dataclass(frozen=True)
class Group:
    """Pieces fused by a successful snap, moved and rotated as one."""

    id: str
    piece_ids: Tuple[str, ...]
    polygons: Tuple[Tuple[Point, ...], ...]
    boundaries: Tuple[Optional[Tuple[BezierCurve, ...]], ...]
    centroid: Point
    x: float
    y: float
    rotation: float
    z_index: int

    @property
    def kind(self) -> str:
        return "group"


Entity = Union[Piece, Group]


@dataclass(frozen=True)
class BoardState:
    """Complete, invariant-respecting snapshot of a board.

    `pieces` always holds every generated piece; those whose id appears in a
    group are drawn as part of that group instead of on their own.
    """

    pieces: Tuple[Piece, ...] = ()
    groups: Tuple[Group, ...] = ()
    selected_id: Optional[str] = None
    next_z: int = 1
    completed: bool = False
    scale: float = 1.0
    image_size: Tuple[float, float] = (0.0, 0.0)
    board_size: Tuple[float, float] = (0.0, 0.0)
    strategy: Optional[Strategy] = field(default=None)

    @cached_property
    def _pieces_by_id(self) -> Dict[str, Piece]:
        return {p.id: p for p in self.pieces}

    @cached_property
    def _groups_by_id(self) -> Dict[str, Group]:
        return {g.id: g for g in self.groups}

    @cached_property
    def _owner_by_piece(self) -> Dict[str, str]:
        owners = {}
        for group in self.groups:
            for piece_id in group.piece_ids:
                owners[piece_id] = group.id
        return owners

    def piece(self, piece_id: str) -> Optional[Piece]:
        return self._pieces_by_id.get(piece_id)

    def group(self, group_id: str) -> Optional[Group]:
        return self._groups_by_id.get(group_id)

    def entity(self, entity_id: Optional[str]) -> Optional[Entity]:
        """Resolve a group id or the id of a piece that is still single."""
        if entity_id is None:
            return None
        group = self._groups_by_id.get(entity_id)
        if group is not None:
            return group
        if entity_id in self._owner_by_piece:
            return None
        return self._pieces_by_id.get(entity_id)

    def owner_of(self, piece_id: str) -> Optional[Entity]:
        """The entity (group or the single piece itself) holding a piece."""
        group_id = self._owner_by_piece.get(piece_id)
        if group_id is not None:
            return self._groups_by_id[group_id]
        return self._pieces_by_id.get(piece_id)

    def singles(self) -> List[Piece]:
        return [p for p in self.pieces if p.id not in self._owner_by_piece]

    def entities(self) -> List[Entity]:
        """Everything a renderer draws: single pieces first, then groups."""
        singles: List[Entity] = list(self.singles())
        return singles + list(self.groups)
