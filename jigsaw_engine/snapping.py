"""Snap/merge decision procedure run when a drag or rotation is released.

An active entity (single piece or group) merges with the owner of one of its
true neighbors when both are oriented alike and the neighbor sits where the
active entity's rigid transform says it should. Merges chain: the new group
becomes the active entity and is tested again until nothing else fits.
"""

import logging
import uuid
from dataclasses import dataclass, replace
from typing import List, Optional

from .config import EngineSettings
from .geometry import distance, group_centroid, to_board
from .models import BoardState, Entity, Group

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SnapTolerances:
    """Gates of the merge test and of the release-time rotation snap."""

    distance: float = 20.0
    angle: float = 15.0
    rotation_step: float = 90.0
    rotation_tolerance: float = 10.0

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> "SnapTolerances":
        return cls(
            distance=settings.SNAP_DISTANCE,
            angle=settings.SNAP_ANGLE,
            rotation_step=settings.ROTATION_SNAP_STEP,
            rotation_tolerance=settings.ROTATION_SNAP_TOLERANCE,
        )


def normalize_angle(angle: float) -> float:
    """Map any angle in degrees into [0, 360)."""
    normalized = angle % 360.0
    # -1e-15 % 360 rounds to 360.0
    return 0.0 if normalized >= 360.0 else normalized


def angle_difference(a: float, b: float) -> float:
    """Signed difference a - b in degrees, normalized into (-180, 180]."""
    diff = (a - b) % 360.0
    if diff > 180.0:
        diff -= 360.0
    return diff


def snap_rotation(angle: float, step: float = 90.0, tolerance: float = 10.0) -> float:
    """Round to the nearest multiple of `step` if within `tolerance`, else keep."""
    nearest = round(angle / step) * step
    if abs(angle - nearest) <= tolerance:
        return normalize_angle(nearest)
    return angle


def new_group_id() -> str:
    return f"group-{uuid.uuid4().hex}"


def candidate_piece_ids(state: BoardState, active: Entity) -> List[str]:
    """Neighbor piece ids of the active entity's members, excluding the members.

    Ordered by generation index so that "first qualifying candidate wins" is
    reproducible.
    """
    members = set(active.piece_ids)
    candidates = set()
    for piece_id in active.piece_ids:
        piece = state.piece(piece_id)
        if piece is None:
            continue
        candidates.update(n for n in piece.neighbor_ids if n not in members)

    def index_of(piece_id: str) -> int:
        piece = state.piece(piece_id)
        return piece.index if piece is not None else -1

    return sorted(candidates, key=lambda pid: (index_of(pid), pid))


def find_snap_partner(
    state: BoardState,
    active: Entity,
    scale: float,
    tolerances: SnapTolerances,
) -> Optional[Entity]:
    """Return the first neighbor entity passing the rotation and position gates."""
    for piece_id in candidate_piece_ids(state, active):
        neighbor = state.owner_of(piece_id)
        if neighbor is None or neighbor.id == active.id:
            continue

        rot_diff = abs(angle_difference(active.rotation, neighbor.rotation))
        if rot_diff > tolerances.angle:
            logger.debug("Rejected %s for %s: rotation off by %.1f", neighbor.id, active.id, rot_diff)
            continue

        # Where the neighbor's centroid belongs if rigidly mated to the active entity
        expected = to_board([neighbor.centroid], active.centroid, active.x, active.y, active.rotation, scale)[0]
        offset = distance(expected, (neighbor.x, neighbor.y))
        if offset > tolerances.distance:
            logger.debug("Rejected %s for %s: %.1f units away", neighbor.id, active.id, offset)
            continue

        return neighbor
    return None


def merge_entities(state: BoardState, active: Entity, other: Entity, scale: float) -> BoardState:
    """Fuse two entities into a new group anchored to the active one.

    The group keeps the active entity's rotation and is positioned so the
    active entity does not move on screen.
    """
    piece_ids = tuple(active.piece_ids) + tuple(other.piece_ids)
    members = [state.piece(pid) for pid in piece_ids]
    polygons = tuple(p.polygon for p in members if p is not None)
    boundaries = tuple(p.boundary for p in members if p is not None)

    merged_centroid = group_centroid(polygons)
    merged_x, merged_y = to_board(
        [merged_centroid], active.centroid, active.x, active.y, active.rotation, scale
    )[0]

    group = Group(
        id=new_group_id(),
        piece_ids=piece_ids,
        polygons=polygons,
        boundaries=boundaries,
        centroid=merged_centroid,
        x=merged_x,
        y=merged_y,
        rotation=active.rotation,
        z_index=state.next_z,
    )

    groups = tuple(g for g in state.groups if g.id not in (active.id, other.id)) + (group,)
    completed = len(set(piece_ids)) == len(state.pieces)

    logger.info(
        "Merged %s into %s (%d/%d pieces)%s",
        other.id,
        group.id,
        len(piece_ids),
        len(state.pieces),
        ", puzzle complete" if completed else "",
    )
    return replace(
        state,
        groups=groups,
        selected_id=group.id,
        next_z=state.next_z + 1,
        completed=completed,
    )


def perform_snap(
    state: BoardState,
    active_id: str,
    scale: float,
    tolerances: Optional[SnapTolerances] = None,
) -> BoardState:
    """Run the snap/merge procedure for one entity, chaining merges.

    Args:
        state: Current board state.
        active_id: Id of the released piece or group.
        scale: Image-to-board scale factor.
        tolerances: Gates to apply; defaults to SnapTolerances().

    Returns:
        The merged state, or `state` itself when nothing merged (including
        when `active_id` does not name a current entity).
    """
    tolerances = tolerances or SnapTolerances()
    active = state.entity(active_id)

    while active is not None and not state.completed:
        partner = find_snap_partner(state, active, scale, tolerances)
        if partner is None:
            break
        state = merge_entities(state, active, partner, scale)
        # The freshly formed group is the next active entity
        active = state.entity(state.selected_id)

    return state
