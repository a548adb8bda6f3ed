"""Request and response models for the puzzle board API."""

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

from jigsaw_engine import BoardState, Entity, Group, boundary_to_svg_path


class NewPuzzleRequest(BaseModel):
    """Request model for starting a new puzzle board."""

    image_width: float = Field(..., gt=0, description="Source image width in pixels")
    image_height: float = Field(..., gt=0, description="Source image height in pixels")
    board_width: float = Field(..., gt=0, description="Board viewport width")
    board_height: float = Field(..., gt=0, description="Board viewport height")
    piece_count: int = Field(default=24, ge=4, le=1000, description="Target number of pieces")
    strategy: Optional[Literal["organic", "grid"]] = Field(
        default=None, description="Tessellation strategy (server default when omitted)"
    )
    seed: Optional[int] = Field(default=None, description="Random seed for a reproducible puzzle")


class SelectRequest(BaseModel):
    """Select an entity, or clear the selection with null."""

    entity_id: Optional[str] = None


class MoveRequest(BaseModel):
    """Translate an entity by a board-space delta."""

    entity_id: str
    dx: float
    dy: float


class RotateRequest(BaseModel):
    """Set an entity's absolute rotation, or rotate it by a relative delta."""

    entity_id: str
    angle: Optional[float] = Field(default=None, description="Absolute angle in degrees")
    delta: Optional[float] = Field(default=None, description="Relative angle in degrees")


class ReleaseRequest(BaseModel):
    """End of a drag or rotate gesture; triggers rotation snap and merging."""

    entity_id: str
    scale: Optional[float] = Field(default=None, gt=0, description="Override of the board's image-to-board scale")


class EntityModel(BaseModel):
    """A single piece or a merged group, as drawn by the client."""

    id: str
    kind: Literal["piece", "group"]
    piece_ids: List[str]
    polygons: List[List[Tuple[float, float]]]
    paths: List[Optional[str]] = Field(..., description="SVG outline per member (grid pieces only)")
    centroid: Tuple[float, float]
    x: float
    y: float
    rotation: float
    z_index: int

    @classmethod
    def from_entity(cls, entity: Entity) -> "EntityModel":
        return cls(
            id=entity.id,
            kind="group" if isinstance(entity, Group) else "piece",
            piece_ids=list(entity.piece_ids),
            polygons=[list(poly) for poly in entity.polygons],
            paths=[boundary_to_svg_path(b) if b else None for b in entity.boundaries],
            centroid=entity.centroid,
            x=entity.x,
            y=entity.y,
            rotation=entity.rotation,
            z_index=entity.z_index,
        )


class BoardResponse(BaseModel):
    """Read-only snapshot of a puzzle board."""

    board_id: str
    strategy: Optional[str] = None
    scale: float
    image_width: float
    image_height: float
    piece_count: int
    entities: List[EntityModel]
    selected_id: Optional[str] = None
    completed: bool

    @classmethod
    def from_state(cls, board_id: str, state: BoardState) -> "BoardResponse":
        return cls(
            board_id=board_id,
            strategy=state.strategy,
            scale=state.scale,
            image_width=state.image_size[0],
            image_height=state.image_size[1],
            piece_count=len(state.pieces),
            entities=[EntityModel.from_entity(e) for e in state.entities()],
            selected_id=state.selected_id,
            completed=state.completed,
        )


class HitResponse(BaseModel):
    """Response model for a board-space hit test."""

    entity_id: Optional[str] = None
