"""Build the initial, shuffled piece set for a new puzzle."""

import logging
from typing import List, Optional

import numpy as np

from .config import EngineSettings, get_settings
from .edge_grid import generate_grid_cells
from .models import Piece, PieceCell, Strategy
from .voronoi import generate_organic_cells

logger = logging.getLogger(__name__)

STRATEGIES = ("organic", "grid")


def piece_id(index: int) -> str:
    return f"piece-{index}"


def compute_board_scale(
    image_width: float,
    image_height: float,
    board_width: float,
    board_height: float,
    fill_ratio: float = 0.6,
) -> float:
    """Image-to-board factor that makes the solved picture fill `fill_ratio` of the board."""
    scale_x = (board_width * fill_ratio) / image_width
    scale_y = (board_height * fill_ratio) / image_height
    return min(scale_x, scale_y)


def tessellate(
    image_width: float,
    image_height: float,
    count: int,
    strategy: Strategy,
    rng: np.random.Generator,
    lloyd_iterations: int = 3,
) -> List[PieceCell]:
    """Cut the image plane into cells with the chosen strategy."""
    if strategy == "organic":
        return generate_organic_cells(image_width, image_height, count, rng, iterations=lloyd_iterations)
    return generate_grid_cells(image_width, image_height, count, rng)


def generate_puzzle_pieces(
    image_width: float,
    image_height: float,
    count: int,
    board_width: float,
    board_height: float,
    strategy: Optional[Strategy] = None,
    seed: Optional[int] = None,
    settings: Optional[EngineSettings] = None,
) -> List[Piece]:
    """Generate puzzle pieces scattered over the board.

    Args:
        image_width: Width of the source image in pixels.
        image_height: Height of the source image in pixels.
        count: Target number of pieces.
        board_width: Width of the board in board units.
        board_height: Height of the board in board units.
        strategy: "organic" (relaxed Voronoi) or "grid" (tabs and blanks).
            Defaults to the configured strategy.
        seed: Optional random seed for reproducible puzzles.
        settings: Engine settings; the cached global settings when omitted.

    Returns:
        Pieces in generation order, each with a random board position inside
        the padded board and a random rotation in whole shuffle steps.

    Raises:
        ValueError: If the image dimensions are not positive or the
            strategy is unknown.
    """
    settings = settings or get_settings()
    strategy = strategy or settings.DEFAULT_STRATEGY

    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {image_width}x{image_height}")
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown tessellation strategy: {strategy!r}")

    rng = np.random.default_rng(seed)
    cells = tessellate(image_width, image_height, count, strategy, rng, settings.LLOYD_ITERATIONS)

    padding = settings.BOARD_PADDING
    span_x = max(0.0, board_width - 2 * padding)
    span_y = max(0.0, board_height - 2 * padding)
    rotation_step = settings.INITIAL_ROTATION_STEP
    rotation_slots = max(1, 360 // rotation_step)

    pieces: List[Piece] = []
    for i, cell in enumerate(cells):
        pieces.append(
            Piece(
                id=piece_id(i),
                index=i,
                polygon=cell.polygon,
                centroid=cell.centroid,
                x=padding + float(rng.uniform()) * span_x,
                y=padding + float(rng.uniform()) * span_y,
                rotation=float(int(rng.integers(rotation_slots)) * rotation_step % 360),
                neighbor_ids=tuple(piece_id(n) for n in cell.neighbors),
                z_index=i,
                boundary=cell.boundary,
                edge_types=cell.edge_types,
                grid_position=cell.grid_position,
            )
        )

    logger.info(
        "Generated %d %s pieces for a %gx%g image on a %gx%g board",
        len(pieces),
        strategy,
        image_width,
        image_height,
        board_width,
        board_height,
    )
    return pieces
