"""Edge grid generation for rectangular jigsaw tessellations.

Each interior edge is decided once and shared between the two cells that
border it, so one cell's tab is always its neighbor's blank.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Literal, Optional, Tuple

import numpy as np

from .geometry import polygon_centroid
from .models import BezierCurve, EdgeType, PieceCell, Point

logger = logging.getLogger(__name__)

Side = Literal["top", "right", "bottom", "left"]
SIDES: Tuple[Side, Side, Side, Side] = ("top", "right", "bottom", "left")

# Tab shape, relative to the edge it sits on
NECK_WIDTH_RATIO = 0.20
TIP_HALF_WIDTH_RATIO = 0.15
# Protrusion depth, relative to the shorter cell dimension
TAB_DEPTH_RATIO = 0.30

MIN_GRID_SIZE = 2


@dataclass
class EdgeGrid:
    """Signed bulge directions for every interior edge of a grid.

    - horizontal: (rows-1) x cols, entry [r][c] is the edge between cells
      (r, c) and (r+1, c)
    - vertical: rows x (cols-1), entry [r][c] is the edge between cells
      (r, c) and (r, c+1)

    +1 bulges toward the higher index (down or right), -1 toward the lower.
    Border edges are implicit and always flat.
    """

    rows: int
    cols: int
    horizontal: np.ndarray
    vertical: np.ndarray


@dataclass
class CoordinateMapper:
    """Maps grid cells to rectangles in image pixel coordinates."""

    image_width: float
    image_height: float
    rows: int
    cols: int

    @property
    def piece_width(self) -> float:
        """Width of each cell in pixels."""
        return self.image_width / self.cols

    @property
    def piece_height(self) -> float:
        """Height of each cell in pixels."""
        return self.image_height / self.rows

    @property
    def tab_depth(self) -> float:
        return TAB_DEPTH_RATIO * min(self.piece_width, self.piece_height)

    def cell_corners(self, row: int, col: int) -> Tuple[Point, Point, Point, Point]:
        """Top-left, top-right, bottom-right and bottom-left corners of a cell."""
        x0 = col * self.piece_width
        y0 = row * self.piece_height
        x1 = x0 + self.piece_width
        y1 = y0 + self.piece_height
        return ((x0, y0), (x1, y0), (x1, y1), (x0, y1))


def calculate_grid_dimensions(
    image_width: float,
    image_height: float,
    target_pieces: int,
) -> Tuple[int, int]:
    """Calculate grid dimensions following the image aspect ratio.

    Args:
        image_width: Width of the source image in pixels.
        image_height: Height of the source image in pixels.
        target_pieces: Target number of pieces.

    Returns:
        Tuple of (rows, cols), both at least 2, with rows * cols close to
        target_pieces.
    """
    aspect_ratio = image_width / image_height
    cols = max(MIN_GRID_SIZE, int(round(math.sqrt(max(target_pieces, 1) * aspect_ratio))))
    rows = max(MIN_GRID_SIZE, int(round(target_pieces / cols)))
    return (rows, cols)


def generate_edge_grid(
    rows: int,
    cols: int,
    rng: Optional[np.random.Generator] = None,
) -> EdgeGrid:
    """Flip one fair coin per interior edge.

    Args:
        rows: Number of piece rows.
        cols: Number of piece columns.
        rng: Random generator; a fresh unseeded one when omitted.

    Returns:
        An EdgeGrid with one signed direction per interior edge.
    """
    if rng is None:
        rng = np.random.default_rng()

    horizontal = rng.choice(np.array([-1, 1]), size=(rows - 1, cols))
    vertical = rng.choice(np.array([-1, 1]), size=(rows, cols - 1))
    return EdgeGrid(rows=rows, cols=cols, horizontal=horizontal, vertical=vertical)


def _edge_direction(edge_grid: EdgeGrid, row: int, col: int, side: Side) -> int:
    """Bulge direction of a cell side as seen by that cell.

    +1 protrudes out of the cell, -1 indents into it, 0 is a border.
    """
    if side == "top":
        return 0 if row == 0 else -int(edge_grid.horizontal[row - 1][col])
    if side == "bottom":
        return 0 if row == edge_grid.rows - 1 else int(edge_grid.horizontal[row][col])
    if side == "left":
        return 0 if col == 0 else -int(edge_grid.vertical[row][col - 1])
    return 0 if col == edge_grid.cols - 1 else int(edge_grid.vertical[row][col])


def get_edge_type_for_piece(edge_grid: EdgeGrid, row: int, col: int, side: Side) -> EdgeType:
    """Get the edge type of one side of a cell ("tab", "blank" or "flat")."""
    direction = _edge_direction(edge_grid, row, col, side)
    if direction == 0:
        return "flat"
    return "tab" if direction > 0 else "blank"


def _straight(start: Point, end: Point) -> BezierCurve:
    # Control points on the chord make a degenerate (straight) Bezier
    return BezierCurve(
        p0=start,
        p1=(start[0] + (end[0] - start[0]) / 3, start[1] + (end[1] - start[1]) / 3),
        p2=(start[0] + 2 * (end[0] - start[0]) / 3, start[1] + 2 * (end[1] - start[1]) / 3),
        p3=end,
    )


def generate_tab_edge(start: Point, end: Point, direction: int, depth: float) -> List[BezierCurve]:
    """Generate the curves of one cell side walked clockwise.

    A tab or blank is a straight run to the neck, two mirrored cubic curves
    meeting at a rounded tip, and a straight run to the end. The shape is
    symmetric about the edge midpoint, so the neighbor walking the same edge
    in the opposite direction traces exactly the same outline.

    Args:
        start: Start corner of the side.
        end: End corner of the side.
        direction: +1 for a tab, -1 for a blank, 0 for a flat border.
        depth: How far the tip lies from the straight edge.

    Returns:
        List of BezierCurve objects from start to end.
    """
    if direction == 0:
        return [_straight(start, end)]

    a = np.array(start, dtype=float)
    b = np.array(end, dtype=float)
    edge_vec = b - a
    edge_length = float(np.linalg.norm(edge_vec))
    unit = edge_vec / edge_length

    # In image coordinates (y down) a clockwise walk has its outward normal on the left
    outward = np.array([unit[1], -unit[0]])
    bulge = outward * direction * depth

    mid = a + edge_vec * 0.5
    neck_half = edge_length * NECK_WIDTH_RATIO * 0.5
    tip_half = edge_length * TIP_HALF_WIDTH_RATIO

    neck_left = mid - unit * neck_half
    neck_right = mid + unit * neck_half
    tip = mid + bulge

    def pt(v: np.ndarray) -> Point:
        return (float(v[0]), float(v[1]))

    # Shoulder control points swing wider than the neck to give the mushroom shape
    rising = BezierCurve(
        p0=pt(neck_left),
        p1=pt(mid - unit * tip_half * 1.6 + bulge * 0.6),
        p2=pt(tip - unit * tip_half),
        p3=pt(tip),
    )
    falling = BezierCurve(
        p0=pt(tip),
        p1=pt(tip + unit * tip_half),
        p2=pt(mid + unit * tip_half * 1.6 + bulge * 0.6),
        p3=pt(neck_right),
    )
    return [_straight(start, pt(neck_left)), rising, falling, _straight(pt(neck_right), end)]


def get_piece_curves(
    edge_grid: EdgeGrid,
    mapper: CoordinateMapper,
    row: int,
    col: int,
) -> List[BezierCurve]:
    """Get all boundary curves for a single cell in image coordinates.

    Returns curves in clockwise order starting from the top-left corner:
    top edge -> right edge -> bottom edge -> left edge.
    """
    corners = mapper.cell_corners(row, col)
    depth = mapper.tab_depth

    all_curves: List[BezierCurve] = []
    for i, side in enumerate(SIDES):
        direction = _edge_direction(edge_grid, row, col, side)
        all_curves.extend(generate_tab_edge(corners[i], corners[(i + 1) % 4], direction, depth))
    return all_curves


def padded_polygon(mapper: CoordinateMapper, row: int, col: int) -> Tuple[Point, ...]:
    """Cell rectangle grown by the tab depth; bounds any tab/blank combination."""
    depth = mapper.tab_depth
    (x0, y0), _, (x1, y1), _ = mapper.cell_corners(row, col)
    return ((x0 - depth, y0 - depth), (x1 + depth, y0 - depth), (x1 + depth, y1 + depth), (x0 - depth, y1 + depth))


def generate_grid_cells(
    image_width: float,
    image_height: float,
    target_pieces: int,
    rng: Optional[np.random.Generator] = None,
) -> List[PieceCell]:
    """Tessellate an image into interlocking grid cells, row-major."""
    rows, cols = calculate_grid_dimensions(image_width, image_height, target_pieces)
    edge_grid = generate_edge_grid(rows, cols, rng)
    mapper = CoordinateMapper(image_width=image_width, image_height=image_height, rows=rows, cols=cols)

    cells: List[PieceCell] = []
    for r in range(rows):
        for c in range(cols):
            neighbors = []
            # Ascending index order: up, left, right, down
            if r > 0:
                neighbors.append((r - 1) * cols + c)
            if c > 0:
                neighbors.append(r * cols + c - 1)
            if c < cols - 1:
                neighbors.append(r * cols + c + 1)
            if r < rows - 1:
                neighbors.append((r + 1) * cols + c)

            edge_types = tuple(get_edge_type_for_piece(edge_grid, r, c, side) for side in SIDES)
            cells.append(
                PieceCell(
                    polygon=padded_polygon(mapper, r, c),
                    centroid=polygon_centroid(mapper.cell_corners(r, c)),
                    neighbors=tuple(neighbors),
                    boundary=tuple(get_piece_curves(edge_grid, mapper, r, c)),
                    edge_types=edge_types,  # type: ignore[arg-type]
                    grid_position=(r, c),
                )
            )

    logger.info("Generated %dx%d grid (%d pieces requested)", rows, cols, target_pieces)
    return cells
