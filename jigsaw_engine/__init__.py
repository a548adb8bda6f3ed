"""Jigsaw engine - puzzle tessellation and assembly.

This package cuts an image plane into interlocking pieces (relaxed Voronoi
cells or a tab/blank grid) and tracks pieces as they are moved, rotated and
snapped together into groups.
"""

from .config import EngineSettings, get_settings
from .edge_grid import (
    CoordinateMapper,
    EdgeGrid,
    calculate_grid_dimensions,
    generate_edge_grid,
    generate_grid_cells,
    generate_tab_edge,
    get_edge_type_for_piece,
    get_piece_curves,
)
from .generator import compute_board_scale, generate_puzzle_pieces
from .geometry import (
    boundary_to_svg_path,
    distance,
    group_centroid,
    point_in_polygon,
    polygon_area,
    polygon_centroid,
    polygons_bbox,
    rotate_point,
    sample_boundary,
    to_board,
)
from .models import BezierCurve, BoardState, Entity, Group, Piece, PieceCell
from .snapping import SnapTolerances, angle_difference, normalize_angle, perform_snap, snap_rotation
from .store import AssemblyStore
from .voronoi import clipped_voronoi_cells, delaunay_neighbors, generate_organic_cells, lloyd_relax

__all__ = [
    # Models
    "BezierCurve",
    "BoardState",
    "Entity",
    "Group",
    "Piece",
    "PieceCell",
    # Configuration
    "EngineSettings",
    "get_settings",
    # Geometry
    "boundary_to_svg_path",
    "distance",
    "group_centroid",
    "point_in_polygon",
    "polygon_area",
    "polygon_centroid",
    "polygons_bbox",
    "rotate_point",
    "sample_boundary",
    "to_board",
    # Grid tessellation
    "CoordinateMapper",
    "EdgeGrid",
    "calculate_grid_dimensions",
    "generate_edge_grid",
    "generate_grid_cells",
    "generate_tab_edge",
    "get_edge_type_for_piece",
    "get_piece_curves",
    # Organic tessellation
    "clipped_voronoi_cells",
    "delaunay_neighbors",
    "generate_organic_cells",
    "lloyd_relax",
    # Generation
    "compute_board_scale",
    "generate_puzzle_pieces",
    # Assembly
    "AssemblyStore",
    "SnapTolerances",
    "angle_difference",
    "normalize_angle",
    "perform_snap",
    "snap_rotation",
]
