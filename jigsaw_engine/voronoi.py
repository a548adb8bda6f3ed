"""Organic tessellation: Lloyd-relaxed Voronoi cells clipped to the image.

Neighbors come from the Delaunay triangulation of the same seed points,
which is the dual of the Voronoi diagram.
"""

import logging
from typing import List, Optional

import numpy as np
from scipy.spatial import Delaunay, QhullError, Voronoi

from .geometry import polygon_centroid
from .models import PieceCell

logger = logging.getLogger(__name__)

# Smallest organic puzzle; smaller requests are raised to it
MIN_ORGANIC_PIECES = 4

# Vertices closer than this are merged when a cell ring is cleaned up
VERTEX_EPSILON = 1e-9


def _mirror_points(points: np.ndarray, width: float, height: float) -> np.ndarray:
    """Seeds plus their reflections across the four sides of the rectangle.

    With the reflections present every input seed gets a bounded cell, and its
    edges along the border lie exactly on the rectangle sides.
    """
    x, y = points[:, 0], points[:, 1]
    left = np.column_stack([-x, y])
    right = np.column_stack([2 * width - x, y])
    top = np.column_stack([x, -y])
    bottom = np.column_stack([x, 2 * height - y])
    return np.vstack([points, left, right, top, bottom])


def clipped_voronoi_cells(points: np.ndarray, width: float, height: float) -> List[np.ndarray]:
    """Voronoi cells of `points` clipped to [0, width] x [0, height].

    Args:
        points: (N, 2) seed coordinates inside the rectangle.
        width: Rectangle width.
        height: Rectangle height.

    Returns:
        One closed ring per seed, in seed order: an (M+1, 2) array whose
        last row repeats the first. Vertices run in ascending angle
        around the seed.
    """
    vor = Voronoi(_mirror_points(points, width, height))
    cells: List[np.ndarray] = []

    for i, seed in enumerate(points):
        region = [v for v in vor.regions[vor.point_region[i]] if v != -1]
        verts = np.clip(vor.vertices[region], [0.0, 0.0], [width, height])

        # Cells are convex and contain their seed, so sorting by angle orders the ring
        angles = np.arctan2(verts[:, 1] - seed[1], verts[:, 0] - seed[0])
        verts = verts[np.argsort(angles)]

        keep = [0]
        for j in range(1, len(verts)):
            if np.linalg.norm(verts[j] - verts[keep[-1]]) > VERTEX_EPSILON:
                keep.append(j)
        verts = verts[keep]
        if len(verts) > 1 and np.linalg.norm(verts[-1] - verts[0]) <= VERTEX_EPSILON:
            verts = verts[:-1]

        cells.append(np.vstack([verts, verts[:1]]))

    return cells


def lloyd_relax(points: np.ndarray, width: float, height: float, iterations: int = 3) -> np.ndarray:
    """Move each seed to the centroid of its clipped cell, `iterations` times."""
    for _ in range(iterations):
        cells = clipped_voronoi_cells(points, width, height)
        relaxed = np.empty_like(points)
        for i, ring in enumerate(cells):
            if len(ring) > 3:
                relaxed[i] = polygon_centroid(ring[:-1])
            else:
                relaxed[i] = points[i]
        points = relaxed
    return points


def chain_neighbors(points: np.ndarray) -> List[List[int]]:
    """Adjacency of seeds lying on one line: consecutive seeds along it touch.

    Used when the seeds are collinear, e.g. the full-height strips Lloyd
    relaxation produces on a very wide, very short image.
    """
    centered = points - points.mean(axis=0)
    # Principal direction of the seed cloud
    _, _, vt = np.linalg.svd(centered, full_matrices=False)
    order = np.argsort(centered @ vt[0], kind="stable")

    neighbors: List[List[int]] = [[] for _ in range(len(points))]
    for a, b in zip(order[:-1], order[1:]):
        neighbors[int(a)].append(int(b))
        neighbors[int(b)].append(int(a))
    return [sorted(n) for n in neighbors]


def delaunay_neighbors(points: np.ndarray) -> List[List[int]]:
    """Delaunay adjacency of the seeds, each list sorted ascending.

    Falls back to chain adjacency when the seeds are collinear and admit no
    triangulation.
    """
    try:
        tri = Delaunay(points)
    except QhullError:
        logger.debug("Seeds are collinear, linking %d cells in a chain", len(points))
        return chain_neighbors(points)

    indptr, indices = tri.vertex_neighbor_vertices
    neighbors: List[set] = [set() for _ in range(len(points))]
    for i in range(len(points)):
        for j in indices[indptr[i] : indptr[i + 1]]:
            neighbors[i].add(int(j))
            neighbors[int(j)].add(i)
    return [sorted(n) for n in neighbors]


def generate_organic_cells(
    image_width: float,
    image_height: float,
    count: int,
    rng: Optional[np.random.Generator] = None,
    iterations: int = 3,
) -> List[PieceCell]:
    """Tessellate an image into relaxed Voronoi cells.

    Args:
        image_width: Width of the image in pixels.
        image_height: Height of the image in pixels.
        count: Number of cells; raised to MIN_ORGANIC_PIECES when smaller.
        rng: Random generator; a fresh unseeded one when omitted.
        iterations: Number of Lloyd relaxation passes.

    Returns:
        One PieceCell per seed, in seed order.
    """
    if rng is None:
        rng = np.random.default_rng()
    count = max(count, MIN_ORGANIC_PIECES)

    points = rng.uniform(size=(count, 2)) * np.array([image_width, image_height])
    points = lloyd_relax(points, image_width, image_height, iterations)

    rings = clipped_voronoi_cells(points, image_width, image_height)
    neighbors = delaunay_neighbors(points)

    cells: List[PieceCell] = []
    for i, ring in enumerate(rings):
        polygon = ring[:-1]  # drop the duplicated closing vertex
        cells.append(
            PieceCell(
                polygon=tuple((float(x), float(y)) for x, y in polygon),
                centroid=polygon_centroid(polygon),
                neighbors=tuple(neighbors[i]),
            )
        )

    logger.info("Generated %d Voronoi cells after %d Lloyd iterations", len(cells), iterations)
    return cells
