"""Plane geometry helpers shared by the generators and the assembly store.

Image space is the source picture's pixel grid (y grows downward); board space
is where pieces are placed. `to_board` maps one into the other for an entity
with a given centroid, board position, rotation and scale.
"""

import math
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from .models import BezierCurve, Point

# Below this absolute signed area a polygon is treated as degenerate.
AREA_EPSILON = 1e-10


def polygon_area(polygon: Sequence[Point]) -> float:
    """Signed shoelace area (positive for counter-clockwise in y-up axes)."""
    pts = np.asarray(polygon, dtype=float)
    if len(pts) < 3:
        return 0.0
    x, y = pts[:, 0], pts[:, 1]
    x1, y1 = np.roll(x, -1), np.roll(y, -1)
    return float(np.sum(x * y1 - x1 * y) / 2.0)


def polygon_centroid(polygon: Sequence[Point]) -> Point:
    """Area centroid of a simple polygon given as an open ring.

    Falls back to the mean of the vertices when the polygon has (numerically)
    no area, e.g. when all vertices are collinear.
    """
    pts = np.asarray(polygon, dtype=float)
    x, y = pts[:, 0], pts[:, 1]
    x1, y1 = np.roll(x, -1), np.roll(y, -1)
    cross = x * y1 - x1 * y
    area = np.sum(cross) / 2.0

    if abs(area) < AREA_EPSILON:
        return (float(np.mean(x)), float(np.mean(y)))

    cx = np.sum((x + x1) * cross) / (6.0 * area)
    cy = np.sum((y + y1) * cross) / (6.0 * area)
    return (float(cx), float(cy))


def group_centroid(polygons: Iterable[Sequence[Point]]) -> Point:
    """Unweighted mean of every vertex of every polygon."""
    pts = np.concatenate([np.asarray(poly, dtype=float).reshape(-1, 2) for poly in polygons])
    mean = pts.mean(axis=0)
    return (float(mean[0]), float(mean[1]))


def polygons_bbox(polygons: Iterable[Sequence[Point]]) -> Tuple[float, float, float, float]:
    """Bounding box of a set of polygons as (min_x, min_y, max_x, max_y)."""
    pts = np.concatenate([np.asarray(poly, dtype=float).reshape(-1, 2) for poly in polygons])
    min_x, min_y = pts.min(axis=0)
    max_x, max_y = pts.max(axis=0)
    return (float(min_x), float(min_y), float(max_x), float(max_y))


def distance(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def rotate_point(point: Point, origin: Point, angle_deg: float) -> Point:
    """Rotate a point around an origin by an angle in degrees."""
    rad = math.radians(angle_deg)
    cos = math.cos(rad)
    sin = math.sin(rad)
    dx = point[0] - origin[0]
    dy = point[1] - origin[1]
    return (origin[0] + dx * cos - dy * sin, origin[1] + dx * sin + dy * cos)


def point_in_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    """Ray-casting containment test."""
    px, py = point
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > py) != (yj > py) and px < (xj - xi) * (py - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def to_board(
    polygon: Sequence[Point],
    image_centroid: Point,
    board_x: float,
    board_y: float,
    rotation: float,
    scale: float,
) -> List[Point]:
    """Convert image-space points to board space.

    Points are taken relative to the entity's image-space centroid, scaled,
    rotated by the entity's rotation and translated to its board position.
    """
    pts = (np.asarray(polygon, dtype=float).reshape(-1, 2) - np.asarray(image_centroid, dtype=float)) * scale
    rad = math.radians(rotation)
    cos = math.cos(rad)
    sin = math.sin(rad)
    rx = pts[:, 0] * cos - pts[:, 1] * sin + board_x
    ry = pts[:, 0] * sin + pts[:, 1] * cos + board_y
    return [(float(x), float(y)) for x, y in zip(rx, ry)]


def sample_boundary(curves: Sequence[BezierCurve], points_per_curve: int = 20) -> List[Point]:
    """Sample a closed curve boundary into an open polygon ring."""
    points: List[Point] = []
    for curve in curves:
        if curve.is_straight:
            points.append(curve.p0)
            continue
        samples = curve.get_points(points_per_curve)
        # Skip the last point of each curve; it is the next curve's first
        points.extend((float(x), float(y)) for x, y in samples[:-1])
    return points


def boundary_to_svg_path(curves: Sequence[BezierCurve], precision: int = 2) -> str:
    """Serialize a closed boundary as an SVG path in image coordinates."""
    if not curves:
        return ""

    def fmt(p: Point) -> str:
        return f"{round(p[0], precision):g},{round(p[1], precision):g}"

    parts = [f"M {fmt(curves[0].p0)}"]
    for curve in curves:
        if curve.is_straight:
            parts.append(f"L {fmt(curve.p3)}")
        else:
            parts.append(f"C {fmt(curve.p1)} {fmt(curve.p2)} {fmt(curve.p3)}")
    parts.append("Z")
    return " ".join(parts)
