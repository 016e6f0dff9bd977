"""Planar triangulation of patch centres for smooth light interpolation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from .world import BOGUS_RANGE, ON_EPSILON, Vec3, cross, dot, normalize

MAX_TRI_POINTS = 1024
MAX_TRI_EDGES = MAX_TRI_POINTS * 6
MAX_TRI_TRIS = MAX_TRI_POINTS * 2


class TriangulationError(Exception):
    """Raised when a triangulation exceeds its limits or has no points."""


@dataclass(eq=False)
class TriEdge:
    """A directed edge; its front side is where ``dot(p, normal) >= dist``."""

    p0: int
    p1: int
    normal: Vec3
    dist: float
    tri: Optional["Triangle"] = None


@dataclass(eq=False)
class Triangle:
    """Three edges wound so that the interior lies in front of each."""

    edges: tuple[TriEdge, TriEdge, TriEdge]


def _sub(a: Sequence[float], b: Sequence[float]) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


@dataclass
class _TriPoint:
    origin: Vec3
    light: Vec3


class Triangulation:
    """Points on one plane, each carrying a light colour."""

    def __init__(self, normal: Sequence[float]):
        self.normal: Vec3 = (normal[0], normal[1], normal[2])
        self.points: list[_TriPoint] = []
        self.edges: list[TriEdge] = []
        self.triangles: list[Triangle] = []
        self.last_valid: Optional[Triangle] = None
        self._edge_matrix: dict[tuple[int, int], TriEdge] = {}

    def add_point(self, origin: Sequence[float], light: Sequence[float]) -> int:
        """Add a point with its light colour; return its index."""
        if len(self.points) == MAX_TRI_POINTS:
            raise TriangulationError("trian->numpoints == MAX_TRI_POINTS")
        self.points.append(
            _TriPoint(
                (origin[0], origin[1], origin[2]),
                (light[0], light[1], light[2]),
            )
        )
        return len(self.points) - 1

    def find_edge(self, p0: int, p1: int) -> TriEdge:
        """The edge from ``p0`` to ``p1``, created with its reverse if new."""
        existing = self._edge_matrix.get((p0, p1))
        if existing is not None:
            return existing
        if len(self.edges) > MAX_TRI_EDGES - 2:
            raise TriangulationError("trian->numedges > MAX_TRI_EDGES-2")

        direction, _ = normalize(_sub(self.points[p1].origin, self.points[p0].origin))
        normal = cross(direction, self.normal)
        dist = dot(self.points[p0].origin, normal)

        edge = TriEdge(p0, p1, normal, dist)
        back = TriEdge(p1, p0, (-normal[0], -normal[1], -normal[2]), -dist)
        self.edges.append(edge)
        self.edges.append(back)
        self._edge_matrix[(p0, p1)] = edge
        self._edge_matrix[(p1, p0)] = back
        return edge

    def _alloc_triangle(self, edges: tuple[TriEdge, TriEdge, TriEdge]) -> Triangle:
        if len(self.triangles) >= MAX_TRI_TRIS:
            raise TriangulationError("trian->numtris >= MAX_TRI_TRIS")
        triangle = Triangle(edges)
        self.triangles.append(triangle)
        return triangle

    def _best_point(self, edge: TriEdge) -> Optional[int]:
        p0 = self.points[edge.p0].origin
        p1 = self.points[edge.p1].origin
        best = 1.1
        bestp = 0
        for i, point in enumerate(self.points):
            p = point.origin
            if dot(p, edge.normal) - edge.dist < 0:
                continue
            v1, len1 = normalize(_sub(p0, p))
            if not len1:
                continue
            v2, len2 = normalize(_sub(p1, p))
            if not len2:
                continue
            angle = dot(v1, v2)
            if angle < best:
                best = angle
                bestp = i
        if best >= 1:
            return None
        return bestp

    def _tri_edge(self, start: TriEdge) -> None:
        stack = [start]
        while stack:
            edge = stack.pop()
            if edge.tri is not None:
                continue
            bestp = self._best_point(edge)
            if bestp is None:
                continue
            triangle = self._alloc_triangle(
                (edge, self.find_edge(edge.p1, bestp), self.find_edge(bestp, edge.p0))
            )
            for member in triangle.edges:
                member.tri = triangle
            first = self.find_edge(bestp, edge.p1)
            second = self.find_edge(edge.p0, bestp)
            stack.append(second)
            stack.append(first)

    def triangulate(self) -> None:
        """Connect the points into triangles, growing from the closest pair."""
        count = len(self.points)
        if count < 2:
            return
        bestd = BOGUS_RANGE
        bp1 = bp2 = 0
        for i in range(count):
            p1 = self.points[i].origin
            for j in range(i + 1, count):
                _, d = normalize(_sub(self.points[j].origin, p1))
                if d < bestd:
                    bestd = d
                    bp1, bp2 = i, j
        edge = self.find_edge(bp1, bp2)
        reverse = self.find_edge(bp2, bp1)
        self._tri_edge(edge)
        self._tri_edge(reverse)

    def point_in_triangle(self, point: Sequence[float], triangle: Triangle) -> bool:
        """Whether ``point`` lies in front of all three edges."""
        return all(dot(e.normal, point) - e.dist >= 0 for e in triangle.edges)

    def lerp_triangle(self, triangle: Triangle, point: Sequence[float]) -> Vec3:
        """Interpolate the corner lights of ``triangle`` at ``point``."""
        e0, e1, e2 = triangle.edges
        base = self.points[e0.p0].light
        p2 = self.points[e1.p0]
        p3 = self.points[e2.p0]

        x1 = dot(p3.origin, e0.normal) - e0.dist
        y1 = dot(p2.origin, e2.normal) - e2.dist

        color = list(base)
        if abs(x1) >= ON_EPSILON:
            x = (dot(point, e0.normal) - e0.dist) / x1
            for i in range(3):
                color[i] += x * (p3.light[i] - base[i])
        if abs(y1) >= ON_EPSILON:
            y = (dot(point, e2.normal) - e2.dist) / y1
            for i in range(3):
                color[i] += y * (p2.light[i] - base[i])
        return (color[0], color[1], color[2])

    def sample(self, point: Sequence[float]) -> Vec3:
        """Light at ``point``, remembering the last triangle that held a point.

        Falls back to an exterior edge the point faces, then to the nearest
        point.
        """
        if not self.points:
            return (0.0, 0.0, 0.0)
        if len(self.points) == 1:
            return self.points[0].light

        last = self.last_valid
        if last is not None and self.point_in_triangle(point, last):
            return self.lerp_triangle(last, point)

        for triangle in self.triangles:
            if triangle is last:
                continue
            if not self.point_in_triangle(point, triangle):
                continue
            self.last_valid = triangle
            return self.lerp_triangle(triangle, point)

        for edge in self.edges:
            if edge.tri is not None:
                continue
            if dot(point, edge.normal) - edge.dist < 0:
                continue
            p0 = self.points[edge.p0]
            p1 = self.points[edge.p1]
            direction, _ = normalize(_sub(p1.origin, p0.origin))
            d = dot(_sub(point, p0.origin), direction)
            if d < 0 or d > 1:
                continue
            return (
                p0.light[0] + d * (p1.light[0] - p0.light[0]),
                p0.light[1] + d * (p1.light[1] - p0.light[1]),
                p0.light[2] + d * (p1.light[2] - p0.light[2]),
            )

        best = BOGUS_RANGE
        nearest: Optional[_TriPoint] = None
        for candidate in self.points:
            _, d = normalize(_sub(point, candidate.origin))
            if d < best:
                best = d
                nearest = candidate
        if nearest is None:
            raise TriangulationError("SampleTriangulation: no points")
        return nearest.light