"""In-memory BSP world model and the vector helpers used throughout."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import IntFlag
from typing import Optional, Sequence

Vec3 = tuple[float, float, float]

ON_EPSILON = 0.1
EQUAL_EPSILON = 0.001
NORMAL_EPSILON = 0.00001
BOGUS_RANGE = 65536.0

PLANE_X = 0
PLANE_Y = 1
PLANE_Z = 2


class Contents(IntFlag):
    """Leaf content bits."""

    EMPTY = 0
    SOLID = 1
    WINDOW = 2
    AUX = 4
    LAVA = 8
    SLIME = 16
    WATER = 32
    MIST = 64


class SurfaceFlags(IntFlag):
    """Texture surface flags."""

    NONE = 0
    LIGHT = 0x1
    SLICK = 0x2
    SKY = 0x4
    WARP = 0x8
    TRANS33 = 0x10
    TRANS66 = 0x20
    FLOWING = 0x40
    NODRAW = 0x80


def dot(a: Sequence[float], b: Sequence[float]) -> float:
    """Dot product of two 3-vectors."""
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def cross(a: Sequence[float], b: Sequence[float]) -> Vec3:
    """Cross product of two 3-vectors."""
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def normalize(v: Sequence[float]) -> tuple[Vec3, float]:
    """Return the unit vector along ``v`` and the original length.

    A zero vector yields a zero vector and a length of 0.
    """
    length = math.sqrt(dot(v, v))
    if length == 0:
        return (0.0, 0.0, 0.0), 0.0
    inv = 1.0 / length
    return (v[0] * inv, v[1] * inv, v[2] * inv), length


def color_normalize(v: Sequence[float]) -> tuple[Vec3, float]:
    """Scale a colour so its largest channel is 1; return it and that channel.

    When the largest channel is 0 the colour is returned unchanged with 0.
    """
    largest = max(v[0], v[1], v[2])
    if largest == 0:
        return (float(v[0]), float(v[1]), float(v[2])), 0.0
    scale = 1.0 / largest
    return (v[0] * scale, v[1] * scale, v[2] * scale), largest


@dataclass(frozen=True)
class Plane:
    """A splitting plane: points p with dot(p, normal) == dist."""

    normal: Vec3
    dist: float
    type: int = 3

    def flipped(self) -> "Plane":
        """The same plane facing the other way."""
        n = self.normal
        return Plane((-n[0], -n[1], -n[2]), -self.dist, self.type)


@dataclass
class Node:
    """A BSP node; a negative child ``c`` refers to leaf ``-c - 1``."""

    planenum: int
    children: tuple[int, int]


@dataclass
class Leaf:
    """A BSP leaf with its contents and visibility cluster."""

    contents: int = 0
    cluster: int = -1


@dataclass
class Edge:
    """An edge between two vertex indices."""

    v: tuple[int, int]


@dataclass
class Face:
    """A polygonal face described by a run of surface edges."""

    planenum: int
    side: int
    firstedge: int
    numedges: int
    texinfo: int = 0
    lightofs: int = -1
    styles: list[int] = field(default_factory=lambda: [0, 0xFF, 0xFF, 0xFF])


@dataclass
class TexInfo:
    """Texture projection vectors and surface attributes."""

    vecs: tuple[tuple[float, float, float, float], tuple[float, float, float, float]]
    flags: int = 0
    value: int = 0
    texture: str = ""


@dataclass
class Patch:
    """A piece of a face taking part in the radiosity exchange."""

    winding: list[Vec3]
    origin: Vec3
    plane: Plane
    cluster: int = -1
    nodenum: int = 0
    sky: bool = False
    area: float = 1.0
    face_number: int = 0
    totallight: list[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    reflectivity: list[float] = field(default_factory=lambda: [0.5, 0.5, 0.5])
    baselight: list[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    samplelight: list[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    samples: int = 0
    transfers: list = field(default_factory=list)
    trace_hit: Optional[bytes] = None


@dataclass
class BspWorld:
    """The geometry, tree and visibility data of a compiled map.

    ``cluster_pvs`` holds one decompressed visibility row per cluster; an
    empty list means the map carries no visibility information.
    """

    planes: list[Plane] = field(default_factory=list)
    nodes: list[Node] = field(default_factory=list)
    leafs: list[Leaf] = field(default_factory=list)
    vertexes: list[Vec3] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    surfedges: list[int] = field(default_factory=list)
    faces: list[Face] = field(default_factory=list)
    texinfo: list[TexInfo] = field(default_factory=list)
    cluster_pvs: list[bytes] = field(default_factory=list)

    @property
    def numclusters(self) -> int:
        return len(self.cluster_pvs)

    def backplane(self, planenum: int) -> Plane:
        """The reverse side of plane ``planenum``."""
        return self.planes[planenum].flipped()

    def face_plane(self, facenum: int) -> Plane:
        """The plane a face lies on, facing the way the face does."""
        face = self.faces[facenum]
        if face.side:
            return self.backplane(face.planenum)
        return self.planes[face.planenum]

    def face_points(self, facenum: int) -> list[Vec3]:
        """The vertices of a face in winding order."""
        face = self.faces[facenum]
        points = []
        for se in self.surfedges[face.firstedge:face.firstedge + face.numedges]:
            vertex = self.edges[-se].v[1] if se < 0 else self.edges[se].v[0]
            points.append(self.vertexes[vertex])
        return points

    def point_in_leafnum(self, point: Sequence[float]) -> int:
        """Index of the leaf that contains ``point``."""
        nodenum = 0
        while nodenum >= 0:
            node = self.nodes[nodenum]
            plane = self.planes[node.planenum]
            distance = dot(point, plane.normal) - plane.dist
            nodenum = node.children[0] if distance > 0 else node.children[1]
        return -nodenum - 1

    def point_in_leaf(self, point: Sequence[float]) -> Leaf:
        """The leaf that contains ``point``."""
        return self.leafs[self.point_in_leafnum(point)]

    def lowest_common_node(self, node1: int, node2: int) -> int:
        """The deepest node whose subtree holds both nodes.

        Nodes must be numbered in depth-first order, as compiled maps are.
        """
        if node1 > node2:
            node1, node2 = node2, node1
        head = 0
        while head != node1:
            node = self.nodes[head]
            child1 = node.children[1]
            if node2 < child1:
                nxt = node.children[0]
            elif node1 < child1:
                return head
            elif child1 > 0:
                nxt = child1
            else:
                nxt = node.children[0]
            if nxt <= head:
                raise ValueError("nodes are not in depth-first order")
            head = nxt
        return head

    def make_parents(self) -> tuple[list[int], list[int]]:
        """Parent node of every node and of every leaf; the root's is -1."""
        nodeparents = [-1] * len(self.nodes)
        leafparents = [-1] * len(self.leafs)
        if not self.nodes:
            return nodeparents, leafparents
        stack = [(0, -1)]
        while stack:
            nodenum, parent = stack.pop()
            nodeparents[nodenum] = parent
            for child in self.nodes[nodenum].children:
                if child < 0:
                    leafparents[-child - 1] = nodenum
                else:
                    stack.append((child, nodenum))
        return nodeparents, leafparents

    def pvs_for_origin(self, point: Sequence[float]) -> Optional[bytes]:
        """Visibility row for the cluster at ``point``.

        Returns all-visible bits when the map has no visibility data and
        None when the point lies in a solid leaf.
        """
        if not self.cluster_pvs:
            return b"\xff" * ((len(self.leafs) + 7) // 8)
        leaf = self.point_in_leaf(point)
        if leaf.cluster == -1:
            return None
        return self.cluster_pvs[leaf.cluster]