"""Line-of-sight tests through the BSP tree."""

from __future__ import annotations

from typing import Sequence

from .world import (
    ON_EPSILON,
    PLANE_X,
    PLANE_Y,
    PLANE_Z,
    BspWorld,
    Contents,
    Vec3,
    dot,
)


def point_in_nodenum(world: BspWorld, point: Sequence[float]) -> int:
    """Index of the last node visited before reaching the leaf at ``point``."""
    nodenum = 0
    last = 0
    while nodenum >= 0:
        node = world.nodes[nodenum]
        plane = world.planes[node.planenum]
        distance = dot(point, plane.normal) - plane.dist
        last = nodenum
        nodenum = node.children[0] if distance > 0 else node.children[1]
    return last


class TraceTree:
    """A compact copy of the BSP tree for occlusion tests.

    Nodes are laid out depth first from the root. A negative child ``c``
    is a leaf whose masked contents are ``-c - 1``.
    """

    MASK = Contents.SOLID | Contents.WINDOW

    def __init__(self, world: BspWorld):
        self._types: list[int] = []
        self._normals: list[Vec3] = []
        self._dists: list[float] = []
        self._children: list[list[int]] = []
        if world.nodes:
            self._make(world, 0)

    def __len__(self) -> int:
        return len(self._types)

    def _make(self, world: BspWorld, nodenum: int) -> None:
        index = len(self._types)
        node = world.nodes[nodenum]
        plane = world.planes[node.planenum]
        self._types.append(plane.type)
        self._normals.append(plane.normal)
        self._dists.append(plane.dist)
        children = [0, 0]
        self._children.append(children)
        for i, child in enumerate(node.children):
            if child < 0:
                contents = int(world.leafs[-child - 1].contents) & int(self.MASK)
                children[i] = -contents - 1
            else:
                children[i] = len(self._types)
                self._make(world, child)
        assert index == len(self._children) - 1 or self._children[index] is children

    def test_line(self, start: Sequence[float], stop: Sequence[float], node: int = 0) -> int:
        """Contents of the first blocking leaf between the points, or 0."""
        start = (start[0], start[1], start[2])
        while True:
            if node < 0:
                contents = -node - 1
                if contents == Contents.WINDOW:
                    return 0
                return contents

            kind = self._types[node]
            dist = self._dists[node]
            if kind == PLANE_X:
                front, back = start[0] - dist, stop[0] - dist
            elif kind == PLANE_Y:
                front, back = start[1] - dist, stop[1] - dist
            elif kind == PLANE_Z:
                front, back = start[2] - dist, stop[2] - dist
            else:
                normal = self._normals[node]
                front = dot(start, normal) - dist
                back = dot(stop, normal) - dist

            children = self._children[node]
            if front >= -ON_EPSILON and back >= -ON_EPSILON:
                node = children[0]
                continue
            if front < ON_EPSILON and back < ON_EPSILON:
                node = children[1]
                continue

            side = 1 if front < 0 else 0
            frac = front / (front - back)
            mid = (
                start[0] + (stop[0] - start[0]) * frac,
                start[1] + (stop[1] - start[1]) * frac,
                start[2] + (stop[2] - start[2]) * frac,
            )
            hit = self.test_line(start, mid, children[side])
            if hit:
                return hit
            node = children[1 - side]
            start = mid

    def test_line_color(
        self, start: Sequence[float], stop: Sequence[float], node: int = 0
    ) -> tuple[int, Vec3]:
        """Like :meth:`test_line`, also returning the light filter, always white."""
        return self.test_line(start, stop, node), (1.0, 1.0, 1.0)