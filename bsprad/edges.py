"""Face extents, shared-edge pairing and phong normals."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from .world import (
    BOGUS_RANGE,
    EQUAL_EPSILON,
    NORMAL_EPSILON,
    BspWorld,
    Vec3,
    cross,
    dot,
    normalize,
)

ZERO: Vec3 = (0.0, 0.0, 0.0)
COPLANAR_COS = 1.0 - 0.01


def _add(a: Sequence[float], b: Sequence[float]) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def _sub(a: Sequence[float], b: Sequence[float]) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _scale(v: Sequence[float], s: float) -> Vec3:
    return (v[0] * s, v[1] * s, v[2] * s)


def _same(a: Sequence[float], b: Sequence[float]) -> bool:
    return all(abs(x - y) <= EQUAL_EPSILON for x, y in zip(a, b))


@dataclass
class FaceExtents:
    """World and texture-space bounds of a face."""

    mins: Vec3
    maxs: Vec3
    center: Vec3
    st_mins: tuple[float, float]
    st_maxs: tuple[float, float]


def build_face_extents(world: BspWorld) -> list[FaceExtents]:
    """Bounds and centre of every face, used to nudge samples inward."""
    result = []
    for facenum, face in enumerate(world.faces):
        vecs = world.texinfo[face.texinfo].vecs
        mins = [BOGUS_RANGE] * 3
        maxs = [-BOGUS_RANGE] * 3
        st_mins = [BOGUS_RANGE] * 2
        st_maxs = [-BOGUS_RANGE] * 2
        for point in world.face_points(facenum):
            mins = [min(m, p) for m, p in zip(mins, point)]
            maxs = [max(m, p) for m, p in zip(maxs, point)]
            for axis, vec in enumerate(vecs):
                val = point[0] * vec[0] + point[1] * vec[1] + point[2] * vec[2] + vec[3]
                st_mins[axis] = min(st_mins[axis], val)
                st_maxs[axis] = max(st_maxs[axis], val)
        center = tuple((lo + hi) / 2.0 for lo, hi in zip(mins, maxs))
        result.append(
            FaceExtents(
                tuple(mins), tuple(maxs), center, tuple(st_mins), tuple(st_maxs)
            )
        )
    return result


def texture_normal(world: BspWorld, facenum: int) -> Vec3:
    """Normal of the texture axes, turned towards the face's plane normal."""
    vecs = world.texinfo[world.faces[facenum].texinfo].vecs
    normal, _ = normalize(cross(vecs[1][:3], vecs[0][:3]))
    if dot(normal, world.face_plane(facenum).normal) < 0:
        normal = _scale(normal, -1.0)
    return normal


@dataclass
class EdgeShare:
    """The faces on either side of an edge and its smoothing data."""

    faces: list[Optional[int]] = field(default_factory=lambda: [None, None])
    coplanar: bool = False
    smooth: bool = False
    cos_normals_angle: float = 0.0
    interface_normal: Vec3 = ZERO
    vertex_normal: list[Vec3] = field(default_factory=lambda: [ZERO, ZERO])


@dataclass
class EdgeSmoothing:
    """Edge pairing of a world, answering phong-normal queries."""

    world: BspWorld
    shares: list[EdgeShare]
    texnormals: list[Vec3]
    face_offsets: list[Vec3]
    extents: list[FaceExtents]
    num_smoothing: int = 0

    def intertexnormal_ok(self, face1: int, face2: int) -> bool:
        """Whether the mean texture normal of two faces faces both planes."""
        normal, length = normalize(_add(self.texnormals[face1], self.texnormals[face2]))
        if not length:
            return False
        p1 = self.world.face_plane(face1)
        p2 = self.world.face_plane(face2)
        return dot(normal, p1.normal) > NORMAL_EPSILON and dot(normal, p2.normal) > NORMAL_EPSILON

    def _classify(self, share: EdgeShare, threshold: float) -> None:
        f0, f1 = share.faces
        face0, face1 = self.world.faces[f0], self.world.faces[f1]
        n0 = self.world.face_plane(f0).normal
        if face0.planenum == face1.planenum and face0.side == face1.side:
            share.coplanar = True
            share.interface_normal = n0
            share.cos_normals_angle = 1.0
        else:
            n1 = self.world.face_plane(f1).normal
            share.cos_normals_angle = dot(n0, n1)
            if share.cos_normals_angle > COPLANAR_COS:
                share.coplanar = True
                share.interface_normal = n0
                share.cos_normals_angle = 1.0
            elif threshold > 0.0 and share.cos_normals_angle >= threshold:
                self.num_smoothing += 1
                share.interface_normal, _ = normalize(_add(n0, n1))

        if not _same(share.interface_normal, ZERO):
            share.smooth = True
        if not self.intertexnormal_ok(f0, f1):
            share.coplanar = False
            share.interface_normal = ZERO
            share.smooth = False

    def _edge_points(self, surfedge: int) -> tuple[Vec3, Vec3]:
        v = self.world.edges[abs(surfedge)].v
        if surfedge > 0:
            return self.world.vertexes[v[0]], self.world.vertexes[v[1]]
        return self.world.vertexes[v[1]], self.world.vertexes[v[0]]

    def phong_normal(self, facenum: int, spot: Sequence[float]) -> Vec3:
        """Normal at ``spot`` bent towards the normals of smoothed edges."""
        world = self.world
        face = world.faces[facenum]
        facenormal = world.face_plane(facenum).normal
        phong = facenormal
        count = face.numedges
        run = world.surfedges[face.firstedge:face.firstedge + count]
        offset = self.face_offsets[facenum]
        center = self.extents[facenum].center
        vspot = _sub(spot, center)

        for j, e in enumerate(run):
            e1 = run[(j - 1) % count]
            e2 = run[(j + 1) % count]
            es = self.shares[abs(e)]
            es1 = self.shares[abs(e1)]
            es2 = self.shares[abs(e2)]
            if all(not s.smooth or s.coplanar for s in (es, es1, es2)):
                continue

            p1, p2 = self._edge_points(e)
            p1 = _add(p1, offset)
            p2 = _add(p2, offset)
            mid = _scale(_add(p1, p2), 0.5)
            v2 = _sub(mid, center)

            for s, corner in enumerate((p1, p2)):
                v1 = _sub(corner, center)
                aa = dot(v1, v1)
                bb = dot(v2, v2)
                ab = dot(v1, v2)
                denom = aa * bb - ab * ab
                if denom == 0 or bb == 0:
                    continue
                a1 = (bb * dot(v1, vspot) - ab * dot(vspot, v2)) / denom
                a2 = (dot(vspot, v2) - a1 * ab) / bb
                if a1 < -0.01 or a2 < -0.01:
                    continue

                if es.smooth:
                    if s == 0:
                        n1 = es.vertex_normal[0 if e > 0 else 1]
                    else:
                        n1 = es.vertex_normal[1 if e > 0 else 0]
                elif s == 0 and es1.smooth:
                    n1 = es1.vertex_normal[1 if e1 > 0 else 0]
                elif s == 1 and es2.smooth:
                    n1 = es2.vertex_normal[0 if e2 > 0 else 1]
                else:
                    n1 = facenormal
                n2 = es.interface_normal if es.smooth else facenormal

                blended = _add(
                    _add(_scale(facenormal, abs((1.0 - a1) - a2)), _scale(n1, a1)),
                    _scale(n2, a2),
                )
                phong, _ = normalize(blended)
                break
        return phong


def pair_edges(
    world: BspWorld,
    smoothing_threshold: float,
    face_offsets: Optional[Sequence[Sequence[float]]] = None,
    extents: Optional[Sequence[FaceExtents]] = None,
) -> EdgeSmoothing:
    """Find the two faces of every edge and decide how it is smoothed.

    Raises ValueError when an edge is used twice in one direction or a
    smoothed edge joins a vertex to itself.
    """
    if face_offsets is None:
        face_offsets = [ZERO] * len(world.faces)
    if extents is None:
        extents = build_face_extents(world)
    smoothing = EdgeSmoothing(
        world=world,
        shares=[EdgeShare() for _ in world.edges],
        texnormals=[texture_normal(world, facenum) for facenum in range(len(world.faces))],
        face_offsets=[(o[0], o[1], o[2]) for o in face_offsets],
        extents=list(extents),
    )

    for facenum, face in enumerate(world.faces):
        for k in world.surfedges[face.firstedge:face.firstedge + face.numedges]:
            share = smoothing.shares[abs(k)]
            side = 1 if k < 0 else 0
            if share.faces[side] is not None:
                raise ValueError(f"PairEdges: edge {abs(k)} used twice on one side")
            share.faces[side] = facenum
            if share.faces[0] is not None and share.faces[1] is not None:
                smoothing._classify(share, smoothing_threshold)

    for edgenum, share in enumerate(smoothing.shares):
        if not share.smooth:
            continue
        v0, v1 = world.edges[edgenum].v
        if v0 == v1:
            x, y, z = _add(world.vertexes[v0], smoothing.face_offsets[share.faces[0]])
            raise ValueError(f"PairEdges: invalid edge at ({x:f},{y:f},{z:f})")
        # Walking the faces around each end adds nothing with a zero angle
        # weight, so every vertex normal falls back to the edge normal.
        share.vertex_normal = [share.interface_normal, share.interface_normal]
    return smoothing