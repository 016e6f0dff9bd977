"""Lightmap sample positions for one face."""

from __future__ import annotations

import logging
import math
from typing import Sequence

from .settings import LMSTEP
from .trace import TraceTree
from .world import BOGUS_RANGE, BspWorld, Contents, Vec3, cross, dot, normalize

log = logging.getLogger(__name__)

SINGLEMAP = 64 * 64 * 4
QBSP_SINGLEMAP = 256 * 256 * 4
NUDGE_TRIES = 6
NUDGE_STEP = 8.0

ZERO: Vec3 = (0.0, 0.0, 0.0)


class SurfaceTooLargeError(Exception):
    """Raised when a face needs more lightmap samples than allowed."""


class LightInfo:
    """Texture-space frame and sample grid of one face."""

    def __init__(self, world: BspWorld, facenum: int, modelorg: Sequence[float] = ZERO):
        self.world = world
        self.surfnum = facenum
        self.face = world.faces[facenum]
        plane = world.face_plane(facenum)
        self.facenormal: Vec3 = plane.normal
        self.facedist: float = plane.dist
        self.modelorg: Vec3 = (modelorg[0], modelorg[1], modelorg[2])
        self.texorg: Vec3 = ZERO
        self.worldtotex: tuple[Vec3, Vec3] = (ZERO, ZERO)
        self.textoworld: tuple[Vec3, Vec3] = (ZERO, ZERO)
        self.exactmins: tuple[float, float] = (0.0, 0.0)
        self.exactmaxs: tuple[float, float] = (0.0, 0.0)
        self.texmins: tuple[int, int] = (0, 0)
        self.texsize: tuple[int, int] = (0, 0)
        self.numsurfpt = 0
        self.surfpt: list[Vec3] = []

    def calc_face_extents(self, step: int = LMSTEP, max_samples: int = SINGLEMAP) -> None:
        """Set the exact and grid-aligned texture extents of the face."""
        vecs = self.world.texinfo[self.face.texinfo].vecs
        mins = [BOGUS_RANGE, BOGUS_RANGE]
        maxs = [-BOGUS_RANGE, -BOGUS_RANGE]
        for point in self.world.face_points(self.surfnum):
            for axis, vec in enumerate(vecs):
                val = dot(point, vec) + vec[3]
                mins[axis] = min(mins[axis], val)
                maxs[axis] = max(maxs[axis], val)

        self.exactmins = (mins[0], mins[1])
        self.exactmaxs = (maxs[0], maxs[1])
        low = [math.floor(m / step) for m in mins]
        high = [math.ceil(m / step) for m in maxs]
        self.texmins = (low[0], low[1])
        self.texsize = (high[0] - low[0], high[1] - low[1])

        if self.texsize[0] * self.texsize[1] > max_samples // 4:
            lines = [
                f"Axis: {name}\n  Mins = {lo:10.3f}, Maxs = {hi:10.3f},  Size = {hi - lo:10.3f}"
                for name, lo, hi in zip("XY", low, high)
            ]
            raise SurfaceTooLargeError("Surface too large to map\n" + "\n".join(lines))

    def calc_face_vectors(self) -> None:
        """Set the texture origin and the world/texture conversion vectors."""
        vecs = self.world.texinfo[self.face.texinfo].vecs
        self.worldtotex = (
            (vecs[0][0], vecs[0][1], vecs[0][2]),
            (vecs[1][0], vecs[1][1], vecs[1][2]),
        )

        texnormal, _ = normalize(cross(self.worldtotex[1], self.worldtotex[0]))
        distscale = dot(texnormal, self.facenormal)
        if not distscale:
            log.warning("WARNING: Texture axis perpendicular to face")
            distscale = 1.0
        if distscale < 0:
            distscale = -distscale
            texnormal = (-texnormal[0], -texnormal[1], -texnormal[2])
        distscale = 1.0 / distscale

        textoworld = []
        for axis in self.worldtotex:
            _, length = normalize(axis)
            dist = dot(axis, self.facenormal) * distscale
            inv = (1.0 / length) * (1.0 / length)
            textoworld.append(
                tuple((axis[k] - dist * texnormal[k]) * inv for k in range(3))
            )
        self.textoworld = (textoworld[0], textoworld[1])

        texorg = tuple(
            -vecs[0][3] * textoworld[0][k] - vecs[1][3] * textoworld[1][k] for k in range(3)
        )
        dist = (dot(texorg, self.facenormal) - self.facedist - 1) * distscale
        self.texorg = tuple(
            texorg[k] - dist * texnormal[k] + self.modelorg[k] for k in range(3)
        )
        self.numsurfpt = (self.texsize[0] + 1) * (self.texsize[1] + 1)

    def _to_world(self, us: float, ut: float) -> Vec3:
        t0, t1 = self.textoworld
        return tuple(self.texorg[k] + t0[k] * us + t1[k] * ut for k in range(3))

    def _usable(self, tracer: TraceTree, facemid: Vec3, surf: Vec3) -> bool:
        leaf = self.world.point_in_leaf(surf)
        return leaf.contents != Contents.SOLID and not tracer.test_line(facemid, surf, 0)

    def calc_points(
        self,
        tracer: TraceTree,
        step: int = LMSTEP,
        sofs: float = 0.0,
        tofs: float = 0.0,
    ) -> list[Vec3]:
        """World position of every texture grid sample, pulled inward if hidden.

        A sample that is in solid or cannot see the face centre is moved up
        to six times towards the centre in 8-unit steps.
        """
        mids = (self.exactmaxs[0] + self.exactmins[0]) / 2
        midt = (self.exactmaxs[1] + self.exactmins[1]) / 2
        facemid = self._to_world(mids, midt)

        w = self.texsize[0] + 1
        h = self.texsize[1] + 1
        self.numsurfpt = w * h
        starts = self.texmins[0] * step
        startt = self.texmins[1] * step

        points: list[Vec3] = []
        for t in range(h):
            for s in range(w):
                us = starts + (s + sofs) * step
                ut = startt + (t + tofs) * step
                surf = self._to_world(us, ut)
                for attempt in range(NUDGE_TRIES):
                    surf = self._to_world(us, ut)
                    if self._usable(tracer, facemid, surf):
                        break
                    if attempt & 1:
                        us = _toward(us, mids)
                    else:
                        ut = _toward(ut, midt)
                points.append(surf)
        self.surfpt = points
        return points


def _toward(value: float, target: float) -> float:
    if value > target:
        return max(value - NUDGE_STEP, target)
    return min(value + NUDGE_STEP, target)