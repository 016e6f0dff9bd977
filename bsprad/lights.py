"""Direct light sources and their contribution to lightmap samples."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, MutableMapping, Optional, Sequence

from .settings import QBSP_LMSTEP, RadSettings
from .trace import TraceTree, point_in_nodenum
from .world import (
    EQUAL_EPSILON,
    BspWorld,
    Patch,
    Plane,
    Vec3,
    color_normalize,
    dot,
    normalize,
)

log = logging.getLogger(__name__)

MAX_LSTYLES = 256
DIRECT_LIGHT = 3
ANGLE_UP = -1.0
ANGLE_DOWN = -2.0
DEFAULT_INTENSITY = 300.0
DEFAULT_CONE = 20.0
SPOT_PI = 3.14159

ZERO: Vec3 = (0.0, 0.0, 0.0)

_FLOAT_RE = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_INT_RE = re.compile(r"\s*([+-]?\d+)")


class EmitType(Enum):
    """How a direct light spreads its energy."""

    SURFACE = "surface"
    POINT = "point"
    SPOTLIGHT = "spotlight"
    SKY = "sky"


@dataclass
class DirectLight:
    """A light entity or an emitting patch."""

    type: EmitType
    origin: Vec3
    intensity: float = 0.0
    color: Vec3 = ZERO
    normal: Vec3 = ZERO
    style: int = 0
    wait: float = 0.0
    adjangle: float = 0.0
    falloff: int = 0
    stopdot: float = 0.0
    plane: Optional[Plane] = None
    cluster: int = -1
    nodenum: int = 0


@dataclass
class SunState:
    """Sun settings read from the worldspawn entity."""

    active: bool = False
    alt_color: bool = False
    pos: Vec3 = (0.0, 0.0, 1.0)
    main: float = 250.0
    ambient: float = 0.0
    color: Vec3 = (1.0, 1.0, 1.0)


@dataclass
class SampleOnce:
    """Per-sample flags so sky light is only counted once across multisamples."""

    sun_main: bool = False
    sun_ambient: bool = False


def _atof(text: str) -> float:
    match = _FLOAT_RE.match(text)
    return float(match.group(1)) if match else 0.0


def _atoi(text: str) -> int:
    match = _INT_RE.match(text)
    return int(match.group(1)) if match else 0


def _floats(text: str, count: int = 3) -> Vec3:
    values = [0.0] * count
    pos = 0
    for i in range(count):
        match = _FLOAT_RE.match(text, pos)
        if not match:
            break
        values[i] = float(match.group(1))
        pos = match.end()
    return (values[0], values[1], values[2])


def _sub(a: Sequence[float], b: Sequence[float]) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _scale(v: Sequence[float], s: float) -> Vec3:
    return (v[0] * s, v[1] * s, v[2] * s)


def find_target_entity(
    entities: Sequence[Mapping[str, str]], target: str
) -> Optional[Mapping[str, str]]:
    """The first entity whose targetname is ``target``, or None."""
    for entity in entities:
        if entity.get("targetname", "") == target:
            return entity
    return None


def create_direct_lights(
    world: BspWorld,
    entities: Sequence[Mapping[str, str]],
    patches: Sequence[Patch],
    settings: RadSettings,
) -> tuple[dict[int, list[DirectLight]], SunState]:
    """Build lights from light entities and bright patches, grouped by cluster.

    Within a cluster the most recently created light comes first. Emitting
    patches have their accumulated light cleared, as it is now sent out.
    """
    sun = SunState()
    lights: dict[int, list[DirectLight]] = {}
    sun_target: Optional[str] = None
    count = 0

    def link(light: DirectLight) -> None:
        lights.setdefault(light.cluster, []).insert(0, light)

    for entity in entities:
        name = entity.get("classname", "")
        if not name.startswith("light"):
            if name.startswith("worldspawn"):
                sun_target = entity.get("_sun", "")
                if sun_target:
                    log.info("Sun activated. Sky radiosity (sunradscale): %f", settings.sunradscale)
                    sun.active = True
                if entity.get("_sun_ambient", ""):
                    sun.ambient = _atof(entity["_sun_ambient"])
                if entity.get("_sun_light", ""):
                    sun.main = _atof(entity["_sun_light"])
                if entity.get("_sun_color", ""):
                    sun.color, _ = color_normalize(_floats(entity["_sun_color"]))
                    sun.alt_color = True
            continue

        target = entity.get("target", "")
        if target and sun_target and target == sun_target:
            sun_s = _floats(entity.get("origin", ""))
            aim = find_target_entity(entities, target)
            if aim is None:
                log.warning("WARNING: sun missing target, 0,0,0 used")
                sun_t = ZERO
            else:
                sun_t = _floats(aim.get("origin", ""))
            sun.pos, _ = normalize(_sub(sun_s, sun_t))
            continue

        count += 1
        origin = _floats(entity.get("origin", ""))
        style = int(_atof(entity.get("_style", "")))
        if not style:
            style = int(_atof(entity.get("style", "")))
        if style < 0 or style >= MAX_LSTYLES:
            style = 0

        wait_text = entity.get("_wait", "") or entity.get("wait", "")
        wait = _atof(wait_text) if wait_text else 1.0
        if wait <= EQUAL_EPSILON:
            wait = 1.0

        angwait = entity.get("_angwait", "")
        adjangle = _atof(angwait) if angwait else 1.0
        falloff = max(_atoi(entity.get("_falloff", "")), 0)

        intensity = _atof(entity.get("light", ""))
        if not intensity:
            intensity = _atof(entity.get("_light", ""))
        if not intensity:
            intensity = DEFAULT_INTENSITY

        color_text = entity.get("_color", "")
        if color_text:
            color, _ = color_normalize(_floats(color_text))
        else:
            color = (1.0, 1.0, 1.0)

        light = DirectLight(
            type=EmitType.POINT,
            origin=origin,
            intensity=intensity * settings.entity_scale,
            color=color,
            style=style,
            wait=wait,
            adjangle=adjangle,
            falloff=falloff,
            cluster=world.point_in_leaf(origin).cluster,
            nodenum=point_in_nodenum(world, origin),
        )

        if name == "light_spot" or target:
            light.type = EmitType.SPOTLIGHT
            cone = _atof(entity.get("_cone", "")) or DEFAULT_CONE
            light.stopdot = math.cos(cone / 90 * SPOT_PI)
            if target:
                aim = find_target_entity(entities, target)
                if aim is None:
                    log.warning(
                        "WARNING: light at (%i %i %i) has missing target",
                        int(origin[0]), int(origin[1]), int(origin[2]),
                    )
                else:
                    dest = _floats(aim.get("origin", ""))
                    light.normal, _ = normalize(_sub(dest, origin))
            else:
                angle = _atof(entity.get("angle", ""))
                if angle == ANGLE_UP:
                    light.normal = (0.0, 0.0, 1.0)
                elif angle == ANGLE_DOWN:
                    light.normal = (0.0, 0.0, -1.0)
                else:
                    light.normal = (
                        math.cos(angle / 180 * SPOT_PI),
                        math.sin(angle / 180 * SPOT_PI),
                        0.0,
                    )
        link(light)

    for patch in patches:
        is_sky = sun.active and patch.sky
        if not is_sky and all(channel < DIRECT_LIGHT for channel in patch.totallight):
            continue
        count += 1
        color, largest = color_normalize(patch.totallight)
        light = DirectLight(
            type=EmitType.SKY if is_sky else EmitType.SURFACE,
            origin=patch.origin,
            intensity=largest * patch.area * settings.direct_scale,
            color=color,
            normal=patch.plane.normal,
            plane=patch.plane if is_sky else None,
            cluster=world.point_in_leaf(patch.origin).cluster,
            nodenum=point_in_nodenum(world, patch.origin),
        )
        link(light)
        patch.totallight = [0.0, 0.0, 0.0]

    log.info("%i direct lights", count)
    return lights, sun


def _ray_plane_intersect(
    plane: Plane, start: Sequence[float], direction: Sequence[float]
) -> Optional[Vec3]:
    denom = dot(plane.normal, direction)
    if denom == 0:
        return None
    t = (plane.dist - dot(plane.normal, start)) / denom
    if t < 0:
        return None
    return (
        start[0] + direction[0] * t,
        start[1] + direction[1] * t,
        start[2] + direction[2] * t,
    )


def _is_zero(v: Sequence[float]) -> bool:
    return all(abs(c) <= EQUAL_EPSILON for c in v)


class LightingContext:
    """Everything needed to light a sample point from the direct lights."""

    def __init__(
        self,
        world: BspWorld,
        tracer: TraceTree,
        lights: Mapping[int, Sequence[DirectLight]],
        sun: SunState,
        settings: RadSettings,
    ):
        self.world = world
        self.tracer = tracer
        self.lights = lights
        self.sun = sun
        self.settings = settings

    def _sky_once(self, light, pos, normal, delta, once) -> float:
        """Sun ambient and main light for the first sample that sees the sky."""
        sun = self.sun
        scale = 0.0
        set_main = False
        if once.sun_main or -dot(delta, light.normal) <= EQUAL_EPSILON:
            return scale
        if not once.sun_ambient:
            scale = sun.ambient
        facing = dot(sun.pos, normal)
        if facing > EQUAL_EPSILON:
            set_main = True
            if not self.settings.noblock:
                target = None
                if light.plane is not None:
                    target = _ray_plane_intersect(light.plane, pos, sun.pos)
                if target is None or self.tracer.test_line(pos, target, 0):
                    set_main = once.sun_main
                else:
                    scale += sun.main * facing
        once.sun_ambient = True
        once.sun_main = set_main
        return scale

    def contribution(
        self,
        light: DirectLight,
        pos: Sequence[float],
        nodenum: int,
        normal: Sequence[float],
        lightscale2: float,
        once: SampleOnce,
    ) -> Vec3:
        """Colour that ``light`` adds at ``pos`` on a surface facing ``normal``."""
        settings = self.settings
        delta, dist = normalize(_sub(light.origin, pos))
        facing = dot(delta, normal)
        if light.type is not EmitType.SKY and facing <= EQUAL_EPSILON:
            return ZERO

        occluded: Vec3 = (1.0, 1.0, 1.0)
        if not settings.noblock:
            head = self.world.lowest_common_node(nodenum, light.nodenum)
            hit, occluded = self.tracer.test_line_color(pos, light.origin, head)
            if hit:
                return ZERO

        colorsky = ZERO
        if light.type is EmitType.SKY:
            sky_scale = self._sky_once(light, pos, normal, delta, once)
            if sky_scale or colorsky != ZERO:
                base = self.sun.color if self.sun.alt_color else light.color
                colorsky = _scale(base, sky_scale)

        intensity = light.intensity
        if light.type is EmitType.POINT:
            if light.falloff == 0:
                scale = (intensity - light.wait * dist) * facing
            elif light.falloff == 1:
                scale = intensity / dist * facing
            else:
                scale = intensity / (dist * dist) * facing
        elif light.type is EmitType.SKY:
            dot2 = -dot(delta, light.normal)
            if not settings.noedgefix:
                if dist > 36:
                    scale = intensity / ((dist - 30) * (dist - 30)) * facing * dot2
                elif dist > 16:
                    scale = intensity / (dist - 15) * facing * dot2
                else:
                    scale = intensity * facing * dot2
            elif dist == 0:
                scale = 0.0
            else:
                scale = intensity / (dist * dist) * facing * dot2
            scale *= settings.sunradscale
        elif light.type is EmitType.SURFACE:
            dot2 = -dot(delta, light.normal)
            if dot2 <= EQUAL_EPSILON:
                return ZERO
            if not settings.noedgefix:
                far, near = (36, 16) if settings.step == QBSP_LMSTEP else (18, 8)
                if dist > far:
                    scale = intensity / ((dist - 15) * (dist - 15)) * facing * dot2
                elif dist > near:
                    scale = intensity / (dist - 7) * facing * dot2
                else:
                    scale = intensity * facing * dot2
            else:
                scale = intensity / (dist * dist) * facing * dot2
        else:
            dot2 = -dot(delta, light.normal)
            if dot2 <= light.stopdot:
                return ZERO
            scale = (intensity - light.wait * dist) * facing * dot2 ** 25 * 15

        color = ZERO
        if scale > 0.0:
            color = _scale(light.color, scale * lightscale2 * 0.25)
        return tuple((color[i] + colorsky[i]) * occluded[i] for i in range(3))

    def gather_sample(
        self,
        pos: Sequence[float],
        normal: Sequence[float],
        styletable: MutableMapping[int, list[float]],
        offset: int,
        lightscale2: float,
        once: SampleOnce,
    ) -> None:
        """Add the light of every visible light to ``styletable`` at ``offset``.

        ``styletable`` maps light styles to flat RGB arrays; a style seen
        for the first time gets an array as long as the existing ones.
        """
        pvs = self.world.pvs_for_origin(pos)
        if pvs is None:
            return
        nodenum = point_in_nodenum(self.world, pos)

        for cluster in range(self.world.numclusters):
            byte = cluster >> 3
            if byte >= len(pvs) or not pvs[byte] & (1 << (cluster & 7)):
                continue
            for light in self.lights.get(cluster, ()):
                color = self.contribution(light, pos, nodenum, normal, lightscale2, once)
                if _is_zero(color):
                    continue
                table = styletable.get(light.style)
                if table is None:
                    size = max((len(t) for t in styletable.values()), default=offset + 3)
                    table = [0.0] * max(size, offset + 3)
                    styletable[light.style] = table
                for i in range(3):
                    table[offset + i] += color[i]