# bsprad

`bsprad` is a library of the pieces needed to light a BSP map: an in-memory
world model, line-of-sight tracing through the BSP tree, direct light
sources and their contribution to a sample point, phong smoothing across
shared edges, the texture-aligned sample grid of a face, planar light
interpolation, zero-run byte compression and the option parser of a
lighting compiler.

It has no runtime dependencies.

## Modules

| Module | Purpose |
| --- | --- |
| `bsprad.world` | `BspWorld`, `Plane`, `Node`, `Leaf`, `Edge`, `Face`, `TexInfo`, `Patch`, the `Contents` and `SurfaceFlags` bit sets, and the vector helpers `dot`, `cross`, `normalize`, `color_normalize`. |
| `bsprad.trace` | `TraceTree`, the occlusion tester, and `point_in_nodenum`. |
| `bsprad.rle` | `compress_bytes` / `decompress_bytes`, a zero-run encoding for bit rows. |
| `bsprad.triangulation` | `Triangulation`, which interpolates light colours between points on a plane. |
| `bsprad.settings` | `RadSettings`, `parse_args` and `UsageError`. |
| `bsprad.edges` | `build_face_extents`, `texture_normal`, `pair_edges` and `EdgeSmoothing` for phong normals. |
| `bsprad.lightinfo` | `LightInfo`, the sample positions of one face, and `SurfaceTooLargeError`. |
| `bsprad.lights` | `create_direct_lights`, `find_target_entity`, `DirectLight`, `EmitType`, `SunState`, `SampleOnce` and `LightingContext`. |

## The world

A `BspWorld` holds lists of planes, nodes, leafs, vertexes, edges, surface
edges, faces and texture infos, plus `cluster_pvs`: one decompressed
visibility row per cluster (an empty list means no visibility data). A
negative node child `c` refers to leaf `-c - 1`.

- `point_in_leafnum(point)` / `point_in_leaf(point)` walk the tree.
- `face_plane(facenum)` gives the plane a face lies on, flipped for back
  faces; `face_points(facenum)` its vertices in winding order.
- `lowest_common_node(a, b)` finds the deepest node containing both nodes
  (nodes must be numbered depth first; otherwise `ValueError`).
- `make_parents()` returns the parent of every node and of every leaf.
- `pvs_for_origin(point)` returns the visibility row at a point, all bits
  set when the map has no visibility data, or `None` in a solid leaf.

## Tracing

```python
from bsprad.trace import TraceTree, point_in_nodenum

tracer = TraceTree(world)
blocked = tracer.test_line((0.0, 0.0, 0.0), (128.0, 0.0, 0.0))
```

`test_line(start, stop, node=0)` returns the contents of the first solid
leaf crossed, or 0 when the line is clear; window leafs do not block.
`test_line_color` returns that value together with a light filter, which is
always white.

## Options

`parse_args` takes the arguments that follow a program name; options come
first and exactly one map name must follow them.

```python
from bsprad.settings import parse_args

settings = parse_args(["-bounce", "8", "-extra", "-smooth", "60", "maps/base1"])
print("\n".join(settings.summary()))
print(settings.smoothing_threshold())
```

Recognised options: `-bounce`, `-extra`, `-dice`, `-subdiv` (or `-chop`),
`-scale`, `-ambient`, `-maxlight`, `-saturation`, `-direct`, `-entity`,
`-radmin`, `-smooth`, `-nudge`, `-sunradscale`, `-threads`, `-maxdata`,
`-basedir`, `-gamedir`, `-moddir`, and the switches `-dump`, `-noblock`,
`-nopvs`, `-noedgefix`, `-savetrace`, `-tmpin`, `-tmpout`, `-v`. Values are
clamped: `-subdiv` to 16–1024, `-ambient` and `-maxlight` to 0–255,
`-smooth` to 0–90 degrees, `-sunradscale` to at least 0. Clamping and
similar remarks are collected in `settings.notices`. A malformed command
line raises `UsageError`; `-help` raises it with `help_requested=True` and
the help text in `.text`.

## Direct lights

```python
from bsprad.lights import LightingContext, SampleOnce, create_direct_lights

lights, sun = create_direct_lights(world, entities, patches, settings)
context = LightingContext(world, tracer, lights, sun, settings)

styletable = {}
context.gather_sample(pos, normal, styletable, 0, 1.0, SampleOnce())
```

Entities are mappings of string keys to string values. Light entities
become point lights or spotlights; a `worldspawn` entity's `_sun`,
`_sun_light`, `_sun_ambient` and `_sun_color` keys set up the sun; patches
whose accumulated light reaches 3 in any channel (or sky patches when the
sun is active) become surface or sky lights, and their accumulated light is
cleared. Lights are grouped by visibility cluster.

`contribution` returns the colour one light adds at a point;
`gather_sample` adds every visible light into a style table mapping light
styles to flat RGB lists.

## Face samples and smoothing

```python
from bsprad.edges import pair_edges
from bsprad.lightinfo import LightInfo

info = LightInfo(world, facenum)
info.calc_face_extents()        # raises SurfaceTooLargeError if too big
info.calc_face_vectors()
points = info.calc_points(tracer)

smoothing = pair_edges(world, settings.smoothing_threshold())
normal = smoothing.phong_normal(facenum, points[0])
```

`calc_points` moves a sample that lies in solid or cannot see the face
centre up to six times towards the centre in 8-unit steps. `pair_edges`
raises `ValueError` when an edge is used twice in the same direction or a
smoothed edge joins a vertex to itself; the vertex normals of a smoothed
edge are set to its interface normal.

## Interpolation and compression

```python
from bsprad.triangulation import Triangulation

tri = Triangulation((0.0, 0.0, 1.0))
tri.add_point((0.0, 0.0, 0.0), (10.0, 10.0, 10.0))
tri.add_point((64.0, 0.0, 0.0), (20.0, 20.0, 20.0))
tri.add_point((0.0, 64.0, 0.0), (30.0, 30.0, 30.0))
tri.triangulate()
print(tri.sample((16.0, 16.0, 0.0)))
```

`sample` falls back to an exterior edge the point faces and then to the
nearest point; limits are reported with `TriangulationError`.

```python
from bsprad.rle import compress_bytes, decompress_bytes

data = bytes([1, 0, 0, 0, 0, 2, 3])
packed = compress_bytes(data)
assert decompress_bytes(packed, len(data)) == data
```

## What it does not do

`bsprad` is a set of building blocks, not a finished compiler. It does not
read or write BSP files, load textures, build or subdivide patches, compute
patch-to-patch transfers, bounce light between patches, or pack final
8:8:8 lightmap data, and it installs no command. `parse_args` only produces
a `RadSettings` value; driving a whole lighting run is left to the caller.

## Tests

The test suite uses pytest; install the `test` extra to get it.