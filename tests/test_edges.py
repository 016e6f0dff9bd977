import math

import pytest

from bsprad.edges import build_face_extents, pair_edges, texture_normal
from bsprad.world import BspWorld, Edge, Face, Plane, TexInfo, dot, normalize

FLAT = ((1.0, 0.0, 0.0, 0.0), (0.0, 1.0, 0.0, 0.0))
THRESHOLD = math.cos(math.radians(44.0))


def make_world(second_normal=None, vecs=FLAT, extra_face=False, degenerate_shared=False):
    planes = [Plane((0.0, 0.0, 1.0), 0.0, 2)]
    second_plane = 0
    if second_normal is not None:
        planes.append(Plane(normalize(second_normal)[0], 0.0))
        second_plane = 1
    vertexes = [
        (0.0, 0.0, 0.0),
        (64.0, 0.0, 0.0),
        (64.0, 64.0, 0.0),
        (0.0, 64.0, 0.0),
        (128.0, 0.0, 0.0),
        (128.0, 64.0, 0.0),
    ]
    shared = (1, 1) if degenerate_shared else (1, 2)
    edges = [
        Edge((0, 0)),
        Edge((0, 1)),
        Edge(shared),
        Edge((2, 3)),
        Edge((3, 0)),
        Edge((1, 4)),
        Edge((4, 5)),
        Edge((5, 2)),
    ]
    surfedges = [0, 1, 2, 3, 4, 5, 6, 7, -2]
    faces = [Face(0, 0, 1, 4), Face(second_plane, 0, 5, 4)]
    if extra_face:
        surfedges.append(2)
        faces.append(Face(0, 0, 9, 1))
    return BspWorld(
        planes=planes,
        vertexes=vertexes,
        edges=edges,
        surfedges=surfedges,
        faces=faces,
        texinfo=[TexInfo(vecs)],
    )


def test_texture_normal_faces_plane():
    world = make_world()
    assert texture_normal(world, 0) == pytest.approx((0.0, 0.0, 1.0))
    world.faces[0].side = 1
    assert texture_normal(world, 0) == pytest.approx((0.0, 0.0, -1.0))


def test_build_face_extents():
    extents = build_face_extents(make_world())
    first = extents[0]
    assert first.mins == (0.0, 0.0, 0.0)
    assert first.maxs == (64.0, 64.0, 0.0)
    assert first.center == (32.0, 32.0, 0.0)
    assert first.st_mins == (0.0, 0.0)
    assert first.st_maxs == (64.0, 64.0)
    assert extents[1].maxs == (128.0, 64.0, 0.0)


def test_coplanar_pair():
    smoothing = pair_edges(make_world(), THRESHOLD)
    share = smoothing.shares[2]
    assert share.faces == [0, 1]
    assert share.coplanar
    assert share.smooth
    assert share.cos_normals_angle == 1.0
    assert share.interface_normal == (0.0, 0.0, 1.0)
    assert share.vertex_normal == [share.interface_normal, share.interface_normal]
    assert smoothing.num_smoothing == 0
    assert smoothing.shares[1].faces == [0, None]
    assert not smoothing.shares[1].smooth


def test_angled_pair_is_smoothed():
    world = make_world(second_normal=(0.5, 0.0, 1.0))
    smoothing = pair_edges(world, THRESHOLD)
    share = smoothing.shares[2]
    assert smoothing.num_smoothing == 1
    assert share.smooth and not share.coplanar
    n0 = world.face_plane(0).normal
    n1 = world.face_plane(1).normal
    _, length = normalize(share.interface_normal)
    assert length == pytest.approx(1.0)
    assert dot(share.interface_normal, n0) == pytest.approx(dot(share.interface_normal, n1))
    assert share.cos_normals_angle == pytest.approx(dot(n0, n1))


def test_smoothing_disabled():
    smoothing = pair_edges(make_world(second_normal=(0.5, 0.0, 1.0)), 0.0)
    assert smoothing.num_smoothing == 0
    assert not smoothing.shares[2].smooth


def test_steep_angle_not_smoothed():
    smoothing = pair_edges(make_world(second_normal=(1.0, 0.0, 0.1)), THRESHOLD)
    share = smoothing.shares[2]
    assert not share.smooth
    assert share.interface_normal == (0.0, 0.0, 0.0)


def test_perpendicular_texture_axis_blocks_smoothing():
    vecs = ((1.0, 0.0, 0.0, 0.0), (0.0, 0.0, 1.0, 0.0))
    smoothing = pair_edges(make_world(vecs=vecs), THRESHOLD)
    assert not smoothing.intertexnormal_ok(0, 1)
    share = smoothing.shares[2]
    assert not share.smooth
    assert not share.coplanar


def test_edge_used_twice_on_one_side():
    with pytest.raises(ValueError):
        pair_edges(make_world(extra_face=True), THRESHOLD)


def test_degenerate_smoothed_edge():
    with pytest.raises(ValueError, match="invalid edge"):
        pair_edges(make_world(degenerate_shared=True), THRESHOLD)


def test_phong_on_flat_faces_is_face_normal():
    smoothing = pair_edges(make_world(), THRESHOLD)
    assert smoothing.phong_normal(0, (64.0, 32.0, 0.0)) == pytest.approx((0.0, 0.0, 1.0))


def test_phong_at_center_is_face_normal():
    smoothing = pair_edges(make_world(second_normal=(0.5, 0.0, 1.0)), THRESHOLD)
    assert smoothing.phong_normal(0, (32.0, 32.0, 0.0)) == pytest.approx((0.0, 0.0, 1.0))


def test_phong_at_shared_edge_matches_edge_normal():
    smoothing = pair_edges(make_world(second_normal=(0.5, 0.0, 1.0)), THRESHOLD)
    normal = smoothing.phong_normal(0, (64.0, 32.0, 0.0))
    assert normal == pytest.approx(smoothing.shares[2].interface_normal)
    assert normal[0] > 0


def test_phong_is_unit_length():
    smoothing = pair_edges(make_world(second_normal=(0.5, 0.0, 1.0)), THRESHOLD)
    normal = smoothing.phong_normal(0, (50.0, 20.0, 0.0))
    assert dot(normal, normal) == pytest.approx(1.0)