import pytest

from bsprad.lightinfo import LightInfo, SurfaceTooLargeError
from bsprad.trace import TraceTree
from bsprad.world import (
    PLANE_Z,
    BspWorld,
    Contents,
    Edge,
    Face,
    Leaf,
    Node,
    Plane,
    TexInfo,
)


def square_world(side=0, back_contents=0):
    return BspWorld(
        planes=[Plane((0.0, 0.0, 1.0), 0.0, PLANE_Z)],
        nodes=[Node(0, (-1, -2))],
        leafs=[Leaf(0, 0), Leaf(back_contents, 0)],
        vertexes=[(0.0, 0.0, 0.0), (64.0, 0.0, 0.0), (64.0, 64.0, 0.0), (0.0, 64.0, 0.0)],
        edges=[Edge((0, 0)), Edge((0, 1)), Edge((1, 2)), Edge((2, 3)), Edge((3, 0))],
        surfedges=[1, 2, 3, 4],
        faces=[Face(planenum=0, side=side, firstedge=0, numedges=4)],
        texinfo=[TexInfo(((1.0, 0.0, 0.0, 0.0), (0.0, 1.0, 0.0, 0.0)))],
    )


def prepared(world, modelorg=(0.0, 0.0, 0.0)):
    info = LightInfo(world, 0, modelorg)
    info.calc_face_vectors()
    info.calc_face_extents(16)
    return info


def test_extents_of_square():
    info = prepared(square_world())
    assert info.exactmins == (0.0, 0.0)
    assert info.exactmaxs == (64.0, 64.0)
    assert info.texmins == (0, 0)
    assert info.texsize == (4, 4)


def test_face_vectors_place_origin_off_plane():
    info = prepared(square_world())
    assert info.textoworld == ((1.0, 0.0, 0.0), (0.0, 1.0, 0.0))
    assert info.texorg[:2] == (0.0, 0.0)
    assert info.texorg[2] == pytest.approx(1.0)


def test_modelorg_shifts_origin():
    plain = prepared(square_world())
    moved = prepared(square_world(), (0.0, 0.0, 10.0))
    assert moved.texorg[2] == pytest.approx(plain.texorg[2] + 10.0)


def test_points_on_open_face_follow_grid():
    world = square_world()
    info = prepared(world)
    points = info.calc_points(TraceTree(world), 16)
    assert info.numsurfpt == 25
    assert len(points) == info.numsurfpt
    assert points[0][:2] == (0.0, 0.0)
    assert points[-1][:2] == (64.0, 64.0)
    assert all(p[2] == pytest.approx(info.texorg[2]) for p in points)


def test_offset_shifts_samples():
    world = square_world()
    info = prepared(world)
    base = info.calc_points(TraceTree(world), 16)
    shifted = info.calc_points(TraceTree(world), 16, 0.25, 0.25)
    assert shifted[0][0] == pytest.approx(base[0][0] + 4.0)
    assert shifted[0][1] == pytest.approx(base[0][1] + 4.0)


def test_hidden_samples_are_pulled_towards_centre():
    world = square_world(side=1, back_contents=int(Contents.SOLID))
    info = prepared(world)
    points = info.calc_points(TraceTree(world), 16)
    corner = points[0]
    assert corner[0] > 0.0 and corner[1] > 0.0
    assert all(0.0 <= p[0] <= 64.0 and 0.0 <= p[1] <= 64.0 for p in points)
    assert all(p[2] == pytest.approx(info.texorg[2]) for p in points)


def test_surface_too_large():
    info = LightInfo(square_world(), 0)
    with pytest.raises(SurfaceTooLargeError):
        info.calc_face_extents(16, max_samples=32)


def test_facenormal_follows_side():
    assert LightInfo(square_world(side=1), 0).facenormal == (-0.0, -0.0, -1.0)
    assert LightInfo(square_world(side=0), 0).facenormal == (0.0, 0.0, 1.0)