import math

import pytest

from bsprad.world import (
    PLANE_X,
    PLANE_Y,
    BspWorld,
    Contents,
    Edge,
    Face,
    Leaf,
    Node,
    Plane,
    color_normalize,
    cross,
    dot,
    normalize,
)


def three_node_world(cluster_pvs=None):
    planes = [
        Plane((1.0, 0.0, 0.0), 0.0, PLANE_X),
        Plane((0.0, 1.0, 0.0), 0.0, PLANE_Y),
        Plane((0.0, 1.0, 0.0), 4.0, PLANE_Y),
    ]
    nodes = [
        Node(0, (1, 2)),
        Node(1, (-1, -2)),
        Node(2, (-3, -4)),
    ]
    leafs = [
        Leaf(0, 0),
        Leaf(0, 1),
        Leaf(int(Contents.SOLID), -1),
        Leaf(0, 1),
    ]
    return BspWorld(planes=planes, nodes=nodes, leafs=leafs, cluster_pvs=cluster_pvs or [])


def triangle_world():
    vertexes = [(0.0, 0.0, 0.0), (10.0, 0.0, 0.0), (0.0, 10.0, 0.0)]
    edges = [Edge((0, 0)), Edge((0, 1)), Edge((1, 2)), Edge((2, 0))]
    surfedges = [1, 2, 3, -3, -2, -1]
    planes = [Plane((0.0, 0.0, 1.0), 0.0, 2)]
    faces = [Face(0, 0, 0, 3), Face(0, 1, 3, 3)]
    return BspWorld(planes=planes, vertexes=vertexes, edges=edges, surfedges=surfedges, faces=faces)


def test_dot_and_cross_are_orthogonal():
    a = (1.0, 2.0, 3.0)
    b = (-2.0, 0.5, 4.0)
    c = cross(a, b)
    assert dot(c, a) == pytest.approx(0.0)
    assert dot(c, b) == pytest.approx(0.0)
    assert cross((1.0, 0.0, 0.0), (0.0, 1.0, 0.0)) == (0.0, 0.0, 1.0)


def test_normalize_returns_unit_vector_and_length():
    v = (3.0, -7.0, 2.0)
    unit, length = normalize(v)
    assert math.sqrt(dot(unit, unit)) == pytest.approx(1.0)
    assert length == pytest.approx(math.sqrt(dot(v, v)))
    assert unit[1] * length == pytest.approx(v[1])


def test_normalize_zero_vector():
    unit, length = normalize((0.0, 0.0, 0.0))
    assert length == 0.0
    assert unit == (0.0, 0.0, 0.0)


def test_color_normalize_scales_to_largest_channel():
    color = (20.0, 40.0, 10.0)
    scaled, largest = color_normalize(color)
    assert largest == 40.0
    assert max(scaled) == pytest.approx(1.0)
    assert scaled[0] * largest == pytest.approx(color[0])


def test_color_normalize_black():
    scaled, largest = color_normalize((0.0, 0.0, 0.0))
    assert largest == 0.0
    assert scaled == (0.0, 0.0, 0.0)


def test_plane_flipped_round_trip():
    plane = Plane((0.0, 1.0, 0.0), 5.0, PLANE_Y)
    back = plane.flipped()
    assert back.normal == (-0.0, -1.0, -0.0)
    assert back.dist == -5.0
    assert back.flipped() == plane


def test_backplane_and_face_plane():
    world = triangle_world()
    assert world.backplane(0) == world.planes[0].flipped()
    assert world.face_plane(0) == world.planes[0]
    assert world.face_plane(1) == world.planes[0].flipped()


def test_face_points_follow_surfedges():
    world = triangle_world()
    v = world.vertexes
    assert world.face_points(0) == [v[0], v[1], v[2]]
    assert world.face_points(1) == [v[0], v[2], v[1]]


def test_point_in_leaf():
    world = three_node_world()
    assert world.point_in_leafnum((5.0, 5.0, 0.0)) == 0
    assert world.point_in_leafnum((5.0, -5.0, 0.0)) == 1
    assert world.point_in_leafnum((-5.0, 8.0, 0.0)) == 2
    assert world.point_in_leafnum((-5.0, 0.0, 0.0)) == 3
    assert world.point_in_leaf((-5.0, 8.0, 0.0)) is world.leafs[2]


def test_lowest_common_node():
    world = three_node_world()
    assert world.lowest_common_node(1, 2) == 0
    assert world.lowest_common_node(2, 1) == 0
    assert world.lowest_common_node(1, 1) == 1
    assert world.lowest_common_node(0, 2) == 0


def test_lowest_common_node_rejects_bad_order():
    world = BspWorld(
        planes=[Plane((1.0, 0.0, 0.0), 0.0, PLANE_X)],
        nodes=[Node(0, (0, -1))],
        leafs=[Leaf()],
    )
    with pytest.raises(ValueError):
        world.lowest_common_node(1, 2)


def test_make_parents():
    world = three_node_world()
    nodeparents, leafparents = world.make_parents()
    assert nodeparents == [-1, 0, 0]
    assert leafparents == [1, 1, 2, 2]


def test_pvs_without_vis_data_is_all_visible():
    world = three_node_world()
    pvs = world.pvs_for_origin((5.0, 5.0, 0.0))
    assert pvs == b"\xff" * ((len(world.leafs) + 7) // 8)


def test_pvs_with_vis_data():
    rows = [b"\x03", b"\x02"]
    world = three_node_world(rows)
    assert world.numclusters == 2
    assert world.pvs_for_origin((5.0, 5.0, 0.0)) == rows[0]
    assert world.pvs_for_origin((5.0, -5.0, 0.0)) == rows[1]
    assert world.pvs_for_origin((-5.0, 8.0, 0.0)) is None