import pytest

from geometry import (lerp, segment_intersection, polygons_intersect,
                      polygon_edges, rect_polygon)


def test_lerp():
    assert lerp(0, 10, 0.25) == 2.5
    assert lerp(-1, 1, 0.5) == 0


def test_crossing_segments_report_offset_along_first():
    hit = segment_intersection((0, 0), (10, 0), (5, -5), (5, 5))
    assert hit is not None
    assert hit["offset"] == pytest.approx(0.5)
    assert hit["x"] == pytest.approx(5)
    assert hit["y"] == pytest.approx(0)


def test_offset_is_fraction_of_first_segment():
    hit = segment_intersection((0, 0), (0, -100), (-10, -25), (10, -25))
    assert hit["offset"] == pytest.approx(0.25)


def test_segments_that_would_cross_if_extended_do_not_hit():
    assert segment_intersection((0, 0), (10, 0), (15, -5), (15, 5)) is None


def test_parallel_and_collinear_segments_do_not_hit():
    assert segment_intersection((0, 0), (10, 0), (0, 5), (10, 5)) is None
    assert segment_intersection((0, 0), (10, 0), (5, 0), (15, 0)) is None


@pytest.mark.parametrize("a0, a1, b0, b1", [
    ((0, 0), (10, 0), (5, -5), (5, 5)),
    ((0, 0), (10, 10), (0, 10), (10, 0)),
    ((0, 0), (10, 0), (15, -5), (15, 5)),
    ((0, 0), (1, 1), (2, 2), (3, 5)),
    ((0, 0), (4, 0), (4, 0), (4, 4)),      # touching endpoints
    ((-3, 2), (7, -1), (1, -6), (2, 9)),
])
def test_crossing_detection_is_symmetric(a0, a1, b0, b1):
    forward = segment_intersection(a0, a1, b0, b1)
    backward = segment_intersection(b0, b1, a0, a1)
    assert (forward is None) == (backward is None)
    if forward is not None:
        assert forward["x"] == pytest.approx(backward["x"])
        assert forward["y"] == pytest.approx(backward["y"])


def test_rect_polygon_axis_aligned_corner_order():
    poly = rect_polygon(0, 0, 30, 50, 0.0)
    assert poly == [
        pytest.approx((-15, -25)),
        pytest.approx((15, -25)),
        pytest.approx((15, 25)),
        pytest.approx((-15, 25)),
    ]


def test_rect_polygon_rotation_keeps_four_corners_around_centre():
    poly = rect_polygon(10, 20, 30, 50, 0.7)
    assert len(poly) == 4
    cx = sum(p[0] for p in poly) / 4
    cy = sum(p[1] for p in poly) / 4
    assert cx == pytest.approx(10)
    assert cy == pytest.approx(20)


def test_polygon_edges_closes_the_loop_and_handles_segments():
    square = [(0, 0), (1, 0), (1, 1), (0, 1)]
    edges = list(polygon_edges(square))
    assert len(edges) == 4
    assert edges[-1] == ((0, 1), (0, 0))
    assert list(polygon_edges([(0, 0), (0, 5)])) == [((0, 0), (0, 5))]


def test_overlapping_polygons_intersect_both_ways():
    a = rect_polygon(0, 0, 10, 10, 0)
    b = rect_polygon(6, 6, 10, 10, 0.3)
    assert polygons_intersect(a, b)
    assert polygons_intersect(b, a)


def test_disjoint_polygons_do_not_intersect_either_way():
    a = rect_polygon(0, 0, 10, 10, 0)
    b = rect_polygon(50, 0, 10, 10, 0)
    assert not polygons_intersect(a, b)
    assert not polygons_intersect(b, a)


def test_polygon_against_border_segment():
    car = rect_polygon(10, 0, 30, 50, 0)
    assert polygons_intersect(car, [(0, -100), (0, 100)])
    assert not polygons_intersect(car, [(-10, -100), (-10, 100)])


def test_fully_contained_polygon_has_no_edge_crossing():
    outer = rect_polygon(0, 0, 100, 100, 0)
    inner = rect_polygon(0, 0, 10, 10, 0)
    assert not polygons_intersect(outer, inner)
