"""
Test Geometry Engine
====================

Projection, convex hull, corridor buffer and polygon offset, checked
against their geometric properties (distances, containment, areas).

Usage:
    pytest test_geometry.py
    python test_geometry.py
"""

import math

import cv2
import numpy as np
import pytest

from sora_zone.geometry import (
    DegenerateGeometryError,
    GeoPoint,
    InvalidInputError,
    JoinStyle,
    LocalFrame,
    UnsupportedShapeError,
    buffer_polygon,
    buffer_polyline,
    convex_hull,
    corridor_polygon,
    is_closed_route,
    offset_convex_polygon,
    project,
    signed_area,
    unproject,
)
from sora_zone.route import haversine_m

OSLO = GeoPoint(lat=59.90, lng=10.70)


# ---------------------------------------------------------------- helpers

def square(side_m: float = 100.0, origin: GeoPoint = OSLO):
    """Counter-clockwise (x east / y north) square, `side_m` meters per side."""
    dlat = side_m / 111320.0
    # Offsets scale longitude by the average latitude of the ring
    dlng = side_m / (111320.0 * math.cos(math.radians(origin.lat + dlat / 2)))
    return [
        origin,
        GeoPoint(origin.lat, origin.lng + dlng),
        GeoPoint(origin.lat + dlat, origin.lng + dlng),
        GeoPoint(origin.lat + dlat, origin.lng),
    ]


def area_m2(ring) -> float:
    return abs(signed_area(LocalFrame.fit(ring, reference=ring[0]).project(ring)))


def point_segment_distance(p, a, b) -> float:
    ab = b - a
    denom = float(np.dot(ab, ab))
    t = 0.0 if denom == 0 else min(max(float(np.dot(p - a, ab)) / denom, 0.0), 1.0)
    return float(np.hypot(*(p - (a + t * ab))))


def distance_to_polyline(p, xy) -> float:
    if len(xy) == 1:
        return float(np.hypot(*(p - xy[0])))
    return min(point_segment_distance(p, xy[i], xy[i + 1]) for i in range(len(xy) - 1))


def segments_cross(p1, p2, p3, p4) -> bool:
    def orient(a, b, c):
        return (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])
    d1, d2 = orient(p3, p4, p1), orient(p3, p4, p2)
    d3, d4 = orient(p1, p2, p3), orient(p1, p2, p4)
    return d1 * d2 < 0 and d3 * d4 < 0


def is_simple_ring(xy) -> bool:
    n = len(xy)
    for i in range(n):
        for j in range(i + 2, n):
            if i == 0 and j == n - 1:
                continue
            if segments_cross(xy[i], xy[(i + 1) % n], xy[j], xy[(j + 1) % n]):
                return False
    return True


def contains(ring_xy, point_xy) -> bool:
    contour = np.asarray(ring_xy, dtype=np.float32).reshape(-1, 1, 2)
    return cv2.pointPolygonTest(contour, (float(point_xy[0]), float(point_xy[1])), False) >= 0


# ------------------------------------------------------------- projection

def test_projection_round_trip():
    """unproject(project([p], ref), ref) returns p."""
    print("\n" + "=" * 60)
    print("TEST: Projection Round Trip")
    print("=" * 60)

    reference = OSLO
    for p in [
        GeoPoint(59.91, 10.72),
        GeoPoint(59.88, 10.65),
        GeoPoint(59.90, 10.70),
        GeoPoint(60.05, 10.95),
    ]:
        planar = project([p], reference)[0]
        back = unproject(planar, reference)
        assert abs(back.lat - p.lat) < 1e-6
        assert abs(back.lng - p.lng) < 1e-6
    print("✓ Module-level project/unproject round trip within 1e-6 degrees")

    route = [GeoPoint(59.90, 10.70), GeoPoint(59.91, 10.72), GeoPoint(59.93, 10.69)]
    frame = LocalFrame.fit(route)
    for original, restored in zip(route, frame.unproject(frame.project(route))):
        assert abs(original.lat - restored.lat) < 1e-9
        assert abs(original.lng - restored.lng) < 1e-9
    print("✓ LocalFrame round trip")


def test_projection_scales():
    """Meters per degree along both axes."""
    print("\n" + "=" * 60)
    print("TEST: Projection Scales")
    print("=" * 60)

    frame = LocalFrame(reference=OSLO, scale_latitude=60.0)
    assert frame.lat_scale == 111320.0
    assert frame.lng_scale == pytest.approx(111320.0 * 0.5, rel=1e-9)

    xy = frame.project([GeoPoint(60.90, 11.70)])
    assert xy[0][0] == pytest.approx(55660.0, rel=1e-9)
    assert xy[0][1] == pytest.approx(111320.0, rel=1e-9)
    print(f"✓ 1 degree north = {xy[0][1]:.0f} m, 1 degree east at 60N = {xy[0][0]:.0f} m")


def test_projection_rejects_bad_input():
    print("\n" + "=" * 60)
    print("TEST: Projection Input Validation")
    print("=" * 60)

    with pytest.raises(InvalidInputError):
        LocalFrame.fit([])
    with pytest.raises(InvalidInputError):
        LocalFrame.fit([GeoPoint(float("nan"), 10.0)])
    with pytest.raises(InvalidInputError):
        LocalFrame(reference=GeoPoint(90.0, 0.0), scale_latitude=90.0)
    print("✓ Empty, non-finite and polar frames rejected")


# ------------------------------------------------------------ convex hull

def test_convex_hull_contains_all_points():
    """Hull is a CCW subset (lat, lng convention) enclosing every input point."""
    print("\n" + "=" * 60)
    print("TEST: Convex Hull Correctness")
    print("=" * 60)

    rng = np.random.default_rng(7)
    points = [
        GeoPoint(59.90 + float(dlat), 10.70 + float(dlng))
        for dlat, dlng in rng.uniform(-0.01, 0.01, size=(60, 2))
    ]
    hull = convex_hull(points)
    print(f"✓ {len(points)} points -> {len(hull)} hull vertices")

    assert 3 <= len(hull) <= len(points)
    assert all(h in points for h in hull)

    n = len(hull)
    for p in points:
        for i in range(n):
            a, b = hull[i], hull[(i + 1) % n]
            cross = (b.lat - a.lat) * (p.lng - a.lng) - (b.lng - a.lng) * (p.lat - a.lat)
            assert cross >= -1e-12
    print("✓ Every point inside or on the hull")

    hull_area = 0.5 * sum(
        hull[i].lat * hull[(i + 1) % n].lng - hull[(i + 1) % n].lat * hull[i].lng
        for i in range(n)
    )
    assert hull_area > 0
    print("✓ Counter-clockwise in (lat, lng) axis order")


def test_convex_hull_edge_cases():
    print("\n" + "=" * 60)
    print("TEST: Convex Hull Edge Cases")
    print("=" * 60)

    two = [GeoPoint(59.9, 10.7), GeoPoint(59.91, 10.71)]
    assert convex_hull(two) == two
    assert convex_hull([]) == []
    print("✓ Fewer than 3 points returned unchanged")

    sq = square()
    closed = sq + [sq[0]]
    hull = convex_hull(closed + [GeoPoint(59.9003, 10.7004)])
    assert len(hull) == 4
    assert set(hull) == set(sq)
    print("✓ Closing duplicate and interior point dropped")

    collinear = [GeoPoint(59.90, 10.70), GeoPoint(59.90, 10.71), GeoPoint(59.90, 10.72)]
    assert len(convex_hull(collinear)) < 3
    print("✓ Collinear input collapses below 3 vertices")

    assert is_closed_route(closed)
    assert not is_closed_route(sq)
    assert not is_closed_route([sq[0], sq[0]])


# -------------------------------------------------------- corridor buffer

def test_corridor_scenario_two_point_route():
    """Two-point route buffered by 50 m."""
    print("\n" + "=" * 60)
    print("TEST: Corridor Around a Two-Point Route")
    print("=" * 60)

    route = [GeoPoint(59.90, 10.70), GeoPoint(59.91, 10.72)]
    ring = buffer_polyline(route, 50)
    print(f"✓ Corridor has {len(ring)} vertices")

    assert len(ring) >= 2 * 16 + 2
    assert ring[0] != ring[-1]

    frame = LocalFrame.fit(route, reference=route[0])
    route_xy = frame.project(route)
    ring_xy = frame.project(ring)

    assert signed_area(ring_xy) > 0
    assert is_simple_ring(ring_xy)
    print("✓ Closed, counter-clockwise, non-self-intersecting")

    for p in ring_xy:
        assert distance_to_polyline(p, route_xy) == pytest.approx(50, rel=0.01)
    for endpoint in route_xy:
        assert contains(ring_xy, endpoint)
    print("✓ Every vertex 50 m from the route, both endpoints inside")


def test_corridor_distance_on_straight_route():
    print("\n" + "=" * 60)
    print("TEST: Corridor Offset Distance")
    print("=" * 60)

    route = [GeoPoint(59.90, 10.70), GeoPoint(59.90, 10.71), GeoPoint(59.90, 10.72)]
    ring = buffer_polyline(route, 120)
    assert len(ring) == 3 + 16 + 3 + 16

    frame = LocalFrame.fit(route, reference=route[0])
    route_xy = frame.project(route)
    for p in frame.project(ring):
        assert distance_to_polyline(p, route_xy) == pytest.approx(120, rel=0.01)
    print("✓ Straight route: all vertices at 120 m")


def test_corridor_turn_inner_side():
    """At a right-angle turn the inner miter sits d from both segments."""
    print("\n" + "=" * 60)
    print("TEST: Corridor Miter At a Turn")
    print("=" * 60)

    route = [GeoPoint(59.900, 10.700), GeoPoint(59.900, 10.710), GeoPoint(59.905, 10.710)]
    frame = LocalFrame.fit(route, reference=route[0])
    route_xy = frame.project(route)
    ring_xy = frame.project(corridor_polygon(route, 40))

    # Left turn: the left side (inner) is the reversed half after the end cap
    distances = [distance_to_polyline(p, route_xy) for p in ring_xy]
    assert min(distances) == pytest.approx(40, rel=0.01)
    assert max(distances) <= 40 * 3.0 + 1e-6
    assert signed_area(ring_xy) > 0
    print(f"✓ Vertex distances in [{min(distances):.1f}, {max(distances):.1f}] m")


def test_corridor_single_point_circle():
    print("\n" + "=" * 60)
    print("TEST: Single Point Circle")
    print("=" * 60)

    ring = buffer_polyline([OSLO], 100)
    assert len(ring) == 32
    for p in ring:
        assert haversine_m(OSLO, p) == pytest.approx(100, rel=0.01)
    print("✓ 32 points at 100 m")

    assert len(buffer_polyline([OSLO], 100, cap_segments=8)) == 16
    assert len(buffer_polyline([OSLO], 100, cap_segments=2)) == 4
    with pytest.raises(ValueError):
        corridor_polygon([OSLO], 100, cap_segments=1)
    with pytest.raises(ValueError):
        buffer_polyline([OSLO], 100, cap_segments=1)
    print("✓ Fewer than 2 cap segments rejected")


def test_corridor_fail_soft():
    print("\n" + "=" * 60)
    print("TEST: Corridor Fail-Soft Behavior")
    print("=" * 60)

    route = [GeoPoint(59.90, 10.70), GeoPoint(59.91, 10.72)]
    assert buffer_polyline(route, 0) == route
    assert buffer_polyline(route, -5) == route
    assert buffer_polyline([], 50) == []
    print("✓ Zero/negative distance and empty input returned unchanged")

    bad = [GeoPoint(59.90, 10.70), GeoPoint(float("inf"), 10.72)]
    assert buffer_polyline(bad, 50) == bad
    with pytest.raises(InvalidInputError):
        corridor_polygon(bad, 50)
    with pytest.raises(InvalidInputError):
        corridor_polygon(route, 0)
    print("✓ Non-finite input: fail-soft returns input, strict raises")

    u_turn = [GeoPoint(59.90, 10.70), GeoPoint(59.90, 10.71), GeoPoint(59.90, 10.70)]
    assert len(corridor_polygon(u_turn, 30)) > 6
    repeated = [GeoPoint(59.90, 10.70), GeoPoint(59.90, 10.70), GeoPoint(59.90, 10.71)]
    assert len(corridor_polygon(repeated, 30)) > 6
    print("✓ U-turn and repeated points still produce a ring")


# --------------------------------------------------------- polygon offset

def test_offset_square_scenario_round():
    """Rounded offset of a 100 m square by 100 m: A + P d + pi d^2."""
    print("\n" + "=" * 60)
    print("TEST: Square Offset (round joins)")
    print("=" * 60)

    sq = square(100)
    ring = offset_convex_polygon(sq, 100, join=JoinStyle.ROUND)
    expected = 100 * 100 + 400 * 100 + math.pi * 100 ** 2
    actual = area_m2(ring)
    print(f"✓ Area {actual:.0f} m2, expected {expected:.0f} m2")
    assert actual == pytest.approx(expected, rel=0.05)


def test_offset_square_miter():
    """Mitered offset of a square is the square grown by d on every side."""
    print("\n" + "=" * 60)
    print("TEST: Square Offset (miter joins)")
    print("=" * 60)

    sq = square(100)
    ring = buffer_polygon(sq, 50)
    assert len(ring) == 4
    assert area_m2(ring) == pytest.approx(200 * 200, rel=0.01)

    clockwise = list(reversed(sq))
    assert area_m2(buffer_polygon(clockwise, 50)) == pytest.approx(200 * 200, rel=0.01)
    print("✓ 4 vertices, 200 x 200 m, winding-independent")


def test_offset_containment_and_parallel_edges():
    print("\n" + "=" * 60)
    print("TEST: Offset Containment and Edge Offsets")
    print("=" * 60)

    hull = convex_hull([
        GeoPoint(59.900, 10.700),
        GeoPoint(59.902, 10.712),
        GeoPoint(59.908, 10.716),
        GeoPoint(59.911, 10.705),
        GeoPoint(59.906, 10.696),
        GeoPoint(59.905, 10.706),
    ])
    d = 75.0
    ring = buffer_polygon(hull, d)

    frame = LocalFrame.fit(hull, reference=hull[0])
    hull_xy = frame.project(hull)
    if signed_area(hull_xy) < 0:
        hull_xy = hull_xy[::-1]
    ring_xy = frame.project(ring)

    for p in hull_xy:
        assert contains(ring_xy, p)
    print("✓ Offset ring contains the hull")

    m = len(ring_xy)
    for i in range(len(hull_xy)):
        a, b = hull_xy[i], hull_xy[(i + 1) % len(hull_xy)]
        direction = (b - a) / np.hypot(*(b - a))
        matched = False
        for j in range(m):
            p, q = ring_xy[j], ring_xy[(j + 1) % m]
            edge = (q - p) / np.hypot(*(q - p))
            if abs(edge[0] * direction[1] - edge[1] * direction[0]) > 1e-6:
                continue
            mid = (p + q) / 2
            offset = abs((mid - a)[0] * direction[1] - (mid - a)[1] * direction[0])
            if abs(offset - d) < 0.01 * d:
                matched = True
        assert matched, f"no output edge parallel to input edge {i}"
    print("✓ Every input edge has a parallel output edge at distance d")


def test_offset_errors_and_fail_soft():
    print("\n" + "=" * 60)
    print("TEST: Offset Errors")
    print("=" * 60)

    sq = square(100)
    center = GeoPoint((sq[0].lat + sq[2].lat) / 2, (sq[0].lng + sq[2].lng) / 2)
    concave = [sq[0], sq[1], sq[2], center, sq[3]]
    with pytest.raises(UnsupportedShapeError):
        offset_convex_polygon(concave, 20)
    assert buffer_polygon(concave, 20) == concave
    print("✓ Concave ring rejected, fail-soft returns it unchanged")

    collinear = [GeoPoint(59.90, 10.70), GeoPoint(59.90, 10.71), GeoPoint(59.90, 10.72)]
    with pytest.raises(DegenerateGeometryError):
        offset_convex_polygon(collinear, 20)
    assert buffer_polygon(collinear, 20) == collinear
    print("✓ Flat ring: DegenerateGeometryError, fail-soft unchanged")

    assert buffer_polygon(sq[:2], 20) == sq[:2]
    assert buffer_polygon(sq, 0) == sq
    with pytest.raises(InvalidInputError):
        offset_convex_polygon(sq[:2], 20)
    print("✓ Fewer than 3 points or zero distance returned unchanged")


def main():
    """Run all tests."""
    print("\n🛩  sora_zone.geometry - Buffering Engine Tests")
    print("=" * 60)

    test_projection_round_trip()
    test_projection_scales()
    test_projection_rejects_bad_input()
    test_convex_hull_contains_all_points()
    test_convex_hull_edge_cases()
    test_corridor_scenario_two_point_route()
    test_corridor_distance_on_straight_route()
    test_corridor_turn_inner_side()
    test_corridor_single_point_circle()
    test_corridor_fail_soft()
    test_offset_square_scenario_round()
    test_offset_square_miter()
    test_offset_containment_and_parallel_edges()
    test_offset_errors_and_fail_soft()

    print("\n" + "=" * 60)
    print("✅ ALL GEOMETRY TESTS PASSED!")
    print("=" * 60)


if __name__ == "__main__":
    main()
