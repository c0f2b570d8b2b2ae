"""
Test Rendering
==============

Renderer protocol, map math and the raster snapshot.

Usage:
    pytest test_rendering.py
    python test_rendering.py
"""

import tempfile
from pathlib import Path

import cv2
import numpy as np
import pytest
import supervision as sv

from sora_zone import (
    BufferMode,
    DEFAULT_ZONE_STYLES,
    GeoPoint,
    ZoneComposition,
    ZoneLabel,
    ZoneSettings,
    ZoneStyle,
    compose_zones,
)
from sora_zone.rendering import (
    ROUTE_STYLE,
    SnapshotRenderer,
    choose_zoom,
    dash_segments,
    lat_to_y,
    lng_to_x,
    nice_number,
    paint_zones,
    scale_bar,
)
from sora_zone.rendering.renderer import DEFAULT_ZOOM, FIT_RATIO, MAX_ZOOM
from sora_zone.rendering.styles import BACKGROUND_COLOR

ROUTE = [(59.90, 10.70), (59.905, 10.71), (59.91, 10.72)]


class RecordingRenderer:
    """Renderer that records draw calls."""

    def __init__(self):
        self.calls = []

    def draw(self, zone, style):
        self.calls.append((zone.label, style))


def background_bgr():
    return np.array(sv.Color.from_hex(BACKGROUND_COLOR).as_bgr(), dtype=np.uint8)


def test_paint_order():
    """Zones reach the renderer outer to inner, each with its style."""
    print("\n" + "=" * 60)
    print("TEST: Renderer Paint Order")
    print("=" * 60)

    renderer = RecordingRenderer()
    painted = paint_zones(renderer, compose_zones(ROUTE))

    assert painted == 3
    assert [label for label, _ in renderer.calls] == [
        ZoneLabel.GROUND_RISK_BUFFER,
        ZoneLabel.CONTINGENCY,
        ZoneLabel.FLIGHT_GEOGRAPHY,
    ]
    for label, style in renderer.calls:
        assert style is DEFAULT_ZONE_STYLES[label]
    print("✓ Ground Risk -> Contingency -> Flight Geography")

    assert paint_zones(renderer, ZoneComposition()) == 0


def test_zone_styles():
    print("\n" + "=" * 60)
    print("TEST: Zone Styles")
    print("=" * 60)

    assert set(DEFAULT_ZONE_STYLES) == set(ZoneLabel)
    assert DEFAULT_ZONE_STYLES[ZoneLabel.FLIGHT_GEOGRAPHY].dash is None
    assert DEFAULT_ZONE_STYLES[ZoneLabel.GROUND_RISK_BUFFER].dash == (6, 4)
    assert ROUTE_STYLE.dash == (8, 5)
    assert ROUTE_STYLE.stroke_color.as_bgr() == (0xd8, 0x4e, 0x1d)
    print("✓ Every ring styled, route dashed 8/5")

    with pytest.raises(ValueError):
        ZoneStyle(fill="#000000", stroke="#000000", fill_opacity=1.5)
    with pytest.raises(ValueError):
        ZoneStyle(fill="#000000", stroke="#000000", fill_opacity=0.5, dash=(0, 4))
    with pytest.raises(ValueError):
        ZoneStyle(fill="#000000", stroke="#000000", fill_opacity=0.5, thickness=0)
    print("✓ Invalid opacity, dash and thickness rejected")


def test_choose_zoom():
    print("\n" + "=" * 60)
    print("TEST: Zoom Selection")
    print("=" * 60)

    assert choose_zoom([], 800, 400) == DEFAULT_ZOOM

    points = compose_zones(ROUTE)[0].polygon
    zoom = choose_zoom(points, 800, 400)
    lats = [p.lat for p in points]
    lngs = [p.lng for p in points]
    lat_pad = (max(lats) - min(lats)) * 0.2
    lng_pad = (max(lngs) - min(lngs)) * 0.2

    def fits(z):
        span_x = lng_to_x(max(lngs) + lng_pad, z) - lng_to_x(min(lngs) - lng_pad, z)
        span_y = lat_to_y(min(lats) - lat_pad, z) - lat_to_y(max(lats) + lat_pad, z)
        return span_x <= 800 * FIT_RATIO and span_y <= 400 * FIT_RATIO

    assert fits(zoom)
    assert zoom == MAX_ZOOM or not fits(zoom + 1)
    print(f"✓ Zoom {zoom} is the highest that fits")

    # Zero span pads by 0.005 degrees; 0.01 degrees of latitude at 59.9N
    # only fits 340 px at zoom 14
    assert choose_zoom([GeoPoint(59.9, 10.7)], 800, 400) == 14
    print("✓ Single point padded to a fixed window")


def test_scale_bar():
    print("\n" + "=" * 60)
    print("TEST: Scale Bar")
    print("=" * 60)

    assert nice_number(1.2) == 1
    assert nice_number(149) == 100
    assert nice_number(420) == 500
    assert nice_number(7.6) == 10

    meters, px, label = scale_bar(0.0, 12)
    assert meters == 2000
    assert label == "2.0 km"
    assert px == pytest.approx(2000 / (156543.03392 / 4096))

    meters, px, label = scale_bar(59.9, 15)
    assert label == f"{round(meters)} m"
    assert 40 < px < 160
    print(f"✓ Zoom 15 at 59.9N: {label} over {px:.0f} px")


def test_dash_segments():
    print("\n" + "=" * 60)
    print("TEST: Dash Pattern")
    print("=" * 60)

    path = np.array([[0.0, 0.0], [20.0, 0.0]])
    dashes = list(dash_segments(path, (6, 4)))
    assert len(dashes) == 2
    assert dashes[0][0] == pytest.approx([0, 0]) and dashes[0][1] == pytest.approx([6, 0])
    assert dashes[1][0] == pytest.approx([10, 0]) and dashes[1][1] == pytest.approx([16, 0])

    # Phase carries over a corner
    corner = np.array([[0.0, 0.0], [4.0, 0.0], [4.0, 6.0]])
    dashes = list(dash_segments(corner, (6, 4)))
    total_on = sum(float(np.hypot(*(b - a))) for a, b in dashes)
    assert total_on == pytest.approx(6.0)
    print("✓ 6/4 dashes, phase continuous across vertices")


def test_snapshot_render_and_save():
    print("\n" + "=" * 60)
    print("TEST: Snapshot Render")
    print("=" * 60)

    composition = compose_zones(ROUTE, ZoneSettings(contingency_m=50, ground_risk_m=100))
    renderer = SnapshotRenderer(width=800, height=400)
    frame = renderer.render(composition)

    assert frame.shape == (400, 800, 3)
    assert frame.dtype == np.uint8
    assert not np.array_equal(frame[200, 400], background_bgr())
    assert np.array_equal(frame[0, 0], background_bgr())
    print(f"✓ 800x400 frame at zoom {renderer.zoom}, zones painted at the center")

    with tempfile.TemporaryDirectory() as tmp:
        path = renderer.save(Path(tmp) / "out" / "snapshot.png")
        assert path.exists()
        image = cv2.imread(str(path))
        assert image.shape == (400, 800, 3)
    print("✓ PNG written")


def test_draw_single_zone():
    """draw() on a fresh renderer fits the view on the zone."""
    print("\n" + "=" * 60)
    print("TEST: Draw One Zone")
    print("=" * 60)

    square = [(59.900, 10.700), (59.900, 10.702), (59.901, 10.702), (59.901, 10.700), (59.900, 10.700)]
    composition = compose_zones(square, ZoneSettings(mode=BufferMode.CONVEX_HULL))
    zone = composition.get(ZoneLabel.FLIGHT_GEOGRAPHY)

    renderer = SnapshotRenderer(width=400, height=300)
    renderer.draw(zone)
    assert renderer.frame is not None
    center = renderer.frame[150, 200].astype(int)
    assert not np.array_equal(center, background_bgr().astype(int))
    # Green fill: green channel dominates
    assert center[1] > center[2]
    print("✓ Flight Geography fill visible at the canvas center")


def test_render_errors():
    print("\n" + "=" * 60)
    print("TEST: Render Errors")
    print("=" * 60)

    renderer = SnapshotRenderer()
    with pytest.raises(RuntimeError):
        renderer.save("never.png")
    with pytest.raises(RuntimeError):
        renderer.to_pixels(compose_zones(ROUTE).route)
    with pytest.raises(ValueError):
        renderer.render(ZoneComposition())
    with pytest.raises(ValueError):
        SnapshotRenderer(width=0)
    print("✓ Unfitted view, empty composition and bad canvas rejected")


def main():
    """Run all tests."""
    print("\n🛩  sora_zone.rendering - Rendering Tests")
    print("=" * 60)

    test_paint_order()
    test_zone_styles()
    test_choose_zoom()
    test_scale_bar()
    test_dash_segments()
    test_snapshot_render_and_save()
    test_draw_single_zone()
    test_render_errors()

    print("\n" + "=" * 60)
    print("✅ ALL RENDERING TESTS PASSED!")
    print("=" * 60)


if __name__ == "__main__":
    main()
